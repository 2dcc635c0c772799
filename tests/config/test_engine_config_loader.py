"""
Engine configuration tests: YAML loading, validation, overrides and the
bridge into the kernel's transition policy.
"""

from __future__ import annotations

import textwrap

import pytest
import yaml

from inventory_config import DATABASE_URL_ENV, get_active_config
from inventory_config.bridges import transition_policy_from_config
from inventory_config.loader import compute_checksum, load_engine_config, parse_engine_config
from inventory_config.schema import (
    DatabaseConfig,
    EngineConfig,
    NumberingConfig,
    StockPolicyConfig,
    TransferPolicyConfig,
)
from inventory_kernel.models.location import Location
from inventory_services.bootstrap import open_engine


@pytest.fixture
def write_config(tmp_path):
    def _write(text: str):
        path = tmp_path / "engine.yaml"
        path.write_text(textwrap.dedent(text))
        return path

    return _write


class TestDefaultConfig:
    def test_default_set_loads(self, monkeypatch):
        monkeypatch.delenv(DATABASE_URL_ENV, raising=False)
        config = get_active_config()

        assert config.database.url == "sqlite:///inventory.db"
        assert config.transfer_policy.enforce is False
        assert config.stock_policy.allow_negative_stock is True
        assert config.numbering.transfer_prefix == "TRF"
        assert len(config.checksum) == 64

    def test_default_set_permits_completed_to_delivered(self, monkeypatch):
        monkeypatch.delenv(DATABASE_URL_ENV, raising=False)
        policy = transition_policy_from_config(get_active_config())

        assert policy.is_allowed("completed", "delivered")
        assert policy.is_allowed("cancelled", "created")

    def test_environment_overrides_database_url(self, monkeypatch):
        monkeypatch.setenv(DATABASE_URL_ENV, "sqlite://")
        assert get_active_config().database.url == "sqlite://"

    def test_load_emits_trace(self, monkeypatch, captured_logs):
        monkeypatch.delenv(DATABASE_URL_ENV, raising=False)
        config = get_active_config()

        [trace] = [r for r in captured_logs() if r["message"] == "INVENTORY_CONFIG_TRACE"]
        assert trace["checksum"] == config.checksum
        assert trace["database_url_overridden"] is False


class TestLoader:
    def test_full_document(self, write_config):
        config = load_engine_config(write_config("""
            database:
              url: "sqlite://"
              create_schema: true
            transfer_policy:
              enforce: true
              allowed:
                created: [in_transit, cancelled]
                in_transit: [delivered]
            stock_policy:
              allow_negative_stock: false
            numbering:
              transfer_prefix: BT
            log_level: debug
        """))

        assert config.database.create_schema is True
        assert config.transfer_policy.allowed == {
            "created": ("in_transit", "cancelled"),
            "in_transit": ("delivered",),
        }
        assert config.stock_policy.allow_negative_stock is False
        assert config.stock_policy.allow_over_receipt is True
        assert config.numbering.transfer_prefix == "BT"
        assert config.numbering.purchase_order_prefix == "PO"
        assert config.log_level == "DEBUG"

    def test_database_url_required(self, write_config):
        with pytest.raises(ValueError, match="database.url"):
            load_engine_config(write_config("database: {}\n"))

    def test_unknown_section_rejected(self, write_config):
        with pytest.raises(ValueError, match="Unknown configuration section"):
            load_engine_config(write_config("""
                database:
                  url: "sqlite://"
                ledger: {}
            """))

    def test_unknown_status_rejected(self, write_config):
        with pytest.raises(ValueError, match="unknown status"):
            load_engine_config(write_config("""
                database:
                  url: "sqlite://"
                transfer_policy:
                  allowed:
                    created: [shipped]
            """))

    def test_top_level_must_be_mapping(self, write_config):
        with pytest.raises(ValueError, match="mapping"):
            load_engine_config(write_config("- one\n- two\n"))

    def test_malformed_yaml_propagates(self, write_config):
        with pytest.raises(yaml.YAMLError):
            load_engine_config(write_config("database: [unclosed\n"))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_engine_config(tmp_path / "absent.yaml")

    def test_checksum_is_order_independent(self):
        a = {"database": {"url": "sqlite://", "echo": False}, "log_level": "INFO"}
        b = {"log_level": "INFO", "database": {"echo": False, "url": "sqlite://"}}
        assert compute_checksum(a) == compute_checksum(b)
        assert parse_engine_config(a).checksum == compute_checksum(a)


class TestSchemaValidation:
    def test_empty_url(self):
        with pytest.raises(ValueError):
            DatabaseConfig(url="")

    def test_non_boolean_flag(self):
        with pytest.raises(ValueError):
            StockPolicyConfig(allow_negative_stock="yes")

    def test_prefix_without_separator(self):
        with pytest.raises(ValueError):
            NumberingConfig(transfer_prefix="TR-F")

    def test_unknown_log_level(self):
        with pytest.raises(ValueError, match="log_level"):
            EngineConfig(database=DatabaseConfig(url="sqlite://"), log_level="LOUD")


class TestTransitionPolicyBridge:
    def test_allowed_table_becomes_frozensets(self):
        config = EngineConfig(
            database=DatabaseConfig(url="sqlite://"),
            transfer_policy=TransferPolicyConfig(
                enforce=True,
                allowed={"created": ("in_transit",), "cancelled": ()},
            ),
        )
        policy = transition_policy_from_config(config)

        assert policy.enforce is True
        assert policy.allowed == {
            "created": frozenset({"in_transit"}),
            "cancelled": frozenset(),
        }
        assert policy.is_allowed("created", "in_transit")
        assert not policy.is_allowed("created", "completed")
        assert not policy.is_allowed("cancelled", "created")
        # absent from the table: anything goes
        assert policy.is_allowed("delivered", "created")

    def test_empty_table_allows_everything(self):
        policy = transition_policy_from_config(
            EngineConfig(database=DatabaseConfig(url="sqlite://"))
        )
        assert policy.is_allowed("completed", "created")


class TestOpenEngine:
    def test_engine_built_from_config_uses_its_numbering(self):
        config = EngineConfig(
            database=DatabaseConfig(url="sqlite://", create_schema=True),
            numbering=NumberingConfig(transfer_prefix="BT"),
        )
        with open_engine(config, actor_id="bootstrap-test") as engine:
            source = Location(name="Workshop")
            destination = Location(name="Market Stall")
            engine.session.add_all([source, destination])
            engine.session.commit()

            transfer = engine.create_bulk_transfer_order(source.id, destination.id)

            assert transfer.transfer_number.startswith("BT-")
            assert transfer.created_by == "bootstrap-test"
