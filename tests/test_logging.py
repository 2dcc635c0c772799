"""JSON log output, operation context and logger setup."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from inventory_kernel.domain.values import (
    ComponentQuantity,
    ItemRef,
    TransactionKind,
    TransformationType,
)
from inventory_kernel.exceptions import InsufficientStockError, ItemNotFoundError
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def emitted():
    """Configure logging onto an in-memory stream; call the result to read lines back."""
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())

    def _configure(level=logging.INFO):
        configure_logging(handler=handler, level=level)

    def _read() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    _read.configure = _configure
    return _read


class TestRecordShape:
    def test_envelope(self, emitted):
        emitted.configure()
        get_logger("stock").info("stock_posted")

        [line] = emitted()
        assert line["level"] == "INFO"
        assert line["message"] == "stock_posted"
        assert line["logger"] == "inventory_kernel.stock"
        assert line["ts"].endswith("+00:00")

    def test_extras_become_top_level_fields(self, emitted):
        emitted.configure()
        get_logger("ledger").info("entry", extra={"quantity_delta": -3, "note": "sale"})

        [line] = emitted()
        assert (line["quantity_delta"], line["note"]) == (-3, "sale")

    def test_rich_values_serialized(self, emitted):
        emitted.configure()
        entry_id = uuid4()
        get_logger("ledger").info("entry", extra={
            "entry_id": entry_id,
            "kind": TransactionKind.RETURN,
            "unit_cost": Decimal("2.50"),
        })

        [line] = emitted()
        assert line["entry_id"] == str(entry_id)
        assert line["kind"] == TransactionKind.RETURN.value
        assert line["unit_cost"] == "2.50"

    def test_below_level_dropped(self, emitted):
        emitted.configure()
        log = get_logger("quiet")
        log.debug("hidden")
        log.warning("shown")

        assert [line["message"] for line in emitted()] == ["shown"]

    def test_level_by_name(self, emitted):
        emitted.configure(level="debug")
        get_logger("loud").debug("visible")

        assert emitted()[0]["level"] == "DEBUG"


class TestExceptionFields:
    def test_plain_exception(self, emitted):
        emitted.configure()
        try:
            raise KeyError("bin-7")
        except KeyError:
            get_logger("x").error("lookup_failed", exc_info=True)

        [line] = emitted()
        assert line["exc_type"] == "KeyError"
        assert "bin-7" in line["exc_message"]
        assert "Traceback" in line["traceback"]
        assert "exc_code" not in line

    def test_kernel_error_details(self, emitted):
        emitted.configure()
        try:
            raise InsufficientStockError("comp-1", "loc-1", 2, 5)
        except InsufficientStockError:
            get_logger("x").error("stock_short", exc_info=True)

        [line] = emitted()
        assert line["exc_type"] == "InsufficientStockError"
        assert line["exc_code"] == "INSUFFICIENT_STOCK"
        assert line["exc_item_id"] == "comp-1"
        assert (line["exc_available"], line["exc_requested"]) == (2, 5)


class TestLogContext:
    def test_context_appears_on_records(self, emitted):
        emitted.configure()
        LogContext.set(correlation_id="corr-1", reference_id="TRF-20240101-00001")
        get_logger("transfer").info("executed")

        [line] = emitted()
        assert line["correlation_id"] == "corr-1"
        assert line["reference_id"] == "TRF-20240101-00001"
        assert "actor_id" not in line

    def test_context_beats_colliding_extra(self, emitted):
        emitted.configure()
        LogContext.set(operation="execute_transfer")
        get_logger("transfer").info("clash", extra={"operation": "spoofed"})

        assert emitted()[0]["operation"] == "execute_transfer"

    def test_set_keeps_fields_passed_as_none(self):
        LogContext.set(correlation_id="c", actor_id="a")
        LogContext.set(operation="o")
        assert LogContext.get_all() == {"correlation_id": "c", "actor_id": "a", "operation": "o"}

    def test_clear(self):
        LogContext.set(actor_id="clerk")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_nests_and_restores(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner", operation="record"):
            assert LogContext.get_all() == {"correlation_id": "inner", "operation": "record"}
        assert LogContext.get_all() == {"correlation_id": "outer"}

    def test_bind_restores_after_error(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(operation="doomed"):
                raise RuntimeError
        assert LogContext.get_all() == {}

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError, match="warehouse"):
            with LogContext.bind(warehouse="north"):
                pass

    def test_get_all_is_a_copy(self):
        LogContext.set(actor_id="clerk")
        LogContext.get_all()["actor_id"] = "intruder"
        assert LogContext.get_all()["actor_id"] == "clerk"


class TestConfigureLogging:
    def test_second_call_is_ignored(self):
        first, second = logging.NullHandler(), logging.NullHandler()
        configure_logging(handler=first)
        configure_logging(handler=second)

        assert logging.getLogger("inventory_kernel").handlers == [first]

    def test_reset_allows_reconfiguration(self):
        configure_logging(handler=logging.NullHandler())
        reset_logging()
        replacement = logging.NullHandler()
        configure_logging(handler=replacement)

        assert logging.getLogger("inventory_kernel").handlers == [replacement]

    def test_records_stay_out_of_root_logger(self):
        configure_logging(handler=logging.NullHandler())
        assert logging.getLogger("inventory_kernel").propagate is False

    def test_child_logger_names(self, emitted):
        emitted.configure(level=logging.DEBUG)
        log = get_logger("services.transfer_service")
        log.debug("nested")

        assert log.name == "inventory_kernel.services.transfer_service"
        assert emitted()[0]["logger"] == log.name


class TestOperationLogging:
    def test_engine_call_shares_one_correlation_id(
        self, emitted, inventory, make_component, location_a,
    ):
        emitted.configure(level=logging.DEBUG)
        inventory.record(
            TransactionKind.PURCHASE, ItemRef.component(make_component().id), location_a.id, 3,
        )

        recorded = [line for line in emitted() if line.get("operation") == "record"]
        assert recorded
        assert {line["actor_id"] for line in recorded} == {"test-actor"}
        assert len({line["correlation_id"] for line in recorded}) == 1

    def test_failed_call_logs_rollback(self, emitted, inventory, location_a):
        emitted.configure()
        missing = ItemRef.component(uuid4())
        with pytest.raises(ItemNotFoundError):
            inventory.record(TransactionKind.PURCHASE, missing, location_a.id, 1)

        [rolled_back] = [
            line for line in emitted() if line["message"] == "operation_rolled_back"
        ]
        assert rolled_back["operation"] == "record"
        assert rolled_back["level"] == "WARNING"
        assert rolled_back["exc_type"] == "ItemNotFoundError"

    def test_transfer_operations_carry_transfer_id(
        self, emitted, inventory, make_component, location_a, location_b,
    ):
        emitted.configure()
        transfer = inventory.create_bulk_transfer_order(location_a.id, location_b.id)
        inventory.add_bulk_transfer_item(
            transfer.id, ItemRef.component(make_component().id), 2,
        )

        by_message = {line["message"]: line for line in emitted()}
        assert by_message["transfer_created"]["reference_id"] == str(transfer.id)
        assert by_message["transfer_item_added"]["reference_id"] == str(transfer.id)

    def test_transformation_carries_its_own_id(
        self, emitted, inventory, make_component, location_a,
    ):
        emitted.configure()
        transformation = inventory.execute_transformation(
            TransformationType.BREAK_DOWN,
            [ComponentQuantity(make_component().id, 1)],
            [ComponentQuantity(make_component().id, 3)],
            location_a.id,
        )

        [executed] = [line for line in emitted() if line["message"] == "transformation_executed"]
        assert executed["reference_id"] == str(transformation.id)

    def test_reference_unbound_after_operation(self, inventory, location_a, location_b):
        inventory.create_bulk_transfer_order(location_a.id, location_b.id)
        assert "reference_id" not in LogContext.get_all()
