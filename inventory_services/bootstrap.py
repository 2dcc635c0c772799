"""
Engine bootstrap: configuration in, ready-to-use sessions out.

Replaces a process-wide connection singleton: the caller holds the
configuration and the session factory built from it.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session, sessionmaker

from inventory_config import get_active_config
from inventory_config.schema import EngineConfig
from inventory_kernel.db.engine import (
    create_engine_from_url,
    create_session_factory,
    create_tables,
)
from inventory_kernel.db.immutability import register_immutability_listeners
from inventory_kernel.domain.clock import Clock
from inventory_kernel.logging_config import configure_logging
from inventory_services.engine import InventoryEngine


def build_session_factory(config: EngineConfig) -> sessionmaker[Session]:
    """Configure logging, build the engine and return a session factory.

    Creates the schema when ``database.create_schema`` is set.
    """
    configure_logging(level=config.log_level)
    engine = create_engine_from_url(
        config.database.url,
        echo=config.database.echo,
        pool_pre_ping=config.database.pool_pre_ping,
    )
    if config.database.create_schema:
        create_tables(engine)
    register_immutability_listeners()
    return create_session_factory(engine)


@contextmanager
def open_engine(
    config: EngineConfig | None = None,
    clock: Clock | None = None,
    actor_id: str | None = None,
) -> Iterator[InventoryEngine]:
    """An InventoryEngine on a fresh session, closed on exit."""
    config = config or get_active_config()
    session = build_session_factory(config)()
    try:
        yield InventoryEngine(session, config=config, clock=clock, actor_id=actor_id)
    finally:
        session.close()
