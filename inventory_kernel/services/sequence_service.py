"""
Named counters for ledger ordering and document numbering.

Two consumers:
    - ``LedgerService`` stamps every ledger row with ``seq`` from the
      ``ledger_entry`` counter, giving a total order that does not depend on
      timestamps.
    - Transfer and receiving services build ``TRF-20240309-00001`` style
      numbers through ``next_document_number``, one counter per prefix.

Each counter is a row in ``inventory_sequence_counters`` read with
``SELECT ... FOR UPDATE``.  Values are never derived from ``MAX(seq) + 1``.
Increments belong to the caller's transaction: a rollback hands the value
back, and this service never commits.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.sequence import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:
    LEDGER_ENTRY = "ledger_entry"

    def __init__(self, session: Session):
        self._session = session

    def _counter(self, name: str, *, lock: bool) -> SequenceCounter | None:
        stmt = select(SequenceCounter).where(SequenceCounter.name == name)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self._session.execute(stmt).scalar_one_or_none()

    def _start_counter(self, name: str) -> SequenceCounter | None:
        """
        Insert a counter at 1 inside a savepoint.

        Returns None when a concurrent transaction created the row first; the
        caller then locks and increments that row instead.
        """
        try:
            with self._session.begin_nested():
                counter = SequenceCounter(name=name, current_value=1)
                self._session.add(counter)
        except IntegrityError:
            logger.debug("sequence_counter_race_retry", extra={"sequence_name": name})
            return None
        return counter

    def next_value(self, sequence_name: str) -> int:
        """Allocate the next value (1 on first use, then strictly increasing)."""
        counter = self._counter(sequence_name, lock=True)
        if counter is None:
            counter = self._start_counter(sequence_name)
            if counter is None:
                counter = self._counter(sequence_name, lock=True)
                if counter is None:
                    raise RuntimeError(f"Sequence counter {sequence_name!r} vanished after insert race")
                counter.current_value += 1
        else:
            counter.current_value += 1

        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def next_document_number(self, prefix: str, on: datetime) -> str:
        """``<prefix>-<YYYYMMDD>-<nnnnn>``, counted per prefix."""
        value = self.next_value(f"document:{prefix}")
        return f"{prefix}-{on:%Y%m%d}-{value:05d}"

    def current_value(self, sequence_name: str) -> int | None:
        counter = self._counter(sequence_name, lock=False)
        return None if counter is None else counter.current_value
