"""
SQLAlchemy-backed slot store.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..domain.exceptions import PersistenceError
from ..domain.models import SlotWrite, StoredSlot
from .database import SlotRecord, create_session_factory, create_slot_engine, init_schema

logger = logging.getLogger(__name__)

# sqlite3 raises OverflowError for integers outside 64 bits, unwrapped by SQLAlchemy
_DATABASE_ERRORS = (SQLAlchemyError, OverflowError)


def _to_stored(record: SlotRecord) -> StoredSlot:
    return StoredSlot(
        id=record.id,
        customer_id=record.customer_id,
        name=record.slot_name,
        start=record.start_time,
        end=record.end_time,
    )


class SqlSlotStore:
    """
    Reads slot rows and applies reconciliation writes in one transaction.

    ``commit`` is all-or-nothing: if any update or insert fails, every
    statement of the batch is rolled back before ``PersistenceError`` is
    raised.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False, create_schema: bool = True) -> "SqlSlotStore":
        """Build a store for a database URL, creating the table if asked."""
        engine = create_slot_engine(database_url, echo=echo)
        if create_schema:
            init_schema(engine)
        return cls(create_session_factory(engine))

    def find(self, customer_id: str, slot_id: int) -> Optional[StoredSlot]:
        """Return the customer's slot with this id, or None."""
        try:
            with self._session_factory() as session:
                record = (
                    session.query(SlotRecord)
                    .filter(SlotRecord.customer_id == str(customer_id))
                    .filter(SlotRecord.id == slot_id)
                    .first()
                )
                return _to_stored(record) if record else None
        except _DATABASE_ERRORS as exc:
            raise PersistenceError(str(exc)) from exc

    def list_slots(self, customer_id: str) -> List[StoredSlot]:
        """Return all slots of a customer ordered by id."""
        try:
            with self._session_factory() as session:
                records = (
                    session.query(SlotRecord)
                    .filter(SlotRecord.customer_id == str(customer_id))
                    .order_by(SlotRecord.id)
                    .all()
                )
                return [_to_stored(record) for record in records]
        except _DATABASE_ERRORS as exc:
            raise PersistenceError(str(exc)) from exc

    def commit(self, creates: Sequence[SlotWrite], updates: Sequence[SlotWrite]) -> None:
        """
        Apply updates and inserts atomically.

        Args:
            creates: Writes without a slot id, inserted as new rows
            updates: Writes with a slot id, overwriting that row

        Raises:
            PersistenceError: If any statement fails; nothing is kept
        """
        try:
            with self._session_factory() as session, session.begin():
                self._apply_updates(session, updates)
                session.add_all(
                    SlotRecord(
                        customer_id=str(write.customer_id),
                        slot_name=write.name,
                        start_time=str(write.start),
                        end_time=str(write.end),
                    )
                    for write in creates
                )
                session.flush()
        except _DATABASE_ERRORS as exc:
            logger.error("Slot transaction rolled back: %s", exc)
            raise PersistenceError(str(exc)) from exc

        logger.info("Slot transaction committed: %d updated, %d created", len(updates), len(creates))

    @staticmethod
    def _apply_updates(session: Session, updates: Sequence[SlotWrite]) -> None:
        for write in updates:
            matched = (
                session.query(SlotRecord)
                .filter(SlotRecord.id == write.slot_id)
                .update(
                    {
                        SlotRecord.customer_id: str(write.customer_id),
                        SlotRecord.slot_name: write.name,
                        SlotRecord.start_time: str(write.start),
                        SlotRecord.end_time: str(write.end),
                    },
                    synchronize_session=False,
                )
            )
            if matched == 0:
                # Raised inside the transaction block so the batch rolls back
                logger.error("Slot %s disappeared before commit", write.slot_id)
                raise PersistenceError(f"Slot {write.slot_id} no longer exists")
