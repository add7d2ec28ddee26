"""
In-memory slot store for tests and dry runs without a database.
"""

from typing import Dict, List, Optional, Sequence

from ..domain.exceptions import PersistenceError
from ..domain.models import SlotWrite, StoredSlot


class InMemorySlotStore:
    """
    Dictionary-backed store with the same contract as ``SqlSlotStore``.

    Writes are applied to a copy of the rows which replaces the live rows
    only once the whole batch succeeded, so a failing batch leaves nothing
    behind. ``fail_on_write`` makes the n-th write (1-based) of a batch fail,
    to exercise rollback paths.
    """

    def __init__(self, slots: Sequence[StoredSlot] = (), fail_on_write: Optional[int] = None):
        self._rows: Dict[int, StoredSlot] = {slot.id: slot for slot in slots}
        self._next_id = max(self._rows, default=0) + 1
        self.fail_on_write = fail_on_write
        self.commit_calls: List[tuple] = []

    def find(self, customer_id: str, slot_id: int) -> Optional[StoredSlot]:
        slot = self._rows.get(slot_id)
        if slot is None or slot.customer_id != str(customer_id):
            return None
        return slot

    def list_slots(self, customer_id: str) -> List[StoredSlot]:
        return [
            slot for slot_id, slot in sorted(self._rows.items())
            if slot.customer_id == str(customer_id)
        ]

    def commit(self, creates: Sequence[SlotWrite], updates: Sequence[SlotWrite]) -> None:
        """Apply a batch atomically. Raises PersistenceError on failure."""
        self.commit_calls.append((list(creates), list(updates)))

        staged = dict(self._rows)
        next_id = self._next_id

        for position, write in enumerate([*updates, *creates], start=1):
            if self.fail_on_write == position:
                raise PersistenceError(f"Injected failure on write {position}")

            if write.is_update:
                if write.slot_id not in staged:
                    raise PersistenceError(f"Slot {write.slot_id} no longer exists")
                slot_id = write.slot_id
            else:
                slot_id = next_id
                next_id += 1

            staged[slot_id] = StoredSlot(
                id=slot_id,
                customer_id=str(write.customer_id),
                name=write.name,
                start=str(write.start),
                end=str(write.end),
            )

        self._rows = staged
        self._next_id = next_id
