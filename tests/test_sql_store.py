"""
Tests for the SQLAlchemy slot store.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from renewalslots.adapters.memory_store import InMemorySlotStore
from renewalslots.adapters.sql_store import SqlSlotStore
from renewalslots.domain.exceptions import PersistenceError
from renewalslots.domain.models import SlotWrite, StoredSlot
from renewalslots.domain.time_utils import parse_time_of_day


def _write(name, start, end, customer_id="c1", slot_id=None) -> SlotWrite:
    return SlotWrite(
        customer_id=customer_id,
        name=name,
        start=parse_time_of_day(start),
        end=parse_time_of_day(end),
        slot_id=slot_id,
    )


@pytest.fixture
def store(tmp_path) -> SqlSlotStore:
    return SqlSlotStore.from_url(f"sqlite:///{tmp_path / 'slots.db'}")


@pytest.fixture
def seeded(store) -> SqlSlotStore:
    store.commit(creates=[_write("A", "06:00", "10:00")], updates=[])
    return store


class TestSqlSlotStore:
    """Tests for SqlSlotStore."""

    def test_creates_rows_with_canonical_times(self, store):
        store.commit(creates=[_write("morning", "8:00", "12:00")], updates=[])

        slots = store.list_slots("c1")

        assert len(slots) == 1
        assert (slots[0].name, slots[0].start, slots[0].end) == ("morning", "08:00:00", "12:00:00")

    def test_find_is_scoped_to_customer(self, seeded):
        slot_id = seeded.list_slots("c1")[0].id

        assert seeded.find("c1", slot_id) is not None
        assert seeded.find("c2", slot_id) is None
        assert seeded.find("c1", slot_id + 100) is None

    def test_update_overwrites_row_and_keeps_id(self, seeded):
        original = seeded.list_slots("c1")[0]

        seeded.commit(creates=[], updates=[_write("A2", "22:00", "02:00", slot_id=original.id)])

        updated = seeded.find("c1", original.id)
        assert updated == StoredSlot(
            id=original.id, customer_id="c1", name="A2", start="22:00:00", end="02:00:00"
        )

    def test_failing_later_write_rolls_back_whole_batch(self, seeded):
        """An update and a good insert are invisible after a later insert fails."""
        original = seeded.list_slots("c1")[0]
        broken = SlotWrite(
            customer_id="c1",
            name=None,
            start=parse_time_of_day("15:00"),
            end=parse_time_of_day("16:00"),
        )

        with pytest.raises(PersistenceError):
            seeded.commit(
                creates=[_write("good", "12:00", "13:00"), broken],
                updates=[_write("moved", "22:00", "02:00", slot_id=original.id)],
            )

        assert seeded.list_slots("c1") == [original]

    def test_update_of_vanished_row_rolls_back(self, seeded):
        original = seeded.list_slots("c1")[0]

        with pytest.raises(PersistenceError, match="no longer exists"):
            seeded.commit(
                creates=[_write("good", "12:00", "13:00")],
                updates=[_write("ghost", "09:00", "10:00", slot_id=original.id + 50)],
            )

        assert seeded.list_slots("c1") == [original]

    def test_list_slots_orders_by_id(self, store):
        store.commit(
            creates=[_write("first", "08:00", "09:00"), _write("second", "10:00", "11:00")],
            updates=[],
        )
        store.commit(creates=[_write("other", "08:00", "09:00", customer_id="c2")], updates=[])

        assert [slot.name for slot in store.list_slots("c1")] == ["first", "second"]
        assert [slot.name for slot in store.list_slots("c2")] == ["other"]

    def test_find_with_out_of_range_id_raises_persistence_error(self, seeded):
        with pytest.raises(PersistenceError):
            seeded.find("c1", 2**64)

    def test_update_with_out_of_range_id_rolls_back(self, seeded):
        original = seeded.list_slots("c1")[0]

        with pytest.raises(PersistenceError):
            seeded.commit(
                creates=[_write("good", "12:00", "13:00")],
                updates=[_write("huge", "09:00", "10:00", slot_id=2**64)],
            )

        assert seeded.list_slots("c1") == [original]

    def test_missing_table_raises_persistence_error(self, tmp_path):
        store = SqlSlotStore.from_url(f"sqlite:///{tmp_path / 'empty.db'}", create_schema=False)

        with pytest.raises(PersistenceError):
            store.list_slots("c1")
        with pytest.raises(PersistenceError):
            store.find("c1", 1)

    def test_sqlite_store_is_usable_from_another_thread(self, seeded):
        with ThreadPoolExecutor(max_workers=1) as pool:
            slots = pool.submit(seeded.list_slots, "c1").result()

        assert [slot.name for slot in slots] == ["A"]


class TestInMemorySlotStore:
    """Tests for the in-memory store used by service tests."""

    def test_assigns_ids_after_seeded_rows(self):
        store = InMemorySlotStore([StoredSlot(7, "c1", "A", "08:00:00", "09:00:00")])

        store.commit(creates=[_write("B", "10:00", "11:00")], updates=[])

        assert [slot.id for slot in store.list_slots("c1")] == [7, 8]

    def test_injected_failure_leaves_rows_untouched(self):
        seeded = StoredSlot(1, "c1", "A", "06:00:00", "10:00:00")
        store = InMemorySlotStore([seeded], fail_on_write=2)

        with pytest.raises(PersistenceError):
            store.commit(
                creates=[_write("B", "10:00", "11:00")],
                updates=[_write("A", "22:00", "02:00", slot_id=1)],
            )

        assert store.list_slots("c1") == [seeded]
        assert len(store.commit_calls) == 1
