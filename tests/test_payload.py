"""
Tests for decoding caller payloads.
"""

import pytest
from pydantic import ValidationError

from renewalslots.domain.exceptions import InvalidRenewalPayload, MissingRequiredField
from renewalslots.domain.models import ExistingSlotRef, NewSlot, SubmittedSlot
from renewalslots.services.payload import RenewalPayload, SlotPayload, decode_submitted_slots


class TestSlotPayload:
    """Tests for SlotPayload."""

    def test_accepts_legacy_keys(self):
        payload = SlotPayload.model_validate(
            {"id": "5", "slotName": "A", "startTime": "22:00", "endTime": "02:00", "isExisting": "true"}
        )

        slot = payload.to_submitted()

        assert slot == SubmittedSlot(ExistingSlotRef(5), "A", "22:00", "02:00")
        assert slot.is_existing

    def test_new_slot_identity(self):
        slot = SlotPayload.model_validate({"name": "A", "start": "08:00", "end": "09:00"}).to_submitted()

        assert slot.identity == NewSlot()
        assert not slot.is_existing

    def test_new_slot_ignores_stray_id(self):
        slot = SlotPayload.model_validate(
            {"id": 3, "name": "A", "start": "08:00", "end": "09:00", "isExisting": False}
        ).to_submitted()

        assert isinstance(slot.identity, NewSlot)

    def test_existing_without_id_is_missing_field(self):
        payload = SlotPayload.model_validate(
            {"name": "A", "start": "08:00", "end": "09:00", "isExisting": True}
        )

        with pytest.raises(MissingRequiredField, match="no id"):
            payload.to_submitted()

    @pytest.mark.parametrize("slot_id", [0, -1, 2**63, 2**64])
    def test_rejects_id_outside_database_range(self, slot_id):
        with pytest.raises(ValidationError):
            SlotPayload.model_validate(
                {"id": slot_id, "name": "A", "start": "08:00", "end": "09:00", "isExisting": True}
            )

    def test_accepts_largest_database_id(self):
        slot = SlotPayload.model_validate(
            {"id": 2**63 - 1, "name": "A", "start": "08:00", "end": "09:00", "isExisting": True}
        ).to_submitted()

        assert slot.identity == ExistingSlotRef(2**63 - 1)

    def test_blank_fields_are_missing(self):
        payload = SlotPayload.model_validate({"name": "A", "start": " ", "end": None})

        with pytest.raises(MissingRequiredField, match="start, end"):
            payload.to_submitted()


def test_decode_collects_errors_in_order():
    """Undecodable entries are reported and skipped."""
    ready = SubmittedSlot(NewSlot(), "ready", "07:00", "08:00")

    slots, errors = decode_submitted_slots(
        [
            {"name": 5, "start": "08:00", "end": "09:00"},
            "not a slot",
            ready,
            {"name": "ok", "start": "10:00", "end": "11:00"},
        ]
    )

    assert [slot.name for slot in slots] == ["ready", "ok"]
    assert len(errors) == 2
    assert errors[0].startswith("Slot '#1'")
    assert errors[1].startswith("Slot '#2'")


class TestRenewalPayload:
    """Tests for RenewalPayload."""

    def test_decodes_json_string(self):
        payload = RenewalPayload.model_validate(
            {
                "isRenewalSlotCreated": "true",
                "createdRenewalTimeSlot": '[{"slotName": "A"}]',
                "customerId": "c1",
            }
        )

        assert payload.requires_update
        assert payload.slot_entries() == [{"slotName": "A"}]
        assert payload.package_window() is None

    def test_accepts_decoded_list(self):
        payload = RenewalPayload.model_validate(
            {"isRenewalSlotCreated": True, "createdRenewalTimeSlot": [{"name": "A"}], "customerId": 1}
        )

        assert payload.slot_entries() == [{"name": "A"}]

    def test_non_list_json_is_invalid(self):
        payload = RenewalPayload.model_validate(
            {"isRenewalSlotCreated": True, "createdRenewalTimeSlot": '{"a": 1}', "customerId": 1}
        )

        with pytest.raises(InvalidRenewalPayload):
            payload.slot_entries()

    def test_empty_slot_list_requires_no_update(self):
        payload = RenewalPayload.model_validate(
            {"isRenewalSlotCreated": True, "createdRenewalTimeSlot": "", "customerId": 1}
        )

        assert not payload.requires_update

    def test_package_window_from_envelope(self):
        payload = RenewalPayload.model_validate(
            {"customerId": 1, "pkgStTime": "08:00", "pkgEndTime": "20:00"}
        )

        assert payload.package_window() == {"start": "08:00", "end": "20:00"}
