"""
Decoding of caller-supplied slot payloads into domain objects.
"""

import json
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from ..domain.exceptions import InvalidRenewalPayload, MissingRequiredField
from ..domain.models import ExistingSlotRef, NewSlot, SubmittedSlot

MAX_SLOT_ID = 2**63 - 1


class SlotPayload(BaseModel):
    """
    One submitted slot as sent by the booking front end.

    Both the current keys (``name``/``start``/``end``) and the legacy renewal
    keys (``slotName``/``startTime``/``endTime``) are accepted.
    """
    model_config = ConfigDict(extra="ignore")

    # Slot ids must fit a signed 64-bit SQL integer
    id: Optional[int] = Field(default=None, ge=1, le=MAX_SLOT_ID)
    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("name", "slotName"))
    start: Optional[str] = Field(default=None, validation_alias=AliasChoices("start", "startTime"))
    end: Optional[str] = Field(default=None, validation_alias=AliasChoices("end", "endTime"))
    is_existing: bool = Field(
        default=False,
        validation_alias=AliasChoices("isExisting", "is_existing"),
    )

    def to_submitted(self) -> SubmittedSlot:
        """
        Convert to a SubmittedSlot with an explicit identity.

        Raises:
            MissingRequiredField: If name, start or end is blank, or the slot
                claims to exist without an id
        """
        label = self.name or "<unnamed>"
        missing = [
            field_name for field_name in ("name", "start", "end")
            if not (getattr(self, field_name) or "").strip()
        ]
        if missing:
            raise MissingRequiredField(f"Slot '{label}' is missing {', '.join(missing)}")

        if self.is_existing:
            if self.id is None:
                raise MissingRequiredField(f"Slot '{label}' is marked existing but has no id")
            identity = ExistingSlotRef(slot_id=self.id)
        else:
            identity = NewSlot()

        return SubmittedSlot(identity=identity, name=self.name, start=self.start, end=self.end)


def decode_submitted_slots(
    entries: Sequence[Union[SubmittedSlot, Mapping[str, Any]]],
) -> Tuple[List[SubmittedSlot], List[str]]:
    """
    Decode raw slot entries, collecting per-slot errors instead of failing.

    Returns:
        (slots, errors) with slots in input order
    """
    slots: List[SubmittedSlot] = []
    errors: List[str] = []

    for index, entry in enumerate(entries, start=1):
        if isinstance(entry, SubmittedSlot):
            slots.append(entry)
            continue

        try:
            slots.append(SlotPayload.model_validate(entry).to_submitted())
        except ValidationError as exc:
            label = _entry_label(entry, index)
            errors.append(f"Slot '{label}': invalid slot data ({exc.error_count()} validation errors)")
        except MissingRequiredField as exc:
            errors.append(str(exc))

    return slots, errors


def _entry_label(entry: Any, index: int) -> str:
    if isinstance(entry, Mapping):
        name = entry.get("name") or entry.get("slotName")
        if isinstance(name, str) and name:
            return name
    return f"#{index}"


class RenewalPayload(BaseModel):
    """
    Renewal envelope handed over by the payment-completion workflow.
    """
    model_config = ConfigDict(extra="ignore")

    is_renewal_slot_created: bool = Field(
        default=False,
        validation_alias=AliasChoices("isRenewalSlotCreated", "is_renewal_slot_created"),
    )
    created_renewal_time_slot: Union[str, List[Dict[str, Any]], None] = Field(
        default=None,
        validation_alias=AliasChoices("createdRenewalTimeSlot", "created_renewal_time_slot"),
    )
    customer_id: Union[int, str] = Field(validation_alias=AliasChoices("customerId", "customer_id"))
    package_start: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("pkgStTime", "package_start"),
    )
    package_end: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("pkgEndTime", "package_end"),
    )

    @property
    def requires_update(self) -> bool:
        return self.is_renewal_slot_created and bool(self.created_renewal_time_slot)

    def slot_entries(self) -> List[Dict[str, Any]]:
        """
        Return the submitted slot entries, decoding the JSON string form.

        Raises:
            InvalidRenewalPayload: If the slot list is not valid JSON or not a list
        """
        raw = self.created_renewal_time_slot
        if raw is None:
            return []
        if isinstance(raw, list):
            return raw

        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise InvalidRenewalPayload(exc.msg) from exc

        if not isinstance(decoded, list):
            raise InvalidRenewalPayload("createdRenewalTimeSlot must be a list of slots")
        return decoded

    def package_window(self) -> Optional[Dict[str, str]]:
        """Raw package window, or None when the envelope carries none."""
        if self.package_start is None and self.package_end is None:
            return None
        return {"start": self.package_start, "end": self.package_end}
