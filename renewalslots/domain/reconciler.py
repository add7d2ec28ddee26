"""
Core business logic for reconciling submitted slots against stored slots.

Pure domain logic: the only collaborator is a lookup callable, so the
classification can be exercised without a database.
"""

import logging
from typing import Callable, Optional, Sequence

from .exceptions import InvalidTimeFormat
from .models import (
    ExistingSlotRef,
    PackageWindow,
    ReconciliationPlan,
    SlotAction,
    SlotDecision,
    SlotWrite,
    StoredSlot,
    SubmittedSlot,
)
from .time_utils import TimeOfDay, duration_seconds, parse_time_of_day

logger = logging.getLogger(__name__)

SlotLookup = Callable[[str, int], Optional[StoredSlot]]


def classify_slot(
    submitted_start: TimeOfDay,
    submitted_end: TimeOfDay,
    is_existing: bool,
    stored: Optional[StoredSlot],
    package_seconds: int,
) -> SlotAction:
    """
    Decide what to do with one submitted slot.

    - New slots are always created.
    - Existing slots whose row is missing are created.
    - Existing slots are kept only when the stored row already has the same
      canonical start/end and its own duration fits the package; any other
      stored row is overwritten.

    Args:
        submitted_start: Canonical submitted start
        submitted_end: Canonical submitted end
        is_existing: Whether the caller referenced a stored slot
        stored: The stored row found for that reference, if any
        package_seconds: Allowed daily duration of the package

    Returns:
        SlotAction
    """
    if not is_existing or stored is None:
        return SlotAction.CREATE

    try:
        stored_start = parse_time_of_day(stored.start)
        stored_end = parse_time_of_day(stored.end)
    except InvalidTimeFormat:
        # A corrupt row cannot match anything; rewriting it repairs it
        return SlotAction.UPDATE

    if (
        duration_seconds(stored_start, stored_end) <= package_seconds
        and stored_start == submitted_start
        and stored_end == submitted_end
    ):
        return SlotAction.KEEP

    return SlotAction.UPDATE


class SlotReconciler:
    """
    Classifies a batch of submitted slots and totals their durations.

    Algorithm:
    1. Compute the package's allowed duration
    2. For each slot, in order: normalize its times (malformed slots are
       recorded and skipped), add its duration to the running total,
       then classify it as keep / update / create
    3. Collect creates and updates as writes; kept rows produce no write

    The capacity verdict is exposed on the returned plan; nothing here
    touches persistence.
    """

    def plan(
        self,
        package_window: PackageWindow,
        submitted_slots: Sequence[SubmittedSlot],
        customer_id: str,
        find: SlotLookup,
    ) -> ReconciliationPlan:
        """
        Build the reconciliation plan for one customer.

        Args:
            package_window: The customer's package window
            submitted_slots: Slot intentions in submission order
            customer_id: Owner of every slot in the batch
            find: Lookup ``(customer_id, slot_id) -> StoredSlot | None``

        Returns:
            ReconciliationPlan
        """
        package_seconds = package_window.duration_seconds()
        plan = ReconciliationPlan(customer_id=customer_id, package_seconds=package_seconds)

        for slot in submitted_slots:
            try:
                start = parse_time_of_day(slot.start)
                end = parse_time_of_day(slot.end)
            except InvalidTimeFormat as exc:
                logger.warning(
                    "Skipping slot '%s' with invalid time (%s - %s): %s",
                    slot.name, slot.start, slot.end, exc,
                )
                plan.errors.append(f"Slot '{slot.name}': {exc}")
                continue

            slot_seconds = duration_seconds(start, end)
            plan.total_seconds += slot_seconds

            stored = self._lookup(slot, customer_id, find)
            action = classify_slot(start, end, slot.is_existing, stored, package_seconds)

            plan.decisions.append(
                SlotDecision(
                    action=action,
                    name=slot.name,
                    start=start,
                    end=end,
                    duration_seconds=slot_seconds,
                    stored=stored,
                )
            )

            if action is SlotAction.KEEP:
                logger.info("Existing slot '%s' (%s - %s) validated", slot.name, start, end)
                plan.kept.append(stored)
            elif action is SlotAction.UPDATE:
                logger.warning(
                    "Existing slot '%s' is %s - %s, submitted %s - %s; will be updated",
                    slot.name, stored.start, stored.end, start, end,
                )
                plan.updates.append(
                    SlotWrite(
                        customer_id=customer_id,
                        name=slot.name,
                        start=start,
                        end=end,
                        slot_id=stored.id,
                    )
                )
            else:
                plan.creates.append(
                    SlotWrite(customer_id=customer_id, name=slot.name, start=start, end=end)
                )

        logger.info(
            "Slots classified for customer %s: %d kept, %d to update, %d to create, "
            "%ds of %ds used",
            customer_id, len(plan.kept), len(plan.updates), len(plan.creates),
            plan.total_seconds, package_seconds,
        )
        return plan

    @staticmethod
    def _lookup(slot: SubmittedSlot, customer_id: str, find: SlotLookup) -> Optional[StoredSlot]:
        if not isinstance(slot.identity, ExistingSlotRef):
            return None

        stored = find(customer_id, slot.identity.slot_id)
        if stored is None:
            logger.warning(
                "Slot '%s' references id %s which does not exist for customer %s; will be created",
                slot.name, slot.identity.slot_id, customer_id,
            )
        return stored
