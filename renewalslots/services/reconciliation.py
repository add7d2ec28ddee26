"""
Application service reconciling a customer's submitted slots.

The service decodes caller payloads, delegates classification to the
domain-level ``SlotReconciler`` and hands the decided writes to a slot store.
It never raises into the caller: every outcome, including persistence
failures, is reported as a ``ReconciliationResult``.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Protocol, Sequence, Union

from pydantic import ValidationError

from ..domain.exceptions import (
    CapacityExceeded,
    InvalidRenewalPayload,
    InvalidTimeFormat,
    PersistenceError,
)
from ..domain.models import (
    PackageWindow,
    ReconciliationPlan,
    ReconciliationResult,
    ReconciliationState,
    SlotWrite,
    StoredSlot,
    SubmittedSlot,
)
from ..domain.reconciler import SlotReconciler
from .payload import RenewalPayload, decode_submitted_slots

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Time slots processed successfully."
CAPACITY_MESSAGE = "Total slot time exceeds package duration."
COMMIT_FAILED_MESSAGE = "Error processing time slots: {error}"
INVALID_WINDOW_MESSAGE = "Invalid package start or end time format"
INVALID_JSON_MESSAGE = "Invalid JSON in createdRenewalTimeSlot"
INVALID_PAYLOAD_MESSAGE = "Invalid renewal slot data"
NO_UPDATE_MESSAGE = "No renewal slot update required."

RawPackageWindow = Union[PackageWindow, Mapping[str, Any], None]
RawSlots = Sequence[Union[SubmittedSlot, Mapping[str, Any]]]


class SlotStoreProtocol(Protocol):
    """Protocol describing the persistence behaviour needed by the service."""

    def find(self, customer_id: str, slot_id: int) -> Optional[StoredSlot]:
        """Return the customer's stored slot with this id, if any."""

    def commit(self, creates: Sequence[SlotWrite], updates: Sequence[SlotWrite]) -> None:
        """Apply all writes atomically or raise PersistenceError."""


class SlotReconciliationService:
    """
    Orchestrates decoding, classification, the capacity check and the commit.

    Dependency inversion toward a protocol makes it easy to plug in the SQL
    store or the in-memory one used in tests.
    """

    def __init__(
        self,
        store: SlotStoreProtocol,
        reconciler: Optional[SlotReconciler] = None,
        default_window: Optional[PackageWindow] = None,
    ) -> None:
        self._store = store
        self._reconciler = reconciler or SlotReconciler()
        self._default_window = default_window

    def preview(
        self,
        package_window: RawPackageWindow,
        submitted_slots: RawSlots,
        customer_id: Union[int, str],
    ) -> ReconciliationPlan:
        """
        Classify a batch without writing anything.

        Raises:
            InvalidTimeFormat: If the package window cannot be parsed
        """
        window = self._resolve_window(package_window)
        slots, decode_errors = decode_submitted_slots(submitted_slots)
        plan = self._reconciler.plan(window, slots, str(customer_id), self._store.find)
        plan.errors[:0] = decode_errors
        return plan

    def reconcile(
        self,
        package_window: RawPackageWindow,
        submitted_slots: RawSlots,
        customer_id: Union[int, str],
    ) -> ReconciliationResult:
        """
        Reconcile one customer's submitted slots and persist the outcome.

        Args:
            package_window: PackageWindow, ``{"start", "end"}`` mapping, or
                None to use the configured default window
            submitted_slots: Slot entries in submission order
            customer_id: Owner of the slots

        Returns:
            ReconciliationResult; ``state`` holds the terminal state
        """
        logger.debug("Reconciling %d slot(s) for customer %s", len(submitted_slots), customer_id)

        try:
            plan = self.preview(package_window, submitted_slots, customer_id)
        except InvalidTimeFormat as exc:
            logger.error("%s: %s", INVALID_WINDOW_MESSAGE, exc)
            return self._rejected(INVALID_WINDOW_MESSAGE, [str(exc)])
        except PersistenceError as exc:
            logger.error("Slot lookup failed for customer %s: %s", customer_id, exc)
            return self._rejected(COMMIT_FAILED_MESSAGE.format(error=exc), [str(exc)])

        if plan.exceeds_capacity:
            exc = CapacityExceeded(plan.total_seconds, plan.package_seconds)
            logger.error("%s %s", CAPACITY_MESSAGE, exc)
            return ReconciliationResult(
                success=False,
                message=CAPACITY_MESSAGE,
                errors=[*plan.errors, str(exc)],
                state=ReconciliationState.CAPACITY_EXCEEDED,
            )

        if plan.write_count:
            try:
                self._store.commit(plan.creates, plan.updates)
            except PersistenceError as exc:
                message = COMMIT_FAILED_MESSAGE.format(error=exc)
                logger.error(message)
                return ReconciliationResult(
                    success=False,
                    message=message,
                    errors=[*plan.errors, str(exc)],
                    state=ReconciliationState.COMMIT_FAILED,
                )

        logger.info(
            "%s customer=%s validExistingSlots=%d processedSlots=%d",
            SUCCESS_MESSAGE, customer_id, len(plan.kept), plan.write_count,
        )
        return ReconciliationResult(
            success=True,
            message=SUCCESS_MESSAGE,
            valid_existing_count=len(plan.kept),
            processed_count=plan.write_count,
            errors=list(plan.errors),
            state=ReconciliationState.COMMITTED,
        )

    def reconcile_renewal(self, payload: Mapping[str, Any]) -> ReconciliationResult:
        """
        Reconcile from the renewal envelope produced at payment completion.

        The envelope carries the slot list as a JSON string under
        ``createdRenewalTimeSlot`` together with the customer and package
        window.
        """
        try:
            request = RenewalPayload.model_validate(payload)
        except ValidationError as exc:
            logger.error("%s: %s", INVALID_PAYLOAD_MESSAGE, exc)
            return self._rejected(INVALID_PAYLOAD_MESSAGE, [str(exc)])

        if not request.requires_update:
            logger.info(NO_UPDATE_MESSAGE)
            return ReconciliationResult(success=False, message=NO_UPDATE_MESSAGE)

        try:
            entries = request.slot_entries()
        except InvalidRenewalPayload as exc:
            logger.error("%s: %s", INVALID_JSON_MESSAGE, exc)
            return self._rejected(INVALID_JSON_MESSAGE, [str(exc)])

        return self.reconcile(request.package_window(), entries, request.customer_id)

    def _resolve_window(self, package_window: RawPackageWindow) -> PackageWindow:
        if isinstance(package_window, PackageWindow):
            return package_window
        if package_window is None:
            if self._default_window is None:
                raise InvalidTimeFormat("No package window provided")
            return self._default_window
        return PackageWindow.from_strings(package_window.get("start"), package_window.get("end"))

    @staticmethod
    def _rejected(message: str, errors: List[str]) -> ReconciliationResult:
        return ReconciliationResult(
            success=False,
            message=message,
            errors=errors,
            state=ReconciliationState.REJECTED,
        )
