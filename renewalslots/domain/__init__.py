"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import (
    ExistingSlotRef,
    NewSlot,
    PackageWindow,
    ReconciliationPlan,
    ReconciliationResult,
    ReconciliationState,
    SlotAction,
    SlotDecision,
    SlotWrite,
    StoredSlot,
    SubmittedSlot,
)
from .reconciler import SlotReconciler, classify_slot
from .time_utils import TimeOfDay, duration_seconds, parse_time_of_day, to_seconds

__all__ = [
    "ExistingSlotRef",
    "NewSlot",
    "PackageWindow",
    "ReconciliationPlan",
    "ReconciliationResult",
    "ReconciliationState",
    "SlotAction",
    "SlotDecision",
    "SlotWrite",
    "StoredSlot",
    "SubmittedSlot",
    "SlotReconciler",
    "classify_slot",
    "TimeOfDay",
    "duration_seconds",
    "parse_time_of_day",
    "to_seconds",
]
