"""
Service layer helpers that orchestrate stores and domain logic.
"""

from .payload import RenewalPayload, SlotPayload, decode_submitted_slots
from .reconciliation import SlotReconciliationService, SlotStoreProtocol

__all__ = [
    "RenewalPayload",
    "SlotPayload",
    "decode_submitted_slots",
    "SlotReconciliationService",
    "SlotStoreProtocol",
]
