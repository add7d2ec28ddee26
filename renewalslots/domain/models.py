"""
Domain models for daily slot reconciliation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .time_utils import TimeOfDay, duration_seconds, parse_time_of_day


@dataclass(frozen=True)
class PackageWindow:
    """
    The daily start/end of a subscription package.

    The window may span midnight; its allowed duration is computed with
    wraparound.
    """
    start: TimeOfDay
    end: TimeOfDay

    @classmethod
    def from_strings(cls, start: str, end: str) -> "PackageWindow":
        """Parse a raw start/end pair. Raises InvalidTimeFormat."""
        return cls(start=parse_time_of_day(start), end=parse_time_of_day(end))

    def duration_seconds(self) -> int:
        """Return the allowed daily duration in seconds."""
        return duration_seconds(self.start, self.end)

    def __str__(self) -> str:
        return f"{self.start} - {self.end}"


@dataclass(frozen=True)
class NewSlot:
    """Identity of a slot the caller wants created."""


@dataclass(frozen=True)
class ExistingSlotRef:
    """Identity of a slot the caller believes is already stored."""
    slot_id: int


SlotIdentity = Union[NewSlot, ExistingSlotRef]


@dataclass(frozen=True)
class SubmittedSlot:
    """
    A slot intention submitted for reconciliation.

    Times are kept exactly as received; the reconciler normalizes them.
    """
    identity: SlotIdentity
    name: str
    start: str
    end: str

    @property
    def is_existing(self) -> bool:
        return isinstance(self.identity, ExistingSlotRef)


@dataclass(frozen=True)
class StoredSlot:
    """
    A persisted slot row owned by one customer.

    Times are whatever the store holds; legacy rows may not be canonical.
    """
    id: int
    customer_id: str
    name: str
    start: str
    end: str


@dataclass(frozen=True)
class SlotWrite:
    """
    A decided write. ``slot_id`` set means update that row, unset means
    insert a new one.
    """
    customer_id: str
    name: str
    start: TimeOfDay
    end: TimeOfDay
    slot_id: Optional[int] = None

    @property
    def is_update(self) -> bool:
        return self.slot_id is not None

    def duration_seconds(self) -> int:
        return duration_seconds(self.start, self.end)


class SlotAction(str, Enum):
    """Three-way classification of a submitted slot."""
    KEEP = "keep"
    UPDATE = "update"
    CREATE = "create"


class ReconciliationState(str, Enum):
    """Terminal and intermediate states of one reconciliation call."""
    IDLE = "idle"
    NORMALIZING = "normalizing"
    CLASSIFYING = "classifying"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    COMMITTING = "committing"
    COMMITTED = "committed"
    COMMIT_FAILED = "commit_failed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class SlotDecision:
    """Outcome of classifying one submitted slot."""
    action: SlotAction
    name: str
    start: TimeOfDay
    end: TimeOfDay
    duration_seconds: int
    stored: Optional[StoredSlot] = None


@dataclass
class ReconciliationPlan:
    """
    Everything the reconciler decided for one batch, before any write.
    """
    customer_id: str
    package_seconds: int
    decisions: List[SlotDecision] = field(default_factory=list)
    creates: List[SlotWrite] = field(default_factory=list)
    updates: List[SlotWrite] = field(default_factory=list)
    kept: List[StoredSlot] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    total_seconds: int = 0

    @property
    def exceeds_capacity(self) -> bool:
        return self.total_seconds > self.package_seconds

    @property
    def write_count(self) -> int:
        return len(self.creates) + len(self.updates)


@dataclass
class ReconciliationResult:
    """
    Structured outcome returned to the caller of a reconciliation.
    """
    success: bool
    message: str
    valid_existing_count: int = 0
    processed_count: int = 0
    errors: List[str] = field(default_factory=list)
    state: ReconciliationState = ReconciliationState.IDLE

    def to_dict(self) -> Dict[str, Any]:
        """Render the response shape handed back to the completion workflow."""
        data: Dict[str, Any] = {}
        if self.success:
            data = {
                "validExistingSlots": self.valid_existing_count,
                "processedSlots": self.processed_count,
            }
        return {
            "success": self.success,
            "message": self.message,
            "data": data,
            "errors": list(self.errors),
        }
