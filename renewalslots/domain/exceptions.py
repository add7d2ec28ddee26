"""
Domain-specific exception hierarchy for slot reconciliation.
"""


class RenewalSlotError(Exception):
    """Base class for all application-level errors."""


class InvalidTimeFormat(RenewalSlotError, ValueError):
    """Raised when a value cannot be read as a time of day."""


class MissingRequiredField(RenewalSlotError, ValueError):
    """Raised when a submitted slot lacks a field it cannot do without."""


class CapacityExceeded(RenewalSlotError):
    """Raised when the summed slot durations exceed the package duration."""

    def __init__(self, total_seconds: int, package_seconds: int):
        self.total_seconds = total_seconds
        self.package_seconds = package_seconds
        super().__init__(
            f"Total slot time {total_seconds}s exceeds package duration {package_seconds}s"
        )


class PersistenceError(RenewalSlotError):
    """Raised when a slot transaction fails and has been rolled back."""


class InvalidRenewalPayload(RenewalSlotError, ValueError):
    """Raised when a renewal envelope cannot be decoded."""
