"""
Tests for domain models.
"""

import pytest

from renewalslots.domain.exceptions import InvalidTimeFormat
from renewalslots.domain.models import (
    PackageWindow,
    ReconciliationPlan,
    ReconciliationResult,
    ReconciliationState,
    SlotWrite,
)
from renewalslots.domain.time_utils import parse_time_of_day


class TestPackageWindow:
    """Tests for PackageWindow."""

    def test_duration(self):
        window = PackageWindow.from_strings("08:00:00", "20:00:00")

        assert window.duration_seconds() == 43200
        assert str(window) == "08:00:00 - 20:00:00"

    def test_overnight_duration(self):
        window = PackageWindow.from_strings("18:00", "6:00")

        assert window.duration_seconds() == 12 * 3600

    def test_invalid_window_raises(self):
        with pytest.raises(InvalidTimeFormat):
            PackageWindow.from_strings("08:00", "31:00")


def test_slot_write_duration_and_kind():
    write = SlotWrite(
        customer_id="c1",
        name="night",
        start=parse_time_of_day("23:00"),
        end=parse_time_of_day("01:00"),
    )

    assert write.duration_seconds() == 7200
    assert not write.is_update


def test_plan_capacity_is_inclusive():
    plan = ReconciliationPlan(customer_id="c1", package_seconds=3600, total_seconds=3600)

    assert not plan.exceeds_capacity
    plan.total_seconds += 1
    assert plan.exceeds_capacity


def test_failed_result_has_no_data():
    result = ReconciliationResult(
        success=False,
        message="Total slot time exceeds package duration.",
        errors=["Total slot time exceeds package duration."],
        state=ReconciliationState.CAPACITY_EXCEEDED,
    )

    assert result.to_dict()["data"] == {}
