"""Unit tests for input validation.

Pure function tests - no mocks needed.
"""

import math
from datetime import datetime, timedelta, timezone

import pytest

from hazard_monitor.core.errors import InvalidArgumentError
from hazard_monitor.core.models import AlertDraft, AlertType
from hazard_monitor.core.validation import (
    as_utc,
    validate_alert,
    validate_coordinates,
    validate_device_id,
    validate_location_filter,
    validate_radius,
    validate_reading_value,
    validate_severity,
    validate_since,
    validate_time_window,
    validate_top_n,
)


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_draft(**overrides) -> AlertDraft:
    fields = {
        "type": AlertType.FLOOD,
        "severity": 3,
        "latitude": 10.0,
        "longitude": 20.0,
        "timestamp": NOW,
        "description": "River overflowing",
    }
    fields.update(overrides)
    return AlertDraft(**fields)


class TestReadingInputs:
    """Tests for device ID and reading value checks."""

    def test_positive_device_id_ok(self):
        validate_device_id(1)

    @pytest.mark.parametrize("device_id", [0, -1, True, "7", 1.5])
    def test_invalid_device_ids(self, device_id):
        with pytest.raises(InvalidArgumentError):
            validate_device_id(device_id)

    @pytest.mark.parametrize("value", [0, -273.15, 1e9, 42])
    def test_finite_values_ok(self, value):
        validate_reading_value(value)

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf, "10", None])
    def test_invalid_values(self, value):
        with pytest.raises(InvalidArgumentError):
            validate_reading_value(value)

    @pytest.mark.parametrize("value", [10**400, -(10**400)])
    def test_integer_too_large_for_float(self, value):
        with pytest.raises(InvalidArgumentError, match="too large"):
            validate_reading_value(value)

    def test_large_integer_within_float_range_ok(self):
        validate_reading_value(10**300)


class TestCoordinatesAndRadius:
    """Tests for coordinate and radius checks."""

    @pytest.mark.parametrize("lat,lon", [(0, 0), (90, 180), (-90, -180)])
    def test_valid_coordinates(self, lat, lon):
        validate_coordinates(lat, lon)

    @pytest.mark.parametrize("lat,lon", [(90.1, 0), (-91, 0), (0, 180.5), (0, -181)])
    def test_out_of_range_coordinates(self, lat, lon):
        with pytest.raises(InvalidArgumentError):
            validate_coordinates(lat, lon)

    @pytest.mark.parametrize("radius", [0.001, 10, 1000])
    def test_valid_radius(self, radius):
        validate_radius(radius)

    @pytest.mark.parametrize("radius", [0, -5, 1000.1, math.inf])
    def test_invalid_radius(self, radius):
        with pytest.raises(InvalidArgumentError):
            validate_radius(radius)


class TestValidateLocationFilter:
    """Tests for the all-or-nothing location filter."""

    def test_no_filter(self):
        assert validate_location_filter(None, None, None) is False

    def test_full_filter(self):
        assert validate_location_filter(10, 1.0, 2.0) is True

    @pytest.mark.parametrize(
        "radius,lat,lng",
        [(10, None, None), (None, 1.0, 2.0), (10, 1.0, None)],
    )
    def test_partial_filter_rejected(self, radius, lat, lng):
        with pytest.raises(InvalidArgumentError, match="together"):
            validate_location_filter(radius, lat, lng)

    def test_non_positive_radius_rejected(self):
        with pytest.raises(InvalidArgumentError):
            validate_location_filter(0, 1.0, 2.0)

    def test_bad_center_rejected(self):
        with pytest.raises(InvalidArgumentError):
            validate_location_filter(5, 95.0, 2.0)


class TestValidateTimeWindow:
    """Tests for statistics window checks."""

    def test_valid_window(self):
        validate_time_window(NOW - timedelta(days=30), NOW, NOW)

    def test_start_after_end(self):
        with pytest.raises(InvalidArgumentError, match="Start date"):
            validate_time_window(NOW, NOW - timedelta(days=1), NOW)

    def test_end_slightly_ahead_is_allowed(self):
        validate_time_window(NOW - timedelta(days=1), NOW + timedelta(hours=23), NOW)

    def test_end_more_than_a_day_ahead(self):
        with pytest.raises(InvalidArgumentError, match="future"):
            validate_time_window(NOW, NOW + timedelta(days=2), NOW)

    def test_exactly_365_days_is_allowed(self):
        validate_time_window(NOW - timedelta(days=365), NOW, NOW)

    def test_window_over_365_days(self):
        with pytest.raises(InvalidArgumentError, match="365"):
            validate_time_window(NOW - timedelta(days=366), NOW, NOW)

    def test_naive_datetimes_treated_as_utc(self):
        naive_now = NOW.replace(tzinfo=None)
        validate_time_window(naive_now - timedelta(days=1), naive_now, NOW)


class TestValidateTopN:
    def test_positive_ok(self):
        validate_top_n(1)

    @pytest.mark.parametrize("top_n", [0, -3])
    def test_non_positive_rejected(self, top_n):
        with pytest.raises(InvalidArgumentError):
            validate_top_n(top_n)


class TestValidateAlert:
    """Tests for manual alert validation."""

    def test_valid_alert(self):
        validate_alert(make_draft(), NOW)

    @pytest.mark.parametrize("description", ["", "   "])
    def test_blank_description(self, description):
        with pytest.raises(InvalidArgumentError, match="required"):
            validate_alert(make_draft(description=description), NOW)

    def test_description_length_limit(self):
        validate_alert(make_draft(description="x" * 1000), NOW)
        with pytest.raises(InvalidArgumentError, match="1000"):
            validate_alert(make_draft(description="x" * 1001), NOW)

    @pytest.mark.parametrize("severity", [0, 6])
    def test_severity_out_of_range(self, severity):
        with pytest.raises(InvalidArgumentError, match="Severity"):
            validate_alert(make_draft(severity=severity), NOW)

    def test_bad_coordinates(self):
        with pytest.raises(InvalidArgumentError, match="Latitude"):
            validate_alert(make_draft(latitude=100.0), NOW)

    def test_timestamp_too_far_ahead(self):
        validate_alert(make_draft(timestamp=NOW + timedelta(minutes=59)), NOW)
        with pytest.raises(InvalidArgumentError, match="future"):
            validate_alert(make_draft(timestamp=NOW + timedelta(hours=2)), NOW)

    def test_timestamp_too_old(self):
        with pytest.raises(InvalidArgumentError, match="past"):
            validate_alert(make_draft(timestamp=NOW - timedelta(days=400)), NOW)


class TestAlertQueryInputs:
    """Tests for severity and recent-alert checks."""

    @pytest.mark.parametrize("severity", [1, 5])
    def test_severity_bounds_ok(self, severity):
        validate_severity(severity)

    @pytest.mark.parametrize("severity", [0, 6, 10])
    def test_severity_out_of_range(self, severity):
        with pytest.raises(InvalidArgumentError, match="Severity"):
            validate_severity(severity)

    def test_since_within_last_year(self):
        validate_since(NOW - timedelta(days=30), NOW)
        validate_since(NOW, NOW)

    def test_since_in_future(self):
        with pytest.raises(InvalidArgumentError, match="future"):
            validate_since(NOW + timedelta(minutes=1), NOW)

    def test_since_over_a_year_ago(self):
        with pytest.raises(InvalidArgumentError, match="1 year"):
            validate_since(NOW - timedelta(days=366), NOW)


class TestAsUtc:
    def test_naive_gets_utc(self):
        assert as_utc(datetime(2024, 1, 1)).tzinfo == timezone.utc

    def test_aware_is_converted(self):
        plus_two = timezone(timedelta(hours=2))
        value = as_utc(datetime(2024, 1, 1, 2, 0, tzinfo=plus_two))
        assert value == datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
