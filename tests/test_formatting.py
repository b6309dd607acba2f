"""Tests for notification and reply text."""

from datetime import datetime, timezone

from road_closures.formatting import format_closure, format_expiration, format_opening


class TestFormatClosure:

    def test_partial_single_direction_single_marker(self, make_alert):
        alert = make_alert()

        assert format_closure(alert) == (
            "New (partial) closure on I-70 going East at mile marker 205 (Silverthorne). "
            "From CODOT: Right lane closed for paving"
        )

    def test_full_closure_both_directions_with_range(self, make_alert):
        alert = make_alert(closure_type_id="4", both_directions=True,
                           start_mile_marker="205", end_mile_marker="216.5",
                           description="Closed for avalanche mitigation")

        assert format_closure(alert) == (
            "New (full) closure on I-70 in both directions from mile marker 205 to 216.5 "
            "(Silverthorne). From CODOT: Closed for avalanche mitigation"
        )

    def test_blank_location_description_omitted(self, make_alert):
        alert = make_alert(location_description="   ")

        assert format_closure(alert).startswith(
            "New (partial) closure on I-70 going East at mile marker 205. From CODOT:"
        )

    def test_full_code_is_configurable(self, make_alert):
        alert = make_alert(closure_type_id="9")

        assert "(full)" in format_closure(alert, full_code="9")
        assert alert.closure_kind(full_code="9") == "full"
        assert "(partial)" in format_closure(alert)


class TestFormatOpening:

    def test_opening(self, make_alert):
        alert = make_alert(direction="West", end_mile_marker="190")

        assert format_opening(alert) == (
            "Road reopened on I-70 going West from mile marker 205 to 190 (Silverthorne)."
        )

    def test_opening_has_no_severity_or_source(self, make_alert):
        text = format_opening(make_alert(closure_type_id="4", location_description=""))

        assert text == "Road reopened on I-70 going East at mile marker 205."


class TestFormatExpiration:

    def test_afternoon_daylight_time(self):
        # 21:15 UTC is 3:15 p.m. MDT
        expires_at = datetime(2026, 10, 20, 21, 15, tzinfo=timezone.utc)

        assert format_expiration(expires_at) == "10/20 at 3:15 p.m."

    def test_just_after_midnight_standard_time(self):
        # 07:05 UTC is 12:05 a.m. MST
        expires_at = datetime(2026, 1, 15, 7, 5, tzinfo=timezone.utc)

        assert format_expiration(expires_at) == "1/15 at 12:05 a.m."

    def test_other_timezone(self):
        expires_at = datetime(2026, 7, 4, 16, 0, tzinfo=timezone.utc)

        assert format_expiration(expires_at, "UTC") == "7/4 at 4:00 p.m."

    def test_single_digit_month_day_and_hour(self):
        # 15:07 UTC is 8:07 a.m. MST
        expires_at = datetime(2026, 3, 5, 15, 7, tzinfo=timezone.utc)

        assert format_expiration(expires_at) == "3/5 at 8:07 a.m."

    def test_noon_is_pm(self):
        # 18:00 UTC is 12:00 p.m. MDT
        expires_at = datetime(2026, 6, 1, 18, 0, tzinfo=timezone.utc)

        assert format_expiration(expires_at) == "6/1 at 12:00 p.m."
