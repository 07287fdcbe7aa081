"""Service-layer tests that run directly against a database session."""

from datetime import date, timedelta

import pytest

from single_safety.core.time_utils import now_utc
from single_safety.services import applications, calendar, products, safezones, settings_store


@pytest.fixture
def package(session):
    return products.create_product(session, {"name": "Single Package", "price": 100000}, product_id="single_package")


def new_application(session, products_map=None, **overrides):
    data = {
        "building_name": "Sunrise Villa",
        "contact": "010-0000-0000",
        "address": "서울특별시 중구 세종대로 110",
        "installation_date": date(2026, 4, 1),
        "applicant_type": "owner",
    }
    data.update(overrides)
    return applications.create_application(session, data, products_map or {})


class TestApplications:
    def test_create_returns_totals(self, session, package):
        view = new_application(session, {"single_package": 4})
        assert view.application.id is not None
        assert view.totals.discount_amount == 120000
        assert view.total_quantity == 4

    def test_unknown_product_creates_nothing(self, session, package):
        with pytest.raises(ValueError, match="missing"):
            new_application(session, {"single_package": 1, "missing": 2})
        assert applications.list_applications(session) == []

    def test_invalid_status(self, session):
        app_id = new_application(session).application.id
        with pytest.raises(ValueError):
            applications.update_application_status(session, app_id, "shipped")

    def test_missing_rows(self, session):
        assert applications.get_application(session, 42) is None
        assert applications.update_application(session, 42, {"contact": "x"}) is None
        assert applications.replace_application_products(session, 42, {}) is False
        assert applications.delete_application(session, 42) is False

    def test_monthly_count_uses_calendar_month(self, session, package):
        new_application(session, {"single_package": 1})
        stats = applications.application_stats(session, now=now_utc() + timedelta(days=40))
        assert stats["total_applications"] == 1
        assert stats["monthly_applications"] == 0
        assert stats["total_revenue"] == 100000


class TestSafeZones:
    def test_level_color(self):
        assert safezones.level_color(1) == "#CD7F32"
        assert safezones.level_color(2) == "#C0C0C0"
        assert safezones.level_color(3) == "#FFD700"
        assert safezones.level_color(None) == safezones.DEFAULT_LEVEL_COLOR
        assert safezones.level_color(7) == safezones.DEFAULT_LEVEL_COLOR

    def test_coverage_area(self):
        assert safezones.coverage_area("서울특별시 강남구 테헤란로 1") == "서울특별시 강남구"
        assert safezones.coverage_area("세종특별자치시") == "세종특별자치시"
        assert safezones.coverage_area("   ") is None
        assert safezones.coverage_area(None) is None

    def test_recent_window(self, session):
        safezones.create_safezone(session, {"building_name": "A", "lat": 37.0, "lng": 127.0})
        assert safezones.safezone_stats(session)["recent_additions"] == 1
        later = now_utc() + timedelta(days=31)
        assert safezones.safezone_stats(session, now=later)["recent_additions"] == 0

    def test_bounds_skip_rows_without_coordinates(self, session):
        safezones.create_safezone(session, {"building_name": "No coords"})
        safezones.create_safezone(session, {"building_name": "Seoul", "lat": 37.5, "lng": 127.0})
        zones = safezones.safezones_in_bounds(session, north=90, south=-90, east=180, west=-180)
        assert [z.building_name for z in zones] == ["Seoul"]

    def test_markers_skip_rows_without_coordinates(self, session):
        safezones.create_safezone(session, {"building_name": "No coords"})
        assert safezones.markers_geojson(safezones.list_safezones(session))["features"] == []


class TestSettingsStore:
    @pytest.mark.parametrize("raw", ["true", "TRUE", "1", "yes", " Yes "])
    def test_truthy(self, raw):
        assert settings_store.parse_bool(raw) is True

    @pytest.mark.parametrize("raw", ["false", "0", "no", "", "on"])
    def test_falsy(self, raw):
        assert settings_store.parse_bool(raw) is False

    def test_boolean_default(self, session):
        assert settings_store.get_boolean_setting(session, "require_auth") is False
        assert settings_store.get_boolean_setting(session, "require_auth", default=True) is True

    def test_boolean_round_trip(self, session):
        settings_store.update_boolean_setting(session, "require_auth", True)
        assert settings_store.get_setting(session, "require_auth").setting_value == "true"
        settings_store.update_boolean_setting(session, "require_auth", False)
        assert settings_store.get_boolean_setting(session, "require_auth", default=True) is False

    def test_update_bumps_timestamp(self, session):
        row = settings_store.create_setting(session, "banner", "a")
        created = row.updated_at
        updated = settings_store.update_setting(session, "banner", "b")
        assert updated.setting_value == "b"
        assert updated.updated_at >= created

    def test_update_missing(self, session):
        assert settings_store.update_setting(session, "nope", "x") is None


class TestCalendar:
    def test_create_rejects_duplicate_date(self, session):
        calendar.create_entry(session, date(2026, 3, 1), "claimed")
        with pytest.raises(ValueError, match="already exists"):
            calendar.create_entry(session, date(2026, 3, 1), "unclaimed")

    def test_invalid_status(self, session):
        with pytest.raises(ValueError):
            calendar.create_entry(session, date(2026, 3, 1), "busy")

    def test_update_entry(self, session):
        entry = calendar.create_entry(session, date(2026, 3, 1), "claimed")
        assert calendar.update_entry(session, entry.id, "unclaimed").status == "unclaimed"
        assert calendar.update_entry(session, 999, "claimed") is None

    def test_range_is_inclusive_and_sorted(self, session):
        for day in (5, 1, 31):
            calendar.upsert_entry(session, date(2026, 3, day), "claimed")
        entries = calendar.entries_in_range(session, date(2026, 3, 1), date(2026, 3, 5))
        assert [e.date.day for e in entries] == [1, 5]

    def test_month_starting_on_sunday(self, session):
        # March 1st 2026 is a Sunday
        view = calendar.month_view(session, 2026, 3)
        assert view["leading_blanks"] == 0
        assert len(view["days"]) == 31

    def test_leap_february(self, session):
        assert len(calendar.month_view(session, 2028, 2)["days"]) == 29
