"""
tests/test_care_engine.py — Tests for spray forecasts, care status, and search.

Tests cover:
- Forecast dates and urgency thresholds on a fixed "today"
- Plant types without a spray schedule
- Stored interval overrides, including the {"spray": n} form
- Care status classification (spraying is not care)
- Free-text plant search
"""

from datetime import date

import pytest

from care_engine import (
    CARE_ATTENTION, CARE_HEALTHY, CARE_NEGLECTED, Forecast,
    calculate_next_spray, care_status_from_events, forecast_from_last_spray,
    get_plant_care_status, parse_event_date, plant_overview,
    resolve_spray_interval, search_plants
)
from models import Event, Plant
from repository import add_event, add_plant, add_plant_to_bed, get_plant, set_setting

TODAY = date(2026, 2, 5)


def _plant(plant_type='grape', name='Vine 1-1'):
    return add_plant(Plant(name=name, type=plant_type, row=1, x=10, y=20))


def _log(plant_id, event_type, event_date):
    add_event(Event(plant_id=plant_id, event_type=event_type, date=event_date))


# ========================================
# Spray forecast
# ========================================

class TestForecast:

    def test_grape_sprayed_recently_is_ok(self, temp_db):
        plant_id = _plant()
        _log(plant_id, 'spray', '2026-01-28')

        forecast = calculate_next_spray(plant_id, today=TODAY)
        assert forecast == Forecast(status='ok', date='2026-02-11', days_until=6)

    def test_grape_overdue(self, temp_db):
        plant_id = _plant()
        _log(plant_id, 'spray', '2026-01-28')

        forecast = calculate_next_spray(plant_id, today=date(2026, 2, 13))
        assert forecast.status == 'overdue'
        assert forecast.date == '2026-02-11'
        assert forecast.days_until == -2

    @pytest.mark.parametrize('today, status, days', [
        (date(2026, 2, 7), 'ok', 4),
        (date(2026, 2, 8), 'soon', 3),
        (date(2026, 2, 11), 'soon', 0),
        (date(2026, 2, 12), 'overdue', -1),
    ])
    def test_thresholds(self, temp_db, today, status, days):
        plant_id = _plant()
        _log(plant_id, 'spray', '2026-01-28')

        forecast = calculate_next_spray(plant_id, today=today)
        assert forecast.status == status
        assert forecast.days_until == days

    def test_uses_most_recent_spray_only(self, temp_db):
        plant_id = _plant()
        _log(plant_id, 'spray', '2026-01-01')
        _log(plant_id, 'spray', '2026-01-28')
        _log(plant_id, 'pruned', '2026-02-04')

        assert calculate_next_spray(plant_id, today=TODAY).date == '2026-02-11'

    def test_fruit_default_interval(self, temp_db):
        plant_id = _plant('fruit', 'Apple 1')
        _log(plant_id, 'spray', '2026-01-28')

        forecast = calculate_next_spray(plant_id, today=TODAY)
        assert forecast.date == '2026-02-18'
        assert forecast.days_until == 13

    def test_never_sprayed(self, temp_db):
        plant_id = _plant()
        _log(plant_id, 'watered', '2026-02-01')

        forecast = calculate_next_spray(plant_id, today=TODAY)
        assert forecast.status == 'never'
        assert forecast.date is None
        assert forecast.days_until is None
        assert forecast.to_dict() == {'status': 'never', 'date': None, 'daysUntil': None}

    def test_types_without_schedule(self, temp_db):
        bed_id = _plant('bed', 'Bed A')
        other_id = _plant('other', 'Fig')
        member_id = add_plant_to_bed(bed_id, Plant(name='Tomato'))
        for plant_id in (bed_id, other_id, member_id):
            _log(plant_id, 'spray', '2026-01-28')

        assert calculate_next_spray(bed_id, today=TODAY) is None
        assert calculate_next_spray(other_id, today=TODAY) is None
        assert calculate_next_spray(member_id, today=TODAY) is None

    def test_missing_plant(self, temp_db):
        assert calculate_next_spray(12345, today=TODAY) is None

    def test_stored_interval_overrides_default(self, temp_db):
        plant_id = _plant()
        apple_id = _plant('fruit', 'Apple 1')
        _log(plant_id, 'spray', '2026-01-28')
        _log(apple_id, 'spray', '2026-01-28')
        set_setting('sprayIntervals', {'grape': 7})

        assert calculate_next_spray(plant_id, today=TODAY).date == '2026-02-04'
        # types missing from the stored table keep their default
        assert calculate_next_spray(apple_id, today=TODAY).date == '2026-02-18'

    def test_stored_interval_object_form(self, temp_db):
        plant_id = _plant()
        _log(plant_id, 'spray', '2026-01-28')
        set_setting('sprayIntervals', {'grape': {'spray': 10}})

        assert calculate_next_spray(plant_id, today=TODAY).date == '2026-02-07'

    def test_zero_interval_disables_forecast(self, temp_db):
        plant_id = _plant()
        _log(plant_id, 'spray', '2026-01-28')
        set_setting('sprayIntervals', {'grape': 0})

        assert calculate_next_spray(plant_id, today=TODAY) is None


class TestForecastHelpers:

    def test_resolve_interval(self):
        assert resolve_spray_interval('grape') == 14
        assert resolve_spray_interval('fruit') == 21
        assert resolve_spray_interval('bed') is None
        assert resolve_spray_interval('bed-plant') is None
        assert resolve_spray_interval('other', {'other': 30}) == 30
        assert resolve_spray_interval('grape', {'grape': None}) is None

    def test_forecast_crosses_month_end(self):
        forecast = forecast_from_last_spray(date(2026, 2, 20), 14, today=date(2026, 3, 1))
        assert forecast.date == '2026-03-06'
        assert forecast.days_until == 5

    def test_parse_event_date_ignores_time(self):
        assert parse_event_date('2026-01-28T09:30:00Z') == date(2026, 1, 28)


# ========================================
# Care status
# ========================================

class TestCareStatus:

    def test_no_events_is_neglected(self, temp_db):
        assert get_plant_care_status(_plant(), today=TODAY) == CARE_NEGLECTED

    def test_only_sprays_is_neglected(self, temp_db):
        plant_id = _plant()
        _log(plant_id, 'spray', '2026-02-04')
        assert get_plant_care_status(plant_id, today=TODAY) == CARE_NEGLECTED

    @pytest.mark.parametrize('event_date, expected', [
        ('2026-02-05', CARE_HEALTHY),
        ('2026-01-29', CARE_HEALTHY),      # 7 days
        ('2026-01-28', CARE_ATTENTION),    # 8 days
        ('2026-01-26', CARE_ATTENTION),    # 10 days
        ('2026-01-22', CARE_ATTENTION),    # 14 days
        ('2026-01-21', CARE_NEGLECTED),    # 15 days
    ])
    def test_thresholds(self, temp_db, event_date, expected):
        plant_id = _plant()
        _log(plant_id, 'watered', event_date)
        assert get_plant_care_status(plant_id, today=TODAY) == expected

    def test_recent_spray_does_not_count(self, temp_db):
        plant_id = _plant()
        _log(plant_id, 'pruned', '2026-01-01')
        _log(plant_id, 'spray', '2026-02-05')
        assert get_plant_care_status(plant_id, today=TODAY) == CARE_NEGLECTED

    def test_from_event_list(self):
        events = [
            Event(plant_id=1, event_type='spray', date='2026-02-05'),
            Event(plant_id=1, event_type='harvested', date='2026-02-01'),
        ]
        assert care_status_from_events(events, today=TODAY) == CARE_HEALTHY
        assert care_status_from_events([], today=TODAY) == CARE_NEGLECTED


def test_plant_overview(temp_db):
    plant_id = _plant()
    _log(plant_id, 'spray', '2026-01-28')
    _log(plant_id, 'pruned', '2026-01-26')

    overview = plant_overview(get_plant(plant_id), today=TODAY)
    assert overview['name'] == 'Vine 1-1'
    assert overview['forecast'] == {'status': 'ok', 'date': '2026-02-11', 'daysUntil': 6}
    assert overview['careStatus'] == CARE_ATTENTION

    bed = get_plant(_plant('bed', 'Bed A'))
    assert plant_overview(bed, today=TODAY)['forecast'] is None


# ========================================
# Search
# ========================================

class TestSearch:

    PLANTS = [
        Plant(id=1, name='Vine 1-1', type='grape'),
        Plant(id=2, name='Apple Tree', type='fruit'),
        Plant(id=12, name='Herb Bed', type='bed'),
    ]

    def test_name_case_insensitive(self):
        assert [p.id for p in search_plants(self.PLANTS, 'apple')] == [2]

    def test_by_type(self):
        assert [p.id for p in search_plants(self.PLANTS, 'GRAPE')] == [1]

    def test_by_exact_id(self):
        assert [p.id for p in search_plants(self.PLANTS, '12')] == [12]

    def test_name_substring_can_match_several(self):
        assert [p.id for p in search_plants(self.PLANTS, 'e')] == [1, 2, 12]

    def test_blank_query_matches_nothing(self):
        assert search_plants(self.PLANTS, '   ') == []
        assert search_plants(self.PLANTS, None) == []
