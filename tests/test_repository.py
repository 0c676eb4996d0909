"""
tests/test_repository.py — Tests for CRUD and query operations.

Tests cover:
- Plant CRUD, partial updates, bed membership
- Cascading plant deletion
- Event ordering, last-of-type lookup, modifiedAt stamping
- Settings defaults and upserts
"""

from database import get_db
from models import Event, Plant
from photos import add_photo_to_plant
from repository import (
    add_event, add_events_for_plants, add_plant, add_plant_to_bed,
    delete_event, delete_plant, delete_setting, get_all_plants, get_all_settings,
    get_counts, get_event, get_events_for_plant, get_last_event_of_type,
    get_photos_for_plant, get_plant, get_plants_in_bed, get_setting,
    set_setting, update_event, update_plant
)


def _grape(name='Vine 1-1'):
    return add_plant(Plant(name=name, type='grape', row=1, x=50, y=345))


def _event(plant_id, event_type, event_date, notes=None):
    return add_event(Event(plant_id=plant_id, event_type=event_type, date=event_date, notes=notes))


# ========================================
# Plants
# ========================================

class TestPlantCRUD:

    def test_add_and_get(self, temp_db):
        plant_id = add_plant(Plant(name='Apple 1', type='fruit', x=30, y=70, emoji='🍎', notes='Golden'))
        assert plant_id is not None

        plant = get_plant(plant_id)
        assert plant.id == plant_id
        assert plant.name == 'Apple 1'
        assert plant.type == 'fruit'
        assert plant.emoji == '🍎'
        assert plant.row is None
        assert plant.bed_id is None

    def test_ids_are_assigned_by_store(self, temp_db):
        first = add_plant(Plant(id=99, name='A', type='other'))
        second = add_plant(Plant(name='B', type='other'))
        assert first != 99
        assert second == first + 1

    def test_get_missing_returns_none(self, temp_db):
        assert get_plant(12345) is None

    def test_get_all(self, temp_db):
        _grape('Vine 1-1')
        _grape('Vine 1-2')
        assert [p.name for p in get_all_plants()] == ['Vine 1-1', 'Vine 1-2']

    def test_update_merges_partial_patch(self, temp_db):
        plant_id = _grape()
        plant = update_plant(plant_id, {'notes': 'Pinot noir'})

        assert plant.notes == 'Pinot noir'
        assert plant.name == 'Vine 1-1'
        assert plant.row == 1
        assert plant.x == 50

    def test_update_accepts_camel_case_and_ignores_unknown(self, temp_db):
        bed_id = add_plant(Plant(name='Bed A', type='bed'))
        plant_id = _grape()

        plant = update_plant(plant_id, {'bedId': bed_id, 'colour': 'red', 'id': 777})
        assert plant.id == plant_id
        assert plant.bed_id == bed_id

    def test_update_missing_returns_none(self, temp_db):
        assert update_plant(12345, {'name': 'Ghost'}) is None
        assert get_all_plants() == []


class TestPlantDeletion:

    def test_delete_cascades_events_and_photos(self, temp_db, make_image):
        plant_id = _grape()
        other_id = _grape('Vine 1-2')
        _event(plant_id, 'spray', '2026-01-28')
        _event(plant_id, 'pruned', '2026-01-05')
        _event(other_id, 'spray', '2026-01-28')
        add_photo_to_plant(plant_id, make_image())
        add_photo_to_plant(plant_id, make_image())

        assert delete_plant(plant_id) is True

        assert get_plant(plant_id) is None
        assert get_events_for_plant(plant_id) == []
        assert get_photos_for_plant(plant_id) == []

        conn = get_db()
        try:
            orphans = conn.execute(
                "SELECT (SELECT COUNT(*) FROM events WHERE plant_id = ?) + "
                "(SELECT COUNT(*) FROM photos WHERE plant_id = ?)",
                (plant_id, plant_id)
            ).fetchone()[0]
        finally:
            conn.close()
        assert orphans == 0

        assert len(get_events_for_plant(other_id)) == 1

    def test_delete_missing_returns_false(self, temp_db):
        assert delete_plant(12345) is False


class TestBeds:

    def test_add_plant_to_bed(self, temp_db):
        bed_id = add_plant(Plant(name='Bed A', type='bed', x=80, y=220))
        member_id = add_plant_to_bed(bed_id, Plant(name='Tomato', type='fruit', row=3, x=1, y=2))

        member = get_plant(member_id)
        assert member.type == 'bed-plant'
        assert member.bed_id == bed_id
        assert member.row is None
        assert member.x is None
        assert member.y is None

    def test_plants_in_bed(self, temp_db):
        bed_a = add_plant(Plant(name='Bed A', type='bed'))
        bed_b = add_plant(Plant(name='Bed B', type='bed'))
        add_plant_to_bed(bed_a, Plant(name='Tomato'))
        add_plant_to_bed(bed_a, Plant(name='Pepper'))
        add_plant_to_bed(bed_b, Plant(name='Cucumber'))

        assert [p.name for p in get_plants_in_bed(bed_a)] == ['Tomato', 'Pepper']
        assert [p.name for p in get_plants_in_bed(bed_b)] == ['Cucumber']
        assert get_plants_in_bed(12345) == []


# ========================================
# Events
# ========================================

class TestEvents:

    def test_events_ordered_most_recent_first(self, temp_db):
        plant_id = _grape()
        _event(plant_id, 'pruned', '2026-01-10')
        _event(plant_id, 'spray', '2026-02-01')
        _event(plant_id, 'planted', '2018-03-15')

        dates = [e.date for e in get_events_for_plant(plant_id)]
        assert dates == ['2026-02-01', '2026-01-10', '2018-03-15']

    def test_last_event_of_type(self, temp_db):
        plant_id = _grape()
        other_id = _grape('Vine 1-2')
        _event(plant_id, 'spray', '2026-01-15')
        _event(plant_id, 'spray', '2026-01-28', notes='latest')
        _event(plant_id, 'pruned', '2026-02-10')
        _event(other_id, 'spray', '2026-03-01')

        last = get_last_event_of_type(plant_id, 'spray')
        assert last.date == '2026-01-28'
        assert last.notes == 'latest'

        assert get_last_event_of_type(plant_id, 'harvested') is None
        assert get_last_event_of_type(12345, 'spray') is None

    def test_add_stamps_modified_at(self, temp_db):
        plant_id = _grape()
        event_id = add_event(Event(
            plant_id=plant_id, event_type='spray', date='2026-01-28',
            modified_at='1999-01-01T00:00:00.000Z'
        ))

        event = get_event(event_id)
        assert event.modified_at != '1999-01-01T00:00:00.000Z'
        assert event.modified_at.endswith('Z')

    def test_update_refreshes_modified_at(self, temp_db):
        plant_id = _grape()
        event_id = _event(plant_id, 'spray', '2026-01-28')

        conn = get_db()
        conn.execute("UPDATE events SET modified_at = '2000-01-01T00:00:00.000Z' WHERE id = ?", (event_id,))
        conn.commit()
        conn.close()

        event = update_event(event_id, {'notes': 'Copper', 'modifiedAt': '1990-01-01T00:00:00.000Z'})
        assert event.notes == 'Copper'
        assert event.date == '2026-01-28'
        assert event.modified_at not in ('2000-01-01T00:00:00.000Z', '1990-01-01T00:00:00.000Z')

    def test_update_missing_returns_none(self, temp_db):
        assert update_event(12345, {'notes': 'x'}) is None

    def test_event_for_missing_plant_is_accepted(self, temp_db):
        event_id = _event(12345, 'watered', '2026-02-01')
        assert get_event(event_id).plant_id == 12345

    def test_delete_event(self, temp_db):
        plant_id = _grape()
        event_id = _event(plant_id, 'spray', '2026-01-28')

        assert delete_event(event_id) is True
        assert get_event(event_id) is None
        assert delete_event(event_id) is False

    def test_add_events_for_plants(self, temp_db):
        ids = [_grape(f'Vine 1-{i}') for i in range(1, 4)]
        event_ids = add_events_for_plants(ids, Event(event_type='spray', date='2026-02-01', notes='Row 1'))

        assert len(event_ids) == 3
        for plant_id in ids:
            events = get_events_for_plant(plant_id)
            assert len(events) == 1
            assert events[0].notes == 'Row 1'


# ========================================
# Settings
# ========================================

class TestSettings:

    def test_default_when_absent(self, temp_db):
        assert get_setting('sprayIntervals') is None
        assert get_setting('sprayIntervals', {'grape': 14}) == {'grape': 14}

    def test_set_and_overwrite(self, temp_db):
        set_setting('sprayIntervals', {'grape': 10, 'fruit': {'spray': 20}})
        assert get_setting('sprayIntervals') == {'grape': 10, 'fruit': {'spray': 20}}

        set_setting('sprayIntervals', {'grape': 7})
        assert get_setting('sprayIntervals') == {'grape': 7}
        assert len(get_all_settings()) == 1

    def test_delete_setting(self, temp_db):
        set_setting('language', 'hu')
        assert delete_setting('language') is True
        assert get_setting('language', 'en') == 'en'
        assert delete_setting('language') is False


def test_counts(temp_db, make_image):
    plant_id = _grape()
    _event(plant_id, 'spray', '2026-01-28')
    set_setting('language', 'en')
    add_photo_to_plant(plant_id, make_image())

    assert get_counts() == {'plants': 1, 'events': 1, 'settings': 1, 'photos': 1}
