"""Tests for the season manager."""

import pytest
from datetime import date

from assocdb.exceptions import DuplicateNameError, NotFoundError, SeasonFrozenError, ValidationError
from assocdb.services.season_manager import SeasonManager
from assocdb.storage import keys

TODAY = date(2025, 10, 1)


def _seed(store, key, records):
    store.save(key, records)


def _season_by_name(manager, name):
    season = manager.find_by_name(name)
    assert season is not None, f"No season {name}"
    return season


def _actives(manager):
    return [s.name for s in manager.list_seasons() if s.active]


class TestRepair:
    """Tests for repair()."""

    def test_creates_default_season(self, seasons):
        listed = seasons.list_seasons()
        assert [s.name for s in listed] == ['2025-2026']
        assert listed[0].active is True
        assert listed[0].completed is False
        assert listed[0].start_date == date(2025, 9, 1)
        assert seasons.active_season_name() == '2025-2026'

    def test_default_follows_school_year(self, store):
        manager = SeasonManager(store, background_copy=False)
        manager.repair(date(2026, 3, 15))
        assert manager.active_season_name() == '2025-2026'

    def test_is_idempotent(self, seasons):
        assert seasons.repair(TODAY) is False
        assert len(seasons.list_seasons()) == 1

    def test_two_actives_keeps_settings_choice(self, seasons, store):
        seasons.create_season('2026-2027')
        records = store.load(keys.SEASONS, [], list)
        for record in records:
            record['active'] = True
        _seed(store, keys.SEASONS, records)

        assert seasons.repair() is True
        assert _actives(seasons) == ['2025-2026']

    def test_no_active_uses_most_recent(self, seasons, store):
        seasons.create_season('2026-2027')
        records = store.load(keys.SEASONS, [], list)
        for record in records:
            record['active'] = False
        _seed(store, keys.SEASONS, records)
        _seed(store, keys.SETTINGS, {'activeSeasonName': 'gone'})

        assert seasons.repair() is True
        assert _actives(seasons) == ['2026-2027']
        assert seasons.active_season_name() == '2026-2027'

    def test_realigns_settings_mirror(self, seasons, store):
        _seed(store, keys.SETTINGS, {'activeSeasonName': '', 'theme': 'dark'})
        assert seasons.repair() is True
        settings = seasons.get_settings()
        assert settings.active_season_name == '2025-2026'
        assert settings.theme == 'dark'


class TestActivate:
    """Tests for activate()."""

    def test_switches_active_flag_and_mirror(self, seasons):
        seasons.create_season('2026-2027')
        target = _season_by_name(seasons, '2026-2027')

        seasons.activate(target.id)

        assert _actives(seasons) == ['2026-2027']
        assert seasons.active_season_name() == '2026-2027'

    def test_unknown_id_raises(self, seasons):
        with pytest.raises(NotFoundError):
            seasons.activate('season_missing')
        assert _actives(seasons) == ['2025-2026']

    def test_keeps_completed_flag(self, seasons):
        """Activation never reopens a completed season."""
        seasons.create_season('2024-2025')
        old = _season_by_name(seasons, '2024-2025')
        seasons.update_season(old.model_copy(update={'completed': True}))

        seasons.activate(old.id)

        assert _season_by_name(seasons, '2024-2025').completed is True
        assert seasons.is_current_season_completed() is True


class TestCreateSeason:
    """Tests for create_season()."""

    def test_appends_inactive_season(self, seasons):
        season = seasons.create_season('2026-2027', '2026-09-01', '2027-08-31')
        assert season.active is False
        assert season.completed is False
        assert season.order == 2
        assert [s.name for s in seasons.list_seasons()] == ['2026-2027', '2025-2026']

    def test_dates_default_from_name(self, seasons):
        season = seasons.create_season('2027-2028')
        assert season.start_date == date(2027, 9, 1)
        assert season.end_date == date(2028, 8, 31)

    def test_duplicate_name_raises(self, seasons):
        with pytest.raises(DuplicateNameError):
            seasons.create_season('2025-2026')

    def test_invalid_input_raises(self, seasons):
        with pytest.raises(ValidationError):
            seasons.create_season('')
        with pytest.raises(ValidationError):
            seasons.create_season('Autumn')  # Dates cannot be derived
        with pytest.raises(ValidationError):
            seasons.create_season('Backwards', '2027-01-01', '2026-01-01')
        assert len(seasons.list_seasons()) == 1

    def test_first_season_becomes_active(self, store):
        manager = SeasonManager(store, background_copy=False)
        season = manager.create_season('2030-2031')
        assert season.active is True
        assert manager.active_season_name() == '2030-2031'


class TestForwardCopy:
    """Tests for the copy of members and activities into a new season."""

    def _seed_active_season(self, store):
        _seed(store, keys.MEMBERS, [
            {'id': f'm{i}', 'name': f'Name{i}', 'firstName': 'A', 'season': '2025-2026',
             'activityIds': ['a1'], 'createdAt': '2025-09-10T00:00:00+00:00'}
            for i in range(5)
        ] + [{'id': 'old', 'name': 'Old', 'season': '2024-2025', 'activityIds': []}])
        _seed(store, keys.ACTIVITIES, [
            {'id': 'a1', 'name': 'Yoga', 'price': 100, 'season': '2025-2026',
             'memberIds': [f'm{i}' for i in range(5)]},
        ])
        _seed(store, keys.PAYMENTS, [
            {'id': 'p1', 'memberId': 'm0', 'activityId': 'a1', 'amount': 100, 'season': '2025-2026'},
        ])

    def test_inline_copy(self, seasons, store):
        self._seed_active_season(store)

        seasons.create_season('2026-2027')

        members = store.load(keys.MEMBERS, [], list)
        copied = [m for m in members if m['season'] == '2026-2027']
        assert len(copied) == 5
        assert all(m['id'].startswith('mbr_') for m in copied)
        assert all(m['activityIds'] == [] for m in copied)
        assert sorted(m['name'] for m in copied) == [f'Name{i}' for i in range(5)]
        assert all(m['createdAt'] != '2025-09-10T00:00:00+00:00' for m in copied)

        activities = [a for a in store.load(keys.ACTIVITIES, [], list) if a['season'] == '2026-2027']
        assert len(activities) == 1
        assert activities[0]['memberIds'] == []
        assert activities[0]['price'] == 100

        payments = store.load(keys.PAYMENTS, [], list)
        assert [p['id'] for p in payments] == ['p1']

    def test_source_season_unchanged(self, seasons, store):
        self._seed_active_season(store)
        before = [m for m in store.load(keys.MEMBERS, [], list) if m['season'] == '2025-2026']

        seasons.create_season('2026-2027')

        after = [m for m in store.load(keys.MEMBERS, [], list) if m['season'] == '2025-2026']
        assert after == before

    def test_copy_result(self, seasons, store):
        self._seed_active_season(store)
        seasons.create_season('2026-2027')

        assert seasons.wait_for_copy() is True
        assert seasons.last_copy_result() == {
            'source': '2025-2026',
            'target': '2026-2027',
            'members': 5,
            'activities': 1,
            'completed': True,
        }

    def test_background_copy(self, store):
        manager = SeasonManager(store, chunk_size=1, background_copy=True)
        manager.repair(TODAY)
        self._seed_active_season(store)

        manager.create_season('2026-2027')

        assert manager.wait_for_copy(timeout=10) is True
        assert manager.copy_in_progress is False
        copied = [m for m in store.load(keys.MEMBERS, [], list) if m['season'] == '2026-2027']
        assert len(copied) == 5
        manager.shutdown()

    def test_copy_aborts_when_target_completed(self, seasons, store):
        seasons.create_season('2026-2027')
        target = _season_by_name(seasons, '2026-2027')
        seasons.update_season(target.model_copy(update={'completed': True}))
        self._seed_active_season(store)

        result = seasons._copy_season_data('2025-2026', '2026-2027')

        assert result['completed'] is False
        assert result['members'] == 0
        assert not [m for m in store.load(keys.MEMBERS, [], list) if m['season'] == '2026-2027']

    def test_no_copy_started_is_complete(self, seasons):
        assert seasons.wait_for_copy() is True
        assert seasons.last_copy_result() is None


class TestUpdateSeason:
    """Tests for update_season()."""

    def test_unknown_id_raises(self, seasons):
        with pytest.raises(NotFoundError):
            seasons.update_season({'id': 'nope', 'name': 'X', 'startDate': '2020-01-01',
                                   'endDate': '2020-12-31'})

    def test_mark_completed(self, seasons):
        active = seasons.active_season()
        seasons.update_season(active.model_copy(update={'completed': True}))
        assert seasons.is_current_season_completed() is True
        with pytest.raises(SeasonFrozenError):
            seasons.ensure_writable()

    def test_active_true_activates(self, seasons):
        seasons.create_season('2026-2027')
        target = _season_by_name(seasons, '2026-2027')

        seasons.update_season(target.model_copy(update={'active': True}))

        assert _actives(seasons) == ['2026-2027']
        assert seasons.active_season_name() == '2026-2027'

    def test_active_false_on_active_season_is_ignored(self, seasons):
        active = seasons.active_season()
        seasons.update_season(active.model_copy(update={'active': False}))
        assert _actives(seasons) == ['2025-2026']

    def test_rename_restamps_scoped_entities(self, seasons, store):
        _seed(store, keys.MEMBERS, [{'id': 'm1', 'name': 'Dupont', 'season': '2025-2026'}])
        _seed(store, keys.PAYMENTS, [{'id': 'p1', 'memberId': 'm1', 'activityId': 'a1',
                                      'amount': 10, 'season': '2025-2026'}])
        active = seasons.active_season()

        seasons.update_season(active.model_copy(update={'name': 'Season 25/26'}))

        assert seasons.active_season_name() == 'Season 25/26'
        assert store.load(keys.MEMBERS, [], list)[0]['season'] == 'Season 25/26'
        assert store.load(keys.PAYMENTS, [], list)[0]['season'] == 'Season 25/26'

    def test_rename_onto_existing_name_raises(self, seasons):
        seasons.create_season('2026-2027')
        target = _season_by_name(seasons, '2026-2027')
        with pytest.raises(DuplicateNameError):
            seasons.update_season(target.model_copy(update={'name': '2025-2026'}))

    def test_order_kept_when_omitted(self, seasons):
        seasons.create_season('2026-2027')
        record = _season_by_name(seasons, '2026-2027').to_record()
        del record['order']
        record['completed'] = True

        seasons.update_season(record)

        updated = _season_by_name(seasons, '2026-2027')
        assert updated.order == 2
        assert updated.completed is True

    def test_explicit_order_is_stored(self, seasons):
        active = seasons.active_season()
        seasons.update_season({**active.to_record(), 'order': 7})
        assert seasons.active_season().order == 7


class TestDeleteSeason:
    """Tests for delete_season()."""

    def test_active_season_is_refused(self, seasons):
        active = seasons.active_season()
        assert seasons.delete_season(active.id) is False
        assert len(seasons.list_seasons()) == 1

    def test_last_season_is_refused(self, store):
        _seed(store, keys.SEASONS, [{'id': 's1', 'name': 'Only', 'startDate': '2025-09-01',
                                     'endDate': '2026-08-31', 'active': False}])
        manager = SeasonManager(store, background_copy=False)
        assert manager.delete_season('s1') is False

    def test_unknown_id_raises(self, seasons):
        with pytest.raises(NotFoundError):
            seasons.delete_season('nope')

    def test_cascades_to_scoped_entities(self, seasons, store):
        seasons.create_season('2024-2025')
        old = _season_by_name(seasons, '2024-2025')
        _seed(store, keys.MEMBERS, [
            {'id': 'm1', 'name': 'Dupont', 'season': '2025-2026'},
            {'id': 'm2', 'name': 'Durand', 'season': '2024-2025'},
        ])
        _seed(store, keys.ACTIVITIES, [{'id': 'a2', 'name': 'Judo', 'season': '2024-2025'}])
        _seed(store, keys.PAYMENTS, [{'id': 'p2', 'memberId': 'm2', 'activityId': 'a2',
                                      'amount': 5, 'season': '2024-2025'}])
        _seed(store, keys.TASKS, [{'id': 't1', 'name': 'Call the mayor'}])

        assert seasons.delete_season(old.id) is True

        assert [m['id'] for m in store.load(keys.MEMBERS, [], list)] == ['m1']
        assert store.load(keys.ACTIVITIES, [], list) == []
        assert store.load(keys.PAYMENTS, [], list) == []
        assert len(store.load(keys.TASKS, [], list)) == 1
        assert [s.name for s in seasons.list_seasons()] == ['2025-2026']


class TestSettings:
    """Tests for update_settings()."""

    def test_preferences_keep_active_season(self, seasons):
        seasons.update_settings({'theme': 'dark', 'language': 'en'})
        settings = seasons.get_settings()
        assert settings.theme == 'dark'
        assert settings.active_season_name == '2025-2026'

    def test_unknown_keys_are_preserved(self, seasons):
        seasons.update_settings({'activeSeasonName': '2025-2026', 'fontSize': 14})
        assert seasons.get_settings().to_record()['fontSize'] == 14

    def test_changing_active_name_activates(self, seasons):
        seasons.create_season('2026-2027')
        seasons.update_settings({'activeSeasonName': '2026-2027'})
        assert _actives(seasons) == ['2026-2027']

    def test_unknown_season_name_raises(self, seasons):
        with pytest.raises(NotFoundError):
            seasons.update_settings({'activeSeasonName': '1999-2000'})
        assert seasons.active_season_name() == '2025-2026'
