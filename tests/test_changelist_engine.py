"""
Tests for changelist computation.

Covers the mode comparators, the first-observation rule and deduplication
against the persisted history.
"""

import dataclasses
from datetime import timedelta

import pytest

from wrlog.data_models.changelist import ChangelistEntry
from wrlog.data_models.leaderboard import GameMode, LeaderboardEntry, WorkshopItem
from wrlog.services.changelist_engine import find_new_records, is_score_better, update_changelist

from tests.conftest import FIXED_TIME


class TestScoreComparison:
    """Comparator law per game mode."""

    @pytest.mark.parametrize("mode", [GameMode.SPRINT, GameMode.CHALLENGE])
    def test_time_modes_lower_is_better(self, mode):
        assert is_score_better(11000, 12000, mode)
        assert not is_score_better(12500, 12000, mode)

    def test_stunt_higher_is_better(self):
        assert is_score_better(600, 500, GameMode.STUNT)
        assert not is_score_better(400, 500, GameMode.STUNT)

    @pytest.mark.parametrize("mode", list(GameMode))
    def test_ties_are_never_better(self, mode):
        assert not is_score_better(500, 500, mode)


class TestRecordDetection:
    """End-to-end diff scenarios."""

    def test_improved_sprint_time_is_logged(self, make_snapshot):
        previous = [make_snapshot("sprint/level-x", [(1, 12000)])]
        current = [make_snapshot("sprint/level-x", [(2, 11000), (1, 12000)])]

        changelist = []
        appended = update_changelist(changelist, current, previous)

        assert changelist == appended
        assert len(appended) == 1
        entry = appended[0]
        assert entry.steam_id_new_recordholder == "2"
        assert entry.steam_id_old_recordholder == "1"
        assert entry.record_new == "0:11.00"
        assert entry.record_old == "0:12.00"
        assert entry.new_recordholder == "player2"
        assert entry.old_recordholder == "player1"
        assert entry.mode == "Sprint"
        assert entry.fetch_time == "Wed, 01 May 2024 12:00:00 +0000"
        assert entry.workshop_item_id is None

    def test_worse_sprint_time_is_ignored(self, make_snapshot):
        previous = [make_snapshot("sprint/level-x", [(1, 12000)])]
        current = [make_snapshot("sprint/level-x", [(2, 12500)])]

        changelist = []
        assert update_changelist(changelist, current, previous) == []
        assert changelist == []

    def test_stunt_improvement_and_tie(self, make_snapshot):
        previous = [make_snapshot("stunt/level", [(1, 500)], mode=GameMode.STUNT)]

        improved = [make_snapshot("stunt/level", [(2, 600)], mode=GameMode.STUNT)]
        entries = find_new_records(improved, previous)
        assert len(entries) == 1
        assert entries[0].record_new == "600"
        assert entries[0].record_old == "500"

        tied = [make_snapshot("stunt/level", [(2, 500)], mode=GameMode.STUNT)]
        assert find_new_records(tied, previous) == []

    def test_first_observation_produces_nothing(self, make_snapshot):
        current = [make_snapshot("new/level", [(2, 1)])]
        assert find_new_records(current, []) == []

    def test_previous_without_entries_produces_nothing(self, make_snapshot):
        previous = [make_snapshot("level", [])]
        current = [make_snapshot("level", [(2, 1)])]
        assert find_new_records(current, previous) == []

    def test_current_without_entries_produces_nothing(self, make_snapshot):
        previous = [make_snapshot("level", [(1, 1000)])]
        current = [make_snapshot("level", [])]
        assert find_new_records(current, previous) == []

    def test_workshop_metadata_is_copied(self, make_snapshot, workshop_item):
        previous = [make_snapshot("my_level_1_x_stable", [(1, 30000)], workshop_item=workshop_item)]
        current = [make_snapshot("my_level_1_x_stable", [(2, 29990)], name="My Level", workshop_item=workshop_item)]

        entry = find_new_records(current, previous)[0]
        assert entry.map_name == "My Level"
        assert entry.map_author == "Level Author"
        assert entry.map_preview == "https://images.example/preview.jpg"
        assert entry.workshop_item_id == "1234567"
        assert entry.steam_id_author == "76561198000000001"

    def test_missing_player_name_uses_steam_placeholder(self, make_snapshot):
        previous = [make_snapshot("level", [(1, 1000)])]
        snapshot = make_snapshot("level", [(2, 900)])
        nameless = LeaderboardEntry(steam_id=2, global_rank=1, score=900)
        current = [dataclasses.replace(snapshot, entries=(nameless,))]

        assert find_new_records(current, previous)[0].new_recordholder == "[unknown]"


class TestDeduplication:
    """History-wide duplicate suppression."""

    def test_duplicate_with_different_timestamp_is_suppressed(self, make_snapshot):
        previous = [make_snapshot("sprint/level-x", [(1, 12000)], name="L")]
        current = [make_snapshot("sprint/level-x", [(2, 11000)], name="L")]

        existing = ChangelistEntry(
            map_name="L",
            mode="Sprint",
            new_recordholder="someone",
            record_new="0:11.00",
            steam_id_new_recordholder="2",
            fetch_time="Mon, 01 Jan 2024 00:00:00 +0000",
        )
        changelist = [existing]

        assert update_changelist(changelist, current, previous) == []
        assert changelist == [existing]

    def test_second_identical_run_adds_nothing(self, make_snapshot):
        previous = [make_snapshot("sprint/level-x", [(1, 12000)])]
        current = [make_snapshot("sprint/level-x", [(2, 11000)])]
        later = [make_snapshot("sprint/level-x", [(2, 11000)], timestamp=FIXED_TIME + timedelta(minutes=5))]

        changelist = []
        update_changelist(changelist, current, previous)
        assert len(changelist) == 1

        assert update_changelist(changelist, later, previous) == []
        assert len(changelist) == 1

    def test_existing_entries_are_untouched(self, make_snapshot):
        first = ChangelistEntry(
            map_name="Old",
            mode="Stunt",
            new_recordholder="a",
            record_new="10",
            steam_id_new_recordholder="9",
            fetch_time="Mon, 01 Jan 2024 00:00:00 +0000",
        )
        changelist = [first]
        previous = [make_snapshot("level", [(1, 12000)])]
        current = [make_snapshot("level", [(2, 11000)])]

        update_changelist(changelist, current, previous)

        assert changelist[0] is first
        assert len(changelist) == 2


class TestOrdering:
    """Order of entries appended within one run."""

    def test_batch_is_appended_in_reverse_item_order(self, make_snapshot, workshop_item):
        other_item = WorkshopItem(
            published_file_id=99,
            steam_id_owner=5,
            file_name="b.bytes",
            title="B",
        )
        previous = [
            make_snapshot("official", [(1, 2000)]),
            make_snapshot("ws-big", [(1, 2000)], workshop_item=workshop_item),
            make_snapshot("ws-small", [(1, 2000)], workshop_item=other_item),
        ]
        current = [
            make_snapshot("ws-small", [(2, 1000)], workshop_item=other_item),
            make_snapshot("official", [(2, 1000)]),
            make_snapshot("ws-big", [(2, 1000)], workshop_item=workshop_item),
        ]

        changelist = []
        update_changelist(changelist, current, previous)

        assert [entry.workshop_item_id for entry in changelist] == ["1234567", "99", None]
