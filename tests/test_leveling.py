"""
tests/test_leveling.py — Unit Tests for the Leveling Engine
===========================================================

Pure functions only: no database, no Discord.
"""

from __future__ import annotations

import pytest

from trmsbot.engine.leveling import (
    LeaderboardEntry,
    count_roster_jobs,
    evaluate_level,
    jobs_to_next_level,
    level_for_jobs,
    rank_roster,
    tally_job_statuses,
)

ROSTER = ("trms_u", "noterooo", "danzz0561", "youknowfaiz_")


class TestLevelFormula:
    @pytest.mark.parametrize(
        ("total_jobs", "level"),
        [(0, 1), (1, 1), (2, 2), (3, 2), (4, 3), (9, 5), (10, 6), (101, 51)],
    )
    def test_level_is_half_jobs_plus_one(self, total_jobs, level):
        assert level_for_jobs(total_jobs) == level

    def test_negative_total_is_level_one(self):
        assert level_for_jobs(-3) == 1

    def test_level_never_decreases_as_jobs_grow(self):
        levels = [level_for_jobs(n) for n in range(50)]
        assert levels == sorted(levels)

    @pytest.mark.parametrize(("total_jobs", "remaining"), [(0, 2), (1, 1), (2, 2), (7, 1)])
    def test_jobs_to_next_level(self, total_jobs, remaining):
        assert jobs_to_next_level(total_jobs) == remaining


class TestEvaluateLevel:
    def test_first_record_at_level_one_is_not_a_level_up(self):
        assert evaluate_level(1, None) == (1, False)

    def test_first_record_above_level_one_is_a_level_up(self):
        assert evaluate_level(2, None) == (2, True)

    def test_crossing_a_boundary_levels_up(self):
        assert evaluate_level(4, 2) == (3, True)

    def test_within_a_level_does_not_level_up(self):
        assert evaluate_level(3, 2) == (2, False)


class TestCountRosterJobs:
    def test_zero_filled_in_roster_order(self):
        counts = count_roster_jobs(ROSTER, [])
        assert list(counts.items()) == [(name, 0) for name in ROSTER]

    def test_outsiders_are_ignored(self):
        counts = count_roster_jobs(ROSTER, ["trms_u", "stranger", "trms_u", "noterooo"])
        assert counts == {"trms_u": 2, "noterooo": 1, "danzz0561": 0, "youknowfaiz_": 0}
        assert "stranger" not in counts


class TestRankRoster:
    def test_returns_whole_roster_sorted_descending(self):
        counts = {"trms_u": 1, "noterooo": 5, "danzz0561": 3, "youknowfaiz_": 0}
        ranked = rank_roster(ROSTER, counts, {}, 4)
        assert [e.username for e in ranked] == ["noterooo", "danzz0561", "trms_u", "youknowfaiz_"]
        assert [e.job_count for e in ranked] == [5, 3, 1, 0]

    def test_ties_keep_roster_order(self):
        counts = dict.fromkeys(ROSTER, 2)
        ranked = rank_roster(ROSTER, counts, {}, 4)
        assert tuple(e.username for e in ranked) == ROSTER

    def test_missing_level_defaults_to_one(self):
        ranked = rank_roster(ROSTER, {}, {"noterooo": 3}, 4)
        levels = {e.username: e.level for e in ranked}
        assert levels == {"trms_u": 1, "noterooo": 3, "danzz0561": 1, "youknowfaiz_": 1}

    def test_limit_truncates(self):
        assert len(rank_roster(ROSTER, {}, {}, 2)) == 2

    def test_limit_above_roster_size_returns_roster(self):
        assert len(rank_roster(ROSTER, {}, {}, 10)) == len(ROSTER)

    def test_non_positive_limit_is_empty(self):
        assert rank_roster(ROSTER, {}, {}, 0) == []
        assert rank_roster(ROSTER, {}, {}, -1) == []

    def test_entry_serializes_camel_case(self):
        entry = LeaderboardEntry(username="trms_u", job_count=3, level=2)
        assert entry.to_dict() == {"username": "trms_u", "jobCount": 3, "level": 2}


class TestTallyJobStatuses:
    def test_buckets_by_status(self):
        records = [
            ("trms_u", "taken"),
            ("trms_u", "in_progress"),
            ("trms_u", "completed"),
            ("trms_u", "completed"),
            ("noterooo", "taken"),
        ]
        stats = {s.username: s for s in tally_job_statuses(ROSTER, records)}
        assert (stats["trms_u"].jobs_taken, stats["trms_u"].jobs_in_progress,
                stats["trms_u"].jobs_completed) == (1, 1, 2)
        assert stats["noterooo"].jobs_taken == 1

    def test_every_roster_artist_present_and_outsiders_dropped(self):
        stats = tally_job_statuses(ROSTER, [("stranger", "taken")])
        assert [s.username for s in stats] == list(ROSTER)
        assert all(s.jobs_taken == 0 for s in stats)

    def test_to_dict_keys(self):
        stats = tally_job_statuses(("trms_u",), [("trms_u", "taken")])
        assert stats[0].to_dict() == {
            "username": "trms_u",
            "jobsTaken": 1,
            "jobsInProgress": 0,
            "jobsCompleted": 0,
        }
