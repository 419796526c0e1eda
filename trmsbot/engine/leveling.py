"""
trmsbot.engine.leveling — Level Formula & Roster Leaderboard
============================================================

Pure calculation helpers.  No Discord I/O, no DB I/O inside the engine:
the :class:`~trmsbot.services.store.RecordStore` feeds it counts and
persists what it returns.

Leveling is a pure integer function of an artist's cumulative completed
jobs::

    level = total_jobs // JOBS_PER_LEVEL + 1

The leaderboard universe is a fixed roster of artist usernames.  Jobs
cleared by anyone outside the roster are never counted.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from trmsbot.constants import JOBS_PER_LEVEL
from trmsbot.database.models import JobStatus

if TYPE_CHECKING:
    from trmsbot.database.models import UserLevel

__all__ = [
    "JobTakenStats",
    "LeaderboardEntry",
    "LevelResult",
    "count_roster_jobs",
    "evaluate_level",
    "jobs_to_next_level",
    "level_for_jobs",
    "rank_roster",
    "tally_job_statuses",
]


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    """One roster artist on the leaderboard."""

    username: str
    job_count: int
    level: int

    def to_dict(self) -> dict:
        return {"username": self.username, "jobCount": self.job_count, "level": self.level}


@dataclass(slots=True)
class JobTakenStats:
    """Per-artist counts of job-taken records in each workflow stage."""

    username: str
    jobs_taken: int = 0
    jobs_in_progress: int = 0
    jobs_completed: int = 0

    def to_dict(self) -> dict:
        return {
            "username": self.username,
            "jobsTaken": self.jobs_taken,
            "jobsInProgress": self.jobs_in_progress,
            "jobsCompleted": self.jobs_completed,
        }


@dataclass
class LevelResult:
    """Output of a level update.

    ``new_level`` is only populated when ``leveled_up`` is true, so
    consumers can use it directly to decide whether to celebrate.
    """

    user_level: UserLevel
    leveled_up: bool
    new_level: int | None = None

    def to_dict(self) -> dict:
        data = {"userLevel": self.user_level.to_dict(), "leveledUp": self.leveled_up}
        if self.new_level is not None:
            data["newLevel"] = self.new_level
        return data


# ---------------------------------------------------------------------------
# Level formula — THE single canonical implementation
# ---------------------------------------------------------------------------
def level_for_jobs(total_jobs: int) -> int:
    """Level reached after *total_jobs* completed jobs (level 1 at zero)."""
    return max(total_jobs, 0) // JOBS_PER_LEVEL + 1


def jobs_to_next_level(total_jobs: int) -> int:
    """Jobs still needed to reach the next level (1..JOBS_PER_LEVEL)."""
    return JOBS_PER_LEVEL - (max(total_jobs, 0) % JOBS_PER_LEVEL)


def evaluate_level(total_jobs: int, previous_level: int | None) -> tuple[int, bool]:
    """Return ``(level, leveled_up)`` for *total_jobs*.

    With no previous record any level above 1 counts as a level-up.
    """
    level = level_for_jobs(total_jobs)
    if previous_level is None:
        return level, level > 1
    return level, level > previous_level


# ---------------------------------------------------------------------------
# Roster aggregation
# ---------------------------------------------------------------------------
def count_roster_jobs(roster: Sequence[str], usernames: Iterable[str]) -> dict[str, int]:
    """Count completions per roster artist.

    Every roster name starts at zero; names outside the roster are
    ignored.  The returned dict preserves roster order.
    """
    counts = dict.fromkeys(roster, 0)
    for username in usernames:
        if username in counts:
            counts[username] += 1
    return counts


def rank_roster(
    roster: Sequence[str],
    job_counts: Mapping[str, int],
    levels: Mapping[str, int],
    limit: int,
) -> list[LeaderboardEntry]:
    """Rank the roster by job count, highest first.

    ``sorted`` is stable, so artists with equal counts keep roster
    declaration order.  Artists without a level record are level 1.
    """
    if limit <= 0:
        return []
    entries = [
        LeaderboardEntry(
            username=name,
            job_count=job_counts.get(name, 0),
            level=levels.get(name, 1),
        )
        for name in roster
    ]
    entries.sort(key=lambda e: e.job_count, reverse=True)
    return entries[:limit]


def tally_job_statuses(
    roster: Sequence[str], records: Iterable[tuple[str, str]]
) -> list[JobTakenStats]:
    """Bucket ``(username, status)`` pairs into per-artist stage counts.

    Every roster artist is present (zero-filled, roster order); records
    from usernames outside the roster are ignored.
    """
    stats: dict[str, JobTakenStats] = {name: JobTakenStats(name) for name in roster}
    for username, status in records:
        entry = stats.get(username)
        if entry is None:
            continue
        if status == JobStatus.TAKEN:
            entry.jobs_taken += 1
        elif status == JobStatus.IN_PROGRESS:
            entry.jobs_in_progress += 1
        elif status == JobStatus.COMPLETED:
            entry.jobs_completed += 1
    return list(stats.values())
