"""
trmsbot.services.store — The Record Store
=========================================

Single owner of every record the bot and the dashboard touch: job
completions, job-taken workflow rows, orders, client feedback, user
levels, and the bot-stats singleton.  Cogs, the dispatcher and the REST
routes all read and write through one :class:`RecordStore` instance,
constructed once at startup and handed to each of them.

Absence is never an exception here.  Reads return ``None`` or an empty
list; mutations that need an existing record (order status, job-taken
status) return ``None`` or do nothing.  Callers check the result.

All methods are synchronous.  Async callers go through
:func:`trmsbot.database.engine.run_db`.  A single store-wide lock makes
each method atomic with respect to the others, since the bot's worker
threads and the API's thread pool share one engine.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import Engine, func, select

from trmsbot.constants import DEFAULT_ROSTER
from trmsbot.database.engine import get_session, init_db
from trmsbot.database.models import (
    BotStats,
    ClientFeedback,
    JobCompletion,
    JobStatus,
    JobTaken,
    Order,
    OrderStatus,
    UserLevel,
)
from trmsbot.engine.leveling import (
    JobTakenStats,
    LeaderboardEntry,
    LevelResult,
    count_roster_jobs,
    evaluate_level,
    rank_roster,
    tally_job_statuses,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class JobCompletionInput:
    user_id: str
    username: str
    server_id: str
    server_name: str
    channel_id: str
    channel_name: str


@dataclass(frozen=True, slots=True)
class JobTakenInput:
    user_id: str
    username: str
    server_id: str
    server_name: str
    channel_id: str
    status: str = JobStatus.TAKEN


@dataclass(frozen=True, slots=True)
class OrderInput:
    client_id: str
    client_username: str
    model: str
    server_id: str
    channel_id: str
    deadline: datetime | None = None
    price: str | None = None
    status: str = OrderStatus.WAITING
    artist_id: str | None = None
    artist_username: str | None = None


@dataclass(frozen=True, slots=True)
class FeedbackInput:
    client_id: str
    client_username: str
    feedback: str
    server_id: str
    rating: int | None = None


@dataclass(frozen=True, slots=True)
class ClientSummary:
    client_id: str
    client_username: str
    order_count: int

    def to_dict(self) -> dict:
        return {
            "clientId": self.client_id,
            "clientUsername": self.client_username,
            "orderCount": self.order_count,
        }


# ---------------------------------------------------------------------------
# RecordStore
# ---------------------------------------------------------------------------
class RecordStore:
    """Canonical collections plus the queries the bot and dashboard need.

    Parameters
    ----------
    engine:
        SQLAlchemy engine; tables are created on construction.
    roster:
        Artist usernames that make up the leaderboard universe, in
        declaration order.
    """

    def __init__(self, engine: Engine, roster: Sequence[str] = DEFAULT_ROSTER) -> None:
        self.engine = engine
        self.roster: tuple[str, ...] = tuple(roster)
        self._lock = threading.Lock()
        init_db(engine)
        self.get_bot_stats()  # materialize the singleton with defaults

    @staticmethod
    def _now() -> datetime:
        return datetime.now()

    # -------------------------------------------------------------------
    # Job completions
    # -------------------------------------------------------------------
    def create_job_completion(self, data: JobCompletionInput) -> JobCompletion:
        with self._lock, get_session(self.engine) as session:
            row = JobCompletion(
                user_id=data.user_id,
                username=data.username,
                server_id=data.server_id,
                server_name=data.server_name,
                channel_id=data.channel_id,
                channel_name=data.channel_name,
                completed_at=self._now(),
            )
            session.add(row)
            session.flush()
        logger.info("Job completion recorded for %s (%s)", row.username, row.id)
        return row

    def get_recent_job_completions(self, limit: int = 10) -> list[JobCompletion]:
        """Newest first, at most *limit* rows."""
        if limit <= 0:
            return []
        with self._lock, get_session(self.engine) as session:
            return list(session.scalars(
                select(JobCompletion)
                .order_by(JobCompletion.completed_at.desc(), JobCompletion.seq.desc())
                .limit(limit)
            ).all())

    def get_all_job_completions(self) -> list[JobCompletion]:
        """Every completion, newest first."""
        with self._lock, get_session(self.engine) as session:
            return list(session.scalars(
                select(JobCompletion)
                .order_by(JobCompletion.completed_at.desc(), JobCompletion.seq.desc())
            ).all())

    def get_job_completions_today(self) -> int:
        """Completions since local midnight."""
        midnight = self._now().replace(hour=0, minute=0, second=0, microsecond=0)
        with self._lock, get_session(self.engine) as session:
            return session.scalar(
                select(func.count())
                .select_from(JobCompletion)
                .where(JobCompletion.completed_at >= midnight)
            ) or 0

    def get_job_completions_for(self, username: str) -> int:
        """Total completions recorded under *username*."""
        with self._lock, get_session(self.engine) as session:
            return session.scalar(
                select(func.count())
                .select_from(JobCompletion)
                .where(JobCompletion.username == username)
            ) or 0

    # -------------------------------------------------------------------
    # Job-taken workflow
    # -------------------------------------------------------------------
    def create_job_taken(self, data: JobTakenInput) -> JobTaken:
        now = self._now()
        with self._lock, get_session(self.engine) as session:
            row = JobTaken(
                user_id=data.user_id,
                username=data.username,
                server_id=data.server_id,
                server_name=data.server_name,
                channel_id=data.channel_id,
                status=data.status or JobStatus.TAKEN,
                taken_at=now,
                updated_at=now,
            )
            session.add(row)
            session.flush()
        return row

    def update_job_taken_status(self, user_id: str, status: str) -> JobTaken | None:
        """Move *user_id*'s most recently taken job to *status*.

        Does nothing (returns ``None``) when the user has never taken a
        job.  Stage order is not enforced.
        """
        with self._lock, get_session(self.engine) as session:
            row = session.scalar(
                select(JobTaken)
                .where(JobTaken.user_id == user_id)
                .order_by(JobTaken.taken_at.desc(), JobTaken.seq.desc())
                .limit(1)
            )
            if row is None:
                logger.debug("No job-taken record for user %s; status %s ignored", user_id, status)
                return None
            row.status = status
            row.updated_at = self._now()
        return row

    def get_job_taken_stats(self) -> list[JobTakenStats]:
        with self._lock, get_session(self.engine) as session:
            records = session.execute(
                select(JobTaken.username, JobTaken.status).order_by(JobTaken.seq)
            ).all()
        return tally_job_statuses(self.roster, ((r[0], r[1]) for r in records))

    # -------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------
    def create_order(self, data: OrderInput) -> Order:
        now = self._now()
        with self._lock, get_session(self.engine) as session:
            row = Order(
                client_id=data.client_id,
                client_username=data.client_username,
                artist_id=data.artist_id or None,
                artist_username=data.artist_username or None,
                model=data.model,
                status=data.status or OrderStatus.WAITING,
                deadline=data.deadline,
                price=data.price or None,
                server_id=data.server_id,
                channel_id=data.channel_id,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            session.flush()
        logger.info("Order %s created for client %s", row.short_id, row.client_username)
        return row

    def update_order_status(
        self,
        order_id: str,
        status: str,
        artist_id: str | None = None,
        artist_username: str | None = None,
    ) -> Order | None:
        """Set *status* (and the artist, when given) on an order.

        Returns the updated order, or ``None`` when *order_id* is unknown.
        """
        with self._lock, get_session(self.engine) as session:
            row = session.scalar(select(Order).where(Order.id == order_id))
            if row is None:
                return None
            row.status = status
            if artist_id:
                row.artist_id = artist_id
            if artist_username:
                row.artist_username = artist_username
            row.updated_at = self._now()
        return row

    def get_orders_by_status(self, status: str | None = None) -> list[Order]:
        """All orders in creation order, optionally only those in *status*."""
        query = select(Order).order_by(Order.seq)
        if status:
            query = query.where(Order.status == status)
        with self._lock, get_session(self.engine) as session:
            return list(session.scalars(query).all())

    def get_orders_by_client(self, client_id: str) -> list[Order]:
        with self._lock, get_session(self.engine) as session:
            return list(session.scalars(
                select(Order).where(Order.client_id == client_id).order_by(Order.seq)
            ).all())

    def get_all_clients(self) -> list[ClientSummary]:
        """One row per client, in the order each client first ordered."""
        clients: dict[str, list[Any]] = {}
        for order in self.get_orders_by_status():
            entry = clients.get(order.client_id)
            if entry is None:
                clients[order.client_id] = [order.client_username, 1]
            else:
                entry[1] += 1
        return [
            ClientSummary(client_id=cid, client_username=name, order_count=count)
            for cid, (name, count) in clients.items()
        ]

    # -------------------------------------------------------------------
    # Client feedback
    # -------------------------------------------------------------------
    def create_client_feedback(self, data: FeedbackInput) -> ClientFeedback:
        with self._lock, get_session(self.engine) as session:
            row = ClientFeedback(
                client_id=data.client_id,
                client_username=data.client_username,
                feedback=data.feedback,
                rating=data.rating if data.rating is not None else 5,
                server_id=data.server_id,
                created_at=self._now(),
            )
            session.add(row)
            session.flush()
        return row

    def get_client_feedback(self, limit: int = 10) -> list[ClientFeedback]:
        if limit <= 0:
            return []
        with self._lock, get_session(self.engine) as session:
            return list(session.scalars(
                select(ClientFeedback)
                .order_by(ClientFeedback.created_at.desc(), ClientFeedback.seq.desc())
                .limit(limit)
            ).all())

    # -------------------------------------------------------------------
    # Bot stats singleton
    # -------------------------------------------------------------------
    def _load_or_create_stats(self, session) -> BotStats:
        stats = session.scalar(select(BotStats).order_by(BotStats.seq).limit(1))
        if stats is None:
            now = self._now()
            stats = BotStats(last_restart=now, updated_at=now, is_online=False)
            session.add(stats)
            session.flush()
        return stats

    def get_bot_stats(self) -> BotStats:
        with self._lock, get_session(self.engine) as session:
            return self._load_or_create_stats(session)

    def update_bot_stats(self, **changes: Any) -> BotStats:
        """Shallow-merge *changes* into the singleton; ``updated_at`` always moves.

        Raises
        ------
        TypeError
            If a key is not a mutable bot-stats column.
        """
        unknown = set(changes) - BotStats.MUTABLE_FIELDS
        if unknown:
            raise TypeError(f"Unknown bot stats field(s): {', '.join(sorted(unknown))}")
        with self._lock, get_session(self.engine) as session:
            stats = self._load_or_create_stats(session)
            for key, value in changes.items():
                setattr(stats, key, value)
            stats.updated_at = self._now()
        return stats

    # -------------------------------------------------------------------
    # Leaderboard & levels
    # -------------------------------------------------------------------
    def get_top_users(self, limit: int = 4) -> list[LeaderboardEntry]:
        """Roster artists ranked by completed jobs (stable on ties)."""
        with self._lock, get_session(self.engine) as session:
            usernames = session.scalars(
                select(JobCompletion.username).order_by(JobCompletion.seq)
            ).all()
            levels = dict(session.execute(
                select(UserLevel.username, UserLevel.level)
                .where(UserLevel.username.in_(self.roster))
            ).all())
        counts = count_roster_jobs(self.roster, usernames)
        return rank_roster(self.roster, counts, levels, limit)

    def get_user_level(self, username: str) -> UserLevel | None:
        with self._lock, get_session(self.engine) as session:
            return session.scalar(select(UserLevel).where(UserLevel.username == username))

    def update_user_level(self, username: str, total_jobs: int) -> LevelResult:
        """Store the level implied by *total_jobs* and report any level-up.

        The caller recounts *total_jobs*; this method does not.
        """
        now = self._now()
        with self._lock, get_session(self.engine) as session:
            row = session.scalar(select(UserLevel).where(UserLevel.username == username))
            level, leveled_up = evaluate_level(total_jobs, row.level if row else None)
            if row is None:
                row = UserLevel(
                    username=username,
                    level=level,
                    total_jobs=total_jobs,
                    last_level_up_at=now,
                )
                session.add(row)
                session.flush()
            else:
                row.level = level
                row.total_jobs = total_jobs
                if leveled_up:
                    row.last_level_up_at = now

        if leveled_up:
            logger.info("%s leveled up to %d (%d jobs)", username, level, total_jobs)
        return LevelResult(
            user_level=row,
            leveled_up=leveled_up,
            new_level=level if leveled_up else None,
        )

    def get_recent_level_ups(self, limit: int = 5) -> list[dict]:
        """Artists above level 1, most recent level-up first."""
        if limit <= 0:
            return []
        with self._lock, get_session(self.engine) as session:
            rows = session.scalars(
                select(UserLevel)
                .where(UserLevel.level > 1, UserLevel.last_level_up_at.is_not(None))
                .order_by(UserLevel.last_level_up_at.desc(), UserLevel.seq.desc())
                .limit(limit)
            ).all()
        return [
            {
                "username": r.username,
                "newLevel": r.level,
                "lastLevelUpAt": r.last_level_up_at.isoformat(),
            }
            for r in rows
        ]
