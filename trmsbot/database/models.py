"""
trmsbot.database.models — SQLAlchemy 2.0 Data Models
====================================================

Tables:
- job_completions — One row per cleared job (append-only)
- job_taken       — Job-status workflow rows (taken → in_progress → completed)
- orders          — Client commission requests (waiting → progress → done)
- client_feedback — Client ratings and comments (append-only)
- user_levels     — One row per artist username; level derives from total_jobs
- bot_stats       — Singleton row of bot-level counters for the dashboard

Every table carries a string UUID ``id`` (the public identifier) and an
autoincrement ``seq`` primary key that records creation order.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all ORM models."""

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), unique=True, default=_new_id)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class JobStatus(enum.StrEnum):
    """Stages of the job-taken workflow."""
    TAKEN = "taken"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class OrderStatus(enum.StrEnum):
    """Stages of a client order."""
    WAITING = "waiting"
    PROGRESS = "progress"
    DONE = "done"


# ---------------------------------------------------------------------------
# JobCompletion — one cleared job
# ---------------------------------------------------------------------------
class JobCompletion(Base):
    __tablename__ = "job_completions"

    user_id: Mapped[str] = mapped_column(String(32), nullable=False)
    username: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    server_id: Mapped[str] = mapped_column(String(32), nullable=False)
    server_name: Mapped[str] = mapped_column(String(100), nullable=False)
    channel_id: Mapped[str] = mapped_column(String(32), nullable=False)
    channel_name: Mapped[str] = mapped_column(String(100), nullable=False)
    completed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "username": self.username,
            "serverId": self.server_id,
            "serverName": self.server_name,
            "channelId": self.channel_id,
            "channelName": self.channel_name,
            "completedAt": self.completed_at.isoformat(),
        }

    def __repr__(self) -> str:
        return f"<JobCompletion id={self.id} user={self.username!r}>"


# ---------------------------------------------------------------------------
# JobTaken — job-status workflow
# ---------------------------------------------------------------------------
class JobTaken(Base):
    __tablename__ = "job_taken"

    user_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    server_id: Mapped[str] = mapped_column(String(32), nullable=False)
    server_name: Mapped[str] = mapped_column(String(100), nullable=False)
    channel_id: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=JobStatus.TAKEN)
    taken_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "username": self.username,
            "serverId": self.server_id,
            "serverName": self.server_name,
            "channelId": self.channel_id,
            "status": self.status,
            "takenAt": self.taken_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    def __repr__(self) -> str:
        return f"<JobTaken id={self.id} user={self.username!r} status={self.status}>"


# ---------------------------------------------------------------------------
# Order — client commission request
# ---------------------------------------------------------------------------
class Order(Base):
    __tablename__ = "orders"

    client_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    client_username: Mapped[str] = mapped_column(String(100), nullable=False)
    artist_id: Mapped[str | None] = mapped_column(String(32), default=None)
    artist_username: Mapped[str | None] = mapped_column(String(100), default=None)
    model: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=OrderStatus.WAITING)
    deadline: Mapped[datetime | None] = mapped_column(DateTime, default=None)
    price: Mapped[str | None] = mapped_column(String(100), default=None)
    server_id: Mapped[str] = mapped_column(String(32), nullable=False)
    channel_id: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    @property
    def short_id(self) -> str:
        """The 8-character prefix shown to users and accepted by /status."""
        return self.id[:8]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "clientId": self.client_id,
            "clientUsername": self.client_username,
            "artistId": self.artist_id,
            "artistUsername": self.artist_username,
            "model": self.model,
            "status": self.status,
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "price": self.price,
            "serverId": self.server_id,
            "channelId": self.channel_id,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    def __repr__(self) -> str:
        return f"<Order id={self.short_id} client={self.client_username!r} status={self.status}>"


# ---------------------------------------------------------------------------
# ClientFeedback — append-only ratings
# ---------------------------------------------------------------------------
class ClientFeedback(Base):
    __tablename__ = "client_feedback"

    client_id: Mapped[str] = mapped_column(String(32), nullable=False)
    client_username: Mapped[str] = mapped_column(String(100), nullable=False)
    feedback: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    server_id: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "clientId": self.client_id,
            "clientUsername": self.client_username,
            "feedback": self.feedback,
            "rating": self.rating,
            "serverId": self.server_id,
            "createdAt": self.created_at.isoformat(),
        }


# ---------------------------------------------------------------------------
# UserLevel — one row per artist username
# ---------------------------------------------------------------------------
class UserLevel(Base):
    __tablename__ = "user_levels"

    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total_jobs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_level_up_at: Mapped[datetime | None] = mapped_column(DateTime, default=None)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "level": self.level,
            "totalJobs": self.total_jobs,
            "lastLevelUpAt": (
                self.last_level_up_at.isoformat() if self.last_level_up_at else None
            ),
        }

    def __repr__(self) -> str:
        return f"<UserLevel user={self.username!r} lvl={self.level} jobs={self.total_jobs}>"


# ---------------------------------------------------------------------------
# BotStats — singleton dashboard counters
# ---------------------------------------------------------------------------
class BotStats(Base):
    __tablename__ = "bot_stats"

    server_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    active_users: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    streak_channels: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    uptime: Mapped[str] = mapped_column(String(20), nullable=False, default="99.8%")
    response_time: Mapped[str] = mapped_column(String(20), nullable=False, default="142ms")
    memory_usage: Mapped[str] = mapped_column(String(20), nullable=False, default="34.2 MB")
    last_restart: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    is_online: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Columns callers may overwrite through RecordStore.update_bot_stats()
    MUTABLE_FIELDS = frozenset({
        "server_count", "active_users", "streak_channels", "uptime",
        "response_time", "memory_usage", "last_restart", "is_online",
    })

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "serverCount": self.server_count,
            "activeUsers": self.active_users,
            "streakChannels": self.streak_channels,
            "uptime": self.uptime,
            "responseTime": self.response_time,
            "memoryUsage": self.memory_usage,
            "lastRestart": self.last_restart.isoformat(),
            "isOnline": self.is_online,
            "updatedAt": self.updated_at.isoformat(),
        }
