"""
tests/conftest.py — Shared Test Fixtures
========================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import Engine

from trmsbot.config import TrmsConfig
from trmsbot.database.engine import create_db_engine
from trmsbot.services.store import RecordStore

ROSTER: tuple[str, ...] = ("trms_u", "noterooo", "danzz0561", "youknowfaiz_")


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine; ``StaticPool`` so worker threads share it."""
    return create_db_engine("sqlite://")


@pytest.fixture
def store(db_engine: Engine) -> RecordStore:
    """A fresh record store over the in-memory engine."""
    return RecordStore(db_engine, roster=ROSTER)


@pytest.fixture
def cfg() -> TrmsConfig:
    return TrmsConfig(team_name="TRMS TEAMWORK UGC", roster=ROSTER)
