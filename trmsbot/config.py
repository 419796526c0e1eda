"""
trmsbot.config — YAML Configuration Loader
==========================================

Reads ``config.yaml`` for the soft, non-secret settings: team identity,
the artist roster, and the names of the channels the bot announces in.
Secrets (the bot token, ``DATABASE_URL``) stay in the environment.

Usage::

    from trmsbot.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.team_name)         # "TRMS TEAMWORK UGC"
    print(cfg.roster)            # ("trms_u", "noterooo", ...)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from trmsbot.constants import (
    DEFAULT_FEEDBACK_CHANNEL,
    DEFAULT_ORDER_CHANNEL,
    DEFAULT_ROSTER,
    DEFAULT_STREAK_KEYWORD,
)


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class TrmsConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    team_name: str

    # Discord
    bot_prefix: str = "!"

    # Dashboard
    dashboard_port: int = 5000

    # Leaderboard universe, in declaration order (ties keep this order)
    roster: tuple[str, ...] = DEFAULT_ROSTER

    # Channel routing
    order_channel: str = DEFAULT_ORDER_CHANNEL      # exact name
    feedback_channel: str = DEFAULT_FEEDBACK_CHANNEL  # exact name
    streak_keyword: str = DEFAULT_STREAK_KEYWORD    # substring

    # Optional
    level_up_gif: str | None = None  # Attached to level-up celebrations
    test_username: str = "trms_u"    # Used by POST /api/bot/test


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> TrmsConfig:
    """Read *path* and return a :class:`TrmsConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If ``team_name`` is missing from the YAML file.
    ValueError
        If the roster is present but empty.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    roster = tuple(str(name) for name in raw.get("roster", DEFAULT_ROSTER))
    if not roster:
        raise ValueError("config.yaml: 'roster' must list at least one artist username")

    return TrmsConfig(
        team_name=raw["team_name"],
        bot_prefix=raw.get("bot_prefix", "!"),
        dashboard_port=int(raw.get("dashboard_port", 5000)),
        roster=roster,
        order_channel=raw.get("order_channel", DEFAULT_ORDER_CHANNEL),
        feedback_channel=raw.get("feedback_channel", DEFAULT_FEEDBACK_CHANNEL),
        streak_keyword=raw.get("streak_keyword", DEFAULT_STREAK_KEYWORD),
        level_up_gif=raw.get("level_up_gif") or None,
        test_username=raw.get("test_username", "trms_u"),
    )
