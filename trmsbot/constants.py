"""
trmsbot.constants — Shared Constants & Helpers
==============================================

Single source of truth for presentation constants and the leveling
cadence.  Import from here instead of duplicating in cogs, services,
and API routes.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Team defaults (overridable in config.yaml)
# ---------------------------------------------------------------------------
DEFAULT_ROSTER: tuple[str, ...] = ("trms_u", "noterooo", "danzz0561", "youknowfaiz_")

DEFAULT_ORDER_CHANNEL = "order-list"
DEFAULT_FEEDBACK_CHANNEL = "client-feedback"
DEFAULT_STREAK_KEYWORD = "streak"

# ---------------------------------------------------------------------------
# Leveling cadence — every JOBS_PER_LEVEL completed jobs is one level
# ---------------------------------------------------------------------------
JOBS_PER_LEVEL = 2

# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------
RANK_BADGES: list[str] = ["\U0001f947", "\U0001f948", "\U0001f949"]  # 🥇🥈🥉
DEFAULT_BADGE = "\U0001f3c5"  # 🏅
CLIENT_BADGE = "\U0001f464"   # 👤

ORDER_STATUS_EMOJI: dict[str, str] = {
    "waiting": "\u23f3",       # ⏳
    "progress": "\U0001f504",  # 🔄
    "done": "\u2705",          # ✅
}


def rank_badge(index: int, default: str = DEFAULT_BADGE) -> str:
    """Medal for a zero-based leaderboard position."""
    if 0 <= index < len(RANK_BADGES):
        return RANK_BADGES[index]
    return default
