"""
trmsbot.engine.deadline — Free-Text Deadline Recognizer
=======================================================

Turns what a team member types into ``/order deadline:`` into a
``datetime``.  Best effort only: anything it cannot read yields ``None``
and the order is created without a deadline.

Recognized, case-insensitively, first match wins:

=================  =========================
``tomorrow``       now + 24 hours
``today``          now + 8 hours
``<N> day(s)``     now + N days   (N defaults to 1)
``<N> week(s)``    now + N weeks  (N defaults to 1)
``<N> hour(s)``    now + N hours  (N defaults to 8)
a calendar date    that date, trying the current year as a fallback
=================  =========================
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta

_NUMBER_RE = re.compile(r"\d+")

# Formats tried for an explicit date, most specific first
_DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%m/%d/%Y",
    "%B %d %Y",
    "%b %d %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)


def _first_number(text: str, default: int) -> int:
    match = _NUMBER_RE.search(text)
    return int(match.group()) if match else default


def _shift(now: datetime, unit: str, amount: int) -> datetime | None:
    # Amounts past datetime.max have no representable deadline
    try:
        return now + timedelta(**{f"{unit}s": amount})
    except (OverflowError, ValueError):
        return None


def _parse_date(text: str) -> datetime | None:
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_deadline(text: str | None, now: datetime | None = None) -> datetime | None:
    """Parse *text* into a deadline relative to *now* (defaults to now).

    Never raises; returns ``None`` when nothing is recognized.
    """
    if not text or not text.strip():
        return None
    now = now or datetime.now()
    raw = text.strip()
    lowered = raw.lower()

    if "tomorrow" in lowered:
        return now + timedelta(hours=24)
    if "today" in lowered:
        return now + timedelta(hours=8)
    for unit, default in (("day", 1), ("week", 1), ("hour", 8)):
        if unit in lowered:
            return _shift(now, unit, _first_number(raw, default))

    # "Aug 8" has no year: try with the current year appended, then prefixed.
    for candidate in (raw, f"{raw} {now.year}", f"{now.year}-{raw}"):
        parsed = _parse_date(candidate)
        if parsed is not None:
            return parsed
    return None
