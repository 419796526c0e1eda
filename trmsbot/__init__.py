"""
TRMS Job Bot — Community Operations for a UGC Commission Team
=============================================================
Tracks job completions, the job-status workflow, client orders and
feedback for a small team of artists, levels the artists up as they
clear jobs, and serves live stats to a web dashboard.

Package layout::

    trmsbot/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Leveling cadence, badges, reserved channel names
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # ORM models (jobs, orders, feedback, levels, stats)
    ├── engine/
    │   ├── leveling.py    # Level formula + roster leaderboard (pure)
    │   └── deadline.py    # Free-text deadline recognizer (pure)
    ├── services/
    │   ├── store.py       # RecordStore — the single owner of all records
    │   ├── dispatcher.py  # Command/button events → store calls → replies
    │   ├── messages.py    # Reply and broadcast text templates
    │   ├── announcement_service.py  # Best-effort side-channel broadcasts
    │   └── stats_service.py         # Bot stats aggregator
    ├── bot/
    │   ├── core.py        # Bot subclass, cog loader, command registration
    │   ├── runner.py      # Start / restart / stop the Discord connection
    │   ├── views.py       # Persistent button views
    │   └── cogs/          # Slash-command surface
    └── api/
        ├── main.py        # FastAPI app
        └── routes/        # Dashboard REST endpoints
"""

__version__ = "0.1.0"
