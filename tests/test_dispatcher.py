"""
tests/test_dispatcher.py — Interaction Dispatcher Tests
=======================================================

Drives every command and button event through a real store, without
Discord.  Async code runs through ``run_async`` (no pytest-asyncio).
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from trmsbot.database.models import JobStatus, OrderStatus
from trmsbot.engine.leveling import JobTakenStats, LeaderboardEntry
from trmsbot.services import messages
from trmsbot.services.dispatcher import (
    DEFAULT_STREAK_CHANNEL_NAME,
    WORKFLOW_CHANNEL_NAME,
    ButtonSet,
    ChannelRoute,
    ClaimCommand,
    ClientListCommand,
    FeedbackCommand,
    InfoCommand,
    InteractionContext,
    InteractionDispatcher,
    JobClearPressed,
    JobCommand,
    JobCompletedPressed,
    JobTakenPressed,
    JobUpdatePressed,
    LeaderboardCommand,
    OrderCommand,
    PortfolioCommand,
    QuoteCommand,
    RulesCommand,
    StatusCommand,
    TakenCommand,
    TemplateCommand,
)

NOW = datetime(2025, 8, 1, 12, 0, 0)


# Helper to run async tests without pytest-asyncio
def run_async(coro):
    """Run an async coroutine in a new event loop."""
    return asyncio.get_event_loop_policy().new_event_loop().run_until_complete(coro)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def dispatcher(store):
    return InteractionDispatcher(
        store,
        team_name="TRMS TEAMWORK UGC",
        level_up_gif="assets/good-job.gif",
        clock=lambda: NOW,
    )


def _ctx(username: str = "trms_u", user_id: str = "u1", streak: str | None = "daily-streak"):
    return InteractionContext(
        user_id=user_id,
        username=username,
        guild_id="g1",
        guild_name="TRMS",
        channel_id="ch1",
        streak_channel_name=streak,
    )


def _dispatch(dispatcher, event, ctx=None):
    return run_async(dispatcher.dispatch(ctx or _ctx(), event))


# ===========================================================================
# Job clear
# ===========================================================================
class TestJobClear:
    def test_prompt_carries_clear_button(self, dispatcher):
        reply = _dispatch(dispatcher, JobCommand())
        assert reply.content == messages.JOB_PROMPT
        assert reply.buttons is ButtonSet.JOB_CLEAR

    def test_first_clear_records_and_broadcasts_countdown(self, dispatcher, store):
        reply = _dispatch(dispatcher, JobClearPressed())

        assert reply.ephemeral is True
        assert reply.refresh_stats is True
        assert "trms_u completed 1 job!" in reply.content
        assert "**Level 1** | Total: 1 jobs" in reply.content

        assert len(reply.broadcasts) == 1
        broadcast = reply.broadcasts[0]
        assert broadcast.route is ChannelRoute.STREAK
        assert "JOB CLEARED" in broadcast.content
        assert "1 job to Level 2" in broadcast.content
        assert broadcast.fallback == "✅ trms_u job cleared!"
        assert broadcast.attachment is None

        assert store.get_recent_job_completions(1)[0].channel_name == "daily-streak"

    def test_second_clear_celebrates_level_up(self, dispatcher, store):
        _dispatch(dispatcher, JobClearPressed())
        reply = _dispatch(dispatcher, JobClearPressed())

        broadcast = reply.broadcasts[0]
        assert "LEVEL UP CELEBRATION" in broadcast.content
        assert "Level 2" in broadcast.content
        assert broadcast.fallback == "\U0001f389 trms_u LEVEL UP! Now Level 2! \U0001f389"
        assert broadcast.attachment == "assets/good-job.gif"
        assert store.get_user_level("trms_u").level == 2

    def test_missing_streak_channel_uses_default_name(self, dispatcher, store):
        _dispatch(dispatcher, JobClearPressed(), _ctx(streak=None))
        assert store.get_recent_job_completions(1)[0].channel_name == DEFAULT_STREAK_CHANNEL_NAME

    def test_reply_lists_top_four(self, dispatcher):
        reply = _dispatch(dispatcher, JobClearPressed())
        assert "Top 4 Artists Leaderboard" in reply.content
        assert "\U0001f947 **trms_u**: 1 jobs (Level 1)" in reply.content


# ===========================================================================
# Job-status workflow
# ===========================================================================
class TestJobStatusWorkflow:
    def test_prompt_carries_status_buttons(self, dispatcher):
        reply = _dispatch(dispatcher, TakenCommand())
        assert reply.buttons is ButtonSet.JOB_STATUS

    def test_taken_update_completed(self, dispatcher, store):
        taken = _dispatch(dispatcher, JobTakenPressed())
        assert "<@u1>" in taken.content
        assert store.get_job_taken_stats()[0].jobs_taken == 1

        _dispatch(dispatcher, JobUpdatePressed())
        assert store.get_job_taken_stats()[0].jobs_in_progress == 1

        done = _dispatch(dispatcher, JobCompletedPressed())
        assert done.content == messages.JOB_COMPLETED_REPLY
        assert done.refresh_stats is True
        assert store.get_job_taken_stats()[0].jobs_completed == 1

        completion = store.get_recent_job_completions(1)[0]
        assert completion.channel_name == WORKFLOW_CHANNEL_NAME
        assert store.get_top_users(1)[0].job_count == 1

    def test_completed_without_taken_still_counts(self, dispatcher, store):
        _dispatch(dispatcher, JobCompletedPressed())
        assert store.get_job_completions_for("trms_u") == 1
        assert all(s.jobs_completed == 0 for s in store.get_job_taken_stats())

    def test_both_paths_level_together(self, dispatcher, store):
        _dispatch(dispatcher, JobClearPressed())
        reply = _dispatch(dispatcher, JobCompletedPressed())
        assert store.get_user_level("trms_u").level == 2
        assert reply.broadcasts[0].route is ChannelRoute.STREAK
        assert "LEVEL UP" in reply.broadcasts[0].content

    def test_update_with_nothing_taken_still_replies(self, dispatcher):
        reply = _dispatch(dispatcher, JobUpdatePressed())
        assert "Progress Update" in reply.content


# ===========================================================================
# Orders
# ===========================================================================
class TestOrders:
    def _order(self, dispatcher, client_id="c1", model="Hat", deadline=None):
        return _dispatch(dispatcher, OrderCommand(
            client_id=client_id, client_username=f"client_{client_id}",
            model=model, deadline=deadline,
        ))

    def test_order_is_stored_and_announced(self, dispatcher, store):
        reply = self._order(dispatcher, deadline="3 days")
        order = store.get_orders_by_status()[0]

        assert order.status == OrderStatus.WAITING
        assert order.deadline == NOW + timedelta(days=3)
        assert order.short_id in reply.content
        assert reply.ephemeral is True

        announcement = reply.broadcasts[0]
        assert announcement.route is ChannelRoute.ORDERS
        assert "2025-08-04" in announcement.content

    def test_unparsable_deadline_is_left_unset(self, dispatcher, store):
        reply = self._order(dispatcher, deadline="when the stars align")
        assert "Order Created" in reply.content
        assert store.get_orders_by_status()[0].deadline is None

    def test_out_of_range_deadline_still_creates_order(self, dispatcher, store):
        reply = self._order(dispatcher, deadline="5000000 days")
        assert "Order Created" in reply.content
        orders = store.get_orders_by_status()
        assert len(orders) == 1
        assert orders[0].deadline is None

    def test_status_by_prefix(self, dispatcher, store):
        self._order(dispatcher)
        order = store.get_orders_by_status()[0]
        reply = _dispatch(dispatcher, StatusCommand(order_id=order.short_id, status="done"))
        assert "Order Status Updated" in reply.content
        assert "**Done**" in reply.content
        assert store.get_orders_by_status(OrderStatus.DONE)[0].id == order.id

    def test_status_unknown_prefix(self, dispatcher, store):
        self._order(dispatcher)
        reply = _dispatch(dispatcher, StatusCommand(order_id="nope", status="done"))
        assert reply.content == messages.build_order_not_found("nope")
        assert reply.ephemeral is True
        assert store.get_orders_by_status(OrderStatus.WAITING)

    def test_status_blank_prefix_matches_nothing(self, dispatcher):
        self._order(dispatcher)
        reply = _dispatch(dispatcher, StatusCommand(order_id="  ", status="done"))
        assert "not found" in reply.content

    def test_status_rejects_unknown_value(self, dispatcher, store):
        self._order(dispatcher)
        order = store.get_orders_by_status()[0]
        reply = _dispatch(dispatcher, StatusCommand(order_id=order.short_id, status="lost"))
        assert reply.ephemeral is True
        assert store.get_orders_by_status()[0].status == OrderStatus.WAITING

    def test_claim_takes_latest_waiting_order(self, dispatcher, store):
        self._order(dispatcher, model="Old hat")
        self._order(dispatcher, model="New hat")
        reply = _dispatch(dispatcher, ClaimCommand(client_id="c1", client_username="client_c1"))

        orders = {o.model: o for o in store.get_orders_by_client("c1")}
        assert orders["New hat"].status == OrderStatus.PROGRESS
        assert orders["New hat"].artist_id == "u1"
        assert orders["New hat"].artist_username == "trms_u"
        assert orders["Old hat"].status == OrderStatus.WAITING
        assert "Project Claimed" in reply.content

    def test_claim_without_waiting_orders(self, dispatcher):
        reply = _dispatch(dispatcher, ClaimCommand(client_id="c9", client_username="ghost"))
        assert reply.content == messages.build_no_waiting_orders("ghost")
        assert reply.ephemeral is True

    def test_quote_interpolates_price(self, dispatcher):
        reply = _dispatch(dispatcher, QuoteCommand(price="100 robux"))
        assert "**Estimated Price**: 100 robux" in reply.content


# ===========================================================================
# Clients & feedback
# ===========================================================================
class TestFeedback:
    def test_default_rating_is_five(self, dispatcher, store):
        reply = _dispatch(dispatcher, FeedbackCommand(
            client_id="c1", client_username="ay", message="Love it",
        ))
        saved = store.get_client_feedback(1)[0]
        assert saved.rating == 5
        assert reply.broadcasts[0].route is ChannelRoute.FEEDBACK
        assert "⭐⭐⭐⭐⭐ (5/5)" in reply.broadcasts[0].content

    @pytest.mark.parametrize("rating", [0, 6, -1])
    def test_out_of_range_rating_rejected(self, dispatcher, store, rating):
        reply = _dispatch(dispatcher, FeedbackCommand(
            client_id="c1", client_username="ay", message="hm", rating=rating,
        ))
        assert reply.content == messages.INVALID_RATING_REPLY
        assert reply.broadcasts == []
        assert store.get_client_feedback(10) == []


class TestClientList:
    def test_empty(self, dispatcher):
        reply = _dispatch(dispatcher, ClientListCommand())
        assert reply.content == messages.EMPTY_CLIENT_LIST

    def test_lists_clients_with_totals(self, dispatcher):
        for client_id in ("c1", "c2", "c1"):
            _dispatch(dispatcher, OrderCommand(
                client_id=client_id, client_username=f"client_{client_id}", model="Hat",
            ))
        reply = _dispatch(dispatcher, ClientListCommand())
        assert "Total Clients: **2**" in reply.content
        assert "Total Orders: **3**" in reply.content
        assert "Average Orders per Client: **1.5**" in reply.content


# ===========================================================================
# Leaderboard & informational
# ===========================================================================
class TestInformational:
    def test_leaderboard_totals(self, dispatcher):
        _dispatch(dispatcher, JobClearPressed())
        _dispatch(dispatcher, JobClearPressed(), _ctx(username="noterooo", user_id="u2"))
        _dispatch(dispatcher, JobTakenPressed(), _ctx(username="noterooo", user_id="u2"))
        _dispatch(dispatcher, JobUpdatePressed(), _ctx(username="noterooo", user_id="u2"))

        reply = _dispatch(dispatcher, LeaderboardCommand())
        assert "TRMS TEAMWORK UGC Performance Dashboard" in reply.content
        assert "Total Jobs Completed: **2**" in reply.content
        assert "Currently In Progress: **1**" in reply.content
        assert "Team Efficiency: **67%**" in reply.content
        assert "Average Jobs per Artist: **0.5**" in reply.content

    def test_leaderboard_rounds_halves_up(self):
        text = messages.build_leaderboard(
            "Crew",
            [LeaderboardEntry("trms_u", 1, 1)],
            [JobTakenStats("trms_u", jobs_in_progress=7)],
            roster_size=4,
        )
        assert "Team Efficiency: **13%**" in text
        assert "Average Jobs per Artist: **0.3**" in text

    @pytest.mark.parametrize(
        ("event", "needle"),
        [
            (TemplateCommand(), "UGC Creation Template"),
            (PortfolioCommand(), "Professional Team of 4 Artists"),
            (RulesCommand(), "Trading Rules"),
            (InfoCommand(), "#order-list"),
        ],
    )
    def test_fixed_texts(self, dispatcher, event, needle):
        reply = _dispatch(dispatcher, event)
        assert needle in reply.content
        assert reply.broadcasts == []


# ===========================================================================
# Error boundary
# ===========================================================================
class TestErrorBoundary:
    def test_handler_exception_becomes_ephemeral_error(self):
        store = MagicMock()
        store.get_top_users.side_effect = RuntimeError("db down")
        dispatcher = InteractionDispatcher(store)

        reply = _dispatch(dispatcher, LeaderboardCommand())
        assert reply.content == LeaderboardCommand.error_message
        assert reply.ephemeral is True
        assert reply.broadcasts == []

    def test_unknown_event_type(self, dispatcher):
        with pytest.raises(TypeError):
            _dispatch(dispatcher, object())

    def test_job_status_values_match_workflow(self):
        assert [s.value for s in JobStatus] == ["taken", "in_progress", "completed"]
