"""
trmsbot.services.dispatcher — Command & Button Dispatch
=======================================================

Every slash command and button press is normalized into one of the
event dataclasses below, then :meth:`InteractionDispatcher.dispatch`
looks up its handler by type.  Handlers only talk to the
:class:`~trmsbot.services.store.RecordStore`; they never touch Discord.
What they produce is a :class:`Reply`:

- ``content`` / ``ephemeral`` — the direct answer to the invoking user,
- ``buttons`` — which button row (if any) to attach,
- ``broadcasts`` — best-effort side-channel announcements,
- ``refresh_stats`` — whether bot stats should be recomputed afterwards.

The cog layer turns a Reply back into Discord calls.  Each event is
independent; the only shared state is what lives in the store.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar

from trmsbot.database.engine import run_db
from trmsbot.database.models import JobStatus, OrderStatus
from trmsbot.engine.deadline import parse_deadline
from trmsbot.engine.leveling import LevelResult
from trmsbot.services import messages
from trmsbot.services.store import (
    FeedbackInput,
    JobCompletionInput,
    JobTakenInput,
    OrderInput,
    RecordStore,
)

logger = logging.getLogger(__name__)

# Channel name stored on completions made through the job-status workflow
WORKFLOW_CHANNEL_NAME = "job-management"
# Stored when no streak channel exists in the guild
DEFAULT_STREAK_CHANNEL_NAME = "streak-channel"

LEADERBOARD_SIZE = 4


# ---------------------------------------------------------------------------
# Context & reply payloads
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class InteractionContext:
    """Who triggered an event, and where."""

    user_id: str
    username: str
    guild_id: str = ""
    guild_name: str = "Unknown Server"
    channel_id: str = ""
    streak_channel_name: str | None = None


class ChannelRoute(enum.StrEnum):
    """Where a broadcast goes; resolved against guild channels by the bot."""
    ORDERS = "orders"        # exact name, e.g. #order-list
    FEEDBACK = "feedback"    # exact name, e.g. #client-feedback
    STREAK = "streak"        # any channel whose name contains the keyword


class ButtonSet(enum.StrEnum):
    JOB_CLEAR = "job_clear"
    JOB_STATUS = "job_status"


@dataclass(frozen=True, slots=True)
class Broadcast:
    """A side-channel announcement with an optional plain-text fallback."""

    route: ChannelRoute
    content: str
    fallback: str | None = None
    attachment: str | None = None  # local file path


@dataclass
class Reply:
    content: str
    ephemeral: bool = False
    buttons: ButtonSet | None = None
    broadcasts: list[Broadcast] = field(default_factory=list)
    refresh_stats: bool = False


# ---------------------------------------------------------------------------
# Events — one dataclass per slash command or button
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class JobCommand:
    error_message: ClassVar[str] = "❌ Error showing the job tracker."


@dataclass(frozen=True, slots=True)
class LeaderboardCommand:
    error_message: ClassVar[str] = "❌ Error displaying leaderboard."


@dataclass(frozen=True, slots=True)
class TakenCommand:
    error_message: ClassVar[str] = "❌ Error creating job status buttons."


@dataclass(frozen=True, slots=True)
class TemplateCommand:
    error_message: ClassVar[str] = "❌ Error displaying template."


@dataclass(frozen=True, slots=True)
class OrderCommand:
    client_id: str
    client_username: str
    model: str
    deadline: str | None = None
    error_message: ClassVar[str] = "❌ Failed to create order. Please try again."


@dataclass(frozen=True, slots=True)
class StatusCommand:
    order_id: str
    status: str
    error_message: ClassVar[str] = "❌ Failed to update order status. Please try again."


@dataclass(frozen=True, slots=True)
class QuoteCommand:
    price: str
    error_message: ClassVar[str] = "❌ Failed to send quote. Please try again."


@dataclass(frozen=True, slots=True)
class ClaimCommand:
    client_id: str
    client_username: str
    error_message: ClassVar[str] = "❌ Failed to claim project. Please try again."


@dataclass(frozen=True, slots=True)
class FeedbackCommand:
    client_id: str
    client_username: str
    message: str
    rating: int | None = None
    error_message: ClassVar[str] = "❌ Failed to save feedback. Please try again."


@dataclass(frozen=True, slots=True)
class PortfolioCommand:
    error_message: ClassVar[str] = "❌ Error displaying portfolio."


@dataclass(frozen=True, slots=True)
class RulesCommand:
    error_message: ClassVar[str] = "❌ Error displaying rules."


@dataclass(frozen=True, slots=True)
class InfoCommand:
    error_message: ClassVar[str] = "❌ Error displaying bot info."


@dataclass(frozen=True, slots=True)
class ClientListCommand:
    error_message: ClassVar[str] = "❌ Failed to fetch client list. Please try again."


@dataclass(frozen=True, slots=True)
class JobClearPressed:
    error_message: ClassVar[str] = "❌ Failed to record the job. Please try again."


@dataclass(frozen=True, slots=True)
class JobTakenPressed:
    error_message: ClassVar[str] = "❌ Failed to mark the job as taken."


@dataclass(frozen=True, slots=True)
class JobUpdatePressed:
    error_message: ClassVar[str] = "❌ Failed to post the progress update."


@dataclass(frozen=True, slots=True)
class JobCompletedPressed:
    error_message: ClassVar[str] = "❌ Failed to mark the job as completed."


Event = (
    JobCommand | LeaderboardCommand | TakenCommand | TemplateCommand
    | OrderCommand | StatusCommand | QuoteCommand | ClaimCommand
    | FeedbackCommand | PortfolioCommand | RulesCommand | InfoCommand
    | ClientListCommand | JobClearPressed | JobTakenPressed
    | JobUpdatePressed | JobCompletedPressed
)


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------
class InteractionDispatcher:
    """Maps each event type to a handler and shields callers from failures.

    Parameters
    ----------
    store:
        The shared record store.
    team_name:
        Shown in leaderboard, portfolio, rules and info texts.
    order_channel, feedback_channel:
        Channel names quoted in the info text.
    level_up_gif:
        Optional file attached to level-up celebrations.
    clock:
        Source of "now" for deadline parsing.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        team_name: str = "TRMS TEAMWORK UGC",
        order_channel: str = "order-list",
        feedback_channel: str = "client-feedback",
        level_up_gif: str | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.team_name = team_name
        self.order_channel = order_channel
        self.feedback_channel = feedback_channel
        self.level_up_gif = level_up_gif
        self.clock = clock
        self._handlers: dict[type, Callable[[InteractionContext, Event], Awaitable[Reply]]] = {
            JobCommand: self._job_prompt,
            LeaderboardCommand: self._leaderboard,
            TakenCommand: self._taken_prompt,
            TemplateCommand: self._template,
            OrderCommand: self._order,
            StatusCommand: self._status,
            QuoteCommand: self._quote,
            ClaimCommand: self._claim,
            FeedbackCommand: self._feedback,
            PortfolioCommand: self._portfolio,
            RulesCommand: self._rules,
            InfoCommand: self._info,
            ClientListCommand: self._client_list,
            JobClearPressed: self._job_clear,
            JobTakenPressed: self._job_taken,
            JobUpdatePressed: self._job_update,
            JobCompletedPressed: self._job_completed,
        }

    async def dispatch(self, ctx: InteractionContext, event: Event) -> Reply:
        """Run the handler for *event*.

        Any exception from the handler is logged and turned into an
        ephemeral error reply; it never reaches the caller.

        Raises
        ------
        TypeError
            If *event* is not a known event type.
        """
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"No handler registered for {type(event).__name__}")

        logger.info("Dispatching %s for %s", type(event).__name__, ctx.username)
        try:
            return await handler(ctx, event)
        except Exception:
            logger.exception("Error handling %s for %s", type(event).__name__, ctx.username)
            return Reply(event.error_message, ephemeral=True)

    # -------------------------------------------------------------------
    # Job completion & leveling
    # -------------------------------------------------------------------
    async def _record_completion(self, ctx: InteractionContext, channel_name: str) -> tuple[int, LevelResult]:
        """Store a completion, recount the artist's jobs, and re-level them."""
        await run_db(self.store.create_job_completion, JobCompletionInput(
            user_id=ctx.user_id,
            username=ctx.username,
            server_id=ctx.guild_id,
            server_name=ctx.guild_name,
            channel_id=ctx.channel_id,
            channel_name=channel_name,
        ))
        total_jobs = await run_db(self.store.get_job_completions_for, ctx.username)
        result = await run_db(self.store.update_user_level, ctx.username, total_jobs)
        return total_jobs, result

    def _level_up_broadcast(self, username: str, new_level: int, total_jobs: int) -> Broadcast:
        return Broadcast(
            route=ChannelRoute.STREAK,
            content=messages.build_level_up_broadcast(username, new_level, total_jobs),
            fallback=messages.build_level_up_fallback(username, new_level),
            attachment=self.level_up_gif,
        )

    async def _job_clear(self, ctx: InteractionContext, event: JobClearPressed) -> Reply:
        channel_name = ctx.streak_channel_name or DEFAULT_STREAK_CHANNEL_NAME
        total_jobs, result = await self._record_completion(ctx, channel_name)
        top_users = await run_db(self.store.get_top_users, LEADERBOARD_SIZE)
        level = result.user_level.level

        if result.leveled_up and result.new_level is not None:
            broadcast = self._level_up_broadcast(ctx.username, result.new_level, total_jobs)
        else:
            broadcast = Broadcast(
                route=ChannelRoute.STREAK,
                content=messages.build_job_cleared_broadcast(ctx.username, level, total_jobs),
                fallback=messages.build_job_cleared_fallback(ctx.username),
            )

        return Reply(
            messages.build_job_clear_reply(ctx.username, level, total_jobs, top_users),
            ephemeral=True,
            broadcasts=[broadcast],
            refresh_stats=True,
        )

    async def _job_prompt(self, ctx: InteractionContext, event: JobCommand) -> Reply:
        return Reply(messages.JOB_PROMPT, buttons=ButtonSet.JOB_CLEAR)

    async def _leaderboard(self, ctx: InteractionContext, event: LeaderboardCommand) -> Reply:
        top_users = await run_db(self.store.get_top_users, LEADERBOARD_SIZE)
        taken_stats = await run_db(self.store.get_job_taken_stats)
        return Reply(messages.build_leaderboard(
            self.team_name, top_users, taken_stats, len(self.store.roster),
        ))

    # -------------------------------------------------------------------
    # Job-status workflow
    # -------------------------------------------------------------------
    async def _taken_prompt(self, ctx: InteractionContext, event: TakenCommand) -> Reply:
        return Reply(messages.JOB_STATUS_PROMPT, buttons=ButtonSet.JOB_STATUS)

    async def _job_taken(self, ctx: InteractionContext, event: JobTakenPressed) -> Reply:
        await run_db(self.store.create_job_taken, JobTakenInput(
            user_id=ctx.user_id,
            username=ctx.username,
            server_id=ctx.guild_id,
            server_name=ctx.guild_name,
            channel_id=ctx.channel_id,
        ))
        return Reply(messages.build_job_taken_reply(ctx.user_id))

    async def _job_update(self, ctx: InteractionContext, event: JobUpdatePressed) -> Reply:
        await run_db(self.store.update_job_taken_status, ctx.user_id, JobStatus.IN_PROGRESS)
        return Reply(messages.build_job_progress_reply(ctx.user_id))

    async def _job_completed(self, ctx: InteractionContext, event: JobCompletedPressed) -> Reply:
        await run_db(self.store.update_job_taken_status, ctx.user_id, JobStatus.COMPLETED)
        total_jobs, result = await self._record_completion(ctx, WORKFLOW_CHANNEL_NAME)

        broadcasts = []
        if result.leveled_up and result.new_level is not None:
            broadcasts.append(self._level_up_broadcast(ctx.username, result.new_level, total_jobs))
        return Reply(messages.JOB_COMPLETED_REPLY, broadcasts=broadcasts, refresh_stats=True)

    # -------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------
    async def _order(self, ctx: InteractionContext, event: OrderCommand) -> Reply:
        deadline = parse_deadline(event.deadline, now=self.clock())
        if event.deadline and deadline is None:
            logger.info("Could not parse deadline %r; order created without one", event.deadline)

        order = await run_db(self.store.create_order, OrderInput(
            client_id=event.client_id,
            client_username=event.client_username,
            model=event.model,
            server_id=ctx.guild_id,
            channel_id=ctx.channel_id,
            deadline=deadline,
        ))
        announcement = Broadcast(
            route=ChannelRoute.ORDERS,
            content=messages.build_order_announcement(
                order.client_username, order.model, order.short_id, order.deadline,
            ),
        )
        return Reply(
            messages.build_order_created_reply(order.client_username, order.model, order.short_id),
            ephemeral=True,
            broadcasts=[announcement],
        )

    async def _status(self, ctx: InteractionContext, event: StatusCommand) -> Reply:
        if event.status not in {s.value for s in OrderStatus}:
            return Reply(f"❌ Unknown status `{event.status}`.", ephemeral=True)

        prefix = event.order_id.strip()
        orders = await run_db(self.store.get_orders_by_status)
        order = next((o for o in orders if prefix and o.id.startswith(prefix)), None)
        if order is None:
            return Reply(messages.build_order_not_found(event.order_id), ephemeral=True)

        updated = await run_db(self.store.update_order_status, order.id, event.status)
        if updated is None:
            return Reply("❌ Failed to update order status.", ephemeral=True)

        return Reply(messages.build_order_status_reply(
            updated.short_id, updated.client_username, updated.status,
        ))

    async def _claim(self, ctx: InteractionContext, event: ClaimCommand) -> Reply:
        orders = await run_db(self.store.get_orders_by_client, event.client_id)
        waiting = [o for o in orders if o.status == OrderStatus.WAITING]
        if not waiting:
            return Reply(messages.build_no_waiting_orders(event.client_username), ephemeral=True)

        latest = max(waiting, key=lambda o: (o.created_at, o.seq))
        claimed = await run_db(
            self.store.update_order_status,
            latest.id, OrderStatus.PROGRESS, ctx.user_id, ctx.username,
        )
        if claimed is None:
            return Reply("❌ Failed to claim project.", ephemeral=True)

        return Reply(messages.build_claim_reply(
            ctx.username, event.client_username, claimed.model, claimed.short_id,
        ))

    async def _quote(self, ctx: InteractionContext, event: QuoteCommand) -> Reply:
        return Reply(messages.build_quote(event.price))

    # -------------------------------------------------------------------
    # Clients & feedback
    # -------------------------------------------------------------------
    async def _feedback(self, ctx: InteractionContext, event: FeedbackCommand) -> Reply:
        rating = 5 if event.rating is None else event.rating
        if not 1 <= rating <= 5:
            return Reply(messages.INVALID_RATING_REPLY, ephemeral=True)

        saved = await run_db(self.store.create_client_feedback, FeedbackInput(
            client_id=event.client_id,
            client_username=event.client_username,
            feedback=event.message,
            rating=rating,
            server_id=ctx.guild_id,
        ))
        announcement = Broadcast(
            route=ChannelRoute.FEEDBACK,
            content=messages.build_feedback_announcement(
                saved.client_username, saved.feedback, saved.rating, saved.created_at,
            ),
        )
        return Reply(
            messages.build_feedback_saved_reply(saved.client_username, saved.rating),
            ephemeral=True,
            broadcasts=[announcement],
        )

    async def _client_list(self, ctx: InteractionContext, event: ClientListCommand) -> Reply:
        clients = await run_db(self.store.get_all_clients)
        if not clients:
            return Reply(messages.EMPTY_CLIENT_LIST, ephemeral=True)
        return Reply(messages.build_client_list(clients), ephemeral=True)

    # -------------------------------------------------------------------
    # Informational
    # -------------------------------------------------------------------
    async def _template(self, ctx: InteractionContext, event: TemplateCommand) -> Reply:
        return Reply(messages.TEMPLATE_TEXT)

    async def _portfolio(self, ctx: InteractionContext, event: PortfolioCommand) -> Reply:
        return Reply(messages.build_portfolio(self.team_name, len(self.store.roster)))

    async def _rules(self, ctx: InteractionContext, event: RulesCommand) -> Reply:
        return Reply(messages.build_rules(self.team_name))

    async def _info(self, ctx: InteractionContext, event: InfoCommand) -> Reply:
        return Reply(messages.build_info(self.team_name, self.order_channel, self.feedback_channel))
