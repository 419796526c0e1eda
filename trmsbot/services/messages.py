"""
trmsbot.services.messages — Reply and broadcast text builders
=============================================================

All message text lives here so the dispatcher only supplies data — no
layout concerns.  Builders are pure and return plain strings.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime

from trmsbot.constants import CLIENT_BADGE, ORDER_STATUS_EMOJI, rank_badge
from trmsbot.engine.leveling import JobTakenStats, LeaderboardEntry, jobs_to_next_level


def _date(value: datetime) -> str:
    return value.strftime("%Y-%m-%d")


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def _round_half_up(value: float, digits: int = 0) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


# ---------------------------------------------------------------------------
# Job tracking
# ---------------------------------------------------------------------------
JOB_PROMPT = (
    "\U0001f3af **Job Completion Tracker**\n\n"
    "Click the button below when you complete a job to update your progress:"
)

JOB_STATUS_PROMPT = (
    "**\U0001f4cb Job Status Management**\n\n"
    "Click the button according to job status:"
)


def build_job_clear_reply(
    username: str, level: int, total_jobs: int, top_users: Sequence[LeaderboardEntry]
) -> str:
    lines = [
        f"✅ **{username} completed 1 job!**",
        f"\U0001f3af **Level {level}** | Total: {total_jobs} jobs",
        "",
        f"\U0001f3c6 **Top {len(top_users)} Artists Leaderboard:**",
    ]
    for i, user in enumerate(top_users):
        lines.append(
            f"{rank_badge(i)} **{user.username}**: {user.job_count} jobs (Level {user.level})"
        )
    return "\n".join(lines)


def build_level_up_broadcast(username: str, new_level: int, total_jobs: int) -> str:
    return (
        "\U0001f389 **LEVEL UP CELEBRATION!** \U0001f389\n\n"
        f"**{username}** just reached **Level {new_level}**!\n\n"
        f"✨ **{total_jobs} jobs** completed total!\n"
        "\U0001f3c6 Outstanding performance! Keep the momentum going! \U0001f680\n\n"
        "*Every 2 jobs = 1 level up!*"
    )


def build_level_up_fallback(username: str, new_level: int) -> str:
    return f"\U0001f389 {username} LEVEL UP! Now Level {new_level}! \U0001f389"


def build_job_cleared_broadcast(username: str, level: int, total_jobs: int) -> str:
    remaining = jobs_to_next_level(total_jobs)
    progress_bar = "▰▱" if total_jobs % 2 == 1 else "▱▱"
    return (
        f"\U0001f525 **@{username} JOB CLEARED!** ✅\n"
        f"\U0001f4ca Level {level} {progress_bar} | "
        f"{_plural(remaining, 'job')} to Level {level + 1}! \U0001f3af"
    )


def build_job_cleared_fallback(username: str) -> str:
    return f"✅ {username} job cleared!"


def build_job_taken_reply(user_id: str) -> str:
    return (
        "\U0001f4cb **Job Status Updated**\n\n"
        f"✅ Job taken by artist <@{user_id}> and will start processing today. "
        "Please wait for future updates."
    )


def build_job_progress_reply(user_id: str) -> str:
    return (
        "\U0001f4c8 **Progress Update**\n\n"
        f"<@{user_id}> is providing a progress update on this job! "
        "Please wait for future updates!"
    )


JOB_COMPLETED_REPLY = (
    "\U0001f389 **Job Completed!**\n\n"
    "The job has been completed! Thank you for trusting our team! "
    "We hope the results are satisfactory! \U0001f38a✨"
)


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------
def build_leaderboard(
    team_name: str,
    top_users: Sequence[LeaderboardEntry],
    taken_stats: Sequence[JobTakenStats],
    roster_size: int,
) -> str:
    """Team performance dashboard: per-artist rows, then team totals."""
    lines = [f"\U0001f3c6 **{team_name} Performance Dashboard**", ""]

    if not top_users:
        lines += [
            "**\U0001f680 Getting Started:**",
            "• Use `/job` to complete and track your work",
            "• Use `/taken` to manage job status with clients",
            "• Use `/template` to share requirements with clients",
            "",
            "Ready to build your track record! \U0001f4aa",
        ]
        return "\n".join(lines)

    by_name = {s.username: s for s in taken_stats}
    lines.append("**\U0001f4c8 Artist Rankings:**")
    for i, user in enumerate(top_users):
        stats = by_name.get(user.username, JobTakenStats(user.username))
        lines += [
            f"{rank_badge(i)} **{user.username}** (Level {user.level})",
            f"   └ ✅ Completed: {user.job_count} jobs",
            f"   └ \U0001f4cb Taken: {stats.jobs_taken} jobs",
            f"   └ \U0001f504 In Progress: {stats.jobs_in_progress} jobs",
            "",
        ]

    completed = sum(u.job_count for u in top_users)
    taken = sum(s.jobs_taken for s in taken_stats)
    in_progress = sum(s.jobs_in_progress for s in taken_stats)
    efficiency = int(_round_half_up(completed / (completed + in_progress) * 100)) if completed else 0
    average = _round_half_up(completed / max(roster_size, 1), 1)

    lines += [
        "**\U0001f4ca Team Statistics:**",
        f"• \U0001f3af Total Jobs Completed: **{completed}**",
        f"• \U0001f4cb Total Jobs Taken: **{taken}**",
        f"• \U0001f504 Currently In Progress: **{in_progress}**",
        f"• ⚡ Team Efficiency: **{efficiency}%**",
        f"• \U0001f4c8 Average Jobs per Artist: **{average:g}**",
    ]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
def build_order_announcement(
    client_username: str, model: str, short_id: str, deadline: datetime | None
) -> str:
    text = (
        f"\U0001f4e6 **New Order by @{client_username}**\n"
        f"\U0001f6e0 **Model**: {model}\n"
        "⏳ **Status**: Waiting"
    )
    if deadline:
        text += f"\n\U0001f4c5 **Deadline**: {_date(deadline)}"
    return text + f"\n\U0001f194 **Order ID**: `{short_id}`"


def build_order_created_reply(client_username: str, model: str, short_id: str) -> str:
    return (
        "✅ **Order Created Successfully!**\n\n"
        f"Order ID: `{short_id}`\n"
        f"Client: @{client_username}\n"
        f"Model: {model}\n\n"
        "Order has been posted to the order channel! \U0001f4cb"
    )


def build_order_status_reply(short_id: str, client_username: str, status: str) -> str:
    emoji = ORDER_STATUS_EMOJI.get(status, "✅")
    return (
        f"{emoji} **Order Status Updated**\n\n"
        f"Order ID: `{short_id}`\n"
        f"Client: @{client_username}\n"
        f"New Status: **{status.capitalize()}**\n\n"
        "Client has been notified of the status change! \U0001f4e8"
    )


def build_order_not_found(order_id: str) -> str:
    return f"❌ Order with ID `{order_id}` not found."


def build_claim_reply(
    artist_username: str, client_username: str, model: str, short_id: str
) -> str:
    return (
        "\U0001f3af **Project Claimed!**\n\n"
        f"**Artist**: @{artist_username}\n"
        f"**Client**: @{client_username}\n"
        f"**Project**: {model}\n"
        f"**Order ID**: `{short_id}`\n\n"
        'Project status updated to "In Progress"! \U0001f680'
    )


def build_no_waiting_orders(client_username: str) -> str:
    return f"❌ No waiting orders found for @{client_username}."


def build_quote(price: str) -> str:
    return (
        "\U0001f4b0 **Price Quote**\n\n"
        "Thank you for your interest in our services!\n\n"
        f"**Estimated Price**: {price}\n\n"
        "**What's Included:**\n"
        "✅ High-quality UGC creation\n"
        "✅ Unlimited revisions (within scope)\n"
        "✅ Fast delivery\n"
        "✅ Professional support\n\n"
        "**Next Steps:**\n"
        "1. Confirm if you're happy with the quote\n"
        "2. We'll start working on your project\n"
        "3. Regular updates throughout development\n\n"
        "**Payment**: 50% upfront, 50% on completion\n\n"
        'Reply with "✅ ACCEPT" to proceed or ask any questions! \U0001f91d'
    )


# ---------------------------------------------------------------------------
# Clients & feedback
# ---------------------------------------------------------------------------
def build_feedback_announcement(
    client_username: str, message: str, rating: int, when: datetime
) -> str:
    stars = "⭐" * rating
    return (
        "\U0001f4ac **Client Feedback**\n\n"
        f"**Client**: @{client_username}\n"
        f"**Rating**: {stars} ({rating}/5)\n"
        f'**Message**: "{message}"\n'
        f"**Date**: {_date(when)}"
    )


def build_feedback_saved_reply(client_username: str, rating: int) -> str:
    stars = "⭐" * rating
    return (
        "✅ **Feedback Saved!**\n\n"
        f"Client: @{client_username}\n"
        f"Rating: {stars}\n\n"
        "Feedback has been logged to the feedback channel! \U0001f4dd"
    )


INVALID_RATING_REPLY = "❌ Rating must be a whole number from 1 to 5."

EMPTY_CLIENT_LIST = (
    "\U0001f4cb **Client List**\n\n"
    "No clients found yet. Use `/order` to add your first client!"
)


def build_client_list(clients: Sequence) -> str:
    """*clients* are :class:`~trmsbot.services.store.ClientSummary` rows."""
    lines = ["\U0001f4cb **Client Database**", ""]
    for i, client in enumerate(clients):
        lines += [
            f"{rank_badge(i, CLIENT_BADGE)} **@{client.client_username}**",
            f"   └ Orders: {client.order_count}",
            "",
        ]
    total_orders = sum(c.order_count for c in clients)
    average = _round_half_up(total_orders / len(clients), 1)
    lines += [
        "**\U0001f4ca Statistics:**",
        f"• Total Clients: **{len(clients)}**",
        f"• Total Orders: **{total_orders}**",
        f"• Average Orders per Client: **{average:g}**",
    ]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Informational
# ---------------------------------------------------------------------------
TEMPLATE_TEXT = (
    "\U0001f4cb **UGC Creation Template**\n\n"
    "\U0001f3af **Project Details**\n"
    "UGC Item Type: (e.g. hair, hat, accessory, bag, etc.)\n"
    "Brief Item Description: (Shape, style, colors, and other important details)\n"
    "Deadline / Timeline: (Specific date or estimated timeframe)\n\n"
    "\U0001f4ce **References & Brief**\n"
    "Reference Images / Moodboard: (You may upload files or provide a link)\n\n"
    "\U0001f4e4 **Output**\n"
    "File Format: .OBJ and 1 Albedo texture\n"
    "Final Delivery: via Google Drive\n\n"
    "For further updates and communication, please stay connected through our Discord server."
)


def build_portfolio(team_name: str, roster_size: int) -> str:
    return (
        f"\U0001f3a8 **{team_name} Portfolio**\n\n"
        "**\U0001f3c6 Achievements:**\n"
        "• 500+ UGC Items Created\n"
        "• 4.9/5 Average Rating\n"
        "• 100+ Satisfied Clients\n"
        f"• Professional Team of {roster_size} Artists\n\n"
        "**\U0001f4bc Services:**\n"
        "✅ Accessories & Hats\n"
        "✅ Faces & Animations\n"
        "✅ Gear & Tools\n"
        "✅ Custom Commissions\n"
        "✅ 3D Modeling & Texturing\n"
        "✅ Rush Orders Available\n\n"
        "**\U0001f31f Why Choose Us:**\n"
        "• Fast 3-7 Day Delivery\n"
        "• Professional Quality\n"
        "• Unlimited Revisions\n"
        "• Competitive Pricing\n\n"
        "Ready to bring your ideas to life! \U0001f680"
    )


def build_rules(team_name: str) -> str:
    return (
        f"\U0001f4dc **{team_name} - Trading Rules & Guidelines**\n\n"
        "**\U0001f4b0 Payment Terms:**\n"
        "• 50% upfront payment required\n"
        "• 50% upon project completion\n\n"
        "**⏰ Timeline & Delivery:**\n"
        "• Standard delivery: 3-7 business days\n"
        "• Rush orders: +50% fee, 1-2 days\n"
        "• Revisions included: 3 free major revisions\n\n"
        "**\U0001f4cb Order Process:**\n"
        "1. Use `/template` for requirements\n"
        "2. Wait for quote confirmation\n"
        "3. Pay 50% to start production\n"
        "4. Receive updates during development\n"
        "5. Final payment & delivery\n\n"
        "**❌ What We Don't Do:**\n"
        "• Inappropriate/offensive content\n"
        "• Copyright infringement\n"
        "• Refunds after work begins\n"
        "• Free samples/tests\n\n"
        "*By ordering, you agree to these terms.*"
    )


def build_info(team_name: str, order_channel: str, feedback_channel: str) -> str:
    return (
        f"\U0001f916 **{team_name} Bot - Feature Guide**\n\n"
        "**\U0001f4cb JOB MANAGEMENT:**\n"
        "• `/job` - Complete a job with the interactive button and level up\n"
        "• `/taken` - Manage job status (taken, update progress, completed)\n"
        "• `/leaderboard` - Team rankings with detailed statistics\n\n"
        "**\U0001f4e6 ORDER MANAGEMENT:**\n"
        f"• `/order` - Create a client order (posts to #{order_channel})\n"
        "• `/status` - Update order status (waiting/progress/done)\n"
        "• `/claim` - Claim a client project and start working\n"
        "• `/quote` - Send a price quote to a client\n\n"
        "**\U0001f465 CLIENT TOOLS:**\n"
        f"• `/feedback` - Save client feedback with a rating (posts to #{feedback_channel})\n"
        "• `/clientlist` - All clients and their order counts\n"
        "• `/template` - UGC creation template for clients\n\n"
        "**\U0001f4ca BUSINESS:**\n"
        "• `/portfolio` - Team portfolio and achievements\n"
        "• `/rules` - Trading rules and payment terms\n"
        "• `/info` - This guide\n\n"
        "**\U0001f504 WORKFLOW:**\n"
        "1. Client contacts team → `/template`\n"
        "2. Create order → `/order`\n"
        "3. Send quote → `/quote`\n"
        "4. Artist claims → `/claim`\n"
        "5. Update progress → `/status`\n"
        "6. Complete job → `/job`\n"
        "7. Collect feedback → `/feedback`\n\n"
        "✅ Level up system: every 2 jobs = 1 level"
    )
