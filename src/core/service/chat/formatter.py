"""
Reply text rendering for the steps bot (Telegram Markdown)
"""

from src.core.service.steps.models import Leaderboard, StepStats, Window

MEDALS = ("🥇", "🥈", "🥉")
RUNNER = "🏃"

WINDOW_TITLES = {
    Window.DAILY: "DAILY",
    Window.WEEKLY: "WEEKLY",
    Window.MONTHLY: "MONTHLY",
}

HELP_TEXT = (
    "🤖 *FAMILY STEPS TRACKER BOT* 🤖\n\n"
    "*Commands:*\n"
    "/register - Join the challenge\n"
    "/steps <number> - Log your steps\n"
    "/mystats - View your stats\n"
    "/reset - Reset today's steps\n"
    "/delete - Remove your account\n"
    "/daily - Daily leaderboard\n"
    "/weekly - Weekly leaderboard\n"
    "/monthly - Monthly leaderboard\n"
    "/help - Show this help message"
)


def escape_markdown(text: str) -> str:
    """Escape the characters legacy Telegram Markdown treats as markup."""
    for char in ("\\", "_", "*", "`", "["):
        text = text.replace(char, f"\\{char}")
    return text


def medal(position: int) -> str:
    """Marker for a 0-based leaderboard position."""
    return MEDALS[position] if 0 <= position < len(MEDALS) else RUNNER


def format_welcome(name: str) -> str:
    return f"🎉 Welcome {name}! You're now registered. Use /steps <number> to log your steps."


def format_logged(steps: int) -> str:
    return f"✅ Logged {steps} steps for today!"


def format_stats(name: str, stats: StepStats) -> str:
    return (
        f"📊 *Your Stats - {escape_markdown(name)}*\n\n"
        f"👟 Today: {stats.today}\n"
        f"📅 This Week: {stats.this_week}\n"
        f"📆 This Month: {stats.this_month}\n"
        f"🏆 Total Steps: {stats.total}\n"
        f"📈 Daily Avg: {stats.average_per_active_day} steps"
    )


def format_leaderboard(leaderboard: Leaderboard) -> str:
    text = f"🏆 *{WINDOW_TITLES[leaderboard.window]} LEADERBOARD*\n\n"
    if not leaderboard.entries:
        return text + "No data yet!"
    lines = [
        f"{medal(entry.position)} *{entry.position + 1}.* User {escape_markdown(entry.user_id)} - {entry.steps} steps"
        for entry in leaderboard.entries
    ]
    return text + "\n".join(lines) + "\n"
