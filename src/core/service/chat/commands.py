"""
Chat command parsing
"""

import re
from enum import Enum
from typing import List, NamedTuple, Optional


class BotCommand(str, Enum):
    START = "start"
    HELP = "help"
    REGISTER = "register"
    STEPS = "steps"
    MYSTATS = "mystats"
    RESET = "reset"
    DELETE = "delete"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ParsedCommand(NamedTuple):
    command: BotCommand
    args: List[str]


# "/steps@FamilyStepsBot 1234" -> ("steps", "1234")
_COMMAND_RE = re.compile(r"^/(?P<name>[A-Za-z_]+)(?:@\w+)?(?:\s+(?P<args>.*))?$", re.DOTALL)


def parse_command(text: Optional[str]) -> Optional[ParsedCommand]:
    """Parse a chat message into a known command; None for anything else."""
    if not text:
        return None
    match = _COMMAND_RE.match(text.strip())
    if not match:
        return None
    try:
        command = BotCommand(match.group("name").lower())
    except ValueError:
        return None
    args = (match.group("args") or "").split()
    return ParsedCommand(command, args)


def parse_step_count(args: List[str]) -> Optional[int]:
    """First argument as a non-negative step count; thousands separators are accepted."""
    if not args:
        return None
    raw = args[0].replace(",", "").replace("_", "")
    if not (raw.isascii() and raw.isdigit()):
        return None
    return int(raw)
