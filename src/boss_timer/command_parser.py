"""Parse chat messages into bot commands."""
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .logger import get_logger

logger = get_logger(__name__)

LIST = "list"
ADD = "add"
ADD_MULTI = "addmulti"
MAIL = "mail"
HELP = "help"
USAGE_ERROR = "usage_error"

ADD_USAGE = "❌ Syntax: `{prefix}add <boss name> <HH:mm>`"


@dataclass
class ParsedCommand:
    """A chat command with its arguments."""
    name: str
    # (boss name, death time) pairs for add / addmulti
    entries: List[Tuple[str, str]] = field(default_factory=list)
    error: Optional[str] = None


class CommandParser:
    """Turns message text like "!add Venatus 14:30" into a ParsedCommand."""

    # First line: prefix, command word, optional rest of the line
    COMMAND_PATTERN = re.compile(r"^(\S+?)(?:[ \t]+(.*))?$")

    def __init__(self, prefix: str = "!"):
        self.prefix = prefix

    @staticmethod
    def split_entry(line: str) -> Optional[Tuple[str, str]]:
        """
        Split "<boss name> <HH:MM>" into its parts.

        The time is the last whitespace-separated token; everything before it
        is the boss name.

        Returns:
            (boss_name, time) or None if the line has fewer than two tokens
        """
        parts = line.split()
        if len(parts) < 2:
            return None
        return " ".join(parts[:-1]), parts[-1]

    def parse(self, content: str) -> Optional[ParsedCommand]:
        """
        Parse a message.

        Args:
            content: Raw message text

        Returns:
            ParsedCommand, or None if the message is not a command for this bot
        """
        text = (content or "").strip()
        if not text.startswith(self.prefix):
            return None

        lines = text.splitlines()
        match = self.COMMAND_PATTERN.match(lines[0][len(self.prefix):].strip())
        if not match:
            return None
        word = match.group(1).lower()
        rest = (match.group(2) or "").strip()

        if word in (LIST, MAIL, HELP):
            return ParsedCommand(name=word)

        if word == ADD:
            entry = self.split_entry(rest)
            if entry is None:
                return ParsedCommand(name=USAGE_ERROR, error=ADD_USAGE.format(prefix=self.prefix))
            return ParsedCommand(name=ADD, entries=[entry])

        if word == ADD_MULTI:
            entries = []
            # Entries start on the line after the command
            for line in lines[1:]:
                entry = self.split_entry(line)
                if entry is None:
                    if line.strip():
                        logger.debug(f"[COMMAND] Skipping addmulti line without a time: {line!r}")
                    continue
                entries.append(entry)
            return ParsedCommand(name=ADD_MULTI, entries=entries)

        logger.debug(f"[COMMAND] Ignoring unknown command: {word}")
        return None
