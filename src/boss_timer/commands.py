"""User-facing commands: list, add, addmulti, mail, help."""
from datetime import datetime
from typing import Callable, List, Tuple

from .boss_database import Boss, BossDatabase
from .command_parser import ADD, ADD_MULTI, HELP, LIST, MAIL, USAGE_ERROR, ParsedCommand
from .errors import BossTimerError, StoreWriteError
from .logger import get_logger
from .spawn_engine import reconcile_all, record_death
from .timestamp_formatter import TimestampFormatter

logger = get_logger(__name__)

LIST_HEADER = "📆 Next Respawns:"
UNKNOWN_TIME = "--:--"


def _format_number(value) -> str:
    """8.0 -> "8", 2.5 -> "2.5"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class BossCommands:
    """Implements the chat commands against the boss database.

    Every handler returns the reply messages to post, in order. Recoverable
    errors become "❌" replies; nothing here raises for bad user input.
    """

    def __init__(self, database: BossDatabase, formatter: TimestampFormatter,
                 clock: Callable[[], datetime] = None, prefix: str = "!"):
        self.database = database
        self.formatter = formatter
        self.clock = clock or formatter.now
        self.prefix = prefix

    def execute(self, command: ParsedCommand) -> List[str]:
        """Run a parsed command and return the replies."""
        logger.info(f"[COMMAND] {command.name} ({len(command.entries)} entr{'y' if len(command.entries) == 1 else 'ies'})")
        if command.name == LIST:
            return [self.list_bosses()]
        if command.name == MAIL:
            return [self.mail_list()]
        if command.name == ADD:
            boss_name, death_time = command.entries[0]
            return self.add(boss_name, death_time)
        if command.name == ADD_MULTI:
            return self.add_multi(command.entries)
        if command.name == HELP:
            return [self.help_text()]
        if command.name == USAGE_ERROR:
            return [command.error]
        return []

    def _sorted_bosses(self, now: datetime) -> List[Boss]:
        """Bosses by time left until spawn; unknown spawns last, by name."""
        def sort_key(boss: Boss):
            if boss.next_spawn is None:
                return (1, 0.0, boss.key)
            return (0, (boss.next_spawn - now).total_seconds(), boss.key)
        return sorted(self.database.bosses, key=sort_key)

    def _refresh(self, now: datetime) -> None:
        if reconcile_all(self.database.bosses, now):
            try:
                self.database.save()
            except StoreWriteError as e:
                logger.error(f"[COMMAND] Could not save updated spawn times: {e}")

    def list_bosses(self) -> str:
        """All bosses sorted by time until next spawn."""
        now = self.clock()
        self._refresh(now)
        lines = [LIST_HEADER]
        for boss in self._sorted_bosses(now):
            spawn = self.formatter.format_time(boss.next_spawn) if boss.next_spawn else UNKNOWN_TIME
            lines.append(f"{boss.name} ({_format_number(boss.drop_rate)}%) — {spawn} "
                         f"({_format_number(boss.respawn_hours)}h)")
        return "\n".join(lines)

    def mail_list(self) -> str:
        """Compact "name HH:MM" lines for copy-paste into in-game mail."""
        now = self.clock()
        self._refresh(now)
        lines = [
            f"{boss.name} {self.formatter.format_time(boss.next_spawn)}"
            for boss in self._sorted_bosses(now)
            if boss.next_spawn is not None
        ]
        return "\n".join(lines) if lines else "No spawn times recorded yet."

    def add(self, boss_name: str, death_time: str) -> List[str]:
        """Record one death; reply with the confirmation and the updated list."""
        try:
            update = record_death(self.database, boss_name, death_time, self.clock())
        except BossTimerError as e:
            logger.info(f"[COMMAND] add rejected: {e}")
            return [f"❌ {e}"]
        try:
            self.database.save()
        except StoreWriteError as e:
            return [update.message, f"❌ Could not save boss timers: {e}"]
        return [update.message, self.list_bosses()]

    def add_multi(self, entries: List[Tuple[str, str]]) -> List[str]:
        """Record several deaths; one bad line does not stop the others."""
        if not entries:
            return [f"❌ Syntax: `{self.prefix}addmulti` followed by one `<boss name> <HH:mm>` per line"]

        now = self.clock()
        results = []
        updated = 0
        for boss_name, death_time in entries:
            try:
                update = record_death(self.database, boss_name, death_time, now)
                results.append(update.message)
                updated += 1
            except BossTimerError as e:
                results.append(f"❌ {e}")

        replies = ["\n".join(results)]
        if updated:
            try:
                self.database.save()
            except StoreWriteError as e:
                replies.append(f"❌ Could not save boss timers: {e}")
                return replies
        replies.append(self.list_bosses())
        return replies

    def help_text(self) -> str:
        p = self.prefix
        return "\n".join([
            "**Boss timer commands**",
            f"`{p}list` - next respawns, soonest first",
            f"`{p}add <boss name> <HH:mm>` - record a death time",
            f"`{p}addmulti` - one `<boss name> <HH:mm>` per line below the command",
            f"`{p}mail` - plain `name HH:mm` list for copying",
        ])
