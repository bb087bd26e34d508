"""Spawn time prediction: roll spawns forward and apply reported deaths."""
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List

from .boss_database import Boss, BossDatabase
from .errors import BossNotFoundError, InvalidCycleError, InvalidTimeFormatError
from .logger import get_logger

logger = get_logger(__name__)

# 24-hour clock, one or two hour digits: 9:05, 09:05, 23:59
TIME_OF_DAY_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


@dataclass
class SpawnUpdate:
    """Result of recording a boss death."""
    boss: Boss
    last_killed: datetime
    next_spawn: datetime

    @property
    def message(self) -> str:
        return f"✅ **{self.boss.name}** - {self.next_spawn.strftime('%H:%M')}"


def cycle_length(boss: Boss) -> timedelta:
    """
    Respawn interval of a boss.

    Raises:
        InvalidCycleError: If respawn_hours is not a positive number
    """
    try:
        hours = float(boss.respawn_hours)
    except (TypeError, ValueError):
        raise InvalidCycleError(boss.name, boss.respawn_hours)
    if not hours > 0:
        raise InvalidCycleError(boss.name, boss.respawn_hours)
    return timedelta(hours=hours)


def _normalize(dt: datetime) -> datetime:
    # pytz zones need normalize() after arithmetic to keep the offset right
    tz = dt.tzinfo
    if tz is not None and hasattr(tz, 'normalize'):
        return tz.normalize(dt)
    return dt


def reconcile(boss: Boss, now: datetime) -> bool:
    """
    Roll a boss's next spawn forward by whole cycles until it is not in the past.

    The number of cycles is found in one step; the result is identical to
    adding the cycle repeatedly while next_spawn < now.

    Args:
        boss: Boss to update in place
        now: Current instant

    Returns:
        True if next_spawn changed

    Raises:
        InvalidCycleError: If the boss has a spawn time but no positive respawn interval
    """
    if boss.next_spawn is None:
        return False

    cycle = cycle_length(boss)
    if boss.next_spawn >= now:
        return False

    elapsed = now - boss.next_spawn
    cycles = elapsed // cycle
    if boss.next_spawn + cycles * cycle < now:
        cycles += 1

    previous = boss.next_spawn
    boss.next_spawn = _normalize(previous + cycles * cycle)
    logger.info(f"[SPAWN] Auto-updated {boss.name}: {previous.strftime('%H:%M')} -> "
                f"{boss.next_spawn.strftime('%H:%M')} ({cycles} cycle(s))")
    return True


def reconcile_all(bosses: List[Boss], now: datetime) -> List[Boss]:
    """
    Reconcile every boss. Bosses with an invalid cycle are logged and skipped.

    Returns:
        The bosses whose next spawn changed (caller persists them)
    """
    changed = []
    for boss in bosses:
        try:
            if reconcile(boss, now):
                changed.append(boss)
        except InvalidCycleError as e:
            logger.error(f"[SPAWN] Skipping {boss.name}: {e}")
    return changed


def parse_time_of_day(value: str):
    """
    Parse an HH:MM 24-hour time.

    Returns:
        (hour, minute) tuple

    Raises:
        InvalidTimeFormatError: If the value is not a valid time of day
    """
    match = TIME_OF_DAY_PATTERN.match((value or '').strip())
    if not match:
        raise InvalidTimeFormatError(value)
    return int(match.group(1)), int(match.group(2))


def record_death(database: BossDatabase, boss_name: str, time_of_day: str, now: datetime) -> SpawnUpdate:
    """
    Record that a boss died at a time of day and predict its next spawn.

    A death time later than now cannot have happened yet today, so it is read
    as yesterday at that time.

    Args:
        database: Boss database to look the boss up in
        boss_name: Boss name (case-insensitive)
        time_of_day: Death time as HH:MM
        now: Current instant in the tracker timezone

    Returns:
        SpawnUpdate with the new death and spawn times

    Raises:
        BossNotFoundError: If no boss has this name
        InvalidTimeFormatError: If time_of_day is not HH:MM
        InvalidCycleError: If the boss has no positive respawn interval

    The boss is only modified once every check has passed; saving is left to
    the caller.
    """
    boss = database.get_boss(boss_name)
    if boss is None:
        raise BossNotFoundError(boss_name)

    hour, minute = parse_time_of_day(time_of_day)
    cycle = cycle_length(boss)

    death_at = _normalize(now.replace(hour=hour, minute=minute, second=0, microsecond=0))
    if death_at > now:
        death_at = _normalize(death_at - timedelta(days=1))

    spawn_at = _normalize(death_at + cycle)

    boss.last_killed = death_at
    boss.next_spawn = spawn_at
    logger.info(f"[SPAWN] {boss.name} died at {death_at.isoformat()}, next spawn {spawn_at.isoformat()}")
    return SpawnUpdate(boss=boss, last_killed=death_at, next_spawn=spawn_at)
