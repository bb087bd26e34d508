"""Periodic spawn check: roll timers forward and post pre-spawn alerts."""
import math
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from .boss_database import Boss, BossDatabase
from .discord_notifier import DiscordNotifier
from .errors import StoreWriteError
from .logger import get_logger
from .notification_ledger import AlertKey, NotificationLedger
from .spawn_engine import reconcile_all

logger = get_logger(__name__)

DEFAULT_THRESHOLDS = (10, 5, 1)

DEFAULT_ALERT_TEMPLATES = {
    10: "⏳ **{boss}** will spawn in 10 minutes!",
    5: "⚡ **{boss}** will spawn in 5 minutes!",
    1: "🔥 Boss **{boss}** will spawn in 1 minute!",
}
FALLBACK_ALERT_TEMPLATE = "⏰ **{boss}** will spawn in {minutes} minutes!"


def minutes_until(spawn_at: datetime, now: datetime) -> int:
    """Whole minutes from now to spawn_at, rounding halves up."""
    minutes = (spawn_at - now).total_seconds() / 60
    return int(math.floor(minutes + 0.5))


class AlertScheduler:
    """Runs one spawn check per tick.

    Each tick reconciles every boss (saving if anything moved), then posts an
    alert for every boss whose spawn is exactly one of the thresholds away.
    An alert is recorded in the ledger only after it was sent, so a failed
    send is retried on the next tick that lands on the same minute.
    """

    def __init__(self, database: BossDatabase, ledger: NotificationLedger,
                 notifier: DiscordNotifier, clock: Callable[[], datetime],
                 thresholds: Iterable[int] = DEFAULT_THRESHOLDS,
                 templates: Optional[Dict[int, str]] = None):
        self.database = database
        self.ledger = ledger
        self.notifier = notifier
        self.clock = clock
        self.thresholds = sorted({int(t) for t in thresholds}, reverse=True)
        self.templates = dict(DEFAULT_ALERT_TEMPLATES)
        if templates:
            self.templates.update({int(k): v for k, v in templates.items()})

    def reconcile(self, now: datetime) -> List[Boss]:
        """Roll every boss forward and save if any spawn time changed."""
        changed = reconcile_all(self.database.bosses, now)
        if changed:
            try:
                self.database.save()
            except StoreWriteError as e:
                logger.error(f"[ALERT] Could not save updated spawn times: {e}")
        return changed

    def render_alert(self, boss: Boss, threshold: int) -> str:
        template = self.templates.get(threshold, FALLBACK_ALERT_TEMPLATE)
        return self.notifier.format_message(
            template, spawn_at=boss.next_spawn, boss=boss.name, minutes=threshold
        )

    async def tick(self, now: Optional[datetime] = None) -> List[str]:
        """
        Run one spawn check.

        Args:
            now: Instant to evaluate at (defaults to the clock)

        Returns:
            Messages that were delivered during this tick
        """
        now = now or self.clock()
        self.reconcile(now)

        sent = []
        for boss in self.database.bosses:
            if boss.next_spawn is None:
                continue
            remaining = minutes_until(boss.next_spawn, now)
            if remaining not in self.thresholds:
                continue

            key = AlertKey(boss.key, remaining, boss.next_spawn)
            if self.ledger.has_fired(key):
                continue

            message = self.render_alert(boss, remaining)
            if await self.notifier.send(message):
                self.ledger.mark_fired(key, now)
                sent.append(message)
                logger.info(f"[ALERT] Sent alert: {message}")
            else:
                logger.warning(f"[ALERT] Alert for {boss.name} ({remaining}m) not delivered, will retry")

        self.ledger.prune(now)
        return sent
