"""Remember which spawn alerts were already posted."""
from datetime import datetime, timedelta
from typing import Dict, NamedTuple, Optional

from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_RETENTION_HOURS = 3


class AlertKey(NamedTuple):
    """One alert: a boss, a lead time in minutes, and the spawn it warns about."""
    boss: str
    threshold: int
    spawn_at: datetime


class NotificationLedger:
    """In-memory record of fired alerts, used to post each alert exactly once."""

    def __init__(self, retention_hours: float = DEFAULT_RETENTION_HOURS):
        """
        Args:
            retention_hours: How long after its spawn time a record is kept
        """
        self.retention = timedelta(hours=retention_hours)
        self._fired: Dict[AlertKey, Optional[datetime]] = {}

    def __len__(self) -> int:
        return len(self._fired)

    def __contains__(self, key: AlertKey) -> bool:
        return key in self._fired

    def has_fired(self, key: AlertKey) -> bool:
        return key in self._fired

    def mark_fired(self, key: AlertKey, fired_at: Optional[datetime] = None) -> None:
        self._fired[key] = fired_at
        logger.debug(f"[ALERT] Marked fired: {key.boss} {key.threshold}m @ {key.spawn_at}")

    def prune(self, now: datetime) -> int:
        """
        Drop records whose spawn time is older than the retention window.

        Records without a usable spawn time are left alone.

        Returns:
            Number of records removed
        """
        cutoff = now - self.retention
        stale = []
        for key in self._fired:
            spawn_at = getattr(key, 'spawn_at', None)
            if not isinstance(spawn_at, datetime):
                logger.warning(f"[ALERT] Ledger key without a valid spawn time, not pruning: {key!r}")
                continue
            try:
                if spawn_at < cutoff:
                    stale.append(key)
            except TypeError as e:
                # naive vs aware comparison
                logger.warning(f"[ALERT] Cannot compare ledger key {key!r}: {e}")
        for key in stale:
            del self._fired[key]
        if stale:
            logger.debug(f"[ALERT] Pruned {len(stale)} old alert record(s)")
        return len(stale)
