"""Mock Discord channel for testing without real Discord."""
import sys
from pathlib import Path
from typing import List

import discord

# Add src to path for the package
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from boss_timer.logger import get_logger

logger = get_logger(__name__)


class _FakeResponse:
    """Just enough of an aiohttp response for discord.HTTPException."""
    status = 503
    reason = "Service Unavailable"


class MockChannel:
    """Stands in for a discord.py TextChannel; records what would be posted."""

    def __init__(self, channel_id: int = 1234, fail: bool = False):
        """
        Args:
            channel_id: Channel id reported by the mock
            fail: When True, send() raises discord.HTTPException like a Discord outage
        """
        self.id = channel_id
        self.fail = fail
        self.sent_messages: List[str] = []
        self._pending_errors: List[BaseException] = []

    def raise_next(self, error: BaseException) -> None:
        """Make the next send() raise this error (then behave normally)."""
        self._pending_errors.append(error)

    async def send(self, content: str) -> None:
        if self._pending_errors:
            error = self._pending_errors.pop(0)
            logger.debug(f"Mock channel raising {error!r} on purpose")
            raise error
        if self.fail:
            logger.debug("Mock channel failing send on purpose")
            raise discord.HTTPException(_FakeResponse(), "mock outage")
        self.sent_messages.append(content)
        logger.debug(f"MOCK DISCORD POST (not actually posted): {content}")

    def clear_messages(self) -> None:
        self.sent_messages.clear()
