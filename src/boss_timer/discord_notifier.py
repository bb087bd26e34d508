"""Send messages to the tracker's Discord channel."""
import asyncio
import re
from typing import Optional

import aiohttp
import discord
import requests

from .logger import get_logger

logger = get_logger(__name__)


def _mask_webhook(url: str) -> str:
    """Return a safe string for logging (avoid exposing full webhook URL)."""
    if not url or not isinstance(url, str):
        return "(empty)"
    s = url.strip()
    if len(s) <= 20:
        return "****"
    return f"{s[:30]}...{s[-4:]}" if len(s) > 40 else f"{s[:15]}...{s[-4:]}"


class DiscordNotifier:
    """Posts text to one Discord channel.

    Messages go through the bot's channel once one is bound; before that, or
    when running without a bot, they go to the webhook URL if one is set.
    """

    def __init__(self, webhook_url: Optional[str] = None, timestamp_formatter=None):
        """
        Initialize the Discord notifier.

        Args:
            webhook_url: Webhook URL used when no channel is bound
            timestamp_formatter: TimestampFormatter for Discord timestamp variables
        """
        self.webhook_url = (webhook_url or "").strip()
        self.timestamp_formatter = timestamp_formatter
        self.channel = None

    def bind_channel(self, channel) -> None:
        """Send through this discord.py channel from now on."""
        self.channel = channel
        logger.info(f"[DISCORD] Notifier bound to channel {getattr(channel, 'id', channel)}")

    async def send(self, message: str) -> bool:
        """
        Send a message to the channel.

        Returns:
            True if the message was delivered, False if it failed (already logged)
        """
        if self.channel is not None:
            return await self._send_to_channel(message)
        if self.webhook_url:
            return await asyncio.to_thread(self._send_webhook, self.webhook_url, message)
        logger.warning("[DISCORD] Cannot send message: no channel bound and no webhook URL configured")
        return False

    async def _send_to_channel(self, message: str) -> bool:
        try:
            logger.debug(f"[DISCORD] Message preview: {message[:80]}...")
            await self.channel.send(message)
            return True
        except (discord.HTTPException, aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            # Connection drops surface as aiohttp/OS errors rather than HTTPException
            logger.error(f"[DISCORD] Error sending message to channel: {e!r}")
            return False

    def _send_webhook(self, webhook_url: str, message: str) -> bool:
        """
        Send a message to a Discord webhook.

        Args:
            webhook_url: Discord webhook URL
            message: Message content to send
        """
        try:
            logger.info(f"[DISCORD] Sending to webhook {_mask_webhook(webhook_url)}")
            response = requests.post(
                webhook_url,
                json={'content': message},
                timeout=10
            )
            response.raise_for_status()
            logger.info(f"[DISCORD] Message sent successfully to webhook {_mask_webhook(webhook_url)}")
            return True
        except requests.exceptions.RequestException as e:
            logger.error(f"[DISCORD] Error sending webhook notification: {e}")
            return False

    def format_message(self, template: str, spawn_at=None, **kwargs) -> str:
        """
        Format a message using template variables.

        Supports Discord timestamp variables when spawn_at is given:
        - {discord_timestamp} - Full date/time format
        - {discord_timestamp_relative} - Relative format ("in 5 minutes")
        - {spawn_time} - HH:MM in the tracker timezone

        Args:
            template: Message template with {variable} placeholders
            spawn_at: Spawn instant the message refers to
            **kwargs: Variables to substitute in template

        Returns:
            Formatted message string
        """
        if self.timestamp_formatter and spawn_at is not None:
            kwargs.setdefault('discord_timestamp', self.timestamp_formatter.format_discord_timestamp(spawn_at))
            kwargs.setdefault('discord_timestamp_relative',
                              self.timestamp_formatter.format_discord_timestamp_relative(spawn_at))
            kwargs.setdefault('spawn_time', self.timestamp_formatter.format_time(spawn_at))

        try:
            result = template.format(**kwargs)
            logger.debug(f"Formatted message template: {result[:100]}...")
            return result
        except (KeyError, IndexError) as e:
            logger.error(f"Missing template variable: {e}")
            # Leave unknown placeholders as-is
            return re.sub(r"\{(\w+)\}", lambda m: str(kwargs.get(m.group(1), m.group(0))), template)
