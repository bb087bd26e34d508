"""Discord client: channel commands, slash commands and the alert loop."""
import asyncio
from typing import Dict, List, Optional

import aiohttp
import discord
from discord import app_commands
from discord.ext import tasks

from .alert_scheduler import AlertScheduler
from .boss_database import BossDatabase
from .command_parser import CommandParser
from .commands import BossCommands
from .discord_notifier import DiscordNotifier
from .keep_alive import KeepAliveServer
from .logger import get_logger
from .notification_ledger import NotificationLedger
from .timestamp_formatter import TimestampFormatter

logger = get_logger(__name__)

# Discord caps autocomplete at 25 choices
MAX_AUTOCOMPLETE_CHOICES = 25


class BossTimerBot(discord.Client):
    """Listens for commands in one channel and posts spawn alerts there."""

    def __init__(self, settings: Dict, database: BossDatabase, ledger: NotificationLedger,
                 formatter: TimestampFormatter, notifier: Optional[DiscordNotifier] = None,
                 keep_alive: Optional[KeepAliveServer] = None):
        intents = discord.Intents.default()
        intents.message_content = True  # Required to read "!" commands
        super().__init__(intents=intents)

        self.settings = settings
        self.channel_id = int(settings["channel_id"])
        self.guild_id = settings.get("guild_id")
        self.database = database
        self.formatter = formatter
        self.keep_alive = keep_alive

        prefix = settings.get("command_prefix") or "!"
        self.parser = CommandParser(prefix)
        self.boss_commands = BossCommands(database, formatter, prefix=prefix)
        self.notifier = notifier or DiscordNotifier(settings.get("webhook_url"), formatter)
        self.scheduler = AlertScheduler(
            database, ledger, self.notifier, formatter.now,
            thresholds=settings.get("alert_thresholds") or (10, 5, 1),
            templates=settings.get("alert_templates"),
        )

        self.tree = app_commands.CommandTree(self)
        if settings.get("slash_commands_enabled", True):
            self._register_slash_commands()

        self.alert_loop = tasks.loop(seconds=float(settings["check_interval_seconds"]))(self._run_alert_check)

    async def setup_hook(self) -> None:
        if self.keep_alive is not None and not await self.keep_alive.start():
            logger.warning("[HTTP] Continuing without the keep-alive endpoint")
        if self.settings.get("slash_commands_enabled", True):
            await self._sync_slash_commands()

    async def _sync_slash_commands(self) -> None:
        try:
            if self.guild_id:
                guild = discord.Object(id=int(self.guild_id))
                self.tree.copy_global_to(guild=guild)
                synced = await self.tree.sync(guild=guild)
            else:
                synced = await self.tree.sync()
            logger.info(f"[DISCORD] Synced {len(synced)} slash command(s)")
        except discord.HTTPException as e:
            logger.error(f"[DISCORD] Could not sync slash commands: {e}")

    async def on_ready(self) -> None:
        logger.info(f"[DISCORD] Bot logged in as: {self.user}")

        channel = self.get_channel(self.channel_id)
        if channel is None:
            logger.error(f"[DISCORD] Channel {self.channel_id} not found. Please check the ID.")
            return
        self.notifier.bind_channel(channel)

        # on_ready fires again after reconnects
        if not self.alert_loop.is_running():
            self.alert_loop.start()
            logger.info(f"[ALERT] Alert check every {self.settings['check_interval_seconds']}s")

    async def _run_alert_check(self) -> None:
        try:
            await self.scheduler.tick()
        except Exception as e:
            # An unhandled error would stop the loop for good
            logger.error(f"[ALERT] Alert check failed: {e}", exc_info=True)

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return
        if message.channel.id != self.channel_id:
            return

        command = self.parser.parse(message.content)
        if command is None:
            return
        logger.info(f"[COMMAND] {message.author} -> {command.name}")
        await self._send_replies(message.channel, self.boss_commands.execute(command))

    async def _send_replies(self, channel, replies: List[str]) -> None:
        for reply in replies:
            try:
                await channel.send(reply)
            except (discord.HTTPException, aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
                logger.error(f"[DISCORD] Could not send reply: {e!r}")

    def _register_slash_commands(self) -> None:
        async def wrong_channel(interaction: discord.Interaction) -> bool:
            if interaction.channel_id == self.channel_id:
                return False
            await interaction.response.send_message(
                f"Boss timers live in <#{self.channel_id}>.", ephemeral=True
            )
            return True

        async def respond(interaction: discord.Interaction, replies: List[str]) -> None:
            await interaction.response.send_message(replies[0])
            for reply in replies[1:]:
                await interaction.followup.send(reply)

        @self.tree.command(name="list", description="Show upcoming boss respawns")
        async def list_command(interaction: discord.Interaction):
            if await wrong_channel(interaction):
                return
            await respond(interaction, [self.boss_commands.list_bosses()])

        @self.tree.command(name="mail", description="Plain boss/time list for copying")
        async def mail_command(interaction: discord.Interaction):
            if await wrong_channel(interaction):
                return
            await respond(interaction, [self.boss_commands.mail_list()])

        @self.tree.command(name="add", description="Record a boss death time")
        @app_commands.describe(boss="Boss name", time="Death time, HH:mm (24-hour)")
        async def add_command(interaction: discord.Interaction, boss: str, time: str):
            if await wrong_channel(interaction):
                return
            await respond(interaction, self.boss_commands.add(boss, time))

        @add_command.autocomplete("boss")
        async def boss_autocomplete(interaction: discord.Interaction, current: str):
            return [
                app_commands.Choice(name=name, value=name)
                for name in self.boss_names_matching(current)
            ]

    def boss_names_matching(self, current: str) -> List[str]:
        """Boss names containing the typed text, for autocomplete."""
        needle = (current or "").strip().casefold()
        names = [name for name in self.database.get_boss_names() if needle in name.casefold()]
        return names[:MAX_AUTOCOMPLETE_CHOICES]

    async def close(self) -> None:
        if self.alert_loop.is_running():
            self.alert_loop.cancel()
        if self.keep_alive is not None:
            await self.keep_alive.stop()
        await super().close()
