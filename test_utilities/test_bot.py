"""Test the Discord client wiring without connecting to Discord."""
import sys
import io
import asyncio
import json
import shutil
import tempfile
from pathlib import Path
from types import SimpleNamespace

# Fix Windows console encoding (only if not already wrapped)
if sys.platform == 'win32':
    if not isinstance(sys.stdout, io.TextIOWrapper) or (hasattr(sys.stdout, 'encoding') and sys.stdout.encoding != 'utf-8'):
        sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')

# Add project root and src to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(project_root / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from boss_timer.bot import BossTimerBot
from boss_timer.boss_database import BossDatabase
from boss_timer.notification_ledger import NotificationLedger
from boss_timer.settings import DEFAULT_SETTINGS
from boss_timer.timestamp_formatter import TimestampFormatter
from mock_discord import MockChannel

CHANNEL_ID = 4242


def _message(content: str, channel, bot_author: bool = False):
    author = SimpleNamespace(bot=bot_author, name="tester")
    return SimpleNamespace(content=content, channel=channel, author=author)


def _bot(temp_dir: Path) -> BossTimerBot:
    db_path = temp_dir / "bosses.json"
    with open(db_path, 'w', encoding='utf-8') as f:
        json.dump({"bosses": [
            {"name": "Venatus", "respawn_hours": 10, "drop_rate": 5},
            {"name": "Lady Dalia", "respawn_hours": 18, "drop_rate": 2},
            {"name": "General Aquileus", "respawn_hours": 29, "drop_rate": 1},
        ]}, f)
    formatter = TimestampFormatter()
    db = BossDatabase(db_path, formatter)
    db.load()
    settings = dict(DEFAULT_SETTINGS, discord_token="token", channel_id=CHANNEL_ID)
    return BossTimerBot(settings, db, NotificationLedger(), formatter)


def test_bot_dispatch():
    """Test message commands reach the command handlers."""
    print("Testing Bot Dispatch...")
    print("=" * 60)

    temp_dir = Path(tempfile.mkdtemp())
    try:
        bot = _bot(temp_dir)
        channel = MockChannel(channel_id=CHANNEL_ID)
        other = MockChannel(channel_id=CHANNEL_ID + 1)

        asyncio.run(bot.on_message(_message("!list", channel)))
        assert len(channel.sent_messages) == 1 and channel.sent_messages[0].startswith("📆 Next Respawns:")
        print("[OK] !list answered")

        channel.clear_messages()
        asyncio.run(bot.on_message(_message("!add venatus 00:00", channel)))
        assert channel.sent_messages[0] == "✅ **Venatus** - 10:00", f"Unexpected: {channel.sent_messages}"
        assert len(channel.sent_messages) == 2
        print("[OK] !add answered with confirmation and list")

        asyncio.run(bot.on_message(_message("!list", other)))
        asyncio.run(bot.on_message(_message("!list", channel, bot_author=True)))
        asyncio.run(bot.on_message(_message("just chatting", channel)))
        assert other.sent_messages == [] and len(channel.sent_messages) == 2
        print("[OK] Other channels, bots and chatter ignored")

        # Replies that fail to send are logged, not raised
        channel.fail = True
        asyncio.run(bot.on_message(_message("!mail", channel)))
        print("[OK] Failed reply does not raise")

        print("\n" + "=" * 60)
        print("All tests passed!")
    finally:
        shutil.rmtree(temp_dir)


def test_slash_commands_and_autocomplete():
    temp_dir = Path(tempfile.mkdtemp())
    try:
        bot = _bot(temp_dir)
        names = sorted(command.name for command in bot.tree.get_commands())
        assert names == ["add", "list", "mail"], f"Unexpected slash commands: {names}"

        assert bot.boss_names_matching("") == ["General Aquileus", "Lady Dalia", "Venatus"]
        assert bot.boss_names_matching("DAL") == ["Lady Dalia"]
        assert bot.boss_names_matching("zzz") == []
        print("[OK] Slash commands registered, autocomplete filters names")
    finally:
        shutil.rmtree(temp_dir)


if __name__ == "__main__":
    test_bot_dispatch()
    test_slash_commands_and_autocomplete()
