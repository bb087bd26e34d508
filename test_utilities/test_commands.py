"""Test chat command parsing and the command replies."""
import sys
import io
import json
import shutil
import tempfile
from datetime import datetime
from pathlib import Path

import pytz

# Fix Windows console encoding (only if not already wrapped)
if sys.platform == 'win32':
    if not isinstance(sys.stdout, io.TextIOWrapper) or (hasattr(sys.stdout, 'encoding') and sys.stdout.encoding != 'utf-8'):
        sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')

# Add project root and src to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(project_root / "src"))

from boss_timer.boss_database import BossDatabase
from boss_timer.command_parser import CommandParser, ADD, ADD_MULTI, LIST, MAIL, HELP, USAGE_ERROR
from boss_timer.commands import BossCommands, LIST_HEADER
from boss_timer.timestamp_formatter import TimestampFormatter

TZ = pytz.timezone("Asia/Ho_Chi_Minh")


def at(day: int, hour: int, minute: int = 0) -> datetime:
    return TZ.localize(datetime(2026, 3, day, hour, minute))


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _commands(temp_dir: Path, records, now: datetime):
    db_path = temp_dir / "bosses.json"
    with open(db_path, 'w', encoding='utf-8') as f:
        json.dump({"bosses": records}, f)
    formatter = TimestampFormatter("Asia/Ho_Chi_Minh")
    db = BossDatabase(db_path, formatter)
    db.load()
    clock = FixedClock(now)
    return BossCommands(db, formatter, clock=clock), db, clock


def test_command_parser():
    """Test command parser."""
    print("Testing Command Parser...")
    print("=" * 60)

    parser = CommandParser()

    assert parser.parse("!list").name == LIST
    assert parser.parse("  !MAIL ").name == MAIL
    assert parser.parse("!help").name == HELP
    print("[OK] Simple commands parsed")

    parsed = parser.parse("!add Lady Dalia 14:30")
    assert parsed.name == ADD
    assert parsed.entries == [("Lady Dalia", "14:30")], f"Unexpected entries: {parsed.entries}"
    print("[OK] Multi-word boss name split from time")

    parsed = parser.parse("!add Venatus")
    assert parsed.name == USAGE_ERROR and "!add <boss name> <HH:mm>" in parsed.error
    print("[OK] Missing time gives usage error")

    parsed = parser.parse("!addmulti\nVenatus 10:00\n\n  General Aquileus 11:15  \nlonely\nEgo 25:00")
    assert parsed.name == ADD_MULTI
    assert parsed.entries == [("Venatus", "10:00"), ("General Aquileus", "11:15"), ("Ego", "25:00")], \
        f"Unexpected entries: {parsed.entries}"
    print("[OK] addmulti lines parsed, short lines skipped")

    assert parser.parse("hello there") is None, "Plain chat is not a command"
    assert parser.parse("!dance") is None, "Unknown commands are ignored"
    assert parser.parse("!") is None
    assert CommandParser("?").parse("?list").name == LIST, "Prefix is configurable"
    print("[OK] Non-commands ignored")

    print("\n" + "=" * 60)
    print("All tests passed!")


def test_list_sorted_across_midnight():
    temp_dir = Path(tempfile.mkdtemp())
    try:
        records = [
            {"name": "Late", "respawn_hours": 24, "drop_rate": 5, "next_spawn": "2026-03-10T23:50:00+07:00"},
            {"name": "Early", "respawn_hours": 8, "drop_rate": 2.5, "next_spawn": "2026-03-11T00:10:00+07:00"},
            {"name": "Nobody Knows", "respawn_hours": 12, "drop_rate": 1},
        ]
        commands, db, _ = _commands(temp_dir, records, at(10, 23, 55))

        reply = commands.list_bosses()
        assert reply.split("\n") == [
            LIST_HEADER,
            "Early (2.5%) — 00:10 (8h)",
            "Late (5%) — 23:50 (24h)",
            "Nobody Knows (1%) — --:-- (12h)",
        ], f"Unexpected list:\n{reply}"
        # Listing rolled the passed spawn forward and saved it
        assert db.get_boss("Late").next_spawn == at(11, 23, 50)
        with open(temp_dir / "bosses.json", encoding='utf-8') as f:
            saved = {b["name"]: b for b in json.load(f)["bosses"]}
        assert saved["Late"]["next_spawn"] == "2026-03-11T23:50:00+07:00"
        print("[OK] List sorted by time remaining across midnight")

        assert commands.mail_list() == "Early 00:10\nLate 23:50", "mail skips unknown spawns"
        print("[OK] Mail list")
    finally:
        shutil.rmtree(temp_dir)


def test_add_and_addmulti():
    temp_dir = Path(tempfile.mkdtemp())
    try:
        records = [
            {"name": "Alpha", "respawn_hours": 8, "drop_rate": 10},
            {"name": "Lady Dalia", "respawn_hours": 18, "drop_rate": 5},
        ]
        commands, db, clock = _commands(temp_dir, records, at(10, 15, 0))

        replies = commands.execute(CommandParser().parse("!add alpha 14:30"))
        assert replies[0] == "✅ **Alpha** - 22:30", f"Unexpected reply: {replies[0]}"
        assert replies[1].startswith(LIST_HEADER) and "Alpha (10%) — 22:30 (8h)" in replies[1]
        reloaded = BossDatabase(temp_dir / "bosses.json")
        reloaded.load()
        assert reloaded.get_boss("Alpha").last_killed == at(10, 14, 30), "add should persist"
        print("[OK] add records death and saves")

        before = (temp_dir / "bosses.json").read_bytes()
        assert commands.add("Nobody", "10:00") == ["❌ Boss not found: Nobody"]
        assert commands.add("Alpha", "25:00")[0].startswith("❌ Invalid time '25:00'")
        assert (temp_dir / "bosses.json").read_bytes() == before, "Failed add must not save"
        print("[OK] add failures reported")

        replies = commands.add_multi([("Lady Dalia", "16:00"), ("Nobody", "01:00"), ("Alpha", "9:99")])
        results = replies[0].split("\n")
        assert results[0] == "✅ **Lady Dalia** - 10:00", f"Yesterday 16:00 + 18h, got {results[0]}"
        assert results[1] == "❌ Boss not found: Nobody"
        assert results[2].startswith("❌ Invalid time")
        assert replies[1].startswith(LIST_HEADER)
        assert db.get_boss("Lady Dalia").last_killed == at(9, 16, 0)
        print("[OK] addmulti keeps going after a bad line")

        assert commands.add_multi([])[0].startswith("❌ Syntax")
        assert "`!list`" in commands.execute(CommandParser().parse("!help"))[0]
        print("[OK] Usage and help replies")
    finally:
        shutil.rmtree(temp_dir)


if __name__ == "__main__":
    test_command_parser()
    test_list_sorted_across_midnight()
    test_add_and_addmulti()
