"""Test the tracker clock and timestamp formatting."""
import sys
import io
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

from boss_timer.timestamp_formatter import TimestampFormatter, DEFAULT_TIMEZONE


def test_timestamp_formatter():
    """Test timestamp formatter."""
    print("Testing Timestamp Formatter...")
    print("=" * 60)

    formatter = TimestampFormatter()
    assert formatter.tz.zone == DEFAULT_TIMEZONE, "Default zone should be UTC+7"
    print(f"[OK] Formatter created ({formatter.tz.zone})")

    # now() is in the fixed zone, not UTC or the host zone
    now = formatter.now()
    assert now.utcoffset().total_seconds() == 7 * 3600, f"Offset should be +07:00, got {now.utcoffset()}"
    print(f"[OK] now() = {now.isoformat()}")

    # Naive timestamps are wall-clock time in the zone
    dt = formatter.parse_iso("2026-03-10T14:30:00")
    assert dt.hour == 14 and dt.minute == 30, "Naive time should be kept"
    assert dt.utcoffset().total_seconds() == 7 * 3600, "Naive time should be localized"
    print("[OK] Naive ISO timestamp localized")

    # Offsets are converted into the zone
    dt_utc = formatter.parse_iso("2026-03-10T07:30:00Z")
    assert formatter.format_time(dt_utc) == "14:30", f"07:30Z should be 14:30 local, got {formatter.format_time(dt_utc)}"
    print("[OK] UTC timestamp converted")

    iso = formatter.to_iso(dt)
    assert iso == "2026-03-10T14:30:00+07:00", f"Unexpected ISO: {iso}"
    assert formatter.parse_iso(iso) == dt, "ISO round trip should be exact"
    print("[OK] ISO round trip")

    discord_ts = formatter.format_discord_timestamp_relative(dt)
    expected = int(pytz.utc.localize(datetime(2026, 3, 10, 7, 30)).timestamp())
    assert discord_ts == f"<t:{expected}:R>", f"Unexpected Discord timestamp: {discord_ts}"
    print(f"[OK] Discord timestamp (relative): {discord_ts}")

    print("\n" + "=" * 60)
    print("All tests passed!")


def test_unknown_timezone_keeps_default():
    formatter = TimestampFormatter("Not/AZone")
    assert formatter.tz.zone == DEFAULT_TIMEZONE, "Unknown zone should fall back to the default"

    formatter.set_timezone("Asia/Singapore")
    assert formatter.tz.zone == "Asia/Singapore"
    formatter.set_timezone("Nowhere/Else")
    assert formatter.tz.zone == "Asia/Singapore", "Bad name should keep the current zone"
    print("[OK] Unknown timezone names ignored")


if __name__ == "__main__":
    test_timestamp_formatter()
    test_unknown_timezone_keeps_default()
