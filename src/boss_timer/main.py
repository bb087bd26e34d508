"""Main application entry point."""
import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .bot import BossTimerBot
from .boss_database import BossDatabase
from .errors import ConfigurationError, MalformedStoreError
from .keep_alive import KeepAliveServer
from .logger import setup_logging, get_logger
from .notification_ledger import NotificationLedger
from .settings import load_settings, validate_settings
from .timestamp_formatter import TimestampFormatter


def _resolve_log_level(args: argparse.Namespace) -> int:
    if args.debug or os.getenv('BOSS_TIMER_DEBUG', '').lower() in ('1', 'true', 'yes'):
        return logging.DEBUG
    if args.log_level:
        return getattr(logging, args.log_level)
    level_str = os.getenv('BOSS_TIMER_LOG_LEVEL', '').upper()
    if level_str and isinstance(getattr(logging, level_str, None), int):
        return getattr(logging, level_str)
    return logging.INFO


def main(argv: Optional[List[str]] = None) -> int:
    """Application entry point."""
    parser = argparse.ArgumentParser(description='Boss Timer Bot')
    parser.add_argument('--debug', '-d', action='store_true',
                        help='Enable debug logging (verbose)')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Set logging level (DEBUG, INFO, WARNING, ERROR)')
    parser.add_argument('--settings', default='settings.json',
                        help='Path to settings.json (default: ./settings.json)')
    parser.add_argument('--bosses', help='Path to bosses.json (overrides settings)')
    parser.add_argument('--log-dir', help='Directory for log files (default: ./data/logs)')
    args = parser.parse_args(argv)

    setup_logging(Path(args.log_dir) if args.log_dir else None, _resolve_log_level(args))
    logger = get_logger(__name__)

    settings = load_settings(Path(args.settings))
    if args.bosses:
        settings['bosses_file'] = args.bosses
    try:
        validate_settings(settings)
    except ConfigurationError as e:
        logger.error(f"[STARTUP] Configuration error: {e}")
        return 1

    formatter = TimestampFormatter(settings['timezone'])
    database = BossDatabase(settings['bosses_file'], formatter)
    try:
        database.load()
    except MalformedStoreError as e:
        logger.critical(f"[STARTUP] Cannot start without valid boss data: {e}")
        return 1

    ledger = NotificationLedger(float(settings['alert_retention_hours']))

    keep_alive = None
    if settings.get('keep_alive_enabled', True):
        keep_alive = KeepAliveServer(port=int(settings['keep_alive_port']))

    bot = BossTimerBot(settings, database, ledger, formatter, keep_alive=keep_alive)
    if keep_alive is not None:
        keep_alive.bot_user = lambda: str(bot.user) if bot.user else None

    logger.info(f"[STARTUP] Tracking {len(database.bosses)} bosses in {formatter.tz.zone}, "
                f"channel {settings['channel_id']}")
    # Logging is already configured; keep discord.py from installing its own handler
    bot.run(settings['discord_token'], log_handler=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
