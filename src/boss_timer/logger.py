"""Logging for the bot and the libraries it drives."""
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

ROOT_LOGGER_NAME = 'boss_timer'

# Third-party loggers routed to the same file and console
LIBRARY_LOGGERS = ('discord', 'aiohttp')

FILE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s'
CONSOLE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'


class FlushingStreamHandler(logging.StreamHandler):
    """Flushes after every record so hosted consoles show output immediately."""

    def emit(self, record):
        super().emit(record)
        self.flush()


def _build_handlers(log_file: Path, log_level: int) -> List[logging.Handler]:
    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))

    console_handler = FlushingStreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))

    for handler in (file_handler, console_handler):
        handler.setLevel(log_level)
    return [file_handler, console_handler]


def setup_logging(log_dir: Optional[Path] = None, log_level: int = logging.INFO,
                  library_level: Optional[int] = None) -> logging.Logger:
    """
    Send bot logs to a dated file and the console.

    discord.py and aiohttp share the handlers. They log at WARNING unless
    library_level says otherwise; in debug mode they follow log_level.

    Args:
        log_dir: Directory for log files (defaults to ./data/logs)
        log_level: Level for the bot's own loggers
        library_level: Level for third-party loggers

    Returns:
        The configured root logger of the bot
    """
    if log_dir is None:
        log_dir = Path.cwd() / "data" / "logs"
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"boss_timer_{datetime.now().strftime('%Y%m%d')}.log"

    if library_level is None:
        library_level = log_level if log_level <= logging.DEBUG else logging.WARNING

    handlers = _build_handlers(log_file, min(log_level, library_level))

    for name, level in [(ROOT_LOGGER_NAME, log_level)] + [(lib, library_level) for lib in LIBRARY_LOGGERS]:
        target = logging.getLogger(name)
        # Re-running setup replaces handlers instead of duplicating output
        for old in list(target.handlers):
            target.removeHandler(old)
            old.close()
        for handler in handlers:
            target.addHandler(handler)
        target.setLevel(level)
        target.propagate = False

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.info("=" * 80)
    logger.info(f"Boss Timer Bot - logging to {log_file}")
    logger.info("=" * 80)
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Logger under the bot's root, e.g. boss_timer.spawn_engine.

    Before setup_logging runs (tests, imports) there are no handlers, so only
    warnings and errors reach stderr through logging's last-resort handler.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + '.'):
        return logging.getLogger(name)
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')
