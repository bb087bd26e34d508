"""Load bot settings from defaults, settings.json and the environment."""
import copy
import json
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError
from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_SETTINGS = {
    "discord_token": "",
    "channel_id": None,
    "guild_id": None,               # Slash commands sync instantly to this guild when set
    "webhook_url": "",              # Used for alerts only if the bot channel is unavailable
    "timezone": "Asia/Ho_Chi_Minh",
    "bosses_file": "bosses.json",
    "check_interval_seconds": 30,   # Must stay well under a minute for exact-minute alerts
    "alert_thresholds": [10, 5, 1],
    "alert_templates": {},          # {"10": "..."} overrides the built-in alert texts
    "alert_retention_hours": 3,
    "command_prefix": "!",
    "keep_alive_enabled": True,
    "keep_alive_port": 3000,
    "slash_commands_enabled": True,
}

# Environment variable -> (setting, converter)
ENV_OVERRIDES = {
    "DISCORD_TOKEN": ("discord_token", str),
    "DISCORD_CHANNEL_ID": ("channel_id", int),
    "DISCORD_GUILD_ID": ("guild_id", int),
    "DISCORD_WEBHOOK_URL": ("webhook_url", str),
    "BOSS_TIMER_TIMEZONE": ("timezone", str),
    "BOSSES_FILE": ("bosses_file", str),
    "PORT": ("keep_alive_port", int),
}


def load_settings(settings_path: Optional[Path] = None,
                  environ: Optional[Mapping[str, str]] = None) -> Dict:
    """
    Build the effective settings.

    Later sources win: built-in defaults, then settings.json (if it exists),
    then environment variables (a .env file is loaded first).

    Args:
        settings_path: Path to settings.json (optional)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Settings dictionary
    """
    settings = copy.deepcopy(DEFAULT_SETTINGS)

    if settings_path is not None:
        settings_path = Path(settings_path)
        if settings_path.exists():
            try:
                with open(settings_path, 'r', encoding='utf-8') as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    settings.update(loaded)
                    logger.info(f"[SETTINGS] Loaded from {settings_path!s}")
                else:
                    logger.error(f"[SETTINGS] {settings_path!s} is not a JSON object, ignoring it")
            except (json.JSONDecodeError, IOError) as e:
                logger.error(f"[SETTINGS] Error loading settings from {settings_path!s}: {e}", exc_info=True)
        else:
            logger.info(f"[SETTINGS] File not found: {settings_path!s}, using defaults")

    if environ is None:
        load_dotenv()
        environ = os.environ

    for variable, (key, convert) in ENV_OVERRIDES.items():
        raw = environ.get(variable)
        if raw is None or not raw.strip():
            continue
        try:
            settings[key] = convert(raw.strip())
        except ValueError:
            logger.error(f"[SETTINGS] Ignoring {variable}={raw!r}: not a valid {convert.__name__}")

    return settings


def validate_settings(settings: Dict) -> None:
    """
    Check the settings needed to run the bot.

    Raises:
        ConfigurationError: If the token or channel id is missing or invalid
    """
    if not (settings.get("discord_token") or "").strip():
        raise ConfigurationError("DISCORD_TOKEN is not set")
    try:
        settings["channel_id"] = int(settings.get("channel_id"))
    except (TypeError, ValueError):
        raise ConfigurationError("DISCORD_CHANNEL_ID is not set or not a number")
    if settings.get("guild_id") not in (None, ""):
        try:
            settings["guild_id"] = int(settings["guild_id"])
        except (TypeError, ValueError):
            raise ConfigurationError("DISCORD_GUILD_ID is not a number")
    try:
        interval = float(settings.get("check_interval_seconds"))
    except (TypeError, ValueError):
        interval = 0
    if interval <= 0:
        raise ConfigurationError("check_interval_seconds must be a positive number")
