"""Manage the boss database - loading, saving, and querying boss entries."""
import json
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Dict, Union

from .errors import MalformedStoreError, StoreWriteError
from .logger import get_logger
from .timestamp_formatter import TimestampFormatter

logger = get_logger(__name__)

# Older bosses.json field names, mapped to the current ones
LEGACY_FIELD_ALIASES = {
    'boss': 'name',
    'hours': 'respawn_hours',
    'rate': 'drop_rate',
    'deathAt': 'last_killed',
    'spawnAt': 'next_spawn',
}

REQUIRED_FIELDS = ('name', 'respawn_hours')


@dataclass
class Boss:
    """A tracked boss and its spawn prediction."""
    name: str
    respawn_hours: Union[int, float]
    drop_rate: Union[int, float] = 0
    last_killed: Optional[datetime] = None
    next_spawn: Optional[datetime] = None

    @property
    def key(self) -> str:
        """Case-insensitive lookup key."""
        return normalize_name(self.name)


def normalize_name(name: str) -> str:
    return (name or '').strip().casefold()


def _as_number(value, field: str, boss_name: str) -> Union[int, float]:
    # bool is an int subclass but never a valid hour count or rate
    if isinstance(value, bool):
        raise MalformedStoreError(f"Boss '{boss_name}': {field} must be a number, got {value!r}")
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        raise MalformedStoreError(f"Boss '{boss_name}': {field} must be a number, got {value!r}")


class BossDatabase:
    """Manages the boss database stored in JSON format."""

    def __init__(self, db_path: Union[str, Path], formatter: Optional[TimestampFormatter] = None):
        """
        Initialize the boss database.

        The file is not read until load() is called.

        Args:
            db_path: Path to the bosses.json file
            formatter: TimestampFormatter used to parse and write timestamps
        """
        self.db_path = Path(db_path)
        self.formatter = formatter or TimestampFormatter()
        self.bosses: List[Boss] = []
        self._by_key: Dict[str, Boss] = {}

    def load(self) -> None:
        """
        Load bosses from the JSON file, replacing the in-memory collection.

        Accepts {"bosses": [...]} or a bare list of records, and the field
        names of older files (boss, hours, rate, deathAt, spawnAt).

        Raises:
            MalformedStoreError: If the file is missing, is not valid JSON, or a
                record is missing required fields or has invalid values
        """
        logger.info(f"[LOAD] Loading boss database from {self.db_path}")
        try:
            with open(self.db_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            raise MalformedStoreError(f"Boss database not found: {self.db_path}")
        except json.JSONDecodeError as e:
            raise MalformedStoreError(f"Invalid JSON in {self.db_path}: {e}") from e
        except OSError as e:
            raise MalformedStoreError(f"Could not read {self.db_path}: {e}") from e

        if isinstance(data, dict):
            records = data.get('bosses')
        else:
            records = data
        if not isinstance(records, list):
            raise MalformedStoreError(f"{self.db_path} does not contain a list of bosses")

        bosses = [self._boss_from_record(record, index) for index, record in enumerate(records)]

        by_key: Dict[str, Boss] = {}
        for boss in bosses:
            if boss.key in by_key:
                raise MalformedStoreError(f"Duplicate boss name '{boss.name}' in {self.db_path}")
            by_key[boss.key] = boss

        self.bosses = bosses
        self._by_key = by_key

        with_spawn = sum(1 for boss in bosses if boss.next_spawn is not None)
        logger.info(f"[LOAD] Loaded {len(bosses)} bosses ({with_spawn} with a known spawn time)")

    def _boss_from_record(self, record, index: int) -> Boss:
        if not isinstance(record, dict):
            raise MalformedStoreError(f"Boss record #{index} is not an object: {record!r}")
        fields = {LEGACY_FIELD_ALIASES.get(key, key): value for key, value in record.items()}

        missing = [field for field in REQUIRED_FIELDS if fields.get(field) in (None, '')]
        if missing:
            raise MalformedStoreError(f"Boss record #{index} is missing required field(s): {', '.join(missing)}")

        name = str(fields['name']).strip()
        if not name:
            raise MalformedStoreError(f"Boss record #{index} has an empty name")

        drop_rate = fields.get('drop_rate')
        return Boss(
            name=name,
            respawn_hours=_as_number(fields['respawn_hours'], 'respawn_hours', name),
            drop_rate=0 if drop_rate in (None, '') else _as_number(drop_rate, 'drop_rate', name),
            last_killed=self._parse_timestamp(fields.get('last_killed'), 'last_killed', name),
            next_spawn=self._parse_timestamp(fields.get('next_spawn'), 'next_spawn', name),
        )

    def _parse_timestamp(self, value, field: str, boss_name: str) -> Optional[datetime]:
        if value in (None, ''):
            return None
        if not isinstance(value, str):
            raise MalformedStoreError(f"Boss '{boss_name}': {field} must be an ISO timestamp, got {value!r}")
        try:
            return self.formatter.parse_iso(value)
        except ValueError as e:
            raise MalformedStoreError(f"Boss '{boss_name}': invalid {field} '{value}': {e}") from e

    def to_records(self) -> List[Dict]:
        """Serializable form of every boss, in file order."""
        records = []
        for boss in self.bosses:
            records.append({
                'name': boss.name,
                'respawn_hours': boss.respawn_hours,
                'drop_rate': boss.drop_rate,
                'last_killed': self.formatter.to_iso(boss.last_killed) if boss.last_killed else None,
                'next_spawn': self.formatter.to_iso(boss.next_spawn) if boss.next_spawn else None,
            })
        return records

    def save(self) -> None:
        """
        Write all bosses to the JSON file.

        The data goes to a temporary file in the same directory which then
        replaces the database, so readers never see a partial write.

        Raises:
            StoreWriteError: If the file could not be written
        """
        logger.debug(f"[SAVE] Saving {len(self.bosses)} bosses to {self.db_path}")
        payload = {'bosses': self.to_records()}
        tmp_path = None
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.db_path.stem}_", suffix=".tmp", dir=str(self.db_path.parent)
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.db_path)
            tmp_path = None
            logger.info(f"[SAVE] Saved {len(self.bosses)} bosses to {self.db_path}")
        except OSError as e:
            logger.error(f"[SAVE] ERROR saving boss database to {self.db_path}: {e}", exc_info=True)
            raise StoreWriteError(f"Could not save {self.db_path}: {e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def exists(self, name: str) -> bool:
        return normalize_name(name) in self._by_key

    def get_boss(self, name: str) -> Optional[Boss]:
        """Case-insensitive exact lookup. Returns None if no boss has this name."""
        return self._by_key.get(normalize_name(name))

    def get_all_bosses(self) -> List[Boss]:
        return list(self.bosses)

    def get_boss_names(self) -> List[str]:
        """Boss names sorted alphabetically (for autocomplete)."""
        return sorted((boss.name for boss in self.bosses), key=str.casefold)
