"""Exceptions raised by the boss timer core."""


class BossTimerError(Exception):
    """Base class for all boss timer errors."""


class MalformedStoreError(BossTimerError):
    """The boss file is not valid JSON or a record is missing required fields."""


class StoreWriteError(BossTimerError):
    """The boss file could not be written."""


class BossNotFoundError(BossTimerError):
    """No boss matches the requested name."""

    def __init__(self, name: str):
        super().__init__(f"Boss not found: {name}")
        self.name = name


class InvalidTimeFormatError(BossTimerError):
    """A reported death time is not a valid HH:MM 24-hour time."""

    def __init__(self, value: str):
        super().__init__(f"Invalid time '{value}' (expected HH:MM, 24-hour)")
        self.value = value


class InvalidCycleError(BossTimerError):
    """A boss has a zero or negative respawn interval."""

    def __init__(self, name: str, respawn_hours):
        super().__init__(f"Boss '{name}' has invalid respawn time {respawn_hours}h")
        self.name = name
        self.respawn_hours = respawn_hours


class ConfigurationError(BossTimerError):
    """Required settings (token, channel) are missing or invalid."""
