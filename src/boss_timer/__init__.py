"""Boss Timer - tracks boss respawn timers and posts reminders to Discord."""

__version__ = "1.0.0"
