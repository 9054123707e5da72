#taskflow/models/priority.py
import enum
from typing import Any, Optional


class Priority(enum.IntEnum):
    """
    Task priority. Stored as an integer; ordering matters (Low < Normal < High < Critical).
    """
    LOW = 0
    NORMAL = 1
    HIGH = 2
    CRITICAL = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: Any, default: Optional["Priority"] = None) -> Optional["Priority"]:
        """
        Lenient conversion: accepts a Priority, a defined integer, or a name in any case.
        Anything else returns `default` instead of raising.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return default
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                return default
        if isinstance(value, str):
            key = value.strip()
            if key.isdigit():
                return cls.parse(int(key), default)
            try:
                return cls[key.upper()]
            except KeyError:
                return default
        return default


DEFAULT_PRIORITY = Priority.NORMAL
