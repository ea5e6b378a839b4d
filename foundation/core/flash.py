"""
Flash messages: short notifications that survive exactly one read.

A message is written during one request (usually right before a redirect) and
read while rendering the next one. Each severity holds at most one pending
message; writing another message of the same severity replaces the first.

All data lives in a single mapping stored under ``SESSION_KEY`` inside the
session that is handed in. ``Flash`` only reads and writes that key; the
session itself is created, persisted and expired elsewhere.
"""

from enum import Enum
from typing import Dict, MutableMapping, Optional, Union

SESSION_KEY = "foundation.flash"


class Severity(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"


SeverityLike = Union[Severity, str]


def _key(severity: SeverityLike) -> str:
    if isinstance(severity, Severity):
        return severity.value
    return str(severity)


class Flash:
    """Writes and retrieves flash messages stored in a session"""

    def __init__(self, session: MutableMapping):
        self.session = session

    def _pending(self) -> Dict[str, str]:
        messages = self.session.get(SESSION_KEY)
        if not isinstance(messages, dict):
            return {}
        return messages

    def set(self, severity: SeverityLike, message: str) -> None:
        """
        Write a message of the given severity.

        The message lives until it is retrieved, which is usually done on the
        very next request. A pending message of the same severity is replaced.
        """
        messages = dict(self._pending())
        messages[_key(severity)] = str(message)
        # Assign a fresh mapping so session backends that track writes see it
        self.session[SESSION_KEY] = messages

    def get(self, severity: SeverityLike) -> Optional[str]:
        """Return and remove the pending message of the given severity, if any"""
        messages = self._pending()
        key = _key(severity)
        if key not in messages:
            return None

        remaining = dict(messages)
        message = remaining.pop(key)
        self.session[SESSION_KEY] = remaining
        return message

    def has(self, severity: SeverityLike) -> bool:
        return _key(severity) in self._pending()

    def has_any(self) -> bool:
        return len(self._pending()) > 0

    def get_all(self) -> Dict[str, str]:
        """
        Return every pending message indexed by severity and clear them all.

        The stored mapping is replaced in a single assignment, so no message
        can be returned here and again by a later ``get``.
        """
        messages = self._pending()
        if not messages:
            return {}

        self.session[SESSION_KEY] = {}
        return dict(messages)

    def success(self, message: str) -> None:
        self.set(Severity.SUCCESS, message)

    def info(self, message: str) -> None:
        self.set(Severity.INFO, message)

    def warning(self, message: str) -> None:
        self.set(Severity.WARNING, message)

    def danger(self, message: str) -> None:
        self.set(Severity.DANGER, message)

    def has_success(self) -> bool:
        return self.has(Severity.SUCCESS)

    def has_info(self) -> bool:
        return self.has(Severity.INFO)

    def has_warning(self) -> bool:
        return self.has(Severity.WARNING)

    def has_danger(self) -> bool:
        return self.has(Severity.DANGER)

    def get_success(self) -> Optional[str]:
        return self.get(Severity.SUCCESS)

    def get_info(self) -> Optional[str]:
        return self.get(Severity.INFO)

    def get_warning(self) -> Optional[str]:
        return self.get(Severity.WARNING)

    def get_danger(self) -> Optional[str]:
        return self.get(Severity.DANGER)
