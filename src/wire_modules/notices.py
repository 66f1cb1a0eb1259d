"""Notices: user-facing messages, warnings and errors from module operations.

Every notice is also written to the log, so apps that don't display notices
still get the record.
"""

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class NoticeLevel(str, Enum):
    MESSAGE = "message"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notice:
    level: NoticeLevel
    text: str


class Notices:
    """Collected notices, in the order they were raised."""

    _LOG_LEVELS = {
        NoticeLevel.MESSAGE: logging.INFO,
        NoticeLevel.WARNING: logging.WARNING,
        NoticeLevel.ERROR: logging.ERROR,
    }

    def __init__(self):
        self._items: list[Notice] = []

    def add(self, level: NoticeLevel, text: str) -> Notice:
        notice = Notice(level=level, text=text)
        self._items.append(notice)
        logger.log(self._LOG_LEVELS[level], text)
        return notice

    def message(self, text: str) -> Notice:
        return self.add(NoticeLevel.MESSAGE, text)

    def warning(self, text: str) -> Notice:
        return self.add(NoticeLevel.WARNING, text)

    def error(self, text: str) -> Notice:
        return self.add(NoticeLevel.ERROR, text)

    def filter(self, level: NoticeLevel) -> list[Notice]:
        return [n for n in self._items if n.level == level]

    @property
    def messages(self) -> list[str]:
        return [n.text for n in self.filter(NoticeLevel.MESSAGE)]

    @property
    def warnings(self) -> list[str]:
        return [n.text for n in self.filter(NoticeLevel.WARNING)]

    @property
    def errors(self) -> list[str]:
        return [n.text for n in self.filter(NoticeLevel.ERROR)]

    def clear(self) -> None:
        self._items.clear()

    def __iter__(self):
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)
