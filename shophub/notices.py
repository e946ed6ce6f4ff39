"""User-facing notices (the storefront's toast messages)."""
from enum import Enum
from typing import Callable

from shophub.logging import get_logger

logger = get_logger(__name__)


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


Notifier = Callable[[NoticeLevel, str], None]


def log_notifier(level: NoticeLevel, message: str) -> None:
    """Default notifier when no view is attached: just log."""
    if level is NoticeLevel.ERROR:
        logger.warning("Notice: %s", message)
    else:
        logger.info("Notice: %s", message)


class NoticeCollector:
    """Notifier that records notices, for views that render them in batches."""

    def __init__(self):
        self.notices: list[tuple[NoticeLevel, str]] = []

    def __call__(self, level: NoticeLevel, message: str) -> None:
        self.notices.append((level, message))

    def messages(self, level: NoticeLevel | None = None) -> list[str]:
        return [msg for lvl, msg in self.notices if level is None or lvl is level]

    def clear(self) -> None:
        self.notices.clear()
