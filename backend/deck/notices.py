"""Informational notices for the viewer (what the browser showed as toasts)."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from backend.config import settings, utcnow


class NoticeLevel(Enum):
    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True)
class Notice:
    title: str
    description: str
    level: NoticeLevel = NoticeLevel.INFO
    created_at: datetime = field(default_factory=utcnow)


class NoticeLog:
    """Bounded backlog of notices waiting to be shown; the oldest drop off first."""

    def __init__(self, maxlen: int | None = None) -> None:
        self._notices: deque[Notice] = deque(maxlen=maxlen or settings.notice_backlog)

    def __len__(self) -> int:
        return len(self._notices)

    def post(
        self, title: str, description: str, level: NoticeLevel = NoticeLevel.INFO
    ) -> Notice:
        notice = Notice(title=title, description=description, level=level)
        self._notices.append(notice)
        return notice

    def drain(self) -> list[Notice]:
        """Return all pending notices and forget them."""
        notices = list(self._notices)
        self._notices.clear()
        return notices
