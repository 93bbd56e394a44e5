"""Toast notifications raised by the ledger controllers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Sequence


class ToastLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(slots=True)
class Toast:
    """A message waiting to be shown to the user."""

    level: ToastLevel
    message: str
    created_at: datetime = field(default_factory=datetime.utcnow)

    def as_dict(self) -> dict:
        return {"level": self.level.value, "message": self.message, "created_at": self.created_at.isoformat()}


class Toaster:
    """In-memory toast queue shared by every section of a dashboard."""

    def __init__(self) -> None:
        self._queue: List[Toast] = []
        self._shown: List[Toast] = []

    def push(self, level: ToastLevel, message: str) -> Toast:
        toast = Toast(level=level, message=message)
        self._queue.append(toast)
        return toast

    def success(self, message: str) -> Toast:
        return self.push(ToastLevel.SUCCESS, message)

    def error(self, message: str) -> Toast:
        return self.push(ToastLevel.ERROR, message)

    def info(self, message: str) -> Toast:
        return self.push(ToastLevel.INFO, message)

    def pending(self, *, level: ToastLevel | None = None) -> Sequence[Toast]:
        if level is None:
            return tuple(self._queue)
        return tuple(toast for toast in self._queue if toast.level is level)

    def pop_all(self) -> Sequence[Toast]:
        pending = tuple(self._queue)
        self._queue.clear()
        self._shown.extend(pending)
        return pending

    def history(self) -> Sequence[Toast]:
        """Every toast raised so far, shown or not."""

        return tuple(self._shown) + tuple(self._queue)

    def last(self) -> Toast | None:
        if self._queue:
            return self._queue[-1]
        return self._shown[-1] if self._shown else None


__all__ = ["Toast", "ToastLevel", "Toaster"]
