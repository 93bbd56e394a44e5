"""Operational utilities for centerledger."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Optional


class StructuredLogger:
    """Write JSON lines log entries for admin inspection."""

    def __init__(self, *, path: Path | None = None, max_entries: int = 1000) -> None:
        self.path = path
        self.max_entries = max_entries
        self._entries: list[dict] = []

    def log(self, event_type: str, **fields: object) -> dict:
        entry = {"timestamp": datetime.utcnow().isoformat(), "event": event_type, **fields}
        self._entries.append(entry)
        if len(self._entries) > self.max_entries:
            del self._entries[: len(self._entries) - self.max_entries]
        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(entry, default=str, ensure_ascii=False) + "\n")
        return entry

    def tail(self, limit: int = 50) -> tuple[dict, ...]:
        return tuple(self._entries[-limit:])

    def events(self, event_type: str) -> tuple[dict, ...]:
        """Return every retained entry of ``event_type``."""

        return tuple(entry for entry in self._entries if entry["event"] == event_type)

    def clear(self) -> None:
        self._entries.clear()


_DEFAULT_LOGGER: Optional[StructuredLogger] = None


def get_logger() -> StructuredLogger:
    """Return the process-wide logger shared by components without their own."""

    global _DEFAULT_LOGGER
    if _DEFAULT_LOGGER is None:
        _DEFAULT_LOGGER = StructuredLogger()
    return _DEFAULT_LOGGER


__all__ = ["StructuredLogger", "get_logger"]
