"""Browser-like local persistence for the attendance ledger.

``KeyValueStore`` plays the part of durable local storage, ``CookieJar`` the
part of the size-bounded cookie mirror. ``AttendanceCache`` writes both on
every save and reads the durable copy first.
"""

from __future__ import annotations

import json
import random
import string
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, List, Optional
from urllib.parse import quote

from .models import AttendanceRecord
from .ops import StructuredLogger, get_logger

STORAGE_KEY = "attendanceSystem"
DATA_COOKIE = "attendanceData"
STATS_COOKIE = "attendanceStats"
CHANGE_EVENT = "attendanceDataChanged"

DATA_COOKIE_DAYS = 365
STATS_COOKIE_DAYS = 7
COOKIE_MIRROR_SIZE = 20
MAX_COOKIE_BYTES = 4096
# Characters a browser cookie library leaves unescaped in values.
COOKIE_SAFE_CHARS = "#$&+/:<=>?@[]^`{|}"

Clock = Callable[[], datetime]


def _now_ms(clock: Clock) -> int:
    return int(clock().timestamp() * 1000)


def _compact_json(value: object) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def random_suffix(length: int = 9) -> str:
    alphabet = string.ascii_lowercase + string.digits
    return "".join(random.choice(alphabet) for _ in range(length))


class KeyValueStore:
    """String key/value storage kept in a JSON file, or in memory without a path."""

    def __init__(self, path: Path | None = None, *, logger: StructuredLogger | None = None) -> None:
        self.path = path
        self.logger = logger or get_logger()
        self._items: Dict[str, str] = {}
        if path is not None and path.exists():
            try:
                loaded = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                self.logger.log("local_storage_unreadable", path=str(path), error=str(exc))
            else:
                if isinstance(loaded, dict):
                    self._items = {str(key): str(value) for key, value in loaded.items()}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value
        self._flush()

    def remove_item(self, key: str) -> None:
        if self._items.pop(key, None) is not None:
            self._flush()

    def clear(self) -> None:
        self._items.clear()
        self._flush()

    def _flush(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._items, ensure_ascii=False), encoding="utf-8")


class CookieJar:
    """Named cookies with an expiry and a per-cookie size limit."""

    def __init__(
        self,
        path: Path | None = None,
        *,
        clock: Clock = datetime.now,
        max_bytes: int = MAX_COOKIE_BYTES,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.path = path
        self.clock = clock
        self.max_bytes = max_bytes
        self.logger = logger or get_logger()
        self._cookies: Dict[str, Dict[str, str]] = {}
        if path is not None and path.exists():
            try:
                loaded = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                self.logger.log("cookie_jar_unreadable", path=str(path), error=str(exc))
            else:
                if isinstance(loaded, dict):
                    self._cookies = {name: entry for name, entry in loaded.items() if isinstance(entry, dict) and "value" in entry}

    def set(self, name: str, value: str, expires_days: int | None = None) -> bool:
        """Store ``value``; returns ``False`` when the encoded cookie is too large."""

        size = len(f"{name}={quote(value, safe=COOKIE_SAFE_CHARS)}".encode("utf-8"))
        if size > self.max_bytes:
            self.logger.log("cookie_rejected", name=name, size=size, limit=self.max_bytes)
            return False
        entry = {"value": value}
        if expires_days is not None:
            entry["expires"] = (self.clock() + timedelta(days=expires_days)).isoformat()
        self._cookies[name] = entry
        self._flush()
        return True

    def get(self, name: str, at: datetime | None = None) -> Optional[str]:
        entry = self._cookies.get(name)
        if entry is None:
            return None
        expires = entry.get("expires")
        if expires is not None and datetime.fromisoformat(expires) <= (at or self.clock()):
            return None
        return entry["value"]

    def remove(self, name: str) -> None:
        if self._cookies.pop(name, None) is not None:
            self._flush()

    def names(self) -> tuple[str, ...]:
        return tuple(self._cookies)

    def _flush(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._cookies, ensure_ascii=False), encoding="utf-8")


class ChangeNotifier:
    """Same-process event listeners, keyed by event name."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Callable[[Dict[str, object]], None]]] = {}

    def register(self, event: str, listener: Callable[[Dict[str, object]], None]) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def unregister(self, event: str, listener: Callable[[Dict[str, object]], None]) -> None:
        try:
            self._listeners.get(event, []).remove(listener)
        except ValueError:
            pass

    def dispatch(self, event: str, detail: Dict[str, object]) -> None:
        for listener in list(self._listeners.get(event, [])):
            listener(detail)


class LocalLedgerStore(ABC):
    """Where an offline ledger keeps its full record list."""

    @abstractmethod
    def load(self) -> List[AttendanceRecord]:
        raise NotImplementedError

    @abstractmethod
    def save(self, records: List[AttendanceRecord]) -> None:
        raise NotImplementedError


class AttendanceCache(LocalLedgerStore):
    """Durable local copy of the attendance records plus a compact cookie mirror."""

    def __init__(
        self,
        storage: KeyValueStore | None = None,
        cookies: CookieJar | None = None,
        *,
        notifier: ChangeNotifier | None = None,
        logger: StructuredLogger | None = None,
        clock: Clock = datetime.now,
    ) -> None:
        self.storage = storage if storage is not None else KeyValueStore()
        self.cookies = cookies if cookies is not None else CookieJar(clock=clock)
        self.notifier = notifier if notifier is not None else ChangeNotifier()
        self.logger = logger or get_logger()
        self.clock = clock

    def save(self, records: List[AttendanceRecord]) -> None:
        # Imported here, attendance builds on this module.
        from .attendance import calculate_attendance_stats

        records = list(records)
        try:
            document = {
                "data": [record.to_dict() for record in records],
                "lastUpdated": self.clock().isoformat(),
            }
            self.storage.set_item(STORAGE_KEY, json.dumps(document, ensure_ascii=False))
            self._write_mirror(records[-COOKIE_MIRROR_SIZE:])
            stats = calculate_attendance_stats(records, today=self.clock().date())
            self.cookies.set(STATS_COOKIE, _compact_json(stats.as_dict()), STATS_COOKIE_DAYS)
        except (OSError, TypeError, ValueError) as exc:
            self.logger.log("attendance_save_failed", error=str(exc), records=len(records))
            return
        self.notifier.dispatch(CHANGE_EVENT, {"data": records})

    def _write_mirror(self, recent: List[AttendanceRecord]) -> None:
        # Oldest entries go first until the mirror fits in one cookie.
        while recent:
            if self.cookies.set(DATA_COOKIE, _compact_json([record.to_compact() for record in recent]), DATA_COOKIE_DAYS):
                return
            recent = recent[1:]
        self.cookies.remove(DATA_COOKIE)

    def load(self) -> List[AttendanceRecord]:
        try:
            stored = self.storage.get_item(STORAGE_KEY)
            if stored:
                document = json.loads(stored)
                return [AttendanceRecord.from_dict(item) for item in document.get("data", [])]
            mirror = self.cookies.get(DATA_COOKIE)
            if mirror:
                return [
                    AttendanceRecord.from_compact(
                        item, fallback_id=f"cookie_{_now_ms(self.clock)}_{random_suffix()}"
                    )
                    for item in json.loads(mirror)
                ]
        except (OSError, TypeError, ValueError, AttributeError) as exc:
            self.logger.log("attendance_load_failed", error=str(exc))
        return []


__all__ = [
    "AttendanceCache",
    "COOKIE_MIRROR_SIZE",
    "ChangeNotifier",
    "CookieJar",
    "KeyValueStore",
    "LocalLedgerStore",
    "random_suffix",
]
