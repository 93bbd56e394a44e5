"""Offline attendance ledger: working hours, statistics and merge rules."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .exceptions import ValidationError
from .i18n import Translator
from .models import AttendanceRecord, AttendanceStatus
from .notifications import Toaster
from .ops import StructuredLogger, get_logger
from .statistics import rate
from .storage import CHANGE_EVENT, AttendanceCache, LocalLedgerStore, random_suffix

VIEWS = ("today", "monthly", "all")


def _minutes(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    parts = value.strip().split(":")
    if len(parts) < 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        return None
    return hours * 60 + minutes


def calculate_working_hours(check_in: Optional[str], check_out: Optional[str]) -> float:
    """Hours between two ``HH:MM`` times; ``0`` when either is missing or out of order."""

    start, end = _minutes(check_in), _minutes(check_out)
    if start is None or end is None:
        return 0.0
    return max(0.0, (end - start) / 60)


@dataclass(slots=True)
class AttendanceStatistics:
    total_employees: int = 0
    present_today: int = 0
    absent_today: int = 0
    late_today: int = 0
    average_working_hours: float = 0.0
    monthly_attendance_rate: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "totalEmployees": self.total_employees,
            "presentToday": self.present_today,
            "absentToday": self.absent_today,
            "lateToday": self.late_today,
            "averageWorkingHours": self.average_working_hours,
            "monthlyAttendanceRate": self.monthly_attendance_rate,
        }


def _same_month(record_date: str, today: date) -> bool:
    return record_date[:7] == today.isoformat()[:7]


def calculate_attendance_stats(
    records: Sequence[AttendanceRecord], today: date | None = None
) -> AttendanceStatistics:
    today = today or date.today()
    today_text = today.isoformat()
    todays = [record for record in records if record.date == today_text]
    monthly = [record for record in records if _same_month(record.date, today)]
    attended = sum(1 for record in monthly if record.status in (AttendanceStatus.PRESENT, AttendanceStatus.LATE))
    average_hours = Decimal("0")
    if records:
        hours = sum(Decimal(str(record.working_hours)) for record in records)
        average_hours = (hours / len(records)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return AttendanceStatistics(
        total_employees=len({record.employee_name for record in records}),
        present_today=sum(1 for record in todays if record.status is AttendanceStatus.PRESENT),
        absent_today=sum(1 for record in todays if record.status is AttendanceStatus.ABSENT),
        late_today=sum(1 for record in todays if record.status is AttendanceStatus.LATE),
        average_working_hours=float(average_hours),
        monthly_attendance_rate=float(rate(attended, len(monthly))),
    )


def generate_attendance_id(clock: Callable[[], datetime] = datetime.now) -> str:
    return f"attendance_{int(clock().timestamp() * 1000)}_{random_suffix()}"


def merge_edit(records: Sequence[AttendanceRecord], updated: AttendanceRecord) -> List[AttendanceRecord]:
    """Replace every record sharing ``updated.id`` with ``updated``."""

    return [record for record in records if record.id != updated.id] + [updated]


def merge_create(
    records: Sequence[AttendanceRecord],
    new: AttendanceRecord,
    *,
    clock: Callable[[], datetime] = datetime.now,
) -> List[AttendanceRecord]:
    """Append ``new``, dropping any record for the same employee and day first."""

    if new.id is None:
        new = replace(new, id=generate_attendance_id(clock))
    return [record for record in records if record.natural_key != new.natural_key] + [new]


def remove_record(records: Sequence[AttendanceRecord], record_id: str) -> List[AttendanceRecord]:
    return [record for record in records if record.id != record_id]


def filter_records(
    records: Sequence[AttendanceRecord],
    view: str = "today",
    search: str = "",
    today: date | None = None,
) -> List[AttendanceRecord]:
    if view not in VIEWS:
        raise ValueError(f"Unknown attendance view: {view!r}")
    today = today or date.today()
    needle = search.strip().lower()
    selected = []
    for record in records:
        if view == "today" and record.date != today.isoformat():
            continue
        if view == "monthly" and not _same_month(record.date, today):
            continue
        if needle and needle not in record.employee_name.lower():
            continue
        selected.append(record)
    return selected


def sample_records(today: date, clock: Callable[[], datetime] = datetime.now) -> List[AttendanceRecord]:
    yesterday = today - timedelta(days=1)
    stamp = clock().isoformat()
    seeds = [
        ("أحمد محمد", today, "09:00", "17:00", AttendanceStatus.PRESENT, "حضور منتظم"),
        ("فاطمة أحمد", today, "09:15", "17:00", AttendanceStatus.LATE, "تأخير بسيط"),
        ("محمد علي", yesterday, "09:00", "17:00", AttendanceStatus.PRESENT, ""),
    ]
    return [
        AttendanceRecord(
            id=generate_attendance_id(clock),
            employee_name=name,
            date=day.isoformat(),
            check_in_time=check_in,
            check_out_time=check_out,
            status=status,
            working_hours=calculate_working_hours(check_in, check_out),
            notes=notes,
            created_at=stamp,
            updated_at=stamp,
        )
        for name, day, check_in, check_out, status, notes in seeds
    ]


class AttendanceBook:
    """Attendance records kept in a :class:`LocalLedgerStore`.

    Every mutation rewrites the whole record list to the store. When the
    store is an :class:`AttendanceCache`, books sharing it pick up each
    other's saves through its change notifier.
    """

    def __init__(
        self,
        store: LocalLedgerStore,
        toaster: Toaster | None = None,
        *,
        translator: Translator | None = None,
        clock: Callable[[], datetime] = datetime.now,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.store = store
        self.toaster = toaster or Toaster()
        self.translator = translator or Translator()
        self.clock = clock
        self.logger = logger or get_logger()
        self._records: List[AttendanceRecord] = []
        if isinstance(store, AttendanceCache):
            store.notifier.register(CHANGE_EVENT, self._on_change)

    @property
    def records(self) -> tuple[AttendanceRecord, ...]:
        return tuple(self._records)

    def today(self) -> date:
        return self.clock().date()

    def open(self) -> tuple[AttendanceRecord, ...]:
        self._records = self.store.load()
        if not self._records:
            self._records = sample_records(self.today(), self.clock)
            self.store.save(self._records)
            self.toaster.info(self._t("attendance.sample_loaded"))
            self.logger.log("attendance_seeded", records=len(self._records))
        return self.records

    def save(self, form: Mapping[str, Any], editing: AttendanceRecord | None = None) -> AttendanceRecord:
        """Create a record from ``form``, or update ``editing`` with it.

        ``form`` uses the wire names (``employeeName``, ``checkInTime`` ...).
        """

        name = str(form.get("employeeName") or "").strip()
        check_in = str(form.get("checkInTime") or "").strip()
        if not name or not check_in:
            self.toaster.error(self._t("attendance.required"))
            missing = [key for key, value in (("employeeName", name), ("checkInTime", check_in)) if not value]
            raise ValidationError("Missing required attendance fields", missing=missing)
        status = self._status(form.get("status"))

        check_out = form.get("checkOutTime") or None
        stamp = self.clock().isoformat()
        record = AttendanceRecord(
            id=editing.id if editing else None,
            employee_name=name,
            date=str(form.get("date") or self.today().isoformat()),
            check_in_time=check_in,
            check_out_time=check_out,
            status=status,
            working_hours=calculate_working_hours(check_in, check_out),
            notes=str(form.get("notes") or ""),
            created_at=editing.created_at if editing else stamp,
            updated_at=stamp,
        )
        if editing is not None and editing.id is not None:
            records = merge_edit(self._records, record)
            message = "attendance.updated"
        else:
            records = merge_create(self._records, record, clock=self.clock)
            message = "attendance.created"
        self._persist(records)
        self.toaster.success(self._t(message))
        return records[-1]

    def find(self, employee_name: str, day: str) -> Optional[AttendanceRecord]:
        """Return the stored record for ``employee_name`` on ``day``, if any."""

        for record in self.store.load():
            if record.natural_key == (employee_name, day):
                return record
        return None

    def mark(
        self,
        employee_name: str,
        day: str,
        status: AttendanceStatus | str = AttendanceStatus.PRESENT,
        check_in: str = "",
        check_out: str = "",
        notes: str = "",
    ) -> AttendanceRecord:
        """Record attendance for a worker on the day of a worker ledger entry.

        Reads the latest stored records first, replaces any entry for the same
        employee and day and always issues a fresh id. Check-in is optional.
        """

        name = (employee_name or "").strip()
        if not name or not day:
            self.toaster.error(self._t("attendance.required"))
            missing = [key for key, value in (("employeeName", name), ("date", day)) if not value]
            raise ValidationError("Missing required attendance fields", missing=missing)
        status = self._status(status)

        stamp = self.clock().isoformat()
        record = AttendanceRecord(
            id=generate_attendance_id(self.clock),
            employee_name=name,
            date=day,
            check_in_time=check_in or "",
            check_out_time=check_out or None,
            status=status,
            working_hours=calculate_working_hours(check_in, check_out),
            notes=notes or "",
            created_at=stamp,
            updated_at=stamp,
        )
        current = self.store.load()
        kept = [existing for existing in current if existing.natural_key != record.natural_key]
        self._persist(kept + [record])
        self.toaster.success(self._t("attendance.mark_updated" if len(kept) != len(current) else "attendance.marked"))
        self.logger.log("attendance_marked", employee=name, date=day, status=status.value)
        return record

    def close(self) -> None:
        """Stop following saves made through a shared cache."""

        if isinstance(self.store, AttendanceCache):
            self.store.notifier.unregister(CHANGE_EVENT, self._on_change)

    def delete(self, record_id: str) -> bool:
        if not any(record.id == record_id for record in self._records):
            self.toaster.error(self._t("attendance.delete_failed"))
            return False
        self._persist(remove_record(self._records, record_id))
        self.toaster.success(self._t("attendance.deleted"))
        return True

    def statistics(self) -> AttendanceStatistics:
        return calculate_attendance_stats(self._records, today=self.today())

    def filter(self, view: str = "today", search: str = "") -> List[AttendanceRecord]:
        return filter_records(self._records, view, search, today=self.today())

    def _persist(self, records: List[AttendanceRecord]) -> None:
        self._records = records
        self.store.save(records)

    def _on_change(self, detail: Dict[str, object]) -> None:
        data = detail.get("data")
        if isinstance(data, list):
            self._records = list(data)

    def _status(self, value: object) -> AttendanceStatus:
        if not value:
            return AttendanceStatus.PRESENT
        try:
            return AttendanceStatus(value)
        except ValueError:
            self.toaster.error(self._t("attendance.invalid_status"))
            raise ValidationError(f"Unknown attendance status: {value!r}", missing=("status",)) from None

    def _t(self, key: str) -> str:
        return self.translator.translate(key)


__all__ = [
    "AttendanceBook",
    "AttendanceStatistics",
    "VIEWS",
    "calculate_attendance_stats",
    "calculate_working_hours",
    "filter_records",
    "generate_attendance_id",
    "merge_create",
    "merge_edit",
    "remove_record",
    "sample_records",
]
