"""Domain models used by the centerledger package."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from .money import coerce_amount

if TYPE_CHECKING:  # pragma: no cover
    from .schemas import FieldSchema


class WeekdayEncoding(str, Enum):
    """The day-name encodings used by the different ledger endpoints."""

    ARABIC = "arabic"
    ENGLISH = "english"
    SUNDAY_FIRST = "sunday_first"  # "1" = Sunday ... "7" = Saturday
    SATURDAY_FIRST = "saturday_first"  # "1" = Saturday ... "7" = Friday


def _normalise_arabic(text: str) -> str:
    cleaned = text.strip()
    for variant in ("أ", "إ", "آ"):
        cleaned = cleaned.replace(variant, "ا")
    return cleaned.replace("ة", "ه")


class Weekday(IntEnum):
    """Days of the week, numbered like :meth:`datetime.date.weekday`."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def from_date(cls, moment: date) -> "Weekday":
        return cls(moment.weekday())

    @property
    def label(self) -> str:
        """Arabic display name."""

        return _ARABIC_LABELS[self]

    @property
    def english(self) -> str:
        return self.name.title()

    def encode(self, encoding: WeekdayEncoding = WeekdayEncoding.ARABIC) -> str:
        if encoding is WeekdayEncoding.ARABIC:
            return self.label
        if encoding is WeekdayEncoding.ENGLISH:
            return self.english
        if encoding is WeekdayEncoding.SUNDAY_FIRST:
            return str((self.value + 1) % 7 + 1)
        return str((self.value + 2) % 7 + 1)

    @classmethod
    def parse(cls, value: object, encoding: WeekdayEncoding | None = None) -> "Weekday":
        """Decode ``value`` from any supported encoding.

        Numeric codes are ambiguous between the Sunday-first and the
        Saturday-first schemes, so ``encoding`` must name one of them.
        """

        if isinstance(value, Weekday):
            return value
        text = str(value).strip()
        if text.isdigit():
            code = int(text)
            if not 1 <= code <= 7:
                raise ValueError(f"Day code out of range: {text!r}")
            if encoding is WeekdayEncoding.SUNDAY_FIRST:
                return cls((code - 2) % 7)
            if encoding is WeekdayEncoding.SATURDAY_FIRST:
                return cls((code - 3) % 7)
            raise ValueError(f"Numeric day {text!r} needs a numeric encoding.")
        by_english = _ENGLISH_LOOKUP.get(text.lower())
        if by_english is not None:
            return by_english
        by_arabic = _ARABIC_LOOKUP.get(_normalise_arabic(text))
        if by_arabic is not None:
            return by_arabic
        raise ValueError(f"Unknown day name: {text!r}")


_ARABIC_LABELS: Dict[Weekday, str] = {
    Weekday.SATURDAY: "السبت",
    Weekday.SUNDAY: "الأحد",
    Weekday.MONDAY: "الاثنين",
    Weekday.TUESDAY: "الثلاثاء",
    Weekday.WEDNESDAY: "الأربعاء",
    Weekday.THURSDAY: "الخميس",
    Weekday.FRIDAY: "الجمعة",
}
_ARABIC_LOOKUP: Dict[str, Weekday] = {_normalise_arabic(label): day for day, label in _ARABIC_LABELS.items()}
_ENGLISH_LOOKUP: Dict[str, Weekday] = {day.name.lower(): day for day in Weekday}


def display_day(value: object, encoding: WeekdayEncoding | None = None) -> str:
    """Return the Arabic label for ``value``, or ``value`` itself when it is not a day."""

    try:
        return Weekday.parse(value, encoding).label
    except ValueError:
        return "" if value is None else str(value)


@dataclass(slots=True)
class FinancialRecord:
    """A flat ledger entry as listed by one of the record-store endpoints."""

    id: Optional[str]
    date: str
    fields: Dict[str, Any] = field(default_factory=dict)
    notes: str = ""
    total: Optional[Decimal] = None
    created_at: Optional[str] = None

    def amount(self, name: str) -> Decimal:
        """Return the coerced numeric value of ``name`` (zero when unset)."""

        return coerce_amount(self.fields.get(name))

    def value(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], schema: "FieldSchema") -> "FinancialRecord":
        record_id = payload.get("_id", payload.get("id"))
        values = {spec.name: payload[spec.name] for spec in schema.fields if spec.name in payload}
        total = schema.calculate_total(values) if schema.has_total else None
        return cls(
            id=None if record_id is None else str(record_id),
            date=str(payload.get(schema.date_field) or payload.get("date") or ""),
            fields=values,
            notes=str(payload.get("notes") or ""),
            total=total,
            created_at=payload.get("createdAt"),
        )

    def to_payload(self, schema: "FieldSchema") -> Dict[str, Any]:
        values = dict(self.fields)
        if self.notes:
            values["notes"] = self.notes
        return schema.build_payload(values, self.date or None)

    def key(self, record_key: str = "id") -> Optional[str]:
        """Return the identifier used to address this record on the wire."""

        if record_key == "id":
            return self.id
        value = self.fields.get(record_key)
        return None if value is None else str(value)


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half-day"

    @property
    def label(self) -> str:
        return {
            AttendanceStatus.PRESENT: "حاضر",
            AttendanceStatus.ABSENT: "غائب",
            AttendanceStatus.LATE: "متأخر",
            AttendanceStatus.HALF_DAY: "نصف يوم",
        }[self]


@dataclass(slots=True)
class AttendanceRecord:
    """A locally stored attendance entry for one employee on one day."""

    employee_name: str
    date: str
    check_in_time: str
    status: AttendanceStatus = AttendanceStatus.PRESENT
    check_out_time: Optional[str] = None
    working_hours: float = 0.0
    notes: str = ""
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self) -> None:
        self.status = AttendanceStatus(self.status)
        if not self.check_out_time:
            self.check_out_time = None
        self.notes = self.notes or ""
        self.working_hours = float(self.working_hours or 0)

    @property
    def natural_key(self) -> tuple[str, str]:
        return (self.employee_name, self.date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "employeeName": self.employee_name,
            "date": self.date,
            "checkInTime": self.check_in_time,
            "checkOutTime": self.check_out_time,
            "status": self.status.value,
            "workingHours": self.working_hours,
            "notes": self.notes,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AttendanceRecord":
        return cls(
            id=payload.get("_id", payload.get("id")),
            employee_name=payload.get("employeeName", ""),
            date=payload.get("date", ""),
            check_in_time=payload.get("checkInTime", ""),
            check_out_time=payload.get("checkOutTime"),
            status=payload.get("status", AttendanceStatus.PRESENT.value),
            working_hours=payload.get("workingHours") or 0,
            notes=payload.get("notes") or "",
            created_at=payload.get("createdAt"),
            updated_at=payload.get("updatedAt"),
        )

    def to_compact(self) -> Dict[str, Any]:
        """Abbreviated form used by the cookie mirror."""

        return {
            "id": self.id,
            "n": self.employee_name,
            "dt": self.date,
            "ci": self.check_in_time,
            "co": self.check_out_time or "",
            "s": self.status.value,
            "wh": self.working_hours,
            "nt": self.notes,
        }

    @classmethod
    def from_compact(cls, payload: Mapping[str, Any], *, fallback_id: str) -> "AttendanceRecord":
        return cls(
            id=payload.get("id") or fallback_id,
            employee_name=payload.get("n", ""),
            date=payload.get("dt", ""),
            check_in_time=payload.get("ci", ""),
            check_out_time=payload.get("co") or None,
            status=payload.get("s", AttendanceStatus.PRESENT.value),
            working_hours=payload.get("wh") or 0,
            notes=payload.get("nt") or "",
        )


__all__ = [
    "AttendanceRecord",
    "AttendanceStatus",
    "FinancialRecord",
    "Weekday",
    "WeekdayEncoding",
    "display_day",
]
