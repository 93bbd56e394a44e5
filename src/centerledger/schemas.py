"""Field schemas describing every ledger endpoint of the dashboard.

A :class:`FieldSchema` is the single description of a ledger: its form
fields, the signed contribution of each numeric field to the derived total,
the REST endpoint and the envelope the endpoint wraps its list response in.
Every per-person and per-center variant is one entry in :data:`LEDGERS`.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping, Optional

from .exceptions import UnknownLedgerError, ValidationError
from .models import Weekday, WeekdayEncoding
from .money import ZERO, coerce_amount, form_value, to_decimal

NUMBER = "number"
TEXT = "text"
DAY = "day"


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """One form field of a ledger."""

    name: str
    label: str
    kind: str = NUMBER
    required: bool = True
    sign: int = 0


def _json_number(amount: Decimal) -> int | float:
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


@dataclass(frozen=True, slots=True)
class FieldSchema:
    key: str
    title: str
    endpoint: str
    fields: tuple[FieldSpec, ...]
    envelope: Optional[str] = None
    record_key: str = "id"
    center: str = ""
    component: str = ""
    date_field: str = "date"
    has_total: bool = True
    day_encoding: WeekdayEncoding = WeekdayEncoding.ARABIC
    tracks_attendance: bool = False

    @property
    def numeric_fields(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.fields if spec.kind == NUMBER)

    @property
    def required_fields(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.fields if spec.required)

    @property
    def item_key(self) -> str:
        """Key holding the single record in create responses."""

        return {"accounts": "account", "merchants": "merchant"}.get(self.envelope or "", self.envelope or "data")

    def field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def calculate_total(self, values: Mapping[str, Any]) -> Decimal:
        """Return the signed sum of the contributing fields of ``values``."""

        total = ZERO
        for spec in self.fields:
            if spec.sign:
                total += spec.sign * coerce_amount(values.get(spec.name))
        return to_decimal(total)

    def validate(self, values: Mapping[str, Any]) -> None:
        missing = [name for name in self.required_fields if _is_blank(values.get(name))]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", missing=missing)

    def build_payload(self, values: Mapping[str, Any], date: Optional[str] = None) -> Dict[str, Any]:
        """Build the JSON body sent to the endpoint.

        An explicit ``"0"`` is sent as the string ``"0"``; unset numeric
        fields are left out. ``total`` is always recomputed.
        """

        payload: Dict[str, Any] = {}
        for spec in self.fields:
            raw = values.get(spec.name)
            if spec.kind == NUMBER:
                value = form_value(raw)
                if value is None:
                    continue
                payload[spec.name] = value if isinstance(value, str) else _json_number(value)
            elif spec.kind == DAY:
                if not _is_blank(raw):
                    payload[spec.name] = self.encode_day(raw)
            elif raw is not None:
                payload[spec.name] = str(raw).strip()
        notes = values.get("notes")
        if notes is not None:
            payload["notes"] = str(notes)
        stamped = date if date is not None else values.get(self.date_field)
        if stamped:
            payload[self.date_field] = str(stamped)
        if self.has_total:
            payload["total"] = _json_number(self.calculate_total(values))
        return payload

    def encode_day(self, raw: Any) -> str:
        """Return ``raw`` in this ledger's day encoding; unknown names pass through."""

        try:
            return Weekday.parse(raw, self.day_encoding).encode(self.day_encoding)
        except ValueError:
            return str(raw).strip()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


FIXED_BEFORE = FieldSpec("fixedBeforeInventory", "ثابت قبل الجرد")
FIXED_AFTER = FieldSpec("fixedAfterInventory", "ثابت بعد الجرد", sign=1)
CASH_AT_HOME = FieldSpec("cashAtHome", "فلوس نقدي في البيت", sign=1)
WITHDRAWAL = FieldSpec("withdrawal", "سحب", sign=-1)
WITHDRAWAL_FROM_BIKE = FieldSpec("withdrawalFromBike", "سحب من البايكة", sign=-1)
INSURANCE = FieldSpec("insurance", "تامين", sign=-1)
CASH = FieldSpec("cash", "نقدي", sign=1)
BLESSING = FieldSpec("blessing", "ربنا كرم", sign=1)


def inventory_schema(key: str, title: str, endpoint: str, *, insurance: bool = True, **options: Any) -> FieldSchema:
    """``fixedAfterInventory + cashAtHome - withdrawal [- insurance]``."""

    fields = [FIXED_BEFORE, FIXED_AFTER, CASH_AT_HOME, WITHDRAWAL]
    if insurance:
        fields.append(INSURANCE)
    return FieldSchema(key=key, title=title, endpoint=endpoint, fields=tuple(fields), **options)


def personal_cash_schema(
    key: str,
    title: str,
    endpoint: str,
    *,
    blessing: bool = True,
    insurance: bool = False,
    **options: Any,
) -> FieldSchema:
    """``cash [+ blessing] - withdrawal [- insurance]``."""

    fields = [CASH]
    if blessing:
        fields.append(BLESSING)
    fields.append(WITHDRAWAL)
    if insurance:
        fields.append(INSURANCE)
    return FieldSchema(key=key, title=title, endpoint=endpoint, fields=tuple(fields), **options)


def bike_storage_schema(
    key: str,
    title: str,
    endpoint: str,
    *,
    withdrawal: FieldSpec = WITHDRAWAL,
    **options: Any,
) -> FieldSchema:
    """``fixedBeforeInventory + fixedAfterInventory + cashAtHome - withdrawal``."""

    fields = (
        FieldSpec("fixedBeforeInventory", "ثابت قبل الجرد", sign=1),
        FIXED_AFTER,
        CASH_AT_HOME,
        withdrawal,
    )
    return FieldSchema(key=key, title=title, endpoint=endpoint, fields=fields, **options)


def sales_schema(key: str, title: str, endpoint: str, **options: Any) -> FieldSchema:
    """``sold - rent - expenses - exits``."""

    options.setdefault("envelope", "sales")
    fields = (
        FieldSpec("day", "اليوم", kind=DAY),
        FieldSpec("rent", "الإيجار", sign=-1),
        FieldSpec("expenses", "المصروفات", sign=-1),
        FieldSpec("sold", "المبيعات", sign=1),
        FieldSpec("exitName", "اسم الخارج", kind=TEXT, required=False),
        FieldSpec("exits", "الخوارج", sign=-1),
    )
    return FieldSchema(key=key, title=title, endpoint=endpoint, fields=fields, **options)


def merchant_schema(key: str, title: str, endpoint: str, **options: Any) -> FieldSchema:
    """``invoice - payment``."""

    fields = (
        FieldSpec("name", "اسم التاجر", kind=TEXT),
        FieldSpec("invoice", "الفاتورة", sign=1),
        FieldSpec("payment", "الدفع", sign=-1),
    )
    return FieldSchema(key=key, title=title, endpoint=endpoint, fields=fields, **options)


def worker_schema(key: str, title: str, endpoint: str, **options: Any) -> FieldSchema:
    fields = (
        FieldSpec("name", "اسم العامل", kind=TEXT),
        FieldSpec("day", "اليوم", kind=DAY),
        FieldSpec("withdrawal", "سحب"),
    )
    return FieldSchema(
        key=key,
        title=title,
        endpoint=endpoint,
        fields=fields,
        has_total=False,
        tracks_attendance=True,
        **options,
    )


BALLINA = "ballina"
GARGA = "garga"
DELAA_HAWANEM = "delaa_hawanem"
SEIMA = "seima"
GAZA = "gaza"

_BALLINA_SHOWROOM = "البلينا معرض الجمهورية الدولي"
_GARGA_MALL = "جرجا معرض مول العرب"
_DELAA_CENTER = "سنتر دلع الهوانم"
_GAZA_CENTER = "سنتر غزة"


def _registry(schemas: Iterable[FieldSchema]) -> Dict[str, FieldSchema]:
    registry: Dict[str, FieldSchema] = {}
    for schema in schemas:
        if schema.key in registry:
            raise ValueError(f"Duplicate ledger key: {schema.key}")
        registry[schema.key] = schema
    return registry


LEDGERS: Dict[str, FieldSchema] = _registry(
    [
        # Ballina
        worker_schema(
            "worker-account",
            "حساب عمال البلينا",
            "/api/worker-account",
            envelope="data",
            center=BALLINA,
            component="حساب عمال البلينا",
            day_encoding=WeekdayEncoding.SUNDAY_FIRST,
        ),
        bike_storage_schema(
            "bike-storage-account",
            "حسابات بايكه ومخازن البلينا",
            "/api/bike-storage-account",
            envelope="accounts",
            center=BALLINA,
            component=_BALLINA_SHOWROOM,
        ),
        merchant_schema(
            "merchant-account",
            "حسابات تجار البلينا",
            "/api/merchant-account",
            center=BALLINA,
            component="حسابات تجار البلينا",
        ),
        sales_schema(
            "exhibition-sales",
            "مبيعات البلينا معرض الجمهورية",
            "/api/exhibition-sales",
            center=BALLINA,
            component="مبيعات البلينا معرض الجمهورية",
            day_encoding=WeekdayEncoding.ENGLISH,
        ),
        # Garga
        inventory_schema(
            "garga-storage",
            "حسابات بايكه ومخازن جرجا",
            "/api/garga-storage",
            insurance=False,
            envelope="accounts",
            center=GARGA,
            component=_GARGA_MALL,
        ),
        personal_cash_schema(
            "mahmoud-garga-account",
            "حسابات محمود موهوب جرجا",
            "/api/mahmoud-garga-account",
            envelope="accounts",
            center=GARGA,
            component=_GARGA_MALL,
        ),
        personal_cash_schema(
            "waheed-garga-account",
            "حسابات وحيد سعيد جرجا",
            "/api/waheed-garga-account",
            envelope="accounts",
            center=GARGA,
            component=_GARGA_MALL,
        ),
        worker_schema(
            "worker-garga-account",
            "حسابات عمال جرجا معرض مول العرب",
            "/api/worker-garga-account",
            center=GARGA,
            component="حسابات عمال جرجا معرض مول العرب",
            day_encoding=WeekdayEncoding.SATURDAY_FIRST,
        ),
        sales_schema(
            "exhibition-garga-sales",
            "مبيعات جرجا مول العرب",
            "/api/exhibition-garga-sales",
            center=GARGA,
            component="مبيعات جرجا مول العرب",
        ),
        # Delaa Hawanem
        inventory_schema(
            "center-delaa-hawanem-account",
            "حسابات رئيسية",
            "/api/center-delaa-hawanem-account",
            envelope="accounts",
            center=DELAA_HAWANEM,
            component=_DELAA_CENTER,
        ),
        personal_cash_schema(
            "mahmoud-center-delaa-hawanem-account",
            "محمود موهوب",
            "/api/mahmoud-center-delaa-hawanem-account",
            envelope="accounts",
            center=DELAA_HAWANEM,
            component=_DELAA_CENTER,
        ),
        personal_cash_schema(
            "basem-center-delaa-hawanem-account",
            "باسم سعيد",
            "/api/basem-center-delaa-hawanem-account",
            envelope="accounts",
            center=DELAA_HAWANEM,
            component=_DELAA_CENTER,
        ),
        personal_cash_schema(
            "waheed-center-delaa-hawanem-account",
            "وحيد سعيد",
            "/api/waheed-center-delaa-hawanem-account",
            envelope="accounts",
            center=DELAA_HAWANEM,
            component=_DELAA_CENTER,
        ),
        personal_cash_schema(
            "emad-center-delaa-hawanem-account",
            "عماد ناصر",
            "/api/emad-center-delaa-hawanem-account",
            envelope="accounts",
            center=DELAA_HAWANEM,
            component=_DELAA_CENTER,
        ),
        merchant_schema(
            "center-delaa-hawanem-merchant",
            "حسابات تجار سنتر دلع الهوانم",
            "/api/center-delaa-hawanem-merchant",
            record_key="name",
            center=DELAA_HAWANEM,
            component="حسابات تجار سنتر دلع الهوانم",
        ),
        worker_schema(
            "center-delaa-hawanem-worker",
            "حسابات عمال سنتر دلع الهوانم",
            "/api/center-delaa-hawanem-worker",
            record_key="name",
            center=DELAA_HAWANEM,
            component="حسابات عمال سنتر دلع الهوانم",
        ),
        sales_schema(
            "center-delaa-hawanem-sales",
            "مبيعات سنتر دلع الهوانم",
            "/api/center-delaa-hawanem-sales",
            center=DELAA_HAWANEM,
            component="مبيعات سنتر دلع الهوانم",
        ),
        # Seima
        worker_schema(
            "worker-center-seima-account",
            "حسابات عمال سنتر سيما",
            "/api/worker-center-seima-account",
            envelope="accounts",
            center=SEIMA,
            component="حسابات عمال سنتر سيما",
            day_encoding=WeekdayEncoding.SATURDAY_FIRST,
        ),
        merchant_schema(
            "center-seima-merchant",
            "حساب تجار سنتر سيما",
            "/api/center-seima-merchant",
            envelope="merchants",
            center=SEIMA,
            component="حساب تجار سنتر سيما",
        ),
        sales_schema(
            "center-seima-sales",
            "مبيعات سنتر سيما",
            "/api/center-seima-sales",
            center=SEIMA,
            component="مبيعات سنتر سيما",
            day_encoding=WeekdayEncoding.SATURDAY_FIRST,
        ),
        # Gaza
        inventory_schema(
            "center-gaza-account",
            "حسابات سنتر غزة",
            "/api/center-gaza-account",
            envelope="data",
            center=GAZA,
            component=_GAZA_CENTER,
        ),
        personal_cash_schema(
            "mahmoud-center-gaza-account",
            "حسابات محمود موهوب سنتر غزة",
            "/api/mahmoud-center-gaza-account",
            insurance=True,
            envelope="data",
            center=GAZA,
            component=_GAZA_CENTER,
        ),
        personal_cash_schema(
            "waheed-center-gaza-account",
            "حسابات وحيد سعيد سنتر غزة",
            "/api/waheed-center-gaza-account",
            insurance=True,
            envelope="data",
            center=GAZA,
            component=_GAZA_CENTER,
        ),
        personal_cash_schema(
            "basem-waheed-center-gaza-account",
            "حسابات باسم سعيد عند وحيد سنتر غزة",
            "/api/basem-waheed-center-gaza-account",
            blessing=False,
            envelope="data",
            center=GAZA,
            component=_GAZA_CENTER,
        ),
        personal_cash_schema(
            "mina-waheed-center-gaza-account",
            "حسابات مينا ناصر عند وحيد سنتر غزة",
            "/api/mina-waheed-center-gaza-account",
            blessing=False,
            envelope="data",
            center=GAZA,
            component=_GAZA_CENTER,
        ),
        bike_storage_schema(
            "bike-storage-center-gaza-account",
            "حسابات بايكة ومخزن سنتر غزة",
            "/api/bike-storage-center-gaza-account",
            withdrawal=WITHDRAWAL_FROM_BIKE,
            envelope="data",
            center=GAZA,
            component=_GAZA_CENTER,
        ),
        # Gaza merchant invoices live in the center-gaza-sales collection.
        merchant_schema(
            "center-gaza-merchant",
            "حساب تجار سنتر غزة",
            "/api/center-gaza-sales",
            envelope="data",
            center=GAZA,
            component="حساب تجار سنتر غزة",
        ),
        worker_schema(
            "worker-center-gaza-account",
            "حسابات عمال سنتر غزة",
            "/api/worker-center-gaza-account",
            envelope="data",
            center=GAZA,
            component="حسابات عمال سنتر غزة",
            day_encoding=WeekdayEncoding.SATURDAY_FIRST,
        ),
        sales_schema(
            "new-center-gaza-sales",
            "مبيعات سنتر غزة",
            "/api/new-center-gaza-sales",
            center=GAZA,
            component="مبيعات سنتر غزة",
        ),
    ]
)


def get_schema(key: str) -> FieldSchema:
    try:
        return LEDGERS[key]
    except KeyError:
        raise UnknownLedgerError(key) from None


def schemas_for_center(center: str) -> tuple[FieldSchema, ...]:
    return tuple(schema for schema in LEDGERS.values() if schema.center == center)


__all__ = [
    "BALLINA",
    "DAY",
    "DELAA_HAWANEM",
    "FieldSchema",
    "FieldSpec",
    "GARGA",
    "GAZA",
    "LEDGERS",
    "NUMBER",
    "SEIMA",
    "TEXT",
    "bike_storage_schema",
    "get_schema",
    "inventory_schema",
    "merchant_schema",
    "personal_cash_schema",
    "sales_schema",
    "schemas_for_center",
    "worker_schema",
]
