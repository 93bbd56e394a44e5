"""Aggregate summaries shown on the ledger summary cards."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, Sequence

from .models import FinancialRecord
from .money import ZERO, to_decimal
from .schemas import FieldSchema

_TENTH = Decimal("0.1")


def field_sum(records: Iterable[FinancialRecord], name: str) -> Decimal:
    return to_decimal(sum((record.amount(name) for record in records), ZERO))


def average(values: Sequence[Decimal]) -> Decimal:
    if not values:
        return ZERO
    return to_decimal(sum(values, ZERO) / len(values))


def rate(part: int, whole: int) -> Decimal:
    """Return ``part`` as a percentage of ``whole`` with one decimal place."""

    if whole <= 0:
        return Decimal("0.0")
    return (Decimal(part) * 100 / Decimal(whole)).quantize(_TENTH, rounding=ROUND_HALF_UP)


@dataclass(slots=True)
class LedgerStatistics:
    count: int
    field_totals: Dict[str, Decimal] = field(default_factory=dict)
    net_total: Decimal = ZERO
    average_total: Decimal = ZERO

    def as_dict(self) -> Dict[str, object]:
        return {
            "count": self.count,
            "field_totals": {name: float(value) for name, value in self.field_totals.items()},
            "net_total": float(self.net_total),
            "average_total": float(self.average_total),
        }


def ledger_statistics(records: Sequence[FinancialRecord], schema: FieldSchema) -> LedgerStatistics:
    """Summarise ``records`` in a single pass over the list.

    Totals are recomputed from the fields of every record, never read from
    the stored ``total``.
    """

    sums = {name: ZERO for name in schema.numeric_fields}
    totals: list[Decimal] = []
    for record in records:
        for name in sums:
            sums[name] += record.amount(name)
        if schema.has_total:
            totals.append(schema.calculate_total(record.fields))
    return LedgerStatistics(
        count=len(records),
        field_totals={name: to_decimal(value) for name, value in sums.items()},
        net_total=to_decimal(sum(totals, ZERO)),
        average_total=average(totals),
    )


def sales_net_profit(record: FinancialRecord) -> Decimal:
    """``sold - rent - expenses - exits`` for one sales record."""

    return to_decimal(
        record.amount("sold") - record.amount("rent") - record.amount("expenses") - record.amount("exits")
    )


__all__ = [
    "LedgerStatistics",
    "average",
    "field_sum",
    "ledger_statistics",
    "rate",
    "sales_net_profit",
]
