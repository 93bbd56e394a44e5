"""Schema driven ledger sections.

One :class:`LedgerSection` drives any ledger of :data:`~centerledger.schemas.LEDGERS`:
it keeps the form state and live total, runs add/edit/delete against the
record store, refetches after every mutation and reports through toasts.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .client import RecordStoreClient, SessionSource, Transport
from .exceptions import (
    AuthorizationError,
    CenterLedgerError,
    MissingCredentialsError,
    PermissionDeniedError,
    RecordNotFoundError,
    UnknownLedgerError,
    ValidationError,
)
from .i18n import Translator
from .models import FinancialRecord
from .money import ZERO
from .notifications import Toast, ToastLevel, Toaster
from .ops import StructuredLogger, get_logger
from .schemas import LEDGERS, FieldSchema
from .session import RolePermissions, get_role_permissions, should_show_component
from .statistics import LedgerStatistics, ledger_statistics

if TYPE_CHECKING:  # pragma: no cover
    from .attendance import AttendanceBook
    from .models import AttendanceRecord

FULL_ACCESS = RolePermissions(can_edit=True, can_delete=True, can_access=True)


def _form_text(value: Any) -> Any:
    """Render a stored value for a form input, keeping ``0`` as ``"0"``."""

    if value is None:
        return ""
    if isinstance(value, bool) or isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    return value


def _month_and_year(value: str) -> Optional[tuple[int, int]]:
    try:
        moment = date.fromisoformat(value[:10])
    except ValueError:
        return None
    return moment.month, moment.year


class LedgerSection:
    def __init__(
        self,
        schema: FieldSchema,
        client: RecordStoreClient,
        toaster: Toaster | None = None,
        permissions: RolePermissions | None = None,
        *,
        translator: Translator | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.schema = schema
        self.client = client
        self.toaster = toaster or Toaster()
        self.permissions = permissions or FULL_ACCESS
        self.translator = translator or Translator()
        self.logger = logger or get_logger()
        self.rows: List[FinancialRecord] = []
        self.form: Dict[str, Any] = {}
        self.form_date: Optional[str] = None
        self.form_total: Decimal = ZERO
        self.editing: Optional[FinancialRecord] = None
        self.pending_delete: Optional[str] = None
        self.filters: Dict[str, Any] = {"month": None, "year": None, "name": ""}

    @property
    def key(self) -> str:
        return self.schema.key

    def open(self) -> bool:
        return self.refresh()

    def refresh(self) -> bool:
        """Reload every row; on failure the previous rows stay in place."""

        try:
            rows = self.client.list()
        except CenterLedgerError as exc:
            self._report(exc, "toast.fetch_failed", action="list")
            return False
        self.rows = rows
        return True

    def set_field(self, name: str, raw: Any) -> Decimal:
        if name != "notes":
            self.schema.field(name)
        self.form[name] = raw
        return self._recompute()

    def set_date(self, value: Optional[str]) -> None:
        self.form_date = value or None

    def begin_edit(self, record: FinancialRecord) -> bool:
        if not self._allowed("edit"):
            return False
        self.editing = record
        self.form = {name: _form_text(value) for name, value in record.fields.items()}
        if record.notes:
            self.form["notes"] = record.notes
        self.form_date = record.date or None
        self._recompute()
        return True

    def reset_form(self) -> None:
        self.form = {}
        self.form_date = None
        self.editing = None
        self.form_total = ZERO

    def submit(self) -> bool:
        if self.editing is not None and not self._allowed("edit"):
            return False
        if self.editing is None and not self._allowed("access"):
            return False
        if not self.form_date:
            self.toaster.error(self._t("toast.date_required"))
            return False
        try:
            self.schema.validate(self.form)
        except ValidationError:
            self.toaster.error(self._t("toast.required_fields"))
            return False

        try:
            if self.editing is not None:
                self.client.update(self.editing.key(self.schema.record_key) or "", self.form, self.form_date)
                message = "toast.updated"
            else:
                self.client.create(self.form, self.form_date)
                message = "toast.created"
        except CenterLedgerError as exc:
            self._report(exc, "toast.save_failed", action="save")
            return False
        self.toaster.success(self._t(message))
        self.reset_form()
        self.refresh()
        return True

    def request_delete(self, record_key: str) -> bool:
        if not self._allowed("delete"):
            return False
        self.pending_delete = record_key
        return True

    def cancel_delete(self) -> None:
        self.pending_delete = None

    def confirm_delete(self) -> bool:
        record_key, self.pending_delete = self.pending_delete, None
        if record_key is None:
            return False
        try:
            self.client.delete(record_key)
        except CenterLedgerError as exc:
            self._report(exc, "toast.delete_failed", action="delete", record=record_key)
            return False
        self.toaster.success(self._t("toast.deleted"))
        self.refresh()
        return True

    def filter(
        self,
        month: int | str | None = None,
        year: int | str | None = None,
        name: str = "",
    ) -> List[FinancialRecord]:
        """Narrow the shown rows by entry month, entry year and a name substring."""

        self.filters = {
            "month": int(month) if month not in (None, "") else None,
            "year": int(year) if year not in (None, "") else None,
            "name": (name or "").strip(),
        }
        return self.visible_rows()

    def clear_filters(self) -> List[FinancialRecord]:
        return self.filter()

    def visible_rows(self) -> List[FinancialRecord]:
        month, year = self.filters["month"], self.filters["year"]
        needle = self.filters["name"].lower()
        selected = []
        for record in self.rows:
            if needle and needle not in str(record.value("name") or "").lower():
                continue
            if month is not None or year is not None:
                parts = _month_and_year(record.date)
                if parts is None:
                    continue
                if month is not None and parts[0] != month:
                    continue
                if year is not None and parts[1] != year:
                    continue
            selected.append(record)
        return selected

    def statistics(self, rows: Sequence[FinancialRecord] | None = None) -> LedgerStatistics:
        """Summary cards over ``rows``, by default the filtered view."""

        return ledger_statistics(self.visible_rows() if rows is None else rows, self.schema)

    def attendance_for(self, book: "AttendanceBook", record: FinancialRecord) -> Optional["AttendanceRecord"]:
        return book.find(str(record.value("name") or ""), record.date)

    def mark_attendance(
        self,
        book: "AttendanceBook",
        record: FinancialRecord,
        status: str = "present",
        check_in: str = "",
        check_out: str = "",
        notes: str = "",
    ) -> "AttendanceRecord":
        """Record attendance for the worker of ``record`` on its entry date."""

        if not self.schema.tracks_attendance:
            raise ValueError(f"Ledger {self.schema.key} does not track attendance")
        return book.mark(str(record.value("name") or ""), record.date, status, check_in, check_out, notes)

    def row_total(self, record: FinancialRecord) -> Optional[Decimal]:
        if not self.schema.has_total:
            return None
        return self.schema.calculate_total(record.fields)

    def _allowed(self, action: str) -> bool:
        try:
            self.permissions.require(action)
        except PermissionDeniedError as exc:
            self.logger.log("section_denied", ledger=self.schema.key, action=action, detail=str(exc))
            self.toaster.error(self._t("toast.no_permission"))
            return False
        return True

    def _recompute(self) -> Decimal:
        self.form_total = self.schema.calculate_total(self.form) if self.schema.has_total else ZERO
        return self.form_total

    def _report(self, exc: CenterLedgerError, fallback: str, **fields: object) -> None:
        if isinstance(exc, MissingCredentialsError):
            key = "toast.session_expired"
        elif isinstance(exc, AuthorizationError):
            key = "toast.unauthorized"
        elif isinstance(exc, RecordNotFoundError):
            key = "toast.not_found"
        else:
            key = fallback
        self.logger.log(
            "section_error",
            ledger=self.schema.key,
            error=type(exc).__name__,
            detail=str(exc),
            status=getattr(exc, "status", None),
            **fields,
        )
        self.toaster.error(self._t(key))

    def _t(self, key: str) -> str:
        return self.translator.translate(key)


class Dashboard:
    """The set of ledger sections shown to one user."""

    def __init__(self, sections: Iterable[LedgerSection]) -> None:
        self._sections: Dict[str, LedgerSection] = {section.key: section for section in sections}

    @classmethod
    def for_session(
        cls,
        session: SessionSource,
        role: str,
        *,
        transport: Transport | None = None,
        base_url: str | None = None,
        toaster: Toaster | None = None,
        schemas: Mapping[str, FieldSchema] | None = None,
        logger: StructuredLogger | None = None,
    ) -> "Dashboard":
        """Build a section for every ledger, sharing one toaster and transport."""

        toaster = toaster or Toaster()
        sections = []
        for schema in (schemas or LEDGERS).values():
            client = RecordStoreClient(schema, session, transport, base_url, logger=logger)
            permissions = get_role_permissions(role, schema.component)
            sections.append(LedgerSection(schema, client, toaster, permissions, logger=logger))
        return cls(sections)

    def section(self, key: str) -> LedgerSection:
        try:
            return self._sections[key]
        except KeyError:
            raise UnknownLedgerError(key) from None

    def sections(self) -> tuple[LedgerSection, ...]:
        return tuple(self._sections.values())

    def visible_sections(self, role: str) -> tuple[LedgerSection, ...]:
        visible = []
        for section in self._sections.values():
            component = section.schema.component
            if not should_show_component(role, component):
                continue
            if get_role_permissions(role, component).can_access:
                visible.append(section)
        return tuple(visible)


__all__ = ["Dashboard", "LedgerSection", "Toast", "ToastLevel", "Toaster"]
