import pytest

from centerledger.attendance import AttendanceBook
from centerledger.client import RecordStoreClient
from centerledger.exceptions import UnknownLedgerError
from centerledger.models import FinancialRecord
from centerledger.notifications import ToastLevel, Toaster
from centerledger.schemas import LEDGERS, get_schema
from centerledger.sections import Dashboard, LedgerSection
from centerledger.session import SessionContext, get_role_permissions
from centerledger.storage import AttendanceCache

ADMIN_SESSION = SessionContext(token="tok", role="admin")


def _section(transport, key="mahmoud-center-delaa-hawanem-account", session=ADMIN_SESSION, **kwargs):
    schema = get_schema(key)
    toaster = kwargs.pop("toaster", None) or Toaster()
    return LedgerSection(schema, RecordStoreClient(schema, session, transport, "https://ledger.test"), toaster, **kwargs)


def test_explicit_zero_is_sent_and_totals_update_live(transport) -> None:
    section = _section(transport)
    transport.respond(201, {"account": {"_id": "a1"}}).respond(
        200, {"accounts": [{"_id": "a1", "cash": "0", "blessing": 100, "withdrawal": 20, "date": "2024-05-01"}]}
    )

    assert section.set_field("cash", "0") == 0
    assert section.set_field("blessing", "100") == 100
    assert section.set_field("withdrawal", "20") == 80
    section.set_date("2024-05-01")

    assert section.submit() is True
    assert transport.calls[0]["json"] == {"cash": "0", "blessing": 100, "withdrawal": 20, "date": "2024-05-01", "total": 80}
    assert transport.calls[1]["method"] == "GET"
    assert [row.id for row in section.rows] == ["a1"]
    assert section.form == {}
    assert section.form_total == 0
    assert section.toaster.last().message == "تم إضافة الحساب بنجاح"
    assert section.statistics().net_total == 80


def test_submit_requires_date_then_fields(transport) -> None:
    section = _section(transport)
    section.set_field("cash", "10")

    assert section.submit() is False
    assert section.toaster.last().message == "يرجى اختيار التاريخ"

    section.set_date("2024-05-01")

    assert section.submit() is False
    assert section.toaster.last().message == "جميع الحقول مطلوبة"
    assert transport.calls == []


def test_unknown_field_is_rejected(transport) -> None:
    section = _section(transport)

    with pytest.raises(KeyError):
        section.set_field("insurance", "5")
    section.set_field("notes", "note")
    assert section.form == {"notes": "note"}


def test_missing_token_sends_nothing_and_reports_expired_session(transport, logger) -> None:
    section = _section(transport, session=SessionContext(), logger=logger)
    for name, value in (("cash", "1"), ("blessing", "2"), ("withdrawal", "0")):
        section.set_field(name, value)
    section.set_date("2024-05-01")

    assert section.submit() is False
    assert section.refresh() is False
    assert transport.calls == []
    assert [toast.message for toast in section.toaster.pending(level=ToastLevel.ERROR)] == [
        "الجلسة منتهية الصلاحية - يرجى تسجيل الدخول مرة أخرى"
    ] * 2
    assert logger.events("section_error")[0]["error"] == "MissingCredentialsError"


def test_delete_of_missing_record_keeps_rows(transport) -> None:
    section = _section(transport)
    transport.respond(200, {"accounts": [{"_id": "a1", "cash": 5}]})
    section.open()

    assert section.request_delete("gone") is True
    transport.respond(404, {"message": "الحساب غير موجود"})

    assert section.confirm_delete() is False
    assert [row.id for row in section.rows] == ["a1"]
    assert len(transport.calls) == 2
    assert section.toaster.last().message == "السجل غير موجود"
    assert section.pending_delete is None


def test_delete_and_cancel(transport) -> None:
    section = _section(transport)

    section.request_delete("a1")
    section.cancel_delete()
    assert section.confirm_delete() is False

    section.request_delete("a1")
    assert section.confirm_delete() is True
    assert transport.calls[0]["method"] == "DELETE"
    assert transport.calls[0]["url"].endswith("/a1")
    assert transport.calls[1]["method"] == "GET"
    assert section.toaster.last().message == "تم حذف السجل بنجاح"


def test_refresh_failure_keeps_previous_rows(transport) -> None:
    section = _section(transport)
    transport.respond(200, {"accounts": [{"_id": "a1"}]}).respond(500, {"message": "boom"})
    section.refresh()

    assert section.refresh() is False
    assert [row.id for row in section.rows] == ["a1"]
    assert section.toaster.last().message == "فشل في جلب البيانات"


def test_auth_failures_report_unauthorized(transport) -> None:
    section = _section(transport)
    transport.respond(403, {"message": "رمز الدخول غير صالح"})

    assert section.refresh() is False
    assert section.toaster.last().message == "غير مخول للوصول إلى هذه الصفحة"


def test_begin_edit_keeps_zero_and_puts_to_the_record(transport) -> None:
    schema = get_schema("mahmoud-center-delaa-hawanem-account")
    section = _section(transport)
    record = FinancialRecord.from_payload(
        {"_id": "a1", "cash": "0", "blessing": 100.0, "withdrawal": 20, "date": "2024-05-01", "notes": "x"}, schema
    )

    assert section.begin_edit(record) is True
    assert section.form == {"cash": "0", "blessing": "100", "withdrawal": "20", "notes": "x"}
    assert section.form_total == 80
    assert section.form_date == "2024-05-01"

    section.set_field("withdrawal", "30")
    assert section.submit() is True
    assert transport.calls[0]["method"] == "PUT"
    assert transport.calls[0]["url"] == "https://ledger.test/api/mahmoud-center-delaa-hawanem-account/a1"
    assert transport.calls[0]["json"]["cash"] == "0"
    assert transport.calls[0]["json"]["total"] == 70
    assert section.toaster.last().message == "تم تحديث البيانات بنجاح"
    assert section.editing is None


def test_name_keyed_ledgers_edit_by_name(transport) -> None:
    schema = get_schema("center-delaa-hawanem-worker")
    section = _section(transport, key=schema.key)
    record = FinancialRecord.from_payload({"_id": "w1", "name": "سيد", "day": "الأحد", "withdrawal": 50}, schema)

    section.begin_edit(record)
    section.set_date("2024-05-05")
    section.submit()

    assert transport.calls[0]["url"].endswith("/" + "%D8%B3%D9%8A%D8%AF")
    assert "total" not in transport.calls[0]["json"]
    assert section.row_total(record) is None


def test_factory_roles_can_add_but_not_edit_or_delete(transport, logger) -> None:
    schema = get_schema("new-center-gaza-sales")
    section = _section(
        transport,
        key=schema.key,
        session=SessionContext(token="tok", role="factory5"),
        permissions=get_role_permissions("factory5", schema.component),
        logger=logger,
    )
    record = FinancialRecord.from_payload({"_id": "s1", "day": "السبت", "sold": 10}, schema)

    assert section.begin_edit(record) is False
    assert section.request_delete("s1") is False
    assert section.toaster.last().message == "ليس لديك صلاحية لتنفيذ هذا الإجراء"
    assert [entry["action"] for entry in logger.events("section_denied")] == ["edit", "delete"]

    for name in ("rent", "expenses", "sold", "exits"):
        section.set_field(name, "0")
    section.set_field("day", "السبت")
    section.set_date("2024-05-11")

    assert section.submit() is True
    assert transport.calls[0]["method"] == "POST"


def test_dashboard_visibility_follows_role(transport) -> None:
    dashboard = Dashboard.for_session(ADMIN_SESSION, "admin", transport=transport)

    assert len(dashboard.visible_sections("admin")) == len(LEDGERS)
    assert {section.key for section in dashboard.visible_sections("factory5")} == {
        "new-center-gaza-sales",
        "center-gaza-merchant",
        "worker-center-gaza-account",
    }
    assert dashboard.visible_sections("guest") == ()
    with pytest.raises(UnknownLedgerError):
        dashboard.section("nope")


def test_dashboard_sections_share_one_toaster(transport) -> None:
    toaster = Toaster()
    dashboard = Dashboard.for_session(SessionContext(), "factory5", transport=transport, toaster=toaster)

    dashboard.section("worker-center-gaza-account").refresh()
    dashboard.section("new-center-gaza-sales").refresh()

    assert len(toaster.pop_all()) == 2
    assert toaster.pending() == ()
    assert not dashboard.section("new-center-gaza-sales").permissions.can_edit


def test_roles_without_access_cannot_add(transport, logger) -> None:
    schema = get_schema("center-gaza-account")
    section = _section(
        transport,
        key=schema.key,
        session=SessionContext(token="tok", role="factory5"),
        permissions=get_role_permissions("factory5", schema.component),
        logger=logger,
    )
    for name in schema.numeric_fields:
        section.set_field(name, "1")
    section.set_date("2024-05-11")

    assert section.submit() is False
    assert transport.calls == []
    assert section.toaster.last().message == "ليس لديك صلاحية لتنفيذ هذا الإجراء"
    assert logger.events("section_denied")[0]["action"] == "access"


WORKER_ROWS = {
    "data": [
        {"_id": "w1", "name": "Saeed Ali", "day": "السبت", "withdrawal": 50, "date": "2024-05-04"},
        {"_id": "w2", "name": "Hassan", "day": "الأحد", "withdrawal": 20, "date": "2024-05-05"},
        {"_id": "w3", "name": "saeed omar", "day": "الاثنين", "withdrawal": 10, "date": "2024-04-29"},
        {"_id": "w4", "name": "Saeed Ali", "day": "الثلاثاء", "withdrawal": 5, "date": "2023-05-02"},
        {"_id": "w5", "name": "Karim", "day": "الأربعاء", "withdrawal": 7},
    ]
}


def test_filters_narrow_rows_and_statistics(transport) -> None:
    section = _section(transport, key="worker-account")
    transport.respond(200, WORKER_ROWS)
    assert section.refresh() is True

    assert [row.id for row in section.filter(month=5)] == ["w1", "w2", "w4"]
    assert [row.id for row in section.filter(month="05", year="2024")] == ["w1", "w2"]
    assert [row.id for row in section.filter(name=" SAEED ")] == ["w1", "w3", "w4"]
    assert [row.id for row in section.filter(month=5, year=2024, name="saeed")] == ["w1"]

    stats = section.statistics()
    assert stats.count == 1
    assert stats.field_totals["withdrawal"] == 50
    assert section.statistics(section.rows).count == 5

    assert [row.id for row in section.clear_filters()] == ["w1", "w2", "w3", "w4", "w5"]
    assert section.filters == {"month": None, "year": None, "name": ""}


def test_worker_rows_mark_attendance_for_the_attendance_page(transport, fixed_clock) -> None:
    section = _section(transport, key="worker-account")
    transport.respond(200, WORKER_ROWS)
    section.refresh()
    cache = AttendanceCache(clock=fixed_clock)
    toaster = Toaster()
    worker_book = AttendanceBook(cache, toaster, clock=fixed_clock)
    attendance_page = AttendanceBook(cache, clock=fixed_clock)
    row = section.rows[0]

    assert section.attendance_for(worker_book, row) is None

    marked = section.mark_attendance(worker_book, row, "present", "08:00", "16:00")

    assert (marked.employee_name, marked.date, marked.working_hours) == ("Saeed Ali", "2024-05-04", 8.0)
    assert attendance_page.records == (marked,)
    assert section.attendance_for(worker_book, row) == marked
    assert toaster.last().message == "تم التسجيل بنجاح"


def test_only_worker_ledgers_mark_attendance(transport, fixed_clock) -> None:
    section = _section(transport)
    book = AttendanceBook(AttendanceCache(clock=fixed_clock), clock=fixed_clock)
    record = FinancialRecord.from_payload({"_id": "a1", "cash": 1, "date": "2024-05-01"}, section.schema)

    with pytest.raises(ValueError):
        section.mark_attendance(book, record)
    assert book.records == ()
