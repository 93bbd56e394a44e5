"""centerledger package for the bookkeeping of retail centers and exhibitions."""

from .attendance import (
    AttendanceBook,
    AttendanceStatistics,
    calculate_attendance_stats,
    calculate_working_hours,
    filter_records,
    merge_create,
    merge_edit,
    remove_record,
)
from .client import ApiResponse, RecordStoreClient, Transport, UrllibTransport, unwrap_collection
from .exceptions import (
    AuthorizationError,
    CenterLedgerError,
    MissingCredentialsError,
    PermissionDeniedError,
    RecordNotFoundError,
    StoreError,
    StoreUnavailableError,
    UnknownLedgerError,
    ValidationError,
)
from .i18n import Translator
from .models import AttendanceRecord, AttendanceStatus, FinancialRecord, Weekday, WeekdayEncoding
from .notifications import Toast, ToastLevel, Toaster
from .ops import StructuredLogger, get_logger
from .schemas import LEDGERS, FieldSchema, FieldSpec, get_schema, schemas_for_center
from .sections import Dashboard, LedgerSection
from .session import (
    RolePermissions,
    SessionContext,
    decode_token,
    get_role_permissions,
    restricted_components,
    should_show_component,
    sign_in,
    sign_out,
)
from .statistics import LedgerStatistics, ledger_statistics, sales_net_profit
from .storage import AttendanceCache, ChangeNotifier, CookieJar, KeyValueStore, LocalLedgerStore

__all__ = [
    "ApiResponse",
    "AttendanceBook",
    "AttendanceCache",
    "AttendanceRecord",
    "AttendanceStatistics",
    "AttendanceStatus",
    "AuthorizationError",
    "CenterLedgerError",
    "ChangeNotifier",
    "CookieJar",
    "Dashboard",
    "FieldSchema",
    "FieldSpec",
    "FinancialRecord",
    "KeyValueStore",
    "LEDGERS",
    "LedgerSection",
    "LedgerStatistics",
    "LocalLedgerStore",
    "MissingCredentialsError",
    "PermissionDeniedError",
    "RecordNotFoundError",
    "RecordStoreClient",
    "RolePermissions",
    "SessionContext",
    "StoreError",
    "StoreUnavailableError",
    "StructuredLogger",
    "Toast",
    "ToastLevel",
    "Toaster",
    "Transport",
    "Translator",
    "UnknownLedgerError",
    "UrllibTransport",
    "ValidationError",
    "Weekday",
    "WeekdayEncoding",
    "calculate_attendance_stats",
    "calculate_working_hours",
    "decode_token",
    "filter_records",
    "get_logger",
    "get_role_permissions",
    "get_schema",
    "ledger_statistics",
    "merge_create",
    "merge_edit",
    "remove_record",
    "restricted_components",
    "sales_net_profit",
    "schemas_for_center",
    "should_show_component",
    "sign_in",
    "sign_out",
]
