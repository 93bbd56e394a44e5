"""REST client for the ledger record stores."""

from __future__ import annotations

import json as jsonlib
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Union
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request as URLRequest, urlopen

from .exceptions import AuthorizationError, RecordNotFoundError, StoreError, StoreUnavailableError
from .models import FinancialRecord
from .ops import StructuredLogger, get_logger
from .schemas import FieldSchema
from .session import SessionContext

DEFAULT_BASE_URL = "https://waheed-web.vercel.app"
BASE_URL_ENV = "CENTERLEDGER_API_BASE_URL"
COLLECTION_KEYS = ("data", "accounts", "account", "sales", "merchants")


@dataclass(frozen=True, slots=True)
class ApiResponse:
    status: int
    payload: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def message(self) -> Optional[str]:
        if isinstance(self.payload, Mapping):
            message = self.payload.get("message")
            return None if message is None else str(message)
        return None


class Transport(Protocol):
    def request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        json: Any = None,
    ) -> ApiResponse:
        ...


def _decode_body(raw: bytes) -> Any:
    if not raw:
        return None
    try:
        return jsonlib.loads(raw.decode("utf-8"))
    except ValueError:
        return None


class UrllibTransport:
    """Send requests with :func:`urllib.request.urlopen`.

    There is no timeout unless one is given.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    def request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        json: Any = None,
    ) -> ApiResponse:
        data = None if json is None else jsonlib.dumps(json, ensure_ascii=False).encode("utf-8")
        req = URLRequest(url, data=data, headers=dict(headers), method=method)
        try:
            if self.timeout is None:
                resp = urlopen(req)
            else:
                resp = urlopen(req, timeout=self.timeout)
            with resp:
                return ApiResponse(status=resp.status, payload=_decode_body(resp.read()))
        except HTTPError as exc:
            return ApiResponse(status=exc.code, payload=_decode_body(exc.read()))
        except (URLError, TimeoutError) as exc:
            raise StoreUnavailableError(f"Could not reach {url}: {exc}") from exc


def default_base_url() -> str:
    """The record-store host: ``$CENTERLEDGER_API_BASE_URL`` or :data:`DEFAULT_BASE_URL`."""

    return os.environ.get(BASE_URL_ENV) or DEFAULT_BASE_URL


def unwrap_collection(payload: Any, schema: FieldSchema | None = None) -> List[Dict[str, Any]]:
    """Return the record list from whichever envelope ``payload`` uses."""

    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, Mapping)]
    if not isinstance(payload, Mapping):
        return []
    keys = COLLECTION_KEYS
    if schema is not None and schema.envelope:
        keys = (schema.envelope,) + tuple(key for key in COLLECTION_KEYS if key != schema.envelope)
    for key in keys:
        value = payload.get(key)
        if isinstance(value, list):
            return [item for item in value if isinstance(item, Mapping)]
    return []


def _unwrap_item(payload: Any, schema: FieldSchema) -> Optional[Mapping[str, Any]]:
    if not isinstance(payload, Mapping):
        return None
    for key in (schema.item_key,) + COLLECTION_KEYS:
        value = payload.get(key)
        if isinstance(value, Mapping):
            return value
    return None


SessionSource = Union[SessionContext, Callable[[], SessionContext]]


class RecordStoreClient:
    """List, create, update and delete the records of one ledger endpoint.

    ``session`` may be a :class:`SessionContext` or a callable returning the
    current one, so the token is read again on every call.
    """

    def __init__(
        self,
        schema: FieldSchema,
        session: SessionSource,
        transport: Transport | None = None,
        base_url: str | None = None,
        *,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.schema = schema
        self.session = session
        self.transport = transport or UrllibTransport()
        self.base_url = (base_url or default_base_url()).rstrip("/")
        self.logger = logger or get_logger()

    def current_session(self) -> SessionContext:
        if isinstance(self.session, SessionContext):
            return self.session
        return self.session()

    def url(self, key: str | None = None) -> str:
        url = f"{self.base_url}{self.schema.endpoint}"
        if key is not None:
            url = f"{url}/{quote(str(key), safe='')}"
        return url

    def list(self) -> List[FinancialRecord]:
        response = self._send("GET", self.url())
        return [FinancialRecord.from_payload(item, self.schema) for item in unwrap_collection(response.payload, self.schema)]

    def create(self, values: Mapping[str, Any], date: str | None = None) -> Optional[FinancialRecord]:
        response = self._send("POST", self.url(), self.schema.build_payload(values, date))
        item = _unwrap_item(response.payload, self.schema)
        return None if item is None else FinancialRecord.from_payload(item, self.schema)

    def update(self, key: str, values: Mapping[str, Any], date: str | None = None) -> None:
        self._send("PUT", self.url(key), self.schema.build_payload(values, date))

    def delete(self, key: str) -> None:
        self._send("DELETE", self.url(key))

    def _send(self, method: str, url: str, body: Any = None) -> ApiResponse:
        headers = {"Content-Type": "application/json"}
        headers.update(self.current_session().authorization_header())
        response = self.transport.request(method, url, headers, json=body)
        if not response.ok:
            self.logger.log(
                "store_request_failed",
                ledger=self.schema.key,
                method=method,
                url=url,
                status=response.status,
                message=response.message,
            )
            raise _error_for(response)
        return response


def _error_for(response: ApiResponse) -> StoreError:
    message = response.message or f"Request failed with status {response.status}"
    if response.status in (401, 403):
        return AuthorizationError(message, status=response.status)
    if response.status == 404:
        return RecordNotFoundError(message, status=response.status)
    return StoreError(message, status=response.status)


__all__ = [
    "ApiResponse",
    "DEFAULT_BASE_URL",
    "default_base_url",
    "RecordStoreClient",
    "Transport",
    "UrllibTransport",
    "unwrap_collection",
]
