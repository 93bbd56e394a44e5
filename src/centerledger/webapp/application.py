"""FastAPI mock backend for the Center Ledger dashboard.

Exposes the sign-in endpoint and list/create/update/delete routes for every
ledger in :data:`centerledger.schemas.LEDGERS`. Responses carry Arabic
``{message}`` bodies the way the dashboard expects them. Serve with
``uvicorn centerledger.webapp:app``.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.cors import CORSMiddleware

from ..i18n import Translator
from ..ops import StructuredLogger
from ..schemas import LEDGERS, FieldSchema
from ..session import SIGNIN_PATH
from .config import CORS_ORIGINS, LOG_FILE, SECRET_KEY, TOKEN_LIFETIME, USERS
from .persistence import create_db_and_tables, delete_entry, insert_entry, list_entries, update_entry

translator = Translator()
logger = StructuredLogger(path=Path(LOG_FILE) if LOG_FILE else None)


class ApiError(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def _signature(signing_input: str) -> str:
    digest = hmac.new(SECRET_KEY.encode("utf-8"), signing_input.encode("ascii"), hashlib.sha256).digest()
    return _b64encode(digest)


def issue_token(user_name: str, role: str, *, now: Optional[datetime] = None) -> str:
    issued = now or datetime.utcnow()
    header = _b64encode(json.dumps({"alg": "HS256", "typ": "JWT"}).encode("utf-8"))
    claims = {
        "userName": user_name,
        "role": role,
        "iat": int(issued.timestamp()),
        "exp": int((issued + TOKEN_LIFETIME).timestamp()),
    }
    payload = _b64encode(json.dumps(claims, ensure_ascii=False).encode("utf-8"))
    signing_input = f"{header}.{payload}"
    return f"{signing_input}.{_signature(signing_input)}"


def verify_token(token: str, *, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header, payload, signature = parts
    if not hmac.compare_digest(signature, _signature(f"{header}.{payload}")):
        return None
    try:
        claims = json.loads(_b64decode(payload).decode("utf-8"))
    except ValueError:
        return None
    if not isinstance(claims, dict):
        return None
    expires = claims.get("exp")
    if isinstance(expires, (int, float)) and expires < (now or datetime.utcnow()).timestamp():
        return None
    return claims


def require_user(authorization: Optional[str] = Header(default=None)) -> Dict[str, Any]:
    token = ""
    if authorization:
        scheme, _, value = authorization.partition(" ")
        token = value.strip() if scheme.lower() == "bearer" else ""
    if not token:
        raise ApiError(401, translator.translate("server.token_required"))
    claims = verify_token(token)
    if claims is None:
        raise ApiError(403, translator.translate("server.token_invalid"))
    return claims


async def _json_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


app = FastAPI(title="Center Ledger")
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(CORS_ORIGINS),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    logger.log("api_error", path=request.url.path, method=request.method, status=exc.status_code)
    return JSONResponse({"message": exc.message}, status_code=exc.status_code)


@app.post(SIGNIN_PATH)
async def sign_in(request: Request) -> JSONResponse:
    body = await _json_body(request)
    user_name = str(body.get("userName") or "")
    password = str(body.get("password") or "")
    account = USERS.get(user_name)
    if account is None or not hmac.compare_digest(account[0], password):
        logger.log("signin_rejected", user=user_name)
        raise ApiError(401, translator.translate("signin.invalid"))
    role = account[1]
    logger.log("signin_accepted", user=user_name, role=role)
    return JSONResponse(
        {
            "accessToken": issue_token(user_name, role),
            "role": role,
            "message": translator.translate("signin.success"),
        }
    )


def register_ledger(schema: FieldSchema) -> None:
    """Add the four record-store routes for ``schema``."""

    collection = schema.key

    def list_records(user: Dict[str, Any] = Depends(require_user)) -> Any:
        try:
            documents = list_entries(collection)
        except SQLAlchemyError as exc:
            logger.log("ledger_list_failed", ledger=collection, error=str(exc))
            raise ApiError(500, translator.translate("server.fetch_failed")) from exc
        if schema.envelope is None:
            return documents
        return {schema.envelope: documents}

    async def create_record(request: Request, user: Dict[str, Any] = Depends(require_user)) -> JSONResponse:
        body = await _json_body(request)
        try:
            document = insert_entry(collection, body)
        except SQLAlchemyError as exc:
            logger.log("ledger_create_failed", ledger=collection, error=str(exc))
            raise ApiError(500, translator.translate("server.create_failed")) from exc
        logger.log("ledger_created", ledger=collection, entry=document["_id"], user=user.get("userName"))
        return JSONResponse(
            {"message": translator.translate("server.created"), schema.item_key: document},
            status_code=201,
        )

    async def update_record(
        key: str,
        request: Request,
        user: Dict[str, Any] = Depends(require_user),
    ) -> Dict[str, Any]:
        body = await _json_body(request)
        try:
            document = update_entry(collection, key, body, record_key=schema.record_key)
        except SQLAlchemyError as exc:
            logger.log("ledger_update_failed", ledger=collection, key=key, error=str(exc))
            raise ApiError(500, translator.translate("server.update_failed")) from exc
        if document is None:
            raise ApiError(404, translator.translate("server.not_found"))
        logger.log("ledger_updated", ledger=collection, key=key, user=user.get("userName"))
        return {"message": translator.translate("server.updated"), schema.item_key: document}

    def delete_record(key: str, user: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
        try:
            deleted = delete_entry(collection, key, record_key=schema.record_key)
        except SQLAlchemyError as exc:
            logger.log("ledger_delete_failed", ledger=collection, key=key, error=str(exc))
            raise ApiError(500, translator.translate("server.delete_failed")) from exc
        if not deleted:
            raise ApiError(404, translator.translate("server.not_found"))
        logger.log("ledger_deleted", ledger=collection, key=key, user=user.get("userName"))
        return {"message": translator.translate("server.deleted")}

    app.add_api_route(schema.endpoint, list_records, methods=["GET"], name=f"{collection}:list")
    app.add_api_route(schema.endpoint, create_record, methods=["POST"], name=f"{collection}:create")
    app.add_api_route(f"{schema.endpoint}/{{key}}", update_record, methods=["PUT"], name=f"{collection}:update")
    app.add_api_route(f"{schema.endpoint}/{{key}}", delete_record, methods=["DELETE"], name=f"{collection}:delete")


for _schema in LEDGERS.values():
    register_ledger(_schema)

create_db_and_tables()


__all__ = ["ApiError", "app", "issue_token", "logger", "register_ledger", "require_user", "verify_token"]
