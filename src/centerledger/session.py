"""Session credentials and role based access to dashboard components."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from .exceptions import AuthorizationError, MissingCredentialsError, PermissionDeniedError, StoreUnavailableError
from .i18n import Translator
from .ops import StructuredLogger, get_logger
from .storage import CookieJar

if TYPE_CHECKING:  # pragma: no cover
    from .client import Transport

TOKEN_COOKIE = "accessToken"
ROLE_COOKIE = "userRole"
SESSION_COOKIE_DAYS = 7
SIGNIN_PATH = "/api/sample/auth/signin"

ADMIN = "admin"
FACTORY_ROLES = ("factory1", "factory2", "factory3", "factory4", "factory5")
DASHBOARD_ROLES = (ADMIN,) + FACTORY_ROLES

ROLE_ACCESS: Dict[str, tuple[str, ...]] = {
    "factory1": (
        "البلينا للتجارة والحسابات",
        "حساب عمال البلينا",
        "حسابات تجار البلينا",
        "مبيعات البلينا معرض الجمهورية",
    ),
    "factory2": (
        "جرجا للتجارة والحسابات",
        "حساب تجار جرجا معرض مول العرب",
        "حسابات عمال جرجا معرض مول العرب",
        "مبيعات جرجا مول العرب",
    ),
    "factory3": (
        "سنتر دلع الهوانم للحسابات",
        "حسابات عمال سنتر دلع الهوانم",
        "حسابات تجار سنتر دلع الهوانم",
        "مبيعات سنتر دلع الهوانم",
    ),
    "factory4": (
        "سنتر سيما للحسابات",
        "حسابات عمال سنتر سيما",
        "مبيعات سنتر سيما",
        "حساب تجار سنتر سيما",
    ),
    "factory5": (
        "سنتر غزة للحسابات",
        "مبيعات سنتر غزة",
        "حساب تجار سنتر غزة",
        "حسابات عمال سنتر غزة",
    ),
}

# Each factory role can open its center's accounts but not the center's own books.
RESTRICTED_COMPONENTS: Dict[str, tuple[str, ...]] = {
    "factory1": ("البلينا معرض الجمهورية الدولي",),
    "factory2": ("جرجا معرض مول العرب",),
    "factory3": ("سنتر دلع الهوانم",),
    "factory4": ("سنتر سيما",),
    "factory5": ("سنتر غزة",),
}


def decode_token(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """Return the payload segment of a JWT-shaped token without verifying it."""

    if not token:
        return None
    parts = token.split(".")
    if len(parts) < 2:
        return None
    segment = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(segment.encode("ascii")).decode("utf-8"))
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


@dataclass(frozen=True, slots=True)
class SessionContext:
    token: Optional[str] = None
    role: str = ""
    user_name: Optional[str] = None

    @classmethod
    def from_cookies(cls, cookies: CookieJar) -> "SessionContext":
        """Read the session the way the dashboard does.

        The role is the ``userName`` claim of the token when present,
        otherwise the ``userRole`` cookie.
        """

        token = cookies.get(TOKEN_COOKIE)
        if not token:
            return cls()
        claims = decode_token(token) or {}
        user_name = claims.get("userName")
        role = user_name or cookies.get(ROLE_COOKIE) or ""
        return cls(token=token, role=str(role), user_name=user_name)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN

    def require_token(self) -> str:
        if not self.token:
            raise MissingCredentialsError("Access token required")
        return self.token

    def authorization_header(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.require_token()}"}


@dataclass(frozen=True, slots=True)
class RolePermissions:
    can_edit: bool
    can_delete: bool
    can_access: bool

    def require(self, action: str) -> None:
        """Raise :class:`PermissionDeniedError` unless ``action`` is allowed."""

        allowed = {"edit": self.can_edit, "delete": self.can_delete, "access": self.can_access}[action]
        if not allowed:
            raise PermissionDeniedError(f"This role may not {action} the ledger")


def get_role_permissions(role: str, component: Optional[str] = None) -> RolePermissions:
    if role == ADMIN:
        return RolePermissions(can_edit=True, can_delete=True, can_access=True)
    allowed = ROLE_ACCESS.get(role, ())
    return RolePermissions(can_edit=False, can_delete=False, can_access=component is not None and component in allowed)


def restricted_components(role: str) -> tuple[str, ...]:
    return RESTRICTED_COMPONENTS.get(role, ())


def should_show_component(role: str, component: str) -> bool:
    if role == ADMIN:
        return True
    return component not in restricted_components(role)


def sign_in(
    transport: "Transport",
    base_url: str,
    user_name: str,
    password: str,
    cookies: CookieJar,
    *,
    translator: Translator | None = None,
    logger: StructuredLogger | None = None,
) -> SessionContext:
    """Exchange credentials for a token and store it in ``cookies``."""

    translator = translator or Translator()
    logger = logger or get_logger()
    url = base_url.rstrip("/") + SIGNIN_PATH
    response = transport.request(
        "POST",
        url,
        {"Content-Type": "application/json"},
        json={"userName": user_name, "password": password},
    )
    payload: Mapping[str, Any] = response.payload if isinstance(response.payload, Mapping) else {}
    if response.status == 404:
        logger.log("signin_failed", user=user_name, status=404)
        raise StoreUnavailableError(translator.translate("signin.service_unavailable"), status=404)
    if not response.ok:
        logger.log("signin_failed", user=user_name, status=response.status)
        message = payload.get("message") or translator.translate("signin.invalid")
        raise AuthorizationError(str(message), status=response.status)

    token = payload.get("accessToken") or payload.get("token")
    if not token:
        logger.log("signin_failed", user=user_name, status=response.status, reason="no_token")
        raise AuthorizationError(translator.translate("signin.no_token"), status=response.status)

    cookies.set(TOKEN_COOKIE, str(token), SESSION_COOKIE_DAYS)
    role = payload.get("role")
    if role:
        cookies.set(ROLE_COOKIE, str(role), SESSION_COOKIE_DAYS)
    logger.log("signin_succeeded", user=user_name, role=role)
    return SessionContext.from_cookies(cookies)


def sign_out(cookies: CookieJar) -> None:
    cookies.remove(TOKEN_COOKIE)
    cookies.remove(ROLE_COOKIE)


__all__ = [
    "ADMIN",
    "DASHBOARD_ROLES",
    "FACTORY_ROLES",
    "RolePermissions",
    "SessionContext",
    "decode_token",
    "get_role_permissions",
    "restricted_components",
    "should_show_component",
    "sign_in",
    "sign_out",
]
