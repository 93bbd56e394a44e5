import pytest

from centerledger.exceptions import (
    AuthorizationError,
    MissingCredentialsError,
    PermissionDeniedError,
    StoreUnavailableError,
)
from centerledger.session import (
    ROLE_COOKIE,
    TOKEN_COOKIE,
    SessionContext,
    decode_token,
    get_role_permissions,
    should_show_component,
    sign_in,
    sign_out,
)


def test_decode_token(make_token) -> None:
    assert decode_token(make_token(userName="factory5")) == {"userName": "factory5"}
    assert decode_token("not-a-token") is None
    assert decode_token("a.!!!.c") is None
    assert decode_token(None) is None


def test_role_comes_from_the_token_claim(cookie_jar, make_token) -> None:
    cookie_jar.set(TOKEN_COOKIE, make_token(userName="factory3"), 7)
    cookie_jar.set(ROLE_COOKIE, "admin", 7)

    session = SessionContext.from_cookies(cookie_jar)

    assert session.role == "factory3"
    assert session.user_name == "factory3"
    assert session.authorization_header() == {"Authorization": f"Bearer {session.token}"}


def test_role_falls_back_to_the_role_cookie(cookie_jar, make_token) -> None:
    cookie_jar.set(TOKEN_COOKIE, make_token(sub="42"), 7)
    cookie_jar.set(ROLE_COOKIE, "admin", 7)

    session = SessionContext.from_cookies(cookie_jar)

    assert session.is_admin
    assert session.user_name is None


def test_missing_token_session(cookie_jar) -> None:
    session = SessionContext.from_cookies(cookie_jar)

    assert not session.is_authenticated
    with pytest.raises(MissingCredentialsError):
        session.authorization_header()


def test_admin_has_every_permission() -> None:
    permissions = get_role_permissions("admin", "سنتر غزة")

    assert permissions.can_edit and permissions.can_delete and permissions.can_access
    assert should_show_component("admin", "سنتر غزة")


def test_factory_roles_only_reach_their_components() -> None:
    sales = get_role_permissions("factory5", "مبيعات سنتر غزة")
    books = get_role_permissions("factory5", "سنتر غزة")
    other = get_role_permissions("factory5", "مبيعات سنتر سيما")

    assert sales.can_access and not sales.can_edit and not sales.can_delete
    assert not books.can_access
    assert not other.can_access
    assert not get_role_permissions("factory5").can_access
    assert not should_show_component("factory5", "سنتر غزة")
    assert should_show_component("factory5", "سنتر سيما")
    with pytest.raises(PermissionDeniedError):
        sales.require("delete")
    sales.require("access")


def test_unknown_role_gets_nothing() -> None:
    permissions = get_role_permissions("guest", "سنتر غزة")

    assert permissions == get_role_permissions("guest", None)
    assert not permissions.can_access


def test_sign_in_stores_cookies(transport, cookie_jar, make_token, logger) -> None:
    token = make_token(userName="factory5")
    transport.respond(200, {"accessToken": token, "role": "factory5"})

    session = sign_in(transport, "https://ledger.test/", "factory5", "secret", cookie_jar, logger=logger)

    assert transport.calls[0]["url"] == "https://ledger.test/api/sample/auth/signin"
    assert transport.calls[0]["json"] == {"userName": "factory5", "password": "secret"}
    assert session.token == token
    assert session.role == "factory5"
    assert cookie_jar.get(ROLE_COOKIE) == "factory5"
    assert logger.events("signin_succeeded")

    sign_out(cookie_jar)

    assert not SessionContext.from_cookies(cookie_jar).is_authenticated
    assert cookie_jar.get(ROLE_COOKIE) is None


def test_sign_in_failures(transport, cookie_jar) -> None:
    transport.respond(404).respond(401, {"message": "bad"}).respond(401).respond(200, {"role": "admin"})

    with pytest.raises(StoreUnavailableError):
        sign_in(transport, "https://ledger.test", "a", "b", cookie_jar)
    with pytest.raises(AuthorizationError, match="bad"):
        sign_in(transport, "https://ledger.test", "a", "b", cookie_jar)
    with pytest.raises(AuthorizationError, match="اسم المستخدم أو كلمة المرور غير صحيحة"):
        sign_in(transport, "https://ledger.test", "a", "b", cookie_jar)
    with pytest.raises(AuthorizationError, match="لم يتم استلام رمز التوثيق من الخادم"):
        sign_in(transport, "https://ledger.test", "a", "b", cookie_jar)

    assert cookie_jar.get(TOKEN_COOKIE) is None
