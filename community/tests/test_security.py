"""
토큰 / 경로 정책 단위 테스트
"""
from datetime import timedelta

import pytest
from jose import jwt
from starlette.requests import Request

from core import clock
from core.config import settings
from core.exceptions import AuthenticationError, AuthorizationError, InvalidTokenError
from core.network import get_client_ip
from core.policy import ANONYMOUS, ROUTE_POLICY, Access, AuthContext, RoutePolicy, RouteRule
from core.security import create_access_token, decode_access_token
from models.users import Role

USER_ID = "00000000-0000-0000-0000-000000000001"


# ===== 토큰 =====

def test_토큰_발급_후_검증():
    token, expire = create_access_token(USER_ID, Role.ADMIN)
    claims = decode_access_token(token)

    assert claims.subject == USER_ID
    assert claims.role is Role.ADMIN
    remaining = expire - clock.utcnow()
    assert timedelta(minutes=settings.jwt_expire_minutes - 1) < remaining <= timedelta(
        minutes=settings.jwt_expire_minutes
    )


def test_만료된_토큰():
    token, _ = create_access_token(USER_ID, Role.USER, expires_delta=timedelta(seconds=-1))
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_서명이_바뀐_토큰():
    token, _ = create_access_token(USER_ID, Role.USER)
    header, payload, signature = token.split(".")
    tampered = f"{header}.{payload}.{signature[::-1]}"
    with pytest.raises(InvalidTokenError):
        decode_access_token(tampered)


def test_다른_키로_서명한_토큰():
    token = jwt.encode(
        {"sub": USER_ID, "role": "ADMIN", "type": "access"},
        "another-secret",
        algorithm="HS256",
    )
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


@pytest.mark.parametrize("payload", [
    {"role": "USER", "type": "access"},                     # sub 없음
    {"sub": USER_ID, "role": "USER", "type": "refresh"},    # 접근 토큰 아님
    {"sub": USER_ID, "role": "ROOT", "type": "access"},     # 없는 역할
    {"sub": USER_ID, "type": "access"},                     # 역할 없음
])
def test_형식이_잘못된_토큰(payload):
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


@pytest.mark.parametrize("token", ["", "abc", "a.b.c"])
def test_토큰이_아닌_문자열(token):
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


# ===== 경로 정책 =====

@pytest.mark.parametrize("path, access", [
    ("/health", Access.PUBLIC),
    ("/api/auth/login", Access.PUBLIC),
    ("/api/auth/login/", Access.PUBLIC),
    ("/api/auth/send-reset-code", Access.PUBLIC),
    ("/api/auth/me", Access.AUTHENTICATED),
    ("/api/auth/logout", Access.AUTHENTICATED),
    ("/api/admin", Access.ADMIN),
    ("/api/admin/users", Access.ADMIN),
    ("/api/admin/users/abc/status", Access.ADMIN),
    ("/api/user/profile", Access.AUTHENTICATED),
    ("/anything/else", Access.AUTHENTICATED),
    ("/api/auth/login-extra", Access.AUTHENTICATED),
])
def test_경로별_접근_수준(path, access):
    assert ROUTE_POLICY.access_for(path) is access


def test_한_세그먼트_와일드카드():
    policy = RoutePolicy([RouteRule("/api/posts/*/comments", Access.PUBLIC)])
    assert policy.access_for("/api/posts/42/comments") is Access.PUBLIC
    assert policy.access_for("/api/posts/42/7/comments") is Access.AUTHENTICATED


def test_처음_일치한_규칙이_이긴다():
    policy = RoutePolicy([
        RouteRule("/api/board/notice", Access.ADMIN),
        RouteRule("/api/board/**", Access.PUBLIC),
    ])
    assert policy.access_for("/api/board/notice") is Access.ADMIN
    assert policy.access_for("/api/board/free") is Access.PUBLIC


def test_정책_판정():
    user = AuthContext(user_id=USER_ID, username="u", role=Role.USER)
    admin = AuthContext(user_id=USER_ID, username="a", role=Role.ADMIN)

    ROUTE_POLICY.check("/health", ANONYMOUS)
    ROUTE_POLICY.check("/api/auth/me", user)
    ROUTE_POLICY.check("/api/admin/users", admin)

    with pytest.raises(AuthenticationError):
        ROUTE_POLICY.check("/api/auth/me", ANONYMOUS)
    with pytest.raises(AuthenticationError):
        ROUTE_POLICY.check("/api/admin/users", ANONYMOUS)
    with pytest.raises(AuthorizationError):
        ROUTE_POLICY.check("/api/admin/users", user)


# ===== 클라이언트 IP =====

def _request(headers: dict, client=("192.168.0.9", 5000)) -> Request:
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": client,
    })


def test_클라이언트_IP_우선순위():
    assert get_client_ip(_request({"X-Forwarded-For": "1.1.1.1, 10.0.0.1", "X-Real-IP": "2.2.2.2"})) == "1.1.1.1"
    assert get_client_ip(_request({"X-Forwarded-For": "unknown", "X-Real-IP": "2.2.2.2"})) == "2.2.2.2"
    assert get_client_ip(_request({"X-Real-IP": "unknown"})) == "192.168.0.9"
    assert get_client_ip(_request({}, client=None)) is None


def test_설정된_유효시간이_지나면_만료(monkeypatch):
    """expires_delta 없이 발급 → 발급 시각을 과거로 옮겨 기본 TTL 이 지난 상태를 만든다"""
    real_now = clock.utcnow()
    ttl = timedelta(minutes=settings.jwt_expire_minutes)

    monkeypatch.setattr(clock, "utcnow", lambda: real_now - ttl + timedelta(minutes=1))
    still_valid, _ = create_access_token(USER_ID, Role.USER)

    monkeypatch.setattr(clock, "utcnow", lambda: real_now - ttl - timedelta(minutes=1))
    elapsed, _ = create_access_token(USER_ID, Role.USER)

    assert decode_access_token(still_valid).subject == USER_ID
    with pytest.raises(InvalidTokenError):
        decode_access_token(elapsed)
