"""
경로별 접근 정책

정적인 (경로 패턴 → 접근 수준) 표. 위에서부터 처음 일치하는 규칙이 적용되고,
어느 규칙에도 걸리지 않으면 AUTHENTICATED.

패턴 문법:
    /api/admin/**      /api/admin 아래 전부
    /api/posts/*/edit  한 세그먼트만 와일드카드
"""
import enum
import re
from dataclasses import dataclass, field

from core.exceptions import AuthenticationError, AuthorizationError
from models.users import Role


class Access(str, enum.Enum):
    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


@dataclass(frozen=True)
class AuthContext:
    """요청 단위 인증 정보. 인증 게이트가 만들고 핸들러는 읽기만 한다"""
    user_id: str | None = None
    username: str | None = None
    role: Role | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


ANONYMOUS = AuthContext()


def _compile(pattern: str) -> re.Pattern:
    regex = ""
    i = 0
    while i < len(pattern):
        if pattern.startswith("/**", i):
            regex += "(/.*)?"
            i += 3
        elif pattern[i] == "*":
            regex += "[^/]*"
            i += 1
        else:
            regex += re.escape(pattern[i])
            i += 1
    return re.compile(f"^{regex}/?$")


@dataclass(frozen=True)
class RouteRule:
    pattern: str
    access: Access
    regex: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "regex", _compile(self.pattern))

    def matches(self, path: str) -> bool:
        return self.regex.match(path) is not None


class RoutePolicy:
    def __init__(self, rules: list[RouteRule], default: Access = Access.AUTHENTICATED):
        self.rules = rules
        self.default = default

    def access_for(self, path: str) -> Access:
        for rule in self.rules:
            if rule.matches(path):
                return rule.access
        return self.default

    def check(self, path: str, auth: AuthContext) -> None:
        """정책 위반 시 401(미인증) / 403(권한 부족)"""
        access = self.access_for(path)

        if access is Access.PUBLIC:
            return
        if not auth.is_authenticated:
            raise AuthenticationError("로그인이 필요합니다.")
        if access is Access.ADMIN and not auth.is_admin:
            raise AuthorizationError("접근이 거부되었습니다. 관리자 권한이 필요합니다.")


ROUTE_POLICY = RoutePolicy([
    RouteRule("/health", Access.PUBLIC),
    RouteRule("/api/auth/login", Access.PUBLIC),
    RouteRule("/api/auth/register", Access.PUBLIC),
    RouteRule("/api/auth/send-verification-code", Access.PUBLIC),
    RouteRule("/api/auth/register-with-email", Access.PUBLIC),
    RouteRule("/api/auth/send-reset-code", Access.PUBLIC),
    RouteRule("/api/auth/reset-password", Access.PUBLIC),
    RouteRule("/api/admin/**", Access.ADMIN),
    RouteRule("/api/auth/**", Access.AUTHENTICATED),
    RouteRule("/api/user/**", Access.AUTHENTICATED),
])
