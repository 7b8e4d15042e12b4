from dataclasses import dataclass
from datetime import datetime, timedelta
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from core import clock
from core.config import settings
from core.database import get_db
from core.exceptions import AuthenticationError, AuthorizationError, InvalidTokenError
from core.logger import get_logger
from core.policy import ANONYMOUS, ROUTE_POLICY, AuthContext
from models.users import Role, UserStatus
from repository import user_repo

logger = get_logger("security")

# HTTPBearer: Authorization 헤더에서 "Bearer <token>" 추출
# auto_error=False: 토큰이 없어도 에러가 아니라 익명, 허용 여부는 경로 정책이 결정
security_schema = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    role: Role


def create_access_token(
    user_id: str, role: Role, expires_delta: timedelta | None = None
) -> tuple[str, datetime]:
    """접근 토큰 발급 → (토큰, 만료 시각)"""
    issued_at = clock.utcnow()
    expire = issued_at + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": user_id,
        "role": role.value,
        "iat": issued_at,
        "exp": expire,
        "type": "access",
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, expire


def decode_access_token(token: str) -> TokenClaims:
    """
    서명/만료/형식을 검증하고 (subject, role)을 돌려준다.
    실패 원인(서명 불일치 / 만료 / 형식)은 구분하지 않고 모두 InvalidTokenError.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        user_id = payload.get("sub")
        if not user_id or payload.get("type") != "access":
            raise InvalidTokenError()
        return TokenClaims(subject=user_id, role=Role(payload.get("role")))
    except (JWTError, ValueError):
        raise InvalidTokenError()


async def get_auth_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(security_schema),
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """
    인증 게이트: 요청마다 한 번 실행 (Depends 캐시)

    1. Bearer 토큰이 없으면 익명
    2. 토큰 검증 실패도 익명 (요청을 끊지 않음, 거절은 경로 정책의 몫)
    3. DB에서 현재 유저 상태를 다시 확인, 삭제/INACTIVE/BANNED 면 익명
       (토큰 폐기 목록 없이 차단이 즉시 적용되는 이유)
    4. 역할은 토큰이 아니라 DB에 저장된 현재 역할을 쓴다
    """
    if credentials is None:
        return ANONYMOUS

    try:
        claims = decode_access_token(credentials.credentials)
    except InvalidTokenError:
        logger.debug("토큰 검증 실패 → 익명 처리")
        return ANONYMOUS

    user = await user_repo.find_by_id(db, claims.subject)
    if user is None or user.status != UserStatus.ACTIVE:
        logger.info(
            "사용할 수 없는 계정의 토큰 → 익명 처리",
            extra={"extra_data": {"user_id": claims.subject}},
        )
        return ANONYMOUS

    return AuthContext(user_id=user.id, username=user.username, role=user.role)


async def enforce_route_policy(
    request: Request,
    auth: AuthContext = Depends(get_auth_context),
) -> None:
    """앱 전역 의존성. 정적 정책 표로 401 / 403 판정"""
    ROUTE_POLICY.check(request.url.path, auth)


async def require_user(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """로그인한 사용자만 통과"""
    if not auth.is_authenticated:
        raise AuthenticationError("로그인이 필요합니다.")
    return auth


async def require_admin(auth: AuthContext = Depends(require_user)) -> AuthContext:
    """관리자만 통과"""
    if not auth.is_admin:
        raise AuthorizationError("접근이 거부되었습니다. 관리자 권한이 필요합니다.")
    return auth
