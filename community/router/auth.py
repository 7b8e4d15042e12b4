from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.dependencies import get_mailer
from core.network import get_client_ip
from core.policy import AuthContext
from core.security import create_access_token, require_user
from models.verification import VerificationPurpose
from schemas.auth import (
    EmailRegisterRequest,
    LoginRequest,
    LoginResponse,
    ResetPasswordRequest,
    SendCodeRequest,
    UserCreate,
)
from schemas.common import ApiResponse, ok
from schemas.user import UserResponse
from service import auth_service, user_service, verification_service
from service.mail_service import Mailer

router = APIRouter()


@router.post("/register", response_model=ApiResponse[UserResponse])
async def register(user_in: UserCreate, db: AsyncSession = Depends(get_db)):
    """새로운 사용자를 등록합니다. (이메일 미인증)"""
    user = await auth_service.create_user(db, user_in)
    return ok(UserResponse.model_validate(user), "회원가입이 완료되었습니다.")


@router.post("/login", response_model=ApiResponse[LoginResponse])
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    """자격 증명을 확인하고 JWT 접근 토큰을 반환합니다."""
    user = await auth_service.authenticate_user(db, data.username, data.password)

    token, expires_at = create_access_token(user.id, user.role)
    return ok(
        LoginResponse(token=token, expires_at=expires_at, user=UserResponse.model_validate(user)),
        "로그인되었습니다.",
    )


@router.post("/logout", response_model=ApiResponse)
async def logout(auth: AuthContext = Depends(require_user)):
    """토큰은 서버에 저장하지 않으므로 클라이언트가 버리면 끝"""
    return ok(message="로그아웃되었습니다.")


@router.get("/me", response_model=ApiResponse[UserResponse])
async def me(auth: AuthContext = Depends(require_user), db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user(db, auth.user_id)
    return ok(UserResponse.model_validate(user))


@router.post("/send-verification-code", response_model=ApiResponse)
async def send_verification_code(
    data: SendCodeRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """회원가입용 인증 코드 발송"""
    await verification_service.issue_code(
        db, mailer, data.email, VerificationPurpose.REGISTRATION, get_client_ip(request)
    )
    return ok(message="인증 코드를 이메일로 보냈습니다. 메일함을 확인해주세요.")


@router.post("/register-with-email", response_model=ApiResponse[UserResponse])
async def register_with_email(data: EmailRegisterRequest, db: AsyncSession = Depends(get_db)):
    """이메일 인증 코드로 회원가입"""
    user = await auth_service.register_with_email(db, data)
    return ok(UserResponse.model_validate(user), "회원가입이 완료되었습니다.")


@router.post("/send-reset-code", response_model=ApiResponse)
async def send_reset_code(
    data: SendCodeRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """비밀번호 재설정용 인증 코드 발송"""
    await verification_service.issue_code(
        db, mailer, data.email, VerificationPurpose.PASSWORD_RESET, get_client_ip(request)
    )
    return ok(message="비밀번호 재설정 인증 코드를 이메일로 보냈습니다.")


@router.post("/reset-password", response_model=ApiResponse)
async def reset_password(data: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    await auth_service.reset_password(db, data)
    return ok(message="비밀번호가 재설정되었습니다.")
