from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.dependencies import get_mailer
from core.network import get_client_ip
from core.policy import AuthContext
from core.security import require_user
from schemas.common import ApiResponse, ok
from schemas.user import (
    ChangePasswordRequest,
    EmailChangeCodeRequest,
    EmailChangeRequest,
    ProfileUpdate,
    UserResponse,
)
from service import user_service
from service.mail_service import Mailer

router = APIRouter()


@router.get("/profile", response_model=ApiResponse[UserResponse])
async def get_profile(auth: AuthContext = Depends(require_user), db: AsyncSession = Depends(get_db)):
    """내 프로필 조회"""
    user = await user_service.get_user(db, auth.user_id)
    return ok(UserResponse.model_validate(user))


@router.put("/profile", response_model=ApiResponse[UserResponse])
async def update_profile(
    data: ProfileUpdate,
    auth: AuthContext = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """내 프로필 수정 (닉네임, 소개, 아바타, 지역)"""
    user = await user_service.update_profile(db, auth.user_id, data)
    return ok(UserResponse.model_validate(user), "프로필이 수정되었습니다.")


@router.put("/password", response_model=ApiResponse)
async def change_password(
    data: ChangePasswordRequest,
    auth: AuthContext = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await user_service.change_password(db, auth.user_id, data)
    return ok(message="비밀번호가 변경되었습니다.")


@router.post("/email/code", response_model=ApiResponse)
async def send_email_change_code(
    data: EmailChangeCodeRequest,
    request: Request,
    auth: AuthContext = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """새 이메일 주소로 변경 인증 코드 발송"""
    await user_service.request_email_change(
        db, mailer, auth.user_id, data.new_email, get_client_ip(request)
    )
    return ok(message="새 이메일로 인증 코드를 보냈습니다.")


@router.put("/email", response_model=ApiResponse[UserResponse])
async def change_email(
    data: EmailChangeRequest,
    auth: AuthContext = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.confirm_email_change(db, auth.user_id, data)
    return ok(UserResponse.model_validate(user), "이메일이 변경되었습니다.")
