from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from core.password import check_password_strength
from models.users import Role, UserStatus


class UserResponse(BaseModel):
    """사용자 정보 응답 (비밀번호 해시 제외!)"""
    id: str
    username: str
    email: str
    nickname: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    location: str | None = None
    role: Role
    status: UserStatus
    email_verified: bool
    last_login_time: datetime | None = None
    created_at: datetime

    model_config = {
        "from_attributes": True  # SQLAlchemy 모델 객체 → Pydantic 모델 자동 변환
    }


class ProfileUpdate(BaseModel):
    """None인 필드는 변경하지 않음"""
    nickname: str | None = Field(None, max_length=50)
    avatar_url: str | None = Field(None, max_length=500)
    bio: str | None = None
    location: str | None = Field(None, max_length=100)


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(..., min_length=1)
    new_password: str
    confirm_password: str

    @field_validator('new_password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class EmailChangeCodeRequest(BaseModel):
    """새 이메일로 인증 코드 발송"""
    new_email: str


class EmailChangeRequest(BaseModel):
    new_email: str
    verification_code: str
