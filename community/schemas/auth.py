from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator

from core.exceptions import ValidationError
from core.password import check_password_strength
from schemas.user import UserResponse
from service.verification_service import validate_email


class UserCreate(BaseModel):
    """회원가입 요청 (이메일 인증 없이, email_verified = False)"""
    username: str = Field(..., min_length=3, max_length=50, description="사용자 아이디")
    email: EmailStr = Field(..., description="사용자 이메일 (소문자로 저장)")
    password: str = Field(..., description="비밀번호 (8자 이상)")
    confirm_password: str = Field(..., description="비밀번호 확인")
    nickname: str | None = Field(None, max_length=50)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        # 인증 코드 발급/사용과 같은 표준 형태로 저장
        try:
            return validate_email(v)
        except ValidationError as e:
            raise ValueError(e.message)


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """로그인 성공 시 JWT 토큰 + 사용자 정보"""
    token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserResponse


class SendCodeRequest(BaseModel):
    """인증 코드 발송 요청. 이메일 형식은 서비스에서 검사 (DB 접근 전)"""
    email: str


class EmailRegisterRequest(BaseModel):
    """이메일 인증 코드로 회원가입 (username은 이메일 그대로)"""
    email: str
    password: str
    confirm_password: str
    verification_code: str
    nickname: str | None = Field(None, max_length=50)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class ResetPasswordRequest(BaseModel):
    email: str
    new_password: str
    confirm_password: str
    verification_code: str

    @field_validator('new_password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)
