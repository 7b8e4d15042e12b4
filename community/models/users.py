import enum
import uuid
from datetime import datetime
from sqlalchemy import String, Text, Boolean, Enum, false
from sqlalchemy.orm import Mapped, mapped_column
from models.base import TimestampMixin, UtcDateTime
from core.database import Base


class Role(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class UserStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    BANNED = "BANNED"


class User(TimestampMixin, Base):
    """
    사용자 모델

    - id: UUID v4 (예측 불가)
    - hashed_password: 평문 비밀번호를 절대 저장하지 않음
    - status: 하드 삭제 대신 INACTIVE / BANNED 로 전환
      인증 게이트가 매 요청마다 다시 확인하므로 차단은 토큰 만료 전에도 즉시 적용된다
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    username: Mapped[str] = mapped_column(
        String(255),         # 이메일 가입 시 이메일(최대 254자)이 그대로 username
        unique=True,
        index=True,
        nullable=False,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )

    # bcrypt 해시는 60자, 여유있게 255
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # 프로필
    nickname: Mapped[str | None] = mapped_column(String(50))
    avatar_url: Mapped[str | None] = mapped_column(String(500))
    bio: Mapped[str | None] = mapped_column(Text)
    location: Mapped[str | None] = mapped_column(String(100))

    role: Mapped[Role] = mapped_column(
        Enum(Role, native_enum=False, length=20),
        default=Role.USER,
        nullable=False,
    )

    status: Mapped[UserStatus] = mapped_column(
        Enum(UserStatus, native_enum=False, length=20),
        default=UserStatus.ACTIVE,
        nullable=False,
        index=True,
    )

    email_verified: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        nullable=False,
    )

    last_login_time: Mapped[datetime | None] = mapped_column(UtcDateTime)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE
