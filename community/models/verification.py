import enum
from datetime import datetime
from sqlalchemy import String, Enum, Index, Integer, text
from sqlalchemy.orm import Mapped, mapped_column
from core.database import Base
from models.base import UtcDateTime


class VerificationPurpose(str, enum.Enum):
    REGISTRATION = "REGISTRATION"
    PASSWORD_RESET = "PASSWORD_RESET"
    EMAIL_CHANGE = "EMAIL_CHANGE"


class VerificationStatus(str, enum.Enum):
    PENDING = "PENDING"
    USED = "USED"
    EXPIRED = "EXPIRED"


class VerificationCode(Base):
    """
    이메일 인증 코드 (6자리 숫자, 1회용)

    상태 전이: PENDING → USED (사용) / PENDING → EXPIRED (만료, 조회 시점에 일괄 반영)
    (email, purpose) 당 PENDING 코드는 최대 1개 (부분 유니크 인덱스)

    created_at은 server_default가 아니라 서비스가 clock.utcnow()로 직접 넣는다 (만료 시각과 같은 시계).
    """
    __tablename__ = "verification_codes"
    __table_args__ = (
        Index(
            "uq_verification_codes_pending",
            "email",
            "purpose",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
        Index("ix_verification_codes_email_purpose_created", "email", "purpose", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    email: Mapped[str] = mapped_column(String(255), nullable=False)

    code: Mapped[str] = mapped_column(String(6), nullable=False)

    purpose: Mapped[VerificationPurpose] = mapped_column(
        Enum(VerificationPurpose, native_enum=False, length=20),
        nullable=False,
    )

    status: Mapped[VerificationStatus] = mapped_column(
        Enum(VerificationStatus, native_enum=False, length=20),
        default=VerificationStatus.PENDING,
        nullable=False,
    )

    expires_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)

    verified_at: Mapped[datetime | None] = mapped_column(UtcDateTime)

    # IPv6 최대 45자
    ip_address: Mapped[str | None] = mapped_column(String(45))
