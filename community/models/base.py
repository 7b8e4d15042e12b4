from datetime import datetime
from sqlalchemy import DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

# 모든 시각 컬럼 타입 (PostgreSQL timestamptz, 값은 UTC)
UtcDateTime = DateTime(timezone=True)


class TimestampMixin:
    """
    행의 생성/수정 시각을 DB가 채우는 테이블용 (users)

    verification_codes 는 created_at 을 서비스 시계(core.clock)로 직접 넣으므로 쓰지 않는다.
    """

    created_at: Mapped[datetime] = mapped_column(UtcDateTime, server_default=func.now(), nullable=False)

    # onupdate 는 DB 함수라 commit 후 refresh 해야 값이 보인다 (user_repo.save)
    updated_at: Mapped[datetime] = mapped_column(
        UtcDateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )
