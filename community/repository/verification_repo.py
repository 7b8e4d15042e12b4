from datetime import datetime
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from models.verification import VerificationCode, VerificationPurpose, VerificationStatus

# 이 모듈의 함수는 commit 하지 않는다.
# 발급(삭제 → 추가 → 메일 발송)을 한 트랜잭션으로 묶기 위해 commit/rollback은 서비스가 결정한다.


async def count_issued_since(
    db: AsyncSession, email: str, purpose: VerificationPurpose, since: datetime
) -> int:
    """since 이후 발급된 코드 수 (재발송 제한용)"""
    count = await db.scalar(
        select(func.count())
        .select_from(VerificationCode)
        .where(
            VerificationCode.email == email,
            VerificationCode.purpose == purpose,
            VerificationCode.created_at > since,
        )
    )
    return count or 0


async def delete_for(db: AsyncSession, email: str, purpose: VerificationPurpose) -> None:
    """(email, purpose)의 기존 코드 전부 삭제. 새 코드 발급 직전에 호출"""
    await db.execute(
        delete(VerificationCode).where(
            VerificationCode.email == email,
            VerificationCode.purpose == purpose,
        )
    )


async def add(db: AsyncSession, verification: VerificationCode) -> VerificationCode:
    """INSERT까지 flush (PENDING 중복이면 여기서 IntegrityError)"""
    db.add(verification)
    await db.flush()
    return verification


async def expire_stale(db: AsyncSession, now: datetime) -> int:
    """만료 시각이 지난 PENDING 코드를 EXPIRED로 일괄 변경"""
    result = await db.execute(
        update(VerificationCode)
        .where(
            VerificationCode.status == VerificationStatus.PENDING,
            VerificationCode.expires_at < now,
        )
        .values(status=VerificationStatus.EXPIRED)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def mark_used(
    db: AsyncSession, email: str, code: str, purpose: VerificationPurpose, now: datetime
) -> bool:
    """
    조건부 UPDATE 한 번으로 PENDING → USED

    조회 후 수정하면 동시 요청 두 개가 같은 코드를 둘 다 사용할 수 있으므로,
    WHERE 절에 status = PENDING 을 걸고 영향받은 행 수로 성공 여부를 판단한다.
    """
    result = await db.execute(
        update(VerificationCode)
        .where(
            VerificationCode.email == email,
            VerificationCode.code == code,
            VerificationCode.purpose == purpose,
            VerificationCode.status == VerificationStatus.PENDING,
            VerificationCode.expires_at > now,
        )
        .values(status=VerificationStatus.USED, verified_at=now)
        .execution_options(synchronize_session=False)
    )
    return (result.rowcount or 0) > 0
