"""
이메일 인증 코드 서비스

(email, purpose) 별 상태:  없음 → PENDING → USED | EXPIRED

- 발급: 60초 재발송 제한 → 기존 코드 삭제 → 새 코드 저장 → 메일 발송 (한 트랜잭션)
- 사용: 만료된 PENDING 일괄 EXPIRED 처리 → 조건부 UPDATE로 PENDING → USED
- 사용 실패 이유(틀림 / 만료 / 이미 사용)는 밖으로 알려주지 않는다
"""
import re
import secrets
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core import clock
from core.config import settings
from core.exceptions import MailDeliveryError, RateLimitedError, ValidationError
from core.logger import get_logger
from models.verification import VerificationCode, VerificationPurpose, VerificationStatus
from repository import verification_repo
from service.mail_service import Mailer

logger = get_logger("verification")

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
CODE_PATTERN = re.compile(r"^\d{6}$")

# RFC 5321 경로 길이 상한. users.username / users.email / verification_codes.email 모두 이 길이를 담는다
MAX_EMAIL_LENGTH = 254

RATE_LIMIT_MESSAGE = "인증 코드 요청이 너무 잦습니다. 잠시 후 다시 시도해주세요."

_MAIL_ACTIONS = {
    VerificationPurpose.REGISTRATION: ("이메일 인증 코드", "회원가입을 진행하고 있습니다"),
    VerificationPurpose.PASSWORD_RESET: ("비밀번호 재설정 인증 코드", "비밀번호를 재설정하고 있습니다"),
    VerificationPurpose.EMAIL_CHANGE: ("이메일 변경 인증 코드", "계정 이메일을 변경하고 있습니다"),
}


def normalize_email(email: str) -> str:
    """저장/비교에 쓰는 표준 형태 (앞뒤 공백 제거 + 소문자)"""
    return email.strip().lower()


def validate_email(email: str | None) -> str:
    """형식 검사 후 표준 형태로 돌려준다. 이메일을 받는 모든 경로는 반환값을 써야 한다."""
    if email is None or not email.strip():
        raise ValidationError("이메일을 입력해주세요.")
    email = normalize_email(email)
    if len(email) > MAX_EMAIL_LENGTH:
        raise ValidationError(f"이메일은 {MAX_EMAIL_LENGTH}자 이하여야 합니다.")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("이메일 형식이 올바르지 않습니다.")
    return email


def validate_code(code: str | None) -> str:
    if code is None or not code.strip():
        raise ValidationError("인증 코드를 입력해주세요.")
    if not CODE_PATTERN.match(code):
        raise ValidationError("인증 코드는 6자리 숫자여야 합니다.")
    return code


def generate_code() -> str:
    """[100000, 999999] 균등 분포 6자리 코드 (앞자리 0 없음)"""
    return str(100000 + secrets.randbelow(900000))


def render_message(purpose: VerificationPurpose, code: str, issued_at: datetime) -> tuple[str, str]:
    """용도별 메일 제목/본문"""
    title, action = _MAIL_ACTIONS[purpose]
    subject = f"[{settings.site_name}] {title}"
    body = (
        f"안녕하세요.\n\n"
        f"{settings.site_name}에서 {action}. 인증 코드는 {code} 입니다.\n\n"
        f"인증 코드는 {settings.verification_code_ttl_minutes}분 동안만 유효합니다.\n\n"
        f"본인이 요청하지 않았다면 이 메일을 무시하거나 운영팀에 알려주세요.\n\n"
        f"{settings.site_name}\n"
        f"{issued_at.strftime('%Y-%m-%d %H:%M:%S')} (UTC)"
    )
    return subject, body


async def issue_code(
    db: AsyncSession,
    mailer: Mailer,
    email: str,
    purpose: VerificationPurpose,
    source_ip: str | None = None,
) -> VerificationCode:
    """
    인증 코드 발급 + 메일 발송

    Raises:
        ValidationError: 이메일 형식 오류 (DB 접근 전)
        RateLimitedError: 60초 안에 다시 요청 / 동시에 두 번 발급 시도
        MailDeliveryError: 메일 발송 실패 (코드 저장도 롤백)
    """
    email = validate_email(email)

    now = clock.utcnow()
    since = now - timedelta(seconds=settings.verification_resend_seconds)

    if await verification_repo.count_issued_since(db, email, purpose, since):
        logger.info(
            "인증 코드 재발송 제한",
            extra={"extra_data": {"email": email, "purpose": purpose.value, "ip": source_ip}},
        )
        raise RateLimitedError(RATE_LIMIT_MESSAGE)

    code = generate_code()
    try:
        # 기존 코드 삭제와 새 코드 추가는 같은 트랜잭션
        # 동시에 발급되면 부분 유니크 인덱스(PENDING 1개)에서 한쪽이 IntegrityError
        await verification_repo.delete_for(db, email, purpose)
        verification = await verification_repo.add(db, VerificationCode(
            email=email,
            code=code,
            purpose=purpose,
            status=VerificationStatus.PENDING,
            expires_at=now + timedelta(minutes=settings.verification_code_ttl_minutes),
            created_at=now,
            ip_address=source_ip,
        ))

        subject, body = render_message(purpose, code, now)
        await mailer.send(email, subject, body)

        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise RateLimitedError(RATE_LIMIT_MESSAGE)
    except MailDeliveryError:
        await db.rollback()
        raise

    logger.info(
        "인증 코드 발송",
        extra={"extra_data": {"email": email, "purpose": purpose.value, "ip": source_ip}},
    )
    return verification


async def redeem_code(db: AsyncSession, email: str, code: str, purpose: VerificationPurpose) -> bool:
    """
    인증 코드 사용 (1회용)

    Returns:
        True: PENDING → USED 전환 성공
        False: 코드 틀림 / 용도 다름 / 만료 / 이미 사용 (구분하지 않음)
    """
    email = validate_email(email)
    validate_code(code)

    now = clock.utcnow()
    await verification_repo.expire_stale(db, now)
    redeemed = await verification_repo.mark_used(db, email, code, purpose, now)
    await db.commit()

    if redeemed:
        logger.info(
            "인증 코드 확인 성공",
            extra={"extra_data": {"email": email, "purpose": purpose.value}},
        )
    else:
        logger.warning(
            "인증 코드 확인 실패",
            extra={"extra_data": {"email": email, "purpose": purpose.value}},
        )
    return redeemed


async def expire_stale_codes(db: AsyncSession) -> int:
    """만료된 PENDING 코드 정리 (관리자 엔드포인트에서 호출)"""
    count = await verification_repo.expire_stale(db, clock.utcnow())
    await db.commit()
    logger.info(f"만료된 인증 코드 {count}건 정리", extra={"extra_data": {"expired": count}})
    return count
