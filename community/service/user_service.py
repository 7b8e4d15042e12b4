from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import BusinessError, NotFoundError
from core.logger import get_logger
from core.password import get_password_hash, verify_password
from models.users import User
from models.verification import VerificationCode, VerificationPurpose
from repository import user_repo
from schemas.user import ChangePasswordRequest, EmailChangeRequest, ProfileUpdate
from service import verification_service
from service.mail_service import Mailer

logger = get_logger("user")


async def get_user(db: AsyncSession, user_id: str) -> User:
    """유저 조회, 없으면 404"""
    user = await user_repo.find_by_id(db, user_id)
    if not user:
        raise NotFoundError("사용자를 찾을 수 없습니다.")
    return user


async def update_profile(db: AsyncSession, user_id: str, data: ProfileUpdate) -> User:
    user = await get_user(db, user_id)

    for field, value in data.model_dump(exclude_none=True).items():
        setattr(user, field, value)

    return await user_repo.save(db, user)


async def change_password(db: AsyncSession, user_id: str, data: ChangePasswordRequest) -> None:
    """비밀번호 변경 (기존 비밀번호 확인 필수)"""
    if data.new_password != data.confirm_password:
        raise BusinessError("두 비밀번호가 일치하지 않습니다.")

    user = await get_user(db, user_id)
    if not verify_password(data.old_password, user.hashed_password):
        raise BusinessError("기존 비밀번호가 올바르지 않습니다.")

    user.hashed_password = get_password_hash(data.new_password)
    await user_repo.save(db, user)
    logger.info("비밀번호 변경", extra={"extra_data": {"user_id": user_id}})


async def request_email_change(
    db: AsyncSession, mailer: Mailer, user_id: str, new_email: str, source_ip: str | None = None
) -> VerificationCode:
    """새 이메일 주소로 EMAIL_CHANGE 인증 코드 발송"""
    new_email = verification_service.validate_email(new_email)
    user = await get_user(db, user_id)

    if new_email == user.email:
        raise BusinessError("현재 사용 중인 이메일입니다.")
    if await user_repo.exists_by_email(db, new_email):
        raise BusinessError("이미 가입된 이메일입니다.")

    return await verification_service.issue_code(
        db, mailer, new_email, VerificationPurpose.EMAIL_CHANGE, source_ip
    )


async def confirm_email_change(db: AsyncSession, user_id: str, data: EmailChangeRequest) -> User:
    """인증 코드 확인 후 이메일 변경 (변경된 이메일은 인증된 것으로 간주)"""
    new_email = verification_service.validate_email(data.new_email)
    verification_service.validate_code(data.verification_code)

    if await user_repo.exists_by_email(db, new_email):
        raise BusinessError("이미 가입된 이메일입니다.")

    redeemed = await verification_service.redeem_code(
        db, new_email, data.verification_code, VerificationPurpose.EMAIL_CHANGE
    )
    if not redeemed:
        raise BusinessError("인증 코드가 올바르지 않거나 만료되었습니다.")

    user = await get_user(db, user_id)
    user.email = new_email
    user.email_verified = True
    try:
        user = await user_repo.save(db, user)
    except IntegrityError:
        await db.rollback()
        raise BusinessError("이미 가입된 이메일입니다.")

    logger.info("이메일 변경", extra={"extra_data": {"user_id": user_id}})
    return user
