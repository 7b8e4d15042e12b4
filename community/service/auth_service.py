from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core import clock
from core.exceptions import AuthenticationError, BusinessError, NotFoundError
from core.logger import get_logger
from core.password import get_password_hash, verify_password
from models.users import Role, User, UserStatus
from models.verification import VerificationPurpose
from repository import user_repo
from schemas.auth import EmailRegisterRequest, ResetPasswordRequest, UserCreate
from service import verification_service

logger = get_logger("auth")

BAD_CREDENTIALS = "아이디 또는 비밀번호가 올바르지 않습니다."
INVALID_CODE = "인증 코드가 올바르지 않거나 만료되었습니다."


def _ensure_passwords_match(password: str, confirm_password: str) -> None:
    if password != confirm_password:
        raise BusinessError("두 비밀번호가 일치하지 않습니다.")


async def _ensure_unique(db: AsyncSession, username: str, email: str) -> None:
    # 1. 유저네임 중복 확인
    if await user_repo.exists_by_username(db, username):
        raise BusinessError("이미 존재하는 아이디입니다.")
    # 2. 이메일 중복 확인
    if await user_repo.exists_by_email(db, email):
        raise BusinessError("이미 가입된 이메일입니다.")


async def _insert_user(db: AsyncSession, user: User) -> User:
    try:
        return await user_repo.create(db, user)
    except IntegrityError:
        # 중복 확인과 INSERT 사이에 같은 아이디/이메일로 가입한 요청이 있었던 경우
        await db.rollback()
        raise BusinessError("이미 존재하는 아이디 또는 이메일입니다.")


async def create_user(db: AsyncSession, user_in: UserCreate) -> User:
    """회원가입 비즈니스 로직 (이메일 미인증 상태)"""
    _ensure_passwords_match(user_in.password, user_in.confirm_password)
    await _ensure_unique(db, user_in.username, user_in.email)

    # User 모델 객체 생성 (비밀번호 해싱!)
    db_user = User(
        username=user_in.username,
        email=user_in.email,
        hashed_password=get_password_hash(user_in.password),
        nickname=user_in.nickname or user_in.username,
        role=Role.USER,
        status=UserStatus.ACTIVE,
        email_verified=False,
    )
    user = await _insert_user(db, db_user)
    logger.info("회원가입", extra={"extra_data": {"user_id": user.id}})
    return user


async def register_with_email(db: AsyncSession, data: EmailRegisterRequest) -> User:
    """
    인증 코드로 이메일 가입

    중복 확인은 코드 사용 전에 한다. 이미 가입된 이메일이면 코드는 PENDING 그대로 남는다.
    """
    email = verification_service.validate_email(data.email)
    verification_service.validate_code(data.verification_code)
    _ensure_passwords_match(data.password, data.confirm_password)
    await _ensure_unique(db, email, email)

    redeemed = await verification_service.redeem_code(
        db, email, data.verification_code, VerificationPurpose.REGISTRATION
    )
    if not redeemed:
        raise BusinessError(INVALID_CODE)

    db_user = User(
        username=email,
        email=email,
        hashed_password=get_password_hash(data.password),
        nickname=data.nickname or email.split("@")[0],
        role=Role.USER,
        status=UserStatus.ACTIVE,
        email_verified=True,
    )
    user = await _insert_user(db, db_user)
    logger.info("이메일 인증 회원가입", extra={"extra_data": {"user_id": user.id}})
    return user


async def authenticate_user(db: AsyncSession, username: str, password: str) -> User:
    """
    로그인 검증 비즈니스 로직

    - 유저 없음 / 비밀번호 틀림 → 같은 메시지 (아이디 존재 여부 노출 방지)
    - 비밀번호는 맞지만 INACTIVE / BANNED → 로그인 불가
    - 성공 시 last_login_time 갱신
    - 이메일 가입자의 username 은 표준 형태 이메일이므로 대소문자 다르게 입력해도 찾는다
    """
    user = await user_repo.find_by_username(db, username)
    if user is None and "@" in username:
        user = await user_repo.find_by_username(db, verification_service.normalize_email(username))

    if not user or not verify_password(password, user.hashed_password):
        logger.warning("로그인 실패", extra={"extra_data": {"username": username}})
        raise AuthenticationError(BAD_CREDENTIALS)

    if user.status != UserStatus.ACTIVE:
        logger.warning(
            "비활성/차단 계정 로그인 시도",
            extra={"extra_data": {"user_id": user.id, "status": user.status.value}},
        )
        raise AuthenticationError("사용할 수 없는 계정입니다.")

    user.last_login_time = clock.utcnow()
    user = await user_repo.save(db, user)
    logger.info("로그인 성공", extra={"extra_data": {"user_id": user.id}})
    return user


async def reset_password(db: AsyncSession, data: ResetPasswordRequest) -> None:
    """인증 코드로 비밀번호 재설정"""
    email = verification_service.validate_email(data.email)
    verification_service.validate_code(data.verification_code)
    _ensure_passwords_match(data.new_password, data.confirm_password)

    redeemed = await verification_service.redeem_code(
        db, email, data.verification_code, VerificationPurpose.PASSWORD_RESET
    )
    if not redeemed:
        raise BusinessError(INVALID_CODE)

    user = await user_repo.find_by_email(db, email)
    if not user:
        raise NotFoundError("가입되지 않은 이메일입니다.", status_code=400)

    user.hashed_password = get_password_hash(data.new_password)
    await user_repo.save(db, user)
    logger.info("비밀번호 재설정", extra={"extra_data": {"user_id": user.id}})
