from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import BusinessError
from core.logger import get_logger
from core.password import get_password_hash
from models.users import Role, User, UserStatus
from repository import user_repo
from service import verification_service
from service.user_service import get_user

logger = get_logger("admin")


async def list_users(
    db: AsyncSession,
    status: UserStatus | None = None,
    keyword: str | None = None,
    page: int = 0,
    size: int = 20,
) -> tuple[list[User], int]:
    return await user_repo.search(db, status=status, keyword=keyword, offset=page * size, limit=size)


async def update_user_status(
    db: AsyncSession, actor_id: str, user_id: str, status: UserStatus
) -> User:
    """
    계정 상태 변경 (ACTIVE / INACTIVE / BANNED)

    BANNED / INACTIVE 는 다음 요청부터 바로 익명 처리된다 (토큰 만료를 기다리지 않음).
    자기 자신의 상태는 바꿀 수 없다.
    """
    if actor_id == user_id:
        raise BusinessError("자신의 계정 상태는 변경할 수 없습니다.")

    user = await get_user(db, user_id)
    previous = user.status
    user.status = status
    user = await user_repo.save(db, user)

    logger.info(
        "계정 상태 변경",
        extra={"extra_data": {
            "actor_id": actor_id,
            "user_id": user_id,
            "from": previous.value,
            "to": status.value,
        }},
    )
    return user


async def ensure_admin_account(db: AsyncSession) -> User | None:
    """
    ADMIN_USERNAME / ADMIN_EMAIL / ADMIN_PASSWORD 가 모두 설정된 경우에만
    서버 시작 시 관리자 계정을 만든다. 이미 있으면 건드리지 않는다.
    """
    if not (settings.admin_username and settings.admin_email and settings.admin_password):
        return None

    existing = await user_repo.find_by_username(db, settings.admin_username)
    if existing:
        return existing

    admin = await user_repo.create(db, User(
        username=settings.admin_username,
        email=verification_service.validate_email(settings.admin_email),
        hashed_password=get_password_hash(settings.admin_password),
        nickname=settings.admin_username,
        role=Role.ADMIN,
        status=UserStatus.ACTIVE,
        email_verified=True,
    ))
    logger.info("관리자 계정 생성", extra={"extra_data": {"user_id": admin.id}})
    return admin
