from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from models.users import User, UserStatus


async def find_by_id(db: AsyncSession, user_id: str) -> User | None:
    """PK로 유저 조회"""
    return await db.get(User, user_id)


async def find_by_email(db: AsyncSession, email: str) -> User | None:
    """이메일로 유저 조회"""
    result = await db.execute(select(User).where(User.email == email))
    return result.scalars().first()


async def find_by_username(db: AsyncSession, username: str) -> User | None:
    """유저네임으로 유저 조회"""
    result = await db.execute(select(User).where(User.username == username))
    return result.scalars().first()


async def exists_by_email(db: AsyncSession, email: str) -> bool:
    result = await db.execute(select(User.id).where(User.email == email).limit(1))
    return result.first() is not None


async def exists_by_username(db: AsyncSession, username: str) -> bool:
    result = await db.execute(select(User.id).where(User.username == username).limit(1))
    return result.first() is not None


async def search(
    db: AsyncSession,
    status: UserStatus | None = None,
    keyword: str | None = None,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[User], int]:
    """관리자용 유저 목록 (가입 최신순) + 전체 건수"""
    conditions = []
    if status is not None:
        conditions.append(User.status == status)
    if keyword:
        pattern = f"%{keyword}%"
        conditions.append(or_(
            User.username.ilike(pattern),
            User.email.ilike(pattern),
            User.nickname.ilike(pattern),
        ))

    total = await db.scalar(select(func.count()).select_from(User).where(*conditions))
    result = await db.execute(
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc(), User.id)
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all()), total or 0


async def create(db: AsyncSession, user: User) -> User:
    """유저 저장"""
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def save(db: AsyncSession, user: User) -> User:
    """변경 사항 저장 (updated_at은 DB가 갱신하므로 refresh)"""
    await db.commit()
    await db.refresh(user)
    return user
