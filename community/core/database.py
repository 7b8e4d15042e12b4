from collections.abc import AsyncGenerator
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from core.config import settings


def _engine_options() -> dict:
    """
    DATABASE_URL 에 맞는 엔진 옵션

    PostgreSQL(asyncpg): 커넥션 풀 크기는 설정값, 끊긴 연결은 pre_ping으로 걸러낸다.
    SQLite(aiosqlite, 로컬/테스트): 파일 하나라 풀 크기 설정을 넘기지 않는다.
    """
    options = {"echo": settings.database_echo}
    if not settings.database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options())

# expire_on_commit=False: commit 뒤에도 속성을 읽을 수 있다 (async 세션은 lazy load 불가)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """요청당 세션 하나. 인증 게이트와 핸들러가 같은 세션을 쓴다 (Depends 캐시)"""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()
