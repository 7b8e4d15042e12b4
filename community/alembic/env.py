import asyncio
import os
import sys
from logging.config import fileConfig

# alembic.ini 위치와 무관하게 community/ 기준 import (core, models)
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from alembic import context
from sqlalchemy.ext.asyncio import create_async_engine

from core.config import settings
from core.database import Base
import models.users  # noqa: F401  (users 테이블 등록)
import models.verification  # noqa: F401  (verification_codes 테이블 등록)

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)


def _configure(**kwargs) -> None:
    # SQLite 는 ALTER 가 제한적이라 batch 모드, 타입 변경(String 길이 등)도 autogenerate 대상
    is_sqlite = settings.database_url.startswith("sqlite")
    context.configure(
        target_metadata=Base.metadata,
        render_as_batch=is_sqlite,
        compare_type=True,
        **kwargs,
    )


def migrate_offline() -> None:
    """DB 연결 없이 SQL 스크립트만 출력 (alembic upgrade --sql)"""
    _configure(url=settings.database_url, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def _migrate_with(connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def migrate_online() -> None:
    engine = create_async_engine(settings.database_url)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate_with)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    migrate_offline()
else:
    asyncio.run(migrate_online())
