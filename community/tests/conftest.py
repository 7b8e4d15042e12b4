"""
pytest 공통 설정
"""
import sys
import os
import asyncio
import tempfile
import uuid
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# core.config import 전에 테스트용 환경변수 지정
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'community-import.db')}",
)
os.environ.setdefault("MAIL_BACKEND", "console")
os.environ.setdefault("BCRYPT_ROUNDS", "4")     # 테스트 속도용 (운영 기본값 12)
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from starlette.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool

from core.database import Base, get_db
from core.dependencies import get_mailer
from core.metrics import metrics_store
from core.password import get_password_hash
from core.security import create_access_token
from main import create_app
from models.users import Role, User, UserStatus
from models.verification import VerificationCode  # noqa: F401  (metadata 등록)
from service.mail_service import Mailer

TEST_PASSWORD = "Test1234!"


class OutboxMailer(Mailer):
    """보내는 대신 메모리에 쌓아두는 테스트용 메일 발송기"""

    def __init__(self):
        self.messages: list[dict] = []

    async def send(self, to: str, subject: str, body: str) -> None:
        self.messages.append({"to": to, "subject": subject, "body": body})

    def last_code(self, to: str) -> str:
        """해당 주소로 마지막에 보낸 6자리 코드"""
        for message in reversed(self.messages):
            if message["to"] == to:
                return next(
                    word for word in message["body"].split()
                    if len(word) == 6 and word.isdigit()
                )
        raise AssertionError(f"{to} 로 보낸 메일이 없습니다")


class FailingMailer(Mailer):
    async def send(self, to: str, subject: str, body: str) -> None:
        from core.exceptions import MailDeliveryError
        raise MailDeliveryError("메일 발송에 실패했습니다. 잠시 후 다시 시도해주세요.")


async def _create_schema(engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ===== 테스트마다 새 SQLite 파일 + NullPool =====
# NullPool: 매번 새 커넥션. TestClient 이벤트 루프와 테스트 루프가 달라도 안전
@pytest.fixture
def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    asyncio.run(_create_schema(engine))
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def outbox():
    return OutboxMailer()


@pytest.fixture
def app(session_factory, outbox):
    test_app = create_app()

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            finally:
                await session.close()

    async def override_get_mailer():
        return outbox

    # 핵심: get_db / get_mailer 교체
    test_app.dependency_overrides[get_db] = override_get_db
    test_app.dependency_overrides[get_mailer] = override_get_mailer
    return test_app


@pytest.fixture
def client(app):
    """동기식 테스트 클라이언트"""
    metrics_store.reset()
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(session_factory):
    """DB에 직접 유저 생성 (관리자 등 API로 만들 수 없는 계정용)"""

    def _make_user(role: Role = Role.USER, status: UserStatus = UserStatus.ACTIVE, password: str = TEST_PASSWORD) -> User:
        unique = uuid.uuid4().hex[:6]
        user = User(
            username=f"{role.value.lower()}_{unique}",
            email=f"{role.value.lower()}_{unique}@example.com",
            hashed_password=get_password_hash(password),
            role=role,
            status=status,
        )

        async def _save():
            async with session_factory() as db:
                db.add(user)
                await db.commit()
                await db.refresh(user)

        asyncio.run(_save())
        return user

    return _make_user


def bearer(user: User) -> dict:
    token, _ = create_access_token(user.id, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(make_user):
    """일반 유저 인증 헤더"""
    return bearer(make_user())


@pytest.fixture
def admin_headers(make_user):
    """관리자 인증 헤더"""
    return bearer(make_user(role=Role.ADMIN))
