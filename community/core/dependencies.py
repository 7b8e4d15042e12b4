from core.logger import get_logger
from service.mail_service import Mailer, build_mailer

logger = get_logger("dependencies")

# 전역 클라이언트: lifespan에서 초기화/정리
_mailer: Mailer | None = None

# === FastAPI Depends()용 함수 ===

async def get_mailer() -> Mailer:
    if _mailer is None:
        raise RuntimeError("메일 발송기가 초기화되지 않았습니다. 서버 시작을 확인하세요.")
    return _mailer


# === 수명주기 관리 (main.py의 lifespan에서 호출) ===

async def init_connections():
    global _mailer

    _mailer = build_mailer()
    logger.info(f"메일 발송기 준비 완료: {type(_mailer).__name__}")


async def close_connections():
    global _mailer

    _mailer = None
    logger.info("모든 연결 종료")
