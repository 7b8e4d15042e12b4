import logging
import json
import uuid
from datetime import datetime, timezone
from contextvars import ContextVar

from core.config import settings

# 요청별 고유 ID (같은 요청 내에서는 어디서든 동일한 request_id에 접근 가능)
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class JsonFormatter(logging.Formatter):
    """
    로그를 한 줄 JSON으로 출력하는 포매터

    {"timestamp": "...", "level": "INFO", "message": "...", "logger": "auth", "request_id": "abc12345"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "request_id": request_id_var.get("-"),
        }

        # 추가 필드 병합 (예: user_id, email, purpose 등)
        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        # logger.exception() 으로 남긴 스택 트레이스
        if record.exc_info:
            log_data["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def get_logger(name: str) -> logging.Logger:
    """구조화된 JSON 로거 생성"""
    logger = logging.getLogger(name)

    # 중복 핸들러 방지
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(settings.log_level.upper())

    return logger


def generate_request_id() -> str:
    """요청별 고유 추적 ID 생성"""
    return uuid.uuid4().hex[:8]
