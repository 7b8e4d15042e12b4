from datetime import datetime, timezone


def utcnow() -> datetime:
    """만료/발급 시각 계산에 쓰는 유일한 시간 소스 (테스트에서 교체 가능)"""
    return datetime.now(timezone.utc)
