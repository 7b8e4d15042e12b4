import re
import bcrypt

from core.config import settings

# bcrypt는 72바이트까지만 해싱한다 (bcrypt 5.x 부터는 초과 시 ValueError)
MAX_PASSWORD_BYTES = 72


def get_password_hash(password: str) -> str:
    """비밀번호 평문을 bcrypt로 해싱 (호출마다 새 salt, 결과 문자열에 salt 포함)"""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    hashed_password = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed_password.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """입력받은 평문과 DB의 해시가 일치하는지 검증. 형식이 깨진 해시도 False"""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8"),
        )
    except (ValueError, TypeError):
        return False


def check_password_strength(password: str) -> str:
    """비밀번호 규칙: 8자 이상, 영문/숫자/특수문자 각 1개 이상, 72바이트 이하 (pydantic validator에서 사용)"""
    if len(password) < 8:
        raise ValueError("비밀번호는 8자 이상이어야 합니다.")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"비밀번호는 {MAX_PASSWORD_BYTES}바이트를 넘을 수 없습니다.")
    if not re.search(r"[a-zA-Z]", password):
        raise ValueError("비밀번호에는 최소 하나의 영문자가 포함되어야 합니다.")
    if not re.search(r"\d", password):
        raise ValueError("비밀번호에는 최소 하나의 숫자가 포함되어야 합니다.")
    if not re.search(r"[\W_]", password):
        raise ValueError("비밀번호에는 최소 하나의 특수문자가 포함되어야 합니다.")
    return password
