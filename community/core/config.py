from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path

class Settings(BaseSettings):
    site_name: str = "커뮤니티"

    # Database
    database_url: str
    database_echo: bool = False
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # JWT 설정
    jwt_secret: str = "dev-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24

    # bcrypt cost factor (12 ≈ 검증 수십 ms)
    bcrypt_rounds: int = 12

    # 이메일 인증 코드
    verification_code_ttl_minutes: int = 5
    verification_resend_seconds: int = 60

    # 메일 발송: "smtp" 또는 "console"(개발용, 로그로만 출력)
    mail_backend: str = "smtp"
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    mail_from: str = "no-reply@example.com"
    mail_from_name: str = "커뮤니티"

    # 최초 관리자 계정 (셋 다 있을 때만 서버 시작 시 생성)
    admin_username: str | None = None
    admin_email: str | None = None
    admin_password: str | None = None

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        # config.py -> core -> community -> 프로젝트 루트 아래의 .env 찾기
        env_file=Path(__file__).parent.parent.parent / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,     # 환경변수 대소문자 무시
    )


# 싱글톤 인스턴스. 앱 어디서든 import해서 사용
settings = Settings()
