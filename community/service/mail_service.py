import smtplib
from email.mime.text import MIMEText
from email.utils import formataddr

from starlette.concurrency import run_in_threadpool

from core.config import settings
from core.exceptions import MailDeliveryError
from core.logger import get_logger

logger = get_logger("mail")


class Mailer:
    """메일 발송 인터페이스 (받는 사람, 제목, 본문)"""

    async def send(self, to: str, subject: str, body: str) -> None:
        raise NotImplementedError


class SmtpMailer(Mailer):
    """
    SMTP 발송

    smtplib은 블로킹 I/O라서 threadpool에서 실행한다.
    어떤 이유로든 실패하면 MailDeliveryError.
    """

    def __init__(
        self,
        host: str,
        port: int,
        user: str = "",
        password: str = "",
        use_tls: bool = True,
        sender: str = "",
        sender_name: str = "",
        timeout: float = 30,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.sender = sender
        self.sender_name = sender_name
        self.timeout = timeout

    def _send_sync(self, to: str, subject: str, body: str) -> None:
        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = formataddr((self.sender_name, self.sender))
        msg["To"] = to

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.user:
                server.login(self.user, self.password)
            server.sendmail(self.sender, [to], msg.as_string())

    async def send(self, to: str, subject: str, body: str) -> None:
        try:
            await run_in_threadpool(self._send_sync, to, subject, body)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                f"메일 발송 실패: {self.sender} -> {to}",
                extra={"extra_data": {"to": to, "error": str(e)}},
            )
            raise MailDeliveryError("메일 발송에 실패했습니다. 잠시 후 다시 시도해주세요.") from e
        logger.info(f"메일 발송 성공: {self.sender} -> {to}")


class ConsoleMailer(Mailer):
    """개발용. 실제로 보내지 않고 로그로만 출력"""

    async def send(self, to: str, subject: str, body: str) -> None:
        logger.info(
            f"[console mail] {to} / {subject}",
            extra={"extra_data": {"to": to, "subject": subject, "body": body}},
        )


def build_mailer() -> Mailer:
    """MAIL_BACKEND 설정으로 구현체 선택"""
    if settings.mail_backend == "console":
        return ConsoleMailer()
    if settings.mail_backend == "smtp":
        return SmtpMailer(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            sender=settings.mail_from,
            sender_name=settings.mail_from_name,
        )
    raise ValueError(f"지원하지 않는 MAIL_BACKEND: {settings.mail_backend}")
