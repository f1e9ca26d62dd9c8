import smtplib
from email.message import EmailMessage
from typing import Optional

from loguru import logger

from astex.core.config import settings


class Mailer:
    """Best-effort SMTP mailer; disabled unless SMTP_ENABLED is set"""

    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        sender: str = "",
        enabled: bool = False,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.enabled = enabled
        self.timeout = timeout

    def send_email(self, to_email: str, subject: str, text_content: str, html_content: Optional[str] = None) -> bool:
        if not self.enabled:
            logger.debug(f"EMAIL_SKIP: mail disabled, subject={subject!r}")
            return False
        if not to_email:
            logger.warning("EMAIL_SKIP: no recipient")
            return False

        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to_email
        message["Subject"] = subject
        message.set_content(text_content)
        if html_content:
            message.add_alternative(html_content, subtype="html")

        try:
            with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as smtp:
                if self.username:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"EMAIL_FAILED: to={to_email}, error={e}")
            return False

        logger.info(f"EMAIL_SENT: to={to_email}, subject={subject!r}")
        return True

    def send_verification_email(self, to_email: str) -> bool:
        text = "Your account has been verified. You can now start trading."
        return self.send_email(
            to_email,
            "Account Verified - Trading Platform",
            text,
            f"<div>{text}</div>",
        )


def get_mailer() -> Mailer:
    return Mailer(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER,
        password=settings.SMTP_PASSWORD,
        sender=settings.SMTP_FROM,
        enabled=settings.SMTP_ENABLED,
        timeout=settings.SMTP_TIMEOUT_SECONDS,
    )
