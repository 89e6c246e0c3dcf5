from email.message import EmailMessage
from email.utils import formataddr

import aiosmtplib
import structlog

from shared.config import settings

logger = structlog.get_logger(__name__)


class SmtpMailer:
    """Sends HTML mail over SMTP with STARTTLS; reports delivery as a bool."""

    def __init__(
        self,
        host: str = settings.SMTP_HOST,
        port: int = settings.SMTP_PORT,
        username: str = settings.SMTP_USERNAME,
        password: str = settings.SMTP_PASSWORD,
        sender_name: str = settings.EMAIL_SENDER_NAME,
        sender_address: str = settings.EMAIL_SENDER_ADDRESS,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender_name = sender_name
        self.sender_address = sender_address

    def build_message(self, recipient: str, subject: str, html_body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self.sender_name, self.sender_address))
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(html_body, subtype="html")
        return message

    async def send(self, recipient: str, subject: str, html_body: str) -> bool:
        message = self.build_message(recipient, subject, html_body)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                start_tls=True,
                username=self.username or None,
                password=self.password or None,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("email_send_failed", recipient=recipient, error=str(exc))
            return False

        logger.info("email_sent", recipient=recipient)
        return True


def get_mailer() -> SmtpMailer:
    return SmtpMailer()
