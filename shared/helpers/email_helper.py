import logging
import re
from typing import List, Optional

from ..core.config import settings
from ..utils.email_client import EmailClient

logger = logging.getLogger(__name__)


class EmailHelper:
    """Renders HTML templates and sends them through an ``EmailClient``."""

    def __init__(self, mailer: Optional[EmailClient] = None, sender: Optional[str] = None):
        self.mailer = mailer
        self.sender = sender or settings.EMAIL_SENDER

    @classmethod
    def from_settings(cls) -> Optional["EmailHelper"]:
        """None when SMTP is not configured."""
        if not settings.SMTP_HOST:
            return None
        return cls(EmailClient(
            smtp_host=settings.SMTP_HOST,
            smtp_port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            use_ssl=settings.SMTP_USE_SSL,
        ))

    def send_email(self, template: str, recipients: List[str], subject: str, context: dict) -> bool:
        html_body = template.format(**context)
        return self.mailer.send_email(
            sender=self.sender,
            recipients=recipients,
            subject=subject,
            text_body=self._strip_html_tags(html_body),
            html_body=html_body,
        )

    @staticmethod
    def _strip_html_tags(html: str) -> str:
        return re.sub("<.*?>", "", html or "")
