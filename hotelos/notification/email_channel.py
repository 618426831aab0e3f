"""
Email notification channel - SMTP
"""
import logging
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Dict, Optional

from core.notification.channel import INotificationChannel
from hotelos.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class EmailChannel(INotificationChannel):
    """SMTP email channel"""

    def __init__(
        self,
        smtp_host: str = "localhost",
        smtp_port: int = 587,
        smtp_user: str = "",
        smtp_password: str = "",
        sender_email: str = "",
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.sender_email = sender_email or smtp_user
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "EmailChannel":
        config = config or default_settings
        return cls(
            smtp_host=config.SMTP_HOST,
            smtp_port=config.SMTP_PORT,
            smtp_user=config.SMTP_USER or "",
            smtp_password=config.SMTP_PASSWORD or "",
            sender_email=config.EMAIL_SENDER,
            use_tls=config.SMTP_USE_TLS,
        )

    def build_message(self, recipient: str, subject: str, content: str,
                      extra: Optional[Dict] = None) -> EmailMessage:
        """
        extra:
            content_type: 'html' sends content as an HTML alternative to a
                plain-text summary; anything else sends plain text
            text: plain-text body for HTML messages
            attachment_name: also attach content as a file of this name
            cc: carbon-copy addresses
        """
        extra = extra or {}
        msg = EmailMessage()
        msg["From"] = self.sender_email
        msg["To"] = recipient
        msg["Subject"] = subject
        msg["Message-ID"] = make_msgid(domain=self.smtp_host)
        if cc := extra.get("cc"):
            msg["Cc"] = cc

        if extra.get("content_type") == "html":
            msg.set_content(extra.get("text") or subject)
            msg.add_alternative(content, subtype="html")
            if name := extra.get("attachment_name"):
                msg.add_attachment(content.encode("utf-8"), maintype="text", subtype="html", filename=name)
        else:
            msg.set_content(content)
        return msg

    def send(
        self,
        recipient: str,
        subject: str,
        content: str,
        extra: Optional[Dict] = None,
    ) -> bool:
        """Send one email; False when the SMTP exchange fails"""
        msg = self.build_message(recipient, subject, content, extra)
        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.smtp_user:
                    server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {recipient}: {e}", exc_info=True)
            return False

        logger.info(f"Email sent to {recipient}: {subject}")
        return True

    def get_channel_type(self) -> str:
        return "email"
