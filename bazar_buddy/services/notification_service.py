"""Email notification service for account messages."""

import asyncio
import html
import smtplib
import ssl
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from datetime import datetime
from dataclasses import dataclass

from ..core.config import settings
from ..core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class EmailConfig:
    """Email configuration."""
    smtp_server: str = ""
    smtp_port: int = 587
    sender_email: str = ""
    sender_password: str = ""  # App password for Gmail

    @classmethod
    def from_settings(cls) -> "EmailConfig":
        """Load configuration from the notifications settings section."""
        notifications = settings.notifications
        if not notifications.enabled:
            return cls()
        return cls(
            smtp_server=notifications.email_smtp_server,
            smtp_port=notifications.email_smtp_port,
            sender_email=notifications.email_username,
            sender_password=notifications.email_password,
        )


class NotificationService:
    """Service for sending notifications."""

    def __init__(self, config: EmailConfig = None):
        self.config = config or EmailConfig()
        self._enabled = bool(self.config.sender_email and self.config.sender_password)

    def is_enabled(self) -> bool:
        """Check if email notifications are enabled."""
        return self._enabled

    async def send_email(self, subject: str, html_content: str, recipient: str) -> bool:
        """Send an email notification."""
        if not self._enabled:
            logger.info("Email notifications not configured")
            return False

        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = self.config.sender_email
        message["To"] = recipient
        message.attach(MIMEText(html_content, "html"))

        try:
            await asyncio.to_thread(self._deliver, recipient, message.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("Failed to send email to %s: %s", recipient, e)
            return False

        logger.info("Email sent to %s", recipient)
        return True

    def _deliver(self, recipient: str, payload: str) -> None:
        context = ssl.create_default_context()
        with smtplib.SMTP(self.config.smtp_server, self.config.smtp_port) as server:
            server.starttls(context=context)
            server.login(self.config.sender_email, self.config.sender_password)
            server.sendmail(self.config.sender_email, [recipient], payload)

    async def send_password_reset(self, email: str, name: str, token: str) -> bool:
        """Send the password reset token."""
        subject = f"{settings.app_name}: reset your password"
        minutes = settings.auth.reset_token_ttl_minutes

        html_content = f"""
        <!DOCTYPE html>
        <html>
        <head>
            <style>
                body {{ font-family: Arial, sans-serif; background: #f5f5f5; padding: 20px; }}
                .container {{ max-width: 600px; margin: 0 auto; background: #fff; border-radius: 10px; overflow: hidden; }}
                .header {{ background: #ea580c; color: #fff; padding: 30px; text-align: center; }}
                .content {{ padding: 30px; }}
                .token {{ font-family: monospace; font-size: 1.1em; background: #f9f9f9; padding: 15px; border-radius: 6px; word-break: break-all; }}
                .footer {{ background: #333; color: #888; padding: 20px; text-align: center; font-size: 0.9em; }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="header">
                    <h1>Password reset</h1>
                </div>
                <div class="content">
                    <p>Hi {html.escape(name)},</p>
                    <p>Use the code below to choose a new password. It expires in {minutes} minutes.</p>
                    <p class="token">{token}</p>
                    <p>If you did not ask for this, you can ignore this email.</p>
                </div>
                <div class="footer">
                    <p>{settings.app_name}</p>
                    <p>{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}</p>
                </div>
            </div>
        </body>
        </html>
        """

        return await self.send_email(subject, html_content, email)


# Global notification service instance (loads from settings)
notification_service = NotificationService(EmailConfig.from_settings())
