"""
Notification service - outbound email over SMTP.

Mail is only sent when SMTP credentials are configured. Sending is
best-effort: failures are logged and reported as False, never raised.
"""

from email.mime.text import MIMEText
from html import escape
from typing import Any, Dict, Optional
import logging
import smtplib

from app.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

SMTP_TIMEOUT = 10  # seconds


class NotificationService:
    """Sends operator notifications by email."""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings

    @property
    def enabled(self) -> bool:
        return self.config.smtp_enabled

    def _sender(self) -> str:
        address = self.config.from_email or self.config.smtp_user
        return f'"{self.config.from_name}" <{address}>'

    def send_email(self, to_email: str, subject: str, html: str) -> bool:
        """
        Send one HTML email.

        Args:
            to_email: recipient address
            subject: subject line
            html: message body (HTML)

        Returns:
            True when the SMTP server accepted the message
        """
        if not self.enabled:
            logger.debug(f"SMTP not configured, skipping email '{subject}'")
            return False

        msg = MIMEText(html, "html", "utf-8")
        msg["Subject"] = subject
        msg["From"] = self._sender()
        msg["To"] = to_email

        try:
            with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=SMTP_TIMEOUT) as smtp:
                smtp.starttls()
                smtp.login(self.config.smtp_user, self.config.smtp_pass)
                smtp.sendmail(self.config.from_email or self.config.smtp_user, [to_email], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email '{subject}' to {to_email} failed: {e}")
            return False

        logger.info(f"Email '{subject}' sent to {to_email}")
        return True

    def notify_contact_submission(self, contact: Dict[str, Any]) -> bool:
        """Tell the operator mailbox about a new contact form submission."""
        subject = f"New Contact Form Submission - {contact.get('subject')}"
        html = (
            "<h2>New Contact Form Submission</h2>"
            f"<p><strong>Name:</strong> {escape(str(contact.get('name')))}</p>"
            f"<p><strong>Email:</strong> {escape(str(contact.get('email')))}</p>"
            f"<p><strong>Phone:</strong> {escape(str(contact.get('phone')))}</p>"
            f"<p><strong>Inquiry Type:</strong> {escape(str(contact.get('subject')))}</p>"
            "<p><strong>Message:</strong></p>"
            f"<p>{escape(str(contact.get('message')))}</p>"
        )
        return self.send_email(self.config.smtp_user, subject, html)
