"""
Studio Split - Mail Service
SMTP delivery for booking and moderation notices

Mail is optional. Without MAIL_HOST every send is a logged no-op, and
delivery problems are reported in the returned dict instead of raised.
"""
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Any, Dict, List, Optional, Tuple

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)

BRAND_COLOR = "#6C5CE7"


def render_notification(title: str, message: str, link: Optional[str] = None, sender: str = "Studio Split") -> Tuple[str, str]:
    """Return the (html, plain text) bodies of a notification email."""
    cta = ""
    if link:
        cta = (
            f'<p style="text-align:center;margin:28px 0;">'
            f'<a href="{escape(link)}" style="background:{BRAND_COLOR};color:#fff;'
            f'padding:12px 24px;border-radius:6px;text-decoration:none;">View booking</a></p>'
        )

    html = (
        '<html><body style="font-family:Helvetica,Arial,sans-serif;color:#222;">'
        '<div style="max-width:560px;margin:0 auto;padding:24px;">'
        f'<h2 style="margin-top:0;">{escape(title)}</h2>'
        f'<p style="line-height:1.5;">{escape(message)}</p>'
        f'{cta}'
        f'<p style="color:#888;font-size:12px;">Sent by {escape(sender)}</p>'
        '</div></body></html>'
    )

    plain = f"{title}\n\n{message}\n"
    if link:
        plain += f"\n{link}\n"
    return html, plain


class MailService:
    """Sends multipart mail over SMTP, STARTTLS or implicit TLS."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.host = settings.mail_host
        self.port = settings.mail_port
        self.username = settings.mail_username
        self.password = settings.mail_password
        self.encryption = settings.mail_encryption
        self.sender = (settings.mail_from_name, settings.mail_from_address)

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def _connect(self) -> smtplib.SMTP:
        if self.encryption == "ssl":
            server = smtplib.SMTP_SSL(self.host, self.port, context=ssl.create_default_context())
        else:
            server = smtplib.SMTP(self.host, self.port)
            if self.encryption == "tls":
                server.starttls(context=ssl.create_default_context())

        if self.username and self.password:
            server.login(self.username, self.password)
        return server

    def send_email(
        self,
        to: List[str],
        subject: str,
        body_html: str,
        body_plain: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Send one message to a list of recipients.

        Returns:
            {"success": True, "recipients": [...]} or
            {"success": False, "error": ..., "details": ...}
        """
        if not self.enabled:
            logger.debug(f"Mail disabled, dropping '{subject}'")
            return {"success": False, "error": "SMTP not configured"}

        name, address = self.sender
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = f"{name} <{address}>"
        message["To"] = ", ".join(to)
        # Last part is the preferred one
        if body_plain:
            message.attach(MIMEText(body_plain, "plain"))
        message.attach(MIMEText(body_html, "html"))

        try:
            with self._connect() as server:
                server.sendmail(address, list(to), message.as_string())
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP login rejected for {self.username}: {e}")
            return {"success": False, "error": "SMTP authentication failed", "details": str(e)}
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Could not send '{subject}' to {', '.join(to)}: {e}")
            return {"success": False, "error": "SMTP error occurred", "details": str(e)}

        logger.info(f"Mail '{subject}' sent to {', '.join(to)}")
        return {"success": True, "recipients": to}

    def send_notification_email(
        self,
        to_email: str,
        title: str,
        message: str,
        link: Optional[str] = None
    ) -> Dict[str, Any]:
        html, plain = render_notification(title, message, link, sender=self.sender[0])
        return self.send_email(to=[to_email], subject=title, body_html=html, body_plain=plain)


# Shared instance used by NotificationService
mail_service = MailService()
