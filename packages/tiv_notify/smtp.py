import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from packages.tiv_core.logging import get_logger

from .base import Notifier

logger = get_logger("tiv.notify.smtp")

VERIFICATION_SUBJECT = "Verify Your Interview Session"


def render_verification_body(name: str, link: str, ttl_hours: int) -> str:
    return f"""
    <h2>Hi {name},</h2>
    <p>Click the link below to start your interview:</p>
    <p><a href="{link}" style="background:#2563eb;color:white;padding:12px 24px;border-radius:8px;text-decoration:none;font-weight:bold;">
        Start Your Interview
    </a></p>
    <p>This link expires in {ttl_hours} hours.</p>
    """


class SmtpNotifier(Notifier):
    """
    Sends HTML mail over SMTP.
    SSL on port 465, STARTTLS otherwise. Without credentials the message is
    only logged, which keeps local development usable.
    """

    def __init__(
        self,
        host: Optional[str],
        port: int = 465,
        user: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
        ttl_hours: int = 24,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender or user
        self.ttl_hours = ttl_hours
        self.timeout = timeout

    def send_verification(self, email: str, name: str, link: str) -> bool:
        body = render_verification_body(name, link, self.ttl_hours)
        return self._send(email, VERIFICATION_SUBJECT, body)

    def _send(self, to_email: str, subject: str, html_body: str) -> bool:
        if not self.host or not self.user or not self.password:
            logger.info(f"[EMAIL STUB] To: {to_email} | Subject: {subject}")
            logger.debug(f"[EMAIL STUB] Body: {html_body[:200]}...")
            return True

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to_email
        msg.attach(MIMEText(html_body, "html"))

        try:
            if self.port == 465:
                with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as server:
                    server.login(self.user, self.password)
                    server.sendmail(self.sender, to_email, msg.as_string())
            else:
                with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                    server.starttls()
                    server.login(self.user, self.password)
                    server.sendmail(self.sender, to_email, msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return False

        logger.info(f"Verification email sent to {to_email}")
        return True
