"""
Outbound email over SMTP.

When no SMTP host is configured the message is logged instead of sent, so
development and test environments need no mail server.
"""
import logging
import smtplib
import ssl
from email.message import EmailMessage

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Welcome to Our Library"


class EmailService:
    """Sends plain-text + HTML email through a single SMTP server."""

    def __init__(self, host=None, port=587, username=None, password=None,
                 use_tls=True, sender=None, timeout=30):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender = sender
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        return cls(
            host=config.get('SMTP_HOST'),
            port=config.get('SMTP_PORT', 587),
            username=config.get('SMTP_USERNAME'),
            password=config.get('SMTP_PASSWORD'),
            use_tls=config.get('SMTP_USE_TLS', True),
            sender=config.get('MAIL_FROM'),
            timeout=config.get('REQUEST_TIMEOUT_SECONDS', 30),
        )

    def send_email(self, to_email, subject, html_body):
        """
        Send one message. Raises on SMTP failure.

        Args:
            to_email (str): Recipient address
            subject (str): Subject line
            html_body (str): HTML body; a plain-text alternative is derived from it
        """
        if not self.host or not self.sender:
            logger.info("SMTP not configured; skipping email to %s (subject: %s)", to_email, subject)
            return

        msg = EmailMessage()
        msg['From'] = self.sender
        msg['To'] = to_email
        msg['Subject'] = subject
        msg.set_content(subject)
        msg.add_alternative(html_body, subtype='html')

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls(context=ssl.create_default_context())
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(msg)

    def safe_send_email(self, to_email, subject, html_body):
        """Send an email, logging instead of raising on failure."""
        try:
            self.send_email(to_email, subject, html_body)
            return True
        except (smtplib.SMTPException, OSError):
            logger.exception("Email send failed to %s", to_email)
            return False

    def send_welcome(self, to_email, name):
        body = f"<h1>{WELCOME_SUBJECT}</h1><p>Thank you for registering, {name}!</p>"
        return self.safe_send_email(to_email, WELCOME_SUBJECT, body)
