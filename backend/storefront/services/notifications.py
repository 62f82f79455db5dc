"""
Email notifications for new leads and quote requests.

Delivery happens in a FastAPI background task after the response has been
sent, so a slow or failing mail server never affects the request.
"""
import logging
from html import escape
from typing import Optional

from fastapi import BackgroundTasks
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from storefront.config import Settings
from storefront.models import Lead, QuoteRequest

logger = logging.getLogger(__name__)


def build_mailer(settings: Settings) -> Optional[FastMail]:
    """Create the SMTP client, or None when credentials are missing."""
    if not settings.smtp_user or not settings.smtp_password:
        return None

    conf = ConnectionConfig(
        MAIL_USERNAME=settings.smtp_user,
        MAIL_PASSWORD=settings.smtp_password,
        MAIL_FROM=settings.smtp_user,
        MAIL_FROM_NAME=settings.mail_from_name,
        MAIL_PORT=settings.smtp_port,
        MAIL_SERVER=settings.smtp_host,
        MAIL_STARTTLS=settings.smtp_port != 465,
        MAIL_SSL_TLS=settings.smtp_port == 465,
        USE_CREDENTIALS=True,
        VALIDATE_CERTS=True,
    )
    return FastMail(conf)


class Notifier:
    """Sends notification emails to the shop inbox."""

    def __init__(self, mailer: Optional[FastMail], recipient: Optional[str]):
        self.mailer = mailer
        self.recipient = recipient

    @classmethod
    def from_settings(cls, settings: Settings) -> "Notifier":
        return cls(build_mailer(settings), settings.notify_email or settings.smtp_user)

    async def send(self, subject: str, html: str):
        """Send one email. Missing configuration is a no-op; provider errors are raised."""
        logger.info(f"[Mailer] Attempting to send email: \"{subject}\"...")
        if self.mailer is None or not self.recipient:
            logger.error("[Mailer] Missing SMTP_USER or SMTP_PASSWORD in environment.")
            return

        message = MessageSchema(
            subject=subject,
            recipients=[self.recipient],
            body=html,
            subtype=MessageType.html,
        )
        try:
            await self.mailer.send_message(message)
        except Exception as e:
            logger.error(f"[Mailer] Critical error sending email: {e}")
            raise
        logger.info(f"[Mailer] Email sent successfully: \"{subject}\"")


class NotificationQueue:
    """Submit-and-forget wrapper around a Notifier."""

    def __init__(self, notifier: Notifier):
        self.notifier = notifier

    def submit(self, background_tasks: BackgroundTasks, subject: str, html: str):
        """Schedule delivery after the response; the caller never waits on it."""
        background_tasks.add_task(self.deliver, subject, html)

    async def deliver(self, subject: str, html: str) -> bool:
        """Send and swallow failures. Returns whether the send raised nothing."""
        try:
            await self.notifier.send(subject, html)
            return True
        except Exception as e:
            logger.error(f"Notification \"{subject}\" failed: {e}")
            return False


def _row(label: str, value) -> str:
    return f"<tr><td><strong>{escape(label)}</strong></td><td>{escape(str(value or '-'))}</td></tr>"


def render_lead_email(lead: Lead) -> tuple[str, str]:
    """Subject and HTML body for a new contact form lead."""
    subject = f"New Lead: {lead.subject}"
    html = (
        "<h2>New contact form submission</h2>"
        "<table>"
        + _row("Name", f"{lead.first_name} {lead.last_name}")
        + _row("Email", lead.email)
        + _row("Phone", lead.phone)
        + _row("Subject", lead.subject)
        + "</table>"
        + f"<p>{escape(lead.message)}</p>"
    )
    return subject, html


def render_quote_email(quote: QuoteRequest) -> tuple[str, str]:
    """Subject and HTML body for a new quote request."""
    subject = f"New Quote Request from {quote.company_name}"
    items_html = "".join(
        f"<tr><td>{escape(item.product_name)}</td><td>{item.quantity}</td></tr>"
        for item in quote.items
    )
    html = (
        "<h2>New quote request</h2>"
        "<table>"
        + _row("Name", quote.full_name)
        + _row("Company", quote.company_name)
        + _row("Email", quote.email)
        + _row("Phone", quote.phone)
        + _row("Notes", quote.additional_notes)
        + "</table>"
        "<h3>Items</h3>"
        "<table><tr><th>Product</th><th>Quantity</th></tr>"
        + items_html
        + "</table>"
    )
    return subject, html
