from datetime import datetime, timezone
from html import escape
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.config.database import AsyncSessionLocal
from shared.observability import ecomm_email_dispatch_total

from .mailer import SmtpMailer
from .models import ContactSubmission, EmailOutbox
from .repository import ContactRepository
from .schemas import ContactAdvancedCreate, ContactCreate, DispatchSummary

logger = structlog.get_logger(__name__)

THANK_YOU = "Thank you for your message! We'll get back to you soon."
URGENT_THANK_YOU = "Your urgent message has been received! We'll prioritize your request."


def render_notification(name: str, email: str, subject: str, message: str) -> str:
    return (
        "<h2>New Contact Form Submission</h2>"
        f"<p><strong>From:</strong> {escape(name)} ({escape(email)})</p>"
        f"<p><strong>Subject:</strong> {escape(subject)}</p>"
        "<hr />"
        "<p><strong>Message:</strong></p>"
        f"<p>{escape(message).replace(chr(10), '<br />')}</p>"
        "<hr />"
        "<p><em>Sent from Portfolio Contact Form</em></p>"
    )


def _notification_for(submission: ContactSubmission, detailed: bool) -> Optional[EmailOutbox]:
    recipient = settings.EMAIL_ADMIN_ADDRESS
    if not recipient:
        logger.warning("contact_notification_skipped", reason="no admin address configured")
        return None

    name = submission.name
    subject = submission.subject
    message = submission.message
    if detailed:
        name = f"{submission.name} ({submission.company or 'N/A'})"
        message = f"Category: {submission.category}\nPhone: {submission.phone or 'N/A'}\n\n{submission.message}"
        if submission.urgent:
            subject = f"[URGENT] {subject}"

    return EmailOutbox(
        recipient=recipient,
        subject=f"Contact Form: {subject}",
        body=render_notification(name, submission.email, subject, message),
        status="pending",
        attempts=0,
    )


class ContactService:

    @staticmethod
    async def submit(db: AsyncSession, data: ContactCreate | ContactAdvancedCreate) -> ContactSubmission:
        submission = ContactSubmission(**data.model_dump(), status="received")
        detailed = isinstance(data, ContactAdvancedCreate)
        await ContactRepository.create_submission(db, submission, _notification_for(submission, detailed))
        logger.info("contact_submitted", submission_id=submission.id, urgent=bool(submission.urgent))
        return submission

    @staticmethod
    def acknowledgement(submission: ContactSubmission) -> str:
        return URGENT_THANK_YOU if submission.urgent else THANK_YOU

    @staticmethod
    async def dispatch_pending(db: AsyncSession, mailer: SmtpMailer) -> DispatchSummary:
        """
        Delivers pending outbox rows. Each row is claimed before sending so
        overlapping drains never deliver it twice. A failed delivery bumps
        `attempts` and returns the row to `pending`, or marks it `failed` once
        it reaches EMAIL_MAX_ATTEMPTS.
        """
        summary = DispatchSummary()
        max_attempts = settings.EMAIL_MAX_ATTEMPTS

        for entry in await ContactRepository.pending_outbox(db, max_attempts):
            if not await ContactRepository.claim_outbox(db, entry.id):
                logger.debug("email_already_claimed", outbox_id=entry.id)
                continue

            error = None
            try:
                delivered = await mailer.send(entry.recipient, entry.subject, entry.body)
            except Exception as exc:
                logger.exception("email_dispatch_error", outbox_id=entry.id)
                delivered, error = False, str(exc)

            if delivered:
                entry.status = "sent"
                entry.sent_at = datetime.now(timezone.utc)
                entry.last_error = None
                summary.sent += 1
                outcome = "sent"
            else:
                entry.attempts += 1
                entry.last_error = error or "Delivery failed"
                if entry.attempts >= max_attempts:
                    entry.status = "failed"
                    summary.failed += 1
                    outcome = "failed"
                else:
                    entry.status = "pending"
                    summary.retrying += 1
                    outcome = "retry"
                logger.warning("email_dispatch_failed", outbox_id=entry.id, attempts=entry.attempts)

            await ContactRepository.save_outbox(db, entry)
            ecomm_email_dispatch_total.labels(status=outcome).inc()

        return summary


async def dispatch_outbox(mailer: SmtpMailer) -> None:
    """Background entry point; runs after the response with its own session."""
    async with AsyncSessionLocal() as db:
        summary = await ContactService.dispatch_pending(db, mailer)
    logger.info("email_outbox_drained", **summary.model_dump())
