from typing import Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ContactSubmission, EmailOutbox


class ContactRepository:

    @staticmethod
    async def create_submission(
        db: AsyncSession,
        submission: ContactSubmission,
        notification: Optional[EmailOutbox] = None,
    ) -> ContactSubmission:
        """Persists the submission and its outbox row in one commit."""
        db.add(submission)
        await db.flush()
        if notification is not None:
            notification.submission_id = submission.id
            db.add(notification)
        await db.commit()
        return submission

    @staticmethod
    async def pending_outbox(db: AsyncSession, max_attempts: int) -> Sequence[EmailOutbox]:
        result = await db.execute(
            select(EmailOutbox)
            .where(EmailOutbox.status == "pending", EmailOutbox.attempts < max_attempts)
            .order_by(EmailOutbox.id)
        )
        return result.scalars().all()

    @staticmethod
    async def claim_outbox(db: AsyncSession, entry_id: int) -> bool:
        """Flips a pending row to `sending`; False when another dispatcher got there first."""
        result = await db.execute(
            update(EmailOutbox)
            .where(EmailOutbox.id == entry_id, EmailOutbox.status == "pending")
            .values(status="sending")
        )
        await db.commit()
        return result.rowcount == 1

    @staticmethod
    async def save_outbox(db: AsyncSession, entry: EmailOutbox) -> EmailOutbox:
        db.add(entry)
        await db.commit()
        return entry
