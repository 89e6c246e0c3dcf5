from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from shared.config.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class ContactSubmission(Base):
    __tablename__ = "contact_submissions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    company = Column(String(200), nullable=True)
    category = Column(String(50), nullable=False, default="general")  # general, job, collaboration, feedback
    subject = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    urgent = Column(Boolean, nullable=False, default=False)
    newsletter = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default="received")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class EmailOutbox(Base):
    """Notification waiting for delivery; written in the same commit as its submission."""
    __tablename__ = "email_outbox"

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(
        Integer, ForeignKey("contact_submissions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    recipient = Column(String(255), nullable=False)
    subject = Column(String(300), nullable=False)
    body = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)  # pending, sending, sent, failed
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    sent_at = Column(DateTime(timezone=True), nullable=True)
