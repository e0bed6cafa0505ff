# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Ticket ORM model and the ticket lifecycle constants."""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Enum, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base

PRIORITIES = ("low", "med", "high", "critical")

STATUS_OPEN = "open"
STATUS_PENDING = "pending"
STATUS_RESOLVED = "resolved"
STATUS_CLOSED = "closed"
STATUSES = (STATUS_OPEN, STATUS_PENDING, STATUS_RESOLVED, STATUS_CLOSED)

# Forward-only lifecycle; closed is terminal.
ALLOWED_TRANSITIONS = {
    STATUS_OPEN: {STATUS_PENDING, STATUS_RESOLVED, STATUS_CLOSED},
    STATUS_PENDING: {STATUS_RESOLVED, STATUS_CLOSED},
    STATUS_RESOLVED: {STATUS_CLOSED},
    STATUS_CLOSED: set(),
}

DESCRIPTION_MAX_LENGTH = 200
ADMIN_COMMENT_MAX_LENGTH = 500


def _utcnow() -> datetime:
    # Python-side timestamps keep microseconds, so tickets created within the
    # same second still order deterministically.
    return datetime.now(timezone.utc)


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # The owning employee.  Always the authenticated creator, never client input.
    employee_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    issue_type = Column(String(128), nullable=False)
    sub_issue = Column(String(128), nullable=True)
    priority = Column(Enum(*PRIORITIES, name="ticket_priority"), nullable=False)
    description = Column(String(DESCRIPTION_MAX_LENGTH), nullable=False)
    status = Column(
        Enum(*STATUSES, name="ticket_status"),
        nullable=False,
        default=STATUS_OPEN,
        server_default=STATUS_OPEN,
        index=True,
    )
    admin_comment = Column(String(ADMIN_COMMENT_MAX_LENGTH), nullable=True)
    # Relative path under settings.upload_dir; the file itself lives on disk.
    attachment_path = Column(String(512), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
        nullable=False,
    )

    employee = relationship("User", back_populates="tickets", lazy="joined")
