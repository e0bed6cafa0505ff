# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Ticket operations.

Security invariants enforced here
---------------------------------
* A new ticket is always owned by the caller; the request body cannot name
  a different owner.
* Every read or write of an existing ticket goes through ``_accessible``,
  which applies ``can_access_ticket`` (admin, or the owner).  Listing is
  owner-scoped for non-admins.

Concurrent edits of the same ticket are last-writer-wins; there is no
version column.
"""

import math
import shutil
import time
from pathlib import Path
from typing import Optional

from fastapi import UploadFile
from sqlalchemy import case
from sqlalchemy.orm import Session

from core.config import settings
from core.errors import Forbidden, NotFound, ValidationError
from core.logger import logger
from core.security import Identity, can_access_ticket
from models.ticket import ALLOWED_TRANSITIONS, PRIORITIES, STATUS_CLOSED, Ticket
from models.user import User
from tickets.schemas import TicketCreate
from tickets.sorting import PRIORITY_RANK

DEFAULT_SORT = "createdAt:desc"

_SORT_COLUMNS = {
    "createdAt": Ticket.created_at,
    "updatedAt": Ticket.updated_at,
    "priority": case({p: PRIORITY_RANK[p] for p in PRIORITIES}, value=Ticket.priority, else_=0),
    "status": Ticket.status,
    "issueType": Ticket.issue_type,
    "subIssue": Ticket.sub_issue,
    "description": Ticket.description,
    "employee.name": User.name,
}


def parse_sort(value: str) -> tuple[str, str]:
    """
    Split ``"<field>:<asc|desc>"`` into its parts.  The direction defaults to
    ascending when omitted.  Raises ``ValidationError`` for anything else.
    """
    field, _, direction = value.strip().partition(":")
    direction = (direction or "asc").strip().lower()
    if field not in _SORT_COLUMNS or direction not in ("asc", "desc"):
        raise ValidationError(
            f"Invalid sort '{value}'. Use <field>:<asc|desc> with field one of "
            + ", ".join(sorted(_SORT_COLUMNS))
        )
    return field, direction


def _load(db: Session, ticket_id: int) -> Ticket:
    ticket = db.query(Ticket).filter(Ticket.id == ticket_id).first()
    if not ticket:
        raise NotFound("Ticket not found")
    return ticket


def _accessible(db: Session, caller: Identity, ticket_id: int) -> Ticket:
    """
    Load a Ticket by ID and verify the caller may touch it.

    Raises 404 if the ticket does not exist, 403 if it belongs to someone
    else and the caller is not an admin.
    """
    ticket = _load(db, ticket_id)
    if not can_access_ticket(caller, ticket):
        raise Forbidden("Not authorized to access this ticket")
    return ticket


# ---------------------------------------------------------------------------
# Create / read
# ---------------------------------------------------------------------------


def create_ticket(db: Session, caller: Identity, payload: TicketCreate) -> Ticket:
    if db.get(User, caller.user_id) is None:
        raise NotFound("User not found")

    ticket = Ticket(employee_id=caller.user_id, **payload.model_dump())
    db.add(ticket)
    db.commit()
    db.refresh(ticket)

    logger.info(
        "ticket created | ticket_id=%d owner_id=%d priority=%s",
        ticket.id,
        ticket.employee_id,
        ticket.priority,
    )
    return ticket


def list_tickets(
    db: Session,
    caller: Identity,
    *,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    issue_type: Optional[str] = None,
    sort: str = DEFAULT_SORT,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Ticket], int]:
    """
    Return one page of tickets and the total number of matches.

    Admins see every ticket; anyone else only their own.  Rows with equal
    sort keys are ordered by id in the same direction.
    """
    field, direction = parse_sort(sort)

    q = db.query(Ticket)
    if not caller.is_admin:
        q = q.filter(Ticket.employee_id == caller.user_id)
    if status:
        q = q.filter(Ticket.status == status)
    if priority:
        q = q.filter(Ticket.priority == priority)
    if issue_type:
        q = q.filter(Ticket.issue_type == issue_type)

    total = q.count()

    if field == "employee.name":
        q = q.join(User, Ticket.employee_id == User.id)
    column = _SORT_COLUMNS[field]
    if direction == "desc":
        q = q.order_by(column.desc(), Ticket.id.desc())
    else:
        q = q.order_by(column.asc(), Ticket.id.asc())

    tickets = q.offset((page - 1) * limit).limit(limit).all()
    return tickets, total


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def get_ticket(db: Session, caller: Identity, ticket_id: int) -> Ticket:
    return _accessible(db, caller, ticket_id)


def list_employee_tickets(db: Session, caller: Identity, employee_id: int) -> list[Ticket]:
    """Every ticket owned by *employee_id*, newest first.  Admin or self only."""
    if not caller.is_admin and caller.user_id != employee_id:
        raise Forbidden("Not authorized to view these tickets")
    return (
        db.query(Ticket)
        .filter(Ticket.employee_id == employee_id)
        .order_by(Ticket.created_at.desc(), Ticket.id.desc())
        .all()
    )


def all_tickets(db: Session) -> list[Ticket]:
    return db.query(Ticket).order_by(Ticket.created_at.desc(), Ticket.id.desc()).all()


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def add_admin_comment(db: Session, ticket_id: int, comment: str) -> Ticket:
    """Overwrite the admin comment.  The status is left alone."""
    ticket = _load(db, ticket_id)
    ticket.admin_comment = comment
    db.commit()
    db.refresh(ticket)
    logger.info("admin comment set | ticket_id=%d", ticket.id)
    return ticket


def close_ticket(db: Session, caller: Identity, ticket_id: int) -> Ticket:
    """
    Move the ticket to ``closed`` from whatever state it is in.  Closing an
    already closed ticket succeeds and changes nothing.
    """
    ticket = _accessible(db, caller, ticket_id)
    if ticket.status != STATUS_CLOSED:
        ticket.status = STATUS_CLOSED
        db.commit()
        db.refresh(ticket)
        logger.info("ticket closed | ticket_id=%d by user_id=%d", ticket.id, caller.user_id)
    return ticket


def change_status(db: Session, ticket_id: int, new_status: str) -> Ticket:
    """
    Apply a lifecycle transition.  Re-applying the current status is a no-op;
    moving backwards or out of ``closed`` is rejected.
    """
    ticket = _load(db, ticket_id)
    if ticket.status == new_status:
        return ticket
    if new_status not in ALLOWED_TRANSITIONS[ticket.status]:
        raise ValidationError(f"Cannot move ticket from '{ticket.status}' to '{new_status}'")

    previous = ticket.status
    ticket.status = new_status
    db.commit()
    db.refresh(ticket)
    logger.info("ticket status | ticket_id=%d %s -> %s", ticket.id, previous, new_status)
    return ticket


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------


def _stored_name(filename: str) -> str:
    # Strip any client-side directory part, Windows or POSIX
    base = Path(filename.replace("\\", "/")).name.strip()
    if not base or base in (".", ".."):
        raise ValidationError("Attachment needs a file name")
    return f"{int(time.time() * 1000)}-{base}"


def attach_file(db: Session, caller: Identity, ticket_id: int, upload: UploadFile) -> Ticket:
    """
    Store *upload* under ``settings.upload_dir`` and record its relative path
    on the ticket.  Owner or admin only.
    """
    ticket = _accessible(db, caller, ticket_id)
    name = _stored_name(upload.filename or "")

    target_dir = Path(settings.upload_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    with open(target_dir / name, "wb") as fh:
        shutil.copyfileobj(upload.file, fh)

    ticket.attachment_path = name
    db.commit()
    db.refresh(ticket)
    logger.info("attachment stored | ticket_id=%d file=%s", ticket.id, name)
    return ticket
