# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Ticket endpoints – filing, listing, triage and closing of support tickets.

Access rules
------------
* Every endpoint requires a session token (``get_current_identity``).
* Comment, status change and export are admin-only (``require_admin``).
* Reading, closing and attaching files on a single ticket is allowed for
  admins and for the ticket's owner; the check lives in the service layer
  so that it applies the same way to every entry point.

Fixed paths (/export, /employee/...) are declared before /{ticket_id} so
they are not captured by it.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from database import get_db
from core.errors import ValidationError
from core.security import Identity, get_current_identity, require_admin
from tickets import service as ticket_service
from tickets.export import build_workbook
from tickets.schemas import (
    AdminCommentRequest,
    Priority,
    Status,
    StatusChangeRequest,
    TicketActionResponse,
    TicketCreate,
    TicketPage,
    TicketResponse,
)
from tickets.sorting import DEFAULT, DEFAULT_COLUMN, DIRECTIONS, sort_records

router = APIRouter(prefix="/tickets", tags=["tickets"])

# Keeps (page - 1) * limit inside a 64-bit OFFSET
MAX_PAGE = 1_000_000


def _out(ticket) -> TicketResponse:
    return TicketResponse.model_validate(ticket)


# ---------------------------------------------------------------------------
# POST /tickets  – file a new ticket
# ---------------------------------------------------------------------------


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
def create_ticket(
    body: TicketCreate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """File a ticket owned by the caller.  Any owner id in the body is ignored."""
    return _out(ticket_service.create_ticket(db, identity, body))


# ---------------------------------------------------------------------------
# GET /tickets  – paginated, sorted, owner-scoped list
# ---------------------------------------------------------------------------


@router.get("", response_model=TicketPage)
def list_tickets(
    limit: int = Query(10, ge=1, le=100),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    sort: str = Query(ticket_service.DEFAULT_SORT, description="<field>:<asc|desc>"),
    status_filter: Optional[Status] = Query(None, alias="status"),
    priority: Optional[Priority] = Query(None),
    issue_type: Optional[str] = Query(None, alias="issueType"),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """
    Admins get every ticket, employees only their own.  Supports
    ``limit``/``page`` pagination, ``sort`` (default ``createdAt:desc``) and
    optional ``status``, ``priority`` and ``issueType`` filters.
    """
    tickets, total = ticket_service.list_tickets(
        db,
        identity,
        status=status_filter,
        priority=priority,
        issue_type=issue_type,
        sort=sort,
        page=page,
        limit=limit,
    )
    return TicketPage(
        tickets=[_out(t) for t in tickets],
        current_page=page,
        total_pages=ticket_service.total_pages(total, limit),
        total_tickets=total,
    )


# ---------------------------------------------------------------------------
# GET /tickets/export  – download tickets as Excel (admin)
# ---------------------------------------------------------------------------


@router.get("/export")
def export_tickets(
    column: str = Query(DEFAULT_COLUMN, description="Record field or dotted path, e.g. employee.name"),
    direction: str = Query(DEFAULT, description="asc, desc or default"),
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Export every ticket as an .xlsx workbook, ordered like the ticket table."""
    if direction not in DIRECTIONS:
        raise ValidationError(f"direction must be one of: {', '.join(DIRECTIONS)}")

    records = [_out(t).model_dump(by_alias=True) for t in ticket_service.all_tickets(db)]
    buf = build_workbook(sort_records(records, column, direction))

    return StreamingResponse(
        buf,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": 'attachment; filename="tickets.xlsx"'},
    )


# ---------------------------------------------------------------------------
# GET /tickets/employee/{employee_id}  – one employee's tickets
# ---------------------------------------------------------------------------


@router.get("/employee/{employee_id}", response_model=List[TicketResponse])
def employee_tickets(
    employee_id: int,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """All tickets of *employee_id*.  Admins may ask for anyone, employees only for themselves."""
    return [_out(t) for t in ticket_service.list_employee_tickets(db, identity, employee_id)]


# ---------------------------------------------------------------------------
# GET /tickets/{id}
# ---------------------------------------------------------------------------


@router.get("/{ticket_id}", response_model=TicketResponse)
def get_ticket(
    ticket_id: int,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Single ticket with the owner's profile fields populated."""
    return _out(ticket_service.get_ticket(db, identity, ticket_id))


# ---------------------------------------------------------------------------
# PUT /tickets/{id}/comment  – admin annotation
# ---------------------------------------------------------------------------


@router.put("/{ticket_id}/comment", response_model=TicketActionResponse)
def add_admin_comment(
    ticket_id: int,
    body: AdminCommentRequest,
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ticket = ticket_service.add_admin_comment(db, ticket_id, body.admin_comment)
    return TicketActionResponse(message="Admin comment updated successfully", ticket=_out(ticket))


# ---------------------------------------------------------------------------
# PUT /tickets/{id}/close
# ---------------------------------------------------------------------------


@router.put("/{ticket_id}/close", response_model=TicketActionResponse)
def close_ticket(
    ticket_id: int,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Close the ticket.  Admin or owner; closing twice is harmless."""
    ticket = ticket_service.close_ticket(db, identity, ticket_id)
    return TicketActionResponse(message="Ticket closed successfully", ticket=_out(ticket))


# ---------------------------------------------------------------------------
# PUT /tickets/{id}/status  – lifecycle transition (admin)
# ---------------------------------------------------------------------------


@router.put("/{ticket_id}/status", response_model=TicketActionResponse)
def change_status(
    ticket_id: int,
    body: StatusChangeRequest,
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ticket = ticket_service.change_status(db, ticket_id, body.status)
    return TicketActionResponse(message="Ticket status updated successfully", ticket=_out(ticket))


# ---------------------------------------------------------------------------
# POST /tickets/{id}/attachment  – upload a file
# ---------------------------------------------------------------------------


@router.post("/{ticket_id}/attachment", response_model=TicketActionResponse)
def upload_attachment(
    ticket_id: int,
    file: UploadFile = File(...),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Store a file for the ticket; only its relative path is kept on the row."""
    ticket = ticket_service.attach_file(db, identity, ticket_id, file)
    return TicketActionResponse(message="Attachment uploaded successfully", ticket=_out(ticket))
