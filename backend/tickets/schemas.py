# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the ticket endpoints."""

from datetime import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import StringConstraints

from core.schemas import ApiModel
from models.ticket import ADMIN_COMMENT_MAX_LENGTH, DESCRIPTION_MAX_LENGTH

Priority = Literal["low", "med", "high", "critical"]
Status = Literal["open", "pending", "resolved", "closed"]

_Required = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=128)]
_Optional = Annotated[str, StringConstraints(strip_whitespace=True, max_length=128)]


# -- Requests --------------------------------------------------------------
# No employee_id field: the owner is always the caller.  A stray
# "employeeId" in the body is dropped during validation.


class TicketCreate(ApiModel):
    issue_type: _Required
    sub_issue: Optional[_Optional] = None
    priority: Priority
    description: Annotated[
        str,
        StringConstraints(strip_whitespace=True, min_length=1, max_length=DESCRIPTION_MAX_LENGTH),
    ]


class AdminCommentRequest(ApiModel):
    admin_comment: Annotated[
        str,
        StringConstraints(strip_whitespace=True, max_length=ADMIN_COMMENT_MAX_LENGTH),
    ]


class StatusChangeRequest(ApiModel):
    status: Status


# -- Responses -------------------------------------------------------------


class OwnerSummary(ApiModel):
    id: int
    name: str
    email: str
    dept: str
    designation: str


class TicketResponse(ApiModel):
    id: int
    employee_id: int
    employee: Optional[OwnerSummary] = None
    issue_type: str
    sub_issue: Optional[str] = None
    priority: str
    description: str
    status: str
    admin_comment: Optional[str] = None
    attachment_path: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TicketPage(ApiModel):
    tickets: List[TicketResponse]
    current_page: int
    total_pages: int
    total_tickets: int


class TicketActionResponse(ApiModel):
    message: str
    ticket: TicketResponse
