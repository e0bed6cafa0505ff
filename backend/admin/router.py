# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Admin endpoints – user directory and password resets.

Every endpoint in this router is guarded by ``require_admin``.  A request
that carries a valid token but belongs to an ``employee`` will receive 403
before any business logic runs.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from admin.schemas import ResetPasswordRequest, UserListResponse
from auth import service as account_service
from auth.schemas import UserInfoResponse
from core.errors import NotFound, ValidationError
from core.logger import logger
from core.security import Identity, require_admin
from models.user import ROLE_EMPLOYEE, User

router = APIRouter(prefix="/users", tags=["admin"])


# ---------------------------------------------------------------------------
# GET /users  – list all users
# ---------------------------------------------------------------------------


@router.get("", response_model=UserListResponse)
def list_users(
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Return every user row (no password data – handled by the schema)."""
    users = db.query(User).order_by(User.id).all()
    return UserListResponse(users=[UserInfoResponse.model_validate(u) for u in users])


# ---------------------------------------------------------------------------
# POST /users/admin/reset-password  – admin resets an employee's password
# ---------------------------------------------------------------------------


@router.post("/admin/reset-password")
def reset_password(
    body: ResetPasswordRequest,
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Overwrite an employee's password.  Only ``employee`` accounts can be
    reset this way; other admins must use change-password themselves.
    """
    target = account_service.get_user_by_email(db, body.email)
    if not target or target.role != ROLE_EMPLOYEE:
        raise NotFound("Employee not found")

    err = account_service.validate_new_password(body.new_password)
    if err:
        raise ValidationError(err)

    account_service.update_credential(db, target, body.new_password)
    logger.info("password reset | admin_id=%d target_user_id=%d", admin.user_id, target.id)
    return {"detail": "Password reset successfully"}
