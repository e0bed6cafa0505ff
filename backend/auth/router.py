# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Account endpoints – signup, login, own profile, password change.

Security notes
--------------
* Login returns the *same* status and message whether the email doesn't
  exist or the password is wrong.  This prevents user-enumeration attacks.
* change-password verifies the old password before accepting the new one,
  so a stolen (but not yet expired) token alone cannot reset the password.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_db
from auth import service as account_service
from auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    SignupRequest,
    SignupResponse,
    UserInfoResponse,
)
from core.errors import NotFound, ValidationError
from core.logger import logger
from core.security import Identity, create_access_token, get_current_identity, verify_password
from models.user import User

router = APIRouter(prefix="/users", tags=["users"])

# Generic message used for both "no such email" and "wrong password"
_LOGIN_FAIL = "Invalid email or password"


# ---------------------------------------------------------------------------
# POST /users  – signup
# ---------------------------------------------------------------------------


@router.post("", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(body: SignupRequest, db: Session = Depends(get_db)):
    """Create an account and return a session token for it."""
    err = account_service.validate_new_password(body.password)
    if err:
        raise ValidationError(err)

    user = account_service.create_user(db, **body.model_dump())
    token = create_access_token(user.id, user.role)
    return SignupResponse(
        message="User created successfully",
        token=token,
        user=UserInfoResponse.model_validate(user),
    )


# ---------------------------------------------------------------------------
# POST /users/login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate and return a signed session token."""
    user = account_service.authenticate(db, body.email, body.password)

    # Unified failure path – no information leaks about whether the email exists
    if user is None:
        logger.info("login failed")
        raise ValidationError(_LOGIN_FAIL)

    token = create_access_token(user.id, user.role)
    return LoginResponse(message="Login successful", token=token, role=user.role)


# ---------------------------------------------------------------------------
# GET /users/profile
# ---------------------------------------------------------------------------


def _load_self(identity: Identity, db: Session) -> User:
    user = db.query(User).filter(User.id == identity.user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


@router.get("/profile", response_model=UserInfoResponse)
def profile(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Return the authenticated user's public profile (no secrets)."""
    return _load_self(identity, db)


# ---------------------------------------------------------------------------
# PUT /users/change-password
# ---------------------------------------------------------------------------


@router.put("/change-password")
def change_password(
    body: ChangePasswordRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Change the authenticated user's own password."""
    user = _load_self(identity, db)

    if not verify_password(body.old_password, user.password_hash):
        raise ValidationError("Old password is incorrect")

    err = account_service.validate_new_password(body.new_password)
    if err:
        raise ValidationError(err)

    account_service.update_credential(db, user, body.new_password)
    return {"detail": "Password changed successfully"}
