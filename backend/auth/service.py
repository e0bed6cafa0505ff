# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Account operations shared by the auth and admin routers and by
``bin/seed_admin.py``.

Password hashing happens here, explicitly, before a row is written.  Nothing
hashes on a generic "save".
"""

import re
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.errors import ValidationError
from core.logger import logger
from core.security import hash_password, verify_password
from models.user import ROLE_ADMIN, User

_DUPLICATE = "Email or employee number already exists."


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_new_password(pw: str) -> str | None:
    """
    Return an error string if the password does not meet the minimum policy,
    or None if it is acceptable.

    Policy: >= 8 chars, at least one uppercase, one lowercase, one digit.
    """
    if len(pw) < 8:
        return "Password must be at least 8 characters"
    if not re.search(r"[A-Z]", pw):
        return "Password must contain at least one uppercase letter"
    if not re.search(r"[a-z]", pw):
        return "Password must contain at least one lowercase letter"
    if not re.search(r"[0-9]", pw):
        return "Password must contain at least one digit"
    return None


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def create_user(
    db: Session,
    *,
    name: str,
    dept: str,
    designation: str,
    email: str,
    contact_number: str,
    employee_number: str,
    role: str,
    password: str,
) -> User:
    """
    Insert a new account with a freshly hashed password.

    Raises ``ValidationError`` when the email (case-insensitive) or the
    employee number is already taken.
    """
    email = normalize_email(email)
    employee_number = employee_number.strip()

    existing = (
        db.query(User)
        .filter(or_(func.lower(User.email) == email, User.employee_number == employee_number))
        .first()
    )
    if existing:
        raise ValidationError(_DUPLICATE)

    user = User(
        name=name.strip(),
        dept=dept.strip(),
        designation=designation.strip(),
        email=email,
        contact_number=contact_number.strip(),
        employee_number=employee_number,
        role=role,
        password_hash=hash_password(password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent signup with the same keys
        db.rollback()
        raise ValidationError(_DUPLICATE)
    db.refresh(user)

    logger.info("user created | user_id=%d role=%s", user.id, user.role)
    return user


def authenticate(db: Session, email: str, password: str) -> Optional[User]:
    """Return the user when *password* matches, otherwise None."""
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def update_credential(db: Session, user: User, new_password: str) -> bool:
    """
    Replace the user's password hash.

    An unchanged password is not re-hashed; returns False in that case and
    True when a new hash was stored.
    """
    if verify_password(new_password, user.password_hash):
        return False

    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info("credential updated | user_id=%d", user.id)
    return True


def ensure_admin(db: Session, *, email: str, password: str, name: str) -> tuple[User, bool]:
    """
    Create the bootstrap admin unless an account with *email* already exists.

    Returns ``(user, created)``.
    """
    existing = get_user_by_email(db, email)
    if existing:
        return existing, False

    admin = create_user(
        db,
        name=name,
        dept="IT",
        designation="Administrator",
        email=email,
        contact_number="-",
        employee_number=f"ADMIN-{normalize_email(email)}",
        role=ROLE_ADMIN,
        password=password,
    )
    return admin, True
