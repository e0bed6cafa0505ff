# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Central security module.  All cryptographic primitives and auth guards live
here.  No other module should touch raw crypto directly.

Responsibilities
----------------
1. Password hashing / verification          (passlib pbkdf2_sha256)
2. Session token creation / decoding        (PyJWT / HS256)
3. FastAPI dependency guards                (get_current_identity, require_admin)
4. Ticket ownership predicate               (can_access_ticket)

The guards are stateless: identity comes from the signed token alone and is
never re-read from the database.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt as _jwt        # PyJWT
from passlib.hash import pbkdf2_sha256 as _pbkdf2  # pure Python, no binary deps
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.config import settings
from core.errors import Forbidden, InvalidToken, Unauthenticated
from models.user import ROLE_ADMIN, ROLES

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """
    Hash a plaintext password with PBKDF2-SHA256.

    The returned string is the full passlib hash (``$pbkdf2-sha256$...``); the
    random salt and round count are embedded in it.
    """
    return _pbkdf2.using(rounds=settings.password_hash_rounds).hash(plain)


def verify_password(plain: str, stored_hash: str) -> bool:
    """
    Constant-time verification of a plaintext password against a hash
    produced by :func:`hash_password`.  A malformed hash never verifies.
    """
    try:
        return _pbkdf2.verify(plain, stored_hash)
    except (ValueError, TypeError):
        return False


# ---------------------------------------------------------------------------
# 2.  JWT – session tokens
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Identity:
    """Who is calling: the decoded content of a session token."""

    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def create_access_token(user_id: int, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a session token with HS256.

    Claims: ``sub`` (user id as string), ``user_id``, ``role`` and ``exp``.
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode = {"sub": str(user_id), "user_id": user_id, "role": role, "exp": expire}
    return _jwt.encode(to_encode, settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> Identity:
    """
    Verify a session token and return the identity it asserts.

    Raises :class:`InvalidToken` on a bad signature, malformed token, expired
    token, or a payload without a usable ``user_id`` / ``role``.
    """
    try:
        payload = _jwt.decode(
            token,
            settings.secret_key,
            algorithms=[_ALGORITHM],
            options={"require": ["exp", "user_id", "role"]},
        )
    except _jwt.ExpiredSignatureError as exc:
        raise InvalidToken("Token expired") from exc
    except _jwt.InvalidTokenError as exc:
        raise InvalidToken("Token invalid") from exc

    user_id = payload["user_id"]
    role = payload["role"]
    # bool is an int subclass; reject it explicitly
    if not isinstance(user_id, int) or isinstance(user_id, bool) or role not in ROLES:
        raise InvalidToken("Token payload malformed")
    return Identity(user_id=user_id, role=role)


# ---------------------------------------------------------------------------
# 3.  FastAPI dependency guards
# ---------------------------------------------------------------------------

# auto_error=False so a missing header reaches our own Unauthenticated error
# instead of FastAPI's generic 403.
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    """
    Gate 1 – authenticate.  Decode the bearer token and attach the identity
    to ``request.state.identity`` for downstream handlers.

    Raises 401 when the header is missing or the token does not verify.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Not authorized, no token")

    try:
        identity = decode_access_token(credentials.credentials)
    except InvalidToken:
        raise Unauthenticated("Not authorized, token failed")

    request.state.identity = identity
    return identity


def authorize(identity: Optional[Identity], role: str) -> Identity:
    """
    Gate 2 – authorize.  The caller must carry *role*.  A missing identity is
    treated as forbidden rather than unauthenticated.
    """
    if identity is None:
        raise Forbidden("Access denied")
    if identity.role != role:
        raise Forbidden(f"Access denied. {role.capitalize()} privileges required.")
    return identity


def require_role(role: str):
    """Build a dependency that runs both gates in sequence for *role*."""

    def _guard(request: Request, _identity: Identity = Depends(get_current_identity)) -> Identity:
        return authorize(getattr(request.state, "identity", None), role)

    return _guard


require_admin = require_role(ROLE_ADMIN)


# ---------------------------------------------------------------------------
# 4.  Ownership predicate
# ---------------------------------------------------------------------------


def can_access_ticket(caller: Identity, ticket) -> bool:
    """Admins may touch any ticket; everyone else only the tickets they own."""
    return caller.is_admin or caller.user_id == ticket.employee_id
