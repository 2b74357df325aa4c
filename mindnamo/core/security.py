"""Security utilities for password hashing, JWT session tokens and request dependencies."""

import logging
from dataclasses import dataclass
from typing import Optional
from datetime import datetime, timedelta, timezone
import bcrypt
import jwt
from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from mindnamo.constants.constants import AccountRole, AUTH_COOKIE_NAME
from mindnamo.core.database import aget_db
from mindnamo.core.errors import Forbidden, Unauthorized
from mindnamo.models.account import Account

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a password with bcrypt. Input beyond 72 bytes is ignored by bcrypt, so it is cut first."""
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:72], password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


@dataclass(frozen=True)
class SessionClaims:
    """The subset of the session token the gate and endpoints rely on."""

    account_id: str
    email: str
    role: str
    force_password_change: bool

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.admin.value


def create_jwt_token(data: dict, expires_delta: timedelta = timedelta(hours=1)) -> str:
    """
    Creates a JWT (JSON Web Token) with the provided data and expiration time.

    Args:
        data (dict): The payload data to be encoded in the JWT.
        expires_delta (timedelta, optional): The time until the token expires.
            Defaults to 1 hour.

    Returns:
        str: The encoded JWT string.

    Note:
        The token includes standard JWT claims:
        - exp (expiration time)
        - iat (issued at time)
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    to_encode.update({
        "exp": now + expires_delta,
        "iat": now
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_jwt_token(token: str) -> dict:
    """Decodes and validates a JWT token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or improperly formatted.
    """
    return jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[settings.ALGORITHM]
    )


def issue_session_token(account: Account) -> str:
    payload = {
        "sub": str(account.account_id),
        "email": account.email,
        "role": account.role.value if hasattr(account.role, "value") else account.role,
        "force_password_change": bool(account.force_password_change),
    }
    return create_jwt_token(payload, expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))


def claims_from_token(token: Optional[str]) -> Optional[SessionClaims]:
    """Decode a session token, returning None for a missing, expired or tampered one."""
    if not token:
        return None
    try:
        payload = decode_jwt_token(token)
    except jwt.InvalidTokenError as e:
        logger.info(f"Rejected session token: {e}")
        return None

    account_id = payload.get("sub")
    if not account_id:
        return None
    return SessionClaims(
        account_id=account_id,
        email=payload.get("email", ""),
        role=payload.get("role", ""),
        force_password_change=bool(payload.get("force_password_change", False)),
    )


# -----------------------------
# Cookie Helpers
# -----------------------------
def set_auth_cookie(response: Response, token: str):
    """Set auth cookie."""
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        path="/",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    )


def clear_auth_cookie(response: Response):
    """Clear auth cookie."""
    response.delete_cookie(key=AUTH_COOKIE_NAME, path="/")


# -----------------------------
# Dependencies
# -----------------------------
async def get_current_session(request: Request) -> SessionClaims:
    """
    Dependency returning the claims of the current session cookie.
    Raises Unauthorized if there is no valid session.
    """
    claims = claims_from_token(request.cookies.get(AUTH_COOKIE_NAME))
    if claims is None:
        raise Unauthorized("Not authenticated")
    return claims


async def require_admin(claims: SessionClaims = Depends(get_current_session)) -> SessionClaims:
    """Admin-role session; setup may still be incomplete."""
    if not claims.is_admin:
        raise Forbidden("Unauthorized access")
    return claims


async def require_active_admin(
    claims: SessionClaims = Depends(require_admin),
    db: AsyncSession = Depends(aget_db)
) -> Account:
    """
    Admin-role account read from storage, so a ban applied after sign-in
    takes effect immediately. Setup may still be incomplete.
    """
    account = await db.get(Account, claims.account_id)
    if account is None:
        raise Unauthorized("User not found")
    if account.is_banned:
        raise Forbidden("Account suspended")
    if account.role != AccountRole.admin:
        raise Forbidden("Unauthorized access")
    return account


async def require_unlocked_admin(account: Account = Depends(require_active_admin)) -> Account:
    """Active admin that has finished setup; a stale cookie cannot reach protected features."""
    if account.force_password_change:
        raise Forbidden("Account setup is not complete")
    return account
