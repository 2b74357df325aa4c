"""
First-login setup flow for accounts created by an administrator.

The flow is verify email -> update profile (optional) -> set password.
Every step derives its precondition from the persisted account row
(`setup_state`, `challenge_state`, `email_verified_at`), so a client that
reloads mid-flow can ask for the current state and resume where it left off.
"""

import logging
import re
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mindnamo.constants.constants import ChallengeState, SetupState, setup_reached
from mindnamo.core.config import settings
from mindnamo.core.errors import (
    CodeMismatch,
    Conflict,
    EmailNotVerified,
    Expired,
    HandleTaken,
    NoActiveChallenge,
    NotFound,
    RateLimited,
    ValidationFailed,
)
from mindnamo.core.ratelimit import AccountRateLimiter
from mindnamo.core.security import hash_password, verify_password
from mindnamo.models.account import Account
from mindnamo.schemas.setupSchema import SetupProfile, SetupStatus
from mindnamo.services.MailClient import Notifier
from mindnamo.services.SendEmailOtp import send_email_otp
from mindnamo.utils.clock import utcnow

logger = logging.getLogger(__name__)

HANDLE_PATTERN = re.compile(r"^[a-z0-9_.]{3,30}$")
MAX_NAME_LENGTH = 80


def generate_otp(length: Optional[int] = None) -> str:
    """Uniformly random numeric code of fixed width (leading zeros kept)."""
    length = length or settings.OTP_LENGTH
    return f"{secrets.randbelow(10 ** length):0{length}d}"


async def get_account(db: AsyncSession, account_id: str) -> Account:
    account = await db.get(Account, account_id)
    if account is None:
        raise NotFound()
    return account


async def get_setup_profile(db: AsyncSession, account_id: str) -> SetupProfile:
    account = await get_account(db, account_id)
    return SetupProfile.model_validate(account)


async def get_setup_status(db: AsyncSession, account_id: str) -> SetupStatus:
    account = await get_account(db, account_id)
    return SetupStatus(
        setup_state=account.setup_state,
        is_verified=account.is_verified,
        force_password_change=account.force_password_change,
        challenge_active=account.challenge_state == ChallengeState.issued,
    )


# -----------------------------
# Step 1: verification code
# -----------------------------
async def issue_challenge(
    db: AsyncSession,
    account_id: str,
    notifier: Notifier,
    limiter: AccountRateLimiter,
) -> dict:
    """
    Issue a fresh verification code, replacing any outstanding one.

    The code counts as issued once it is stored; a delivery failure is
    logged and reported as ``delivered: False`` without undoing the write.
    """
    limit = await limiter.limit(f"otp:{account_id}")
    if not limit.success:
        raise RateLimited()

    account = await get_account(db, account_id)
    if account.is_verified or setup_reached(account.setup_state, SetupState.email_verified):
        raise Conflict("Email is already verified")

    code = generate_otp()
    account.otp_code = code
    account.otp_expires_at = utcnow() + timedelta(minutes=settings.OTP_TTL_MINUTES)
    account.challenge_state = ChallengeState.issued
    account.setup_state = SetupState.challenge_issued
    await db.commit()
    logger.info(f"🔐 Verification code issued for account {account_id}")

    result = await send_email_otp(notifier, account.email, code)
    return {"success": True, "delivered": bool(result.get("success"))}


async def consume_challenge(db: AsyncSession, account_id: str, code: str, now: datetime) -> bool:
    """
    Atomically mark the email verified if `code` is still the live challenge.

    Returns False when no row matched, i.e. the challenge was consumed,
    replaced or expired in the meantime.
    """
    result = await db.execute(
        update(Account)
        .where(
            Account.account_id == account_id,
            Account.challenge_state == ChallengeState.issued,
            Account.otp_code == code,
            Account.otp_expires_at >= now,
        )
        .values(
            is_verified=True,
            otp_code=None,
            otp_expires_at=None,
            challenge_state=ChallengeState.consumed,
            setup_state=SetupState.email_verified,
            email_verified_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def validate_challenge(db: AsyncSession, account_id: str, code: str) -> Account:
    account = await get_account(db, account_id)

    if account.challenge_state != ChallengeState.issued or not account.otp_code:
        raise NoActiveChallenge()
    if account.otp_code != code:
        raise CodeMismatch()

    now = utcnow()
    if account.otp_expires_at is None or now > account.otp_expires_at:
        raise Expired()

    if not await consume_challenge(db, account_id, code, now):
        await db.rollback()
        raise NoActiveChallenge()

    await db.commit()
    await db.refresh(account)
    logger.info(f"✅ Email verified for account {account_id}")
    return account


# -----------------------------
# Step 2: profile (optional)
# -----------------------------
async def _handle_in_use(db: AsyncSession, handle: str, account_id: str) -> bool:
    result = await db.execute(
        select(Account.account_id).where(Account.handle == handle, Account.account_id != account_id)
    )
    return result.first() is not None


def _clean_name(name: str) -> str:
    name = name.strip()
    if not name or len(name) > MAX_NAME_LENGTH:
        raise ValidationFailed(f"Name must be between 1 and {MAX_NAME_LENGTH} characters")
    return name


def _clean_handle(handle: str) -> str:
    handle = handle.strip().lower()
    if not HANDLE_PATTERN.match(handle):
        raise ValidationFailed("Username must be 3-30 characters: lowercase letters, digits, '_' or '.'")
    return handle


def _clean_photo(photo: str) -> str:
    photo = photo.strip()
    if not photo.startswith(("http://", "https://")):
        raise ValidationFailed("Photo must be an http(s) URL")
    return photo


async def update_profile(
    db: AsyncSession,
    account_id: str,
    name: Optional[str] = None,
    handle: Optional[str] = None,
    photo: Optional[str] = None,
) -> Account:
    """Set any of name, handle and photo. Verification and lock flags are left alone."""
    account = await get_account(db, account_id)
    if not setup_reached(account.setup_state, SetupState.email_verified):
        raise EmailNotVerified("Verify your email before updating your profile")

    updates = {}
    if name is not None:
        updates["name"] = _clean_name(name)
    if photo is not None:
        updates["photo"] = _clean_photo(photo)
    if handle is not None:
        handle = _clean_handle(handle)
        if handle != account.handle:
            if await _handle_in_use(db, handle, account_id):
                raise HandleTaken()
            updates["handle"] = handle

    # Narrow the race window: look again right before writing.
    if "handle" in updates and await _handle_in_use(db, updates["handle"], account_id):
        raise HandleTaken()

    for field, value in updates.items():
        setattr(account, field, value)
    if account.setup_state == SetupState.email_verified:
        account.setup_state = SetupState.profile_pending

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HandleTaken()

    await db.refresh(account)
    return account


# -----------------------------
# Step 3: password (unlocks the account)
# -----------------------------
def _check_password_policy(password: str):
    if not password or len(password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")


async def finalize_setup(db: AsyncSession, account_id: str, new_password: str) -> Account:
    account = await get_account(db, account_id)
    if account.setup_state == SetupState.unlocked:
        raise Conflict("Account setup is already complete")
    if account.email_verified_at is None or not setup_reached(account.setup_state, SetupState.email_verified):
        raise EmailNotVerified()
    _check_password_policy(new_password)

    account.password_hash = hash_password(new_password)
    account.force_password_change = False
    account.setup_state = SetupState.unlocked
    await db.commit()
    await db.refresh(account)
    logger.info(f"🔓 Account {account_id} unlocked")
    return account


async def change_password(db: AsyncSession, account_id: str, current_password: str, new_password: str) -> Account:
    """Self-service password change, only once setup is complete."""
    account = await get_account(db, account_id)
    if account.setup_state != SetupState.unlocked:
        raise Conflict("Finish account setup first")
    if not verify_password(current_password, account.password_hash):
        raise ValidationFailed("Current password is incorrect")
    _check_password_policy(new_password)

    account.password_hash = hash_password(new_password)
    await db.commit()
    return account
