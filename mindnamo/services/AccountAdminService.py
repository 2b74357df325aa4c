"""Administrative account operations: creation, bans and deletion."""

import logging
import secrets
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mindnamo.constants.constants import (
    AccountRole,
    ChallengeState,
    HANDLE_ADJECTIVES,
    HANDLE_ANIMALS,
    SetupState,
)
from mindnamo.core.errors import Conflict, NotFound, ValidationFailed
from mindnamo.core.security import hash_password
from mindnamo.models.account import Account
from mindnamo.schemas.accountSchema import AccountCredentials, AccountSettings

logger = logging.getLogger(__name__)

MAX_HANDLE_ATTEMPTS = 50


def generate_readable_handle() -> str:
    """e.g. "happylion" - two lowercase words, no separator."""
    return secrets.choice(HANDLE_ADJECTIVES) + secrets.choice(HANDLE_ANIMALS)


def generate_human_name() -> str:
    """e.g. "Happy Lion" - placeholder display name."""
    return f"{secrets.choice(HANDLE_ADJECTIVES).capitalize()} {secrets.choice(HANDLE_ANIMALS).capitalize()}"


def generate_temp_password() -> str:
    return secrets.token_hex(4) + "A1!"


async def generate_unique_handle(db: AsyncSession) -> str:
    for attempt in range(MAX_HANDLE_ATTEMPTS):
        handle = generate_readable_handle()
        # Fall back to a numeric suffix once the plain word pairs start colliding
        if attempt >= MAX_HANDLE_ATTEMPTS // 2:
            handle = f"{handle}{secrets.randbelow(10000)}"
        exists = await db.execute(select(Account.account_id).where(Account.handle == handle))
        if exists.first() is None:
            return handle
    raise Conflict("Could not generate a unique username")


async def create_account(
    db: AsyncSession,
    email: str,
    role: AccountRole,
    name: Optional[str] = None,
) -> AccountCredentials:
    """
    Create an account that must verify its email and set a password on first login.

    The temporary password is only ever returned here.
    """
    email = email.lower()
    existing = await db.execute(
        select(Account.account_id).where(Account.email == email, Account.role == role)
    )
    if existing.first() is not None:
        raise Conflict(f"A {role.value} account with this email already exists.")

    temp_password = generate_temp_password()
    handle = await generate_unique_handle(db)
    final_name = name.strip() if name and name.strip() else generate_human_name()

    account = Account(
        email=email,
        handle=handle,
        name=final_name,
        password_hash=hash_password(temp_password),
        role=role,
        force_password_change=True,
        is_verified=False,
        setup_state=SetupState.unverified,
        challenge_state=ChallengeState.none,
        settings=AccountSettings().model_dump(mode="json"),
    )
    db.add(account)
    await db.commit()
    logger.info(f"👤 Created {role.value} account {account.account_id}")

    return AccountCredentials(
        email=account.email,
        handle=account.handle,
        temp_password=temp_password,
        role=account.role,
        name=account.name,
    )


async def set_ban(db: AsyncSession, email: str, banned: bool) -> int:
    """Ban or unban every account registered with `email`, across roles."""
    result = await db.execute(
        update(Account)
        .where(Account.email == email.lower())
        .values(is_banned=banned)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount


async def bulk_set_ban(db: AsyncSession, emails: List[str], banned: bool) -> int:
    result = await db.execute(
        update(Account)
        .where(Account.email.in_([e.lower() for e in emails]))
        .values(is_banned=banned)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount


async def delete_account(db: AsyncSession, account_id: str):
    """Delete an account that never verified its email; verified ones are kept for history."""
    account = await db.get(Account, account_id)
    if account is None:
        raise NotFound()
    if account.is_verified:
        raise Conflict("Cannot delete a verified user. Please ban them instead.")

    await db.delete(account)
    await db.commit()


async def bulk_delete_accounts(db: AsyncSession, account_ids: List[str]) -> int:
    result = await db.execute(
        delete(Account)
        .where(Account.account_id.in_(account_ids), Account.is_verified == False)  # noqa: E712
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount


async def update_account_settings(db: AsyncSession, account_id: str, values: dict) -> AccountSettings:
    """Merge `values` into the stored preferences; unknown keys fail validation."""
    account = await db.get(Account, account_id)
    if account is None:
        raise NotFound()
    try:
        merged = AccountSettings(**{**(account.settings or {}), **values})
    except ValidationError as e:
        raise ValidationFailed(f"Invalid settings: {e.errors()[0]['msg']}")

    account.settings = merged.model_dump(mode="json")
    await db.commit()
    return merged
