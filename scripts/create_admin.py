"""
Create the first admin account.

Usage:
    python scripts/create_admin.py admin@example.com "Super Admin"

The password is read from ADMIN_PASSWORD or prompted for. The account is
created verified and unlocked; it is left untouched if it already exists.
"""
import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

import asyncio
import getpass
from sqlalchemy import select

from mindnamo.constants.constants import AccountRole, SetupState
from mindnamo.core.database import session_manager
from mindnamo.core.security import hash_password
from mindnamo.models.account import Account
from mindnamo.schemas.accountSchema import AccountSettings
from mindnamo.services.AccountAdminService import generate_unique_handle
from mindnamo.utils.clock import utcnow


async def create_admin(email: str, name: str, password: str) -> bool:
    await session_manager.init()
    try:
        async with session_manager.get_session() as db:
            existing = await db.execute(
                select(Account).where(Account.email == email, Account.role == AccountRole.admin)
            )
            if existing.scalar_one_or_none():
                print(f"ℹ️ Admin already exists: {email}")
                return False

            db.add(Account(
                email=email,
                name=name,
                handle=await generate_unique_handle(db),
                password_hash=hash_password(password),
                role=AccountRole.admin,
                is_verified=True,
                email_verified_at=utcnow(),
                force_password_change=False,
                setup_state=SetupState.unlocked,
                settings=AccountSettings().model_dump(mode="json"),
            ))
        print(f"✅ Admin created: {email}")
        return True
    finally:
        await session_manager.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    admin_email = sys.argv[1].lower()
    admin_name = sys.argv[2] if len(sys.argv) > 2 else "Super Admin"
    admin_password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Password: ")
    if len(admin_password) < 8:
        print("❌ Password must be at least 8 characters")
        sys.exit(1)

    asyncio.run(create_admin(admin_email, admin_name, admin_password))
