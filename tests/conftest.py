"""
Pytest configuration for the Mind Namo admin tests.
Settings are read at import time, so the environment is prepared first.
"""
import os
import uuid

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./mindnamo-test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from mindnamo.constants.constants import AUTH_COOKIE_NAME, AccountRole, ChallengeState, SetupState
from mindnamo.core.database import session_manager
from mindnamo.core.ratelimit import AccountRateLimiter, get_rate_limiter, ip_limiter
from mindnamo.core.security import hash_password, issue_session_token
from mindnamo.main import app
from mindnamo.models.account import Account
from mindnamo.services.MailClient import get_notifier
from mindnamo.utils.clock import utcnow

DEFAULT_PASSWORD = "correct-horse-battery"


class FakeNotifier:
    """Records messages instead of sending them."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def send(self, destination: str, subject: str, body_html: str) -> dict:
        self.sent.append({"to": destination, "subject": subject, "html": body_html})
        if self.fail:
            return {"success": False, "error": "mail provider unreachable"}
        return {"success": True, "id": f"msg-{len(self.sent)}"}


@pytest_asyncio.fixture
async def db_manager(tmp_path):
    await session_manager.init(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    yield session_manager
    await session_manager.close()


@pytest_asyncio.fixture
async def db(db_manager):
    async with db_manager.session_factory() as session:
        yield session


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest_asyncio.fixture
async def limiter():
    account_limiter = AccountRateLimiter()
    account_limiter.init("async+memory://", requests=5, window_seconds=60)
    yield account_limiter
    await account_limiter.close()


@pytest_asyncio.fixture
async def client(db_manager, notifier, limiter):
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    ip_limiter.reset()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as http_client:
        yield http_client
    app.dependency_overrides.clear()


async def make_account(db, **overrides) -> Account:
    """Persist an account in the state an administrator leaves a new one in."""
    suffix = uuid.uuid4().hex[:8]
    values = dict(
        email=f"admin-{suffix}@mindnamo.com",
        handle=f"handle{suffix}",
        name="Brave Otter",
        password_hash=hash_password(DEFAULT_PASSWORD),
        role=AccountRole.admin,
        force_password_change=True,
        is_verified=False,
        setup_state=SetupState.unverified,
        challenge_state=ChallengeState.none,
    )
    values.update(overrides)
    account = Account(**values)
    db.add(account)
    await db.commit()
    await db.refresh(account)
    return account


async def make_unlocked_admin(db, **overrides) -> Account:
    values = dict(
        force_password_change=False,
        is_verified=True,
        email_verified_at=utcnow(),
        setup_state=SetupState.unlocked,
    )
    values.update(overrides)
    return await make_account(db, **values)


def sign_in(http_client: AsyncClient, account: Account):
    http_client.cookies.set(AUTH_COOKIE_NAME, issue_session_token(account))
