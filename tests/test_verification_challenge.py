from datetime import timedelta

import pytest

from conftest import FakeNotifier, make_account
from mindnamo.constants.constants import ChallengeState, SetupState
from mindnamo.core.errors import (
    CodeMismatch,
    Conflict,
    Expired,
    NoActiveChallenge,
    NotFound,
    RateLimited,
)
from mindnamo.core.ratelimit import AccountRateLimiter
from mindnamo.services import AccountSetupService
from mindnamo.utils.clock import utcnow


async def _issue(db, account, notifier, limiter):
    result = await AccountSetupService.issue_challenge(db, account.account_id, notifier, limiter)
    await db.refresh(account)
    return result


def test_generate_otp_keeps_fixed_width(monkeypatch):
    monkeypatch.setattr(AccountSetupService.secrets, "randbelow", lambda bound: 42)
    assert AccountSetupService.generate_otp(6) == "000042"


def test_generate_otp_is_numeric():
    code = AccountSetupService.generate_otp()
    assert len(code) == 6
    assert code.isdigit()


async def test_issue_challenge_stores_code_and_sends_it(db, notifier, limiter):
    account = await make_account(db)
    before = utcnow()

    result = await _issue(db, account, notifier, limiter)

    assert result == {"success": True, "delivered": True}
    assert "code" not in result
    assert account.challenge_state == ChallengeState.issued
    assert account.setup_state == SetupState.challenge_issued
    assert len(account.otp_code) == 6
    assert before + timedelta(minutes=9) < account.otp_expires_at <= utcnow() + timedelta(minutes=10)
    assert notifier.sent[0]["to"] == account.email
    assert account.otp_code in notifier.sent[0]["html"]


async def test_mismatched_code_leaves_challenge_untouched(db, notifier, limiter):
    account = await make_account(db)
    await _issue(db, account, notifier, limiter)
    code, expiry = account.otp_code, account.otp_expires_at
    wrong = "000000" if code != "000000" else "111111"

    with pytest.raises(CodeMismatch):
        await AccountSetupService.validate_challenge(db, account.account_id, wrong)

    await db.refresh(account)
    assert account.otp_code == code
    assert account.otp_expires_at == expiry
    assert account.challenge_state == ChallengeState.issued
    assert account.is_verified is False


async def test_verified_code_cannot_be_replayed(db, notifier, limiter):
    account = await make_account(db)
    await _issue(db, account, notifier, limiter)
    code = account.otp_code

    verified = await AccountSetupService.validate_challenge(db, account.account_id, code)
    assert verified.is_verified is True
    assert verified.otp_code is None
    assert verified.otp_expires_at is None
    assert verified.challenge_state == ChallengeState.consumed
    assert verified.setup_state == SetupState.email_verified
    assert verified.email_verified_at is not None

    with pytest.raises(NoActiveChallenge):
        await AccountSetupService.validate_challenge(db, account.account_id, code)


async def test_expired_code_is_rejected_even_when_correct(db, notifier, limiter):
    account = await make_account(db)
    await _issue(db, account, notifier, limiter)
    account.otp_expires_at = utcnow() - timedelta(seconds=1)
    await db.commit()

    with pytest.raises(Expired):
        await AccountSetupService.validate_challenge(db, account.account_id, account.otp_code)

    await db.refresh(account)
    assert account.is_verified is False
    assert account.challenge_state == ChallengeState.issued


async def test_reissuing_invalidates_previous_code(db, notifier, limiter, monkeypatch):
    codes = iter(["111111", "222222"])
    monkeypatch.setattr(AccountSetupService, "generate_otp", lambda length=None: next(codes))
    account = await make_account(db)

    await _issue(db, account, notifier, limiter)
    await _issue(db, account, notifier, limiter)

    with pytest.raises(CodeMismatch):
        await AccountSetupService.validate_challenge(db, account.account_id, "111111")

    verified = await AccountSetupService.validate_challenge(db, account.account_id, "222222")
    assert verified.is_verified is True


async def test_validate_without_challenge(db):
    account = await make_account(db)
    with pytest.raises(NoActiveChallenge):
        await AccountSetupService.validate_challenge(db, account.account_id, "123456")


async def test_validate_unknown_account(db):
    with pytest.raises(NotFound):
        await AccountSetupService.validate_challenge(db, "missing-account", "123456")


async def test_issue_challenge_is_rate_limited_per_account(db, notifier, limiter):
    account = await make_account(db)
    other = await make_account(db)

    for _ in range(5):
        await AccountSetupService.issue_challenge(db, account.account_id, notifier, limiter)

    with pytest.raises(RateLimited):
        await AccountSetupService.issue_challenge(db, account.account_id, notifier, limiter)

    result = await AccountSetupService.issue_challenge(db, other.account_id, notifier, limiter)
    assert result["success"] is True


async def test_delivery_failure_keeps_the_issued_code(db, limiter):
    failing = FakeNotifier(fail=True)
    account = await make_account(db)

    result = await _issue(db, account, failing, limiter)

    assert result == {"success": True, "delivered": False}
    assert account.challenge_state == ChallengeState.issued
    verified = await AccountSetupService.validate_challenge(db, account.account_id, account.otp_code)
    assert verified.is_verified is True


async def test_issue_refused_once_email_verified(db, notifier):
    account = await make_account(db, is_verified=True, setup_state=SetupState.email_verified, email_verified_at=utcnow())
    with pytest.raises(Conflict):
        await AccountSetupService.issue_challenge(db, account.account_id, notifier, AccountRateLimiter())


async def test_second_consumer_of_a_challenge_loses(db, db_manager, notifier, limiter):
    account = await make_account(db)
    await _issue(db, account, notifier, limiter)
    code = account.otp_code
    await db.commit()

    async with db_manager.session_factory() as other_session:
        await AccountSetupService.validate_challenge(other_session, account.account_id, code)

    # `db` still holds the pre-verification row; the guarded update must not match.
    assert await AccountSetupService.consume_challenge(db, account.account_id, code, utcnow()) is False
    await db.rollback()
