"""Account model for the Mind Namo admin portal."""

import uuid
from sqlalchemy import Column, String, DateTime, Boolean, Enum, JSON, UniqueConstraint

from mindnamo.constants.constants import AccountRole, SetupState, ChallengeState
from mindnamo.models.base import Base, TimestampMixin


def default_account_settings() -> dict:
    return {"theme": "system", "notifications": True, "onboarding_complete": False}


class Account(Base, TimestampMixin):
    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("email", "role", name="uq_accounts_email_role"),
    )

    account_id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, index=True, nullable=False)
    handle = Column(String, unique=True, index=True, nullable=True)
    name = Column(String, nullable=True)
    photo = Column(String, nullable=True)
    password_hash = Column(String, nullable=True)
    role = Column(Enum(AccountRole), nullable=False, default=AccountRole.user)

    is_banned = Column(Boolean, default=False, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    force_password_change = Column(Boolean, default=False, nullable=False)
    setup_state = Column(Enum(SetupState), default=SetupState.unverified, nullable=False)
    email_verified_at = Column(DateTime, nullable=True)

    # Outstanding one-time code, at most one per account
    challenge_state = Column(Enum(ChallengeState), default=ChallengeState.none, nullable=False)
    otp_code = Column(String, nullable=True)
    otp_expires_at = Column(DateTime, nullable=True)

    settings = Column(JSON, default=default_account_settings, nullable=False)

    def __repr__(self):
        return f"<Account {self.email} ({self.role.value if self.role else None})>"
