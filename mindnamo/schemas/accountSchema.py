from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from mindnamo.constants.constants import AccountRole, Theme


class AccountSettings(BaseModel):
    """Per-account preferences. Unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    theme: Theme = Theme.system
    notifications: bool = True
    onboarding_complete: bool = False


class CreateAccountRequest(BaseModel):
    email: EmailStr
    role: AccountRole
    name: Optional[str] = Field(default=None, max_length=80)


class AccountCredentials(BaseModel):
    email: EmailStr
    handle: str
    temp_password: str
    role: AccountRole
    name: str


class BanRequest(BaseModel):
    email: EmailStr
    banned: bool


class BulkBanRequest(BaseModel):
    emails: List[EmailStr] = Field(min_length=1)
    banned: bool


class BulkDeleteRequest(BaseModel):
    account_ids: List[str] = Field(min_length=1)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str


class SessionResponse(BaseModel):
    account_id: str
    email: str
    role: str
    force_password_change: bool
