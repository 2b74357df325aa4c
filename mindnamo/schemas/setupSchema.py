from typing import Optional
from pydantic import BaseModel

from mindnamo.constants.constants import SetupState


class SetupProfile(BaseModel):
    """Non-secret fields used to pre-fill a resuming setup client."""

    name: Optional[str]
    handle: Optional[str]
    email: str
    photo: Optional[str]

    class Config:
        from_attributes = True


class SetupStatus(BaseModel):
    setup_state: SetupState
    is_verified: bool
    force_password_change: bool
    challenge_active: bool


class VerifyCodeRequest(BaseModel):
    code: str


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    handle: Optional[str] = None
    photo: Optional[str] = None


class FinalizeSetupRequest(BaseModel):
    password: str
