"""
Backend wire models.

Pydantic models validating backend request and response bodies.
"""

from pydantic import BaseModel, ConfigDict, Field


class EmailRequest(BaseModel):
    """Request body for sending a verification code."""

    email: str


class VerifyCodeRequest(BaseModel):
    """Request body for redeeming a verification code."""

    email: str
    code: str


class RegisterUserRequest(BaseModel):
    """Request body for backend profile registration."""

    email: str
    password: str


class CheckEmailVerifiedResponse(BaseModel):
    verified: bool | None = False


class CheckEmailExistsResponse(BaseModel):
    exists: bool = False


class UserProfile(BaseModel):
    """Application-owned profile record keyed by the identity provider's uid."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    user_id: str = Field(alias="userId")
    email: str | None = None
    scan_credits: int = Field(default=0, alias="scanCredits")
    language: str | None = None
    last_scan_date: str | None = Field(default=None, alias="lastScanDate")
