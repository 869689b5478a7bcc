"""Account schemas for request/response validation."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AccountResponse(BaseModel):
    """Account as returned to callers. Never includes the password checksum."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    email: str
    username: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")
    provider: str | None = None
    display_name: str | None = Field(default=None, alias="displayName")


class ProfileUpdate(BaseModel):
    """Partial profile update. Unknown fields are kept and merged."""

    model_config = ConfigDict(extra="allow")


class EmailUpdate(BaseModel):
    """Email change request; the current password re-verifies the user."""

    new_email: EmailStr
    password: str


class PasswordUpdate(BaseModel):
    """Password change request."""

    current_password: str
    new_password: str


class AccountDeletion(BaseModel):
    """Account deletion request."""

    password: str
