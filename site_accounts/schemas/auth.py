"""Authentication schemas.

Request fields are deliberately loose strings: emptiness and length rules
are enforced by the account store so both backends reject input the same
way.
"""

from typing import Any

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """Registration form submission."""

    account_name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    extra_fields: dict[str, Any] = Field(default_factory=dict)


class LoginRequest(BaseModel):
    """Email/password login request."""

    email: str = ""
    password: str = ""


class FederatedLoginRequest(BaseModel):
    """Third-party login request."""

    id_token: str | None = Field(
        default=None,
        description="Firebase ID token from a Google sign-in (ignored by the local backend)",
    )


class PasswordResetRequest(BaseModel):
    """Password reset email request."""

    email: EmailStr
