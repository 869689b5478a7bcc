"""Account store interface shared by the local and hosted backends."""

from abc import ABC, abstractmethod
from typing import Any

from site_accounts.core.exceptions import UnsupportedOperationError, ValidationError
from site_accounts.core.security import utf16_length
from site_accounts.core.storage import AccountStorage

# Fields that never change once an account exists.
IMMUTABLE_FIELDS = frozenset({"id", "email", "createdAt"})

# Fields a caller may not supply through extra registration data.
RESERVED_FIELDS = IMMUTABLE_FIELDS | {"password"}


def without_password(record: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``record`` without its password checksum."""
    return {key: value for key, value in record.items() if key != "password"}


def require_credentials(email: str | None, password: str | None) -> None:
    """Raise ValidationError unless both email and password are non-empty."""
    if not email or not password:
        raise ValidationError("Email and password are required")


def require_password_length(password: str, min_length: int) -> None:
    """Raise ValidationError if the password is too short."""
    if utf16_length(password) < min_length:
        raise ValidationError(f"Password must be at least {min_length} characters")


def allowed_extra_fields(extra_fields: dict[str, Any] | None) -> dict[str, Any]:
    """Drop reserved keys from caller-supplied registration data."""
    return {
        key: value for key, value in (extra_fields or {}).items() if key not in RESERVED_FIELDS
    }


def default_username(email: str) -> str:
    """Use the local part of the email as the username."""
    return email.split("@")[0]


class AccountStore(ABC):
    """
    User accounts with a single current-session pointer.

    Returned accounts are plain dicts and never contain the password
    checksum. The session pointer lives in the injected storage.
    """

    def __init__(self, storage: AccountStorage):
        """Initialize store with the storage holding the session pointer."""
        self.storage = storage

    @abstractmethod
    async def register(
        self,
        email: str,
        password: str,
        username: str | None = None,
        extra_fields: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Create an account and log it in."""

    @abstractmethod
    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Log in with email and password."""

    @abstractmethod
    async def login_with_federated_provider(self, id_token: str | None = None) -> dict[str, Any]:
        """Log in through the third-party identity provider."""

    @abstractmethod
    async def logout(self) -> None:
        """Clear the session pointer."""

    @abstractmethod
    async def update_profile(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Merge ``fields`` into the logged-in account."""

    @abstractmethod
    async def get_user_profile(self, user_id: str) -> dict[str, Any]:
        """Return the stored profile of ``user_id``."""

    def get_current_user(self) -> dict[str, Any] | None:
        """Return the logged-in account, or None."""
        return self.storage.load_session()

    def is_logged_in(self) -> bool:
        """Check whether a session is active."""
        return self.get_current_user() is not None

    async def reset_password(self, email: str) -> None:
        """Send a password reset email."""
        raise UnsupportedOperationError("Password reset is not supported by this account backend")

    async def update_email(self, new_email: str, password: str) -> dict[str, Any]:
        """Change the login email after re-verifying the password."""
        raise UnsupportedOperationError("Email change is not supported by this account backend")

    async def update_password(self, current_password: str, new_password: str) -> None:
        """Change the password after re-verifying the current one."""
        raise UnsupportedOperationError("Password change is not supported by this account backend")

    async def delete_account(self, password: str) -> None:
        """Delete the logged-in account after re-verifying the password."""
        raise UnsupportedOperationError(
            "Account deletion is not supported by this account backend"
        )
