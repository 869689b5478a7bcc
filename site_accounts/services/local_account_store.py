"""Account store backed by a local key-value substrate."""

from dataclasses import dataclass
from typing import Any

from structlog import get_logger

from site_accounts.config import Settings
from site_accounts.core.exceptions import (
    DuplicateEmailError,
    FederatedLoginError,
    InvalidCredentialsError,
    NotAuthenticatedError,
    UserNotFoundError,
)
from site_accounts.core.scheduler import Scheduler
from site_accounts.core.security import checksum, generate_account_id, random_base36
from site_accounts.core.storage import AccountStorage
from site_accounts.services.account_store import (
    IMMUTABLE_FIELDS,
    AccountStore,
    allowed_extra_fields,
    default_username,
    require_credentials,
    require_password_length,
    without_password,
)

logger = get_logger(__name__)

FEDERATED_PROVIDER = "google"
FEDERATED_EMAIL_DOMAIN = "gmail.com"


@dataclass(frozen=True)
class Latency:
    """Simulated network delay per operation, in seconds."""

    register: float = 0.8
    login: float = 0.8
    federated_login: float = 1.2
    logout: float = 0.3
    update_profile: float = 0.6
    get_profile: float = 0.3

    @classmethod
    def from_settings(cls, settings: Settings) -> "Latency":
        return cls(
            register=settings.register_delay,
            login=settings.login_delay,
            federated_login=settings.federated_login_delay,
            logout=settings.logout_delay,
            update_profile=settings.update_profile_delay,
            get_profile=settings.get_profile_delay,
        )

    @classmethod
    def none(cls) -> "Latency":
        return cls(0, 0, 0, 0, 0, 0)


class LocalAccountStore(AccountStore):
    """
    Account store that keeps every record in one persisted list.

    Each operation waits for its simulated latency and then reads, changes
    and writes the whole record set without suspending again, so two
    operations running on the same event loop can never interleave their
    read-modify-write.
    """

    def __init__(
        self,
        storage: AccountStorage,
        scheduler: Scheduler,
        latency: Latency | None = None,
        password_min_length: int = 6,
        checksum_salt: str | None = None,
    ):
        """Initialize store with storage, scheduler and latency profile."""
        super().__init__(storage)
        self.scheduler = scheduler
        self.latency = latency or Latency()
        self.password_min_length = password_min_length
        self.checksum_salt = checksum_salt

    def _checksum(self, password: str) -> str:
        return checksum(password, self.checksum_salt)

    def _start_session(self, record: dict[str, Any]) -> dict[str, Any]:
        account = without_password(record)
        self.storage.save_session(account)
        return account

    async def register(
        self,
        email: str,
        password: str,
        username: str | None = None,
        extra_fields: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Create an account and log it in.

        Args:
            email: Login email, unique across accounts (case-sensitive)
            password: Plaintext password, stored only as a checksum
            username: Display username (defaults to the email's local part)
            extra_fields: Additional fields stored on the record

        Returns:
            The new account without its checksum

        Raises:
            ValidationError: If email or password is missing or the password is too short
            DuplicateEmailError: If the email is already registered
        """
        await self.scheduler.sleep(self.latency.register)

        require_credentials(email, password)
        require_password_length(password, self.password_min_length)

        records = self.storage.load()
        if any(record.get("email") == email for record in records):
            logger.info("registration_rejected", reason="duplicate_email")
            raise DuplicateEmailError()

        extras = allowed_extra_fields(extra_fields)
        record = {
            "id": generate_account_id(self.scheduler.now()),
            "email": email,
            "password": self._checksum(password),
            "username": username or default_username(email),
            "createdAt": self.scheduler.timestamp(),
            **extras,
        }

        records.append(record)
        self.storage.save(records)

        logger.info("account_registered", account_id=record["id"])
        return self._start_session(record)

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """
        Log in with email and password.

        Raises:
            ValidationError: If email or password is missing
            UserNotFoundError: If no account has this email
            InvalidCredentialsError: If the password does not match
        """
        await self.scheduler.sleep(self.latency.login)

        require_credentials(email, password)

        records = self.storage.load()
        record = next((r for r in records if r.get("email") == email), None)
        if record is None:
            logger.info("login_failed", reason="unknown_email")
            raise UserNotFoundError()

        if record.get("password") != self._checksum(password):
            logger.info("login_failed", reason="bad_password", account_id=record["id"])
            raise InvalidCredentialsError()

        logger.info("login_succeeded", account_id=record["id"])
        return self._start_session(record)

    async def login_with_federated_provider(self, id_token: str | None = None) -> dict[str, Any]:
        """
        Simulate a Google sign-in.

        A random handle is generated on every call, so an existing record is
        only reused if the synthesized email happens to collide. The
        ``id_token`` argument is accepted for interface parity and ignored.

        Raises:
            FederatedLoginError: On any failure, without detail
        """
        await self.scheduler.sleep(self.latency.federated_login)

        try:
            handle = random_base36()
            username = f"user_{handle[:5]}"
            email = f"{username}@{FEDERATED_EMAIL_DOMAIN}"

            records = self.storage.load()
            record = next((r for r in records if r.get("email") == email), None)

            if record is None:
                record = {
                    "id": generate_account_id(self.scheduler.now()),
                    "email": email,
                    "username": username,
                    "createdAt": self.scheduler.timestamp(),
                    "provider": FEDERATED_PROVIDER,
                    "displayName": f"Google user {username}",
                }
                records.append(record)
                self.storage.save(records)
                logger.info("account_registered", account_id=record["id"], provider="google")

            return self._start_session(record)
        except Exception as e:
            logger.warning("federated_login_failed", error=str(e))
            raise FederatedLoginError() from None

    async def logout(self) -> None:
        """Clear the session pointer."""
        await self.scheduler.sleep(self.latency.logout)
        self.storage.save_session(None)
        logger.info("logged_out")

    async def update_profile(self, fields: dict[str, Any]) -> dict[str, Any]:
        """
        Merge ``fields`` into the logged-in account.

        ``id``, ``email`` and ``createdAt`` are silently ignored, as is
        ``password``; ``updatedAt`` is always stamped with the current time.

        Raises:
            NotAuthenticatedError: If nobody is logged in
            UserNotFoundError: If the session's record is no longer stored
        """
        await self.scheduler.sleep(self.latency.update_profile)

        current = self.get_current_user()
        if current is None:
            raise NotAuthenticatedError()

        records = self.storage.load()
        index = next(
            (i for i, record in enumerate(records) if record.get("id") == current.get("id")),
            None,
        )
        if index is None:
            logger.error("session_record_missing", account_id=current.get("id"))
            raise UserNotFoundError()

        changes = {
            key: value
            for key, value in fields.items()
            if key not in IMMUTABLE_FIELDS and key != "password"
        }
        updated = {
            **records[index],
            **changes,
            "updatedAt": self.scheduler.timestamp(),
        }

        records[index] = updated
        self.storage.save(records)

        logger.info("profile_updated", account_id=updated["id"], fields=sorted(changes))
        return self._start_session(updated)

    async def get_user_profile(self, user_id: str) -> dict[str, Any]:
        """
        Look up an account by identifier.

        Raises:
            UserNotFoundError: If no account has this identifier
        """
        await self.scheduler.sleep(self.latency.get_profile)

        record = next((r for r in self.storage.load() if r.get("id") == user_id), None)
        if record is None:
            raise UserNotFoundError("User profile does not exist")
        return without_password(record)
