"""Account store backed by Firebase Authentication and Cloud Firestore."""

from datetime import datetime
from typing import Any

from firebase_admin import firestore
from structlog import get_logger

from site_accounts.core.exceptions import (
    DuplicateEmailError,
    FederatedLoginError,
    NotAuthenticatedError,
    ProviderError,
    UserNotFoundError,
    ValidationError,
)
from site_accounts.core.firebase import FirebaseIdentity, FirestoreProfiles
from site_accounts.core.scheduler import Scheduler, isoformat_utc
from site_accounts.core.storage import AccountStorage
from site_accounts.services.account_store import (
    AccountStore,
    allowed_extra_fields,
    default_username,
    require_credentials,
    require_password_length,
    without_password,
)

logger = get_logger(__name__)

_EMAIL_EXISTS_CODES = {"ALREADY_EXISTS", "EMAIL_EXISTS"}

# Profile update routing: identity record vs. profile document.
IDENTITY_FIELDS = {"displayName": "display_name", "photoURL": "photo_url"}
DOCUMENT_FIELDS = ("username", "bio", "website")


def _jsonable(document: dict[str, Any]) -> dict[str, Any]:
    """Render Firestore timestamps as ISO strings so the session stays JSON."""
    return {
        key: isoformat_utc(value) if isinstance(value, datetime) else value
        for key, value in document.items()
    }


class FirebaseAccountStore(AccountStore):
    """
    Account store that delegates identity to Firebase and profiles to Firestore.

    Remote failures surface as ProviderError with the provider's code.
    Sensitive changes replay the current credentials first.
    """

    def __init__(
        self,
        storage: AccountStorage,
        identity: FirebaseIdentity,
        profiles: FirestoreProfiles,
        scheduler: Scheduler,
        password_min_length: int = 6,
    ):
        """Initialize with session storage and the remote service adapters."""
        super().__init__(storage)
        self.identity = identity
        self.profiles = profiles
        self.scheduler = scheduler
        self.password_min_length = password_min_length

    def _require_session(self) -> dict[str, Any]:
        current = self.get_current_user()
        if current is None:
            raise NotAuthenticatedError()
        return current

    def _start_session(self, account: dict[str, Any]) -> dict[str, Any]:
        account = without_password(_jsonable(account))
        self.storage.save_session(account)
        return account

    async def _reauthenticate(self, password: str) -> dict[str, Any]:
        current = self._require_session()
        if not password:
            raise ValidationError("Current password is required")
        await self.identity.sign_in_with_password(current["email"], password)
        return current

    async def register(
        self,
        email: str,
        password: str,
        username: str | None = None,
        extra_fields: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Create the Firebase user and its profile document, then log in.

        Raises:
            ValidationError: If email or password is missing or too short
            DuplicateEmailError: If Firebase already has this email
            ProviderError: If a remote call fails
        """
        require_credentials(email, password)
        require_password_length(password, self.password_min_length)
        username = username or default_username(email)

        try:
            user = self.identity.create_user(email, password, display_name=username)
        except ProviderError as e:
            if e.code in _EMAIL_EXISTS_CODES:
                raise DuplicateEmailError()
            raise

        extras = allowed_extra_fields(extra_fields)
        document = {
            **extras,
            "username": username,
            "email": email,
            "createdAt": firestore.SERVER_TIMESTAMP,
            "authProvider": "email",
        }
        self.profiles.set(user.uid, document)

        logger.info("account_registered", account_id=user.uid, backend="firebase")
        return self._start_session(
            {
                **extras,
                "id": user.uid,
                "email": email,
                "username": username,
                "displayName": username,
                "createdAt": self.scheduler.timestamp(),
                "authProvider": "email",
            }
        )

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """
        Sign in with Firebase and load the profile document.

        Raises:
            ValidationError: If email or password is missing
            ProviderError: If Firebase rejects the credentials
        """
        require_credentials(email, password)

        result = await self.identity.sign_in_with_password(email, password)
        uid = result["localId"]
        profile = self.profiles.get(uid) or {}
        display_name = result.get("displayName")

        logger.info("login_succeeded", account_id=uid, backend="firebase")
        return self._start_session(
            {
                **profile,
                "id": uid,
                "email": result.get("email", email),
                "username": profile.get("username") or display_name or default_username(email),
                "displayName": display_name,
            }
        )

    async def login_with_federated_provider(self, id_token: str | None = None) -> dict[str, Any]:
        """
        Log in with a Firebase ID token obtained from a Google sign-in.

        Creates the profile document on first login.

        Raises:
            FederatedLoginError: On any failure, without detail
        """
        try:
            if not id_token:
                raise ValueError("ID token is required")

            token = await self.identity.verify_id_token(id_token)
            uid = token["uid"]
            email = token.get("email")
            if not email:
                raise ValueError("Email is required from Firebase token")

            name = token.get("name") or default_username(email)
            profile = self.profiles.get(uid)
            if profile is None:
                profile = {
                    "username": name,
                    "email": email,
                    "createdAt": firestore.SERVER_TIMESTAMP,
                    "authProvider": "google",
                }
                self.profiles.set(uid, profile)
                profile = {**profile, "createdAt": self.scheduler.timestamp()}
                logger.info("account_registered", account_id=uid, provider="google")

            return self._start_session(
                {
                    **profile,
                    "id": uid,
                    "email": email,
                    "provider": "google",
                    "displayName": name,
                    "photoURL": token.get("picture"),
                }
            )
        except Exception as e:
            logger.warning("federated_login_failed", error=str(e))
            raise FederatedLoginError() from None

    async def logout(self) -> None:
        """Clear the session pointer."""
        self.storage.save_session(None)
        logger.info("logged_out", backend="firebase")

    async def update_profile(self, fields: dict[str, Any]) -> dict[str, Any]:
        """
        Update identity (displayName, photoURL) and document fields (username, bio, website).

        Raises:
            NotAuthenticatedError: If nobody is logged in
            ProviderError: If a remote call fails
        """
        current = self._require_session()
        uid = current["id"]

        identity_updates = {
            IDENTITY_FIELDS[key]: value
            for key, value in fields.items()
            if key in IDENTITY_FIELDS and value
        }
        document_updates = {
            key: fields[key] for key in DOCUMENT_FIELDS if fields.get(key)
        }

        if identity_updates:
            self.identity.update_user(uid, **identity_updates)
        self.profiles.update(uid, {**document_updates, "updatedAt": firestore.SERVER_TIMESTAMP})

        changed = {key: fields[key] for key in IDENTITY_FIELDS if fields.get(key)}
        logger.info("profile_updated", account_id=uid, fields=sorted({*changed, *document_updates}))
        return self._start_session(
            {**current, **changed, **document_updates, "updatedAt": self.scheduler.timestamp()}
        )

    async def get_user_profile(self, user_id: str) -> dict[str, Any]:
        """
        Read a profile document.

        Raises:
            UserNotFoundError: If the document does not exist
        """
        profile = self.profiles.get(user_id)
        if profile is None:
            raise UserNotFoundError("User profile does not exist")
        return without_password(_jsonable(profile))

    async def reset_password(self, email: str) -> None:
        """Send a password reset email through Firebase."""
        if not email:
            raise ValidationError("Email is required")
        await self.identity.send_password_reset_email(email)
        logger.info("password_reset_requested")

    async def update_email(self, new_email: str, password: str) -> dict[str, Any]:
        """
        Change the login email after replaying the current credentials.

        Raises:
            NotAuthenticatedError: If nobody is logged in
            ProviderError: If re-verification or an update fails
        """
        if not new_email:
            raise ValidationError("New email is required")
        current = await self._reauthenticate(password)
        uid = current["id"]

        self.identity.update_user(uid, email=new_email)
        self.profiles.update(uid, {"email": new_email, "updatedAt": firestore.SERVER_TIMESTAMP})

        logger.info("email_updated", account_id=uid)
        return self._start_session(
            {**current, "email": new_email, "updatedAt": self.scheduler.timestamp()}
        )

    async def update_password(self, current_password: str, new_password: str) -> None:
        """
        Change the password after replaying the current one.

        Raises:
            NotAuthenticatedError: If nobody is logged in
            ValidationError: If the new password is too short
            ProviderError: If re-verification or the update fails
        """
        current = await self._reauthenticate(current_password)
        require_password_length(new_password or "", self.password_min_length)

        self.identity.update_user(current["id"], password=new_password)
        logger.info("password_updated", account_id=current["id"])

    async def delete_account(self, password: str) -> None:
        """
        Delete the profile document and the identity, then log out.

        Raises:
            NotAuthenticatedError: If nobody is logged in
            ProviderError: If re-verification or a deletion fails
        """
        current = await self._reauthenticate(password)
        uid = current["id"]

        self.profiles.delete(uid)
        self.identity.delete_user(uid)
        self.storage.save_session(None)

        logger.info("account_deleted", account_id=uid)
