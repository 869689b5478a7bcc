"""Firebase Admin SDK initialization and utilities."""

import json
import os
from typing import Any

import firebase_admin
import httpx
from firebase_admin import auth, credentials, firestore
from firebase_admin.exceptions import FirebaseError
from google.api_core import exceptions as google_exceptions
from structlog import get_logger

from site_accounts.core.exceptions import ProviderError

logger = get_logger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"

_SERVER_SIDE_CODES = {"INTERNAL", "UNAVAILABLE", "UNKNOWN", "DEADLINE_EXCEEDED"}

_firebase_app: firebase_admin.App | None = None


def initialize_firebase(
    firebase_credentials_path: str | None = None, firebase_config_json: str | None = None
) -> None:
    """
    Initialize Firebase Admin SDK.

    Args:
        firebase_credentials_path: Optional path to service account JSON file.
        firebase_config_json: Optional raw JSON string of service account.

    Looks for Firebase credentials in order:
    1. firebase_config_json parameter
    2. firebase_credentials_path parameter
    3. Default application credentials
    """
    global _firebase_app

    if _firebase_app is not None:
        logger.info("Firebase already initialized")
        return

    try:
        cred = None

        if firebase_config_json:
            logger.info("Initializing Firebase with JSON string from environment")
            cred_dict = json.loads(firebase_config_json)
            cred = credentials.Certificate(cred_dict)

        elif firebase_credentials_path and os.path.exists(firebase_credentials_path):
            logger.info("Initializing Firebase with JSON file", path=firebase_credentials_path)
            cred = credentials.Certificate(firebase_credentials_path)

        if cred:
            _firebase_app = firebase_admin.initialize_app(cred)
        else:
            _firebase_app = firebase_admin.initialize_app()
            logger.info("Firebase initialized with default credentials")

    except Exception as e:
        logger.error("Failed to initialize Firebase", error=str(e))
        raise


def get_firebase_app() -> firebase_admin.App:
    """
    Get the Firebase app instance.

    Returns:
        Firebase app instance

    Raises:
        RuntimeError: If Firebase is not initialized
    """
    if _firebase_app is None:
        raise RuntimeError("Firebase not initialized. Call initialize_firebase() first.")
    return _firebase_app


async def verify_firebase_token(id_token: str, app: firebase_admin.App | None = None) -> dict:
    """
    Verify a Firebase ID token.

    Args:
        id_token: Firebase ID token from the client
        app: Firebase app to verify against (defaults to the default app)

    Returns:
        Decoded token containing user information

    Raises:
        ValueError: If token is invalid, expired or cannot be verified
    """
    try:
        decoded_token = auth.verify_id_token(id_token, app=app, clock_skew_seconds=10)

        logger.info(
            "Firebase token verified",
            uid=decoded_token.get("uid"),
            email=decoded_token.get("email"),
        )

        return decoded_token

    except auth.InvalidIdTokenError as e:
        logger.warning("Invalid or expired Firebase ID token", error=str(e))
        raise ValueError(f"Invalid Firebase ID token: {e!s}")
    except Exception as e:
        logger.error("Firebase token verification failed", error=str(e))
        raise ValueError(f"Token verification failed: {e!s}")


def provider_error_from(exc: FirebaseError) -> ProviderError:
    """Translate an Admin SDK error into a ProviderError."""
    status_code = 502 if exc.code in _SERVER_SIDE_CODES else 400
    return ProviderError(str(exc), code=exc.code, status_code=status_code)


class FirebaseIdentity:
    """
    Identity operations against Firebase Authentication.

    User management goes through the Admin SDK. Password sign-in and reset
    emails are not available to the Admin SDK, so they go through the
    Identity Toolkit REST API with the project's Web API key.
    """

    def __init__(
        self,
        api_key: str,
        http_client: httpx.AsyncClient,
        app: firebase_admin.App | None = None,
    ):
        """Initialize with Web API key, HTTP client and optional Firebase app."""
        self.api_key = api_key
        self.http = http_client
        self.app = app

    def create_user(self, email: str, password: str, display_name: str | None) -> auth.UserRecord:
        """Create an email/password user."""
        try:
            return auth.create_user(
                email=email, password=password, display_name=display_name, app=self.app
            )
        except FirebaseError as e:
            raise provider_error_from(e)

    def update_user(self, uid: str, **properties: Any) -> auth.UserRecord:
        """Update identity properties (display_name, photo_url, email, password)."""
        try:
            return auth.update_user(uid, app=self.app, **properties)
        except FirebaseError as e:
            raise provider_error_from(e)

    def delete_user(self, uid: str) -> None:
        """Delete the identity record."""
        try:
            auth.delete_user(uid, app=self.app)
        except FirebaseError as e:
            raise provider_error_from(e)

    async def verify_id_token(self, id_token: str) -> dict:
        """Verify an ID token issued to a signed-in client."""
        return await verify_firebase_token(id_token, app=self.app)

    async def sign_in_with_password(self, email: str, password: str) -> dict:
        """
        Check email and password with Firebase.

        Returns:
            Sign-in payload with ``localId``, ``email``, ``displayName`` and tokens

        Raises:
            ProviderError: If the credentials are rejected or the call fails
        """
        return await self._post(
            "accounts:signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )

    async def send_password_reset_email(self, email: str) -> None:
        """Ask Firebase to email a password reset link."""
        await self._post("accounts:sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})

    async def _post(self, endpoint: str, payload: dict[str, Any]) -> dict:
        url = f"{IDENTITY_TOOLKIT_URL}/{endpoint}"
        try:
            response = await self.http.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            logger.error("identity_toolkit_unreachable", endpoint=endpoint, error=str(e))
            raise ProviderError("Identity service is unreachable", status_code=502)

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {}

        if response.is_error:
            code = body.get("error", {}).get("message", "UNKNOWN")
            logger.warning(
                "identity_toolkit_error",
                endpoint=endpoint,
                status_code=response.status_code,
                code=code,
            )
            status_code = 400 if response.status_code < 500 else 502
            raise ProviderError(f"Identity service rejected the request: {code}", code, status_code)

        return body


class FirestoreProfiles:
    """Profile documents stored in a Firestore collection keyed by uid."""

    def __init__(self, client: Any = None, collection: str = "users"):
        """Initialize with an optional Firestore client (created lazily)."""
        self._client = client
        self.collection_name = collection

    @property
    def collection(self) -> Any:
        if self._client is None:
            self._client = firestore.client(get_firebase_app())
        return self._client.collection(self.collection_name)

    def get(self, uid: str) -> dict | None:
        """Return the profile document, or None if it does not exist."""
        try:
            snapshot = self.collection.document(uid).get()
        except google_exceptions.GoogleAPICallError as e:
            raise ProviderError(str(e), code=e.__class__.__name__, status_code=502)
        return snapshot.to_dict() if snapshot.exists else None

    def set(self, uid: str, data: dict[str, Any]) -> None:
        """Create or overwrite the profile document."""
        try:
            self.collection.document(uid).set(data)
        except google_exceptions.GoogleAPICallError as e:
            raise ProviderError(str(e), code=e.__class__.__name__, status_code=502)

    def update(self, uid: str, data: dict[str, Any]) -> None:
        """Merge fields into an existing profile document."""
        try:
            self.collection.document(uid).update(data)
        except google_exceptions.NotFound as e:
            raise ProviderError(str(e), code="NOT_FOUND", status_code=404)
        except google_exceptions.GoogleAPICallError as e:
            raise ProviderError(str(e), code=e.__class__.__name__, status_code=502)

    def delete(self, uid: str) -> None:
        """Delete the profile document."""
        try:
            self.collection.document(uid).delete()
        except google_exceptions.GoogleAPICallError as e:
            raise ProviderError(str(e), code=e.__class__.__name__, status_code=502)
