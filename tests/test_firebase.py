"""Tests for the Firebase identity and Firestore adapters."""

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest
from firebase_admin import auth
from firebase_admin.exceptions import FirebaseError
from google.api_core import exceptions as google_exceptions

from site_accounts.core.exceptions import ProviderError
from site_accounts.core.firebase import (
    FirebaseIdentity,
    FirestoreProfiles,
    provider_error_from,
    verify_firebase_token,
)


def make_identity(handler) -> FirebaseIdentity:
    """Build an identity adapter whose HTTP calls go to ``handler``."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return FirebaseIdentity(api_key="test-key", http_client=client)


@pytest.mark.asyncio
async def test_sign_in_with_password_success():
    """Test the sign-in request shape and returned payload."""
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"localId": "uid-1", "email": "a@x.com"})

    identity = make_identity(handler)

    result = await identity.sign_in_with_password("a@x.com", "secret1")

    assert result == {"localId": "uid-1", "email": "a@x.com"}
    assert "accounts:signInWithPassword" in seen["url"]
    assert "key=test-key" in seen["url"]
    assert seen["body"] == {"email": "a@x.com", "password": "secret1", "returnSecureToken": True}


@pytest.mark.asyncio
async def test_sign_in_with_password_rejected():
    """Test REST errors carry the provider's code."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"code": 400, "message": "INVALID_PASSWORD"}})

    identity = make_identity(handler)

    with pytest.raises(ProviderError) as exc_info:
        await identity.sign_in_with_password("a@x.com", "wrong")

    assert exc_info.value.code == "INVALID_PASSWORD"
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_identity_service_unreachable():
    """Test transport failures become a 502 provider error."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    identity = make_identity(handler)

    with pytest.raises(ProviderError) as exc_info:
        await identity.sign_in_with_password("a@x.com", "secret1")

    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_send_password_reset_email():
    """Test the reset request asks for a PASSWORD_RESET code."""
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"email": "a@x.com"})

    await make_identity(handler).send_password_reset_email("a@x.com")

    assert "accounts:sendOobCode" in seen["url"]
    assert seen["body"] == {"requestType": "PASSWORD_RESET", "email": "a@x.com"}


def test_create_user_translates_admin_errors():
    """Test Admin SDK errors become provider errors."""
    identity = make_identity(lambda request: httpx.Response(200))

    with patch("site_accounts.core.firebase.auth.create_user") as create_user:
        create_user.side_effect = FirebaseError("ALREADY_EXISTS", "email exists")

        with pytest.raises(ProviderError) as exc_info:
            identity.create_user("a@x.com", "secret1", display_name="alice")

    assert exc_info.value.code == "ALREADY_EXISTS"


def test_update_user_passes_properties():
    """Test identity updates are forwarded to the Admin SDK."""
    identity = make_identity(lambda request: httpx.Response(200))

    with patch("site_accounts.core.firebase.auth.update_user") as update_user:
        identity.update_user("uid-1", display_name="Al")

    update_user.assert_called_once_with("uid-1", app=None, display_name="Al")


def test_provider_error_status_codes():
    """Test server-side failures map to 502 and the rest to 400."""
    assert provider_error_from(FirebaseError("UNAVAILABLE", "down")).status_code == 502
    assert provider_error_from(FirebaseError("NOT_FOUND", "gone")).status_code == 400


@pytest.mark.asyncio
async def test_verify_firebase_token_invalid():
    """Test invalid tokens raise ValueError."""
    with patch("site_accounts.core.firebase.auth.verify_id_token") as verify:
        verify.side_effect = auth.InvalidIdTokenError("expired")

        with pytest.raises(ValueError, match="Invalid Firebase ID token"):
            await verify_firebase_token("token")


@pytest.mark.asyncio
async def test_verify_firebase_token_valid():
    """Test decoded claims are returned."""
    with patch("site_accounts.core.firebase.auth.verify_id_token") as verify:
        verify.return_value = {"uid": "g-1", "email": "g@gmail.com"}

        decoded = await verify_firebase_token("token")

    assert decoded["uid"] == "g-1"


def test_firestore_profiles_get():
    """Test existing and missing documents."""
    client = MagicMock()
    snapshot = client.collection.return_value.document.return_value.get.return_value
    snapshot.exists = True
    snapshot.to_dict.return_value = {"username": "alice"}
    profiles = FirestoreProfiles(client)

    assert profiles.get("uid-1") == {"username": "alice"}
    client.collection.assert_called_with("users")
    client.collection.return_value.document.assert_called_with("uid-1")

    snapshot.exists = False
    assert profiles.get("uid-1") is None


def test_firestore_profiles_update_missing_document():
    """Test updating a missing document is a 404 provider error."""
    client = MagicMock()
    document = client.collection.return_value.document.return_value
    document.update.side_effect = google_exceptions.NotFound("no document")

    with pytest.raises(ProviderError) as exc_info:
        FirestoreProfiles(client).update("uid-1", {"bio": "b"})

    assert exc_info.value.status_code == 404


def test_firestore_profiles_set_and_delete():
    """Test writes go to the uid's document."""
    client = MagicMock()
    document = client.collection.return_value.document.return_value
    profiles = FirestoreProfiles(client, collection="profiles")

    profiles.set("uid-1", {"username": "alice"})
    profiles.delete("uid-1")

    client.collection.assert_called_with("profiles")
    document.set.assert_called_once_with({"username": "alice"})
    document.delete.assert_called_once_with()
