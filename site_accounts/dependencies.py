"""FastAPI dependencies and account store composition."""

from functools import lru_cache
from typing import Annotated, Any

import httpx
from fastapi import Depends

from site_accounts.config import Settings, settings
from site_accounts.core.exceptions import NotAuthenticatedError
from site_accounts.core.firebase import FirebaseIdentity, FirestoreProfiles, get_firebase_app
from site_accounts.core.redis_client import create_redis_storage
from site_accounts.core.scheduler import AsyncioScheduler
from site_accounts.core.storage import AccountStorage, InMemoryStorage, JsonFileStorage
from site_accounts.services.account_store import AccountStore
from site_accounts.services.firebase_account_store import FirebaseAccountStore
from site_accounts.services.local_account_store import Latency, LocalAccountStore


def build_storage(config: Settings) -> AccountStorage:
    """Create the persistence substrate selected by ``STORAGE_BACKEND``."""
    if config.storage_backend == "redis":
        return create_redis_storage(config)
    if config.storage_backend == "file":
        return JsonFileStorage(config.storage_path, key_prefix=config.storage_key_prefix)
    return InMemoryStorage(key_prefix=config.storage_key_prefix)


def build_account_store(config: Settings) -> AccountStore:
    """
    Create the account store selected by ``ACCOUNT_BACKEND``.

    Args:
        config: Application settings

    Returns:
        Local or Firebase-backed account store
    """
    storage = build_storage(config)
    scheduler = AsyncioScheduler()

    if config.account_backend == "firebase":
        identity = FirebaseIdentity(
            api_key=config.firebase_web_api_key,
            http_client=httpx.AsyncClient(timeout=10.0),
            app=get_firebase_app(),
        )
        return FirebaseAccountStore(
            storage,
            identity=identity,
            profiles=FirestoreProfiles(),
            scheduler=scheduler,
            password_min_length=config.password_min_length,
        )

    return LocalAccountStore(
        storage,
        scheduler=scheduler,
        latency=Latency.from_settings(config),
        password_min_length=config.password_min_length,
        checksum_salt=config.checksum_salt,
    )


@lru_cache
def get_account_store() -> AccountStore:
    """Get the process-wide account store."""
    return build_account_store(settings)


async def get_current_user(
    store: Annotated[AccountStore, Depends(get_account_store)],
) -> dict[str, Any]:
    """
    Get the logged-in account.

    Raises:
        NotAuthenticatedError: If nobody is logged in
    """
    user = store.get_current_user()
    if user is None:
        raise NotAuthenticatedError()
    return user


# Type aliases for dependency injection
AccountStoreDep = Annotated[AccountStore, Depends(get_account_store)]
CurrentUser = Annotated[dict[str, Any], Depends(get_current_user)]
