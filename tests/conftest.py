import asyncio
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from site_accounts.core.scheduler import AsyncioScheduler, ManualScheduler
from site_accounts.core.storage import InMemoryStorage
from site_accounts.dependencies import get_account_store
from site_accounts.main import app
from site_accounts.services.local_account_store import Latency, LocalAccountStore

TEST_SALT = "ilovexxh_salt_2025"


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Manual clock starting at 2025-01-01T00:00:00Z."""
    return ManualScheduler()


@pytest.fixture
def storage() -> InMemoryStorage:
    """Empty in-memory storage."""
    return InMemoryStorage()


@pytest.fixture
def store(storage: InMemoryStorage, scheduler: ManualScheduler) -> LocalAccountStore:
    """Local account store with the default latency profile on a manual clock."""
    return LocalAccountStore(storage, scheduler, checksum_salt=TEST_SALT)


@pytest.fixture
def complete(scheduler: ManualScheduler) -> Callable[[Awaitable[Any]], Awaitable[Any]]:
    """Run an operation to completion by stepping the manual clock."""

    async def _complete(operation: Awaitable[Any]) -> Any:
        task = asyncio.ensure_future(operation)
        for _ in range(100):
            if task.done():
                break
            await scheduler.advance(0.1)
        return await task

    return _complete


@pytest.fixture
def api_store() -> LocalAccountStore:
    """Local account store without simulated latency, used behind the API."""
    return LocalAccountStore(
        InMemoryStorage(),
        AsyncioScheduler(),
        latency=Latency.none(),
        checksum_salt=TEST_SALT,
    )


@pytest_asyncio.fixture
async def client(api_store: LocalAccountStore) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client wired to ``api_store``."""
    app.dependency_overrides[get_account_store] = lambda: api_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def sample_registration() -> dict:
    """Valid registration form data."""
    return {
        "account_name": "alice",
        "email": "a@x.com",
        "password": "secret1",
        "confirm_password": "secret1",
    }
