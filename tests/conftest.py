"""Pytest configuration and fixtures for backend tests.

Every test gets its own service graph (state store, user store, form store)
driven by a controllable clock, so rate-limit windows and token expiry can
be exercised without sleeping.

SQL-backed state store tests run against in-memory SQLite via aiosqlite.
"""

import os
from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app modules
TEST_JWT_SECRET = "0" * 64
os.environ["JWT_SECRET_KEY"] = TEST_JWT_SECRET
os.environ["STATE_STORE_URL"] = ""

from hlpfl_forms.core.config import Settings  # noqa: E402
from hlpfl_forms.dependencies import AppServices, build_services  # noqa: E402
from hlpfl_forms.main import create_app  # noqa: E402
from hlpfl_forms.security import SecurityPolicy  # noqa: E402
from hlpfl_forms.storage import MemoryStateStore, SQLStateStore  # noqa: E402

TEST_PASSWORD = "Str0ng!Passw0rd"
START_TIME = 1_700_000_000.0


class FakeClock:
    """Callable clock returning a settable Unix timestamp in seconds."""

    def __init__(self, start: float = START_TIME):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# --- Core Fixtures ---


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(jwt_secret_key=TEST_JWT_SECRET)


@pytest.fixture
def policy(settings: Settings) -> SecurityPolicy:
    """Default policy: signed tokens, CSRF enforced, every limit on."""
    return SecurityPolicy.from_settings(settings)


@pytest.fixture
def memory_store(clock: FakeClock) -> MemoryStateStore:
    return MemoryStateStore(clock=clock)


@pytest_asyncio.fixture
async def sql_store(clock: FakeClock) -> AsyncGenerator[SQLStateStore, None]:
    store = SQLStateStore("sqlite+aiosqlite:///:memory:", clock=clock)
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def services(
    settings: Settings,
    policy: SecurityPolicy,
    memory_store: MemoryStateStore,
    clock: FakeClock,
) -> AppServices:
    return build_services(settings, policy=policy, store=memory_store, clock=clock)


@pytest.fixture
def app(services: AppServices) -> FastAPI:
    return create_app(services=services)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Synchronous test client bound to this test's app instance."""
    return TestClient(app)


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def app_factory(
    settings: Settings, clock: FakeClock
) -> Generator[Callable[[SecurityPolicy], TestClient], None, None]:
    """Build a client for an arbitrary policy, e.g. one of the presets."""

    def _make(policy: SecurityPolicy) -> TestClient:
        services = build_services(settings, policy=policy, clock=clock)
        return TestClient(create_app(services=services))

    yield _make


# --- Test Factories ---


@pytest.fixture
def register_user(client: TestClient) -> Callable[..., dict[str, Any]]:
    """Register a user through the API and return the response body."""

    def _register(
        username: str = "alice",
        password: str = TEST_PASSWORD,
        email: str | None = None,
    ) -> dict[str, Any]:
        response = client.post(
            "/api/auth/register",
            json={
                "username": username,
                "password": password,
                "email": email or f"{username}@example.com",
            },
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def auth_session(register_user) -> dict[str, Any]:
    """A registered user with ready-made headers for protected requests."""
    body = register_user()
    return {
        "user": body["user"],
        "token": body["token"],
        "csrf_token": body["csrfToken"],
        "headers": {
            "Authorization": f"Bearer {body['token']}",
            "X-CSRF-Token": body["csrfToken"],
        },
    }


@pytest.fixture
def auth_headers(auth_session: dict[str, Any]) -> dict[str, str]:
    return auth_session["headers"]


@pytest.fixture
def form_factory(client: TestClient, auth_headers: dict[str, str]):
    """Create a form owned by the ``auth_session`` user."""

    def _create_form(name: str = "Contact", **fields: Any) -> dict[str, Any]:
        response = client.post(
            "/api/forms",
            json={"name": name, **fields},
            headers=auth_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["form"]

    return _create_form
