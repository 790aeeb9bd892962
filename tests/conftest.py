"""Shared test fixtures."""

from __future__ import annotations

import os
import tempfile
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


def _write_test_keys() -> tuple[str, str]:
    """Generate an RSA key pair for signing test tokens."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    tmpdir = Path(tempfile.mkdtemp(prefix="cmc_test_keys_"))
    private_path = tmpdir / "jwt_private.pem"
    public_path = tmpdir / "jwt_public.pem"
    private_path.write_bytes(
        key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    public_path.write_bytes(
        key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    return str(private_path), str(public_path)


_PRIVATE_KEY_PATH, _PUBLIC_KEY_PATH = _write_test_keys()

os.environ.update(
    {
        "CMC_DATABASE_URL": "sqlite+aiosqlite:///:memory:",
        "CMC_REDIS_URL": "",
        "CMC_EMAIL_PROVIDER": "console",
        "CMC_ENVIRONMENT": "test",
        "CMC_LOG_FORMAT": "console",
        "CMC_CREATE_TABLES": "true",
        "CMC_ADMIN_PASSWORD": "",
        "CMC_JWT_PRIVATE_KEY_PATH": _PRIVATE_KEY_PATH,
        "CMC_JWT_PUBLIC_KEY_PATH": _PUBLIC_KEY_PATH,
    }
)

from cmc.auth.jwt import create_access_token, reset_keys  # noqa: E402
from cmc.auth.service import ensure_admin_user  # noqa: E402
from cmc.config import get_settings  # noqa: E402
from cmc.main import close_resources, create_app, init_resources  # noqa: E402

ADMIN_EMAIL = "admin@institutionalminer.com"
ADMIN_PASSWORD = "AdminP@ss123"
USER_PASSWORD = "SecureP@ss1"


def _mock_email_service() -> MagicMock:
    service = MagicMock()
    service.send_template = AsyncMock(return_value=True)
    service.send_email = AsyncMock(return_value=True)
    return service


@pytest_asyncio.fixture
async def app() -> AsyncGenerator[FastAPI, None]:
    """Application with a fresh in-memory database and a mocked email service."""
    get_settings.cache_clear()
    reset_keys()

    application = create_app()
    await init_resources(application, get_settings())
    application.state.email_service = _mock_email_service()

    yield application

    await application.state.db.drop_all()
    await close_resources(application)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def mock_email_service(app: FastAPI) -> MagicMock:
    """The mocked email service installed on the app."""
    return app.state.email_service


@pytest.fixture
def session_factory(app: FastAPI) -> async_sessionmaker[AsyncSession]:
    """Direct database access for arranging state and asserting on it."""
    return app.state.db.session_factory


@pytest.fixture
def registration_data() -> dict[str, Any]:
    """A valid four-step registration payload."""
    return {
        "firstName": "Jane",
        "lastName": "Investor",
        "dateOfBirth": "1985-06-15",
        "ssn": "123-45-6789",
        "citizenshipStatus": "us-citizen",
        "email": "jane@example.com",
        "phoneNumber": "(555) 123-4567",
        "phoneType": "mobile",
        "streetAddress": "1 Main Street",
        "city": "Austin",
        "state": "TX",
        "zipCode": "73301",
        "password": USER_PASSWORD,
        "securityQuestion": "first-pet",
        "securityAnswer": "Rex",
        "termsAgreement": True,
        "investmentAgreement": True,
        "accreditedInvestor": True,
        "marketingConsent": False,
    }


@pytest_asyncio.fixture
async def registered_user(client: AsyncClient, registration_data: dict[str, Any]) -> dict[str, Any]:
    """Register through the API. Returns credentials, id and token."""
    response = await client.post("/api/auth/register", json=registration_data)
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return {
        "email": registration_data["email"],
        "password": registration_data["password"],
        "user_id": data["user"]["id"],
        "token": data["token"],
    }


@pytest.fixture
def user_headers(registered_user: dict[str, Any]) -> dict[str, str]:
    """Bearer header for the registered investor."""
    return {"Authorization": f"Bearer {registered_user['token']}"}


@pytest_asyncio.fixture
async def admin_user(session_factory: async_sessionmaker[AsyncSession]) -> dict[str, Any]:
    """Bootstrap the admin account directly."""
    async with session_factory() as session:
        admin = await ensure_admin_user(session, ADMIN_EMAIL, ADMIN_PASSWORD)
        await session.commit()
        return {"user_id": admin.id, "email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}


@pytest.fixture
def admin_headers(admin_user: dict[str, Any]) -> dict[str, str]:
    """Bearer header for the admin."""
    token = create_access_token(admin_user["user_id"], role="admin")
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient, user_headers: dict[str, str]) -> AsyncClient:
    """Client authenticated as the registered investor."""
    client.headers.update(user_headers)
    return client


@pytest_asyncio.fixture
async def mining_pool(client: AsyncClient, admin_headers: dict[str, str]) -> dict[str, Any]:
    """One catalog pool created through the admin API."""
    response = await client.post(
        "/api/admin/mining-pools",
        json={"name": "Texas Mining Pool", "location": "Texas, USA", "hashRate": 120.5, "efficiency": 95.2},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]
