"""Tests for login, logout and profile."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cmc.auth.service import LoginThrottle, authenticate_user
from cmc.db.models import User


class TestLogin:
    async def test_login_success(self, client: AsyncClient, registered_user: dict[str, Any]):
        response = await client.post(
            "/api/auth/login",
            json={"email": registered_user["email"], "password": registered_user["password"]},
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["token"]
        assert data["user"]["id"] == registered_user["user_id"]
        assert data["user"]["lastLogin"] is not None

    async def test_login_email_is_case_insensitive(self, client: AsyncClient, registered_user: dict[str, Any]):
        response = await client.post(
            "/api/auth/login",
            json={"email": registered_user["email"].upper(), "password": registered_user["password"]},
        )
        assert response.status_code == 200

    async def test_wrong_password(self, client: AsyncClient, registered_user: dict[str, Any]):
        response = await client.post(
            "/api/auth/login",
            json={"email": registered_user["email"], "password": "WrongP@ss1"},
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    async def test_unknown_email_same_message(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/login",
            json={"email": "ghost@example.com", "password": "WrongP@ss1"},
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    async def test_inactive_account_cannot_login(
        self,
        client: AsyncClient,
        registered_user: dict[str, Any],
        session_factory: async_sessionmaker[AsyncSession],
    ):
        async with session_factory() as session:
            await session.execute(update(User).where(User.id == registered_user["user_id"]).values(is_active=False))
            await session.commit()

        response = await client.post(
            "/api/auth/login",
            json={"email": registered_user["email"], "password": registered_user["password"]},
        )
        assert response.status_code == 401
        assert "deactivated" in response.json()["message"]

    async def test_inactive_account_token_rejected(
        self,
        client: AsyncClient,
        registered_user: dict[str, Any],
        user_headers: dict[str, str],
        session_factory: async_sessionmaker[AsyncSession],
    ):
        async with session_factory() as session:
            await session.execute(update(User).where(User.id == registered_user["user_id"]).values(is_active=False))
            await session.commit()

        response = await client.get("/api/auth/profile", headers=user_headers)
        assert response.status_code == 401


class TestProfileAndLogout:
    async def test_profile_requires_token(self, client: AsyncClient):
        response = await client.get("/api/auth/profile")
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Not authenticated"}

    async def test_profile_rejects_garbage_token(self, client: AsyncClient):
        response = await client.get("/api/auth/profile", headers={"Authorization": "Bearer not.a.jwt"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"

    async def test_profile_returns_current_user(self, authed_client: AsyncClient, registered_user: dict[str, Any]):
        response = await authed_client.get("/api/auth/profile")
        assert response.status_code == 200
        user = response.json()["data"]["user"]
        assert user["id"] == registered_user["user_id"]
        assert "passwordHash" not in user

    async def test_logout_records_timestamp(
        self,
        authed_client: AsyncClient,
        registered_user: dict[str, Any],
        session_factory: async_sessionmaker[AsyncSession],
    ):
        response = await authed_client.post("/api/auth/logout")
        assert response.status_code == 200
        assert response.json()["message"] == "Logout successful"

        async with session_factory() as session:
            user = await session.get(User, registered_user["user_id"])
            assert user is not None
            assert user.last_logout is not None

    async def test_token_still_valid_after_logout(self, authed_client: AsyncClient):
        await authed_client.post("/api/auth/logout")
        response = await authed_client.get("/api/auth/profile")
        assert response.status_code == 200


class TestLoginThrottle:
    @staticmethod
    def _redis(failures: str | None = None, incr: int = 1) -> MagicMock:
        redis = MagicMock()
        redis.get = AsyncMock(return_value=failures)
        redis.incr = AsyncMock(return_value=incr)
        redis.expire = AsyncMock()
        redis.delete = AsyncMock()
        return redis

    async def test_disabled_without_redis(self):
        throttle = LoginThrottle(None)
        assert await throttle.is_locked("investor@example.com") is False
        await throttle.record_failure("investor@example.com")
        await throttle.reset("investor@example.com")

    async def test_locked_at_threshold(self):
        throttle = LoginThrottle(self._redis(failures="10"))
        assert await throttle.is_locked("investor@example.com") is True
        below = LoginThrottle(self._redis(failures="9"))
        assert await below.is_locked("investor@example.com") is False

    async def test_first_failure_opens_window(self):
        redis = self._redis(incr=1)
        await LoginThrottle(redis).record_failure("investor@example.com")
        key = redis.incr.await_args.args[0]
        assert key.startswith("login_failures:")
        assert "investor" not in key
        redis.expire.assert_awaited_once_with(key, 15 * 60)

        later = self._redis(incr=2)
        await LoginThrottle(later).record_failure("investor@example.com")
        later.expire.assert_not_awaited()

    async def test_key_ignores_case_and_whitespace(self):
        redis = self._redis()
        throttle = LoginThrottle(redis)
        await throttle.record_failure("Investor@Example.com ")
        await throttle.record_failure("investor@example.com")
        first, second = (call.args[0] for call in redis.incr.await_args_list)
        assert first == second

    async def test_unknown_email_failures_are_counted(self, session_factory: async_sessionmaker[AsyncSession]):
        redis = self._redis()
        async with session_factory() as session:
            with pytest.raises(ValueError, match="Invalid email or password"):
                await authenticate_user(session, redis, "ghost@example.com", "WrongP@ss1")
        redis.incr.assert_awaited_once()

    async def test_locked_known_and_unknown_emails_look_identical(
        self, session_factory: async_sessionmaker[AsyncSession], registered_user: dict[str, Any]
    ):
        refusals = []
        async with session_factory() as session:
            for email in (registered_user["email"], "ghost@example.com"):
                with pytest.raises(PermissionError) as excinfo:
                    await authenticate_user(session, self._redis(failures="10"), email, registered_user["password"])
                refusals.append((type(excinfo.value), str(excinfo.value)))
        assert refusals[0] == refusals[1]
        assert refusals[0][1] == "Account temporarily locked. Try again later."

    async def test_success_clears_failures(
        self, session_factory: async_sessionmaker[AsyncSession], registered_user: dict[str, Any]
    ):
        redis = self._redis(failures="3")
        async with session_factory() as session:
            await authenticate_user(session, redis, registered_user["email"], registered_user["password"])
        redis.delete.assert_awaited_once()
