"""Tests for FastAPI dependency injection module."""

from unittest.mock import MagicMock

import pytest
from factories import create_user
from fastapi import HTTPException

from ballot_api.core.config import Settings
from ballot_api.core.dependencies import get_authorization_policy, get_current_user, require_role
from ballot_api.core.security import create_access_token, create_refresh_token
from ballot_api.services.authorization_service import RolePolicy


class TestRequireRole:
    async def test_allowed_role_passes(self) -> None:
        checker = require_role("super_admin", "election_admin")
        user = MagicMock()
        user.role = "election_admin"
        assert await checker(current_user=user) is user

    async def test_other_role_raises_403(self) -> None:
        checker = require_role("voter")
        user = MagicMock()
        user.role = "super_admin"
        with pytest.raises(HTTPException) as exc_info:
            await checker(current_user=user)
        assert exc_info.value.status_code == 403
        assert "super_admin" in str(exc_info.value.detail)


class TestGetCurrentUser:
    async def test_valid_token(self, async_session, settings: Settings) -> None:
        user = await create_user(async_session, "alice")
        token = create_access_token("alice", "voter", settings.jwt_secret_key)
        assert (await get_current_user(token, async_session, settings)).id == user.id

    async def test_refresh_token_not_accepted(self, async_session, settings: Settings) -> None:
        await create_user(async_session, "alice")
        token = create_refresh_token("alice", settings.jwt_secret_key)
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(token, async_session, settings)
        assert exc_info.value.status_code == 401

    async def test_inactive_user_rejected(self, async_session, settings: Settings) -> None:
        await create_user(async_session, "bob", is_active=False)
        token = create_access_token("bob", "voter", settings.jwt_secret_key)
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(token, async_session, settings)
        assert exc_info.value.status_code == 401

    async def test_garbage_token(self, async_session, settings: Settings) -> None:
        with pytest.raises(HTTPException):
            await get_current_user("garbage", async_session, settings)


def test_policy_reflects_results_flag(settings: Settings) -> None:
    policy = get_authorization_policy(settings.model_copy(update={"allow_results_before_close": True}))
    assert isinstance(policy, RolePolicy)
    assert policy.allow_results_before_close is True
