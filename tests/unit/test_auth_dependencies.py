"""Tests for get_current_user / require_admin."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException

from src.wl_common.errors import AccountDisabledError, AdminRequiredError
from src.wl_gateway.auth.dependencies import get_current_user, require_admin
from src.wl_gateway.user.db_models import UserModel

USER_ID = uuid.uuid4()


def _mock_db(user: object) -> AsyncMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = user
    db = AsyncMock()
    db.execute = AsyncMock(return_value=result)
    return db


def _make_user(is_active: bool = True, is_admin: bool = False) -> UserModel:
    user = UserModel()
    user.id = USER_ID
    user.username = "alice"
    user.is_active = is_active
    user.is_admin = is_admin
    return user


def _claims(sub: str | None) -> object:
    payload = {"type": "access"}
    if sub is not None:
        payload["sub"] = sub
    return patch("src.wl_gateway.auth.dependencies.decode_token", return_value=payload)


class TestGetCurrentUser:
    async def test_resolves_user(self) -> None:
        user = _make_user()
        with _claims(str(USER_ID)):
            assert await get_current_user(token="t", db=_mock_db(user)) is user

    @pytest.mark.parametrize("sub", [None, "not-a-uuid"])
    async def test_bad_subject_is_401(self, sub: str | None) -> None:
        with _claims(sub), pytest.raises(HTTPException) as exc_info:
            await get_current_user(token="t", db=_mock_db(None))
        assert exc_info.value.status_code == 401

    async def test_unknown_user_is_401(self) -> None:
        with _claims(str(USER_ID)), pytest.raises(HTTPException) as exc_info:
            await get_current_user(token="t", db=_mock_db(None))
        assert exc_info.value.status_code == 401

    async def test_invalid_token_is_401(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(token="garbage", db=_mock_db(None))
        assert exc_info.value.status_code == 401

    async def test_disabled_user(self) -> None:
        with _claims(str(USER_ID)), pytest.raises(AccountDisabledError):
            await get_current_user(token="t", db=_mock_db(_make_user(is_active=False)))


class TestRequireAdmin:
    async def test_admin_passes(self) -> None:
        admin = _make_user(is_admin=True)
        assert await require_admin(current_user=admin) is admin

    async def test_regular_user_rejected(self) -> None:
        with pytest.raises(AdminRequiredError):
            await require_admin(current_user=_make_user())
