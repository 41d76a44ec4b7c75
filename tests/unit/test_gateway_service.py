"""Unit tests for UserService (mocked DB)."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.wl_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    UsernameExistsError,
)
from src.wl_gateway.auth.jwt_handler import create_access_token, create_refresh_token
from src.wl_gateway.user.db_models import UserModel
from src.wl_gateway.user.service import UserService


def _make_user(is_active: bool = True) -> UserModel:
    user = UserModel()
    user.id = uuid.uuid4()
    user.username = "alice"
    user.email = "alice@example.com"
    user.password_hash = "$2b$12$fakehash"
    user.is_active = is_active
    user.is_admin = False
    return user


def _scalar(value: object) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


@pytest.fixture
def mock_db() -> MagicMock:
    db = MagicMock()
    db.execute = AsyncMock()
    db.flush = AsyncMock()
    return db


@pytest.fixture
def wallets() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def pins() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(wallets: AsyncMock, pins: AsyncMock) -> UserService:
    return UserService(wallets, pins)


class TestRegister:
    async def test_duplicate_username(self, service: UserService, mock_db: MagicMock) -> None:
        mock_db.execute.return_value = _scalar(_make_user())
        with pytest.raises(UsernameExistsError):
            await service.register("alice", "new@example.com", "Pass1word", mock_db)

    async def test_duplicate_email(self, service: UserService, mock_db: MagicMock) -> None:
        mock_db.execute.side_effect = [_scalar(None), _scalar(_make_user())]
        with pytest.raises(EmailExistsError):
            await service.register("newuser", "alice@example.com", "Pass1word", mock_db)

    async def test_provisions_wallet_and_pin_entry(
        self,
        service: UserService,
        mock_db: MagicMock,
        wallets: AsyncMock,
        pins: AsyncMock,
    ) -> None:
        mock_db.execute.side_effect = [_scalar(None), _scalar(None)]
        new_id = uuid.uuid4()

        async def assign_id() -> None:
            mock_db.add.call_args.args[0].id = new_id

        mock_db.flush.side_effect = assign_id
        with patch("src.wl_gateway.user.service.hash_secret", return_value="hashed"):
            user = await service.register("newuser", "new@example.com", "Pass1word", mock_db)

        assert user.password_hash == "hashed"
        assert user.is_admin is False
        wallets.create_for_user.assert_awaited_once_with(mock_db, str(new_id))
        pins.create_entry.assert_awaited_once_with(mock_db, str(new_id))


class TestLogin:
    async def test_unknown_user(self, service: UserService, mock_db: MagicMock) -> None:
        mock_db.execute.return_value = _scalar(None)
        with pytest.raises(InvalidCredentialsError):
            await service.login("nobody", "Pass1word", mock_db)

    async def test_wrong_password(self, service: UserService, mock_db: MagicMock) -> None:
        mock_db.execute.return_value = _scalar(_make_user())
        with (
            patch("src.wl_gateway.user.service.verify_secret", return_value=False),
            pytest.raises(InvalidCredentialsError),
        ):
            await service.login("alice", "WrongPass1", mock_db)

    async def test_disabled_account(self, service: UserService, mock_db: MagicMock) -> None:
        mock_db.execute.return_value = _scalar(_make_user(is_active=False))
        with (
            patch("src.wl_gateway.user.service.verify_secret", return_value=True),
            pytest.raises(AccountDisabledError),
        ):
            await service.login("alice", "Pass1word", mock_db)

    async def test_success_returns_token_pair(
        self, service: UserService, mock_db: MagicMock
    ) -> None:
        mock_db.execute.return_value = _scalar(_make_user())
        with patch("src.wl_gateway.user.service.verify_secret", return_value=True):
            user, access, refresh = await service.login("alice", "Pass1word", mock_db)
        assert user.username == "alice"
        assert access != refresh


class TestRefresh:
    async def test_valid_refresh(self, service: UserService) -> None:
        access = await service.refresh(create_refresh_token("user-123"))
        assert access

    async def test_access_token_is_not_a_refresh_token(self, service: UserService) -> None:
        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh(create_access_token("user-123"))
