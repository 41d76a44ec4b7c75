"""User service: register, login, refresh.

Registration provisions the user's ledger state alongside the account:
an empty Wallet and a PIN record in UNSET/must_set_pin. All three rows are
written in the caller's transaction (``async with db.begin()`` in the router).
"""

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.wl_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    UsernameExistsError,
)
from src.wl_common.hashing import hash_secret, verify_secret
from src.wl_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.wl_gateway.user.db_models import UserModel
from src.wl_pin.application.vault import PinVault
from src.wl_wallet.application.store import WalletStore

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, wallets: WalletStore, pins: PinVault) -> None:
        self._wallets = wallets
        self._pins = pins

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        db: AsyncSession,
    ) -> UserModel:
        # DB UNIQUE constraints are the final guard
        result = await db.execute(select(UserModel).where(UserModel.username == username))
        if result.scalar_one_or_none() is not None:
            raise UsernameExistsError()

        result = await db.execute(select(UserModel).where(UserModel.email == email))
        if result.scalar_one_or_none() is not None:
            raise EmailExistsError()

        user = UserModel(
            username=username,
            email=email,
            password_hash=await asyncio.to_thread(hash_secret, password),
            is_active=True,
            is_admin=False,
        )
        db.add(user)
        await db.flush()  # assigns user.id

        user_id = str(user.id)
        await self._wallets.create_for_user(db, user_id)
        await self._pins.create_entry(db, user_id)
        logger.info("Registered user %s (%s)", username, user_id)
        return user

    async def login(
        self,
        username: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Return (user, access_token, refresh_token).

        Unknown user and wrong password raise the same InvalidCredentialsError.
        """
        result = await db.execute(select(UserModel).where(UserModel.username == username))
        user = result.scalar_one_or_none()

        if user is None or not await asyncio.to_thread(
            verify_secret, password, user.password_hash
        ):
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        return (
            user,
            create_access_token(str(user.id)),
            create_refresh_token(str(user.id)),
        )

    async def refresh(self, refresh_token: str) -> str:
        """New access token for a valid refresh token (no rotation)."""
        payload = decode_token(refresh_token, expected_type="refresh")
        return create_access_token(str(payload["sub"]))
