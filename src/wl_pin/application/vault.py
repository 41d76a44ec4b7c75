"""PinVault: per-user transfer PIN lifecycle and verification.

States: UNSET -> ACTIVE (set_pin) -> RESET_PENDING (admin reset) -> ACTIVE.

Transaction ownership:
  - create_entry runs inside the caller's transaction (registration).
  - set_pin and reset commit their own change.
  - verify never writes; its attempt log goes to the audit sink, which
    persists independently of the caller's session.
"""

import asyncio
import logging
from typing import Any

from src.wl_common.datetime_utils import utc_now
from src.wl_common.enums import AuditAction, NotificationEvent, PinState
from src.wl_common.errors import (
    InvalidPinError,
    PinNotSetError,
    PinSetupRequiredError,
    ValidationError,
)
from src.wl_notify.domain.sinks import (
    AdminAuditSinkProtocol,
    NotificationSinkProtocol,
    dispatch_audit,
    dispatch_notification,
)
from src.wl_pin.domain.hashing import hash_pin, is_valid_pin, verify_pin
from src.wl_pin.domain.models import PinRecord
from src.wl_pin.domain.repository import PinRepositoryProtocol
from src.wl_pin.infrastructure.persistence import PinRepository

logger = logging.getLogger(__name__)


class PinVault:
    def __init__(
        self,
        notifier: NotificationSinkProtocol,
        audit: AdminAuditSinkProtocol,
        repo: PinRepositoryProtocol | None = None,
        hash_rounds: int = 12,
    ) -> None:
        self._repo: PinRepositoryProtocol = repo or PinRepository()
        self._notifier = notifier
        self._audit = audit
        self._hash_rounds = hash_rounds

    # --- queries -----------------------------------------------------------

    async def get_record(self, db: Any, user_id: str) -> PinRecord | None:
        return await self._repo.get(db, user_id)

    async def state(self, db: Any, user_id: str) -> PinState:
        record = await self._repo.get(db, user_id)
        return record.state if record is not None else PinState.UNSET

    async def is_configured(self, db: Any, user_id: str) -> bool:
        record = await self._repo.get(db, user_id)
        return record is not None and record.is_configured

    async def must_set_pin(self, db: Any, user_id: str) -> bool:
        record = await self._repo.get(db, user_id)
        return record is not None and record.must_set_pin

    # --- commands ----------------------------------------------------------

    async def create_entry(self, db: Any, user_id: str) -> PinRecord:
        """Start the user in UNSET with must_set_pin=True. Idempotent."""
        now = utc_now()
        record = PinRecord(
            user_id=user_id,
            pin_hash=None,
            must_set_pin=True,
            created_at=now,
            last_updated=now,
        )
        return await self._repo.insert_if_absent(db, record)

    async def set_pin(self, db: Any, user_id: str, pin: str) -> PinRecord:
        if not is_valid_pin(pin):
            raise ValidationError("PIN must be 4-6 digits")
        try:
            record = await self._repo.get(db, user_id)
            if record is None:
                raise PinSetupRequiredError()
            # bcrypt is CPU-bound; keep it off the event loop.
            record.pin_hash = await asyncio.to_thread(hash_pin, pin, self._hash_rounds)
            record.must_set_pin = False
            record.last_updated = utc_now()
            await self._repo.save(db, record)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Transfer PIN set for user %s", user_id)
        await dispatch_notification(
            self._notifier,
            user_id,
            NotificationEvent.PIN_CHANGED.value,
            {"timestamp": record.last_updated, "reset_by_admin": False},
        )
        return record

    async def verify(self, db: Any, user_id: str, pin: str) -> None:
        """Return on a match; raise PinNotSetError or InvalidPinError otherwise."""
        record = await self._repo.get(db, user_id)
        if record is None or record.pin_hash is None:
            raise PinNotSetError()

        is_valid = is_valid_pin(pin) and await asyncio.to_thread(
            verify_pin, pin, record.pin_hash
        )
        attempted_at = utc_now()
        await dispatch_audit(
            self._audit,
            AuditAction.PIN_VERIFICATION.value,
            {"user_id": user_id, "success": is_valid, "timestamp": attempted_at},
        )
        if not is_valid:
            logger.warning("Failed transfer PIN attempt for user %s", user_id)
            await dispatch_notification(
                self._notifier,
                user_id,
                NotificationEvent.PIN_FAILED.value,
                {"timestamp": attempted_at},
            )
            raise InvalidPinError()

    async def reset(self, db: Any, user_id: str, admin_id: str) -> PinRecord:
        """Administrator reset: the user must choose a new PIN."""
        try:
            record = await self._repo.get(db, user_id)
            if record is None:
                raise PinSetupRequiredError()
            record.pin_hash = None
            record.must_set_pin = True
            record.reset_by = admin_id
            record.last_updated = utc_now()
            await self._repo.save(db, record)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Transfer PIN for user %s reset by admin %s", user_id, admin_id)
        await dispatch_audit(
            self._audit,
            AuditAction.PIN_RESET.value,
            {"user_id": user_id, "admin_id": admin_id, "timestamp": record.last_updated},
        )
        await dispatch_notification(
            self._notifier,
            user_id,
            NotificationEvent.PIN_CHANGED.value,
            {"timestamp": record.last_updated, "reset_by_admin": True},
        )
        return record
