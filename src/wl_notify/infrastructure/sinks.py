"""Notification and audit sink implementations.

SQL sinks write through their own session so the entry survives even when
the ledger operation that produced it rolls back (failed PIN attempts).
"""

import json
import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wl_common.datetime_utils import utc_now
from src.wl_notify.domain.sinks import (
    NotificationSinkProtocol,
    dispatch_notification,
    subject_for,
)

logger = logging.getLogger(__name__)

_INSERT_NOTIFICATION_SQL = text("""
    INSERT INTO notifications (user_id, event_type, subject, payload)
    VALUES (:user_id, :event_type, :subject, CAST(:payload AS JSONB))
""")

_INSERT_AUDIT_SQL = text("""
    INSERT INTO admin_audit_log (action, payload)
    VALUES (:action, CAST(:payload AS JSONB))
""")


def _json_default(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    # Decimals as strings: no float round-trip.
    return str(value)


def _to_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, default=_json_default)


class LoggingNotificationSink:
    """Stand-in for email delivery: one log line per notification."""

    async def notify(self, user_id: str, event_type: str, payload: dict[str, Any]) -> None:
        logger.info("notify user=%s [%s] %s", user_id, subject_for(event_type), _to_json(payload))


class SqlNotificationSink:
    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        self._session_factory = session_factory

    async def notify(self, user_id: str, event_type: str, payload: dict[str, Any]) -> None:
        async with self._session_factory() as session:
            await session.execute(
                _INSERT_NOTIFICATION_SQL,
                {
                    "user_id": user_id,
                    "event_type": event_type,
                    "subject": subject_for(event_type),
                    "payload": _to_json(payload),
                },
            )
            await session.commit()


class SqlAdminAuditSink:
    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        self._session_factory = session_factory

    async def log(self, action: str, payload: dict[str, Any]) -> None:
        async with self._session_factory() as session:
            await session.execute(
                _INSERT_AUDIT_SQL, {"action": action, "payload": _to_json(payload)}
            )
            await session.commit()


class FanoutNotificationSink:
    """Delivers to every sink; one failing sink does not starve the others."""

    def __init__(self, sinks: Sequence[NotificationSinkProtocol]) -> None:
        self._sinks = list(sinks)

    async def notify(self, user_id: str, event_type: str, payload: dict[str, Any]) -> None:
        for sink in self._sinks:
            await dispatch_notification(sink, user_id, event_type, payload)


class MemoryNotificationSink:
    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict[str, Any]]] = []

    async def notify(self, user_id: str, event_type: str, payload: dict[str, Any]) -> None:
        self.events.append((user_id, event_type, dict(payload)))

    def of_type(self, event_type: str) -> list[tuple[str, str, dict[str, Any]]]:
        return [e for e in self.events if e[1] == event_type]


class MemoryAuditSink:
    def __init__(self) -> None:
        self.entries: list[tuple[str, dict[str, Any]]] = []

    async def log(self, action: str, payload: dict[str, Any]) -> None:
        self.entries.append((action, {**payload, "logged_at": utc_now()}))

    def of_action(self, action: str) -> list[dict[str, Any]]:
        return [p for a, p in self.entries if a == action]
