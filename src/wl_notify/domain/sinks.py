"""Outbound notification and audit contracts.

Both are fire-and-forget from the ledger's point of view: ``dispatch_notification``
and ``dispatch_audit`` log a failed delivery and return, so a completed
ledger operation is never unwound by its side channel.
"""

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)

SUBJECTS: dict[str, str] = {
    "transaction": "Transaction Completed",
    "transfer_sent": "Transfer Sent Successfully",
    "transfer_received": "Transfer Received",
    "pin_changed": "Transfer PIN Changed",
    "pin_failed": "Failed Transfer PIN Attempt",
}


def subject_for(event_type: str) -> str:
    return SUBJECTS.get(event_type, "Wallet Notification")


class NotificationSinkProtocol(Protocol):
    async def notify(self, user_id: str, event_type: str, payload: dict[str, Any]) -> None: ...


class AdminAuditSinkProtocol(Protocol):
    async def log(self, action: str, payload: dict[str, Any]) -> None: ...


async def dispatch_notification(
    sink: NotificationSinkProtocol,
    user_id: str,
    event_type: str,
    payload: dict[str, Any],
) -> None:
    try:
        await sink.notify(user_id, event_type, payload)
    except Exception:
        logger.warning(
            "Notification %s for user %s failed", event_type, user_id, exc_info=True
        )


async def dispatch_audit(
    sink: AdminAuditSinkProtocol, action: str, payload: dict[str, Any]
) -> None:
    try:
        await sink.log(action, payload)
    except Exception:
        logger.warning("Audit entry %s failed", action, exc_info=True)
