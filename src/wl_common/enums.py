"""Global enums: values must match DB CHECK constraints exactly."""

from enum import Enum


class TransactionType(str, Enum):
    RECEIVE = "receive"
    SEND = "send"
    BUY = "buy"
    SELL = "sell"
    SWAP = "swap"
    ADD_MONEY = "add_money"


class TransactionStatus(str, Enum):
    # Only completed entries are ever written; there is no pending state.
    COMPLETED = "completed"


class PinState(str, Enum):
    UNSET = "UNSET"
    ACTIVE = "ACTIVE"
    RESET_PENDING = "RESET_PENDING"


class NotificationEvent(str, Enum):
    TRANSACTION = "transaction"
    TRANSFER_SENT = "transfer_sent"
    TRANSFER_RECEIVED = "transfer_received"
    PIN_CHANGED = "pin_changed"
    PIN_FAILED = "pin_failed"


class AuditAction(str, Enum):
    PIN_VERIFICATION = "pin_verification"
    PIN_RESET = "pin_reset"
    BALANCE_OVERRIDE = "balance_override"
