"""Domain model for wl_pin: one authorization record per user."""

from dataclasses import dataclass
from datetime import datetime

from src.wl_common.enums import PinState


@dataclass
class PinRecord:
    user_id: str
    pin_hash: str | None
    must_set_pin: bool
    created_at: datetime
    last_updated: datetime
    reset_by: str | None = None     # admin id of the last forced reset

    @property
    def state(self) -> PinState:
        if self.pin_hash is not None and not self.must_set_pin:
            return PinState.ACTIVE
        if self.reset_by is not None:
            return PinState.RESET_PENDING
        return PinState.UNSET

    @property
    def is_configured(self) -> bool:
        return self.state is PinState.ACTIVE
