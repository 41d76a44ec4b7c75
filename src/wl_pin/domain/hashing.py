"""Transfer-PIN format check and hashing.

A PIN has at most 10^6 values, so the per-record bcrypt salt and cost
factor are what make a leaked hash expensive to reverse. The cost is
configurable (PIN_HASH_ROUNDS) so tests can run at the bcrypt minimum of 4.
"""

import re

from src.wl_common.hashing import DEFAULT_ROUNDS, hash_secret, verify_secret

PIN_PATTERN = re.compile(r"[0-9]{4,6}")


def is_valid_pin(pin: object) -> bool:
    return isinstance(pin, str) and PIN_PATTERN.fullmatch(pin) is not None


def hash_pin(pin: str, rounds: int = DEFAULT_ROUNDS) -> str:
    return hash_secret(pin, rounds)


def verify_pin(pin: str, pin_hash: str) -> bool:
    return verify_secret(pin, pin_hash)
