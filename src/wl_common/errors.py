"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Wallet
  3xxx: Transfer PIN
  4xxx: Ledger operations
  9xxx: System
"""

from decimal import Decimal


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


class NotFoundError(AppError):
    """Unknown wallet, position or other keyed record."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 404)


class AuthorizationError(AppError):
    """Base for transfer-PIN authorization failures."""

    def __init__(self, code: int, message: str, http_status: int = 403) -> None:
        super().__init__(code, message, http_status)


# --- 1xxx: Auth/User ---

class UsernameExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Administrator privileges required", 403)


# --- 2xxx: Wallet ---

class InsufficientBalanceError(AppError):
    def __init__(self, asset: str, required: Decimal, available: Decimal) -> None:
        self.asset = asset
        self.required = required
        self.available = available
        super().__init__(
            2001,
            f"Insufficient {asset} balance: required {required}, available {available}",
            422,
        )


class WalletNotFoundError(NotFoundError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Wallet not found for user {user_id}")


# --- 3xxx: Transfer PIN ---

class PinNotSetError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(3001, "Transfer PIN not set")


class InvalidPinError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(3002, "Invalid Transfer PIN")


class PinSetupRequiredError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(3003, "Transfer PIN setup required")


# --- 4xxx: Ledger operations ---

class ValidationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, detail, 422)


class RecipientNotFoundError(AppError):
    def __init__(self, username: str) -> None:
        super().__init__(4002, f"Recipient not found: {username}", 404)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
