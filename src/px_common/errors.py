"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Admin auth
  2xxx: Pixel selection
  3xxx: Order lifecycle
  4xxx: Payment provider
  9xxx: System
"""

from typing import Any


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        data: Any = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.data = data
        super().__init__(message)


# --- 1xxx: Admin auth ---

class InvalidAdminPasswordError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid admin password", 401)


class InvalidAdminTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Invalid or expired admin token", 401)


# --- 2xxx: Pixel selection ---

class InvalidPixelSelectionError(AppError):
    """Malformed reservation request; raised before the store is touched."""

    def __init__(self, detail: str) -> None:
        super().__init__(2001, f"Invalid pixel selection: {detail}", 422)


class PixelsUnavailableError(AppError):
    """One or more requested pixels are not free."""

    def __init__(self, pixel_ids: list[int]) -> None:
        self.pixel_ids = sorted(pixel_ids)
        shown = ", ".join(str(p) for p in self.pixel_ids[:20])
        if len(self.pixel_ids) > 20:
            shown += ", ..."
        super().__init__(
            2002,
            f"Pixels unavailable: {shown}",
            409,
            data={"pixel_ids": self.pixel_ids},
        )


# --- 3xxx: Order lifecycle ---

class OrderNotFoundError(AppError):
    def __init__(self, key: str) -> None:
        super().__init__(3001, f"Order not found: {key}", 404)


class InvalidOrderStateError(AppError):
    def __init__(self, key: str, status: str, action: str) -> None:
        self.status = status
        super().__init__(
            3002, f"Order {key} in status {status} cannot be {action}", 409
        )


# --- 4xxx: Payment provider ---

class InvalidWebhookSignatureError(AppError):
    def __init__(self) -> None:
        super().__init__(4001, "Invalid webhook signature", 401)


class InvalidWebhookPayloadError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4002, f"Invalid webhook payload: {detail}", 422)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class StoreUnavailableError(AppError):
    """Store timeout or outage. Nothing was committed; safe to retry."""

    def __init__(self, detail: str = "Store unavailable, please retry") -> None:
        super().__init__(9003, detail, 503)
