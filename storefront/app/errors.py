"""
Application errors for clean API error handling.

Storage and orchestrator code raise these; main.py maps them to HTTP status
codes so route handlers stay free of status bookkeeping.
"""


class StorefrontError(Exception):
    """Base class for errors with a user-facing message."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(StorefrontError):
    """Raised when a product, cart item or order does not exist (for this session)."""

    status_code = 404


class EmptyCartError(StorefrontError):
    status_code = 400

    def __init__(self, message: str = "Cart is empty") -> None:
        super().__init__(message)


class InvalidOrderStatusError(StorefrontError):
    status_code = 400

    def __init__(self, status: str) -> None:
        self.status = status
        super().__init__("Invalid order status")


class InactiveProductError(StorefrontError):
    status_code = 400

    def __init__(self, message: str = "Product not found or inactive") -> None:
        super().__init__(message)


class ProviderError(StorefrontError):
    """Raised when an AI provider call fails (network error, non-2xx, unusable body)."""

    status_code = 502

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"{provider} request failed: {message}")


class NoProviderAvailableError(StorefrontError):
    """Raised when no endpoint can serve a request type."""

    status_code = 503

    def __init__(self, request_type: str) -> None:
        self.request_type = request_type
        super().__init__(f"No available AI endpoints for '{request_type}' requests")
