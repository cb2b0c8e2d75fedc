from __future__ import annotations

from dataclasses import dataclass

from fastapi import HTTPException


@dataclass(eq=False)
class PlatformError(Exception):
    """Domain error raised by the service layer and mapped to an HTTP status."""

    message: str
    status_code: int = 400

    def __str__(self) -> str:
        return self.message

    def to_http(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.message)


class UnauthenticatedError(PlatformError):
    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, status_code=401)


class NotFoundError(PlatformError):
    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class ConflictError(PlatformError):
    def __init__(self, message: str):
        super().__init__(message, status_code=409)


class ExternalServiceError(PlatformError):
    """A call to the payment processor failed or returned something unusable."""

    def __init__(self, message: str):
        super().__init__(message, status_code=502)


class SignatureVerificationError(PlatformError):
    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message, status_code=400)
