"""
Domain exceptions for phone verification.

Each exception carries the HTTP status it maps to; the handlers in main.py
turn them into `{"message": ...}` responses.
"""

from typing import Optional

from fastapi import status


class PhoneVerificationError(Exception):
    """Base class for phone verification failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(PhoneVerificationError):
    """SMS provider or email transport is not configured."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class DeliveryError(PhoneVerificationError):
    """Phone number rejected or the code could not be delivered."""

    INVALID_NUMBER = "invalid phone number"
    VOIP_REJECTED = "VOIP numbers are not allowed; use a mobile number"
    NOT_NORTH_AMERICAN = "must be a valid 10-digit US/Canada number"
    SEND_FAILED = "failed to send, try again"

    @classmethod
    def invalid_number(cls) -> "DeliveryError":
        return cls(cls.INVALID_NUMBER)

    @classmethod
    def voip_rejected(cls) -> "DeliveryError":
        return cls(cls.VOIP_REJECTED)

    @classmethod
    def not_north_american(cls) -> "DeliveryError":
        return cls(cls.NOT_NORTH_AMERICAN)

    @classmethod
    def send_failed(cls) -> "DeliveryError":
        return cls(cls.SEND_FAILED, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


class VerificationError(PhoneVerificationError):
    """No live verification record matched.

    Wrong code, expired code and already-used code all produce the same
    message.
    """

    INVALID_OR_EXPIRED = "Invalid or expired verification code"

    def __init__(self, message: str = INVALID_OR_EXPIRED, status_code: Optional[int] = None):
        super().__init__(message, status_code)
