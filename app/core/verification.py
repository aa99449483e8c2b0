"""
Core phone verification logic.

Handles generation of 6-digit codes and the per-(user, phone) lifecycle:

    NONE --send_code--> PENDING --verify_code--> VERIFIED --bind--> CONSUMED

PENDING silently becomes EXPIRED once `expires_at` passes; that state is
derived, never stored. Sending a new code always resets the pair to PENDING.
"""

import logging
import secrets
import uuid
from datetime import datetime, timezone
from typing import Optional

from app.core.exceptions import ConfigurationError, VerificationError
from app.core.logging_config import mask_phone_number
from app.crud.phone_verification import VerificationStore
from app.models.phone_verification import PhoneVerification, VerificationState
from app.services.sms_gateway import DeliveryGateway

logger = logging.getLogger(__name__)

_random = secrets.SystemRandom()


def generate_verification_code() -> str:
    """
    Generate a 6-digit verification code.

    Codes are drawn from 100000-999999, so they never start with zero.

    Returns:
        str: 6-digit numeric code (e.g., "482913")
    """
    return str(int(100000 + _random.random() * 900000))


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def state_of(record: Optional[PhoneVerification], now: datetime) -> VerificationState:
    """Derive the lifecycle state of a verification record at time `now`."""
    if record is None:
        return VerificationState.NONE
    if record.consumed:
        return VerificationState.CONSUMED
    if record.verified:
        return VerificationState.VERIFIED
    if _as_utc(record.expires_at) <= _as_utc(now):
        return VerificationState.EXPIRED
    return VerificationState.PENDING


class PhoneVerificationService:
    """
    Orchestrates code generation, delivery and persistence.

    Both collaborators are injected: the store is built per request around a
    database session, the gateway once at application startup.
    """

    def __init__(
        self,
        store: VerificationStore,
        gateway: DeliveryGateway,
        require_verification: bool = False,
    ):
        self.store = store
        self.gateway = gateway
        self.require_verification = require_verification

    def send_code(self, user_id: uuid.UUID, phone_number: str) -> PhoneVerification:
        """
        Generate a code, deliver it, then persist it as the pair's pending record.

        Nothing is stored if delivery fails, so an earlier pending code stays
        valid in that case.

        Raises:
            ConfigurationError: No SMS/email provider configured
            DeliveryError: Number rejected or delivery failed
        """
        if not self.gateway.is_configured():
            raise ConfigurationError("Phone verification is not configured")

        code = generate_verification_code()
        self.gateway.send_code(phone_number, code)

        verification = self.store.create_pending(user_id, phone_number, code)
        logger.info(f"Verification code sent to {mask_phone_number(phone_number)} for user {user_id}")
        return verification

    def verify_code(self, user_id: uuid.UUID, phone_number: str, code: str) -> None:
        """
        Confirm a code for the pair.

        Raises:
            VerificationError: Wrong code, expired code, or code already used.
                The cases are deliberately indistinguishable.
        """
        if not self.store.try_verify(user_id, phone_number, code):
            logger.info(f"Rejected verification attempt for {mask_phone_number(phone_number)} (user {user_id})")
            raise VerificationError()

        logger.info(f"Phone {mask_phone_number(phone_number)} verified for user {user_id}")

    def bind_to_profile(self, user_id: uuid.UUID, phone_number: str, commit: bool = True) -> bool:
        """
        Claim the pair's verified code for a profile.

        Args:
            commit: False when the caller saves the profile in the same
                transaction; the claim is then undone if that save fails

        Returns:
            bool: True if this call consumed a verified code and the profile
                may be stamped phone-verified

        Raises:
            VerificationError: Phone is unverified and verification is required
        """
        if self.store.consume(user_id, phone_number, commit=commit):
            logger.info(f"Verified phone {mask_phone_number(phone_number)} bound to profile of user {user_id}")
            return True

        if self.require_verification:
            raise VerificationError("Phone number must be verified before saving the profile")

        return False

    def status(self, user_id: uuid.UUID, phone_number: str) -> VerificationState:
        return state_of(self.store.get(user_id, phone_number), self.store.clock())
