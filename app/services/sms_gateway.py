"""
Delivery of verification codes to phones.

Every gateway runs the same three steps:
1. Line-type lookup (VOIP numbers are refused)
2. Normalization to a 10-digit US/Canada subscriber number
3. Delivery, either through an email-to-SMS bridge or directly over Twilio

One delivery attempt per call; retrying is up to the caller, who will also
issue a fresh code.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Optional

import httpx
from requests import RequestException
from twilio.base.exceptions import TwilioException

from app.core.exceptions import DeliveryError
from app.core.logging_config import mask_phone_number
from app.services.email_service import EmailTransport, build_email_transport
from app.services.phone_lookup import PhoneLookupClient, PhoneLookupError

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\s\-().]")
_TEN_DIGITS = re.compile(r"\d{10}")


def normalize_phone_number(phone_number: str) -> str:
    """
    Reduce a US/Canada number to its 10-digit subscriber form.

    Strips spaces, hyphens, parentheses and dots, then a leading "+1" or a
    bare leading "1" on an 11-digit number.

    Raises:
        DeliveryError: Result is not exactly 10 digits
    """
    digits = _SEPARATORS.sub("", phone_number)

    if digits.startswith("+1"):
        digits = digits[2:]
    elif digits.startswith("1") and len(digits) == 11:
        digits = digits[1:]

    if not _TEN_DIGITS.fullmatch(digits):
        raise DeliveryError.not_north_american()

    return digits


def verification_message(code: str, expiration_minutes: int) -> str:
    return (
        f"Your NRIChristianMatrimony verification code is: {code}. "
        f"This code expires in {expiration_minutes} minutes."
    )


class DeliveryGateway(ABC):
    """Validates a destination number and delivers a code to it."""

    def __init__(self, lookup: PhoneLookupClient, expiration_minutes: int = 10):
        self.lookup = lookup
        self.expiration_minutes = expiration_minutes

    @abstractmethod
    def is_configured(self) -> bool:
        pass

    @abstractmethod
    def _deliver(self, subscriber_number: str, code: str) -> None:
        """Send the code to a normalized 10-digit number; raise DeliveryError on failure."""
        pass

    def send_code(self, phone_number: str, code: str) -> None:
        """
        Validate `phone_number` and deliver `code` to it.

        Raises:
            DeliveryError: Lookup failed, VOIP line, not a 10-digit
                US/Canada number, or the provider refused the message
        """
        try:
            is_voip = self.lookup.is_voip(phone_number)
        except PhoneLookupError:
            raise DeliveryError.invalid_number()

        if is_voip:
            logger.info(f"Refusing VOIP number {mask_phone_number(phone_number)}")
            raise DeliveryError.voip_rejected()

        subscriber_number = normalize_phone_number(phone_number)
        self._deliver(subscriber_number, code)


class EmailToSMSGateway(DeliveryGateway):
    """
    Relays the code as a plain-text email to `{10 digits}@{gateway domain}`,
    which the carrier forwards to the phone as a text message.
    """

    SUBJECT = "NRIChristianMatrimony verification code"

    def __init__(
        self,
        lookup: PhoneLookupClient,
        transport: EmailTransport,
        gateway_domain: str,
        expiration_minutes: int = 10
    ):
        super().__init__(lookup, expiration_minutes)
        self.transport = transport
        self.gateway_domain = gateway_domain.strip().lstrip("@")

    def is_configured(self) -> bool:
        return bool(self.gateway_domain) and self.lookup.is_configured() and self.transport.is_configured()

    def bridge_address(self, subscriber_number: str) -> str:
        return f"{subscriber_number}@{self.gateway_domain}"

    def _deliver(self, subscriber_number: str, code: str) -> None:
        sent = self.transport.send_email(
            to_email=self.bridge_address(subscriber_number),
            subject=self.SUBJECT,
            text_body=verification_message(code, self.expiration_minutes)
        )
        if not sent:
            logger.error(f"Email-to-SMS relay failed for {mask_phone_number(subscriber_number)}")
            raise DeliveryError.send_failed()


class TwilioSMSGateway(DeliveryGateway):
    """Sends the code as an SMS through the Twilio Messages API."""

    def __init__(self, lookup: PhoneLookupClient, from_number: str, expiration_minutes: int = 10):
        super().__init__(lookup, expiration_minutes)
        self.from_number = from_number

    def is_configured(self) -> bool:
        return self.lookup.is_configured() and bool(self.from_number)

    def _deliver(self, subscriber_number: str, code: str) -> None:
        # Same Twilio account as the lookup
        try:
            message = self.lookup.client.messages.create(
                to=f"+1{subscriber_number}",
                from_=self.from_number,
                body=verification_message(code, self.expiration_minutes)
            )
        except (TwilioException, RequestException) as e:
            logger.error(f"Twilio SMS to {mask_phone_number(subscriber_number)} failed: {str(e)}")
            raise DeliveryError.send_failed()

        logger.info(f"Twilio accepted SMS (sid: {message.sid})")


def build_delivery_gateway(
    settings,
    twilio_client=None,
    http_client: Optional[httpx.Client] = None
) -> DeliveryGateway:
    """
    Construct the gateway selected by `SMS_DELIVERY_MODE`.

    Called once at application startup; the result is shared by all requests.
    """
    lookup = PhoneLookupClient(
        account_sid=settings.TWILIO_ACCOUNT_SID,
        auth_token=settings.TWILIO_AUTH_TOKEN,
        twilio_client=twilio_client,
        timeout=settings.HTTP_TIMEOUT_SECONDS
    )

    if settings.SMS_DELIVERY_MODE == "twilio":
        return TwilioSMSGateway(
            lookup,
            from_number=settings.TWILIO_PHONE_NUMBER,
            expiration_minutes=settings.VERIFICATION_CODE_EXPIRATION_MINUTES
        )

    if settings.SMS_DELIVERY_MODE == "email":
        return EmailToSMSGateway(
            lookup,
            transport=build_email_transport(settings, http_client=http_client),
            gateway_domain=settings.SMS_GATEWAY_DOMAIN,
            expiration_minutes=settings.VERIFICATION_CODE_EXPIRATION_MINUTES
        )

    raise ValueError(f"Unknown SMS_DELIVERY_MODE '{settings.SMS_DELIVERY_MODE}'")
