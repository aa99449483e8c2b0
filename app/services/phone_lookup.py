"""
Phone line-type lookup via the Twilio Lookup v2 API.

Used to refuse VOIP numbers as verification targets before any code is sent.
"""

import logging
from typing import Optional

from requests import RequestException
from twilio.base.exceptions import TwilioException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

logger = logging.getLogger(__name__)

# Twilio line_type_intelligence types that are refused
VOIP_LINE_TYPES = frozenset({"voip", "fixedVoip", "nonFixedVoip"})


class PhoneLookupError(Exception):
    """Raised when a number cannot be looked up or is not a valid number."""
    pass


def build_twilio_client(account_sid: str, auth_token: str, timeout: float = 10.0) -> Client:
    return Client(account_sid, auth_token, http_client=TwilioHttpClient(timeout=timeout))


class PhoneLookupClient:
    """
    Line-type lookups for one Twilio account.

    The underlying `twilio.rest.Client` is created on first use, because the
    SDK refuses to build one without credentials and an unconfigured
    deployment must still start.
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        default_country: str = "US",
        twilio_client: Optional[Client] = None,
        timeout: float = 10.0
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.default_country = default_country
        self.timeout = timeout
        self._client = twilio_client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = build_twilio_client(self.account_sid, self.auth_token, self.timeout)
        return self._client

    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token)

    def line_type(self, phone_number: str) -> Optional[str]:
        """
        Classify a phone number's line type.

        Args:
            phone_number: Number as submitted (E.164 or national format)

        Returns:
            Optional[str]: Twilio line type, e.g. "mobile", "landline",
                "nonFixedVoip"; None if the carrier data has no type

        Raises:
            PhoneLookupError: Network failure, API error, or the number is
                reported invalid
        """
        try:
            result = self.client.lookups.v2.phone_numbers(phone_number.strip()).fetch(
                fields="line_type_intelligence",
                country_code=self.default_country
            )
        except (TwilioException, RequestException) as e:
            logger.warning(f"Phone lookup failed: {str(e)}")
            raise PhoneLookupError(str(e)) from e

        if result.valid is False:
            raise PhoneLookupError(f"Lookup reported invalid number: {result.validation_errors}")

        line_type_info = result.line_type_intelligence or {}
        return line_type_info.get("type")

    def is_voip(self, phone_number: str) -> bool:
        """
        Raises:
            PhoneLookupError: See `line_type`
        """
        line_type = self.line_type(phone_number)
        if line_type in VOIP_LINE_TYPES:
            logger.info(f"Number classified as {line_type}")
            return True
        return False
