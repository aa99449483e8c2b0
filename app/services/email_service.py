"""
Outbound email transports.

Two interchangeable transports are provided:
- SESEmailTransport: AWS SES through boto3
- GmailEmailTransport: Gmail REST API with an OAuth2 refresh token

Transports never raise on delivery problems; they log and return False so
callers can decide what a failed send means for them.
"""

import base64
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Callable, Optional

import boto3
import httpx
from botocore.exceptions import ClientError, BotoCoreError

logger = logging.getLogger(__name__)


class EmailTransport(ABC):
    """Interface for sending a single email."""

    @abstractmethod
    def is_configured(self) -> bool:
        pass

    @abstractmethod
    def send_email(
        self,
        to_email: str,
        subject: str,
        text_body: str,
        html_body: Optional[str] = None
    ) -> bool:
        """
        Send one email.

        Args:
            to_email: Recipient address
            subject: Subject line
            text_body: Plain text body
            html_body: Optional HTML alternative

        Returns:
            bool: True if the provider accepted the message, False otherwise
        """
        pass


class SESEmailTransport(EmailTransport):
    """
    Sends email via AWS SES.

    Credentials fall back to the IAM role when no access key is configured.
    """

    def __init__(
        self,
        region: str,
        from_email: str,
        from_name: str,
        access_key_id: str = "",
        secret_access_key: str = "",
        ses_client=None
    ):
        self.from_email = from_email
        self.from_name = from_name

        if ses_client is not None:
            self.ses_client = ses_client
            return

        session_kwargs = {'region_name': region}
        if access_key_id and secret_access_key:
            session_kwargs['aws_access_key_id'] = access_key_id
            session_kwargs['aws_secret_access_key'] = secret_access_key

        self.ses_client = boto3.client('ses', **session_kwargs)

    def is_configured(self) -> bool:
        return bool(self.from_email)

    def send_email(
        self,
        to_email: str,
        subject: str,
        text_body: str,
        html_body: Optional[str] = None
    ) -> bool:
        body = {'Text': {'Data': text_body, 'Charset': 'UTF-8'}}
        if html_body:
            body['Html'] = {'Data': html_body, 'Charset': 'UTF-8'}

        try:
            response = self.ses_client.send_email(
                Source=f"{self.from_name} <{self.from_email}>",
                Destination={'ToAddresses': [to_email]},
                Message={
                    'Subject': {'Data': subject, 'Charset': 'UTF-8'},
                    'Body': body
                }
            )

            message_id = response.get('MessageId')
            logger.info(f"Email accepted by SES (MessageId: {message_id})")
            return True

        except ClientError as e:
            error_code = e.response['Error']['Code']
            error_message = e.response['Error']['Message']
            logger.error(f"AWS SES ClientError: {error_code} - {error_message}")

            if error_code == 'MessageRejected':
                logger.error(f"Email rejected: {error_message}")
            elif error_code == 'MailFromDomainNotVerified':
                logger.error("Sender email not verified in SES")

            return False

        except BotoCoreError as e:
            logger.error(f"AWS BotoCoreError: {str(e)}")
            return False


class GmailAccessToken:
    """
    OAuth2 access token for the Gmail API.

    Holds the current token and its expiry; `refresh_if_expired()` exchanges
    the long-lived refresh token for a new access token when needed.
    """

    TOKEN_URL = "https://oauth2.googleapis.com/token"

    # Refresh slightly early so a token never expires mid-request
    EXPIRY_MARGIN = timedelta(seconds=60)

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        http_client: httpx.Client,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.http_client = http_client
        self.clock = clock

        self.access_token: Optional[str] = None
        self.expires_at: Optional[datetime] = None

    def is_expired(self) -> bool:
        if not self.access_token or not self.expires_at:
            return True
        return self.clock() + self.EXPIRY_MARGIN >= self.expires_at

    def refresh_if_expired(self) -> str:
        """
        Return a valid access token, refreshing it first if it has expired.

        Raises:
            httpx.HTTPError: Token endpoint unreachable or refused the refresh
        """
        if self.is_expired():
            self._refresh()
        return self.access_token

    def _refresh(self) -> None:
        response = self.http_client.post(
            self.TOKEN_URL,
            data={
                "grant_type": "refresh_token",
                "refresh_token": self.refresh_token,
                "client_id": self.client_id,
                "client_secret": self.client_secret
            }
        )
        response.raise_for_status()
        token_data = response.json()

        self.access_token = token_data["access_token"]
        self.expires_at = self.clock() + timedelta(seconds=int(token_data.get("expires_in", 3600)))
        logger.info("Gmail access token refreshed")


class GmailEmailTransport(EmailTransport):
    """Sends email through the Gmail `users.messages.send` endpoint."""

    API_BASE = "https://gmail.googleapis.com/gmail/v1"

    def __init__(self, token: GmailAccessToken, sender: str = "me", http_client: Optional[httpx.Client] = None):
        self.token = token
        self.sender = sender
        self.http_client = http_client or token.http_client

    def is_configured(self) -> bool:
        return bool(self.token.client_id and self.token.client_secret and self.token.refresh_token)

    def send_email(
        self,
        to_email: str,
        subject: str,
        text_body: str,
        html_body: Optional[str] = None
    ) -> bool:
        raw = self._build_raw_message(to_email, subject, text_body, html_body)

        try:
            access_token = self.token.refresh_if_expired()
            response = self.http_client.post(
                f"{self.API_BASE}/users/{self.sender}/messages/send",
                json={"raw": raw},
                headers={"Authorization": f"Bearer {access_token}"}
            )
            response.raise_for_status()

            logger.info(f"Email accepted by Gmail (id: {response.json().get('id')})")
            return True

        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error(f"Gmail send failed: {str(e)}")
            return False

    @staticmethod
    def _build_raw_message(to_email: str, subject: str, text_body: str, html_body: Optional[str]) -> str:
        if html_body:
            message = MIMEMultipart("alternative")
            message.attach(MIMEText(text_body, "plain", "utf-8"))
            message.attach(MIMEText(html_body, "html", "utf-8"))
        else:
            message = MIMEText(text_body, "plain", "utf-8")

        message["To"] = to_email
        message["Subject"] = subject

        return base64.urlsafe_b64encode(message.as_bytes()).decode("ascii").rstrip("=")


def build_email_transport(settings, http_client: Optional[httpx.Client] = None) -> EmailTransport:
    """Construct the transport selected by `EMAIL_TRANSPORT`."""
    if settings.EMAIL_TRANSPORT == "gmail":
        client = http_client or httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS)
        token = GmailAccessToken(
            client_id=settings.GMAIL_CLIENT_ID,
            client_secret=settings.GMAIL_CLIENT_SECRET,
            refresh_token=settings.GMAIL_REFRESH_TOKEN,
            http_client=client
        )
        return GmailEmailTransport(token, sender=settings.GMAIL_SENDER)

    if settings.EMAIL_TRANSPORT == "ses":
        return SESEmailTransport(
            region=settings.AWS_REGION,
            from_email=settings.AWS_SES_FROM_EMAIL,
            from_name=settings.AWS_SES_FROM_NAME,
            access_key_id=settings.AWS_ACCESS_KEY_ID,
            secret_access_key=settings.AWS_SECRET_ACCESS_KEY
        )

    raise ValueError(f"Unknown EMAIL_TRANSPORT '{settings.EMAIL_TRANSPORT}'")
