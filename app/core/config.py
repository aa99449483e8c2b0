from pydantic_settings import BaseSettings
from typing import List, Union
from pydantic import field_validator
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # API Settings
    PROJECT_NAME: str = "NRIChristianMatrimony API"

    # Database Settings
    POSTGRES_USER: str = "user"
    POSTGRES_PASSWORD: str = "password"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: str = "5432"
    POSTGRES_DB: str = "matrimony_db"

    @property
    def DATABASE_URL(self) -> str:
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Redis Settings (for Celery task queue)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # Session tokens (issued by the auth layer)
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Phone verification
    VERIFICATION_CODE_EXPIRATION_MINUTES: int = 10
    REQUIRE_PHONE_VERIFICATION: bool = False
    SMS_DELIVERY_MODE: str = "email"  # "email" (email-to-SMS bridge) or "twilio"
    SMS_GATEWAY_DOMAIN: str = ""  # e.g. "tmomail.net"

    # Twilio (line-type lookup, and direct SMS when SMS_DELIVERY_MODE=twilio)
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Outbound email
    EMAIL_TRANSPORT: str = "ses"  # "ses" or "gmail"
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_SES_FROM_EMAIL: str = ""
    AWS_SES_FROM_NAME: str = "NRIChristianMatrimony"
    GMAIL_CLIENT_ID: str = ""
    GMAIL_CLIENT_SECRET: str = ""
    GMAIL_REFRESH_TOKEN: str = ""
    GMAIL_SENDER: str = "me"

    # Operations inbox for profile created/updated notifications
    PROFILE_NOTIFICATION_EMAIL: str = ""

    # Logging
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = False

    # CORS Settings - can be set as JSON string in .env
    BACKEND_CORS_ORIGINS: Union[List[str], str] = ["http://localhost:5000", "http://localhost:8000"]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Union[List[str], str]) -> List[str]:
        """Parse CORS origins from JSON string or list"""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                # If not valid JSON, split by comma
                return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("SMS_DELIVERY_MODE", "EMAIL_TRANSPORT")
    @classmethod
    def normalize_choice(cls, v: str) -> str:
        return v.strip().lower()

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
