from pydantic_settings import BaseSettings
from typing import Optional, List, Union

import os

class Settings(BaseSettings):
    # Base directory calculation (backend/vms/core/config.py -> backend/)
    BASE_DIR: str = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    # Project root (backend/ -> root/)
    PROJECT_ROOT: str = os.path.dirname(BASE_DIR)

    DATA_DIR: str = os.path.normpath(os.getenv("DATA_DIR", os.path.join(PROJECT_ROOT, "data")).strip())

    # Database
    DATABASE_URL: str = f"sqlite:///{os.path.join(DATA_DIR, 'vms.db')}"

    # Runtime
    ENVIRONMENT: str = "production"  # development, production
    LOG_LEVEL: str = "INFO"

    # JWT
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days
    BCRYPT_ROUNDS: int = 12

    # Session cookie
    AUTH_COOKIE_NAME: str = "auth-token"
    COOKIE_SECURE: bool = False

    # CORS - can be comma-separated string or list
    CORS_ORIGINS: Union[str, List[str]] = "http://localhost:3000"

    # First superadmin bootstrap (POST /setup/superadmin)
    SETUP_SECRET: Optional[str] = None

    # Visitor OTP
    OTP_LENGTH: int = 6
    OTP_EXPIRY_MINUTES: int = 10
    REQUIRE_VERIFIED_PHONE: bool = True

    # Retention
    NOTIFICATION_RETENTION_DAYS: int = 30
    AUDIT_LOG_RETENTION_DAYS: int = 90

    # Outbound messaging
    DEFAULT_COUNTRY_CODE: str = "91"
    SMS_PROVIDER: str = "twilio"  # twilio, msg91
    MESSAGING_TIMEOUT_SECONDS: int = 30
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_PHONE_NUMBER: Optional[str] = None
    TWILIO_WHATSAPP_NUMBER: Optional[str] = None
    TWILIO_WHATSAPP_APPROVAL_TEMPLATE_SID: Optional[str] = None
    TWILIO_API_BASE_URL: str = "https://api.twilio.com/2010-04-01"
    TWILIO_WEBHOOK_URL: Optional[str] = None  # Public URL Twilio posts to, when behind a proxy
    MSG91_AUTH_KEY: Optional[str] = None
    MSG91_SENDER_ID: Optional[str] = None
    MSG91_TEMPLATE_ID: Optional[str] = None
    MSG91_API_URL: str = "https://control.msg91.com/api/v5/flow/"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert CORS_ORIGINS to list format"""
        if not self.CORS_ORIGINS:
            return ["http://localhost:3000"]
        if isinstance(self.CORS_ORIGINS, list):
            origins = self.CORS_ORIGINS
        else:
            origins = [
                origin.strip()
                for origin in self.CORS_ORIGINS.split(",")
                if origin.strip()
            ]
        if "*" in origins:
            raise ValueError(
                "CORS_ORIGINS cannot contain '*' when allow_credentials=True. "
                "Use explicit origins like http://localhost:3000"
            )
        return origins

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
