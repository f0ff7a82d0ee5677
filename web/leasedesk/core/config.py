import os
from typing import Optional, List
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()  # allow local development with a .env file


class Settings:
    """Application settings read from the environment"""

    # Database
    DB_DSN: str = ""
    DB_POOL_SIZE: int = 5
    DB_ECHO: bool = False

    # Security
    SECRET_KEY: str = ""
    ALGORITHM: str = "HS256"

    # CORS
    CORS_ALLOW_ORIGINS: List[str] = []
    CORS_ALLOW_CREDENTIALS: bool = True

    # Rate Limiting
    RATE_LIMIT_DEFAULT: str = "100/minute"
    RATE_LIMIT_DECISION: str = "200/15 minutes"

    # Telegram notifications (events are only logged when unset)
    BOT_TOKEN: str = ""
    LEASE_NOTIFY_CHAT_ID: Optional[int] = None

    # Business Rules
    PHONE_DEFAULT_REGION: str = "VN"
    LEASE_COMMIT_TIMEOUT_SECONDS: float = 10.0
    LEASE_LIST_MAX_LIMIT: int = 100

    LOG_LEVEL: str = "INFO"

    def __init__(self):
        self.DB_DSN = os.getenv("DB_DSN", "")
        self.DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
        self.DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"
        self.SECRET_KEY = os.getenv("SECRET_KEY", "")
        self.ALGORITHM = os.getenv("ALGORITHM", "HS256")
        self.RATE_LIMIT_DEFAULT = os.getenv("RATE_LIMIT_DEFAULT", "100/minute")
        self.RATE_LIMIT_DECISION = os.getenv("RATE_LIMIT_DECISION", "200/15 minutes")
        self.BOT_TOKEN = os.getenv("BOT_TOKEN", "")
        chat_id = os.getenv("LEASE_NOTIFY_CHAT_ID")
        self.LEASE_NOTIFY_CHAT_ID = int(chat_id) if chat_id else None
        self.PHONE_DEFAULT_REGION = os.getenv("PHONE_DEFAULT_REGION", "VN")
        self.LEASE_COMMIT_TIMEOUT_SECONDS = float(os.getenv("LEASE_COMMIT_TIMEOUT_SECONDS", "10"))
        self.LEASE_LIST_MAX_LIMIT = int(os.getenv("LEASE_LIST_MAX_LIMIT", "100"))
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self._validate()
        self._parse_cors_origins()

    def _validate(self):
        """Validate required settings"""
        if not self.SECRET_KEY:
            raise ValueError("SECRET_KEY environment variable must be set")
        if not self.DB_DSN:
            raise ValueError("DB_DSN environment variable must be set")
        if self.LEASE_COMMIT_TIMEOUT_SECONDS <= 0:
            raise ValueError("LEASE_COMMIT_TIMEOUT_SECONDS must be positive")

    def _parse_cors_origins(self):
        """Parse CORS origins from environment"""
        raw_origins = os.getenv("CORS_ALLOW_ORIGINS", "*")

        if raw_origins.strip() == "*":
            self.CORS_ALLOW_ORIGINS = ["*"]
            self.CORS_ALLOW_CREDENTIALS = False  # wildcard forbids credentials
        else:
            self.CORS_ALLOW_ORIGINS = [o.strip() for o in raw_origins.split(",") if o.strip()]
            self.CORS_ALLOW_CREDENTIALS = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
