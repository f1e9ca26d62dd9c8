import secrets
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration from environment variables"""

    # Environment
    ENV: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # Database
    DATABASE_URL: str = Field(default="sqlite:///./astex.db")
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 40
    AUTO_CREATE_TABLES: bool = True

    # Security
    JWT_SECRET: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_MINUTES: int = 60
    BCRYPT_ROUNDS: int = 12

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
    ]

    # Payment-order provider (Razorpay)
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_API_URL: str = "https://api.razorpay.com/v1"
    PAYMENT_CURRENCY: str = "INR"
    PAYMENT_TIMEOUT_SECONDS: float = 10.0

    # Email (dormant unless enabled)
    SMTP_ENABLED: bool = False
    SMTP_HOST: str = ""
    SMTP_PORT: int = 465
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "no-reply@astex.local"
    SMTP_TIMEOUT_SECONDS: float = 10.0

    # Deposit QR
    QR_BOX_SIZE: int = 8

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/astex.log"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()


def normalize_database_url(url: str) -> str:
    """Render/Heroku style postgres:// URLs are not accepted by SQLAlchemy"""
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url
