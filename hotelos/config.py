"""
Application settings
Read from environment variables and an optional .env file
"""
from decimal import Decimal
from typing import Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "HotelOS"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./hotelos.db"

    # JWT
    SECRET_KEY: str = "hotelos-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # Issuer identity printed on invoices
    HOTEL_NAME: str = "HotelOS"
    HOTEL_TAX_ID: str = "27AFSFS6576C1ZD"

    # Two equal tax components, each a percentage of the base amount
    TAX_COMPONENT_RATE: Decimal = Decimal("2.5")
    TAX_PRIMARY_LABEL: str = "CGST"
    TAX_SECONDARY_LABEL: str = "SGST"
    CURRENCY_SYMBOL: str = "₹"

    # Invoice numbering and document storage
    INVOICE_PREFIX: str = "INV"
    INVOICE_STORAGE_DIR: str = "./invoices"
    INVOICE_PUBLIC_BASE_URL: str = "http://localhost:8000/static/invoices"

    # Outbound email
    EMAIL_ENABLED: bool = False
    EMAIL_SENDER: str = "HotelOS <billing@hotelos.local>"
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True

    # Upper bound on waiting for a room or booking lock
    LOCK_TIMEOUT_SECONDS: float = 10.0

    # Best-effort delivery after checkout
    DELIVERY_MAX_ATTEMPTS: int = 3
    DELIVERY_RETRY_DELAY_SECONDS: float = 0.5

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


# Shared settings instance
settings = Settings()
