from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "Booking Cancellation API"
    # Comma-separated origins for CORS (e.g. https://club.example.com). If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v

    # Stripe (refunds only; charges are created by the checkout flow)
    STRIPE_SECRET_KEY: str = ""
    STRIPE_API_BASE: str = "https://api.stripe.com"
    STRIPE_TIMEOUT: int = 20

    # Calendly (per-partner tokens live on the partner row)
    CALENDLY_API_BASE: str = "https://api.calendly.com"
    CALENDLY_TIMEOUT: int = 15

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "noreply@club.local"

    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = ""

    CLIENT_BASE_URL: str = ""  # e.g. https://club.example.com, used for "browse other offers" links
    APPEAL_CONTACT_EMAIL: str = "contact@club.local"
    DISPLAY_TIMEZONE: str = "Europe/Paris"

    @field_validator("DISPLAY_TIMEZONE", mode="after")
    @classmethod
    def check_display_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone {v!r}") from e
        return v

    # Fixed fee charged to partners who cancel a customer's booking, in cents
    PARTNER_MANAGEMENT_FEE_CENTS: int = 500


settings = Settings()
