"""Configuration settings for the MedEquip marketplace backend."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Supabase
    supabase_url: str
    # New key system (preferred)
    supabase_secret_key: str | None = None  # Backend/admin access
    # Legacy keys (deprecated, will be removed)
    supabase_service_role_key: str | None = None

    # Session tokens issued by Supabase Auth
    supabase_jwt_secret: str  # Required - no default for security
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"
    session_cookie_name: str = "sb-access-token"

    # Transactional email (Resend). Unset key = log notifications only.
    resend_api_key: str | None = None
    resend_api_url: str = "https://api.resend.com/emails"
    email_from: str = "noreply@medequiptech.com"
    email_from_awards: str = "awards@medequiptech.com"
    email_from_bids: str = "bids@medequiptech.com"
    email_from_welcome: str = "welcome@medequiptech.com"
    email_reply_to: str = "support@medequiptech.com"
    admin_alert_emails: list[str] = ["admin@medequiptech.com"]
    notification_timeout_seconds: float = 10.0

    # Rate limiting. Only these peers may set X-Forwarded-For.
    rate_limit_enabled: bool = True
    trusted_proxy_cidrs: list[str] = [
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "127.0.0.0/8",
        "::1/128",
    ]

    # App
    debug: bool = False
    log_level: str = "INFO"
    # CORS: Allowed origins for cross-origin requests
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "https://medequiptech.com",
        "https://www.medequiptech.com",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env vars not in model


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
