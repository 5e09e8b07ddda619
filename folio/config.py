"""Application configuration via environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App
    debug: bool = False
    environment: str = "development"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
        "https://arslankg.dev",
    ]

    # Origins allowed to post the contact / newsletter forms
    allowed_origins: list[str] = [
        "https://arslankg.dev",
        "https://arkegu-portfolio.vercel.app",
    ]

    # Database (any SQLAlchemy async URL)
    database_url: str = "sqlite+aiosqlite:///./portfolio.db"

    # Admin sessions
    session_secret: str = "change-me"
    session_max_age: int = 30 * 24 * 60 * 60  # 30 days

    # Rate limits (window in seconds)
    comment_rate_limit_max: int = 3
    comment_rate_limit_window: int = 300
    form_rate_limit_max: int = 5
    form_rate_limit_window: int = 900

    # Azure Blob Storage (cover images)
    azure_storage_account: str = ""
    azure_image_container: str = "blog-images"
    managed_identity_client_id: str = ""

    # Brevo transactional email (contact form, newsletter)
    brevo_api_key: str = ""
    recipient_email: str = ""
    sender_name: str = "Portfolio Contact Form"
    sender_email: str = "noreply@arslankg.dev"

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
