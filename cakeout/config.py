"""Application configuration using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Upstream invoicing backend
    api_base_url: str = "http://localhost:8000/api"
    api_timeout: float = 30.0  # seconds

    # Local session storage (auth token and user profile)
    database_url: str = "sqlite:///./cakeout_session.db"

    # Customer autocomplete
    customer_search_debounce_ms: int = 300
    customer_search_min_chars: int = 2

    # In-memory invoice drafts
    draft_max_age_minutes: int = 24 * 60
    max_drafts: int = 500

    # Business details printed on exported invoices
    business_name: str = "Cake Out"
    business_address_lines: list[str] = [
        "No: 255/6c, 12 Cross street,",
        "Mannar road, Puttalam.",
    ]
    business_phone: str = "077-9913067"
    business_email: str = "cakeout@gmail.com"

    # Application
    debug: bool = False
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8080


settings = Settings()
