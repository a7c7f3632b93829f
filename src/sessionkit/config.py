"""Application configuration using Pydantic Settings."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Self-inverse: applying the cipher twice returns the original text.
DEFAULT_CIPHER_KEY = "mxtkryovuzdsawgqpelcihnbfj"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="SESSIONKIT_", extra="ignore"
    )

    # System Configuration
    debug: bool = False
    app_client_key: str = "template"

    # Supabase Configuration
    supabase_url: str = "https://test.supabase.co"
    supabase_anon_key: str = "test-anon-key"
    remote_fetch_limit: int = 100

    # Local snapshot cache (one JSON file per store)
    cache_dir: Path = Path.home() / ".sessionkit" / "cache"

    # Account Settings
    requires_email_verification: bool = True
    display_name_max_length: int = 100
    success_reset_delay_seconds: float = 4.0  # Success indicator shown before flags reset

    # Content Filter
    lexicon_url: str | None = None
    lexicon_cipher_key: str = DEFAULT_CIPHER_KEY

    # PostHog Configuration
    posthog_api_key: str | None = None
    posthog_host: str = "https://app.posthog.com"


settings = Settings()
