"""Application configuration."""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import FrozenSet


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "SplitLab"
    debug: bool = False

    # Database (postgresql+psycopg2://... in production)
    database_url: str = "sqlite:///./splitlab.db"

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # Rate Limiting (public content/track-view endpoints, per client IP)
    rate_limit_enabled: bool = False
    rate_limit_requests: int = 600
    rate_limit_window: int = 60  # seconds

    # Comma-separated proxy addresses whose X-Forwarded-For header is trusted.
    # Empty means the socket peer address is always used.
    forwarded_allow_ips: str = ""

    # Embed script
    # Base URL the generated embed snippet calls back into
    public_api_url: str = "http://localhost:8000"

    # Create a sample experiment on startup when the database is empty
    seed_sample_data: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def trusted_proxies(self) -> FrozenSet[str]:
        """Addresses allowed to set X-Forwarded-For."""
        return frozenset(ip.strip() for ip in self.forwarded_allow_ips.split(",") if ip.strip())


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
