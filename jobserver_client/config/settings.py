"""Client configuration management."""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Job server client configuration with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="JOB_SERVER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Server connection
    url: str = Field(default="http://localhost:8090/")
    username: Optional[str] = Field(default=None)
    password: Optional[str] = Field(default=None)

    # Transport timeout in seconds
    timeout: float = Field(default=30.0, gt=0)

    # Failover, comma separated host URLs
    fallback_urls: str = Field(default="")
    max_retries: int = Field(default=3, ge=0)
    sticky_failover: bool = Field(default=True)

    @property
    def fallback_url_list(self) -> List[str]:
        return [url.strip() for url in self.fallback_urls.split(",") if url.strip()]


# Global settings instance
_settings: Optional[ClientSettings] = None


def get_settings() -> ClientSettings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = ClientSettings()
    return _settings
