"""YApi connection configuration."""

from pydantic import BaseModel, Field

from yapi_mcp.config.base import Settings, settings


class YApiConfig(BaseModel):
    """Connection parameters for one YApi server."""

    base_url: str = Field(description="Base URL of the YApi installation")
    token: str = Field(
        default="", description="Raw multi-project token string"
    )
    timeout: float = Field(default=30.0, description="Request timeout in seconds")

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "YApiConfig":
        """Build a config from the global settings.

        Args:
            source: Settings to read from (default: the module singleton)
        """
        source = source or settings
        return cls(
            base_url=source.base_url.rstrip("/"),
            token=source.token,
            timeout=source.timeout,
        )
