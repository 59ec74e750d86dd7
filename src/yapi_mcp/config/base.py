"""Configuration for the yapi-mcp server."""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Find project root (where .env is located)
# This module is in src/yapi_mcp/config/base.py
# Project root is 3 levels up
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

LOG_LEVELS = ("debug", "info", "warning", "error")


class Settings(BaseSettings):
    """Global settings, loaded from environment variables or .env"""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_prefix="YAPI_",
        case_sensitive=False,
    )

    # YApi
    base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the YApi server",
    )
    token: str = Field(
        default="",
        description="Project tokens, 'projectId:token,projectId:token'; "
        "an entry without ':' is the default token",
    )
    timeout: float = Field(
        default=30.0, description="HTTP request timeout in seconds"
    )

    # Metadata cache
    cache_ttl: int = Field(
        default=10, description="Project cache lifetime in minutes"
    )
    cache_file: Path = Field(
        default=Path.home() / ".yapi-mcp" / "project-cache.json",
        description="Location of the persisted project snapshot",
    )

    # Search defaults
    max_projects: int = Field(
        default=5, description="Maximum number of projects scanned per search"
    )
    search_limit: int = Field(
        default=20, description="Default page size for search results"
    )

    # Logging
    log_level: str = Field(
        default="info", description="Log level (debug, info, warning, error)"
    )

    # Server
    server_name: str = Field(
        default="YApi MCP Server", description="Name of the MCP Server"
    )
    transport: Literal["stdio", "http", "sse"] = Field(
        default="stdio", description="MCP transport"
    )
    host: str = Field(default="127.0.0.1", description="Bind host for http/sse")
    port: int = Field(default=3388, description="Port for http/sse")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level == "warn":
            level = "warning"
        if level not in LOG_LEVELS:
            return "info"
        return level


# Singleton instance
settings = Settings()
