"""YApi client and cache state for the YApi server."""

import logging

from yapi_mcp.config.base import settings
from yapi_mcp.config.yapi import YApiConfig
from yapi_mcp.servers.yapi.utils.cache import MetadataCache
from yapi_mcp.utils.yapi import YApiClient

logger = logging.getLogger(__name__)


# Server state container (avoids global keyword)
class _ServerState:
    """Container for server state to avoid global mutable variables."""

    client: YApiClient | None = None
    cache: MetadataCache | None = None


_state = _ServerState()


async def get_client() -> YApiClient:
    """Get or create the YApi client."""
    if _state.client is None:
        _state.client = YApiClient(YApiConfig.from_settings())
    return _state.client


async def get_cache() -> MetadataCache:
    """Get or create the metadata cache.

    The first call applies the startup policy: a fresh snapshot is loaded
    directly, otherwise a refresh starts in the background.
    """
    if _state.cache is None:
        client = await get_client()
        _state.cache = MetadataCache(
            client,
            snapshot_path=settings.cache_file,
            ttl_minutes=settings.cache_ttl,
        )
        _state.cache.warm_up()
    return _state.cache


async def close_client() -> None:
    """Close the YApi client (for cleanup)."""
    if _state.client is not None:
        await _state.client.close()
        _state.client = None
        _state.cache = None  # Cache is bound to the client
