"""
Dependency injection for the FastAPI application.
Holds the machine file and the single controller client shared by all requests.
"""
import asyncio
import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import Depends

from bmc_rpc.core.config import BmcConfig, load_config, settings
from bmc_rpc.services.port_state import PortStateTranslator
from bmc_rpc.services.unifi_client import UnifiClient

log = logging.getLogger("bmc_rpc.dependencies")

# Global instances for singleton services
_config: Optional[BmcConfig] = None
_unifi_client: Optional[UnifiClient] = None
_client_lock = asyncio.Lock()


def get_bmc_config() -> BmcConfig:
    """Machine file, read once and kept for the life of the process."""
    global _config
    if _config is None:
        _config = load_config(settings.CONFIG_FILE)
    return _config


def get_site(config: BmcConfig) -> str:
    return config.site or settings.UNIFI_SITE


async def get_unifi_client(config: Annotated[BmcConfig, Depends(get_bmc_config)]) -> UnifiClient:
    """
    Dependency to get the controller client.
    Created on first use; login happens lazily on the first API call.
    """
    global _unifi_client

    async with _client_lock:
        if _unifi_client is None:
            log.info("Initializing UniFi client for %s", config.api_endpoint)
            _unifi_client = UnifiClient(
                config.api_endpoint,
                config.username,
                config.password,
                insecure=config.insecure,
                timeout=settings.UNIFI_TIMEOUT,
            )
    return _unifi_client


async def get_translator(
    config: Annotated[BmcConfig, Depends(get_bmc_config)],
    client: Annotated[UnifiClient, Depends(get_unifi_client)],
) -> PortStateTranslator:
    return PortStateTranslator(client, get_site(config))


async def cleanup_services():
    """Close the controller client on shutdown."""
    global _unifi_client

    if _unifi_client:
        log.info("Shutting down UniFi client")
        try:
            await _unifi_client.close()
        except Exception as e:
            log.error(f"Error closing UniFi client: {e}")

    _unifi_client = None
    log.info("Service cleanup completed")


# Health check functions
def check_config_health() -> Dict[str, Any]:
    try:
        config = get_bmc_config()
        return {
            "status": "healthy",
            "config_file": settings.CONFIG_FILE,
            "machines": len(config.machines),
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
            "config_file": settings.CONFIG_FILE,
            "machines": 0,
        }


async def check_controller_health() -> Dict[str, Any]:
    try:
        client = await get_unifi_client(get_bmc_config())
        if not client.logged_in:
            await client.login()
        return {
            "status": "healthy",
            "endpoint": client.base_url,
            "logged_in": client.logged_in,
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
            "logged_in": False,
        }
