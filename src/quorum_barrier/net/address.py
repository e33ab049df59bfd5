"""
Origin address lookup

Asks an external "what is my IP" endpoint for this host's public address.
Best effort: a failed lookup only means the participant registers without
an address.
"""

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_URL = "https://ipinfo.io/ip"


async def lookup_public_address(url: str = DEFAULT_LOOKUP_URL, timeout: float = 5.0) -> Optional[str]:
    """Return this host's public address, or None if the lookup fails"""
    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(url, timeout=timeout)
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning(f"⚠️  Public address lookup via {url} failed: {e}")
        return None

    address = response.text.strip()
    if not address:
        logger.warning(f"⚠️  Public address lookup via {url} returned an empty body")
        return None
    logger.debug(f"Public address: {address}")
    return address
