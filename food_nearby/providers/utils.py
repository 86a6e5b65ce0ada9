"""
Shared HTTP utilities for provider modules.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional, Tuple

import aiohttp

logger = logging.getLogger(__name__)


@asynccontextmanager
async def get_session(session: Optional[aiohttp.ClientSession] = None):
    """Context manager for aiohttp session handling.

    If session is provided, yields it.
    If not, creates a new session and closes it after use.
    """
    if session is not None:
        yield session
    else:
        async with aiohttp.ClientSession() as new_session:
            yield new_session


async def http_get(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 8.0,
    session: Optional[aiohttp.ClientSession] = None
) -> Tuple[Optional[Any], Optional[str]]:
    """
    Unified HTTP GET with error handling and logging.

    Args:
        url: The URL to request
        params: Query parameters
        headers: Request headers
        timeout: Request timeout in seconds
        session: Optional aiohttp session to reuse

    Returns:
        Tuple of (response_data, error_message)
        - response_data: Parsed JSON response or None if error
        - error_message: Error string or None if successful
    """
    try:
        async with get_session(session) as sess:
            async with sess.get(url, params=_clean_params(params), headers=headers, timeout=aiohttp.ClientTimeout(total=timeout)) as resp:
                resp.raise_for_status()
                # both map APIs answer JSON, sometimes with a text/javascript content type
                return await resp.json(content_type=None), None
    except aiohttp.ClientError as e:
        logger.error(f"HTTP GET {url} failed: {e}")
        return None, str(e)
    except asyncio.TimeoutError:
        logger.error(f"HTTP GET {url} timed out after {timeout}s")
        return None, f"timed out after {timeout}s"
    except ValueError as e:
        logger.error(f"HTTP GET {url} returned invalid JSON: {e}")
        return None, f"invalid JSON: {e}"


def _clean_params(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
    """Drop None values and render booleans the way the map APIs expect."""
    if params is None:
        return None
    out = {}
    for k, v in params.items():
        if v is None:
            continue
        if isinstance(v, bool):
            v = "true" if v else "false"
        out[k] = str(v)
    return out
