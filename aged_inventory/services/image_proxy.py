"""
Protected image fetch for the dashboard's image proxy.
"""

import logging
from typing import Generator, Tuple
from urllib.parse import urlparse

import httpx

from aged_inventory.core.config import settings
from aged_inventory.services.credential_cache import ZohoTokenCache

logger = logging.getLogger(__name__)


class ImageUnavailable(Exception):
    """The image could not be fetched, with or without a token"""


def is_allowed_image_url(url: str, allowed_host: str) -> bool:
    """Only proxy http(s) URLs on the allowed host or one of its subdomains"""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    host = (parsed.hostname or "").lower()
    allowed_host = allowed_host.lower()
    return parsed.scheme in ("http", "https") and (host == allowed_host or host.endswith("." + allowed_host))


def fetch_protected_image(url: str, token_cache: ZohoTokenCache, client: httpx.Client) -> Tuple[bytes, str]:
    """
    Fetch an image, authorizing with the cached Zoho token when one is available.

    Returns:
        (image bytes, content type)

    Raises:
        ImageUnavailable: transport error or non-success response
    """
    headers = {}
    token = token_cache.get_access_token()
    if token:
        headers["Authorization"] = f"Zoho-oauthtoken {token}"
    else:
        logger.warning("No Zoho token available, fetching image without authorization")

    try:
        response = client.get(url, headers=headers, follow_redirects=True)
    except httpx.HTTPError as e:
        raise ImageUnavailable(str(e)) from e

    if response.status_code >= 400:
        raise ImageUnavailable(f"Zoho returned {response.status_code}")

    return response.content, response.headers.get("content-type", "image/jpeg")


def get_image_http_client() -> Generator[httpx.Client, None, None]:
    """FastAPI dependency yielding an HTTP client for image fetches"""
    with httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
        yield client
