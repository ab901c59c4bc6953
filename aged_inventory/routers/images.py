"""
API Router for the protected image proxy.
"""

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from aged_inventory.core.config import settings
from aged_inventory.services.credential_cache import ZohoTokenCache, get_token_cache
from aged_inventory.services.image_proxy import (
    ImageUnavailable,
    fetch_protected_image,
    get_image_http_client,
    is_allowed_image_url,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Images"])


@router.get("/image-proxy")
def image_proxy(
    url: str = Query(..., description="Zoho WorkDrive image URL"),
    token_cache: ZohoTokenCache = Depends(get_token_cache),
    client: httpx.Client = Depends(get_image_http_client),
):
    """
    Fetch a WorkDrive image with the cached Zoho token and relay it.

    Without a token the fetch is still attempted unauthenticated; any failure
    is answered with 502 "Image unavailable".
    """
    if not is_allowed_image_url(url, settings.IMAGE_PROXY_ALLOWED_HOST):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid URL")

    try:
        content, content_type = fetch_protected_image(url, token_cache, client)
    except ImageUnavailable as e:
        logger.error(f"Image proxy error: {str(e)}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Image unavailable")

    return Response(
        content=content,
        media_type=content_type,
        headers={"Cache-Control": "public, max-age=86400"},
    )
