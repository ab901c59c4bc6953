"""
Zoho OAuth access token cache.

WorkDrive images need a short-lived access token. The token is refreshed
lazily from a long-lived refresh token (configured, or read from the product
catalog DB) and reused until shortly before it expires.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError

from aged_inventory.core.config import settings
from aged_inventory.services.catalog_sync import catalog_source

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialCacheEntry:
    access_token: str
    expires_at: float  # epoch seconds, safety margin already subtracted


class ZohoTokenCache:
    """
    Process-wide access token cache.

    The entry is immutable and swapped in one assignment, so readers never see
    a half-written token. Refreshes are serialized: when several callers find
    the token expired at once, only the first talks to Zoho and the rest reuse
    its result.
    """

    def __init__(
        self,
        token_url: str,
        client_id: Optional[str],
        client_secret: Optional[str],
        refresh_token: Optional[str] = None,
        refresh_token_provider: Optional[Callable[[], Optional[str]]] = None,
        http_client: Optional[httpx.Client] = None,
        safety_margin_seconds: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.refresh_token_provider = refresh_token_provider
        self.http_client = http_client
        self.safety_margin_seconds = safety_margin_seconds
        self.clock = clock
        self._entry: Optional[CredentialCacheEntry] = None
        self._refresh_lock = threading.Lock()

    @property
    def entry(self) -> Optional[CredentialCacheEntry]:
        return self._entry

    def _valid_token(self) -> Optional[str]:
        entry = self._entry
        if entry is not None and self.clock() < entry.expires_at:
            return entry.access_token
        return None

    def get_access_token(self) -> Optional[str]:
        """
        Return a valid access token, refreshing it if needed.

        Returns:
            The token, or None when no token can be obtained. Callers should
            then carry on without authorization.
        """
        token = self._valid_token()
        if token:
            return token

        with self._refresh_lock:
            # Another caller may have refreshed while we waited
            token = self._valid_token()
            if token:
                return token
            return self._refresh()

    def invalidate(self) -> None:
        self._entry = None

    def _resolve_refresh_token(self) -> Optional[str]:
        if self.refresh_token:
            return self.refresh_token
        if self.refresh_token_provider is None:
            return None
        try:
            return self.refresh_token_provider()
        except SQLAlchemyError as e:
            logger.error(f"Could not read Zoho refresh token from catalog DB: {str(e)}")
            return None

    def _refresh(self) -> Optional[str]:
        refresh_token = self._resolve_refresh_token()
        if not refresh_token or not self.client_id or not self.client_secret:
            logger.error("Missing Zoho credentials (refresh_token, client_id, or client_secret)")
            return None

        form = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }

        try:
            if self.http_client is not None:
                response = self.http_client.post(self.token_url, data=form)
            else:
                with httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
                    response = client.post(self.token_url, data=form)
        except httpx.HTTPError as e:
            logger.error(f"Zoho token error: {str(e)}")
            return None

        try:
            data = response.json()
        except ValueError:
            data = {}

        access_token = data.get("access_token") if isinstance(data, dict) else None
        if response.status_code >= 400 or not access_token:
            logger.error(f"Zoho token refresh failed ({response.status_code}): {data}")
            return None

        try:
            expires_in = float(data.get("expires_in", 3600))
        except (TypeError, ValueError):
            logger.error(f"Zoho token refresh returned an invalid expires_in: {data.get('expires_in')!r}")
            return None

        self._entry = CredentialCacheEntry(
            access_token=access_token,
            expires_at=self.clock() + expires_in - self.safety_margin_seconds,
        )
        logger.info("Zoho token refreshed successfully")
        return access_token


zoho_token_cache = ZohoTokenCache(
    token_url=settings.ZOHO_TOKEN_URL,
    client_id=settings.ZOHO_CLIENT_ID,
    client_secret=settings.ZOHO_CLIENT_SECRET,
    refresh_token=settings.ZOHO_REFRESH_TOKEN,
    refresh_token_provider=catalog_source.fetch_latest_refresh_token if catalog_source else None,
    safety_margin_seconds=settings.ZOHO_TOKEN_SAFETY_MARGIN_SECONDS,
)


def get_token_cache() -> ZohoTokenCache:
    return zoho_token_cache
