"""
Catalog image sync.

Pulls style -> image URL pairs from the product catalog database into the
local catalog_images table, then backfills aggregates that have no image yet.
Runs once at startup, on a fixed interval, and on demand.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aged_inventory.core.database import SessionLocal, catalog_engine
from aged_inventory.services.aged_inventory_repository import AgedInventoryRepository
from aged_inventory.services.catalog_image_repository import CatalogImageRepository

logger = logging.getLogger(__name__)

SYNC_OK = "ok"
SYNC_SKIPPED = "skipped"
SYNC_UNAVAILABLE = "unavailable"
SYNC_ERROR = "error"


class CatalogSource:
    """Read-only access to the product catalog database"""

    def __init__(self, engine: Engine):
        self.engine = engine

    def fetch_style_images(self) -> List[Tuple[str, str]]:
        """(base_style, image_url) for every product that has an image"""
        with self.engine.connect() as conn:
            result = conn.execute(text(
                "SELECT base_style, image_url FROM products "
                "WHERE image_url IS NOT NULL AND image_url != ''"
            ))
            return [(row.base_style, row.image_url) for row in result if row.base_style and row.image_url]

    def fetch_latest_refresh_token(self) -> Optional[str]:
        """Most recently updated Zoho refresh token, if any"""
        with self.engine.connect() as conn:
            row = conn.execute(text(
                "SELECT refresh_token FROM zoho_tokens ORDER BY updated_at DESC LIMIT 1"
            )).first()
        return row.refresh_token if row else None

    def describe(self) -> dict:
        """Product counts, column names and a small sample, for diagnosing a sync"""
        with self.engine.connect() as conn:
            total = conn.execute(text("SELECT COUNT(*) FROM products")).scalar()
            with_image = conn.execute(text(
                "SELECT COUNT(*) FROM products WHERE image_url IS NOT NULL AND image_url != ''"
            )).scalar()
            sample = conn.execute(text(
                "SELECT id, style_id, base_style, name, image_url FROM products LIMIT 5"
            )).mappings().all()
            columns = conn.execute(text(
                "SELECT column_name FROM information_schema.columns "
                "WHERE table_name = 'products' ORDER BY ordinal_position"
            )).scalars().all()

        return {
            "total_products": int(total or 0),
            "with_image_url": int(with_image or 0),
            "columns": list(columns),
            "sample": [dict(row) for row in sample],
        }


@dataclass
class CatalogSyncResult:
    status: str
    synced: int = 0
    backfilled: int = 0
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == SYNC_OK


class CatalogImageSynchronizer:
    """
    Reconciles catalog_images with the product catalog and repairs aggregates.

    Only one sync runs at a time; a sync requested while another is in flight
    is skipped. A missing or failing catalog never raises, the local cache
    simply stays as it was.
    """

    def __init__(self, source: Optional[CatalogSource], session_factory: Callable[[], Session]):
        self.source = source
        self.session_factory = session_factory
        self._lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return self.source is not None

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    def sync(self) -> CatalogSyncResult:
        if not self._lock.acquire(blocking=False):
            logger.info("Catalog image sync already running, skipping this run")
            return CatalogSyncResult(status=SYNC_SKIPPED, message="A sync is already in progress")
        try:
            return self._sync()
        finally:
            self._lock.release()

    def _sync(self) -> CatalogSyncResult:
        if self.source is None:
            logger.info("No CATALOG_DATABASE_URL set, skipping image sync")
            return CatalogSyncResult(status=SYNC_UNAVAILABLE, message="Product catalog database not configured")

        logger.info("Syncing product images from catalog DB...")
        try:
            pairs = self.source.fetch_style_images()
        except SQLAlchemyError as e:
            logger.error(f"Catalog image sync error: {str(e)}")
            return CatalogSyncResult(status=SYNC_ERROR, message=f"Catalog read failed: {str(e)}")

        if not pairs:
            logger.info("No images found in catalog DB")
            return CatalogSyncResult(status=SYNC_OK)

        db = self.session_factory()
        try:
            synced = CatalogImageRepository.upsert_many(db, pairs)
            backfilled = AgedInventoryRepository.backfill_images(db)
        except SQLAlchemyError as e:
            logger.error(f"Catalog image sync could not write locally: {str(e)}")
            return CatalogSyncResult(status=SYNC_ERROR, message=f"Local write failed: {str(e)}")
        finally:
            db.close()

        logger.info(f"Synced {synced} product images from catalog DB, backfilled {backfilled} records")
        return CatalogSyncResult(status=SYNC_OK, synced=synced, backfilled=backfilled)


class CatalogSyncScheduler:
    """Runs a synchronizer now and then every interval_seconds until stopped"""

    def __init__(self, synchronizer: CatalogImageSynchronizer, interval_seconds: float):
        self.synchronizer = synchronizer
        self.interval_seconds = interval_seconds
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the loop on the running event loop"""
        if self.running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run())
        logger.info(f"Catalog image sync scheduled every {self.interval_seconds}s")

    async def stop(self) -> None:
        """Stop the loop, letting an in-flight sync finish first"""
        if self._task is None:
            return
        self._stop_event.set()
        await self._task
        self._task = None
        logger.info("Catalog image sync stopped")

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                # The sync is blocking I/O; keep it off the event loop
                await asyncio.to_thread(self.synchronizer.sync)
            except Exception as e:
                logger.error(f"Scheduled catalog image sync failed: {str(e)}", exc_info=True)

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass


catalog_source = CatalogSource(catalog_engine) if catalog_engine is not None else None
catalog_synchronizer = CatalogImageSynchronizer(catalog_source, SessionLocal)


def get_catalog_source() -> Optional[CatalogSource]:
    return catalog_source


def get_catalog_synchronizer() -> CatalogImageSynchronizer:
    return catalog_synchronizer
