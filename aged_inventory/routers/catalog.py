"""
API Router for the product catalog image sync.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aged_inventory.core.database import get_db
from aged_inventory.schemas.catalog_image import CatalogImageResponse, CatalogStatusResponse, CatalogSyncResponse
from aged_inventory.services.catalog_image_repository import CatalogImageRepository
from aged_inventory.services.catalog_sync import (
    CatalogImageSynchronizer,
    CatalogSource,
    get_catalog_source,
    get_catalog_synchronizer,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Catalog Images"])


@router.post("/sync-catalog-images", response_model=CatalogSyncResponse)
def sync_catalog_images(
    db: Session = Depends(get_db),
    synchronizer: CatalogImageSynchronizer = Depends(get_catalog_synchronizer),
):
    """
    Pull style images from the product catalog DB now and backfill missing images.

    If a scheduled sync is already running this request is skipped (status "skipped").
    """
    if not synchronizer.configured:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Product catalog database not configured"
        )

    result = synchronizer.sync()

    try:
        total_images = CatalogImageRepository.count(db)
    except SQLAlchemyError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Could not count catalog images: {str(e)}"
        )

    return CatalogSyncResponse(
        success=result.success,
        status=result.status,
        synced=result.synced,
        backfilled=result.backfilled,
        total_images=total_images,
        message=result.message,
    )


@router.get("/catalog/status", response_model=CatalogStatusResponse)
def get_catalog_status(source: Optional[CatalogSource] = Depends(get_catalog_source)):
    """Counts, columns and a sample of the product catalog, for checking the sync source"""
    if source is None:
        return CatalogStatusResponse(configured=False, error="No catalog DB configured")

    try:
        return CatalogStatusResponse(configured=True, **source.describe())
    except SQLAlchemyError as e:
        logger.error(f"Catalog status error: {str(e)}")
        return CatalogStatusResponse(configured=True, error=str(e))


@router.get("/catalog/images", response_model=List[CatalogImageResponse])
def get_catalog_images(db: Session = Depends(get_db)):
    """All cached style images"""
    entries = CatalogImageRepository.get_all(db)
    return [CatalogImageResponse.model_validate(e) for e in entries]
