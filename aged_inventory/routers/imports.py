"""
API Router for CSV imports.
Low-value inventory report (rolled up to style+color) and the catalog image export.
"""

import logging
import time
from typing import List, Optional

import pandas as pd
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aged_inventory.core.config import settings
from aged_inventory.core.database import get_db
from aged_inventory.schemas.aged_inventory import LowValueImportResponse, RawInventoryRow
from aged_inventory.schemas.catalog_image import CatalogImportResponse, CatalogImportRow
from aged_inventory.services.aged_inventory_repository import AgedInventoryRepository
from aged_inventory.services.catalog_image_repository import CatalogImageRepository
from aged_inventory.services.csv_reader import read_csv_records
from aged_inventory.services.rollup import roll_up

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/import", tags=["CSV Imports"])


def get_flag_policy() -> str:
    """How operator flags are treated when an import replaces the aggregates"""
    return settings.FLAG_POLICY


# ============================================================================
# Upload Helpers
# ============================================================================

def _read_upload(file: Optional[UploadFile], csv_text: Optional[str]) -> bytes:
    """Raw CSV bytes from a multipart file or a plain `csv` form field"""
    if file is not None and file.filename:
        if not file.filename.lower().endswith(".csv"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="File must be a CSV file (.csv extension)"
            )
        content = file.file.read()
    elif csv_text:
        content = csv_text.encode("utf-8")
    else:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No CSV data")

    if len(content) > settings.UPLOAD_MAX_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File size exceeds {settings.UPLOAD_MAX_BYTES // (1024 * 1024)} MB limit"
        )
    return content


def _parse_records(content: bytes) -> List[dict]:
    try:
        return read_csv_records(content)
    except (pd.errors.ParserError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Could not parse CSV: {str(e)}"
        )


# ============================================================================
# IMPORT ENDPOINTS
# ============================================================================

@router.post("/low-value", response_model=LowValueImportResponse)
def import_low_value(
    file: Optional[UploadFile] = File(None, description="Low-value inventory CSV"),
    csv: Optional[str] = Form(None, description="CSV text, when not uploading a file"),
    db: Session = Depends(get_db),
    flag_policy: str = Depends(get_flag_policy),
):
    """
    Import the low-value inventory report and roll it up to style+color.

    **CSV Format:**
    Headers: Style, Color, Commodity, Size, Remaining_Stock, Remaining_Asset_Value,
    Current_Stock, Committed_Stock, Inventory_Age, Age_Bracket, Trsc_Date, PO_No,
    Unit_Cost, CAD_Link

    The aggregate table is replaced by the new batch: existing style+color rows are
    updated, new ones created and the rest removed. Operator flags are kept unless
    the flag policy is "reset".
    """
    start_time = time.time()
    records = _parse_records(_read_upload(file, csv))
    rows = [RawInventoryRow.model_validate(record) for record in records]

    try:
        catalog_images = CatalogImageRepository.get_snapshot(db)
        rollup = roll_up(rows, catalog_images)
        counts = AgedInventoryRepository.replace_all(db, rollup.records.values(), flag_policy)
    except SQLAlchemyError as e:
        logger.error(f"Import error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Import failed: {str(e)}"
        )

    logger.info(f"Imported {rollup.row_count} rows → {rollup.group_count} style/color records")

    return LowValueImportResponse(
        success=True,
        rows=rollup.row_count,
        records=rollup.group_count,
        processing_time_seconds=round(time.time() - start_time, 2),
        **counts,
    )


@router.post("/catalog", response_model=CatalogImportResponse)
def import_catalog(
    file: Optional[UploadFile] = File(None, description="Catalog export CSV"),
    csv: Optional[str] = Form(None, description="CSV text, when not uploading a file"),
    db: Session = Depends(get_db),
):
    """
    Import style images from the catalog ("Available Now / Left to Sell") export.

    **CSV Format:**
    Headers: Style Name, Style Image

    Rows with a blank image, or whose style starts with the reserved prefix, are skipped.
    Aggregates still missing an image are backfilled afterwards.
    """
    records = _parse_records(_read_upload(file, csv))
    reserved_prefix = settings.CATALOG_RESERVED_STYLE_PREFIX

    pairs = []
    skipped_count = 0
    for record in records:
        row = CatalogImportRow.model_validate(record)
        if not row.style or not row.image_url or (reserved_prefix and row.style.startswith(reserved_prefix)):
            skipped_count += 1
            continue
        pairs.append((row.style, row.image_url))

    try:
        images = CatalogImageRepository.upsert_many(db, pairs)
        backfilled = AgedInventoryRepository.backfill_images(db)
    except SQLAlchemyError as e:
        logger.error(f"Catalog import error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Catalog import failed: {str(e)}"
        )

    logger.info(f"Catalog import: {images} style images")

    return CatalogImportResponse(
        success=True,
        total_rows=len(records),
        images=images,
        skipped_count=skipped_count,
        backfilled_count=backfilled,
    )
