"""
API Router for Aged Inventory endpoints.
Report data, jobber flagging, flagged export and dashboard statistics.
"""

import logging
from typing import List

import pandas as pd
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aged_inventory.core.database import get_db
from aged_inventory.schemas.aged_inventory import (
    AgeBracketSummary,
    AgedInventoryResponse,
    FlagRequest,
    FlagResponse,
    InventoryStats,
)
from aged_inventory.services.aged_inventory_repository import AgedInventoryRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Aged Inventory"])

EXPORT_COLUMNS = {
    "style": "Style",
    "color": "Color",
    "commodity": "Commodity",
    "sizes": "Sizes",
    "total_remaining": "Remaining Units",
    "total_value": "Asset Value",
    "unit_cost_avg": "Unit Cost",
    "age_days": "Age Days",
    "age_bracket": "Age Bracket",
    "trsc_date": "Last Stock In",
    "image_url": "Image URL",
}


# ============================================================================
# READ ENDPOINTS
# ============================================================================

@router.get("/inventory", response_model=List[AgedInventoryResponse])
def get_inventory(db: Session = Depends(get_db)):
    """All style+color aggregates, oldest first"""
    entries = AgedInventoryRepository.get_all(db)
    return [AgedInventoryResponse.model_validate(e) for e in entries]


@router.get("/stats", response_model=InventoryStats)
def get_stats(db: Session = Depends(get_db)):
    """Dashboard totals: styles, records, units, value and what is flagged"""
    return InventoryStats(**AgedInventoryRepository.get_statistics(db))


@router.get("/age-brackets", response_model=List[AgeBracketSummary])
def get_age_brackets(db: Session = Depends(get_db)):
    """Record count, units and value per age bracket, oldest bracket first"""
    return [AgeBracketSummary(**row) for row in AgedInventoryRepository.group_by_age_bracket(db)]


# ============================================================================
# FLAGGING ENDPOINTS
# ============================================================================

@router.post("/flag", response_model=FlagResponse)
def flag_items(request: FlagRequest, db: Session = Depends(get_db)):
    """
    Flag or unflag aggregates for the jobber.

    **Body:**
    - items: list of {style, color}
    - flagged: true to flag, false to unflag
    """
    try:
        updated = AgedInventoryRepository.set_flagged(db, request.items, request.flagged)
    except SQLAlchemyError as e:
        logger.error(f"Flag update failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Flag update failed: {str(e)}"
        )
    return FlagResponse(updated_count=updated)


@router.get("/export-flagged")
def export_flagged(db: Session = Depends(get_db)):
    """Download the flagged aggregates as a CSV for the jobber"""
    entries = AgedInventoryRepository.get_flagged(db)

    df = pd.DataFrame(
        [{field: getattr(e, field) for field in EXPORT_COLUMNS} for e in entries],
        columns=list(EXPORT_COLUMNS),
    )
    df["image_url"] = df["image_url"].fillna("")
    content = df.rename(columns=EXPORT_COLUMNS).to_csv(index=False)

    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=jobber_flagged_inventory.csv"},
    )
