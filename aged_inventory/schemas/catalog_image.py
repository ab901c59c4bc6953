"""
Pydantic schemas for the catalog image cross-reference.
"""

from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from aged_inventory.schemas.aged_inventory import _as_text


class CatalogImportRow(BaseModel):
    """One row of the catalog ("Available Now / Left to Sell") export"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    style: str = Field("", alias="Style Name")
    image_url: str = Field("", alias="Style Image")

    @field_validator("*", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _as_text(value).strip()


class CatalogImageResponse(BaseModel):
    style: str
    image_url: str
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CatalogImportResponse(BaseModel):
    """Response for the catalog CSV import"""
    success: bool
    total_rows: int
    images: int = Field(..., description="Style images upserted")
    skipped_count: int = 0
    backfilled_count: int = 0


class CatalogSyncResponse(BaseModel):
    """Response for an on-demand catalog sync"""
    success: bool
    status: str
    synced: int = 0
    backfilled: int = 0
    total_images: int
    message: Optional[str] = None


class CatalogStatusResponse(BaseModel):
    """Diagnostic view of the external product catalog"""
    configured: bool
    total_products: Optional[int] = None
    with_image_url: Optional[int] = None
    columns: List[str] = []
    sample: List[dict] = []
    error: Optional[str] = None
