"""
Pydantic schemas for Aged Inventory.
Raw low-value report rows plus request and response models for the aged_inventory endpoints.
"""

import math
from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_text(value: Any) -> str:
    """Upstream cells arrive as text, numbers, None or NaN; keep them all as text"""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value)


# ============================================================================
# Import Row Schemas
# ============================================================================

class RawInventoryRow(BaseModel):
    """One SKU/size line of the low-value inventory report. Any field may be blank."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    style: str = Field("", alias="Style")
    color: str = Field("", alias="Color")
    commodity: str = Field("", alias="Commodity")
    size: str = Field("", alias="Size")
    remaining_stock: str = Field("", alias="Remaining_Stock")
    remaining_asset_value: str = Field("", alias="Remaining_Asset_Value")
    current_stock: str = Field("", alias="Current_Stock")
    committed_stock: str = Field("", alias="Committed_Stock")
    unit_cost: str = Field("", alias="Unit_Cost")
    age_in_days: str = Field("", alias="Inventory_Age")
    age_bracket: str = Field("", alias="Age_Bracket")
    last_stock_in_date: str = Field("", alias="Trsc_Date")
    purchase_order_no: str = Field("", alias="PO_No")
    image_link: str = Field("", alias="CAD_Link")

    @field_validator("*", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _as_text(value)


# ============================================================================
# Response Schemas
# ============================================================================

class AgedInventoryResponse(BaseModel):
    """Schema for a style+color aggregate"""
    style: str
    color: str
    commodity: Optional[str] = None
    sizes: List[str] = []
    total_remaining: float
    total_value: float
    total_current: float
    total_committed: float
    unit_cost_avg: float
    age_days: int
    age_bracket: Optional[str] = None
    trsc_date: Optional[str] = None
    po_no: Optional[str] = None
    image_url: Optional[str] = None
    flagged: bool
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("sizes", mode="before")
    @classmethod
    def split_sizes(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [s.strip() for s in value.split(",") if s.strip()]
        return list(value)


class LowValueImportResponse(BaseModel):
    """Response for the low-value CSV import"""
    success: bool
    rows: int = Field(..., description="Input rows read from the CSV")
    records: int = Field(..., description="Style+color aggregates produced")
    created_count: int = 0
    updated_count: int = 0
    removed_count: int = 0
    processing_time_seconds: float


# ============================================================================
# Flagging Schemas
# ============================================================================

class FlagItem(BaseModel):
    """Natural key of an aggregate"""
    style: str = Field(..., min_length=1)
    color: str = ""


class FlagRequest(BaseModel):
    """Schema for flagging/unflagging aggregates for the jobber"""
    items: List[FlagItem] = Field(..., description="Aggregates to update")
    flagged: bool


class FlagResponse(BaseModel):
    success: bool = True
    updated_count: int


# ============================================================================
# Statistics Schemas
# ============================================================================

class InventoryStats(BaseModel):
    """Dashboard totals"""
    total_styles: int
    total_records: int
    total_units: float
    total_value: float
    flagged_count: int
    flagged_units: float
    last_updated: Optional[datetime] = None


class AgeBracketSummary(BaseModel):
    """Totals for one age bracket"""
    age_bracket: str
    count: int
    units: float
    value: float
