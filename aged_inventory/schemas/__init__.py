"""
Schemas for the application.

This module exports all Pydantic models and schemas used for request/response validation.
"""

from aged_inventory.schemas.aged_inventory import (
    RawInventoryRow,
    AgedInventoryResponse,
    LowValueImportResponse,
    FlagItem,
    FlagRequest,
    FlagResponse,
    InventoryStats,
    AgeBracketSummary,
)

from aged_inventory.schemas.catalog_image import (
    CatalogImportRow,
    CatalogImageResponse,
    CatalogImportResponse,
    CatalogSyncResponse,
    CatalogStatusResponse,
)

__all__ = [
    "RawInventoryRow",
    "AgedInventoryResponse",
    "LowValueImportResponse",
    "FlagItem",
    "FlagRequest",
    "FlagResponse",
    "InventoryStats",
    "AgeBracketSummary",
    "CatalogImportRow",
    "CatalogImageResponse",
    "CatalogImportResponse",
    "CatalogSyncResponse",
    "CatalogStatusResponse",
]
