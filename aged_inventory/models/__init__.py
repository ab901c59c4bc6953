"""
Database models for the application.
"""

from aged_inventory.core.database import Base
from aged_inventory.models.aged_inventory import AgedInventory
from aged_inventory.models.catalog_image import CatalogImage

__all__ = [
    "Base",
    "AgedInventory",
    "CatalogImage",
]
