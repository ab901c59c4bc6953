"""
API routers for the application.
"""

from fastapi import APIRouter
from aged_inventory.routers import imports, inventory, catalog, images

api_router = APIRouter()

# Include routers
api_router.include_router(imports.router)  # CSV imports (low-value report, catalog export)
api_router.include_router(inventory.router)  # Report data, flagging, export, stats
api_router.include_router(catalog.router)  # Product catalog image sync
api_router.include_router(images.router)  # Protected image proxy

__all__ = ["api_router", "imports", "inventory", "catalog", "images"]
