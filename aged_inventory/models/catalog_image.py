"""
Catalog Image model.
Local cross-reference cache from style to a known-good image URL.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from aged_inventory.core.database import Base


class CatalogImage(Base):
    """Catalog Image model - upserted by the catalog sync and the catalog CSV import, never deleted"""
    __tablename__ = "catalog_images"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    style = Column(String(100), nullable=False, unique=True, index=True)
    image_url = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<CatalogImage(style='{self.style}', image_url='{self.image_url}')>"
