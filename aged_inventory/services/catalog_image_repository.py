"""
Repository layer for the catalog_images cross-reference table.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aged_inventory.models.catalog_image import CatalogImage

logger = logging.getLogger(__name__)


def _native_upsert(dialect_name: str, style: str, image_url: str):
    """INSERT .. ON CONFLICT (style) DO UPDATE for backends that support it, else None"""
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        return None

    stmt = insert(CatalogImage).values(style=style, image_url=image_url, updated_at=func.now())
    return stmt.on_conflict_do_update(
        index_elements=["style"],
        set_={"image_url": stmt.excluded.image_url, "updated_at": func.now()},
    )


class CatalogImageRepository:
    """Repository for Catalog Image operations"""

    @staticmethod
    def upsert(db: Session, style: str, image_url: str) -> bool:
        """
        Insert or overwrite the image for one style (not committed).

        Style and URL are trimmed; blank values are ignored and return False.
        """
        style = (style or "").strip()
        image_url = (image_url or "").strip()
        if not style or not image_url:
            return False

        stmt = _native_upsert(db.get_bind().dialect.name, style, image_url)
        if stmt is not None:
            db.execute(stmt)
            return True

        existing = db.query(CatalogImage).filter(CatalogImage.style == style).first()
        if existing:
            existing.image_url = image_url
            existing.updated_at = func.now()
        else:
            db.add(CatalogImage(style=style, image_url=image_url, updated_at=func.now()))
        db.flush()
        return True

    @staticmethod
    def upsert_many(db: Session, pairs: Iterable[Tuple[str, str]]) -> int:
        """Upsert (style, image_url) pairs and commit. Returns the number of styles written."""
        count = 0
        try:
            for style, image_url in pairs:
                if CatalogImageRepository.upsert(db, style, image_url):
                    count += 1
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        return count

    @staticmethod
    def get_by_style(db: Session, style: str) -> Optional[CatalogImage]:
        return db.query(CatalogImage).filter(CatalogImage.style == style).first()

    @staticmethod
    def get_all(db: Session) -> List[CatalogImage]:
        return db.query(CatalogImage).order_by(CatalogImage.style).all()

    @staticmethod
    def get_snapshot(db: Session) -> Dict[str, str]:
        """Current style -> image URL mapping"""
        return {row.style: row.image_url for row in db.query(CatalogImage.style, CatalogImage.image_url).all()}

    @staticmethod
    def count(db: Session) -> int:
        return db.query(func.count(CatalogImage.id)).scalar() or 0
