"""
Repository layer for Aged Inventory operations.
Handles all database queries and operations for the aged_inventory table.
"""

import logging
from typing import Dict, Iterable, List, Tuple

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aged_inventory.models.aged_inventory import AgedInventory
from aged_inventory.models.catalog_image import CatalogImage
from aged_inventory.schemas.aged_inventory import FlagItem
from aged_inventory.services.rollup import RolledInventoryRecord

logger = logging.getLogger(__name__)

FLAG_POLICY_PRESERVE = "preserve"
FLAG_POLICY_RESET = "reset"


class AgedInventoryRepository:
    """Repository for Aged Inventory operations"""

    @staticmethod
    def replace_all(
        db: Session,
        records: Iterable[RolledInventoryRecord],
        flag_policy: str = FLAG_POLICY_PRESERVE,
    ) -> dict:
        """
        Make the table hold exactly the given aggregates.

        Existing (style, color) rows are updated in place, new keys inserted and
        keys missing from the batch deleted, all in one transaction. The
        operator's flag survives unless flag_policy is "reset".

        Returns dict with created/updated/removed counts.
        """
        if flag_policy not in (FLAG_POLICY_PRESERVE, FLAG_POLICY_RESET):
            raise ValueError(f"Unknown flag policy: {flag_policy}")

        created_count = 0
        updated_count = 0
        removed_count = 0

        try:
            existing: Dict[Tuple[str, str], AgedInventory] = {
                (row.style, row.color): row for row in db.query(AgedInventory).all()
            }
            seen = set()

            for record in records:
                columns = record.to_columns()
                db_row = existing.get(record.key)

                if db_row is None:
                    db.add(AgedInventory(**columns, flagged=False, updated_at=func.now()))
                    created_count += 1
                else:
                    for name, value in columns.items():
                        setattr(db_row, name, value)
                    if flag_policy == FLAG_POLICY_RESET:
                        db_row.flagged = False
                    db_row.updated_at = func.now()
                    updated_count += 1

                seen.add(record.key)

            for key, db_row in existing.items():
                if key not in seen:
                    db.delete(db_row)
                    removed_count += 1

            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

        return {
            "created_count": created_count,
            "updated_count": updated_count,
            "removed_count": removed_count,
        }

    @staticmethod
    def get_all(db: Session) -> List[AgedInventory]:
        """All aggregates, oldest inventory first"""
        return db.query(AgedInventory).order_by(AgedInventory.age_days.desc(), AgedInventory.id).all()

    @staticmethod
    def get_by_key(db: Session, style: str, color: str):
        return db.query(AgedInventory).filter(
            AgedInventory.style == style,
            AgedInventory.color == color,
        ).first()

    @staticmethod
    def get_flagged(db: Session) -> List[AgedInventory]:
        return (
            db.query(AgedInventory)
            .filter(AgedInventory.flagged.is_(True))
            .order_by(AgedInventory.age_days.desc(), AgedInventory.id)
            .all()
        )

    @staticmethod
    def set_flagged(db: Session, items: Iterable[FlagItem], flagged: bool) -> int:
        """Flag or unflag aggregates by (style, color). Returns the number of rows changed."""
        updated = 0
        try:
            for item in items:
                result = db.execute(
                    update(AgedInventory)
                    .where(AgedInventory.style == item.style, AgedInventory.color == item.color)
                    .values(flagged=flagged)
                    .execution_options(synchronize_session=False)
                )
                updated += result.rowcount or 0
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        return updated

    @staticmethod
    def backfill_images(db: Session) -> int:
        """
        Fill blank image URLs from the catalog cross-reference.

        Populated image URLs are never touched, so running this again is a no-op.
        Returns the number of rows filled.
        """
        catalog_url = (
            select(CatalogImage.image_url)
            .where(CatalogImage.style == AgedInventory.style)
            .limit(1)
            .scalar_subquery()
        )
        stmt = (
            update(AgedInventory)
            .where(
                or_(AgedInventory.image_url.is_(None), AgedInventory.image_url == ""),
                AgedInventory.style.in_(select(CatalogImage.style)),
            )
            .values(image_url=catalog_url)
            .execution_options(synchronize_session=False)
        )
        try:
            result = db.execute(stmt)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        return result.rowcount or 0

    # ============================================================================
    # STATISTICS & ANALYTICS
    # ============================================================================

    @staticmethod
    def get_statistics(db: Session) -> dict:
        """Dashboard totals for the aged_inventory table"""
        is_flagged = AgedInventory.flagged.is_(True)
        row = db.query(
            func.count(func.distinct(AgedInventory.style)).label("total_styles"),
            func.count(AgedInventory.id).label("total_records"),
            func.coalesce(func.sum(AgedInventory.total_remaining), 0).label("total_units"),
            func.coalesce(func.sum(AgedInventory.total_value), 0).label("total_value"),
            func.coalesce(func.sum(case((is_flagged, 1), else_=0)), 0).label("flagged_count"),
            func.coalesce(func.sum(case((is_flagged, AgedInventory.total_remaining), else_=0)), 0).label("flagged_units"),
            func.max(AgedInventory.updated_at).label("last_updated"),
        ).one()

        return {
            "total_styles": row.total_styles or 0,
            "total_records": row.total_records or 0,
            "total_units": float(row.total_units or 0),
            "total_value": float(row.total_value or 0),
            "flagged_count": int(row.flagged_count or 0),
            "flagged_units": float(row.flagged_units or 0),
            "last_updated": row.last_updated,
        }

    @staticmethod
    def group_by_age_bracket(db: Session) -> List[dict]:
        """Counts, units and value per age bracket, oldest bracket first"""
        results = db.query(
            AgedInventory.age_bracket,
            func.count(AgedInventory.id).label("count"),
            func.sum(AgedInventory.total_remaining).label("units"),
            func.sum(AgedInventory.total_value).label("value"),
        ).filter(
            AgedInventory.age_bracket.isnot(None),
            AgedInventory.age_bracket != "",
        ).group_by(AgedInventory.age_bracket).order_by(func.max(AgedInventory.age_days).desc()).all()

        return [
            {
                "age_bracket": row.age_bracket,
                "count": row.count,
                "units": float(row.units or 0),
                "value": float(row.value or 0),
            }
            for row in results
        ]
