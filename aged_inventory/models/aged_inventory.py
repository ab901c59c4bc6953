"""
Aged Inventory model.
One row per style+color, rolled up from the SKU/size-level low-value report.
"""

from sqlalchemy import Column, Integer, String, Text, Numeric, Float, Boolean, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from aged_inventory.core.database import Base


class AgedInventory(Base):
    """Aged Inventory model - style+color aggregate of the low-value report"""
    __tablename__ = "aged_inventory"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    style = Column(String(100), nullable=False, index=True)
    color = Column(String(100), nullable=False, default="")
    commodity = Column(String(100), nullable=True)
    sizes = Column(Text, nullable=True)  # ", "-joined, already in canonical size order
    total_remaining = Column(Float, default=0, nullable=False)
    total_value = Column(Numeric(14, 2, asdecimal=False), default=0, nullable=False)
    total_current = Column(Float, default=0, nullable=False)
    total_committed = Column(Float, default=0, nullable=False)
    unit_cost_avg = Column(Numeric(12, 4, asdecimal=False), default=0, nullable=False)
    age_days = Column(Integer, default=0, nullable=False, index=True)
    age_bracket = Column(String(60), nullable=True, index=True)
    trsc_date = Column(String(30), nullable=True)  # last stock-in date, as reported
    po_no = Column(String(60), nullable=True)
    image_url = Column(Text, nullable=True)
    flagged = Column(Boolean, default=False, nullable=False, index=True)  # operator-owned
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint('style', 'color', name='uq_aged_style_color'),
    )

    def __repr__(self):
        return f"<AgedInventory(style='{self.style}', color='{self.color}', age_days={self.age_days}, flagged={self.flagged})>"
