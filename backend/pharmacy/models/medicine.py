"""
Medicine inventory ("meds") and its stock movement trail ("stock_moves").

Column names follow the abbreviated hosted schema; the API layer maps them
to the camelCase contract (cat -> category, mfg -> manufacturer, ...).
Delete is soft: rows are deactivated, never removed.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Boolean, Date, DateTime
from sqlalchemy.orm import relationship

from pharmacy.db.base import Base, new_id, utcnow


class Medicine(Base):
    __tablename__ = "meds"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, index=True)
    cat = Column(String(100), nullable=False, index=True)
    strength = Column(String(50), nullable=True)
    mfg = Column(String(255), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=10)
    max_stock = Column(Integer, nullable=False, default=100)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    exp_date = Column(Date, nullable=True, index=True)
    batch = Column(String(100), nullable=True)
    location = Column(String(100), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created = Column(DateTime(timezone=True), default=utcnow)
    updated = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Medicine {self.name} stock={self.stock}>"


class StockMove(Base):
    __tablename__ = "stock_moves"

    id = Column(String(36), primary_key=True, default=new_id)
    med_id = Column(String(36), ForeignKey("meds.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False)  # in | out
    qty_change = Column(Integer, nullable=False)
    old_stock = Column(Integer, nullable=False)
    new_stock = Column(Integer, nullable=False)
    reason = Column(String(255), nullable=True)
    ref_type = Column(String(50), nullable=True)  # adj | sale
    ref_id = Column(String(36), nullable=True)
    move_date = Column(DateTime(timezone=True), default=utcnow, index=True)

    medicine = relationship("Medicine", backref="stock_moves")
