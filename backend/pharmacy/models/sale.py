from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime
from sqlalchemy.orm import relationship

from pharmacy.db.base import Base, new_id, utcnow


class Sale(Base):
    __tablename__ = "sales"

    id = Column(String(36), primary_key=True, default=new_id)
    sale_no = Column(String(50), unique=True, nullable=False)
    cust_name = Column(String(255), nullable=True, index=True)
    cust_phone = Column(String(20), nullable=True)
    total = Column(Numeric(10, 2), nullable=False)
    payment = Column(String(50), nullable=False, default="cash")
    sale_date = Column(DateTime(timezone=True), default=utcnow, index=True)

    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan")


class SaleItem(Base):
    """Line item: strong reference to the medicine plus a name/price snapshot."""
    __tablename__ = "sale_items"

    id = Column(String(36), primary_key=True, default=new_id)
    sale_id = Column(String(36), ForeignKey("sales.id", ondelete="CASCADE"), nullable=False)
    med_id = Column(String(36), ForeignKey("meds.id"), nullable=False)
    med_name = Column(String(255), nullable=False)
    qty = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)

    sale = relationship("Sale", back_populates="items")
