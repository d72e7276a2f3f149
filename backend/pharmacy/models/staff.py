from sqlalchemy import Column, String, ForeignKey, Numeric, Date, DateTime
from sqlalchemy.orm import relationship

from pharmacy.db.base import Base, new_id, utcnow


class Staff(Base):
    __tablename__ = "staff"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    role = Column(String(100), nullable=False)
    dept = Column(String(100), nullable=False)
    salary = Column(Numeric(10, 2), nullable=True)
    hire_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default="active", index=True)
    created = Column(DateTime(timezone=True), default=utcnow)
    updated = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class TimeLog(Base):
    """One clock-in/clock-out pair. An entry with clock_out NULL is open."""
    __tablename__ = "time_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    staff_id = Column(String(36), ForeignKey("staff.id", ondelete="CASCADE"), nullable=False, index=True)
    work_date = Column(Date, nullable=False, index=True)
    clock_in = Column(DateTime(timezone=True), nullable=True)
    clock_out = Column(DateTime(timezone=True), nullable=True)
    hours = Column(Numeric(6, 2), nullable=True)
    created = Column(DateTime(timezone=True), default=utcnow)

    staff = relationship("Staff", backref="time_logs")
