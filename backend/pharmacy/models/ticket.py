from sqlalchemy import Column, String, DateTime, Text

from pharmacy.db.base import Base, new_id, utcnow


class Ticket(Base):
    """Help-desk ticket. Status: open -> in-progress -> resolved -> closed."""
    __tablename__ = "tickets"

    id = Column(String(36), primary_key=True, default=new_id)
    ticket_no = Column(String(50), unique=True, nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False)
    cat = Column(String(100), nullable=False, index=True)
    priority = Column(String(20), nullable=False, default="medium", index=True)
    status = Column(String(20), nullable=False, default="open", index=True)
    created_by = Column(String(255), nullable=True)
    assigned_to = Column(String(255), nullable=True)
    resolution = Column(Text, nullable=True)
    resolved_date = Column(DateTime(timezone=True), nullable=True)
    created = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
