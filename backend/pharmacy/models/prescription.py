"""
Prescriptions ("rx") and their prescribed medicines ("rx_meds").

Status flow: pending -> verified/rejected -> dispensed.
rx_meds.med_name is free text typed from the paper prescription: a weak
back-reference by name, deliberately not a foreign key into meds.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, DateTime, Text
from sqlalchemy.orm import relationship

from pharmacy.db.base import Base, new_id, utcnow


class Prescription(Base):
    __tablename__ = "rx"

    id = Column(String(36), primary_key=True, default=new_id)
    rx_no = Column(String(50), unique=True, nullable=True)
    pat_name = Column(String(255), nullable=False, index=True)
    pat_age = Column(Integer, nullable=True)
    pat_phone = Column(String(20), nullable=True)
    doc_name = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)
    notes = Column(Text, nullable=True)
    verified_by = Column(String(255), nullable=True)
    verify_notes = Column(Text, nullable=True)
    verify_ok = Column(Boolean, nullable=True)
    verify_date = Column(DateTime(timezone=True), nullable=True)
    dispensed_by = Column(String(255), nullable=True)
    disp_date = Column(DateTime(timezone=True), nullable=True)
    created = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    medicines = relationship(
        "PrescribedMedicine",
        back_populates="prescription",
        cascade="all, delete-orphan",
        order_by="PrescribedMedicine.position",
    )


class PrescribedMedicine(Base):
    __tablename__ = "rx_meds"

    id = Column(String(36), primary_key=True, default=new_id)
    rx_id = Column(String(36), ForeignKey("rx.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    med_name = Column(String(255), nullable=False)
    dosage = Column(Text, nullable=True)
    qty = Column(Integer, nullable=True)

    prescription = relationship("Prescription", back_populates="medicines")
