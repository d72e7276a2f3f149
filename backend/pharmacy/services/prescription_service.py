"""Prescriptions: intake, verification and the status workflow."""
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from pharmacy.core.audit import AuditLog
from pharmacy.core.exceptions import NotFoundError
from pharmacy.core.validation import (
    PRESCRIPTION_STATUSES,
    to_number,
    validate_prescription,
    validate_status,
)
from pharmacy.models.prescription import PrescribedMedicine, Prescription
from pharmacy.services.common import iso, next_number


def to_api(rx: Prescription) -> dict:
    verification = None
    if rx.verify_date is not None:
        verification = {
            "verifiedBy": rx.verified_by,
            "notes": rx.verify_notes,
            "approved": bool(rx.verify_ok),
            "timestamp": iso(rx.verify_date),
        }
    return {
        "id": rx.id,
        "prescriptionNumber": rx.rx_no,
        "patientName": rx.pat_name,
        "patientAge": rx.pat_age,
        "patientPhone": rx.pat_phone,
        "doctorName": rx.doc_name,
        "medicines": [m.med_name for m in rx.medicines],
        "status": rx.status,
        "notes": rx.notes,
        "verification": verification,
        "dispensedBy": rx.dispensed_by,
        "dispensedAt": iso(rx.disp_date),
        "createdAt": iso(rx.created),
        "updatedAt": iso(rx.updated),
    }


def list_prescriptions(db: Session, status: Optional[str] = None) -> List[Prescription]:
    q = db.query(Prescription).options(selectinload(Prescription.medicines))
    if status:
        q = q.filter(Prescription.status == status)
    return q.order_by(Prescription.created.desc()).all()


def get_prescription(db: Session, prescription_id: str) -> Prescription:
    rx = (
        db.query(Prescription)
        .options(selectinload(Prescription.medicines))
        .filter(Prescription.id == prescription_id)
        .first()
    )
    if not rx:
        raise NotFoundError("Prescription", prescription_id)
    return rx


def create_prescription(db: Session, data: dict) -> Prescription:
    validate_prescription(data).raise_for_errors()

    age = to_number(data.get("patientAge"))
    rx = Prescription(
        rx_no=next_number(db, Prescription.rx_no, "RX"),
        pat_name=data["patientName"].strip(),
        pat_age=int(age) if age is not None else None,
        pat_phone=(data.get("patientPhone") or "").strip() or None,
        doc_name=data["doctorName"].strip(),
        notes=data.get("notes"),
        status="pending",
    )
    for position, name in enumerate(data["medicines"]):
        rx.medicines.append(PrescribedMedicine(position=position, med_name=name.strip()))
    db.add(rx)
    db.commit()
    db.refresh(rx)

    AuditLog.log_action("create", "prescription", rx.id, changes={"prescriptionNumber": rx.rx_no})
    return rx


def update_status(db: Session, prescription_id: str, status: str, dispensed_by: Optional[str] = None) -> Prescription:
    """
    Move a prescription to `status`.

    Setting the status it already has is a no-op: no write, no audit entry,
    no timestamp change.
    """
    validate_status(status, PRESCRIPTION_STATUSES).raise_for_errors()
    rx = get_prescription(db, prescription_id)
    if rx.status == status:
        return rx

    previous = rx.status
    rx.status = status
    if status == "dispensed" and rx.disp_date is None:
        rx.disp_date = datetime.now(timezone.utc)
        rx.dispensed_by = dispensed_by
    rx.updated = datetime.now(timezone.utc)
    db.commit()
    db.refresh(rx)

    AuditLog.log_action("status", "prescription", rx.id, changes={"from": previous, "to": status})
    return rx


def verify(db: Session, prescription_id: str, verified_by: Optional[str], notes: Optional[str], approved: bool) -> Prescription:
    """Record a pharmacist's verification; approval -> verified, otherwise rejected."""
    rx = get_prescription(db, prescription_id)
    now = datetime.now(timezone.utc)
    rx.verified_by = verified_by
    rx.verify_notes = notes
    rx.verify_ok = bool(approved)
    rx.verify_date = now
    rx.status = "verified" if approved else "rejected"
    rx.updated = now
    db.commit()
    db.refresh(rx)

    AuditLog.log_action("verify", "prescription", rx.id, changes={"approved": bool(approved), "by": verified_by})
    return rx
