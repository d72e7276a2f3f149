from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmacy.api.deps import get_db
from pharmacy.schemas.prescription import PrescriptionCreate, PrescriptionStatusUpdate, Verification
from pharmacy.services import prescription_service

router = APIRouter()


@router.get("")
def list_prescriptions(status: Optional[str] = Query(None), db: Session = Depends(get_db)):
    prescriptions = prescription_service.list_prescriptions(db, status)
    return {"prescriptions": [prescription_service.to_api(rx) for rx in prescriptions]}


@router.get("/{prescription_id}")
def get_prescription(prescription_id: str, db: Session = Depends(get_db)):
    rx = prescription_service.get_prescription(db, prescription_id)
    return {"prescription": prescription_service.to_api(rx)}


@router.post("", status_code=201)
def create_prescription(payload: PrescriptionCreate, db: Session = Depends(get_db)):
    rx = prescription_service.create_prescription(db, payload.to_dict())
    return {"prescription": prescription_service.to_api(rx)}


@router.put("/{prescription_id}/status")
def update_status(prescription_id: str, payload: PrescriptionStatusUpdate, db: Session = Depends(get_db)):
    """Idempotent: re-sending the current status returns the record unchanged."""
    rx = prescription_service.update_status(db, prescription_id, payload.status, payload.dispensed_by)
    return {"prescription": prescription_service.to_api(rx)}


@router.post("/{prescription_id}/verify")
def verify_prescription(prescription_id: str, payload: Verification, db: Session = Depends(get_db)):
    rx = prescription_service.verify(db, prescription_id, payload.verified_by, payload.notes, payload.approved)
    return {"prescription": prescription_service.to_api(rx)}
