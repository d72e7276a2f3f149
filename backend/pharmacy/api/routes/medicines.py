"""Inventory: medicine CRUD and stock adjustments."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmacy.api.deps import get_db
from pharmacy.schemas.medicine import MedicineCreate, MedicineUpdate, StockChange
from pharmacy.services import medicine_service

router = APIRouter()


@router.get("")
def list_medicines(search: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """Active medicines ordered by name."""
    medicines = medicine_service.list_medicines(db, search)
    return {"medicines": [medicine_service.to_api(m) for m in medicines]}


@router.get("/{medicine_id}")
def get_medicine(medicine_id: str, db: Session = Depends(get_db)):
    return {"medicine": medicine_service.to_api(medicine_service.get_medicine(db, medicine_id))}


@router.post("", status_code=201)
def create_medicine(payload: MedicineCreate, db: Session = Depends(get_db)):
    med = medicine_service.create_medicine(db, payload.to_dict())
    return {"medicine": medicine_service.to_api(med)}


@router.put("/{medicine_id}")
def update_medicine(medicine_id: str, payload: MedicineUpdate, db: Session = Depends(get_db)):
    med = medicine_service.update_medicine(db, medicine_id, payload.to_dict())
    return {"medicine": medicine_service.to_api(med)}


@router.delete("/{medicine_id}")
def delete_medicine(medicine_id: str, db: Session = Depends(get_db)):
    med = medicine_service.deactivate_medicine(db, medicine_id)
    return {"medicine": medicine_service.to_api(med)}


@router.post("/{medicine_id}/stock")
def update_stock(medicine_id: str, payload: StockChange, db: Session = Depends(get_db)):
    """Add to or subtract from stock. Subtracting below zero is a 400."""
    med = medicine_service.update_stock(db, medicine_id, payload.quantity, payload.type)
    return {"medicine": medicine_service.to_api(med)}
