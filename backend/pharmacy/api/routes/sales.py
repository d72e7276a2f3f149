from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pharmacy.api.deps import get_db
from pharmacy.schemas.sale import SaleCreate
from pharmacy.services import sale_service

router = APIRouter()


@router.get("")
def list_sales(db: Session = Depends(get_db)):
    """Sales with their items, newest first."""
    return {"sales": [sale_service.to_api(s) for s in sale_service.list_sales(db)]}


@router.get("/{sale_id}")
def get_sale(sale_id: str, db: Session = Depends(get_db)):
    return {"sale": sale_service.to_api(sale_service.get_sale(db, sale_id))}


@router.post("", status_code=201)
def create_sale(payload: SaleCreate, db: Session = Depends(get_db)):
    """Checkout: insert the sale and its items and take the lines out of stock."""
    sale = sale_service.create_sale(db, payload.to_dict())
    return {"sale": sale_service.to_api(sale)}
