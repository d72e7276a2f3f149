from typing import Optional

from pharmacy.schemas.base import CamelModel


class MedicineCreate(CamelModel):
    name: str
    category: str
    strength: Optional[str] = None
    manufacturer: str
    stock: Optional[int] = None
    min_stock: Optional[int] = None
    max_stock: Optional[int] = None
    price: Optional[float] = None
    expiry_date: Optional[str] = None
    batch_number: Optional[str] = None
    location: Optional[str] = None


class MedicineUpdate(CamelModel):
    name: Optional[str] = None
    category: Optional[str] = None
    strength: Optional[str] = None
    manufacturer: Optional[str] = None
    stock: Optional[int] = None
    min_stock: Optional[int] = None
    max_stock: Optional[int] = None
    price: Optional[float] = None
    expiry_date: Optional[str] = None
    batch_number: Optional[str] = None
    location: Optional[str] = None


class StockChange(CamelModel):
    quantity: int
    type: str  # add | subtract
