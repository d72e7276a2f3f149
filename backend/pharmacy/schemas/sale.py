from typing import List, Optional

from pharmacy.schemas.base import CamelModel


class SaleItemIn(CamelModel):
    medicine_id: str
    name: str
    quantity: int
    price: float


class SaleCreate(CamelModel):
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    items: List[SaleItemIn]
    total: Optional[float] = None  # informational; the stored total is recomputed
    payment_method: Optional[str] = None
