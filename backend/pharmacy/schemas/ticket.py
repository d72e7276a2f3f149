from typing import Optional

from pharmacy.schemas.base import CamelModel


class TicketCreate(CamelModel):
    title: str
    description: str
    category: str
    priority: Optional[str] = None
    created_by: Optional[str] = None
    assigned_to: Optional[str] = None


class TicketStatusUpdate(CamelModel):
    status: str
    resolution: Optional[str] = None
