from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmacy.api.deps import get_db
from pharmacy.schemas.ticket import TicketCreate, TicketStatusUpdate
from pharmacy.services import ticket_service

router = APIRouter()


@router.get("")
def list_tickets(status: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return {"tickets": [ticket_service.to_api(t) for t in ticket_service.list_tickets(db, status)]}


@router.post("", status_code=201)
def create_ticket(payload: TicketCreate, db: Session = Depends(get_db)):
    ticket = ticket_service.create_ticket(db, payload.to_dict())
    return {"ticket": ticket_service.to_api(ticket)}


@router.put("/{ticket_id}/status")
def update_status(ticket_id: str, payload: TicketStatusUpdate, db: Session = Depends(get_db)):
    ticket = ticket_service.update_status(db, ticket_id, payload.status, payload.resolution)
    return {"ticket": ticket_service.to_api(ticket)}
