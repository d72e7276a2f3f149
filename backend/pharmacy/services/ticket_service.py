"""Help-desk tickets."""
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from pharmacy.core.audit import AuditLog
from pharmacy.core.exceptions import NotFoundError
from pharmacy.core.validation import TICKET_STATUSES, validate_status, validate_ticket
from pharmacy.models.ticket import Ticket
from pharmacy.services.common import iso, next_number

CLOSING_STATUSES = ("resolved", "closed")


def to_api(ticket: Ticket) -> dict:
    return {
        "id": ticket.id,
        "ticketNumber": ticket.ticket_no,
        "title": ticket.title,
        "description": ticket.description,
        "category": ticket.cat,
        "priority": ticket.priority,
        "status": ticket.status,
        "createdBy": ticket.created_by,
        "assignedTo": ticket.assigned_to,
        "resolution": ticket.resolution,
        "resolvedAt": iso(ticket.resolved_date),
        "createdAt": iso(ticket.created),
        "updatedAt": iso(ticket.updated),
    }


def list_tickets(db: Session, status: Optional[str] = None) -> List[Ticket]:
    q = db.query(Ticket)
    if status:
        q = q.filter(Ticket.status == status)
    return q.order_by(Ticket.created.desc()).all()


def get_ticket(db: Session, ticket_id: str) -> Ticket:
    ticket = db.query(Ticket).filter(Ticket.id == ticket_id).first()
    if not ticket:
        raise NotFoundError("Ticket", ticket_id)
    return ticket


def create_ticket(db: Session, data: dict) -> Ticket:
    validate_ticket(data).raise_for_errors()
    ticket = Ticket(
        ticket_no=next_number(db, Ticket.ticket_no, "TKT"),
        title=data["title"].strip(),
        description=data["description"].strip(),
        cat=data["category"].strip(),
        priority=data.get("priority") or "medium",
        status="open",
        created_by=data.get("createdBy"),
        assigned_to=data.get("assignedTo"),
    )
    db.add(ticket)
    db.commit()
    db.refresh(ticket)

    AuditLog.log_action("create", "ticket", ticket.id, changes={"ticketNumber": ticket.ticket_no})
    return ticket


def update_status(db: Session, ticket_id: str, status: str, resolution: Optional[str] = None) -> Ticket:
    """Move a ticket to `status`. Repeating the current status changes nothing."""
    validate_status(status, TICKET_STATUSES).raise_for_errors()
    ticket = get_ticket(db, ticket_id)
    if ticket.status == status:
        return ticket

    previous = ticket.status
    ticket.status = status
    if status in CLOSING_STATUSES and ticket.resolved_date is None:
        ticket.resolved_date = datetime.now(timezone.utc)
    if resolution:
        ticket.resolution = resolution
    ticket.updated = datetime.now(timezone.utc)
    db.commit()
    db.refresh(ticket)

    AuditLog.log_action("status", "ticket", ticket.id, changes={"from": previous, "to": status})
    return ticket
