"""Inventory reads/writes against the meds table, plus the stock endpoint logic."""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from pharmacy.core.audit import AuditLog
from pharmacy.core.config import settings
from pharmacy.core.exceptions import InsufficientStockError, NotFoundError
from pharmacy.core.validation import (
    parse_date,
    sanitize_medicine,
    to_number,
    validate_medicine,
    validate_stock_change,
)
from pharmacy.models.medicine import Medicine, StockMove
from pharmacy.services.common import iso, money_float, to_money

logger = logging.getLogger(__name__)

# API field -> meds column
COLUMNS = {
    "name": "name",
    "category": "cat",
    "strength": "strength",
    "manufacturer": "mfg",
    "stock": "stock",
    "minStock": "min_stock",
    "maxStock": "max_stock",
    "price": "price",
    "expiryDate": "exp_date",
    "batchNumber": "batch",
    "location": "location",
    "active": "active",
}
_INT_FIELDS = ("stock", "minStock", "maxStock")
_TEXT_FIELDS = ("name", "category", "strength", "manufacturer", "batchNumber", "location")


def to_api(med: Medicine) -> dict:
    return {
        "id": med.id,
        "name": med.name,
        "category": med.cat,
        "strength": med.strength,
        "manufacturer": med.mfg,
        "stock": med.stock,
        "minStock": med.min_stock,
        "maxStock": med.max_stock,
        "price": money_float(med.price),
        "expiryDate": iso(med.exp_date),
        "batchNumber": med.batch,
        "location": med.location,
        "active": med.active,
        "createdAt": iso(med.created),
        "updatedAt": iso(med.updated),
    }


def _column_values(data: dict) -> dict:
    """Map provided API fields to typed column values. Absent fields are skipped."""
    values = {}
    for field, column in COLUMNS.items():
        if field not in data or data[field] is None:
            continue
        value = data[field]
        if field in _INT_FIELDS:
            value = int(to_number(value))
        elif field == "price":
            value = to_money(to_number(value))
        elif field == "expiryDate":
            value = parse_date(value)
        elif field in _TEXT_FIELDS:
            value = value.strip() or None
        values[column] = value
    return values


def list_medicines(db: Session, search: Optional[str] = None) -> List[Medicine]:
    q = db.query(Medicine).filter(Medicine.active.is_(True))
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(Medicine.name.ilike(pattern), Medicine.cat.ilike(pattern)))
    return q.order_by(Medicine.name).all()


def get_medicine(db: Session, medicine_id: str) -> Medicine:
    med = db.query(Medicine).filter(Medicine.id == medicine_id).first()
    if not med:
        raise NotFoundError("Medicine", medicine_id)
    return med


def create_medicine(db: Session, data: dict) -> Medicine:
    data = sanitize_medicine(data)
    validate_medicine(data).raise_for_errors()

    values = _column_values(data)
    values.setdefault("stock", 0)
    values.setdefault("min_stock", settings.DEFAULT_MIN_STOCK)
    values.setdefault("max_stock", settings.DEFAULT_MAX_STOCK)
    values.setdefault("price", to_money(0))
    values["active"] = True

    med = Medicine(**values)
    db.add(med)
    db.commit()
    db.refresh(med)

    AuditLog.log_action("create", "medicine", med.id, changes={"name": med.name, "stock": med.stock})
    return med


def update_medicine(db: Session, medicine_id: str, updates: dict) -> Medicine:
    med = get_medicine(db, medicine_id)
    updates = sanitize_medicine(updates)

    # Validate the record as it will look after the update. A stored expiry
    # date that has since passed must not block unrelated edits.
    merged = {**to_api(med), **{k: v for k, v in updates.items() if v is not None}}
    if updates.get("expiryDate") is None:
        merged.pop("expiryDate", None)
    validate_medicine(merged).raise_for_errors()

    for column, value in _column_values(updates).items():
        setattr(med, column, value)
    med.updated = datetime.now(timezone.utc)
    db.commit()
    db.refresh(med)

    AuditLog.log_action("update", "medicine", med.id, changes=updates)
    return med


def deactivate_medicine(db: Session, medicine_id: str) -> Medicine:
    """Soft delete: the row stays for sale history and stock moves."""
    med = get_medicine(db, medicine_id)
    med.active = False
    db.commit()
    AuditLog.log_action("delete", "medicine", med.id)
    return med


def update_stock(db: Session, medicine_id: str, quantity, change_type: str) -> Medicine:
    """
    Add to or subtract from a medicine's stock.

    The row is locked for the read-modify-write (SELECT ... FOR UPDATE on
    Postgres), so concurrent callers cannot lose each other's updates.
    Subtracting more than is on hand is rejected, never clamped.
    """
    validate_stock_change(quantity, change_type).raise_for_errors()
    quantity = int(to_number(quantity))

    med = (
        db.query(Medicine)
        .filter(Medicine.id == medicine_id)
        .with_for_update()
        .first()
    )
    if not med:
        raise NotFoundError("Medicine", medicine_id)

    previous_stock = med.stock
    new_stock = previous_stock + quantity if change_type == "add" else previous_stock - quantity
    if new_stock < 0:
        db.rollback()
        raise InsufficientStockError(quantity, previous_stock)

    movement = "in" if change_type == "add" else "out"
    reason = "Manual Addition" if change_type == "add" else "Manual Reduction"
    med.stock = new_stock
    med.updated = datetime.now(timezone.utc)
    db.add(StockMove(
        med_id=med.id,
        type=movement,
        qty_change=quantity,
        old_stock=previous_stock,
        new_stock=new_stock,
        reason=reason,
        ref_type="adj",
    ))
    db.commit()
    db.refresh(med)

    AuditLog.log_stock_change(med.id, movement, quantity, previous_stock, new_stock, reason)
    return med
