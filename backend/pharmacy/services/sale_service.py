"""Sales: checkout with stock decrement, all in one transaction."""
import logging
from collections import OrderedDict
from datetime import datetime, time, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from pharmacy.core.audit import AuditLog
from pharmacy.core.exceptions import InsufficientStockError, NotFoundError, ValidationFailed
from pharmacy.core.validation import to_number, validate_sale
from pharmacy.models.medicine import Medicine, StockMove
from pharmacy.models.sale import Sale, SaleItem
from pharmacy.services.common import iso, money_float, next_number, to_money

logger = logging.getLogger(__name__)


def to_api(sale: Sale) -> dict:
    return {
        "id": sale.id,
        "saleNumber": sale.sale_no,
        "customerName": sale.cust_name,
        "customerPhone": sale.cust_phone,
        "items": [
            {
                "medicineId": item.med_id,
                "name": item.med_name,
                "quantity": item.qty,
                "price": money_float(item.price),
                "total": money_float(item.total),
            }
            for item in sale.items
        ],
        "total": money_float(sale.total),
        "paymentMethod": sale.payment,
        "timestamp": iso(sale.sale_date),
    }


def line_total(quantity, price) -> Decimal:
    return to_money(Decimal(str(to_number(price))) * int(to_number(quantity)))


def cart_total(items: List[dict]) -> Decimal:
    return to_money(sum((line_total(i["quantity"], i["price"]) for i in items), Decimal("0")))


def list_sales(db: Session, since: Optional[datetime] = None, until: Optional[datetime] = None) -> List[Sale]:
    q = db.query(Sale).options(selectinload(Sale.items))
    if since is not None:
        q = q.filter(Sale.sale_date >= since)
    if until is not None:
        q = q.filter(Sale.sale_date < until)
    return q.order_by(Sale.sale_date.desc()).all()


def list_sales_for_day(db: Session, day) -> List[Sale]:
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    end = datetime.combine(day, time.max, tzinfo=timezone.utc)
    return list_sales(db, since=start, until=end)


def get_sale(db: Session, sale_id: str) -> Sale:
    sale = db.query(Sale).options(selectinload(Sale.items)).filter(Sale.id == sale_id).first()
    if not sale:
        raise NotFoundError("Sale", sale_id)
    return sale


def create_sale(db: Session, data: dict) -> Sale:
    """
    Record a sale and take its lines out of stock.

    Every line is checked against locked medicine rows before anything is
    written; a line that would drive stock negative rejects the whole sale.
    The stored total is always the sum of the lines.
    """
    validate_sale(data).raise_for_errors()
    items = data["items"]

    # Same medicine on several lines counts once, with the summed quantity
    required = OrderedDict()
    for item in items:
        required[item["medicineId"]] = required.get(item["medicineId"], 0) + int(to_number(item["quantity"]))

    medicines = {}
    for medicine_id, quantity in required.items():
        med = (
            db.query(Medicine)
            .filter(Medicine.id == medicine_id, Medicine.active.is_(True))
            .with_for_update()
            .first()
        )
        if not med:
            db.rollback()
            raise ValidationFailed([f"Unknown medicine in sale: {medicine_id}"])
        if med.stock < quantity:
            db.rollback()
            raise InsufficientStockError(quantity, med.stock)
        medicines[medicine_id] = med

    total = cart_total(items)
    if data.get("total") is not None and to_money(to_number(data["total"])) != total:
        logger.warning(f"Sale total {data['total']} does not match cart total {total}; storing cart total")

    sale = Sale(
        sale_no=next_number(db, Sale.sale_no, "WF"),
        cust_name=(data.get("customerName") or "").strip() or None,
        cust_phone=(data.get("customerPhone") or "").strip() or None,
        total=total,
        payment=data.get("paymentMethod") or "cash",
    )
    for item in items:
        sale.items.append(SaleItem(
            med_id=item["medicineId"],
            med_name=item["name"].strip(),
            qty=int(to_number(item["quantity"])),
            price=to_money(to_number(item["price"])),
            total=line_total(item["quantity"], item["price"]),
        ))
    db.add(sale)
    db.flush()

    moves = []
    for medicine_id, quantity in required.items():
        med = medicines[medicine_id]
        previous_stock = med.stock
        med.stock = previous_stock - quantity
        med.updated = datetime.now(timezone.utc)
        db.add(StockMove(
            med_id=med.id,
            type="out",
            qty_change=quantity,
            old_stock=previous_stock,
            new_stock=med.stock,
            reason=f"Sale {sale.sale_no}",
            ref_type="sale",
            ref_id=sale.id,
        ))
        moves.append((med.id, quantity, previous_stock, med.stock))

    db.commit()
    db.refresh(sale)

    for medicine_id, quantity, previous_stock, new_stock in moves:
        AuditLog.log_stock_change(medicine_id, "out", quantity, previous_stock, new_stock, f"Sale {sale.sale_no}")
    AuditLog.log_action("create", "sale", sale.id, changes={"saleNumber": sale.sale_no, "total": str(total)})
    return sale
