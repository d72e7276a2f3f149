"""Helpers shared by the service modules: timestamps, money, document numbers."""
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

CENT = Decimal("0.01")


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def iso(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def money_float(value) -> float:
    return float(value) if value is not None else 0.0


def format_number(prefix: str, day: date, sequence: int) -> str:
    """WF-20250108-0001 style document number."""
    return f"{prefix}-{day:%Y%m%d}-{sequence:04d}"


def next_number(db: Session, column, prefix: str) -> str:
    """Next per-day document number for `column` (sale_no, rx_no, ticket_no)."""
    today = datetime.now(timezone.utc).date()
    day_prefix = f"{prefix}-{today:%Y%m%d}-"
    issued = db.query(func.count()).filter(column.like(f"{day_prefix}%")).scalar() or 0
    return format_number(prefix, today, issued + 1)
