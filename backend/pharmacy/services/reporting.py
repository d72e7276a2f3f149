"""
Dashboard and report aggregation.

Everything here works on API-shaped (camelCase) dicts so the HTTP handlers
and the local JSON store produce identical numbers from identical data.
"""
import re
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

from pharmacy.core.config import settings
from pharmacy.core.exceptions import ValidationFailed
from pharmacy.core.validation import parse_date

ACTIVITY_LIMIT = 10
ACTIVITY_PER_KIND = 5
ANALYTICS_WINDOW_DAYS = 30
_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_period(start, end) -> Tuple[date, date]:
    start_day, end_day = parse_date(start), parse_date(end)
    if start_day is None or end_day is None:
        raise ValidationFailed(["Report period needs valid start and end dates"])
    if start_day > end_day:
        raise ValidationFailed(["Report start date must not be after end date"])
    return start_day, end_day


def check_month(month: str) -> str:
    if not isinstance(month, str) or not _MONTH_RE.match(month):
        raise ValidationFailed(["Month must look like YYYY-MM"])
    return month


def _moment(value) -> datetime:
    """Sort key for ISO timestamps; missing or bad values sort last."""
    if not isinstance(value, str) or not value:
        return _EPOCH
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def _amount(record: dict, key: str = "total") -> float:
    return float(record.get(key) or 0)


def min_stock_of(med: dict) -> int:
    value = med.get("minStock")
    return settings.DEFAULT_MIN_STOCK if value is None else value


def is_low_stock(med: dict) -> bool:
    return (med.get("stock") or 0) <= min_stock_of(med)


def alert_severity(stock: int) -> str:
    if stock == 0:
        return "critical"
    if stock < 5:
        return "high"
    return "medium"


def _active(medicines: Iterable[dict]) -> List[dict]:
    return [m for m in medicines if m.get("active", True)]


def low_stock_alerts(medicines: Iterable[dict]) -> List[dict]:
    return [
        {
            "id": m["id"],
            "name": m.get("name"),
            "currentStock": m.get("stock") or 0,
            "minStock": min_stock_of(m),
            "severity": alert_severity(m.get("stock") or 0),
        }
        for m in _active(medicines)
        if is_low_stock(m)
    ]


def dashboard_stats(medicines: Iterable[dict], sales: Iterable[dict], prescriptions: Iterable[dict], today: date) -> dict:
    active = _active(medicines)
    todays_sales = [s for s in sales if parse_date(s.get("timestamp")) == today]
    return {
        "totalMedicines": len(active),
        "todaySales": len(todays_sales),
        "todayRevenue": round(sum(_amount(s) for s in todays_sales), 2),
        "lowStockAlerts": sum(1 for m in active if is_low_stock(m)),
        "pendingPrescriptions": sum(1 for p in prescriptions if p.get("status") == "pending"),
    }


def recent_activity(sales: Iterable[dict], prescriptions: Iterable[dict], limit: int = ACTIVITY_LIMIT) -> List[dict]:
    """Latest sales and prescription updates merged into one feed, newest first."""
    latest_sales = sorted(sales, key=lambda s: _moment(s.get("timestamp")), reverse=True)[:ACTIVITY_PER_KIND]
    latest_rx = sorted(prescriptions, key=lambda p: _moment(p.get("updatedAt")), reverse=True)[:ACTIVITY_PER_KIND]

    activities = [
        {
            "type": "sale",
            "description": f"Sale to {s.get('customerName') or 'Customer'} - {_amount(s):.2f}",
            "timestamp": s.get("timestamp"),
        }
        for s in latest_sales
    ] + [
        {
            "type": "prescription",
            "description": f"Prescription for {p.get('patientName')} - {p.get('status')}",
            "timestamp": p.get("updatedAt"),
        }
        for p in latest_rx
    ]
    activities.sort(key=lambda a: _moment(a["timestamp"]), reverse=True)
    return activities[:limit]


def analytics_summary(medicines: Iterable[dict], sales: Iterable[dict], prescriptions: Iterable[dict], now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=ANALYTICS_WINDOW_DAYS)
    active = _active(medicines)
    window = [s for s in sales if _moment(s.get("timestamp")) >= since]
    return {
        "totalMedicines": len(active),
        "lowStockCount": sum(1 for m in active if is_low_stock(m)),
        "totalSales": round(sum(_amount(s) for s in window), 2),
        "totalTransactions": len(window),
        "totalPrescriptions": len(list(prescriptions)),
    }


def _within(value, start: date, end: date) -> bool:
    day = parse_date(value)
    return day is not None and start <= day <= end


def sales_report(sales: Iterable[dict], start: date, end: date) -> dict:
    selected = [s for s in sales if _within(s.get("timestamp"), start, end)]
    revenue = round(sum(_amount(s) for s in selected), 2)
    return {
        "period": {"start": start.isoformat(), "end": end.isoformat()},
        "totalSales": len(selected),
        "totalRevenue": revenue,
        "averageOrderValue": round(revenue / len(selected), 2) if selected else 0,
        "sales": selected,
    }


def inventory_report(medicines: Iterable[dict]) -> dict:
    active = _active(medicines)
    return {
        "totalItems": len(active),
        "totalValue": round(sum((m.get("stock") or 0) * _amount(m, "price") for m in active), 2),
        "lowStockItems": sum(1 for m in active if is_low_stock(m)),
        "outOfStockItems": sum(1 for m in active if (m.get("stock") or 0) == 0),
        "medicines": active,
    }


def prescription_report(prescriptions: Iterable[dict], start: date, end: date) -> dict:
    selected = [p for p in prescriptions if _within(p.get("createdAt"), start, end)]
    return {
        "period": {"start": start.isoformat(), "end": end.isoformat()},
        "totalPrescriptions": len(selected),
        "statusBreakdown": dict(Counter(p.get("status") for p in selected)),
        "prescriptions": selected,
    }


def employee_report(employees: Iterable[dict], time_entries: Iterable[dict], month: str) -> dict:
    employees = list(employees)
    entries = [e for e in time_entries if (e.get("date") or "").startswith(month)]

    hours = Counter()
    for entry in entries:
        hours[entry.get("employeeId")] += float(entry.get("hoursWorked") or 0)

    return {
        "period": month,
        "employees": employees,
        "timeEntries": entries,
        "hoursByEmployee": [
            {"employeeId": e["id"], "name": e.get("name"), "hoursWorked": round(hours.get(e["id"], 0.0), 2)}
            for e in employees
        ],
        "totalHours": round(sum(hours.values()), 2),
    }
