"""Dashboard widgets, 30-day analytics and reports.

Aggregation lives in pharmacy.services.reporting so the local store computes
the same numbers from the same records.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmacy.api.deps import get_db
from pharmacy.services import (
    employee_service,
    medicine_service,
    prescription_service,
    reporting,
    sale_service,
)

router = APIRouter()


def _medicines(db: Session):
    return [medicine_service.to_api(m) for m in medicine_service.list_medicines(db)]


def _prescriptions(db: Session):
    return [prescription_service.to_api(rx) for rx in prescription_service.list_prescriptions(db)]


def _sales(db: Session, since: Optional[datetime] = None):
    return [sale_service.to_api(s) for s in sale_service.list_sales(db, since=since)]


@router.get("/dashboard/stats")
def dashboard_stats(db: Session = Depends(get_db)):
    today = datetime.now(timezone.utc).date()
    todays_sales = [sale_service.to_api(s) for s in sale_service.list_sales_for_day(db, today)]
    return {"stats": reporting.dashboard_stats(_medicines(db), todays_sales, _prescriptions(db), today)}


@router.get("/dashboard/activity")
def recent_activity(db: Session = Depends(get_db)):
    return {"activities": reporting.recent_activity(_sales(db), _prescriptions(db))}


@router.get("/dashboard/alerts")
def low_stock_alerts(db: Session = Depends(get_db)):
    return {"alerts": reporting.low_stock_alerts(_medicines(db))}


@router.get("/analytics")
def analytics(db: Session = Depends(get_db)):
    now = datetime.now(timezone.utc)
    since = now - timedelta(days=reporting.ANALYTICS_WINDOW_DAYS)
    return {"analytics": reporting.analytics_summary(_medicines(db), _sales(db, since), _prescriptions(db), now)}


@router.get("/reports/sales")
def sales_report(start: str = Query(...), end: str = Query(...), db: Session = Depends(get_db)):
    start_day, end_day = reporting.parse_period(start, end)
    return {"report": reporting.sales_report(_sales(db), start_day, end_day)}


@router.get("/reports/inventory")
def inventory_report(db: Session = Depends(get_db)):
    return {"report": reporting.inventory_report(_medicines(db))}


@router.get("/reports/prescriptions")
def prescription_report(start: str = Query(...), end: str = Query(...), db: Session = Depends(get_db)):
    start_day, end_day = reporting.parse_period(start, end)
    return {"report": reporting.prescription_report(_prescriptions(db), start_day, end_day)}


@router.get("/reports/employee")
def employee_report(month: str = Query(...), db: Session = Depends(get_db)):
    month = reporting.check_month(month)
    employees = [employee_service.to_api(e) for e in employee_service.list_employees(db)]
    entries = [employee_service.time_entry_to_api(e) for e in employee_service.list_time_entries(db)]
    return {"report": reporting.employee_report(employees, entries, month)}
