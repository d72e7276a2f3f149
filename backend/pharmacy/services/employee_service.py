"""Staff records and time tracking (clock-in / clock-out)."""
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from pharmacy.core.audit import AuditLog
from pharmacy.core.exceptions import ConflictError, NotFoundError
from pharmacy.core.validation import parse_date, to_number, validate_employee
from pharmacy.models.staff import Staff, TimeLog
from pharmacy.services.common import as_utc, iso, to_money

# API field -> staff column
COLUMNS = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "role": "role",
    "department": "dept",
    "salary": "salary",
    "hireDate": "hire_date",
    "status": "status",
}


def to_api(emp: Staff) -> dict:
    return {
        "id": emp.id,
        "name": emp.name,
        "email": emp.email,
        "phone": emp.phone,
        "role": emp.role,
        "department": emp.dept,
        "salary": float(emp.salary) if emp.salary is not None else None,
        "hireDate": iso(emp.hire_date),
        "status": emp.status,
        "createdAt": iso(emp.created),
        "updatedAt": iso(emp.updated),
    }


def time_entry_to_api(entry: TimeLog) -> dict:
    return {
        "id": entry.id,
        "employeeId": entry.staff_id,
        "date": iso(entry.work_date),
        "clockIn": iso(entry.clock_in),
        "clockOut": iso(entry.clock_out),
        "hoursWorked": float(entry.hours) if entry.hours is not None else None,
    }


def _column_values(data: dict) -> dict:
    values = {}
    for field, column in COLUMNS.items():
        if data.get(field) is None:
            continue
        value = data[field]
        if field == "salary":
            value = to_money(to_number(value))
        elif field == "hireDate":
            value = parse_date(value)
        elif isinstance(value, str):
            value = value.strip()
        values[column] = value
    if "email" in values:
        values["email"] = values["email"].lower()
    return values


def _ensure_email_free(db: Session, email: str, exclude_id: Optional[str] = None):
    q = db.query(Staff).filter(Staff.email == email.strip().lower())
    if exclude_id:
        q = q.filter(Staff.id != exclude_id)
    if q.first():
        raise ConflictError("Email already registered")


def list_employees(db: Session, include_inactive: bool = False) -> List[Staff]:
    q = db.query(Staff)
    if not include_inactive:
        q = q.filter(Staff.status == "active")
    return q.order_by(Staff.name).all()


def get_employee(db: Session, employee_id: str) -> Staff:
    emp = db.query(Staff).filter(Staff.id == employee_id).first()
    if not emp:
        raise NotFoundError("Employee", employee_id)
    return emp


def create_employee(db: Session, data: dict) -> Staff:
    validate_employee(data).raise_for_errors()
    _ensure_email_free(db, data["email"])

    values = _column_values(data)
    values["status"] = "active"
    emp = Staff(**values)
    db.add(emp)
    db.commit()
    db.refresh(emp)

    AuditLog.log_action("create", "employee", emp.id, changes={"role": emp.role, "department": emp.dept})
    return emp


def update_employee(db: Session, employee_id: str, updates: dict) -> Staff:
    emp = get_employee(db, employee_id)
    merged = {**to_api(emp), **{k: v for k, v in updates.items() if v is not None}}
    validate_employee(merged).raise_for_errors()
    if updates.get("email"):
        _ensure_email_free(db, updates["email"], exclude_id=emp.id)

    for column, value in _column_values(updates).items():
        setattr(emp, column, value)
    emp.updated = datetime.now(timezone.utc)
    db.commit()
    db.refresh(emp)

    AuditLog.log_action("update", "employee", emp.id, changes=updates)
    return emp


def _open_entry(db: Session, employee_id: str) -> Optional[TimeLog]:
    return (
        db.query(TimeLog)
        .filter(TimeLog.staff_id == employee_id, TimeLog.clock_out.is_(None))
        .order_by(TimeLog.clock_in.desc())
        .first()
    )


def clock_in(db: Session, employee_id: str) -> TimeLog:
    get_employee(db, employee_id)
    if _open_entry(db, employee_id):
        raise ConflictError("Employee is already clocked in")

    now = datetime.now(timezone.utc)
    entry = TimeLog(staff_id=employee_id, work_date=now.date(), clock_in=now)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def worked_hours(start: datetime, end: datetime) -> Decimal:
    seconds = (as_utc(end) - as_utc(start)).total_seconds()
    return to_money(max(seconds, 0) / 3600)


def clock_out(db: Session, employee_id: str) -> TimeLog:
    get_employee(db, employee_id)
    entry = _open_entry(db, employee_id)
    if not entry:
        raise ConflictError("Employee is not clocked in")

    now = datetime.now(timezone.utc)
    entry.clock_out = now
    entry.hours = worked_hours(entry.clock_in, now)
    db.commit()
    db.refresh(entry)
    return entry


def list_time_entries(db: Session, employee_id: Optional[str] = None) -> List[TimeLog]:
    q = db.query(TimeLog)
    if employee_id:
        q = q.filter(TimeLog.staff_id == employee_id)
    return q.order_by(TimeLog.work_date.desc(), TimeLog.clock_in.desc()).all()
