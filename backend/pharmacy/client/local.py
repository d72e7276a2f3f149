"""
Local JSON-file implementation of the repository.

The whole store is one JSON object with a top-level array per entity,
seeded with sample data the first time it is opened. Lookups are linear
scans. Writes go to a temp file first and replace the store atomically.

Differences from the HTTP service, kept on purpose for offline use:
- subtracting more stock than is on hand clamps at zero instead of failing
  (sales decrement stock the same way)
- deleting a medicine removes it instead of deactivating it
"""
import copy
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pharmacy.client.base import PharmacyRepository
from pharmacy.core.audit import AuditLog
from pharmacy.core.config import settings
from pharmacy.core.exceptions import ConflictError, NotFoundError, PharmacyError, ValidationFailed
from pharmacy.core.validation import (
    PRESCRIPTION_STATUSES,
    TICKET_STATUSES,
    parse_date,
    sanitize_medicine,
    to_number,
    validate_employee,
    validate_medicine,
    validate_prescription,
    validate_sale,
    validate_status,
    validate_stock_change,
    validate_ticket,
)
from pharmacy.db.base import new_id
from pharmacy.db.seed import SAMPLE_EMPLOYEES, SAMPLE_MEDICINES, SAMPLE_PRESCRIPTIONS
from pharmacy.services import employee_service, medicine_service, reporting
from pharmacy.services.common import format_number, money_float, to_money

logger = logging.getLogger(__name__)

COLLECTIONS = ("medicines", "sales", "prescriptions", "employees", "timeEntries", "tickets")

# Fields callers may set on add and update.
MEDICINE_FIELDS = tuple(f for f in medicine_service.COLUMNS if f != "active")
EMPLOYEE_FIELDS = tuple(employee_service.COLUMNS)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def sample_document() -> dict:
    """A fresh store: sample medicines, staff and prescriptions, nothing else."""
    now = _now()
    today = datetime.now(timezone.utc).date()
    document = {name: [] for name in COLLECTIONS}
    for data in SAMPLE_MEDICINES:
        document["medicines"].append({**data, "id": new_id(), "active": True, "createdAt": now, "updatedAt": now})
    for data in SAMPLE_EMPLOYEES:
        document["employees"].append({**data, "id": new_id(), "status": "active", "createdAt": now, "updatedAt": now})
    for sequence, data in enumerate(SAMPLE_PRESCRIPTIONS, start=1):
        document["prescriptions"].append({
            **data,
            "id": new_id(),
            "prescriptionNumber": format_number("RX", today, sequence),
            "verification": None,
            "createdAt": now,
            "updatedAt": now,
        })
    return document


class LocalStore:
    """
    The JSON file, explicitly opened and closed.

    All access goes through the store's lock, so one store object can be
    shared by the threads PharmacyAPI.load_dashboard fans out to.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.LOCAL_STORE_PATH)
        self._lock = threading.RLock()
        self._data = None

    def open(self) -> "LocalStore":
        with self._lock:
            if self._data is not None:
                return self
            if self.path.exists():
                try:
                    with open(self.path, "r", encoding="utf-8") as f:
                        data = json.load(f)
                except (OSError, ValueError) as e:
                    raise PharmacyError(f"Local store {self.path} is unreadable: {e}") from e
                for name in COLLECTIONS:
                    data.setdefault(name, [])
                self._data = data
            else:
                logger.info(f"Creating local store at {self.path} with sample data")
                self._data = sample_document()
                self._save()
        return self

    def close(self) -> None:
        with self._lock:
            self._data = None

    @property
    def is_open(self) -> bool:
        return self._data is not None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _require_open(self) -> dict:
        if self._data is None:
            raise PharmacyError("Local store is not open")
        return self._data

    def read(self, collection: str) -> list:
        """Deep copy of one collection; callers may mutate it freely."""
        with self._lock:
            return copy.deepcopy(self._require_open()[collection])

    @contextmanager
    def transaction(self):
        """Yield the live document under the lock. Saves on success; any failure, saving included, restores the snapshot."""
        with self._lock:
            data = self._require_open()
            snapshot = copy.deepcopy(data)
            try:
                yield data
                self._save()
            except Exception:
                self._data = snapshot
                raise

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".pharmacy-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


def _find(records: list, record_id: str, resource: str) -> dict:
    for record in records:
        if record.get("id") == record_id:
            return record
    raise NotFoundError(resource, record_id)


def _next_number(records: list, key: str, prefix: str) -> str:
    today = datetime.now(timezone.utc).date()
    day_prefix = f"{prefix}-{today:%Y%m%d}-"
    issued = sum(1 for r in records if (r.get(key) or "").startswith(day_prefix))
    return format_number(prefix, today, issued + 1)


def _newest_first(records: list, key: str) -> list:
    return sorted(records, key=lambda r: r.get(key) or "", reverse=True)


def _medicine_fields(data: dict) -> dict:
    """Provided medicine fields, normalized to the types the API returns."""
    values = {}
    for field, value in data.items():
        if field not in MEDICINE_FIELDS or value is None:
            continue
        if field in ("stock", "minStock", "maxStock"):
            value = int(to_number(value))
        elif field == "price":
            value = money_float(to_money(to_number(value)))
        elif field == "expiryDate":
            day = parse_date(value)
            value = day.isoformat() if day else None
        elif isinstance(value, str):
            value = value.strip()
        values[field] = value
    return values


class LocalRepository(PharmacyRepository):
    source = "local"

    def __init__(self, store: Optional[LocalStore] = None):
        self.store = store or LocalStore()
        self.store.open()

    # Inventory

    def get_medicines(self, search=None):
        medicines = [m for m in self.store.read("medicines") if m.get("active", True)]
        if search:
            needle = search.lower()
            medicines = [
                m for m in medicines
                if needle in (m.get("name") or "").lower() or needle in (m.get("category") or "").lower()
            ]
        return {"medicines": sorted(medicines, key=lambda m: (m.get("name") or "").lower())}

    def add_medicine(self, data):
        data = sanitize_medicine(data)
        validate_medicine(data).raise_for_errors()

        now = _now()
        medicine = {
            "stock": 0,
            "minStock": settings.DEFAULT_MIN_STOCK,
            "maxStock": settings.DEFAULT_MAX_STOCK,
            "price": 0.0,
            **_medicine_fields(data),
            "id": new_id(),
            "active": True,
            "createdAt": now,
            "updatedAt": now,
        }
        with self.store.transaction() as doc:
            doc["medicines"].append(medicine)
        AuditLog.log_action("create", "medicine", medicine["id"], changes={"name": medicine["name"]}, source="local")
        return {"medicine": copy.deepcopy(medicine)}

    def update_medicine(self, medicine_id, updates):
        updates = sanitize_medicine(updates)
        with self.store.transaction() as doc:
            medicine = _find(doc["medicines"], medicine_id, "Medicine")
            merged = {**medicine, **{k: v for k, v in updates.items() if v is not None}}
            if updates.get("expiryDate") is None:
                merged.pop("expiryDate", None)
            validate_medicine(merged).raise_for_errors()

            medicine.update(_medicine_fields(updates))
            medicine["updatedAt"] = _now()
            result = copy.deepcopy(medicine)
        AuditLog.log_action("update", "medicine", medicine_id, changes=updates, source="local")
        return {"medicine": result}

    def delete_medicine(self, medicine_id):
        with self.store.transaction() as doc:
            medicine = _find(doc["medicines"], medicine_id, "Medicine")
            doc["medicines"].remove(medicine)
        AuditLog.log_action("delete", "medicine", medicine_id, source="local")
        return {"medicine": {**medicine, "active": False}}

    def update_stock(self, medicine_id, quantity, change_type):
        validate_stock_change(quantity, change_type).raise_for_errors()
        quantity = int(to_number(quantity))

        with self.store.transaction() as doc:
            medicine = _find(doc["medicines"], medicine_id, "Medicine")
            previous_stock = medicine.get("stock") or 0
            if change_type == "add":
                medicine["stock"] = previous_stock + quantity
            else:
                medicine["stock"] = max(0, previous_stock - quantity)
            medicine["updatedAt"] = _now()
            result = copy.deepcopy(medicine)

        movement = "in" if change_type == "add" else "out"
        reason = "Manual Addition" if change_type == "add" else "Manual Reduction"
        AuditLog.log_stock_change(medicine_id, movement, quantity, previous_stock, result["stock"], reason, source="local")
        return {"medicine": result}

    # Sales

    def get_sales(self):
        return {"sales": _newest_first(self.store.read("sales"), "timestamp")}

    def get_sale(self, sale_id):
        return {"sale": _find(self.store.read("sales"), sale_id, "Sale")}

    def create_sale(self, data):
        validate_sale(data).raise_for_errors()

        items = [
            {
                "medicineId": item["medicineId"],
                "name": item["name"].strip(),
                "quantity": int(to_number(item["quantity"])),
                "price": money_float(to_money(to_number(item["price"]))),
                "total": money_float(to_money(to_money(to_number(item["price"])) * int(to_number(item["quantity"])))),
            }
            for item in data["items"]
        ]
        total = money_float(sum((to_money(i["total"]) for i in items), to_money(0)))

        moves = []
        with self.store.transaction() as doc:
            for item in items:
                medicine = next((m for m in doc["medicines"] if m.get("id") == item["medicineId"]), None)
                if medicine is None:
                    raise ValidationFailed([f"Unknown medicine in sale: {item['medicineId']}"])
                previous_stock = medicine.get("stock") or 0
                medicine["stock"] = max(0, previous_stock - item["quantity"])
                medicine["updatedAt"] = _now()
                moves.append((medicine["id"], item["quantity"], previous_stock, medicine["stock"]))

            sale = {
                "id": new_id(),
                "saleNumber": _next_number(doc["sales"], "saleNumber", "WF"),
                "customerName": (data.get("customerName") or "").strip() or None,
                "customerPhone": (data.get("customerPhone") or "").strip() or None,
                "items": items,
                "total": total,
                "paymentMethod": data.get("paymentMethod") or "cash",
                "timestamp": _now(),
            }
            doc["sales"].append(sale)

        for medicine_id, quantity, previous_stock, new_stock in moves:
            AuditLog.log_stock_change(
                medicine_id, "out", quantity, previous_stock, new_stock, f"Sale {sale['saleNumber']}", source="local",
            )
        AuditLog.log_action("create", "sale", sale["id"], changes={"total": total}, source="local")
        return {"sale": copy.deepcopy(sale)}

    # Prescriptions

    def get_prescriptions(self, status=None):
        prescriptions = self.store.read("prescriptions")
        if status:
            prescriptions = [p for p in prescriptions if p.get("status") == status]
        return {"prescriptions": _newest_first(prescriptions, "createdAt")}

    def add_prescription(self, data):
        validate_prescription(data).raise_for_errors()

        now = _now()
        age = to_number(data.get("patientAge"))
        with self.store.transaction() as doc:
            prescription = {
                "id": new_id(),
                "prescriptionNumber": _next_number(doc["prescriptions"], "prescriptionNumber", "RX"),
                "patientName": data["patientName"].strip(),
                "patientAge": int(age) if age is not None else None,
                "patientPhone": (data.get("patientPhone") or "").strip() or None,
                "doctorName": data["doctorName"].strip(),
                "medicines": [m.strip() for m in data["medicines"]],
                "status": "pending",
                "notes": data.get("notes"),
                "verification": None,
                "createdAt": now,
                "updatedAt": now,
            }
            doc["prescriptions"].append(prescription)
        AuditLog.log_action("create", "prescription", prescription["id"], source="local")
        return {"prescription": copy.deepcopy(prescription)}

    def update_prescription_status(self, prescription_id, status, dispensed_by=None):
        validate_status(status, PRESCRIPTION_STATUSES).raise_for_errors()
        with self.store.transaction() as doc:
            prescription = _find(doc["prescriptions"], prescription_id, "Prescription")
            previous = prescription.get("status")
            if previous != status:
                now = _now()
                prescription["status"] = status
                if status == "dispensed" and not prescription.get("dispensedAt"):
                    prescription["dispensedAt"] = now
                    prescription["dispensedBy"] = dispensed_by
                prescription["updatedAt"] = now
            result = copy.deepcopy(prescription)

        if previous != status:
            AuditLog.log_action("status", "prescription", prescription_id, changes={"from": previous, "to": status}, source="local")
        return {"prescription": result}

    def verify_prescription(self, prescription_id, verified_by, notes, approved):
        with self.store.transaction() as doc:
            prescription = _find(doc["prescriptions"], prescription_id, "Prescription")
            now = _now()
            prescription["verification"] = {
                "verifiedBy": verified_by,
                "notes": notes,
                "approved": bool(approved),
                "timestamp": now,
            }
            prescription["status"] = "verified" if approved else "rejected"
            prescription["updatedAt"] = now
            result = copy.deepcopy(prescription)
        AuditLog.log_action("verify", "prescription", prescription_id, changes={"approved": bool(approved)}, source="local")
        return {"prescription": result}

    # Employees

    def get_employees(self):
        employees = [e for e in self.store.read("employees") if e.get("status", "active") == "active"]
        return {"employees": sorted(employees, key=lambda e: (e.get("name") or "").lower())}

    @staticmethod
    def _ensure_email_free(employees: list, email: str, exclude_id: Optional[str] = None):
        email = email.strip().lower()
        for employee in employees:
            if employee.get("id") != exclude_id and (employee.get("email") or "").lower() == email:
                raise ConflictError("Email already registered")

    @staticmethod
    def _employee_fields(data: dict) -> dict:
        values = {}
        for field, value in data.items():
            if field not in EMPLOYEE_FIELDS or value is None:
                continue
            if field == "salary":
                value = money_float(to_money(to_number(value)))
            elif field == "hireDate":
                day = parse_date(value)
                value = day.isoformat() if day else None
            elif isinstance(value, str):
                value = value.strip()
            values[field] = value
        if "email" in values:
            values["email"] = values["email"].lower()
        return values

    def add_employee(self, data):
        validate_employee(data).raise_for_errors()
        now = _now()
        with self.store.transaction() as doc:
            self._ensure_email_free(doc["employees"], data["email"])
            employee = {
                **self._employee_fields(data),
                "id": new_id(),
                "status": "active",
                "createdAt": now,
                "updatedAt": now,
            }
            doc["employees"].append(employee)
        AuditLog.log_action("create", "employee", employee["id"], source="local")
        return {"employee": copy.deepcopy(employee)}

    def update_employee(self, employee_id, updates):
        with self.store.transaction() as doc:
            employee = _find(doc["employees"], employee_id, "Employee")
            merged = {**employee, **{k: v for k, v in updates.items() if v is not None}}
            validate_employee(merged).raise_for_errors()
            if updates.get("email"):
                self._ensure_email_free(doc["employees"], updates["email"], exclude_id=employee_id)

            employee.update(self._employee_fields(updates))
            employee["updatedAt"] = _now()
            result = copy.deepcopy(employee)
        AuditLog.log_action("update", "employee", employee_id, changes=updates, source="local")
        return {"employee": result}

    @staticmethod
    def _open_entry(entries: list, employee_id: str) -> Optional[dict]:
        open_entries = [e for e in entries if e.get("employeeId") == employee_id and not e.get("clockOut")]
        return _newest_first(open_entries, "clockIn")[0] if open_entries else None

    def clock_in(self, employee_id):
        with self.store.transaction() as doc:
            _find(doc["employees"], employee_id, "Employee")
            if self._open_entry(doc["timeEntries"], employee_id):
                raise ConflictError("Employee is already clocked in")
            now = datetime.now(timezone.utc)
            entry = {
                "id": new_id(),
                "employeeId": employee_id,
                "date": now.date().isoformat(),
                "clockIn": now.isoformat(),
                "clockOut": None,
                "hoursWorked": None,
            }
            doc["timeEntries"].append(entry)
        return {"timeEntry": copy.deepcopy(entry)}

    def clock_out(self, employee_id):
        with self.store.transaction() as doc:
            _find(doc["employees"], employee_id, "Employee")
            entry = self._open_entry(doc["timeEntries"], employee_id)
            if not entry:
                raise ConflictError("Employee is not clocked in")
            now = datetime.now(timezone.utc)
            started = datetime.fromisoformat(entry["clockIn"])
            seconds = max((now - started).total_seconds(), 0)
            entry["clockOut"] = now.isoformat()
            entry["hoursWorked"] = round(seconds / 3600, 2)
            result = copy.deepcopy(entry)
        return {"timeEntry": result}

    def get_time_entries(self, employee_id=None):
        entries = self.store.read("timeEntries")
        if employee_id:
            entries = [e for e in entries if e.get("employeeId") == employee_id]
        return {"timeEntries": _newest_first(entries, "clockIn")}

    # Tickets

    def get_tickets(self, status=None):
        tickets = self.store.read("tickets")
        if status:
            tickets = [t for t in tickets if t.get("status") == status]
        return {"tickets": _newest_first(tickets, "createdAt")}

    def create_ticket(self, data):
        validate_ticket(data).raise_for_errors()
        now = _now()
        with self.store.transaction() as doc:
            ticket = {
                "id": new_id(),
                "ticketNumber": _next_number(doc["tickets"], "ticketNumber", "TKT"),
                "title": data["title"].strip(),
                "description": data["description"].strip(),
                "category": data["category"].strip(),
                "priority": data.get("priority") or "medium",
                "status": "open",
                "createdBy": data.get("createdBy"),
                "assignedTo": data.get("assignedTo"),
                "resolution": None,
                "resolvedAt": None,
                "createdAt": now,
                "updatedAt": now,
            }
            doc["tickets"].append(ticket)
        AuditLog.log_action("create", "ticket", ticket["id"], source="local")
        return {"ticket": copy.deepcopy(ticket)}

    def update_ticket_status(self, ticket_id, status, resolution=None):
        validate_status(status, TICKET_STATUSES).raise_for_errors()
        with self.store.transaction() as doc:
            ticket = _find(doc["tickets"], ticket_id, "Ticket")
            previous = ticket.get("status")
            if previous != status:
                now = _now()
                ticket["status"] = status
                if status in ("resolved", "closed") and not ticket.get("resolvedAt"):
                    ticket["resolvedAt"] = now
                if resolution:
                    ticket["resolution"] = resolution
                ticket["updatedAt"] = now
            result = copy.deepcopy(ticket)

        if previous != status:
            AuditLog.log_action("status", "ticket", ticket_id, changes={"from": previous, "to": status}, source="local")
        return {"ticket": result}

    # Dashboard and reports

    def get_dashboard_stats(self):
        today = datetime.now(timezone.utc).date()
        return {"stats": reporting.dashboard_stats(
            self.store.read("medicines"), self.store.read("sales"), self.store.read("prescriptions"), today,
        )}

    def get_recent_activity(self):
        return {"activities": reporting.recent_activity(self.store.read("sales"), self.store.read("prescriptions"))}

    def get_low_stock_alerts(self):
        return {"alerts": reporting.low_stock_alerts(self.store.read("medicines"))}

    def get_analytics(self):
        return {"analytics": reporting.analytics_summary(
            self.store.read("medicines"), self.store.read("sales"), self.store.read("prescriptions"),
        )}

    def get_sales_report(self, start, end):
        start_day, end_day = reporting.parse_period(start, end)
        return {"report": reporting.sales_report(self.store.read("sales"), start_day, end_day)}

    def get_inventory_report(self):
        return {"report": reporting.inventory_report(self.store.read("medicines"))}

    def get_prescription_report(self, start, end):
        start_day, end_day = reporting.parse_period(start, end)
        return {"report": reporting.prescription_report(self.store.read("prescriptions"), start_day, end_day)}

    def get_employee_report(self, month):
        month = reporting.check_month(month)
        employees = self.get_employees()["employees"]
        return {"report": reporting.employee_report(employees, self.store.read("timeEntries"), month)}

    def close(self):
        self.store.close()
