"""
PharmacyAPI: the one object the UI talks to.

DATA_BACKEND picks the store:
- "remote": HTTP only; unavailability is raised to the caller
- "local":  JSON file only
- "auto":   HTTP first, local file when the service is unavailable

In auto mode a fallback is never silent: it is logged as a WARNING, written
to the audit log, flips `degraded` and tags the result `"source": "local"`.
Rejections (validation, insufficient stock, conflicts) are never retried
locally. Local writes are not synced back to the service.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Optional

from pharmacy.client.base import PharmacyRepository
from pharmacy.client.local import LocalRepository
from pharmacy.client.remote import RemoteRepository
from pharmacy.core.audit import AuditLog
from pharmacy.core.config import settings
from pharmacy.core.exceptions import RemoteUnavailableError
from pharmacy.core.validation import (
    PRESCRIPTION_STATUSES,
    TICKET_STATUSES,
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
from pharmacy.services.common import money_float, to_money

logger = logging.getLogger(__name__)

MODES = ("remote", "local", "auto")


def cart_total(items) -> float:
    """Sale total recomputed from the cart lines."""
    total = sum((to_money(to_number(i["price"])) * int(to_number(i["quantity"])) for i in items), Decimal("0"))
    return money_float(to_money(total))


class PharmacyAPI:
    def __init__(
        self,
        mode: Optional[str] = None,
        remote: Optional[PharmacyRepository] = None,
        local: Optional[PharmacyRepository] = None,
    ):
        self.mode = (mode or settings.DATA_BACKEND).lower()
        if self.mode not in MODES:
            raise ValueError(f"DATA_BACKEND must be one of {', '.join(MODES)}, got {self.mode!r}")
        self._remote = remote
        self._local = local
        self._lock = threading.Lock()
        self.degraded = False
        self.fallbacks = 0

    @property
    def remote(self) -> PharmacyRepository:
        with self._lock:
            if self._remote is None:
                self._remote = RemoteRepository()
            return self._remote

    @property
    def local(self) -> PharmacyRepository:
        with self._lock:
            if self._local is None:
                self._local = LocalRepository()
            return self._local

    def _call(self, operation: str, *args) -> dict:
        if self.mode == "local":
            return {**getattr(self.local, operation)(*args), "source": "local"}

        try:
            result = getattr(self.remote, operation)(*args)
        except RemoteUnavailableError as e:
            if self.mode == "remote":
                raise
            logger.warning(f"Remote store unavailable for {operation} ({e.message}); degraded mode, using local store")
            AuditLog.log_fallback(operation, e.message)
            with self._lock:
                self.degraded = True
                self.fallbacks += 1
            return {**getattr(self.local, operation)(*args), "source": "local"}

        self.degraded = False
        return {**result, "source": "remote"}

    # Inventory

    def get_medicines(self, search: Optional[str] = None) -> dict:
        return self._call("get_medicines", search)

    def add_medicine(self, data: dict) -> dict:
        data = sanitize_medicine(data)
        validate_medicine(data).raise_for_errors()
        return self._call("add_medicine", data)

    def update_medicine(self, medicine_id: str, updates: dict) -> dict:
        return self._call("update_medicine", medicine_id, sanitize_medicine(updates))

    def delete_medicine(self, medicine_id: str) -> dict:
        return self._call("delete_medicine", medicine_id)

    def update_stock(self, medicine_id: str, quantity: int, change_type: str) -> dict:
        validate_stock_change(quantity, change_type).raise_for_errors()
        return self._call("update_stock", medicine_id, quantity, change_type)

    # Sales

    def get_sales(self) -> dict:
        return self._call("get_sales")

    def get_sale(self, sale_id: str) -> dict:
        return self._call("get_sale", sale_id)

    def create_sale(self, data: dict) -> dict:
        validate_sale(data).raise_for_errors()
        return self._call("create_sale", {**data, "total": cart_total(data["items"])})

    # Prescriptions

    def get_prescriptions(self, status: Optional[str] = None) -> dict:
        return self._call("get_prescriptions", status)

    def add_prescription(self, data: dict) -> dict:
        validate_prescription(data).raise_for_errors()
        return self._call("add_prescription", data)

    def update_prescription_status(self, prescription_id: str, status: str, dispensed_by: Optional[str] = None) -> dict:
        validate_status(status, PRESCRIPTION_STATUSES).raise_for_errors()
        return self._call("update_prescription_status", prescription_id, status, dispensed_by)

    def verify_prescription(self, prescription_id: str, verified_by: Optional[str], notes: Optional[str], approved: bool) -> dict:
        return self._call("verify_prescription", prescription_id, verified_by, notes, approved)

    # Employees

    def get_employees(self) -> dict:
        return self._call("get_employees")

    def add_employee(self, data: dict) -> dict:
        validate_employee(data).raise_for_errors()
        return self._call("add_employee", data)

    def update_employee(self, employee_id: str, updates: dict) -> dict:
        return self._call("update_employee", employee_id, updates)

    def clock_in(self, employee_id: str) -> dict:
        return self._call("clock_in", employee_id)

    def clock_out(self, employee_id: str) -> dict:
        return self._call("clock_out", employee_id)

    def get_time_entries(self, employee_id: Optional[str] = None) -> dict:
        return self._call("get_time_entries", employee_id)

    # Tickets

    def get_tickets(self, status: Optional[str] = None) -> dict:
        return self._call("get_tickets", status)

    def create_ticket(self, data: dict) -> dict:
        validate_ticket(data).raise_for_errors()
        return self._call("create_ticket", data)

    def update_ticket_status(self, ticket_id: str, status: str, resolution: Optional[str] = None) -> dict:
        validate_status(status, TICKET_STATUSES).raise_for_errors()
        return self._call("update_ticket_status", ticket_id, status, resolution)

    # Dashboard and reports

    def get_dashboard_stats(self) -> dict:
        return self._call("get_dashboard_stats")

    def get_recent_activity(self) -> dict:
        return self._call("get_recent_activity")

    def get_low_stock_alerts(self) -> dict:
        return self._call("get_low_stock_alerts")

    def get_analytics(self) -> dict:
        return self._call("get_analytics")

    def get_sales_report(self, start: str, end: str) -> dict:
        return self._call("get_sales_report", start, end)

    def get_inventory_report(self) -> dict:
        return self._call("get_inventory_report")

    def get_prescription_report(self, start: str, end: str) -> dict:
        return self._call("get_prescription_report", start, end)

    def get_employee_report(self, month: str) -> dict:
        return self._call("get_employee_report", month)

    def load_dashboard(self) -> dict:
        """Stats, recent activity and low-stock alerts, fetched in parallel."""
        with ThreadPoolExecutor(max_workers=3, thread_name_prefix="dashboard") as pool:
            stats = pool.submit(self.get_dashboard_stats)
            activity = pool.submit(self.get_recent_activity)
            alerts = pool.submit(self.get_low_stock_alerts)
            return {
                "stats": stats.result(),
                "activity": activity.result(),
                "alerts": alerts.result(),
            }

    def close(self) -> None:
        with self._lock:
            for repository in (self._remote, self._local):
                if repository is not None:
                    repository.close()
            self._remote = None
            self._local = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


_api: Optional[PharmacyAPI] = None
_api_lock = threading.Lock()


def get_pharmacy_api() -> PharmacyAPI:
    """Process-wide PharmacyAPI built from settings."""
    global _api
    with _api_lock:
        if _api is None:
            _api = PharmacyAPI()
        return _api
