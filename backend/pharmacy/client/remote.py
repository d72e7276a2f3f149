"""
HTTP implementation of the repository, talking to the pharmacy API.

Failures are split in two:
- the service could not serve the call (network error, timeout, unknown
  route, auth failure, 5xx, tables missing) -> RemoteUnavailableError
- the service answered and refused (validation, insufficient stock,
  duplicate email, unknown record) -> the matching domain error
Only the first kind may be served from the local store by PharmacyAPI.
"""
import logging
from typing import Optional

import requests

from pharmacy.client.base import PharmacyRepository
from pharmacy.core.config import settings
from pharmacy.core.exceptions import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    RemoteRejectedError,
    RemoteUnavailableError,
    ValidationFailed,
)

logger = logging.getLogger(__name__)

# FastAPI's body for a route that does not exist
_UNKNOWN_ROUTE_DETAIL = "Not Found"


def _body(response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class RemoteRepository(PharmacyRepository):
    source = "remote"

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        session=None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.token = token or settings.API_TOKEN
        self.timeout = timeout if timeout is not None else settings.REMOTE_TIMEOUT_SECONDS
        # Anything with requests.Session.request's signature works (tests pass a TestClient)
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, json: Optional[dict] = None, params: Optional[dict] = None) -> dict:
        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {self.token}", "Content-Type": "application/json"}
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = self.session.request(method, url, json=json, params=params or None, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"{method} {path} failed: {type(e).__name__}: {e}")
            raise RemoteUnavailableError(f"Remote store unreachable: {type(e).__name__}") from e

        status = response.status_code
        if status < 400:
            return _body(response)

        body = _body(response)
        detail = body.get("detail") if isinstance(body.get("detail"), str) else f"HTTP {status}"
        logger.info(f"{method} {path} -> {status}: {detail}")

        if status >= 500 or status in (401, 403):
            raise RemoteUnavailableError(detail, status_code=status)
        if status == 404:
            if detail == _UNKNOWN_ROUTE_DETAIL or not body:
                raise RemoteUnavailableError(f"Endpoint {path} not available", status_code=status)
            raise NotFoundError(detail.replace(" not found", ""))
        if status == 409:
            raise ConflictError(detail)
        if status == 400 and detail == "Insufficient stock":
            raise InsufficientStockError(body.get("quantity"), body.get("currentStock"))
        if status in (400, 422) and body.get("errors"):
            raise ValidationFailed(body["errors"])
        raise RemoteRejectedError(detail, status_code=status)

    # Inventory

    def get_medicines(self, search=None):
        return self._request("GET", "/medicines", params={"search": search})

    def add_medicine(self, data):
        return self._request("POST", "/medicines", json=data)

    def update_medicine(self, medicine_id, updates):
        return self._request("PUT", f"/medicines/{medicine_id}", json=updates)

    def delete_medicine(self, medicine_id):
        return self._request("DELETE", f"/medicines/{medicine_id}")

    def update_stock(self, medicine_id, quantity, change_type):
        return self._request("POST", f"/medicines/{medicine_id}/stock", json={"quantity": quantity, "type": change_type})

    # Sales

    def get_sales(self):
        return self._request("GET", "/sales")

    def get_sale(self, sale_id):
        return self._request("GET", f"/sales/{sale_id}")

    def create_sale(self, data):
        return self._request("POST", "/sales", json=data)

    # Prescriptions

    def get_prescriptions(self, status=None):
        return self._request("GET", "/prescriptions", params={"status": status})

    def add_prescription(self, data):
        return self._request("POST", "/prescriptions", json=data)

    def update_prescription_status(self, prescription_id, status, dispensed_by=None):
        return self._request(
            "PUT", f"/prescriptions/{prescription_id}/status",
            json={"status": status, "dispensedBy": dispensed_by},
        )

    def verify_prescription(self, prescription_id, verified_by, notes, approved):
        return self._request(
            "POST", f"/prescriptions/{prescription_id}/verify",
            json={"verifiedBy": verified_by, "notes": notes, "approved": approved},
        )

    # Employees

    def get_employees(self):
        return self._request("GET", "/employees")

    def add_employee(self, data):
        return self._request("POST", "/employees", json=data)

    def update_employee(self, employee_id, updates):
        return self._request("PUT", f"/employees/{employee_id}", json=updates)

    def clock_in(self, employee_id):
        return self._request("POST", f"/employees/{employee_id}/clock-in")

    def clock_out(self, employee_id):
        return self._request("POST", f"/employees/{employee_id}/clock-out")

    def get_time_entries(self, employee_id=None):
        return self._request("GET", "/time-entries", params={"employeeId": employee_id})

    # Tickets

    def get_tickets(self, status=None):
        return self._request("GET", "/tickets", params={"status": status})

    def create_ticket(self, data):
        return self._request("POST", "/tickets", json=data)

    def update_ticket_status(self, ticket_id, status, resolution=None):
        return self._request("PUT", f"/tickets/{ticket_id}/status", json={"status": status, "resolution": resolution})

    # Dashboard and reports

    def get_dashboard_stats(self):
        return self._request("GET", "/dashboard/stats")

    def get_recent_activity(self):
        return self._request("GET", "/dashboard/activity")

    def get_low_stock_alerts(self):
        return self._request("GET", "/dashboard/alerts")

    def get_analytics(self):
        return self._request("GET", "/analytics")

    def get_sales_report(self, start, end):
        return self._request("GET", "/reports/sales", params={"start": start, "end": end})

    def get_inventory_report(self):
        return self._request("GET", "/reports/inventory")

    def get_prescription_report(self, start, end):
        return self._request("GET", "/reports/prescriptions", params={"start": start, "end": end})

    def get_employee_report(self, month):
        return self._request("GET", "/reports/employee", params={"month": month})

    def close(self):
        self.session.close()
