"""
The repository interface shared by the remote (HTTP) and local (JSON file)
data stores.

Every method takes and returns camelCase dicts shaped like the HTTP API
bodies: one entity under its singular key (`{"medicine": {...}}`) or a list
under the plural key (`{"medicines": [...]}`).
"""
from abc import ABC, abstractmethod
from typing import Optional


class PharmacyRepository(ABC):
    source = "unknown"

    # Inventory

    @abstractmethod
    def get_medicines(self, search: Optional[str] = None) -> dict: ...

    @abstractmethod
    def add_medicine(self, data: dict) -> dict: ...

    @abstractmethod
    def update_medicine(self, medicine_id: str, updates: dict) -> dict: ...

    @abstractmethod
    def delete_medicine(self, medicine_id: str) -> dict: ...

    @abstractmethod
    def update_stock(self, medicine_id: str, quantity: int, change_type: str) -> dict: ...

    # Sales

    @abstractmethod
    def get_sales(self) -> dict: ...

    @abstractmethod
    def get_sale(self, sale_id: str) -> dict: ...

    @abstractmethod
    def create_sale(self, data: dict) -> dict: ...

    # Prescriptions

    @abstractmethod
    def get_prescriptions(self, status: Optional[str] = None) -> dict: ...

    @abstractmethod
    def add_prescription(self, data: dict) -> dict: ...

    @abstractmethod
    def update_prescription_status(self, prescription_id: str, status: str, dispensed_by: Optional[str] = None) -> dict: ...

    @abstractmethod
    def verify_prescription(self, prescription_id: str, verified_by: Optional[str], notes: Optional[str], approved: bool) -> dict: ...

    # Employees and time tracking

    @abstractmethod
    def get_employees(self) -> dict: ...

    @abstractmethod
    def add_employee(self, data: dict) -> dict: ...

    @abstractmethod
    def update_employee(self, employee_id: str, updates: dict) -> dict: ...

    @abstractmethod
    def clock_in(self, employee_id: str) -> dict: ...

    @abstractmethod
    def clock_out(self, employee_id: str) -> dict: ...

    @abstractmethod
    def get_time_entries(self, employee_id: Optional[str] = None) -> dict: ...

    # Tickets

    @abstractmethod
    def get_tickets(self, status: Optional[str] = None) -> dict: ...

    @abstractmethod
    def create_ticket(self, data: dict) -> dict: ...

    @abstractmethod
    def update_ticket_status(self, ticket_id: str, status: str, resolution: Optional[str] = None) -> dict: ...

    # Dashboard and reports

    @abstractmethod
    def get_dashboard_stats(self) -> dict: ...

    @abstractmethod
    def get_recent_activity(self) -> dict: ...

    @abstractmethod
    def get_low_stock_alerts(self) -> dict: ...

    @abstractmethod
    def get_analytics(self) -> dict: ...

    @abstractmethod
    def get_sales_report(self, start: str, end: str) -> dict: ...

    @abstractmethod
    def get_inventory_report(self) -> dict: ...

    @abstractmethod
    def get_prescription_report(self, start: str, end: str) -> dict: ...

    @abstractmethod
    def get_employee_report(self, month: str) -> dict: ...

    def close(self) -> None:
        """Release held resources. Default: nothing to release."""
