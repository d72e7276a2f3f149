from pharmacy.models.medicine import Medicine, StockMove
from pharmacy.models.sale import Sale, SaleItem
from pharmacy.models.prescription import Prescription, PrescribedMedicine
from pharmacy.models.staff import Staff, TimeLog
from pharmacy.models.ticket import Ticket

__all__ = [
    "Medicine", "StockMove", "Sale", "SaleItem", "Prescription",
    "PrescribedMedicine", "Staff", "TimeLog", "Ticket",
]
