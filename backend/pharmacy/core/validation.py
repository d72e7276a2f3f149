"""Field validation for pharmacy entities.

Each validator takes a loosely typed field bag (the camelCase dict a form or
an API client sends) and returns a ValidationResult. Validators never raise
and never touch I/O; callers decide what to do with the messages.
"""
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional

from pharmacy.core.exceptions import ValidationFailed

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[1-9]\d{0,15}$")
_PHONE_NOISE_RE = re.compile(r"[\s\-()]")
_UNSAFE_CHARS_RE = re.compile(r"[<>'\"]")

PAYMENT_METHODS = ("cash", "card", "insurance", "other")
PRESCRIPTION_STATUSES = ("pending", "verified", "rejected", "dispensed")
TICKET_STATUSES = ("open", "in-progress", "resolved", "closed")
TICKET_PRIORITIES = ("low", "medium", "high")
STOCK_CHANGE_TYPES = ("add", "subtract")
EMPLOYEE_STATUSES = ("active", "inactive")


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ValidationFailed(self.errors)


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _present(data: Mapping, key: str) -> bool:
    return data.get(key) is not None


def to_number(value: Any) -> Optional[float]:
    """Coerce a form value to float; None when it is not a number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


def _is_int(number: Optional[float]) -> bool:
    return number is not None and not math.isinf(number) and number.is_integer()


def is_non_negative_int(value: Any) -> bool:
    number = to_number(value)
    return _is_int(number) and number >= 0


def is_positive_int(value: Any) -> bool:
    number = to_number(value)
    return _is_int(number) and number > 0


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date or datetime string. Returns None when unparseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
    except ValueError:
        return None


def validate_email(email: Any) -> bool:
    return isinstance(email, str) and bool(EMAIL_RE.match(email))


def validate_phone(phone: Any) -> bool:
    if not isinstance(phone, str):
        return False
    return bool(PHONE_RE.match(_PHONE_NOISE_RE.sub("", phone)))


def validate_medicine(data: Mapping) -> ValidationResult:
    errors = []

    if len(_text(data.get("name"))) < 2:
        errors.append("Medicine name must be at least 2 characters long")
    if len(_text(data.get("category"))) < 2:
        errors.append("Category must be at least 2 characters long")
    if len(_text(data.get("manufacturer"))) < 2:
        errors.append("Manufacturer must be at least 2 characters long")

    if _present(data, "stock") and not is_non_negative_int(data["stock"]):
        errors.append("Stock must be a non-negative integer")
    if _present(data, "minStock") and not is_non_negative_int(data["minStock"]):
        errors.append("Minimum stock must be a non-negative integer")
    if _present(data, "maxStock") and not is_non_negative_int(data["maxStock"]):
        errors.append("Maximum stock must be a non-negative integer")

    min_stock = to_number(data.get("minStock"))
    max_stock = to_number(data.get("maxStock"))
    if min_stock is not None and max_stock is not None and min_stock >= max_stock:
        errors.append("Maximum stock must be greater than minimum stock")

    if _present(data, "price"):
        price = to_number(data["price"])
        if price is None or price < 0:
            errors.append("Price must be a non-negative number")

    if data.get("expiryDate"):
        expiry = parse_date(data["expiryDate"])
        if expiry is None:
            errors.append("Invalid expiry date format")
        elif expiry <= date.today():
            errors.append("Expiry date must be in the future")

    if data.get("batchNumber") and len(_text(data["batchNumber"])) < 3:
        errors.append("Batch number must be at least 3 characters long")

    return ValidationResult(errors)


def validate_prescription(data: Mapping) -> ValidationResult:
    errors = []

    if len(_text(data.get("patientName"))) < 2:
        errors.append("Patient name must be at least 2 characters long")
    if len(_text(data.get("doctorName"))) < 2:
        errors.append("Doctor name must be at least 2 characters long")

    if _present(data, "patientAge"):
        age = to_number(data["patientAge"])
        if not _is_int(age) or age < 0 or age > 150:
            errors.append("Patient age must be a valid integer between 0 and 150")

    if data.get("patientPhone") and not validate_phone(data["patientPhone"]):
        errors.append("Invalid phone number format")

    medicines = data.get("medicines")
    if not isinstance(medicines, (list, tuple)) or len(medicines) == 0:
        errors.append("At least one medicine must be prescribed")
    else:
        for index, medicine in enumerate(medicines, start=1):
            if len(_text(medicine)) < 2:
                errors.append(f"Medicine {index} must be at least 2 characters long")

    return ValidationResult(errors)


def validate_sale(data: Mapping) -> ValidationResult:
    errors = []

    if data.get("customerName") and len(_text(data["customerName"])) < 2:
        errors.append("Customer name must be at least 2 characters long")
    if data.get("customerPhone") and not validate_phone(data["customerPhone"]):
        errors.append("Invalid phone number format")

    items = data.get("items")
    if not isinstance(items, (list, tuple)) or len(items) == 0:
        errors.append("At least one item must be added to the sale")
    else:
        for index, item in enumerate(items, start=1):
            item = item if isinstance(item, Mapping) else {}
            if not item.get("medicineId"):
                errors.append(f"Item {index}: Medicine ID is required")
            if len(_text(item.get("name"))) < 2:
                errors.append(f"Item {index}: Medicine name is required")
            if not is_positive_int(item.get("quantity")):
                errors.append(f"Item {index}: Quantity must be a positive integer")
            price = to_number(item.get("price"))
            if price is None or price <= 0:
                errors.append(f"Item {index}: Price must be a positive number")

    if _present(data, "total"):
        total = to_number(data["total"])
        if total is None or total < 0:
            errors.append("Total must be a non-negative number")

    if data.get("paymentMethod") and data["paymentMethod"] not in PAYMENT_METHODS:
        errors.append("Invalid payment method")

    return ValidationResult(errors)


def validate_employee(data: Mapping) -> ValidationResult:
    errors = []

    if len(_text(data.get("name"))) < 2:
        errors.append("Employee name must be at least 2 characters long")
    if not validate_email(data.get("email")):
        errors.append("Valid email address is required")
    if data.get("phone") and not validate_phone(data["phone"]):
        errors.append("Invalid phone number format")
    if len(_text(data.get("role"))) < 2:
        errors.append("Role must be at least 2 characters long")
    if len(_text(data.get("department"))) < 2:
        errors.append("Department must be at least 2 characters long")

    if _present(data, "salary"):
        salary = to_number(data["salary"])
        if salary is None or salary < 0:
            errors.append("Salary must be a non-negative number")

    if data.get("hireDate") and parse_date(data["hireDate"]) is None:
        errors.append("Invalid hire date format")
    if data.get("status") and data["status"] not in EMPLOYEE_STATUSES:
        errors.append("Status must be active or inactive")

    return ValidationResult(errors)


def validate_ticket(data: Mapping) -> ValidationResult:
    errors = []

    if len(_text(data.get("title"))) < 3:
        errors.append("Title must be at least 3 characters long")
    if not _text(data.get("description")):
        errors.append("Description is required")
    if not _text(data.get("category")):
        errors.append("Category is required")
    if data.get("priority") and data["priority"] not in TICKET_PRIORITIES:
        errors.append("Priority must be low, medium or high")

    return ValidationResult(errors)


def validate_stock_change(quantity: Any, change_type: Any) -> ValidationResult:
    errors = []
    if not is_positive_int(quantity):
        errors.append("Quantity must be a positive integer")
    if change_type not in STOCK_CHANGE_TYPES:
        errors.append("Type must be 'add' or 'subtract'")
    return ValidationResult(errors)


def validate_status(status: Any, allowed: tuple) -> ValidationResult:
    if status not in allowed:
        return ValidationResult([f"Status must be one of: {', '.join(allowed)}"])
    return ValidationResult()


def sanitize_string(value: str) -> str:
    return _UNSAFE_CHARS_RE.sub("", value.strip())


def sanitize_medicine(data: Mapping) -> dict:
    cleaned = dict(data)
    for key in ("name", "category", "strength", "manufacturer", "batchNumber", "location"):
        if isinstance(cleaned.get(key), str) and cleaned[key]:
            cleaned[key] = sanitize_string(cleaned[key])
    return cleaned
