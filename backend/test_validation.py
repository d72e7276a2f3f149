"""Validator rules for every entity."""
from datetime import date, timedelta

import pytest

from pharmacy.core.exceptions import ValidationFailed
from pharmacy.core.validation import (
    sanitize_medicine,
    sanitize_string,
    validate_email,
    validate_employee,
    validate_medicine,
    validate_phone,
    validate_prescription,
    validate_sale,
    validate_stock_change,
    validate_ticket,
)

from conftest import employee_payload, medicine_payload


# ==============================================================================
# MEDICINE
# ==============================================================================

def test_valid_medicine_passes():
    assert validate_medicine(medicine_payload()).is_valid


def test_min_stock_must_be_below_max_stock():
    result = validate_medicine(medicine_payload(minStock=100, maxStock=50))
    assert not result.is_valid
    assert "Maximum stock must be greater than minimum stock" in result.errors


def test_equal_min_and_max_stock_is_invalid():
    assert not validate_medicine(medicine_payload(minStock=20, maxStock=20)).is_valid


def test_expiry_date_must_be_in_the_future():
    yesterday = (date.today() - timedelta(days=1)).isoformat()
    result = validate_medicine(medicine_payload(expiryDate=yesterday))
    assert result.errors == ["Expiry date must be in the future"]


def test_unparseable_expiry_date():
    assert validate_medicine(medicine_payload(expiryDate="next year")).errors == ["Invalid expiry date format"]


def test_medicine_collects_every_error_in_order():
    result = validate_medicine({"name": "A", "category": "", "manufacturer": "X", "stock": -1, "price": "abc"})
    assert result.errors[0] == "Medicine name must be at least 2 characters long"
    assert "Stock must be a non-negative integer" in result.errors
    assert "Price must be a non-negative number" in result.errors


def test_numeric_strings_are_accepted():
    assert validate_medicine(medicine_payload(stock="12", price="3.50")).is_valid


def test_fractional_stock_is_rejected():
    assert "Stock must be a non-negative integer" in validate_medicine(medicine_payload(stock=1.5)).errors


def test_short_batch_number():
    assert validate_medicine(medicine_payload(batchNumber="AB")).errors == [
        "Batch number must be at least 3 characters long"
    ]


def test_raise_for_errors_keeps_first_message():
    with pytest.raises(ValidationFailed) as exc_info:
        validate_medicine({}).raise_for_errors()
    assert exc_info.value.message == "Medicine name must be at least 2 characters long"
    assert len(exc_info.value.errors) == 3


# ==============================================================================
# PRESCRIPTION / SALE
# ==============================================================================

def test_prescription_without_medicines_is_invalid():
    result = validate_prescription({"patientName": "John Smith", "doctorName": "Dr. Brown", "medicines": []})
    assert result.errors == ["At least one medicine must be prescribed"]


def test_prescription_age_bounds():
    base = {"patientName": "John Smith", "doctorName": "Dr. Brown", "medicines": ["Aspirin 75mg"]}
    assert validate_prescription({**base, "patientAge": 0}).is_valid
    assert validate_prescription({**base, "patientAge": 150}).is_valid
    assert not validate_prescription({**base, "patientAge": 151}).is_valid
    assert not validate_prescription({**base, "patientAge": -1}).is_valid


def test_prescription_short_medicine_name():
    result = validate_prescription({"patientName": "Jo", "doctorName": "Dr. B", "medicines": ["Aspirin", "X"]})
    assert result.errors == ["Medicine 2 must be at least 2 characters long"]


def test_sale_item_rules():
    result = validate_sale({"items": [{"medicineId": "", "name": "P", "quantity": 0, "price": 0}]})
    assert result.errors == [
        "Item 1: Medicine ID is required",
        "Item 1: Medicine name is required",
        "Item 1: Quantity must be a positive integer",
        "Item 1: Price must be a positive number",
    ]


def test_sale_needs_items_and_known_payment_method():
    result = validate_sale({"items": [], "paymentMethod": "bitcoin"})
    assert "At least one item must be added to the sale" in result.errors
    assert "Invalid payment method" in result.errors


# ==============================================================================
# EMPLOYEE / TICKET / STOCK
# ==============================================================================

def test_employee_invalid_email():
    assert validate_employee(employee_payload(email="not-an-email")).errors == ["Valid email address is required"]


def test_employee_phone_with_separators_is_valid():
    assert validate_employee(employee_payload(phone="+91 (987) 650-0000")).is_valid


@pytest.mark.parametrize("email,ok", [
    ("a@b.co", True),
    ("first.last@wellnessforever.com", True),
    ("a@b", False),
    ("a b@c.com", False),
])
def test_email_pattern(email, ok):
    assert validate_email(email) is ok


@pytest.mark.parametrize("phone,ok", [
    ("+919876543210", True),
    ("98-765-43210", True),
    ("0123456", False),
    ("phone", False),
])
def test_phone_pattern(phone, ok):
    assert validate_phone(phone) is ok


def test_ticket_title_length_and_priority():
    result = validate_ticket({"title": "Hi", "description": "Printer jammed", "category": "IT", "priority": "urgent"})
    assert result.errors == ["Title must be at least 3 characters long", "Priority must be low, medium or high"]


def test_stock_change_rules():
    assert validate_stock_change(5, "add").is_valid
    assert validate_stock_change(0, "subtract").errors == ["Quantity must be a positive integer"]
    assert validate_stock_change(3, "set").errors == ["Type must be 'add' or 'subtract'"]


def test_sanitize_strips_markup_characters():
    assert sanitize_string("  <b>Aspirin's</b> ") == "bAspirins/b"
    cleaned = sanitize_medicine({"name": ' "Ibuprofen" ', "stock": 5})
    assert cleaned == {"name": "Ibuprofen", "stock": 5}
