"""Checkout: totals, stock decrement and all-or-nothing behavior."""
import re

from pharmacy.models import StockMove

from conftest import medicine_payload


def _medicine(client, name, stock, price):
    response = client.post("/medicines", json=medicine_payload(name=name, stock=stock, price=price))
    return response.json()["medicine"]


def _line(med, quantity):
    return {"medicineId": med["id"], "name": med["name"], "quantity": quantity, "price": med["price"]}


def test_two_line_sale_totals_and_reduces_stock(client, db_session):
    first = _medicine(client, "Paracetamol", 100, 5)
    second = _medicine(client, "Ibuprofen", 50, 10)

    response = client.post("/sales", json={
        "customerName": "Walk-in",
        "items": [_line(first, 2), _line(second, 3)],
        "paymentMethod": "card",
    })
    assert response.status_code == 201, response.text
    sale = response.json()["sale"]
    assert sale["total"] == 40.00
    assert [i["total"] for i in sale["items"]] == [10.00, 30.00]
    assert sale["paymentMethod"] == "card"
    assert re.match(r"^WF-\d{8}-0001$", sale["saleNumber"])

    stock = {m["name"]: m["stock"] for m in client.get("/medicines").json()["medicines"]}
    assert stock == {"Paracetamol": 98, "Ibuprofen": 47}
    assert db_session.query(StockMove).filter(StockMove.ref_type == "sale").count() == 2


def test_client_total_is_replaced_by_cart_total(client):
    med = _medicine(client, "Paracetamol", 10, 5.99)
    sale = client.post("/sales", json={"items": [_line(med, 3)], "total": 1.00}).json()["sale"]
    assert sale["total"] == 17.97
    assert sale["paymentMethod"] == "cash"


def test_sale_exceeding_stock_changes_nothing(client):
    plenty = _medicine(client, "Paracetamol", 100, 5)
    scarce = _medicine(client, "Metformin", 2, 18)

    response = client.post("/sales", json={"items": [_line(plenty, 5), _line(scarce, 3)]})
    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient stock"

    stock = {m["name"]: m["stock"] for m in client.get("/medicines").json()["medicines"]}
    assert stock == {"Metformin": 2, "Paracetamol": 100}
    assert client.get("/sales").json()["sales"] == []


def test_repeated_lines_count_against_stock_together(client):
    med = _medicine(client, "Aspirin", 5, 6.5)
    response = client.post("/sales", json={"items": [_line(med, 3), _line(med, 3)]})
    assert response.status_code == 400
    assert response.json()["currentStock"] == 5


def test_unknown_medicine_in_sale(client):
    response = client.post("/sales", json={
        "items": [{"medicineId": "missing", "name": "Ghost", "quantity": 1, "price": 1}],
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Unknown medicine in sale: missing"


def test_invalid_sale_is_rejected_before_touching_stock(client):
    med = _medicine(client, "Aspirin", 5, 6.5)
    response = client.post("/sales", json={"items": [_line(med, 1)], "paymentMethod": "barter"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid payment method"


def test_list_and_get_sales(client):
    med = _medicine(client, "Aspirin", 50, 6.5)
    first = client.post("/sales", json={"items": [_line(med, 1)]}).json()["sale"]
    second = client.post("/sales", json={"items": [_line(med, 2)]}).json()["sale"]

    listed = client.get("/sales").json()["sales"]
    assert [s["id"] for s in listed] == [second["id"], first["id"]]
    assert second["saleNumber"].endswith("-0002")

    fetched = client.get(f"/sales/{first['id']}").json()["sale"]
    assert fetched["items"][0]["medicineId"] == med["id"]
    assert client.get("/sales/nope").status_code == 404
