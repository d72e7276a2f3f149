"""Inventory endpoints, stock rules, auth and database status."""
from pharmacy.db.init_db import ALREADY_INITIALIZED, INITIALIZED, init_db
from pharmacy.models import StockMove

from conftest import medicine_payload


def _create(client, **overrides):
    response = client.post("/medicines", json=medicine_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()["medicine"]


def test_create_medicine_returns_active_record_with_defaults(client):
    response = client.post("/medicines", json={
        "name": "Loratadine",
        "category": "Antihistamine",
        "manufacturer": "PharmaCorp",
    })
    assert response.status_code == 201
    med = response.json()["medicine"]
    assert med["active"] is True
    assert med["stock"] == 0
    assert med["minStock"] == 10
    assert med["maxStock"] == 100
    assert med["id"]


def test_add_then_list_round_trip(client):
    created = _create(client)
    listed = client.get("/medicines").json()["medicines"]
    assert [m["id"] for m in listed] == [created["id"]]
    assert listed[0]["manufacturer"] == "MediLife"
    assert listed[0]["expiryDate"] == "2030-01-31"
    assert listed[0]["price"] == 4.25


def test_list_is_ordered_by_name_and_searchable(client):
    _create(client, name="Zinc", category="Supplement")
    _create(client, name="Aspirin", category="Pain Relief")
    names = [m["name"] for m in client.get("/medicines").json()["medicines"]]
    assert names == ["Aspirin", "Zinc"]

    found = client.get("/medicines", params={"search": "pain"}).json()["medicines"]
    assert [m["name"] for m in found] == ["Aspirin"]


def test_invalid_medicine_is_rejected_with_first_message(client):
    response = client.post("/medicines", json=medicine_payload(minStock=100, maxStock=50))
    assert response.status_code == 400
    assert response.json()["detail"] == "Maximum stock must be greater than minimum stock"


def test_missing_required_field_is_a_400(client):
    response = client.post("/medicines", json={"name": "Only a name"})
    assert response.status_code == 400
    assert response.json()["errors"]


def test_partial_update(client):
    med = _create(client)
    response = client.put(f"/medicines/{med['id']}", json={"price": 5.10, "location": "E2-S4"})
    assert response.status_code == 200
    updated = response.json()["medicine"]
    assert updated["price"] == 5.10
    assert updated["location"] == "E2-S4"
    assert updated["name"] == med["name"]


def test_update_unknown_medicine_is_404(client):
    response = client.put("/medicines/does-not-exist", json={"price": 1})
    assert response.status_code == 404
    assert response.json()["detail"] == "Medicine not found"


def test_delete_is_soft(client):
    med = _create(client)
    response = client.delete(f"/medicines/{med['id']}")
    assert response.status_code == 200
    assert response.json()["medicine"]["active"] is False
    assert client.get("/medicines").json()["medicines"] == []
    # Row is still there for sale history
    assert client.get(f"/medicines/{med['id']}").json()["medicine"]["active"] is False


def test_stock_add_and_subtract_write_moves(client, db_session):
    med = _create(client, stock=50)
    added = client.post(f"/medicines/{med['id']}/stock", json={"quantity": 10, "type": "add"})
    assert added.json()["medicine"]["stock"] == 60
    taken = client.post(f"/medicines/{med['id']}/stock", json={"quantity": 25, "type": "subtract"})
    assert taken.json()["medicine"]["stock"] == 35

    moves = db_session.query(StockMove).order_by(StockMove.move_date).all()
    assert [(m.type, m.qty_change, m.old_stock, m.new_stock, m.ref_type) for m in moves] == [
        ("in", 10, 50, 60, "adj"),
        ("out", 25, 60, 35, "adj"),
    ]


def test_subtract_below_zero_is_rejected_not_clamped(client):
    med = _create(client, stock=3)
    response = client.post(f"/medicines/{med['id']}/stock", json={"quantity": 5, "type": "subtract"})
    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Insufficient stock"
    assert body["details"] == "Cannot reduce stock by 5. Current stock: 3"
    assert body["currentStock"] == 3
    assert client.get(f"/medicines/{med['id']}").json()["medicine"]["stock"] == 3


def test_stock_change_validation(client):
    med = _create(client)
    response = client.post(f"/medicines/{med['id']}/stock", json={"quantity": 0, "type": "add"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Quantity must be a positive integer"


def test_requests_without_token_are_refused(client):
    response = client.get("/medicines", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401
    client.headers.pop("Authorization")
    assert client.get("/medicines").status_code == 401
    assert client.get("/health").status_code == 200


def test_security_headers(client):
    response = client.get("/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_missing_tables_answer_503(bare_client):
    response = bare_client.get("/medicines")
    assert response.status_code == 503
    assert response.json()["dbStatus"] == "not_initialized"
    assert bare_client.get("/health").json()["database"] == "not_initialized"


def test_init_db_endpoint_creates_tables_and_seeds_once(bare_client):
    first = bare_client.post("/init-db")
    assert first.json() == {"status": INITIALIZED}
    assert len(bare_client.get("/medicines").json()["medicines"]) == 5
    assert bare_client.post("/init-db").json() == {"status": ALREADY_INITIALIZED}
    assert bare_client.get("/health").json()["database"] == "ok"


def test_init_db_on_empty_tables_seeds_samples(client, db_session):
    assert init_db(db_session) == INITIALIZED
    alerts = client.get("/dashboard/alerts").json()["alerts"]
    assert {a["name"]: a["severity"] for a in alerts} == {
        "Amoxicillin": "medium",
        "Aspirin": "medium",
        "Metformin": "medium",
    }
