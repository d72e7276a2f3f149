"""Prescription intake, status workflow and verification."""
import re


def _create(client, **overrides):
    data = {
        "patientName": "John Smith",
        "patientAge": 45,
        "doctorName": "Dr. Anderson",
        "medicines": ["Amoxicillin 250mg", "Paracetamol 500mg"],
        "notes": "Twice daily after meals",
    }
    data.update(overrides)
    response = client.post("/prescriptions", json=data)
    assert response.status_code == 201, response.text
    return response.json()["prescription"]


def test_create_prescription_starts_pending(client):
    rx = _create(client)
    assert rx["status"] == "pending"
    assert rx["medicines"] == ["Amoxicillin 250mg", "Paracetamol 500mg"]
    assert rx["verification"] is None
    assert re.match(r"^RX-\d{8}-0001$", rx["prescriptionNumber"])


def test_prescription_without_medicines_is_rejected(client):
    response = client.post("/prescriptions", json={
        "patientName": "John Smith", "doctorName": "Dr. Anderson", "medicines": [],
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "At least one medicine must be prescribed"


def test_status_update_is_idempotent(client):
    rx = _create(client)
    first = client.put(f"/prescriptions/{rx['id']}/status", json={"status": "verified"}).json()["prescription"]
    again = client.put(f"/prescriptions/{rx['id']}/status", json={"status": "verified"}).json()["prescription"]
    assert first["status"] == again["status"] == "verified"
    assert again["updatedAt"] == first["updatedAt"]


def test_first_dispense_stamps_dispensed_at(client):
    rx = _create(client)
    dispensed = client.put(
        f"/prescriptions/{rx['id']}/status", json={"status": "dispensed", "dispensedBy": "Dr. Joel Guedes"},
    ).json()["prescription"]
    assert dispensed["dispensedAt"] is not None
    assert dispensed["dispensedBy"] == "Dr. Joel Guedes"

    client.put(f"/prescriptions/{rx['id']}/status", json={"status": "verified"})
    again = client.put(f"/prescriptions/{rx['id']}/status", json={"status": "dispensed"}).json()["prescription"]
    assert again["dispensedAt"] == dispensed["dispensedAt"]


def test_unknown_status_is_rejected(client):
    rx = _create(client)
    response = client.put(f"/prescriptions/{rx['id']}/status", json={"status": "lost"})
    assert response.status_code == 400
    assert response.json()["detail"].startswith("Status must be one of")


def test_verification_sets_status(client):
    approved = _create(client)
    rejected = _create(client, patientName="Jane Doe")

    body = client.post(f"/prescriptions/{approved['id']}/verify", json={
        "verifiedBy": "Dr. Priya Sharma", "notes": "Dosage checked", "approved": True,
    }).json()["prescription"]
    assert body["status"] == "verified"
    assert body["verification"]["verifiedBy"] == "Dr. Priya Sharma"
    assert body["verification"]["approved"] is True

    body = client.post(f"/prescriptions/{rejected['id']}/verify", json={"approved": False}).json()["prescription"]
    assert body["status"] == "rejected"
    assert body["verification"]["approved"] is False


def test_list_filters_by_status(client):
    pending = _create(client)
    done = _create(client, patientName="Mike Wilson")
    client.put(f"/prescriptions/{done['id']}/status", json={"status": "dispensed"})

    listed = client.get("/prescriptions", params={"status": "pending"}).json()["prescriptions"]
    assert [p["id"] for p in listed] == [pending["id"]]
    assert len(client.get("/prescriptions").json()["prescriptions"]) == 2


def test_unknown_prescription_is_404(client):
    assert client.put("/prescriptions/nope/status", json={"status": "verified"}).status_code == 404
