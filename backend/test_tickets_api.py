"""Help-desk tickets."""
import re


def _create(client, **overrides):
    data = {"title": "Label printer offline", "description": "Prints blank labels", "category": "Hardware"}
    data.update(overrides)
    response = client.post("/tickets", json=data)
    assert response.status_code == 201, response.text
    return response.json()["ticket"]


def test_create_ticket_defaults(client):
    ticket = _create(client)
    assert ticket["status"] == "open"
    assert ticket["priority"] == "medium"
    assert ticket["resolvedAt"] is None
    assert re.match(r"^TKT-\d{8}-0001$", ticket["ticketNumber"])


def test_short_title_is_rejected(client):
    response = client.post("/tickets", json={"title": "Hi", "description": "x", "category": "IT"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Title must be at least 3 characters long"


def test_resolving_stamps_resolved_at_once(client):
    ticket = _create(client, priority="high")
    resolved = client.put(
        f"/tickets/{ticket['id']}/status", json={"status": "resolved", "resolution": "Replaced ribbon"},
    ).json()["ticket"]
    assert resolved["resolvedAt"] is not None
    assert resolved["resolution"] == "Replaced ribbon"

    closed = client.put(f"/tickets/{ticket['id']}/status", json={"status": "closed"}).json()["ticket"]
    assert closed["resolvedAt"] == resolved["resolvedAt"]


def test_same_status_is_a_no_op(client):
    ticket = _create(client)
    again = client.put(f"/tickets/{ticket['id']}/status", json={"status": "open"}).json()["ticket"]
    assert again["updatedAt"] == ticket["updatedAt"]


def test_list_filters_by_status(client):
    _create(client)
    moving = _create(client, title="Scanner beeps twice")
    client.put(f"/tickets/{moving['id']}/status", json={"status": "in-progress"})
    listed = client.get("/tickets", params={"status": "in-progress"}).json()["tickets"]
    assert [t["id"] for t in listed] == [moving["id"]]
