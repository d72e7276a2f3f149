"""PharmacyAPI facade: backend selection, degraded-mode fallback, rejections."""
import logging

import pytest
import requests

from pharmacy.client.api import PharmacyAPI, cart_total
from pharmacy.client.remote import RemoteRepository
from pharmacy.core.exceptions import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    RemoteUnavailableError,
    ValidationFailed,
)

from conftest import employee_payload, medicine_payload


class DeadSession:
    """Stands in for requests.Session when the service is unreachable."""

    def __init__(self):
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url))
        raise requests.ConnectionError("connection refused")

    def close(self):
        pass


def _remote(session, token="test-token"):
    return RemoteRepository(base_url="http://testserver", token=token, timeout=1, session=session)


@pytest.fixture
def dead_session():
    return DeadSession()


# ==============================================================================
# AUTO MODE
# ==============================================================================

def test_auto_mode_falls_back_and_says_so(dead_session, local_repo, caplog):
    api = PharmacyAPI(mode="auto", remote=_remote(dead_session), local=local_repo)
    with caplog.at_level(logging.WARNING):
        result = api.get_medicines()

    assert result["source"] == "local"
    assert len(result["medicines"]) == 5
    assert api.degraded is True
    assert api.fallbacks == 1
    assert "degraded mode" in caplog.text
    assert dead_session.calls == [("GET", "http://testserver/medicines")]


def test_auto_mode_uses_remote_when_available(client, local_repo):
    api = PharmacyAPI(mode="auto", remote=_remote(client), local=local_repo)
    result = api.add_medicine(medicine_payload())

    assert result["source"] == "remote"
    assert result["medicine"]["active"] is True
    assert api.degraded is False
    assert [m["name"] for m in api.get_medicines()["medicines"]] == ["Cetirizine"]


def test_degraded_flag_clears_after_remote_recovers(client, dead_session, local_repo):
    remote = _remote(dead_session)
    api = PharmacyAPI(mode="auto", remote=remote, local=local_repo)
    api.get_medicines()
    assert api.degraded is True

    remote.session = client
    assert api.get_medicines()["source"] == "remote"
    assert api.degraded is False
    assert api.fallbacks == 1


def test_missing_tables_fall_back(bare_client, local_repo):
    api = PharmacyAPI(mode="auto", remote=_remote(bare_client), local=local_repo)
    assert api.get_dashboard_stats()["source"] == "local"
    assert api.degraded is True


def test_auth_failure_falls_back(client, local_repo):
    api = PharmacyAPI(mode="auto", remote=_remote(client, token="wrong"), local=local_repo)
    assert api.get_employees()["source"] == "local"


def test_rejections_are_not_fallbacks(client, local_repo):
    api = PharmacyAPI(mode="auto", remote=_remote(client), local=local_repo)
    med = api.add_medicine(medicine_payload(stock=2))["medicine"]

    with pytest.raises(InsufficientStockError) as exc_info:
        api.update_stock(med["id"], 5, "subtract")
    assert exc_info.value.current_stock == 2

    api.add_employee(employee_payload())
    with pytest.raises(ConflictError):
        api.add_employee(employee_payload(name="Duplicate"))

    with pytest.raises(NotFoundError):
        api.update_prescription_status("missing", "verified")

    assert api.degraded is False
    assert api.fallbacks == 0


# ==============================================================================
# VALIDATION BEFORE I/O
# ==============================================================================

def test_validation_happens_before_any_request(dead_session, local_repo):
    api = PharmacyAPI(mode="auto", remote=_remote(dead_session), local=local_repo)
    with pytest.raises(ValidationFailed) as exc_info:
        api.add_medicine(medicine_payload(minStock=100, maxStock=50))
    assert exc_info.value.message == "Maximum stock must be greater than minimum stock"

    with pytest.raises(ValidationFailed):
        api.add_prescription({"patientName": "John Smith", "doctorName": "Dr. Brown", "medicines": []})
    with pytest.raises(ValidationFailed):
        api.update_stock("any", -1, "subtract")

    assert dead_session.calls == []
    assert api.degraded is False


def test_sale_total_is_computed_from_cart(client, local_repo):
    api = PharmacyAPI(mode="remote", remote=_remote(client), local=local_repo)
    first = api.add_medicine(medicine_payload(name="Alpha", stock=10, price=5))["medicine"]
    second = api.add_medicine(medicine_payload(name="Beta", stock=10, price=10))["medicine"]
    items = [
        {"medicineId": first["id"], "name": "Alpha", "quantity": 2, "price": 5},
        {"medicineId": second["id"], "name": "Beta", "quantity": 3, "price": 10},
    ]
    assert cart_total(items) == 40.0

    sale = api.create_sale({"items": items})["sale"]
    assert sale["total"] == 40.0
    stock = {m["name"]: m["stock"] for m in api.get_medicines()["medicines"]}
    assert stock == {"Alpha": 8, "Beta": 7}


# ==============================================================================
# FIXED MODES
# ==============================================================================

def test_remote_mode_raises_instead_of_falling_back(dead_session, local_repo):
    api = PharmacyAPI(mode="remote", remote=_remote(dead_session), local=local_repo)
    with pytest.raises(RemoteUnavailableError):
        api.get_sales()
    assert api.degraded is False


def test_local_mode_never_touches_remote(dead_session, local_repo):
    api = PharmacyAPI(mode="local", remote=_remote(dead_session), local=local_repo)
    assert api.get_tickets()["source"] == "local"
    assert dead_session.calls == []


def test_unknown_mode_is_refused():
    with pytest.raises(ValueError):
        PharmacyAPI(mode="cloud")


def test_load_dashboard_fetches_all_three(dead_session, local_repo):
    with PharmacyAPI(mode="auto", remote=_remote(dead_session), local=local_repo) as api:
        dashboard = api.load_dashboard()
        assert dashboard["stats"]["stats"]["totalMedicines"] == 5
        assert len(dashboard["activity"]["activities"]) == 3
        assert len(dashboard["alerts"]["alerts"]) == 3
        assert {payload["source"] for payload in dashboard.values()} == {"local"}
        assert api.fallbacks == 3
