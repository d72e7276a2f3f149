from pharmacy.client.api import PharmacyAPI, get_pharmacy_api
from pharmacy.client.base import PharmacyRepository
from pharmacy.client.local import LocalRepository, LocalStore
from pharmacy.client.remote import RemoteRepository

__all__ = [
    "PharmacyAPI", "get_pharmacy_api", "PharmacyRepository",
    "LocalRepository", "LocalStore", "RemoteRepository",
]
