from typing import List, Optional

from pharmacy.schemas.base import CamelModel


class PrescriptionCreate(CamelModel):
    patient_name: str
    patient_age: Optional[int] = None
    patient_phone: Optional[str] = None
    doctor_name: str
    medicines: List[str]
    notes: Optional[str] = None


class PrescriptionStatusUpdate(CamelModel):
    status: str
    dispensed_by: Optional[str] = None


class Verification(CamelModel):
    verified_by: Optional[str] = None
    notes: Optional[str] = None
    approved: bool
