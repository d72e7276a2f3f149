from typing import Optional

from pharmacy.schemas.base import CamelModel


class EmployeeCreate(CamelModel):
    name: str
    email: str
    phone: Optional[str] = None
    role: str
    department: str
    salary: Optional[float] = None
    hire_date: Optional[str] = None


class EmployeeUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    department: Optional[str] = None
    salary: Optional[float] = None
    hire_date: Optional[str] = None
    status: Optional[str] = None  # active | inactive
