"""Employees and time tracking."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmacy.api.deps import get_db
from pharmacy.schemas.employee import EmployeeCreate, EmployeeUpdate
from pharmacy.services import employee_service

router = APIRouter()


@router.get("/employees")
def list_employees(db: Session = Depends(get_db)):
    return {"employees": [employee_service.to_api(e) for e in employee_service.list_employees(db)]}


@router.post("/employees", status_code=201)
def create_employee(payload: EmployeeCreate, db: Session = Depends(get_db)):
    emp = employee_service.create_employee(db, payload.to_dict())
    return {"employee": employee_service.to_api(emp)}


@router.put("/employees/{employee_id}")
def update_employee(employee_id: str, payload: EmployeeUpdate, db: Session = Depends(get_db)):
    emp = employee_service.update_employee(db, employee_id, payload.to_dict())
    return {"employee": employee_service.to_api(emp)}


@router.post("/employees/{employee_id}/clock-in", status_code=201)
def clock_in(employee_id: str, db: Session = Depends(get_db)):
    entry = employee_service.clock_in(db, employee_id)
    return {"timeEntry": employee_service.time_entry_to_api(entry)}


@router.post("/employees/{employee_id}/clock-out")
def clock_out(employee_id: str, db: Session = Depends(get_db)):
    entry = employee_service.clock_out(db, employee_id)
    return {"timeEntry": employee_service.time_entry_to_api(entry)}


@router.get("/time-entries")
def list_time_entries(employee_id: Optional[str] = Query(None, alias="employeeId"), db: Session = Depends(get_db)):
    entries = employee_service.list_time_entries(db, employee_id)
    return {"timeEntries": [employee_service.time_entry_to_api(e) for e in entries]}
