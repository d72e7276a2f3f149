"""Sample data loaded into an empty database (and into a fresh local store)."""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from pharmacy.core.validation import parse_date
from pharmacy.models import Medicine, PrescribedMedicine, Prescription, Staff
from pharmacy.services.common import format_number, to_money

logger = logging.getLogger(__name__)

SAMPLE_MEDICINES = [
    {"name": "Paracetamol", "category": "Pain Relief", "strength": "500mg", "manufacturer": "PharmaCorp",
     "stock": 150, "minStock": 50, "maxStock": 300, "price": 5.99, "expiryDate": "2027-12-15",
     "batchNumber": "PC240815", "location": "A1-S2"},
    {"name": "Amoxicillin", "category": "Antibiotic", "strength": "250mg", "manufacturer": "MediLife",
     "stock": 25, "minStock": 30, "maxStock": 150, "price": 12.50, "expiryDate": "2027-06-20",
     "batchNumber": "ML240601", "location": "B2-S1"},
    {"name": "Ibuprofen", "category": "Anti-inflammatory", "strength": "200mg", "manufacturer": "HealthCare Plus",
     "stock": 200, "minStock": 40, "maxStock": 250, "price": 8.75, "expiryDate": "2028-03-10",
     "batchNumber": "HC241120", "location": "A3-S1"},
    {"name": "Aspirin", "category": "Pain Relief", "strength": "75mg", "manufacturer": "HealthCare Plus",
     "stock": 8, "minStock": 25, "maxStock": 200, "price": 6.50, "expiryDate": "2027-04-15",
     "batchNumber": "HC240320", "location": "A1-S3"},
    {"name": "Metformin", "category": "Diabetes", "strength": "500mg", "manufacturer": "MediLife",
     "stock": 5, "minStock": 20, "maxStock": 100, "price": 18.00, "expiryDate": "2027-08-30",
     "batchNumber": "ML240215", "location": "C1-S2"},
]

SAMPLE_EMPLOYEES = [
    {"name": "Dr. Joel Guedes", "email": "joel.guedes@wellnessforever.com", "phone": "+91-9876543210",
     "role": "Senior Pharmacist", "department": "Pharmacy", "salary": 75000.00, "hireDate": "2020-01-15"},
    {"name": "Dr. Priya Sharma", "email": "priya.sharma@wellnessforever.com", "phone": "+91-9876543211",
     "role": "Pharmacist", "department": "Pharmacy", "salary": 65000.00, "hireDate": "2021-03-22"},
    {"name": "Dr. Rahul Patel", "email": "rahul.patel@wellnessforever.com", "phone": "+91-9876543212",
     "role": "Chief Pharmacist", "department": "Management", "salary": 85000.00, "hireDate": "2019-08-10"},
    {"name": "Ms. Sneha Joshi", "email": "sneha.joshi@wellnessforever.com", "phone": "+91-9876543213",
     "role": "Assistant Pharmacist", "department": "Pharmacy", "salary": 45000.00, "hireDate": "2022-06-01"},
    {"name": "Mr. Amit Singh", "email": "amit.singh@wellnessforever.com", "phone": "+91-9876543214",
     "role": "Cashier", "department": "Customer Service", "salary": 35000.00, "hireDate": "2023-01-20"},
]

SAMPLE_PRESCRIPTIONS = [
    {"patientName": "John Smith", "patientAge": 45, "doctorName": "Dr. Anderson", "status": "pending",
     "notes": "Patient has mild hypertension", "medicines": ["Amoxicillin 250mg"]},
    {"patientName": "Jane Doe", "patientAge": 32, "doctorName": "Dr. Johnson", "status": "verified",
     "notes": "Regular medication refill", "medicines": ["Metformin 500mg"]},
    {"patientName": "Mike Wilson", "patientAge": 28, "doctorName": "Dr. Brown", "status": "dispensed",
     "notes": "Antibiotic course completed", "medicines": ["Amoxicillin 250mg"]},
]


def seed_database(db: Session) -> None:
    """Insert the sample rows. Caller checks the database is empty first."""
    for data in SAMPLE_MEDICINES:
        db.add(Medicine(
            name=data["name"],
            cat=data["category"],
            strength=data["strength"],
            mfg=data["manufacturer"],
            stock=data["stock"],
            min_stock=data["minStock"],
            max_stock=data["maxStock"],
            price=to_money(data["price"]),
            exp_date=parse_date(data["expiryDate"]),
            batch=data["batchNumber"],
            location=data["location"],
            active=True,
        ))

    for data in SAMPLE_EMPLOYEES:
        db.add(Staff(
            name=data["name"],
            email=data["email"],
            phone=data["phone"],
            role=data["role"],
            dept=data["department"],
            salary=to_money(data["salary"]),
            hire_date=parse_date(data["hireDate"]),
            status="active",
        ))

    today = datetime.now(timezone.utc).date()
    for sequence, data in enumerate(SAMPLE_PRESCRIPTIONS, start=1):
        rx = Prescription(
            rx_no=format_number("RX", today, sequence),
            pat_name=data["patientName"],
            pat_age=data["patientAge"],
            doc_name=data["doctorName"],
            status=data["status"],
            notes=data["notes"],
        )
        for position, name in enumerate(data["medicines"]):
            rx.medicines.append(PrescribedMedicine(position=position, med_name=name))
        db.add(rx)

    db.commit()
    logger.info(
        f"Seeded {len(SAMPLE_MEDICINES)} medicines, {len(SAMPLE_EMPLOYEES)} employees, "
        f"{len(SAMPLE_PRESCRIPTIONS)} prescriptions"
    )
