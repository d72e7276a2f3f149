"""Create the tables and load the sample pharmacy data into DATABASE_URL."""
from pharmacy.db.init_db import INITIALIZED, init_db
from pharmacy.db.session import SessionLocal
from pharmacy.models import Medicine, Prescription, Staff


def seed_inventory():
    db = SessionLocal()
    try:
        status = init_db(db)
        if status != INITIALIZED:
            print("ℹ️  Database already has inventory, nothing seeded.")

        print(f"✅ Medicines:     {db.query(Medicine).count()}")
        print(f"✅ Staff:         {db.query(Staff).count()}")
        print(f"✅ Prescriptions: {db.query(Prescription).count()}")

        low = db.query(Medicine).filter(Medicine.stock <= Medicine.min_stock).order_by(Medicine.stock).all()
        if low:
            print("\n⚠️  Low stock:")
            for med in low:
                print(f"   {med.name} {med.strength or ''}: {med.stock} (min {med.min_stock})")
    finally:
        db.close()


if __name__ == "__main__":
    seed_inventory()
