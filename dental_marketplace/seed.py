"""
Demo data for local development (idempotent).

Creates one patient, two clinics and one regulator (password ``password``),
the clinics' price lists, two CT scans with a treatment plan for the latest
one, two competing offers on that plan and 90 days of statistics.

Run with ``python -m dental_marketplace.seed``.
"""
import logging
from datetime import date, datetime, timedelta

from sqlalchemy.orm import Session

from .core.database import SessionLocal, init_db
from .core.security import UserRole, get_password_hash
from .models.clinic import Clinic, PriceList
from .models.patient import Patient
from .models.regulator import Regulator
from .models.statistics import Statistics
from .models.treatment import CTScan, ScanStatus, Specialization
from .models.user import User
from .schemas.offer import OfferCreate
from .schemas.treatment import CostRange, PlanIntake, TreatmentItemIn
from .services.offer_service import OfferService
from .services.plan_service import PlanService

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password"
STATISTICS_DAYS = 90

CLINICS = [
    {
        "username": "clinic1",
        "email": "info@stomapro.example",
        "phone": "+7 495 123-4567",
        "profile": dict(
            name="StomaPro",
            license_number="LO-77-01-012345",
            year_established=2015,
            rating=4.8,
            review_count=156,
            city="Moscow",
            district="Central",
            address="15 Tverskaya St",
            has_periodontics=True,
            offers_installment=True,
            offers_insurance=False,
        ),
    },
    {
        "username": "clinic2",
        "email": "contact@dentalplus.example",
        "phone": "+7 495 987-6543",
        "profile": dict(
            name="DentalPlus",
            license_number="LO-77-01-067890",
            year_established=2018,
            rating=4.5,
            review_count=98,
            city="Moscow",
            district="Northern",
            address="89 Dmitrovskoe Hwy",
            has_periodontics=False,
            offers_installment=True,
            offers_insurance=True,
        ),
    },
]

# (specialization, service, clinic1 price, clinic2 price or None, clinic1 warranty, clinic2 warranty)
PRICE_LIST = [
    (Specialization.THERAPY, "Caries treatment", 5000, 4000, 1, 1),
    (Specialization.THERAPY, "Pulpitis treatment (root canal)", 15000, 12000, 2, 2),
    (Specialization.THERAPY, "Periodontitis treatment", 12000, 10000, 1, 1),
    (Specialization.THERAPY, "Light-cured filling", 4500, 3500, 1, 1),
    (Specialization.ORTHOPEDICS, "Metal-ceramic crown", 30000, 25000, 3, 2),
    (Specialization.ORTHOPEDICS, "Zirconia crown", 45000, 38000, 5, 4),
    (Specialization.ORTHOPEDICS, "Bridge (3 units)", 85000, 70000, 3, 2),
    (Specialization.SURGERY, "Tooth extraction (simple)", 3000, 2500, 0, 0),
    (Specialization.SURGERY, "Tooth extraction (complex)", 8000, 7000, 0, 0),
    (Specialization.SURGERY, "Implant (Nobel Biocare)", 95000, 85000, 10, 10),
    (Specialization.SURGERY, "Bone grafting", 45000, 38000, 0, 0),
    (Specialization.HYGIENE, "Professional cleaning", 5000, 4000, 0, 0),
    (Specialization.HYGIENE, "Teeth whitening", 18000, 15000, 0, 0),
    (Specialization.HYGIENE, "Air Flow cleaning", 4000, 3500, 0, 0),
    (Specialization.PERIODONTICS, "Periodontitis treatment (per quadrant)", 15000, None, 1, 0),
    (Specialization.PERIODONTICS, "Gum grafting", 35000, None, 2, 0),
]

PLAN_ITEMS = [
    TreatmentItemIn(specialization=Specialization.THERAPY, tooth_number="16", diagnosis="Deep caries",
                    procedure="Caries treatment + filling", urgency="high", estimated_cost=9500),
    TreatmentItemIn(specialization=Specialization.THERAPY, tooth_number="25", diagnosis="Acute pulpitis",
                    procedure="Root canal treatment", urgency="high", estimated_cost=15000),
    TreatmentItemIn(specialization=Specialization.THERAPY, tooth_number="14", diagnosis="Superficial caries",
                    procedure="Caries treatment + filling", urgency="medium", estimated_cost=8000),
    TreatmentItemIn(specialization=Specialization.ORTHOPEDICS, tooth_number="25", diagnosis="Restoration after pulpitis",
                    procedure="Zirconia crown", urgency="medium", estimated_cost=45000),
    TreatmentItemIn(specialization=Specialization.ORTHOPEDICS, tooth_number="21", diagnosis="Chipped crown",
                    procedure="Zirconia crown", urgency="high", estimated_cost=45000),
    TreatmentItemIn(specialization=Specialization.SURGERY, tooth_number="37", diagnosis="Missing tooth",
                    procedure="Implant (Nobel Biocare)", urgency="medium", estimated_cost=95000),
    TreatmentItemIn(specialization=Specialization.HYGIENE, tooth_number="all", diagnosis="Plaque and tartar",
                    procedure="Professional cleaning", urgency="medium", estimated_cost=5000),
]

PLAN_ESTIMATES = {
    Specialization.THERAPY: CostRange(min_cost=25000, max_cost=35000),
    Specialization.ORTHOPEDICS: CostRange(min_cost=55000, max_cost=75000),
    Specialization.SURGERY: CostRange(min_cost=95000, max_cost=120000),
    Specialization.HYGIENE: CostRange(min_cost=4000, max_cost=6000),
}


def _create_user(db: Session, username: str, role: UserRole, email: str, phone: str) -> User:
    user = User(
        username=username,
        email=email,
        phone=phone,
        password_hash=get_password_hash(DEMO_PASSWORD),
        role=role,
        is_active=True,
    )
    db.add(user)
    db.flush()
    return user


def _statistics_row(day: date, offset: int, clinic_id=None, profile: str = "regional") -> Statistics:
    """Deterministic daily figures; ``offset`` is the number of days before today."""
    i = offset
    if profile == "regional":
        return Statistics(
            date=day, clinic_id=None,
            treatment_plans_generated=15 + i % 10, appointments_scheduled=12 + i % 8,
            appointments_completed=10 + i % 7, total_revenue=850000 + i * 5000,
            patient_count=25 + i % 15, caries_count=20 + i % 5, pulpitis_count=8 + i % 3,
            periodontitis_count=5 + i % 2, gingivitis_count=6 + i % 3, parodontitis_count=4 + i % 2,
            average_wait_days=3.5 + i % 3, average_treatment_cost=175000 + i * 1000,
        )
    if profile == "premium":
        return Statistics(
            date=day, clinic_id=clinic_id,
            treatment_plans_generated=8 + i % 5, appointments_scheduled=7 + i % 4,
            appointments_completed=6 + i % 4, total_revenue=450000 + i * 3000,
            patient_count=14 + i % 8, caries_count=11 + i % 3, pulpitis_count=4 + i % 2,
            periodontitis_count=3 + i % 2, gingivitis_count=3 + i % 2, parodontitis_count=2,
            average_wait_days=2.5 + i % 2, average_treatment_cost=195000 + i * 800,
        )
    return Statistics(
        date=day, clinic_id=clinic_id,
        treatment_plans_generated=7 + i % 5, appointments_scheduled=5 + i % 4,
        appointments_completed=4 + i % 3, total_revenue=400000 + i * 2000,
        patient_count=11 + i % 7, caries_count=9 + i % 2, pulpitis_count=4,
        periodontitis_count=2, gingivitis_count=3, parodontitis_count=2,
        average_wait_days=4.5 + i % 3, average_treatment_cost=155000 + i * 600,
    )


def seed_demo_data(db: Session) -> bool:
    """Populate an empty database. Returns False when users already exist."""
    if db.query(User.id).first() is not None:
        logger.info("Database already seeded, skipping")
        return False

    patient_user = _create_user(db, "patient", UserRole.PATIENT, "anna.petrova@example.com", "+7 916 555-1234")
    patient = Patient(
        user_id=patient_user.id,
        first_name="Anna",
        last_name="Petrova",
        date_of_birth=date(1990, 3, 15),
        gender="female",
        city="Moscow",
        district="Central",
        price_segment="medium",
    )
    db.add(patient)

    clinics = []
    for entry in CLINICS:
        user = _create_user(db, entry["username"], UserRole.CLINIC, entry["email"], entry["phone"])
        clinic = Clinic(user_id=user.id, **entry["profile"])
        db.add(clinic)
        clinics.append(clinic)

    regulator_user = _create_user(db, "regulator", UserRole.REGULATOR, "regulator@health.example", "+7 495 777-8888")
    db.add(Regulator(
        user_id=regulator_user.id,
        organization="City Department of Health",
        region="Moscow",
        position="Senior inspector",
    ))
    db.flush()

    for specialization, service, price1, price2, warranty1, warranty2 in PRICE_LIST:
        db.add(PriceList(clinic_id=clinics[0].id, specialization=specialization,
                         service_name=service, price=price1, warranty_years=warranty1))
        if price2 is not None:
            db.add(PriceList(clinic_id=clinics[1].id, specialization=specialization,
                             service_name=service, price=price2, warranty_years=warranty2))

    db.add(CTScan(
        patient_id=patient.id,
        upload_date=datetime(2024, 11, 15, 10, 30),
        file_url="/uploads/scans/scan_001_20241115.dcm",
        status=ScanStatus.COMPLETED,
        ai_processed=True,
    ))
    latest_scan = CTScan(
        patient_id=patient.id,
        upload_date=datetime(2024, 12, 10, 14, 15),
        file_url="/uploads/scans/scan_002_20241210.dcm",
        status=ScanStatus.PROCESSING,
        ai_processed=False,
    )
    db.add(latest_scan)

    today = datetime.utcnow().date()
    for offset in range(STATISTICS_DAYS, -1, -1):
        day = today - timedelta(days=offset)
        db.add(_statistics_row(day, offset))
        db.add(_statistics_row(day, offset, clinics[0].id, "premium"))
        db.add(_statistics_row(day, offset, clinics[1].id, "standard"))

    db.commit()

    plan = PlanService(db).ingest_plan(PlanIntake(
        ct_scan_id=latest_scan.id,
        items=PLAN_ITEMS,
        estimates=PLAN_ESTIMATES,
    ))

    offers = OfferService(db)
    offers.submit_offer(clinics[0].id, OfferCreate(
        treatment_plan_id=plan.id,
        therapy_cost=32500, orthopedics_cost=90000, surgery_cost=95000, hygiene_cost=5000,
        total_cost=222500,
        estimated_duration="3-4 months",
        installment_months=12,
        warranty_details="10 years on the implant, 5 years on crowns, 1-2 years on fillings",
        notes="Premium materials, experienced surgeons",
    ))
    offers.submit_offer(clinics[1].id, OfferCreate(
        treatment_plan_id=plan.id,
        therapy_cost=26500, orthopedics_cost=76000, surgery_cost=85000, hygiene_cost=4000,
        total_cost=191500,
        estimated_duration="2-3 months",
        installment_months=12,
        warranty_details="10 years on the implant, 4 years on crowns, 1-2 years on fillings",
        notes="Good value, insurance accepted, flexible schedule",
    ))

    logger.info("Demo data created. Logins: patient, clinic1, clinic2, regulator (password: %s)", DEMO_PASSWORD)
    return True


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
    session = SessionLocal()
    try:
        seed_demo_data(session)
    finally:
        session.close()
