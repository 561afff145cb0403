import pytest

from dental_marketplace.core.exceptions import AlreadyExistsError, NotFoundError
from dental_marketplace.models.treatment import PlanStatus, ScanStatus, Specialization
from dental_marketplace.schemas.treatment import CostRange, PlanIntake, TreatmentItemIn
from dental_marketplace.services.plan_service import PlanService

from tests.factories import create_patient, create_scan


def intake_for(scan_id):
    return PlanIntake(
        ct_scan_id=scan_id,
        items=[
            TreatmentItemIn(specialization=Specialization.THERAPY, tooth_number="16",
                            diagnosis="Deep caries", estimated_cost=9500),
            TreatmentItemIn(specialization=Specialization.SURGERY, tooth_number="37",
                            diagnosis="Missing tooth", estimated_cost=95000),
        ],
        estimates={
            Specialization.THERAPY: CostRange(min_cost=25000, max_cost=35000),
            Specialization.SURGERY: CostRange(min_cost=95000, max_cost=120000),
        },
    )


class TestPlanIntake:

    def test_generated_plan_from_analysis(self, db_session):
        patient = create_patient(db_session)
        scan = create_scan(db_session, patient)

        plan = PlanService(db_session).ingest_plan(intake_for(scan.id))

        assert plan.status == PlanStatus.GENERATED
        assert plan.patient_id == patient.id
        assert plan.requires_therapy is True
        assert plan.requires_surgery is True
        assert plan.requires_orthopedics is False
        assert plan.surgery_max_cost == 120000
        assert [item.tooth_number for item in plan.items] == ["16", "37"]

        db_session.refresh(scan)
        assert scan.status == ScanStatus.COMPLETED
        assert scan.ai_processed is True

    def test_one_plan_per_scan(self, db_session):
        patient = create_patient(db_session)
        scan = create_scan(db_session, patient)
        service = PlanService(db_session)
        service.ingest_plan(intake_for(scan.id))

        with pytest.raises(AlreadyExistsError):
            service.ingest_plan(intake_for(scan.id))

    def test_missing_scan(self, db_session):
        with pytest.raises(NotFoundError):
            PlanService(db_session).ingest_plan(intake_for(9999))


class TestPatientScope:

    def test_scan_of_another_patient_is_not_found(self, db_session):
        owner = create_patient(db_session, "owner")
        other = create_patient(db_session, "other")
        scan = create_scan(db_session, owner)

        with pytest.raises(NotFoundError):
            PlanService(db_session).get_scan(other.id, scan.id)

    def test_plan_hidden_until_analysis_finishes(self, db_session):
        patient = create_patient(db_session)
        scan = create_scan(db_session, patient, ai_processed=False)

        assert PlanService(db_session).find_plan_for_scan(patient.id, scan) is None
