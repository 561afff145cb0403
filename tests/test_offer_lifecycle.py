import logging
import threading
from datetime import datetime, timedelta

import pytest

from dental_marketplace.core.exceptions import (
    AlreadyExistsError, ConflictError, InternalFailureError, NotFoundError
)
from dental_marketplace.models.appointment import Appointment, AppointmentStatus
from dental_marketplace.models.offer import ClinicOffer, OfferStatus
from dental_marketplace.models.treatment import PlanStatus
from dental_marketplace.schemas.offer import OfferCreate
from dental_marketplace.services.offer_service import OfferService

from tests.conftest import TestingSessionLocal
from tests.factories import (
    create_clinic, create_offer, create_patient, create_plan
)


def offer_payload(plan_id, total_cost, **costs):
    return OfferCreate(treatment_plan_id=plan_id, total_cost=total_cost, **costs)


@pytest.fixture
def marketplace(db_session):
    patient = create_patient(db_session)
    clinic1 = create_clinic(db_session, "clinic1", "StomaPro")
    clinic2 = create_clinic(db_session, "clinic2", "DentalPlus")
    plan = create_plan(db_session, patient)
    return patient, clinic1, clinic2, plan


def appointments_for(db, offer_id):
    return db.query(Appointment).filter(Appointment.clinic_offer_id == offer_id).count()


class TestSubmitOffer:

    def test_first_offer_moves_plan_to_offers_received(self, db_session, marketplace):
        """A generated plan starts receiving offers."""
        _, clinic1, _, plan = marketplace
        offer = OfferService(db_session).submit_offer(
            clinic1.id,
            offer_payload(plan.id, 222500, therapy_cost=32500, orthopedics_cost=90000,
                          surgery_cost=95000, hygiene_cost=5000)
        )

        assert offer.status == OfferStatus.SENT
        assert offer.total_cost == 222500
        db_session.refresh(plan)
        assert plan.status == PlanStatus.OFFERS_RECEIVED

    def test_second_offer_keeps_offers_received(self, db_session, marketplace):
        _, clinic1, clinic2, plan = marketplace
        service = OfferService(db_session)
        service.submit_offer(clinic1.id, offer_payload(plan.id, 222500, therapy_cost=222500))
        service.submit_offer(clinic2.id, offer_payload(plan.id, 191500, therapy_cost=191500))

        db_session.refresh(plan)
        assert plan.status == PlanStatus.OFFERS_RECEIVED

    def test_offers_requested_plan_moves_to_offers_received(self, db_session, marketplace):
        patient, clinic1, _, _ = marketplace
        plan = create_plan(db_session, patient, status=PlanStatus.OFFERS_REQUESTED)

        OfferService(db_session).submit_offer(clinic1.id, offer_payload(plan.id, 1000, therapy_cost=1000))

        db_session.refresh(plan)
        assert plan.status == PlanStatus.OFFERS_RECEIVED

    def test_total_cost_is_stored_as_submitted(self, db_session, marketplace, caplog):
        """A total that disagrees with the components is kept and logged."""
        _, clinic1, _, plan = marketplace

        with caplog.at_level(logging.WARNING, logger="dental_marketplace.services.offer_service"):
            offer = OfferService(db_session).submit_offer(
                clinic1.id, offer_payload(plan.id, 150000, therapy_cost=100000)
            )

        assert offer.total_cost == 150000
        assert "components sum to 100000" in caplog.text

    def test_duplicate_offer_from_same_clinic(self, db_session, marketplace):
        _, clinic1, _, plan = marketplace
        service = OfferService(db_session)
        service.submit_offer(clinic1.id, offer_payload(plan.id, 1000, therapy_cost=1000))

        with pytest.raises(AlreadyExistsError):
            service.submit_offer(clinic1.id, offer_payload(plan.id, 900, therapy_cost=900))

        assert db_session.query(ClinicOffer).filter(ClinicOffer.clinic_id == clinic1.id).count() == 1

    def test_offer_on_closed_plan(self, db_session, marketplace):
        patient, clinic1, _, _ = marketplace
        plan = create_plan(db_session, patient, status=PlanStatus.OFFER_SELECTED)

        with pytest.raises(ConflictError):
            OfferService(db_session).submit_offer(clinic1.id, offer_payload(plan.id, 1000))

        db_session.refresh(plan)
        assert plan.status == PlanStatus.OFFER_SELECTED

    def test_offer_on_missing_plan(self, db_session, marketplace):
        _, clinic1, _, _ = marketplace

        with pytest.raises(NotFoundError):
            OfferService(db_session).submit_offer(clinic1.id, offer_payload(9999, 1000))

    def test_offer_on_soft_deleted_plan(self, db_session, marketplace):
        _, clinic1, _, plan = marketplace
        plan.deleted_at = datetime.utcnow()
        db_session.commit()

        with pytest.raises(NotFoundError):
            OfferService(db_session).submit_offer(clinic1.id, offer_payload(plan.id, 1000))


class TestListOffersForPlan:

    def test_cheapest_first_without_pending(self, db_session, marketplace):
        patient, clinic1, clinic2, plan = marketplace
        clinic3 = create_clinic(db_session, "clinic3", "Smile")
        clinic4 = create_clinic(db_session, "clinic4", "Dentica")
        expensive = create_offer(db_session, plan, clinic1, 222500)
        cheap = create_offer(db_session, plan, clinic2, 191500)
        create_offer(db_session, plan, clinic3, 100000, status=OfferStatus.PENDING)
        rejected = create_offer(db_session, plan, clinic4, 191500, status=OfferStatus.REJECTED)

        offers = OfferService(db_session).list_offers_for_plan(plan.id)

        assert [offer.id for offer in offers] == [cheap.id, rejected.id, expensive.id]
        assert all(offer.status != OfferStatus.PENDING for offer in offers)
        costs = [offer.total_cost for offer in offers]
        assert costs == sorted(costs)
        assert offers[0].clinic.name == "DentalPlus"

    def test_soft_deleted_offers_are_hidden(self, db_session, marketplace):
        _, clinic1, clinic2, plan = marketplace
        create_offer(db_session, plan, clinic1, 222500)
        deleted = create_offer(db_session, plan, clinic2, 191500)
        deleted.deleted_at = datetime.utcnow()
        db_session.commit()

        offers = OfferService(db_session).list_offers_for_plan(plan.id)

        assert [offer.total_cost for offer in offers] == [222500]

    def test_plan_of_another_patient(self, db_session, marketplace):
        _, clinic1, _, plan = marketplace
        other = create_patient(db_session, "other_patient")
        create_offer(db_session, plan, clinic1, 1000)

        with pytest.raises(NotFoundError):
            OfferService(db_session).list_offers_for_plan(plan.id, patient_id=other.id)


class TestListIncomingPlans:

    def test_plans_already_offered_on_are_excluded(self, db_session, marketplace):
        """Any offer by the clinic hides the plan, whatever its status."""
        patient, clinic1, clinic2, offered_plan = marketplace
        fresh_plan = create_plan(db_session, patient)
        create_offer(db_session, offered_plan, clinic1, 1000, status=OfferStatus.REJECTED)

        plans = OfferService(db_session).list_incoming_plans(clinic1.id)

        assert [plan.id for plan in plans] == [fresh_plan.id]

    def test_newest_first_and_competing_offers_hidden(self, db_session, marketplace):
        patient, clinic1, clinic2, older_plan = marketplace
        newer_plan = create_plan(db_session, patient)
        create_offer(db_session, older_plan, clinic1, 222500)

        plans = OfferService(db_session).list_incoming_plans(clinic2.id)

        assert [plan.id for plan in plans] == [newer_plan.id, older_plan.id]
        # clinic1 bid on the older plan; clinic2 must not see it
        assert all(offer.clinic_id == clinic2.id for plan in plans for offer in plan.offers)
        assert plans[1].offers == []
        assert len(plans[1].items) == 1

    def test_status_filter(self, db_session, marketplace):
        patient, clinic1, _, generated_plan = marketplace
        create_plan(db_session, patient, status=PlanStatus.OFFERS_RECEIVED)

        plans = OfferService(db_session).list_incoming_plans(clinic1.id, status=PlanStatus.GENERATED)

        assert [plan.id for plan in plans] == [generated_plan.id]


class TestAcceptOffer:

    def test_cheapest_offer_accepted_scenario(self, db_session, marketplace):
        """Two bids, the cheaper one is accepted and a visit is booked a week out."""
        patient, clinic1, clinic2, plan = marketplace
        service = OfferService(db_session)
        o1 = service.submit_offer(clinic1.id, offer_payload(
            plan.id, 222500, therapy_cost=32500, orthopedics_cost=90000,
            surgery_cost=95000, hygiene_cost=5000))
        o2 = service.submit_offer(clinic2.id, offer_payload(
            plan.id, 191500, therapy_cost=26500, orthopedics_cost=76000,
            surgery_cost=85000, hygiene_cost=4000))

        db_session.refresh(plan)
        assert plan.status == PlanStatus.OFFERS_RECEIVED
        assert [offer.id for offer in service.list_offers_for_plan(plan.id)] == [o2.id, o1.id]

        before = datetime.utcnow()
        appointment = service.accept_offer(o2.id, patient.id)
        after = datetime.utcnow()

        db_session.refresh(o1)
        db_session.refresh(o2)
        db_session.refresh(plan)
        assert o2.status == OfferStatus.ACCEPTED
        assert o1.status == OfferStatus.REJECTED
        assert plan.status == PlanStatus.OFFER_SELECTED

        assert appointment.clinic_offer_id == o2.id
        assert appointment.clinic_id == clinic2.id
        assert appointment.treatment_plan_id == plan.id
        assert appointment.patient_id == patient.id
        assert appointment.status == AppointmentStatus.SCHEDULED
        assert appointment.notes == "Initial consultation"
        assert before + timedelta(days=7) <= appointment.appointment_date <= after + timedelta(days=7)
        assert appointments_for(db_session, o2.id) == 1

    def test_second_accept_on_same_plan_conflicts(self, db_session, marketplace):
        """Only one offer per plan can ever be accepted."""
        patient, clinic1, clinic2, plan = marketplace
        o1 = create_offer(db_session, plan, clinic1, 222500)
        o2 = create_offer(db_session, plan, clinic2, 191500)
        service = OfferService(db_session)

        service.accept_offer(o2.id, patient.id)
        with pytest.raises(ConflictError):
            service.accept_offer(o1.id, patient.id)

        db_session.refresh(o1)
        db_session.refresh(o2)
        assert o1.status == OfferStatus.REJECTED
        assert o2.status == OfferStatus.ACCEPTED
        assert db_session.query(Appointment).count() == 1
        assert db_session.query(ClinicOffer).filter(
            ClinicOffer.status == OfferStatus.ACCEPTED
        ).count() == 1

    def test_missing_offer(self, db_session, marketplace):
        patient, _, _, _ = marketplace

        with pytest.raises(NotFoundError):
            OfferService(db_session).accept_offer(9999, patient.id)

    def test_offer_on_another_patients_plan(self, db_session, marketplace):
        _, clinic1, _, plan = marketplace
        intruder = create_patient(db_session, "intruder")
        offer = create_offer(db_session, plan, clinic1, 1000)

        with pytest.raises(NotFoundError):
            OfferService(db_session).accept_offer(offer.id, intruder.id)

        db_session.refresh(offer)
        db_session.refresh(plan)
        assert offer.status == OfferStatus.SENT
        assert plan.status == PlanStatus.GENERATED
        assert db_session.query(Appointment).count() == 0

    def test_missing_clinic_rolls_back(self, db_session, marketplace):
        patient, clinic1, clinic2, plan = marketplace
        offer = create_offer(db_session, plan, clinic1, 1000)
        competitor = create_offer(db_session, plan, clinic2, 2000)
        clinic1.deleted_at = datetime.utcnow()
        db_session.commit()

        with pytest.raises(InternalFailureError):
            OfferService(db_session).accept_offer(offer.id, patient.id)

        db_session.refresh(offer)
        db_session.refresh(competitor)
        db_session.refresh(plan)
        assert offer.status == OfferStatus.SENT
        assert competitor.status == OfferStatus.SENT
        assert plan.status == PlanStatus.GENERATED
        assert db_session.query(Appointment).count() == 0

    def test_appointment_lead_is_configurable(self, db_session, marketplace):
        patient, clinic1, _, plan = marketplace
        offer = create_offer(db_session, plan, clinic1, 1000)

        before = datetime.utcnow()
        appointment = OfferService(
            db_session, appointment_lead=timedelta(days=3)
        ).accept_offer(offer.id, patient.id)

        assert before + timedelta(days=3) <= appointment.appointment_date
        assert appointment.appointment_date < before + timedelta(days=4)

    def test_foreign_offer_with_deleted_clinic_is_not_found(self, db_session, marketplace):
        """Ownership is checked before the clinic lookup."""
        _, clinic1, _, plan = marketplace
        intruder = create_patient(db_session, "intruder")
        offer = create_offer(db_session, plan, clinic1, 1000)
        clinic1.deleted_at = datetime.utcnow()
        db_session.commit()

        with pytest.raises(NotFoundError):
            OfferService(db_session).accept_offer(offer.id, intruder.id)

        assert db_session.query(Appointment).count() == 0

    def test_concurrent_accepts_on_one_plan(self, db_session, marketplace):
        """Two sessions racing to accept offers on one plan end with a single winner."""
        patient, clinic1, clinic2, plan = marketplace
        offer_ids = [
            create_offer(db_session, plan, clinic1, 222500).id,
            create_offer(db_session, plan, clinic2, 191500).id,
        ]
        patient_id = patient.id
        barrier = threading.Barrier(2, timeout=10)
        results = []
        lock = threading.Lock()

        def accept(offer_id):
            session = TestingSessionLocal()
            try:
                barrier.wait()
                OfferService(session).accept_offer(offer_id, patient_id)
                outcome = "ok"
            except (ConflictError, InternalFailureError) as exc:
                outcome = type(exc).__name__
            finally:
                session.close()
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=accept, args=(offer_id,)) for offer_id in offer_ids]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert len(results) == 2
        assert results.count("ok") == 1

        db_session.expire_all()
        assert db_session.query(ClinicOffer).filter(
            ClinicOffer.status == OfferStatus.ACCEPTED
        ).count() == 1
        assert db_session.query(Appointment).count() == 1
        db_session.refresh(plan)
        assert plan.status == PlanStatus.OFFER_SELECTED
