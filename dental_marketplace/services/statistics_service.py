"""
Read-only aggregation over the daily ``statistics`` fact table.

Rows without a clinic are regional aggregates; rows with a clinic are
per-clinic. A single query never mixes the two.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import NotFoundError
from ..models.appointment import Appointment
from ..models.clinic import Clinic, PriceList
from ..models.statistics import Statistics
from ..schemas.profile import ClinicResponse
from ..schemas.statistics import (
    ClinicDetailsResponse, ClinicOverview, DashboardSummary, DiseaseAnalyticsResponse,
    DiseaseShare, DiseaseTotals, RegulatorDashboardResponse, StatisticsReport,
    StatisticsResponse
)

logger = logging.getLogger(__name__)

PERIOD_DAYS = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
}

# Reporting order of the disease counters
DISEASES = ("caries", "pulpitis", "periodontitis", "gingivitis", "parodontitis")


@dataclass
class Rollup:
    """Totals over a set of statistics rows."""

    treatment_plans: int = 0
    appointments_completed: int = 0
    revenue: int = 0
    patients: int = 0
    diseases: Dict[str, int] = field(default_factory=lambda: dict.fromkeys(DISEASES, 0))
    average_wait_days: float = 0.0
    average_treatment_cost: int = 0
    row_count: int = 0

    @property
    def total_cases(self) -> int:
        return sum(self.diseases.values())


def resolve_period(period: Optional[str] = None, today: Optional[date] = None) -> Tuple[str, date, date]:
    """Map a symbolic period onto an inclusive ``[start, end]`` date range.

    Unknown or missing periods fall back to the configured default.
    """
    if period not in PERIOD_DAYS:
        period = settings.DEFAULT_STATS_PERIOD if settings.DEFAULT_STATS_PERIOD in PERIOD_DAYS else "30d"
    end = today or datetime.utcnow().date()
    start = end - timedelta(days=PERIOD_DAYS[period])
    return period, start, end


def rollup(rows: List[Statistics]) -> Rollup:
    result = Rollup(row_count=len(rows))
    wait_days = 0.0
    treatment_cost = 0.0

    for row in rows:
        result.treatment_plans += row.treatment_plans_generated or 0
        result.appointments_completed += row.appointments_completed or 0
        result.revenue += row.total_revenue or 0
        result.patients += row.patient_count or 0
        for disease in DISEASES:
            result.diseases[disease] += getattr(row, f"{disease}_count") or 0
        wait_days += row.average_wait_days or 0
        treatment_cost += row.average_treatment_cost or 0

    if rows:
        result.average_wait_days = wait_days / len(rows)
        result.average_treatment_cost = int(treatment_cost / len(rows))

    return result


def disease_breakdown(totals: Dict[str, int]) -> List[DiseaseShare]:
    """Share of each disease in the total case count, as percentages."""
    total = sum(totals.values())
    shares = []
    for disease in DISEASES:
        count = totals.get(disease, 0)
        percentage = round(count / total * 100, 2) if total > 0 else 0.0
        shares.append(DiseaseShare(disease=disease, count=count, percentage=percentage))
    return shares


class StatisticsService:
    def __init__(self, db: Session):
        self.db = db

    def get_statistics(
        self,
        start: date,
        end: date,
        clinic_id: Optional[int] = None
    ) -> List[Statistics]:
        """Daily rows in ``[start, end]`` ordered by date.

        ``clinic_id=None`` selects the regional rows only.
        """
        query = self.db.query(Statistics).filter(
            Statistics.date.between(start, end),
            Statistics.not_deleted()
        )
        if clinic_id is None:
            query = query.filter(Statistics.clinic_id.is_(None))
        else:
            query = query.filter(Statistics.clinic_id == clinic_id)

        return query.order_by(Statistics.date.asc(), Statistics.id.asc()).all()

    def regional_dashboard(self, period: Optional[str] = None) -> RegulatorDashboardResponse:
        period, start, end = resolve_period(period)
        rows = self.get_statistics(start, end)
        totals = rollup(rows)

        total_clinics = self.db.query(func.count(Clinic.id)).filter(
            Clinic.not_deleted()
        ).scalar() or 0

        return RegulatorDashboardResponse(
            period=period,
            summary=DashboardSummary(
                total_clinics=total_clinics,
                total_treatment_plans=totals.treatment_plans,
                total_appointments=totals.appointments_completed,
                total_revenue=totals.revenue,
                total_patients=totals.patients,
                average_wait_days=totals.average_wait_days,
                average_treatment_cost=totals.average_treatment_cost,
            ),
            disease_statistics=DiseaseTotals(**totals.diseases),
            time_series=[StatisticsResponse.model_validate(row) for row in rows],
        )

    def disease_analytics(self, period: Optional[str] = None) -> DiseaseAnalyticsResponse:
        period, start, end = resolve_period(period)
        rows = self.get_statistics(start, end)
        totals = rollup(rows)

        return DiseaseAnalyticsResponse(
            period=period,
            total_cases=totals.total_cases,
            diseases=disease_breakdown(totals.diseases),
            time_series=[StatisticsResponse.model_validate(row) for row in rows],
        )

    def statistics_report(
        self,
        period: Optional[str] = None,
        clinic_id: Optional[int] = None
    ) -> StatisticsReport:
        """Regional rows, or one clinic's rows together with that clinic."""
        period, start, end = resolve_period(period)
        rows = self.get_statistics(start, end, clinic_id)

        clinic = None
        if clinic_id is not None:
            clinic = self._get_clinic(clinic_id, required=False)

        return StatisticsReport(
            period=period,
            clinic=ClinicResponse.model_validate(clinic) if clinic else None,
            statistics=[StatisticsResponse.model_validate(row) for row in rows],
        )

    def clinic_analytics(self, clinic: Clinic, period: Optional[str] = None) -> StatisticsReport:
        period, start, end = resolve_period(period)
        rows = self.get_statistics(start, end, clinic.id)
        return StatisticsReport(
            period=period,
            clinic=ClinicResponse.model_validate(clinic),
            statistics=[StatisticsResponse.model_validate(row) for row in rows],
        )

    def clinic_overview(
        self,
        city: Optional[str] = None,
        district: Optional[str] = None
    ) -> List[ClinicOverview]:
        """Every clinic with the figures from its most recent statistics row."""
        query = self.db.query(Clinic).filter(Clinic.not_deleted())
        if city:
            query = query.filter(Clinic.city == city)
        if district:
            query = query.filter(Clinic.district == district)

        overview = []
        for clinic in query.order_by(Clinic.id).all():
            latest = self.db.query(Statistics).filter(
                Statistics.clinic_id == clinic.id,
                Statistics.not_deleted()
            ).order_by(Statistics.date.desc(), Statistics.id.desc()).first()

            entry = ClinicOverview(
                id=clinic.id,
                name=clinic.name,
                license_number=clinic.license_number,
                rating=clinic.rating or 0,
                review_count=clinic.review_count or 0,
                city=clinic.city,
                district=clinic.district,
                year_established=clinic.year_established,
            )
            if latest is not None:
                entry.patient_count = latest.patient_count
                entry.total_revenue = latest.total_revenue
                entry.average_wait_days = latest.average_wait_days
            overview.append(entry)

        return overview

    def clinic_details(self, clinic_id: int, period: Optional[str] = None) -> ClinicDetailsResponse:
        clinic = self._get_clinic(clinic_id)
        period, start, end = resolve_period(period)
        rows = self.get_statistics(start, end, clinic.id)

        price_list_count = self.db.query(func.count(PriceList.id)).filter(
            PriceList.clinic_id == clinic.id,
            PriceList.not_deleted()
        ).scalar() or 0
        appointments_count = self.db.query(func.count(Appointment.id)).filter(
            Appointment.clinic_id == clinic.id,
            Appointment.not_deleted()
        ).scalar() or 0

        return ClinicDetailsResponse(
            clinic=ClinicResponse.model_validate(clinic),
            period=period,
            statistics=[StatisticsResponse.model_validate(row) for row in rows],
            price_list_count=price_list_count,
            appointments_count=appointments_count,
        )

    def _get_clinic(self, clinic_id: int, required: bool = True) -> Optional[Clinic]:
        clinic = self.db.query(Clinic).filter(
            Clinic.id == clinic_id,
            Clinic.not_deleted()
        ).first()
        if clinic is None and required:
            raise NotFoundError("Clinic not found")
        return clinic
