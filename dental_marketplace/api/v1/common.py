from enum import Enum
from typing import Dict, List, Type

from fastapi import APIRouter

from ...core.security import UserRole
from ...models.appointment import AppointmentStatus
from ...models.feedback import ComplaintStatus
from ...models.offer import OfferStatus
from ...models.treatment import PlanStatus, ScanStatus, Specialization

router = APIRouter(tags=["Constants"])

CONSTANT_ENUMS = {
    "roles": UserRole,
    "specializations": Specialization,
    "treatment_statuses": PlanStatus,
    "offer_statuses": OfferStatus,
    "appointment_statuses": AppointmentStatus,
    "scan_statuses": ScanStatus,
    "complaint_statuses": ComplaintStatus,
}


def _describe(enum_cls: Type[Enum]) -> List[Dict[str, object]]:
    return [
        {
            "code": member.value,
            "name": member.value.replace("_", " ").capitalize(),
            "sort_order": index,
        }
        for index, member in enumerate(enum_cls, start=1)
    ]


@router.get("/constants")
async def get_constants():
    """Lookup values used by the clients: roles, specializations and statuses."""
    return {key: _describe(enum_cls) for key, enum_cls in CONSTANT_ENUMS.items()}
