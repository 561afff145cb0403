from typing import Union

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundError
from ..core.security import UserRole
from ..models.clinic import Clinic
from ..models.patient import Patient
from ..models.regulator import Regulator
from ..models.user import User

Profile = Union[Patient, Clinic, Regulator]

PROFILE_MODELS = {
    UserRole.PATIENT: Patient,
    UserRole.CLINIC: Clinic,
    UserRole.REGULATOR: Regulator,
}


class ProfileService:
    def __init__(self, db: Session):
        self.db = db

    def resolve(self, user: User) -> Profile:
        """Return the profile record matching the user's role."""
        model = PROFILE_MODELS[UserRole(user.role)]
        profile = self.db.query(model).filter(
            model.user_id == user.id,
            model.not_deleted()
        ).first()
        if not profile:
            raise NotFoundError(f"{UserRole(user.role).value.capitalize()} profile not found")
        return profile
