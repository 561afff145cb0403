from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..core.security import UserRole
from .profile import PatientResponse, ClinicResponse, RegulatorResponse


class UserLogin(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    is_active: bool
    profile: Optional[Union[PatientResponse, ClinicResponse, RegulatorResponse]] = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
