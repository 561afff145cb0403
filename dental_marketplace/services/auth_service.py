from sqlalchemy.orm import Session
from datetime import datetime, timedelta
import hashlib
import logging

from ..models.user import User, RefreshToken
from ..core.exceptions import InvalidCredentialsError, NotFoundError
from ..core.security import (
    verify_password, create_token_pair, verify_token,
    AuthenticationError, UserRole
)
from ..schemas.auth import UserLogin, TokenResponse, UserResponse
from ..schemas.profile import PatientResponse, ClinicResponse, RegulatorResponse
from .profile_service import ProfileService

logger = logging.getLogger(__name__)

PROFILE_SCHEMAS = {
    UserRole.PATIENT: PatientResponse,
    UserRole.CLINIC: ClinicResponse,
    UserRole.REGULATOR: RegulatorResponse,
}


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def authenticate_user(self, login_data: UserLogin) -> TokenResponse:
        """Authenticate user and return tokens."""
        user = self.db.query(User).filter(
            User.username == login_data.username,
            User.not_deleted()
        ).first()

        # Same error for unknown user and wrong password
        if not user or not verify_password(login_data.password, user.password_hash):
            logger.warning(f"Failed login for username '{login_data.username}'")
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AuthenticationError("Account is deactivated")

        user.last_login = datetime.utcnow()

        # Create tokens
        tokens = create_token_pair(user.id, user.username, user.role)

        # Store refresh token
        self._store_refresh_token(user.id, tokens.refresh_token)

        self.db.commit()
        logger.info(f"User {user.id} ({user.role.value}) logged in")

        return TokenResponse(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_type=tokens.token_type,
            expires_in=tokens.expires_in,
            user=self.build_user_response(user)
        )

    def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """Refresh access token using refresh token."""
        # Verify refresh token
        token_payload = verify_token(refresh_token)
        if not token_payload or token_payload.token_type != "refresh":
            raise AuthenticationError("Invalid refresh token")

        # Check if refresh token exists in database
        token_hash = hashlib.sha256(refresh_token.encode()).hexdigest()
        stored_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == token_hash,
            RefreshToken.is_revoked.is_(False),
            RefreshToken.expires_at > datetime.utcnow(),
            RefreshToken.not_deleted()
        ).first()

        if not stored_token:
            raise AuthenticationError("Invalid or expired refresh token")

        user = self.db.query(User).filter(
            User.id == token_payload.sub,
            User.not_deleted()
        ).first()

        if not user or not user.is_active:
            raise AuthenticationError("User not found or inactive")

        # Create new tokens
        new_tokens = create_token_pair(user.id, user.username, user.role)

        # Revoke old refresh token and store new one
        stored_token.is_revoked = True
        self._store_refresh_token(user.id, new_tokens.refresh_token)

        self.db.commit()

        return TokenResponse(
            access_token=new_tokens.access_token,
            refresh_token=new_tokens.refresh_token,
            token_type=new_tokens.token_type,
            expires_in=new_tokens.expires_in,
            user=self.build_user_response(user)
        )

    def logout_user(self, refresh_token: str) -> bool:
        """Logout user by revoking refresh token. Returns False if the token was unknown."""
        token_hash = hashlib.sha256(refresh_token.encode()).hexdigest()
        stored_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == token_hash,
            RefreshToken.not_deleted()
        ).first()

        if not stored_token:
            return False

        stored_token.is_revoked = True
        self.db.commit()
        return True

    def build_user_response(self, user: User) -> UserResponse:
        """User data together with the profile selected by the user's role."""
        response = UserResponse.model_validate(user)
        try:
            profile = ProfileService(self.db).resolve(user)
        except NotFoundError:
            return response
        response.profile = PROFILE_SCHEMAS[UserRole(user.role)].model_validate(profile)
        return response

    def _store_refresh_token(self, user_id: int, refresh_token: str):
        """Store refresh token in database."""
        token_hash = hashlib.sha256(refresh_token.encode()).hexdigest()

        # Decode token to get expiration
        token_payload = verify_token(refresh_token)
        if token_payload and token_payload.exp:
            expires_at = datetime.utcfromtimestamp(token_payload.exp)
        else:
            expires_at = datetime.utcnow() + timedelta(days=7)

        # One live refresh token per user
        self.db.query(RefreshToken).filter(
            RefreshToken.user_id == user_id
        ).update({"is_revoked": True})

        self.db.add(RefreshToken(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at
        ))
