from datetime import datetime

from dental_marketplace.core.config import settings
from dental_marketplace.core.security import create_token_pair, UserRole
from dental_marketplace.models.user import RefreshToken

from tests.factories import PASSWORD, create_clinic, create_patient, create_regulator, login


def seed_users(db):
    create_patient(db, "patient")
    create_clinic(db, "clinic1")
    create_regulator(db, "regulator")


test_login_data = {
    "username": "patient",
    "password": PASSWORD
}


class TestAuthentication:

    def test_login_success(self, client, db_session):
        """Test successful login."""
        seed_users(db_session)

        response = client.post("/api/v1/auth/login", json=test_login_data)
        assert response.status_code == 200

        data = response.json()
        assert "access_token" in data
        assert "refresh_token" in data
        assert data["token_type"] == "bearer"
        assert data["user"]["username"] == "patient"
        assert data["user"]["role"] == "patient"
        assert data["user"]["profile"]["first_name"] == "Anna"
        assert "password_hash" not in data["user"]

    def test_login_invalid_credentials(self, client):
        """Unknown users get the same answer as wrong passwords."""
        response = client.post("/api/v1/auth/login", json={
            "username": "nobody",
            "password": "wrongpassword"
        })
        assert response.status_code == 401
        assert response.json()["error"] == "InvalidCredentials"

    def test_login_wrong_password(self, client, db_session):
        """Test login with wrong password."""
        seed_users(db_session)

        wrong_login = test_login_data.copy()
        wrong_login["password"] = "wrongpassword"

        response = client.post("/api/v1/auth/login", json=wrong_login)
        assert response.status_code == 401
        assert response.json()["error"] == "InvalidCredentials"

    def test_login_missing_fields(self, client):
        response = client.post("/api/v1/auth/login", json={"username": "patient"})
        assert response.status_code == 422

    def test_login_rate_limited(self, client, fake_redis):
        """Login attempts per client are capped."""
        for _ in range(settings.LOGIN_RATE_LIMIT):
            client.post("/api/v1/auth/login", json={"username": "x", "password": "y"})

        response = client.post("/api/v1/auth/login", json=test_login_data)
        assert response.status_code == 429

    def test_get_current_user(self, client, db_session):
        """Test getting current user info."""
        seed_users(db_session)
        tokens = login(client, "clinic1")

        response = client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"Bearer {tokens['access_token']}"}
        )
        assert response.status_code == 200

        data = response.json()
        assert data["username"] == "clinic1"
        assert data["role"] == "clinic"
        assert data["profile"]["name"] == "StomaPro"

    def test_get_current_user_without_token(self, client):
        response = client.get("/api/v1/auth/me")
        assert response.status_code in (401, 403)

    def test_get_current_user_with_invalid_token(self, client):
        response = client.get(
            "/api/v1/auth/me",
            headers={"Authorization": "Bearer invalid-token"}
        )
        assert response.status_code == 401

    def test_refresh_token_cannot_access_api(self, client, db_session):
        """Only access tokens authenticate requests."""
        seed_users(db_session)
        tokens = login(client, "patient")

        response = client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"Bearer {tokens['refresh_token']}"}
        )
        assert response.status_code == 401

    def test_refresh_token(self, client, db_session):
        """Test token refresh."""
        seed_users(db_session)
        tokens = login(client, "regulator")

        response = client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": tokens["refresh_token"]}
        )
        assert response.status_code == 200

        data = response.json()
        assert data["access_token"] != tokens["access_token"]
        assert data["user"]["role"] == "regulator"

        # The old refresh token is revoked after use
        response = client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": tokens["refresh_token"]}
        )
        assert response.status_code == 401

    def test_refresh_with_unknown_token(self, client):
        tokens = create_token_pair(1, "ghost", UserRole.PATIENT)

        response = client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": tokens.refresh_token}
        )
        assert response.status_code == 401

    def test_soft_deleted_refresh_token_is_rejected(self, client, db_session):
        seed_users(db_session)
        tokens = login(client, "patient")

        for stored in db_session.query(RefreshToken).all():
            stored.deleted_at = datetime.utcnow()
        db_session.commit()

        response = client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": tokens["refresh_token"]}
        )
        assert response.status_code == 401

    def test_logout(self, client, db_session):
        """Test user logout."""
        seed_users(db_session)
        tokens = login(client, "patient")

        response = client.post(
            "/api/v1/auth/logout",
            json={"refresh_token": tokens["refresh_token"]}
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Successfully logged out"

        response = client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": tokens["refresh_token"]}
        )
        assert response.status_code == 401


class TestPublicEndpoints:

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Process-Time" in response.headers

    def test_constants(self, client):
        response = client.get("/api/v1/constants")
        assert response.status_code == 200

        data = response.json()
        assert [item["code"] for item in data["specializations"]] == [
            "therapy", "orthopedics", "surgery", "hygiene", "periodontics"
        ]
        assert "offer_selected" in [item["code"] for item in data["treatment_statuses"]]
