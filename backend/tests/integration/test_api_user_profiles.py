"""Integration tests for /api/user-profile endpoints."""

from fastapi.testclient import TestClient

from models import UserProfile


class TestCreateUserProfile:
    def test_creates_profile(self, client: TestClient, db):
        response = client.post(
            "/api/user-profile/create", json={"userId": "user-1", "email": "a@example.com"}
        )
        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "User profile and empty portfolio created"
        assert data["userProfile"]["userId"] == "user-1"
        assert data["userProfile"]["firstName"] == ""
        assert db.query(UserProfile).count() == 1

    def test_existing_profile_returned(self, client: TestClient, db):
        body = {"userId": "user-1", "email": "a@example.com"}
        client.post("/api/user-profile/create", json=body)

        response = client.post(
            "/api/user-profile/create", json={"userId": "user-1", "email": "other@example.com"}
        )
        assert response.status_code == 200
        assert response.json()["userProfile"]["email"] == "a@example.com"
        assert db.query(UserProfile).count() == 1

    def test_profile_gives_empty_portfolio(self, client: TestClient):
        client.post("/api/user-profile/create", json={"userId": "user-1", "email": "a@example.com"})
        response = client.get("/api/portfolio/user-1")
        assert response.status_code == 200
        assert response.json() == []

    def test_blank_email_rejected(self, client: TestClient):
        response = client.post("/api/user-profile/create", json={"userId": "user-1", "email": ""})
        assert response.status_code == 422
