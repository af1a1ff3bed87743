import pytest
from fastapi.testclient import TestClient

from leadcrm.app import app
from leadcrm.repositories.crm.dependencies import get_db
from leadcrm.services.users.auth_service import create_access_token

from tests.conftest import ADMIN, agent


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_admin_adds_user_who_can_then_log_in(client) -> None:
    admin = {"Authorization": f"Bearer {create_access_token(ADMIN)}"}

    created = client.post(
        "/add-user", json={"user_name": " Asha ", "password": "secret1"}, headers=admin
    )
    duplicate = client.post(
        "/add-user", json={"user_name": "ASHA", "password": "other"}, headers=admin
    )
    login = client.post("/auth/login", json={"user_name": "Asha", "password": "secret1"})

    assert created.status_code == 201
    assert created.json() == {"message": "User added successfully"}
    assert duplicate.status_code == 409
    assert login.status_code == 200
    body = login.json()
    assert (body["user_name"], body["role"]) == ("asha", "user")

    users = client.get("/users", headers={"Authorization": f"Bearer {body['token']}"})
    assert [user["user_name"] for user in users.json()] == ["asha"]
    assert "hashed_password" not in users.json()[0]


def test_wrong_password(client) -> None:
    admin = {"Authorization": f"Bearer {create_access_token(ADMIN)}"}
    client.post("/add-user", json={"user_name": "ravi", "password": "secret1"}, headers=admin)

    response = client.post("/auth/login", json={"user_name": "ravi", "password": "nope"})

    assert response.status_code == 401
    assert response.json() == {"message": "Invalid credentials"}


def test_agents_cannot_add_users(client) -> None:
    token = create_access_token(agent("ravi"))

    response = client.post(
        "/add-user",
        json={"user_name": "mallory", "password": "secret1", "role": "admin"},
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 403
