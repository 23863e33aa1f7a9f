from app.core.security import verify_password
from conftest import SIGNUP_PAYLOAD, auth_header, login_token, signup


def test_signup_creates_user_with_empty_receipts(client, user_store):
    response = signup(client)
    assert response.status_code == 201

    data = response.json()
    assert data["_id"]
    assert data["receiptUrls"] == []
    assert data["email"] == "a@x.com"
    assert data["companySlogan"] == "We compute"
    assert "password" not in data
    assert "passwordHash" not in data

    stored = user_store.documents[data["_id"]]
    assert stored["receiptUrls"] == []


def test_signup_stores_hash_not_plaintext(client, user_store):
    data = signup(client, password="correct horse").json()
    stored = user_store.documents[data["_id"]]
    assert stored["passwordHash"] != "correct horse"
    assert verify_password("correct horse", stored["passwordHash"])


def test_signup_normalizes_email(client):
    response = signup(client, email="  Mixed@Example.COM ")
    assert response.status_code == 201
    assert response.json()["email"] == "mixed@example.com"


def test_signup_duplicate_email_is_400(client):
    assert signup(client).status_code == 201
    response = signup(client)
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_signup_missing_fields_is_400(client):
    response = client.post("/api/signup", json={"email": "a@x.com"})
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_signup_invalid_email_is_400(client):
    response = signup(client, email="not-an-email")
    assert response.status_code == 400


def test_signup_login_profile_scenario(client):
    assert signup(client).status_code == 201

    response = client.post("/api/login", json={"email": "a@x.com", "password": "p"})
    assert response.status_code == 200
    token = response.json()["token"]

    profile = client.get("/api/user", headers=auth_header(token))
    assert profile.status_code == 200
    assert profile.json() == {
        "firstName": SIGNUP_PAYLOAD["firstName"],
        "lastName": SIGNUP_PAYLOAD["lastName"],
        "email": SIGNUP_PAYLOAD["email"],
        "companyName": SIGNUP_PAYLOAD["companyName"],
        "companySlogan": SIGNUP_PAYLOAD["companySlogan"],
    }


def test_login_is_case_insensitive_on_email(client):
    signup(client)
    assert login_token(client, email="A@X.com")


def test_login_failures_are_indistinguishable(client):
    signup(client)

    wrong_password = client.post("/api/login", json={"email": "a@x.com", "password": "nope"})
    unknown_email = client.post("/api/login", json={"email": "b@x.com", "password": "p"})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json()["code"] == "INVALID_CREDENTIALS"


def test_receipts_initially_empty(client):
    signup(client)
    token = login_token(client)
    response = client.get("/api/user/receipts", headers=auth_header(token))
    assert response.status_code == 200
    assert response.json() == {"receiptUrls": []}
