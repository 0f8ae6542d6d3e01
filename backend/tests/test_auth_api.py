from carelink.config import settings
from carelink.models import ApprovalStatus, UserRole
from carelink.services.identity import create_access_token, create_refresh_token
from conftest import PASSWORD


def test_register_doctor(client, store, seed, doctor_registration):
    _, hospital = seed.hospital_admin("admin@example.com", "City Hospital")
    doctor_registration["hospitalId"] = hospital.id

    response = client.post("/api/auth/register", json=doctor_registration)

    assert response.status_code == 201
    user = response.json()["user"]
    assert user["email"] == "ayesha@example.com"
    assert user["user_metadata"]["role"] == "doctor"
    assert store.doctor_profiles[user["id"]].license_number == "PMC-4411"


def test_register_admin_role_is_hospital_admin(client, store):
    response = client.post(
        "/api/auth/register",
        json={
            "role": "admin",
            "fullName": "Imran Qureshi",
            "email": "owner@example.com",
            "password": PASSWORD,
            "phone": "0300-7654321",
            "gender": "male",
            "dob": "1975-01-09",
            "hospitalName": "Mayo Hospital",
            "hospitalAddress": "Anarkali, Lahore",
            "hospitalType": "teaching",
        },
    )

    assert response.status_code == 201
    user_id = response.json()["user"]["id"]
    assert store.profiles[user_id].role == "hospital_admin"


def test_register_unknown_hospital_is_bad_request(client, doctor_registration):
    doctor_registration["hospitalId"] = "missing"

    response = client.post("/api/auth/register", json=doctor_registration)

    assert response.status_code == 400
    assert response.json()["error"] == "Selected hospital not found"


def test_register_validation_errors_are_400(client, doctor_registration):
    del doctor_registration["cnic"]
    doctor_registration["hospitalId"] = "any"

    response = client.post("/api/auth/register", json=doctor_registration)

    body = response.json()
    assert response.status_code == 400
    assert body["type"] == "validation_error"
    assert "cnic" in body["error"]
    assert body["request_id"]


def test_register_rejects_self_registered_patient(client, doctor_registration):
    doctor_registration["role"] = "patient"

    response = client.post("/api/auth/register", json=doctor_registration)

    assert response.status_code == 400


def test_duplicate_email_is_conflict(client, seed, doctor_registration):
    seed.account("ayesha@example.com", UserRole.patient)
    _, hospital = seed.hospital_admin("admin@example.com", "City Hospital")
    doctor_registration["hospitalId"] = hospital.id

    response = client.post("/api/auth/register", json=doctor_registration)

    assert response.status_code == 409
    assert response.json()["error"] == "Email already registered"


def test_login_returns_session(client, store, seed):
    account = seed.account("doc@example.com", UserRole.doctor)

    response = client.post("/api/auth/login", json={"email": "doc@example.com", "password": PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["id"] == account.id
    assert body["session"]["token_type"] == "bearer"
    assert body["session"]["expires_in"] == settings.jwt_access_token_expire_minutes * 60
    assert store.accounts[account.id].last_sign_in_at is not None


def test_login_with_wrong_password(client, seed):
    seed.account("doc@example.com", UserRole.doctor)

    response = client.post("/api/auth/login", json={"email": "doc@example.com", "password": "wrong-password"})

    assert response.status_code == 401
    assert response.json()["error"] == "Incorrect email or password"


def test_refresh_issues_new_pair(client, seed):
    account = seed.account("doc@example.com", UserRole.doctor)

    response = client.post(
        "/api/auth/refresh",
        json={"refresh_token": create_refresh_token({"sub": account.id})},
    )

    assert response.status_code == 200
    assert response.json()["session"]["access_token"]


def test_refresh_token_cannot_be_used_as_access_token(client, seed):
    account = seed.account("doc@example.com", UserRole.doctor)
    token = create_refresh_token({"sub": account.id})

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_auth_me(client, seed):
    account = seed.account("doc@example.com", UserRole.doctor)

    response = client.get("/api/auth/me", headers=seed.headers(account))

    assert response.status_code == 200
    assert response.json()["user"]["email"] == "doc@example.com"


def test_missing_token_is_unauthorized(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["error"] == "Missing or invalid token"


def test_token_for_deleted_account_is_unauthorized(client):
    token = create_access_token({"sub": "gone"})

    response = client.get("/api/profile/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_profile_me_returns_existing_profile(client, seed):
    account = seed.account("doc@example.com", UserRole.doctor, ApprovalStatus.pending)

    response = client.get("/api/profile/me", headers=seed.headers(account))

    assert response.status_code == 200
    assert response.json()["profile"]["approval_status"] == "pending"


def test_profile_me_provisions_missing_profile(client, store, seed):
    account = seed.account("someone@example.com", UserRole.patient)
    del store.profiles[account.id]

    response = client.get("/api/profile/me", headers=seed.headers(account))

    assert response.status_code == 200
    profile = response.json()["profile"]
    assert profile["role"] == "patient"
    assert profile["approval_status"] == "approved"
    assert account.id in store.profiles


def test_role_routes_need_a_profile(client, store, seed):
    account = seed.account("doc@example.com", UserRole.doctor)
    del store.profiles[account.id]

    response = client.get("/api/doctor/me", headers=seed.headers(account))

    assert response.status_code == 403
    assert response.json()["error"] == "Profile not found"


def test_login_is_rate_limited(client, monkeypatch):
    monkeypatch.setattr(settings, "auth_rate_limit_max_requests", 2)
    payload = {"email": "nobody@example.com", "password": "wrong-password"}

    codes = [client.post("/api/auth/login", json=payload).status_code for _ in range(3)]

    assert codes == [401, 401, 429]
