"""Onboarding walkthrough: doctor signup through patient registration at two hospitals."""

from conftest import PASSWORD


def _bearer(client, email):
    response = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['session']['access_token']}"}


def test_doctor_to_patient_across_hospitals(client, store, seed, doctor_registration):
    admin, hospital = seed.hospital_admin("admin@example.com", "City Hospital")
    _, other_hospital = seed.hospital_admin("admin2@example.com", "Lake Hospital")
    other_doctor = seed.doctor("doc2@example.com", other_hospital)
    other_assistant = seed.assistant("asst2@example.com", other_doctor)
    admin_headers = seed.headers(admin)

    approved = client.get("/api/hospitals/approved").json()["hospitals"]
    assert hospital.id in {h["id"] for h in approved}

    doctor_registration["hospitalId"] = hospital.id
    registered = client.post("/api/auth/register", json=doctor_registration)
    assert registered.status_code == 201
    doctor_id = registered.json()["user"]["id"]

    doctor_headers = _bearer(client, "ayesha@example.com")
    blocked = client.post(
        "/api/doctor/assistants",
        json={"fullName": "Bilal Ahmed", "email": "bilal@example.com", "password": PASSWORD},
        headers=doctor_headers,
    )
    assert blocked.status_code == 403

    pending = client.get("/api/hospital-admin/pending-doctors", headers=admin_headers).json()["doctors"]
    assert [d["profile_id"] for d in pending] == [doctor_id]
    assert client.post(f"/api/hospital-admin/doctors/{doctor_id}/approve", headers=admin_headers).status_code == 200

    created = client.post(
        "/api/doctor/assistants",
        json={"fullName": "Bilal Ahmed", "email": "bilal@example.com", "password": PASSWORD},
        headers=doctor_headers,
    )
    assert created.status_code == 201
    assistant_id = created.json()["assistant"]["id"]
    assert created.json()["assistant"]["approval_status"] == "pending"

    listed = client.get("/api/doctor/assistants", headers=doctor_headers).json()["assistants"]
    assert [a["full_name"] for a in listed] == ["Bilal Ahmed"]

    assert client.post(
        f"/api/hospital-admin/assistants/{assistant_id}/approve", headers=admin_headers
    ).status_code == 200

    assistant_headers = _bearer(client, "bilal@example.com")
    me = client.get("/api/assistant/me", headers=assistant_headers)
    assert me.status_code == 200

    patient = {"fullName": "John Doe", "cnic": "111-1-1"}
    first = client.post("/api/patients", json=patient, headers=assistant_headers)
    assert first.status_code == 201
    assert first.json()["status"] == "created"
    patient_id = first.json()["patient"]["id"]

    second = client.post("/api/patients", json=patient, headers=seed.headers(other_assistant))
    assert second.status_code == 200
    assert second.json()["status"] == "linked"
    assert second.json()["patient"]["id"] == patient_id

    search = client.get("/api/patients/search", params={"cnic": "111-1-1"}, headers=doctor_headers).json()
    assert search["found"] is True
    assert [h["id"] for h in search["hospitals"]] == [other_hospital.id]

    assert client.get("/api/doctor/patients", headers=doctor_headers).json()["patients"] == []
    assert len(store.patient_profiles) == 1
