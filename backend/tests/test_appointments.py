from unittest.mock import patch
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query
from clinic import db
from clinic.models import Appointment, User


def test_create_fills_defaults_and_creator(client, auth_headers, create_patient):
    patient_id = create_patient()
    resp = client.post(
        "/api/appointments/",
        json={"patient_id": patient_id, "appointment_date": "2030-05-01T10:30:00"},
        headers=auth_headers,
    )
    assert resp.status_code == 201

    appointment = db.session.get(Appointment, resp.get_json()["id"])
    assert appointment.status == "Scheduled"
    assert appointment.appointment_type == "General Consultation"
    assert appointment.notes == ""
    assert appointment.created_by == User.query.first().id


def test_create_converts_offsets_to_utc(client, auth_headers, create_patient, create_appointment):
    patient_id = create_patient()
    with_offset = create_appointment(patient_id, "2030-05-01T10:00:00+02:00")
    zulu = create_appointment(patient_id, "2030-05-01T10:00:00Z")

    resp = client.get(f"/api/appointments/{with_offset}", headers=auth_headers)
    assert resp.get_json()["appointment_date"] == "2030-05-01T08:00:00"
    resp = client.get(f"/api/appointments/{zulu}", headers=auth_headers)
    assert resp.get_json()["appointment_date"] == "2030-05-01T10:00:00"


def test_create_requires_existing_patient(client, auth_headers):
    resp = client.post(
        "/api/appointments/",
        json={"patient_id": "no-such-patient", "appointment_date": "2030-05-01T10:00:00"},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert Appointment.query.count() == 0


def test_create_requires_date(client, auth_headers, create_patient):
    patient_id = create_patient()
    for payload in (
        {"patient_id": patient_id},
        {"patient_id": patient_id, "appointment_date": ""},
        {"patient_id": patient_id, "appointment_date": "next tuesday"},
    ):
        resp = client.post("/api/appointments/", json=payload, headers=auth_headers)
        assert resp.status_code == 400, payload
    assert Appointment.query.count() == 0


def test_create_rejects_unknown_status(client, auth_headers, create_patient):
    patient_id = create_patient()
    resp = client.post(
        "/api/appointments/",
        json={"patient_id": patient_id, "appointment_date": "2030-05-01T10:00:00", "status": "Pending"},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert Appointment.query.count() == 0


def test_list_is_chronological_with_patient_names(client, auth_headers, create_patient, create_appointment):
    grace = create_patient(first_name="Grace", last_name="Hopper")
    alan = create_patient(first_name="Alan", last_name="Turing")
    create_appointment(grace, "2099-01-01T09:00:00")
    create_appointment(alan, "2000-01-01T09:00:00", status="Completed")

    resp = client.get("/api/appointments/", headers=auth_headers)
    assert resp.status_code == 200
    appointments = resp.get_json()["appointments"]
    assert [a["patient"]["last_name"] for a in appointments] == ["Turing", "Hopper"]
    assert [a["is_upcoming"] for a in appointments] == [False, True]

    resp = client.get("/api/appointments/", query_string={"status": "Completed"}, headers=auth_headers)
    assert [a["patient_id"] for a in resp.get_json()["appointments"]] == [alan]


def test_update_changes_status(client, auth_headers, create_patient, create_appointment):
    patient_id = create_patient()
    appointment_id = create_appointment(patient_id, "2030-05-01T10:00:00")

    resp = client.put(
        f"/api/appointments/{appointment_id}",
        json={"status": "Confirmed", "notes": "Bring glasses"},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    appointment = db.session.get(Appointment, appointment_id)
    assert appointment.status == "Confirmed"
    assert appointment.notes == "Bring glasses"


def test_update_with_invalid_status_changes_nothing(client, auth_headers, create_patient, create_appointment):
    patient_id = create_patient()
    appointment_id = create_appointment(patient_id, "2030-05-01T10:00:00")

    resp = client.put(
        f"/api/appointments/{appointment_id}",
        json={"notes": "changed", "status": "Done"},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    appointment = db.session.get(Appointment, appointment_id)
    assert appointment.status == "Scheduled"
    assert appointment.notes == ""


def test_delete_requires_confirmation(client, auth_headers, create_patient, create_appointment):
    patient_id = create_patient()
    appointment_id = create_appointment(patient_id, "2030-05-01T10:00:00")

    resp = client.delete(f"/api/appointments/{appointment_id}", headers=auth_headers)
    assert resp.status_code == 400
    assert Appointment.query.count() == 1

    resp = client.delete(f"/api/appointments/{appointment_id}?confirm=true", headers=auth_headers)
    assert resp.status_code == 200
    assert Appointment.query.count() == 0


def test_options_list_types_and_statuses(client, auth_headers):
    resp = client.get("/api/appointments/options", headers=auth_headers)
    body = resp.get_json()
    assert "Eye Examination" in body["appointment_types"]
    assert body["statuses"] == ["Scheduled", "Confirmed", "In Progress", "Completed", "Cancelled", "No Show"]
    assert body["default_status"] == "Scheduled"


def test_create_accepts_null_notes_and_type(client, auth_headers, create_patient):
    patient_id = create_patient()
    resp = client.post(
        "/api/appointments/",
        json={
            "patient_id": patient_id,
            "appointment_date": "2030-05-01T10:30:00",
            "appointment_type": None,
            "notes": None,
        },
        headers=auth_headers,
    )
    assert resp.status_code == 201, resp.get_json()
    appointment = db.session.get(Appointment, resp.get_json()["id"])
    assert appointment.appointment_type == "General Consultation"
    assert appointment.notes == ""


def test_create_requires_patient_id(client, auth_headers):
    resp = client.post(
        "/api/appointments/", json={"appointment_date": "2030-05-01T10:00:00"}, headers=auth_headers
    )
    assert resp.status_code == 400
    assert Appointment.query.count() == 0


def test_update_rejects_non_string_type_and_notes(client, auth_headers, create_patient, create_appointment):
    patient_id = create_patient()
    appointment_id = create_appointment(patient_id, "2030-05-01T10:00:00")

    for payload in ({"appointment_type": 5}, {"notes": ["a", "b"]}):
        resp = client.put(f"/api/appointments/{appointment_id}", json=payload, headers=auth_headers)
        assert resp.status_code == 400, payload
    appointment = db.session.get(Appointment, appointment_id)
    assert appointment.appointment_type == "General Consultation"
    assert appointment.notes == ""


def test_failed_detail_read_returns_500(client, auth_headers, create_patient, create_appointment):
    appointment_id = create_appointment(create_patient(), "2030-05-01T10:00:00")
    with patch.object(Query, "first", side_effect=SQLAlchemyError("connection lost")):
        resp = client.get(f"/api/appointments/{appointment_id}", headers=auth_headers)
    assert resp.status_code == 500
    assert resp.get_json()["message"] == "Error fetching appointment."
