import pytest
from sqlalchemy import event
from clinic import create_app, db
from config import TestConfig

STAFF = {
    "email": "reception@clinic.test",
    "password": "secret123",
    "full_name": "Rita Reception",
    "phone": "555-0100",
}


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(client):
    resp = client.post("/api/auth/register", json=STAFF)
    assert resp.status_code == 201, resp.get_json()
    resp = client.post("/api/auth/login", json={"email": STAFF["email"], "password": STAFF["password"]})
    assert resp.status_code == 200, resp.get_json()
    return {"x-access-token": resp.get_json()["token"]}


@pytest.fixture
def create_patient(client, auth_headers):
    def _create(**fields):
        payload = {"first_name": "Ada", "last_name": "Lovelace"}
        payload.update(fields)
        resp = client.post("/api/patients/", json=payload, headers=auth_headers)
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()["id"]
    return _create


@pytest.fixture
def create_appointment(client, auth_headers):
    def _create(patient_id, appointment_date, **fields):
        payload = {"patient_id": patient_id, "appointment_date": appointment_date}
        payload.update(fields)
        resp = client.post("/api/appointments/", json=payload, headers=auth_headers)
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()["id"]
    return _create


@pytest.fixture
def create_record(client, auth_headers):
    def _create(patient_id, visit_date="2024-03-01T09:00:00", **fields):
        payload = {"patient_id": patient_id, "visit_date": visit_date}
        payload.update(fields)
        resp = client.post("/api/records/", json=payload, headers=auth_headers)
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()["id"]
    return _create


@pytest.fixture
def statements(app):
    """Collects every SQL statement sent to the database during the test."""
    seen = []

    def record(conn, cursor, statement, parameters, context, executemany):
        seen.append(statement.strip().upper())

    event.listen(db.engine, "before_cursor_execute", record)
    yield seen
    event.remove(db.engine, "before_cursor_execute", record)


@pytest.fixture
def staff():
    return dict(STAFF)
