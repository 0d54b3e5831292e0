"""
PayHub - Test Configuration

Each test gets a fresh app bound to an in-memory SQLite database, eager
Celery and cheap bcrypt rounds.
"""
import io

import pytest

from payhub import create_app
from payhub.config import TestingConfig
from payhub.extensions import db


DEFAULT_PASSWORD = "SecurePass123"


@pytest.fixture
def app(tmp_path):
    app = create_app(TestingConfig)
    app.config['UPLOAD_FOLDER'] = str(tmp_path / 'uploads')
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


def _session(payload):
    data = payload['data']
    return {
        "token": data['token'],
        "headers": auth_headers(data['token']),
        "user": data['user'],
        "institution_id": data['user'].get('institutionId'),
    }


@pytest.fixture
def signup_institution(client):
    """Factory: sign up an institution and return its admin session."""
    def _signup(email="bursar@lasu.edu.ng", institution_name="Lagos State University", password=DEFAULT_PASSWORD):
        response = client.post('/api/auth/signup', json={
            "institutionName": institution_name,
            "email": email,
            "phoneNumber": "08012345678",
            "password": password,
            "confirmPassword": password
        })
        assert response.status_code == 201, response.get_json()
        return _session(response.get_json())
    return _signup


@pytest.fixture
def admin(signup_institution):
    return signup_institution()


@pytest.fixture
def other_admin(signup_institution):
    return signup_institution(email="accounts@unilag.edu.ng", institution_name="University of Lagos")


@pytest.fixture
def super_admin(client):
    response = client.post('/api/auth/super-admin', json={
        "email": "root@payhub.ng",
        "password": DEFAULT_PASSWORD,
        "name": "Platform Admin"
    })
    assert response.status_code == 201, response.get_json()
    return _session(response.get_json())


@pytest.fixture
def create_staff(client):
    """Factory: create a staff member through the API and return its JSON."""
    def _create(session, name="Ada Obi", email="ada.obi@school.edu", **extra):
        payload = {"name": name, "email": email}
        payload.update(extra)
        response = client.post('/api/staff', json=payload, headers=session['headers'])
        assert response.status_code == 201, response.get_json()
        return response.get_json()['data']
    return _create


@pytest.fixture
def staff_login(client):
    """Factory: give a staff member a login and return the STAFF session."""
    def _grant(admin_session, staff, password=DEFAULT_PASSWORD):
        response = client.post(
            f"/api/staff/{staff['id']}/account",
            json={"password": password},
            headers=admin_session['headers']
        )
        assert response.status_code == 201, response.get_json()
        login = client.post('/api/auth/login', json={"email": staff['email'], "password": password})
        assert login.status_code == 200, login.get_json()
        return _session(login.get_json())
    return _grant


def upload(content, filename):
    """Multipart payload for the test client."""
    return {"file": (io.BytesIO(content), filename)}
