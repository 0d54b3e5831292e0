from datetime import timedelta

import pytest
from flask_jwt_extended import create_access_token

from payhub.extensions import db
from payhub.models import AuditLog, Institution, User, UserRole
from tests.conftest import DEFAULT_PASSWORD, auth_headers


def test_signup_creates_institution_and_admin(client, app):
    response = client.post('/api/auth/signup', json={
        "institutionName": "Lagos State University",
        "email": "Bursar@LASU.edu.ng",
        "phoneNumber": "08012345678",
        "password": DEFAULT_PASSWORD,
        "confirmPassword": DEFAULT_PASSWORD
    })

    assert response.status_code == 201
    body = response.get_json()
    assert body['success'] is True
    assert body['data']['token']
    user = body['data']['user']
    assert user['role'] == UserRole.INSTITUTION_ADMIN
    assert user['email'] == "bursar@lasu.edu.ng"
    assert user['institution']['name'] == "Lagos State University"
    assert 'passwordHash' not in user and 'password_hash' not in user

    with app.app_context():
        assert Institution.query.count() == 1
        assert User.query.count() == 1
        stored = User.query.one()
        assert stored.password_hash.startswith('$2')
        assert stored.institution_id == Institution.query.one().id


def test_signup_duplicate_email_is_rejected(client, app, signup_institution):
    signup_institution()

    response = client.post('/api/auth/signup', json={
        "institutionName": "Another School",
        "email": "bursar@lasu.edu.ng",
        "phoneNumber": "08099999999",
        "password": DEFAULT_PASSWORD
    })

    assert response.status_code == 400
    assert response.get_json() == {"success": False, "error": "User with this email already exists"}
    with app.app_context():
        assert Institution.query.count() == 1
        assert User.query.count() == 1


@pytest.mark.parametrize("overrides, message", [
    ({"confirmPassword": "Different123"}, "Passwords don't match"),
    ({"password": "short", "confirmPassword": "short"}, "Password must be at least 8 characters"),
    ({"institutionName": "A"}, "Institution name must be at least 2 characters"),
    ({"email": "not-an-email"}, "Invalid email address"),
])
def test_signup_validation_errors(client, overrides, message):
    payload = {
        "institutionName": "Lagos State University",
        "email": "bursar@lasu.edu.ng",
        "phoneNumber": "08012345678",
        "password": DEFAULT_PASSWORD,
        "confirmPassword": DEFAULT_PASSWORD
    }
    payload.update(overrides)

    response = client.post('/api/auth/signup', json=payload)

    assert response.status_code == 400
    assert response.get_json()['error'] == message


def test_login_success_updates_last_login(client, app, admin):
    response = client.post('/api/auth/login', json={"email": "BURSAR@lasu.edu.ng", "password": DEFAULT_PASSWORD})

    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['token']
    assert data['user']['id'] == admin['user']['id']
    with app.app_context():
        assert db.session.get(User, admin['user']['id']).last_login_at is not None


@pytest.mark.parametrize("email, password", [
    ("bursar@lasu.edu.ng", "WrongPassword1"),
    ("nobody@nowhere.org", DEFAULT_PASSWORD),
])
def test_login_failures_share_one_message(client, admin, email, password):
    response = client.post('/api/auth/login', json={"email": email, "password": password})

    assert response.status_code == 401
    assert response.get_json() == {"success": False, "error": "Invalid credentials"}


def test_me_returns_live_user(client, admin):
    response = client.get('/api/auth/me', headers=admin['headers'])

    assert response.status_code == 200
    assert response.get_json()['data']['email'] == "bursar@lasu.edu.ng"


def test_me_without_token(client):
    response = client.get('/api/auth/me')

    assert response.status_code == 401
    assert response.get_json()['error'] == "Access denied. No token provided."


def test_me_with_garbage_token(client):
    response = client.get('/api/auth/me', headers=auth_headers("not.a.token"))

    assert response.status_code == 401
    assert response.get_json()['error'] == "Invalid token"


def test_me_with_expired_token(client, app, admin):
    with app.app_context():
        token = create_access_token(identity=admin['user']['id'], expires_delta=timedelta(seconds=-5))

    response = client.get('/api/auth/me', headers=auth_headers(token))

    assert response.status_code == 401
    assert response.get_json()['error'] == "Token expired"


def test_token_of_deactivated_user_is_rejected(client, app, admin):
    with app.app_context():
        user = db.session.get(User, admin['user']['id'])
        user.is_active = False
        db.session.commit()

    response = client.get('/api/auth/me', headers=admin['headers'])

    assert response.status_code == 401
    assert response.get_json()['error'] == "User not found or inactive"


def test_super_admin_is_a_singleton(client, super_admin):
    assert super_admin['user']['role'] == UserRole.SUPER_ADMIN
    assert super_admin['user']['institutionId'] is None

    response = client.post('/api/auth/super-admin', json={
        "email": "second@payhub.ng",
        "password": DEFAULT_PASSWORD,
        "name": "Second Admin"
    })

    assert response.status_code == 403
    assert response.get_json()['error'] == "Super admin already exists. Cannot create another one."


def test_change_password(client, admin):
    wrong = client.post('/api/auth/change-password', headers=admin['headers'], json={
        "currentPassword": "NotMyPassword1",
        "newPassword": "BrandNewPass1",
        "confirmPassword": "BrandNewPass1"
    })
    assert wrong.status_code == 401
    assert wrong.get_json()['error'] == "Current password is incorrect"

    changed = client.post('/api/auth/change-password', headers=admin['headers'], json={
        "currentPassword": DEFAULT_PASSWORD,
        "newPassword": "BrandNewPass1",
        "confirmPassword": "BrandNewPass1"
    })
    assert changed.status_code == 200
    assert changed.get_json()['message'] == "Password changed successfully"

    old_login = client.post('/api/auth/login', json={"email": "bursar@lasu.edu.ng", "password": DEFAULT_PASSWORD})
    new_login = client.post('/api/auth/login', json={"email": "bursar@lasu.edu.ng", "password": "BrandNewPass1"})
    assert old_login.status_code == 401
    assert new_login.status_code == 200


def test_change_password_confirmation_must_match(client, admin):
    response = client.post('/api/auth/change-password', headers=admin['headers'], json={
        "currentPassword": DEFAULT_PASSWORD,
        "newPassword": "BrandNewPass1",
        "confirmPassword": "SomethingElse1"
    })

    assert response.status_code == 400
    assert response.get_json()['error'] == "Passwords don't match"


def test_logout(client, admin):
    response = client.post('/api/auth/logout', headers=admin['headers'])

    assert response.status_code == 200
    assert response.get_json() == {"success": True, "message": "Logged out successfully"}


def test_signup_is_audited(app, admin):
    with app.app_context():
        entry = AuditLog.query.filter_by(action='institution.created').one()
        assert entry.institution_id == admin['institution_id']
        assert entry.user_id == admin['user']['id']


def test_audit_log_rows_cannot_be_changed(app, admin):
    with app.app_context():
        entry = AuditLog.query.first()
        entry.action = 'tampered'
        with pytest.raises(RuntimeError):
            db.session.commit()
        db.session.rollback()


def test_health(client):
    response = client.get('/health')

    assert response.status_code == 200
    body = response.get_json()
    assert body['status'] == 'OK'
    assert body['environment'] == 'testing'
    assert 'timestamp' in body and 'uptime' in body


def test_unknown_route_uses_envelope(client):
    response = client.get('/api/does-not-exist')

    assert response.status_code == 404
    assert response.get_json() == {"success": False, "error": "Route not found"}
