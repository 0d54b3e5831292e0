"""
Credential store: password hashing, token issuance and the account
operations built on them (login, signup, super admin bootstrap, password
change, staff logins).
"""
import logging
from datetime import datetime

import bcrypt
from flask import current_app
from flask_jwt_extended import create_access_token
from sqlalchemy.exc import IntegrityError

from payhub.extensions import db
from payhub.errors import DuplicateResource, Forbidden, InvalidCredentials, InvalidState, NotFound
from payhub.models import Institution, User, UserRole, Payslip
from payhub.services.audit import record_audit

logger = logging.getLogger(__name__)

_dummy_hashes = {}


def hash_password(password):
    rounds = current_app.config.get('BCRYPT_ROUNDS', 12)
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds)).decode('utf-8')


def verify_password(password, password_hash):
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed stored hash
        return False


def _dummy_hash():
    rounds = current_app.config.get('BCRYPT_ROUNDS', 12)
    if rounds not in _dummy_hashes:
        _dummy_hashes[rounds] = bcrypt.hashpw(b'payhub-dummy-password', bcrypt.gensalt(rounds=rounds)).decode('utf-8')
    return _dummy_hashes[rounds]


def issue_token(user):
    """Sign an access token whose subject is the user id."""
    return create_access_token(
        identity=str(user.id),
        additional_claims={
            "email": user.email,
            "role": user.role,
            "institution_id": user.institution_id
        }
    )


def login(email, password):
    """
    Authenticate by email and password.

    Every failure (unknown email, inactive user or institution, wrong
    password) raises the same InvalidCredentials error. A dummy hash is
    checked when the user is absent so response time does not reveal
    which emails exist.

    Returns:
        tuple: (user, token)
    """
    user = User.query.filter_by(email=email.strip().lower()).first()
    if user is None:
        verify_password(password, _dummy_hash())
        raise InvalidCredentials()

    password_ok = verify_password(password, user.password_hash)
    institution_ok = user.institution is None or user.institution.is_active
    if not (password_ok and user.is_active and institution_ok):
        raise InvalidCredentials()

    user.last_login_at = datetime.utcnow()
    db.session.commit()
    logger.info("User %s logged in", user.id)
    return user, issue_token(user)


def create_institution_with_admin(institution_name, email, phone_number, password, actor_id=None):
    """
    Create an institution and its INSTITUTION_ADMIN in one transaction.

    Email collisions are detected by the unique constraints, not a
    pre-check, so two concurrent signups cannot both succeed.
    """
    institution = Institution(
        name=institution_name,
        email=email,
        phone_number=phone_number
    )
    user = User(
        email=email,
        password_hash=hash_password(password),
        name=institution_name,
        role=UserRole.INSTITUTION_ADMIN,
        phone_number=phone_number,
        institution=institution,
        is_active=True
    )

    try:
        db.session.add_all([institution, user])
        db.session.flush()
        record_audit('institution.created', 'Institution', institution.id,
                     user_id=actor_id or user.id, institution_id=institution.id,
                     details={"name": institution.name})
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateResource("User with this email already exists")

    logger.info("Institution %s created with admin %s", institution.id, user.id)
    return institution, user


def signup(institution_name, email, phone_number, password):
    """
    Register a new institution and log its admin in.

    Returns:
        tuple: (user, token)
    """
    _, user = create_institution_with_admin(institution_name, email, phone_number, password)
    return user, issue_token(user)


def _super_admin_exists():
    return db.session.query(User.id).filter_by(role=UserRole.SUPER_ADMIN).first() is not None


def create_super_admin(email, password, name):
    """
    Bootstrap the single SUPER_ADMIN.

    The partial unique index on users.role is what guarantees the
    singleton; the pre-check only gives the common case a clear message.
    """
    if _super_admin_exists():
        raise Forbidden("Super admin already exists. Cannot create another one.")

    user = User(
        email=email,
        password_hash=hash_password(password),
        name=name,
        role=UserRole.SUPER_ADMIN,
        institution_id=None,
        is_active=True
    )
    db.session.add(user)
    try:
        db.session.flush()
        record_audit('user.super_admin_created', 'User', user.id, user_id=user.id)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        if _super_admin_exists():
            raise Forbidden("Super admin already exists. Cannot create another one.")
        raise DuplicateResource("User with this email already exists")

    logger.info("Super admin %s created", user.id)
    return user, issue_token(user)


def change_password(user, current_password, new_password):
    if not verify_password(current_password, user.password_hash):
        raise InvalidCredentials("Current password is incorrect")

    user.password_hash = hash_password(new_password)
    record_audit('user.password_changed', 'User', user.id,
                 user_id=user.id, institution_id=user.institution_id)
    db.session.commit()


def create_staff_account(staff, password, actor=None):
    """
    Give a staff member a STAFF login.

    The user copies email and name from the staff row, the staff row is
    bound to it, and the member's payslips that have no user yet are
    addressed to the new login.
    """
    if staff.user_id:
        raise InvalidState("Staff member already has an account")
    if not staff.is_active:
        raise NotFound("Staff member not found")

    user = User(
        email=staff.email,
        password_hash=hash_password(password),
        name=staff.name,
        role=UserRole.STAFF,
        institution_id=staff.institution_id,
        is_active=True
    )
    db.session.add(user)
    try:
        db.session.flush()
        staff.user_id = user.id
        Payslip.query.filter(
            Payslip.staff_id == staff.id,
            Payslip.user_id.is_(None)
        ).update({Payslip.user_id: user.id}, synchronize_session=False)
        record_audit('staff.account_created', 'Staff', staff.id,
                     user_id=actor.id if actor else None,
                     institution_id=staff.institution_id,
                     details={"userId": user.id})
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateResource("User with this email already exists")

    logger.info("Staff %s granted login %s", staff.id, user.id)
    return user

