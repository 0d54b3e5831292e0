from flask import Blueprint, current_app
from flask_jwt_extended import jwt_required, current_user
from marshmallow import ValidationError

from payhub.api.responses import success, json_body
from payhub.errors import error_response, first_error_message
from payhub.schemas.auth_schema import (
    LoginSchema, SignupSchema, SuperAdminSchema, ChangePasswordSchema, UserResponseSchema
)
from payhub.services import credentials

# Create Blueprint
bp = Blueprint('auth', __name__)

# Initialize schemas
login_schema = LoginSchema()
signup_schema = SignupSchema()
super_admin_schema = SuperAdminSchema()
change_password_schema = ChangePasswordSchema()
user_schema = UserResponseSchema()


def _validation_failed(err):
    return error_response(first_error_message(err.messages) or "Validation error", 400)


@bp.route('/login', methods=['POST'])
def login():
    """
    Login Endpoint

    Request Body:
        {
            "email": "admin@school.edu",
            "password": "SecurePass123"
        }

    Returns:
        200: {"success": true, "data": {"user": {...}, "token": "eyJhbGc..."}}
        400: Validation error
        401: Invalid credentials (same message whatever was wrong)
    """
    try:
        validated_data = login_schema.load(json_body())
    except ValidationError as err:
        return _validation_failed(err)

    user, token = credentials.login(validated_data['email'], validated_data['password'])
    return success({"user": user_schema.dump(user), "token": token})


@bp.route('/signup', methods=['POST'])
def signup():
    """
    Institution Signup Endpoint

    Creates the institution and its INSTITUTION_ADMIN user in one
    transaction and logs the admin in.

    Request Body:
        {
            "institutionName": "Lagos State University",
            "email": "bursar@lasu.edu.ng",
            "phoneNumber": "08012345678",
            "password": "SecurePass123",
            "confirmPassword": "SecurePass123"
        }

    Returns:
        201: {"success": true, "data": {"user": {...}, "token": "..."}}
        400: Validation error or "User with this email already exists"
    """
    try:
        validated_data = signup_schema.load(json_body())
    except ValidationError as err:
        return _validation_failed(err)

    user, token = credentials.signup(
        validated_data['institution_name'],
        validated_data['email'],
        validated_data['phone_number'],
        validated_data['password']
    )
    current_app.logger.info(f"Signup: institution {user.institution_id} created")
    return success({"user": user_schema.dump(user), "token": token}, status_code=201)


@bp.route('/super-admin', methods=['POST'])
def create_super_admin():
    """
    Bootstrap the platform super admin.

    Only works once: later calls answer 403.
    """
    try:
        validated_data = super_admin_schema.load(json_body())
    except ValidationError as err:
        return _validation_failed(err)

    user, token = credentials.create_super_admin(
        validated_data['email'],
        validated_data['password'],
        validated_data['name']
    )
    return success({"user": user_schema.dump(user), "token": token}, status_code=201)


@bp.route('/change-password', methods=['POST'])
@jwt_required()
def change_password():
    try:
        validated_data = change_password_schema.load(json_body())
    except ValidationError as err:
        return _validation_failed(err)

    credentials.change_password(current_user, validated_data['current_password'], validated_data['new_password'])
    return success(message="Password changed successfully")


@bp.route('/me', methods=['GET'])
@jwt_required()
def get_current_user():
    """
    Get Current User Endpoint

    Returns the live user row behind the token (with its institution),
    so role or status changes show up without logging in again.
    """
    return success(user_schema.dump(current_user))


@bp.route('/logout', methods=['POST'])
@jwt_required()
def logout():
    """Tokens are stateless; the client discards its copy."""
    return success(message="Logged out successfully")
