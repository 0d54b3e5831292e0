from flask import Blueprint, request

from payhub.api.responses import success, paginated, json_body
from payhub.models import UserRole
from payhub.schemas.auth_schema import SignupSchema, UserResponseSchema
from payhub.schemas.institution_schema import InstitutionUpdateSchema, InstitutionResponseSchema
from payhub.services import institution_service
from payhub.services.access import current_caller, roles_required
from payhub.services.pagination import parse_pagination

bp = Blueprint('institutions', __name__)

institution_create_schema = SignupSchema()
institution_update_schema = InstitutionUpdateSchema()
institution_response_schema = InstitutionResponseSchema()
user_schema = UserResponseSchema()


def _institution_to_dict(institution, counts):
    data = institution_response_schema.dump(institution)
    data['counts'] = counts
    return data


@bp.route('', methods=['GET'])
@roles_required(UserRole.SUPER_ADMIN)
def list_institutions():
    """
    Query Parameters:
        - page, limit: pagination (defaults 1 and 10)
        - search: str (name or email, case-insensitive, partial match)
        - status: str (active, inactive)
    """
    page, limit = parse_pagination(request.args)
    institutions, counts, pagination = institution_service.list_institutions(request.args, page, limit)
    items = [_institution_to_dict(institution, counts[institution.id]) for institution in institutions]
    return paginated(items, pagination)


@bp.route('', methods=['POST'])
@roles_required(UserRole.SUPER_ADMIN)
def create_institution():
    """
    Onboard an institution on its behalf. Same payload and rules as
    POST /api/auth/signup, but no token is issued for the new admin.
    """
    validated_data = institution_create_schema.load(json_body())
    institution, admin = institution_service.create_institution(current_caller(), validated_data)
    return success({
        "institution": institution_response_schema.dump(institution),
        "admin": user_schema.dump(admin)
    }, status_code=201)


@bp.route('/<institution_id>', methods=['GET'])
@roles_required(*UserRole.ADMINS)
def get_institution(institution_id):
    institution, counts = institution_service.get_institution(current_caller(), institution_id)
    return success(_institution_to_dict(institution, counts))


@bp.route('/<institution_id>', methods=['PUT'])
@roles_required(*UserRole.ADMINS)
def update_institution(institution_id):
    validated_data = institution_update_schema.load(json_body())
    institution = institution_service.update_institution(current_caller(), institution_id, validated_data)
    return success(institution_response_schema.dump(institution))


@bp.route('/<institution_id>', methods=['DELETE'])
@roles_required(UserRole.SUPER_ADMIN)
def delete_institution(institution_id):
    institution_service.deactivate_institution(current_caller(), institution_id)
    return success(message="Institution deactivated successfully")
