from flask import Blueprint, request, current_app

from payhub.api.responses import success, paginated, json_body
from payhub.models import Staff, UserRole
from payhub.schemas.auth_schema import StaffAccountSchema, UserResponseSchema
from payhub.schemas.staff_schema import StaffSchema, StaffResponseSchema, PayslipBriefSchema
from payhub.services import staff_service
from payhub.services.access import current_caller, roles_required, get_scoped_or_404
from payhub.services.credentials import create_staff_account
from payhub.services.pagination import parse_pagination
from payhub.services.staff_import import import_staff_csv

bp = Blueprint('staff', __name__)

staff_schema = StaffSchema()
staff_response_schema = StaffResponseSchema()
payslip_brief_schema = PayslipBriefSchema()
staff_account_schema = StaffAccountSchema()
user_schema = UserResponseSchema()


@bp.route('', methods=['GET'])
@roles_required(*UserRole.ADMINS)
def list_staff():
    """
    List staff for the caller's institution with search, filters and pagination.

    Query Parameters:
        - page: int (default: 1)
        - limit: int (default: 10, max: 100)
        - search: str (name, email or employee id - case-insensitive, partial match)
        - department: str (exact department)
        - status: str (active, inactive)
        - institutionId: str (super admin only)
    """
    page, limit = parse_pagination(request.args)
    staff, pagination = staff_service.list_staff(current_caller(), request.args, page, limit)
    return paginated(staff_response_schema.dump(staff, many=True), pagination)


@bp.route('/departments', methods=['GET'])
@roles_required(*UserRole.ADMINS)
def list_departments():
    """Distinct department names, sorted."""
    departments = staff_service.list_departments(current_caller(), request.args.get('institutionId'))
    return success(departments)


@bp.route('/<staff_id>', methods=['GET'])
@roles_required(*UserRole.ADMINS)
def get_staff(staff_id):
    """Staff member with their five most recent payslips."""
    staff, recent_payslips = staff_service.get_staff(current_caller(), staff_id)
    data = staff_response_schema.dump(staff)
    data['payslips'] = payslip_brief_schema.dump(recent_payslips, many=True)
    return success(data)


@bp.route('', methods=['POST'])
@roles_required(*UserRole.ADMINS)
def create_staff():
    """
    Add a staff member.

    Request Body:
        {
            "name": "Ada Obi",
            "email": "ada.obi@school.edu",
            "employeeId": "EMP-001",
            "department": "Finance",
            "position": "Accountant",
            "salary": 250000,
            "joinedDate": "2023-01-09"
        }

    Returns:
        201: created staff member
        400: validation error or "Staff member with this email already exists"
    """
    validated_data = staff_schema.load(json_body())
    staff = staff_service.create_staff(current_caller(), validated_data)
    return success(staff_response_schema.dump(staff), status_code=201)


@bp.route('/<staff_id>', methods=['PUT'])
@roles_required(*UserRole.ADMINS)
def update_staff(staff_id):
    validated_data = staff_schema.load(json_body(), partial=True)
    staff = staff_service.update_staff(current_caller(), staff_id, validated_data)
    return success(staff_response_schema.dump(staff))


@bp.route('/<staff_id>', methods=['DELETE'])
@roles_required(*UserRole.ADMINS)
def delete_staff(staff_id):
    staff_service.delete_staff(current_caller(), staff_id)
    return success(message="Staff member deactivated successfully")


@bp.route('/upload-csv', methods=['POST'])
@roles_required(*UserRole.ADMINS)
def upload_staff_csv():
    """
    Bulk import staff from a CSV file (multipart field `file`).

    Expected header: name,email,employeeId,department,position,salary,joinedDate
    Only name and email are required. Rows are numbered from 1, not
    counting the header; a failing row is reported and skipped.

    Returns:
        200: {"totalProcessed", "successCount", "errorCount", "errors", "jobId"}
        400: no file, not a CSV, or unreadable CSV
        413: file larger than MAX_FILE_SIZE
    """
    caller = current_caller()
    summary = import_staff_csv(
        caller,
        request.files.get('file'),
        request.form.get('institutionId') or request.args.get('institutionId')
    )
    current_app.logger.info(
        f"Staff CSV import: job_id={summary['jobId']}, success={summary['successCount']}, "
        f"errors={summary['errorCount']}"
    )
    return success(summary)


@bp.route('/<staff_id>/account', methods=['POST'])
@roles_required(*UserRole.ADMINS)
def create_account(staff_id):
    """
    Give a staff member a STAFF login so they can read their own payslips.

    Request Body:
        {"password": "InitialPass123"}
    """
    caller = current_caller()
    validated_data = staff_account_schema.load(json_body())
    staff = get_scoped_or_404(Staff, staff_id, caller, "Staff member not found")
    user = create_staff_account(staff, validated_data['password'], actor=caller)
    return success(user_schema.dump(user), status_code=201)
