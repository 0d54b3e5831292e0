from flask import Blueprint, request, current_app, send_file, url_for

from payhub.api.responses import success, paginated, json_body
from payhub.models import UserRole
from payhub.schemas.payslip_schema import PayslipSchema, PayslipResponseSchema
from payhub.services import payslip_service
from payhub.services.access import current_caller, roles_required
from payhub.services.pagination import parse_pagination

bp = Blueprint('payslips', __name__)

payslip_schema = PayslipSchema()
payslip_response_schema = PayslipResponseSchema()


@bp.route('', methods=['GET'])
@roles_required(*UserRole.ALL)
def list_payslips():
    """
    List payslips. Staff users only see payslips addressed to them.

    Query Parameters:
        - page, limit: pagination (defaults 1 and 10)
        - month: str (e.g. "January", any casing)
        - year: int
        - status: str (PROCESSING, AVAILABLE, FAILED)
        - staffId: str
        - institutionId: str (super admin only)
    """
    page, limit = parse_pagination(request.args)
    payslips, pagination = payslip_service.list_payslips(current_caller(), request.args, page, limit)
    return paginated(payslip_response_schema.dump(payslips, many=True), pagination)


@bp.route('/staff/<staff_id>', methods=['GET'])
@roles_required(*UserRole.ADMINS)
def list_staff_payslips(staff_id):
    page, limit = parse_pagination(request.args)
    payslips, pagination = payslip_service.list_staff_payslips(current_caller(), staff_id, page, limit)
    return paginated(payslip_response_schema.dump(payslips, many=True), pagination)


@bp.route('/<payslip_id>', methods=['GET'])
@roles_required(*UserRole.ALL)
def get_payslip(payslip_id):
    payslip = payslip_service.get_payslip(current_caller(), payslip_id)
    return success(payslip_response_schema.dump(payslip))


@bp.route('', methods=['POST'])
@roles_required(*UserRole.ADMINS)
def create_payslip():
    """
    Create a payslip record. Attach the PDF afterwards with
    POST /api/payslips/<id>/upload.

    Request Body:
        {
            "staffId": "<staff uuid>",
            "month": "January",
            "year": 2024,
            "grossPay": 350000,
            "netPay": 290000,
            "deductions": 60000,
            "allowances": 0
        }

    Returns:
        201: created payslip (status PROCESSING until a file is processed)
        400: validation error or duplicate (staff, month, year)
        404: staff member or user not in this institution
    """
    validated_data = payslip_schema.load(json_body())
    payslip = payslip_service.create_payslip(current_caller(), validated_data)
    return success(payslip_response_schema.dump(payslip), status_code=201)


@bp.route('/<payslip_id>', methods=['PUT'])
@roles_required(*UserRole.ADMINS)
def update_payslip(payslip_id):
    validated_data = payslip_schema.load(json_body(), partial=True)
    payslip = payslip_service.update_payslip(current_caller(), payslip_id, validated_data)
    return success(payslip_response_schema.dump(payslip))


@bp.route('/<payslip_id>', methods=['DELETE'])
@roles_required(*UserRole.ADMINS)
def delete_payslip(payslip_id):
    payslip_service.delete_payslip(current_caller(), payslip_id)
    return success(message="Payslip deleted successfully")


@bp.route('/<payslip_id>/upload', methods=['POST'])
@roles_required(*UserRole.ADMINS)
def upload_payslip(payslip_id):
    """
    Attach a PDF (multipart field `file`) and queue it for processing.

    Returns job_id immediately; poll GET /api/jobs/<job_id> (or the
    payslip itself) until the status leaves PROCESSING.

    Returns:
        202: {"payslip": {...}, "jobId": "...", "statusUrl": "/api/jobs/<id>"}
        400: no file or not a PDF
        413: file larger than MAX_FILE_SIZE
        503: background processing unavailable
    """
    payslip, job = payslip_service.upload_payslip_file(current_caller(), payslip_id, request.files.get('file'))
    current_app.logger.debug(f"Payslip upload: payslip_id={payslip.id}, job_id={job.id}, status={job.status}")
    return success({
        "payslip": payslip_response_schema.dump(payslip),
        "jobId": job.id,
        "statusUrl": url_for('jobs.get_job_status', job_id=job.id)
    }, message="Payslip file uploaded and queued for processing", status_code=202)


@bp.route('/<payslip_id>/download', methods=['GET'])
@roles_required(*UserRole.ALL)
def download_payslip(payslip_id):
    payslip = payslip_service.get_payslip_file(current_caller(), payslip_id)
    return send_file(
        payslip.file_path,
        mimetype='application/pdf',
        as_attachment=True,
        download_name=payslip.file_name or f"payslip-{payslip.month}-{payslip.year}.pdf"
    )
