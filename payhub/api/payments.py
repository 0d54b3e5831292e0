from flask import Blueprint, request

from payhub.api.responses import success, paginated, json_body
from payhub.models import UserRole
from payhub.schemas.billing_schema import PaymentSchema, PaymentResponseSchema
from payhub.services import payment_service
from payhub.services.access import current_caller, roles_required
from payhub.services.pagination import parse_pagination

bp = Blueprint('payments', __name__)

payment_schema = PaymentSchema()
payment_response_schema = PaymentResponseSchema()


@bp.route('', methods=['GET'])
@roles_required(*UserRole.ADMINS)
def list_payments():
    """
    Query Parameters:
        - page, limit: pagination (defaults 1 and 10)
        - status: str (PENDING, COMPLETED, FAILED, REFUNDED)
        - subscriptionId: str
        - institutionId: str (super admin only)
    """
    page, limit = parse_pagination(request.args)
    payments, pagination = payment_service.list_payments(current_caller(), request.args, page, limit)
    return paginated(payment_response_schema.dump(payments, many=True), pagination)


@bp.route('/<payment_id>', methods=['GET'])
@roles_required(*UserRole.ADMINS)
def get_payment(payment_id):
    payment = payment_service.get_payment(current_caller(), payment_id)
    return success(payment_response_schema.dump(payment))


@bp.route('', methods=['POST'])
@roles_required(*UserRole.ADMINS)
def create_payment():
    """
    Request Body:
        {"amount": 79000, "currency": "NGN", "description": "March plan", "subscriptionId": "<uuid>"}
    """
    validated_data = payment_schema.load(json_body())
    payment = payment_service.create_payment(current_caller(), validated_data)
    return success(payment_response_schema.dump(payment), status_code=201)


@bp.route('/<payment_id>', methods=['PUT'])
@roles_required(*UserRole.ADMINS)
def update_payment(payment_id):
    validated_data = payment_schema.load(json_body(), partial=True)
    payment = payment_service.update_payment(current_caller(), payment_id, validated_data)
    return success(payment_response_schema.dump(payment))


@bp.route('/<payment_id>', methods=['DELETE'])
@roles_required(*UserRole.ADMINS)
def delete_payment(payment_id):
    payment_service.delete_payment(current_caller(), payment_id)
    return success(message="Payment deleted successfully")


@bp.route('/<payment_id>/process', methods=['POST'])
@roles_required(*UserRole.ADMINS)
def process_payment(payment_id):
    payment = payment_service.process_payment(current_caller(), payment_id)
    return success(payment_response_schema.dump(payment), message="Payment processed successfully")


@bp.route('/<payment_id>/refund', methods=['POST'])
@roles_required(*UserRole.ADMINS)
def refund_payment(payment_id):
    payment = payment_service.refund_payment(current_caller(), payment_id)
    return success(payment_response_schema.dump(payment), message="Payment refunded successfully")
