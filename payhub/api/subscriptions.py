from flask import Blueprint, request

from payhub.api.responses import success, paginated, json_body
from payhub.models import UserRole
from payhub.schemas.billing_schema import SubscriptionSchema, SubscriptionResponseSchema, PaymentResponseSchema
from payhub.services import subscription_service
from payhub.services.access import current_caller, roles_required
from payhub.services.pagination import parse_pagination

bp = Blueprint('subscriptions', __name__)

subscription_schema = SubscriptionSchema()
subscription_response_schema = SubscriptionResponseSchema()
payment_response_schema = PaymentResponseSchema(exclude=('subscription',))


def _subscription_to_dict(subscription, payment_limit=None):
    """Subscription with its payments, newest first."""
    payments = subscription.payments
    if payment_limit:
        payments = payments.limit(payment_limit)
    data = subscription_response_schema.dump(subscription)
    data['payments'] = payment_response_schema.dump(payments.all(), many=True)
    return data


@bp.route('/plans', methods=['GET'])
def list_plans():
    """Public plan catalog (prices in NGN)."""
    return success(subscription_service.list_plans())


@bp.route('', methods=['GET'])
@roles_required(*UserRole.ADMINS)
def list_subscriptions():
    page, limit = parse_pagination(request.args)
    subscriptions, pagination = subscription_service.list_subscriptions(current_caller(), request.args, page, limit)
    items = [
        _subscription_to_dict(subscription, subscription_service.RECENT_PAYMENT_COUNT)
        for subscription in subscriptions
    ]
    return paginated(items, pagination)


@bp.route('/<subscription_id>', methods=['GET'])
@roles_required(*UserRole.ADMINS)
def get_subscription(subscription_id):
    subscription = subscription_service.get_subscription(current_caller(), subscription_id)
    return success(_subscription_to_dict(subscription))


@bp.route('', methods=['POST'])
@roles_required(*UserRole.ADMINS)
def create_subscription():
    """
    Request Body:
        {"planName": "Professional", "planPrice": 79000, "billingCycle": "monthly"}

    The subscription starts PENDING; activate it with
    POST /api/subscriptions/<id>/activate.
    """
    validated_data = subscription_schema.load(json_body())
    subscription = subscription_service.create_subscription(current_caller(), validated_data)
    return success(_subscription_to_dict(subscription), status_code=201)


@bp.route('/<subscription_id>', methods=['PUT'])
@roles_required(*UserRole.ADMINS)
def update_subscription(subscription_id):
    validated_data = subscription_schema.load(json_body(), partial=True)
    subscription = subscription_service.update_subscription(current_caller(), subscription_id, validated_data)
    return success(_subscription_to_dict(subscription))


@bp.route('/<subscription_id>', methods=['DELETE'])
@roles_required(*UserRole.ADMINS)
def cancel_subscription(subscription_id):
    subscription_service.cancel_subscription(current_caller(), subscription_id)
    return success(message="Subscription cancelled successfully")


@bp.route('/<subscription_id>/activate', methods=['POST'])
@roles_required(*UserRole.ADMINS)
def activate_subscription(subscription_id):
    subscription = subscription_service.activate_subscription(current_caller(), subscription_id)
    return success(_subscription_to_dict(subscription), message="Subscription activated successfully")
