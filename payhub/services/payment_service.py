"""
Payment records.

Status moves are conditional updates (UPDATE ... WHERE status = ...), so
processing or refunding the same payment twice can never both succeed.
"""
import logging
import secrets
import time
from datetime import datetime

from sqlalchemy import update

from payhub.extensions import db
from payhub.errors import InvalidState, NotFound
from payhub.models import Payment, PaymentStatus, Subscription
from payhub.services.access import get_scoped_or_404, resolve_target_institution, scoped_query
from payhub.services.audit import record_audit
from payhub.services.pagination import paginate

logger = logging.getLogger(__name__)

_REFERENCE_ALPHABET = 'abcdefghijklmnopqrstuvwxyz0123456789'


def generate_reference():
    """Gateway-style reference: pi_<epoch millis>_<9 random chars>."""
    suffix = ''.join(secrets.choice(_REFERENCE_ALPHABET) for _ in range(9))
    return f"pi_{int(time.time() * 1000)}_{suffix}"


def _subscription_in_institution(subscription_id, institution_id):
    if not subscription_id:
        return None
    subscription = Subscription.query.filter_by(id=subscription_id, institution_id=institution_id).first()
    if subscription is None:
        raise NotFound("Subscription not found")
    return subscription.id


def list_payments(caller, filters, page, limit):
    query = scoped_query(Payment, caller, filters.get('institutionId'))
    status = (filters.get('status') or '').strip().upper()
    if status in PaymentStatus.ALL:
        query = query.filter(Payment.status == status)
    subscription_id = filters.get('subscriptionId')
    if subscription_id:
        query = query.filter(Payment.subscription_id == subscription_id)
    return paginate(query.order_by(Payment.created_at.desc()), page, limit)


def get_payment(caller, payment_id):
    return get_scoped_or_404(Payment, payment_id, caller, "Payment not found")


def create_payment(caller, data):
    data = dict(data)
    institution_id = resolve_target_institution(caller, data.pop('institution_id', None))
    subscription_id = _subscription_in_institution(data.pop('subscription_id', None), institution_id)

    payment = Payment(
        institution_id=institution_id,
        subscription_id=subscription_id,
        status=PaymentStatus.PENDING,
        **data
    )
    db.session.add(payment)
    db.session.flush()
    record_audit('payment.created', 'Payment', payment.id, user_id=caller.id,
                 institution_id=institution_id,
                 details={"amount": payment.amount, "currency": payment.currency})
    db.session.commit()

    logger.info("Payment %s created for institution %s", payment.id, institution_id)
    return payment


def _require_mutable(payment):
    if payment.status not in PaymentStatus.MUTABLE:
        raise InvalidState("Only pending or failed payments can be changed")


def update_payment(caller, payment_id, data):
    payment = get_payment(caller, payment_id)
    _require_mutable(payment)

    data = dict(data)
    data.pop('institution_id', None)
    if 'subscription_id' in data:
        payment.subscription_id = _subscription_in_institution(data.pop('subscription_id'), payment.institution_id)

    for field, value in data.items():
        setattr(payment, field, value)

    record_audit('payment.updated', 'Payment', payment.id, user_id=caller.id,
                 institution_id=payment.institution_id, details={"fields": sorted(data)})
    db.session.commit()
    return payment


def delete_payment(caller, payment_id):
    payment = get_payment(caller, payment_id)
    _require_mutable(payment)

    record_audit('payment.deleted', 'Payment', payment.id, user_id=caller.id,
                 institution_id=payment.institution_id,
                 details={"amount": payment.amount, "status": payment.status})
    db.session.delete(payment)
    db.session.commit()


def _transition(caller, payment_id, from_status, to_status, error_message, action, extra_values=None):
    payment = get_payment(caller, payment_id)
    now = datetime.utcnow()
    values = dict(status=to_status, updated_at=now, **(extra_values or {}))

    changed = db.session.execute(
        update(Payment)
        .where(Payment.id == payment.id, Payment.status == from_status)
        .values(**values)
    ).rowcount
    if changed != 1:
        db.session.rollback()
        raise InvalidState(error_message)

    record_audit(action, 'Payment', payment.id, user_id=caller.id,
                 institution_id=payment.institution_id,
                 details={"from": from_status, "to": to_status})
    db.session.commit()
    db.session.expire_all()
    return get_payment(caller, payment_id)


def process_payment(caller, payment_id):
    """PENDING -> COMPLETED, stamping a gateway reference."""
    payment = _transition(
        caller, payment_id,
        PaymentStatus.PENDING, PaymentStatus.COMPLETED,
        "Payment is not pending", 'payment.processed',
        extra_values={"external_reference": generate_reference()}
    )
    logger.info("Payment %s processed", payment.id)
    return payment


def refund_payment(caller, payment_id):
    """COMPLETED -> REFUNDED."""
    payment = _transition(
        caller, payment_id,
        PaymentStatus.COMPLETED, PaymentStatus.REFUNDED,
        "Only completed payments can be refunded", 'payment.refunded'
    )
    logger.info("Payment %s refunded", payment.id)
    return payment
