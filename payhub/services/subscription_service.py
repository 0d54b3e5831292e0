"""
Subscription lifecycle.

PENDING on create, CANCELLED on delete. Activation suspends whatever
else is ACTIVE for the institution and activates the target in one
transaction; the partial unique index on (institution_id) WHERE
status = 'ACTIVE' keeps two concurrent activations from both landing.
"""
import logging
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from payhub.extensions import db
from payhub.errors import InvalidState
from payhub.models import Subscription, SubscriptionStatus
from payhub.services.access import get_scoped_or_404, resolve_target_institution, scoped_query
from payhub.services.audit import record_audit
from payhub.services.pagination import paginate

logger = logging.getLogger(__name__)

RECENT_PAYMENT_COUNT = 5

PLANS = [
    {
        "id": "basic",
        "name": "Basic",
        "price": 29000,
        "currency": "NGN",
        "billingCycle": "monthly",
        "features": [
            "Up to 50 staff members",
            "Basic payslip management",
            "Email support",
            "Standard reports",
            "Mobile app access"
        ]
    },
    {
        "id": "professional",
        "name": "Professional",
        "price": 79000,
        "currency": "NGN",
        "billingCycle": "monthly",
        "features": [
            "Up to 200 staff members",
            "Advanced payslip management",
            "Priority support",
            "Advanced analytics",
            "Custom branding",
            "API access",
            "Bulk upload features"
        ]
    },
    {
        "id": "enterprise",
        "name": "Enterprise",
        "price": 199000,
        "currency": "NGN",
        "billingCycle": "monthly",
        "features": [
            "Unlimited staff members",
            "Full payslip automation",
            "24/7 dedicated support",
            "Custom integrations",
            "Advanced security",
            "White-label solution",
            "Dedicated account manager"
        ]
    }
]


def list_plans():
    return PLANS


def list_subscriptions(caller, filters, page, limit):
    query = scoped_query(Subscription, caller, filters.get('institutionId'))
    status = (filters.get('status') or '').strip().upper()
    if status in SubscriptionStatus.ALL:
        query = query.filter(Subscription.status == status)
    return paginate(query.order_by(Subscription.created_at.desc()), page, limit)


def get_subscription(caller, subscription_id):
    return get_scoped_or_404(Subscription, subscription_id, caller, "Subscription not found")


def create_subscription(caller, data):
    data = dict(data)
    institution_id = resolve_target_institution(caller, data.pop('institution_id', None))

    subscription = Subscription(
        institution_id=institution_id,
        status=SubscriptionStatus.PENDING,
        start_date=datetime.utcnow(),
        **data
    )
    db.session.add(subscription)
    db.session.flush()
    record_audit('subscription.created', 'Subscription', subscription.id, user_id=caller.id,
                 institution_id=institution_id,
                 details={"planName": subscription.plan_name, "billingCycle": subscription.billing_cycle})
    db.session.commit()

    logger.info("Subscription %s created for institution %s", subscription.id, institution_id)
    return subscription


def update_subscription(caller, subscription_id, data):
    subscription = get_subscription(caller, subscription_id)
    data = dict(data)
    data.pop('institution_id', None)

    for field, value in data.items():
        setattr(subscription, field, value)

    record_audit('subscription.updated', 'Subscription', subscription.id, user_id=caller.id,
                 institution_id=subscription.institution_id, details={"fields": sorted(data)})
    db.session.commit()
    return subscription


def cancel_subscription(caller, subscription_id):
    subscription = get_subscription(caller, subscription_id)
    subscription.status = SubscriptionStatus.CANCELLED
    subscription.end_date = datetime.utcnow()

    record_audit('subscription.cancelled', 'Subscription', subscription.id, user_id=caller.id,
                 institution_id=subscription.institution_id)
    db.session.commit()
    return subscription


def activate_subscription(caller, subscription_id):
    """
    Make `subscription_id` the institution's only ACTIVE subscription.

    Raises:
        InvalidState: already active, or another activation won the race
    """
    subscription = get_subscription(caller, subscription_id)
    if subscription.status == SubscriptionStatus.ACTIVE:
        raise InvalidState("Subscription is already active")

    now = datetime.utcnow()
    institution_id = subscription.institution_id
    try:
        suspended = db.session.execute(
            update(Subscription)
            .where(
                Subscription.institution_id == institution_id,
                Subscription.status == SubscriptionStatus.ACTIVE,
                Subscription.id != subscription.id
            )
            .values(status=SubscriptionStatus.SUSPENDED, end_date=now, updated_at=now)
        ).rowcount

        activated = db.session.execute(
            update(Subscription)
            .where(
                Subscription.id == subscription.id,
                Subscription.status != SubscriptionStatus.ACTIVE
            )
            .values(status=SubscriptionStatus.ACTIVE, start_date=now, end_date=None, updated_at=now)
        ).rowcount
        if activated != 1:
            raise InvalidState("Subscription is already active")

        record_audit('subscription.activated', 'Subscription', subscription.id, user_id=caller.id,
                     institution_id=institution_id, details={"suspended": suspended})
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise InvalidState("Another subscription was activated at the same time")
    except InvalidState:
        db.session.rollback()
        raise

    db.session.expire_all()
    logger.info("Subscription %s activated (%s suspended)", subscription_id, suspended)
    return get_subscription(caller, subscription_id)
