from payhub.extensions import db
from datetime import datetime
import uuid


class SubscriptionStatus:
    PENDING = 'PENDING'
    ACTIVE = 'ACTIVE'
    SUSPENDED = 'SUSPENDED'
    CANCELLED = 'CANCELLED'

    ALL = (PENDING, ACTIVE, SUSPENDED, CANCELLED)


BILLING_CYCLES = ('monthly', 'yearly')


class Subscription(db.Model):
    __tablename__ = 'subscriptions'

    """
    Subscription Model - an institution's plan.

    The partial unique index guarantees at most one ACTIVE subscription per
    institution; activation suspends the previous one in the same
    transaction (see services/subscription_service.py).
    """

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    institution_id = db.Column(db.String(36), db.ForeignKey('institutions.id'), nullable=False, index=True)
    plan_name = db.Column(db.String(100), nullable=False)
    plan_price = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False)
    billing_cycle = db.Column(db.String(20), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=SubscriptionStatus.PENDING, index=True)
    start_date = db.Column(db.DateTime)
    end_date = db.Column(db.DateTime)
    trial_end_date = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    institution = db.relationship('Institution', back_populates='subscriptions')
    payments = db.relationship(
        'Payment',
        back_populates='subscription',
        lazy='dynamic',
        order_by='Payment.created_at.desc()',
    )

    __table_args__ = (
        db.Index(
            'uq_subscriptions_one_active',
            'institution_id',
            unique=True,
            sqlite_where=db.text("status = 'ACTIVE'"),
            postgresql_where=db.text("status = 'ACTIVE'"),
        ),
    )
