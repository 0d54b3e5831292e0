from payhub.extensions import db
from datetime import datetime
import uuid


class PaymentStatus:
    PENDING = 'PENDING'
    COMPLETED = 'COMPLETED'
    FAILED = 'FAILED'
    REFUNDED = 'REFUNDED'

    ALL = (PENDING, COMPLETED, FAILED, REFUNDED)
    # Records that may still be edited or removed
    MUTABLE = (PENDING, FAILED)


class Payment(db.Model):
    __tablename__ = 'payments'

    """
    Payment Model - a charge against an institution, optionally for a
    subscription. Only PENDING->COMPLETED and COMPLETED->REFUNDED moves
    are allowed.
    """

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    institution_id = db.Column(db.String(36), db.ForeignKey('institutions.id'), nullable=False, index=True)
    subscription_id = db.Column(
        db.String(36), db.ForeignKey('subscriptions.id', ondelete='SET NULL'), nullable=True, index=True
    )
    amount = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False)
    currency = db.Column(db.String(10), nullable=False, default='NGN')
    status = db.Column(db.String(20), nullable=False, default=PaymentStatus.PENDING, index=True)
    external_reference = db.Column(db.String(100), index=True)
    description = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    subscription = db.relationship('Subscription', back_populates='payments')
