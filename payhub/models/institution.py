from payhub.extensions import db
from datetime import datetime
import uuid


class Institution(db.Model):
    __tablename__ = 'institutions'

    """
    Institution Model - the tenant. Every staff member, payslip, subscription
    and payment belongs to exactly one institution.

    Institutions are never hard-deleted: deactivating one (is_active=False)
    locks its users out while keeping its payroll history.

    Attributes:
        id (str): Unique identifier (UUID)
        name (str): Display name (e.g., "Lagos State University")
        email (str): Contact email, unique across all institutions
        phone_number (str): Contact phone
        address (str): Postal address
        website (str): Public website
        logo (str): Logo URL
        is_active (bool): False once a super admin deactivates the tenant
    """

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(255), nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    phone_number = db.Column(db.String(50))
    address = db.Column(db.String(500))
    website = db.Column(db.String(255))
    logo = db.Column(db.String(500))
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    users = db.relationship('User', back_populates='institution', lazy='dynamic')
    staff = db.relationship('Staff', back_populates='institution', lazy='dynamic')
    payslips = db.relationship('Payslip', back_populates='institution', lazy='dynamic')
    subscriptions = db.relationship('Subscription', back_populates='institution', lazy='dynamic')
