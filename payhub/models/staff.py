from payhub.extensions import db
from datetime import datetime
import uuid


class Staff(db.Model):
    __tablename__ = 'staff'

    """
    Staff Model - a payroll subject inside an institution.

    A staff member does not need a login; `user_id` is set once an admin
    grants them a STAFF account. Emails are unique per institution, active
    or not, so a deactivated member still blocks re-use of the address.
    """

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    institution_id = db.Column(db.String(36), db.ForeignKey('institutions.id'), nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, unique=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    employee_id = db.Column(db.String(100))
    department = db.Column(db.String(255), index=True)
    position = db.Column(db.String(255))
    salary = db.Column(db.Numeric(12, 2, asdecimal=False))
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    joined_date = db.Column(db.Date)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    institution = db.relationship('Institution', back_populates='staff')
    user = db.relationship('User')
    payslips = db.relationship('Payslip', back_populates='staff', lazy='dynamic')

    __table_args__ = (
        db.UniqueConstraint('institution_id', 'email', name='uq_staff_institution_email'),
    )
