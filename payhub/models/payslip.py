from payhub.extensions import db
from datetime import datetime
import uuid


class PayslipStatus:
    PROCESSING = 'PROCESSING'
    AVAILABLE = 'AVAILABLE'
    FAILED = 'FAILED'

    ALL = (PROCESSING, AVAILABLE, FAILED)


class Payslip(db.Model):
    __tablename__ = 'payslips'

    """
    Payslip Model - one pay period for one payroll subject.

    Addressing: `staff_id` is the payroll subject, `user_id` the login that
    may read it. At least one is always set. A staff member has at most one
    payslip per (month, year) inside an institution.

    Status lifecycle: PROCESSING until an uploaded PDF has been checked by
    the worker, then AVAILABLE or FAILED.
    """

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    institution_id = db.Column(db.String(36), db.ForeignKey('institutions.id'), nullable=False, index=True)
    staff_id = db.Column(db.String(36), db.ForeignKey('staff.id'), nullable=True, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=True, index=True)
    month = db.Column(db.String(20), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    gross_pay = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False)
    net_pay = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False)
    deductions = db.Column(db.Numeric(12, 2, asdecimal=False))
    allowances = db.Column(db.Numeric(12, 2, asdecimal=False))
    status = db.Column(db.String(20), nullable=False, default=PayslipStatus.PROCESSING, index=True)
    file_path = db.Column(db.String(500))
    file_name = db.Column(db.String(255))
    upload_date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    processed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    institution = db.relationship('Institution', back_populates='payslips')
    staff = db.relationship('Staff', back_populates='payslips')
    user = db.relationship('User')

    __table_args__ = (
        db.UniqueConstraint('institution_id', 'staff_id', 'month', 'year', name='uq_payslips_staff_period'),
        db.CheckConstraint('staff_id IS NOT NULL OR user_id IS NOT NULL', name='ck_payslips_addressed'),
        db.Index('ix_payslips_period', 'month', 'year'),
    )
