from payhub.models.institution import Institution
from payhub.models.user import User, UserRole
from payhub.models.staff import Staff
from payhub.models.payslip import Payslip, PayslipStatus
from payhub.models.subscription import Subscription, SubscriptionStatus, BILLING_CYCLES
from payhub.models.payment import Payment, PaymentStatus
from payhub.models.audit_log import AuditLog
from payhub.models.job import Job, JobStatus, JobType

__all__ = [
    'Institution',
    'User',
    'UserRole',
    'Staff',
    'Payslip',
    'PayslipStatus',
    'Subscription',
    'SubscriptionStatus',
    'BILLING_CYCLES',
    'Payment',
    'PaymentStatus',
    'AuditLog',
    'Job',
    'JobStatus',
    'JobType',
]
