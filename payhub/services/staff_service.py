import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from payhub.extensions import db
from payhub.errors import DuplicateResource
from payhub.models import Staff, Payslip, User
from payhub.services.access import scoped_query, get_scoped_or_404, resolve_target_institution
from payhub.services.audit import record_audit
from payhub.services.pagination import paginate

logger = logging.getLogger(__name__)

DUPLICATE_STAFF_MESSAGE = "Staff member with this email already exists"
RECENT_PAYSLIP_COUNT = 5


def list_staff(caller, filters, page, limit):
    """
    Staff of the caller's institution, newest first.

    Filters:
        search: case-insensitive match on name, email or employee id
        department: exact department
        status: 'active' or 'inactive'
        institutionId: super admin only narrowing
    """
    query = scoped_query(Staff, caller, filters.get('institutionId'))

    search_term = (filters.get('search') or '').strip()
    if search_term:
        search_pattern = f'%{search_term}%'
        query = query.filter(
            or_(
                Staff.name.ilike(search_pattern),
                Staff.email.ilike(search_pattern),
                Staff.employee_id.ilike(search_pattern)
            )
        )

    department = (filters.get('department') or '').strip()
    if department:
        query = query.filter(Staff.department == department)

    status = (filters.get('status') or '').strip().lower()
    if status in ('active', 'inactive'):
        query = query.filter(Staff.is_active == (status == 'active'))

    return paginate(query.order_by(Staff.created_at.desc()), page, limit)


def list_departments(caller, requested_institution=None):
    query = scoped_query(Staff, caller, requested_institution).with_entities(Staff.department).filter(
        Staff.department.isnot(None),
        Staff.department != ''
    ).distinct()
    return sorted(row[0] for row in query.all())


def get_staff(caller, staff_id):
    """Return (staff, five most recent payslips)."""
    staff = get_scoped_or_404(Staff, staff_id, caller, "Staff member not found")
    recent = staff.payslips.order_by(Payslip.created_at.desc()).limit(RECENT_PAYSLIP_COUNT).all()
    return staff, recent


def create_staff(caller, data):
    data = dict(data)
    institution_id = resolve_target_institution(caller, data.pop('institution_id', None))

    staff = Staff(institution_id=institution_id, **data)
    try:
        db.session.add(staff)
        db.session.flush()
        record_audit('staff.created', 'Staff', staff.id, user_id=caller.id,
                     institution_id=institution_id, details={"email": staff.email})
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateResource(DUPLICATE_STAFF_MESSAGE)

    logger.info("Staff %s created in institution %s", staff.id, institution_id)
    return staff


def update_staff(caller, staff_id, data):
    staff = get_scoped_or_404(Staff, staff_id, caller, "Staff member not found")
    data = dict(data)
    data.pop('institution_id', None)

    for field, value in data.items():
        setattr(staff, field, value)

    try:
        record_audit('staff.updated', 'Staff', staff.id, user_id=caller.id,
                     institution_id=staff.institution_id, details={"fields": sorted(data)})
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateResource(DUPLICATE_STAFF_MESSAGE)
    return staff


def delete_staff(caller, staff_id):
    """Soft delete. A bound login is deactivated along with the staff row."""
    staff = get_scoped_or_404(Staff, staff_id, caller, "Staff member not found")
    staff.is_active = False
    if staff.user_id:
        User.query.filter_by(id=staff.user_id).update({User.is_active: False}, synchronize_session=False)

    record_audit('staff.deactivated', 'Staff', staff.id, user_id=caller.id,
                 institution_id=staff.institution_id)
    db.session.commit()
    logger.info("Staff %s deactivated", staff.id)
    return staff
