"""
Payslip records and their PDF files.

Staff is the payroll subject and User the optional login binding. A
payslip needs at least one of them, both must belong to the payslip's
institution, and user_id defaults to the staff member's login.
"""
import logging
import os
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from payhub.extensions import db
from payhub.errors import DuplicateResource, Forbidden, InvalidState, NotFound, ServiceUnavailable, ValidationFailed
from payhub.models import Job, JobStatus, JobType, Payslip, PayslipStatus, Staff, User, UserRole
from payhub.schemas.payslip_schema import MONTH_NAMES
from payhub.services.access import get_scoped_or_404, resolve_target_institution, scoped_query
from payhub.services.audit import record_audit
from payhub.services.file_storage import remove_file, require_pdf, save_upload
from payhub.services.pagination import paginate

logger = logging.getLogger(__name__)

DUPLICATE_PAYSLIP_MESSAGE = "Payslip already exists for this staff member in the specified month and year"


def _apply_filters(query, filters):
    month = (filters.get('month') or '').strip().lower()
    if month in MONTH_NAMES:
        query = query.filter(Payslip.month == MONTH_NAMES[month])

    year = filters.get('year')
    if year:
        try:
            query = query.filter(Payslip.year == int(year))
        except (TypeError, ValueError):
            pass

    status = (filters.get('status') or '').strip().upper()
    if status in PayslipStatus.ALL:
        query = query.filter(Payslip.status == status)

    staff_id = filters.get('staffId')
    if staff_id:
        query = query.filter(Payslip.staff_id == staff_id)
    return query


def _newest_first(query):
    return query.order_by(Payslip.year.desc(), Payslip.created_at.desc())


def list_payslips(caller, filters, page, limit):
    """STAFF callers only ever see payslips addressed to their own login."""
    query = scoped_query(Payslip, caller, filters.get('institutionId'))
    if caller.role == UserRole.STAFF:
        query = query.filter(Payslip.user_id == caller.id)
    query = _apply_filters(query, filters)
    return paginate(_newest_first(query), page, limit)


def list_staff_payslips(caller, staff_id, page, limit):
    staff = get_scoped_or_404(Staff, staff_id, caller, "Staff member not found")
    query = Payslip.query.filter(Payslip.staff_id == staff.id)
    return paginate(_newest_first(query), page, limit)


def get_payslip(caller, payslip_id):
    payslip = get_scoped_or_404(Payslip, payslip_id, caller, "Payslip not found")
    if caller.role == UserRole.STAFF and payslip.user_id != caller.id:
        raise Forbidden("Access denied")
    return payslip


def _resolve_addressing(institution_id, staff_id, user_id):
    staff = None
    if staff_id:
        staff = Staff.query.filter_by(id=staff_id, institution_id=institution_id).first()
        if staff is None:
            raise NotFound("Staff member not found")

    if user_id:
        user = User.query.filter_by(id=user_id, institution_id=institution_id).first()
        if user is None:
            raise NotFound("User not found")
    elif staff is not None:
        user_id = staff.user_id

    if not staff_id and not user_id:
        raise ValidationFailed("Either staffId or userId is required")
    return staff_id, user_id


def create_payslip(caller, data):
    data = dict(data)
    institution_id = resolve_target_institution(caller, data.pop('institution_id', None))
    staff_id, user_id = _resolve_addressing(institution_id, data.pop('staff_id', None), data.pop('user_id', None))

    payslip = Payslip(
        institution_id=institution_id,
        staff_id=staff_id,
        user_id=user_id,
        status=PayslipStatus.PROCESSING,
        **data
    )
    try:
        db.session.add(payslip)
        db.session.flush()
        record_audit('payslip.created', 'Payslip', payslip.id, user_id=caller.id,
                     institution_id=institution_id,
                     details={"month": payslip.month, "year": payslip.year})
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateResource(DUPLICATE_PAYSLIP_MESSAGE)

    logger.info("Payslip %s created for %s %s", payslip.id, payslip.month, payslip.year)
    return payslip


def update_payslip(caller, payslip_id, data):
    payslip = get_scoped_or_404(Payslip, payslip_id, caller, "Payslip not found")
    data = dict(data)
    data.pop('institution_id', None)

    if 'staff_id' in data or 'user_id' in data:
        staff_id, user_id = _resolve_addressing(
            payslip.institution_id,
            data.pop('staff_id', payslip.staff_id),
            data.pop('user_id', None)
        )
        payslip.staff_id = staff_id
        payslip.user_id = user_id

    for field, value in data.items():
        setattr(payslip, field, value)

    try:
        record_audit('payslip.updated', 'Payslip', payslip.id, user_id=caller.id,
                     institution_id=payslip.institution_id, details={"fields": sorted(data)})
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateResource(DUPLICATE_PAYSLIP_MESSAGE)
    return payslip


def delete_payslip(caller, payslip_id):
    payslip = get_scoped_or_404(Payslip, payslip_id, caller, "Payslip not found")
    file_path = payslip.file_path

    record_audit('payslip.deleted', 'Payslip', payslip.id, user_id=caller.id,
                 institution_id=payslip.institution_id,
                 details={"month": payslip.month, "year": payslip.year})
    db.session.delete(payslip)
    db.session.commit()

    remove_file(file_path)
    logger.info("Payslip %s deleted", payslip_id)


def upload_payslip_file(caller, payslip_id, file_storage):
    """
    Attach a PDF and queue it for processing.

    Returns:
        tuple: (payslip, job)

    Raises:
        ServiceUnavailable: the task could not be queued; the job and the
        payslip are marked failed first.
    """
    from payhub.tasks.payslip_tasks import process_payslip_file

    payslip = get_scoped_or_404(Payslip, payslip_id, caller, "Payslip not found")
    require_pdf(file_storage)

    previous_path = payslip.file_path
    stored_path, original_name = save_upload(file_storage, 'payslip', '.pdf')

    payslip.file_path = stored_path
    payslip.file_name = original_name
    payslip.status = PayslipStatus.PROCESSING
    payslip.upload_date = datetime.utcnow()
    payslip.processed_at = None

    job = Job(
        institution_id=payslip.institution_id,
        job_type=JobType.PAYSLIP_PROCESSING,
        status=JobStatus.PENDING,
        total_items=1
    )
    db.session.add(job)
    db.session.flush()
    record_audit('payslip.file_uploaded', 'Payslip', payslip.id, user_id=caller.id,
                 institution_id=payslip.institution_id,
                 details={"fileName": original_name, "jobId": job.id})
    db.session.commit()

    if previous_path and os.path.abspath(previous_path) != os.path.abspath(stored_path):
        remove_file(previous_path)

    job_id, payslip_id = job.id, payslip.id
    try:
        process_payslip_file.delay(job_id, payslip_id, stored_path)
    except Exception as exc:
        db.session.rollback()
        logger.error("Payslip upload: could not queue processing for %s: %s", payslip_id, exc)
        job = db.session.get(Job, job_id)
        job.finish(False, error_message=f"Task queue unavailable: {exc}")
        payslip = db.session.get(Payslip, payslip_id)
        payslip.status = PayslipStatus.FAILED
        db.session.commit()
        raise ServiceUnavailable("Background processing is unavailable. Please try again later.")

    # Eager mode processes in-process; pick up the worker's writes
    db.session.expire_all()
    return db.session.get(Payslip, payslip_id), db.session.get(Job, job_id)


def get_payslip_file(caller, payslip_id):
    """Return the payslip whose PDF can be streamed to the caller."""
    payslip = get_payslip(caller, payslip_id)
    if payslip.status != PayslipStatus.AVAILABLE or not payslip.file_path:
        raise InvalidState("Payslip file is not available")
    if not os.path.isfile(payslip.file_path):
        logger.error("Payslip %s file missing on disk: %s", payslip.id, payslip.file_path)
        raise NotFound("Payslip file not found")
    return payslip
