"""
CSV bulk import of staff members.

Each row is validated like a single create and committed on its own, so
one bad row never takes the rest of the file down with it.
"""
import csv
import io
import logging

from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError

from payhub.extensions import db
from payhub.errors import ValidationFailed, first_error_message
from payhub.models import Staff, Job, JobStatus, JobType
from payhub.schemas.staff_schema import StaffSchema
from payhub.services.access import resolve_target_institution
from payhub.services.audit import record_audit
from payhub.services.file_storage import require_csv, save_upload, remove_file

logger = logging.getLogger(__name__)

staff_row_schema = StaffSchema()

# Normalised header -> payload key understood by StaffSchema
HEADER_ALIASES = {
    'name': 'name',
    'fullname': 'name',
    'email': 'email',
    'emailaddress': 'email',
    'employeeid': 'employeeId',
    'department': 'department',
    'position': 'position',
    'salary': 'salary',
    'joineddate': 'joinedDate',
}


def _normalize_header(header):
    return ''.join(ch for ch in (header or '').lower() if ch.isalnum())


def _row_payload(row):
    payload = {}
    for header, value in row.items():
        key = HEADER_ALIASES.get(_normalize_header(header))
        if key is None or value is None:
            continue
        value = value.strip()
        if value:
            payload[key] = value
    return payload


def _read_rows(path):
    """
    Decode and parse the whole file up front.

    Raises csv.Error or UnicodeDecodeError before any row is imported, so
    an unreadable file never leaves a partial import behind.
    """
    with open(path, 'rb') as handle:
        content = handle.read().decode('utf-8-sig')
    reader = csv.DictReader(io.StringIO(content, newline=''))
    return list(reader)


def _import_rows(rows, institution_id):
    success_count = 0
    errors = []
    total = 0

    for row_number, row in enumerate(rows, start=1):
        payload = _row_payload(row)
        if not any(payload.values()):
            continue
        total += 1

        if not payload.get('name') or not payload.get('email'):
            errors.append(f"Row {row_number}: Name and email are required")
            continue

        try:
            data = staff_row_schema.load(payload)
        except ValidationError as err:
            errors.append(f"Row {row_number}: {first_error_message(err.messages)}")
            continue

        db.session.add(Staff(institution_id=institution_id, **data))
        try:
            db.session.commit()
            success_count += 1
        except IntegrityError:
            db.session.rollback()
            errors.append(f"Row {row_number}: Staff with email {data['email']} already exists")

    return total, success_count, errors


def import_staff_csv(caller, file_storage, requested_institution=None):
    """
    Import staff from an uploaded CSV with a header row.

    The file is decoded and parsed in full before the first insert; an
    unreadable file is rejected with nothing imported.

    Returns:
        dict: {totalProcessed, successCount, errorCount, errors, jobId}
    """
    institution_id = resolve_target_institution(caller, requested_institution)
    require_csv(file_storage)
    path, original_name = save_upload(file_storage, 'staff-import', '.csv')

    try:
        rows = _read_rows(path)
    except (csv.Error, UnicodeDecodeError) as exc:
        logger.warning("Staff import could not read %s: %s", original_name, exc)
        raise ValidationFailed("Invalid CSV format")
    finally:
        remove_file(path)

    job = Job(
        institution_id=institution_id,
        job_type=JobType.STAFF_IMPORT,
        status=JobStatus.PROCESSING,
        total_items=len(rows)
    )
    db.session.add(job)
    db.session.commit()
    job_id = job.id

    total, success_count, errors = _import_rows(rows, institution_id)

    summary = {
        "totalProcessed": total,
        "successCount": success_count,
        "errorCount": len(errors),
        "errors": errors
    }

    job = db.session.get(Job, job_id)
    job.total_items = total
    job.completed_items = total
    job.success_count = success_count
    job.failed_count = len(errors)
    job.finish(True, result=dict(summary, fileName=original_name))
    record_audit('staff.imported', 'Job', job_id, user_id=caller.id,
                 institution_id=institution_id,
                 details={"successCount": success_count, "errorCount": len(errors)})
    db.session.commit()

    logger.info("Staff import %s: %s imported, %s failed", job_id, success_count, len(errors))
    summary["jobId"] = job_id
    return summary
