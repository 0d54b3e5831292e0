import logging
import os
from datetime import datetime

from payhub.celery_app import celery_app
from payhub.extensions import db
from payhub.models import Job, JobStatus, Payslip, PayslipStatus

logger = logging.getLogger(__name__)

PDF_SIGNATURE = b'%PDF-'
SUPERSEDED_MESSAGE = "Payslip file was replaced by a newer upload"


def inspect_pdf(path):
    """
    Check a stored upload is a readable, non-empty PDF.

    Returns:
        tuple: (ok, error message or None)
    """
    if not path or not os.path.isfile(path):
        return False, "Uploaded file is missing"
    if os.path.getsize(path) == 0:
        return False, "Uploaded file is empty"
    with open(path, 'rb') as handle:
        header = handle.read(len(PDF_SIGNATURE))
    if header != PDF_SIGNATURE:
        return False, "Uploaded file is not a valid PDF"
    return True, None


@celery_app.task(name='payhub.process_payslip_file')
def process_payslip_file(job_id, payslip_id, file_path=None):
    """
    Move an uploaded payslip from PROCESSING to AVAILABLE or FAILED.

    `file_path` is the upload this job was queued for; if the payslip has
    since been re-uploaded the job fails and the payslip is left to the
    newer job. Not retried: a file that fails inspection is a terminal
    FAILED state and the admin re-uploads.
    """
    job = db.session.get(Job, job_id)
    payslip = db.session.get(Payslip, payslip_id)
    if not job or not payslip:
        logger.error("Payslip processing: job or payslip missing", extra={
            "job_id": job_id,
            "payslip_id": payslip_id
        })
        return {"status": PayslipStatus.FAILED, "error": "Job or payslip not found"}

    try:
        job.status = JobStatus.PROCESSING
        db.session.commit()

        if file_path and payslip.file_path != file_path:
            job.completed_items = 1
            job.failed_count = 1
            job.finish(False, error_message=SUPERSEDED_MESSAGE)
            db.session.commit()
            logger.info("Payslip %s job %s superseded by a newer upload", payslip.id, job_id)
            return {"status": JobStatus.FAILED, "error": SUPERSEDED_MESSAGE}

        ok, error = inspect_pdf(payslip.file_path)

        payslip.status = PayslipStatus.AVAILABLE if ok else PayslipStatus.FAILED
        payslip.processed_at = datetime.utcnow()

        job.completed_items = 1
        job.success_count = 1 if ok else 0
        job.failed_count = 0 if ok else 1
        job.finish(ok, error_message=error, result={
            "payslipId": payslip.id,
            "status": payslip.status,
            "fileName": payslip.file_name
        })
        db.session.commit()
    except Exception as e:
        logger.error(f"Error in payslip processing task: {str(e)}", exc_info=True)
        db.session.rollback()
        _fail_processing(job_id, payslip_id, file_path, f"Processing failed: {str(e)}")
        return {"status": PayslipStatus.FAILED, "error": str(e)}

    if ok:
        logger.info("Payslip %s is available", payslip.id)
    else:
        logger.warning("Payslip %s failed processing: %s", payslip.id, error)
    return {"status": payslip.status, "error": error}


def _fail_processing(job_id, payslip_id, file_path, message):
    """Best effort: close the job as failed so pollers get an answer."""
    try:
        job = db.session.get(Job, job_id)
        if job is not None:
            job.failed_count = 1
            job.finish(False, error_message=message)
        payslip = db.session.get(Payslip, payslip_id)
        if payslip is not None and (not file_path or payslip.file_path == file_path):
            payslip.status = PayslipStatus.FAILED
            payslip.processed_at = datetime.utcnow()
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Could not mark payslip job {job_id} failed: {str(e)}", exc_info=True)
