from flask import Blueprint, current_app

from payhub.api.responses import success
from payhub.models import Job, UserRole
from payhub.services.access import current_caller, roles_required, get_scoped_or_404

bp = Blueprint('jobs', __name__)


@bp.route('/<job_id>', methods=['GET'])
@roles_required(*UserRole.ADMINS)
def get_job_status(job_id):
    """
    Get job status by job_id.

    Returns job status, progress, and results. Jobs are tenant scoped:
    another institution's job answers 404.
    """
    caller = current_caller()
    current_app.logger.debug(f"Job status: Fetching job_id={job_id} for institution_id={caller.institution_id}")

    job = get_scoped_or_404(Job, job_id, caller, "Job not found")

    current_app.logger.debug(f"Job status: Found job_id={job_id}, status={job.status}")
    return success({"job": job.to_dict()})
