from payhub.extensions import db
from datetime import datetime
import uuid
import json


class JobStatus:
    PENDING = 'pending'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    FAILED = 'failed'


class JobType:
    PAYSLIP_PROCESSING = 'payslip_processing'
    STAFF_IMPORT = 'staff_import'


class Job(db.Model):
    __tablename__ = 'jobs'

    """
    Job Model - Tracks background work the client can poll.

    Attributes:
        id (str): Unique identifier (UUID)
        institution_id (str): Which institution owns this job
        job_type (str): 'payslip_processing' or 'staff_import'
        status (str): 'pending', 'processing', 'completed', 'failed'
        total_items (int): Total number of items to process
        completed_items (int): Number of items completed
        success_count (int): Number of successful items
        failed_count (int): Number of failed items
        result_data (str): JSON string with job specific results
        error_message (str): Error message if the job failed
        completed_at (datetime): When the job finished
    """

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    institution_id = db.Column(db.String(36), db.ForeignKey('institutions.id'), nullable=False, index=True)
    job_type = db.Column(db.String(50), nullable=False)
    status = db.Column(db.String(50), nullable=False, default=JobStatus.PENDING)
    total_items = db.Column(db.Integer, default=0)
    completed_items = db.Column(db.Integer, default=0)
    success_count = db.Column(db.Integer, default=0)
    failed_count = db.Column(db.Integer, default=0)
    result_data = db.Column(db.Text, nullable=True)
    error_message = db.Column(db.Text, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def finish(self, success, error_message=None, result=None):
        """Mark the job completed (or failed) and stamp completed_at."""
        self.status = JobStatus.COMPLETED if success else JobStatus.FAILED
        self.error_message = error_message
        if result is not None:
            self.result_data = json.dumps(result)
        self.completed_at = datetime.utcnow()

    def to_dict(self):
        """Convert job to dictionary for API response."""
        result_data = None
        if self.result_data:
            try:
                result_data = json.loads(self.result_data)
            except (json.JSONDecodeError, TypeError):
                result_data = {}

        total = self.total_items or 0
        completed = self.completed_items or 0
        return {
            "id": self.id,
            "institutionId": self.institution_id,
            "jobType": self.job_type,
            "status": self.status,
            "resultData": result_data,
            "errorMessage": self.error_message,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "progress": {
                "completed": completed,
                "total": total,
                "percentage": round((completed / total * 100) if total > 0 else 0, 2)
            },
            "results": {
                "success": self.success_count or 0,
                "failed": self.failed_count or 0
            }
        }
