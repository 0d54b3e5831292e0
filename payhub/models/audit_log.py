from payhub.extensions import db
from datetime import datetime
from sqlalchemy import event
import uuid


class AuditLog(db.Model):
    __tablename__ = 'audit_logs'

    """
    AuditLog Model - append-only trail of mutations.

    Rows are added in the same transaction as the change they describe.
    The ORM refuses to update or delete them.
    """

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    action = db.Column(db.String(100), nullable=False, index=True)
    entity_type = db.Column(db.String(50), nullable=False, index=True)
    entity_id = db.Column(db.String(36), nullable=False, index=True)
    user_id = db.Column(db.String(36), index=True)
    institution_id = db.Column(db.String(36), index=True)
    details = db.Column(db.JSON)
    ip_address = db.Column(db.String(64))
    user_agent = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)


@event.listens_for(AuditLog, 'before_update')
def _reject_update(mapper, connection, target):
    raise RuntimeError("Audit log entries are append-only")


@event.listens_for(AuditLog, 'before_delete')
def _reject_delete(mapper, connection, target):
    raise RuntimeError("Audit log entries are append-only")
