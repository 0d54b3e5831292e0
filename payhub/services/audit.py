from flask import has_request_context, request

from payhub.extensions import db
from payhub.models import AuditLog


def record_audit(action, entity_type, entity_id, user_id=None, institution_id=None, details=None):
    """
    Stage an audit row in the current session.

    The caller commits, so the entry lands in the same transaction as the
    change it describes (and disappears with it on rollback).
    """
    entry = AuditLog(
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        user_id=user_id,
        institution_id=institution_id,
        details=details
    )
    if has_request_context():
        entry.ip_address = request.remote_addr
        entry.user_agent = (request.headers.get('User-Agent') or '')[:500] or None
    db.session.add(entry)
    return entry
