import logging

from sqlalchemy import func, or_

from payhub.extensions import db
from payhub.errors import Forbidden, NotFound
from payhub.models import Institution, Payslip, Staff, Subscription, User
from payhub.services.audit import record_audit
from payhub.services.credentials import create_institution_with_admin
from payhub.services.pagination import paginate

logger = logging.getLogger(__name__)


def _counts_by_institution(model, institution_ids):
    if not institution_ids:
        return {}
    rows = db.session.query(model.institution_id, func.count(model.id)).filter(
        model.institution_id.in_(institution_ids)
    ).group_by(model.institution_id).all()
    return dict(rows)


def institution_counts(institution_ids, include_subscriptions=False):
    """
    Per-institution row counts, keyed by institution id.

    One grouped query per counted table, not one per institution.
    """
    models = {'users': User, 'staff': Staff, 'payslips': Payslip}
    if include_subscriptions:
        models['subscriptions'] = Subscription

    per_model = {key: _counts_by_institution(model, institution_ids) for key, model in models.items()}
    return {
        institution_id: {key: per_model[key].get(institution_id, 0) for key in models}
        for institution_id in institution_ids
    }


def list_institutions(filters, page, limit):
    query = Institution.query
    search_term = (filters.get('search') or '').strip()
    if search_term:
        search_pattern = f'%{search_term}%'
        query = query.filter(
            or_(
                Institution.name.ilike(search_pattern),
                Institution.email.ilike(search_pattern)
            )
        )

    status = (filters.get('status') or '').strip().lower()
    if status in ('active', 'inactive'):
        query = query.filter(Institution.is_active == (status == 'active'))

    institutions, pagination = paginate(query.order_by(Institution.created_at.desc()), page, limit)
    counts = institution_counts([institution.id for institution in institutions])
    return institutions, counts, pagination


def get_institution(caller, institution_id):
    """Institution admins may only read their own institution."""
    if not caller.is_super_admin and caller.institution_id != institution_id:
        raise Forbidden("Access denied")

    institution = db.session.get(Institution, institution_id)
    if institution is None:
        raise NotFound("Institution not found")
    counts = institution_counts([institution.id], include_subscriptions=True)[institution.id]
    return institution, counts


def create_institution(caller, data):
    institution, admin = create_institution_with_admin(
        data['institution_name'],
        data['email'],
        data['phone_number'],
        data['password'],
        actor_id=caller.id
    )
    return institution, admin


def update_institution(caller, institution_id, data):
    institution, _ = get_institution(caller, institution_id)
    for field, value in data.items():
        setattr(institution, field, value)

    record_audit('institution.updated', 'Institution', institution.id, user_id=caller.id,
                 institution_id=institution.id, details={"fields": sorted(data)})
    db.session.commit()
    return institution


def deactivate_institution(caller, institution_id):
    """
    Soft delete. Rows are kept; the institution's users can no longer log
    in and their existing tokens stop resolving.
    """
    institution = db.session.get(Institution, institution_id)
    if institution is None:
        raise NotFound("Institution not found")

    institution.is_active = False
    record_audit('institution.deactivated', 'Institution', institution.id, user_id=caller.id,
                 institution_id=institution.id)
    db.session.commit()
    logger.info("Institution %s deactivated by %s", institution.id, caller.id)
    return institution
