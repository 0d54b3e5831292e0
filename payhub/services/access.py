"""
Role checks and tenant scoping.

Every tenant-owned query goes through `scoped_query` so a non super admin
can only ever see rows of their own institution. The super admin is
unscoped for reads and must name the target institution when creating.
"""
from dataclasses import dataclass
from functools import wraps

from flask_jwt_extended import current_user, jwt_required

from payhub.errors import Forbidden, NotFound, ValidationFailed
from payhub.models import Institution, UserRole


@dataclass(frozen=True)
class CallerIdentity:
    id: str
    email: str
    role: str
    institution_id: str = None

    @property
    def is_super_admin(self):
        return self.role == UserRole.SUPER_ADMIN


def current_caller():
    """Identity of the user resolved from the bearer token of this request."""
    return CallerIdentity(
        id=current_user.id,
        email=current_user.email,
        role=current_user.role,
        institution_id=current_user.institution_id
    )


def authorize(caller, roles):
    if caller.role not in roles:
        raise Forbidden("Access denied. Insufficient permissions.")


def roles_required(*roles):
    """
    Require a valid bearer token and one of `roles`.

    Usage:
        @bp.route('', methods=['GET'])
        @roles_required(UserRole.INSTITUTION_ADMIN, UserRole.SUPER_ADMIN)
        def list_staff():
            ...
    """
    allowed = roles or UserRole.ALL

    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            authorize(current_caller(), allowed)
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def tenant_scope(caller, requested=None):
    """
    Institution id a query must be restricted to, or None for unscoped.

    Raises Forbidden when a tenant user has no institution or asks for
    another institution's data.
    """
    if caller.is_super_admin:
        return requested or None

    if not caller.institution_id:
        raise Forbidden("Access denied. Institution access required.")
    if requested and requested != caller.institution_id:
        raise Forbidden("Access denied. Institution access required.")
    return caller.institution_id


def resolve_target_institution(caller, requested=None):
    """
    Institution a new tenant-owned record is created in.

    Tenant users always write into their own institution; the super admin
    must name an existing, active one.
    """
    institution_id = tenant_scope(caller, requested)
    if not institution_id:
        raise ValidationFailed("institutionId is required")

    institution = Institution.query.filter_by(id=institution_id, is_active=True).first()
    if institution is None:
        raise NotFound("Institution not found")
    return institution_id


def scoped_query(model, caller, requested=None):
    query = model.query
    institution_id = tenant_scope(caller, requested)
    if institution_id:
        query = query.filter(model.institution_id == institution_id)
    return query


def get_scoped_or_404(model, object_id, caller, message="Resource not found"):
    obj = scoped_query(model, caller).filter(model.id == object_id).first()
    if obj is None:
        raise NotFound(message)
    return obj
