from payhub.extensions import db
from datetime import datetime
import uuid


class UserRole:
    STAFF = 'STAFF'
    INSTITUTION_ADMIN = 'INSTITUTION_ADMIN'
    SUPER_ADMIN = 'SUPER_ADMIN'

    ALL = (STAFF, INSTITUTION_ADMIN, SUPER_ADMIN)
    ADMINS = (INSTITUTION_ADMIN, SUPER_ADMIN)


class User(db.Model):
    __tablename__ = 'users'

    """
    User Model - an authentication principal.

    Tenant users (STAFF, INSTITUTION_ADMIN) always belong to an institution;
    the single SUPER_ADMIN never does. Both rules live in the database:
    a check constraint for the institution binding and a partial unique
    index that allows only one SUPER_ADMIN row.

    Attributes:
        id (str): Unique identifier (UUID)
        institution_id (str): Owning institution, NULL for the super admin
        email (str): Login email (unique across the whole system)
        password_hash (str): bcrypt hash, never the plaintext
        name (str): Display name
        role (str): STAFF, INSTITUTION_ADMIN or SUPER_ADMIN
        is_active (bool): Can the user log in?
        last_login_at (datetime): Set on every successful login
    """

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    institution_id = db.Column(db.String(36), db.ForeignKey('institutions.id'), nullable=True, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(50), nullable=False, index=True)
    phone_number = db.Column(db.String(50))
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    institution = db.relationship('Institution', back_populates='users')

    __table_args__ = (
        db.Index(
            'uq_users_single_super_admin',
            'role',
            unique=True,
            sqlite_where=db.text("role = 'SUPER_ADMIN'"),
            postgresql_where=db.text("role = 'SUPER_ADMIN'"),
        ),
        db.CheckConstraint(
            "(role = 'SUPER_ADMIN' AND institution_id IS NULL) OR "
            "(role <> 'SUPER_ADMIN' AND institution_id IS NOT NULL)",
            name='ck_users_institution_binding',
        ),
    )

    @property
    def is_super_admin(self):
        return self.role == UserRole.SUPER_ADMIN
