"""Initial payhub schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-02-03 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade():
    op.create_table(
        'institutions',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone_number', sa.String(length=50), nullable=True),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.Column('website', sa.String(length=255), nullable=True),
        sa.Column('logo', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint('email', name='uq_institutions_email'),
    )
    op.create_index('ix_institutions_name', 'institutions', ['name'])

    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('institution_id', sa.String(length=36), sa.ForeignKey('institutions.id'), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('phone_number', sa.String(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sa.CheckConstraint(
            "(role = 'SUPER_ADMIN' AND institution_id IS NULL) OR "
            "(role <> 'SUPER_ADMIN' AND institution_id IS NOT NULL)",
            name='ck_users_institution_binding',
        ),
    )
    op.create_index('ix_users_institution_id', 'users', ['institution_id'])
    op.create_index('ix_users_role', 'users', ['role'])
    # At most one SUPER_ADMIN row
    op.create_index(
        'uq_users_single_super_admin', 'users', ['role'], unique=True,
        sqlite_where=sa.text("role = 'SUPER_ADMIN'"),
        postgresql_where=sa.text("role = 'SUPER_ADMIN'"),
    )

    op.create_table(
        'staff',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('institution_id', sa.String(length=36), sa.ForeignKey('institutions.id'), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('employee_id', sa.String(length=100), nullable=True),
        sa.Column('department', sa.String(length=255), nullable=True),
        sa.Column('position', sa.String(length=255), nullable=True),
        sa.Column('salary', sa.Numeric(12, 2), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('joined_date', sa.Date(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('institution_id', 'email', name='uq_staff_institution_email'),
        sa.UniqueConstraint('user_id', name='uq_staff_user_id'),
    )
    op.create_index('ix_staff_institution_id', 'staff', ['institution_id'])
    op.create_index('ix_staff_department', 'staff', ['department'])
    op.create_index('ix_staff_is_active', 'staff', ['is_active'])

    op.create_table(
        'payslips',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('institution_id', sa.String(length=36), sa.ForeignKey('institutions.id'), nullable=False),
        sa.Column('staff_id', sa.String(length=36), sa.ForeignKey('staff.id'), nullable=True),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('month', sa.String(length=20), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('gross_pay', sa.Numeric(12, 2), nullable=False),
        sa.Column('net_pay', sa.Numeric(12, 2), nullable=False),
        sa.Column('deductions', sa.Numeric(12, 2), nullable=True),
        sa.Column('allowances', sa.Numeric(12, 2), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='PROCESSING'),
        sa.Column('file_path', sa.String(length=500), nullable=True),
        sa.Column('file_name', sa.String(length=255), nullable=True),
        sa.Column('upload_date', sa.DateTime(), nullable=False),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('institution_id', 'staff_id', 'month', 'year', name='uq_payslips_staff_period'),
        sa.CheckConstraint('staff_id IS NOT NULL OR user_id IS NOT NULL', name='ck_payslips_addressed'),
    )
    op.create_index('ix_payslips_institution_id', 'payslips', ['institution_id'])
    op.create_index('ix_payslips_staff_id', 'payslips', ['staff_id'])
    op.create_index('ix_payslips_user_id', 'payslips', ['user_id'])
    op.create_index('ix_payslips_status', 'payslips', ['status'])
    op.create_index('ix_payslips_period', 'payslips', ['month', 'year'])

    op.create_table(
        'subscriptions',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('institution_id', sa.String(length=36), sa.ForeignKey('institutions.id'), nullable=False),
        sa.Column('plan_name', sa.String(length=100), nullable=False),
        sa.Column('plan_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('billing_cycle', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='PENDING'),
        sa.Column('start_date', sa.DateTime(), nullable=True),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        sa.Column('trial_end_date', sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_subscriptions_institution_id', 'subscriptions', ['institution_id'])
    op.create_index('ix_subscriptions_status', 'subscriptions', ['status'])
    # At most one ACTIVE subscription per institution
    op.create_index(
        'uq_subscriptions_one_active', 'subscriptions', ['institution_id'], unique=True,
        sqlite_where=sa.text("status = 'ACTIVE'"),
        postgresql_where=sa.text("status = 'ACTIVE'"),
    )

    op.create_table(
        'payments',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('institution_id', sa.String(length=36), sa.ForeignKey('institutions.id'), nullable=False),
        sa.Column('subscription_id', sa.String(length=36),
                  sa.ForeignKey('subscriptions.id', ondelete='SET NULL'), nullable=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(length=10), nullable=False, server_default='NGN'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='PENDING'),
        sa.Column('external_reference', sa.String(length=100), nullable=True),
        sa.Column('description', sa.String(length=500), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_payments_institution_id', 'payments', ['institution_id'])
    op.create_index('ix_payments_subscription_id', 'payments', ['subscription_id'])
    op.create_index('ix_payments_status', 'payments', ['status'])
    op.create_index('ix_payments_external_reference', 'payments', ['external_reference'])
    op.create_index('ix_payments_created_at', 'payments', ['created_at'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=True),
        sa.Column('institution_id', sa.String(length=36), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    for column in ('action', 'entity_type', 'entity_id', 'user_id', 'institution_id', 'created_at'):
        op.create_index(f'ix_audit_logs_{column}', 'audit_logs', [column])

    op.create_table(
        'jobs',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('institution_id', sa.String(length=36), sa.ForeignKey('institutions.id'), nullable=False),
        sa.Column('job_type', sa.String(length=50), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='pending'),
        sa.Column('total_items', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('completed_items', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('success_count', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('failed_count', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('result_data', sa.Text(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_jobs_institution_id', 'jobs', ['institution_id'])


def downgrade():
    op.drop_table('jobs')
    op.drop_table('audit_logs')
    op.drop_table('payments')
    op.drop_index('uq_subscriptions_one_active', table_name='subscriptions')
    op.drop_table('subscriptions')
    op.drop_table('payslips')
    op.drop_table('staff')
    op.drop_index('uq_users_single_super_admin', table_name='users')
    op.drop_table('users')
    op.drop_table('institutions')
