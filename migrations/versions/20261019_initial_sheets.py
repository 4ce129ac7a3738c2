"""
Initial schema: one table per workbook sheet plus the audit log.

- registration: credentials, approval status and active session token
- results: append-only quiz results
- student_details: admin-maintained profile rows
- students: legacy roster kept in step with results
- audit_logs: approval and session events
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'sheets_initial_20261019'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'registration',
        sa.Column('row_number', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('student_id', sa.Text(), nullable=False),
        sa.Column('student_name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('salt', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False, server_default='pending'),
        sa.Column('role', sa.Text(), nullable=False, server_default='student'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        sa.Column('active_session_token', sa.Text(), nullable=True),
    )
    op.create_index('ix_registration_student_id', 'registration', ['student_id'], unique=True)
    op.create_index('ix_registration_email', 'registration', ['email'], unique=True)

    op.create_table(
        'results',
        sa.Column('row_number', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('student_id', sa.Text(), nullable=False),
        sa.Column('student_name', sa.Text(), nullable=False),
        sa.Column('subject', sa.Text(), nullable=False),
        sa.Column('level', sa.Text(), nullable=False),
        sa.Column('set', sa.Text(), nullable=False),
        sa.Column('score', sa.Float(), nullable=False),
        sa.Column('total', sa.Float(), nullable=False),
        sa.Column('percentage', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('time_taken', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('date', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.BigInteger(), nullable=True),
    )
    op.create_index('ix_results_student_id', 'results', ['student_id'])
    op.create_index('ix_results_dedupe', 'results', ['student_id', 'subject', 'level', 'set', 'timestamp'])

    op.create_table(
        'student_details',
        sa.Column('row_number', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('student_id', sa.Text(), nullable=False),
        sa.Column('student_name', sa.Text(), nullable=False),
        sa.Column('school_name', sa.Text(), nullable=False, server_default=''),
        sa.Column('class_name', sa.Text(), nullable=False, server_default=''),
        sa.Column('profile_image_url', sa.Text(), nullable=False, server_default=''),
        sa.Column('guardian_name', sa.Text(), nullable=False, server_default=''),
        sa.Column('contact_number', sa.Text(), nullable=False, server_default=''),
        sa.Column('address', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_student_details_student_id', 'student_details', ['student_id'])

    op.create_table(
        'students',
        sa.Column('row_number', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('student_id', sa.Text(), nullable=False),
        sa.Column('student_name', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_students_student_id', 'students', ['student_id'], unique=True)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('actor', sa.Text(), nullable=False),
        sa.Column('action_type', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('target_type', sa.Text(), nullable=False),
        sa.Column('target_id', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_index('ix_students_student_id', table_name='students')
    op.drop_table('students')
    op.drop_index('ix_student_details_student_id', table_name='student_details')
    op.drop_table('student_details')
    op.drop_index('ix_results_dedupe', table_name='results')
    op.drop_index('ix_results_student_id', table_name='results')
    op.drop_table('results')
    op.drop_index('ix_registration_email', table_name='registration')
    op.drop_index('ix_registration_student_id', table_name='registration')
    op.drop_table('registration')
