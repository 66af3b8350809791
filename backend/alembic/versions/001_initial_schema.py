"""Initial TeamClock schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

Creates all tables for:
- companies (invite codes)
- users (identity provider subject -> profile, company membership)
- projects (company scoped)
- sessions (tracked work, epoch ms times)
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ==========================================================================
    # Companies
    # ==========================================================================
    op.create_table(
        'companies',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('invite_code', sa.String(16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_companies_invite_code', 'companies', ['invite_code'], unique=True)

    # ==========================================================================
    # Users
    # ==========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('external_identity_id', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('role', sa.String(255), nullable=False, server_default=''),
        sa.Column('avatar_ref', sa.String(2000), nullable=False),
        sa.Column('company_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_users_external_identity_id', 'users', ['external_identity_id'], unique=True)
    op.create_index('ix_users_company_id', 'users', ['company_id'])

    # ==========================================================================
    # Projects
    # ==========================================================================
    op.create_table(
        'projects',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('company_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('repository_url', sa.String(2000), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_projects_company_id', 'projects', ['company_id'])

    # ==========================================================================
    # Sessions
    # ==========================================================================
    # user_id has no foreign key: sessions outlive membership changes and
    # are never deleted with their user.
    op.create_table(
        'sessions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('project_name', sa.String(255), nullable=False),
        sa.Column('start_time', sa.BigInteger(), nullable=False),
        sa.Column('end_time', sa.BigInteger(), nullable=True),
        sa.Column('tokens_input', sa.BigInteger(), nullable=True),
        sa.Column('tokens_output', sa.BigInteger(), nullable=True),
        sa.Column(
            'status',
            sa.Enum('active', 'completed', name='sessionstatus'),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sessions_user_id', 'sessions', ['user_id'])
    op.create_index('ix_sessions_status', 'sessions', ['status'])
    op.create_index('ix_sessions_user_id_status', 'sessions', ['user_id', 'status'])
    op.create_index('ix_sessions_user_id_start_time', 'sessions', ['user_id', 'start_time'])


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_table('sessions')
    op.drop_table('projects')
    op.drop_table('users')
    op.drop_table('companies')

    # Drop enums (named types only exist on PostgreSQL)
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS sessionstatus")
