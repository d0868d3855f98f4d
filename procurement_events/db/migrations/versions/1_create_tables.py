"""Initial schema: projects, organisation mappings, events and supplier selections

Revision ID: 1_create_tables
Revises:
Create Date: 2026-10-19 12:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = '1_create_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ### Создание таблицы procurement_projects ###
    op.create_table(
        'procurement_projects',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('project_name', sa.String(), nullable=False),
        sa.Column('ca_number', sa.String(), nullable=False),
        sa.Column('lot_number', sa.String(), nullable=False),
        sa.Column('external_project_id', sa.String(), nullable=True),
        sa.Column('external_reference_id', sa.String(), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.Index('ix_procurement_projects_id', 'id')
    )

    # ### Создание таблицы organisation_mappings ###
    op.create_table(
        'organisation_mappings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organisation_id', sa.String(), nullable=False),
        sa.Column('external_organisation_id', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.Index('ix_organisation_mappings_id', 'id'),
        sa.Index('ix_organisation_mappings_organisation_id', 'organisation_id', unique=True),
        sa.Index('ix_organisation_mappings_external_organisation_id', 'external_organisation_id', unique=True)
    )

    # ### Создание таблицы procurement_events ###
    op.create_table(
        'procurement_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('event_name', sa.String(), nullable=False),
        sa.Column('event_type', sa.String(), nullable=False, server_default='TBD'),
        sa.Column('external_event_id', sa.String(), nullable=True),
        sa.Column('external_reference_id', sa.String(), nullable=True),
        sa.Column('down_selected_suppliers', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('assessment_id', sa.Integer(), nullable=True),
        sa.Column('assessment_supplier_target', sa.Integer(), nullable=True),
        sa.Column('ocds_authority_name', sa.String(), nullable=False),
        sa.Column('ocid_prefix', sa.String(), nullable=False),
        sa.Column('created_by', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_by', sa.String(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['project_id'], ['procurement_projects.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.Index('ix_procurement_events_id', 'id'),
        sa.Index('ix_procurement_events_project_id', 'project_id')
    )

    # ### Создание таблицы supplier_selections ###
    op.create_table(
        'supplier_selections',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('organisation_mapping_id', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['procurement_events.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['organisation_mapping_id'], ['organisation_mappings.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id', 'organisation_mapping_id', name='uq_event_supplier'),
        sa.Index('ix_supplier_selections_id', 'id')
    )


def downgrade():
    op.drop_table('supplier_selections')
    op.drop_index('ix_procurement_events_project_id', table_name='procurement_events')
    op.drop_table('procurement_events')
    op.drop_table('organisation_mappings')
    op.drop_table('procurement_projects')
