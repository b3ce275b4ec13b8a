"""create lab data tables

Revision ID: 20260301_0001
Revises:
Create Date: 2026-03-01 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20260301_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "npdes_permits",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("permit_number", sa.String(length=64), nullable=False),
        sa.Column("state_code", sa.String(length=2), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_npdes_permits"),
        sa.UniqueConstraint("permit_number", name="uq_npdes_permits_permit_number"),
    )
    op.create_index("ix_npdes_permits_organization_id", "npdes_permits", ["organization_id"], unique=False)

    op.create_table(
        "outfalls",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("permit_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("outfall_id", sa.String(length=32), nullable=False, comment="Display identifier such as 001"),
        sa.Column("description", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["permit_id"],
            ["npdes_permits.id"],
            name="fk_outfalls_permit_id_npdes_permits",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_outfalls"),
        sa.UniqueConstraint("permit_id", "outfall_id", name="uq_outfalls_permit_outfall_id"),
    )
    op.create_index("ix_outfalls_permit_id", "outfalls", ["permit_id"], unique=False)

    op.create_table(
        "parameters",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("default_unit", sa.String(length=32), nullable=True),
        sa.Column("hold_time_days", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_parameters"),
        sa.UniqueConstraint("name", name="uq_parameters_name"),
    )

    op.create_table(
        "parameter_aliases",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("alias", sa.String(length=255), nullable=False, comment="Lowercased, trimmed"),
        sa.Column("parameter_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("source", sa.String(length=32), nullable=False),
        sa.Column("state_code", sa.String(length=2), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["parameter_id"],
            ["parameters.id"],
            name="fk_parameter_aliases_parameter_id_parameters",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_parameter_aliases"),
        sa.UniqueConstraint("alias", name="uq_parameter_aliases_alias"),
    )
    op.create_index("ix_parameter_aliases_parameter_id", "parameter_aliases", ["parameter_id"], unique=False)

    op.create_table(
        "outfall_aliases",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("alias", sa.String(length=128), nullable=False),
        sa.Column("outfall_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("permit_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("match_method", sa.String(length=32), nullable=False),
        sa.Column("source", sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["outfall_id"],
            ["outfalls.id"],
            name="fk_outfall_aliases_outfall_id_outfalls",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["permit_id"],
            ["npdes_permits.id"],
            name="fk_outfall_aliases_permit_id_npdes_permits",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_outfall_aliases"),
        sa.UniqueConstraint(
            "alias",
            "organization_id",
            "permit_id",
            name="uq_outfall_aliases_alias_org_permit",
        ),
    )
    op.create_index(
        "ix_outfall_aliases_organization_permit",
        "outfall_aliases",
        ["organization_id", "permit_id"],
        unique=False,
    )

    op.create_table(
        "file_processing_queue",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("uploaded_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("file_name", sa.String(length=512), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("mime_type", sa.String(length=255), nullable=True),
        sa.Column("file_category", sa.String(length=64), nullable=False),
        sa.Column("storage_bucket", sa.String(length=128), nullable=True),
        sa.Column("storage_path", sa.String(length=1024), nullable=False),
        sa.Column(
            "status",
            sa.String(length=32),
            nullable=False,
            comment="queued -> processing -> parsed | failed -> imported",
        ),
        sa.Column("state_code", sa.String(length=2), nullable=True),
        sa.Column("extracted_data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("records_extracted", sa.Integer(), nullable=True),
        sa.Column("records_imported", sa.Integer(), nullable=True),
        sa.Column("error_log", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="Free-form entry metadata, including pending_audit_log",
        ),
        sa.Column("data_import_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("processing_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processing_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("imported_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_file_processing_queue"),
    )
    op.create_index("ix_file_processing_queue_status", "file_processing_queue", ["status"], unique=False)
    op.create_index(
        "ix_file_processing_queue_organization_id",
        "file_processing_queue",
        ["organization_id"],
        unique=False,
    )
    op.create_index(
        "ix_file_processing_queue_category_status",
        "file_processing_queue",
        ["file_category", "status"],
        unique=False,
    )

    op.create_table(
        "data_imports",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("file_name", sa.String(length=512), nullable=False),
        sa.Column("file_category", sa.String(length=64), nullable=False),
        sa.Column("source_system", sa.String(length=64), nullable=False),
        sa.Column("import_status", sa.String(length=32), nullable=False),
        sa.Column("imported_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("record_count", sa.Integer(), nullable=False),
        sa.Column("import_metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("error_log", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("can_rollback", sa.Boolean(), nullable=False),
        sa.Column("import_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("import_completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_data_imports"),
    )
    op.create_index("ix_data_imports_organization_id", "data_imports", ["organization_id"], unique=False)
    op.create_index("ix_data_imports_import_status", "data_imports", ["import_status"], unique=False)

    op.create_table(
        "sampling_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("outfall_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("sample_date", sa.Date(), nullable=False),
        sa.Column("sample_time", sa.Time(), nullable=True),
        sa.Column("sampler_name", sa.String(length=255), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("stream_name", sa.String(length=255), nullable=True),
        sa.Column("lab_name", sa.String(length=255), nullable=True),
        sa.Column("import_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("source_file_id", postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["outfall_id"],
            ["outfalls.id"],
            name="fk_sampling_events_outfall_id_outfalls",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["import_id"],
            ["data_imports.id"],
            name="fk_sampling_events_import_id_data_imports",
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["source_file_id"],
            ["file_processing_queue.id"],
            name="fk_sampling_events_source_file_id_file_processing_queue",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_sampling_events"),
        sa.UniqueConstraint(
            "outfall_id",
            "sample_date",
            "sample_time",
            name="uq_sampling_events_outfall_date_time",
            postgresql_nulls_not_distinct=True,
        ),
    )
    op.create_index("ix_sampling_events_sample_date", "sampling_events", ["sample_date"], unique=False)
    op.create_index("ix_sampling_events_import_id", "sampling_events", ["import_id"], unique=False)

    op.create_table(
        "lab_results",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("sampling_event_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("parameter_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("result_value", sa.Float(), nullable=True),
        sa.Column("unit", sa.String(length=64), nullable=True),
        sa.Column("below_detection", sa.Boolean(), nullable=False),
        sa.Column("qualifier", sa.String(length=32), nullable=True),
        sa.Column("analysis_date", sa.Date(), nullable=True),
        sa.Column("hold_time_days", sa.Float(), nullable=True),
        sa.Column("hold_time_compliant", sa.Boolean(), nullable=True),
        sa.Column("import_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("raw_parameter_name", sa.String(length=255), nullable=True),
        sa.Column("raw_value", sa.Text(), nullable=True),
        sa.Column("row_number", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["sampling_event_id"],
            ["sampling_events.id"],
            name="fk_lab_results_sampling_event_id_sampling_events",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["parameter_id"],
            ["parameters.id"],
            name="fk_lab_results_parameter_id_parameters",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["import_id"],
            ["data_imports.id"],
            name="fk_lab_results_import_id_data_imports",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_lab_results"),
        sa.UniqueConstraint("sampling_event_id", "parameter_id", name="uq_lab_results_event_parameter"),
    )
    op.create_index("ix_lab_results_parameter_id", "lab_results", ["parameter_id"], unique=False)
    op.create_index("ix_lab_results_import_id", "lab_results", ["import_id"], unique=False)

    op.create_table(
        "audit_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("module", sa.String(length=64), nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("entity_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("details", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_audit_log"),
    )
    op.create_index("ix_audit_log_entity", "audit_log", ["entity_type", "entity_id"], unique=False)
    op.create_index("ix_audit_log_organization_id", "audit_log", ["organization_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_audit_log_organization_id", table_name="audit_log")
    op.drop_index("ix_audit_log_entity", table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_index("ix_lab_results_import_id", table_name="lab_results")
    op.drop_index("ix_lab_results_parameter_id", table_name="lab_results")
    op.drop_table("lab_results")
    op.drop_index("ix_sampling_events_import_id", table_name="sampling_events")
    op.drop_index("ix_sampling_events_sample_date", table_name="sampling_events")
    op.drop_table("sampling_events")
    op.drop_index("ix_data_imports_import_status", table_name="data_imports")
    op.drop_index("ix_data_imports_organization_id", table_name="data_imports")
    op.drop_table("data_imports")
    op.drop_index("ix_file_processing_queue_category_status", table_name="file_processing_queue")
    op.drop_index("ix_file_processing_queue_organization_id", table_name="file_processing_queue")
    op.drop_index("ix_file_processing_queue_status", table_name="file_processing_queue")
    op.drop_table("file_processing_queue")
    op.drop_index("ix_outfall_aliases_organization_permit", table_name="outfall_aliases")
    op.drop_table("outfall_aliases")
    op.drop_index("ix_parameter_aliases_parameter_id", table_name="parameter_aliases")
    op.drop_table("parameter_aliases")
    op.drop_table("parameters")
    op.drop_index("ix_outfalls_permit_id", table_name="outfalls")
    op.drop_table("outfalls")
    op.drop_index("ix_npdes_permits_organization_id", table_name="npdes_permits")
    op.drop_table("npdes_permits")
