"""Create audit_logs and reports tables.

Revision ID: 001_audit_logs_and_reports
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001_audit_logs_and_reports"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None


def upgrade() -> None:
    op.create_table(
        "audit_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("action", sa.Text, nullable=False),
        sa.Column("entity", sa.Text, nullable=False),
        sa.Column("entity_id", sa.Text, nullable=True),
        sa.Column("user_id", sa.Text, nullable=True),
        sa.Column("user_email", sa.Text, nullable=True),
        sa.Column("user_name", sa.Text, nullable=True),
        sa.Column("user_lastname", sa.Text, nullable=True),
        sa.Column(
            "user_roles",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column(
            "changes_before", postgresql.JSONB(astext_type=sa.Text()), nullable=True
        ),
        sa.Column(
            "changes_after", postgresql.JSONB(astext_type=sa.Text()), nullable=True
        ),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("user_agent", sa.Text, nullable=True),
        sa.Column("ip", sa.Text, nullable=True),
        sa.Column("url", sa.Text, nullable=True),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    )
    op.create_index("ix_audit_logs_timestamp", "audit_logs", ["timestamp"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_entity_entity_id", "audit_logs", ["entity", "entity_id"])
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])

    op.create_table(
        "reports",
        sa.Column("id", sa.BigInteger, sa.Identity(always=False), primary_key=True),
        sa.Column("kind", sa.Text, nullable=False),
        sa.Column("fecha", sa.Date, nullable=True),
        sa.Column("tipo_actividad", sa.Text, nullable=True),
        sa.Column("tipo_maquinaria", sa.Text, nullable=True),
        sa.Column("placa", sa.Text, nullable=True),
        sa.Column("estacion", sa.Text, nullable=True),
        sa.Column("codigo_camino", sa.Text, nullable=True),
        sa.Column("distrito", sa.Text, nullable=True),
        sa.Column("cantidad", sa.Numeric(12, 2), nullable=True),
        sa.Column("horas", sa.Numeric(8, 2), nullable=True),
        sa.Column("hora_inicio", sa.Text, nullable=True),
        sa.Column("hora_fin", sa.Text, nullable=True),
        sa.Column("fuente", sa.Text, nullable=True),
        sa.Column("boleta", sa.Text, nullable=True),
        sa.Column("boleta_kylcsa", sa.Text, nullable=True),
        sa.Column("operador_id", sa.BigInteger, nullable=True),
        sa.Column(
            "detalles",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delete_reason", sa.Text, nullable=True),
        sa.Column("deleted_by_id", sa.Text, nullable=True),
        sa.Column(
            "version", sa.Integer, nullable=False, server_default=sa.text("1")
        ),
        sa.CheckConstraint(
            "kind IN ('MUNICIPAL', 'RENTAL')", name="ck_reports_kind"
        ),
        sa.CheckConstraint(
            "boleta IS NULL OR boleta_kylcsa IS NULL",
            name="ck_reports_single_receipt",
        ),
    )
    op.create_index("ix_reports_kind_fecha", "reports", ["kind", "fecha"])
    op.create_index(
        "ix_reports_kind_deleted_at",
        "reports",
        ["kind", "deleted_at"],
        postgresql_where=sa.text("deleted_at IS NOT NULL"),
    )


def downgrade() -> None:
    op.drop_index("ix_reports_kind_deleted_at", table_name="reports")
    op.drop_index("ix_reports_kind_fecha", table_name="reports")
    op.drop_table("reports")
    op.drop_index("ix_audit_logs_user_id", table_name="audit_logs")
    op.drop_index("ix_audit_logs_entity_entity_id", table_name="audit_logs")
    op.drop_index("ix_audit_logs_action", table_name="audit_logs")
    op.drop_index("ix_audit_logs_timestamp", table_name="audit_logs")
    op.drop_table("audit_logs")
