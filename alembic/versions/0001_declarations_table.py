"""declarations table

Revision ID: 0001_declarations
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_declarations"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "declarations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("filing_number", sa.String(50), nullable=False),
        sa.Column("taxpayer_id", sa.String(20), nullable=False),
        sa.Column("legal_name", sa.String(200), nullable=False),
        sa.Column("period", sa.Date(), nullable=False),
        sa.Column("tax_type", sa.String(20), nullable=False),
        sa.Column("income_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("expense_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("computed_tax", sa.Numeric(18, 2), nullable=False),
        sa.Column("penalty", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("filed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_remarks", sa.String(500), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_declarations")),
        sa.UniqueConstraint("filing_number", name=op.f("uq_declarations_filing_number")),
    )
    op.create_index(op.f("ix_declarations_taxpayer_id"), "declarations", ["taxpayer_id"])
    op.create_index(op.f("ix_declarations_status"), "declarations", ["status"])
    op.create_index("ix_declarations_taxpayer_created", "declarations", ["taxpayer_id", "created_at"])
    op.create_index(
        "uq_declarations_taxpayer_period_tax_type",
        "declarations",
        ["taxpayer_id", "period", "tax_type"],
        unique=True,
        postgresql_where=sa.text("status != 'REJECTED'"),
        sqlite_where=sa.text("status != 'REJECTED'"),
    )


def downgrade() -> None:
    op.drop_index("uq_declarations_taxpayer_period_tax_type", table_name="declarations")
    op.drop_index("ix_declarations_taxpayer_created", table_name="declarations")
    op.drop_index(op.f("ix_declarations_status"), table_name="declarations")
    op.drop_index(op.f("ix_declarations_taxpayer_id"), table_name="declarations")
    op.drop_table("declarations")
