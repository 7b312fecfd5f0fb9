"""Initial ledger schema: bank sources, ledger entries, transfers.

Matches Base.metadata as created by LedgerStore.create_schema().

Revision ID: 001
Revises:
Create Date: 2024-05-01
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "001"
down_revision = None
branch_labels = None
depends_on = None

DIRECTION = sa.Enum("DEBIT", "CREDIT", name="direction_enum")
# Same type, already created with ledger_entries
TRANSFER_DIRECTION = postgresql.ENUM(
    "DEBIT", "CREDIT", name="direction_enum", create_type=False
)
UNIT = sa.Enum(
    "NOT_APPLICABLE", "NOT_AVAILABLE", "PIECE", "KG", "GRAM", "LITER", "ML",
    name="unit_type_enum",
)


def upgrade() -> None:
    op.create_table(
        "bank_sources",
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("source_name", sa.String(100), nullable=False),
        sa.Column("opening_cash", sa.Numeric(19, 4), nullable=False),
        sa.Column("opening_cheque", sa.Numeric(19, 4), nullable=False),
        sa.Column("opening_card", sa.Numeric(19, 4), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("date", "source_name"),
    )

    op.create_table(
        "ledger_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("source_name", sa.String(100), nullable=False),
        sa.Column("person_name", sa.String(100), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("item_name", sa.String(200), nullable=False),
        sa.Column("note", sa.String(500), nullable=False),
        sa.Column("quantity", sa.Numeric(19, 4), nullable=False),
        sa.Column("unit", UNIT, nullable=False),
        sa.Column("unit_price", sa.Numeric(19, 4), nullable=False),
        sa.Column("total_amount", sa.Numeric(19, 4), nullable=False),
        sa.Column("direction", DIRECTION, nullable=False),
        sa.Column("channel", sa.String(20), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_ledger_entries_date", "ledger_entries", ["date"])
    op.create_index("ix_ledger_entries_source_name", "ledger_entries", ["source_name"])
    op.create_index("ix_ledger_entries_category", "ledger_entries", ["category"])

    op.create_table(
        "transfer_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("from_holder", sa.String(100), nullable=False),
        sa.Column("from_source", sa.String(100), nullable=False),
        sa.Column("from_account_ref", sa.String(50), nullable=False),
        sa.Column("to_holder", sa.String(100), nullable=False),
        sa.Column("to_source", sa.String(100), nullable=False),
        sa.Column("to_account_ref", sa.String(50), nullable=False),
        sa.Column("amount", sa.Numeric(19, 4), nullable=False),
        sa.Column("direction", TRANSFER_DIRECTION, nullable=False),
        sa.Column("channel", sa.String(20), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_transfer_entries_date", "transfer_entries", ["date"])


def downgrade() -> None:
    op.drop_index("ix_transfer_entries_date", table_name="transfer_entries")
    op.drop_table("transfer_entries")
    op.drop_index("ix_ledger_entries_category", table_name="ledger_entries")
    op.drop_index("ix_ledger_entries_source_name", table_name="ledger_entries")
    op.drop_index("ix_ledger_entries_date", table_name="ledger_entries")
    op.drop_table("ledger_entries")
    op.drop_table("bank_sources")
    DIRECTION.drop(op.get_bind(), checkfirst=True)
    UNIT.drop(op.get_bind(), checkfirst=True)
