"""
Create accounts, beneficiaries, calamities, inventory ledger and distribution tables.

Revision ID: 5e1f0c3a7b21
Revises:
Create Date: 2025-06-02
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "5e1f0c3a7b21"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(table_name: str) -> bool:
    bind = op.get_bind()
    insp = inspect(bind)
    return bool(insp.has_table(table_name))


def upgrade() -> None:
    if not _table_exists("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("username", sa.String(length=64), nullable=False),
            sa.Column("full_name", sa.String(length=255), nullable=True),
            sa.Column(
                "role",
                sa.Enum("ADMIN", "STAFF", name="account_role_enum", native_enum=False),
                nullable=False,
                server_default="STAFF",
            ),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_users_id", "users", ["id"])
        op.create_index("ix_users_username", "users", ["username"], unique=True)

    if not _table_exists("beneficiaries"):
        op.create_table(
            "beneficiaries",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("beneficiary_code", sa.String(length=32), nullable=False),
            sa.Column("full_name", sa.String(length=255), nullable=False),
            sa.Column("barangay", sa.String(length=128), nullable=True),
            sa.Column("family_size", sa.Integer(), nullable=False, server_default="1"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_beneficiaries_id", "beneficiaries", ["id"])
        op.create_index("ix_beneficiaries_beneficiary_code", "beneficiaries", ["beneficiary_code"], unique=True)

    if not _table_exists("inventory"):
        op.create_table(
            "inventory",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=128), nullable=False, unique=True),
            sa.Column("category", sa.String(length=64), nullable=True),
            sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("unit", sa.String(length=32), nullable=True),
            sa.Column("low_stock_threshold", sa.Integer(), nullable=False, server_default="10"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_inventory_id", "inventory", ["id"])
        op.create_index("ix_inventory_category", "inventory", ["category"])

    if not _table_exists("calamities"):
        op.create_table(
            "calamities",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=128), nullable=False, unique=True),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column(
                "status",
                sa.Enum("ACTIVE", "INACTIVE", name="calamity_status_enum", native_enum=False),
                nullable=False,
                server_default="ACTIVE",
            ),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_calamities_id", "calamities", ["id"])
        op.create_index("ix_calamities_status", "calamities", ["status"])

    if not _table_exists("calamity_items"):
        op.create_table(
            "calamity_items",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "calamity_id",
                sa.Integer(),
                sa.ForeignKey("calamities.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("inventory_item_id", sa.Integer(), sa.ForeignKey("inventory.id"), nullable=False),
            sa.Column("standard_quantity", sa.Integer(), nullable=False),
            sa.UniqueConstraint("calamity_id", "inventory_item_id", name="uq_calamity_item"),
            sa.CheckConstraint("standard_quantity > 0", name="ck_calamity_item_quantity_positive"),
        )
        op.create_index("ix_calamity_items_id", "calamity_items", ["id"])
        op.create_index("ix_calamity_items_calamity_id", "calamity_items", ["calamity_id"])
        op.create_index("ix_calamity_items_inventory_item_id", "calamity_items", ["inventory_item_id"])

    if not _table_exists("inventory_transactions"):
        op.create_table(
            "inventory_transactions",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("inventory_item_id", sa.Integer(), sa.ForeignKey("inventory.id"), nullable=False),
            sa.Column(
                "user_id",
                sa.Integer(),
                sa.ForeignKey("users.id", ondelete="SET NULL"),
                nullable=True,
            ),
            sa.Column(
                "transaction_type",
                sa.Enum(
                    "RESTOCK",
                    "SET_QUANTITY",
                    "DISTRIBUTION",
                    "VOID_DISTRIBUTION",
                    name="inventory_transaction_type_enum",
                    native_enum=False,
                ),
                nullable=False,
            ),
            sa.Column("quantity_change", sa.Integer(), nullable=False),
            sa.Column("quantity_before", sa.Integer(), nullable=False),
            sa.Column("quantity_after", sa.Integer(), nullable=False),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("reference_id", sa.Integer(), nullable=True),
            sa.Column("reference_type", sa.String(length=64), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_inventory_transactions_id", "inventory_transactions", ["id"])
        op.create_index(
            "ix_inventory_transactions_inventory_item_id", "inventory_transactions", ["inventory_item_id"]
        )
        op.create_index(
            "ix_inventory_transactions_transaction_type", "inventory_transactions", ["transaction_type"]
        )
        op.create_index("ix_inventory_transactions_created_at", "inventory_transactions", ["created_at"])
        op.create_index(
            "ix_inventory_transactions_item_time",
            "inventory_transactions",
            ["inventory_item_id", "created_at"],
        )
        op.create_index(
            "ix_inventory_transactions_reference",
            "inventory_transactions",
            ["reference_type", "reference_id"],
        )

    if not _table_exists("distributions"):
        op.create_table(
            "distributions",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("beneficiary_id", sa.Integer(), sa.ForeignKey("beneficiaries.id"), nullable=False),
            sa.Column("calamity_id", sa.Integer(), sa.ForeignKey("calamities.id"), nullable=True),
            sa.Column("distribution_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column("distributed_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_distributions_id", "distributions", ["id"])
        op.create_index("ix_distributions_beneficiary_id", "distributions", ["beneficiary_id"])
        op.create_index("ix_distributions_calamity_id", "distributions", ["calamity_id"])
        op.create_index("ix_distributions_distribution_date", "distributions", ["distribution_date"])
        op.create_index(
            "ix_distributions_beneficiary_date",
            "distributions",
            ["beneficiary_id", "distribution_date"],
        )

    if not _table_exists("distribution_line_items"):
        op.create_table(
            "distribution_line_items",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "distribution_id",
                sa.Integer(),
                sa.ForeignKey("distributions.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("inventory_item_id", sa.Integer(), sa.ForeignKey("inventory.id"), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.CheckConstraint("quantity > 0", name="ck_distribution_line_quantity_positive"),
        )
        op.create_index("ix_distribution_line_items_id", "distribution_line_items", ["id"])
        op.create_index(
            "ix_distribution_line_items_distribution_id", "distribution_line_items", ["distribution_id"]
        )
        op.create_index(
            "ix_distribution_line_items_inventory_item_id", "distribution_line_items", ["inventory_item_id"]
        )


def downgrade() -> None:
    for table_name in (
        "distribution_line_items",
        "distributions",
        "inventory_transactions",
        "calamity_items",
        "calamities",
        "inventory",
        "beneficiaries",
        "users",
    ):
        if _table_exists(table_name):
            op.drop_table(table_name)
