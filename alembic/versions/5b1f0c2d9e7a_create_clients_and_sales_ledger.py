"""create_clients_and_sales_ledger

Revision ID: 5b1f0c2d9e7a
Revises:
Create Date: 2026-10-19 10:12:44.381920
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b1f0c2d9e7a'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    # USERS
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("role", sa.Enum("USER", "ADMIN", name="user_role"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    # PRODUCTS
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("net_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False),
        sa.CheckConstraint("net_price >= 0", name="ck_net_price_non_negative"),
        sa.CheckConstraint("total_price >= 0", name="ck_total_price_non_negative"),
    )
    op.create_index("ix_products_id", "products", ["id"])

    # CLIENTS
    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("legal_name", sa.String(), nullable=False),
        sa.Column("alias_name", sa.String(), nullable=True),
        sa.Column("tax_id", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("payment_terms", sa.String(), nullable=True),
        sa.Column(
            "payment_status",
            sa.Enum("PENDING", "PAID", "OVERDUE", name="payment_status"),
            nullable=False,
        ),
        sa.Column("company", sa.String(), nullable=True),
        sa.Column("client_code", sa.String(), nullable=True),
        sa.Column("dispatch_type", sa.String(), nullable=True),
        sa.Column("channel", sa.String(), nullable=True),
        sa.Column("sub_channel", sa.String(), nullable=True),
        sa.Column("business_line", sa.String(), nullable=True),
        sa.Column("contact", sa.String(), nullable=True),
        sa.Column("price_list", sa.String(), nullable=True),
        sa.Column("sales_rep", sa.String(), nullable=True),
        sa.Column("address_type", sa.String(), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("district", sa.String(), nullable=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("email", "user_id", name="uq_clients_email_user"),
        sa.UniqueConstraint("tax_id", "user_id", name="uq_clients_tax_id_user"),
    )
    op.create_index("ix_clients_id", "clients", ["id"])
    op.create_index("ix_clients_user_id", "clients", ["user_id"])
    op.create_index("ix_clients_user_legal_name", "clients", ["user_id", "legal_name"])

    # SALES
    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
    )
    op.create_index("ix_sales_id", "sales", ["id"])
    op.create_index("ix_sales_user_id", "sales", ["user_id"])
    op.create_index("ix_sales_client_id", "sales", ["client_id"])
    op.create_index("ix_sales_date", "sales", ["date"])
    op.create_index("ix_sales_user_date", "sales", ["user_id", "date"])

    # SALE ITEMS
    op.create_table(
        "sale_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sale_id", sa.Integer(), sa.ForeignKey("sales.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price_at_sale", sa.Numeric(12, 2), nullable=False),
        sa.UniqueConstraint("sale_id", "product_id", name="uq_sale_items_sale_product"),
        sa.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
    )
    op.create_index("ix_sale_items_id", "sale_items", ["id"])
    op.create_index("ix_sale_items_sale_id", "sale_items", ["sale_id"])
    op.create_index("ix_sale_items_product_id", "sale_items", ["product_id"])


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_table("sale_items")
    op.drop_table("sales")
    op.drop_table("clients")
    op.drop_table("products")
    op.drop_table("users")
    sa.Enum(name="payment_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="user_role").drop(op.get_bind(), checkfirst=True)
