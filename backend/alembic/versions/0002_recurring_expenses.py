from alembic import op
import sqlalchemy as sa

revision = "0002_recurring_expenses"
down_revision = "0001_init"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "recurring_expenses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("supplier", sa.String(length=128), nullable=True),
        sa.Column("category", sa.String(length=64), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("frequency", sa.String(length=16), nullable=False),
        sa.Column("next_due_date", sa.DateTime(), nullable=False),
        sa.Column("last_paid_date", sa.DateTime(), nullable=True),
        sa.Column("paying_account_id", sa.Integer(), sa.ForeignKey("bank_accounts.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=True),
    )
    op.create_index("ix_recurring_expenses_category", "recurring_expenses", ["category"])
    op.create_index("ix_recurring_expenses_next_due_date", "recurring_expenses", ["next_due_date"])
    op.create_index("ix_recurring_expenses_is_active", "recurring_expenses", ["is_active"])

    op.add_column(
        "expenses",
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )


def downgrade():
    op.drop_column("expenses", "is_recurring")
    op.drop_index("ix_recurring_expenses_is_active", table_name="recurring_expenses")
    op.drop_index("ix_recurring_expenses_next_due_date", table_name="recurring_expenses")
    op.drop_index("ix_recurring_expenses_category", table_name="recurring_expenses")
    op.drop_table("recurring_expenses")
