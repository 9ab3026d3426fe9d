"""create commission ledger tables

Revision ID: 4d2f8a1c9e07
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "4d2f8a1c9e07"
down_revision = None
branch_labels = None
depends_on = None


def _uuid_pk() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def _money(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.Numeric(12, 2), nullable=True)
    return sa.Column(name, sa.Numeric(12, 2), nullable=False, server_default="0")


def upgrade() -> None:
    # -----------------------------------------------------
    # 1) affiliate_profiles (balances)
    # -----------------------------------------------------
    op.create_table(
        "affiliate_profiles",
        _uuid_pk(),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("commission_rate", sa.Numeric(5, 4), nullable=False, server_default="0.10"),
        sa.Column("commission_tiers", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        _money("total_earnings"),
        _money("pending_payouts"),
        _money("total_paid"),
        sa.Column("total_clicks", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_earning_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_payout_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_activity", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("ix_affiliate_profiles_user_id", "affiliate_profiles", ["user_id"], unique=True)
    op.create_index("ix_affiliate_profiles_status", "affiliate_profiles", ["status"])

    # -----------------------------------------------------
    # 2) campaigns
    # -----------------------------------------------------
    op.create_table(
        "campaigns",
        _uuid_pk(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("url", sa.String(length=2048), nullable=False),
        sa.Column("payout_rules", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        _created_at(),
    )
    op.create_index("ix_campaigns_name", "campaigns", ["name"])
    op.create_index("ix_campaigns_status", "campaigns", ["status"])

    # -----------------------------------------------------
    # 3) click_events
    # -----------------------------------------------------
    op.create_table(
        "click_events",
        _uuid_pk(),
        sa.Column("click_id", sa.String(length=64), nullable=False),
        sa.Column("affiliate_id", sa.String(length=64), nullable=False),
        sa.Column("campaign_id", sa.String(length=64), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("referrer", sa.Text(), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column(
            "user_agent_metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("filtered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("bot_detection", sa.String(length=120), nullable=False, server_default="none"),
        sa.Column("converted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("converted_at", sa.DateTime(timezone=True), nullable=True),
        _money("conversion_amount", nullable=True),
        _created_at(),
    )
    op.create_index("ix_click_events_click_id", "click_events", ["click_id"], unique=True)
    op.create_index("ix_click_events_campaign_id", "click_events", ["campaign_id"])
    op.create_index("ix_click_events_filtered", "click_events", ["filtered"])
    op.create_index("ix_click_events_affiliate_created", "click_events", ["affiliate_id", "created_at"])

    # -----------------------------------------------------
    # 4) revenue_records (ledger, transaction_id is the idempotency key)
    # -----------------------------------------------------
    op.create_table(
        "revenue_records",
        _uuid_pk(),
        sa.Column("transaction_id", sa.String(length=255), nullable=False),
        sa.Column("session_id", sa.String(length=255), nullable=True),
        sa.Column("invoice_id", sa.String(length=255), nullable=True),
        sa.Column("subscription_id", sa.String(length=255), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(length=10), nullable=False, server_default="INR"),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="pending"),
        sa.Column("affiliate_id", sa.String(length=64), nullable=True),
        sa.Column("campaign_id", sa.String(length=64), nullable=True),
        sa.Column("click_id", sa.String(length=64), nullable=True),
        _money("commission_amount"),
        _money("commission_reversed"),
        sa.Column("commission_basis", sa.String(length=30), nullable=True),
        _money("refund_amount"),
        sa.Column("refunded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("disputed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("converted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_method", sa.String(length=255), nullable=True),
        sa.Column("source", sa.String(length=20), nullable=False, server_default="stripe"),
        sa.Column("is_renewal", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "commission_reversed <= commission_amount",
            name="ck_revenue_records_reversed_le_commission",
        ),
    )
    op.create_index("ix_revenue_records_transaction_id", "revenue_records", ["transaction_id"], unique=True)
    op.create_index("ix_revenue_records_subscription_id", "revenue_records", ["subscription_id"])
    op.create_index("ix_revenue_records_campaign_id", "revenue_records", ["campaign_id"])
    op.create_index("ix_revenue_records_click_id", "revenue_records", ["click_id"])
    op.create_index("ix_revenue_records_status", "revenue_records", ["status"])
    op.create_index("ix_revenue_records_affiliate_created", "revenue_records", ["affiliate_id", "created_at"])

    # -----------------------------------------------------
    # 5) payout_records
    # -----------------------------------------------------
    op.create_table(
        "payout_records",
        _uuid_pk(),
        sa.Column("affiliate_id", sa.String(length=64), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(length=10), nullable=False, server_default="INR"),
        sa.Column("method", sa.String(length=40), nullable=False, server_default="manual"),
        sa.Column("transaction_id", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("processed_by", sa.String(length=64), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="completed"),
        _created_at(),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_payout_records_status", "payout_records", ["status"])
    op.create_index("ix_payout_records_affiliate_created", "payout_records", ["affiliate_id", "created_at"])

    # -----------------------------------------------------
    # 6) balance_adjustments (manual admin corrections)
    # -----------------------------------------------------
    op.create_table(
        "balance_adjustments",
        _uuid_pk(),
        sa.Column("affiliate_id", sa.String(length=64), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False, server_default=""),
        sa.Column("processed_by", sa.String(length=64), nullable=False, server_default="admin"),
        _created_at(),
    )
    op.create_index("ix_balance_adjustments_affiliate_id", "balance_adjustments", ["affiliate_id"])


def downgrade() -> None:
    op.drop_index("ix_balance_adjustments_affiliate_id", table_name="balance_adjustments")
    op.drop_table("balance_adjustments")

    op.drop_index("ix_payout_records_affiliate_created", table_name="payout_records")
    op.drop_index("ix_payout_records_status", table_name="payout_records")
    op.drop_table("payout_records")

    for name in (
        "ix_revenue_records_affiliate_created",
        "ix_revenue_records_status",
        "ix_revenue_records_click_id",
        "ix_revenue_records_campaign_id",
        "ix_revenue_records_subscription_id",
        "ix_revenue_records_transaction_id",
    ):
        op.drop_index(name, table_name="revenue_records")
    op.drop_table("revenue_records")

    for name in (
        "ix_click_events_affiliate_created",
        "ix_click_events_filtered",
        "ix_click_events_campaign_id",
        "ix_click_events_click_id",
    ):
        op.drop_index(name, table_name="click_events")
    op.drop_table("click_events")

    op.drop_index("ix_campaigns_status", table_name="campaigns")
    op.drop_index("ix_campaigns_name", table_name="campaigns")
    op.drop_table("campaigns")

    op.drop_index("ix_affiliate_profiles_status", table_name="affiliate_profiles")
    op.drop_index("ix_affiliate_profiles_user_id", table_name="affiliate_profiles")
    op.drop_table("affiliate_profiles")
