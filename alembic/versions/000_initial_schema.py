"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

WORKFLOW_STATUSES = (
    "draft",
    "sent",
    "valid_itc",
    "approved",
    "leaser_review",
    "leaser_approved",
    "financed",
    "rejected",
    "info_requested",
)


def upgrade() -> None:
    """Create all initial tables."""

    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.Enum("admin", "ambassador", name="userrole"), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("is_active", sa.Boolean(), default=True, nullable=False),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    # Leasers and their coefficient ranges
    op.create_table(
        "leasers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("logo_url", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_leasers_name", "leasers", ["name"])

    op.create_table(
        "leaser_ranges",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("leaser_id", sa.Integer(), sa.ForeignKey("leasers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), default=0, nullable=False),
        sa.Column("min_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("max_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("coefficient", sa.Numeric(8, 4), nullable=False),
    )
    op.create_index("ix_leaser_ranges_leaser_id", "leaser_ranges", ["leaser_id"])

    # Commission levels and tiers
    op.create_table(
        "commission_levels",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", sa.Enum("ambassador", "partner", name="principaltype"), nullable=False),
        sa.Column("is_default", sa.Boolean(), default=False, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_commission_levels_type", "commission_levels", ["type"])

    op.create_table(
        "commission_rates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "commission_level_id",
            sa.Integer(),
            sa.ForeignKey("commission_levels.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), default=0, nullable=False),
        sa.Column("min_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("max_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("rate", sa.Numeric(8, 4), nullable=False),
        sa.Column("fixed_amount", sa.Numeric(12, 2), nullable=True),
    )
    op.create_index("ix_commission_rates_commission_level_id", "commission_rates", ["commission_level_id"])

    # Ambassadors
    op.create_table(
        "ambassadors",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("status", sa.Enum("active", "inactive", name="ambassadorstatus"), nullable=False),
        sa.Column(
            "commission_level_id",
            sa.Integer(),
            sa.ForeignKey("commission_levels.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    # Offers
    op.create_table(
        "offers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("client_name", sa.String(255), nullable=False),
        sa.Column("client_email", sa.String(255), nullable=True),
        sa.Column("client_id", sa.String(64), nullable=True),
        sa.Column(
            "type",
            sa.Enum("admin_offer", "internal_offer", "partner_offer", "ambassador_offer", name="offertype"),
            nullable=False,
        ),
        sa.Column("leaser_id", sa.Integer(), sa.ForeignKey("leasers.id", ondelete="SET NULL"), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("coefficient", sa.Numeric(8, 4), nullable=False),
        sa.Column("monthly_payment", sa.Numeric(12, 2), nullable=False),
        sa.Column("financed_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("margin", sa.Numeric(12, 2), nullable=False),
        sa.Column("margin_difference", sa.Numeric(12, 2), nullable=False),
        sa.Column("commission", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "commission_status",
            sa.Enum("pending", "paid", "cancelled", name="commissionstatus"),
            nullable=False,
        ),
        sa.Column("commission_paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "ambassador_id",
            sa.Integer(),
            sa.ForeignKey("ambassadors.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "commission_level_id",
            sa.Integer(),
            sa.ForeignKey("commission_levels.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("workflow_status", sa.Enum(*WORKFLOW_STATUSES, name="offerworkflowstatus"), nullable=False),
        sa.Column(
            "previous_status",
            sa.Enum(*WORKFLOW_STATUSES, name="offerworkflowstatus"),
            nullable=True,
        ),
        sa.Column("converted_to_contract", sa.Boolean(), default=False, nullable=False),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_offers_client_id", "offers", ["client_id"])
    op.create_index("ix_offers_ambassador_id", "offers", ["ambassador_id"])
    op.create_index("ix_offers_workflow_status", "offers", ["workflow_status"])
    op.create_index("ix_offers_converted_to_contract", "offers", ["converted_to_contract"])

    op.create_table(
        "offer_equipment",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("offer_id", sa.Integer(), sa.ForeignKey("offers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), default=0, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("purchase_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("quantity", sa.Integer(), default=1, nullable=False),
        sa.Column("margin", sa.Numeric(8, 4), nullable=False),
        sa.Column("monthly_payment", sa.Numeric(12, 2), nullable=True),
        sa.CheckConstraint("quantity >= 1", name="ck_offer_equipment_quantity"),
    )
    op.create_index("ix_offer_equipment_offer_id", "offer_equipment", ["offer_id"])

    # Append-only workflow log
    op.create_table(
        "offer_workflow_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("offer_id", sa.Integer(), sa.ForeignKey("offers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("previous_status", sa.String(50), nullable=False),
        sa.Column("new_status", sa.String(50), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_offer_workflow_logs_offer_id", "offer_workflow_logs", ["offer_id"])
    op.create_index("ix_offer_workflow_logs_created_at", "offer_workflow_logs", ["created_at"])

    # Contracts
    op.create_table(
        "contracts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("offer_id", sa.Integer(), sa.ForeignKey("offers.id", ondelete="SET NULL"), nullable=True),
        sa.Column("client_name", sa.String(255), nullable=False),
        sa.Column("client_id", sa.String(64), nullable=True),
        sa.Column("leaser_name", sa.String(255), nullable=False),
        sa.Column("leaser_logo", sa.String(500), nullable=True),
        sa.Column("monthly_payment", sa.Numeric(12, 2), nullable=False),
        sa.Column("equipment_description", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "contract_sent",
                "contract_signed",
                "equipment_ordered",
                "delivered",
                "active",
                "completed",
                name="contractstatus",
            ),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_contracts_offer_id", "contracts", ["offer_id"])

    # Audit logs
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "action",
            sa.Enum(
                "login",
                "logout",
                "create_leaser",
                "update_leaser",
                "delete_leaser",
                "create_commission_level",
                "update_commission_level",
                "delete_commission_level",
                "create_ambassador",
                "create_offer",
                "delete_offer",
                "update_commission_status",
                name="auditaction",
            ),
            nullable=False,
        ),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("action_metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_table("audit_logs")
    op.drop_table("contracts")
    op.drop_table("offer_workflow_logs")
    op.drop_table("offer_equipment")
    op.drop_table("offers")
    op.drop_table("ambassadors")
    op.drop_table("commission_rates")
    op.drop_table("commission_levels")
    op.drop_table("leaser_ranges")
    op.drop_table("leasers")
    op.drop_table("users")

    # Drop enums
    op.execute("DROP TYPE IF EXISTS auditaction")
    op.execute("DROP TYPE IF EXISTS contractstatus")
    op.execute("DROP TYPE IF EXISTS offerworkflowstatus")
    op.execute("DROP TYPE IF EXISTS commissionstatus")
    op.execute("DROP TYPE IF EXISTS offertype")
    op.execute("DROP TYPE IF EXISTS ambassadorstatus")
    op.execute("DROP TYPE IF EXISTS principaltype")
    op.execute("DROP TYPE IF EXISTS userrole")
