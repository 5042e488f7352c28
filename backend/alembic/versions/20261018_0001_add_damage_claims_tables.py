"""add damage claims and staff activities tables

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:30:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "damage_claims",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("distributor_id", sa.String(length=64), nullable=False),
        sa.Column("distributor_name", sa.String(length=200), nullable=False),
        sa.Column("brand", sa.String(length=100), nullable=False),
        sa.Column("variant", sa.String(length=100), nullable=False),
        sa.Column("size", sa.String(length=50), nullable=False),
        sa.Column("pieces", sa.Integer(), nullable=False),
        sa.Column("manufacturing_date", sa.Date(), nullable=False),
        sa.Column("batch_details", sa.String(length=200), nullable=False),
        sa.Column("damage_type", sa.String(length=50), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=30), nullable=False),
        sa.Column("approved_pieces", sa.Integer(), nullable=True),
        sa.Column("approved_by", sa.String(length=64), nullable=True),
        sa.Column("decided_at", sa.DateTime(), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("manager_comment", sa.Text(), nullable=True),
        sa.Column("manager_comment_by", sa.String(length=64), nullable=True),
        sa.Column("tracking_id", sa.String(length=32), nullable=True),
        sa.Column("replacement_status", sa.String(length=20), nullable=False),
        sa.Column("replacement_dispatch_date", sa.Date(), nullable=True),
        sa.Column("replacement_approved_by_name", sa.String(length=200), nullable=True),
        sa.Column("replacement_channelled_to", sa.String(length=200), nullable=True),
        sa.Column("replacement_reference_number", sa.String(length=100), nullable=True),
        sa.Column("replacement_processed_by", sa.String(length=64), nullable=True),
        sa.Column("replacement_processed_at", sa.DateTime(), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('Pending', 'Approved', 'Partially Approved', 'Rejected')",
            name="ck_damage_claims_status",
        ),
        sa.CheckConstraint(
            "damage_type IN ('Box Damage', 'Product Damage', 'Seal Broken', "
            "'Expiry Date Issue', 'Quality Issue', 'Other')",
            name="ck_damage_claims_damage_type",
        ),
        sa.CheckConstraint(
            "replacement_status IN ('Pending', 'Completed')",
            name="ck_damage_claims_replacement_status",
        ),
        sa.CheckConstraint("pieces >= 1", name="ck_damage_claims_pieces_min_1"),
        sa.CheckConstraint(
            "(status = 'Partially Approved' AND approved_pieces IS NOT NULL "
            "AND approved_pieces >= 1 AND approved_pieces <= pieces) "
            "OR (status <> 'Partially Approved' AND approved_pieces IS NULL)",
            name="ck_damage_claims_approved_pieces",
        ),
    )
    op.create_index("ix_damage_claims_id", "damage_claims", ["id"], unique=False)
    op.create_index("ix_damage_claims_distributor_id", "damage_claims", ["distributor_id"], unique=False)
    op.create_index("ix_damage_claims_manufacturing_date", "damage_claims", ["manufacturing_date"], unique=False)
    op.create_index("ix_damage_claims_created_by", "damage_claims", ["created_by"], unique=False)
    op.create_index(
        "ix_damage_claims_status_created_at",
        "damage_claims",
        ["status", "created_at"],
        unique=False,
    )
    op.create_index(
        "uq_damage_claims_tracking_id",
        "damage_claims",
        ["tracking_id"],
        unique=True,
        sqlite_where=sa.text("tracking_id IS NOT NULL"),
        postgresql_where=sa.text("tracking_id IS NOT NULL"),
    )

    op.create_table(
        "staff_activities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("staff_id", sa.String(length=64), nullable=False),
        sa.Column("activity_type", sa.String(length=50), nullable=False),
        sa.Column("details", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("related_claim_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_staff_activities_id", "staff_activities", ["id"], unique=False)
    op.create_index(
        "ix_staff_activities_staff_created",
        "staff_activities",
        ["staff_id", "created_at"],
        unique=False,
    )
    op.create_index(
        "ix_staff_activities_related_claim",
        "staff_activities",
        ["related_claim_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_staff_activities_related_claim", table_name="staff_activities")
    op.drop_index("ix_staff_activities_staff_created", table_name="staff_activities")
    op.drop_index("ix_staff_activities_id", table_name="staff_activities")
    op.drop_table("staff_activities")
    op.drop_index("uq_damage_claims_tracking_id", table_name="damage_claims")
    op.drop_index("ix_damage_claims_status_created_at", table_name="damage_claims")
    op.drop_index("ix_damage_claims_created_by", table_name="damage_claims")
    op.drop_index("ix_damage_claims_manufacturing_date", table_name="damage_claims")
    op.drop_index("ix_damage_claims_distributor_id", table_name="damage_claims")
    op.drop_index("ix_damage_claims_id", table_name="damage_claims")
    op.drop_table("damage_claims")
