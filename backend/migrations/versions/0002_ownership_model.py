"""ownership model: owners, user/property links, invitations

Revision ID: 0002_ownership_model
Revises: 0001_initial
Create Date: 2025-03-18 00:00:00.000000

Property rows are not linked here; run scripts/migrate_ownership.py (or the
/api/migrate-ownership endpoint) afterwards to backfill property_owners.
"""

from alembic import op
import sqlalchemy as sa


revision = "0002_ownership_model"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("owners"):
        op.create_table(
            "owners",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("type", sa.String(length=50), nullable=False, server_default="individual"),
            sa.Column("email", sa.String(length=255), nullable=True),
            sa.Column("phone", sa.String(length=50), nullable=True),
            sa.Column("tax_id", sa.String(length=50), nullable=True),
            sa.Column("address", sa.String(length=500), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index(op.f("ix_owners_id"), "owners", ["id"], unique=False)

    if not inspector.has_table("user_owners"):
        op.create_table(
            "user_owners",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.String(length=255), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("owner_id", sa.Integer(), sa.ForeignKey("owners.id", ondelete="CASCADE"), nullable=False),
            sa.Column("role", sa.String(length=20), nullable=False, server_default="viewer"),
            sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("user_id", "owner_id", name="uq_user_owners_user_owner"),
        )
        op.create_index(op.f("ix_user_owners_id"), "user_owners", ["id"], unique=False)
        op.create_index(op.f("ix_user_owners_user_id"), "user_owners", ["user_id"], unique=False)
        op.create_index(op.f("ix_user_owners_owner_id"), "user_owners", ["owner_id"], unique=False)

    if not inspector.has_table("property_owners"):
        op.create_table(
            "property_owners",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "property_id", sa.Integer(), sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False
            ),
            sa.Column("owner_id", sa.Integer(), sa.ForeignKey("owners.id", ondelete="CASCADE"), nullable=False),
            sa.Column("ownership_percentage", sa.Float(), nullable=False, server_default="100"),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("property_id", "owner_id", name="uq_property_owners_property_owner"),
        )
        op.create_index(op.f("ix_property_owners_id"), "property_owners", ["id"], unique=False)
        op.create_index(op.f("ix_property_owners_property_id"), "property_owners", ["property_id"], unique=False)
        op.create_index(op.f("ix_property_owners_owner_id"), "property_owners", ["owner_id"], unique=False)

    if not inspector.has_table("owner_invitations"):
        op.create_table(
            "owner_invitations",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("owner_id", sa.Integer(), sa.ForeignKey("owners.id", ondelete="CASCADE"), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("role", sa.String(length=20), nullable=False, server_default="viewer"),
            sa.Column(
                "invited_by", sa.String(length=255), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
            ),
            sa.Column("token", sa.String(length=64), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
            sa.Column("expires_at", sa.DateTime(), nullable=False),
            sa.Column("accepted_at", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index(op.f("ix_owner_invitations_id"), "owner_invitations", ["id"], unique=False)
        op.create_index(op.f("ix_owner_invitations_owner_id"), "owner_invitations", ["owner_id"], unique=False)
        op.create_index(op.f("ix_owner_invitations_token"), "owner_invitations", ["token"], unique=True)


def downgrade() -> None:
    op.drop_table("owner_invitations")
    op.drop_table("property_owners")
    op.drop_table("user_owners")
    op.drop_table("owners")
