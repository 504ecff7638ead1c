"""Initial schema: users, profiles, locations, interests, travel packages

Revision ID: tb_001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision = "tb_001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(200)),
        sa.Column("role", sa.String(20), server_default="traveler"),
        sa.Column("is_active", sa.Boolean, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # --- user_profiles ---
    op.create_table(
        "user_profiles",
        sa.Column("id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("full_name", sa.String(200)),
        sa.Column("avatar_url", sa.String(500)),
        sa.Column("phone", sa.String(50)),
        sa.Column("role", sa.String(20), server_default="traveler"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- locations ---
    op.create_table(
        "locations",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("country", sa.String(100), nullable=False),
        sa.Column("tags", JSONB, server_default="[]"),
        sa.Column("description", sa.Text, server_default=""),
    )

    # --- user_interests ---
    op.create_table(
        "user_interests",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("locations_id", JSONB, server_default="[]"),
        sa.Column("locations_text", sa.Text, server_default=""),
        sa.Column("budget", sa.Numeric(12, 2), nullable=False),
        sa.Column("duration", sa.Integer, nullable=False),
        sa.Column("activities", sa.Text, nullable=False),
        sa.Column("notes", sa.Text),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_user_interests_user_id", "user_interests", ["user_id"])

    # --- travel_packages ---
    op.create_table(
        "travel_packages",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("provider_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("location_id", sa.String(64), sa.ForeignKey("locations.id")),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("duration_days", sa.Integer, nullable=False),
        sa.Column("highlights", JSONB, server_default="[]"),
        sa.Column("description", sa.Text, server_default=""),
        sa.Column("image_url", sa.String(500)),
        sa.Column("is_ai_generated", sa.Boolean, server_default="false"),
        sa.Column("is_proposed", sa.Boolean, server_default="false"),
        sa.Column("interested_count", sa.Integer, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_travel_packages_provider_id", "travel_packages", ["provider_id"])
    op.create_index("ix_travel_packages_is_proposed", "travel_packages", ["is_proposed"])
    op.create_index("idx_travel_packages_trending", "travel_packages", ["interested_count"])


def downgrade() -> None:
    op.drop_table("travel_packages")
    op.drop_table("user_interests")
    op.drop_table("locations")
    op.drop_table("user_profiles")
    op.drop_table("users")
