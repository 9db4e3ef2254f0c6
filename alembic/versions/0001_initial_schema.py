"""initial schema: users, device catalog, allow-list, devices

Revision ID: 0001_initial_schema
Revises: None
Create Date: 2026-10-19 00:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("password_hash", sa.String(length=512), nullable=False),
        sa.Column("full_name", sa.String(length=256), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=True),
        sa.Column("application_id", sa.String(length=64), nullable=True),
        sa.Column("device_profile_id", sa.String(length=64), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "device_versions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("version", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_device_versions_created_at", "device_versions", ["created_at"])

    op.create_table(
        "allowed_devices",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("dev_eui", sa.String(length=16), nullable=False),
        sa.Column("nwk_key", sa.String(length=32), nullable=False),
        sa.Column("app_key", sa.String(length=32), nullable=False),
        sa.Column("addr_key", sa.String(length=8), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_allowed_devices_dev_eui", "allowed_devices", ["dev_eui"], unique=True)
    op.create_index("ix_allowed_devices_created_at", "allowed_devices", ["created_at"])

    op.create_table(
        "devices",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("version_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("dev_eui", sa.String(length=16), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("chirpstack_device_created", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("chirpstack_device_activated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_devices_user_id", "devices", ["user_id"])
    op.create_index("ix_devices_version_id", "devices", ["version_id"])
    op.create_index("ix_devices_dev_eui", "devices", ["dev_eui"])
    op.create_index("ix_devices_created_at", "devices", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_devices_created_at", table_name="devices")
    op.drop_index("ix_devices_dev_eui", table_name="devices")
    op.drop_index("ix_devices_version_id", table_name="devices")
    op.drop_index("ix_devices_user_id", table_name="devices")
    op.drop_table("devices")

    op.drop_index("ix_allowed_devices_created_at", table_name="allowed_devices")
    op.drop_index("ix_allowed_devices_dev_eui", table_name="allowed_devices")
    op.drop_table("allowed_devices")

    op.drop_index("ix_device_versions_created_at", table_name="device_versions")
    op.drop_table("device_versions")

    op.drop_index("ix_users_created_at", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
