"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

USER_ROLES = ("admin", "group_pastor", "pcf_leader", "cell_leader", "member")
DESIGNATIONS = ("MEMBER", "CELL_LEADER", "PCF_LEADER", "GROUP_PASTOR", "PASTORAL_ASSISTANT")


def upgrade() -> None:
    op.create_table(
        "churches",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "groups",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("church_id", sa.Integer(), sa.ForeignKey("churches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("leader_id", sa.String(length=36), nullable=True),
    )
    op.create_index("ix_groups_church_id", "groups", ["church_id"])
    op.create_index("ix_groups_leader_id", "groups", ["leader_id"])

    op.create_table(
        "pcfs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("group_id", sa.Integer(), sa.ForeignKey("groups.id", ondelete="CASCADE"), nullable=False),
        sa.Column("leader_id", sa.String(length=36), nullable=True),
    )
    op.create_index("ix_pcfs_group_id", "pcfs", ["group_id"])
    op.create_index("ix_pcfs_leader_id", "pcfs", ["leader_id"])

    op.create_table(
        "cells",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("pcf_id", sa.Integer(), sa.ForeignKey("pcfs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("leader_id", sa.String(length=36), nullable=True),
    )
    op.create_index("ix_cells_pcf_id", "cells", ["pcf_id"])
    op.create_index("ix_cells_leader_id", "cells", ["leader_id"])

    op.create_table(
        "members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("gender", sa.Enum("Male", "Female", name="member_gender"), nullable=True),
        sa.Column("title", sa.String(length=50), nullable=True),
        sa.Column(
            "designation",
            sa.Enum(*DESIGNATIONS, name="member_designation"),
            nullable=False,
            server_default="MEMBER",
        ),
        sa.Column("birth_day", sa.Integer(), nullable=True),
        sa.Column("birth_month", sa.Integer(), nullable=True),
        sa.Column("status", sa.Enum("Active", "Inactive", name="member_status"), nullable=False, server_default="Active"),
        sa.Column("cell_id", sa.Integer(), sa.ForeignKey("cells.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("birth_day IS NULL OR (birth_day BETWEEN 1 AND 31)", name="ck_members_birth_day"),
        sa.CheckConstraint("birth_month IS NULL OR (birth_month BETWEEN 1 AND 12)", name="ck_members_birth_month"),
    )
    op.create_index("ix_members_email", "members", ["email"], unique=True)
    op.create_index("ix_members_cell_id", "members", ["cell_id"])

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("username", sa.String(length=150), nullable=True),
        sa.Column("first_name", sa.String(length=120), nullable=True),
        sa.Column("last_name", sa.String(length=120), nullable=True),
        sa.Column("title", sa.String(length=50), nullable=True),
        sa.Column("password", sa.String(length=255), nullable=False),
        sa.Column("role", sa.Enum(*USER_ROLES, name="user_role"), nullable=False, server_default="member"),
        sa.Column("group_id", sa.Integer(), nullable=True),
        sa.Column("pcf_id", sa.Integer(), nullable=True),
        sa.Column("cell_id", sa.Integer(), nullable=True),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("members.id", ondelete="SET NULL"), nullable=True, unique=True),
        sa.Column("force_password_change", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_group_id", "users", ["group_id"])
    op.create_index("ix_users_pcf_id", "users", ["pcf_id"])
    op.create_index("ix_users_cell_id", "users", ["cell_id"])

    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_services_date", "services", ["date"])

    op.create_table(
        "attendance_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("members.id", ondelete="CASCADE"), nullable=False),
        sa.Column("service_id", sa.Integer(), sa.ForeignKey("services.id", ondelete="CASCADE"), nullable=False),
        sa.Column("check_in_time", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("method", sa.Enum("manual", "qr_code", name="attendance_method"), nullable=False),
        sa.Column("device_id", sa.String(length=120), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.UniqueConstraint("member_id", "service_id", name="uq_attendance_member_service"),
    )
    op.create_index("ix_attendance_records_member_id", "attendance_records", ["member_id"])
    op.create_index("ix_attendance_records_service_id", "attendance_records", ["service_id"])


def downgrade() -> None:
    op.drop_table("attendance_records")
    op.drop_table("services")
    op.drop_table("users")
    op.drop_table("members")
    op.drop_table("cells")
    op.drop_table("pcfs")
    op.drop_table("groups")
    op.drop_table("churches")
    for enum_name in ("attendance_method", "user_role", "member_status", "member_designation", "member_gender"):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
