"""Baseline schema: accounts, profiles, hospitals and role tables

Revision ID: 20260101_00
Revises:
Create Date: 2026-01-01

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "20260101_00"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("user_metadata", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_sign_in_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_accounts_email"),
    )
    op.create_index("ix_accounts_email", "accounts", ["email"])

    # Profiles of patients registered by an assistant have no account row.
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("gender", sa.String(20), nullable=True),
        sa.Column("dob", sa.Date(), nullable=True),
        sa.Column("role", sa.String(32), server_default="patient", nullable=False),
        sa.Column("approval_status", sa.String(20), server_default="pending", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_profiles_role_approval_status", "profiles", ["role", "approval_status"]
    )

    op.create_table(
        "hospitals",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("hospital_type", sa.String(100), nullable=True),
        sa.Column("admin_profile_id", sa.String(36), nullable=True),
        sa.Column("status", sa.String(20), server_default="pending", nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["admin_profile_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_hospitals_name", "hospitals", ["name"])
    op.create_index("ix_hospitals_admin_profile_id", "hospitals", ["admin_profile_id"])
    op.create_index("ix_hospitals_status", "hospitals", ["status"])

    op.create_table(
        "hospital_admin_profiles",
        sa.Column("profile_id", sa.String(36), nullable=False),
        sa.Column("hospital_id", sa.String(36), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["hospital_id"], ["hospitals.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("profile_id"),
    )
    op.create_index(
        "ix_hospital_admin_profiles_hospital_id", "hospital_admin_profiles", ["hospital_id"]
    )

    op.create_table(
        "doctor_profiles",
        sa.Column("profile_id", sa.String(36), nullable=False),
        sa.Column("specialization", sa.String(255), nullable=True),
        sa.Column("hospital_id", sa.String(36), nullable=True),
        sa.Column("license_number", sa.String(100), nullable=True),
        sa.Column("cnic", sa.String(32), nullable=True),
        sa.Column("approval_status", sa.String(20), server_default="pending", nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["hospital_id"], ["hospitals.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("profile_id"),
    )
    op.create_index("ix_doctor_profiles_hospital_id", "doctor_profiles", ["hospital_id"])

    op.create_table(
        "doctor_assistant_profiles",
        sa.Column("profile_id", sa.String(36), nullable=False),
        sa.Column("doctor_profile_id", sa.String(36), nullable=False),
        sa.Column("hospital_id", sa.String(36), nullable=True),
        sa.Column("approval_status", sa.String(20), server_default="pending", nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["doctor_profile_id"], ["doctor_profiles.profile_id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["hospital_id"], ["hospitals.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("profile_id"),
    )
    op.create_index(
        "ix_doctor_assistant_profiles_doctor_profile_id",
        "doctor_assistant_profiles",
        ["doctor_profile_id"],
    )
    op.create_index(
        "ix_doctor_assistant_profiles_hospital_id",
        "doctor_assistant_profiles",
        ["hospital_id"],
    )

    op.create_table(
        "patient_profiles",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("profile_id", sa.String(36), nullable=False),
        sa.Column("hospital_id", sa.String(36), nullable=True),
        sa.Column("cnic", sa.String(32), nullable=False),
        sa.Column("created_by", sa.String(36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["hospital_id"], ["hospitals.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("cnic", "hospital_id", name="uq_patient_profiles_cnic_hospital"),
    )
    op.create_index("ix_patient_profiles_profile_id", "patient_profiles", ["profile_id"])
    op.create_index("ix_patient_profiles_cnic", "patient_profiles", ["cnic"])
    op.create_index(
        "ix_patient_profiles_hospital_created",
        "patient_profiles",
        ["hospital_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_table("patient_profiles")
    op.drop_table("doctor_assistant_profiles")
    op.drop_table("doctor_profiles")
    op.drop_table("hospital_admin_profiles")
    op.drop_table("hospitals")
    op.drop_table("profiles")
    op.drop_table("accounts")
