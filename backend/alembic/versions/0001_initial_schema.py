"""Initial scheduling, pricing and package schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


pet_species = sa.Enum("DOG", "CAT", "OTHER", name="petspecies")
pet_size = sa.Enum("SMALL", "MEDIUM", "LARGE", "GIANT", name="petsize")
service_category = sa.Enum(
    "BANHO",
    "TOSA",
    "BANHO_TOSA",
    "HOTEL",
    "CRECHE",
    "COMBO",
    "VETERINARIO",
    "OUTRO",
    name="servicecategory",
)
target_species = sa.Enum("DOG", "CAT", "BOTH", name="targetspecies")
payment_status = sa.Enum("PENDING", "PAID", name="paymentstatus")
payment_method = sa.Enum(
    "CASH", "CREDIT", "DEBIT", "PIX", "CREDIT_PACKAGE", name="paymentmethod"
)


def _existing(enum_type: sa.Enum) -> sa.types.TypeEngine:
    """Reference an enum type already created by an earlier table."""
    return sa.Enum(*enum_type.enums, name=enum_type.name).with_variant(
        postgresql.ENUM(*enum_type.enums, name=enum_type.name, create_type=False),
        "postgresql",
    )


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False, unique=True),
        *_timestamps(),
    )

    op.create_table(
        "pets",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "account_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("species", pet_species, nullable=False),
        sa.Column("breed", sa.String(length=120)),
        sa.Column("size", pet_size),
        sa.Column("weight_kg", sa.Numeric(6, 2)),
        sa.Column("perfume_allowed", sa.Boolean(), nullable=False),
        sa.Column("accessories_allowed", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_pets_account", "pets", ["account_id"])

    op.create_table(
        "services",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "account_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category", service_category, nullable=False),
        sa.Column("base_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("duration_minutes", sa.Integer()),
        sa.Column("target_species", target_species, nullable=False),
        sa.Column("scheduling_rules", sa.JSON(), nullable=False),
        sa.Column("checklist_template", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_services_account", "services", ["account_id"])

    op.create_table(
        "pricing_rules",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "service_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("services.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("weight_min", sa.Numeric(6, 2)),
        sa.Column("weight_max", sa.Numeric(6, 2)),
        sa.Column("size", _existing(pet_size)),
        sa.Column("day_of_week", sa.Integer()),
        sa.Column("fixed_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_pricing_rules_service", "pricing_rules", ["service_id", "position"]
    )

    op.create_table(
        "schedule_blocks",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "account_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.String(length=255), nullable=False),
        sa.Column("allowed_species", sa.JSON()),
        *_timestamps(),
    )
    op.create_index(
        "ix_schedule_blocks_account_range",
        "schedule_blocks",
        ["account_id", "start_at", "end_at"],
    )

    op.create_table(
        "service_packages",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "account_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=1024)),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("validity_days", sa.Integer()),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "package_items",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "package_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("service_packages.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "service_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("services.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "package_credits",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "account_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "pet_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("pets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "service_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("services.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "package_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("service_packages.id", ondelete="SET NULL"),
        ),
        sa.Column(
            "renewed_from_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("package_credits.id", ondelete="SET NULL"),
        ),
        sa.Column("total_qty", sa.Integer(), nullable=False),
        sa.Column("total_paid", sa.Numeric(10, 2)),
        sa.Column("payment_method", payment_method),
        sa.Column("purchased_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True)),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_package_credits_pet_service", "package_credits", ["pet_id", "service_id"]
    )

    op.create_table(
        "appointments",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "account_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "pet_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("pets.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "service_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("services.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "package_credit_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("package_credits.id", ondelete="SET NULL"),
        ),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("check_in_date", sa.Date()),
        sa.Column("check_out_date", sa.Date()),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("checklist", sa.JSON(), nullable=False),
        sa.Column("notes", sa.String(length=1024)),
        sa.Column("calculated_price", sa.Numeric(12, 2)),
        sa.Column("final_price", sa.Numeric(12, 2)),
        sa.Column("discount_percent", sa.Numeric(5, 2)),
        sa.Column("payment_status", payment_status, nullable=False),
        sa.Column("payment_method", _existing(payment_method)),
        sa.Column("paid_at", sa.DateTime(timezone=True)),
        sa.Column("paid_amount", sa.Numeric(12, 2)),
        sa.Column("actual_check_in", sa.DateTime(timezone=True)),
        sa.Column("actual_check_out", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index(
        "ix_appointments_account_scheduled",
        "appointments",
        ["account_id", "scheduled_at"],
    )
    op.create_index("ix_appointments_pet", "appointments", ["pet_id"])
    op.create_index(
        "ix_appointments_package_credit", "appointments", ["package_credit_id"]
    )

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "account_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("accounts.id", ondelete="SET NULL"),
        ),
        sa.Column(
            "appointment_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("appointments.id", ondelete="SET NULL"),
        ),
        sa.Column("event_type", sa.String(length=120), nullable=False),
        sa.Column("description", sa.String(length=1024)),
        sa.Column("payload", sa.JSON()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_index("ix_appointments_package_credit", table_name="appointments")
    op.drop_index("ix_appointments_pet", table_name="appointments")
    op.drop_index("ix_appointments_account_scheduled", table_name="appointments")
    op.drop_table("appointments")
    op.drop_index("ix_package_credits_pet_service", table_name="package_credits")
    op.drop_table("package_credits")
    op.drop_table("package_items")
    op.drop_table("service_packages")
    op.drop_index("ix_schedule_blocks_account_range", table_name="schedule_blocks")
    op.drop_table("schedule_blocks")
    op.drop_index("ix_pricing_rules_service", table_name="pricing_rules")
    op.drop_table("pricing_rules")
    op.drop_index("ix_services_account", table_name="services")
    op.drop_table("services")
    op.drop_index("ix_pets_account", table_name="pets")
    op.drop_table("pets")
    op.drop_table("accounts")

    bind = op.get_bind()
    for enum_type in (
        payment_method,
        payment_status,
        target_species,
        service_category,
        pet_size,
        pet_species,
    ):
        enum_type.drop(bind, checkfirst=True)
