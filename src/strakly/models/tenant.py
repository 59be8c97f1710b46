"""Per-tenant schema models -- tables duplicated in each tenant's schema.

These models use the placeholder schema="tenant" via TenantBase.metadata.
At runtime, SQLAlchemy's schema_translate_map remaps "tenant" to the actual
tenant schema (e.g., "tenant_42").

Staff (managers, trainers) and clients live in the tenant ``users`` table;
only gym owners live in the global schema. Columns that point at global
rows carry ``info={"references_global": "users"}`` instead of a foreign key,
since PostgreSQL cannot enforce references across schemas.

Index names are schema-local in PostgreSQL, so every tenant reuses the same
static names.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from strakly.core.database import TenantBase

GLOBAL_USERS = {"references_global": "users"}


# ── Core domain ─────────────────────────────────────────────────────────────


class User(TenantBase):
    """Staff member or client within a tenant."""

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_email", "email"),
        Index("idx_users_role", "role"),
        Index("idx_users_status", "status"),
        Index("idx_users_attendance_code", "attendance_code"),
        Index("idx_users_branch", "branch_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255), unique=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    avatar: Mapped[str | None] = mapped_column(Text)
    bio: Mapped[str | None] = mapped_column(Text)
    role: Mapped[str] = mapped_column(String(50), server_default=text("'client'"))
    date_of_birth: Mapped[datetime | None] = mapped_column(DateTime)
    gender: Mapped[str | None] = mapped_column(String(20))
    address: Mapped[str | None] = mapped_column(Text)
    city: Mapped[str | None] = mapped_column(String(100))
    state: Mapped[str | None] = mapped_column(String(100))
    zip_code: Mapped[str | None] = mapped_column(String(20))
    emergency_contact_name: Mapped[str | None] = mapped_column(String(255))
    emergency_contact_phone: Mapped[str | None] = mapped_column(String(50))
    status: Mapped[str | None] = mapped_column(String(50), server_default=text("'active'"))
    email_verified: Mapped[bool | None] = mapped_column(Boolean, server_default=text("false"))
    attendance_code: Mapped[str | None] = mapped_column(String(20), unique=True)
    join_date: Mapped[datetime | None] = mapped_column(DateTime)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class Plan(TenantBase):
    """Membership plan, optionally scoped to a branch."""

    __tablename__ = "plans"
    __table_args__ = (
        UniqueConstraint("branch_id", "code"),
        Index("idx_plans_branch", "branch_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    code: Mapped[str] = mapped_column(String(100))
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)
    duration_value: Mapped[int] = mapped_column(Integer)
    duration_type: Mapped[str] = mapped_column(String(50))
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    currency: Mapped[str | None] = mapped_column(String(10), server_default=text("'INR'"))
    features: Mapped[list[str] | None] = mapped_column(JSONB)
    display_order: Mapped[int | None] = mapped_column(Integer, server_default=text("0"))
    is_featured: Mapped[bool | None] = mapped_column(Boolean, server_default=text("false"))
    is_active: Mapped[bool | None] = mapped_column(Boolean, server_default=text("true"))
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class Offer(TenantBase):
    """Discount offer applicable to plans."""

    __tablename__ = "offers"
    __table_args__ = (
        UniqueConstraint("branch_id", "code"),
        Index("idx_offers_branch", "branch_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    code: Mapped[str] = mapped_column(String(100))
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)
    discount_type: Mapped[str] = mapped_column(String(50))
    discount_value: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    valid_from: Mapped[datetime] = mapped_column(DateTime)
    valid_to: Mapped[datetime] = mapped_column(DateTime)
    max_usage_count: Mapped[int | None] = mapped_column(Integer)
    used_count: Mapped[int | None] = mapped_column(Integer, server_default=text("0"))
    max_usage_per_user: Mapped[int | None] = mapped_column(Integer)
    min_purchase_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    applicable_to_all: Mapped[bool | None] = mapped_column(Boolean, server_default=text("true"))
    is_active: Mapped[bool | None] = mapped_column(Boolean, server_default=text("true"))
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class PlanOfferXref(TenantBase):
    __tablename__ = "plan_offer_xref"
    __table_args__ = (
        UniqueConstraint("plan_id", "offer_id"),
        Index("idx_plan_offer_xref_branch", "branch_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    plan_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenant.plans.id", ondelete="CASCADE"))
    offer_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenant.offers.id", ondelete="CASCADE"))
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class Membership(TenantBase):
    """A client's subscription to a plan."""

    __tablename__ = "memberships"
    __table_args__ = (
        Index("idx_memberships_user", "user_id"),
        Index("idx_memberships_status", "status"),
        Index("idx_memberships_dates", "start_date", "end_date"),
        Index("idx_memberships_branch", "branch_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenant.users.id", ondelete="RESTRICT"))
    plan_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenant.plans.id", ondelete="RESTRICT"))
    offer_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("tenant.offers.id"))
    start_date: Mapped[datetime] = mapped_column(DateTime)
    end_date: Mapped[datetime] = mapped_column(DateTime)
    status: Mapped[str | None] = mapped_column(String(50), server_default=text("'pending'"))
    original_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    discount_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), server_default=text("0"))
    final_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    currency: Mapped[str | None] = mapped_column(String(10), server_default=text("'INR'"))
    payment_status: Mapped[str | None] = mapped_column(String(50), server_default=text("'pending'"))
    payment_method: Mapped[str | None] = mapped_column(String(50))
    payment_ref: Mapped[str | None] = mapped_column(String(255))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime)
    cancel_reason: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[int | None] = mapped_column(Integer, info=GLOBAL_USERS)
    is_active: Mapped[bool | None] = mapped_column(Boolean, server_default=text("true"))
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class MembershipHistory(TenantBase):
    """Archived copy of a membership row."""

    __tablename__ = "membership_history"
    __table_args__ = (Index("idx_membership_history_branch", "branch_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    original_id: Mapped[int] = mapped_column(Integer)
    user_id: Mapped[int] = mapped_column(Integer)
    plan_id: Mapped[int] = mapped_column(Integer)
    offer_id: Mapped[int | None] = mapped_column(Integer)
    start_date: Mapped[datetime] = mapped_column(DateTime)
    end_date: Mapped[datetime] = mapped_column(DateTime)
    status: Mapped[str] = mapped_column(String(50))
    original_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    discount_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), server_default=text("0"))
    final_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    currency: Mapped[str | None] = mapped_column(String(10), server_default=text("'INR'"))
    payment_status: Mapped[str] = mapped_column(String(50))
    payment_method: Mapped[str | None] = mapped_column(String(50))
    payment_ref: Mapped[str | None] = mapped_column(String(255))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime)
    cancel_reason: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    archive_reason: Mapped[str | None] = mapped_column(String(100))
    original_created_at: Mapped[datetime] = mapped_column(DateTime)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class Attendance(TenantBase):
    """Active check-in."""

    __tablename__ = "attendance"
    __table_args__ = (
        Index("idx_attendance_user", "user_id"),
        Index("idx_attendance_date", "date"),
        Index("idx_attendance_marked_by", "marked_by"),
        Index("idx_attendance_branch", "branch_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenant.users.id", ondelete="CASCADE"))
    membership_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("tenant.memberships.id"))
    check_in_time: Mapped[datetime] = mapped_column(DateTime)
    check_out_time: Mapped[datetime | None] = mapped_column(DateTime)
    date: Mapped[str] = mapped_column(String(20))
    marked_by: Mapped[int] = mapped_column(Integer, info=GLOBAL_USERS)
    check_in_method: Mapped[str | None] = mapped_column(String(50), server_default=text("'code'"))
    status: Mapped[str | None] = mapped_column(String(50), server_default=text("'present'"))
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class AttendanceHistory(TenantBase):
    """Completed visit (checked out)."""

    __tablename__ = "attendance_history"
    __table_args__ = (
        Index("idx_attendance_history_user", "user_id"),
        Index("idx_attendance_history_date", "date"),
        Index("idx_attendance_history_branch", "branch_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    user_id: Mapped[int] = mapped_column(Integer)
    membership_id: Mapped[int | None] = mapped_column(Integer)
    check_in_time: Mapped[datetime] = mapped_column(DateTime)
    check_out_time: Mapped[datetime] = mapped_column(DateTime)
    date: Mapped[str] = mapped_column(String(20))
    duration: Mapped[int | None] = mapped_column(Integer)
    marked_by: Mapped[int] = mapped_column(Integer, info=GLOBAL_USERS)
    checked_out_by: Mapped[int | None] = mapped_column(Integer, info=GLOBAL_USERS)
    check_in_method: Mapped[str | None] = mapped_column(String(50), server_default=text("'code'"))
    status: Mapped[str | None] = mapped_column(String(50), server_default=text("'checked_out'"))
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class BodyMetrics(TenantBase):
    """Latest body measurements, one row per user."""

    __tablename__ = "body_metrics"
    __table_args__ = (Index("idx_body_metrics_branch", "branch_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tenant.users.id", ondelete="CASCADE"), unique=True
    )
    height: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    weight: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    bmi: Mapped[Decimal | None] = mapped_column(Numeric(4, 2))
    body_fat: Mapped[Decimal | None] = mapped_column(Numeric(4, 2))
    muscle_mass: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    bone_mass: Mapped[Decimal | None] = mapped_column(Numeric(4, 2))
    water_percentage: Mapped[Decimal | None] = mapped_column(Numeric(4, 2))
    chest: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    waist: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    hips: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    biceps: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    thighs: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    calves: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    shoulders: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    neck: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    resting_heart_rate: Mapped[int | None] = mapped_column(Integer)
    blood_pressure_sys: Mapped[int | None] = mapped_column(Integer)
    blood_pressure_dia: Mapped[int | None] = mapped_column(Integer)
    target_weight: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    target_body_fat: Mapped[Decimal | None] = mapped_column(Numeric(4, 2))
    last_measured_at: Mapped[datetime | None] = mapped_column(DateTime)
    measured_by: Mapped[int | None] = mapped_column(Integer, info=GLOBAL_USERS)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class BodyMetricsHistory(TenantBase):
    __tablename__ = "body_metrics_history"
    __table_args__ = (Index("idx_body_metrics_history_branch", "branch_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    user_id: Mapped[int] = mapped_column(Integer)
    measured_at: Mapped[datetime] = mapped_column(DateTime)
    height: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    weight: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    bmi: Mapped[Decimal | None] = mapped_column(Numeric(4, 2))
    body_fat: Mapped[Decimal | None] = mapped_column(Numeric(4, 2))
    muscle_mass: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    bone_mass: Mapped[Decimal | None] = mapped_column(Numeric(4, 2))
    water_percentage: Mapped[Decimal | None] = mapped_column(Numeric(4, 2))
    chest: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    waist: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    hips: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    biceps: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    thighs: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    calves: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    shoulders: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    neck: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    resting_heart_rate: Mapped[int | None] = mapped_column(Integer)
    blood_pressure_sys: Mapped[int | None] = mapped_column(Integer)
    blood_pressure_dia: Mapped[int | None] = mapped_column(Integer)
    measured_by: Mapped[int | None] = mapped_column(Integer, info=GLOBAL_USERS)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class TrainerClientXref(TenantBase):
    """Trainer assignment. Trainers are global users."""

    __tablename__ = "trainer_client_xref"
    __table_args__ = (
        UniqueConstraint("trainer_id", "client_id"),
        Index("idx_trainer_client_trainer", "trainer_id"),
        Index("idx_trainer_client_client", "client_id"),
        Index("idx_trainer_client_branch", "branch_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    trainer_id: Mapped[int] = mapped_column(Integer, info=GLOBAL_USERS)
    client_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenant.users.id", ondelete="CASCADE"))
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    is_active: Mapped[bool | None] = mapped_column(Boolean, server_default=text("true"))
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class StaffSalary(TenantBase):
    """Monthly salary record for a staff member."""

    __tablename__ = "staff_salaries"
    __table_args__ = (
        UniqueConstraint("staff_id", "month", "year", "branch_id"),
        Index("idx_staff_salaries_staff", "staff_id"),
        Index("idx_staff_salaries_status", "payment_status"),
        Index("idx_staff_salaries_period", "year", "month"),
        Index("idx_staff_salaries_branch", "branch_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    staff_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenant.users.id", ondelete="CASCADE"))
    month: Mapped[int] = mapped_column(Integer)
    year: Mapped[int] = mapped_column(Integer)
    base_salary: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    bonus: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), server_default=text("0"))
    deductions: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), server_default=text("0"))
    net_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    currency: Mapped[str | None] = mapped_column(String(10), server_default=text("'INR'"))
    is_recurring: Mapped[bool | None] = mapped_column(Boolean, server_default=text("false"))
    payment_status: Mapped[str | None] = mapped_column(String(20), server_default=text("'pending'"))
    payment_method: Mapped[str | None] = mapped_column(String(50))
    payment_ref: Mapped[str | None] = mapped_column(String(100))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime)
    paid_by_id: Mapped[int | None] = mapped_column(Integer, info=GLOBAL_USERS)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class Facility(TenantBase):
    __tablename__ = "facilities"
    __table_args__ = (
        UniqueConstraint("branch_id", "code"),
        Index("idx_facilities_branch", "branch_id"),
        Index("idx_facilities_code", "code"),
        Index("idx_facilities_active", "is_active"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    name: Mapped[str] = mapped_column(String(100))
    code: Mapped[str] = mapped_column(String(20))
    description: Mapped[str | None] = mapped_column(Text)
    icon: Mapped[str | None] = mapped_column(String(50))
    is_active: Mapped[bool | None] = mapped_column(Boolean, server_default=text("true"))
    display_order: Mapped[int | None] = mapped_column(Integer, server_default=text("0"))
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class Amenity(TenantBase):
    __tablename__ = "amenities"
    __table_args__ = (
        UniqueConstraint("branch_id", "code"),
        Index("idx_amenities_branch", "branch_id"),
        Index("idx_amenities_code", "code"),
        Index("idx_amenities_active", "is_active"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    name: Mapped[str] = mapped_column(String(100))
    code: Mapped[str] = mapped_column(String(20))
    description: Mapped[str | None] = mapped_column(Text)
    icon: Mapped[str | None] = mapped_column(String(50))
    is_active: Mapped[bool | None] = mapped_column(Boolean, server_default=text("true"))
    display_order: Mapped[int | None] = mapped_column(Integer, server_default=text("0"))
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class MembershipFacility(TenantBase):
    __tablename__ = "membership_facilities"
    __table_args__ = (
        UniqueConstraint("membership_id", "facility_id"),
        Index("idx_membership_facilities_membership", "membership_id"),
        Index("idx_membership_facilities_facility", "facility_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    membership_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tenant.memberships.id", ondelete="CASCADE")
    )
    facility_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tenant.facilities.id", ondelete="CASCADE")
    )
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class MembershipAmenity(TenantBase):
    __tablename__ = "membership_amenities"
    __table_args__ = (
        UniqueConstraint("membership_id", "amenity_id"),
        Index("idx_membership_amenities_membership", "membership_id"),
        Index("idx_membership_amenities_amenity", "amenity_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    membership_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tenant.memberships.id", ondelete="CASCADE")
    )
    amenity_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tenant.amenities.id", ondelete="CASCADE")
    )
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


# ── Feature tables ──────────────────────────────────────────────────────────


class Lead(TenantBase):
    """Sales pipeline lead."""

    __tablename__ = "leads"
    __table_args__ = (
        Index("idx_leads_branch", "branch_id"),
        Index("idx_leads_stage", "pipeline_stage"),
        Index("idx_leads_assigned_to", "assigned_to"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    lead_source: Mapped[str | None] = mapped_column(String(50))
    pipeline_stage: Mapped[str] = mapped_column(String(50), server_default=text("'new'"))
    assigned_to: Mapped[int | None] = mapped_column(Integer)
    score: Mapped[int | None] = mapped_column(Integer, server_default=text("0"))
    inquiry_date: Mapped[datetime | None] = mapped_column(DateTime)
    expected_close_date: Mapped[datetime | None] = mapped_column(DateTime)
    deal_value: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    notes: Mapped[str | None] = mapped_column(Text)
    win_loss_reason: Mapped[str | None] = mapped_column(Text)
    converted_user_id: Mapped[int | None] = mapped_column(Integer)
    stage_entered_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    is_deleted: Mapped[bool] = mapped_column(Boolean, server_default=text("false"))
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class LeadActivity(TenantBase):
    __tablename__ = "lead_activities"
    __table_args__ = (Index("idx_lead_activities_lead", "lead_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    lead_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenant.leads.id", ondelete="CASCADE"))
    type: Mapped[str] = mapped_column(String(50))
    notes: Mapped[str | None] = mapped_column(Text)
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)
    performed_by: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class LeadStageHistory(TenantBase):
    __tablename__ = "lead_stage_history"
    __table_args__ = (Index("idx_lead_stage_history_lead", "lead_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    lead_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenant.leads.id", ondelete="CASCADE"))
    from_stage: Mapped[str | None] = mapped_column(String(50))
    to_stage: Mapped[str] = mapped_column(String(50))
    changed_by: Mapped[int | None] = mapped_column(Integer)
    changed_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class CampaignTemplate(TenantBase):
    __tablename__ = "campaign_templates"
    __table_args__ = (Index("idx_campaign_templates_branch", "branch_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    name: Mapped[str] = mapped_column(String(255))
    type: Mapped[str] = mapped_column(String(20))
    subject: Mapped[str | None] = mapped_column(String(255))
    content: Mapped[str] = mapped_column(Text)
    merge_fields: Mapped[list[str] | None] = mapped_column(JSONB)
    is_deleted: Mapped[bool] = mapped_column(Boolean, server_default=text("false"))
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class Campaign(TenantBase):
    """Email/SMS campaign with delivery counters."""

    __tablename__ = "campaigns"
    __table_args__ = (
        Index("idx_campaigns_branch", "branch_id"),
        Index("idx_campaigns_status", "status"),
        Index("idx_campaigns_scheduled", "scheduled_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    template_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("tenant.campaign_templates.id", ondelete="SET NULL")
    )
    name: Mapped[str] = mapped_column(String(255))
    type: Mapped[str] = mapped_column(String(20))
    subject: Mapped[str | None] = mapped_column(String(255))
    content: Mapped[str] = mapped_column(Text)
    audience_filter: Mapped[dict[str, Any] | None] = mapped_column(JSONB)
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime)
    status: Mapped[str] = mapped_column(String(20), server_default=text("'draft'"))
    total_recipients: Mapped[int] = mapped_column(Integer, server_default=text("0"))
    total_sent: Mapped[int] = mapped_column(Integer, server_default=text("0"))
    total_opened: Mapped[int] = mapped_column(Integer, server_default=text("0"))
    total_clicked: Mapped[int] = mapped_column(Integer, server_default=text("0"))
    total_bounced: Mapped[int] = mapped_column(Integer, server_default=text("0"))
    total_unsubscribed: Mapped[int] = mapped_column(Integer, server_default=text("0"))
    created_by: Mapped[int | None] = mapped_column(Integer)
    is_deleted: Mapped[bool] = mapped_column(Boolean, server_default=text("false"))
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class CampaignRecipient(TenantBase):
    __tablename__ = "campaign_recipients"
    __table_args__ = (
        Index("idx_campaign_recipients_campaign", "campaign_id"),
        Index("idx_campaign_recipients_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    campaign_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tenant.campaigns.id", ondelete="CASCADE")
    )
    user_id: Mapped[int] = mapped_column(Integer)
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    status: Mapped[str] = mapped_column(String(20), server_default=text("'pending'"))
    sent_at: Mapped[datetime | None] = mapped_column(DateTime)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime)
    opened_at: Mapped[datetime | None] = mapped_column(DateTime)
    clicked_at: Mapped[datetime | None] = mapped_column(DateTime)
    bounced_at: Mapped[datetime | None] = mapped_column(DateTime)
    error_message: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class MemberNote(TenantBase):
    __tablename__ = "member_notes"
    __table_args__ = (
        Index("idx_member_notes_user", "user_id"),
        Index("idx_member_notes_branch", "branch_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int | None] = mapped_column(Integer)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenant.users.id", ondelete="CASCADE"))
    note_type: Mapped[str] = mapped_column(String(50), server_default=text("'general'"))
    content: Mapped[str] = mapped_column(Text)
    visibility: Mapped[str] = mapped_column(String(20), server_default=text("'staff'"))
    is_pinned: Mapped[bool] = mapped_column(Boolean, server_default=text("false"))
    created_by: Mapped[int | None] = mapped_column(Integer)
    is_deleted: Mapped[bool] = mapped_column(Boolean, server_default=text("false"))
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class WearableConnection(TenantBase):
    """OAuth link between a user and a wearable provider."""

    __tablename__ = "wearable_connections"
    __table_args__ = (
        UniqueConstraint("user_id", "provider"),
        Index("idx_wearable_connections_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenant.users.id", ondelete="CASCADE"))
    provider: Mapped[str] = mapped_column(String(50))
    access_token: Mapped[str | None] = mapped_column(Text)
    refresh_token: Mapped[str | None] = mapped_column(Text)
    token_expires_at: Mapped[datetime | None] = mapped_column(DateTime)
    provider_user_id: Mapped[str | None] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, server_default=text("true"))
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime)
    sync_error: Mapped[str | None] = mapped_column(Text)
    connected_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    disconnected_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class WearableData(TenantBase):
    """Daily metric pulled from a wearable provider."""

    __tablename__ = "wearable_data"
    __table_args__ = (
        UniqueConstraint("user_id", "provider", "data_type", "recorded_date"),
        Index("idx_wearable_data_user_type", "user_id", "data_type"),
        Index("idx_wearable_data_recorded", "recorded_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenant.users.id", ondelete="CASCADE"))
    provider: Mapped[str] = mapped_column(String(50))
    data_type: Mapped[str] = mapped_column(String(50))
    value: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    unit: Mapped[str | None] = mapped_column(String(20))
    recorded_at: Mapped[datetime] = mapped_column(DateTime)
    recorded_date: Mapped[str] = mapped_column(String(20))
    metadata_: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSONB)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
