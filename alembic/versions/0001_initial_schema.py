"""initial fleet schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

role_name = sa.Enum("admin", "manager", "driver", name="role_name")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("role", role_name, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("mobileNumber", sa.String(30), nullable=True),
        sa.Column("createdAt", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("vehicleNumber", sa.String(50), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("fuelType", sa.String(50), nullable=False),
        sa.Column("lastServiceDate", sa.Date(), nullable=True),
        sa.Column("createdAt", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_vehicles_id", "vehicles", ["id"])
    op.create_index("ix_vehicles_vehicleNumber", "vehicles", ["vehicleNumber"], unique=True)

    op.create_table(
        "trips",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("driverId", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("vehicleId", sa.Integer(), sa.ForeignKey("vehicles.id"), nullable=False),
        sa.Column("startLocation", sa.String(255), nullable=False),
        sa.Column("endLocation", sa.String(255), nullable=False),
        sa.Column("distanceKm", sa.Float(), nullable=False),
        sa.Column("fuelUsedLtr", sa.Float(), nullable=False),
        sa.Column("timeTakenHr", sa.Float(), nullable=False),
        sa.Column("efficiency", sa.Float(), nullable=False),
        sa.Column("tripDate", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_trips_id", "trips", ["id"])
    op.create_index("ix_trips_driverId", "trips", ["driverId"])
    op.create_index("ix_trips_vehicleId", "trips", ["vehicleId"])
    op.create_index("ix_trips_tripDate", "trips", ["tripDate"])

    op.create_table(
        "vehicle_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("vehicleId", sa.Integer(), sa.ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("driverId", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("assignedAt", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("vehicleId", "driverId", name="uq_vehicle_assignment_pair"),
    )
    op.create_index("ix_vehicle_assignments_id", "vehicle_assignments", ["id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("userId", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entityType", sa.String(100), nullable=False),
        sa.Column("entityId", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("createdAt", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_id", "audit_logs", ["id"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("vehicle_assignments")
    op.drop_table("trips")
    op.drop_table("vehicles")
    op.drop_table("users")
    role_name.drop(op.get_bind(), checkfirst=True)
