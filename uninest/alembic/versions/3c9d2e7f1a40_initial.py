"""initial schema: users, profiles, properties, amenities, inquiries, wishlists

Revision ID: 3c9d2e7f1a40
Revises:
Create Date: 2026-10-18 10:15:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c9d2e7f1a40"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=32), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("image", sa.String(length=1024), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        *_timestamps(),
        mysql_engine="InnoDB",
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    # Role-specific profiles (one row per user)
    op.create_table(
        "student_profiles",
        sa.Column("user_id", sa.String(length=32), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("college", sa.String(length=255), nullable=True),
        sa.Column("course", sa.String(length=255), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        *_timestamps(),
        mysql_engine="InnoDB",
        mysql_charset="utf8mb4",
    )
    op.create_table(
        "landlord_profiles",
        sa.Column("user_id", sa.String(length=32), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("company_name", sa.String(length=255), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("total_properties", sa.Integer(), nullable=False),
        sa.Column("response_rate", sa.Integer(), nullable=False),
        sa.Column("response_time", sa.Integer(), nullable=False),
        *_timestamps(),
        mysql_engine="InnoDB",
        mysql_charset="utf8mb4",
    )

    # Properties table
    op.create_table(
        "properties",
        sa.Column("id", sa.String(length=32), primary_key=True, nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("property_type", sa.String(length=32), nullable=False),
        sa.Column("bhk", sa.Integer(), nullable=True),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("city", sa.String(length=120), nullable=False),
        sa.Column("state", sa.String(length=120), nullable=False),
        sa.Column("pincode", sa.String(length=16), nullable=False),
        sa.Column("landmark", sa.String(length=255), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("nearby_colleges", sa.JSON(), nullable=False),
        sa.Column("total_rooms", sa.Integer(), nullable=False),
        sa.Column("total_beds", sa.Integer(), nullable=False),
        sa.Column("available_beds", sa.Integer(), nullable=False),
        sa.Column("beds_per_room", sa.Integer(), nullable=False),
        sa.Column("room_size", sa.String(length=64), nullable=False),
        sa.Column("bathrooms", sa.Integer(), nullable=False),
        sa.Column("floor_number", sa.Integer(), nullable=False),
        sa.Column("total_floors", sa.Integer(), nullable=False),
        sa.Column("rent", sa.Integer(), nullable=False),
        sa.Column("deposit", sa.Integer(), nullable=False),
        sa.Column("maintenance_charges", sa.Integer(), nullable=False),
        sa.Column("electricity_charges", sa.String(length=20), nullable=False),
        sa.Column("water_charges", sa.String(length=20), nullable=False),
        sa.Column("food_included", sa.Boolean(), nullable=False),
        sa.Column("food_charges", sa.Integer(), nullable=True),
        sa.Column("meals_per_day", sa.Integer(), nullable=False),
        sa.Column("gender_preference", sa.String(length=16), nullable=False),
        sa.Column("occupancy_type", sa.String(length=20), nullable=False),
        sa.Column("furnishing", sa.String(length=32), nullable=False),
        sa.Column("furnishing_details", sa.JSON(), nullable=False),
        sa.Column("rules", sa.JSON(), nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("available_from", sa.DateTime(timezone=True), nullable=False),
        sa.Column("minimum_stay", sa.Integer(), nullable=False),
        sa.Column("notice_period", sa.Integer(), nullable=False),
        sa.Column("landlord_id", sa.String(length=32), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("landlord_name", sa.String(length=255), nullable=False),
        sa.Column("landlord_phone", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("is_featured", sa.Boolean(), nullable=False),
        sa.Column("view_count", sa.Integer(), nullable=False),
        sa.Column("inquiry_count", sa.Integer(), nullable=False),
        sa.Column("saved_count", sa.Integer(), nullable=False),
        *_timestamps(),
        mysql_engine="InnoDB",
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_properties_slug", "properties", ["slug"])
    op.create_index("ix_properties_property_type", "properties", ["property_type"])
    op.create_index("ix_properties_city", "properties", ["city"])
    op.create_index("ix_properties_rent", "properties", ["rent"])
    op.create_index("ix_properties_gender_preference", "properties", ["gender_preference"])
    op.create_index("ix_properties_landlord_id", "properties", ["landlord_id"])
    op.create_index("ix_properties_status", "properties", ["status"])
    op.create_index("ix_properties_is_featured", "properties", ["is_featured"])
    op.create_index("ix_properties_status_created_at", "properties", ["status", "created_at"])
    op.create_index("ix_properties_landlord_created_at", "properties", ["landlord_id", "created_at"])

    op.create_table(
        "property_amenities",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "property_id", sa.String(length=32), sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.UniqueConstraint("property_id", "name", name="uq_property_amenities_property_name"),
        mysql_engine="InnoDB",
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_property_amenities_property_id", "property_amenities", ["property_id"])
    op.create_index("ix_property_amenities_name", "property_amenities", ["name"])

    # Inquiries (property_id has no FK so inquiries survive listing deletion)
    op.create_table(
        "inquiries",
        sa.Column("id", sa.String(length=32), primary_key=True, nullable=False),
        sa.Column("property_id", sa.String(length=32), nullable=False),
        sa.Column("landlord_id", sa.String(length=32), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("student_id", sa.String(length=32), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("student_name", sa.String(length=255), nullable=False),
        sa.Column("student_email", sa.String(length=255), nullable=False),
        sa.Column("student_phone", sa.String(length=32), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("preferred_move_in", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("scheduled_visit", sa.DateTime(timezone=True), nullable=True),
        sa.Column("landlord_notes", sa.Text(), nullable=False),
        *_timestamps(),
        mysql_engine="InnoDB",
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_inquiries_property_id", "inquiries", ["property_id"])
    op.create_index("ix_inquiries_landlord_id", "inquiries", ["landlord_id"])
    op.create_index("ix_inquiries_student_id", "inquiries", ["student_id"])
    op.create_index("ix_inquiries_status", "inquiries", ["status"])
    op.create_index(
        "ix_inquiries_property_student_status", "inquiries", ["property_id", "student_id", "status"]
    )

    # Wishlists and their ordered items
    op.create_table(
        "wishlists",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        *_timestamps(),
        mysql_engine="InnoDB",
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_wishlists_user_id", "wishlists", ["user_id"], unique=True)

    op.create_table(
        "wishlist_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("wishlist_id", sa.Integer(), sa.ForeignKey("wishlists.id", ondelete="CASCADE"), nullable=False),
        sa.Column("property_id", sa.String(length=64), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.UniqueConstraint("wishlist_id", "property_id", name="uq_wishlist_items_wishlist_property"),
        mysql_engine="InnoDB",
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_wishlist_items_wishlist_id", "wishlist_items", ["wishlist_id"])
    op.create_index("ix_wishlist_items_property_id", "wishlist_items", ["property_id"])


def downgrade() -> None:
    op.drop_index("ix_wishlist_items_property_id", table_name="wishlist_items")
    op.drop_index("ix_wishlist_items_wishlist_id", table_name="wishlist_items")
    op.drop_table("wishlist_items")
    op.drop_index("ix_wishlists_user_id", table_name="wishlists")
    op.drop_table("wishlists")

    op.drop_index("ix_inquiries_property_student_status", table_name="inquiries")
    op.drop_index("ix_inquiries_status", table_name="inquiries")
    op.drop_index("ix_inquiries_student_id", table_name="inquiries")
    op.drop_index("ix_inquiries_landlord_id", table_name="inquiries")
    op.drop_index("ix_inquiries_property_id", table_name="inquiries")
    op.drop_table("inquiries")

    op.drop_index("ix_property_amenities_name", table_name="property_amenities")
    op.drop_index("ix_property_amenities_property_id", table_name="property_amenities")
    op.drop_table("property_amenities")

    for name in (
        "ix_properties_landlord_created_at",
        "ix_properties_status_created_at",
        "ix_properties_is_featured",
        "ix_properties_status",
        "ix_properties_landlord_id",
        "ix_properties_gender_preference",
        "ix_properties_rent",
        "ix_properties_city",
        "ix_properties_property_type",
        "ix_properties_slug",
    ):
        op.drop_index(name, table_name="properties")
    op.drop_table("properties")

    op.drop_table("landlord_profiles")
    op.drop_table("student_profiles")

    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
