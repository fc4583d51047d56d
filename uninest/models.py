# SQLAlchemy ORM models for users, profiles, listings, inquiries and wishlists.
# Keep business logic out of models; transactional logic lives in the route handlers.
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_mixin, relationship

from .db import Base


def new_id() -> str:
    """Canonical identifier for every entity: 32 lowercase hex characters."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@declarative_mixin
class TimestampMixin:
    """UTC timestamps set on insert and refreshed on every modification.

    Application-side defaults keep microsecond resolution so newest-first
    ordering is stable even on SQLite.
    """
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )


class User(Base, TimestampMixin):
    """Application user account.

    Roles:
    - student: creates inquiries and saves properties
    - landlord: lists and manages properties
    """
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    image = Column(String(1024), nullable=True)
    role = Column(String(20), nullable=False, index=True)  # "student" or "landlord"

    student_profile = relationship("StudentProfile", uselist=False, back_populates="user", cascade="all, delete-orphan")
    landlord_profile = relationship("LandlordProfile", uselist=False, back_populates="user", cascade="all, delete-orphan")


class StudentProfile(Base, TimestampMixin):
    __tablename__ = "student_profiles"

    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    college = Column(String(255), nullable=True)
    course = Column(String(255), nullable=True)
    year = Column(Integer, nullable=True)
    city = Column(String(120), nullable=True)
    bio = Column(Text, nullable=True)

    user = relationship("User", back_populates="student_profile")


class LandlordProfile(Base, TimestampMixin):
    """Landlord extension record.

    total_properties mirrors the number of listings owned by the landlord and is
    adjusted in the same transaction as every property create/delete.
    """
    __tablename__ = "landlord_profiles"

    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    company_name = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(120), nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    total_properties = Column(Integer, nullable=False, default=0)
    response_rate = Column(Integer, nullable=False, default=0)
    response_time = Column(Integer, nullable=False, default=60)  # minutes

    user = relationship("User", back_populates="landlord_profile")


class Property(Base, TimestampMixin):
    """Listing owned by a landlord.

    rules and images are stored as JSON sub-documents in their API (camelCase) shape.
    Amenities live in their own table so the all-of amenity filter stays portable SQL.
    """
    __tablename__ = "properties"

    id = Column(String(32), primary_key=True, default=new_id)
    slug = Column(String(255), nullable=False, index=True)

    # Basic info
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    property_type = Column(String(32), nullable=False, index=True)
    bhk = Column(Integer, nullable=True)

    # Location
    address = Column(Text, nullable=False)
    city = Column(String(120), nullable=False, index=True)
    state = Column(String(120), nullable=False)
    pincode = Column(String(16), nullable=False)
    landmark = Column(String(255), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    nearby_colleges = Column(JSON, nullable=False, default=list)

    # Room details
    total_rooms = Column(Integer, nullable=False)
    total_beds = Column(Integer, nullable=False)
    available_beds = Column(Integer, nullable=False)
    beds_per_room = Column(Integer, nullable=False)
    room_size = Column(String(64), nullable=False)
    bathrooms = Column(Integer, nullable=False)
    floor_number = Column(Integer, nullable=False)
    total_floors = Column(Integer, nullable=False)

    # Pricing
    rent = Column(Integer, nullable=False, index=True)
    deposit = Column(Integer, nullable=False)
    maintenance_charges = Column(Integer, nullable=False)
    electricity_charges = Column(String(20), nullable=False)
    water_charges = Column(String(20), nullable=False)
    food_included = Column(Boolean, nullable=False)
    food_charges = Column(Integer, nullable=True)
    meals_per_day = Column(Integer, nullable=False)

    # Preferences
    gender_preference = Column(String(16), nullable=False, index=True)
    occupancy_type = Column(String(20), nullable=False)
    furnishing = Column(String(32), nullable=False)
    furnishing_details = Column(JSON, nullable=False, default=list)

    rules = Column(JSON, nullable=False, default=dict)
    images = Column(JSON, nullable=False, default=list)

    # Availability
    available_from = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    minimum_stay = Column(Integer, nullable=False)
    notice_period = Column(Integer, nullable=False)

    # Ownership (name/phone are snapshots taken at creation)
    landlord_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    landlord_name = Column(String(255), nullable=False)
    landlord_phone = Column(String(32), nullable=False)

    status = Column(String(20), nullable=False, default="ACTIVE", index=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    is_featured = Column(Boolean, nullable=False, default=False, index=True)

    # Metrics
    view_count = Column(Integer, nullable=False, default=0)
    inquiry_count = Column(Integer, nullable=False, default=0)
    saved_count = Column(Integer, nullable=False, default=0)

    amenity_rows = relationship(
        "PropertyAmenity",
        order_by="PropertyAmenity.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_properties_status_created_at", "status", "created_at"),
        Index("ix_properties_landlord_created_at", "landlord_id", "created_at"),
    )

    @property
    def amenities(self) -> list[str]:
        return [row.name for row in self.amenity_rows]

    @amenities.setter
    def amenities(self, names: list[str]) -> None:
        # Reuse rows that survive so the (property_id, name) constraint never sees a transient duplicate
        existing = {row.name: row for row in self.amenity_rows}
        rows = []
        for position, name in enumerate(dict.fromkeys(names)):
            row = existing.get(name) or PropertyAmenity(name=name)
            row.position = position
            rows.append(row)
        self.amenity_rows = rows

    @property
    def primary_image_url(self):
        images = self.images or []
        for image in images:
            if image.get("isPrimary"):
                return image.get("url")
        return images[0].get("url") if images else None


class PropertyAmenity(Base):
    __tablename__ = "property_amenities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    property_id = Column(String(32), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(120), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("property_id", "name", name="uq_property_amenities_property_name"),
    )


class Inquiry(Base, TimestampMixin):
    """Student request for interest in a property.

    Status workflow (see inquiry_status.TRANSITIONS):
    PENDING -> CONTACTED -> SCHEDULED -> VISITED -> RENTED
         └── REJECTED / CANCELLED (terminal)

    property_id is intentionally not a foreign key: inquiries outlive deleted listings
    and are then reported without a property summary.
    """
    __tablename__ = "inquiries"

    id = Column(String(32), primary_key=True, default=new_id)
    property_id = Column(String(32), nullable=False, index=True)
    landlord_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    student_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)

    # Contact snapshot taken at creation
    student_name = Column(String(255), nullable=False)
    student_email = Column(String(255), nullable=False)
    student_phone = Column(String(32), nullable=False, default="")

    message = Column(Text, nullable=False)
    preferred_move_in = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(20), nullable=False, default="PENDING", index=True)
    scheduled_visit = Column(DateTime(timezone=True), nullable=True)
    landlord_notes = Column(Text, nullable=False, default="")

    # Supports the open-inquiry uniqueness check per (property, student)
    __table_args__ = (
        Index("ix_inquiries_property_student_status", "property_id", "student_id", "status"),
    )


class Wishlist(Base, TimestampMixin):
    """Saved-for-later set of property ids, keyed by an owner identity."""
    __tablename__ = "wishlists"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, unique=True, index=True)

    items = relationship(
        "WishlistItem",
        order_by="WishlistItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def property_ids(self) -> list[str]:
        return [item.property_id for item in self.items]


class WishlistItem(Base):
    # property_id is free-form: the client may save ids of listings not stored in this database
    __tablename__ = "wishlist_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    wishlist_id = Column(Integer, ForeignKey("wishlists.id", ondelete="CASCADE"), nullable=False, index=True)
    property_id = Column(String(64), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("wishlist_id", "property_id", name="uq_wishlist_items_wishlist_property"),
    )
