# Pydantic models (request/response DTOs) used by the API layer.
# The wire format is camelCase; Python attributes stay snake_case and line up with the ORM columns.
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Normalize email input to lowercase without surrounding whitespace
def _normalize_email(v):
    if isinstance(v, str):
        v = v.strip().lower()
    return v


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


# Users and authentication

# User roles within the system
Role = Literal["student", "landlord"]
ROLES = ("student", "landlord")


class RegisterRequest(CamelModel):
    # Presence and role checks happen in the handler so they surface as the documented messages
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        v = _normalize_email(v)
        return v or None

    @field_validator("name", "phone", mode="before")
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            v = v.strip()
        return v or None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


# Safe user view: never carries the password hash
class UserRead(CamelModel):
    id: str
    email: str
    name: str
    phone: Optional[str] = None
    image: Optional[str] = None
    role: Role
    created_at: datetime


class AuthResponse(CamelModel):
    success: bool = True
    message: str
    user: UserRead
    token: str


class SessionResponse(CamelModel):
    success: bool = True
    user: UserRead


class MessageResponse(CamelModel):
    success: bool = True
    message: str


# Properties

class PropertyRules(CamelModel):
    non_veg_allowed: bool = True
    smoking_allowed: bool = False
    drinking_allowed: bool = False
    pets_allowed: bool = False
    visitors_allowed: bool = True
    opposite_sex_allowed: bool = False
    gate_closing_time: Optional[str] = None


class PropertyImage(CamelModel):
    url: str
    is_primary: bool = False
    caption: str = ""


class PropertyCreate(CamelModel):
    """
    Payload for creating a listing.

    The first eight fields are required; they are Optional here so the handler
    can report the first missing one by name. Everything else carries the
    listing defaults.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    property_type: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    rent: Optional[int] = Field(None, ge=0)
    deposit: Optional[int] = Field(None, ge=0)
    landlord_id: Optional[str] = None

    slug: Optional[str] = None
    bhk: Optional[int] = None

    # Location
    state: str = "West Bengal"
    pincode: str = ""
    landmark: str = ""
    latitude: float = 22.5
    longitude: float = 88.4
    nearby_colleges: List[str] = Field(default_factory=list)

    # Room details
    total_rooms: int = 1
    total_beds: int = 1
    available_beds: int = 1
    beds_per_room: int = 1
    room_size: str = ""
    bathrooms: int = 1
    floor_number: int = 1
    total_floors: int = 1

    # Pricing
    maintenance_charges: int = 0
    electricity_charges: str = "separate"
    water_charges: str = "included"
    food_included: bool = False
    food_charges: Optional[int] = None
    meals_per_day: int = 0

    # Preferences
    gender_preference: str = "ANY"
    occupancy_type: str = "double"
    furnishing: str = "SEMI_FURNISHED"
    furnishing_details: List[str] = Field(default_factory=list)

    amenities: List[str] = Field(default_factory=list)
    rules: PropertyRules = Field(default_factory=PropertyRules)
    images: List[PropertyImage] = Field(default_factory=list)

    # Availability
    available_from: Optional[datetime] = None
    minimum_stay: int = 6
    notice_period: int = 1

    status: str = "ACTIVE"
    is_featured: bool = False

    @field_validator("title", "description", "property_type", "address", "city", "landlord_id", "slug", mode="before")
    @classmethod
    def strip_text(cls, v):
        # Trim surrounding whitespace before validation
        if isinstance(v, str):
            v = v.strip()
        return v


class PropertyUpdate(CamelModel):
    """Shallow merge payload: only fields present in the request are applied."""
    id: Optional[str] = None
    landlord_id: Optional[str] = None

    title: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    property_type: Optional[str] = None
    bhk: Optional[int] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    landmark: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    nearby_colleges: Optional[List[str]] = None
    total_rooms: Optional[int] = None
    total_beds: Optional[int] = None
    available_beds: Optional[int] = None
    beds_per_room: Optional[int] = None
    room_size: Optional[str] = None
    bathrooms: Optional[int] = None
    floor_number: Optional[int] = None
    total_floors: Optional[int] = None
    rent: Optional[int] = Field(None, ge=0)
    deposit: Optional[int] = Field(None, ge=0)
    maintenance_charges: Optional[int] = None
    electricity_charges: Optional[str] = None
    water_charges: Optional[str] = None
    food_included: Optional[bool] = None
    food_charges: Optional[int] = None
    meals_per_day: Optional[int] = None
    gender_preference: Optional[str] = None
    occupancy_type: Optional[str] = None
    furnishing: Optional[str] = None
    furnishing_details: Optional[List[str]] = None
    amenities: Optional[List[str]] = None
    rules: Optional[PropertyRules] = None
    images: Optional[List[PropertyImage]] = None
    available_from: Optional[datetime] = None
    minimum_stay: Optional[int] = None
    notice_period: Optional[int] = None
    status: Optional[str] = None
    is_featured: Optional[bool] = None


class PropertyRead(CamelModel):
    id: str
    slug: str
    title: str
    description: str
    property_type: str
    bhk: Optional[int] = None

    address: str
    city: str
    state: str
    pincode: str
    landmark: str
    latitude: float
    longitude: float
    nearby_colleges: List[str]

    total_rooms: int
    total_beds: int
    available_beds: int
    beds_per_room: int
    room_size: str
    bathrooms: int
    floor_number: int
    total_floors: int

    rent: int
    deposit: int
    maintenance_charges: int
    electricity_charges: str
    water_charges: str
    food_included: bool
    food_charges: Optional[int] = None
    meals_per_day: int

    gender_preference: str
    occupancy_type: str
    furnishing: str
    furnishing_details: List[str]

    amenities: List[str]
    rules: PropertyRules
    images: List[PropertyImage]

    available_from: datetime
    minimum_stay: int
    notice_period: int

    landlord_id: str
    landlord_name: str
    landlord_phone: str

    status: str
    is_verified: bool
    is_featured: bool

    view_count: int
    inquiry_count: int
    saved_count: int

    created_at: datetime
    updated_at: datetime


class PropertyResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    property: PropertyRead


class PropertyListResponse(CamelModel):
    success: bool = True
    properties: List[PropertyRead]
    pagination: Pagination


# Aggregates for the landlord dashboard
class LandlordPropertiesResponse(CamelModel):
    success: bool = True
    properties: List[PropertyRead]
    total_properties: int
    active_listings: int
    total_views: int
    total_inquiries: int
    pending_inquiries: int


# Inquiries

class InquiryCreate(CamelModel):
    property_id: Optional[str] = None
    student_id: Optional[str] = None
    message: Optional[str] = None
    phone: Optional[str] = None
    preferred_move_in: Optional[datetime] = None

    @field_validator("property_id", "student_id", "message", mode="before")
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            v = v.strip()
        return v


class InquiryUpdate(CamelModel):
    id: Optional[str] = None
    user_id: Optional[str] = None
    status: Optional[str] = None
    scheduled_visit: Optional[datetime] = None
    landlord_notes: Optional[str] = None


# Lightweight listing snapshot attached to each inquiry in list responses
class PropertySummary(CamelModel):
    id: str
    title: str
    slug: str
    city: str
    rent: int
    image: Optional[str] = None


class InquiryRead(CamelModel):
    id: str
    property_id: str
    landlord_id: str
    student_id: str
    student_name: str
    student_email: str
    student_phone: str
    message: str
    preferred_move_in: Optional[datetime] = None
    status: str
    scheduled_visit: Optional[datetime] = None
    landlord_notes: str
    created_at: datetime
    updated_at: datetime
    property: Optional[PropertySummary] = None


class InquiryResponse(CamelModel):
    success: bool = True
    message: str
    inquiry: InquiryRead


class InquiryListResponse(CamelModel):
    success: bool = True
    inquiries: List[InquiryRead]
    pagination: Pagination


# Wishlist

class WishlistRequest(CamelModel):
    property_id: Optional[str] = None


class WishlistResponse(CamelModel):
    message: Optional[str] = None
    property_ids: List[str]
    is_in_wishlist: Optional[bool] = None
