# Property listing endpoints.
# Anyone can browse; writes are checked against the listing's landlord and keep
# the landlord's property counter and every wishlist consistent in one transaction.
from __future__ import annotations

import logging
import re
import time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic.alias_generators import to_camel
from sqlalchemy import case, or_
from sqlalchemy.orm import Session

from .. import config, models, schemas
from ..db import get_db
from ..errors import AuthError, NotFoundError, ValidationError, handler_boundary
from ..inquiry_status import InquiryStatus
from ..queries import PageRequest, PropertyFilters, paginate, split_csv
from ..rate_limit import rate_limit

router = APIRouter()
logger = logging.getLogger("uninest.properties")

# Checked in this order; the first one missing is reported
REQUIRED_FIELDS = (
    "title",
    "description",
    "property_type",
    "address",
    "city",
    "rent",
    "deposit",
    "landlord_id",
)

# Columns an update may set to null; every other null in an update is ignored
NULLABLE_FIELDS = {"bhk", "food_charges"}

NEWEST_FIRST = (models.Property.created_at.desc(), models.Property.id.desc())


def _is_missing(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "property"


def _base36(number: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    out = ""
    while True:
        number, rem = divmod(number, 36)
        out = digits[rem] + out
        if number == 0:
            return out


def generate_slug(title: str) -> str:
    # Millisecond suffix keeps slugs for equal titles apart; not a uniqueness guarantee
    return f"{slugify(title)}-{_base36(int(time.time() * 1000))}"


def resolve_property(db: Session, ref: str) -> Optional[models.Property]:
    """Find a listing by id or by slug in one query; ids win when both match."""
    matches = (
        db.query(models.Property)
        .filter(or_(models.Property.id == ref, models.Property.slug == ref))
        .all()
    )
    for prop in matches:
        if prop.id == ref:
            return prop
    return matches[0] if matches else None


def _adjust_property_count(db: Session, landlord_id: str, delta: int) -> None:
    count = models.LandlordProfile.total_properties
    updated = (
        db.query(models.LandlordProfile)
        .filter(models.LandlordProfile.user_id == landlord_id)
        .update(
            {count: case((count + delta < 0, 0), else_=count + delta)},
            synchronize_session=False,
        )
    )
    if not updated and delta > 0:
        # Landlords created before profiles existed get one on their first listing
        db.add(models.LandlordProfile(user_id=landlord_id, total_properties=delta))


def _get_owned_property(db: Session, property_id: str, landlord_id: Optional[str]) -> models.Property:
    prop = db.get(models.Property, property_id)
    if prop is None:
        raise NotFoundError("Property not found")
    if prop.landlord_id != landlord_id:
        raise AuthError.forbidden("Unauthorized")
    return prop


@router.get("/properties", response_model=schemas.PropertyListResponse)
def list_properties(
    landlord_id: Optional[str] = Query(None, alias="landlordId"),
    city: Optional[str] = None,
    gender: Optional[str] = None,
    property_type: Optional[str] = Query(None, alias="type"),
    min_price: Optional[int] = Query(None, alias="minPrice"),
    max_price: Optional[int] = Query(None, alias="maxPrice"),
    amenities: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    featured: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
) -> schemas.PropertyListResponse:
    """
    Search listings, newest first.

    Without `status`, only ACTIVE listings are returned unless `landlordId` is
    given, in which case the landlord sees every status of their own listings.
    """
    filters = PropertyFilters(
        landlord_id=landlord_id or None,
        city=city or None,
        gender=gender or None,
        property_type=property_type or None,
        min_price=min_price,
        max_price=max_price,
        amenities=split_csv(amenities),
        status=status_filter or None,
        featured=featured,
    )
    page_request = PageRequest(page=page, limit=limit)
    with handler_boundary("Failed to fetch properties"):
        items, total = paginate(filters.apply(db.query(models.Property)), page_request, *NEWEST_FIRST)
        return schemas.PropertyListResponse(
            properties=[schemas.PropertyRead.model_validate(p) for p in items],
            pagination=schemas.Pagination(**page_request.meta(total)),
        )


@router.get("/properties/landlord", response_model=schemas.LandlordPropertiesResponse)
def landlord_properties(
    user_id: Optional[str] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
) -> schemas.LandlordPropertiesResponse:
    """All listings of one landlord with the aggregates the landlord dashboard shows."""
    if not user_id:
        raise ValidationError("userId is required")

    with handler_boundary("Failed to fetch landlord properties"):
        items = (
            db.query(models.Property)
            .filter(models.Property.landlord_id == user_id)
            .order_by(*NEWEST_FIRST)
            .all()
        )
        inquiries = db.query(models.Inquiry).filter(models.Inquiry.landlord_id == user_id)
        total_inquiries = inquiries.count()
        pending_inquiries = inquiries.filter(models.Inquiry.status == InquiryStatus.PENDING.value).count()

        return schemas.LandlordPropertiesResponse(
            properties=[schemas.PropertyRead.model_validate(p) for p in items],
            total_properties=len(items),
            active_listings=sum(1 for p in items if p.status == "ACTIVE"),
            total_views=sum(p.view_count or 0 for p in items),
            total_inquiries=total_inquiries,
            pending_inquiries=pending_inquiries,
        )


@router.get("/properties/{ref}", response_model=schemas.PropertyResponse)
def get_property(ref: str, db: Session = Depends(get_db)) -> schemas.PropertyResponse:
    """Fetch one listing by id or slug and count the view."""
    with handler_boundary("Failed to fetch property", db):
        prop = resolve_property(db, ref)
        if prop is None:
            raise NotFoundError("Property not found")
        db.query(models.Property).filter(models.Property.id == prop.id).update(
            {models.Property.view_count: models.Property.view_count + 1},
            synchronize_session=False,
        )
        db.commit()
        db.refresh(prop)
        return schemas.PropertyResponse(property=schemas.PropertyRead.model_validate(prop))


@router.post(
    "/properties",
    response_model=schemas.PropertyResponse,
    dependencies=[Depends(rate_limit("write"))],
)
def create_property(payload: schemas.PropertyCreate, db: Session = Depends(get_db)) -> schemas.PropertyResponse:
    """
    Create a listing for an existing landlord.

    Omitted optional fields take the defaults declared on PropertyCreate. The
    landlord's total_properties counter is incremented in the same transaction.
    """
    for field in REQUIRED_FIELDS:
        if _is_missing(getattr(payload, field)):
            raise ValidationError(f"{to_camel(field)} is required")

    with handler_boundary("Failed to create property", db):
        landlord = (
            db.query(models.User)
            .filter(models.User.id == payload.landlord_id, models.User.role == "landlord")
            .first()
        )
        if landlord is None:
            raise ValidationError("Invalid landlord - user not found or not a landlord")

        data = payload.model_dump(exclude={"slug", "amenities", "rules", "images", "available_from"})
        prop = models.Property(
            **data,
            slug=payload.slug or generate_slug(payload.title),
            rules=payload.rules.model_dump(by_alias=True),
            images=[image.model_dump(by_alias=True) for image in payload.images],
            available_from=payload.available_from or models.utcnow(),
            landlord_name=landlord.name,
            landlord_phone=landlord.phone or "",
            view_count=0,
            inquiry_count=0,
            saved_count=0,
        )
        prop.amenities = payload.amenities
        db.add(prop)
        db.flush()
        _adjust_property_count(db, landlord.id, +1)
        db.commit()
        db.refresh(prop)

    logger.info("properties.create", extra={"property_id": prop.id, "landlord_id": landlord.id})
    return schemas.PropertyResponse(
        message="Property created successfully",
        property=schemas.PropertyRead.model_validate(prop),
    )


@router.put(
    "/properties",
    response_model=schemas.PropertyResponse,
    dependencies=[Depends(rate_limit("write"))],
)
def update_property(payload: schemas.PropertyUpdate, db: Session = Depends(get_db)) -> schemas.PropertyResponse:
    """Shallow-merge the supplied fields into a listing owned by `landlordId`."""
    if not payload.id:
        raise ValidationError("Property ID is required")

    updates = payload.model_dump(exclude_unset=True, exclude={"id", "landlord_id"})
    with handler_boundary("Failed to update property", db):
        prop = _get_owned_property(db, payload.id, payload.landlord_id)
        for key, value in updates.items():
            if value is None and key not in NULLABLE_FIELDS:
                continue
            if key == "amenities":
                prop.amenities = value
            elif key == "rules":
                prop.rules = payload.rules.model_dump(by_alias=True)
            elif key == "images":
                prop.images = [image.model_dump(by_alias=True) for image in payload.images]
            else:
                setattr(prop, key, value)
        prop.updated_at = models.utcnow()
        db.commit()
        db.refresh(prop)

    return schemas.PropertyResponse(
        message="Property updated successfully",
        property=schemas.PropertyRead.model_validate(prop),
    )


@router.delete(
    "/properties",
    response_model=schemas.MessageResponse,
    dependencies=[Depends(rate_limit("write"))],
)
def delete_property(
    property_id: Optional[str] = Query(None, alias="id"),
    landlord_id: Optional[str] = Query(None, alias="landlordId"),
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    """
    Delete a listing owned by `landlordId`.

    One transaction removes the row (and its amenities), decrements the
    landlord's counter and pulls the id out of every wishlist.
    """
    if not property_id or not landlord_id:
        raise ValidationError("Property ID and landlord ID are required")

    with handler_boundary("Failed to delete property", db):
        prop = _get_owned_property(db, property_id, landlord_id)
        db.delete(prop)
        _adjust_property_count(db, landlord_id, -1)
        removed = (
            db.query(models.WishlistItem)
            .filter(models.WishlistItem.property_id == property_id)
            .delete(synchronize_session=False)
        )
        db.commit()

    logger.info(
        "properties.delete",
        extra={"property_id": property_id, "landlord_id": landlord_id, "wishlist_items_removed": removed},
    )
    return schemas.MessageResponse(message="Property deleted successfully")
