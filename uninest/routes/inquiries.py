# Inquiry endpoints: students ask about a listing, landlords move the inquiry through its workflow.
# Either party of an inquiry may update it; only the student may cancel it.
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from .. import config, models, schemas
from ..db import get_db
from ..errors import AuthError, BusyError, ConflictError, NotFoundError, ValidationError, handler_boundary
from ..inquiry_status import OPEN_STATUSES, InquiryStatus, ensure_transition, parse_status
from ..locks import redis_try_lock
from ..queries import InquiryFilters, PageRequest, paginate
from ..rate_limit import rate_limit
from .properties import resolve_property

router = APIRouter()
logger = logging.getLogger("uninest.inquiries")

REQUIRED_FIELDS = ("property_id", "student_id", "message")

NEWEST_FIRST = (models.Inquiry.created_at.desc(), models.Inquiry.id.desc())


def _summaries(db: Session, inquiries: List[models.Inquiry]) -> Dict[str, schemas.PropertySummary]:
    """Batch-load the listings referenced by `inquiries`, keyed by property id."""
    property_ids = {inquiry.property_id for inquiry in inquiries}
    if not property_ids:
        return {}
    props = db.query(models.Property).filter(models.Property.id.in_(property_ids)).all()
    return {
        p.id: schemas.PropertySummary(
            id=p.id,
            title=p.title,
            slug=p.slug,
            city=p.city,
            rent=p.rent,
            image=p.primary_image_url,
        )
        for p in props
    }


def _with_property(inquiry: models.Inquiry, summaries: Dict[str, schemas.PropertySummary]) -> schemas.InquiryRead:
    item = schemas.InquiryRead.model_validate(inquiry)
    item.property = summaries.get(inquiry.property_id)
    return item


def _list(db: Session, filters: InquiryFilters, page_request: PageRequest) -> schemas.InquiryListResponse:
    items, total = paginate(filters.apply(db.query(models.Inquiry)), page_request, *NEWEST_FIRST)
    summaries = _summaries(db, items)
    return schemas.InquiryListResponse(
        inquiries=[_with_property(i, summaries) for i in items],
        pagination=schemas.Pagination(**page_request.meta(total)),
    )


@router.get("/inquiries", response_model=schemas.InquiryListResponse)
def list_inquiries(
    student_id: Optional[str] = Query(None, alias="studentId"),
    landlord_id: Optional[str] = Query(None, alias="landlordId"),
    property_id: Optional[str] = Query(None, alias="propertyId"),
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
) -> schemas.InquiryListResponse:
    filters = InquiryFilters(
        student_id=student_id or None,
        landlord_id=landlord_id or None,
        property_id=property_id or None,
        status=status_filter or None,
    )
    with handler_boundary("Failed to fetch inquiries"):
        return _list(db, filters, PageRequest(page=page, limit=limit))


@router.get("/inquiries/student", response_model=schemas.InquiryListResponse)
def student_inquiries(
    user_id: Optional[str] = Query(None, alias="userId"),
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
) -> schemas.InquiryListResponse:
    if not user_id:
        raise ValidationError("userId is required")
    with handler_boundary("Failed to fetch inquiries"):
        return _list(db, InquiryFilters(student_id=user_id), PageRequest(page=page, limit=limit))


@router.get("/inquiries/landlord", response_model=schemas.InquiryListResponse)
def landlord_inquiries(
    user_id: Optional[str] = Query(None, alias="userId"),
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
) -> schemas.InquiryListResponse:
    if not user_id:
        raise ValidationError("userId is required")
    with handler_boundary("Failed to fetch inquiries"):
        return _list(db, InquiryFilters(landlord_id=user_id), PageRequest(page=page, limit=limit))


@router.post(
    "/inquiries",
    response_model=schemas.InquiryResponse,
    dependencies=[Depends(rate_limit("write"))],
)
def create_inquiry(payload: schemas.InquiryCreate, db: Session = Depends(get_db)) -> schemas.InquiryResponse:
    """
    Open an inquiry from a student about a listing (referenced by id or slug).

    A student may hold only one open (PENDING or CONTACTED) inquiry per listing.
    The check and insert run under a per-(property, student) lock and in one
    transaction with the listing's inquiry_count increment.
    """
    for field in REQUIRED_FIELDS:
        if not getattr(payload, field):
            raise ValidationError(f"{to_camel(field)} is required")

    with handler_boundary("Failed to create inquiry", db):
        prop = resolve_property(db, payload.property_id)
        if prop is None:
            raise NotFoundError("Property not found")

        student = (
            db.query(models.User)
            .filter(models.User.id == payload.student_id, models.User.role == "student")
            .first()
        )
        if student is None:
            raise NotFoundError("Student not found")

    with redis_try_lock(f"lock:inquiry:{prop.id}:{student.id}", ttl_ms=5000) as locked:
        if not locked:
            raise BusyError()

        with handler_boundary("Failed to create inquiry", db):
            existing = (
                db.query(models.Inquiry.id)
                .filter(
                    models.Inquiry.property_id == prop.id,
                    models.Inquiry.student_id == student.id,
                    models.Inquiry.status.in_([s.value for s in OPEN_STATUSES]),
                )
                .first()
            )
            if existing:
                raise ConflictError("You already have a pending inquiry for this property")

            inquiry = models.Inquiry(
                property_id=prop.id,
                landlord_id=prop.landlord_id,
                student_id=student.id,
                student_name=student.name,
                student_email=student.email,
                student_phone=student.phone or payload.phone or "",
                message=payload.message,
                preferred_move_in=payload.preferred_move_in,
                status=InquiryStatus.PENDING.value,
                scheduled_visit=None,
                landlord_notes="",
            )
            db.add(inquiry)
            db.query(models.Property).filter(models.Property.id == prop.id).update(
                {models.Property.inquiry_count: models.Property.inquiry_count + 1},
                synchronize_session=False,
            )
            db.commit()
            db.refresh(inquiry)

    logger.info("inquiries.create", extra={"inquiry_id": inquiry.id, "property_id": prop.id})
    return schemas.InquiryResponse(
        message="Inquiry sent successfully",
        inquiry=schemas.InquiryRead.model_validate(inquiry),
    )


@router.put(
    "/inquiries",
    response_model=schemas.InquiryResponse,
    dependencies=[Depends(rate_limit("write"))],
)
def update_inquiry(payload: schemas.InquiryUpdate, db: Session = Depends(get_db)) -> schemas.InquiryResponse:
    """
    Change status, schedule a visit or edit landlord notes.

    `userId` must be the inquiry's landlord or student. Setting `scheduledVisit`
    moves the inquiry to SCHEDULED. Status changes must follow the workflow.
    """
    if not payload.id:
        raise ValidationError("Inquiry ID is required")

    with handler_boundary("Failed to update inquiry", db):
        inquiry = db.get(models.Inquiry, payload.id)
        if inquiry is None:
            raise NotFoundError("Inquiry not found")
        if not payload.user_id or payload.user_id not in (inquiry.landlord_id, inquiry.student_id):
            raise AuthError.forbidden("Unauthorized")

        current = parse_status(inquiry.status)
        target = parse_status(payload.status) if payload.status else None
        if payload.scheduled_visit is not None:
            target = InquiryStatus.SCHEDULED

        if target is not None:
            rescheduling = payload.scheduled_visit is not None
            if target != current or rescheduling:
                ensure_transition(current, target)
            inquiry.status = target.value
        if payload.scheduled_visit is not None:
            inquiry.scheduled_visit = payload.scheduled_visit
        if "landlord_notes" in payload.model_fields_set:
            inquiry.landlord_notes = payload.landlord_notes or ""
        inquiry.updated_at = models.utcnow()
        db.commit()
        db.refresh(inquiry)

    logger.info(
        "inquiries.update",
        extra={"inquiry_id": inquiry.id, "from_status": current.value, "status": inquiry.status},
    )
    return schemas.InquiryResponse(
        message="Inquiry updated successfully",
        inquiry=schemas.InquiryRead.model_validate(inquiry),
    )


@router.delete(
    "/inquiries",
    response_model=schemas.InquiryResponse,
    dependencies=[Depends(rate_limit("write"))],
)
def cancel_inquiry(
    inquiry_id: Optional[str] = Query(None, alias="id"),
    student_id: Optional[str] = Query(None, alias="studentId"),
    db: Session = Depends(get_db),
) -> schemas.InquiryResponse:
    """Soft-delete: the student who opened the inquiry marks it CANCELLED."""
    if not inquiry_id or not student_id:
        raise ValidationError("Inquiry ID and student ID are required")

    with handler_boundary("Failed to cancel inquiry", db):
        inquiry = db.get(models.Inquiry, inquiry_id)
        if inquiry is None:
            raise NotFoundError("Inquiry not found")
        if inquiry.student_id != student_id:
            raise AuthError.forbidden("Unauthorized")

        current = parse_status(inquiry.status)
        # Cancelling twice is a no-op
        if current != InquiryStatus.CANCELLED:
            ensure_transition(current, InquiryStatus.CANCELLED)
            inquiry.status = InquiryStatus.CANCELLED.value
            inquiry.updated_at = models.utcnow()
            db.commit()
            db.refresh(inquiry)

    return schemas.InquiryResponse(
        message="Inquiry cancelled successfully",
        inquiry=schemas.InquiryRead.model_validate(inquiry),
    )
