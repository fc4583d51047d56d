# Wishlist endpoints: a saved-for-later set of property ids.
# All requests share the guest wishlist; there is no per-user scoping yet.
from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

from fastapi import APIRouter, Depends, Query
from sqlalchemy import case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import get_db
from ..errors import ValidationError, handler_boundary
from ..rate_limit import rate_limit

router = APIRouter()
logger = logging.getLogger("uninest.wishlist")

GUEST_WISHLIST_OWNER = "guest-user"


def _find(db: Session, owner: str) -> Optional[models.Wishlist]:
    return db.query(models.Wishlist).filter(models.Wishlist.user_id == owner).first()


def _find_or_create(db: Session, owner: str) -> models.Wishlist:
    wishlist = _find(db, owner)
    if wishlist is None:
        wishlist = models.Wishlist(user_id=owner)
        db.add(wishlist)
    return wishlist


def _adjust_saved_count(db: Session, property_id: str, delta: int) -> None:
    # Ids of listings not stored here simply match no row
    saved = models.Property.saved_count
    db.query(models.Property).filter(models.Property.id == property_id).update(
        {saved: case((saved + delta < 0, 0), else_=saved + delta)},
        synchronize_session=False,
    )


def _add(db: Session, wishlist: models.Wishlist, property_id: str) -> bool:
    if property_id in wishlist.property_ids:
        return False
    position = max((item.position for item in wishlist.items), default=-1) + 1
    wishlist.items.append(models.WishlistItem(property_id=property_id, position=position))
    _adjust_saved_count(db, property_id, +1)
    return True


def _remove(db: Session, wishlist: models.Wishlist, property_id: str) -> bool:
    keep = [item for item in wishlist.items if item.property_id != property_id]
    if len(keep) == len(wishlist.items):
        return False
    wishlist.items = keep
    _adjust_saved_count(db, property_id, -1)
    return True


def _require_property_id(property_id: Optional[str]) -> str:
    if not property_id or not property_id.strip():
        raise ValidationError("Property ID is required")
    return property_id.strip()


def _upsert(db: Session, change: Callable[[models.Wishlist], bool]) -> Tuple[models.Wishlist, bool]:
    """
    Apply `change` to the guest wishlist (created on first use) and commit.

    A concurrent writer can insert the wishlist row or the same item between
    our read and our commit. The unique constraints reject the loser, which
    rolls back and re-applies `change` once against the winner's rows.
    """
    for attempt in range(2):
        wishlist = _find_or_create(db, GUEST_WISHLIST_OWNER)
        result = change(wishlist)
        wishlist.updated_at = models.utcnow()
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            if attempt:
                raise
            logger.info("wishlist.retry", extra={"owner": GUEST_WISHLIST_OWNER})
            continue
        db.refresh(wishlist)
        return wishlist, result


@router.get("/wishlist", response_model=schemas.WishlistResponse, response_model_exclude_none=True)
def get_wishlist(db: Session = Depends(get_db)) -> schemas.WishlistResponse:
    with handler_boundary("Failed to fetch wishlist"):
        wishlist = _find(db, GUEST_WISHLIST_OWNER)
        return schemas.WishlistResponse(property_ids=wishlist.property_ids if wishlist else [])


@router.post(
    "/wishlist",
    response_model=schemas.WishlistResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limit("write"))],
)
def add_to_wishlist(payload: schemas.WishlistRequest, db: Session = Depends(get_db)) -> schemas.WishlistResponse:
    property_id = _require_property_id(payload.property_id)
    with handler_boundary("Failed to add to wishlist", db):
        wishlist, _ = _upsert(db, lambda w: _add(db, w, property_id))
        return schemas.WishlistResponse(message="Added to wishlist", property_ids=wishlist.property_ids)


@router.delete(
    "/wishlist",
    response_model=schemas.WishlistResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limit("write"))],
)
def remove_from_wishlist(
    property_id: Optional[str] = Query(None, alias="propertyId"),
    clear_all: bool = Query(False, alias="clearAll"),
    db: Session = Depends(get_db),
) -> schemas.WishlistResponse:
    """Remove one id, or empty the list with `clearAll=true` (the wishlist record is kept)."""
    if clear_all:
        with handler_boundary("Failed to clear wishlist", db):
            wishlist = _find(db, GUEST_WISHLIST_OWNER)
            if wishlist is not None:
                for pid in wishlist.property_ids:
                    _adjust_saved_count(db, pid, -1)
                wishlist.items = []
                wishlist.updated_at = models.utcnow()
                db.commit()
                logger.info("wishlist.clear", extra={"owner": GUEST_WISHLIST_OWNER})
            return schemas.WishlistResponse(message="Wishlist cleared", property_ids=[])

    property_id = _require_property_id(property_id)
    with handler_boundary("Failed to remove from wishlist", db):
        wishlist = _find(db, GUEST_WISHLIST_OWNER)
        if wishlist is None:
            return schemas.WishlistResponse(message="Removed from wishlist", property_ids=[])
        _remove(db, wishlist, property_id)
        wishlist.updated_at = models.utcnow()
        db.commit()
        db.refresh(wishlist)
        return schemas.WishlistResponse(message="Removed from wishlist", property_ids=wishlist.property_ids)


@router.put(
    "/wishlist",
    response_model=schemas.WishlistResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limit("write"))],
)
def toggle_wishlist(payload: schemas.WishlistRequest, db: Session = Depends(get_db)) -> schemas.WishlistResponse:
    """Add the id when absent, remove it when present; reports the resulting membership."""
    property_id = _require_property_id(payload.property_id)
    with handler_boundary("Failed to toggle wishlist", db):
        def flip(w: models.Wishlist) -> bool:
            if property_id in w.property_ids:
                _remove(db, w, property_id)
                return False
            _add(db, w, property_id)
            return True

        wishlist, in_wishlist = _upsert(db, flip)

    return schemas.WishlistResponse(
        message="Added to wishlist" if in_wishlist else "Removed from wishlist",
        property_ids=wishlist.property_ids,
        is_in_wishlist=in_wishlist,
    )
