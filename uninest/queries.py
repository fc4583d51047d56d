# Typed filter objects that translate query-string filters into SQLAlchemy criteria.
# Handlers build one of these from their parameters instead of assembling ad-hoc dicts.
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from sqlalchemy import distinct, func, select
from sqlalchemy.orm import Query

from . import models


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def meta(self, total: int) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": total,
            "total_pages": math.ceil(total / self.limit) if self.limit else 0,
        }


def paginate(query: Query, page: PageRequest, *order_by) -> Tuple[list, int]:
    """Return (items on the requested page, total matching rows)."""
    total = query.order_by(None).count()
    items = query.order_by(*order_by).offset(page.offset).limit(page.limit).all()
    return items, total


def split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass(frozen=True)
class PropertyFilters:
    """
    Listing search filters.

    - city: case-insensitive substring
    - gender: listings for that gender or open to "ANY"; "ANY" itself does not filter
    - amenities: every named amenity must be present
    - status: exact; when omitted, only ACTIVE listings are shown unless the
      query is scoped to one landlord (owners see all their statuses)
    """
    landlord_id: Optional[str] = None
    city: Optional[str] = None
    gender: Optional[str] = None
    property_type: Optional[str] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    amenities: List[str] = field(default_factory=list)
    status: Optional[str] = None
    featured: bool = False

    @property
    def effective_status(self) -> Optional[str]:
        if self.status:
            return self.status
        return None if self.landlord_id else "ACTIVE"

    def criteria(self) -> list:
        P = models.Property
        clauses = []
        if self.landlord_id:
            clauses.append(P.landlord_id == self.landlord_id)
        if self.city:
            clauses.append(func.lower(P.city).contains(self.city.lower(), autoescape=True))
        if self.gender and self.gender != "ANY":
            clauses.append(P.gender_preference.in_([self.gender, "ANY"]))
        if self.property_type:
            clauses.append(P.property_type == self.property_type)
        if self.min_price is not None:
            clauses.append(P.rent >= self.min_price)
        if self.max_price is not None:
            clauses.append(P.rent <= self.max_price)
        if self.amenities:
            names = list(dict.fromkeys(self.amenities))
            A = models.PropertyAmenity
            having_all = (
                select(A.property_id)
                .where(A.name.in_(names))
                .group_by(A.property_id)
                .having(func.count(distinct(A.name)) == len(names))
            )
            clauses.append(P.id.in_(having_all))
        status = self.effective_status
        if status:
            clauses.append(P.status == status)
        if self.featured:
            clauses.append(P.is_featured.is_(True))
        return clauses

    def apply(self, query: Query) -> Query:
        return query.filter(*self.criteria())


@dataclass(frozen=True)
class InquiryFilters:
    student_id: Optional[str] = None
    landlord_id: Optional[str] = None
    property_id: Optional[str] = None
    status: Optional[str] = None

    def criteria(self) -> list:
        I = models.Inquiry
        clauses = []
        if self.student_id:
            clauses.append(I.student_id == self.student_id)
        if self.landlord_id:
            clauses.append(I.landlord_id == self.landlord_id)
        if self.property_id:
            clauses.append(I.property_id == self.property_id)
        if self.status:
            clauses.append(I.status == self.status.strip().upper())
        return clauses

    def apply(self, query: Query) -> Query:
        return query.filter(*self.criteria())
