"""FastAPI router for the resin catalog.

Provides endpoints for:
- POST /resins: Add a resin to the catalog
- GET /resins: List resins, optionally only those fitting a budget
- GET /resins/groups: Resins grouped by price tier
"""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from protocol_engine.schemas.protocol import Resin as ResinPayload
from protocol_engine.tools.resin_budget import (
    ResinGroups,
    filter_budget_appropriate,
    group_resins_by_price,
)
from pydantic import BaseModel, ConfigDict, Field
from shared.models import Resin
from sqlmodel import Session, select

from api_service.dependencies import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resins", tags=["resins"])


# --- Request/Response models ---


class ResinCreate(BaseModel):
    """Request body for adding a resin to the catalog."""

    name: str = Field(min_length=1)
    manufacturer: str
    type: str
    opacity: str
    resistance: str
    polishing: str
    aesthetics: str
    price_range: str
    indications: list[str] = Field(default_factory=list)
    description: str | None = None


class ResinResponse(BaseModel):
    """Response model for a catalog resin."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    manufacturer: str
    type: str
    opacity: str
    resistance: str
    polishing: str
    aesthetics: str
    price_range: str
    indications: list[str]
    description: str | None
    created_at: datetime


# --- Endpoints ---


@router.post("", response_model=ResinResponse, status_code=201)
def create_resin(
    body: ResinCreate,
    db: Session = Depends(get_db),
) -> ResinResponse:
    """Add a resin to the catalog."""
    resin = Resin(**body.model_dump())
    db.add(resin)
    db.commit()
    db.refresh(resin)
    logger.info("Added resin %s (%s, %s)", resin.id, resin.name, resin.price_range)
    return ResinResponse.model_validate(resin)


@router.get("", response_model=list[ResinResponse])
def list_resins(
    budget: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[ResinResponse]:
    """List catalog resins by name.

    With ``budget`` set, only resins that fit it are returned: "premium"
    accepts every tier, any other budget excludes premium resins.
    """
    rows = db.exec(select(Resin).order_by(Resin.name)).all()
    if budget:
        allowed = {
            r.id
            for r in filter_budget_appropriate([_to_payload(row) for row in rows], budget)
        }
        rows = [row for row in rows if row.id in allowed]
    return [ResinResponse.model_validate(row) for row in rows]


@router.get("/groups", response_model=ResinGroups)
def resin_groups(db: Session = Depends(get_db)) -> ResinGroups:
    """Catalog resins grouped by price tier."""
    rows = db.exec(select(Resin).order_by(Resin.name)).all()
    return group_resins_by_price(_to_payload(row) for row in rows)


# --- Helpers ---


def _to_payload(resin: Resin) -> ResinPayload:
    return ResinPayload.model_validate(resin.model_dump())
