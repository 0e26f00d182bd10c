"""FastAPI router for the treatment-type catalog."""

from __future__ import annotations

from fastapi import APIRouter
from protocol_engine.schemas.treatment import TreatmentConfig, TreatmentStyle
from protocol_engine.tools.treatment_config import list_treatments
from pydantic import BaseModel

router = APIRouter(prefix="/treatments", tags=["treatments"])


class TreatmentEntry(BaseModel):
    """Labels, flags and presentation style of one treatment type."""

    config: TreatmentConfig
    style: TreatmentStyle


@router.get("", response_model=list[TreatmentEntry])
def get_treatments() -> list[TreatmentEntry]:
    """List every treatment type in canonical order."""
    return [TreatmentEntry(config=config, style=style) for config, style in list_treatments()]
