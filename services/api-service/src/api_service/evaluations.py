"""FastAPI router for stored evaluations.

Provides endpoints for:
- POST /evaluations: Persist an evaluation with its protocol payloads
- GET /evaluations/{evaluation_id}: Stored evaluation record
- GET /evaluations/{evaluation_id}/protocol: Resolved protocol view
- GET /evaluations/{evaluation_id}/report: Printable report sections
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from protocol_engine.schemas.protocol import (
    CementationProtocol,
    EvaluationLike,
    GenericProtocol,
    ProtocolComputed,
    ProtocolLayer,
    StratificationProtocol,
)
from protocol_engine.schemas.report import ReportCase
from protocol_engine.tools.protocol_computed import compute_protocol
from protocol_engine.tools.resin_budget import STANDARD_BUDGET
from protocol_engine.tools.treatment_config import normalize_treatment_type
from pydantic import BaseModel, ConfigDict
from shared.models import Evaluation, EvaluationStatus, Resin
from sqlmodel import Session

from api_service.dependencies import get_db
from api_service.protocols import ReportResponse, build_report_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/evaluations", tags=["evaluations"])


# --- Request/Response models ---


class EvaluationCreate(BaseModel):
    """Request body for storing an evaluation.

    Protocol payloads are validated against the protocol schemas before
    they are stored.
    """

    treatment_type: str | None = None
    status: str = EvaluationStatus.PENDING.value
    patient_name: str | None = None
    patient_age: str = ""
    tooth: str = ""
    region: str = ""
    cavity_class: str = ""
    restoration_size: str = ""
    tooth_color: str = ""
    aesthetic_level: str = ""
    aesthetic_goals: str | None = None
    budget: str = STANDARD_BUDGET
    bruxism: bool = False
    stratification_needed: bool = False
    resin_id: str | None = None
    ideal_resin_id: str | None = None
    ideal_reason: str | None = None
    recommendation_text: str | None = None
    is_from_inventory: bool = False
    cementation_protocol: CementationProtocol | None = None
    generic_protocol: GenericProtocol | None = None
    stratification_protocol: StratificationProtocol | None = None
    protocol_layers: list[ProtocolLayer] | None = None
    alerts: list[str] | None = None
    warnings: list[str] | None = None


class EvaluationResponse(BaseModel):
    """Response model for a stored evaluation."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    status: str
    treatment_type: str | None
    patient_name: str | None
    patient_age: str
    tooth: str
    region: str
    cavity_class: str
    restoration_size: str
    tooth_color: str
    aesthetic_level: str
    aesthetic_goals: str | None
    budget: str
    bruxism: bool
    stratification_needed: bool
    resin_id: str | None
    ideal_resin_id: str | None
    ideal_reason: str | None
    recommendation_text: str | None
    is_from_inventory: bool
    cementation_protocol: dict[str, Any] | None
    generic_protocol: dict[str, Any] | None
    stratification_protocol: dict[str, Any] | None
    protocol_layers: list[dict[str, Any]] | None
    alerts: list[str] | None
    warnings: list[str] | None
    created_at: datetime
    updated_at: datetime


# --- Endpoints ---


@router.post("", response_model=EvaluationResponse, status_code=201)
def create_evaluation(
    body: EvaluationCreate,
    db: Session = Depends(get_db),
) -> EvaluationResponse:
    """Store an evaluation.

    Treatment types are normalized to their canonical key, so English
    aliases ("porcelain", "implant") are accepted.
    """
    for field, resin_id in (("resin_id", body.resin_id), ("ideal_resin_id", body.ideal_resin_id)):
        if resin_id is not None and db.get(Resin, resin_id) is None:
            raise HTTPException(
                status_code=404,
                detail=f"Resin {resin_id} not found ({field})",
            )

    values = body.model_dump(mode="json")
    if body.treatment_type:
        values["treatment_type"] = normalize_treatment_type(body.treatment_type)

    evaluation = Evaluation(**values)
    db.add(evaluation)
    db.commit()
    db.refresh(evaluation)

    logger.info(
        "Stored evaluation %s (treatment=%s, tooth=%s)",
        evaluation.id,
        evaluation.treatment_type,
        evaluation.tooth,
    )
    return EvaluationResponse.model_validate(evaluation)


@router.get("/{evaluation_id}", response_model=EvaluationResponse)
def get_evaluation(
    evaluation_id: str,
    db: Session = Depends(get_db),
) -> EvaluationResponse:
    """Get a stored evaluation record."""
    return EvaluationResponse.model_validate(_get_or_404(evaluation_id, db))


@router.get("/{evaluation_id}/protocol", response_model=ProtocolComputed)
def get_evaluation_protocol(
    evaluation_id: str,
    db: Session = Depends(get_db),
) -> ProtocolComputed:
    """Resolve the protocol view of a stored evaluation."""
    evaluation = _get_or_404(evaluation_id, db)
    return compute_protocol(_to_evaluation_like(evaluation, db))


@router.get("/{evaluation_id}/report", response_model=ReportResponse)
def get_evaluation_report(
    evaluation_id: str,
    dentist_name: str | None = None,
    dentist_cro: str | None = None,
    clinic_name: str | None = None,
    db: Session = Depends(get_db),
) -> ReportResponse:
    """Build the report of a stored evaluation from its own case data.

    Professional details are not stored with the evaluation and may be
    passed as query parameters.
    """
    evaluation = _get_or_404(evaluation_id, db)
    computed = compute_protocol(_to_evaluation_like(evaluation, db))

    ideal_resin = db.get(Resin, evaluation.ideal_resin_id) if evaluation.ideal_resin_id else None
    case = ReportCase(
        created_at=evaluation.created_at,
        patient_name=evaluation.patient_name,
        patient_age=evaluation.patient_age,
        tooth=evaluation.tooth,
        region=evaluation.region,
        cavity_class=evaluation.cavity_class,
        restoration_size=evaluation.restoration_size,
        tooth_color=evaluation.tooth_color,
        aesthetic_level=evaluation.aesthetic_level,
        bruxism=evaluation.bruxism,
        stratification_needed=evaluation.stratification_needed,
        is_from_inventory=evaluation.is_from_inventory,
        dentist_name=dentist_name,
        dentist_cro=dentist_cro,
        clinic_name=clinic_name,
        recommendation_text=evaluation.recommendation_text,
        ideal_resin=ideal_resin.model_dump() if ideal_resin else None,
        ideal_reason=evaluation.ideal_reason,
    )
    return build_report_response(computed, case)


# --- Helpers ---


def _get_or_404(evaluation_id: str, db: Session) -> Evaluation:
    evaluation = db.get(Evaluation, evaluation_id)
    if not evaluation:
        raise HTTPException(
            status_code=404,
            detail=f"Evaluation {evaluation_id} not found",
        )
    return evaluation


def _to_evaluation_like(evaluation: Evaluation, db: Session) -> EvaluationLike:
    """Join the linked resin and map the row onto the resolver input."""
    resin = db.get(Resin, evaluation.resin_id) if evaluation.resin_id else None
    return EvaluationLike.model_validate(
        {
            "treatment_type": evaluation.treatment_type,
            "cementation_protocol": evaluation.cementation_protocol,
            "generic_protocol": evaluation.generic_protocol,
            "stratification_protocol": evaluation.stratification_protocol,
            "protocol_layers": evaluation.protocol_layers,
            "alerts": evaluation.alerts,
            "warnings": evaluation.warnings,
            "resins": resin.model_dump() if resin else None,
        }
    )
