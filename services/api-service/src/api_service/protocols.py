"""FastAPI router for stateless protocol derivation and reports.

Provides endpoints for:
- POST /protocols/compute: Resolve the protocol view of an evaluation payload
- POST /protocols/report: Lay out the printable report of an evaluation payload
"""

from __future__ import annotations

import logging

from fastapi import APIRouter
from protocol_engine.schemas.protocol import EvaluationLike, ProtocolComputed
from protocol_engine.schemas.report import ReportCase, ReportSection
from protocol_engine.tools.protocol_computed import compute_protocol
from protocol_engine.tools.report_builder import (
    build_report,
    render_text,
    report_data_from_computed,
)
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/protocols", tags=["protocols"])


# --- Request/Response models ---


class ReportRequest(BaseModel):
    """Evaluation payload plus the case metadata printed on the report."""

    evaluation: EvaluationLike | None = None
    case: ReportCase = Field(default_factory=ReportCase)


class ReportResponse(BaseModel):
    """Report sections in print order and their plain-text rendering."""

    sections: list[ReportSection]
    text: str


# --- Endpoints ---


@router.post("/compute", response_model=ProtocolComputed)
def compute(body: EvaluationLike) -> ProtocolComputed:
    """Resolve checklist, alerts, warnings, layers and confidence.

    The response uses camelCase keys for the web client.
    """
    return compute_protocol(body)


@router.post("/report", response_model=ReportResponse)
def report(body: ReportRequest) -> ReportResponse:
    """Build the report of an evaluation payload."""
    computed = compute_protocol(body.evaluation)
    return build_report_response(computed, body.case)


# --- Helpers ---


def build_report_response(computed: ProtocolComputed, case: ReportCase) -> ReportResponse:
    """Build the report for a resolved protocol and its case metadata."""
    data = report_data_from_computed(computed, **case.model_dump())
    protocol_report = build_report(data)
    logger.info(
        "Built %s report with sections %s",
        computed.treatment_type,
        protocol_report.section_keys(),
    )
    return ReportResponse(
        sections=protocol_report.sections,
        text=render_text(protocol_report),
    )
