"""Pydantic schemas for the printable protocol report."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from protocol_engine.schemas.protocol import (
    CementationProtocol,
    ProtocolAlternative,
    ProtocolLayer,
    Resin,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReportCase(BaseModel):
    """Case metadata printed on the report."""

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    created_at: datetime = Field(default_factory=_utcnow)
    patient_name: str | None = None
    patient_age: str = ""
    tooth: str = ""
    region: str = ""
    cavity_class: str = ""
    restoration_size: str = ""
    tooth_color: str = ""
    aesthetic_level: str = ""
    bruxism: bool = False
    stratification_needed: bool = False
    is_from_inventory: bool = False
    dentist_name: str | None = None
    dentist_cro: str | None = None
    clinic_name: str | None = None
    recommendation_text: str | None = None
    ideal_resin: Resin | None = None
    ideal_reason: str | None = None


class ReportData(ReportCase):
    """Case metadata plus the resolved protocol fields."""

    treatment_type: str = "resina"
    resin: Resin | None = None
    layers: list[ProtocolLayer] = Field(default_factory=list)
    alternative: ProtocolAlternative | None = None
    checklist: list[str] = Field(default_factory=list)
    alerts: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    confidence: str | None = None
    cementation_protocol: CementationProtocol | None = None


class ReportSection(BaseModel):
    """One printable block of the report."""

    model_config = ConfigDict(frozen=True)

    key: str
    title: str
    lines: list[str] = Field(default_factory=list)


class ProtocolReport(BaseModel):
    """Ordered report sections, ready for a renderer."""

    model_config = ConfigDict(frozen=True)

    sections: list[ReportSection]

    def section_keys(self) -> list[str]:
        return [s.key for s in self.sections]

    def section(self, key: str) -> ReportSection | None:
        return next((s for s in self.sections if s.key == key), None)
