"""Pydantic schemas for evaluation protocol payloads.

Field names mirror the persisted evaluation row exactly (snake_case), since
the resolver is a read-shape adapter over whatever the evaluation store
returns. Every field is optional with an explicit default so that partial
or legacy rows validate without errors. Unknown keys are ignored.

Two schema categories:

1. Input schemas (ProtocolLayer, CementationProtocol, GenericProtocol,
   StratificationProtocol, Resin, EvaluationLike): the JSON columns of the
   evaluation record.
2. Output schema (ProtocolComputed): the normalized, immutable view consumed
   by result screens and the report builder. Serialized with camelCase
   aliases for the web client.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from protocol_engine.schemas.treatment import TreatmentStyle

DEFAULT_CONFIDENCE = "média"


class _Record(BaseModel):
    """Base for loose input records.

    Extra keys from the store are dropped, and null values fall back to the
    field default so legacy rows with explicit nulls still validate.
    """

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class ProtocolLayer(_Record):
    """Single composite-resin layer in a stratification protocol."""

    order: int = 0
    name: str = ""
    resin_brand: str = ""
    shade: str = ""
    thickness: str = ""
    purpose: str = ""
    technique: str = ""
    optional: bool = False


class ProtocolAlternative(_Record):
    """Simplified single-shade protocol offered next to the full layering."""

    resin: str = ""
    shade: str = ""
    technique: str = ""
    tradeoff: str = ""


class Resin(_Record):
    """Resin catalog entry linked to an evaluation."""

    id: str | None = None
    name: str = ""
    manufacturer: str = ""
    type: str = ""
    opacity: str = ""
    resistance: str = ""
    polishing: str = ""
    aesthetics: str = ""
    price_range: str = ""
    indications: list[str] = Field(default_factory=list)
    description: str | None = None


class CementationStep(_Record):
    """Ordered step of a porcelain cementation protocol."""

    order: int = 0
    step: str = ""
    material: str = ""
    time: str | None = None


class CementationDetails(_Record):
    """Cement selection and curing parameters."""

    cement_type: str = ""
    cement_brand: str = ""
    shade: str = ""
    light_curing_time: str = ""
    technique: str = ""


class CementationProtocol(_Record):
    """Porcelain veneer cementation protocol."""

    preparation_steps: list[CementationStep] | None = None
    ceramic_treatment: list[CementationStep] | None = None
    tooth_treatment: list[CementationStep] | None = None
    cementation: CementationDetails | None = None
    finishing: list[CementationStep] | None = None
    post_operative: list[str] | None = None
    checklist: list[str] | None = None
    alerts: list[str] | None = None
    warnings: list[str] | None = None
    confidence: str | None = None


class GenericProtocol(_Record):
    """Catch-all protocol for specialty treatments and referrals.

    There is no ``warnings`` field on this shape; warnings for specialty
    treatments always come from the evaluation itself.
    """

    treatment_type: str = ""
    tooth: str = ""
    summary: str = ""
    checklist: list[str] = Field(default_factory=list)
    alerts: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    ai_reason: str | None = None


class StratificationProtocol(_Record):
    """Resin layering protocol for direct restorations."""

    layers: list[ProtocolLayer] | None = None
    alternative: ProtocolAlternative | None = None
    checklist: list[str] | None = None
    alerts: list[str] | None = None
    warnings: list[str] | None = None
    justification: str | None = None
    confidence: str | None = None


class ToothData(_Record):
    """Per-tooth findings from the photo analysis step."""

    tooth: str = ""
    indication_reason: str | None = None
    cavity_class: str | None = None
    treatment_indication: str | None = None


class EvaluationLike(_Record):
    """Read-only subset of an evaluation record used to derive its protocol."""

    treatment_type: str | None = None
    cementation_protocol: CementationProtocol | None = None
    generic_protocol: GenericProtocol | None = None
    stratification_protocol: StratificationProtocol | None = None
    protocol_layers: list[ProtocolLayer] | None = None
    alerts: list[str] | None = None
    warnings: list[str] | None = None
    resins: Resin | None = None


class ProtocolComputed(BaseModel):
    """Normalized protocol view derived from an evaluation."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    treatment_type: str
    is_porcelain: bool
    is_special_treatment: bool
    cementation_protocol: CementationProtocol | None
    generic_protocol: GenericProtocol | None
    protocol: StratificationProtocol | None
    layers: list[ProtocolLayer]
    checklist: list[str]
    alerts: list[str]
    warnings: list[str]
    confidence: str
    protocol_alternative: ProtocolAlternative | None
    resin: Resin | None
    has_protocol: bool
    current_treatment_style: TreatmentStyle
