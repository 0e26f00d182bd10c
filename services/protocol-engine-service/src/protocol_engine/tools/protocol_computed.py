"""Protocol resolver: derive the normalized protocol view of an evaluation.

An evaluation carries up to three protocol sources, one per treatment
family:

- porcelana: ``cementation_protocol``
- special types (coroa, implante, endodontia, ...): ``generic_protocol``
- resina and anything unrecognized: ``stratification_protocol`` plus the
  flat ``protocol_layers`` / ``alerts`` / ``warnings`` fallbacks

compute_protocol() picks the right source for each output field. It is pure
and total: every missing field resolves to a default, and a None evaluation
yields the all-default resina view. Memoization is left to callers.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from protocol_engine.schemas.protocol import (
    DEFAULT_CONFIDENCE,
    EvaluationLike,
    ProtocolComputed,
)
from protocol_engine.tools.treatment_config import (
    DEFAULT_TREATMENT_TYPE,
    PORCELAIN_TREATMENT_TYPE,
    get_treatment_style,
    is_special_treatment_type,
)


def _as_evaluation(
    evaluation: EvaluationLike | Mapping[str, Any] | None,
) -> EvaluationLike:
    if evaluation is None:
        return EvaluationLike()
    if isinstance(evaluation, EvaluationLike):
        return evaluation
    return EvaluationLike.model_validate(dict(evaluation))


def compute_protocol(
    evaluation: EvaluationLike | Mapping[str, Any] | None,
) -> ProtocolComputed:
    """Resolve checklist, alerts, warnings, layers, and confidence.

    Args:
        evaluation: Evaluation record (model or raw mapping) or None.

    Returns:
        Frozen ProtocolComputed. ``treatment_type`` keeps the raw value even
        when it is unrecognized; unrecognized types follow the resina path.
    """
    ev = _as_evaluation(evaluation)

    treatment_type = (
        ev.treatment_type if ev.treatment_type is not None else DEFAULT_TREATMENT_TYPE
    )
    is_porcelain = treatment_type == PORCELAIN_TREATMENT_TYPE
    is_special = is_special_treatment_type(treatment_type)

    cementation = ev.cementation_protocol
    generic = ev.generic_protocol
    protocol = ev.stratification_protocol

    if is_porcelain:
        checklist = (cementation.checklist if cementation else None) or []
        alerts = (cementation.alerts if cementation else None) or []
    elif is_special and generic is not None:
        checklist = generic.checklist
        alerts = generic.alerts
    else:
        checklist = (protocol.checklist if protocol else None) or []
        alerts = ev.alerts or []

    # No specialty branch: GenericProtocol has no warnings field.
    if is_porcelain:
        warnings = (cementation.warnings if cementation else None) or []
    else:
        warnings = ev.warnings or []

    if is_porcelain:
        confidence = cementation.confidence if cementation else None
    else:
        confidence = protocol.confidence if protocol else None
    if confidence is None:
        confidence = DEFAULT_CONFIDENCE

    layers = protocol.layers if protocol and protocol.layers is not None else None
    if layers is None:
        layers = ev.protocol_layers if ev.protocol_layers is not None else []

    if is_porcelain:
        has_protocol = cementation is not None
    elif is_special:
        has_protocol = generic is not None
    else:
        has_protocol = len(layers) > 0

    return ProtocolComputed(
        treatment_type=treatment_type,
        is_porcelain=is_porcelain,
        is_special_treatment=is_special,
        cementation_protocol=cementation,
        generic_protocol=generic,
        protocol=protocol,
        layers=layers,
        checklist=checklist,
        alerts=alerts,
        warnings=warnings,
        confidence=confidence,
        protocol_alternative=protocol.alternative if protocol else None,
        resin=ev.resins,
        has_protocol=has_protocol,
        current_treatment_style=get_treatment_style(treatment_type),
    )
