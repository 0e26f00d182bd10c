"""Generic protocol builder and tooth-position helpers.

Specialty treatments (implante, coroa, endodontia, gengivoplastia and
referrals) do not get a layered or cementation protocol. They get a
template protocol from config/generic_protocols.yaml, with the tooth number
substituted and, for referrals, a specialty inferred from the indication
reason.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from protocol_engine.schemas.protocol import GenericProtocol, ToothData

_CONFIG_PATH = Path(__file__).parent.parent / "config" / "generic_protocols.yaml"

ANTERIOR_TEETH: frozenset[str] = frozenset(
    {"11", "12", "13", "21", "22", "23", "31", "32", "33", "41", "42", "43"}
)

# (keywords, cavity class) checked in order against the indication reason.
_CAVITY_CLASS_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("lente", "contato"), "Lente de Contato"),
    (("reanatomização", "microdontia", "volume", "conoide"), "Recontorno Estético"),
    (("diastema", "espaçamento"), "Fechamento de Diastema"),
    (("faceta",), "Faceta Direta"),
    (("reparo", "substituição"), "Reparo de Restauração"),
    (("desgaste", "incisal", "recontorno"), "Recontorno Estético"),
)

_BLACK_CLASS_RE = re.compile(r"^Classe\s", re.IGNORECASE)


@lru_cache(maxsize=1)
def _load_templates() -> dict[str, Any]:
    with open(_CONFIG_PATH, encoding="utf-8") as f:
        return yaml.safe_load(f)


def _as_tooth_data(tooth_data: ToothData | Mapping[str, Any] | None) -> ToothData:
    if tooth_data is None:
        return ToothData()
    if isinstance(tooth_data, ToothData):
        return tooth_data
    return ToothData.model_validate(dict(tooth_data))


def is_anterior(tooth: str) -> bool:
    """True for incisors and canines (FDI 11-13, 21-23, 31-33, 41-43)."""
    return tooth in ANTERIOR_TEETH


def _tooth_number(tooth: str) -> int | None:
    try:
        return int(tooth)
    except (TypeError, ValueError):
        return None


def get_full_region(tooth: str) -> str:
    """Return ``anterior|posterior-superior|inferior`` for an FDI tooth.

    Non-numeric identifiers (e.g. the gingiva pseudo-tooth) count as lower.
    """
    number = _tooth_number(tooth)
    is_upper = number is not None and 10 <= number <= 28
    position = "anterior" if is_anterior(tooth) else "posterior"
    return f"{position}-{'superior' if is_upper else 'inferior'}"


def get_contralateral_tooth(tooth: str) -> str | None:
    """Mirror a tooth across the midline (11 <-> 21, 36 <-> 46).

    Returns None for non-numeric or out-of-range identifiers.
    """
    number = _tooth_number(tooth)
    if number is None:
        return None
    if 11 <= number <= 18 or 31 <= number <= 38:
        return str(number + 10)
    if 21 <= number <= 28 or 41 <= number <= 48:
        return str(number - 10)
    return None


def infer_cavity_class(
    tooth_data: ToothData | Mapping[str, Any] | None,
    fallback: str,
    treatment_type: str | None = None,
) -> str:
    """Pick an aesthetic procedure class for a tooth.

    An explicit ``cavity_class`` wins. Otherwise keywords in the indication
    reason select the class. A Black classification ("Classe I" ...) is not
    meaningful for porcelain, which falls back to "Faceta Direta".
    """
    data = _as_tooth_data(tooth_data)
    if data.cavity_class:
        return data.cavity_class

    reason = (data.indication_reason or "").lower()
    for keywords, cavity_class in _CAVITY_CLASS_RULES:
        if any(k in reason for k in keywords):
            return cavity_class

    if treatment_type == "porcelana" and _BLACK_CLASS_RE.match(fallback):
        return "Faceta Direta"
    return fallback


def _match_specialty(reason: str, specialties: list[dict[str, Any]]) -> dict[str, Any] | None:
    lowered = reason.lower()
    for specialty in specialties:
        if any(k in lowered for k in specialty["keywords"]):
            return specialty
    return None


def _referral_protocol(tooth: str, reason: str) -> dict[str, Any]:
    referral = _load_templates()["referral"]
    specialty = _match_specialty(reason, referral["specialties"])

    summary = referral["summary"].format(tooth=tooth)
    if specialty is not None:
        summary += referral["specialty_suffix"].format(specialty=specialty["name"])

    if specialty is not None and "checklist" in specialty:
        filled_reason = reason or specialty["default_reason"]
        checklist = [item.format(reason=filled_reason) for item in specialty["checklist"]]
        recommendations = list(specialty["recommendations"])
    else:
        refer_step = (
            f"Encaminhar para {specialty['name']}"
            if specialty is not None
            else "Identificar especialidade adequada"
        )
        checklist = [
            item.format(refer_step=refer_step) for item in referral["fallback_checklist"]
        ]
        recommendations = list(referral["fallback_recommendations"])

    return {
        "summary": summary,
        "checklist": checklist,
        "alerts": list(referral["alerts"]),
        "recommendations": recommendations,
    }


def get_generic_protocol(
    treatment_type: str,
    tooth: str,
    tooth_data: ToothData | Mapping[str, Any] | None = None,
) -> GenericProtocol:
    """Build the template protocol for a specialty treatment.

    Args:
        treatment_type: Canonical treatment key. Types without a template
            (recobrimento_radicular, unknown keys) get the referral protocol.
        tooth: FDI tooth number substituted into the summary.
        tooth_data: Analysis findings; ``indication_reason`` drives the
            referral specialty and becomes ``ai_reason``.

    Returns:
        GenericProtocol with summary, checklist, alerts and recommendations.
    """
    data = _as_tooth_data(tooth_data)
    reason = data.indication_reason or ""

    template = _load_templates()["protocols"].get(treatment_type)
    if template is None:
        body = _referral_protocol(tooth, reason)
    else:
        body = {
            "summary": template["summary"].format(tooth=tooth),
            "checklist": list(template["checklist"]),
            "alerts": list(template["alerts"]),
            "recommendations": list(template["recommendations"]),
        }

    return GenericProtocol(
        treatment_type=treatment_type,
        tooth=tooth,
        ai_reason=reason or None,
        **body,
    )
