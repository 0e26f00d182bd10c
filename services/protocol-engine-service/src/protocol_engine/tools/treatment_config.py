"""Treatment-type catalog: labels, presentation styles, and key normalization.

Deterministic YAML-based lookup (config/treatments.yaml) over the closed set
of treatment types. Lookups never raise: None, empty, or unrecognized keys
fall back to the resina entry.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from protocol_engine.schemas.treatment import TreatmentConfig, TreatmentStyle

logger = logging.getLogger(__name__)

_CONFIG_PATH = Path(__file__).parent.parent / "config" / "treatments.yaml"

DEFAULT_TREATMENT_TYPE = "resina"
PORCELAIN_TREATMENT_TYPE = "porcelana"

TREATMENT_TYPES: tuple[str, ...] = (
    "resina",
    "porcelana",
    "coroa",
    "implante",
    "endodontia",
    "encaminhamento",
    "gengivoplastia",
    "recobrimento_radicular",
)

# Types handled by a generic protocol instead of stratification/cementation.
SPECIAL_TREATMENT_TYPES: tuple[str, ...] = (
    "implante",
    "coroa",
    "endodontia",
    "encaminhamento",
    "gengivoplastia",
    "recobrimento_radicular",
)

GINGIVA_TOOTH = "GENGIVO"

Translate = Callable[..., str]


@lru_cache(maxsize=1)
def _load_treatments() -> tuple[
    dict[str, TreatmentConfig], dict[str, TreatmentStyle], dict[str, str]
]:
    """Load and index the treatments YAML (cached after first call).

    Returns:
        Tuple of (configs, styles, alias_lookup) where:
        - configs: treatment key -> TreatmentConfig
        - styles: treatment key -> TreatmentStyle
        - alias_lookup: lowercased alias -> treatment key
    """
    with open(_CONFIG_PATH, encoding="utf-8") as f:
        data: dict[str, Any] = yaml.safe_load(f)

    configs: dict[str, TreatmentConfig] = {}
    styles: dict[str, TreatmentStyle] = {}
    alias_lookup: dict[str, str] = {}
    for key, entry in data.get("treatments", {}).items():
        configs[key] = TreatmentConfig(
            key=key,
            label=entry["label"],
            short_label=entry["short_label"],
            label_key=f"treatments.{key}.label",
            short_label_key=f"treatments.{key}.shortLabel",
            variant=entry["variant"],
            show_cavity_info=bool(entry.get("show_cavity_info", False)),
            icon=entry["icon"],
        )
        style = entry["style"]
        styles[key] = TreatmentStyle(
            label=style["label"],
            label_key=f"treatments.{key}.styleLabel",
            icon=entry["icon"],
            badge_variant=style["badge_variant"],
            bg_class=style["bg_class"],
            border_class=style["border_class"],
            icon_class=style["icon_class"],
            ring_class=style["ring_class"],
            solid_bg_class=style["solid_bg_class"],
            glow_class=style["glow_class"],
            overlay_color=style["overlay_color"],
        )
        alias_lookup[key] = key
        for alias in entry.get("aliases", []):
            alias_lookup[alias.strip().lower()] = key

    missing = set(TREATMENT_TYPES) - set(configs)
    if missing:
        logger.warning("treatments.yaml is missing entries for: %s", sorted(missing))

    return configs, styles, alias_lookup


def get_treatment_config(treatment_type: str | None) -> TreatmentConfig:
    """Return labels and flags for a treatment type (resina on miss)."""
    configs, _, _ = _load_treatments()
    return configs.get(treatment_type or "", configs[DEFAULT_TREATMENT_TYPE])


def get_treatment_style(treatment_type: str | None) -> TreatmentStyle:
    """Return presentation metadata for a treatment type (resina on miss)."""
    _, styles, _ = _load_treatments()
    return styles.get(treatment_type or "", styles[DEFAULT_TREATMENT_TYPE])


def list_treatments() -> list[tuple[TreatmentConfig, TreatmentStyle]]:
    """Return (config, style) pairs in canonical order."""
    configs, styles, _ = _load_treatments()
    return [(configs[t], styles[t]) for t in TREATMENT_TYPES if t in configs]


def normalize_treatment_type(raw: str) -> str:
    """Map a raw treatment label (Portuguese or English, any case) to its key.

    Args:
        raw: Treatment type as written by a model or an older client
            (e.g. "Porcelain", "ROOT_COVERAGE", "resina").

    Returns:
        Canonical Portuguese key, or the lowercased input when unrecognized.
    """
    key = raw.strip().lower()
    _, _, alias_lookup = _load_treatments()
    return alias_lookup.get(key, key)


def is_special_treatment_type(treatment_type: str | None) -> bool:
    """True for types handled by a generic (specialty) protocol."""
    return treatment_type in SPECIAL_TREATMENT_TYPES


def format_tooth_label(tooth: str, translate: Translate | None = None) -> str:
    """Human label for a tooth identifier.

    The gingiva pseudo-tooth ("GENGIVO") is labelled as gingiva; anything
    else is treated as a tooth number. When ``translate`` is given it is
    called with i18n keys ``toothLabel.gingiva`` / ``toothLabel.tooth``
    (the latter with ``number=<tooth>``).
    """
    if tooth == GINGIVA_TOOTH:
        return translate("toothLabel.gingiva") if translate else "Gengiva"
    if translate:
        return translate("toothLabel.tooth", number=tooth)
    return f"Dente {tooth}"
