"""Shade validation for generated stratification protocols.

Generated protocols sometimes name shades that a product line does not
sell, put universal shades on enamel layers or ignore a whitening request.
validate_and_fix_protocol_layers() checks every layer against the resin
shade catalog, fixes what it can and mirrors the fixes into the checklist
so the step text keeps matching the layers.

Bleach shades on a body or dentin layer are always replaced, by WB when
the line sells it. Anterior aesthetic cases also get a layer count check
and an optional incisal effects layer before the final enamel.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from protocol_engine.tools.generic_protocol import is_anterior

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShadeCatalogRow:
    """One shade of one resin product line."""

    shade: str
    type: str
    product_line: str


@dataclass(frozen=True)
class TargetShade:
    """Shade range a whitening goal aims for."""

    shade: str
    is_target: bool
    already_in_range: bool


ShadeCatalog = Callable[[set[str]], Iterable[ShadeCatalogRow]]

_BRAND_LINE_RE = re.compile(r"^(.+?)\s*-\s*(.+)$")
_Z350_RE = re.compile(r"z350", re.IGNORECASE)
_BL_SHADE_RE = re.compile(r"^BL\d?$", re.IGNORECASE)
_BL_PREFIX_RE = re.compile(r"^BL", re.IGNORECASE)
_BL_OR_BIANCO_RE = re.compile(r"bl|bianco", re.IGNORECASE)

_WHITENING_KEYWORDS = ("hollywood", "bl1", "bl2", "bl3", "intenso", "notável")

# Shade codes that already denote an enamel/translucent shade. Matched against
# the upper-cased shade, so the mixed-case markers never hit.
_ENAMEL_MARKERS = ("WE", "CE", "JE", "CT", "Trans", "IT", "TN", "Opal", "INC")
_PREFERRED_ENAMEL = ("WE", "CE", "JE", "CT", "Trans")

_BL_RANGE = ("BL1", "BL2", "BL3")
_NATURAL_RANGE = ("A1", "A2", "B1")

_BODY_LAYER_KEYWORDS = ("dentina", "corpo", "body")
_BODY_ROW_TYPES = ("body", "dentina", "universal")
_BODY_FALLBACK_SHADE = "WB"

AESTHETIC_CAVITY_CLASSES: frozenset[str] = frozenset(
    {
        "Classe III",
        "Classe IV",
        "Faceta Direta",
        "Fechamento de Diastema",
        "Recontorno Estético",
        "Lente de Contato",
        "Reparo de Restauração",
    }
)

INCISAL_EFFECTS_LAYER: dict[str, Any] = {
    "name": "Efeitos Incisais",
    "resin_brand": "Ivoclar - IPS Empress Direct Color",
    "shade": "White",
    "thickness": "mínima",
    "purpose": "Caracterização incisal: halo opaco, manchas brancas e linhas de craze.",
    "technique": "Micro-pontos aplicados com pincel fino antes do esmalte final.",
    "optional": True,
}


def is_anterior_aesthetic(tooth: str | None, cavity_class: str | None) -> bool:
    """True for incisors and canines restored for an aesthetic class."""
    return bool(tooth) and is_anterior(tooth) and cavity_class in AESTHETIC_CAVITY_CLASSES


def validate_minimum_layer_count(
    layers: list[Any] | None, tooth: str | None, cavity_class: str | None
) -> str | None:
    """Warn when a protocol has fewer layers than the case calls for.

    Anterior aesthetic cases need at least three layers, everything else two.
    Returns None when the count is fine or there are no layers to check.
    """
    if layers is None:
        return None
    if is_anterior_aesthetic(tooth, cavity_class):
        minimum, label = 3, "casos estéticos anteriores"
    else:
        minimum, label = 2, "casos posteriores"
    if len(layers) >= minimum:
        return None
    return (
        f"Protocolo com {len(layers)} camada(s): {label} exigem no mínimo "
        f"{minimum} camadas."
    )


def wants_whitening(aesthetic_goals: str | None) -> bool:
    """True when the patient's goals ask for a bleach-level result."""
    lower = (aesthetic_goals or "").lower()
    return any(k in lower for k in _WHITENING_KEYWORDS)


def get_target_shade(whitening_goal: str | None, original_color: str) -> TargetShade:
    """Map a whitening goal to the target shade range shown in the case summary."""
    if not whitening_goal:
        return TargetShade(shade=original_color, is_target=False, already_in_range=False)

    lower = whitening_goal.lower()
    upper = original_color.upper().strip()
    if any(k in lower for k in ("hollywood", "intenso", "bl1", "bl2", "bl3")):
        return TargetShade("BL1/BL2/BL3", True, upper in _BL_RANGE)
    if any(k in lower for k in ("natural", "a1", "a2", "b1", "sutil", "discreto")):
        return TargetShade("A1/A2/B1", True, upper in _NATURAL_RANGE)
    # older three-level goals
    if any(k in lower for k in ("notável", "branco", "white")):
        return TargetShade("BL1/BL2/BL3", True, upper in _BL_RANGE)
    return TargetShade(shade=original_color, is_target=False, already_in_range=False)


def _product_line(resin_brand: str | None) -> str | None:
    """Product line of a "Brand - Line" label; bare names pass through."""
    if not resin_brand:
        return resin_brand
    match = _BRAND_LINE_RE.match(resin_brand)
    return match.group(2).strip() if match else resin_brand


def _is_bl_duplicate(alert: str, existing: list[str]) -> bool:
    lower = alert.lower()
    if "bl" not in lower and "bleach" not in lower:
        return False
    return any("bl" in e.lower() or "bleach" in e.lower() for e in existing)


def _inject_incisal_effects(layers: list[dict[str, Any]]) -> bool:
    """Insert the optional incisal effects layer before the final enamel.

    Returns False without touching ``layers`` when an effects layer exists.
    """
    names = [(layer.get("name") or "").lower() for layer in layers]
    if any("efeito" in name for name in names):
        return False

    index = next((i for i, name in enumerate(names) if "esmalte vestibular" in name), None)
    if index is None:
        enamel = [i for i, name in enumerate(names) if "esmalte" in name]
        index = enamel[-1] if enamel else len(layers)

    layers.insert(index, dict(INCISAL_EFFECTS_LAYER))
    for order, layer in enumerate(layers, start=1):
        layer["order"] = order
    return True


def validate_and_fix_protocol_layers(
    protocol: dict[str, Any] | None,
    aesthetic_goals: str | None,
    catalog: ShadeCatalog,
    tooth: str | None = None,
    cavity_class: str | None = None,
) -> list[str]:
    """Validate layer shades against the catalog and fix them in place.

    Args:
        protocol: Stratification protocol dict with ``layers``, ``checklist``
            and ``alerts``. Mutated in place.
        aesthetic_goals: Free-text patient goals; whitening keywords trigger
            the bleach-shade availability check.
        catalog: Callable returning the catalog rows for a set of product
            lines. Called at most once.
        tooth: FDI tooth number. With ``cavity_class`` it enables the layer
            count check and the incisal effects layer for anterior
            aesthetic cases.
        cavity_class: Cavity class of the case.

    Returns:
        The validation alerts raised, before deduplication against the
        protocol's existing alerts.
    """
    if not protocol or not isinstance(protocol.get("layers"), list):
        return []

    layers: list[dict[str, Any]] = protocol["layers"]
    validation_alerts: list[str] = []
    replacements: dict[str, str] = {}
    whitening = wants_whitening(aesthetic_goals)
    line_without_bl: str | None = None

    product_lines: set[str] = set()
    for layer in layers:
        if layer.get("shade") == "WT" and "Z350" in (layer.get("resin_brand") or ""):
            replacements["WT"] = "CT"
            layer["shade"] = "CT"
        line = _product_line(layer.get("resin_brand"))
        if line:
            product_lines.add(line)

    rows: list[ShadeCatalogRow] = list(catalog(product_lines)) if product_lines else []

    def rows_for_line(keyword: str) -> list[ShadeCatalogRow]:
        keyword = keyword.lower()
        return [r for r in rows if keyword in r.product_line.lower()]

    for layer in layers:
        line = _product_line(layer.get("resin_brand"))
        layer_type = (layer.get("name") or "").lower()
        if not line or not layer.get("shade"):
            continue

        line_rows = rows_for_line(line)
        is_enamel = "esmalte" in layer_type or "enamel" in layer_type
        is_ridge = "crista" in layer_type or "proxima" in layer_type
        line_lower = line.lower()

        if is_ridge:
            allowed = (
                "harmonize" in line_lower
                or "empress" in line_lower
                or ("z350" in line_lower and layer["shade"] == "WE")
            )
            if not allowed:
                validation_alerts.append(
                    f"Cristas Proximais: {line} ({layer['shade']}) não é ideal. "
                    "Recomendado: XLE(Harmonize) ou BL-L(Empress Direct)."
                )
                logger.warning(
                    "Proximal ridge layer uses %s %s, expected Harmonize/Empress",
                    line,
                    layer["shade"],
                )

        is_body = any(k in layer_type for k in _BODY_LAYER_KEYWORDS)
        if is_body and _BL_SHADE_RE.match(layer["shade"]):
            original = layer["shade"]
            body_rows = [
                r
                for r in line_rows
                if not _BL_PREFIX_RE.match(r.shade)
                and any(t in r.type.lower() for t in _BODY_ROW_TYPES)
            ]
            body_row = next(
                (r for r in line_rows if r.shade == _BODY_FALLBACK_SHADE),
                body_rows[0] if body_rows else None,
            )
            replacement_shade = body_row.shade if body_row else _BODY_FALLBACK_SHADE
            layer["shade"] = replacement_shade
            replacements[original] = replacement_shade
            validation_alerts.append(
                f"Cor {original} é uma cor de esmalte e não pode ser usada como "
                f"corpo/dentina. Substituída por {replacement_shade}."
            )
            logger.warning("BL shade on body layer: %s -> %s", original, replacement_shade)

        if _Z350_RE.search(line) and _BL_SHADE_RE.match(layer["shade"]):
            original = layer["shade"]
            non_bl = [r for r in line_rows if not _BL_PREFIX_RE.match(r.shade)]
            if is_enamel:
                replacement = next((r for r in non_bl if r.shade == "A1E"), None) or next(
                    (r for r in non_bl if "esmalte" in r.type.lower()), None
                )
            else:
                replacement = next((r for r in non_bl if r.shade == "A1"), None) or (
                    non_bl[0] if non_bl else None
                )
            if replacement is not None:
                layer["shade"] = replacement.shade
                replacements[original] = replacement.shade
                validation_alerts.append(
                    f"Cor {original} NÃO EXISTE na linha Filtek Z350 XT. "
                    f"Substituída por {replacement.shade}."
                )
                logger.warning("Z350 has no BL shades: %s -> %s", original, replacement.shade)

        if is_enamel:
            enamel_rows = [r for r in line_rows if "esmalte" in r.type.lower()]
            shade_upper = layer["shade"].upper()
            is_universal = not any(m in shade_upper for m in _ENAMEL_MARKERS)
            if enamel_rows and is_universal:
                best = enamel_rows[0]
                for preferred in _PREFERRED_ENAMEL:
                    found = next(
                        (r for r in enamel_rows if preferred.upper() in r.shade.upper()), None
                    )
                    if found is not None:
                        best = found
                        break
                original = layer["shade"]
                # XLE-style enamel codes carry no marker and may already be the pick
                if best.shade != original:
                    layer["shade"] = best.shade
                    replacements[original] = best.shade
                    validation_alerts.append(
                        f"Camada de esmalte otimizada: {original} → {best.shade} "
                        "para máxima translucidez incisal."
                    )
                    logger.warning("Enamel layer %s -> %s for %s", original, best.shade, line)

        if whitening and line_without_bl is None:
            if not any(_BL_OR_BIANCO_RE.search(r.shade) for r in line_rows):
                line_without_bl = line

        if not any(r.shade == layer["shade"] for r in line_rows):
            if "opaco" in layer_type or "mascaramento" in layer_type:
                type_filter = "opaco"
            elif "dentina" in layer_type or "body" in layer_type:
                type_filter = "universal"
            elif is_enamel:
                type_filter = "esmalte"
            else:
                type_filter = ""

            if type_filter:
                alternatives = [r for r in line_rows if type_filter in r.type.lower()][:5]
            else:
                alternatives = line_rows[:5]

            if alternatives:
                original = layer["shade"]
                base = re.sub(r"[DE]$", "", re.sub(r"^O", "", original))
                closest = next((a for a in alternatives if base in a.shade), alternatives[0])
                layer["shade"] = closest.shade
                replacements[original] = closest.shade
                validation_alerts.append(
                    f"Cor {original} substituída por {closest.shade}: a cor original "
                    f"não está disponível na linha {line}."
                )
                logger.warning("Shade %s -> %s for %s", original, closest.shade, line)
            else:
                logger.warning(
                    "No catalog shades for %s, keeping %s", line, layer["shade"]
                )

    if whitening and line_without_bl:
        validation_alerts.append(
            f"A linha {line_without_bl} não possui cores BL (Bleach). Para atingir nível "
            "de clareamento Hollywood, considere linhas como Palfique LX5, Forma "
            "(Ultradent) ou Estelite Bianco que oferecem cores BL."
        )
        logger.warning("No BL shades in %s but patient wants whitening", line_without_bl)

    if tooth:
        layer_warning = validate_minimum_layer_count(layers, tooth, cavity_class)
        if layer_warning:
            validation_alerts.append(layer_warning)
            logger.warning("Tooth %s has %d layers", tooth, len(layers))

    if is_anterior_aesthetic(tooth, cavity_class) and len(layers) >= 3:
        if _inject_incisal_effects(layers):
            validation_alerts.append(
                "Camada opcional de Efeitos Incisais adicionada antes do esmalte final "
                "para caracterização incisal."
            )
            logger.info("Added incisal effects layer for tooth %s (%s)", tooth, cavity_class)

    checklist = protocol.get("checklist")
    if checklist and replacements:
        logger.info(
            "Applying %d shade replacements to checklist: %s", len(replacements), replacements
        )
        fixed_checklist = []
        for item in checklist:
            if isinstance(item, str):
                for original, replacement in replacements.items():
                    item = re.sub(rf"\b{re.escape(original)}\b", replacement, item)
            fixed_checklist.append(item)
        protocol["checklist"] = fixed_checklist

    if validation_alerts:
        existing: list[str] = protocol.get("alerts") or []
        new_alerts = [a for a in validation_alerts if not _is_bl_duplicate(a, existing)]
        protocol["alerts"] = [*existing, *new_alerts]

    return validation_alerts
