"""Confidence level lookup for result screens and the protocol report."""

from __future__ import annotations

from dataclasses import dataclass

from protocol_engine.tools.text import normalize_key

RGB = tuple[int, int, int]


@dataclass(frozen=True)
class ConfidenceConfig:
    """Display settings for a protocol confidence level.

    Attributes:
        level: Canonical level ("alta", "média", "baixa").
        label: Display label.
        pdf_label: ASCII-only label for the report (report fonts lack accents).
        pdf_color: Text colour in the report.
        pdf_bg_color: Badge background colour in the report.
    """

    level: str
    label: str
    pdf_label: str
    pdf_color: RGB
    pdf_bg_color: RGB


_CONFIDENCE_LEVELS: dict[str, ConfidenceConfig] = {
    "alta": ConfidenceConfig(
        level="alta",
        label="Alta",
        pdf_label="ALTA",
        pdf_color=(22, 101, 52),
        pdf_bg_color=(220, 252, 231),
    ),
    "média": ConfidenceConfig(
        level="média",
        label="Média",
        pdf_label="MEDIA",
        pdf_color=(133, 77, 14),
        pdf_bg_color=(254, 249, 195),
    ),
    "baixa": ConfidenceConfig(
        level="baixa",
        label="Baixa",
        pdf_label="BAIXA",
        pdf_color=(185, 28, 28),
        pdf_bg_color=(254, 226, 226),
    ),
}

_ASCII_KEYS = {"alta": "alta", "media": "média", "baixa": "baixa"}


def get_confidence_config(level: str | None) -> ConfidenceConfig:
    """Return display settings for a confidence level.

    Matching ignores case and accents ("MEDIA" == "média"). Free-form or
    missing levels fall back to "média".
    """
    key = normalize_key(level)
    canonical = _ASCII_KEYS.get(key, "média")
    return _CONFIDENCE_LEVELS[canonical]
