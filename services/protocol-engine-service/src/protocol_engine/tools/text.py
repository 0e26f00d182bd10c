"""Text normalization shared by the lookup tables."""

from __future__ import annotations

import unicodedata


def strip_accents(text: str) -> str:
    """Remove combining marks: "Médio-alto" -> "Medio-alto"."""
    normalized = unicodedata.normalize("NFKD", text)
    return "".join(c for c in normalized if not unicodedata.combining(c))


def normalize_key(text: str | None) -> str:
    """Lowercased, accent-free, whitespace-trimmed lookup key."""
    return strip_accents((text or "").strip().lower())
