"""Pydantic schemas for treatment-type catalog entries."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TreatmentStyle(BaseModel):
    """Presentation metadata (icon, label, CSS classes) for a treatment type."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    label: str
    label_key: str
    icon: str
    badge_variant: str
    bg_class: str
    border_class: str
    icon_class: str
    ring_class: str
    solid_bg_class: str
    glow_class: str
    overlay_color: str


class TreatmentConfig(BaseModel):
    """Labels and behaviour flags for a treatment type."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    key: str
    label: str
    short_label: str
    label_key: str
    short_label_key: str
    variant: str
    show_cavity_info: bool
    icon: str
