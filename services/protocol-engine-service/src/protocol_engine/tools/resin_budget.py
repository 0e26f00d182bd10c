"""Resin price tiers and budget filtering.

Catalog rows spell price ranges inconsistently ("Econômico" vs
"Economico"), so tiers are matched on an accent-free lowercase key.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from protocol_engine.schemas.protocol import Resin
from protocol_engine.tools.text import normalize_key

logger = logging.getLogger(__name__)

STANDARD_BUDGET = "padrão"
PREMIUM_BUDGET = "premium"

_TIER_BY_PRICE_RANGE = {
    "economico": "economico",
    "intermediario": "intermediario",
    "medio-alto": "medio_alto",
    "medio alto": "medio_alto",
    "premium": "premium",
}


class ResinGroups(BaseModel):
    """Resins grouped by price tier, cheapest first."""

    model_config = ConfigDict(frozen=True)

    economico: list[Resin] = Field(default_factory=list)
    intermediario: list[Resin] = Field(default_factory=list)
    medio_alto: list[Resin] = Field(default_factory=list)
    premium: list[Resin] = Field(default_factory=list)


def price_tier(resin: Resin) -> str | None:
    """Return the tier field name for a resin, or None if unrecognized."""
    return _TIER_BY_PRICE_RANGE.get(normalize_key(resin.price_range))


def group_resins_by_price(resins: Iterable[Resin]) -> ResinGroups:
    """Split a catalog into price tiers. Unknown price ranges are dropped."""
    groups: dict[str, list[Resin]] = {
        "economico": [],
        "intermediario": [],
        "medio_alto": [],
        "premium": [],
    }
    for resin in resins:
        tier = price_tier(resin)
        if tier is None:
            logger.debug("Resin %s has unknown price range %r", resin.name, resin.price_range)
            continue
        groups[tier].append(resin)
    return ResinGroups(**groups)


def is_budget_appropriate(resin: Resin, budget: str) -> bool:
    """Whether a resin fits the patient's budget.

    The premium budget accepts any tier. Every other budget, including
    unrecognized values, is treated as the standard budget, which excludes
    premium resins.
    """
    if normalize_key(budget) == PREMIUM_BUDGET:
        return True
    return price_tier(resin) != "premium"


def filter_budget_appropriate(resins: Iterable[Resin], budget: str) -> list[Resin]:
    """Keep the resins that fit the budget, preserving order."""
    return [r for r in resins if is_budget_appropriate(r, budget)]
