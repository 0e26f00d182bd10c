"""Shared data models for the dental treatment protocol system."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, Text, func
from sqlmodel import Field, SQLModel


def _ts_col() -> Column:  # type: ignore[type-arg]
    """Create a created_at timestamp column with server default."""
    return Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


def _ts_col_update() -> Column:  # type: ignore[type-arg]
    """Create an updated_at timestamp column with server default and onupdate."""
    return Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class EvaluationStatus(str, Enum):
    """Evaluation processing status enum."""

    PENDING = "pending"
    COMPLETED = "completed"
    ERROR = "error"


class Resin(SQLModel, table=True):
    """Composite resin product in the recommendation catalog."""

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str = Field(index=True)
    manufacturer: str = Field()
    type: str = Field()
    opacity: str = Field()
    resistance: str = Field()
    polishing: str = Field()
    aesthetics: str = Field()
    price_range: str = Field(index=True)
    indications: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    description: str | None = Field(default=None, sa_column=Column(Text))
    created_at: datetime = Field(sa_column=_ts_col())


class Evaluation(SQLModel, table=True):
    """One tooth's case data and its generated treatment protocol.

    Protocol payloads are stored as JSON exactly as generated; only one of
    cementation_protocol / generic_protocol / stratification_protocol is
    expected to be set, depending on treatment_type.
    """

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    status: str = Field(default=EvaluationStatus.PENDING, index=True)
    treatment_type: str | None = Field(default=None, index=True)

    # Case data
    patient_name: str | None = Field(default=None)
    patient_age: str = Field(default="")
    tooth: str = Field(default="")
    region: str = Field(default="")
    cavity_class: str = Field(default="")
    restoration_size: str = Field(default="")
    tooth_color: str = Field(default="")
    aesthetic_level: str = Field(default="")
    aesthetic_goals: str | None = Field(default=None)
    budget: str = Field(default="padrão")
    bruxism: bool = Field(default=False)
    stratification_needed: bool = Field(default=False)

    # Recommendation
    resin_id: str | None = Field(default=None, foreign_key="resin.id", index=True)
    ideal_resin_id: str | None = Field(default=None, foreign_key="resin.id")
    ideal_reason: str | None = Field(default=None, sa_column=Column(Text))
    recommendation_text: str | None = Field(default=None, sa_column=Column(Text))
    is_from_inventory: bool = Field(default=False)

    # Protocol payloads
    cementation_protocol: Dict[str, Any] | None = Field(
        default=None, sa_column=Column(JSON)
    )
    generic_protocol: Dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    stratification_protocol: Dict[str, Any] | None = Field(
        default=None, sa_column=Column(JSON)
    )
    protocol_layers: List[Dict[str, Any]] | None = Field(
        default=None, sa_column=Column(JSON)
    )
    alerts: List[str] | None = Field(default=None, sa_column=Column(JSON))
    warnings: List[str] | None = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(sa_column=_ts_col())
    updated_at: datetime = Field(sa_column=_ts_col_update())
