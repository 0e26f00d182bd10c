"""Shared fixtures for protocol-engine-service tests."""

from __future__ import annotations

import pytest


@pytest.fixture
def layers() -> list[dict]:
    """Two stratification layers, deliberately out of order."""
    return [
        {"order": 2, "name": "Esmalte", "resin_brand": "3M - Filtek Z350 XT", "shade": "WE"},
        {"order": 1, "name": "Dentina", "resin_brand": "3M - Filtek Z350 XT", "shade": "A2B"},
    ]


@pytest.fixture
def resina_evaluation(layers) -> dict:
    """Resin evaluation with a full stratification protocol."""
    return {
        "treatment_type": "resina",
        "stratification_protocol": {
            "layers": layers,
            "alternative": {
                "resin": "Filtek Z350 XT",
                "shade": "A2",
                "technique": "Monocromatica",
                "tradeoff": "Menor naturalidade",
            },
            "checklist": ["Isolamento absoluto", "Condicionamento acido"],
            "confidence": "alta",
        },
        "alerts": ["Evitar bebidas com corante"],
        "warnings": ["Nao usar resina flow em borda incisal"],
        "resins": {
            "name": "Filtek Z350 XT",
            "manufacturer": "3M ESPE",
            "type": "Nanoparticulada",
            "price_range": "Premium",
        },
    }


@pytest.fixture
def porcelana_evaluation() -> dict:
    """Porcelain veneer evaluation with a cementation protocol."""
    return {
        "treatment_type": "porcelana",
        "cementation_protocol": {
            "ceramic_treatment": [
                {"order": 2, "step": "Silano", "material": "Silano", "time": "1 min"},
                {"order": 1, "step": "Acido fluoridrico", "material": "HF 10%", "time": "20 s"},
            ],
            "tooth_treatment": [
                {"order": 1, "step": "Condicionamento", "material": "Acido fosforico 37%"},
            ],
            "cementation": {
                "cement_type": "Fotopolimerizavel",
                "cement_brand": "Variolink Esthetic LC",
                "shade": "Neutral",
                "light_curing_time": "40s por face",
                "technique": "Remover excessos",
            },
            "finishing": [{"order": 1, "step": "Polimento", "material": "Borrachas"}],
            "post_operative": ["Evitar alimentos duros por 24h"],
            "checklist": ["Prova seca", "Prova umida"],
            "alerts": ["Controlar umidade"],
            "warnings": ["Nao usar cimento dual"],
            "confidence": "média",
        },
        "alerts": ["flat alert ignored for porcelain"],
        "warnings": ["flat warning ignored for porcelain"],
    }
