"""Tests for shade validation against the resin shade catalog."""

from __future__ import annotations

import logging

import pytest

from protocol_engine.tools.shade_validation import (
    ShadeCatalogRow,
    get_target_shade,
    validate_and_fix_protocol_layers,
    validate_minimum_layer_count,
    wants_whitening,
)

Z350 = "Filtek Z350 XT"

Z350_ROWS = [
    ShadeCatalogRow("A1", "universal", Z350),
    ShadeCatalogRow("A2", "universal", Z350),
    ShadeCatalogRow("A2B", "universal", Z350),
    ShadeCatalogRow("A1E", "esmalte", Z350),
    ShadeCatalogRow("WE", "esmalte", Z350),
    ShadeCatalogRow("CT", "esmalte", Z350),
    ShadeCatalogRow("A2D", "dentina", Z350),
]

HARMONIZE_ROWS = [
    ShadeCatalogRow("XLE", "esmalte", "Harmonize"),
    ShadeCatalogRow("A2", "universal", "Harmonize"),
]


class FakeCatalog:
    """Records the product lines requested and serves fixed rows."""

    def __init__(self, rows: list[ShadeCatalogRow]) -> None:
        self.rows = rows
        self.calls: list[set[str]] = []

    def __call__(self, product_lines: set[str]) -> list[ShadeCatalogRow]:
        self.calls.append(set(product_lines))
        return self.rows


def _layer(name: str, shade: str, brand: str = f"3M - {Z350}", order: int = 1) -> dict:
    return {"order": order, "name": name, "resin_brand": brand, "shade": shade}


class TestValidateAndFix:
    """validate_and_fix_protocol_layers()."""

    def test_valid_protocol_is_untouched(self) -> None:
        protocol = {
            "layers": [_layer("Dentina", "A2B"), _layer("Esmalte", "WE", order=2)],
            "checklist": ["Aplicar A2B", "Aplicar WE"],
        }
        catalog = FakeCatalog(Z350_ROWS)
        alerts = validate_and_fix_protocol_layers(protocol, None, catalog)
        assert alerts == []
        assert [layer["shade"] for layer in protocol["layers"]] == ["A2B", "WE"]
        assert protocol["checklist"] == ["Aplicar A2B", "Aplicar WE"]
        assert "alerts" not in protocol

    def test_catalog_called_once_with_product_lines(self) -> None:
        protocol = {
            "layers": [
                _layer("Dentina", "A2B"),
                _layer("Esmalte", "XLE", brand="Kerr - Harmonize", order=2),
            ]
        }
        catalog = FakeCatalog(Z350_ROWS + HARMONIZE_ROWS)
        validate_and_fix_protocol_layers(protocol, None, catalog)
        assert catalog.calls == [{Z350, "Harmonize"}]

    def test_catalog_not_called_without_layers_brands(self) -> None:
        catalog = FakeCatalog(Z350_ROWS)
        validate_and_fix_protocol_layers({"layers": [{"shade": "A2"}]}, None, catalog)
        assert catalog.calls == []

    @pytest.mark.parametrize("protocol", [None, {}, {"layers": "A2"}])
    def test_missing_layers_is_a_no_op(self, protocol) -> None:
        assert validate_and_fix_protocol_layers(protocol, None, FakeCatalog([])) == []

    def test_z350_wt_becomes_ct(self) -> None:
        protocol = {
            "layers": [_layer("Efeito incisal", "WT")],
            "checklist": ["Aplicar WT na borda"],
        }
        validate_and_fix_protocol_layers(protocol, None, FakeCatalog(Z350_ROWS))
        assert protocol["layers"][0]["shade"] == "CT"
        assert protocol["checklist"] == ["Aplicar CT na borda"]

    def test_z350_bl_on_enamel_is_replaced_then_optimized(self, caplog) -> None:
        protocol = {
            "layers": [_layer("Esmalte vestibular", "BL1")],
            "checklist": ["Aplicar BL1 na face vestibular"],
        }
        with caplog.at_level(logging.WARNING):
            alerts = validate_and_fix_protocol_layers(protocol, None, FakeCatalog(Z350_ROWS))
        assert protocol["layers"][0]["shade"] == "WE"
        assert alerts == [
            "Cor BL1 NÃO EXISTE na linha Filtek Z350 XT. Substituída por A1E.",
            "Camada de esmalte otimizada: A1E → WE para máxima translucidez incisal.",
        ]
        assert protocol["checklist"] == ["Aplicar WE na face vestibular"]
        assert "BL1" in caplog.text

    def test_enamel_shade_without_marker_becomes_we(self) -> None:
        protocol = {"layers": [_layer("Esmalte", "A1E")]}
        alerts = validate_and_fix_protocol_layers(protocol, None, FakeCatalog(Z350_ROWS))
        assert protocol["layers"][0]["shade"] == "WE"
        assert alerts == [
            "Camada de esmalte otimizada: A1E → WE para máxima translucidez incisal."
        ]

    def test_mixed_case_markers_never_match(self) -> None:
        line = "Empress Direct"
        rows = [
            ShadeCatalogRow("Trans 20", "esmalte", line),
            ShadeCatalogRow("Opal", "esmalte", line),
        ]
        protocol = {"layers": [_layer("Esmalte", "Opal", brand=f"Ivoclar - {line}")]}
        validate_and_fix_protocol_layers(protocol, None, FakeCatalog(rows))
        assert protocol["layers"][0]["shade"] == "Trans 20"

    def test_marker_less_enamel_already_preferred_is_kept(self) -> None:
        protocol = {"layers": [_layer("Esmalte", "XLE", brand="Kerr - Harmonize")]}
        alerts = validate_and_fix_protocol_layers(protocol, None, FakeCatalog(HARMONIZE_ROWS))
        assert protocol["layers"][0]["shade"] == "XLE"
        assert alerts == []

    def test_z350_bl_on_body_without_wb_uses_first_body_row(self) -> None:
        protocol = {"layers": [_layer("Dentina", "BL2")]}
        alerts = validate_and_fix_protocol_layers(protocol, None, FakeCatalog(Z350_ROWS))
        assert protocol["layers"][0]["shade"] == "A1"
        assert alerts == [
            "Cor BL2 é uma cor de esmalte e não pode ser usada como corpo/dentina. "
            "Substituída por A1."
        ]

    def test_universal_shade_on_enamel_is_optimized(self) -> None:
        protocol = {"layers": [_layer("Esmalte", "A2")]}
        alerts = validate_and_fix_protocol_layers(protocol, None, FakeCatalog(Z350_ROWS))
        assert protocol["layers"][0]["shade"] == "WE"
        assert alerts == [
            "Camada de esmalte otimizada: A2 → WE para máxima translucidez incisal."
        ]

    def test_proximal_ridge_outside_harmonize_is_flagged(self) -> None:
        protocol = {"layers": [_layer("Cristas proximais", "A2")]}
        alerts = validate_and_fix_protocol_layers(protocol, None, FakeCatalog(Z350_ROWS))
        assert alerts[0].startswith("Cristas Proximais: Filtek Z350 XT (A2) não é ideal.")

    def test_proximal_ridge_with_harmonize_is_accepted(self) -> None:
        protocol = {"layers": [_layer("Cristas proximais", "XLE", brand="Kerr - Harmonize")]}
        alerts = validate_and_fix_protocol_layers(protocol, None, FakeCatalog(HARMONIZE_ROWS))
        assert alerts == []

    def test_proximal_ridge_with_z350_we_is_accepted(self) -> None:
        protocol = {"layers": [_layer("Cristas proximais", "WE")]}
        assert validate_and_fix_protocol_layers(protocol, None, FakeCatalog(Z350_ROWS)) == []

    def test_missing_shade_replaced_by_type_filtered_alternative(self) -> None:
        protocol = {
            "layers": [_layer("Dentina", "A3")],
            "checklist": ["Inserir A3 em incrementos", "Evitar DA3 aqui"],
        }
        alerts = validate_and_fix_protocol_layers(protocol, None, FakeCatalog(Z350_ROWS))
        assert protocol["layers"][0]["shade"] == "A1"
        assert alerts == [
            "Cor A3 substituída por A1: a cor original não está disponível na linha "
            "Filtek Z350 XT."
        ]
        # word-boundary replacement leaves DA3 alone
        assert protocol["checklist"] == ["Inserir A1 em incrementos", "Evitar DA3 aqui"]

    def test_closest_alternative_shares_base_shade(self) -> None:
        protocol = {"layers": [_layer("Opaco", "OA2")]}
        rows = [
            ShadeCatalogRow("OA1", "opaco", Z350),
            ShadeCatalogRow("OA2 Plus", "opaco", Z350),
        ]
        validate_and_fix_protocol_layers(protocol, None, FakeCatalog(rows))
        assert protocol["layers"][0]["shade"] == "OA2 Plus"

    def test_unknown_line_keeps_shade(self) -> None:
        protocol = {"layers": [_layer("Dentina", "A2", brand="Marca - Linha Nova")]}
        alerts = validate_and_fix_protocol_layers(protocol, None, FakeCatalog(Z350_ROWS))
        assert alerts == []
        assert protocol["layers"][0]["shade"] == "A2"

    def test_whitening_without_bl_line_adds_single_alert(self) -> None:
        protocol = {
            "layers": [_layer("Dentina", "A2B"), _layer("Esmalte", "WE", order=2)],
            "alerts": ["Controlar umidade"],
        }
        alerts = validate_and_fix_protocol_layers(
            protocol, "Sorriso Hollywood", FakeCatalog(Z350_ROWS)
        )
        assert len(alerts) == 1
        assert alerts[0].startswith("A linha Filtek Z350 XT não possui cores BL (Bleach).")
        assert protocol["alerts"] == ["Controlar umidade", alerts[0]]

    def test_bl_alert_not_duplicated(self) -> None:
        protocol = {
            "layers": [_layer("Dentina", "A2B")],
            "alerts": ["Linha sem cores BL disponiveis"],
        }
        validate_and_fix_protocol_layers(protocol, "bl2", FakeCatalog(Z350_ROWS))
        assert protocol["alerts"] == ["Linha sem cores BL disponiveis"]

    def test_whitening_satisfied_by_bianco_shades(self) -> None:
        line = "Estelite Omega"
        rows = [ShadeCatalogRow("Bianco", "universal", line), ShadeCatalogRow("A1", "universal", line)]
        protocol = {"layers": [_layer("Dentina", "A1", brand=f"Tokuyama - {line}")]}
        assert validate_and_fix_protocol_layers(protocol, "intenso", FakeCatalog(rows)) == []


class TestBleachShadeOnBody:
    """Bleach shades are never kept on body or dentin layers."""

    ROWS = [*Z350_ROWS, ShadeCatalogRow("WB", "body", Z350)]

    @pytest.mark.parametrize(
        "name,shade", [("Dentina", "BL1"), ("Corpo", "BL2"), ("Body", "BL3")]
    )
    def test_replaced_by_wb(self, name, shade) -> None:
        protocol = {
            "layers": [_layer(name, shade)],
            "checklist": [f"Aplicar {shade} no corpo"],
        }
        alerts = validate_and_fix_protocol_layers(protocol, None, FakeCatalog(self.ROWS))
        assert protocol["layers"][0]["shade"] == "WB"
        assert protocol["checklist"] == ["Aplicar WB no corpo"]
        assert "esmalte" in alerts[0] and "corpo" in alerts[0]

    def test_any_product_line(self) -> None:
        line = "Palfique LX5"
        rows = [
            ShadeCatalogRow("BL1", "universal", line),
            ShadeCatalogRow("A2", "universal", line),
        ]
        protocol = {"layers": [_layer("Dentina", "BL1", brand=f"Tokuyama - {line}")]}
        validate_and_fix_protocol_layers(protocol, None, FakeCatalog(rows))
        assert protocol["layers"][0]["shade"] == "A2"

    def test_empty_catalog_falls_back_to_wb(self) -> None:
        protocol = {"layers": [_layer("Dentina", "BL2")]}
        validate_and_fix_protocol_layers(protocol, None, FakeCatalog([]))
        assert protocol["layers"][0]["shade"] == "WB"

    def test_no_body_rows_falls_back_to_wb(self) -> None:
        rows = [ShadeCatalogRow("WE", "esmalte", Z350), ShadeCatalogRow("CT", "esmalte", Z350)]
        protocol = {"layers": [_layer("Dentina", "BL1")]}
        validate_and_fix_protocol_layers(protocol, None, FakeCatalog(rows))
        assert protocol["layers"][0]["shade"] == "WB"

    def test_bl_on_enamel_is_not_a_body_rule(self) -> None:
        protocol = {"layers": [_layer("Esmalte", "BL1")]}
        alerts = validate_and_fix_protocol_layers(protocol, None, FakeCatalog(self.ROWS))
        assert not any("corpo/dentina" in a for a in alerts)


class TestMinimumLayerCount:
    """validate_minimum_layer_count()."""

    def test_anterior_aesthetic_needs_three(self) -> None:
        warning = validate_minimum_layer_count(
            [{"name": "Dentina"}, {"name": "Esmalte"}], "11", "Classe IV"
        )
        assert warning is not None
        assert "3" in warning

    def test_anterior_aesthetic_with_three_is_fine(self) -> None:
        layers = [{"name": "Dentina"}, {"name": "Translucidez"}, {"name": "Esmalte"}]
        assert validate_minimum_layer_count(layers, "21", "Classe III") is None

    def test_posterior_with_two_is_fine(self) -> None:
        layers = [{"name": "Dentina"}, {"name": "Esmalte"}]
        assert validate_minimum_layer_count(layers, "36", "Classe II") is None

    def test_posterior_with_one_needs_two(self) -> None:
        warning = validate_minimum_layer_count([{"name": "Dentina"}], "46", "Classe I")
        assert warning is not None
        assert "2" in warning

    def test_premolar_aesthetic_class_counts_as_posterior(self) -> None:
        layers = [{"name": "Dentina"}, {"name": "Esmalte"}]
        assert validate_minimum_layer_count(layers, "14", "Classe III") is None

    def test_no_layers(self) -> None:
        assert validate_minimum_layer_count(None, "11", "Classe IV") is None

    def test_warning_added_to_alerts_when_tooth_given(self) -> None:
        protocol = {"layers": [_layer("Dentina", "A2B"), _layer("Esmalte", "WE", order=2)]}
        alerts = validate_and_fix_protocol_layers(
            protocol, None, FakeCatalog(Z350_ROWS), tooth="11", cavity_class="Classe IV"
        )
        assert alerts == [
            "Protocolo com 2 camada(s): casos estéticos anteriores exigem no mínimo 3 camadas."
        ]
        assert protocol["alerts"] == alerts


class TestIncisalEffects:
    """Optional incisal effects layer for anterior aesthetic cases."""

    @staticmethod
    def _three_layers(last: str = "Esmalte Vestibular Final") -> list[dict]:
        return [
            _layer("Dentina", "A2D", order=1),
            _layer("Translucidez", "CT", order=2),
            _layer(last, "WE", order=3),
        ]

    def _names(self, protocol: dict) -> list[str]:
        return [layer["name"] for layer in protocol["layers"]]

    def test_injected_before_vestibular_enamel(self) -> None:
        protocol = {"layers": self._three_layers()}
        alerts = validate_and_fix_protocol_layers(
            protocol, None, FakeCatalog(Z350_ROWS), tooth="11", cavity_class="Classe IV"
        )
        assert self._names(protocol) == [
            "Dentina",
            "Translucidez",
            "Efeitos Incisais",
            "Esmalte Vestibular Final",
        ]
        effects = protocol["layers"][2]
        assert effects["optional"] is True
        assert effects["shade"] == "White"
        assert any("efeitos incisais" in a.lower() for a in alerts)
        assert not any("bl" in a.lower() for a in alerts)

    def test_orders_are_renumbered(self) -> None:
        protocol = {"layers": self._three_layers()}
        validate_and_fix_protocol_layers(
            protocol,
            None,
            FakeCatalog(Z350_ROWS),
            tooth="21",
            cavity_class="Fechamento de Diastema",
        )
        assert [layer["order"] for layer in protocol["layers"]] == [1, 2, 3, 4]

    def test_injected_before_last_enamel_without_vestibular(self) -> None:
        protocol = {"layers": self._three_layers(last="Esmalte Final")}
        validate_and_fix_protocol_layers(
            protocol, None, FakeCatalog(Z350_ROWS), tooth="21", cavity_class="Faceta Direta"
        )
        assert self._names(protocol)[2:] == ["Efeitos Incisais", "Esmalte Final"]

    def test_appended_without_enamel_layer(self) -> None:
        protocol = {"layers": self._three_layers(last="Acabamento")}
        validate_and_fix_protocol_layers(
            protocol, None, FakeCatalog(Z350_ROWS), tooth="12", cavity_class="Classe III"
        )
        assert self._names(protocol)[-1] == "Efeitos Incisais"

    def test_not_duplicated(self) -> None:
        layers = self._three_layers()
        layers.insert(
            2,
            _layer("Efeitos Incisais (corante)", "White", brand="Ivoclar - Empress Direct Color"),
        )
        protocol = {"layers": layers}
        validate_and_fix_protocol_layers(
            protocol, None, FakeCatalog(Z350_ROWS), tooth="11", cavity_class="Classe IV"
        )
        assert sum("efeito" in name.lower() for name in self._names(protocol)) == 1

    @pytest.mark.parametrize(
        "tooth,cavity_class", [("36", "Classe II"), ("14", "Classe III"), ("11", "Classe I")]
    )
    def test_not_injected_outside_anterior_aesthetic(self, tooth, cavity_class) -> None:
        protocol = {"layers": self._three_layers()}
        validate_and_fix_protocol_layers(
            protocol, None, FakeCatalog(Z350_ROWS), tooth=tooth, cavity_class=cavity_class
        )
        assert "Efeitos Incisais" not in self._names(protocol)

    def test_not_injected_below_three_layers(self) -> None:
        protocol = {"layers": [_layer("Dentina", "A2D"), _layer("Esmalte", "WE", order=2)]}
        validate_and_fix_protocol_layers(
            protocol, None, FakeCatalog(Z350_ROWS), tooth="11", cavity_class="Classe IV"
        )
        assert "Efeitos Incisais" not in self._names(protocol)

    def test_not_injected_without_tooth(self) -> None:
        protocol = {"layers": self._three_layers()}
        validate_and_fix_protocol_layers(protocol, None, FakeCatalog(Z350_ROWS))
        assert len(protocol["layers"]) == 3


class TestWhitening:
    """wants_whitening() and get_target_shade()."""

    @pytest.mark.parametrize("goal", ["Hollywood", "quero BL1", "intenso", "Notável"])
    def test_wants_whitening(self, goal) -> None:
        assert wants_whitening(goal)

    @pytest.mark.parametrize("goal", [None, "", "natural"])
    def test_does_not_want_whitening(self, goal) -> None:
        assert not wants_whitening(goal)

    def test_target_bleach_range(self) -> None:
        target = get_target_shade("hollywood", "A2")
        assert target.shade == "BL1/BL2/BL3"
        assert target.is_target is True
        assert target.already_in_range is False

    def test_target_bleach_already_in_range(self) -> None:
        assert get_target_shade("intenso", " bl2 ").already_in_range is True

    def test_target_natural_range(self) -> None:
        target = get_target_shade("natural", "a1")
        assert target.shade == "A1/A2/B1"
        assert target.already_in_range is True

    def test_legacy_white_goal(self) -> None:
        assert get_target_shade("white", "A3").shade == "BL1/BL2/BL3"

    @pytest.mark.parametrize("goal", [None, "", "sem preferencia"])
    def test_no_target(self, goal) -> None:
        target = get_target_shade(goal, "A3")
        assert target.shade == "A3"
        assert target.is_target is False
