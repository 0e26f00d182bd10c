"""Tests for the treatment-type catalog (config/treatments.yaml)."""

from __future__ import annotations

import pytest

from protocol_engine.tools.treatment_config import (
    SPECIAL_TREATMENT_TYPES,
    TREATMENT_TYPES,
    format_tooth_label,
    get_treatment_config,
    get_treatment_style,
    is_special_treatment_type,
    list_treatments,
    normalize_treatment_type,
)


class TestTreatmentConfig:
    """get_treatment_config() / get_treatment_style()."""

    @pytest.mark.parametrize("treatment_type", TREATMENT_TYPES)
    def test_every_type_has_config_and_style(self, treatment_type) -> None:
        config = get_treatment_config(treatment_type)
        style = get_treatment_style(treatment_type)
        assert config.key == treatment_type
        assert config.label
        assert style.label
        assert style.icon == config.icon

    def test_i18n_keys(self) -> None:
        config = get_treatment_config("porcelana")
        assert config.label_key == "treatments.porcelana.label"
        assert config.short_label_key == "treatments.porcelana.shortLabel"
        assert get_treatment_style("porcelana").label_key == "treatments.porcelana.styleLabel"

    def test_only_resina_shows_cavity_info(self) -> None:
        shown = [t for t in TREATMENT_TYPES if get_treatment_config(t).show_cavity_info]
        assert shown == ["resina"]

    @pytest.mark.parametrize("treatment_type", [None, "", "clareamento"])
    def test_unknown_falls_back_to_resina(self, treatment_type) -> None:
        assert get_treatment_config(treatment_type).key == "resina"
        assert get_treatment_style(treatment_type).label == "Restauração em Resina"

    def test_lookups_are_cached(self) -> None:
        assert get_treatment_style("coroa") is get_treatment_style("coroa")

    def test_list_treatments_in_canonical_order(self) -> None:
        keys = [config.key for config, _ in list_treatments()]
        assert keys == list(TREATMENT_TYPES)


class TestNormalizeTreatmentType:
    """normalize_treatment_type()."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("resina", "resina"),
            ("Porcelain", "porcelana"),
            ("  crown ", "coroa"),
            ("IMPLANT", "implante"),
            ("root_canal", "endodontia"),
            ("referral", "encaminhamento"),
            ("gingivoplasty", "gengivoplastia"),
            ("root_coverage", "recobrimento_radicular"),
        ],
    )
    def test_aliases(self, raw, expected) -> None:
        assert normalize_treatment_type(raw) == expected

    def test_unknown_is_lowercased(self) -> None:
        assert normalize_treatment_type(" Clareamento ") == "clareamento"


class TestSpecialTypes:
    """is_special_treatment_type()."""

    def test_resina_and_porcelana_are_not_special(self) -> None:
        assert is_special_treatment_type("resina") is False
        assert is_special_treatment_type("porcelana") is False
        assert is_special_treatment_type(None) is False

    def test_special_set(self) -> None:
        assert set(SPECIAL_TREATMENT_TYPES) == set(TREATMENT_TYPES) - {"resina", "porcelana"}


class TestFormatToothLabel:
    """format_tooth_label()."""

    def test_tooth_number(self) -> None:
        assert format_tooth_label("11") == "Dente 11"

    def test_gingiva(self) -> None:
        assert format_tooth_label("GENGIVO") == "Gengiva"

    def test_translate_callback(self) -> None:
        calls = []

        def translate(key: str, **kwargs) -> str:
            calls.append((key, kwargs))
            return f"<{key}>"

        assert format_tooth_label("21", translate) == "<toothLabel.tooth>"
        assert format_tooth_label("GENGIVO", translate) == "<toothLabel.gingiva>"
        assert calls == [("toothLabel.tooth", {"number": "21"}), ("toothLabel.gingiva", {})]
