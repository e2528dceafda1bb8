import pytest

from lms_admin.core.scientific_formatter import format_scientific_text, to_subscript, to_superscript


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("H2O", "H₂O"),
        ("x^2", "x²"),
        ("Ca2+", "Ca₂+"),
        ("CO2", "CO₂"),
        ("Fe2O3", "Fe₂O₃"),
        ("H_2O", "H₂O"),
        ("10^23", "10²³"),
        ("x2 + y2", "x² + y²"),
        ("x^2 + y^2 = r^2", "x² + y² = r²"),
    ],
)
def test_formats_exponents_and_formulas(raw, expected):
    assert format_scientific_text(raw) == expected


def test_digits_after_glyph_extend_the_glyph():
    assert format_scientific_text("H₂3") == "H₂₃"
    assert format_scientific_text("x²5") == "x²⁵"


def test_word_internal_digits_are_left_alone():
    assert format_scientific_text("version2") == "version2"
    assert format_scientific_text("The answer is 42") == "The answer is 42"


def test_chained_variables_reach_a_fixed_point():
    assert format_scientific_text("a2b3") == "a²b³"


@pytest.mark.parametrize("raw", ["H2O", "a2b3", "x^2_3", "Ca2+ + 2e-", "ab12cd34", "Na2SO4 and x^10", ""])
def test_formatting_is_idempotent(raw):
    once = format_scientific_text(raw)
    assert format_scientific_text(once) == once


def test_empty_and_missing_text():
    assert format_scientific_text("") == ""
    assert format_scientific_text(None) == ""


def test_digit_translation_helpers():
    assert to_subscript("2024") == "₂₀₂₄"
    assert to_superscript("19") == "¹⁹"
