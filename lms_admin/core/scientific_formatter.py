"""Scientific-notation formatting for question, option and answer text.

The formatter runs on every edit rather than at display time, so the stored
value is always the rendered value. Rules are applied in a fixed order, each
one on the output of the previous:

1. ``^`` followed by digits becomes superscript digits (``x^2`` -> ``x²``).
2. ``_`` followed by digits becomes subscript digits (``H_2`` -> ``H₂``).
3. Digits typed right after a subscript glyph extend the subscript.
4. Digits typed right after a superscript glyph extend the superscript.
5. Element symbols followed by digits get subscripts (``H2O`` -> ``H₂O``).
6. A lowercase letter starting a word followed by digits gets a superscript
   (``x2`` -> ``x²``).

Only ASCII digits are ever matched, so converted glyphs are left alone. A
rule 6 conversion can create a word boundary in front of a later letter
(``a2b3``), which is why the pipeline is repeated until the text is stable.
The result is a fixed point: formatting formatted text changes nothing.
"""

from __future__ import annotations

import re

_SUBSCRIPT_DIGITS = "₀₁₂₃₄₅₆₇₈₉"
_SUPERSCRIPT_DIGITS = "⁰¹²³⁴⁵⁶⁷⁸⁹"

_TO_SUBSCRIPT = str.maketrans("0123456789", _SUBSCRIPT_DIGITS)
_TO_SUPERSCRIPT = str.maketrans("0123456789", _SUPERSCRIPT_DIGITS)

_CARET_DIGITS = re.compile(r"\^([0-9]+)")
_UNDERSCORE_DIGITS = re.compile(r"_([0-9]+)")
_SUBSCRIPT_THEN_DIGITS = re.compile(f"([{_SUBSCRIPT_DIGITS}])([0-9]+)")
_SUPERSCRIPT_THEN_DIGITS = re.compile(f"([{_SUPERSCRIPT_DIGITS}])([0-9]+)")
_ELEMENT_THEN_DIGITS = re.compile(r"([A-Z][a-z]?)([0-9]+)")
# ASCII word boundaries: a glyph in front of a letter counts as a boundary.
_VARIABLE_THEN_DIGITS = re.compile(r"\b([a-z])([0-9]+)", re.ASCII)


def to_subscript(digits: str) -> str:
    return digits.translate(_TO_SUBSCRIPT)


def to_superscript(digits: str) -> str:
    return digits.translate(_TO_SUPERSCRIPT)


def _apply_rules(text: str) -> str:
    text = _CARET_DIGITS.sub(lambda m: to_superscript(m.group(1)), text)
    text = _UNDERSCORE_DIGITS.sub(lambda m: to_subscript(m.group(1)), text)
    text = _SUBSCRIPT_THEN_DIGITS.sub(lambda m: m.group(1) + to_subscript(m.group(2)), text)
    text = _SUPERSCRIPT_THEN_DIGITS.sub(lambda m: m.group(1) + to_superscript(m.group(2)), text)
    text = _ELEMENT_THEN_DIGITS.sub(lambda m: m.group(1) + to_subscript(m.group(2)), text)
    text = _VARIABLE_THEN_DIGITS.sub(lambda m: m.group(1) + to_superscript(m.group(2)), text)
    return text


def format_scientific_text(text: str | None) -> str:
    """Render exponents and chemical formulas with Unicode digit glyphs."""
    if not text:
        return ""
    current = text
    while True:
        formatted = _apply_rules(current)
        if formatted == current:
            return formatted
        current = formatted
