"""
Nutrient catalog entries.

An ordered nutrient carries the editable value of one nutrient together
with the unit it is currently expressed in.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class Unit(str, Enum):
    """Nutrient units. Values are the raw codes sent to the server."""

    G = "g"
    MILLI_G = "mg"
    MICRO_G = "µg"
    KCAL = "kcal"
    KJ = "kJ"
    PERCENT = "%"
    PERCENT_DV = "% DV"
    IU = "IU"
    MILLI_L = "ml"

    @classmethod
    def from_string(cls, raw: str) -> Optional[Unit]:
        """Parse a raw server unit code.

        Only exact codes match, so a parsed unit always serializes back
        to the code it was read from.

        Returns:
            Matching unit or None when unknown

        Example:
            >>> assert Unit.from_string("mg") is Unit.MILLI_G
            >>> assert Unit.from_string("mcg") is None
        """
        try:
            return cls(raw)
        except ValueError:
            return None


def format_nutrient_value(value: float) -> str:
    """Render a number for the edit form.

    Uses the shortest decimal that reads back as the same float, in
    positional notation.

    Example:
        >>> format_nutrient_value(250.0)
        '250'
        >>> format_nutrient_value(0.0000004)
        '0.0000004'
    """
    text = format(Decimal(repr(value)).normalize(), "f")
    if text == "-0":
        return "0"
    return text


@dataclass
class NutrientEntry:
    """
    One nutrient of the ordered catalog.

    Mutated in place by reconciliation and by form edits; the catalog
    list owns its entries. The value is always expressed in
    current_unit.

    Attributes:
        id: Nutrient id (e.g. "energy-kcal", "proteins")
        name: Display name
        current_unit: Unit the value is expressed in
        value: String encoded number, may be empty
        display_in_form: Shown in the edit form
        is_important: Highlighted as a key nutrient
    """

    id: str
    name: str
    current_unit: Unit = Unit.G
    value: str = ""
    display_in_form: bool = False
    is_important: bool = False
