"""
Shared value objects.

Immutable, validated domain primitives.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Barcode(BaseModel):
    """
    Product barcode value object.

    Opaque lookup key: EAN/UPC codes as well as short store codes are
    passed to the data client as given. Only blank input is rejected.

    Example:
        >>> barcode = Barcode.from_string(" 3017620422003 ")
        >>> assert str(barcode) == "3017620422003"
    """

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., min_length=1, description="Barcode as entered")

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_string(cls, s: str) -> Barcode:
        """Create from string, tolerating surrounding whitespace."""
        return cls(value=s.strip())
