"""Tests for the Barcode value object."""

import pydantic
import pytest

from product_editor.domain.shared.value_objects import Barcode


class TestBarcode:
    """Test Barcode parsing."""

    @pytest.mark.parametrize("raw", ["3017620422003", "12345678", "1234", "2000000012345678"])
    def test_any_non_blank_code_accepted(self, raw: str) -> None:
        assert Barcode.from_string(raw).value == raw

    def test_whitespace_stripped(self) -> None:
        assert str(Barcode.from_string("  3017620422003\n")) == "3017620422003"

    @pytest.mark.parametrize("raw", ["", "   ", "\n"])
    def test_blank_rejected(self, raw: str) -> None:
        with pytest.raises(pydantic.ValidationError):
            Barcode.from_string(raw)

    def test_frozen(self) -> None:
        barcode = Barcode(value="3017620422003")
        with pytest.raises(pydantic.ValidationError):
            barcode.value = "1234"  # type: ignore[misc]
