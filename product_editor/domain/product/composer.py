"""
Upload composer.

Serializes form state into the flat product upload payload.
"""

from __future__ import annotations

from typing import Optional

from product_editor.domain.product.form_state import FormState

# Sent for selected nutrients left blank; the server expects a comma decimal
EMPTY_NUTRIENT_VALUE = "0,0"


class UploadComposer:
    """Builds product upload payloads.

    Example:
        >>> state = FormState(default_language="en")
        >>> state.update(product_name="Nutella", categories=["Spreads"])
        >>> payload = UploadComposer().compose(state, "3017620422003")
        >>> assert payload["code"] == "3017620422003"
        >>> assert payload["categories"] == "Spreads"
    """

    def compose(
        self,
        state: FormState,
        barcode: str,
        extra: Optional[dict[str, str]] = None,
    ) -> dict[str, str]:
        """Compose the upload payload.

        Scalar fields are written first; nutrient keys and then extra
        keys never overwrite an existing key. extra is the extension
        point for additional upload fields (e.g. an edit comment), which
        go through the same existing key wins merge.

        Args:
            state: Form state to serialize
            barcode: Product barcode
            extra: Additional upload fields, merged last

        Returns:
            Payload mapping field name to value
        """
        payload = {
            "code": barcode,
            "product_name": state.product_name,
            "brands": state.brand,
            "lang": state.package_language,
            "quantity": state.weight,
            "serving_size": state.serving_size,
            "nutrition_data_per": state.data_basis.value,
            "categories": ",".join(state.categories),
        }

        selected = state.selected_nutrient_ids
        nutrients: dict[str, str] = {}
        for entry in state.ordered_nutrients:
            if entry.id not in selected:
                continue
            nutrients[f"nutriment_{entry.id}"] = entry.value or EMPTY_NUTRIENT_VALUE
            nutrients[f"nutriment_{entry.id}_unit"] = entry.current_unit.value

        _merge_keep_existing(payload, nutrients)
        if extra:
            _merge_keep_existing(payload, extra)
        return payload


def _merge_keep_existing(target: dict[str, str], source: dict[str, str]) -> None:
    for key, value in source.items():
        target.setdefault(key, value)
