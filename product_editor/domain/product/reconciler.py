"""
Product reconciler.

Maps a fetched product record onto editable form values and the ordered
nutrient catalog. No I/O: image URLs are returned for the caller to
resolve.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

import structlog

from product_editor.domain.product.models import DataBasis, ImageField, ProductRecord
from product_editor.domain.product.nutrients import (
    NutrientEntry,
    Unit,
    format_nutrient_value,
)

logger = structlog.get_logger(__name__)


@dataclass
class ReconciledProduct:
    """Form values derived from one product record."""

    product_name: str
    brand: str
    categories: list[str]
    weight: str
    serving_size: str
    data_basis: DataBasis
    package_language: str
    selected_nutrient_ids: set[str] = field(default_factory=set)
    image_urls: dict[ImageField, Optional[str]] = field(default_factory=dict)

    def form_fields(self) -> dict[str, Any]:
        """Values keyed by form state field name."""
        return {
            "product_name": self.product_name,
            "brand": self.brand,
            "categories": list(self.categories),
            "weight": self.weight,
            "serving_size": self.serving_size,
            "data_basis": self.data_basis,
            "package_language": self.package_language,
            "selected_nutrient_ids": set(self.selected_nutrient_ids),
        }


class ProductReconciler:
    """
    Merges a product record into form values.

    Nutrient entries of the catalog are updated in place, in catalog
    order:
    - "<id>_unit" present and known → entry unit
    - "<id>_<basis>" numeric → entry value, expressed in the entry unit
    - displayInForm = isImportant = "<id>_<basis>" present
    - present ids join the selection, which never shrinks here

    Example:
        >>> catalog = [NutrientEntry(id="energy-kcal", name="Energy")]
        >>> record = ProductRecord(
        ...     code="3017620422003",
        ...     nutriments={"energy-kcal_100g": 250.0, "energy-kcal_unit": "kcal"},
        ... )
        >>> result = ProductReconciler(default_language="en").reconcile(record, catalog)
        >>> assert catalog[0].value == "250"
        >>> assert result.selected_nutrient_ids == {"energy-kcal"}
    """

    def __init__(self, default_language: str = "en") -> None:
        self.default_language = default_language

    def reconcile(
        self,
        record: ProductRecord,
        catalog: Sequence[NutrientEntry],
        selected_nutrient_ids: Iterable[str] = (),
    ) -> ReconciledProduct:
        """Reconcile record into form values.

        Args:
            record: Product as returned by the data client
            catalog: Ordered nutrients, mutated in place
            selected_nutrient_ids: Selection to extend

        Returns:
            Reconciled form values
        """
        data_basis = DataBasis.parse(record.nutrition_data_per)

        result = ReconciledProduct(
            product_name=record.product_name or "",
            brand=record.brands or "",
            categories=[record.categories] if record.categories else [],
            weight=record.quantity or "",
            serving_size=record.serving_size or "",
            data_basis=data_basis,
            package_language=record.lang or self.default_language,
            selected_nutrient_ids=set(selected_nutrient_ids),
            image_urls=record.image_urls(),
        )

        if record.nutriments is not None:
            self._merge_nutrients(record.nutriments, catalog, data_basis, result)

        logger.debug(
            "Product reconciled",
            barcode=record.code,
            data_basis=data_basis.value,
            selected=len(result.selected_nutrient_ids),
        )
        return result

    @staticmethod
    def _merge_nutrients(
        nutriments: dict[str, Any],
        catalog: Sequence[NutrientEntry],
        data_basis: DataBasis,
        result: ReconciledProduct,
    ) -> None:
        for entry in catalog:
            key = f"{entry.id}_{data_basis.value}"
            unit_key = f"{entry.id}_unit"

            unit_raw = nutriments.get(unit_key)
            if isinstance(unit_raw, str):
                unit = Unit.from_string(unit_raw)
                if unit is not None:
                    entry.current_unit = unit

            has_key = key in nutriments
            value = nutriments.get(key)
            if _is_amount(value):
                entry.value = format_nutrient_value(float(value))

            entry.display_in_form = has_key
            entry.is_important = has_key
            if has_key:
                result.selected_nutrient_ids.add(entry.id)


def _is_amount(value: Any) -> bool:
    # bool is an int subclass but never a nutrient amount
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
