"""
Observable product page form state.

Single-writer state container: the page controller mutates it on the
thread that owns the event loop, presentation code subscribes to change
notifications and reads fields through read-only properties.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional

import structlog

from product_editor.domain.product.models import (
    EMPTY_IMAGE,
    DataBasis,
    ErrorInfo,
    ImageData,
    ImageField,
    NutrientMetadata,
    PageMode,
    PageState,
    empty_images,
)
from product_editor.domain.product.nutrients import NutrientEntry, Unit
from product_editor.domain.shared.errors import OwnershipError, ValidationError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FormStateChanged:
    """Notification sent to observers after one atomic update."""

    fields: frozenset[str]


Observer = Callable[[FormStateChanged], None]

EDITABLE_FIELDS = frozenset(
    {
        "product_name",
        "brand",
        "categories",
        "weight",
        "serving_size",
        "data_basis",
        "package_language",
    }
)

_PAGE_FIELDS = frozenset(
    {
        "page_state",
        "page_mode",
        "is_initialised",
        "is_product_just_uploaded",
        "ordered_nutrients",
        "nutrient_metadata",
        "selected_nutrient_ids",
        "images",
        "error_info",
        "submitted_payload",
    }
)

ALL_FIELDS = EDITABLE_FIELDS | _PAGE_FIELDS


class FormState:
    """
    State of one product page visit.

    Every mutation goes through update() (or update_nutrient()), which
    applies all changes before notifying observers once, so observers
    never see a half applied update.

    Invariants:
    - images has an entry for every ImageField (EMPTY_IMAGE when absent)
    - selected_nutrient_ids is a subset of the ordered nutrient ids
    - mutations only happen on the owner thread

    Example:
        >>> state = FormState(default_language="en")
        >>> seen = []
        >>> state.subscribe(seen.append)
        >>> state.update(product_name="Nutella", weight="750 g")
        >>> assert seen[0].fields == {"product_name", "weight"}
    """

    def __init__(self, default_language: str = "en") -> None:
        self._default_language = default_language
        self._owner_thread = threading.get_ident()
        self._observers: list[Observer] = []
        self._values: dict[str, Any] = self.default_values()

    def default_values(self) -> dict[str, Any]:
        """Values of a freshly opened page."""
        return {
            "page_state": PageState.LOADING,
            "page_mode": PageMode.VIEW,
            "is_initialised": False,
            "is_product_just_uploaded": False,
            "ordered_nutrients": [],
            "nutrient_metadata": None,
            "product_name": "",
            "brand": "",
            "categories": [],
            "weight": "",
            "serving_size": "",
            "data_basis": DataBasis.PER_100G,
            "package_language": self._default_language,
            "selected_nutrient_ids": set(),
            "images": empty_images(),
            "error_info": None,
            "submitted_payload": None,
        }

    def editable_defaults(self) -> dict[str, Any]:
        """Default values of the product fields, without page status fields."""
        defaults = self.default_values()
        return {name: defaults[name] for name in EDITABLE_FIELDS}

    # ───────────────────────────────────────────────────────
    # Observation
    # ───────────────────────────────────────────────────────

    def subscribe(self, observer: Observer) -> None:
        """Register an observer called after every update."""
        self._observers.append(observer)

    def unsubscribe(self, observer: Observer) -> bool:
        """Remove an observer.

        Returns:
            True if the observer was registered
        """
        try:
            self._observers.remove(observer)
            return True
        except ValueError:
            return False

    def _notify(self, fields: Iterable[str]) -> None:
        event = FormStateChanged(fields=frozenset(fields))
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception as e:
                # A failing observer must not stop the others
                logger.error(
                    "Form state observer failed",
                    fields=sorted(event.fields),
                    error=str(e),
                    exc_info=True,
                )

    # ───────────────────────────────────────────────────────
    # Mutation
    # ───────────────────────────────────────────────────────

    def _check_owner(self) -> None:
        if threading.get_ident() != self._owner_thread:
            raise OwnershipError("Form state can only be mutated from its owner thread")

    def update(self, **changes: Any) -> None:
        """Apply changes atomically and notify observers once.

        Raises:
            ValidationError: Unknown field or broken invariant
            OwnershipError: Called from a foreign thread
        """
        self._check_owner()
        unknown = set(changes) - ALL_FIELDS
        if unknown:
            raise ValidationError(f"Unknown form fields: {sorted(unknown)}")

        staged = dict(self._values)
        for name, value in changes.items():
            staged[name] = _normalise(name, value)

        known_ids = {entry.id for entry in staged["ordered_nutrients"]}
        stray = staged["selected_nutrient_ids"] - known_ids
        if stray:
            raise ValidationError(f"Selected nutrients not in catalog: {sorted(stray)}")

        changed = [name for name in changes if staged[name] != self._values[name]]
        self._values = staged
        if changed:
            self._notify(changed)

    def update_nutrient(
        self,
        nutrient_id: str,
        value: Optional[str] = None,
        unit: Optional[Unit] = None,
    ) -> None:
        """Edit one catalog entry in place and notify observers."""
        self._check_owner()
        entry = self.nutrient(nutrient_id)
        if value is not None:
            entry.value = value
        if unit is not None:
            entry.current_unit = unit
        self._notify(["ordered_nutrients"])

    def reset(self) -> None:
        """Restore the values of a freshly opened page."""
        self._check_owner()
        self._values = self.default_values()
        self._notify(ALL_FIELDS)

    # ───────────────────────────────────────────────────────
    # Read access
    # ───────────────────────────────────────────────────────

    def nutrient(self, nutrient_id: str) -> NutrientEntry:
        """Catalog entry by id.

        Raises:
            ValidationError: Id not in the catalog
        """
        for entry in self._values["ordered_nutrients"]:
            if entry.id == nutrient_id:
                return entry
        raise ValidationError(f"Unknown nutrient id: {nutrient_id!r}")

    def snapshot(self) -> dict[str, Any]:
        """Plain copy of every field, nutrient entries included."""
        values = dict(self._values)
        values["ordered_nutrients"] = [
            (e.id, e.current_unit, e.value, e.display_in_form, e.is_important)
            for e in self._values["ordered_nutrients"]
        ]
        values["categories"] = list(self._values["categories"])
        values["selected_nutrient_ids"] = set(self._values["selected_nutrient_ids"])
        values["images"] = dict(self._values["images"])
        return values

    @property
    def page_state(self) -> PageState:
        return self._values["page_state"]

    @property
    def page_mode(self) -> PageMode:
        return self._values["page_mode"]

    @property
    def is_initialised(self) -> bool:
        return self._values["is_initialised"]

    @property
    def is_product_just_uploaded(self) -> bool:
        return self._values["is_product_just_uploaded"]

    @property
    def ordered_nutrients(self) -> tuple[NutrientEntry, ...]:
        return tuple(self._values["ordered_nutrients"])

    @property
    def nutrient_metadata(self) -> Optional[NutrientMetadata]:
        return self._values["nutrient_metadata"]

    @property
    def product_name(self) -> str:
        return self._values["product_name"]

    @property
    def brand(self) -> str:
        return self._values["brand"]

    @property
    def categories(self) -> tuple[str, ...]:
        return tuple(self._values["categories"])

    @property
    def weight(self) -> str:
        return self._values["weight"]

    @property
    def serving_size(self) -> str:
        return self._values["serving_size"]

    @property
    def data_basis(self) -> DataBasis:
        return self._values["data_basis"]

    @property
    def package_language(self) -> str:
        return self._values["package_language"]

    @property
    def selected_nutrient_ids(self) -> frozenset[str]:
        return frozenset(self._values["selected_nutrient_ids"])

    @property
    def images(self) -> Mapping[ImageField, ImageData]:
        return MappingProxyType(self._values["images"])

    @property
    def error_info(self) -> Optional[ErrorInfo]:
        return self._values["error_info"]

    @property
    def submitted_payload(self) -> Optional[dict[str, str]]:
        payload = self._values["submitted_payload"]
        return dict(payload) if payload is not None else None


def _normalise(name: str, value: Any) -> Any:
    """Copy incoming values so callers keep no handle on internal state."""
    if name == "images":
        images = empty_images()
        for field, image in dict(value).items():
            images[ImageField(field)] = image if image is not None else EMPTY_IMAGE
        return images
    if name == "categories":
        # Ordered set: keep first occurrence
        return list(dict.fromkeys(value))
    if name == "selected_nutrient_ids":
        return set(value)
    if name == "ordered_nutrients":
        return list(value)
    if name == "data_basis":
        return DataBasis(value)
    if name == "submitted_payload" and value is not None:
        return dict(value)
    return value
