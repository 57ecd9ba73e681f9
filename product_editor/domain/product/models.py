"""
Product page domain models.

Page state machine values, image slots and the product record as returned
by the product data client.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class PageState(str, Enum):
    """State of the product page overlay.

    loading → completed → productDetails, or loading → error.
    """

    LOADING = "loading"
    COMPLETED = "completed"
    PRODUCT_DETAILS = "productDetails"
    ERROR = "error"


class PageMode(str, Enum):
    """Whether the page shows an existing product or creates a new one."""

    VIEW = "view"
    NEW = "new"


class DataBasis(str, Enum):
    """Reference quantity nutrient values are expressed for."""

    PER_100G = "100g"
    PER_SERVING = "serving"

    @classmethod
    def parse(cls, raw: Optional[str]) -> DataBasis:
        """Parse server value, defaulting to per 100g."""
        try:
            return cls(raw or "")
        except ValueError:
            return cls.PER_100G


class ImageField(str, Enum):
    """Product image slots."""

    FRONT = "front"
    INGREDIENTS = "ingredients"
    NUTRITION = "nutrition"


@dataclass(frozen=True)
class ImageData:
    """Encoded image bytes held by an image slot.

    An empty payload is the "no image" sentinel, see EMPTY_IMAGE.
    """

    content: bytes = b""
    mime_type: str = "image/jpeg"

    def is_empty(self) -> bool:
        return not self.content


EMPTY_IMAGE = ImageData()


def empty_images() -> dict[ImageField, ImageData]:
    """Image mapping with every slot set to the empty sentinel."""
    return {field: EMPTY_IMAGE for field in ImageField}


@dataclass(frozen=True)
class SendImage:
    """One image upload request."""

    barcode: str
    field: ImageField
    image: ImageData


class ErrorInfo(BaseModel):
    """User facing error alert content."""

    model_config = ConfigDict(frozen=True)

    message: str
    title: str = "Error"


class ProductRecord(BaseModel):
    """Product as stored by the remote product database.

    Nutriments are kept as the flat server mapping, e.g.
    ``{"energy-kcal_100g": 250.0, "energy-kcal_unit": "kcal"}``.

    Example:
        >>> record = ProductRecord(
        ...     code="3017620422003",
        ...     product_name="Nutella",
        ...     nutriments={"fat_100g": 30.9, "fat_unit": "g"},
        ... )
        >>> assert record.nutriments["fat_100g"] == 30.9
    """

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="Product barcode")
    product_name: Optional[str] = None
    brands: Optional[str] = None
    categories: Optional[str] = None
    quantity: Optional[str] = None
    serving_size: Optional[str] = None
    nutrition_data_per: Optional[str] = None
    lang: Optional[str] = None
    nutriments: Optional[dict[str, Any]] = None
    image_front_url: Optional[str] = None
    image_ingredients_url: Optional[str] = None
    image_nutrition_url: Optional[str] = None

    def image_urls(self) -> dict[ImageField, Optional[str]]:
        """Image URL per slot (None where the product has no image)."""
        return {
            ImageField.FRONT: self.image_front_url,
            ImageField.INGREDIENTS: self.image_ingredients_url,
            ImageField.NUTRITION: self.image_nutrition_url,
        }


class ProductResponse(BaseModel):
    """Product lookup response.

    Example:
        >>> response = ProductResponse(status=0)
        >>> assert not response.has_product()
    """

    model_config = ConfigDict(frozen=True)

    status: int = Field(..., description="Lookup status (1=found, 0=not)")
    product: Optional[ProductRecord] = None

    def has_product(self) -> bool:
        """Check if the product exists remotely."""
        return self.status == 1 and self.product is not None


class NutrientMeta(BaseModel):
    """Display metadata for a single nutrient."""

    model_config = ConfigDict(frozen=True)

    name: str
    unit: Optional[str] = None


class NutrientMetadata(BaseModel):
    """Nutrient metadata keyed by nutrient id."""

    model_config = ConfigDict(frozen=True)

    nutrients: dict[str, NutrientMeta] = Field(default_factory=dict)

    def name_for(self, nutrient_id: str) -> str:
        """Display name, falling back to the id itself."""
        meta = self.nutrients.get(nutrient_id)
        return meta.name if meta else nutrient_id
