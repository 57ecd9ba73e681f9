"""Configuration for the product page."""

import os

from pydantic import BaseModel, ConfigDict, Field

from product_editor.domain.product.models import ImageField

REQUIRED_NUTRIENTS = ("energy-kcal", "proteins", "carbohydrates", "fat")
REQUIRED_IMAGE_FIELDS = (ImageField.FRONT, ImageField.NUTRITION)


class ProductPageConfig(BaseModel):
    """
    Product page settings.

    Passed explicitly to the page controller; nothing reads a global.

    Example:
        >>> config = ProductPageConfig(completed_display_seconds=0)
        >>> assert config.required_nutrients[0] == "energy-kcal"
    """

    model_config = ConfigDict(frozen=True)

    required_nutrients: tuple[str, ...] = REQUIRED_NUTRIENTS
    required_image_fields: tuple[ImageField, ...] = REQUIRED_IMAGE_FIELDS
    use_required: bool = Field(False, description="Enforce required fields")
    default_product_language: str = Field("en", min_length=1)
    completed_display_seconds: float = Field(
        1.0, ge=0, description="How long the 'completed' overlay stays up"
    )


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_product_page_config() -> ProductPageConfig:
    """
    Build configuration from environment variables.

    Environment:
        PRODUCT_PAGE_USE_REQUIRED: "1"/"true" enforces required fields
        PRODUCT_PAGE_DEFAULT_LANGUAGE: Default product language code
        PRODUCT_PAGE_COMPLETED_DISPLAY_SECONDS: Completed overlay duration

    Returns:
        Configuration with defaults for unset variables
    """
    return ProductPageConfig(
        use_required=_get_bool("PRODUCT_PAGE_USE_REQUIRED", False),
        default_product_language=os.getenv("PRODUCT_PAGE_DEFAULT_LANGUAGE", "en"),
        completed_display_seconds=float(os.getenv("PRODUCT_PAGE_COMPLETED_DISPLAY_SECONDS", "1.0")),
    )
