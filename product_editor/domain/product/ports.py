"""
Ports (Interfaces) for the product page.

Defines the product data client the page controller depends on.
Implementations own transport, authentication and wire formats.

Design Pattern: Ports & Adapters (Hexagonal Architecture)
"""

from typing import Mapping, Optional, Protocol, runtime_checkable

from product_editor.domain.product.models import (
    ImageData,
    ImageField,
    NutrientMetadata,
    ProductResponse,
    SendImage,
)
from product_editor.domain.product.nutrients import NutrientEntry


@runtime_checkable
class IProductDataClient(Protocol):
    """
    Port for the remote product database.

    Every method may raise ExternalServiceError (or a subclass) on
    network or decoding failure.
    """

    async def fetch_nutrient_catalog(self) -> list[NutrientEntry]:
        """
        Fetch the ordered nutrient catalog.

        Returns:
            Fresh nutrient entries in display order
        """
        ...

    async def fetch_product(self, barcode: str) -> ProductResponse:
        """
        Fetch a product by barcode.

        Returns:
            Response; has_product() is False when the barcode is unknown
        """
        ...

    async def fetch_nutrient_metadata(self) -> NutrientMetadata:
        """Fetch nutrient display metadata."""
        ...

    async def fetch_images(
        self, image_urls: Mapping[ImageField, Optional[str]]
    ) -> dict[ImageField, ImageData]:
        """
        Download product images.

        Partial failure tolerant: slots that could not be fetched are
        left out of the result.

        Raises:
            ImageFetchError: If no image could be fetched at all
        """
        ...

    async def submit_product(self, product: Mapping[str, str]) -> None:
        """Write a product payload."""
        ...

    async def submit_image(self, image: SendImage) -> None:
        """Upload one product image."""
        ...
