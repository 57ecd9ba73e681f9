"""In-memory product data client.

Serves seeded catalog, metadata, products and images without calling the
remote database. Useful for tests and for running the page offline.
"""

import asyncio
import copy
from typing import Mapping, Optional

import structlog

from product_editor.domain.product.models import (
    ImageData,
    ImageField,
    NutrientMetadata,
    ProductRecord,
    ProductResponse,
    SendImage,
)
from product_editor.domain.product.nutrients import NutrientEntry
from product_editor.domain.shared.errors import ImageFetchError

logger = structlog.get_logger(__name__)


class InMemoryProductDataClient:
    """
    Stub implementation of IProductDataClient.

    Every fetch returns fresh copies, so repeated loads never share
    mutable nutrient entries. Failures can be injected per operation
    ("fetch_nutrient_catalog", "fetch_product", "submit_product", ...)
    or per image slot for uploads.

    Example:
        >>> client = InMemoryProductDataClient(
        ...     catalog=[NutrientEntry(id="fat", name="Fat")],
        ...     products={"3017620422003": ProductRecord(code="3017620422003")},
        ... )
        >>> client.fail("fetch_product", ExternalServiceError("offline"))
    """

    def __init__(
        self,
        catalog: Optional[list[NutrientEntry]] = None,
        metadata: Optional[NutrientMetadata] = None,
        products: Optional[dict[str, ProductRecord]] = None,
        images: Optional[dict[str, bytes]] = None,
        latency_seconds: float = 0.0,
    ) -> None:
        self.catalog = list(catalog or [])
        self.metadata = metadata or NutrientMetadata()
        self.products = dict(products or {})
        self.images = dict(images or {})
        self.latency_seconds = latency_seconds

        self.submitted_products: list[dict[str, str]] = []
        self.submitted_images: list[SendImage] = []
        self.calls: list[str] = []
        self.completed: list[str] = []

        self._failures: dict[str, Exception] = {}
        self._latencies: dict[str, float] = {}
        self._image_upload_failures: dict[ImageField, Exception] = {}

    def fail(self, operation: str, error: Exception) -> None:
        """Make every later call of an operation raise error."""
        self._failures[operation] = error

    def fail_image_upload(self, field: ImageField, error: Exception) -> None:
        """Make uploads of one image slot raise error."""
        self._image_upload_failures[field] = error

    def delay(self, operation: str, seconds: float) -> None:
        """Override latency_seconds for one operation."""
        self._latencies[operation] = seconds

    async def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        latency = self._latencies.get(operation, self.latency_seconds)
        if latency:
            await asyncio.sleep(latency)
        error = self._failures.get(operation)
        if error is not None:
            logger.debug("Injected failure", operation=operation, error=str(error))
            raise error
        self.completed.append(operation)

    async def fetch_nutrient_catalog(self) -> list[NutrientEntry]:
        await self._enter("fetch_nutrient_catalog")
        return copy.deepcopy(self.catalog)

    async def fetch_product(self, barcode: str) -> ProductResponse:
        await self._enter("fetch_product")
        product = self.products.get(barcode)
        if product is None:
            return ProductResponse(status=0)
        return ProductResponse(status=1, product=product)

    async def fetch_nutrient_metadata(self) -> NutrientMetadata:
        await self._enter("fetch_nutrient_metadata")
        return self.metadata

    async def fetch_images(
        self, image_urls: Mapping[ImageField, Optional[str]]
    ) -> dict[ImageField, ImageData]:
        await self._enter("fetch_images")
        result: dict[ImageField, ImageData] = {}
        for field, url in image_urls.items():
            if url and url in self.images:
                result[field] = ImageData(content=self.images[url])
        if not result and any(image_urls.values()):
            raise ImageFetchError("None of the product images could be fetched")
        return result

    async def submit_product(self, product: Mapping[str, str]) -> None:
        await self._enter("submit_product")
        self.submitted_products.append(dict(product))

    async def submit_image(self, image: SendImage) -> None:
        await self._enter("submit_image")
        error = self._image_upload_failures.get(image.field)
        if error is not None:
            raise error
        self.submitted_images.append(image)
