"""
Image batch uploader.

Uploads every populated image slot concurrently. Failures are logged and
collected, never raised.
"""

import asyncio
from dataclasses import dataclass
from typing import Mapping

import structlog

from product_editor.domain.product.models import ImageData, ImageField, SendImage
from product_editor.domain.product.ports import IProductDataClient

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ImageUploadFailure:
    """One image that could not be uploaded."""

    field: ImageField
    error: Exception


class ImageBatchUploader:
    """Sends product images in parallel."""

    def __init__(self, client: IProductDataClient) -> None:
        self.client = client

    async def upload_all(
        self,
        barcode: str,
        images: Mapping[ImageField, ImageData],
    ) -> list[ImageUploadFailure]:
        """Upload all non-empty images and wait for every attempt.

        All uploads start before any failure is observed and one failure
        does not cancel the others.

        Args:
            barcode: Product barcode
            images: Image slots, empty ones are skipped

        Returns:
            Failed uploads (empty when everything went through)
        """
        requests = [
            SendImage(barcode=barcode, field=field, image=image)
            for field, image in images.items()
            if not image.is_empty()
        ]
        if not requests:
            return []

        results = await asyncio.gather(
            *(self.client.submit_image(request) for request in requests),
            return_exceptions=True,
        )

        failures: list[ImageUploadFailure] = []
        for request, result in zip(requests, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, Exception):
                failures.append(ImageUploadFailure(field=request.field, error=result))
                logger.warning(
                    "Image upload failed",
                    barcode=barcode,
                    field=request.field.value,
                    error=str(result),
                )

        logger.info(
            "Images uploaded",
            barcode=barcode,
            attempted=len(requests),
            failed=len(failures),
        )
        return failures
