"""
Tests for ImageBatchUploader.

Uploads run concurrently, empty slots are skipped and failures are
collected without cancelling sibling uploads.
"""

import asyncio
from typing import Any
from unittest.mock import AsyncMock

import pytest

from product_editor.application.product_page.image_uploader import ImageBatchUploader
from product_editor.domain.product.models import (
    EMPTY_IMAGE,
    ImageData,
    ImageField,
    SendImage,
)
from product_editor.domain.product.ports import IProductDataClient
from product_editor.domain.shared.errors import ImageUploadError


@pytest.fixture
def mock_client() -> Any:
    """Mock product data client (interface-based)."""
    return AsyncMock(spec=IProductDataClient)


@pytest.fixture
def all_images() -> dict[ImageField, ImageData]:
    return {
        ImageField.FRONT: ImageData(content=b"front"),
        ImageField.INGREDIENTS: ImageData(content=b"ingredients"),
        ImageField.NUTRITION: ImageData(content=b"nutrition"),
    }


@pytest.mark.asyncio
async def test_uploads_every_populated_image(mock_client: Any, all_images: dict) -> None:
    failures = await ImageBatchUploader(mock_client).upload_all("3017620422003", all_images)

    assert failures == []
    assert mock_client.submit_image.await_count == 3
    sent = {call.args[0].field for call in mock_client.submit_image.await_args_list}
    assert sent == set(ImageField)


@pytest.mark.asyncio
async def test_empty_slots_skipped(mock_client: Any) -> None:
    images = {
        ImageField.FRONT: ImageData(content=b"front"),
        ImageField.INGREDIENTS: EMPTY_IMAGE,
        ImageField.NUTRITION: EMPTY_IMAGE,
    }

    await ImageBatchUploader(mock_client).upload_all("3017620422003", images)

    mock_client.submit_image.assert_awaited_once_with(
        SendImage(barcode="3017620422003", field=ImageField.FRONT, image=images[ImageField.FRONT])
    )


@pytest.mark.asyncio
async def test_nothing_to_upload(mock_client: Any) -> None:
    images = {field: EMPTY_IMAGE for field in ImageField}

    failures = await ImageBatchUploader(mock_client).upload_all("3017620422003", images)

    assert failures == []
    mock_client.submit_image.assert_not_awaited()


@pytest.mark.asyncio
async def test_failure_does_not_cancel_siblings(mock_client: Any, all_images: dict) -> None:
    finished: list[ImageField] = []

    async def submit(request: SendImage) -> None:
        if request.field is ImageField.INGREDIENTS:
            raise ImageUploadError("502 Bad Gateway")
        await asyncio.sleep(0.01)
        finished.append(request.field)

    mock_client.submit_image.side_effect = submit

    failures = await ImageBatchUploader(mock_client).upload_all("3017620422003", all_images)

    assert [f.field for f in failures] == [ImageField.INGREDIENTS]
    assert isinstance(failures[0].error, ImageUploadError)
    assert sorted(finished) == sorted([ImageField.FRONT, ImageField.NUTRITION])


@pytest.mark.asyncio
async def test_uploads_run_concurrently(mock_client: Any, all_images: dict) -> None:
    in_flight = 0
    peak = 0

    async def submit(request: SendImage) -> None:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1

    mock_client.submit_image.side_effect = submit

    await ImageBatchUploader(mock_client).upload_all("3017620422003", all_images)

    assert peak == 3
