"""Tests for the in-memory product data client."""

import pytest

from product_editor.domain.product.models import ImageData, ImageField, SendImage
from product_editor.domain.product.ports import IProductDataClient
from product_editor.domain.shared.errors import ExternalServiceError, ImageFetchError
from product_editor.infrastructure.stub.in_memory_client import (
    InMemoryProductDataClient,
)


def test_implements_port(client: InMemoryProductDataClient) -> None:
    assert isinstance(client, IProductDataClient)


@pytest.mark.asyncio
async def test_catalog_is_copied_per_fetch(client: InMemoryProductDataClient) -> None:
    first = await client.fetch_nutrient_catalog()
    first[0].value = "999"

    second = await client.fetch_nutrient_catalog()

    assert second[0].value == ""
    assert first[0] is not second[0]


@pytest.mark.asyncio
async def test_known_and_unknown_products(
    client: InMemoryProductDataClient, barcode: str, unknown_barcode: str
) -> None:
    assert (await client.fetch_product(barcode)).has_product()
    assert not (await client.fetch_product(unknown_barcode)).has_product()


@pytest.mark.asyncio
async def test_fetch_images_all_missing_raises(client: InMemoryProductDataClient) -> None:
    with pytest.raises(ImageFetchError):
        await client.fetch_images({ImageField.FRONT: "https://nowhere.example/x.jpg"})


@pytest.mark.asyncio
async def test_injected_failure(client: InMemoryProductDataClient) -> None:
    client.fail("fetch_nutrient_metadata", ExternalServiceError("offline"))

    with pytest.raises(ExternalServiceError, match="offline"):
        await client.fetch_nutrient_metadata()
    assert client.calls == ["fetch_nutrient_metadata"]
    assert client.completed == []


@pytest.mark.asyncio
async def test_submissions_recorded(client: InMemoryProductDataClient, barcode: str) -> None:
    image = SendImage(barcode=barcode, field=ImageField.FRONT, image=ImageData(content=b"x"))

    await client.submit_image(image)
    await client.submit_product({"code": barcode})

    assert client.submitted_images == [image]
    assert client.submitted_products == [{"code": barcode}]


@pytest.mark.asyncio
async def test_metadata_names(client: InMemoryProductDataClient) -> None:
    metadata = await client.fetch_nutrient_metadata()

    assert metadata.name_for("sodium") == "Sodium"
    assert metadata.name_for("fiber") == "fiber"
