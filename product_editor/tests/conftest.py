"""
Shared fixtures for product page tests.

Domain tests use plain models; application tests wire the controller to
the in-memory data client with a zero display delay.
"""

import pytest

from product_editor.application.product_page.controller import ProductPageController
from product_editor.domain.product.form_state import FormState
from product_editor.domain.product.models import (
    NutrientMeta,
    NutrientMetadata,
    ProductRecord,
)
from product_editor.domain.product.nutrients import NutrientEntry, Unit
from product_editor.infrastructure.config import ProductPageConfig
from product_editor.infrastructure.stub.in_memory_client import (
    InMemoryProductDataClient,
)

BARCODE = "3017620422003"
UNKNOWN_BARCODE = "12345678"

FRONT_URL = "https://images.example.org/301/762/042/2003/front_en.jpg"
INGREDIENTS_URL = "https://images.example.org/301/762/042/2003/ingredients_en.jpg"
NUTRITION_URL = "https://images.example.org/301/762/042/2003/nutrition_en.jpg"


# ═══════════════════════════════════════════════════════════
# DOMAIN MODEL FIXTURES
# ═══════════════════════════════════════════════════════════


def make_catalog() -> list[NutrientEntry]:
    """Fresh ordered nutrient catalog."""
    return [
        NutrientEntry(id="energy-kcal", name="Energy", current_unit=Unit.KCAL),
        NutrientEntry(id="fat", name="Fat"),
        NutrientEntry(id="carbohydrates", name="Carbohydrates"),
        NutrientEntry(id="proteins", name="Proteins"),
        NutrientEntry(id="sodium", name="Sodium"),
        NutrientEntry(id="fiber", name="Fiber"),
    ]


@pytest.fixture
def catalog() -> list[NutrientEntry]:
    return make_catalog()


@pytest.fixture
def nutrient_metadata() -> NutrientMetadata:
    return NutrientMetadata(
        nutrients={
            "energy-kcal": NutrientMeta(name="Energy", unit="kcal"),
            "fat": NutrientMeta(name="Fat", unit="g"),
            "sodium": NutrientMeta(name="Sodium", unit="mg"),
        }
    )


@pytest.fixture
def sample_record() -> ProductRecord:
    """Sample product (Nutella-like) with per 100g nutriments."""
    return ProductRecord(
        code=BARCODE,
        product_name="Nutella",
        brands="Ferrero",
        categories="Spreads",
        quantity="750 g",
        serving_size="15 g",
        nutrition_data_per="100g",
        lang="fr",
        nutriments={
            "energy-kcal_100g": 250.0,
            "energy-kcal_unit": "kcal",
            "fat_100g": 30.9,
            "fat_unit": "g",
            "proteins_100g": 6,
            "proteins_unit": "g",
            "sodium_100g": 400.0,
            "sodium_unit": "mg",
        },
        image_front_url=FRONT_URL,
        image_ingredients_url=INGREDIENTS_URL,
        image_nutrition_url=NUTRITION_URL,
    )


@pytest.fixture
def form_state() -> FormState:
    return FormState(default_language="en")


# ═══════════════════════════════════════════════════════════
# CLIENT AND CONTROLLER FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def config() -> ProductPageConfig:
    return ProductPageConfig(completed_display_seconds=0, default_product_language="en")


@pytest.fixture
def client(
    sample_record: ProductRecord,
    nutrient_metadata: NutrientMetadata,
) -> InMemoryProductDataClient:
    """In-memory client knowing one product and its three images."""
    return InMemoryProductDataClient(
        catalog=make_catalog(),
        metadata=nutrient_metadata,
        products={BARCODE: sample_record},
        images={
            FRONT_URL: b"front-bytes",
            INGREDIENTS_URL: b"ingredients-bytes",
            NUTRITION_URL: b"nutrition-bytes",
        },
    )


@pytest.fixture
def controller(
    client: InMemoryProductDataClient,
    config: ProductPageConfig,
) -> ProductPageController:
    return ProductPageController(client=client, config=config)


@pytest.fixture
def barcode() -> str:
    return BARCODE


@pytest.fixture
def unknown_barcode() -> str:
    return UNKNOWN_BARCODE
