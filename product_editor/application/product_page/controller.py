"""
Product page controller.

Owns the page state machine and runs the load and save pipelines:

    load: loading → (catalog ‖ product ‖ metadata) → reconcile → completed
          → [display delay] → productDetails
    save: loading → (images ‖ ...) → product payload → completed
          → [display delay] → productDetails (+ just uploaded)

Any failure of a required step ends in the error state. Every call bumps a
generation counter; results of superseded calls are discarded.

Design Pattern: Dependency Injection + Ports & Adapters
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional, Sequence, Union

import pydantic
import structlog

from product_editor.application.product_page.image_uploader import (
    ImageBatchUploader,
    ImageUploadFailure,
)
from product_editor.domain.product.composer import UploadComposer
from product_editor.domain.product.form_state import EDITABLE_FIELDS, FormState
from product_editor.domain.product.models import (
    EMPTY_IMAGE,
    ErrorInfo,
    ImageData,
    ImageField,
    PageMode,
    PageState,
    empty_images,
)
from product_editor.domain.product.nutrients import Unit
from product_editor.domain.product.ports import IProductDataClient
from product_editor.domain.product.reconciler import ProductReconciler
from product_editor.domain.shared.errors import ValidationError
from product_editor.domain.shared.value_objects import Barcode
from product_editor.infrastructure.config import ProductPageConfig

logger = structlog.get_logger(__name__)

_MISSING_FIELD_LABELS = {
    "name": "Name",
    "weight": "Weight",
    ImageField.FRONT: "Front image",
    ImageField.NUTRITION: "Nutrients image",
}


class ProductPageController:
    """
    Drives one product page.

    Responsibilities:
    - Load product, nutrient catalog and metadata in parallel
    - Reconcile the product into form state in one observable update
    - Upload images and the composed product payload
    - Flip "completed" to "productDetails" after the display delay

    Dependencies (injected):
    - client: IProductDataClient - remote product database
    - config: ProductPageConfig - required fields policy, delays, language

    Example:
        >>> controller = ProductPageController(client=client, config=config)
        >>> await controller.load("3017620422003")
        >>> assert controller.state.page_state is PageState.PRODUCT_DETAILS
    """

    def __init__(
        self,
        client: IProductDataClient,
        config: Optional[ProductPageConfig] = None,
        state: Optional[FormState] = None,
        reconciler: Optional[ProductReconciler] = None,
        composer: Optional[UploadComposer] = None,
        image_uploader: Optional[ImageBatchUploader] = None,
    ) -> None:
        self.client = client
        self.config = config or ProductPageConfig()
        language = self.config.default_product_language
        self.state = state or FormState(default_language=language)
        self.reconciler = reconciler or ProductReconciler(default_language=language)
        self.composer = composer or UploadComposer()
        self.image_uploader = image_uploader or ImageBatchUploader(client)

        self._generation = 0
        self._closed = False
        self._transition: Optional[asyncio.Task[None]] = None
        self._image_failures: list[ImageUploadFailure] = []

    async def __aenter__(self) -> ProductPageController:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    # ═══════════════════════════════════════════════════════
    # LOAD PIPELINE
    # ═══════════════════════════════════════════════════════

    async def load(self, barcode: str) -> None:
        """Load the product page for a barcode.

        Fetches catalog, product and metadata concurrently, waits for all
        three, then commits the reconciled form in a single update.
        A failure leaves the form untouched apart from the error state.

        Args:
            barcode: Product barcode
        """
        generation = self._begin()
        logger.info("Loading product page", barcode=barcode, generation=generation)

        try:
            code = _parse_barcode(barcode)
            results = await asyncio.gather(
                self.client.fetch_nutrient_catalog(),
                self.client.fetch_product(code),
                self.client.fetch_nutrient_metadata(),
                return_exceptions=True,
            )
            # Every fetch has settled; fail on the first rejection in order
            for result in results:
                if isinstance(result, BaseException):
                    raise result
            catalog, response, metadata = results
        except Exception as e:
            self._fail(generation, _describe(e), barcode=barcode)
            return

        if not self._is_current(generation):
            logger.warning("Discarding stale load result", barcode=barcode)
            return

        changes: dict[str, Any] = self.state.editable_defaults()
        changes["selected_nutrient_ids"] = set()
        changes["images"] = empty_images()

        if response.has_product():
            page_mode = PageMode.VIEW
            reconciled = self.reconciler.reconcile(response.product, catalog)
            images = await self._fetch_images(code, reconciled.image_urls)
            if not self._is_current(generation):
                logger.warning("Discarding stale load result", barcode=barcode)
                return
            changes.update(reconciled.form_fields())
            changes["images"] = images
        else:
            page_mode = PageMode.NEW

        changes.update(
            page_state=PageState.COMPLETED,
            ordered_nutrients=catalog,
            nutrient_metadata=metadata,
            is_initialised=True,
            page_mode=page_mode,
            is_product_just_uploaded=False,
            submitted_payload=None,
        )
        self.state.update(**changes)
        logger.info(
            "Product page loaded",
            barcode=code,
            mode=page_mode.value,
            nutrients=len(catalog),
            selected=len(self.state.selected_nutrient_ids),
        )

        await self._show_details_after_delay(generation)

    async def _fetch_images(
        self,
        barcode: str,
        image_urls: Mapping[ImageField, Optional[str]],
    ) -> dict[ImageField, ImageData]:
        images = empty_images()
        if not any(image_urls.values()):
            return images

        try:
            fetched = await self.client.fetch_images(image_urls)
        except Exception as e:
            # Non critical, the form keeps empty image slots
            logger.warning("Failed to fetch product images", barcode=barcode, error=str(e))
            return images

        for field, image in fetched.items():
            images[ImageField(field)] = image
        missing = [f.value for f, url in image_urls.items() if url and images[f].is_empty()]
        if missing:
            logger.warning("Some product images are missing", barcode=barcode, fields=missing)
        return images

    # ═══════════════════════════════════════════════════════
    # SAVE PIPELINE
    # ═══════════════════════════════════════════════════════

    async def save(self, barcode: str) -> None:
        """Upload images and the product payload.

        Image upload failures are logged and collected in
        last_image_upload_failures; only a failed product submission
        ends in the error state. Uploaded images are not rolled back.

        Args:
            barcode: Product barcode
        """
        generation = self._begin()
        logger.info("Saving product", barcode=barcode, generation=generation)

        try:
            code = _parse_barcode(barcode)
        except ValidationError as e:
            self._fail(generation, f"Could not save product {_describe(e)}", barcode=barcode)
            return

        # TODO: track per-image success once incremental save is supported
        failures = await self.image_uploader.upload_all(code, self.state.images)
        if not self._is_current(generation):
            logger.warning("Discarding stale save result", barcode=code)
            return
        self._image_failures = failures
        if failures:
            logger.warning(
                "Some images failed to upload",
                barcode=code,
                fields=[failure.field.value for failure in failures],
            )

        try:
            payload = self.composer.compose(self.state, code)
            await self.client.submit_product(payload)
        except Exception as e:
            self._fail(generation, f"Could not save product {_describe(e)}", barcode=code)
            return

        if not self._is_current(generation):
            logger.warning("Discarding stale save result", barcode=code)
            return

        self.state.update(page_state=PageState.COMPLETED)
        logger.info("Product saved", barcode=code, fields=len(payload))

        await self._show_details_after_delay(
            generation,
            is_product_just_uploaded=True,
            submitted_payload=payload,
        )

    # ═══════════════════════════════════════════════════════
    # STATE MACHINE
    # ═══════════════════════════════════════════════════════

    def _begin(self) -> int:
        if self._closed:
            raise RuntimeError("Product page controller is closed")
        self._generation += 1
        self._cancel_transition()
        self.state.update(page_state=PageState.LOADING, error_info=None)
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def _fail(self, generation: int, message: str, **context: Any) -> None:
        if not self._is_current(generation):
            logger.warning("Discarding stale failure", error=message, **context)
            return
        logger.error("Product page failed", error=message, **context)
        self.state.update(page_state=PageState.ERROR, error_info=ErrorInfo(message=message))

    async def _show_details_after_delay(self, generation: int, **changes: Any) -> None:
        """Schedule the completed → productDetails flip and wait for it.

        The flip runs as a controller owned task so a newer call or
        aclose() can cancel it; that cancellation does not propagate to
        the awaiting pipeline.
        """
        task = asyncio.create_task(self._delayed_details(generation, changes))
        self._transition = task
        await asyncio.wait({task})
        if not task.cancelled():
            task.result()

    async def _delayed_details(self, generation: int, changes: dict[str, Any]) -> None:
        await asyncio.sleep(self.config.completed_display_seconds)
        if not self._is_current(generation):
            return
        self.state.update(page_state=PageState.PRODUCT_DETAILS, **changes)

    def _cancel_transition(self) -> None:
        if self._transition is not None and not self._transition.done():
            self._transition.cancel()
        self._transition = None

    async def aclose(self) -> None:
        """Tear down: cancel the pending transition and ignore late results."""
        self._closed = True
        task = self._transition
        self._cancel_transition()
        if task is not None:
            await asyncio.wait({task})

    # ═══════════════════════════════════════════════════════
    # EDIT COMMANDS
    # ═══════════════════════════════════════════════════════

    def update_fields(self, **changes: Any) -> None:
        """Edit product fields (name, brand, categories, weight, ...).

        Raises:
            ValidationError: Field is not editable
        """
        not_editable = set(changes) - EDITABLE_FIELDS
        if not_editable:
            raise ValidationError(f"Fields are not editable: {sorted(not_editable)}")
        if "package_language" in changes:
            logger.info("Package language updated", language=changes["package_language"])
        self.state.update(**changes)

    def set_image(self, field: ImageField, image: Optional[ImageData]) -> None:
        """Replace one image slot; None clears it."""
        images = dict(self.state.images)
        images[ImageField(field)] = image if image is not None else EMPTY_IMAGE
        self.state.update(images=images)

    def set_nutrient_value(self, nutrient_id: str, value: str) -> None:
        self.state.update_nutrient(nutrient_id, value=value)

    def set_nutrient_unit(self, nutrient_id: str, unit: Union[Unit, str]) -> None:
        parsed = unit if isinstance(unit, Unit) else Unit.from_string(unit)
        if parsed is None:
            raise ValidationError(f"Unknown unit: {unit!r}")
        self.state.update_nutrient(nutrient_id, unit=parsed)

    def select_nutrient(self, nutrient_id: str) -> None:
        """Add a nutrient to the edit form selection."""
        self.state.nutrient(nutrient_id)
        self.state.update(selected_nutrient_ids=self.state.selected_nutrient_ids | {nutrient_id})

    def deselect_nutrient(self, nutrient_id: str) -> None:
        self.state.update(selected_nutrient_ids=self.state.selected_nutrient_ids - {nutrient_id})

    # ═══════════════════════════════════════════════════════
    # QUERIES
    # ═══════════════════════════════════════════════════════

    @property
    def is_view_mode(self) -> bool:
        return self.state.page_mode is PageMode.VIEW

    @property
    def is_new_mode(self) -> bool:
        return self.state.page_mode is PageMode.NEW

    @property
    def last_image_upload_failures(self) -> Sequence[ImageUploadFailure]:
        """Image uploads that failed during the latest save."""
        return tuple(self._image_failures)

    def missing_required_fields(self) -> list[str]:
        """Labels of the required fields still empty.

        Always empty when the required fields policy is off.
        """
        if not self.config.use_required:
            return []

        missing = []
        if not self.state.product_name:
            missing.append(_MISSING_FIELD_LABELS["name"])
        if not self.state.weight:
            missing.append(_MISSING_FIELD_LABELS["weight"])
        for field in self.config.required_image_fields:
            if self.state.images[field].is_empty():
                missing.append(_MISSING_FIELD_LABELS.get(field, f"{field.value.capitalize()} image"))
        return missing

    def missing_fields_message(self) -> str:
        """Missing fields quoted and comma separated, e.g. "'Name', 'Weight'"."""
        return ", ".join(f"'{label}'" for label in self.missing_required_fields())

    def missing_required_nutrients(self) -> list[str]:
        """Required nutrient ids not selected, in configured order."""
        if not self.config.use_required:
            return []
        selected = self.state.selected_nutrient_ids
        return [n for n in self.config.required_nutrients if n not in selected]

    def consume_submitted_payload(self) -> Optional[dict[str, str]]:
        """Return the last submitted payload once, then clear it."""
        payload = self.state.submitted_payload
        if payload is not None:
            self.state.update(submitted_payload=None, is_product_just_uploaded=False)
        return payload


def _parse_barcode(raw: str) -> str:
    try:
        return Barcode.from_string(raw).value
    except pydantic.ValidationError as e:
        raise ValidationError("Barcode is empty") from e


def _describe(error: BaseException) -> str:
    return str(error) or type(error).__name__
