"""
Domain exceptions.

Typed exceptions for explicit error handling on the product page.
"""

from __future__ import annotations


# ═══════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════


class DomainError(Exception):
    """
    Base exception for all domain errors.

    All product page exceptions inherit from this.
    """

    pass


# ═══════════════════════════════════════════════════════════
# VALIDATION EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ValidationError(DomainError):
    """
    Input validation failed.

    Raised when:
    - Barcode is empty
    - Unknown nutrient id is selected or edited
    - Unknown form field is updated

    Example:
        >>> raise ValidationError("Unknown nutrient id: 'unobtainium'")
    """

    pass


class OwnershipError(DomainError):
    """
    Form state mutated outside its owner thread.

    Form state is single-writer: every mutation must happen on the
    thread that created it (the event loop thread).
    """

    pass


# ═══════════════════════════════════════════════════════════
# EXTERNAL SERVICE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ExternalServiceError(DomainError):
    """
    External service call failed.

    Base class for all product data client errors.

    Raised when:
    - Network error
    - Response could not be decoded
    - Service unavailable

    Example:
        >>> raise ExternalServiceError("Product service unavailable")
    """

    pass


class ImageFetchError(ExternalServiceError):
    """
    Product images could not be downloaded.

    Non critical: the form keeps its empty image slots.
    """

    pass


class ImageUploadError(ExternalServiceError):
    """
    A single product image could not be uploaded.

    Non critical: logged and collected, never surfaced to the page.

    Example:
        >>> raise ImageUploadError("Upload of 'ingredients' image failed: 502")
    """

    pass


class ProductUploadError(ExternalServiceError):
    """
    Product payload submission failed.

    Drives the page into the error state.

    Example:
        >>> raise ProductUploadError("Product write rejected: 403")
    """

    pass
