"""
Product page editing system.

Controller for the product detail/edit workflow of a crowdsourced
product database client: loads a product by barcode, reconciles it into
editable form state and serializes that state back into upload requests.

Structure:
- domain/: Form state, nutrient model, reconciliation and composition
- application/: Page controller orchestrating load and save pipelines
- infrastructure/: Configuration and in-memory data client
- tests/: Test suite
"""

__version__ = "1.0.0"
