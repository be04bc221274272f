"""Resource catalogue: descriptors and resource-specific helpers.

Each remote entity type is a module-level `ResourceMapper`. Resource-specific
behaviour lives in plain functions or small models next to it rather than in
mapper subclasses.
"""
from __future__ import annotations

from .catalog import (
    COUNTRIES,
    IMAGES,
    LANGUAGES,
    PRODUCT_FEATURE_VALUES,
    PRODUCTS,
    TAX_RULES,
    TAXES,
)
from .image import Image
from .product_feature_value import ProductFeatureValue
from .tax import taxes_by_country, taxes_by_country_id

__all__ = [
    "COUNTRIES",
    "IMAGES",
    "LANGUAGES",
    "PRODUCTS",
    "PRODUCT_FEATURE_VALUES",
    "TAXES",
    "TAX_RULES",
    "Image",
    "ProductFeatureValue",
    "taxes_by_country",
    "taxes_by_country_id",
]
