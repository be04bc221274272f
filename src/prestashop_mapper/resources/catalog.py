"""Descriptors of the webservice resources used by this package."""
from __future__ import annotations

from ..mapper import ResourceDescriptor, ResourceMapper

COUNTRIES = ResourceMapper(ResourceDescriptor("countries", "country", finders=("iso_code",)))
IMAGES = ResourceMapper(ResourceDescriptor("images", "image"))
LANGUAGES = ResourceMapper(ResourceDescriptor("languages", "language", finders=("iso_code",)))
PRODUCTS = ResourceMapper(ResourceDescriptor("products", "product", finders=("reference",)))
PRODUCT_FEATURE_VALUES = ResourceMapper(
    ResourceDescriptor("product_feature_values", "product_feature_value")
)
TAXES = ResourceMapper(ResourceDescriptor("taxes", "tax"))
TAX_RULES = ResourceMapper(ResourceDescriptor("tax_rules", "tax_rule"))
