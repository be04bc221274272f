"""Product feature values (e.g. "Color: Red") with local validation.

Invalid attributes raise `ValidationError` when the model is built, before any
request is made. The value text is always reduced to plain text and sent as a
single-language field.
"""
from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from .. import sanitizer
from ..errors import ValidationError
from ..mapper import AttributeSet, Transport
from ..payload import hash_lang
from .catalog import PRODUCT_FEATURE_VALUES


class ProductFeatureValue(BaseModel):
    """A custom or predefined value of a product feature."""

    model_config = ConfigDict(strict=True)

    id: Optional[int] = None
    id_feature: int
    custom: Literal[0, 1] = 0
    value: str
    id_lang: int

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except PydanticValidationError as e:
            raise ValidationError(f"invalid product feature value: {e}") from e

    @property
    def plain_value(self) -> str:
        return sanitizer.plain(self.value)

    def to_attributes(self) -> Dict[str, Any]:
        return {
            "id_feature": self.id_feature,
            "custom": self.custom,
            "value": hash_lang(self.plain_value, self.id_lang),
        }

    def create(self, client: Transport) -> Optional[AttributeSet]:
        return PRODUCT_FEATURE_VALUES.create(client, self.to_attributes())
