"""Error taxonomy shared by the transport, payload and mapper layers.

Upload soft failures (invalid locator, invalid image, fetch error) are not
part of this hierarchy: the uploader records them as tagged outcomes so a
batch can continue past a single bad source.
"""
from __future__ import annotations

from typing import Optional


class MapperError(Exception):
    """Base class for all errors raised by prestashop_mapper."""


class TransportError(MapperError):
    """Network or HTTP level failure, or an unparseable webservice response."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NotFoundError(MapperError):
    """An entity was absent where its presence was assumed (e.g. update target)."""


class ValidationError(MapperError):
    """Attributes failed a model's own invariant check before any network call."""


__all__ = ["MapperError", "TransportError", "NotFoundError", "ValidationError"]
