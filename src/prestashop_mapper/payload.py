"""Write payload construction.

Create payloads serialise the given attributes as-is. Update payloads are a
shallow merge of the caller's partial attributes over the entity's current
state, so fields the caller did not mention keep their remote values:

    current = {"id": 1, "name": "BMW", "manufacturer": "BMW AG"}
    partial = {"name": "BMW 7"}
    merged  = {"id": 1, "name": "BMW 7", "manufacturer": "BMW AG"}

Also holds the small value helpers used when preparing attributes
(multilingual wrapper, id reference lists).
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional

from . import converter
from .errors import NotFoundError, ValidationError

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .mapper import ResourceDescriptor


def merge_attributes(
    current: Optional[Mapping[str, Any]], partial: Optional[Mapping[str, Any]]
) -> Dict[str, Any]:
    if current is None:
        raise NotFoundError("cannot merge update onto a missing entity")
    merged = dict(current)
    merged.update(partial or {})
    return merged


def build_create_payload(descriptor: "ResourceDescriptor", attributes: Mapping[str, Any]) -> str:
    return converter.build(descriptor.resource, descriptor.model, dict(attributes))


def build_update_payload(
    descriptor: "ResourceDescriptor",
    current: Optional[Mapping[str, Any]],
    partial: Optional[Mapping[str, Any]],
) -> str:
    return converter.build(descriptor.resource, descriptor.model, merge_attributes(current, partial))


def hash_lang(value: Any, language_id: Optional[int]) -> Dict[str, Any]:
    """Wrap `value` as a single-language field value.

    >>> hash_lang("Red", 2)
    {'language': {'attr': {'id': 2}, 'val': 'Red'}}
    """
    if language_id is None:
        raise ValidationError("language id is required for multilingual values")
    return {"language": {"attr": {"id": language_id}, "val": value}}


def hash_id(id: Any) -> Optional[Dict[str, Any]]:
    return {"id": id} if id is not None else None


def _flatten(values: Iterable[Any]) -> Iterable[Any]:
    for v in values:
        if isinstance(v, (list, tuple, set)):
            yield from _flatten(v)
        else:
            yield v


def hash_ids(ids: Optional[Iterable[Any]]) -> Optional[List[Dict[str, Any]]]:
    """Unique ``{"id": ...}`` references, flattened, first occurrence order kept."""
    if ids is None:
        return None
    seen: List[Any] = []
    for id in _flatten(ids):
        if id not in seen:
            seen.append(id)
    return [ref for ref in (hash_id(i) for i in seen) if ref is not None]


__all__ = [
    "merge_attributes",
    "build_create_payload",
    "build_update_payload",
    "hash_lang",
    "hash_id",
    "hash_ids",
]
