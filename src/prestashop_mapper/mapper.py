"""Generic CRUD protocol for webservice resources.

Every remote entity type is described by a `ResourceDescriptor` (plural
resource path, singular model key, optional canonical-state override and
finder fields). A `ResourceMapper` bound to a descriptor provides the
finder/CRUD operations; each operation takes the transport client as its
first argument so no connection state is held by the mapper itself.

    TAXES = ResourceMapper(ResourceDescriptor("taxes", "tax"))
    TAXES.find(client, 1)                       # -> {"id": 1, "rate": "21.000", ...}
    TAXES.where(client, {"filter": {"active": 1}})            # -> [1, 4]
    TAXES.where(client, {"filter": {"active": 1}, "display": "full"})
                                                # -> [{"id": 1, ...}, {"id": 4, ...}]

Return shape of `where` / `all`: a list of ids when no display fields were
requested and a list of entity mappings when they were. Callers rely on both
shapes, so the mapper never collapses one into the other.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Set, Tuple

from . import payload as payload_builder
from .normalizer import normalize

logger = logging.getLogger(__name__)

AttributeSet = Dict[str, Any]


class Transport(Protocol):  # pragma: no cover - structural typing helper
    def read(
        self, resource: str, id: Any = None, options: Optional[Mapping[str, Any]] = None
    ) -> Optional[Dict[str, Any]]: ...

    def create(self, resource: str, payload: str) -> Optional[Dict[str, Any]]: ...

    def update(self, resource: str, id: Any, payload: str) -> Optional[Dict[str, Any]]: ...

    def delete(self, resource: str, id: Any) -> bool: ...

    def check(self, resource: str, id: Any) -> bool: ...


CanonicalState = Callable[[Transport, Any], Optional[AttributeSet]]


@dataclass(frozen=True)
class ResourceDescriptor:
    resource: str
    model: str
    # Replaces the plain re-fetch when computing the state an update merges onto
    # (e.g. to drop read-only nodes the webservice rejects on PUT).
    canonical_state: Optional[CanonicalState] = field(default=None, compare=False)
    finders: Tuple[str, ...] = ()


_TRUTHY = {"1", "true", "yes"}


def _is_required(spec: Any) -> bool:
    if not isinstance(spec, dict):
        return False
    attr = spec.get("attr")
    if not isinstance(attr, dict):
        return False
    flag = attr.get("required")
    if isinstance(flag, str):
        return flag.strip().lower() in _TRUTHY
    return bool(flag)


class ResourceMapper:
    """Finder and CRUD operations for one resource type."""

    def __init__(self, descriptor: ResourceDescriptor):
        self.descriptor = descriptor

    @property
    def resource(self) -> str:
        return self.descriptor.resource

    @property
    def model(self) -> str:
        return self.descriptor.model

    def __repr__(self) -> str:
        return f"ResourceMapper({self.resource!r}, {self.model!r})"

    def __getattr__(self, name: str) -> Any:
        # find_by_<field> helpers for declared finder fields
        descriptor = self.__dict__.get("descriptor")
        if descriptor is not None and name.startswith("find_by_"):
            attr_name = name[len("find_by_"):]
            if attr_name in descriptor.finders:
                def finder(
                    client: Transport, value: Any, options: Optional[Mapping[str, Any]] = None
                ) -> Any:
                    return self.find_by(client, {attr_name: value}, options)

                finder.__name__ = name
                return finder
        raise AttributeError(f"{type(self).__name__!s} has no attribute {name!r}")

    # ---------------- Reads -----------------

    def exists(self, client: Transport, id: Any) -> bool:
        return client.check(self.resource, id)

    def _unwrap(self, document: Optional[Mapping[str, Any]]) -> Optional[AttributeSet]:
        if not document:
            return None
        entity = document.get(self.model)
        return entity or None

    def find(self, client: Transport, id: Any) -> Optional[AttributeSet]:
        """Single entity by id; ``None`` when the webservice reports nothing."""
        return self._unwrap(client.read(self.resource, id))

    def where(self, client: Transport, options: Optional[Mapping[str, Any]] = None) -> List[Any]:
        """Filtered read. Ids without ``display``, entity mappings with it."""
        opts = dict(options or {})
        document = client.read(self.resource, None, opts)
        return normalize(document, self.resource, self.model, opts)

    def all(self, client: Transport, options: Optional[Mapping[str, Any]] = None) -> List[Any]:
        opts = {k: v for k, v in (options or {}).items() if k != "filter"}
        return self.where(client, opts)

    def find_by(
        self,
        client: Transport,
        filter: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """First match for `filter` (an id, or a mapping when display is set)."""
        opts = dict(options or {})
        opts["limit"] = 1
        opts["filter"] = dict(filter or {})
        results = self.where(client, opts)
        return results[0] if results else None

    def schema(self, client: Transport, include_synopsis: bool = False) -> Dict[str, Any]:
        schema_type = "synopsis" if include_synopsis else "blank"
        return client.read(self.resource, None, {"schema": schema_type}) or {}

    def required_field_names(self, client: Transport) -> Set[str]:
        fields = self.schema(client, True).get(self.model) or {}
        return {name for name, spec in fields.items() if _is_required(spec)}

    # ---------------- Writes -----------------

    def destroy(self, client: Transport, id: Any) -> bool:
        return client.delete(self.resource, id)

    def create(self, client: Transport, attributes: Mapping[str, Any]) -> Optional[AttributeSet]:
        body = payload_builder.build_create_payload(self.descriptor, attributes)
        result = self._unwrap(client.create(self.resource, body))
        logger.debug("ws create resource=%s created=%s", self.resource, result is not None)
        return result

    def current_state(self, client: Transport, id: Any) -> Optional[AttributeSet]:
        if self.descriptor.canonical_state is not None:
            return self.descriptor.canonical_state(client, id)
        return self.find(client, id)

    def update_hash(
        self, client: Transport, id: Any, partial: Optional[Mapping[str, Any]] = None
    ) -> AttributeSet:
        return payload_builder.merge_attributes(self.current_state(client, id), partial)

    def update_payload(
        self, client: Transport, id: Any, partial: Optional[Mapping[str, Any]] = None
    ) -> str:
        return payload_builder.build_update_payload(
            self.descriptor, self.current_state(client, id), partial
        )

    def update(
        self, client: Transport, id: Any, partial: Optional[Mapping[str, Any]] = None
    ) -> Optional[AttributeSet]:
        """Merge `partial` over the current state and PUT it; partial keys win."""
        body = self.update_payload(client, id, partial)
        return self._unwrap(client.update(self.resource, id, body))


__all__ = ["AttributeSet", "ResourceDescriptor", "ResourceMapper", "Transport"]
