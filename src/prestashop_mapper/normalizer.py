"""Result normalisation for collection reads.

Collection responses come back in several shapes depending on how many
entities matched and whether display fields were requested:

    {"taxes": None}                                       -> []
    {"taxes": {"tax": {"attr": {"id": 1}}}}               -> [1]
    {"taxes": {"tax": [{"attr": {"id": 1}}, {"attr": {"id": 2}}]}} -> [1, 2]
    {"taxes": {"tax": [{"id": 1, "rate": "21"}]}} with display -> [{...}]

`normalize` always returns a list. Without display fields it is a list of
ids, with display fields a list of entity mappings.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional


def entity_id(entity: Any) -> Any:
    """Id of an entity in reference form (``attr.id``), falling back to ``id``."""
    if isinstance(entity, dict):
        attr = entity.get("attr")
        if isinstance(attr, dict) and "id" in attr:
            return attr["id"]
        return entity.get("id")
    return entity


def node_value(node: Any) -> Any:
    """Text of a parsed element, unwrapping ``{"attr": ..., "val": ...}`` nodes.

    xlinked foreign keys (``<id_tax xlink:href="...">1</id_tax>``) parse into
    a mapping; plain elements are already scalars and are returned as is.
    """
    if isinstance(node, dict):
        return node.get("val")
    return node


def normalize(
    document: Optional[Mapping[str, Any]],
    resource: str,
    model: str,
    options: Optional[Mapping[str, Any]] = None,
) -> List[Any]:
    if not document:
        return []
    collection = document.get(resource)
    if not isinstance(collection, dict):
        return []
    objects = collection.get(model)
    if objects is None:
        return []
    entities: List[Dict[str, Any]] = objects if isinstance(objects, list) else [objects]
    if options and options.get("display"):
        return list(entities)
    return [entity_id(o) for o in entities]


__all__ = ["normalize", "entity_id", "node_value"]
