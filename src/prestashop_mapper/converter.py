"""XML wire format conversion for the PrestaShop webservice.

Parsing (`parse`) turns a response body into a ParsedDocument: plain nested
dicts/lists with the `<prestashop>` root removed. XML attributes are grouped
under an ``attr`` key and element text that sits next to attributes is kept
under ``val``::

    <images><image id="1" xlink:href="..."/></images>
    -> {"images": {"image": {"attr": {"id": 1, "href": "..."}}}}

Building (`build`) is the reverse for write payloads: one element named after
the model, one sub-element per attribute key. String leaves are wrapped in
CDATA so their exact content survives; ``attr`` / ``val`` keys map back to
XML attributes and element text (the multilingual value shape).

Numeric ``id`` values (element or attribute) are converted to ``int`` while
parsing so that ids compare equal to the integers callers pass in.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import xmltodict
from lxml import etree

from .errors import ValidationError

logger = logging.getLogger(__name__)

XLINK_NS = "http://www.w3.org/1999/xlink"
ROOT_TAG = "prestashop"

_ATTR_PREFIX = "@"
_TEXT_KEY = "#text"


def _coerce_ids(path: Any, key: str, value: Any) -> tuple[str, Any]:
    if key in ("id", "@id") and isinstance(value, str) and value.isdigit():
        return key, int(value)
    return key, value


def _local_name(name: str) -> str:
    # xlink:href -> href
    return name.rsplit(":", 1)[-1]


def _reshape(node: Any) -> Any:
    if isinstance(node, list):
        return [_reshape(n) for n in node]
    if not isinstance(node, dict):
        return node
    out: Dict[str, Any] = {}
    attrs = {
        _local_name(k[len(_ATTR_PREFIX):]): v
        for k, v in node.items()
        if k.startswith(_ATTR_PREFIX) and not k.startswith("@xmlns")
    }
    if attrs:
        out["attr"] = attrs
    for k, v in node.items():
        if k.startswith(_ATTR_PREFIX) or k == _TEXT_KEY:
            continue
        out[k] = _reshape(v)
    if _TEXT_KEY in node:
        if not out:
            return node[_TEXT_KEY]
        out["val"] = node[_TEXT_KEY]
    return out


def parse(body: str | bytes | None) -> Optional[Dict[str, Any]]:
    """Parse a webservice response body into a ParsedDocument.

    Empty bodies yield ``None``. A body without the ``<prestashop>`` wrapper is
    returned as parsed (rooted at its own top-level element).
    """
    if body is None:
        return None
    if isinstance(body, bytes):
        if not body.strip():
            return None
    elif not body.strip():
        return None
    raw = xmltodict.parse(
        body,
        attr_prefix=_ATTR_PREFIX,
        cdata_key=_TEXT_KEY,
        postprocessor=_coerce_ids,
    )
    doc = raw.get(ROOT_TAG, raw) if isinstance(raw, dict) else raw
    if doc is None:
        return {}
    reshaped = _reshape(doc)
    return reshaped if isinstance(reshaped, dict) else {}


def _leaf_text(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def _set_text(element: etree._Element, value: Any) -> None:
    text = _leaf_text(value)
    try:
        element.text = etree.CDATA(text) if isinstance(value, str) and "]]>" not in text else text
    except ValueError as e:
        raise ValidationError(f"value for <{element.tag}> is not valid XML text: {e}") from e


def _fill(element: etree._Element, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, dict):
        for key, child in value.items():
            if key == "attr" and isinstance(child, dict):
                for attr_name, attr_value in child.items():
                    element.set(str(attr_name), _leaf_text(attr_value))
            elif key == "val":
                _set_text(element, child)
            elif isinstance(child, (list, tuple)):
                for item in child:
                    _fill(etree.SubElement(element, str(key)), item)
            else:
                _fill(etree.SubElement(element, str(key)), child)
        return
    _set_text(element, value)


def build(resource: str, model: str, attributes: Dict[str, Any]) -> str:
    """Serialise `attributes` into the wire payload for `model`.

    `resource` is the collection the payload is destined for; it does not
    appear in the document itself.
    """
    if not model:
        raise ValidationError("model name is required to build a payload")
    root = etree.Element(ROOT_TAG, nsmap={"xlink": XLINK_NS})
    _fill(etree.SubElement(root, model), attributes or {})
    payload = etree.tostring(root, encoding="unicode")
    logger.debug("payload built resource=%s model=%s keys=%s", resource, model, list(attributes or {}))
    return payload


__all__ = ["parse", "build", "XLINK_NS"]
