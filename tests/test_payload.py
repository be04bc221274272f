from __future__ import annotations

import pytest
from lxml import etree

from prestashop_mapper.errors import NotFoundError, ValidationError
from prestashop_mapper.mapper import ResourceDescriptor
from prestashop_mapper.payload import (
    build_create_payload,
    build_update_payload,
    hash_id,
    hash_ids,
    hash_lang,
    merge_attributes,
)

TAX = ResourceDescriptor("taxes", "tax")


def test_merge_partial_wins_and_keeps_others():
    current = {"id": 1, "name": "VAT", "rate": "21.000"}
    merged = merge_attributes(current, {"rate": "15.000"})
    assert merged == {"id": 1, "name": "VAT", "rate": "15.000"}
    assert current["rate"] == "21.000"


def test_merge_onto_missing_entity_fails():
    with pytest.raises(NotFoundError):
        merge_attributes(None, {"rate": "15.000"})
    with pytest.raises(NotFoundError):
        build_update_payload(TAX, None, {"rate": "15.000"})


def test_update_payload_contains_merged_fields():
    xml = build_update_payload(TAX, {"id": 1, "name": "VAT"}, {"name": "DPH"})
    node = etree.fromstring(xml.encode("utf-8")).find("tax")
    assert node.findtext("id") == "1"
    assert node.findtext("name") == "DPH"


def test_create_payload_is_attributes_only():
    xml = build_create_payload(TAX, {"rate": "10.000"})
    node = etree.fromstring(xml.encode("utf-8")).find("tax")
    assert [c.tag for c in node] == ["rate"]


def test_hash_lang():
    assert hash_lang("Red", 2) == {"language": {"attr": {"id": 2}, "val": "Red"}}
    with pytest.raises(ValidationError):
        hash_lang("Red", None)


def test_hash_id_and_ids():
    assert hash_id(3) == {"id": 3}
    assert hash_id(None) is None
    assert hash_id(0) == {"id": 0}
    assert hash_ids([0, 1, 0]) == [{"id": 0}, {"id": 1}]
    assert hash_ids([1, [2, 1], (3,), 2]) == [{"id": 1}, {"id": 2}, {"id": 3}]
    assert hash_ids(None) is None
