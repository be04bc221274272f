from __future__ import annotations

from prestashop_mapper.normalizer import entity_id, node_value, normalize


def test_missing_or_non_mapping_resource_is_empty():
    assert normalize(None, "taxes", "tax") == []
    assert normalize({}, "taxes", "tax") == []
    assert normalize({"taxes": None}, "taxes", "tax") == []
    assert normalize({"taxes": ""}, "taxes", "tax") == []


def test_missing_model_is_empty():
    assert normalize({"taxes": {"other": []}}, "taxes", "tax") == []
    assert normalize({"taxes": {"tax": None}}, "taxes", "tax") == []


def test_single_entity_is_wrapped_in_list():
    doc = {"taxes": {"tax": {"attr": {"id": 1, "href": "http://shop/api/taxes/1"}}}}
    assert normalize(doc, "taxes", "tax") == [1]


def test_list_of_ids():
    doc = {"taxes": {"tax": [{"attr": {"id": 1}}, {"attr": {"id": 2}}, {"attr": {"id": 7}}]}}
    assert normalize(doc, "taxes", "tax") == [1, 2, 7]


def test_display_returns_mappings_from_same_document():
    entity = {"attr": {"id": 1}, "id": 1, "rate": "21.000"}
    doc = {"taxes": {"tax": entity}}
    assert normalize(doc, "taxes", "tax", {"display": ["id", "rate"]}) == [entity]
    assert normalize(doc, "taxes", "tax", {"display": "full"}) == [entity]
    assert normalize(doc, "taxes", "tax", {}) == [1]


def test_entity_id_fallbacks():
    assert entity_id({"attr": {"id": 3}}) == 3
    assert entity_id({"id": 4}) == 4
    assert entity_id(5) == 5


def test_node_value_unwraps_xlinked_nodes():
    assert node_value({"attr": {"href": "http://shop.example/api/taxes/1"}, "val": "1"}) == "1"
    assert node_value({"attr": {"href": "http://shop.example/api/taxes/1"}}) is None
    assert node_value("21.000") == "21.000"
    assert node_value(None) is None
