from __future__ import annotations

import io

import httpx
import pytest
from lxml import etree
from PIL import Image as PILImage

from prestashop_mapper import converter
from prestashop_mapper.client import ApiClient
from prestashop_mapper.config import Settings
from prestashop_mapper.errors import ValidationError
from prestashop_mapper.resources import (
    COUNTRIES,
    Image,
    ProductFeatureValue,
    taxes_by_country,
    taxes_by_country_id,
)


_RULE_XML = (
    "<tax_rule>"
    "<id><![CDATA[{id}]]></id>"
    '<id_tax xlink:href="http://shop.example/api/taxes/{tax}"><![CDATA[{tax}]]></id_tax>'
    '<id_tax_rules_group xlink:href="http://shop.example/api/tax_rule_groups/{group}">'
    "<![CDATA[{group}]]></id_tax_rules_group>"
    "</tax_rule>"
)

TAX_RULES_XML = (
    '<prestashop xmlns:xlink="http://www.w3.org/1999/xlink"><tax_rules>'
    + "".join(
        _RULE_XML.format(id=i, tax=t, group=g) for i, t, g in [(1, 1, 1), (2, 2, 2), (3, 99, 3)]
    )
    + "</tax_rules></prestashop>"
)

_TAX_XML = (
    '<prestashop xmlns:xlink="http://www.w3.org/1999/xlink">'
    "<tax><id><![CDATA[{id}]]></id><rate><![CDATA[{rate}]]></rate></tax>"
    "</prestashop>"
)


class _ShopClient:
    """Fake webservice holding a tiny tax catalogue, answering real-shaped XML."""

    def __init__(self):
        self.reads: list[tuple] = []
        self.created: list[tuple[str, str]] = []

    def read(self, resource, id=None, options=None):
        self.reads.append((resource, id, dict(options or {})))
        if resource == "countries":
            iso = (options or {}).get("filter", {}).get("iso_code")
            if iso == "CZ":
                return {"countries": {"country": {"attr": {"id": 16}}}}
            return {"countries": ""}
        if resource == "tax_rules":
            return converter.parse(TAX_RULES_XML)
        if resource == "taxes":
            rates = {1: "21.000", 2: "15.000"}
            if id not in rates:
                return None
            return converter.parse(_TAX_XML.format(id=id, rate=rates[id]))
        return None

    def create(self, resource, payload):
        self.created.append((resource, payload))
        return {"product_feature_value": {"id": 31}}


def test_taxes_by_country_id():
    client = _ShopClient()
    assert taxes_by_country_id(client, 16) == {"21": 1, "15": 2}
    resource, _, options = client.reads[0]
    assert resource == "tax_rules"
    assert options["filter"] == {"id_country": 16}
    assert options["display"]
    assert [r[1] for r in client.reads if r[0] == "taxes"] == [1, 2, 99]


def test_taxes_by_country_id_over_http():
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        if request.url.path == "/api/tax_rules":
            return httpx.Response(200, text=TAX_RULES_XML)
        if request.url.path == "/api/taxes/1":
            return httpx.Response(200, text=_TAX_XML.format(id=1, rate="21.000"))
        return httpx.Response(404)

    with ApiClient("https://shop.example", "KEY", transport=httpx.MockTransport(handler)) as client:
        assert taxes_by_country_id(client, 16) == {"21": 1}
    assert seen == ["/api/tax_rules", "/api/taxes/1", "/api/taxes/2", "/api/taxes/99"]


def test_taxes_by_country_resolves_iso_code():
    client = _ShopClient()
    assert taxes_by_country(client, "CZ") == {"21": 1, "15": 2}
    assert client.reads[0] == (
        "countries",
        None,
        {"limit": 1, "filter": {"iso_code": "CZ"}},
    )
    assert taxes_by_country(client, "XX") == {}


def test_country_finder():
    assert COUNTRIES.find_by_iso_code(_ShopClient(), "CZ") == 16


def test_product_feature_value_payload():
    value = ProductFeatureValue(id_feature=5, custom=1, value="<b>Red</b>; {x}", id_lang=2)
    assert value.to_attributes() == {
        "id_feature": 5,
        "custom": 1,
        "value": {"language": {"attr": {"id": 2}, "val": "Red x"}},
    }
    client = _ShopClient()
    assert value.create(client) == {"id": 31}
    resource, payload = client.created[0]
    assert resource == "product_feature_values"
    node = etree.fromstring(payload.encode("utf-8")).find("product_feature_value")
    assert node.find("value/language").get("id") == "2"
    assert node.findtext("value/language") == "Red x"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"id_feature": "5", "value": "Red", "id_lang": 2},
        {"id_feature": 5, "value": "Red", "id_lang": "2"},
        {"id_feature": 5, "value": "Red", "id_lang": 2, "custom": 3},
        {"id_feature": 5, "value": 7, "id_lang": 2},
        {"id_feature": 5, "value": "Red"},
    ],
)
def test_product_feature_value_validation(kwargs):
    client = _ShopClient()
    with pytest.raises(ValidationError):
        ProductFeatureValue(**kwargs).create(client)
    assert client.created == []


class _UploadClient:
    def __init__(self):
        self.uploads: list[tuple] = []

    def upload(self, resource, owner, parent_id, fields, file):
        self.uploads.append((resource, owner, parent_id))
        return {"image": {"id": len(self.uploads)}}


def test_image_sources():
    assert Image(resource="products", id_resource=1, source="http://a/b.png").sources() == [
        "http://a/b.png"
    ]
    assert Image(resource="products", id_resource=1, source=None).sources() == []


def test_image_upload_uses_settings(tmp_path):
    out = io.BytesIO()
    PILImage.new("RGB", (2, 2)).save(out, format="GIF")
    path = tmp_path / "a.gif"
    path.write_bytes(out.getvalue())
    image = Image(resource="products", id_resource=8, source=[path.as_uri(), "bad"])
    client = _UploadClient()
    settings = Settings(IMAGE_MAX_BYTES=1_000_000)
    assert image.upload(client, settings) == [1, False]
    assert client.uploads == [("images", "products", 8)]
    assert image.uploader(client, settings).max_bytes == 1_000_000
