"""Tax lookups by country.

PrestaShop attaches taxes to countries through tax rules; a product refers to
a tax rules *group*, not to a tax. These helpers answer "which group gives a
21% rate in CZ?" by returning a rate -> group mapping:

    taxes_by_country(client, "CZ")  # -> {"21": 1, "15": 2, "10": 3}

Rates are keyed by their integer part as a string. Rule foreign keys come
back as xlinked nodes and are unwrapped to integer ids.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from ..mapper import Transport
from ..normalizer import node_value
from .catalog import COUNTRIES, TAX_RULES, TAXES

logger = logging.getLogger(__name__)


def _rate_key(rate: Any) -> str:
    return str(int(float(rate)))


def _ref(node: Any) -> Any:
    value = node_value(node)
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return value


def taxes_by_country_id(client: Transport, country_id: Any) -> Dict[str, Any]:
    rules = TAX_RULES.where(
        client,
        {
            "filter": {"id_country": country_id},
            "display": ["id", "id_tax", "id_tax_rules_group"],
        },
    )
    taxes: Dict[str, Any] = {}
    for rule in rules:
        id_tax = _ref(rule.get("id_tax"))
        tax = TAXES.find(client, id_tax) if id_tax is not None else None
        if not tax:
            logger.debug("tax missing id_tax=%s country_id=%s", id_tax, country_id)
            continue
        taxes[_rate_key(tax.get("rate"))] = _ref(rule.get("id_tax_rules_group"))
    return taxes


def taxes_by_country(client: Transport, iso_code: str) -> Dict[str, Any]:
    country_id = COUNTRIES.find_by_iso_code(client, iso_code)
    if country_id is None:
        return {}
    return taxes_by_country_id(client, country_id)
