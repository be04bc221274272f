"""Named HTML cleaning policies for attribute values.

Text coming from feeds or shop back offices is cleaned explicitly before it
goes into a payload; nothing is attached to ``str``. Each policy is an
allow-list of elements, attributes per element and URL protocols per
attribute:

* ``PLAIN``      strips all markup and the characters ``<>;=#{}``.
* ``RESTRICTED`` keeps only simple inline emphasis (b, em, i, strong, u).
* ``RELAXED``    keeps broad formatting: headings, lists, tables, links, images.
* ``IFRAMED``    is ``RELAXED`` plus ``<iframe src>``, for trusted senders.

HTML entities are always unescaped (repeatedly, so double-escaped input ends
up as markup too) before cleaning. Disallowed elements are
unwrapped (their text is kept) except for script-like elements whose content
is dropped together with the tag.

Rich fields pick their policy from the HTML flag (see `rich_policy`).
"""
from __future__ import annotations

import html as html_lib
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet

from bs4 import BeautifulSoup, Comment

__all__ = [
    "Policy",
    "sanitize",
    "plain",
    "rich_policy",
    "html",
    "truncate",
    "unescape",
]


class Policy(str, Enum):
    PLAIN = "plain"
    RESTRICTED = "restricted"
    RELAXED = "relaxed"
    IFRAMED = "iframed"


RELATIVE = "relative"

_PLAIN_STRIP = str.maketrans("", "", "<>;=#{}")

# Removed including their content, whatever the policy.
_REMOVE_CONTENTS = frozenset(
    {"script", "style", "noscript", "noembed", "noframes", "template", "xmp", "plaintext"}
)

_SCHEME_RE = re.compile(r"^([a-z][a-z0-9+.\-]*):")
_CONTROL_RE = re.compile(r"[\x00-\x20]+")


@dataclass(frozen=True)
class _PolicyConfig:
    elements: FrozenSet[str] = frozenset()
    attributes: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    protocols: Dict[str, Dict[str, FrozenSet[str]]] = field(default_factory=dict)


_RELAXED_ELEMENTS = frozenset(
    """
    a abbr b bdo blockquote br caption cite code col colgroup dd del dfn dl
    dt em figcaption figure h1 h2 h3 h4 h5 h6 hgroup i img ins kbd li mark
    ol p pre q rp rt ruby s samp small strike strong sub sup table tbody td
    tfoot th thead time tr u ul var wbr
    """.split()
)

_RELAXED_ATTRIBUTES: Dict[str, FrozenSet[str]] = {
    "*": frozenset({"dir", "lang", "title"}),
    "a": frozenset({"href"}),
    "blockquote": frozenset({"cite"}),
    "col": frozenset({"span", "width"}),
    "colgroup": frozenset({"span", "width"}),
    "del": frozenset({"cite", "datetime"}),
    "img": frozenset({"align", "alt", "height", "src", "width"}),
    "ins": frozenset({"cite", "datetime"}),
    "ol": frozenset({"start", "reversed", "type"}),
    "q": frozenset({"cite"}),
    "table": frozenset({"summary", "width"}),
    "td": frozenset({"abbr", "axis", "colspan", "rowspan", "width"}),
    "th": frozenset({"abbr", "axis", "colspan", "rowspan", "scope", "width"}),
    "time": frozenset({"datetime", "pubdate"}),
    "ul": frozenset({"type"}),
}

_WEB = frozenset({"http", "https", RELATIVE})

_RELAXED_PROTOCOLS: Dict[str, Dict[str, FrozenSet[str]]] = {
    "a": {"href": frozenset({"ftp", "http", "https", "mailto", RELATIVE})},
    "blockquote": {"cite": _WEB},
    "del": {"cite": _WEB},
    "img": {"src": _WEB},
    "ins": {"cite": _WEB},
    "q": {"cite": _WEB},
}

_POLICIES: Dict[Policy, _PolicyConfig] = {
    Policy.PLAIN: _PolicyConfig(),
    Policy.RESTRICTED: _PolicyConfig(elements=frozenset({"b", "em", "i", "strong", "u"})),
    Policy.RELAXED: _PolicyConfig(
        elements=_RELAXED_ELEMENTS,
        attributes=_RELAXED_ATTRIBUTES,
        protocols=_RELAXED_PROTOCOLS,
    ),
    Policy.IFRAMED: _PolicyConfig(
        elements=_RELAXED_ELEMENTS | {"iframe"},
        attributes={**_RELAXED_ATTRIBUTES, "iframe": frozenset({"src"})},
        protocols={**_RELAXED_PROTOCOLS, "iframe": {"src": _WEB}},
    ),
}


def unescape(text: str) -> str:
    """Decode entities until none are left (``&amp;lt;`` -> ``&lt;`` -> ``<``)."""
    while True:
        decoded = html_lib.unescape(text)
        if decoded == text:
            return text
        text = decoded


def _protocol_allowed(value: str, allowed: FrozenSet[str]) -> bool:
    compact = _CONTROL_RE.sub("", value).lower()
    match = _SCHEME_RE.match(compact)
    if match is None:
        return RELATIVE in allowed
    return match.group(1) in allowed


def _clean(soup: BeautifulSoup, config: _PolicyConfig) -> None:
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    for tag in soup.find_all(lambda t: t.name in _REMOVE_CONTENTS or (
        t.name == "iframe" and "iframe" not in config.elements
    )):
        tag.decompose()
    global_attrs = config.attributes.get("*", frozenset())
    for tag in soup.find_all(True):
        if tag.name not in config.elements:
            tag.unwrap()
            continue
        allowed = global_attrs | config.attributes.get(tag.name, frozenset())
        protocols = config.protocols.get(tag.name, {})
        for attr_name in list(tag.attrs):
            value = tag.attrs[attr_name]
            if isinstance(value, list):
                value = " ".join(value)
            if attr_name not in allowed:
                del tag.attrs[attr_name]
            elif attr_name in protocols and not _protocol_allowed(value, protocols[attr_name]):
                del tag.attrs[attr_name]


def sanitize(text: str | None, policy: Policy = Policy.PLAIN) -> str:
    """Clean `text` with `policy`. ``None`` becomes an empty string."""
    if not text:
        return ""
    soup = BeautifulSoup(unescape(str(text)), "html.parser")
    config = _POLICIES[Policy(policy)]
    _clean(soup, config)
    if policy == Policy.PLAIN:
        return soup.get_text().translate(_PLAIN_STRIP)
    return str(soup)


def plain(text: str | None) -> str:
    return sanitize(text, Policy.PLAIN)


def rich_policy(html_enabled: bool) -> Policy:
    """Policy for rich text fields: embedded frames only when HTML is enabled."""
    return Policy.IFRAMED if html_enabled else Policy.RELAXED


def html(text: str | None, html_enabled: bool) -> str:
    return sanitize(text, rich_policy(html_enabled))


def truncate(text: str | None, length: int = 0) -> str:
    return (text or "")[:length]
