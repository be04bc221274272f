"""HTTP transport for the PrestaShop webservice.

`ApiClient` is the only component that talks to the network. It exposes the
transport contract the mapper layer is written against:

    read(resource, id=None, options=None) -> ParsedDocument | None
    create(resource, payload)             -> ParsedDocument | None
    update(resource, id, payload)         -> ParsedDocument | None
    delete(resource, id)                  -> bool
    check(resource, id)                   -> bool
    upload(resource, owner, parent_id, fields, file) -> ParsedDocument | None

Authentication follows the webservice convention: the API key is sent as the
basic-auth user name with an empty password. Every network failure and every
HTTP status >= 400 (except the 404 cases documented per method) is raised as
`TransportError`, as is a response body that is not well-formed XML (a PHP
notice printed before the document, for instance); nothing is retried here.

Query options are encoded the way the webservice expects them:

    {"filter": {"iso_code": "CZ"}} -> filter[iso_code]=CZ
    {"filter": {"id": [1, 2]}}     -> filter[id]=[1|2]
    {"display": ["id", "name"]}    -> display=[id,name]
    {"display": "full"}            -> display=full
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Tuple
from xml.parsers.expat import ExpatError

import httpx

from . import converter
from .config import Settings
from .errors import TransportError

logger = logging.getLogger(__name__)

# (filename, content, content_type)
UploadFile = Tuple[str, bytes, str]

_XML_HEADERS = {"Content-Type": "text/xml; charset=utf-8"}


def _bracket(values: Any, sep: str) -> str:
    return "[" + sep.join(str(v) for v in values) + "]"


def encode_options(options: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Translate QueryOptions into webservice query parameters."""
    params: Dict[str, str] = {}
    if not options:
        return params
    for key, value in options.items():
        if value is None:
            continue
        if key == "filter":
            for field, cond in (value or {}).items():
                if isinstance(cond, (list, tuple, set)):
                    params[f"filter[{field}]"] = _bracket(cond, "|")
                else:
                    params[f"filter[{field}]"] = str(cond)
        elif key in ("display", "sort") and isinstance(value, (list, tuple)):
            params[key] = _bracket(value, ",")
        else:
            # limit, schema, literal display=full and raw `filter[x]` keys
            params[key] = str(value)
    return params


class ApiClient:
    """Synchronous webservice client built on `httpx.Client`."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        *,
        timeout: float = 30,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not api_url:
            raise ValueError("api_url is required")
        base = api_url.rstrip("/")
        if not base.endswith("/api"):
            base = f"{base}/api"
        self.base_url = base
        self._http = httpx.Client(
            base_url=base + "/",
            auth=(api_key, ""),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, *, transport: Optional[httpx.BaseTransport] = None
    ) -> "ApiClient":
        return cls(
            settings.PRESTASHOP_API_URL,
            settings.PRESTASHOP_API_KEY,
            timeout=settings.REQUEST_TIMEOUT,
            transport=transport,
        )

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    @staticmethod
    def _path(*segments: Any) -> str:
        return "/".join(str(s) for s in segments if s is not None and s != "")

    def _request(
        self,
        method: str,
        path: str,
        *,
        tolerate: Tuple[int, ...] = (),
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            resp = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} request failed: {e}") from e
        logger.debug("ws request method=%s path=%s status=%s", method, path, resp.status_code)
        if resp.status_code >= 400 and resp.status_code not in tolerate:
            raise TransportError(
                f"{method} {path} failed status={resp.status_code} body={resp.text[:500]}",
                status_code=resp.status_code,
                body=resp.text,
            )
        return resp

    @staticmethod
    def _parse(resp: httpx.Response) -> Optional[Dict[str, Any]]:
        try:
            return converter.parse(resp.content)
        except ExpatError as e:
            raise TransportError(
                f"{resp.request.method} {resp.request.url.path} returned malformed XML: {e} "
                f"body={resp.text[:500]}",
                status_code=resp.status_code,
                body=resp.text,
            ) from e

    def read(
        self,
        resource: str,
        id: Any = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """GET a collection or a single entity; ``None`` when the server answers 404."""
        resp = self._request(
            "GET", self._path(resource, id), params=encode_options(options), tolerate=(404,)
        )
        if resp.status_code == 404:
            return None
        return self._parse(resp)

    def create(self, resource: str, payload: str) -> Optional[Dict[str, Any]]:
        resp = self._request(
            "POST", self._path(resource), content=payload.encode("utf-8"), headers=_XML_HEADERS
        )
        return self._parse(resp)

    def update(self, resource: str, id: Any, payload: str) -> Optional[Dict[str, Any]]:
        resp = self._request(
            "PUT", self._path(resource, id), content=payload.encode("utf-8"), headers=_XML_HEADERS
        )
        return self._parse(resp)

    def delete(self, resource: str, id: Any) -> bool:
        resp = self._request("DELETE", self._path(resource, id), tolerate=(404,))
        return resp.is_success

    def check(self, resource: str, id: Any) -> bool:
        resp = self._request("HEAD", self._path(resource, id), tolerate=(404,))
        return resp.status_code == 200

    def upload(
        self,
        resource: str,
        owner: str,
        parent_id: Any,
        fields: Optional[Mapping[str, str]],
        file: UploadFile,
    ) -> Optional[Dict[str, Any]]:
        """Multipart POST of one binary file attached to ``owner/parent_id``.

        Images are posted to ``/images/<owner>/<parent_id>`` with the file in
        the ``image`` form field.
        """
        resp = self._request(
            "POST",
            self._path(resource, owner, parent_id),
            data=dict(fields or {}),
            files={"image": file},
        )
        return self._parse(resp)


__all__ = ["ApiClient", "UploadFile", "encode_options"]
