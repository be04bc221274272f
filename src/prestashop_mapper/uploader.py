"""Image upload side channel.

After a resource (usually a product) exists, its images are attached with one
multipart upload per source. Each source goes through its own small state
machine and failures are isolated per item:

    PENDING -> VALIDATING -> UPLOADING -> SUCCEEDED
                        \\            \\-> FAILED (upload-error)
                         \\-> FAILED (invalid-locator | fetch-error | invalid-image)

1. The locator must be a well-formed URI: ``http``/``https`` (fetched with
   httpx) or ``file`` (read from disk). Anything else is ``invalid-locator``.
2. The locator is percent-encoded and fetched. Network errors, HTTP errors,
   unreadable files and oversize bodies are ``fetch-error``.
3. The bytes are decoded with Pillow; undecodable content is
   ``invalid-image``.
4. Formats other than JPEG, PNG and GIF are re-encoded to the default format.
5. The file is posted to ``images/<owner>/<parent_id>``; the new image id is
   read from the response. A response without an id is ``upload-error``.

`upload` returns one entry per source in input order: the new image id, or
``False`` for any failure. The soft failures above never abort the batch; a
`TransportError` raised by the upload call itself propagates.
"""
from __future__ import annotations

import io
import logging
import posixpath
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Union
from urllib.parse import quote, unquote, urlparse
from urllib.request import url2pathname

import httpx
from PIL import Image, UnidentifiedImageError

from .client import UploadFile

logger = logging.getLogger(__name__)

IMAGES_RESOURCE = "images"
ACCEPTED_FORMATS = frozenset({"JPEG", "PNG", "GIF"})
REMOTE_SCHEMES = frozenset({"http", "https"})
LOCAL_SCHEMES = frozenset({"file"})

# Reserved characters and existing escapes are left untouched.
_URI_SAFE = ":/?#[]@!$&'()*+,;=%~"

_EXTENSIONS = {"JPEG": "jpg", "PNG": "png", "GIF": "gif"}


class UploadState(str, Enum):
    PENDING = "pending"
    VALIDATING = "validating"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureReason(str, Enum):
    INVALID_LOCATOR = "invalid-locator"
    INVALID_IMAGE = "invalid-image"
    FETCH_ERROR = "fetch-error"
    UPLOAD_ERROR = "upload-error"


class UploadTransport(Protocol):  # pragma: no cover - structural typing helper
    def upload(
        self,
        resource: str,
        owner: str,
        parent_id: Any,
        fields: Optional[Mapping[str, str]],
        file: UploadFile,
    ) -> Optional[Dict[str, Any]]: ...


class FetchError(Exception):
    """Source could not be retrieved."""


@dataclass
class UploadItem:
    source: str
    parent_id: Any
    owner_resource: str
    state: UploadState = UploadState.PENDING
    reason: Optional[FailureReason] = None
    image_id: Any = None

    def fail(self, reason: FailureReason) -> "UploadItem":
        self.state = UploadState.FAILED
        self.reason = reason
        logger.warning(
            "image upload_failed owner=%s parent_id=%s source=%s code=%s",
            self.owner_resource,
            self.parent_id,
            self.source,
            reason.value,
        )
        return self

    def succeed(self, image_id: Any) -> "UploadItem":
        self.state = UploadState.SUCCEEDED
        self.image_id = image_id
        logger.info(
            "image upload_ok owner=%s parent_id=%s image_id=%s",
            self.owner_resource,
            self.parent_id,
            image_id,
        )
        return self

    @property
    def result(self) -> Union[Any, bool]:
        return self.image_id if self.state is UploadState.SUCCEEDED else False


def normalize_sources(source: Union[str, Sequence[str], None]) -> List[str]:
    if not source:
        return []
    if isinstance(source, str):
        return [source]
    return list(source)


def is_valid_locator(source: Any) -> bool:
    if not isinstance(source, str) or not source.strip():
        return False
    parsed = urlparse(source.strip())
    scheme = parsed.scheme.lower()
    if scheme in REMOTE_SCHEMES:
        return bool(parsed.netloc)
    if scheme in LOCAL_SCHEMES:
        return bool(parsed.path)
    return False


def encode_locator(source: str) -> str:
    return quote(source.strip(), safe=_URI_SAFE)


def _filename(locator: str, fmt: str) -> str:
    stem = posixpath.splitext(posixpath.basename(unquote(urlparse(locator).path)))[0] or "image"
    return f"{stem}.{_EXTENSIONS.get(fmt, fmt.lower())}"


class AssetUploader:
    """Uploads image sources to one parent resource (e.g. a product)."""

    def __init__(
        self,
        client: UploadTransport,
        owner_resource: str,
        parent_id: Any,
        *,
        default_format: str = "PNG",
        max_bytes: int = 10_000_000,
        timeout: float = 30,
        fetcher: Optional[Callable[[str], bytes]] = None,
    ):
        self.client = client
        self.owner_resource = owner_resource
        self.parent_id = parent_id
        fmt = default_format.upper()
        self.default_format = "JPEG" if fmt == "JPG" else fmt
        self.max_bytes = max_bytes
        self.timeout = timeout
        self._fetcher = fetcher or self._fetch

    def _fetch(self, locator: str) -> bytes:
        parsed = urlparse(locator)
        if parsed.scheme.lower() in LOCAL_SCHEMES:
            try:
                path = Path(url2pathname(unquote(parsed.path)))
                if path.stat().st_size > self.max_bytes:
                    raise FetchError(f"file exceeds {self.max_bytes} bytes")
                return path.read_bytes()
            except OSError as e:
                raise FetchError(str(e)) from e
        try:
            resp = httpx.get(locator, timeout=self.timeout, follow_redirects=True)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise FetchError(str(e)) from e
        return resp.content

    def _encode(self, data: bytes) -> tuple[bytes, str]:
        """Decode with Pillow, re-encode when the format is not accepted as-is."""
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            fmt = (img.format or "").upper()
            if fmt in ACCEPTED_FORMATS:
                return data, fmt
            target = self.default_format
            converted = img
            if target == "JPEG" and img.mode not in ("RGB", "L"):
                converted = img.convert("RGB")
            elif img.mode not in ("RGB", "RGBA", "L", "LA", "P", "1"):
                converted = img.convert("RGBA")
            out = io.BytesIO()
            converted.save(out, format=target)
            logger.debug("image reencoded from=%s to=%s", fmt or "unknown", target)
            return out.getvalue(), target

    def upload_item(self, item: UploadItem) -> UploadItem:
        item.state = UploadState.VALIDATING
        if not is_valid_locator(item.source):
            return item.fail(FailureReason.INVALID_LOCATOR)
        locator = encode_locator(item.source)
        try:
            data = self._fetcher(locator)
        except FetchError:
            return item.fail(FailureReason.FETCH_ERROR)
        if len(data) > self.max_bytes:
            return item.fail(FailureReason.FETCH_ERROR)
        try:
            content, fmt = self._encode(data)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
            return item.fail(FailureReason.INVALID_IMAGE)

        item.state = UploadState.UPLOADING
        file: UploadFile = (
            _filename(locator, fmt),
            content,
            Image.MIME.get(fmt, "application/octet-stream"),
        )
        document = self.client.upload(
            IMAGES_RESOURCE, item.owner_resource, item.parent_id, {}, file
        )
        image = (document or {}).get("image")
        image_id = image.get("id") if isinstance(image, dict) else None
        if image_id is None:
            return item.fail(FailureReason.UPLOAD_ERROR)
        return item.succeed(image_id)

    def upload_outcomes(self, source: Union[str, Sequence[str], None]) -> List[UploadItem]:
        return [
            self.upload_item(UploadItem(s, self.parent_id, self.owner_resource))
            for s in normalize_sources(source)
        ]

    def upload(self, source: Union[str, Sequence[str], None]) -> List[Union[Any, bool]]:
        """Upload every source; new image ids or ``False`` per source, input order."""
        return [item.result for item in self.upload_outcomes(source)]


__all__ = [
    "AssetUploader",
    "UploadItem",
    "UploadState",
    "FailureReason",
    "FetchError",
    "normalize_sources",
    "is_valid_locator",
    "encode_locator",
]
