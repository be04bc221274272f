"""Images attached to another resource (product, category, manufacturer...)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Union

from ..config import Settings
from ..uploader import AssetUploader, UploadTransport, normalize_sources


@dataclass
class Image:
    resource: str
    id_resource: Any
    source: Union[str, Sequence[str], None]
    id: Optional[int] = None

    def sources(self) -> List[str]:
        return normalize_sources(self.source)

    def uploader(
        self, client: UploadTransport, settings: Optional[Settings] = None
    ) -> AssetUploader:
        if settings is None:
            return AssetUploader(client, self.resource, self.id_resource)
        return AssetUploader(
            client,
            self.resource,
            self.id_resource,
            default_format=settings.IMAGE_DEFAULT_FORMAT,
            max_bytes=settings.IMAGE_MAX_BYTES,
            timeout=settings.REQUEST_TIMEOUT,
        )

    def upload(
        self, client: UploadTransport, settings: Optional[Settings] = None
    ) -> List[Union[Any, bool]]:
        """Upload every source; new image ids or ``False`` per source."""
        return self.uploader(client, settings).upload(self.sources())
