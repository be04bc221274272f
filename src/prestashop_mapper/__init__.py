"""Object mapping client for the PrestaShop XML webservice.

Remote resources are exposed as `ResourceMapper` instances (see
`prestashop_mapper.resources`); every operation takes an `ApiClient` as its
first argument.
"""
from .client import ApiClient
from .errors import MapperError, NotFoundError, TransportError, ValidationError
from .mapper import ResourceDescriptor, ResourceMapper
from .sanitizer import Policy, sanitize
from .uploader import AssetUploader

__all__ = [
    "ApiClient",
    "AssetUploader",
    "MapperError",
    "NotFoundError",
    "Policy",
    "ResourceDescriptor",
    "ResourceMapper",
    "TransportError",
    "ValidationError",
    "sanitize",
]
