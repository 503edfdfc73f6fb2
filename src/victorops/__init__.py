from victorops.config import ClientConfig
from victorops.errors import (
    ApiError,
    AuthenticationError,
    DeserializationError,
    InvalidHeaderError,
    InvalidInputError,
    NotFoundError,
    SerializationError,
    TransportError,
    UrlParseError,
    VictorOpsError,
)
from victorops.models import ContactType, RequestDetails
from victorops.services.victorops_client import ApiResult, VictorOpsClient

__all__ = [
    "ApiError",
    "ApiResult",
    "AuthenticationError",
    "ClientConfig",
    "ContactType",
    "DeserializationError",
    "InvalidHeaderError",
    "InvalidInputError",
    "NotFoundError",
    "RequestDetails",
    "SerializationError",
    "TransportError",
    "UrlParseError",
    "VictorOpsClient",
    "VictorOpsError",
]
