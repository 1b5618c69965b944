from enum import Enum
from typing import Dict

import httpx
from sqlalchemy.exc import SQLAlchemyError

from leadtime_sync.exceptions import ConfigurationError, MalformedPayloadError


class ErrorKind(Enum):
    TRANSIENT = "TRANSIENT"
    AUTHENTICATION = "AUTHENTICATION"
    CONFIGURATION = "CONFIGURATION"
    MALFORMED_PAYLOAD = "MALFORMED_PAYLOAD"
    STORAGE = "STORAGE"
    OTHER = "OTHER"


def classify_error(exc: BaseException) -> ErrorKind:
    if isinstance(exc, ConfigurationError):
        return ErrorKind.CONFIGURATION
    if isinstance(exc, MalformedPayloadError):
        return ErrorKind.MALFORMED_PAYLOAD
    if isinstance(exc, httpx.HTTPStatusError):
        if exc.response.status_code in (401, 403):
            return ErrorKind.AUTHENTICATION
        return ErrorKind.TRANSIENT
    if isinstance(exc, httpx.RequestError):
        return ErrorKind.TRANSIENT
    if isinstance(exc, ValueError):
        # json decoding errors surface as ValueError
        return ErrorKind.MALFORMED_PAYLOAD
    if isinstance(exc, SQLAlchemyError):
        return ErrorKind.STORAGE
    return ErrorKind.OTHER


def explain_error(exc: BaseException) -> str:
    kind = classify_error(exc)
    templates: Dict[ErrorKind, str] = {
        ErrorKind.TRANSIENT: "Transient API error: {detail}",
        ErrorKind.AUTHENTICATION: "Authentication error: invalid or insufficient credentials ({detail})",
        ErrorKind.CONFIGURATION: "Configuration error: {detail}",
        ErrorKind.MALFORMED_PAYLOAD: "Malformed payload: {detail}",
        ErrorKind.STORAGE: "Storage error: {detail}",
        ErrorKind.OTHER: "Sync error: {detail}",
    }
    if isinstance(exc, httpx.HTTPStatusError):
        detail = f"HTTP {exc.response.status_code} from {exc.request.url.copy_with(query=None)}"
    elif isinstance(exc, httpx.TimeoutException):
        detail = "timeout, server not responding"
    else:
        detail = str(exc) or exc.__class__.__name__
    return templates[kind].format(detail=detail)
