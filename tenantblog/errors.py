import re
from http import HTTPStatus
from typing import Any, Dict, Optional
from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError, PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException
from .logging_config import get_logger

logger = get_logger(__name__)

# stored key -> wire field
FIELD_NAMES = {
    "slug": "slug",
    "shareable_link": "shareableLink",
    "site_id": "siteId",
    "api_key": "apiKey",
    "email": "email",
}

CONFLICT_MESSAGES = {
    "slug": "A blog with this title already exists. Please use a different title.",
    "shareableLink": "This shareable link is already in use.",
    "siteId": "This site ID is already taken.",
    "apiKey": "API key collision, please retry.",
    "email": "User already exists.",
}


class ApiError(HTTPException):
    """Base class for every error the API reports to callers.

    ``kind`` is the stable, machine-checkable name; ``extra`` carries
    field-specific detail rendered next to the message.
    """

    kind = "Internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, headers: Optional[Dict[str, str]] = None, **extra: Any):
        super().__init__(status_code=self.status_code, detail=message, headers=headers)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        body = {"message": self.message, "kind": self.kind}
        body.update(self.extra)
        return body


class ValidationFailed(ApiError):
    kind = "ValidationFailed"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"{field.capitalize()} is required", field=field)
        self.field = field


class Unauthenticated(ApiError):
    kind = "Unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED


class Unauthorized(ApiError):
    kind = "Unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(ApiError):
    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ApiError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ApiError):
    kind = "Conflict"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or CONFLICT_MESSAGES.get(field, f"Duplicate value for {field}"), field=field)
        self.field = field


class Internal(ApiError):
    kind = "Internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


_INDEX_NAME = re.compile(r"index: (\w+?)_-?1")


def conflict_from_duplicate_key(exc: DuplicateKeyError) -> Conflict:
    """Translate a unique-index violation into a Conflict naming the field."""
    details = exc.details or {}
    key_value = details.get("keyValue") or {}
    if key_value:
        stored = next(iter(key_value))
    else:
        match = _INDEX_NAME.search(details.get("errmsg", "") or str(exc))
        stored = match.group(1) if match else "unknown"
    field = FIELD_NAMES.get(stored, stored)
    logger.info("Duplicate key on %s", field)
    return Conflict(field)


async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


HTTP_KINDS = {
    400: "ValidationFailed",
    401: "Unauthenticated",
    403: "Forbidden",
    404: "NotFound",
    409: "Conflict",
}


def _status_kind(status_code: int) -> str:
    # e.g. 405 -> "MethodNotAllowed"
    try:
        return HTTPStatus(status_code).phrase.replace(" ", "").replace("-", "")
    except ValueError:
        return "HttpError"


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    kind = HTTP_KINDS.get(exc.status_code)
    if kind is None:
        kind = "Internal" if exc.status_code >= 500 else _status_kind(exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail), "kind": kind},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    field = None
    message = "Invalid request"
    if errors:
        loc = [str(part) for part in errors[0].get("loc", ()) if part not in ("body", "query", "path", "header")]
        field = ".".join(loc) or None
        message = errors[0].get("msg", message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": message, "kind": "ValidationFailed", "field": field},
    )


async def store_error_handler(request: Request, exc: PyMongoError):
    logger.exception("Store failure on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error", "kind": "Internal"},
    )
