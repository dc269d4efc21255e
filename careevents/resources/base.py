"""
base.py - Shared plumbing for the REST resource clients.

Every resource call goes through ResourceClient._call():
  1. validate the outgoing payload model (failure -> ErrorKind.validation, no request)
  2. ApiClient.fetch()                      (NetworkError -> ErrorKind.network)
  3. normalize_response()                   (non-2xx -> ErrorKind.http,
                                             wrong shape -> ErrorKind.malformed)

so callers get one ApiResult to inspect instead of a try/except per call site.
Resource clients hold no state of their own beyond the ApiClient.
"""
import logging
from typing import Any, Callable, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from careevents.errors import ApiResult, ErrorKind, NetworkError, ResourceError
from careevents.transport import ApiClient, ApiResponse

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

Parser = Callable[[Any], Any]


# ---------------------------------------------------------------------------
# Response parsers
# ---------------------------------------------------------------------------

def parse_one(model: Type[M]) -> Callable[[Any], M]:
    return model.model_validate


def parse_many(model: Type[M]) -> Callable[[Any], List[M]]:
    """Accept a bare JSON list, or a paginated {"results": [...]} page."""
    def _parse(payload: Any) -> List[M]:
        if isinstance(payload, dict) and isinstance(payload.get("results"), list):
            payload = payload["results"]
        if not isinstance(payload, list):
            raise TypeError(f"expected a list, got {type(payload).__name__}")
        return [model.model_validate(item) for item in payload]
    return _parse


# ---------------------------------------------------------------------------
# Error normalization
# ---------------------------------------------------------------------------

def describe_payload(payload: Any) -> str:
    """
    Pull a short human-readable reason out of an error body.
    Handles {"detail": "..."} and DRF field errors {"name": ["This field is required."]}.
    """
    if isinstance(payload, dict):
        if isinstance(payload.get("detail"), str):
            return payload["detail"]
        parts = []
        for field, messages in payload.items():
            if isinstance(messages, list):
                messages = " ".join(str(message) for message in messages)
            parts.append(f"{field}: {messages}")
        return "; ".join(parts)
    if isinstance(payload, list):
        return "; ".join(str(item) for item in payload)
    if payload is None:
        return ""
    return str(payload)


def normalize_response(
    operation: str,
    response: ApiResponse,
    parse: Optional[Parser] = None,
) -> ApiResult:
    """
    Turn an ApiResponse into a tagged ApiResult.

    parse=None means the operation expects no body (e.g. DELETE); the
    result value is then whatever payload came back, usually None. An
    empty or non-JSON 2xx body is a success with no data here.

    With a parser the operation needs a value (create, get, list), so a
    2xx body that is empty, not JSON, or the wrong shape is an
    ErrorKind.malformed failure instead.
    """
    if not response.ok:
        error = ResourceError(
            operation,
            ErrorKind.http,
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            detail=describe_payload(response.payload),
            payload=response.payload,
        )
        logger.warning("%s failed status=%d", operation, response.status_code)
        return ApiResult.failure(error)

    if parse is None:
        return ApiResult.success(operation, response.payload)

    if response.payload is None:
        logger.warning("%s returned status=%d with no JSON body", operation, response.status_code)
        return ApiResult.failure(ResourceError(
            operation,
            ErrorKind.malformed,
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            detail="response body missing or not JSON",
        ))

    try:
        value = parse(response.payload)
    except (TypeError, ValueError) as exc:  # pydantic ValidationError is a ValueError
        logger.warning("%s returned an unexpected payload shape: %s", operation, exc)
        return ApiResult.failure(ResourceError(
            operation,
            ErrorKind.malformed,
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            detail="unexpected response shape",
            payload=response.payload,
        ))
    return ApiResult.success(operation, value)


def validation_failure(operation: str, exc: ValidationError) -> ApiResult:
    fields = ", ".join(
        ".".join(str(part) for part in error["loc"]) or "payload"
        for error in exc.errors()
    )
    return ApiResult.failure(ResourceError(
        operation,
        ErrorKind.validation,
        detail=f"invalid {fields}",
    ))


# ---------------------------------------------------------------------------
# Base client
# ---------------------------------------------------------------------------

class ResourceClient:
    """Base class: path templating plus the single _call() funnel."""

    def __init__(self, api: ApiClient) -> None:
        self.api = api

    def path(self, *segments: Union[str, int]) -> str:
        """Build '{api_prefix}/seg/seg/' with the backend's trailing-slash convention."""
        joined = "/".join(str(segment).strip("/") for segment in segments)
        return f"{self.api.settings.api_prefix}/{joined}/"

    async def _call(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        parse: Optional[Parser] = None,
        body: Union[BaseModel, Mapping[str, Any], None] = None,
        body_model: Optional[Type[BaseModel]] = None,
        exclude_unset: bool = False,
        files: Optional[Mapping[str, Any]] = None,
        form: Optional[Mapping[str, Any]] = None,
    ) -> ApiResult:
        data: Any = None
        if body_model is not None:
            try:
                model = body if isinstance(body, body_model) else body_model.model_validate(body or {})
            except ValidationError as exc:
                logger.info("%s rejected client-side: %d validation error(s)", operation, exc.error_count())
                return validation_failure(operation, exc)
            data = model.model_dump(mode="json", exclude_unset=exclude_unset)
        elif body is not None:
            data = body

        try:
            response = await self.api.fetch(method, path, data, files=files, form=form)
        except NetworkError as exc:
            return ApiResult.failure(ResourceError(
                operation,
                ErrorKind.network,
                detail=str(exc.cause) if exc.cause else "",
            ))
        return normalize_response(operation, response, parse)
