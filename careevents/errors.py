"""
errors.py - Error taxonomy for the CareEvents client.

  NetworkError    transport failed before any response (DNS, refused, reset).
                  Never retried here; retries are a caller concern.
  BackendError    non-2xx response with no parseable body. A non-2xx response
                  WITH a JSON body is not an exception: ApiClient.request()
                  returns that body and the caller inspects status/detail.
  ResourceError   what resource clients report inside a failed ApiResult;
                  always names the operation, and the HTTP status when there
                  was one.

Unparseable bodies on 2xx responses (malformed responses) are logged and
treated as "no data"; they do not raise.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    validation = "validation"   # rejected client-side, no request sent
    network = "network"         # no response at all
    http = "http"               # non-2xx response
    malformed = "malformed"     # 2xx but body missing or not the expected shape


class CareEventsError(Exception):
    """Base class for every error raised by this package."""


class NetworkError(CareEventsError):
    def __init__(self, method: str, url: str, cause: Optional[BaseException] = None) -> None:
        self.method = method
        self.url = url
        self.cause = cause
        super().__init__(f"Network error during {method} {url}: {cause}")


class BackendError(CareEventsError):
    def __init__(
        self,
        status_code: int,
        reason_phrase: str = "",
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.reason_phrase = reason_phrase
        self.url = url
        super().__init__(f"HTTP error {status_code}: {reason_phrase}".rstrip(": "))


class ResourceError(CareEventsError):
    """Descriptive failure of one resource-client operation."""

    def __init__(
        self,
        operation: str,
        kind: ErrorKind,
        status_code: Optional[int] = None,
        reason_phrase: str = "",
        detail: str = "",
        payload: Any = None,
    ) -> None:
        self.operation = operation
        self.kind = kind
        self.status_code = status_code
        self.reason_phrase = reason_phrase
        self.detail = detail
        self.payload = payload
        super().__init__(self._format())

    def _format(self) -> str:
        message = f"Failed to {self.operation}"
        if self.status_code is not None:
            message += f": HTTP {self.status_code}"
            if self.reason_phrase:
                message += f" {self.reason_phrase}"
        else:
            message += f": {self.kind.value} error"
        if self.detail:
            message += f" ({self.detail})"
        return message


@dataclass(frozen=True)
class ApiResult(Generic[T]):
    """
    Tagged outcome of a resource-client call.

    Exactly one of value/error is meaningful, selected by ok. Presentation
    code checks result.ok once instead of wrapping every call in try/except;
    unwrap() is there for code that prefers exceptions.
    """
    operation: str
    value: Optional[T] = None
    error: Optional[ResourceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, operation: str, value: Optional[T]) -> "ApiResult[T]":
        return cls(operation=operation, value=value)

    @classmethod
    def failure(cls, error: ResourceError) -> "ApiResult[T]":
        return cls(operation=error.operation, error=error)

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


__all__ = [
    "ErrorKind",
    "CareEventsError",
    "NetworkError",
    "BackendError",
    "ResourceError",
    "ApiResult",
]
