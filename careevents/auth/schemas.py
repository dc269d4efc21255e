"""
schemas.py - Auth API Pydantic v2 data contracts.

Defines:
  - AuthProcess, Flow, AuthenticatorType  enums
  - EnvelopeMeta, EnvelopeError, Envelope  (uniform auth response envelope)

Envelope shape returned by every auth endpoint:
    {"status": 200, "data": {...}, "meta": {"session_token": "...", "is_authenticated": true}}

Parsing is tolerant by contract: a field with the wrong type or a missing
field is treated as absent, never as an error. Envelope.from_payload() is
the parse boundary used by the response interpreter and the AuthApi.
"""
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class AuthProcess(str, Enum):
    login = "login"
    connect = "connect"


class Flow(str, Enum):
    verify_email = "verify_email"
    login = "login"
    login_by_code = "login_by_code"
    signup = "signup"
    provider_redirect = "provider_redirect"
    provider_signup = "provider_signup"
    mfa_authenticate = "mfa_authenticate"
    reauthenticate = "reauthenticate"
    mfa_reauthenticate = "mfa_reauthenticate"
    mfa_webauthn_signup = "mfa_signup_webauthn"


class AuthenticatorType(str, Enum):
    totp = "totp"
    recovery_codes = "recovery_codes"
    webauthn = "webauthn"


# Envelope status codes with a session meaning
STATUS_OK = 200
STATUS_UNAUTHORIZED = 401    # not (or no longer) authenticated; pending flows in data
STATUS_CONFLICT = 409        # already logged in
STATUS_GONE = 410            # session token invalid, must be dropped


def _int_or_none(value: Any) -> Optional[int]:
    # bool is an int subclass; True must not read as status 1
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


# ---------------------------------------------------------------------------
# Envelope parts
# ---------------------------------------------------------------------------

class EnvelopeMeta(BaseModel):
    """Session bookkeeping carried beside the payload."""
    model_config = ConfigDict(extra="allow")

    session_token: Optional[str] = None
    is_authenticated: Optional[bool] = None

    @field_validator("session_token", mode="before")
    @classmethod
    def _token(cls, value: Any) -> Optional[str]:
        # Empty string is "no token", same as missing
        return value if isinstance(value, str) and value else None

    @field_validator("is_authenticated", mode="before")
    @classmethod
    def _authenticated(cls, value: Any) -> Optional[bool]:
        return value if isinstance(value, bool) else None


class EnvelopeError(BaseModel):
    """Single field or form error reported by the auth backend."""
    model_config = ConfigDict(extra="allow")

    message: str = ""
    code: Optional[str] = None
    param: Optional[str] = None

    @field_validator("message", mode="before")
    @classmethod
    def _message(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("code", "param", mode="before")
    @classmethod
    def _optional_str(cls, value: Any) -> Optional[str]:
        return _str_or_none(value)


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------

class Envelope(BaseModel):
    """
    Uniform auth API response.

    status is the payload-embedded status, which may differ from the HTTP
    status (a 401 envelope describing pending login flows is a normal answer).
    Unknown top-level keys are kept as extras so callers can still reach them.
    """
    model_config = ConfigDict(extra="allow")

    status: Optional[int] = None
    data: Any = None
    meta: Optional[EnvelopeMeta] = None
    detail: Optional[str] = None
    errors: List[EnvelopeError] = Field(default_factory=list)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> Optional[int]:
        return _int_or_none(value)

    @field_validator("meta", mode="before")
    @classmethod
    def _meta(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @field_validator("detail", mode="before")
    @classmethod
    def _detail(cls, value: Any) -> Optional[str]:
        return _str_or_none(value)

    @field_validator("errors", mode="before")
    @classmethod
    def _errors(cls, value: Any) -> list:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["Envelope"]:
        """Parse a decoded JSON body. Returns None when it is not a JSON object."""
        if not isinstance(payload, dict):
            return None
        try:
            return cls.model_validate(payload)
        except ValidationError:
            # Field validators coerce bad values to None; this is unreachable
            # in practice but the contract is "absent, never raised".
            return cls()

    # --- Session signals ---

    @property
    def session_token(self) -> Optional[str]:
        return self.meta.session_token if self.meta else None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.meta and self.meta.is_authenticated)

    @property
    def is_session_gone(self) -> bool:
        return self.status == STATUS_GONE

    @property
    def signals_auth_change(self) -> bool:
        """True when this envelope should be broadcast as an auth change."""
        if self.status in (STATUS_UNAUTHORIZED, STATUS_GONE):
            return True
        return self.status == STATUS_OK and self.is_authenticated

    @property
    def is_login_success(self) -> bool:
        """Login answered 200, or 409 because the session is already authenticated."""
        return self.status in (STATUS_OK, STATUS_CONFLICT)

    # --- Data views ---

    @property
    def pending_flows(self) -> List[Flow]:
        """
        Flows offered in data.flows, in server order (e.g. login, signup on a
        401, mfa_authenticate after a password login). Unknown ids are skipped.
        """
        flows = self.data.get("flows") if isinstance(self.data, dict) else None
        if not isinstance(flows, list):
            return []
        known = {flow.value for flow in Flow}
        return [
            Flow(item["id"]) for item in flows
            if isinstance(item, dict) and item.get("id") in known
        ]

    @property
    def authenticator_types(self) -> List[AuthenticatorType]:
        """Types listed by the authenticators endpoint (data is a list of {"type": ...})."""
        if not isinstance(self.data, list):
            return []
        known = {kind.value for kind in AuthenticatorType}
        return [
            AuthenticatorType(item["type"]) for item in self.data
            if isinstance(item, dict) and item.get("type") in known
        ]

    def error_message(self, default: str = "") -> str:
        """First human-readable error: errors[0], then data.detail, then detail."""
        for error in self.errors:
            if error.message:
                return error.message
        if isinstance(self.data, dict) and isinstance(self.data.get("detail"), str):
            return self.data["detail"]
        return self.detail or default


__all__ = [
    "AuthProcess",
    "Flow",
    "AuthenticatorType",
    "EnvelopeMeta",
    "EnvelopeError",
    "Envelope",
    "STATUS_OK",
    "STATUS_UNAUTHORIZED",
    "STATUS_CONFLICT",
    "STATUS_GONE",
]
