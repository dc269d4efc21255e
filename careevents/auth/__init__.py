"""Headless auth: envelope contracts, endpoint catalog, auth-change notification."""
from careevents.auth.events import AUTH_CHANGE_EVENT, AuthChangeEmitter
from careevents.auth.schemas import AuthenticatorType, AuthProcess, Envelope, EnvelopeMeta, Flow
from careevents.auth.urls import AuthEndpoint, AuthURLs

__all__ = [
    "AUTH_CHANGE_EVENT",
    "AuthChangeEmitter",
    "AuthenticatorType",
    "AuthProcess",
    "Envelope",
    "EnvelopeMeta",
    "Flow",
    "AuthEndpoint",
    "AuthURLs",
]
