"""
careevents - session-aware API client for the CareEvents assisted-living admin backend.

Usage:
    from careevents import CareEventsClient, ClientSettings

    async with CareEventsClient(ClientSettings(base_url="https://care.example")) as client:
        result = await client.elders.list()
"""
from careevents.client import CareEventsClient
from careevents.config import ClientMode, ClientSettings, configure_logging
from careevents.errors import (
    ApiResult,
    BackendError,
    CareEventsError,
    ErrorKind,
    NetworkError,
    ResourceError,
)

__version__ = "0.1.0"

__all__ = [
    "CareEventsClient",
    "ClientMode",
    "ClientSettings",
    "configure_logging",
    "ApiResult",
    "BackendError",
    "CareEventsError",
    "ErrorKind",
    "NetworkError",
    "ResourceError",
]
