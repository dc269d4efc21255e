"""
config.py - CareEvents client settings.

Usage:
    from careevents.config import ClientSettings
    settings = ClientSettings(client="app")

Settings are passed to the client constructor explicitly. There is no
module-level singleton, so two differently configured clients can live in
the same process (and the same test).
"""
import logging
from enum import Enum
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientMode(str, Enum):
    browser = "browser"   # CSRF cookie + header, session cookie
    app = "app"           # X-Session-Token header, no cookies needed


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CAREEVENTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore any extra env vars
    )

    # --- Backend ---
    base_url: str = "http://localhost:8000"
    api_base_path: str = "/api"
    auth_base_path: str = "/_allauth"
    auth_api_version: str = "v1"

    # --- Credentials ---
    client: ClientMode = ClientMode.browser
    # Send jar cookies on cross-origin requests too (fetch credentials="include")
    with_credentials: bool = False
    csrf_cookie_name: str = "csrftoken"
    csrf_header_name: str = "X-CSRFToken"
    session_token_header_name: str = "X-Session-Token"
    session_token_storage_key: str = "sessionToken"
    app_user_agent: str = "careevents app client"

    # --- Transport ---
    # None means this layer applies no timeout; callers own cancellation.
    request_timeout_seconds: Optional[float] = None

    # --- Chat polling ---
    chat_poll_interval_seconds: float = Field(default=3.0, gt=0)

    # --- Application ---
    debug: bool = False

    @property
    def api_prefix(self) -> str:
        """API base path without a trailing slash, e.g. '/api'."""
        return "/" + self.api_base_path.strip("/")


def configure_logging(settings: ClientSettings) -> None:
    """Configure root logging for scripts and services embedding the client."""
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
