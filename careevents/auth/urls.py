"""
urls.py - Headless auth endpoint catalog.

Every endpoint lives under {auth_base_path}/{client}/{version}/, e.g.
/_allauth/browser/v1/auth/login. The client segment follows the configured
ClientMode so app-mode clients talk to the token-based endpoints.
"""
from dataclasses import dataclass
from enum import Enum

from careevents.config import ClientSettings


class AuthEndpoint(str, Enum):
    # Meta
    CONFIG = "config"

    # Account management
    CHANGE_PASSWORD = "account/password/change"
    EMAIL = "account/email"
    PROVIDERS = "account/providers"

    # Account management: 2FA
    AUTHENTICATORS = "account/authenticators"
    RECOVERY_CODES = "account/authenticators/recovery-codes"
    TOTP_AUTHENTICATOR = "account/authenticators/totp"

    # Auth: basics
    LOGIN = "auth/login"
    REQUEST_LOGIN_CODE = "auth/code/request"
    CONFIRM_LOGIN_CODE = "auth/code/confirm"
    SESSION = "auth/session"
    REAUTHENTICATE = "auth/reauthenticate"
    REQUEST_PASSWORD_RESET = "auth/password/request"
    RESET_PASSWORD = "auth/password/reset"
    SIGNUP = "auth/signup"
    VERIFY_EMAIL = "auth/email/verify"

    # Auth: 2FA
    MFA_AUTHENTICATE = "auth/2fa/authenticate"
    MFA_REAUTHENTICATE = "auth/2fa/reauthenticate"

    # Auth: social
    PROVIDER_SIGNUP = "auth/provider/signup"
    PROVIDER_TOKEN = "auth/provider/token"

    # Auth: sessions
    SESSIONS = "auth/sessions"


@dataclass(frozen=True)
class AuthURLs:
    """Resolves AuthEndpoint members to absolute paths for one client mode."""

    prefix: str

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> "AuthURLs":
        base = "/" + settings.auth_base_path.strip("/")
        return cls(prefix=f"{base}/{settings.client.value}/{settings.auth_api_version}")

    def __getitem__(self, endpoint: AuthEndpoint) -> str:
        return f"{self.prefix}/{AuthEndpoint(endpoint).value}"

    @property
    def config(self) -> str:
        """The one endpoint fetched without credentials (used pre-authentication)."""
        return self[AuthEndpoint.CONFIG]
