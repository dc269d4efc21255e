"""
api.py - Headless auth API calls.

Thin wrappers over ApiClient.request(): each sends one request to a catalog
endpoint and returns the parsed Envelope (None for an empty body). Session
token capture and auth-change broadcast happen inside the transport for
every response, so nothing here touches the token store directly.

Envelope statuses are the backend's, not ours: a 401 envelope from get_auth()
is the normal "not logged in" answer, not an error. Only opaque non-2xx
responses (no JSON body) raise BackendError.

Not carried: WebAuthn ceremonies and the provider-redirect form post, which
need a browser to complete.
"""
import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from careevents.auth.schemas import AuthProcess, Envelope
from careevents.auth.urls import AuthEndpoint
from careevents.transport import ApiClient

logger = logging.getLogger(__name__)

EMAIL_VERIFICATION_KEY_HEADER = "X-Email-Verification-Key"
PASSWORD_RESET_KEY_HEADER = "X-Password-Reset-Key"


class AuthApi:

    def __init__(self, api: ApiClient) -> None:
        self.api = api
        self.urls = api.urls

    async def _send(
        self,
        method: str,
        endpoint: AuthEndpoint,
        data: Optional[Mapping[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Optional[Envelope]:
        payload = await self.api.request(method, self.urls[endpoint], data, headers)
        return Envelope.from_payload(payload)

    # --- Meta ---

    async def get_config(self) -> Optional[Envelope]:
        """Fetch auth configuration. Sent without credentials; also primes the CSRF cookie."""
        return await self._send("GET", AuthEndpoint.CONFIG)

    # --- Session ---

    async def get_auth(self) -> Optional[Envelope]:
        return await self._send("GET", AuthEndpoint.SESSION)

    async def login(self, data: Mapping[str, Any]) -> Optional[Envelope]:
        envelope = await self._send("POST", AuthEndpoint.LOGIN, data)
        if envelope is not None:
            logger.info("Login answered status=%s", envelope.status)
        return envelope

    async def logout(self) -> Optional[Envelope]:
        return await self._send("DELETE", AuthEndpoint.SESSION)

    async def signup(self, data: Mapping[str, Any]) -> Optional[Envelope]:
        return await self._send("POST", AuthEndpoint.SIGNUP, data)

    async def reauthenticate(self, data: Mapping[str, Any]) -> Optional[Envelope]:
        return await self._send("POST", AuthEndpoint.REAUTHENTICATE, data)

    async def get_sessions(self) -> Optional[Envelope]:
        return await self._send("GET", AuthEndpoint.SESSIONS)

    async def end_sessions(self, session_ids: Iterable[int]) -> Optional[Envelope]:
        return await self._send("DELETE", AuthEndpoint.SESSIONS, {"sessions": list(session_ids)})

    # --- Login by code ---

    async def request_login_code(self, email: str) -> Optional[Envelope]:
        return await self._send("POST", AuthEndpoint.REQUEST_LOGIN_CODE, {"email": email})

    async def confirm_login_code(self, code: str) -> Optional[Envelope]:
        return await self._send("POST", AuthEndpoint.CONFIRM_LOGIN_CODE, {"code": code})

    # --- Passwords ---

    async def request_password_reset(self, email: str) -> Optional[Envelope]:
        return await self._send("POST", AuthEndpoint.REQUEST_PASSWORD_RESET, {"email": email})

    async def get_password_reset(self, key: str) -> Optional[Envelope]:
        return await self._send(
            "GET", AuthEndpoint.RESET_PASSWORD, headers={PASSWORD_RESET_KEY_HEADER: key},
        )

    async def reset_password(self, data: Mapping[str, Any]) -> Optional[Envelope]:
        return await self._send("POST", AuthEndpoint.RESET_PASSWORD, data)

    async def change_password(self, data: Mapping[str, Any]) -> Optional[Envelope]:
        return await self._send("POST", AuthEndpoint.CHANGE_PASSWORD, data)

    # --- Email addresses ---

    async def get_email_verification(self, key: str) -> Optional[Envelope]:
        return await self._send(
            "GET", AuthEndpoint.VERIFY_EMAIL, headers={EMAIL_VERIFICATION_KEY_HEADER: key},
        )

    async def verify_email(self, key: str) -> Optional[Envelope]:
        return await self._send("POST", AuthEndpoint.VERIFY_EMAIL, {"key": key})

    async def get_email_addresses(self) -> Optional[Envelope]:
        return await self._send("GET", AuthEndpoint.EMAIL)

    async def add_email(self, email: str) -> Optional[Envelope]:
        return await self._send("POST", AuthEndpoint.EMAIL, {"email": email})

    async def delete_email(self, email: str) -> Optional[Envelope]:
        return await self._send("DELETE", AuthEndpoint.EMAIL, {"email": email})

    async def mark_email_as_primary(self, email: str) -> Optional[Envelope]:
        return await self._send("PATCH", AuthEndpoint.EMAIL, {"email": email, "primary": True})

    async def request_email_verification(self, email: str) -> Optional[Envelope]:
        return await self._send("PUT", AuthEndpoint.EMAIL, {"email": email})

    # --- Third-party providers ---

    async def get_provider_accounts(self) -> Optional[Envelope]:
        return await self._send("GET", AuthEndpoint.PROVIDERS)

    async def disconnect_provider_account(self, provider_id: str, account_uid: str) -> Optional[Envelope]:
        return await self._send(
            "DELETE", AuthEndpoint.PROVIDERS, {"provider": provider_id, "account": account_uid},
        )

    async def provider_signup(self, data: Mapping[str, Any]) -> Optional[Envelope]:
        return await self._send("POST", AuthEndpoint.PROVIDER_SIGNUP, data)

    async def authenticate_by_token(
        self,
        provider_id: str,
        token: Mapping[str, Any],
        process: AuthProcess = AuthProcess.login,
    ) -> Optional[Envelope]:
        return await self._send(
            "POST", AuthEndpoint.PROVIDER_TOKEN,
            {"provider": provider_id, "token": dict(token), "process": AuthProcess(process).value},
        )

    # --- Two-factor ---

    async def get_authenticators(self) -> Optional[Envelope]:
        return await self._send("GET", AuthEndpoint.AUTHENTICATORS)

    async def get_totp_authenticator(self) -> Optional[Envelope]:
        return await self._send("GET", AuthEndpoint.TOTP_AUTHENTICATOR)

    async def activate_totp_authenticator(self, code: str) -> Optional[Envelope]:
        return await self._send("POST", AuthEndpoint.TOTP_AUTHENTICATOR, {"code": code})

    async def deactivate_totp_authenticator(self) -> Optional[Envelope]:
        return await self._send("DELETE", AuthEndpoint.TOTP_AUTHENTICATOR)

    async def get_recovery_codes(self) -> Optional[Envelope]:
        return await self._send("GET", AuthEndpoint.RECOVERY_CODES)

    async def generate_recovery_codes(self) -> Optional[Envelope]:
        return await self._send("POST", AuthEndpoint.RECOVERY_CODES)

    async def mfa_authenticate(self, code: str) -> Optional[Envelope]:
        return await self._send("POST", AuthEndpoint.MFA_AUTHENTICATE, {"code": code})

    async def mfa_reauthenticate(self, code: str) -> Optional[Envelope]:
        return await self._send("POST", AuthEndpoint.MFA_REAUTHENTICATE, {"code": code})
