"""
Authorization collaborators.

``GoogleAuthorizer`` runs Google's installed-app consent flow with a loopback
redirect (google-auth-oauthlib), renews sessions with a refresh token and
revokes tokens on sign-out (google-auth). The blocking library calls run in a
worker thread so the event loop stays responsive while the user is in the
browser.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlencode
import asyncio
import logging

from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from google_auth_oauthlib.flow import InstalledAppFlow

from ..exceptions import AuthError, NoSession, ConfigurationError
from ..tasks.constants import TASKS_SCOPE
from ..utils.log_sanitizer import sanitize_for_logging
from .credentials import Credential, TOKEN_URI

logger = logging.getLogger(__name__)

AUTH_URI = "https://accounts.google.com/o/oauth2/v2/auth"
REVOKE_URI = "https://oauth2.googleapis.com/revoke"

SUCCESS_MESSAGE = (
    "<html><body><h3>Signed in successfully</h3>"
    "<p>You can close this window and return to the app.</p></body></html>"
)


@dataclass(frozen=True)
class AuthorizationParams:
    """
    What to ask the user to authorize.
    Args:
        scopes: OAuth2 scopes to request.
        login_hint: Email address to preselect on the consent screen.
    """
    scopes: Tuple[str, ...] = (TASKS_SCOPE,)
    login_hint: Optional[str] = None


class Authorizer(ABC):
    """Interactive sign-in, silent renewal and revocation of sessions."""

    @abstractmethod
    async def sign_in(self, params: AuthorizationParams) -> Credential:
        """
        Run the interactive consent flow.

        Raises:
            AuthError: If the user cancels, denies access, or the exchange fails
        """

    @abstractmethod
    async def restore_silently(self, stored: Credential) -> Credential:
        """
        Renew a stored session without user interaction.

        Raises:
            NoSession: If the stored session can no longer be renewed
            AuthError: If renewal failed for a transient reason
        """

    @abstractmethod
    async def sign_out(self, credential: Credential) -> None:
        """Best-effort remote revocation. Never raises."""


class GoogleAuthorizer(Authorizer):
    """Authorizer for Google accounts using a desktop OAuth2 client."""

    def __init__(
            self,
            client_id: str,
            client_secret: str,
            token_uri: str = TOKEN_URI,
            revoke_uri: str = REVOKE_URI,
            host: str = "127.0.0.1",
            port: int = 0,
            open_browser: bool = True,
            timeout_seconds: Optional[int] = None
    ):
        if not client_id or not client_secret:
            raise ConfigurationError("GoogleAuthorizer requires a client_id and client_secret")
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_uri = token_uri
        self.revoke_uri = revoke_uri
        self.host = host
        self.port = port
        self.open_browser = open_browser
        self.timeout_seconds = timeout_seconds

    def _client_config(self) -> Dict[str, Any]:
        return {
            'installed': {
                'client_id': self.client_id,
                'client_secret': self.client_secret,
                'auth_uri': AUTH_URI,
                'token_uri': self.token_uri,
                'redirect_uris': ['http://localhost'],
            }
        }

    async def sign_in(self, params: AuthorizationParams) -> Credential:
        logger.info("Starting OAuth2 flow for scopes: %s", " ".join(params.scopes))

        try:
            creds = await asyncio.to_thread(self._run_consent_flow, params)
        except Exception as e:
            logger.warning("OAuth2 flow failed: %s", e)
            raise AuthError(f"Sign-in failed: {e}")

        if creds is None or not creds.token:
            raise AuthError("Sign-in did not return an access token")

        logger.info("OAuth2 flow completed successfully")
        return Credential.from_google_credentials(creds)

    def _run_consent_flow(self, params: AuthorizationParams):
        flow = InstalledAppFlow.from_client_config(self._client_config(), list(params.scopes))

        extra = {}
        if params.login_hint:
            extra['login_hint'] = params.login_hint

        # offline + consent so Google always issues a refresh token
        return flow.run_local_server(
            host=self.host,
            port=self.port,
            open_browser=self.open_browser,
            success_message=SUCCESS_MESSAGE,
            timeout_seconds=self.timeout_seconds,
            access_type='offline',
            prompt='consent',
            **extra
        )

    async def restore_silently(self, stored: Credential) -> Credential:
        if not stored.refresh_token:
            raise NoSession("Stored session has no refresh token")

        sanitized = sanitize_for_logging(refresh_token=stored.refresh_token)
        logger.info("Refreshing session with %s", sanitized['refresh_token'])

        creds = stored.to_google_credentials(self.client_id, self.client_secret, token_uri=self.token_uri)
        try:
            await asyncio.to_thread(creds.refresh, Request())
        except RefreshError as e:
            logger.warning("Stored session was rejected: %s", e)
            raise NoSession(f"Stored session could not be renewed: {e}")
        except TransportError as e:
            logger.warning("Network error while renewing session: %s", e)
            raise AuthError(f"Network error while renewing session: {e}")

        # Google usually omits refresh_token on refresh, keep the one we used
        return Credential.from_google_credentials(creds, fallback_refresh_token=stored.refresh_token)

    async def sign_out(self, credential: Credential) -> None:
        token = credential.refresh_token or credential.access_token
        try:
            response = await asyncio.to_thread(self._revoke, token)
        except Exception as e:
            logger.warning("Failed to revoke token: %s", e)
            return

        if response.status != 200:
            logger.warning("Token revocation returned HTTP %s", response.status)
        else:
            logger.info("Token revoked")

    def _revoke(self, token: str):
        request = Request()
        return request(
            url=self.revoke_uri,
            method="POST",
            body=urlencode({'token': token}),
            headers={'content-type': 'application/x-www-form-urlencoded'},
        )
