"""
Session lifecycle: boot-time restore, interactive sign-in, silent renewal and sign-out.

The session manager is the only writer of the current session. Every state
change is published as one ``SessionSnapshot`` through an ``Observable`` so
views and the refresh controller only ever read a consistent value.

A freshly obtained credential is always written to the credential store
before it is published. Sign-out clears the store and the in-memory session
in the same step, without a suspension point between them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Set
import asyncio
import logging

from ..exceptions import AuthError, NoSession
from ..utils.log_sanitizer import sanitize_for_logging
from ..utils.observable import Observable, Unsubscribe
from .authorizer import AuthorizationParams, Authorizer
from .credentials import Credential
from .store import CredentialStore

logger = logging.getLogger(__name__)

# Renew this long before the access token actually expires
EXPIRY_SKEW_SECONDS = 60

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please sign in again."


class SessionState(Enum):
    BOOTING = "booting"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class SessionSnapshot:
    """
    Published session value.
    Args:
        state: Current state of the session state machine.
        credential: The resident credential while authenticated.
        error: User-readable message for the sign-in surface, if any.
    """
    state: SessionState
    credential: Optional[Credential] = None
    error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED


class SessionManager:
    """
    Owns the session state machine.

    States: BOOTING -> AUTHENTICATED | UNAUTHENTICATED;
    UNAUTHENTICATED -> AUTHENTICATING -> AUTHENTICATED | UNAUTHENTICATED;
    AUTHENTICATED -> UNAUTHENTICATED on sign-out or when renewal is refused.
    """

    def __init__(
            self,
            store: CredentialStore,
            authorizer: Authorizer,
            params: Optional[AuthorizationParams] = None
    ):
        self._store = store
        self._authorizer = authorizer
        self._params = params or AuthorizationParams()
        self._session = Observable(SessionSnapshot(SessionState.BOOTING), name="session")
        self._sign_in_task: Optional[asyncio.Future] = None
        self._sign_in_generation = 0
        self._renew_task: Optional[asyncio.Future] = None
        self._revocations: Set[asyncio.Future] = set()
        # Bumped on sign-out so results of operations started before it are dropped
        self._generation = 0

    # Published state
    @property
    def snapshot(self) -> SessionSnapshot:
        return self._session.value

    @property
    def state(self) -> SessionState:
        return self._session.value.state

    @property
    def credential(self) -> Optional[Credential]:
        return self._session.value.credential

    @property
    def access_token(self) -> Optional[str]:
        credential = self._session.value.credential
        return credential.access_token if credential else None

    def subscribe(self, callback: Callable[[SessionSnapshot], None]) -> Unsubscribe:
        return self._session.subscribe(callback)

    def _publish(
            self,
            state: SessionState,
            credential: Optional[Credential] = None,
            error: Optional[str] = None
    ) -> None:
        logger.debug("Session state -> %s", state.value)
        self._session.publish(SessionSnapshot(state, credential, error))

    def _clear_store(self) -> None:
        try:
            self._store.clear()
        except Exception as e:
            logger.error("Failed to clear stored credentials: %s", e)

    # Operations
    async def restore(self) -> Credential:
        """
        Silently restore the persisted session at boot.

        Any failure leaves the manager UNAUTHENTICATED without an error message;
        having no session is the normal signed-out state.

        Raises:
            NoSession: If there is no stored session or it could not be renewed
        """
        generation = self._generation
        try:
            stored = self._store.load()
        except Exception as e:
            logger.warning("Failed to load stored credentials: %s", e)
            stored = None

        if stored is None:
            logger.info("No stored session")
            self._publish(SessionState.UNAUTHENTICATED)
            raise NoSession("No stored session")

        try:
            credential = await self._authorizer.restore_silently(stored)
        except Exception as e:
            logger.info("Session restore failed: %s", e)
            if isinstance(e, NoSession):
                # The stored session is dead for good, do not retry it on every boot
                self._clear_store()
            if generation == self._generation:
                self._publish(SessionState.UNAUTHENTICATED)
            raise NoSession(f"Session could not be restored: {e}") from e

        if generation != self._generation:
            raise NoSession("Signed out while the session was being restored")

        try:
            self._store.save(credential)
        except Exception as e:
            logger.error("Failed to save credentials: %s", e)
            self._publish(SessionState.UNAUTHENTICATED)
            raise NoSession(f"Restored session could not be saved: {e}") from e

        logger.info("Session restored")
        self._publish(SessionState.AUTHENTICATED, credential)
        return credential

    async def sign_in(self, params: Optional[AuthorizationParams] = None) -> Credential:
        """
        Run interactive sign-in. Concurrent calls share one authorization.

        A flow started before the last sign-out is never joined; a new one starts instead.

        Raises:
            AuthError: If sign-in fails, is cancelled, or the session cannot be saved
        """
        if self._sign_in_pending():
            logger.info("Sign-in already in progress, joining it")
            return await asyncio.shield(self._sign_in_task)

        if self.state is SessionState.AUTHENTICATED:
            logger.info("Already signed in")
            return self.credential

        self._publish(SessionState.AUTHENTICATING)
        self._sign_in_generation = self._generation
        self._sign_in_task = asyncio.ensure_future(self._sign_in(params or self._params, self._generation))
        return await asyncio.shield(self._sign_in_task)

    def _sign_in_pending(self) -> bool:
        return (
            self._sign_in_task is not None
            and not self._sign_in_task.done()
            and self._sign_in_generation == self._generation
        )

    async def _sign_in(self, params: AuthorizationParams, generation: int) -> Credential:
        try:
            credential = await self._authorizer.sign_in(params)
        except Exception as e:
            if generation != self._generation:
                # Signed out meanwhile; the state now belongs to sign-out or a newer flow
                raise AuthError("Sign-in was cancelled") from e
            if isinstance(e, AuthError):
                self._publish(SessionState.UNAUTHENTICATED, error=str(e))
                raise
            logger.error("Unexpected sign-in error: %s", e)
            error = AuthError(f"Sign-in failed: {e}")
            self._publish(SessionState.UNAUTHENTICATED, error=str(error))
            raise error from e

        if generation != self._generation:
            logger.info("Discarding sign-in result, signed out meanwhile")
            raise AuthError("Sign-in was cancelled")

        try:
            self._store.save(credential)
        except Exception as e:
            logger.error("Failed to save credentials: %s", e)
            self._clear_store()
            error = AuthError(f"Signed in, but the session could not be saved: {e}")
            self._publish(SessionState.UNAUTHENTICATED, error=str(error))
            raise error from e

        sanitized = sanitize_for_logging(access_token=credential.access_token)
        logger.info("Signed in with %s", sanitized['access_token'])
        self._publish(SessionState.AUTHENTICATED, credential)
        return credential

    async def sign_out(self) -> None:
        """
        Sign out. Never fails.

        The stored and the in-memory credential are cleared before anything
        else happens; remote revocation runs in the background.
        """
        credential = self.credential
        self._generation += 1
        self._clear_store()
        self._publish(SessionState.UNAUTHENTICATED)
        logger.info("Signed out")

        if credential is not None:
            revocation = asyncio.ensure_future(self._authorizer.sign_out(credential))
            self._revocations.add(revocation)
            revocation.add_done_callback(self._revocation_done)

    def _revocation_done(self, revocation: asyncio.Future) -> None:
        self._revocations.discard(revocation)
        if not revocation.cancelled() and revocation.exception() is not None:
            logger.warning("Token revocation failed: %s", revocation.exception())

    async def renew(self) -> Credential:
        """
        Silently renew the resident credential. Concurrent calls share one renewal.

        Raises:
            NoSession: If not signed in, or the provider refused renewal
                (the session is then cleared)
            AuthError: If renewal failed for a transient reason (the session is kept)
        """
        if self._renew_task is not None and not self._renew_task.done():
            return await asyncio.shield(self._renew_task)

        credential = self.credential
        if credential is None:
            raise NoSession("Not signed in")

        self._renew_task = asyncio.ensure_future(self._renew(credential, self._generation))
        return await asyncio.shield(self._renew_task)

    async def _renew(self, current: Credential, generation: int) -> Credential:
        try:
            renewed = await self._authorizer.restore_silently(current)
        except NoSession:
            if generation == self._generation:
                logger.warning("Session could not be renewed, signing out locally")
                self._generation += 1
                self._clear_store()
                self._publish(SessionState.UNAUTHENTICATED, error=SESSION_EXPIRED_MESSAGE)
            raise
        except AuthError as e:
            logger.warning("Session renewal failed: %s", e)
            raise
        except Exception as e:
            logger.warning("Session renewal failed: %s", e)
            raise AuthError(f"Session renewal failed: {e}") from e

        if generation != self._generation:
            raise NoSession("Signed out while the session was being renewed")

        try:
            self._store.save(renewed)
        except Exception as e:
            logger.error("Failed to save credentials: %s", e)
            raise AuthError(f"Renewed session could not be saved: {e}") from e

        logger.info("Session renewed")
        self._publish(SessionState.AUTHENTICATED, renewed)
        return renewed

    async def ensure_fresh(self) -> Optional[Credential]:
        """
        Renew the credential if it is expired or about to expire.

        Transient renewal failures are logged and the current credential is kept.

        Returns:
            The credential to use, or None when not signed in
        """
        credential = self.credential
        if credential is None or not credential.is_expired(EXPIRY_SKEW_SECONDS):
            return credential

        try:
            return await self.renew()
        except NoSession:
            return None
        except AuthError as e:
            logger.warning("Keeping current credential, renewal failed: %s", e)
            return self.credential
