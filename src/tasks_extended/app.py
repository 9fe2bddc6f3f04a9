"""
Application facade wiring the session manager and the refresh controller.

Views hold one ``TasksApp``, subscribe to ``app.session`` and ``app.tasks``,
and forward user intents (sign in, sign out, refresh, window focus) to it.
"""

from typing import Optional
import logging

from .auth.authorizer import AuthorizationParams, Authorizer, GoogleAuthorizer
from .auth.session import SessionManager, SessionSnapshot, SessionState
from .auth.store import CredentialStore, FileCredentialStore
from .config import AppConfig
from .exceptions import AuthError, NoSession
from .sync.refresh import RefreshController, RefreshState, Trigger
from .tasks.source import GoogleTasksSource, RemoteTaskSource
from .utils.observable import Signal

logger = logging.getLogger(__name__)


class TasksApp:
    """
    Usage Examples:
        app = TasksApp.from_config(AppConfig.from_env())
        app.tasks.subscribe(redraw)
        if not await app.boot():
            await app.sign_in()
        ...
        app.focus_gained()   # from the window's focus event
    """

    def __init__(
            self,
            session: SessionManager,
            tasks: RefreshController,
            focus_signal: Optional[Signal] = None
    ):
        self.session = session
        self.tasks = tasks
        self.focus = focus_signal or Signal("focus")
        self._unsubscribe_session = session.subscribe(self._on_session_changed)

    @classmethod
    def from_config(
            cls,
            config: AppConfig,
            store: Optional[CredentialStore] = None,
            authorizer: Optional[Authorizer] = None,
            source: Optional[RemoteTaskSource] = None,
            focus_signal: Optional[Signal] = None
    ) -> "TasksApp":
        """
        Create an app with Google collaborators unless others are given.

        Args:
            config: Application configuration
            store: Credential store (default: token file at ``config.token_path``)
            authorizer: Authorizer (default: Google installed-app flow)
            source: Task source (default: Google Tasks list ``config.task_list_id``)
            focus_signal: Event source fired when the window regains focus
        """
        store = store or FileCredentialStore(config.token_path, config.client_id, config.client_secret)
        authorizer = authorizer or GoogleAuthorizer(config.client_id, config.client_secret)
        source = source or GoogleTasksSource(config.task_list_id, config.max_results)

        session = SessionManager(store, authorizer, AuthorizationParams(scopes=config.scopes))
        tasks = RefreshController(source, session, focus_debounce=config.focus_debounce)
        return cls(session, tasks, focus_signal)

    def _on_session_changed(self, snapshot: SessionSnapshot) -> None:
        if snapshot.state is not SessionState.UNAUTHENTICATED:
            return
        # The tree belongs to the user who just left
        self.tasks.close()
        if self.tasks.state.has_data or self.tasks.in_flight:
            self.tasks.reset()

    async def boot(self) -> bool:
        """
        Restore the previous session and load tasks.

        Returns:
            True if a session was restored, False if the sign-in surface should be shown
        """
        try:
            await self.session.restore()
        except NoSession:
            logger.info("No session to restore, showing sign-in")
            return False

        await self._start(Trigger.BOOT)
        return True

    async def sign_in(self, params: Optional[AuthorizationParams] = None) -> bool:
        """
        Interactive sign-in followed by the first task load.

        Failures are published on ``session.snapshot.error``.

        Returns:
            True on success
        """
        try:
            await self.session.sign_in(params)
        except AuthError as e:
            logger.warning("Sign-in failed: %s", e)
            return False

        await self._start(Trigger.BOOT)
        return True

    async def _start(self, trigger: Trigger) -> None:
        self.tasks.attach(self.focus)
        await self.tasks.refresh(trigger)

    async def sign_out(self) -> None:
        await self.session.sign_out()

    async def refresh(self) -> RefreshState:
        """User-initiated refresh."""
        return await self.tasks.refresh(Trigger.MANUAL)

    def focus_gained(self) -> None:
        """Forward a window focus event; must be called on the event loop."""
        self.focus.emit()

    def close(self) -> None:
        self.tasks.close()
        self._unsubscribe_session()
