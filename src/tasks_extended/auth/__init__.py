"""Session credentials, their persistence, and the session state machine."""

from .credentials import Credential
from .store import CredentialStore, FileCredentialStore, MemoryCredentialStore
from .authorizer import Authorizer, AuthorizationParams, GoogleAuthorizer
from .session import SessionManager, SessionSnapshot, SessionState

__all__ = [
    "Credential",
    "CredentialStore",
    "FileCredentialStore",
    "MemoryCredentialStore",
    "Authorizer",
    "AuthorizationParams",
    "GoogleAuthorizer",
    "SessionManager",
    "SessionSnapshot",
    "SessionState",
]
