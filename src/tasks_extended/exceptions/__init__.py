from .base import TasksExtendedError, AuthenticationError, APIError, ValidationError, ConfigurationError
from .auth import NoSession, AuthError
from .tasks import RemoteError, RemoteAuthError, RemotePermissionError, RemoteNotFoundError

__all__ = [
    "TasksExtendedError",
    "AuthenticationError",
    "APIError",
    "ValidationError",
    "ConfigurationError",
    "NoSession",
    "AuthError",
    "RemoteError",
    "RemoteAuthError",
    "RemotePermissionError",
    "RemoteNotFoundError",
]
