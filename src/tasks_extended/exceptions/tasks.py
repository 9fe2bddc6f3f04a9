from .base import APIError


class RemoteError(APIError):
    """Base exception for task listing errors."""
    pass


class RemoteAuthError(RemoteError):
    """Raised when the provider rejects the access token."""
    pass


class RemotePermissionError(RemoteError):
    """Raised when the user lacks permission to read the task list."""
    pass


class RemoteNotFoundError(RemoteError):
    """Raised when the task list is not found."""
    pass
