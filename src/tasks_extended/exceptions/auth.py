from .base import AuthenticationError


class NoSession(AuthenticationError):
    """Raised when there is no usable stored session. Not a user-facing error."""
    pass


class AuthError(AuthenticationError):
    """Raised when interactive sign-in or token renewal fails."""
    pass
