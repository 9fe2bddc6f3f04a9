class TasksExtendedError(Exception):
    """Base exception for all tasks-extended errors."""
    pass


class AuthenticationError(TasksExtendedError):
    """Raised when authentication fails."""
    pass


class APIError(TasksExtendedError):
    """Raised when API calls fail."""
    pass


class ValidationError(TasksExtendedError):
    """Raised when input validation fails."""
    pass


class ConfigurationError(ValidationError):
    """Raised when the application configuration is missing or invalid."""
    pass
