"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class InvalidWinnerError(ValidationError):
    """Raised when the submitted winner did not play in the match."""

    def __init__(self, message="Winner must be one of the two teams in the match."):
        """Initialize the error."""
        super().__init__(message)


class NoCourtsConfiguredError(ValidationError):
    """Raised when matches must be placed but the tournament has no courts."""

    def __init__(self, message="No courts configured for this tournament."):
        """Initialize the error."""
        super().__init__(message)


class DuplicateResourceError(AppError):
    """Raised when trying to create a resource that already exists."""

    def __init__(self, message="Resource already exists."):
        """Initialize the error."""
        super().__init__(message, 409)


class ConflictError(AppError):
    """Raised when a concurrent write won the race for the same data."""

    def __init__(self, message="The data changed while saving. Please try again."):
        """Initialize the error."""
        super().__init__(message, 409)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class MissingConfigurationError(NotFoundError):
    """Raised when no tournament has been configured yet."""

    def __init__(self, message="Tournament has not been configured yet."):
        """Initialize the error."""
        super().__init__(message)
