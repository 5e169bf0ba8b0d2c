"""Base exceptions for ParrotFlow."""


class ParrotFlowException(Exception):
    """Base exception for all ParrotFlow errors."""
    pass


class ConfigurationError(ParrotFlowException):
    """Raised when there's a configuration error."""
    pass


class APIError(ParrotFlowException):
    """Error rendered to API clients as ``{"success": false, "error": ...}``."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
