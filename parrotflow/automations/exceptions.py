"""Automation-related exceptions."""

from parrotflow.exceptions import ParrotFlowException


class AutomationError(ParrotFlowException):
    """Base exception for automation errors."""
    pass


class ExecutionRecordError(AutomationError):
    """Raised when the execution record cannot be stored."""
    pass


class AutomationRunError(AutomationError):
    """Raised when a run aborts with an unexpected exception.

    The execution record has already been marked failed when this is raised.
    """

    def __init__(self, message: str, execution_id: str):
        super().__init__(message)
        self.message = message
        self.execution_id = execution_id
