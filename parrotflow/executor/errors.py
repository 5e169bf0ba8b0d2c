"""Execution engine error classes."""

from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy.exc import (
    DataError,
    IntegrityError,
    NoResultFound,
    OperationalError,
    SQLAlchemyError,
)


class ExecutionError(Exception):
    """Base class for all execution errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class ErrorKind(str, Enum):
    """Normalised categories for data-layer failures."""
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"
    INVALID = "invalid"
    UNKNOWN = "unknown"


class DataLayerError(ExecutionError):
    """Single error shape for everything the persistence layer can raise."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        hint: Optional[str] = None,
        code: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, error_code=code or kind.value.upper(), **kwargs)
        self.kind = kind
        self.hint = hint
        self.code = code
        self.details.update({"kind": kind.value, "hint": hint})


def normalize_error(error: Any, default_message: str = "Database operation failed") -> DataLayerError:
    """Convert a data-layer failure into a ``DataLayerError``.

    Accepts SQLAlchemy exceptions, objects exposing ``message``/``details``/
    ``hint``/``code`` attributes (or dict keys), and plain exceptions.
    """
    if isinstance(error, DataLayerError):
        return error

    if isinstance(error, SQLAlchemyError):
        if isinstance(error, NoResultFound):
            kind = ErrorKind.NOT_FOUND
        elif isinstance(error, IntegrityError):
            kind = ErrorKind.CONFLICT
        elif isinstance(error, OperationalError):
            kind = ErrorKind.UNAVAILABLE
        elif isinstance(error, DataError):
            kind = ErrorKind.INVALID
        else:
            kind = ErrorKind.UNKNOWN
        orig = getattr(error, "orig", None)
        message = str(orig) if orig is not None else str(error)
        return DataLayerError(message or default_message, kind=kind)

    if isinstance(error, dict):
        fields = error
    else:
        fields = {
            name: getattr(error, name, None)
            for name in ("message", "details", "hint", "code")
        }

    message = fields.get("message") or (str(error) if isinstance(error, Exception) else None)
    details = fields.get("details")
    return DataLayerError(
        message or default_message,
        kind=ErrorKind.UNKNOWN,
        hint=fields.get("hint"),
        code=fields.get("code"),
        details={"details": details} if details else None,
    )
