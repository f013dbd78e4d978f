# -*- coding: utf-8 -*-
"""
Base Controller
===============
Abstract base class for controllers sitting between renderers and services.

Provides common functionality and patterns for controllers.
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, TypeVar

from PyQt5.QtCore import QObject, pyqtSignal

from services.exceptions import WizardError
from utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


@dataclass
class OperationResult(Generic[T]):
    """Result of a controller operation."""
    success: bool
    data: Optional[T] = None
    message: str = ""
    error_kind: str = ""
    errors: List[str] = None
    error: Optional[WizardError] = None

    def __post_init__(self):
        if self.errors is None:
            self.errors = []

    @classmethod
    def ok(cls, data: T = None, message: str = "") -> 'OperationResult[T]':
        """Create a successful result."""
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, message: str, error_kind: str = "", errors: List[str] = None,
             error: Optional[WizardError] = None) -> 'OperationResult[T]':
        """Create a failed result."""
        return cls(success=False, message=message, error_kind=error_kind,
                   errors=errors or [], error=error)

    @classmethod
    def from_error(cls, error: WizardError) -> 'OperationResult[T]':
        """Create a failed result carrying a wizard error's kind and details."""
        return cls.fail(
            message=error.message,
            error_kind=error.kind,
            errors=list(getattr(error, "errors", []) or []),
            error=error,
        )


class BaseController(QObject):
    """
    Base controller class.

    Provides:
    - Common signal patterns
    - Error handling
    - Logging
    """

    # Common signals
    operation_started = pyqtSignal(str)  # operation name
    operation_completed = pyqtSignal(str, bool)  # operation name, success
    operation_error = pyqtSignal(str, str, str)  # operation name, error kind, message
    data_changed = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self._last_error = ""

    @property
    def last_error(self) -> str:
        """Get last error message."""
        return self._last_error

    def _set_error(self, error: str):
        """Set error message."""
        self._last_error = error
        if error:
            logger.warning(f"{self.__class__.__name__}: {error}")

    def _emit_started(self, operation: str):
        """Emit operation started signal."""
        self.operation_started.emit(operation)

    def _emit_completed(self, operation: str, success: bool):
        """Emit operation completed signal."""
        self.operation_completed.emit(operation, success)
        if success:
            self.data_changed.emit()

    def _emit_error(self, operation: str, error: WizardError):
        """Emit operation error signal."""
        self._set_error(error.message)
        self.operation_error.emit(operation, error.kind, error.message)

    def execute_with_error_handling(
        self,
        operation: str,
        func: Callable[..., Any],
        *args,
        **kwargs
    ) -> OperationResult:
        """
        Execute a function, turning wizard errors into a failed result.

        Anything that is not a WizardError is a bug and propagates.
        """
        self._emit_started(operation)
        try:
            result = func(*args, **kwargs)
        except WizardError as e:
            self._emit_error(operation, e)
            self._emit_completed(operation, False)
            return OperationResult.from_error(e)

        self._set_error("")
        self._emit_completed(operation, True)
        return OperationResult.ok(data=result)
