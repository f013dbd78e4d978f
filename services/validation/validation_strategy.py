# -*- coding: utf-8 -*-
"""
Validation Strategy Pattern - Interface for form-field validation.

Each built-in field validator (required, minLength, maxLength, email)
is one strategy; a FormControl runs every strategy configured for it.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, List, Optional


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_empty_value(value: Any) -> bool:
    """None, blank strings and empty collections count as empty."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


class ValidationStrategy(ABC):
    """
    Abstract base class for field validation strategies.
    """

    #: Error key reported when the strategy fails
    name = ""

    @abstractmethod
    def validate(self, value: Any, label: Optional[str] = None) -> List[str]:
        """
        Validate a value and return list of error messages.

        Args:
            value: Current field value from the data model
            label: Optional human-readable field label for messages

        Returns:
            List of error messages (empty list if valid)
        """
        pass

    def is_valid(self, value: Any) -> bool:
        return len(self.validate(value)) == 0


class RequiredValidator(ValidationStrategy):
    """Value must be present and non-empty."""

    name = "required"

    def validate(self, value: Any, label: Optional[str] = None) -> List[str]:
        if is_empty_value(value):
            return [f"Required field cannot be empty: {label or 'value'}"]
        # An unchecked required checkbox is not an answer
        if value is False:
            return [f"Required field must be checked: {label or 'value'}"]
        return []


class MinLengthValidator(ValidationStrategy):
    """
    Length must be at least ``min_length``.

    Empty values pass; combine with RequiredValidator to forbid them.
    """

    name = "minLength"

    def __init__(self, min_length: int):
        self.min_length = min_length

    def validate(self, value: Any, label: Optional[str] = None) -> List[str]:
        if is_empty_value(value) or not hasattr(value, "__len__"):
            return []
        if len(value) < self.min_length:
            return [f"{label or 'Value'} must be at least {self.min_length} characters"]
        return []


class MaxLengthValidator(ValidationStrategy):
    """Length must not exceed ``max_length``."""

    name = "maxLength"

    def __init__(self, max_length: int):
        self.max_length = max_length

    def validate(self, value: Any, label: Optional[str] = None) -> List[str]:
        if is_empty_value(value) or not hasattr(value, "__len__"):
            return []
        if len(value) > self.max_length:
            return [f"{label or 'Value'} must be at most {self.max_length} characters"]
        return []


class EmailValidator(ValidationStrategy):
    """Value must look like an email address (empty passes)."""

    name = "email"

    def validate(self, value: Any, label: Optional[str] = None) -> List[str]:
        if is_empty_value(value):
            return []
        if not isinstance(value, str) or not EMAIL_PATTERN.match(value.strip()):
            return [f"{label or 'Value'} must be a valid email address"]
        return []
