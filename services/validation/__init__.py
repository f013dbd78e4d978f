# -*- coding: utf-8 -*-
"""Form-field validation services package."""

from .validation_strategy import (
    ValidationStrategy,
    RequiredValidator,
    MinLengthValidator,
    MaxLengthValidator,
    EmailValidator,
)
from .validation_factory import ValidationFactory, get_validation_factory

__all__ = [
    'ValidationStrategy',
    'RequiredValidator',
    'MinLengthValidator',
    'MaxLengthValidator',
    'EmailValidator',
    'ValidationFactory',
    'get_validation_factory',
]
