# -*- coding: utf-8 -*-
"""
Validation Factory - Creates the validation strategies for a form field.

Provides a central point for turning authored FieldValidators into
ValidationStrategy instances.
"""

from typing import Callable, Dict, List

from models.content import FieldValidators
from .validation_strategy import (
    ValidationStrategy,
    RequiredValidator,
    MinLengthValidator,
    MaxLengthValidator,
    EmailValidator,
)


class ValidationFactory:
    """
    Factory for creating validation strategies from FieldValidators.

    Acts as a registry so extra strategies can be plugged in by name
    without touching FormControl.
    """

    def __init__(self):
        """Initialize the validation factory."""
        self._builders: Dict[str, Callable[[FieldValidators], List[ValidationStrategy]]] = {}
        self._register_default_validators()

    def _register_default_validators(self):
        """Register the built-in field validators."""
        self.register_validator(
            'required',
            lambda v: [RequiredValidator()] if v.required else []
        )
        self.register_validator(
            'minLength',
            lambda v: [MinLengthValidator(v.min_length)] if v.min_length is not None else []
        )
        self.register_validator(
            'maxLength',
            lambda v: [MaxLengthValidator(v.max_length)] if v.max_length is not None else []
        )
        self.register_validator(
            'email',
            lambda v: [EmailValidator()] if v.email else []
        )

    def register_validator(
        self,
        name: str,
        builder: Callable[[FieldValidators], List[ValidationStrategy]]
    ):
        """
        Register a strategy builder.

        Args:
            name: Validator name (e.g., 'required', 'email')
            builder: Callable mapping FieldValidators to zero or more strategies
        """
        self._builders[name] = builder

    def create_validators(self, validators: FieldValidators) -> List[ValidationStrategy]:
        """
        Build every strategy the given FieldValidators ask for.

        Args:
            validators: Authored validators of one form field

        Returns:
            Strategies in registration order
        """
        strategies: List[ValidationStrategy] = []
        for builder in self._builders.values():
            strategies.extend(builder(validators))
        return strategies

    def get_registered_names(self) -> List[str]:
        """Get names of all registered validators."""
        return list(self._builders.keys())


_default_factory = None


def get_validation_factory() -> ValidationFactory:
    """
    Get the shared ValidationFactory instance.

    Returns:
        Singleton ValidationFactory instance
    """
    global _default_factory
    if _default_factory is None:
        _default_factory = ValidationFactory()
    return _default_factory
