# -*- coding: utf-8 -*-
"""Custom exceptions for the wizard navigation engine."""

from typing import List, Optional


class WizardError(Exception):
    """Base class for every error raised by the wizard."""

    #: Short machine-readable name surfaced by the session facade
    kind = "wizard_error"

    def __init__(self, message: str, context: str = None):
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self):
        if self.context:
            return f"[{self.context}] {self.message}"
        return self.message


class DefinitionError(WizardError):
    """
    Raised when a wizard Definition fails referential integrity checks.

    Carries every violation found, not just the first.
    """

    kind = "definition_error"

    def __init__(self, errors: List[str], context: str = None):
        self.errors = list(errors)
        message = f"{len(self.errors)} definition error(s):\n" + "\n".join(
            f"  - {error}" for error in self.errors
        )
        super().__init__(message, context)


class StateError(WizardError):
    """Raised when an externally supplied Runtime State does not fit the Control Model."""

    kind = "state_error"

    def __init__(self, errors: List[str], context: str = None):
        self.errors = list(errors)
        message = f"{len(self.errors)} state error(s):\n" + "\n".join(
            f"  - {error}" for error in self.errors
        )
        super().__init__(message, context)


class NoMatchingRuleError(WizardError):
    """Raised when no rule group of a dynamic route matches the data model."""

    kind = "no_matching_rule"

    def __init__(self, route_id: str, context: str = None):
        super().__init__(f"No branch rule matched for route '{route_id}'", context)
        self.route_id = route_id


class ValidationError(WizardError):
    """Raised when the active page is invalid and next() cannot proceed."""

    kind = "validation_error"

    def __init__(self, page_id: str, errors: Optional[List[str]] = None,
                 context: str = None):
        self.page_id = page_id
        self.errors = list(errors or [])
        message = f"Page '{page_id}' is invalid"
        if self.errors:
            message += ": " + "; ".join(self.errors)
        super().__init__(message, context)


class NavigationBlockedError(WizardError):
    """Raised when a gating rule (previousRequired) blocks a transition."""

    kind = "navigation_blocked"

    def __init__(self, target: str, blocking_sections: List[str], context: str = None):
        self.target = target
        self.blocking_sections = list(blocking_sections)
        super().__init__(
            f"Cannot enter '{target}': incomplete previous section(s) "
            f"{', '.join(self.blocking_sections)}",
            context
        )


class WizardCompleteError(WizardError):
    """Raised when next() is requested after the wizard reached its terminal state."""

    kind = "wizard_complete"

    def __init__(self, message: str = "Wizard is already complete", context: str = None):
        super().__init__(message, context)


class UnknownRouteError(WizardError):
    """Raised when goto() names a route that is not in the Control Model."""

    kind = "unknown_route"

    def __init__(self, route_id: str, context: str = None):
        super().__init__(f"Unknown route '{route_id}'", context)
        self.route_id = route_id
