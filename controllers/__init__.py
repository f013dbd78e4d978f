# -*- coding: utf-8 -*-
"""
Wizard Flow Controllers
=======================
Controller layer between renderers and the wizard services.

Controllers provide:
- Standardized error handling via OperationResult
- Qt signals for UI updates
- A read-only projection of the running wizard

Usage:
    from controllers import WizardController

    controller = WizardController(definition)
    result = controller.request_next()
    if result.success:
        print(f"Now at: {controller.route_id}")
    else:
        print(f"Error ({result.error_kind}): {result.message}")
"""

# Base controller and result types
from controllers.base_controller import (
    BaseController,
    OperationResult,
)

# Wizard session facade
from controllers.wizard_controller import (
    WizardController,
    WizardProgress,
    WizardView,
)

# All public exports
__all__ = [
    # Base
    "BaseController",
    "OperationResult",

    # Wizard
    "WizardController",
    "WizardProgress",
    "WizardView",
]
