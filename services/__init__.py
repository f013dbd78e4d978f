# -*- coding: utf-8 -*-
"""
Wizard Flow Service Layer
"""

# Lazy imports so that importing services.exceptions does not pull in Qt
__all__ = [
    "ControlModelBuilder",
    "RuleEvaluator",
    "NavigationEngine",
    "WizardDataModel",
]


def __getattr__(name):
    """Lazy import to avoid circular dependencies."""
    if name == "ControlModelBuilder":
        from .wizard.control_model_builder import ControlModelBuilder
        return ControlModelBuilder
    elif name == "RuleEvaluator":
        from .wizard.rule_evaluator import RuleEvaluator
        return RuleEvaluator
    elif name == "NavigationEngine":
        from .wizard.navigation_engine import NavigationEngine
        return NavigationEngine
    elif name == "WizardDataModel":
        from .wizard.data_model import WizardDataModel
        return WizardDataModel
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
