# -*- coding: utf-8 -*-
"""
Wizard services - Control Model building, branch rules and navigation.
"""

from .control_model_builder import ControlModelBuilder, slugify
from .data_model import WizardDataModel
from .navigation_engine import NavigationEngine
from .rule_evaluator import RuleEvaluator
from .state_validator import StateValidator

__all__ = [
    'ControlModelBuilder',
    'slugify',
    'WizardDataModel',
    'NavigationEngine',
    'RuleEvaluator',
    'StateValidator',
]
