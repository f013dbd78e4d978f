# -*- coding: utf-8 -*-
"""
Wizard Flow Data Models
"""

from .content import (
    Column,
    Feature,
    FieldValidators,
    FormField,
    Html,
    Row,
    iter_form_fields,
    parse_content,
)
from .definition import (
    HookAction,
    HookResult,
    Page,
    PageEvents,
    PageSettings,
    Route,
    Section,
    SectionSettings,
    WizardDefinition,
)
from .control import (
    ControlModel,
    FormControl,
    PageControl,
    RouteControl,
    SectionControl,
)
from .state import SectionStatus, State

__all__ = [
    "Column",
    "Feature",
    "FieldValidators",
    "FormField",
    "Html",
    "Row",
    "iter_form_fields",
    "parse_content",
    "HookAction",
    "HookResult",
    "Page",
    "PageEvents",
    "PageSettings",
    "Route",
    "Section",
    "SectionSettings",
    "WizardDefinition",
    "ControlModel",
    "FormControl",
    "PageControl",
    "RouteControl",
    "SectionControl",
    "SectionStatus",
    "State",
]
