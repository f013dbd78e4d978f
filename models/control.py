# -*- coding: utf-8 -*-
"""
Control Model - the navigable form of a wizard Definition.

Built once per Definition by ControlModelBuilder and shared read-only by
the navigation engine and the session facade. The only live parts are
the form controls, whose validity the renderer reports back.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Tuple

from .content import FormField
from .definition import Page, PageEvents, PageSettings, Section, SectionSettings


class FormControl:
    """
    Runtime handle of one formField bound to the external data model.

    Errors come from two places: the built-in validation strategies run
    against the current value, and errors the renderer reports through
    set_errors().
    """

    def __init__(self, form_field: FormField, strategies: Optional[List] = None):
        self.form_field = form_field
        self.strategies = list(strategies or [])
        self.touched = False
        self._validator_errors: List[str] = []
        self._reported_errors: List[str] = []

    @property
    def id(self) -> str:
        return self.form_field.field

    @property
    def errors(self) -> List[str]:
        return self._validator_errors + self._reported_errors

    @property
    def valid(self) -> bool:
        if self.form_field.disabled or self.form_field.hidden:
            return True
        return not self.errors

    @property
    def invalid(self) -> bool:
        return not self.valid

    def set_errors(self, errors: Optional[List[str]]):
        """Record errors reported by the renderer (None or [] clears them)."""
        self._reported_errors = list(errors or [])

    def mark_as_touched(self):
        self.touched = True

    def update_validity(self, data_model, index: Optional[int] = None) -> bool:
        """
        Re-run the built-in validators against the current value.

        Returns:
            True if the control is valid afterwards
        """
        value = data_model.get(self.form_field.field, index)
        self._validator_errors = []
        for strategy in self.strategies:
            self._validator_errors.extend(strategy.validate(value, self.form_field.field))
        return self.valid

    def __repr__(self):
        return f"FormControl({self.id!r}, valid={self.valid})"


class PageControl:
    """Page plus its flattened bound controls and derived validity."""

    def __init__(self, page: Page, slug: str, controls: List[FormControl]):
        self.src = page
        self.slug = slug
        self.controls: Tuple[FormControl, ...] = tuple(controls)
        self.controls_by_id: Mapping[str, FormControl] = MappingProxyType(
            {control.id: control for control in self.controls}
        )
        self._validator_result: Optional[bool] = None

    # Delegated definition fields
    @property
    def id(self) -> str:
        return self.src.id

    @property
    def title(self) -> Optional[str]:
        return self.src.title

    @property
    def settings(self) -> PageSettings:
        return self.src.settings

    @property
    def events(self) -> PageEvents:
        return self.src.events

    @property
    def content(self) -> tuple:
        return self.src.content

    # Validity
    @property
    def valid_controls(self) -> bool:
        return all(control.valid for control in self.controls)

    @property
    def valid(self) -> bool:
        """
        A custom page validator, once evaluated, decides alone;
        otherwise every bound control must be valid.
        """
        if self.src.validator is not None and self._validator_result is not None:
            return self._validator_result
        return self.valid_controls

    @property
    def invalid(self) -> bool:
        return not self.valid

    @property
    def errors(self) -> List[str]:
        return [
            f"{control.id}: {error}"
            for control in self.controls
            for error in control.errors
        ]

    def refresh(self, data_model, index: Optional[int] = None) -> bool:
        """
        Re-evaluate controls and the custom validator against the data model.

        Returns:
            The page's validity afterwards
        """
        for control in self.controls:
            control.update_validity(data_model, index)
        if self.src.validator is not None:
            self._validator_result = bool(self.src.validator(self, data_model))
        return self.valid

    def activate(self, data_model, index: Optional[int] = None):
        """
        Start a fresh visit: forget the last custom validator verdict and
        touched flags, and re-run the built-in validators for ``index``.
        """
        self._validator_result = None
        for control in self.controls:
            control.touched = False
            control.update_validity(data_model, index)

    def mark_controls_touched(self):
        for control in self.controls:
            control.mark_as_touched()

    def __repr__(self):
        return f"PageControl({self.id!r}, controls={len(self.controls)})"


@dataclass(frozen=True)
class RouteControl:
    """
    Route with its owning section resolved.

    ``route_next`` is a plain route id for static routes and the
    original list of rule groups for dynamic ones.
    """
    id: str
    page_id: str
    section_id: str
    route_next: Any = None
    section_complete: bool = False

    @property
    def is_dynamic(self) -> bool:
        return isinstance(self.route_next, (list, tuple))


@dataclass(frozen=True)
class SectionControl:
    src: Section
    slug: str
    section_previous_id: Optional[str]
    section_next_id: Optional[str]
    routes: Mapping[str, RouteControl] = field(default_factory=dict)
    pages: Mapping[str, PageControl] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.src.id

    @property
    def title(self) -> str:
        return self.src.title

    @property
    def route_start(self) -> str:
        return self.src.route_start

    @property
    def settings(self) -> SectionSettings:
        return self.src.settings

    @property
    def wizard_complete(self) -> bool:
        return self.src.wizard_complete

    @property
    def array_field(self) -> Optional[str]:
        return self.src.settings.array_field

    def page_for_route(self, route_id: str) -> PageControl:
        return self.pages[self.routes[route_id].page_id]


class ControlModel:
    """
    Id-indexed, cross-referenced wizard.

    Route ids are unique across the whole wizard, so routes are also
    indexed globally for goto().
    """

    def __init__(self, sections: List[SectionControl]):
        self.section_order: Tuple[str, ...] = tuple(section.id for section in sections)
        self.sections: Mapping[str, SectionControl] = MappingProxyType(
            {section.id: section for section in sections}
        )
        self.routes: Mapping[str, RouteControl] = MappingProxyType({
            route.id: route
            for section in sections
            for route in section.routes.values()
        })

    @property
    def first_section(self) -> SectionControl:
        return self.sections[self.section_order[0]]

    def section(self, section_id: str) -> SectionControl:
        return self.sections[section_id]

    def route(self, route_id: str) -> RouteControl:
        return self.routes[route_id]

    def section_of_route(self, route_id: str) -> SectionControl:
        return self.sections[self.routes[route_id].section_id]

    def page_for_route(self, route_id: str) -> PageControl:
        return self.section_of_route(route_id).page_for_route(route_id)

    def sections_before(self, section_id: str) -> List[SectionControl]:
        position = self.section_order.index(section_id)
        return [self.sections[sid] for sid in self.section_order[:position]]

    def section_index(self, section_id: str) -> int:
        return self.section_order.index(section_id)

    def __len__(self):
        return len(self.section_order)

    def __contains__(self, route_id: str) -> bool:
        return route_id in self.routes
