# -*- coding: utf-8 -*-
"""
Control Model Builder - compiles a wizard Definition into a ControlModel.

Handles:
- Slug resolution (authored slug, else derived from the id)
- Linking sections in authored order (previous / next)
- Referential integrity checks, collecting every violation
- Flattening each page's content tree into bound form controls
"""

import re
from dataclasses import replace
from types import MappingProxyType
from typing import Dict, List, Optional, Set, Tuple, Union

from app.config import Config
from models.content import iter_form_fields
from models.control import (
    ControlModel,
    FormControl,
    PageControl,
    RouteControl,
    SectionControl,
)
from models.definition import Page, Route, Section, WizardDefinition
from services.exceptions import DefinitionError
from services.validation import ValidationFactory, get_validation_factory
from services.wizard.data_model import path_problem
from services.wizard.rule_evaluator import validate_rule_groups
from utils.logger import get_logger

logger = get_logger(__name__)

_SLUG_INVALID = re.compile(r"[^a-z0-9]+")


def slugify(value: str, separator: str = None) -> str:
    """
    Derive a URL-safe slug from an id.

    Examples:
        >>> slugify("Applicant Details_1")
        'applicant-details-1'
    """
    separator = separator or Config.SLUG_SEPARATOR
    slug = _SLUG_INVALID.sub(separator, value.strip().lower())
    # Ids made only of punctuation still need a stable slug
    return slug.strip(separator) or value.encode("utf-8").hex()


class ControlModelBuilder:
    """
    Builds ControlModels.

    Usage:
        model = ControlModelBuilder().build(definition)
    """

    def __init__(self, validation_factory: Optional[ValidationFactory] = None):
        self.validation_factory = validation_factory or get_validation_factory()

    def build(self, definition: Union[WizardDefinition, dict, list]) -> ControlModel:
        """
        Build a ControlModel.

        Args:
            definition: WizardDefinition, or its authored dict / list form

        Raises:
            DefinitionError: listing every violation found
        """
        unparsed: Dict[str, Set[str]] = {}
        errors: List[str] = []
        if not isinstance(definition, WizardDefinition):
            definition, errors, unparsed = self._parse(definition)

        if definition.sections or not errors:
            errors.extend(self.validate(definition, unparsed))
        if errors:
            for error in errors:
                logger.error(f"Definition violation: {error}")
            raise DefinitionError(errors)

        sections = definition.sections
        controls = []
        for position, section in enumerate(sections):
            previous_id = sections[position - 1].id if position > 0 else None
            next_id = sections[position + 1].id if position < len(sections) - 1 else None
            controls.append(self._build_section(section, previous_id, next_id))

        model = ControlModel(controls)
        logger.info(
            f"Built control model: {len(model)} sections, {len(model.routes)} routes"
        )
        return model

    def parse(self, data: Union[dict, list]) -> WizardDefinition:
        """
        Parse the authored structure, reporting every malformed item.

        Raises:
            DefinitionError: if any section, route or page cannot be parsed
        """
        definition, errors, _ = self._parse(data)
        if errors:
            for error in errors:
                logger.error(f"Definition violation: {error}")
            raise DefinitionError(errors)
        return definition

    def _parse(self, data: Union[dict, list]) -> Tuple[WizardDefinition, List[str], Dict[str, Set[str]]]:
        """
        Parse section by section, and route / page by route / page.

        Returns:
            The sections that parsed, the parse errors, and per section the
            ids of routes and pages that failed (so validation does not
            report them a second time as dangling references)
        """
        items = data.get("sections", []) if isinstance(data, dict) else data
        sections = []
        errors: List[str] = []
        unparsed: Dict[str, Set[str]] = {}
        for position, item in enumerate(items or []):
            if not isinstance(item, dict):
                errors.append(f"Section #{position}: not a mapping")
                continue
            label = item.get("id", f"#{position}")
            try:
                section = Section.from_dict({**item, "routes": [], "pages": []})
            except KeyError as e:
                errors.append(f"Section {label}: missing required key {e}")
                continue
            except (ValueError, TypeError, AttributeError) as e:
                errors.append(f"Section {label}: {e}")
                continue

            failed = unparsed.setdefault(section.id, set())
            routes = self._parse_items(Route.from_dict, item.get("routes"), label, "route", errors, failed)
            pages = self._parse_items(Page.from_dict, item.get("pages"), label, "page", errors, failed)
            sections.append(replace(section, routes=tuple(routes), pages=tuple(pages)))

        return WizardDefinition(sections=tuple(sections)), errors, unparsed

    @staticmethod
    def _parse_items(parser, items, section_label: str, kind: str,
                     errors: List[str], failed: Set[str]) -> list:
        parsed = []
        if items is None:
            return parsed
        if not isinstance(items, list):
            errors.append(f"Section {section_label}: {kind}s must be a list")
            return parsed

        for position, item in enumerate(items):
            item_id = item.get("id") if isinstance(item, dict) else None
            label = f"Section {section_label}/{item_id or f'{kind} #{position}'}"
            try:
                parsed.append(parser(item))
                continue
            except KeyError as e:
                errors.append(f"{label}: missing required key {e}")
            except (ValueError, TypeError, AttributeError) as e:
                errors.append(f"{label}: {e}")
            if item_id:
                failed.add(item_id)
        return parsed

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(self, definition: WizardDefinition,
                 unparsed: Optional[Dict[str, Set[str]]] = None) -> List[str]:
        """
        Check referential integrity.

        Args:
            definition: Parsed definition
            unparsed: Per section, ids of routes / pages that failed to parse;
                references to them are not reported again

        Returns:
            Every violation found (empty if the definition is sound)
        """
        unparsed = unparsed or {}
        errors: List[str] = []
        if not definition.sections:
            return ["Definition has no sections"]

        seen_sections = set()
        route_owner: Dict[str, str] = {}
        for section in definition.sections:
            if section.id in seen_sections:
                errors.append(f"Duplicate section id '{section.id}'")
            seen_sections.add(section.id)

            for route in section.routes:
                if route.id in route_owner:
                    errors.append(
                        f"Duplicate route id '{route.id}' "
                        f"(sections '{route_owner[route.id]}' and '{section.id}')"
                    )
                else:
                    route_owner[route.id] = section.id

        for section in definition.sections:
            errors.extend(self._validate_section(section, unparsed.get(section.id, set())))
        return errors

    def _validate_section(self, section: Section, unparsed: Set[str]) -> List[str]:
        errors: List[str] = []
        page_ids = set()
        for page in section.pages:
            if page.id in page_ids:
                errors.append(f"{section.id}: duplicate page id '{page.id}'")
            page_ids.add(page.id)
            errors.extend(self._validate_page(section, page))
        page_ids |= unparsed

        route_ids = {route.id for route in section.routes} | unparsed
        if not section.routes and not unparsed:
            errors.append(f"{section.id}: section has no routes")
        if section.route_start not in route_ids:
            errors.append(f"{section.id}: routeStart '{section.route_start}' does not resolve")

        for route in section.routes:
            label = f"{section.id}/{route.id}"
            if route.page_id not in page_ids:
                errors.append(f"{label}: pageId '{route.page_id}' does not resolve")

            has_next = route.route_next not in (None, "", [])
            if has_next and route.section_complete:
                errors.append(f"{label}: route has both routeNext and sectionComplete")
            elif not has_next and not route.section_complete:
                errors.append(f"{label}: route needs routeNext or sectionComplete")
            elif route.is_dynamic:
                errors.extend(validate_rule_groups(
                    route.route_next, route_ids, label, section.settings.array_field
                ))
            elif has_next and not isinstance(route.route_next, str):
                errors.append(f"{label}: routeNext must be a route id or a list of rule groups")
            elif has_next and route.route_next not in route_ids:
                errors.append(f"{label}: routeNext '{route.route_next}' does not resolve")
        return errors

    def _validate_page(self, section: Section, page: Page) -> List[str]:
        errors = []
        fields = set()
        for form_field in iter_form_fields(page.content):
            label = f"{section.id}/{page.id}"
            if form_field.field in fields:
                errors.append(f"{label}: field '{form_field.field}' is bound twice")
            fields.add(form_field.field)
            problem = path_problem(form_field.field, section.settings.array_field)
            if problem:
                errors.append(f"{label}: {problem}")
        if page.validator is not None and not callable(page.validator):
            errors.append(f"{section.id}/{page.id}: validator is not callable")
        return errors

    # =========================================================================
    # Construction
    # =========================================================================

    def _build_section(
        self,
        section: Section,
        previous_id: Optional[str],
        next_id: Optional[str],
    ) -> SectionControl:
        routes = {
            route.id: RouteControl(
                id=route.id,
                page_id=route.page_id,
                section_id=section.id,
                route_next=tuple(route.route_next) if route.is_dynamic else route.route_next,
                section_complete=route.section_complete,
            )
            for route in section.routes
        }
        pages = {page.id: self._build_page(page) for page in section.pages}

        return SectionControl(
            src=section,
            slug=section.slug or slugify(section.id),
            section_previous_id=previous_id,
            section_next_id=next_id,
            routes=MappingProxyType(routes),
            pages=MappingProxyType(pages),
        )

    def _build_page(self, page: Page) -> PageControl:
        controls = [
            FormControl(form_field, self.validation_factory.create_validators(form_field.validators))
            for form_field in iter_form_fields(page.content)
        ]
        return PageControl(page, slug=page.slug or slugify(page.id), controls=controls)
