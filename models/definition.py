# -*- coding: utf-8 -*-
"""
Wizard Definition models.

The Definition is the authored, immutable description of a wizard:
sections, their routes and pages, and each page's content tree.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Union

from .content import parse_content_list


# =========================================================================
# Lifecycle hooks
# =========================================================================

class HookAction(Enum):
    PROCEED = "proceed"
    VETO = "veto"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class HookResult:
    """What a pre-next / pre-previous hook wants the engine to do."""
    action: HookAction
    route_id: Optional[str] = None

    @classmethod
    def proceed(cls) -> "HookResult":
        return cls(HookAction.PROCEED)

    @classmethod
    def veto(cls) -> "HookResult":
        return cls(HookAction.VETO)

    @classmethod
    def redirect(cls, route_id: str) -> "HookResult":
        return cls(HookAction.REDIRECT, route_id)

    @classmethod
    def coerce(cls, value: Any) -> "HookResult":
        """
        Normalize a hook's return value.

        None and True proceed, an explicit False vetoes, and a HookResult
        is taken as-is.
        """
        if isinstance(value, HookResult):
            return value
        if value is False:
            return cls.veto()
        if value is None or value is True:
            return cls.proceed()
        raise TypeError(f"Unsupported hook return value: {value!r}")


@dataclass(frozen=True)
class PageEvents:
    """
    Optional hook slots, invoked synchronously by the engine.

    on_init / on_destroy receive the PageControl when the page becomes
    active / stops being active. on_next / on_previous receive the
    PageControl and the data model and return a HookResult (or
    True / False / None).
    """
    on_init: Optional[Callable] = None
    on_destroy: Optional[Callable] = None
    on_next: Optional[Callable] = None
    on_previous: Optional[Callable] = None


# =========================================================================
# Definition
# =========================================================================

@dataclass(frozen=True)
class PageSettings:
    full_screen: bool = False
    back_button_visible: bool = True
    next_button_visible: bool = True
    can_save: bool = False

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "PageSettings":
        data = data or {}
        return cls(
            full_screen=bool(data.get("fullScreen", False)),
            back_button_visible=data.get("backButtonVisible", True) is not False,
            next_button_visible=data.get("nextButtonVisible", True) is not False,
            can_save=bool(data.get("canSave", False)),
        )


@dataclass(frozen=True)
class Page:
    id: str
    content: tuple = ()
    slug: Optional[str] = None
    title: Optional[str] = None
    title_short: Optional[str] = None
    title_show: bool = True
    settings: PageSettings = field(default_factory=PageSettings)
    events: PageEvents = field(default_factory=PageEvents)
    # Custom page validator: callable(page_control, data_model) -> bool
    validator: Optional[Callable] = None
    data: Any = None

    @classmethod
    def from_dict(cls, data: dict) -> "Page":
        """Create Page from the authored mapping."""
        return cls(
            id=data["id"],
            content=parse_content_list(data.get("content", [])),
            slug=data.get("slug"),
            title=data.get("title"),
            title_short=data.get("titleShort"),
            title_show=data.get("titleShow", True) is not False,
            settings=PageSettings.from_dict(data.get("settings")),
            events=data.get("events") or PageEvents(),
            validator=data.get("validator"),
            data=data.get("data"),
        )


@dataclass(frozen=True)
class Route:
    """
    Edge of the navigation graph.

    Exactly one of ``route_next`` (a route id, or a list of rule groups)
    and ``section_complete`` is expected; the builder reports routes
    that break this.
    """
    id: str
    page_id: str
    route_next: Union[str, List[dict], None] = None
    section_complete: bool = False

    @property
    def is_dynamic(self) -> bool:
        return isinstance(self.route_next, (list, tuple))

    @classmethod
    def from_dict(cls, data: dict) -> "Route":
        return cls(
            id=data["id"],
            page_id=data["pageId"],
            route_next=data.get("routeNext"),
            section_complete=bool(data.get("sectionComplete", False)),
        )


@dataclass(frozen=True)
class SectionSettings:
    previous_required: bool = False
    # Name of the external collection this section repeats over
    array_field: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "SectionSettings":
        data = data or {}
        return cls(
            previous_required=bool(data.get("previousRequired", False)),
            array_field=data.get("arrayField"),
        )


@dataclass(frozen=True)
class Section:
    id: str
    route_start: str
    title: str = ""
    slug: Optional[str] = None
    settings: SectionSettings = field(default_factory=SectionSettings)
    wizard_complete: bool = False
    data: Any = None
    routes: tuple = ()
    pages: tuple = ()

    @classmethod
    def from_dict(cls, data: dict) -> "Section":
        """Create Section (with its routes and pages) from the authored mapping."""
        return cls(
            id=data["id"],
            route_start=data["routeStart"],
            title=data.get("title", ""),
            slug=data.get("slug"),
            settings=SectionSettings.from_dict(data.get("settings")),
            wizard_complete=bool(data.get("wizardComplete", False)),
            data=data.get("data"),
            routes=tuple(Route.from_dict(route) for route in data.get("routes", [])),
            pages=tuple(Page.from_dict(page) for page in data.get("pages", [])),
        )


@dataclass(frozen=True)
class WizardDefinition:
    """Ordered sections of one wizard."""
    sections: tuple = ()

    @classmethod
    def from_dict(cls, data: Union[dict, list]) -> "WizardDefinition":
        """
        Accepts either a bare list of sections or ``{"sections": [...]}``.
        """
        items = data.get("sections", []) if isinstance(data, dict) else data
        return cls(sections=tuple(Section.from_dict(item) for item in items))
