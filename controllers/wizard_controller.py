# -*- coding: utf-8 -*-
"""
Wizard Controller
=================
Session facade between renderers and the navigation engine.

Renderers read the current view (section, page, buttons, validity,
iteration index) and send user requests; the controller delegates
every request to the engine and reports the outcome. It does no gating
or validation of its own.

Usage:
    controller = WizardController(definition_dict, data_model)
    controller.start()
    result = controller.request_next()
    if not result.success:
        show_error(result.error_kind, result.message)
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from PyQt5.QtCore import pyqtSignal

from controllers.base_controller import BaseController, OperationResult
from models.control import ControlModel, PageControl, SectionControl
from models.definition import PageEvents, WizardDefinition
from models.state import SectionStatus, State
from services.wizard.control_model_builder import ControlModelBuilder
from services.wizard.navigation_engine import NavigationEngine
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class WizardProgress:
    """Section-level progress for progress bars."""
    total_sections: int
    completed_sections: int
    current_position: int  # 1-based position of the active section

    @property
    def percentage(self) -> float:
        if self.total_sections == 0:
            return 0.0
        return (self.completed_sections / self.total_sections) * 100.0


@dataclass(frozen=True)
class WizardView:
    """Snapshot of everything a renderer needs for the current screen."""
    section: SectionControl
    page: PageControl
    route_id: str
    back_button_visible: bool
    next_button_visible: bool
    full_screen: bool
    can_save: bool
    valid: bool
    array_index: Optional[int]
    progress: WizardProgress
    complete: bool


class WizardController(BaseController):
    """
    Controller for one wizard session.

    Provides:
    - Read-only projection of the engine's position
    - request_next / request_prev / request_goto returning OperationResult
    - Qt signals re-emitted from the engine for UI updates
    """

    view_changed = pyqtSignal()
    wizard_completed = pyqtSignal()

    def __init__(
        self,
        definition: Union[ControlModel, WizardDefinition, dict, list],
        data_model=None,
        state: Optional[Union[State, Dict[str, Any]]] = None,
        parent=None,
    ):
        """
        Initialize the controller.

        Args:
            definition: A built ControlModel, or a Definition to build
            data_model: External data model shared with renderers
            state: Saved State (or its dict form) to resume

        Raises:
            DefinitionError: the Definition does not build
            StateError: the saved state does not fit the Definition
        """
        super().__init__(parent)

        if isinstance(definition, ControlModel):
            self.control_model = definition
        else:
            self.control_model = ControlModelBuilder().build(definition)

        if isinstance(state, dict):
            state = State.from_dict(state)

        self.engine = NavigationEngine(self.control_model, data_model=data_model,
                                       state=state, parent=self)
        self.engine.state_changed.connect(self.view_changed)
        self.engine.wizard_completed.connect(self.wizard_completed)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self):
        """Begin the session (runs the first page's init hook)."""
        self.engine.start()

    def close(self):
        """End the session."""
        self.engine.close()

    def reset(self) -> OperationResult:
        """Restart the session from the first section."""
        return self.execute_with_error_handling("reset", self.engine.reset)

    def register_page_events(self, page_id: str, events: PageEvents):
        self.engine.register_page_events(page_id, events)

    # =========================================================================
    # Read-only projection
    # =========================================================================

    @property
    def data_model(self):
        return self.engine.data_model

    @property
    def section(self) -> SectionControl:
        return self.engine.active_section

    @property
    def page(self) -> PageControl:
        return self.engine.active_page

    @property
    def route_id(self) -> str:
        return self.engine.active_route.id

    @property
    def array_index(self) -> Optional[int]:
        return self.engine.array_index

    @property
    def is_complete(self) -> bool:
        return self.engine.is_complete

    def can_go_next(self) -> bool:
        return self.engine.can_go_next()

    def can_go_previous(self) -> bool:
        return self.engine.can_go_previous()

    @property
    def back_button_visible(self) -> bool:
        return self.page.settings.back_button_visible and self.engine.can_go_previous()

    @property
    def next_button_visible(self) -> bool:
        return self.page.settings.next_button_visible and self.engine.can_go_next()

    @property
    def progress(self) -> WizardProgress:
        state = self.engine.state
        completed = sum(
            1 for section_id in self.control_model.section_order
            if state.status.get(section_id, SectionStatus()).completed
        )
        return WizardProgress(
            total_sections=len(self.control_model),
            completed_sections=completed,
            current_position=self.control_model.section_index(state.section_active_id) + 1,
        )

    def view(self) -> WizardView:
        """Get a snapshot of the current screen."""
        page = self.page
        return WizardView(
            section=self.section,
            page=page,
            route_id=self.route_id,
            back_button_visible=self.back_button_visible,
            next_button_visible=self.next_button_visible,
            full_screen=page.settings.full_screen,
            can_save=page.settings.can_save,
            valid=page.valid,
            array_index=self.array_index,
            progress=self.progress,
            complete=self.is_complete,
        )

    def save_state(self) -> Dict[str, Any]:
        """Serialize the Runtime State for a persistence layer."""
        return self.engine.state.to_dict()

    # =========================================================================
    # Write surface
    # =========================================================================

    def request_next(self) -> OperationResult:
        """Ask the engine to move forward."""
        return self.execute_with_error_handling("next", self.engine.next)

    def request_prev(self) -> OperationResult:
        """Ask the engine to move back."""
        return self.execute_with_error_handling("prev", self.engine.prev)

    def request_goto(self, route_id: str) -> OperationResult:
        """Ask the engine to jump to a route."""
        return self.execute_with_error_handling("goto", self.engine.goto, route_id)

    def request_array_index(self, array_field: str, index: int) -> OperationResult:
        """Select the collection item array sections work on."""
        return self.execute_with_error_handling(
            "set_array_index", self.engine.set_array_index, array_field, index
        )
