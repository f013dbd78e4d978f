# -*- coding: utf-8 -*-
"""
Navigation Engine - the wizard state machine.

Handles:
- Transitions (next / prev / goto) over the Control Model's route graph
- Validation and lifecycle gates before a transition commits
- Section status (started / completed / routeLast) and route history
- Section gating (previousRequired)
- Array-indexed sections repeated once per item of an external collection

Every transition works on a copy of the Runtime State and swaps it in
only when all gates have passed, so a failed transition changes nothing.
"""

import copy
import uuid
from collections import deque
from typing import Callable, Dict, List, Optional, Tuple

from PyQt5.QtCore import QObject, pyqtSignal

from app.config import Config, Transitions
from models.control import ControlModel, PageControl, RouteControl, SectionControl
from models.definition import HookAction, HookResult, PageEvents
from models.state import SectionStatus, State
from services.exceptions import (
    NavigationBlockedError,
    StateError,
    UnknownRouteError,
    ValidationError,
    WizardCompleteError,
    WizardError,
)
from services.wizard.data_model import WizardDataModel
from services.wizard.rule_evaluator import RuleEvaluator
from services.wizard.state_validator import StateValidator
from utils import datetime_utils
from utils.logger import get_session_logger


class NavigationEngine(QObject):
    """
    Owns the Runtime State of one wizard session.

    Signals are emitted synchronously, after a transition has committed.
    """

    # Signals
    route_changed = pyqtSignal(str, str)  # section_id, route_id
    section_started = pyqtSignal(str)  # section_id
    section_completed = pyqtSignal(str)  # section_id
    array_index_changed = pyqtSignal(str, int)  # array field, index
    wizard_completed = pyqtSignal()
    transition_failed = pyqtSignal(str, str)  # error kind, message
    state_changed = pyqtSignal()

    def __init__(
        self,
        control_model: ControlModel,
        data_model=None,
        state: Optional[State] = None,
        rule_evaluator: Optional[RuleEvaluator] = None,
        parent: Optional[QObject] = None,
    ):
        """
        Initialize the engine.

        Args:
            control_model: Built Control Model (shared, read-only)
            data_model: External data model; an empty WizardDataModel if omitted
            state: Previously saved State to resume; validated first
            rule_evaluator: Evaluator for dynamic routes
            parent: Qt parent object

        Raises:
            StateError: if the supplied state does not fit the Control Model
        """
        super().__init__(parent)
        self.session_id = uuid.uuid4().hex[:8]
        self.logger = get_session_logger(__name__, self.session_id)

        self.control_model = control_model
        self.data_model = data_model if data_model is not None else WizardDataModel()
        self.rule_evaluator = rule_evaluator or RuleEvaluator()

        self._page_events: Dict[str, PageEvents] = {}
        self._transitioning = False
        self._pending: deque = deque()

        if state is None:
            self._state = self._initial_state()
        else:
            self._state = self._adopt_state(state)

        self.logger.info(
            f"Session ready at ({self._state.section_active_id}, {self._state.route_active_id})"
        )

    # =========================================================================
    # Session lifecycle
    # =========================================================================

    def _initial_state(self) -> State:
        state = State()
        first = self.control_model.first_section
        self._enter_section(state, first)
        state.route_path.append(first.route_start)
        self._set_position(state, first.id, first.route_start)
        return state

    def _adopt_state(self, state: State) -> State:
        state = copy.deepcopy(state)
        if not Config.STRICT_STATE:
            state = StateValidator.sanitize_state(state, self.control_model)

        errors = StateValidator.validate_state(state, self.control_model)
        if errors:
            for error in errors:
                self.logger.error(f"Resume state rejected: {error}")
            raise StateError(errors)

        if state.route_active_id is None:
            # Nothing visited yet; keep saved progress, start at the beginning
            fresh = self._initial_state()
            fresh.status.update({
                sid: status for sid, status in state.status.items()
                if sid != fresh.section_active_id
            })
            fresh.array_indexes.update(state.array_indexes)
            return fresh

        if not state.route_path:
            state.route_path.append(state.route_active_id)
        status = state.status_for(state.section_active_id)
        status.active = True
        status.started = True
        if status.started_date is None:
            status.started_date = datetime_utils.now()
        return state

    def start(self):
        """Run the active page's init hook and announce the starting position."""
        self._call_hook(self.active_page, "on_init")
        self.route_changed.emit(self._state.section_active_id, self._state.route_active_id)
        self.state_changed.emit()

    def close(self):
        """End the session: drop queued requests and run the destroy hook."""
        self._pending.clear()
        self._call_hook(self.active_page, "on_destroy")
        self.logger.info("Session closed")

    def reset(self):
        """Restart from the first section with fresh progress."""
        old_page = self.active_page
        self._pending.clear()
        self._state = self._initial_state()
        self.active_page.activate(self.data_model, self.array_index)
        self._call_hook(old_page, "on_destroy")
        self.start()

    def register_page_events(self, page_id: str, events: PageEvents):
        """Attach lifecycle hooks to a page, overriding any on its definition."""
        self._page_events[page_id] = events

    # =========================================================================
    # Read-only projection
    # =========================================================================

    @property
    def state(self) -> State:
        """A copy of the current Runtime State, safe to serialize or inspect."""
        return copy.deepcopy(self._state)

    @property
    def active_section(self) -> SectionControl:
        return self.control_model.section(self._state.section_active_id)

    @property
    def active_route(self) -> RouteControl:
        return self.control_model.route(self._state.route_active_id)

    @property
    def active_page(self) -> PageControl:
        return self.control_model.page_for_route(self._state.route_active_id)

    @property
    def array_index(self) -> Optional[int]:
        """Iteration index of the active section, None if it does not repeat."""
        array_field = self.active_section.array_field
        if not array_field:
            return None
        return self._state.array_indexes.get(array_field, 0)

    @property
    def is_complete(self) -> bool:
        """True once a terminal section (wizardComplete, or the last one) is completed."""
        return any(
            self._state.status.get(section.id, SectionStatus()).completed
            for section in self.control_model.sections.values()
            if self._is_terminal(section)
        )

    def can_go_next(self) -> bool:
        return not self.is_complete

    def can_go_previous(self) -> bool:
        return self._previous_target(self._state) is not None

    # =========================================================================
    # Transitions
    # =========================================================================

    def next(self) -> bool:
        """
        Move forward along the active route.

        Returns:
            True if the transition committed, False if a hook vetoed it
            or the request was queued behind a running transition

        Raises:
            WizardCompleteError, ValidationError, NoMatchingRuleError,
            NavigationBlockedError
        """
        return self._run(Transitions.NEXT, self._next)

    def prev(self) -> bool:
        """
        Move back one step in the route history.

        Returns:
            True if the transition committed; False at the very first
            route, on veto, or when queued
        """
        return self._run(Transitions.PREV, self._prev)

    def goto(self, route_id: str) -> bool:
        """
        Jump directly to a route (resume, summary links).

        Raises:
            UnknownRouteError, NavigationBlockedError
        """
        return self._run(Transitions.GOTO, self._goto, route_id)

    def set_array_index(self, array_field: str, index: int) -> bool:
        """
        Select which item of an external collection array sections use.

        The engine does not manage the collection itself; it only keeps
        the index.
        """
        return self._run("set_array_index", self._set_array_index, array_field, index)

    def _run(self, name: str, func: Callable, *args) -> bool:
        """
        Execute one transition to completion.

        Requests arriving while another transition runs (from inside a
        hook) are queued and executed once it has committed.
        """
        if self._transitioning:
            if len(self._pending) >= Config.MAX_QUEUED_TRANSITIONS:
                raise WizardError(f"Too many queued transitions (limit {Config.MAX_QUEUED_TRANSITIONS})")
            self.logger.debug(f"Queued {name}{args} behind running transition")
            self._pending.append((name, func, args))
            return False

        self._transitioning = True
        try:
            result = func(*args)
        except WizardError as e:
            self._pending.clear()
            self.logger.warning(f"{name} failed: {e.message}")
            self.transition_failed.emit(e.kind, e.message)
            raise
        except Exception:
            self._pending.clear()
            raise
        finally:
            self._transitioning = False

        self._drain_pending()
        return result

    def _drain_pending(self):
        while self._pending:
            name, func, args = self._pending.popleft()
            try:
                self._run(name, func, *args)
            except WizardError:
                # Already logged and signalled by _run
                continue

    def _next(self) -> bool:
        if self.is_complete:
            raise WizardCompleteError()

        page = self.active_page
        if not page.refresh(self.data_model, self.array_index):
            page.mark_controls_touched()
            raise ValidationError(page.id, page.errors)

        hook = self._call_decision_hook(page, "on_next")
        if hook.action == HookAction.VETO:
            self.logger.info(f"next vetoed by page {page.id}")
            return False
        if hook.action == HookAction.REDIRECT:
            self.logger.info(f"next redirected by page {page.id} to {hook.route_id}")
            return self._goto(hook.route_id)

        route = self.active_route
        new_state = copy.deepcopy(self._state)
        events: List[Tuple[pyqtSignal, tuple]] = []

        if route.section_complete:
            self._complete_section(new_state, self.active_section, events)
        else:
            target = self._resolve_next(route)
            self.logger.info(f"Navigating: {route.id} → {target}")
            new_state.route_path.append(target)
            self._set_position(new_state, route.section_id, target)

        self._commit(new_state, events)
        return True

    def _resolve_next(self, route: RouteControl) -> str:
        if not route.is_dynamic:
            return route.route_next
        return self.rule_evaluator.evaluate(
            list(route.route_next),
            self.data_model,
            index=self.array_index,
            route_id=route.id,
        )

    def _complete_section(self, state: State, section: SectionControl, events: list):
        """Finish the active section: next iteration, next section, or the end."""
        array_field = section.array_field
        if array_field:
            index = state.array_indexes.get(array_field, 0)
            if index + 1 < self.data_model.length(array_field):
                self.logger.info(f"Section {section.id}: iteration {index} → {index + 1}")
                state.array_indexes[array_field] = index + 1
                state.route_path.append(section.route_start)
                self._set_position(state, section.id, section.route_start)
                events.append((self.array_index_changed, (array_field, index + 1)))
                return

        status = state.status_for(section.id)
        if not status.completed:
            status.completed = True
            status.completed_date = datetime_utils.now()
        events.append((self.section_completed, (section.id,)))

        if self._is_terminal(section):
            self.logger.info(f"Section {section.id} completed the wizard")
            events.append((self.wizard_completed, ()))
            return

        next_section = self.control_model.section(section.section_next_id)
        self._check_gate(state, next_section, next_section.route_start)
        self.logger.info(f"Section {section.id} completed → {next_section.id}")

        if next_section.array_field:
            state.array_indexes[next_section.array_field] = 0
        self._leave_section(state, section)
        if self._enter_section(state, next_section):
            events.append((self.section_started, (next_section.id,)))
        state.route_path.append(next_section.route_start)
        self._set_position(state, next_section.id, next_section.route_start)

    def _prev(self) -> bool:
        target = self._previous_target(self._state)
        if target is None:
            self.logger.debug("prev ignored: no earlier route to return to")
            return False

        page = self.active_page
        hook = self._call_decision_hook(page, "on_previous")
        if hook.action == HookAction.VETO:
            self.logger.info(f"prev vetoed by page {page.id}")
            return False
        if hook.action == HookAction.REDIRECT:
            self.logger.info(f"prev redirected by page {page.id} to {hook.route_id}")
            return self._goto(hook.route_id)

        current = self.active_route
        section = self.active_section
        new_state = copy.deepcopy(self._state)
        events: List[Tuple[pyqtSignal, tuple]] = []

        new_state.route_path.pop()
        target_section = self.control_model.section_of_route(target)

        if target_section.id == section.id:
            array_field = section.array_field
            index = new_state.array_indexes.get(array_field, 0) if array_field else 0
            if (array_field and index > 0 and current.id == section.route_start
                    and self.control_model.route(target).section_complete):
                new_state.array_indexes[array_field] = index - 1
                events.append((self.array_index_changed, (array_field, index - 1)))
        else:
            # Local history exhausted: resume the previous section where it was left
            if not new_state.route_path or new_state.route_path[-1] != target:
                new_state.route_path.append(target)
            self._leave_section(new_state, section)
            self._enter_section(new_state, target_section)

        self.logger.info(f"Navigating back: {current.id} → {target}")
        self._set_position(new_state, target_section.id, target)
        self._commit(new_state, events)
        return True

    def _previous_target(self, state: State) -> Optional[str]:
        """Route prev() would land on, or None at the very beginning."""
        section = self.control_model.section(state.section_active_id)
        if len(state.route_path) >= 2:
            candidate = state.route_path[-2]
            if self.control_model.route(candidate).section_id == section.id:
                return candidate

        if section.section_previous_id is not None:
            previous = state.status.get(section.section_previous_id)
            if previous is not None and previous.route_last is not None:
                return previous.route_last

        # Previous section skipped by goto: step back along the history
        if len(state.route_path) >= 2:
            return state.route_path[-2]
        return None

    def _goto(self, route_id: str) -> bool:
        if route_id not in self.control_model:
            raise UnknownRouteError(route_id)

        target_section = self.control_model.section_of_route(route_id)
        self._check_gate(self._state, target_section, route_id)

        current_section = self.active_section
        new_state = copy.deepcopy(self._state)
        events: List[Tuple[pyqtSignal, tuple]] = []

        # Fresh path ending at the target; history past it is discarded
        if route_id in new_state.route_path:
            cut = len(new_state.route_path) - 1 - new_state.route_path[::-1].index(route_id)
            del new_state.route_path[cut + 1:]
        else:
            new_state.route_path.append(route_id)

        if target_section.id != current_section.id:
            self._leave_section(new_state, current_section)
            if self._enter_section(new_state, target_section):
                events.append((self.section_started, (target_section.id,)))
            if target_section.array_field:
                new_state.array_indexes.setdefault(target_section.array_field, 0)

        self.logger.info(f"Jumping: {self._state.route_active_id} → {route_id}")
        self._set_position(new_state, target_section.id, route_id)
        self._commit(new_state, events)
        return True

    def _set_array_index(self, array_field: str, index: int) -> bool:
        known = {
            section.array_field
            for section in self.control_model.sections.values()
            if section.array_field
        }
        if array_field not in known:
            raise WizardError(f"No section repeats over '{array_field}'")
        if index < 0:
            raise WizardError(f"Array index must not be negative: {index}")

        new_state = copy.deepcopy(self._state)
        new_state.array_indexes[array_field] = index
        self._commit(new_state, [(self.array_index_changed, (array_field, index))])
        return True

    # =========================================================================
    # State helpers
    # =========================================================================

    def _is_terminal(self, section: SectionControl) -> bool:
        return section.wizard_complete or section.section_next_id is None

    def _check_gate(self, state: State, section: SectionControl, target: str):
        """Raise if previousRequired blocks entering ``section``."""
        if not section.settings.previous_required:
            return
        blocking = [
            earlier.id
            for earlier in self.control_model.sections_before(section.id)
            if not state.status.get(earlier.id, SectionStatus()).completed
        ]
        if blocking:
            raise NavigationBlockedError(target, blocking)

    @staticmethod
    def _enter_section(state: State, section: SectionControl) -> bool:
        """
        Mark a section active (and started).

        Returns:
            True if the section was started for the first time
        """
        status = state.status_for(section.id)
        status.active = True
        first_start = not status.started
        if first_start:
            status.started = True
            status.started_date = datetime_utils.now()
        state.section_active_id = section.id
        return first_start

    @staticmethod
    def _leave_section(state: State, section: SectionControl):
        state.status_for(section.id).active = False

    @staticmethod
    def _set_position(state: State, section_id: str, route_id: str):
        state.section_active_id = section_id
        state.route_active_id = route_id
        state.status_for(section_id).route_last = route_id

    def _commit(self, new_state: State, events: list):
        """
        Swap in ``new_state``, run page hooks, then emit signals.

        If a destroy / init hook raises, the previous state is restored
        before the exception propagates.
        """
        old_page = self.active_page
        old_state = self._state
        self._state = new_state
        new_page = self.active_page

        try:
            if new_page is not old_page or new_state.array_indexes != old_state.array_indexes:
                new_page.activate(self.data_model, self.array_index)
            if new_page is not old_page:
                self._call_hook(old_page, "on_destroy")
                self._call_hook(new_page, "on_init")
        except Exception:
            self._state = old_state
            self.logger.error(
                f"Commit rolled back to ({old_state.section_active_id}, {old_state.route_active_id})"
            )
            raise

        for signal, args in events:
            signal.emit(*args)
        self.route_changed.emit(new_state.section_active_id, new_state.route_active_id)
        self.state_changed.emit()

    # =========================================================================
    # Hooks
    # =========================================================================

    def _events_for(self, page: PageControl) -> PageEvents:
        return self._page_events.get(page.id, page.events)

    def _call_hook(self, page: PageControl, slot: str):
        hook = getattr(self._events_for(page), slot)
        if hook is not None:
            self.logger.debug(f"Calling {slot}() for page {page.id}")
            hook(page)

    def _call_decision_hook(self, page: PageControl, slot: str) -> HookResult:
        hook = getattr(self._events_for(page), slot)
        if hook is None:
            return HookResult.proceed()
        self.logger.debug(f"Calling {slot}() for page {page.id}")
        return HookResult.coerce(hook(page, self.data_model))
