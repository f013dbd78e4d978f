# -*- coding: utf-8 -*-
"""
State validation for resumed wizard sessions.

Checks an externally supplied Runtime State against the Control Model
before the engine adopts it, without UI coupling.
"""

from datetime import datetime
from typing import List

from models.control import ControlModel
from models.state import State


class StateValidator:
    """Validates a Runtime State against a Control Model."""

    @staticmethod
    def validate_state(state: State, model: ControlModel) -> List[str]:
        """
        Collect every referential inconsistency.

        Args:
            state: State to adopt
            model: Control Model of the running wizard

        Returns:
            List of error messages (empty if consistent)
        """
        errors = []

        # Active position
        if (state.section_active_id is None) != (state.route_active_id is None):
            errors.append("sectionActiveId and routeActiveId must both be set or both be null")
        if state.section_active_id is not None and state.section_active_id not in model.sections:
            errors.append(f"Unknown active section '{state.section_active_id}'")
        if state.route_active_id is not None:
            if state.route_active_id not in model.routes:
                errors.append(f"Unknown active route '{state.route_active_id}'")
            elif (state.section_active_id in model.sections
                  and model.route(state.route_active_id).section_id != state.section_active_id):
                errors.append(
                    f"Active route '{state.route_active_id}' is not in "
                    f"active section '{state.section_active_id}'"
                )

        # History
        for route_id in state.route_path:
            if route_id not in model.routes:
                errors.append(f"routePath contains unknown route '{route_id}'")
        if state.route_path and state.route_active_id is not None:
            if state.route_path[-1] != state.route_active_id:
                errors.append("routePath must end with the active route")

        # Section progress
        active_sections = [sid for sid, status in state.status.items() if status.active]
        if len(active_sections) > 1:
            errors.append(f"More than one active section: {', '.join(active_sections)}")
        if active_sections and active_sections[0] != state.section_active_id:
            errors.append(f"Section '{active_sections[0]}' is marked active but is not the active section")

        for section_id, status in state.status.items():
            if section_id not in model.sections:
                errors.append(f"status refers to unknown section '{section_id}'")
                continue
            for key, value in (("startedDate", status.started_date), ("completedDate", status.completed_date)):
                if value is not None and not isinstance(value, datetime):
                    errors.append(f"{section_id}: {key} is not an ISO datetime")
            if status.route_last is not None:
                if status.route_last not in model.routes:
                    errors.append(f"{section_id}: routeLast '{status.route_last}' is unknown")
                elif model.route(status.route_last).section_id != section_id:
                    errors.append(f"{section_id}: routeLast '{status.route_last}' belongs to another section")
            if status.completed and status.completed_date is None:
                errors.append(f"{section_id}: completed without completedDate")
            if not status.completed and status.completed_date is not None:
                errors.append(f"{section_id}: completedDate set on an incomplete section")

        # Array indexes
        array_fields = {
            section.array_field
            for section in model.sections.values()
            if section.array_field
        }
        for key, index in state.array_indexes.items():
            if key not in array_fields:
                errors.append(f"arrayIndexes refers to unknown array field '{key}'")
            if isinstance(index, bool) or not isinstance(index, int):
                errors.append(f"arrayIndexes['{key}'] is not an integer")
            elif index < 0:
                errors.append(f"arrayIndexes['{key}'] is negative")

        return errors

    @staticmethod
    def sanitize_state(state: State, model: ControlModel) -> State:
        """
        Drop every id the Control Model does not know.

        Used when strict state checking is disabled. Structural problems
        (e.g. an active route outside the active section) are left for
        validate_state() to report.
        """
        array_fields = {
            section.array_field
            for section in model.sections.values()
            if section.array_field
        }
        state.route_path = [rid for rid in state.route_path if rid in model.routes]
        state.status = {
            sid: status for sid, status in state.status.items() if sid in model.sections
        }
        for status in state.status.values():
            if status.route_last is not None and status.route_last not in model.routes:
                status.route_last = None
        state.array_indexes = {
            key: index for key, index in state.array_indexes.items()
            if key in array_fields
            and isinstance(index, int) and not isinstance(index, bool) and index >= 0
        }
        return state
