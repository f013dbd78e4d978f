# -*- coding: utf-8 -*-
"""
Tests for the Navigation Engine state machine.

Tests cover:
- Initial state
- next / prev / goto transitions
- Section status, completion dates and history
- Validation, lifecycle and gating failures leaving state untouched
- Array-indexed sections
- Resuming from a saved State
"""
from datetime import datetime
from unittest import mock

import pytest

from app.config import Config
from models.definition import HookResult, PageEvents
from models.state import SectionStatus, State
from services.exceptions import (
    NavigationBlockedError,
    NoMatchingRuleError,
    StateError,
    UnknownRouteError,
    ValidationError,
    WizardCompleteError,
    WizardError,
)
from services.wizard import NavigationEngine, WizardDataModel


def position(engine):
    state = engine.state
    return state.section_active_id, state.route_active_id


def complete_applicant(engine):
    """Walk the loan flow's applicant section (single applicant)."""
    engine.next()  # a-name → a-status
    engine.next()  # a-status → a-done (default branch)
    engine.next()  # applicant complete → household


class TestInitialState:
    """Test the engine's starting point."""

    def test_starts_at_first_route(self, engine):
        """Test the first section's routeStart is active."""
        assert position(engine) == ("S1", "r1")
        assert engine.state.route_path == ["r1"]

    def test_first_section_started(self, engine):
        """Test the first section is active and started with a date."""
        status = engine.state.status["S1"]
        assert status.active is True
        assert status.started is True
        assert isinstance(status.started_date, datetime)
        assert status.completed is False
        assert status.route_last == "r1"

    def test_cannot_go_previous_at_start(self, engine):
        """Test prev is a silent no-op at the very first route."""
        before = engine.state
        assert engine.can_go_previous() is False
        assert engine.prev() is False
        assert engine.state == before

    def test_state_is_a_copy(self, engine):
        """Test mutating the returned state does not affect the engine."""
        engine.state.route_path.append("r2")
        assert engine.state.route_path == ["r1"]


class TestExampleFlow:
    """Test the two-section example end to end."""

    def test_full_flow(self, engine):
        """Test next() walks S1 → S2 and then reports completion."""
        completed = []
        engine.wizard_completed.connect(lambda: completed.append(True))

        assert engine.next() is True
        assert position(engine) == ("S1", "r2")
        assert engine.state.route_path == ["r1", "r2"]

        engine.next()
        state = engine.state
        assert state.status["S1"].completed is True
        assert isinstance(state.status["S1"].completed_date, datetime)
        assert position(engine) == ("S2", "r3")
        assert state.status["S1"].active is False
        assert state.status["S2"].active is True

        engine.next()
        assert engine.state.status["S2"].completed is True
        assert engine.is_complete is True
        assert completed == [True]

        with pytest.raises(WizardCompleteError):
            engine.next()

    def test_prev_and_goto_allowed_after_completion(self, engine):
        """Test the terminal state still honors prev and goto."""
        engine.next()
        engine.next()
        engine.next()

        assert engine.prev() is True
        assert position(engine) == ("S1", "r2")
        assert engine.goto("r1") is True
        assert position(engine) == ("S1", "r1")
        with pytest.raises(WizardCompleteError):
            engine.next()

    def test_at_most_one_active_section(self, engine):
        """Test only one section is ever marked active."""
        for _ in range(3):
            engine.next()
            active = [sid for sid, s in engine.state.status.items() if s.active]
            assert len(active) == 1


class TestNext:
    """Test forward transitions."""

    def test_next_then_prev_round_trip(self, engine):
        """Test next then prev restores the position, history and section status."""
        before = engine.state

        engine.next()
        engine.prev()
        after = engine.state

        assert position(engine) == (before.section_active_id, before.route_active_id)
        assert after.status["S1"] == before.status["S1"]
        assert after.route_path == before.route_path

    def test_route_changed_signal(self, engine):
        """Test route_changed fires with the new position."""
        seen = []
        engine.route_changed.connect(lambda section, route: seen.append((section, route)))

        engine.next()

        assert seen == [("S1", "r2")]

    def test_section_signals(self, engine):
        """Test section_completed and section_started fire when crossing sections."""
        completed, started = [], []
        engine.section_completed.connect(completed.append)
        engine.section_started.connect(started.append)

        engine.next()
        engine.next()

        assert completed == ["S1"]
        assert started == ["S2"]

    def test_completed_date_set_once(self, engine):
        """Test revisiting a completed section never resets completedDate."""
        engine.next()
        engine.next()
        first_date = engine.state.status["S1"].completed_date

        later = datetime(2099, 1, 1)
        with mock.patch("utils.datetime_utils.now", return_value=later):
            engine.prev()
            engine.next()

        state = engine.state
        assert state.status["S1"].completed_date == first_date
        assert position(engine) == ("S2", "r3")


class TestDynamicRouting:
    """Test branch rules during next()."""

    def test_default_branch(self, loan_engine):
        """Test a single applicant skips the spouse page."""
        loan_engine.next()
        loan_engine.next()
        assert position(loan_engine) == ("applicant", "a-done")

    def test_matching_branch(self, loan_engine):
        """Test a married applicant goes to the spouse page."""
        loan_engine.data_model.set("maritalStatus", "married")
        loan_engine.next()
        loan_engine.next()
        assert position(loan_engine) == ("applicant", "a-spouse")

    def test_rules_evaluated_fresh_each_visit(self, loan_engine):
        """Test changed data changes the branch taken on a revisit."""
        loan_engine.next()
        loan_engine.next()
        assert loan_engine.state.route_active_id == "a-done"

        loan_engine.prev()
        loan_engine.data_model.set("maritalStatus", "married")
        loan_engine.data_model.set("spouseName", "William")
        loan_engine.next()

        assert loan_engine.state.route_active_id == "a-spouse"

    def test_no_matching_rule_blocks(self, builder):
        """Test NoMatchingRuleError leaves state unchanged."""
        model = builder.build([{
            "id": "S1",
            "routeStart": "r1",
            "routes": [
                {"id": "r1", "pageId": "p1", "routeNext": [
                    {"routeNext": "r2", "rules": [{"field": "go", "operator": "=", "value": True}]},
                ]},
                {"id": "r2", "pageId": "p1", "sectionComplete": True},
            ],
            "pages": [{"id": "p1", "content": []}],
        }])
        engine = NavigationEngine(model)
        before = engine.state
        failures = []
        engine.transition_failed.connect(lambda kind, message: failures.append(kind))

        with pytest.raises(NoMatchingRuleError):
            engine.next()

        assert engine.state == before
        assert failures == ["no_matching_rule"]


class TestValidationGate:
    """Test next() is blocked by invalid pages."""

    def test_invalid_controls_block(self, loan_model):
        """Test missing required fields raise ValidationError."""
        engine = NavigationEngine(loan_model, data_model=WizardDataModel({"firstName": "Ada"}))
        before = engine.state

        with pytest.raises(ValidationError) as exc_info:
            engine.next()

        assert exc_info.value.page_id == "name"
        assert any("lastName" in error for error in exc_info.value.errors)
        assert engine.state == before

    def test_failed_gate_marks_controls_touched(self, loan_model):
        """Test controls are marked touched so the UI can show errors."""
        engine = NavigationEngine(loan_model, data_model=WizardDataModel())
        with pytest.raises(ValidationError):
            engine.next()

        assert all(control.touched for control in engine.active_page.controls)

    def test_renderer_reported_errors(self, loan_engine):
        """Test errors reported into controls_by_id block next()."""
        control = loan_engine.active_page.controls_by_id["email"]
        control.set_errors(["Server says no"])
        try:
            with pytest.raises(ValidationError):
                loan_engine.next()
        finally:
            control.set_errors(None)

        assert loan_engine.next() is True

    def test_custom_validator_decides(self, builder):
        """Test a page validator overrides control validity."""
        calls = []

        def only_on_tuesdays(page, data_model):
            calls.append(page.id)
            return data_model.get("day") == "tue"

        model = builder.build([{
            "id": "S1",
            "routeStart": "r1",
            "routes": [
                {"id": "r1", "pageId": "p1", "routeNext": "r2"},
                {"id": "r2", "pageId": "p1", "sectionComplete": True},
            ],
            "pages": [{"id": "p1", "validator": only_on_tuesdays, "content": [
                {"type": "formField", "field": "unused", "validators": {"required": True}},
            ]}],
        }])
        data = WizardDataModel({"day": "mon"})
        engine = NavigationEngine(model, data_model=data)

        with pytest.raises(ValidationError):
            engine.next()
        data.set("day", "tue")
        assert engine.next() is True
        assert calls == ["p1", "p1"]

    def test_custom_validator_verdict_reset_on_revisit(self, builder):
        """Test a page shows fresh validity when it becomes active again."""
        model = builder.build([{
            "id": "S1",
            "routeStart": "r1",
            "routes": [
                {"id": "r1", "pageId": "p1", "routeNext": "r2"},
                {"id": "r2", "pageId": "p2", "sectionComplete": True},
            ],
            "pages": [
                {"id": "p1", "validator": lambda page, data: data.get("day") == "tue", "content": []},
                {"id": "p2", "content": []},
            ],
        }])
        engine = NavigationEngine(model, data_model=WizardDataModel({"day": "mon"}))
        with pytest.raises(ValidationError):
            engine.next()
        assert engine.active_page.valid is False

        engine.goto("r2")
        engine.prev()

        assert engine.active_page.id == "p1"
        assert engine.active_page.valid is True


class TestLifecycleHooks:
    """Test page hooks."""

    def test_veto_leaves_state(self, engine):
        """Test an explicit False from on_next vetoes the transition."""
        engine.register_page_events("p1", PageEvents(on_next=lambda page, data: False))
        before = engine.state

        assert engine.next() is False
        assert engine.state == before

    def test_proceed_on_none(self, engine):
        """Test a hook returning None lets the transition proceed."""
        engine.register_page_events("p1", PageEvents(on_next=lambda page, data: None))
        assert engine.next() is True

    def test_redirect(self, engine):
        """Test a redirect jumps to the named route instead."""
        engine.register_page_events(
            "p1", PageEvents(on_next=lambda page, data: HookResult.redirect("r3"))
        )
        assert engine.next() is True
        assert position(engine) == ("S2", "r3")

    def test_on_previous_veto(self, engine):
        """Test on_previous can keep the user on the page."""
        engine.next()
        engine.register_page_events("p2", PageEvents(on_previous=lambda page, data: False))

        assert engine.prev() is False
        assert position(engine) == ("S1", "r2")

    def test_init_and_destroy_order(self, two_section_model):
        """Test destroy runs for the old page before init for the new one."""
        calls = []
        engine = NavigationEngine(two_section_model)
        engine.register_page_events("p1", PageEvents(
            on_init=lambda page: calls.append(("init", page.id)),
            on_destroy=lambda page: calls.append(("destroy", page.id)),
        ))
        engine.register_page_events("p2", PageEvents(
            on_init=lambda page: calls.append(("init", page.id)),
        ))

        engine.start()
        engine.next()

        assert calls == [("init", "p1"), ("destroy", "p1"), ("init", "p2")]

    def test_hook_exception_leaves_state(self, engine):
        """Test a failing hook propagates and changes nothing."""
        def broken(page, data):
            raise RuntimeError("hook bug")

        engine.register_page_events("p1", PageEvents(on_next=broken))
        before = engine.state

        with pytest.raises(RuntimeError):
            engine.next()
        assert engine.state == before

    def test_failing_init_hook_rolls_back(self, engine):
        """Test an on_init that raises leaves the previous position and emits nothing."""
        def broken(page):
            raise RuntimeError("init bug")

        engine.register_page_events("p2", PageEvents(on_init=broken))
        before = engine.state
        moves = []
        engine.route_changed.connect(lambda section, route: moves.append(route))

        with pytest.raises(RuntimeError):
            engine.next()

        assert engine.state == before
        assert position(engine) == ("S1", "r1")
        assert moves == []

    def test_reentrant_request_is_queued(self, two_section_model):
        """Test a transition requested from inside a hook runs after the current one."""
        engine = NavigationEngine(two_section_model)
        seen = []

        def chain(page):
            seen.append(engine.next())

        engine.register_page_events("p2", PageEvents(on_init=chain))
        engine.next()

        assert seen == [False]
        assert position(engine) == ("S2", "r3")
        assert engine.state.route_path == ["r1", "r2", "r3"]


class TestPrev:
    """Test backward transitions."""

    def test_prev_across_sections_resumes_route_last(self, engine):
        """Test prev from a section start returns to the previous section's last route."""
        engine.next()
        engine.next()
        assert position(engine) == ("S2", "r3")

        engine.prev()

        state = engine.state
        assert position(engine) == ("S1", "r2")
        assert state.route_path == ["r1", "r2"]
        assert state.status["S1"].active is True
        assert state.status["S2"].active is False
        assert state.status["S1"].completed is True

    def test_prev_after_resume_uses_status(self, two_section_model):
        """Test prev without local history falls back to routeLast from status."""
        saved = State(
            section_active_id="S2",
            route_active_id="r3",
            route_path=["r3"],
            status={
                "S1": SectionStatus(started=True, started_date=datetime(2024, 1, 1),
                                    completed=True, completed_date=datetime(2024, 1, 2),
                                    route_last="r2"),
                "S2": SectionStatus(active=True, started=True,
                                    started_date=datetime(2024, 1, 2), route_last="r3"),
            },
        )
        engine = NavigationEngine(two_section_model, state=saved)

        assert engine.prev() is True
        assert position(engine) == ("S1", "r2")
        assert engine.state.route_path == ["r2"]

    def test_prev_after_skipping_a_section(self, builder):
        """Test prev steps back along the history when goto skipped the previous section."""
        model = builder.build([
            {"id": sid, "routeStart": rid, "pages": [{"id": pid, "content": []}],
             "routes": [{"id": rid, "pageId": pid, "sectionComplete": True}]}
            for sid, rid, pid in (("S1", "r1", "p1"), ("S2", "r2", "p2"), ("S3", "r3", "p3"))
        ])
        engine = NavigationEngine(model)
        engine.goto("r3")
        assert engine.state.route_path == ["r1", "r3"]
        assert engine.can_go_previous() is True

        assert engine.prev() is True

        state = engine.state
        assert position(engine) == ("S1", "r1")
        assert state.route_path == ["r1"]
        assert state.status["S3"].active is False
        assert "S2" not in state.status


class TestGoto:
    """Test direct jumps."""

    def test_goto_truncates_history(self, engine):
        """Test jumping back discards forward history."""
        engine.next()
        engine.next()

        engine.goto("r1")

        assert engine.state.route_path == ["r1"]
        assert position(engine) == ("S1", "r1")
        assert engine.state.status["S1"].route_last == "r1"

    def test_goto_extends_history(self, engine):
        """Test jumping to an unvisited route appends it."""
        engine.goto("r3")

        state = engine.state
        assert state.route_path == ["r1", "r3"]
        assert state.status["S2"].started is True
        assert state.status["S2"].route_last == "r3"
        assert state.status["S1"].active is False

    def test_unknown_route(self, engine):
        """Test goto to an unknown id fails without change."""
        before = engine.state
        with pytest.raises(UnknownRouteError):
            engine.goto("nowhere")
        assert engine.state == before

    def test_previous_required_blocks(self, loan_engine):
        """Test review cannot be entered before earlier sections are complete."""
        before = loan_engine.state

        with pytest.raises(NavigationBlockedError) as exc_info:
            loan_engine.goto("rv-check")

        assert exc_info.value.blocking_sections == ["applicant", "household"]
        assert loan_engine.state == before

    def test_previous_required_passes(self, loan_engine):
        """Test review opens once every earlier section is complete."""
        complete_applicant(loan_engine)
        # household: two persons
        for _ in range(4):
            loan_engine.next()
        assert position(loan_engine) == ("review", "rv-check")

        loan_engine.goto("a-name")
        assert loan_engine.goto("rv-check") is True


class TestArraySections:
    """Test sections repeated per collection item."""

    def test_iterates_once_per_item(self, loan_engine):
        """Test the household section runs for each person before completing."""
        indexes = []
        loan_engine.array_index_changed.connect(lambda key, index: indexes.append((key, index)))
        complete_applicant(loan_engine)

        assert position(loan_engine) == ("household", "h-person")
        assert loan_engine.array_index == 0

        loan_engine.next()
        loan_engine.next()
        assert position(loan_engine) == ("household", "h-person")
        assert loan_engine.array_index == 1
        assert loan_engine.state.status["household"].completed is False

        loan_engine.next()
        loan_engine.next()
        assert loan_engine.state.status["household"].completed is True
        assert position(loan_engine) == ("review", "rv-check")
        assert indexes == [("persons", 1)]

    def test_controls_validate_current_item(self, loan_model):
        """Test bound controls read the field of the current index."""
        data = WizardDataModel({
            "firstName": "Ada", "lastName": "Lovelace", "maritalStatus": "single",
            "persons": [{"name": "Ada"}, {"name": ""}],
        })
        engine = NavigationEngine(loan_model, data_model=data)
        complete_applicant(engine)
        engine.next()
        engine.next()
        assert engine.array_index == 1
        assert engine.active_page.invalid is True

        with pytest.raises(ValidationError):
            engine.next()

    def test_prev_steps_back_an_iteration(self, loan_engine):
        """Test prev from an iteration's first route returns to the previous item."""
        complete_applicant(loan_engine)
        loan_engine.next()
        loan_engine.next()
        assert loan_engine.array_index == 1

        loan_engine.prev()

        assert position(loan_engine) == ("household", "h-income")
        assert loan_engine.array_index == 0

    def test_set_array_index(self, loan_engine):
        """Test the index can be set from outside."""
        assert loan_engine.set_array_index("persons", 3) is True
        assert loan_engine.state.array_indexes["persons"] == 3

    def test_set_array_index_unknown_field(self, loan_engine):
        """Test only fields of array sections are accepted."""
        with pytest.raises(WizardError):
            loan_engine.set_array_index("pets", 0)

    def test_non_array_section_has_no_index(self, loan_engine):
        """Test array_index is None outside array sections."""
        assert loan_engine.array_index is None


class TestResume:
    """Test adopting an externally supplied State."""

    def test_resume_valid_state(self, engine, two_section_model):
        """Test a serialized state resumes at the same position."""
        engine.next()
        saved = State.from_dict(engine.state.to_dict())

        resumed = NavigationEngine(two_section_model, state=saved)

        assert position(resumed) == ("S1", "r2")
        assert resumed.state.route_path == ["r1", "r2"]

    def test_resume_rejects_unknown_ids(self, two_section_model):
        """Test inconsistent states are rejected with every problem listed."""
        saved = State(
            section_active_id="S1",
            route_active_id="r3",
            route_path=["r1", "ghost", "r3"],
            status={"S9": SectionStatus()},
            array_indexes={"pets": 0},
        )

        with pytest.raises(StateError) as exc_info:
            NavigationEngine(two_section_model, state=saved)

        errors = exc_info.value.errors
        assert any("not in active section" in e for e in errors)
        assert any("'ghost'" in e for e in errors)
        assert any("'S9'" in e for e in errors)
        assert any("'pets'" in e for e in errors)

    def test_lenient_resume_drops_unknown_ids(self, two_section_model, monkeypatch):
        """Test non-strict mode strips ids the Definition no longer has."""
        monkeypatch.setattr(Config, "STRICT_STATE", False)
        saved = State(
            section_active_id="S1",
            route_active_id="r2",
            route_path=["r0", "r1", "r2"],
            status={"Old": SectionStatus(), "S1": SectionStatus(active=True, route_last="r2")},
        )

        resumed = NavigationEngine(two_section_model, state=saved)

        assert resumed.state.route_path == ["r1", "r2"]
        assert set(resumed.state.status) == {"S1"}

    def test_resume_empty_state_starts_fresh(self, two_section_model):
        """Test a state without a position starts at the beginning."""
        resumed = NavigationEngine(two_section_model, state=State())
        assert position(resumed) == ("S1", "r1")

    def test_reset(self, engine):
        """Test reset returns to a fresh initial state."""
        engine.next()
        engine.next()
        engine.reset()

        assert position(engine) == ("S1", "r1")
        assert engine.state.route_path == ["r1"]
        assert "S2" not in engine.state.status
