"""
Workflow value object tests.

Covers construction-time validation of state machines and the lookup
helpers lifecycle services rely on.
"""

import pytest

from billing_kernel.domain.workflow import Guard, Transition, Workflow


def _simple_workflow(**overrides) -> Workflow:
    params = dict(
        name="doc",
        description="test document",
        initial_state="open",
        states=("open", "review", "closed"),
        transitions=(
            Transition("open", "review", action="submit"),
            Transition("open", "closed", action="close"),
            Transition("review", "closed", action="close"),
            Transition("review", "open", action="reject"),
        ),
        terminal_states=("closed",),
    )
    params.update(overrides)
    return Workflow(**params)


class TestWorkflowValidation:
    """Invalid definitions are rejected when the workflow is declared."""

    def test_initial_state_must_be_known(self):
        with pytest.raises(ValueError, match="initial state"):
            _simple_workflow(initial_state="missing")

    def test_transition_to_unknown_state_rejected(self):
        with pytest.raises(ValueError, match="unknown state"):
            _simple_workflow(
                transitions=(Transition("open", "archived", action="archive"),)
            )

    def test_terminal_state_cannot_have_outgoing_transition(self):
        with pytest.raises(ValueError, match="terminal state"):
            _simple_workflow(
                transitions=(Transition("closed", "open", action="reopen"),)
            )

    def test_workflow_is_frozen(self):
        wf = _simple_workflow()
        with pytest.raises(AttributeError):
            wf.name = "other"


class TestWorkflowLookups:
    """find_transition / transitions_from / actions_from / is_terminal."""

    def test_find_declared_transition(self):
        wf = _simple_workflow()
        t = wf.find_transition("open", "review")
        assert t is not None
        assert t.action == "submit"

    def test_find_undeclared_transition_returns_none(self):
        assert _simple_workflow().find_transition("closed", "open") is None

    def test_transitions_from_keeps_declaration_order(self):
        targets = [t.to_state for t in _simple_workflow().transitions_from("review")]
        assert targets == ["closed", "open"]

    def test_actions_from_deduplicates(self):
        wf = _simple_workflow(
            transitions=(
                Transition("open", "review", action="move"),
                Transition("open", "closed", action="move"),
            )
        )
        assert wf.actions_from("open") == ("move",)

    def test_terminal_state_has_no_actions(self):
        wf = _simple_workflow()
        assert wf.is_terminal("closed")
        assert wf.actions_from("closed") == ()
        assert not wf.is_terminal("open")

    def test_guard_is_descriptive_only(self):
        guard = Guard(name="approved", description="Reviewer approved")
        t = Transition("review", "closed", action="close", guard=guard)
        assert t.guard.name == "approved"
