"""Tests for StepOutcome factories, validation and inspection."""

import pytest

from jarforge.core.errors import ExportCancelled, GenerationError
from jarforge.orchestration.metadata import ExportStep
from jarforge.orchestration.step_result import OutcomeKind, StepOutcome


class TestFactories:
    def test_advance(self):
        outcome = StepOutcome.advance(ExportStep.GENERATE)
        assert outcome.is_advance
        assert outcome.next_step == ExportStep.GENERATE
        assert outcome.error is None

    def test_back(self):
        outcome = StepOutcome.back(ExportStep.RESOLVE_PROJECT)
        assert outcome.is_back
        assert outcome.next_step == ExportStep.RESOLVE_PROJECT

    def test_abort_without_error_is_cancel(self):
        outcome = StepOutcome.abort()
        assert outcome.is_abort
        assert outcome.is_cancel

    def test_abort_with_error_is_not_cancel(self):
        outcome = StepOutcome.abort(GenerationError("Export jar failed."))
        assert outcome.is_abort
        assert not outcome.is_cancel

    def test_from_exception_silent(self):
        assert StepOutcome.from_exception(ExportCancelled()).is_cancel

    def test_from_exception_failure_keeps_error(self):
        err = GenerationError("Export jar failed.")
        assert StepOutcome.from_exception(err).error is err


class TestValidation:
    def test_advance_requires_next_step(self):
        with pytest.raises(ValueError, match="requires a next step"):
            StepOutcome(kind=OutcomeKind.ADVANCE)

    def test_back_cannot_carry_error(self):
        with pytest.raises(ValueError, match="cannot carry an error"):
            StepOutcome(
                kind=OutcomeKind.BACK,
                next_step=ExportStep.RESOLVE_PROJECT,
                error=GenerationError("x"),
            )


class TestSerialization:
    def test_to_dict_advance(self):
        assert StepOutcome.advance(ExportStep.FINISH).to_dict() == {
            "kind": "advance",
            "next_step": "FINISH",
        }

    def test_to_dict_abort_with_error(self):
        data = StepOutcome.abort(GenerationError("Export jar failed.")).to_dict()
        assert data["kind"] == "abort"
        assert data["error"]["category"] == "GENERATION"

    def test_repr(self):
        assert "ADVANCE" in repr(StepOutcome.advance(ExportStep.GENERATE))
        assert "ABORT" in repr(StepOutcome.abort())
