"""
Unit tests for the questionnaire engine.

Tests for step descriptors, answer handling and step transitions.
"""

import random

import pytest

from bodytype.models import QuestionnaireRecord
from bodytype.questionnaire import QUESTIONS, InputKind, QuestionnaireEngine
from bodytype.questionnaire.steps import QuestionStep


def fill_current_step(engine):
    """Answer the current step with its first option."""
    step = engine.current_step
    if step.kind is InputKind.SINGLE_CHOICE:
        engine.set_answer(step.field, step.options[0])
    elif step.kind is InputKind.MULTI_CHOICE:
        engine.toggle_option(step.field, step.options[0])


class TestQuestionSteps:
    """Test suite for the declarative step descriptors."""

    def test_reference_questionnaire_has_ten_steps(self):
        assert len(QUESTIONS) == 10
        assert [step.field for step in QUESTIONS] == [
            "fitness_goals", "current_activity", "exercise_frequency", "workout_duration",
            "diet_type", "allergies", "medical_conditions", "injuries",
            "workout_preference", "equipment_access",
        ]

    def test_single_choice_requires_listed_option(self):
        step = QUESTIONS[0]
        assert step.is_complete("Weight Loss")
        assert not step.is_complete("")
        assert not step.is_complete("Get Swole")

    def test_multi_choice_requires_non_empty_selection(self):
        step = next(s for s in QUESTIONS if s.field == "equipment_access")
        assert not step.is_complete([])
        assert step.is_complete(["Yoga mat"])
        assert not step.is_complete(["Rowing machine"])

    def test_free_text_is_always_complete(self):
        step = next(s for s in QUESTIONS if s.field == "injuries")
        assert step.is_complete("")
        assert step.is_complete("Bad knee")

    def test_to_dict_omits_options_for_free_text(self):
        step = next(s for s in QUESTIONS if s.field == "medical_conditions")
        data = step.to_dict()
        assert data["kind"] == "free_text"
        assert "options" not in data
        assert data["placeholder"]


class TestQuestionnaireEngine:
    """Test suite for QuestionnaireEngine transitions."""

    def test_advance_blocked_while_step_invalid(self):
        engine = QuestionnaireEngine()
        assert engine.advance() is None
        assert engine.step_index == 0

    def test_advance_moves_forward_when_valid(self):
        engine = QuestionnaireEngine()
        engine.set_answer("fitness_goals", "Weight Loss")
        assert engine.advance() is None
        assert engine.step_index == 1

    def test_retreat_is_noop_at_first_step(self):
        engine = QuestionnaireEngine()
        assert engine.retreat() is False
        assert engine.step_index == 0

    def test_retreat_keeps_answers(self):
        engine = QuestionnaireEngine()
        engine.set_answer("fitnessGoals", "Muscle Building")
        engine.advance()
        engine.retreat()
        assert engine.answers["fitness_goals"] == "Muscle Building"
        assert engine.is_step_valid()

    def test_free_text_steps_can_be_skipped(self):
        engine = QuestionnaireEngine()
        while engine.current_step.kind is not InputKind.FREE_TEXT:
            fill_current_step(engine)
            engine.advance()
        index = engine.step_index
        assert engine.is_step_valid()
        engine.advance()
        assert engine.step_index == index + 1

    def test_last_step_emits_record(self):
        engine = QuestionnaireEngine()
        record = None
        for _ in range(engine.total_steps):
            fill_current_step(engine)
            record = engine.advance()
        assert isinstance(record, QuestionnaireRecord)
        assert engine.is_complete
        assert engine.step_index == engine.total_steps - 1
        assert record.medical_conditions == ""
        assert record.equipment_access == ("Full gym access",)

    def test_emitted_record_satisfies_every_step(self):
        engine = QuestionnaireEngine()
        for _ in range(engine.total_steps):
            fill_current_step(engine)
            record = engine.advance()
        for step in QUESTIONS:
            value = getattr(record, step.field)
            if step.kind is InputKind.SINGLE_CHOICE:
                assert value in step.options
            elif step.kind is InputKind.MULTI_CHOICE:
                assert len(value) > 0
        assert engine.validate_record(record) == []

    def test_toggle_option_in_and_out(self):
        engine = QuestionnaireEngine()
        assert engine.toggle_option("allergies", "Nuts") == ["Nuts"]
        assert engine.toggle_option("allergies", "Dairy") == ["Nuts", "Dairy"]
        assert engine.toggle_option("allergies", "Nuts") == ["Dairy"]
        assert engine.toggle_option("allergies", "Dairy", selected=True) == ["Dairy"]
        assert engine.toggle_option("allergies", "Dairy", selected=False) == []

    def test_toggle_rejects_unknown_option(self):
        engine = QuestionnaireEngine()
        with pytest.raises(ValueError):
            engine.toggle_option("allergies", "Peanut butter")

    def test_toggle_rejects_single_choice_field(self):
        engine = QuestionnaireEngine()
        with pytest.raises(ValueError):
            engine.toggle_option("diet_type", "Vegan")

    def test_set_answer_unknown_field(self):
        engine = QuestionnaireEngine()
        with pytest.raises(KeyError):
            engine.set_answer("favourite_colour", "Blue")

    def test_set_answer_replaces_multi_choice_selection(self):
        engine = QuestionnaireEngine()
        engine.set_answer("equipmentAccess", ["Yoga mat", "Yoga mat", "Resistance bands"])
        assert engine.answers["equipment_access"] == ["Yoga mat", "Resistance bands"]

    @pytest.mark.parametrize("value", [5, 2.5, True, {"Nuts": True}, ["Nuts", 3]])
    def test_set_answer_rejects_malformed_multi_choice(self, value):
        engine = QuestionnaireEngine()
        engine.set_answer("allergies", ["Dairy"])
        with pytest.raises(ValueError):
            engine.set_answer("allergies", value)
        assert engine.answers["allergies"] == ["Dairy"]

    def test_editing_after_completion_clears_record(self):
        engine = QuestionnaireEngine()
        for _ in range(engine.total_steps):
            fill_current_step(engine)
            engine.advance()
        engine.set_answer("diet_type", "Keto")
        assert engine.record is None

    def test_validate_record_reports_bad_fields(self, record):
        bad = QuestionnaireRecord(**{**record.__dict__, "diet_type": "Carnivore",
                                     "equipment_access": ()})
        assert QuestionnaireEngine().validate_record(bad) == ["diet_type", "equipment_access"]

    def test_random_walk_stays_in_bounds(self):
        rng = random.Random(7)
        engine = QuestionnaireEngine()
        last = engine.total_steps - 1
        for _ in range(500):
            action = rng.choice(["advance", "retreat", "fill", "clear"])
            before = engine.step_index
            valid_before = engine.is_step_valid()
            if action == "advance":
                engine.advance()
                if not valid_before:
                    assert engine.step_index == before
            elif action == "retreat":
                engine.retreat()
            elif action == "fill":
                fill_current_step(engine)
            else:
                step = engine.current_step
                engine.set_answer(step.field, step.empty_value())
            assert 0 <= engine.step_index <= last

    def test_custom_steps(self):
        steps = [QuestionStep("Pick", "", InputKind.SINGLE_CHOICE, "diet_type", ("Keto",))]
        engine = QuestionnaireEngine(steps)
        assert engine.is_last_step
        engine.set_answer("diet_type", "Keto")
        assert engine.is_step_valid()

    def test_snapshot_shape(self):
        snapshot = QuestionnaireEngine().snapshot()
        assert snapshot["stepIndex"] == 0
        assert snapshot["totalSteps"] == 10
        assert snapshot["canAdvance"] is False
        assert snapshot["canRetreat"] is False
        assert snapshot["step"]["field"] == "fitness_goals"


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
