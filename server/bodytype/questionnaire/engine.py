"""
Questionnaire Engine
====================

Linear state machine over the questionnaire steps.

Usage:
    engine = QuestionnaireEngine()
    engine.set_answer("fitness_goals", "Weight Loss")
    engine.advance()
    ...
    record = engine.advance()  # QuestionnaireRecord on the last step
"""

from typing import Dict, Iterable, List, Optional, Sequence

from ..models import QuestionnaireRecord, resolve_field_name
from .steps import QUESTIONS, InputKind, QuestionStep


class QuestionnaireEngine:
    """
    Step-by-step questionnaire with per-step validation.

    Forward progress is refused (``advance`` returns None) while the current
    step is incomplete; nothing is raised for an invalid step.

    Attributes:
        step_index (int): Index of the current step, always within [0, N-1]
        record (QuestionnaireRecord): Emitted record once completed, else None
    """

    def __init__(self, steps: Sequence[QuestionStep] = QUESTIONS):
        if not steps:
            raise ValueError("A questionnaire needs at least one step")
        self.steps = tuple(steps)
        self._steps_by_field: Dict[str, QuestionStep] = {step.field: step for step in self.steps}
        self.reset()

    def reset(self) -> None:
        """Clear all answers and return to the first step."""
        self.step_index = 0
        self.record: Optional[QuestionnaireRecord] = None
        self._answers = {step.field: step.empty_value() for step in self.steps}

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def current_step(self) -> QuestionStep:
        return self.steps[self.step_index]

    @property
    def is_last_step(self) -> bool:
        return self.step_index == len(self.steps) - 1

    @property
    def is_complete(self) -> bool:
        return self.record is not None

    @property
    def progress(self) -> float:
        """Fraction of steps reached, counting the current one."""
        return (self.step_index + 1) / len(self.steps)

    @property
    def answers(self) -> dict:
        """Copy of the answers entered so far."""
        return {name: list(value) if isinstance(value, list) else value
                for name, value in self._answers.items()}

    def _step_for(self, field: str) -> QuestionStep:
        name = resolve_field_name(field)
        if name not in self._steps_by_field:
            raise KeyError(f"No questionnaire step fills {field!r}")
        return self._steps_by_field[name]

    def set_answer(self, field: str, value) -> None:
        """
        Overwrite the answer for a field.

        Args:
            field: Record attribute or wire name
            value: String for single-choice and free-text steps, iterable of
                options for multi-choice steps

        Raises:
            KeyError: If no step fills the field
            ValueError: If a multi-choice value is not a list of strings
        """
        step = self._step_for(field)
        if step.kind is InputKind.MULTI_CHOICE:
            self._answers[step.field] = self._dedupe(self._selection(step, value))
        else:
            self._answers[step.field] = "" if value is None else str(value)
        self.record = None

    def toggle_option(self, field: str, option: str, selected: Optional[bool] = None) -> List[str]:
        """
        Toggle one option of a multi-choice step in or out of the selection.

        Args:
            field: Record attribute or wire name of a multi-choice step
            option: Option to toggle
            selected: Force the option in (True) or out (False); flips it when None

        Returns:
            The updated selection
        """
        step = self._step_for(field)
        if step.kind is not InputKind.MULTI_CHOICE:
            raise ValueError(f"{step.field!r} is not a multi-choice step")
        if option not in step.options:
            raise ValueError(f"{option!r} is not an option of {step.field!r}")

        current = self._answers[step.field]
        if selected is None:
            selected = option not in current
        if selected and option not in current:
            current.append(option)
        elif not selected and option in current:
            current.remove(option)
        self.record = None
        return list(current)

    @staticmethod
    def _selection(step: QuestionStep, value) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if isinstance(value, (dict, bytes)):
            raise ValueError(f"{step.field!r} expects a list of options")
        try:
            values = list(value)
        except TypeError:
            raise ValueError(f"{step.field!r} expects a list of options") from None
        if not all(isinstance(item, str) for item in values):
            raise ValueError(f"{step.field!r} options must be strings")
        return values

    @staticmethod
    def _dedupe(values: Iterable[str]) -> List[str]:
        seen: List[str] = []
        for item in values:
            if item not in seen:
                seen.append(item)
        return seen

    def is_step_valid(self) -> bool:
        """Whether the current step may be left going forward."""
        step = self.current_step
        return step.is_complete(self._answers[step.field])

    def advance(self) -> Optional[QuestionnaireRecord]:
        """
        Move to the next step, or finalize on the last step.

        Returns:
            The completed record when the last step is advanced, else None
        """
        if not self.is_step_valid():
            return None
        if not self.is_last_step:
            self.step_index += 1
            return None
        self.record = self._build_record()
        return self.record

    def retreat(self) -> bool:
        """Move back one step; answers are kept. Returns False at the first step."""
        if self.step_index == 0:
            return False
        self.step_index -= 1
        return True

    def _build_record(self) -> QuestionnaireRecord:
        values = {}
        for name, value in self._answers.items():
            values[name] = tuple(value) if isinstance(value, list) else value.strip()
        return QuestionnaireRecord(**values)

    def validate_record(self, record: QuestionnaireRecord) -> List[str]:
        """
        Check a record built elsewhere against this engine's steps.

        Returns:
            Names of the fields that fail their step's completion rule
        """
        return [step.field for step in self.steps
                if not step.is_complete(getattr(record, step.field))]

    def snapshot(self) -> dict:
        """Serializable view of the current step and answers."""
        return {
            "stepIndex": self.step_index,
            "totalSteps": self.total_steps,
            "progress": self.progress,
            "isLastStep": self.is_last_step,
            "canAdvance": self.is_step_valid(),
            "canRetreat": self.step_index > 0,
            "step": self.current_step.to_dict(),
            "answers": self.answers,
        }
