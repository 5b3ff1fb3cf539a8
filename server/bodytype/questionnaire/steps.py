"""
Questionnaire Steps
===================

Declarative descriptors for the fitness questionnaire.

Each step names the record field it fills, its input kind and, for choice
kinds, the fixed option list. Validation is a single predicate shared by
every step.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class InputKind(str, Enum):
    """How a questionnaire step is answered."""

    SINGLE_CHOICE = "single_choice"
    MULTI_CHOICE = "multi_choice"
    FREE_TEXT = "free_text"


@dataclass(frozen=True)
class QuestionStep:
    """
    One questionnaire step.

    Attributes:
        title: Question shown to the user
        subtitle: Helper line under the question
        kind: Input kind
        field: QuestionnaireRecord attribute filled by this step
        options: Allowed values for choice kinds
        placeholder: Hint text for free-text steps
    """

    title: str
    subtitle: str
    kind: InputKind
    field: str
    options: Tuple[str, ...] = ()
    placeholder: Optional[str] = None

    @property
    def is_choice(self) -> bool:
        return self.kind in (InputKind.SINGLE_CHOICE, InputKind.MULTI_CHOICE)

    def empty_value(self):
        """Initial value before the user answers."""
        return [] if self.kind is InputKind.MULTI_CHOICE else ""

    def is_complete(self, value) -> bool:
        """
        Check whether ``value`` completes this step.

        Args:
            value: Current answer for the step's field

        Returns:
            True if the step may be left going forward
        """
        if self.kind is InputKind.SINGLE_CHOICE:
            return isinstance(value, str) and value != "" and value in self.options
        if self.kind is InputKind.MULTI_CHOICE:
            if isinstance(value, str) or not value:
                return False
            return all(item in self.options for item in value)
        return True

    def to_dict(self) -> dict:
        data = {
            "title": self.title,
            "subtitle": self.subtitle,
            "kind": self.kind.value,
            "field": self.field,
        }
        if self.is_choice:
            data["options"] = list(self.options)
        if self.placeholder:
            data["placeholder"] = self.placeholder
        return data


FITNESS_GOALS = (
    "Weight Loss",
    "Muscle Building",
    "General Fitness",
    "Athletic Performance",
    "Strength Training",
    "Endurance Improvement",
)

ACTIVITY_LEVELS = (
    "Sedentary (little to no exercise)",
    "Lightly active (light exercise 1-3 days/week)",
    "Moderately active (moderate exercise 3-5 days/week)",
    "Very active (hard exercise 6-7 days/week)",
    "Extremely active (very hard exercise, physical job)",
)

EXERCISE_FREQUENCIES = (
    "Never",
    "1-2 times per week",
    "3-4 times per week",
    "5-6 times per week",
    "Daily",
)

WORKOUT_DURATIONS = (
    "Less than 30 minutes",
    "30-45 minutes",
    "45-60 minutes",
    "60-90 minutes",
    "More than 90 minutes",
)

DIET_TYPES = (
    "Vegetarian",
    "Vegan",
    "Non-vegetarian",
    "Pescatarian",
    "Keto",
    "No specific preference",
)

ALLERGIES = ("Nuts", "Dairy", "Gluten", "Shellfish", "Soy", "Eggs", "None")

WORKOUT_PREFERENCES = (
    "Cardio (running, cycling, swimming)",
    "Strength training (weights, resistance)",
    "HIIT (High-intensity interval training)",
    "Yoga and flexibility",
    "Sports and recreational activities",
    "Mixed/varied workouts",
)

EQUIPMENT_ACCESS = (
    "Full gym access",
    "Home gym setup",
    "Basic weights/dumbbells",
    "Resistance bands",
    "Yoga mat",
    "No equipment (bodyweight only)",
)


QUESTIONS: Tuple[QuestionStep, ...] = (
    QuestionStep(
        title="What are your primary fitness goals?",
        subtitle="Select your main objective",
        kind=InputKind.SINGLE_CHOICE,
        field="fitness_goals",
        options=FITNESS_GOALS,
    ),
    QuestionStep(
        title="What's your current activity level?",
        subtitle="Be honest about your current fitness",
        kind=InputKind.SINGLE_CHOICE,
        field="current_activity",
        options=ACTIVITY_LEVELS,
    ),
    QuestionStep(
        title="How often do you currently exercise?",
        subtitle="Include all types of physical activity",
        kind=InputKind.SINGLE_CHOICE,
        field="exercise_frequency",
        options=EXERCISE_FREQUENCIES,
    ),
    QuestionStep(
        title="How long are your typical workouts?",
        subtitle="Average duration per session",
        kind=InputKind.SINGLE_CHOICE,
        field="workout_duration",
        options=WORKOUT_DURATIONS,
    ),
    QuestionStep(
        title="What's your dietary preference?",
        subtitle="This helps us tailor nutrition advice",
        kind=InputKind.SINGLE_CHOICE,
        field="diet_type",
        options=DIET_TYPES,
    ),
    QuestionStep(
        title="Do you have any food allergies?",
        subtitle="Select all that apply",
        kind=InputKind.MULTI_CHOICE,
        field="allergies",
        options=ALLERGIES,
    ),
    QuestionStep(
        title="Any medical conditions we should know about?",
        subtitle="This helps us provide safer recommendations",
        kind=InputKind.FREE_TEXT,
        field="medical_conditions",
        placeholder="Diabetes, heart conditions, blood pressure issues, etc. (optional)",
    ),
    QuestionStep(
        title="Do you have any injuries or physical limitations?",
        subtitle="Past or current injuries that affect movement",
        kind=InputKind.FREE_TEXT,
        field="injuries",
        placeholder="Knee problems, back pain, shoulder issues, etc. (optional)",
    ),
    QuestionStep(
        title="What type of workouts do you prefer?",
        subtitle="Choose your favorite style",
        kind=InputKind.SINGLE_CHOICE,
        field="workout_preference",
        options=WORKOUT_PREFERENCES,
    ),
    QuestionStep(
        title="What equipment do you have access to?",
        subtitle="Select all available options",
        kind=InputKind.MULTI_CHOICE,
        field="equipment_access",
        options=EQUIPMENT_ACCESS,
    ),
)
