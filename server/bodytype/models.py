"""
Assessment Models
=================

Data types shared across the assessment pipeline.

Classes:
    BodyType: The three fixed archetypes
    QuestionnaireRecord: Completed questionnaire answers
    ClassificationResult: Body type label, confidence and score breakdown
    EncodedImage: Transport-safe image encoding
    AssessmentResult: Classification plus personalized plan
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple


class BodyType(str, Enum):
    """Body type archetypes."""

    ENDOMORPH = "Endomorph"
    ECTOMORPH = "Ectomorph"
    MESOMORPH = "Mesomorph"

    @property
    def key(self) -> str:
        """Breakdown key for this archetype."""
        return self.value.lower()

    @classmethod
    def from_label(cls, label: str) -> "BodyType":
        """Resolve a label case-insensitively."""
        if isinstance(label, cls):
            return label
        for member in cls:
            if member.value.lower() == str(label).strip().lower():
                return member
        raise ValueError(f"Unknown body type: {label!r}")


# Canonical breakdown key order
BREAKDOWN_KEYS: Tuple[str, ...] = tuple(member.key for member in BodyType)

BASE_RECOMMENDATIONS: Dict[BodyType, Tuple[str, ...]] = {
    BodyType.MESOMORPH: (
        "Focus on strength training with moderate cardio",
        "Aim for balanced macronutrients (40% carbs, 30% protein, 30% fat)",
        "Train 4-5 times per week with varied intensity",
        "Include compound movements like squats, deadlifts, and bench press",
    ),
    BodyType.ECTOMORPH: (
        "Prioritize strength training over cardio",
        "Eat in a caloric surplus with higher carbohydrate intake",
        "Focus on compound movements and progressive overload",
        "Allow adequate rest between training sessions",
    ),
    BodyType.ENDOMORPH: (
        "Combine strength training with regular cardio",
        "Follow a moderate caloric deficit with lower carb intake",
        "Include HIIT workouts for fat burning",
        "Focus on portion control and meal timing",
    ),
}

BODY_TYPE_DESCRIPTIONS: Dict[BodyType, str] = {
    BodyType.MESOMORPH: (
        "Athletic build with well-defined muscles and low body fat. "
        "Naturally muscular and responds well to strength training."
    ),
    BodyType.ECTOMORPH: (
        "Lean and long build with difficulty gaining weight. "
        "Fast metabolism and naturally thin frame."
    ),
    BodyType.ENDOMORPH: (
        "Larger bone structure with higher body fat percentage. "
        "Tends to gain weight easily and has a slower metabolism."
    ),
}


def _check_score(name: str, value: float) -> float:
    value = float(value)
    if not 0.0 <= value <= 100.0:
        raise ValueError(f"{name} must be within [0, 100], got {value}")
    return value


@dataclass(frozen=True)
class ClassificationResult:
    """
    Outcome of the body type classification step.

    Breakdown scores are independent per-archetype affinities and are not
    required to sum to 100.

    Attributes:
        body_type: Primary archetype
        confidence: Confidence in the primary archetype (0-100)
        breakdown: Score per archetype key (0-100 each)
        recommendations: Base tips for the archetype
    """

    body_type: BodyType
    confidence: float
    breakdown: Mapping[str, float]
    recommendations: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "body_type", BodyType.from_label(self.body_type))
        object.__setattr__(self, "confidence", _check_score("confidence", self.confidence))
        missing = [key for key in BREAKDOWN_KEYS if key not in self.breakdown]
        if missing:
            raise ValueError(f"Breakdown is missing archetypes: {', '.join(missing)}")
        breakdown = {key: _check_score(key, self.breakdown[key]) for key in BREAKDOWN_KEYS}
        object.__setattr__(self, "breakdown", breakdown)
        object.__setattr__(self, "recommendations", tuple(self.recommendations))

    @classmethod
    def for_body_type(
        cls, body_type, confidence: float, breakdown: Mapping[str, float]
    ) -> "ClassificationResult":
        """Build a result with the archetype's base recommendations attached."""
        body_type = BodyType.from_label(body_type)
        return cls(body_type, confidence, breakdown, BASE_RECOMMENDATIONS[body_type])

    @property
    def description(self) -> str:
        return BODY_TYPE_DESCRIPTIONS[self.body_type]

    def to_dict(self) -> dict:
        return {
            "bodyType": self.body_type.value,
            "confidence": self.confidence,
            "breakdown": dict(self.breakdown),
            "recommendations": list(self.recommendations),
            "description": self.description,
        }


# Record attribute -> wire name
WIRE_NAMES: Dict[str, str] = {
    "fitness_goals": "fitnessGoals",
    "current_activity": "currentActivity",
    "exercise_frequency": "exerciseFrequency",
    "workout_duration": "workoutDuration",
    "diet_type": "dietType",
    "allergies": "allergies",
    "medical_conditions": "medicalConditions",
    "injuries": "injuries",
    "workout_preference": "workoutPreference",
    "equipment_access": "equipmentAccess",
}


def resolve_field_name(name: str) -> str:
    """Map a wire name or attribute name to the record attribute name."""
    if name in WIRE_NAMES:
        return name
    for attribute, wire_name in WIRE_NAMES.items():
        if wire_name == name:
            return attribute
    raise KeyError(f"Unknown questionnaire field: {name!r}")


@dataclass(frozen=True)
class QuestionnaireRecord:
    """Completed questionnaire answers."""

    fitness_goals: str
    current_activity: str
    exercise_frequency: str
    workout_duration: str
    diet_type: str
    allergies: Tuple[str, ...]
    workout_preference: str
    equipment_access: Tuple[str, ...]
    medical_conditions: str = ""
    injuries: str = ""

    def __post_init__(self):
        object.__setattr__(self, "allergies", tuple(self.allergies))
        object.__setattr__(self, "equipment_access", tuple(self.equipment_access))

    @classmethod
    def from_dict(cls, data: Mapping) -> "QuestionnaireRecord":
        """Build a record from wire or attribute names; unknown keys raise KeyError."""
        values = {}
        for name, value in data.items():
            values[resolve_field_name(name)] = value
        for list_field in ("allergies", "equipment_access"):
            if isinstance(values.get(list_field), str):
                values[list_field] = (values[list_field],)
        try:
            return cls(**values)
        except TypeError as exc:
            raise ValueError(f"Incomplete questionnaire record: {exc}") from exc

    def to_dict(self) -> dict:
        data = {}
        for item in fields(self):
            value = getattr(self, item.name)
            data[WIRE_NAMES[item.name]] = list(value) if isinstance(value, tuple) else value
        return data


@dataclass(frozen=True)
class EncodedImage:
    """An image encoded as a base64 data URI."""

    data_uri: str
    mime_type: str
    size_bytes: int
    filename: Optional[str] = field(default=None, compare=False)

    @property
    def base64_data(self) -> str:
        return self.data_uri.split(",", 1)[1]

    def __repr__(self) -> str:
        return (
            f"EncodedImage(mime_type={self.mime_type!r}, size_bytes={self.size_bytes}, "
            f"filename={self.filename!r})"
        )


@dataclass(frozen=True)
class AssessmentResult:
    """Terminal artifact of a pipeline run."""

    classification: ClassificationResult
    personalized_plan: str

    @property
    def body_type(self) -> BodyType:
        return self.classification.body_type

    @property
    def confidence(self) -> float:
        return self.classification.confidence

    @property
    def breakdown(self) -> Mapping[str, float]:
        return self.classification.breakdown

    def to_dict(self) -> dict:
        data = self.classification.to_dict()
        data["personalizedPlan"] = self.personalized_plan
        return data
