"""
Recommendation Generator Module
===============================

Builds the personalized plan prompt and sends it to the Gemini
``generateContent`` endpoint.

Request JSON:
    {
        "contents": [{"parts": [{"text": "<prompt>"}]}],
        "generationConfig": {"temperature": ..., "topK": ..., "topP": ..., "maxOutputTokens": ...}
    }

Only ``candidates[0].content.parts[0].text`` of the response is used.
"""

import json
from typing import Optional

import httpx
from loguru import logger

from config import Credentials, GenerationConfig

from ..errors import (
    ConfigurationMissing,
    GenerationHttpError,
    GenerationParseError,
    GenerationTimeout,
)
from ..models import ClassificationResult, QuestionnaireRecord

NONE = "None"
NONE_REPORTED = "None reported"

PROMPT_TEMPLATE = """
Based on the following user information, create a comprehensive, personalized fitness and nutrition plan:

BODY TYPE ANALYSIS:
- Primary body type: {body_type}
- Confidence: {confidence}%
- Breakdown: {breakdown}

USER PROFILE:
- Fitness Goals: {fitness_goals}
- Current Activity Level: {current_activity}
- Exercise Frequency: {exercise_frequency}
- Workout Duration: {workout_duration}
- Diet Preference: {diet_type}
- Allergies: {allergies}
- Medical Conditions: {medical_conditions}
- Injuries/Limitations: {injuries}
- Workout Preference: {workout_preference}
- Equipment Access: {equipment_access}

Please provide:
1. Detailed workout plan (3-4 exercises with sets/reps)
2. Nutrition guidelines specific to their body type and goals
3. Meal timing suggestions
4. Supplement recommendations (if applicable)
5. Progress tracking tips
6. Common pitfalls to avoid

Keep the response practical, actionable, and tailored to their specific body type and goals. Format it clearly with headings and bullet points.
"""


def _number(value: float) -> str:
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


def _joined(values, empty: str) -> str:
    return ", ".join(values) or empty


def _text(value: str, empty: str) -> str:
    return (value or "").strip() or empty


def build_prompt(classification: ClassificationResult, record: QuestionnaireRecord) -> str:
    """
    Build the generation prompt.

    Pure function of its inputs. Every questionnaire field is rendered;
    unanswered optional fields appear as "None" or "None reported".
    """
    breakdown = json.dumps(
        {key: classification.breakdown[key] for key in classification.breakdown},
        separators=(",", ":"),
    )
    return PROMPT_TEMPLATE.format(
        body_type=classification.body_type.value,
        confidence=_number(classification.confidence),
        breakdown=breakdown,
        fitness_goals=_text(record.fitness_goals, NONE),
        current_activity=_text(record.current_activity, NONE),
        exercise_frequency=_text(record.exercise_frequency, NONE),
        workout_duration=_text(record.workout_duration, NONE),
        diet_type=_text(record.diet_type, NONE),
        allergies=_joined(record.allergies, NONE),
        medical_conditions=_text(record.medical_conditions, NONE_REPORTED),
        injuries=_text(record.injuries, NONE_REPORTED),
        workout_preference=_text(record.workout_preference, NONE),
        equipment_access=_joined(record.equipment_access, NONE),
    )


class RecommendationGenerator:
    """
    Gemini client producing the personalized plan text.

    No retries are made; every failure is raised to the caller.
    """

    def __init__(self, credentials: Credentials, config: Optional[GenerationConfig] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        if credentials is None or not credentials.gemini_api_key:
            raise ConfigurationMissing("A Gemini API key is required for plan generation")
        self._api_key = credentials.gemini_api_key
        self.config = config or GenerationConfig()
        self._transport = transport

    def build_payload(self, prompt: str) -> dict:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.config.temperature,
                "topK": self.config.top_k,
                "topP": self.config.top_p,
                "maxOutputTokens": self.config.max_output_tokens,
            },
        }

    async def generate(self, classification: ClassificationResult,
                       record: QuestionnaireRecord) -> str:
        """
        Generate the personalized plan.

        Args:
            classification: Classification of the user's photo
            record: Completed questionnaire

        Returns:
            Plan text from the first candidate

        Raises:
            GenerationHttpError: Non-success status or connection failure
            GenerationParseError: Success status without candidate text
            GenerationTimeout: No answer within the configured timeout
        """
        prompt = build_prompt(classification, record)
        return await self.complete(prompt)

    async def complete(self, prompt: str) -> str:
        """Send a prompt and return the first candidate's text."""
        logger.info("Requesting plan from {} ({} prompt chars)", self.config.model, len(prompt))
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout,
                                         transport=self._transport) as client:
                response = await client.post(
                    self.config.endpoint,
                    params={"key": self._api_key},
                    json=self.build_payload(prompt),
                )
        except httpx.TimeoutException as exc:
            raise GenerationTimeout(
                f"Gemini API did not respond within {self.config.timeout}s"
            ) from exc
        except httpx.RequestError as exc:
            # The request URL carries the key; report only the error type
            raise GenerationHttpError(
                f"Gemini API request failed: {type(exc).__name__}"
            ) from exc

        if not response.is_success:
            raise GenerationHttpError(
                f"Gemini API error: {response.status_code} {response.reason_phrase}"
                f"{self._error_detail(response)}",
                status_code=response.status_code,
                reason=response.reason_phrase,
            )
        return self._extract_text(response)

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            message = response.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            return ""
        return f" ({message})" if message else ""

    @staticmethod
    def _extract_text(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError as exc:
            raise GenerationParseError("Gemini API returned a non-JSON body") from exc

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            block_reason = None
            if isinstance(data, dict) and isinstance(data.get("promptFeedback"), dict):
                block_reason = data["promptFeedback"].get("blockReason")
            if block_reason:
                raise GenerationParseError(
                    f"Gemini API blocked the prompt: {block_reason}"
                ) from exc
            raise GenerationParseError(
                "Gemini API response has no candidates[0].content.parts[0].text"
            ) from exc

        if not isinstance(text, str) or not text.strip():
            raise GenerationParseError("Gemini API returned an empty plan")
        logger.info("Received plan ({} chars)", len(text))
        return text
