"""
Assessment Errors
=================

Exception taxonomy for the assessment pipeline.

Every failure carries a machine-readable ``code`` and a short ``hint`` so the
caller can tell "check your credentials" apart from "try again".
"""

from typing import Optional


class AssessmentError(Exception):
    """Base class for all assessment pipeline failures."""

    code = "assessment_error"
    hint = "Please try again."

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, "hint": self.hint}


class ConfigurationMissing(AssessmentError):
    """The mandatory Gemini credential was not supplied."""

    code = "configuration_missing"
    hint = "Check your API credentials."


class ImageReadError(AssessmentError):
    """The uploaded image could not be read or encoded."""

    code = "image_read_error"
    hint = "Upload a different photo."


class ClassificationError(AssessmentError):
    """The body type classifier failed or returned an unusable result."""

    code = "classification_error"
    hint = "Try submitting the photo again."


class ClassificationTimeout(ClassificationError):
    """The body type classifier did not answer within its time bound."""

    code = "classification_timeout"


class GenerationError(AssessmentError):
    """Base class for recommendation generation failures."""

    code = "generation_error"


class GenerationHttpError(GenerationError):
    """The generation endpoint rejected the request."""

    code = "generation_http_error"
    hint = "Check your Gemini API key or try again later."

    def __init__(self, message: str, status_code: Optional[int] = None, reason: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class GenerationParseError(GenerationError):
    """The generation endpoint answered but without the expected candidate text."""

    code = "generation_parse_error"


class GenerationTimeout(GenerationError):
    """The generation endpoint did not answer within its time bound."""

    code = "generation_timeout"


class InvalidTransition(AssessmentError):
    """An operation was requested in a pipeline state that does not allow it."""

    code = "invalid_transition"
    hint = "Refresh the assessment state and retry the current step."


class RunAbandoned(AssessmentError):
    """The pipeline run was abandoned; its results were discarded."""

    code = "run_abandoned"
    hint = "Submit the photo again to start a new analysis."
