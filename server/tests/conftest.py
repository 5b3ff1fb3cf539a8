"""
Shared test fixtures.
"""

import json
import os
import sys

import cv2
import httpx
import numpy as np
import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from bodytype.analyzers import BodyTypeClassifier
from bodytype.models import ClassificationResult, QuestionnaireRecord
from bodytype.pipeline import AssessmentOrchestrator
from bodytype.services import RecommendationGenerator
from bodytype.utils import ImageIntake
from config import Credentials, GenerationConfig, ImageConfig

MESOMORPH_BREAKDOWN = {"endomorph": 25.2, "ectomorph": 32.1, "mesomorph": 87.3}


class FixedClassifier(BodyTypeClassifier):
    """Classifier stub returning one preset result and recording its inputs."""

    def __init__(self, result=None, error=None):
        self.result = result or ClassificationResult.for_body_type(
            "Mesomorph", 87.3, MESOMORPH_BREAKDOWN
        )
        self.error = error
        self.calls = []

    async def classify(self, image):
        self.calls.append(image)
        if self.error is not None:
            raise self.error
        return self.result


class GeminiStub:
    """
    Mock transport for the Gemini endpoint.

    Each queued response is (status, body); the last one is reused when the
    queue runs dry. Sent requests are kept for inspection.
    """

    def __init__(self, *responses):
        self.responses = list(responses) or [(200, gemini_body("PLAN_TEXT"))]
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, content=body or b"")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def prompts(self):
        return [json.loads(request.content)["contents"][0]["parts"][0]["text"]
                for request in self.requests]


def gemini_body(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def encode_test_image(extension: str = ".png") -> bytes:
    """Small black image encoded with OpenCV."""
    frame = np.zeros((32, 32, 3), dtype=np.uint8)
    ok, buffer = cv2.imencode(extension, frame)
    assert ok
    return buffer.tobytes()


@pytest.fixture
def credentials():
    return Credentials(gemini_api_key="test-gemini-key", openai_api_key="")


@pytest.fixture
def image_bytes():
    return encode_test_image()


@pytest.fixture
def image_file(tmp_path, image_bytes):
    path = tmp_path / "photo.png"
    path.write_bytes(image_bytes)
    return path


@pytest.fixture
def record():
    return QuestionnaireRecord(
        fitness_goals="Weight Loss",
        current_activity="Lightly active (light exercise 1-3 days/week)",
        exercise_frequency="1-2 times per week",
        workout_duration="30-45 minutes",
        diet_type="Vegan",
        allergies=("Nuts",),
        workout_preference="Mixed/varied workouts",
        equipment_access=("Home gym setup",),
    )


@pytest.fixture
def classification():
    return ClassificationResult.for_body_type("Mesomorph", 87.3, MESOMORPH_BREAKDOWN)


@pytest.fixture
def gemini():
    return GeminiStub()


@pytest.fixture
def classifier():
    return FixedClassifier()


@pytest.fixture
def make_orchestrator(gemini, classifier):
    """Factory for orchestrators wired to the classifier and Gemini stubs."""

    def _make(classifier_stub=None, gemini_stub=None, **kwargs):
        gemini_stub = gemini_stub or gemini
        classifier_stub = classifier_stub or classifier
        return AssessmentOrchestrator(
            classifier_factory=lambda creds: classifier_stub,
            generator_factory=lambda creds: RecommendationGenerator(
                creds, GenerationConfig(), transport=gemini_stub.transport
            ),
            image_intake=ImageIntake(ImageConfig()),
            **kwargs,
        )

    return _make
