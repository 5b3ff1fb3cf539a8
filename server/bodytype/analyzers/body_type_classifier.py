"""
Body Type Classifier Module
===========================

Pluggable body type classification from an encoded photo.

Classes:
    BodyTypeClassifier: Interface implemented by every classifier
    ProfileSampleClassifier: Demo stand-in that samples a precomputed profile
    RemoteBodyTypeClassifier: Client for an external vision model endpoint

Usage:
    classifier = create_classifier(credentials, get_classifier_config())
    result = await classifier.classify(encoded_image)
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

import httpx
import numpy as np
from loguru import logger

from config import ClassifierConfig, Credentials

from ..errors import ClassificationError, ClassificationTimeout
from ..models import BREAKDOWN_KEYS, BodyType, ClassificationResult, EncodedImage


class BodyTypeClassifier(ABC):
    """Classifies an encoded photo into one of the three archetypes."""

    @abstractmethod
    async def classify(self, image: EncodedImage) -> ClassificationResult:
        """
        Classify a photo.

        Args:
            image: Encoded photo

        Returns:
            ClassificationResult with a label from the fixed archetype set

        Raises:
            ClassificationError: On any transport or model failure
            ClassificationTimeout: If the model does not answer in time
        """


class ProfileSampleClassifier(BodyTypeClassifier):
    """
    Demo classifier that ignores the photo.

    Picks one of three precomputed profiles uniformly at random after a
    simulated processing delay. Pass a seed for repeatable picks.
    """

    PROFILES = (
        (BodyType.MESOMORPH, 87.3, {"endomorph": 25.2, "ectomorph": 32.1, "mesomorph": 87.3}),
        (BodyType.ECTOMORPH, 82.1, {"endomorph": 20.5, "ectomorph": 82.1, "mesomorph": 35.4}),
        (BodyType.ENDOMORPH, 79.6, {"endomorph": 79.6, "ectomorph": 28.3, "mesomorph": 42.1}),
    )

    def __init__(self, config: Optional[ClassifierConfig] = None,
                 rng: Optional[np.random.Generator] = None):
        self.config = config or ClassifierConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)

    async def classify(self, image: EncodedImage) -> ClassificationResult:
        if self.config.simulated_latency > 0:
            await asyncio.sleep(self.config.simulated_latency)
        body_type, confidence, breakdown = self.PROFILES[int(self.rng.integers(len(self.PROFILES)))]
        return ClassificationResult.for_body_type(body_type, confidence, breakdown)


class RemoteBodyTypeClassifier(BodyTypeClassifier):
    """
    Client for an external vision model.

    Request JSON:
        {"image": "<data uri>"}

    Response JSON:
        {"label": "Mesomorph", "confidence": 87.3,
         "breakdown": {"endomorph": 25.2, "ectomorph": 32.1, "mesomorph": 87.3}}
    """

    def __init__(self, config: ClassifierConfig, credentials: Optional[Credentials] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        if not config.endpoint:
            raise ValueError("RemoteBodyTypeClassifier needs an endpoint")
        self.config = config
        self._api_key = credentials.openai_api_key if credentials else ""
        self._transport = transport

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def classify(self, image: EncodedImage) -> ClassificationResult:
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout,
                                         transport=self._transport) as client:
                response = await client.post(
                    self.config.endpoint, json={"image": image.data_uri}, headers=self._headers()
                )
        except httpx.TimeoutException as exc:
            raise ClassificationTimeout(
                f"Classifier did not respond within {self.config.timeout}s"
            ) from exc
        except httpx.RequestError as exc:
            raise ClassificationError(f"Classifier request failed: {exc}") from exc

        if not response.is_success:
            raise ClassificationError(
                f"Classifier error: {response.status_code} {response.reason_phrase}"
            )
        return self._parse(response)

    @staticmethod
    def _parse(response: httpx.Response) -> ClassificationResult:
        try:
            data = response.json()
            breakdown = data["breakdown"]
            return ClassificationResult.for_body_type(
                data["label"],
                data["confidence"],
                {key: breakdown[key] for key in BREAKDOWN_KEYS},
            )
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Classifier returned an unexpected payload: {}", exc)
            raise ClassificationError(f"Unexpected classifier response: {exc}") from exc


def create_classifier(credentials: Credentials,
                      config: Optional[ClassifierConfig] = None) -> BodyTypeClassifier:
    """
    Build the classifier for a session.

    Args:
        credentials: Session credentials
        config: Classifier settings; a remote classifier is used when an
            endpoint is configured

    Returns:
        Classifier instance
    """
    config = config or ClassifierConfig()
    if config.endpoint:
        return RemoteBodyTypeClassifier(config, credentials)
    return ProfileSampleClassifier(config)
