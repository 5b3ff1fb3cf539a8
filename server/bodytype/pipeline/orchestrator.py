"""
Pipeline Orchestrator Module
============================

Sequences configuration, questionnaire, image intake, classification and
plan generation for one assessment.

States:
    AWAITING_CONFIGURATION -> AWAITING_QUESTIONNAIRE -> AWAITING_IMAGE
    -> ANALYZING -> COMPLETE | FAILED

FAILED is recoverable: a new image may be submitted straight away.

Usage:
    orchestrator = AssessmentOrchestrator.from_config()
    orchestrator.configure(get_credentials())
    orchestrator.submit_questionnaire(record)
    result = await orchestrator.submit_image("photo.jpg")
"""

import asyncio
import threading
import uuid
from enum import Enum
from functools import partial
from typing import Callable, Optional

from loguru import logger

from config import ClassifierConfig, Credentials, GenerationConfig, ImageConfig, get_credentials

from ..analyzers import BodyTypeClassifier, create_classifier
from ..errors import (
    AssessmentError,
    ClassificationError,
    ClassificationTimeout,
    ConfigurationMissing,
    GenerationError,
    GenerationTimeout,
    InvalidTransition,
    RunAbandoned,
)
from ..models import AssessmentResult, ClassificationResult, QuestionnaireRecord
from ..questionnaire import QuestionnaireEngine
from ..services import RecommendationGenerator
from ..utils import ImageIntake

ClassifierFactory = Callable[[Credentials], BodyTypeClassifier]
GeneratorFactory = Callable[[Credentials], RecommendationGenerator]


class PipelineState(str, Enum):
    """Assessment pipeline states."""

    AWAITING_CONFIGURATION = "awaiting_configuration"
    AWAITING_QUESTIONNAIRE = "awaiting_questionnaire"
    AWAITING_IMAGE = "awaiting_image"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    FAILED = "failed"


class AssessmentOrchestrator:
    """
    State machine for a single user's assessment.

    State changes are guarded by a lock so request threads can inspect or
    abandon a run while it is being awaited elsewhere. The lock is never held
    across an await.

    Attributes:
        questionnaire (QuestionnaireEngine): Questionnaire for this assessment
        classification_timeout (float): Seconds allowed for classification
        generation_timeout (float): Seconds allowed for plan generation
    """

    def __init__(
        self,
        classifier_factory: ClassifierFactory,
        generator_factory: GeneratorFactory,
        image_intake: Optional[ImageIntake] = None,
        classification_timeout: float = 30.0,
        generation_timeout: float = 60.0,
        questionnaire: Optional[QuestionnaireEngine] = None,
    ):
        self._classifier_factory = classifier_factory
        self._generator_factory = generator_factory
        self.image_intake = image_intake or ImageIntake()
        self.classification_timeout = classification_timeout
        self.generation_timeout = generation_timeout
        self.questionnaire = questionnaire or QuestionnaireEngine()

        self._lock = threading.Lock()
        self._state = PipelineState.AWAITING_CONFIGURATION
        self._credentials: Optional[Credentials] = None
        self._classifier: Optional[BodyTypeClassifier] = None
        self._generator: Optional[RecommendationGenerator] = None
        self._record: Optional[QuestionnaireRecord] = None
        self._result: Optional[AssessmentResult] = None
        self._last_error: Optional[Exception] = None
        self._run_id: Optional[str] = None
        self._task: Optional[asyncio.Future] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @classmethod
    def from_config(
        cls,
        classifier_config: Optional[ClassifierConfig] = None,
        generation_config: Optional[GenerationConfig] = None,
        image_config: Optional[ImageConfig] = None,
    ) -> "AssessmentOrchestrator":
        """Build an orchestrator wired to the configured classifier and Gemini client."""
        classifier_config = classifier_config or ClassifierConfig()
        generation_config = generation_config or GenerationConfig()
        return cls(
            classifier_factory=partial(_classifier_for, config=classifier_config),
            generator_factory=partial(_generator_for, config=generation_config),
            image_intake=ImageIntake(image_config),
            classification_timeout=classifier_config.timeout,
            generation_timeout=generation_config.timeout,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def record(self) -> Optional[QuestionnaireRecord]:
        return self._record

    @property
    def result(self) -> Optional[AssessmentResult]:
        return self._result

    @property
    def last_error(self) -> Optional[Exception]:
        return self._last_error

    @property
    def run_id(self) -> Optional[str]:
        return self._run_id

    @property
    def is_configured(self) -> bool:
        return self._credentials is not None

    def _set_state(self, state: PipelineState) -> None:
        if state is not self._state:
            logger.debug("Pipeline state {} -> {}", self._state.value, state.value)
        self._state = state

    def _require(self, *states: PipelineState) -> None:
        if self._state not in states:
            allowed = ", ".join(state.value for state in states)
            raise InvalidTransition(
                f"Operation not allowed in state {self._state.value} (expected {allowed})"
            )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def configure(self, credentials: Optional[Credentials]) -> PipelineState:
        """
        Supply the session credentials.

        Args:
            credentials: Mandatory Gemini key and optional OpenAI key

        Raises:
            ConfigurationMissing: If the Gemini key is absent
        """
        if credentials is None or not credentials.is_complete:
            raise ConfigurationMissing("A Gemini API key is required to continue")
        with self._lock:
            self._require(PipelineState.AWAITING_CONFIGURATION)
            self._classifier = self._classifier_factory(credentials)
            self._generator = self._generator_factory(credentials)
            self._credentials = credentials
            self._set_state(PipelineState.AWAITING_QUESTIONNAIRE)
            return self._state

    def configure_from_environment(self) -> PipelineState:
        """Configure with credentials saved in the environment or ``.env``."""
        return self.configure(get_credentials())

    # ------------------------------------------------------------------
    # Questionnaire
    # ------------------------------------------------------------------

    def answer(self, field: str, value) -> None:
        with self._lock:
            self._require(PipelineState.AWAITING_QUESTIONNAIRE)
            self.questionnaire.set_answer(field, value)

    def toggle(self, field: str, option: str, selected: Optional[bool] = None) -> list:
        with self._lock:
            self._require(PipelineState.AWAITING_QUESTIONNAIRE)
            return self.questionnaire.toggle_option(field, option, selected)

    def advance_questionnaire(self) -> Optional[QuestionnaireRecord]:
        """Advance the questionnaire; a completed record moves on to the image step."""
        with self._lock:
            self._require(PipelineState.AWAITING_QUESTIONNAIRE)
            record = self.questionnaire.advance()
            if record is not None:
                self._accept_record(record)
            return record

    def retreat_questionnaire(self) -> bool:
        with self._lock:
            self._require(PipelineState.AWAITING_QUESTIONNAIRE)
            return self.questionnaire.retreat()

    def submit_questionnaire(self, record: QuestionnaireRecord) -> None:
        """
        Accept a whole questionnaire record at once.

        Raises:
            ValueError: If any field fails its step's completion rule
        """
        with self._lock:
            self._require(PipelineState.AWAITING_QUESTIONNAIRE)
            invalid = self.questionnaire.validate_record(record)
            if invalid:
                raise ValueError(f"Incomplete questionnaire fields: {', '.join(invalid)}")
            self._accept_record(record)

    def _accept_record(self, record: QuestionnaireRecord) -> None:
        self._record = record
        self._set_state(PipelineState.AWAITING_IMAGE)
        logger.info("Questionnaire complete (goal: {})", record.fitness_goals)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def submit_image(self, image) -> AssessmentResult:
        """
        Analyze one photo and generate the personalized plan.

        Args:
            image: Path, bytes or file-like upload

        Returns:
            AssessmentResult of this run

        Raises:
            ImageReadError, ClassificationError, ClassificationTimeout,
            GenerationHttpError, GenerationParseError, GenerationTimeout:
                The failing stage's error; the pipeline is left in FAILED
            RunAbandoned: If the run was abandoned before it finished
            InvalidTransition: If no image is expected in the current state
        """
        with self._lock:
            self._require(PipelineState.AWAITING_IMAGE, PipelineState.FAILED)
            run_id = uuid.uuid4().hex
            self._run_id = run_id
            self._result = None
            self._last_error = None
            self._set_state(PipelineState.ANALYZING)
            self._loop = asyncio.get_running_loop()
            self._task = asyncio.ensure_future(
                self._run_stages(run_id, image, self._record, self._classifier, self._generator)
            )
            task = self._task

        logger.info("Run {} started", run_id)
        try:
            result = await task
        except asyncio.CancelledError:
            with self._lock:
                if self._run_id != run_id:
                    raise RunAbandoned(f"Run {run_id} was abandoned") from None
                self._clear_run()
                self._set_state(PipelineState.AWAITING_IMAGE)
            raise
        except Exception as exc:
            with self._lock:
                if self._run_id != run_id:
                    raise RunAbandoned(f"Run {run_id} was abandoned") from exc
                self._clear_run()
                self._last_error = exc
                self._set_state(PipelineState.FAILED)
            logger.warning("Run {} failed: {}: {}", run_id, type(exc).__name__, exc)
            raise

        with self._lock:
            if self._run_id != run_id:
                raise RunAbandoned(f"Run {run_id} was abandoned")
            self._clear_run()
            self._result = result
            self._set_state(PipelineState.COMPLETE)
        logger.info("Run {} complete: {} ({}%)", run_id, result.body_type.value, result.confidence)
        return result

    def _clear_run(self) -> None:
        self._task = None
        self._loop = None

    def _check_current(self, run_id: str) -> None:
        if self._run_id != run_id:
            raise RunAbandoned(f"Run {run_id} was abandoned")

    async def _run_stages(self, run_id: str, image, record: QuestionnaireRecord,
                          classifier: BodyTypeClassifier,
                          generator: RecommendationGenerator) -> AssessmentResult:
        encoded = await self.image_intake.encode(image)
        self._check_current(run_id)
        logger.debug("Run {}: image encoded ({} bytes)", run_id, encoded.size_bytes)

        classification = await self._classify(classifier, encoded)
        self._check_current(run_id)
        logger.debug("Run {}: classified as {}", run_id, classification.body_type.value)

        plan = await self._generate(generator, classification, record)
        return AssessmentResult(classification=classification, personalized_plan=plan)

    async def _classify(self, classifier: BodyTypeClassifier, encoded) -> ClassificationResult:
        try:
            result = await asyncio.wait_for(classifier.classify(encoded), self.classification_timeout)
        except asyncio.TimeoutError as exc:
            raise ClassificationTimeout(
                f"Classification did not finish within {self.classification_timeout}s"
            ) from exc
        except ClassificationError:
            raise
        except Exception as exc:
            raise ClassificationError(f"Classification failed: {exc}") from exc

        if not isinstance(result, ClassificationResult):
            raise ClassificationError(f"Classifier returned {type(result).__name__}")
        return result

    async def _generate(self, generator: RecommendationGenerator,
                        classification: ClassificationResult,
                        record: QuestionnaireRecord) -> str:
        try:
            return await asyncio.wait_for(
                generator.generate(classification, record), self.generation_timeout
            )
        except asyncio.TimeoutError as exc:
            raise GenerationTimeout(
                f"Plan generation did not finish within {self.generation_timeout}s"
            ) from exc
        except AssessmentError:
            raise
        except Exception as exc:
            raise GenerationError(f"Plan generation failed: {exc}") from exc

    def abandon(self) -> bool:
        """
        Abandon the in-flight run without waiting for it.

        Returns:
            True if a run was abandoned
        """
        with self._lock:
            if self._state is not PipelineState.ANALYZING:
                return False
            task, loop, run_id = self._task, self._loop, self._run_id
            self._run_id = None
            self._clear_run()
            self._set_state(PipelineState.AWAITING_IMAGE)

        if task is not None and not task.done() and loop is not None and not loop.is_closed():
            loop.call_soon_threadsafe(task.cancel)
        logger.info("Run {} abandoned", run_id)
        return True

    def recover(self) -> PipelineState:
        """Return from FAILED to AWAITING_IMAGE so a new photo can be sent."""
        with self._lock:
            self._require(PipelineState.FAILED)
            self._set_state(PipelineState.AWAITING_IMAGE)
            return self._state

    def restart(self) -> PipelineState:
        """Start a new assessment with the same credentials."""
        with self._lock:
            if self._state is PipelineState.ANALYZING:
                raise InvalidTransition("Abandon the running analysis before restarting")
            self.questionnaire.reset()
            self._record = None
            self._result = None
            self._last_error = None
            self._run_id = None
            self._set_state(
                PipelineState.AWAITING_QUESTIONNAIRE if self.is_configured
                else PipelineState.AWAITING_CONFIGURATION
            )
            return self._state

    def snapshot(self) -> dict:
        """Serializable view of the pipeline; never includes credentials."""
        with self._lock:
            data = {
                "state": self._state.value,
                "runId": self._run_id,
                "questionnaire": self.questionnaire.snapshot(),
                "record": self._record.to_dict() if self._record else None,
                "result": self._result.to_dict() if self._result else None,
                "error": None,
            }
            if self._last_error is not None:
                error = self._last_error
                data["error"] = (error.to_dict() if isinstance(error, AssessmentError)
                                 else {"error": "internal_error", "message": str(error)})
            return data


def _classifier_for(credentials: Credentials, config: ClassifierConfig) -> BodyTypeClassifier:
    return create_classifier(credentials, config)


def _generator_for(credentials: Credentials, config: GenerationConfig) -> RecommendationGenerator:
    return RecommendationGenerator(credentials, config)
