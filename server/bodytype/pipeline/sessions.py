"""
Assessment Sessions Module
==========================

Thread-safe registry of per-session assessment orchestrators.

Sessions idle for longer than the configured timeout are evicted, and the
registry never holds more than the configured number of sessions. A session
whose assessment is still analyzing is never evicted.
"""

import threading
import time
import uuid
from typing import Callable, Dict, List, Optional, Tuple

from loguru import logger

from config import (
    Credentials,
    SessionConfig,
    get_classifier_config,
    get_credentials,
    get_generation_config,
    get_image_config,
    get_session_config,
)

from .orchestrator import AssessmentOrchestrator, PipelineState

OrchestratorFactory = Callable[[], AssessmentOrchestrator]


class AssessmentSessions:
    """
    Thread-safe registry of assessment sessions.

    Each session owns one orchestrator. Sessions created without credentials
    fall back to the credentials saved in the environment, if any.

    Usage:
        sessions = AssessmentSessions.from_environment()
        session_id, orchestrator = sessions.create()
        orchestrator = sessions.get(session_id)
    """

    def __init__(self, orchestrator_factory: OrchestratorFactory,
                 saved_credentials: Optional[Credentials] = None,
                 config: Optional[SessionConfig] = None,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize the registry.

        Args:
            orchestrator_factory: Builds a fresh, unconfigured orchestrator
            saved_credentials: Credentials recovered from prior storage
            config: Idle timeout and size limits
            clock: Monotonic time source in seconds
        """
        self._factory = orchestrator_factory
        self._saved_credentials = saved_credentials
        self.config = config or SessionConfig()
        self._clock = clock
        self._sessions: Dict[str, AssessmentOrchestrator] = {}
        self._last_used: Dict[str, float] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_environment(cls) -> "AssessmentSessions":
        """Build a registry from the environment configuration, read once."""
        classifier_config = get_classifier_config()
        generation_config = get_generation_config()
        image_config = get_image_config()
        return cls(
            lambda: AssessmentOrchestrator.from_config(
                classifier_config, generation_config, image_config
            ),
            saved_credentials=get_credentials(),
            config=get_session_config(),
        )

    def resolve_credentials(self, supplied: Optional[Credentials]) -> Optional[Credentials]:
        """Prefer supplied credentials; otherwise use the saved ones."""
        if supplied is not None and supplied.is_complete:
            return supplied
        if self._saved_credentials is not None and self._saved_credentials.is_complete:
            return self._saved_credentials
        return None

    def create(self, credentials: Optional[Credentials] = None) -> Tuple[str, AssessmentOrchestrator]:
        """
        Create a session, configuring it when credentials are available.

        Expired sessions are evicted first; when the registry is full the
        least recently used idle session makes room.

        Returns:
            Session id and its orchestrator
        """
        orchestrator = self._factory()
        resolved = self.resolve_credentials(credentials)
        if resolved is not None:
            orchestrator.configure(resolved)

        session_id = uuid.uuid4().hex
        with self._lock:
            evicted = self._evict_expired()
            evicted += self._evict_for_capacity()
            self._sessions[session_id] = orchestrator
            self._last_used[session_id] = self._clock()
        for stale_id in evicted:
            logger.info("Session {} evicted", stale_id)
        logger.info("Session {} created ({})", session_id, orchestrator.state.value)
        return session_id, orchestrator

    def get(self, session_id: str) -> Optional[AssessmentOrchestrator]:
        """Look up a session and mark it as used."""
        with self._lock:
            orchestrator = self._sessions.get(session_id)
            if orchestrator is None:
                return None
            if self._is_expired(session_id, orchestrator):
                self._drop(session_id)
                logger.info("Session {} expired", session_id)
                return None
            self._last_used[session_id] = self._clock()
            return orchestrator

    def remove(self, session_id: str) -> bool:
        """Drop a session, abandoning any run in flight."""
        with self._lock:
            orchestrator = self._drop(session_id)
        if orchestrator is None:
            return False
        orchestrator.abandon()
        logger.info("Session {} removed", session_id)
        return True

    def prune(self) -> int:
        """Evict expired sessions now; returns how many were dropped."""
        with self._lock:
            evicted = self._evict_expired()
        for stale_id in evicted:
            logger.info("Session {} evicted", stale_id)
        return len(evicted)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    # Callers hold the lock for the helpers below.

    def _drop(self, session_id: str) -> Optional[AssessmentOrchestrator]:
        self._last_used.pop(session_id, None)
        return self._sessions.pop(session_id, None)

    @staticmethod
    def _is_busy(orchestrator: AssessmentOrchestrator) -> bool:
        return orchestrator.state is PipelineState.ANALYZING

    def _is_expired(self, session_id: str, orchestrator: AssessmentOrchestrator) -> bool:
        timeout = self.config.idle_timeout
        if not timeout or self._is_busy(orchestrator):
            return False
        return self._clock() - self._last_used[session_id] > timeout

    def _evict_expired(self) -> List[str]:
        expired = [
            session_id for session_id, orchestrator in self._sessions.items()
            if self._is_expired(session_id, orchestrator)
        ]
        for session_id in expired:
            self._drop(session_id)
        return expired

    def _evict_for_capacity(self) -> List[str]:
        limit = self.config.max_sessions
        if not limit:
            return []
        evicted = []
        idle = sorted(
            (session_id for session_id, orchestrator in self._sessions.items()
             if not self._is_busy(orchestrator)),
            key=self._last_used.__getitem__,
        )
        while len(self._sessions) >= limit and idle:
            session_id = idle.pop(0)
            self._drop(session_id)
            evicted.append(session_id)
        return evicted
