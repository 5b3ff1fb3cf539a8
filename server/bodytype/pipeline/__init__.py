"""
Pipeline Module
===============

Assessment pipeline orchestration and session registry.
"""

from .orchestrator import AssessmentOrchestrator, PipelineState
from .sessions import AssessmentSessions

__all__ = ["AssessmentOrchestrator", "PipelineState", "AssessmentSessions"]
