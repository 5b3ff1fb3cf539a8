"""
Questionnaire Module
====================

Step descriptors and the questionnaire state machine.
"""

from .engine import QuestionnaireEngine
from .steps import QUESTIONS, InputKind, QuestionStep

__all__ = [
    "QuestionnaireEngine",
    "QuestionStep",
    "InputKind",
    "QUESTIONS",
]
