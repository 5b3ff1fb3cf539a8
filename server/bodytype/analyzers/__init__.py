"""
Body Type Analyzers Module
==========================

Contains body type classification from uploaded photos.
"""

from .body_type_classifier import (
    BodyTypeClassifier,
    ProfileSampleClassifier,
    RemoteBodyTypeClassifier,
    create_classifier,
)

__all__ = [
    "BodyTypeClassifier",
    "ProfileSampleClassifier",
    "RemoteBodyTypeClassifier",
    "create_classifier",
]
