"""
Services Module
===============

External generation services used by the assessment pipeline.
"""

from .recommendation_generator import RecommendationGenerator, build_prompt

__all__ = ["RecommendationGenerator", "build_prompt"]
