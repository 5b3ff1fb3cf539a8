"""
Utilities Module
================

Contains utility functions, helpers, and shared components.
"""

from .image_intake import ImageIntake

__all__ = ["ImageIntake"]
