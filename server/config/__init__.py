"""
Configuration Module
====================
"""

from .settings import (
    ServerConfig,
    Credentials,
    GenerationConfig,
    ClassifierConfig,
    ImageConfig,
    SessionConfig,
    get_server_config,
    get_credentials,
    get_generation_config,
    get_classifier_config,
    get_image_config,
    get_session_config,
)

__all__ = [
    "ServerConfig",
    "Credentials",
    "GenerationConfig",
    "ClassifierConfig",
    "ImageConfig",
    "SessionConfig",
    "get_server_config",
    "get_credentials",
    "get_generation_config",
    "get_classifier_config",
    "get_image_config",
    "get_session_config",
]
