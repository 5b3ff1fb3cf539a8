"""
Server Configuration
====================

Configuration settings for the body type assessment server.
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass
class ServerConfig:
    """Server configuration settings."""
    host: str = "0.0.0.0"
    port: int = 5000
    debug: bool = False
    threaded: bool = True
    log_level: str = "INFO"


@dataclass
class Credentials:
    """
    API credentials for one session.

    The Gemini key is mandatory for plan generation; the OpenAI key is
    optional and only used by a remote classifier. Both are kept out of repr.
    """
    gemini_api_key: str = field(default="", repr=False)
    openai_api_key: str = field(default="", repr=False)

    def __post_init__(self):
        self.gemini_api_key = (self.gemini_api_key or "").strip()
        self.openai_api_key = (self.openai_api_key or "").strip()

    @property
    def is_complete(self) -> bool:
        return bool(self.gemini_api_key)


@dataclass
class GenerationConfig:
    """Gemini generation settings."""
    model: str = "gemini-1.5-flash-latest"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    temperature: float = 0.7
    top_k: int = 40
    top_p: float = 0.95
    max_output_tokens: int = 2048
    timeout: float = 60.0

    @property
    def endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/models/{self.model}:generateContent"


@dataclass
class ClassifierConfig:
    """Body type classifier settings."""
    endpoint: Optional[str] = None  # None for the built-in profile sampler
    timeout: float = 30.0
    simulated_latency: float = 2.0
    seed: Optional[int] = None


@dataclass
class ImageConfig:
    """Image intake settings."""
    max_bytes: int = 10 * 1024 * 1024
    verify_decodable: bool = True


@dataclass
class SessionConfig:
    """Session registry limits."""
    idle_timeout: float = 30 * 60.0  # seconds; 0 disables expiry
    max_sessions: int = 1000  # 0 disables the cap


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def get_server_config() -> ServerConfig:
    """Get server configuration from environment."""
    return ServerConfig(
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
        debug=_env_flag("DEBUG", "false"),
        threaded=True,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def get_credentials() -> Credentials:
    """Recover saved credentials from environment."""
    return Credentials(
        gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
    )


def get_generation_config() -> GenerationConfig:
    """Get Gemini generation configuration from environment."""
    return GenerationConfig(
        model=os.getenv("GEMINI_MODEL", "gemini-1.5-flash-latest"),
        base_url=os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"),
        temperature=float(os.getenv("GEMINI_TEMPERATURE", "0.7")),
        top_k=int(os.getenv("GEMINI_TOP_K", "40")),
        top_p=float(os.getenv("GEMINI_TOP_P", "0.95")),
        max_output_tokens=int(os.getenv("GEMINI_MAX_OUTPUT_TOKENS", "2048")),
        timeout=float(os.getenv("GENERATION_TIMEOUT", "60")),
    )


def get_classifier_config() -> ClassifierConfig:
    """Get classifier configuration from environment."""
    seed = os.getenv("CLASSIFIER_SEED")
    return ClassifierConfig(
        endpoint=os.getenv("CLASSIFIER_URL") or None,
        timeout=float(os.getenv("CLASSIFIER_TIMEOUT", "30")),
        simulated_latency=float(os.getenv("CLASSIFIER_SIMULATED_LATENCY", "2.0")),
        seed=int(seed) if seed else None,
    )


def get_image_config() -> ImageConfig:
    """Get image intake configuration from environment."""
    return ImageConfig(
        max_bytes=int(os.getenv("IMAGE_MAX_BYTES", str(10 * 1024 * 1024))),
        verify_decodable=_env_flag("IMAGE_VERIFY_DECODABLE", "true"),
    )


def get_session_config() -> SessionConfig:
    """Get session registry configuration from environment."""
    return SessionConfig(
        idle_timeout=float(os.getenv("SESSION_IDLE_TIMEOUT", "1800")),
        max_sessions=int(os.getenv("SESSION_MAX", "1000")),
    )

