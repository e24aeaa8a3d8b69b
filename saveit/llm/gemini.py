"""
Gemini model manager - shared model instance for enrichment calls.

Supports two backends:
  1. Vertex AI SDK - uses GOOGLE_CLOUD_PROJECT + service account
  2. google-generativeai - uses GOOGLE_API_KEY (the usual local/dev setup)
"""

from __future__ import annotations

import os
from functools import lru_cache

from saveit.infrastructure.settings import GEMINI_LOCATION, GEMINI_MODEL
from saveit.observability.logging import get_logger

logger = get_logger(__name__)

# Which backend produced the cached model ("vertexai" or "genai")
_backend: str | None = None


class GeminiInitializationError(RuntimeError):
    """Raised when Gemini model cannot be initialized."""


def is_gemini_configured() -> bool:
    """Credential presence only; does not call the API."""
    return bool(os.getenv("GOOGLE_API_KEY") or os.getenv("GOOGLE_CLOUD_PROJECT"))


@lru_cache(maxsize=1)
def get_gemini_model():
    """
    Get or create the shared Gemini model instance.

    Uses the Vertex AI SDK when GOOGLE_CLOUD_PROJECT is set and the SDK is
    installed, otherwise google-generativeai with GOOGLE_API_KEY.

    Raises:
        GeminiInitializationError: If model cannot be initialized
    """
    global _backend
    project = os.getenv("GOOGLE_CLOUD_PROJECT")
    location = os.getenv("GEMINI_LOCATION") or GEMINI_LOCATION
    model_name = os.getenv("GEMINI_MODEL") or GEMINI_MODEL

    if project:
        try:
            import vertexai
            from vertexai.generative_models import GenerativeModel

            vertexai.init(project=project, location=location)
            model = GenerativeModel(model_name)
            _backend = "vertexai"
            logger.info(
                "Initialized Gemini model (Vertex AI): project=%s, location=%s, model=%s",
                project,
                location,
                model_name,
            )
            return model
        except ImportError:
            logger.info("Vertex AI SDK not installed, trying google-generativeai")

    try:
        import google.generativeai as genai
    except ImportError as e:
        raise GeminiInitializationError(
            "No Gemini SDK available. Install google-generativeai."
        ) from e

    api_key = os.getenv("GOOGLE_API_KEY")
    if not api_key:
        raise GeminiInitializationError("GOOGLE_API_KEY is not set")

    try:
        genai.configure(api_key=api_key)
        model = genai.GenerativeModel(model_name)
    except Exception as e:
        logger.error("Failed to initialize Gemini model: %s", e)
        raise GeminiInitializationError(f"Failed to initialize Gemini: {e}") from e

    _backend = "genai"
    logger.info("Initialized Gemini model (google-generativeai): model=%s", model_name)
    return model


def get_gemini_model_with_options(system_instruction: str | None = None) -> object:
    """Create a Gemini model with a system instruction, or return the shared one.

    System instructions are per-model-instance in the Gemini API, so a fresh
    GenerativeModel is built when one is given.
    """
    if system_instruction is None:
        return get_gemini_model()

    get_gemini_model()
    model_name = os.getenv("GEMINI_MODEL") or GEMINI_MODEL

    if _backend == "vertexai":
        from vertexai.generative_models import GenerativeModel

        return GenerativeModel(model_name, system_instruction=system_instruction)

    import google.generativeai as genai

    return genai.GenerativeModel(model_name, system_instruction=system_instruction)


def clear_model_cache() -> None:
    """
    Clear the cached model instance.

    Useful for testing or when reconfiguration is needed.
    """
    get_gemini_model.cache_clear()
    logger.info("Cleared Gemini model cache")
