"""
services/container.py
──────────────────────────────────────────────────────────────────────────────
Dependency Injection container.

THIS IS THE ONLY FILE THAT NAMES CONCRETE ADAPTER CLASSES.

Provider selection is driven entirely by environment variables:

  LLM_PROVIDER=gemini  (default) → GeminiLLMAdapter
  LLM_PROVIDER=openai            → OpenAILLMAdapter

History always lives in PostgreSQL (PostgresHistoryAdapter, DB_DSN) and
sign-in goes through Firebase (FirebaseAuthAdapter, FIREBASE_API_KEY).

Every service receives its collaborators through its constructor; the
@lru_cache(maxsize=1) builders below only decide WHICH instances the
interfaces share per process.  Tests build services directly with fakes.
"""
from __future__ import annotations

import logging
from functools import lru_cache

from hsclassify.adapters.postgres_history import PostgresHistoryAdapter
from hsclassify.config.settings import Settings, get_settings
from hsclassify.domain.exceptions import ConfigurationError
from hsclassify.ports.auth_port import AuthPort
from hsclassify.ports.history_port import HistoryPort
from hsclassify.ports.llm_port import LLMPort
from hsclassify.services.classifier import ClassifierPipeline
from hsclassify.services.explainer import HSCodeExplainer
from hsclassify.services.predictor import HSCodePredictor

logger = logging.getLogger(__name__)


def _build_llm(settings: Settings) -> LLMPort:
    """Instantiate the correct LLMPort adapter based on LLM_PROVIDER."""
    provider = settings.llm_provider.lower()
    if provider == "openai":
        from hsclassify.adapters.openai_llm import OpenAILLMAdapter
        logger.info("LLM provider: OpenAI (%s)", settings.openai_llm_model)
        return OpenAILLMAdapter(settings)
    if provider == "gemini":
        from hsclassify.adapters.gemini_llm import GeminiLLMAdapter
        logger.info("LLM provider: Gemini (%s)", settings.gemini_model)
        return GeminiLLMAdapter(settings)
    raise ConfigurationError(
        f"Unknown LLM_PROVIDER '{settings.llm_provider}'. "
        "Valid values: 'gemini', 'openai'."
    )


@lru_cache(maxsize=1)
def get_history_store() -> HistoryPort:
    """Shared history store; the DB connection opens lazily on first use."""
    return PostgresHistoryAdapter(get_settings())


@lru_cache(maxsize=1)
def get_auth() -> AuthPort:
    """Shared authentication adapter.

    Raises:
        AuthenticationError: If FIREBASE_API_KEY is missing.
    """
    from hsclassify.adapters.firebase_auth import FirebaseAuthAdapter
    return FirebaseAuthAdapter(get_settings())


@lru_cache(maxsize=1)
def get_pipeline() -> ClassifierPipeline:
    """Build and return the fully wired ClassifierPipeline singleton.

    Returns:
        ClassifierPipeline sharing the history store of get_history_store().

    Raises:
        ConfigurationError: If an unknown provider name is given.
        AuthenticationError: If required API keys are missing.
    """
    settings = get_settings()
    logger.info("Building ClassifierPipeline | llm_provider=%s", settings.llm_provider)

    llm = _build_llm(settings)
    pipeline = ClassifierPipeline(
        predictor=HSCodePredictor(llm),
        explainer=HSCodeExplainer(llm),
        history=get_history_store(),
    )

    logger.info("ClassifierPipeline ready | llm=%s", llm.model_name)
    return pipeline
