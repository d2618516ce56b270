"""Shared dependencies for API routes."""
from functools import lru_cache

from prospect_matcher.models.ai_settings import AISettings, load_settings
from prospect_matcher.services.llm import LLMProvider, build_provider
from prospect_matcher.services.matching import Matcher


@lru_cache()
def get_settings() -> AISettings:
    return load_settings()


@lru_cache()
def get_provider() -> LLMProvider:
    return build_provider(get_settings())


def get_matcher() -> Matcher:
    settings = get_settings()
    return Matcher(get_provider(), max_concurrent=settings.processing_settings.max_concurrent)
