"""
Feature flags for the Wine Cellar API.

Uses pydantic-settings (FastAPI-recommended) for typed, validated,
environment-variable-backed feature flags.

Toggle via env vars: FEATURE_EXTERNAL_SEARCH=false
All flags default to True (on). Disable via env vars when needed.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class FeatureFlags(BaseSettings):
    """Feature flags backed by environment variables."""

    feature_external_search: bool = True
    feature_auto_populate: bool = True
    feature_pairing_suggestions: bool = True

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
    }


@lru_cache()
def get_feature_flags() -> FeatureFlags:
    """Cached singleton. Use FastAPI Depends() for injection."""
    return FeatureFlags()
