"""Reasoner configuration.

Loads from environment variables and .env file.
Prefix: OWL_REASONER_ (e.g. OWL_REASONER_SYNTAX_CHECKS=false).
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReasonerSettings(BaseSettings):
    """Tunables for validation, classification and lookup.

    All values can be set via environment variables or .env file.
    """

    # ----- Classification -----
    max_closure_iterations: int | None = Field(
        default=None,
        ge=1,
        description="Upper bound on subsumption fixed-point rounds. Unbounded if not set.",
    )

    # ----- Validation -----
    duplicate_detection: bool = Field(
        default=True,
        description="Report structurally identical entities as warnings.",
    )
    syntax_checks: bool = Field(
        default=True,
        description="Check IRIs, attribute names and axiom text.",
    )

    # ----- Lookup -----
    case_insensitive_labels: bool = Field(
        default=True,
        description="Fall back to case-insensitive label matching in expressions.",
    )

    # ----- Cache -----
    cache_enabled: bool = Field(
        default=True,
        description="Reuse the last classified index while the snapshot is unchanged.",
    )

    # ----- Logging -----
    log_level: str = Field(default="WARNING", description="Root log level for the CLI.")

    model_config = SettingsConfigDict(
        env_prefix="OWL_REASONER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> ReasonerSettings:
    """Get cached settings singleton."""
    return ReasonerSettings()
