"""
Tunable scoring constants for the SKU suggestion engine.

All weights and thresholds were tuned by hand against the live catalog.
They are pinned by the scenario tests rather than derived, so treat changes
here as behaviour changes and re-run the suite.

Override any value with an environment variable, e.g.
    SKU_MATCHER_MIN_SCORE=0.55
"""

from __future__ import annotations

from pydantic_settings import BaseSettings


class MatcherSettings(BaseSettings):
    """Weights, boosts and thresholds used by the match scorer and ranker."""

    model_config = {"env_prefix": "SKU_MATCHER_"}

    # Base score components
    sku_weight: float = 0.4
    title_weight: float = 0.4

    # Additive boosts
    same_line_boost: float = 0.15
    equivalent_material_boost: float = 0.10
    legacy_boost: float = 0.20
    same_background_boost: float = 0.05
    similar_title_boost: float = 0.10
    similar_title_threshold: float = 0.8

    # Confidence tiers
    high_confidence: float = 0.85
    legacy_high_confidence: float = 0.70
    medium_confidence: float = 0.65

    # Acceptance thresholds (legacy SKUs often look very different)
    min_score: float = 0.50
    legacy_min_score: float = 0.45

    # Ranking
    max_suggestions: int = 3
    batch_suggestions: int = 2

    # Title tokens shorter than this are ignored for word overlap
    min_word_length: int = 3
