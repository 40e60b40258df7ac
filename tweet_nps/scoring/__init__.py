"""NPS reduction."""

from .nps import NpsResult, ProviderScore, calculate_nps, score_provider

__all__ = ["NpsResult", "ProviderScore", "calculate_nps", "score_provider"]
