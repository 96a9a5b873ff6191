"""
Box score provider layer.

Providers fetch games and box scores from an upstream source and hand back
typed records; parsing details never leak past this package.

Usage:
    from boxscore_data.providers import get_provider

    provider = get_provider(settings)
    games = await provider.discover_games(date(2024, 6, 1))
    box = await provider.fetch_box_score(games[0].game_id)
"""

from ..core.config import Settings
from .base import BoxScoreProvider, NetworkError, ParseError, ProviderError

__all__ = [
    "BoxScoreProvider",
    "NetworkError",
    "ParseError",
    "ProviderError",
    "get_provider",
]


def get_provider(settings: Settings, provider_name: str = "mlb_stats") -> BoxScoreProvider:
    """
    Build a provider from settings.

    Raises:
        ValueError: If provider not found
    """
    if provider_name == "mlb_stats":
        from .mlb_stats import MLBStatsProvider

        return MLBStatsProvider(
            base_url=settings.mlb_api_base_url,
            requests_per_minute=settings.mlb_requests_per_minute,
            timeout=settings.fetch_timeout_seconds,
            max_retries=settings.mlb_max_retries,
        )
    raise ValueError(f"Unknown provider: {provider_name}")
