"""
Box score provider contract.

A provider turns an upstream source (an HTTP API, scraped pages) into typed
GameInfo / BoxScore records. The orchestrator only talks to this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from ..core.models import BoxScore, GameInfo


class ProviderError(Exception):
    """Base exception for provider errors."""
    pass


class NetworkError(ProviderError):
    """Upstream unreachable, timed out, or answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(ProviderError):
    """Upstream payload did not have the expected overall shape."""
    pass


class BoxScoreProvider(ABC):
    """Interface every box score source implements."""

    name: str = "base"

    @abstractmethod
    async def discover_games(self, day: date) -> list[GameInfo]:
        """
        List the games played (or scheduled) on one day.

        Returns an empty list when there are no games.

        Raises:
            NetworkError: upstream request failed
            ParseError: schedule payload malformed
        """

    @abstractmethod
    async def fetch_box_score(self, game_id: str) -> Optional[BoxScore]:
        """
        Fetch the full box score of one game.

        Returns None when the game has no box score (yet). Individual stat
        fields that fail to parse come back as zeros.
        """

    async def close(self) -> None:
        """Release network resources."""
