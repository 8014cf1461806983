"""
Leaderboard backend interface.

The pipeline only talks to the leaderboard service through this interface so
tests can substitute a deterministic fake for Steam.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, List, Optional, Sequence

from wrlog.data_models.leaderboard import LeaderboardEntry, WorkshopItem


class LeaderboardBackend(ABC):
    """Async capabilities the pipeline consumes."""

    @abstractmethod
    async def query_leaderboard_range(self, leaderboard_name: str, start: int, end: int) -> List[LeaderboardEntry]:
        """
        Download global leaderboard entries for ranks start..end.

        Raises:
            BackendError: If the leaderboard cannot be queried
            LeaderboardNotFoundError: If no such leaderboard exists
        """

    @abstractmethod
    def query_ready_items(self, tags: Sequence[str]) -> AsyncIterator[WorkshopItem]:
        """Yield workshop items that are ready to use and tagged with any of tags"""

    @abstractmethod
    async def resolve_display_name(self, steam_id: int) -> Optional[str]:
        """Look up a player's display name, None if unavailable"""

    async def close(self):
        """Release any held resources"""
