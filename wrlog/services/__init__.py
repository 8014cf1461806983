"""
Service layer for the Distance WR log.

Provides the fetch, reconcile and diff stages of an update run along with
persistence and the Discord feed.
"""

from .backend import LeaderboardBackend
from .level_catalog import LevelCatalog
from .leaderboard_fetcher import LeaderboardFetcher, TimeoutPolicy
from .snapshot_reconciler import add_missing_entries_from
from .changelist_engine import is_score_better, update_changelist
from .persistence import FileJsonPersistence

__all__ = [
    'LeaderboardBackend',
    'LevelCatalog',
    'LeaderboardFetcher',
    'TimeoutPolicy',
    'add_missing_entries_from',
    'is_score_better',
    'update_changelist',
    'FileJsonPersistence',
]
