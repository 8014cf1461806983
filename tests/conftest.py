"""Shared test fixtures for the WR log tests."""

import os
import tempfile
from datetime import datetime, timezone
from typing import Callable, List, Optional

import pytest

# Keep log files out of the working tree; must happen before wrlog.config is imported
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="wrlog-test-logs-"))

from wrlog.data_models.leaderboard import GameMode, LeaderboardEntry, LevelSnapshot, WorkshopItem  # noqa: E402

FIXED_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock that always returns FIXED_TIME."""
    return lambda: FIXED_TIME


@pytest.fixture
def make_snapshot() -> Callable[..., LevelSnapshot]:
    """Factory for snapshots with (steam_id, score) rank order."""

    def factory(
        leaderboard_name: str,
        holders: List[tuple] = (),
        mode: GameMode = GameMode.SPRINT,
        name: Optional[str] = None,
        workshop_item: Optional[WorkshopItem] = None,
        timestamp: datetime = FIXED_TIME
    ) -> LevelSnapshot:
        entries = tuple(
            LeaderboardEntry(steam_id=steam_id, global_rank=rank, score=score, player_name=f"player{steam_id}")
            for rank, (steam_id, score) in enumerate(holders, start=1)
        )
        return LevelSnapshot(
            name=name or leaderboard_name,
            mode=mode,
            leaderboard_name=leaderboard_name,
            entries=entries,
            timestamp=timestamp,
            workshop_item=workshop_item
        )

    return factory


@pytest.fixture
def workshop_item() -> WorkshopItem:
    """A workshop level tagged for sprint and stunt."""
    return WorkshopItem(
        published_file_id=1234567,
        steam_id_owner=76561198000000001,
        file_name="levels/my_level.bytes",
        title="My Level",
        score=0.9,
        tags=("Sprint", "Stunt"),
        author_name="Level Author",
        preview_url="https://images.example/preview.jpg"
    )
