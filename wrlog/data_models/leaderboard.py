"""
Leaderboard data models for the WR log.

Provides immutable data transfer objects for leaderboard observations along
with their JSON representation in the query results file.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class GameMode(Enum):
    """Leaderboard game modes tracked by the log"""
    SPRINT = "Sprint"
    CHALLENGE = "Challenge"
    STUNT = "Stunt"

    @property
    def label(self) -> str:
        """Display label, also used as the workshop tag"""
        return self.value

    @property
    def leaderboard_id(self) -> int:
        """Game mode id embedded in leaderboard names"""
        return _LEADERBOARD_IDS[self]

    @property
    def is_time_based(self) -> bool:
        """Time modes rank lower scores first"""
        return self is not GameMode.STUNT

    def __str__(self) -> str:
        return self.value


_LEADERBOARD_IDS = {
    GameMode.SPRINT: 1,
    GameMode.STUNT: 5,
    GameMode.CHALLENGE: 8,
}

# Order in which a workshop item's modes are expanded
WORKSHOP_MODES = (GameMode.SPRINT, GameMode.CHALLENGE, GameMode.STUNT)


@dataclass(frozen=True)
class LeaderboardEntry:
    """Single leaderboard row."""
    steam_id: int
    global_rank: int
    score: int
    player_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'steam_id': self.steam_id,
            'global_rank': self.global_rank,
            'score': self.score,
            'player_name': self.player_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LeaderboardEntry":
        return cls(
            steam_id=int(data['steam_id']),
            global_rank=int(data['global_rank']),
            score=int(data['score']),
            player_name=data.get('player_name'),
        )


@dataclass(frozen=True)
class WorkshopItem:
    """Workshop publication backing a community level."""
    published_file_id: int
    steam_id_owner: int
    file_name: str
    title: str
    score: float = 0.0
    tags: Tuple[str, ...] = ()
    author_name: Optional[str] = None
    preview_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'published_file_id': self.published_file_id,
            'steam_id_owner': self.steam_id_owner,
            'file_name': self.file_name,
            'title': self.title,
            'score': self.score,
            'tags': list(self.tags),
            'author_name': self.author_name,
            'preview_url': self.preview_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkshopItem":
        return cls(
            published_file_id=int(data['published_file_id']),
            steam_id_owner=int(data['steam_id_owner']),
            file_name=data['file_name'],
            title=data['title'],
            score=float(data.get('score', 0.0)),
            tags=tuple(data.get('tags', ())),
            author_name=data.get('author_name'),
            preview_url=data.get('preview_url', ''),
        )

    def has_tag(self, mode: GameMode) -> bool:
        return mode.label in self.tags


@dataclass(frozen=True)
class LevelRequest:
    """One (level, mode) pair to fetch."""
    name: str
    mode: GameMode
    leaderboard_name: str
    workshop_item: Optional[WorkshopItem] = None

    @property
    def is_official(self) -> bool:
        return self.workshop_item is None


@dataclass(frozen=True)
class LevelSnapshot:
    """Top leaderboard entries for one leaderboard at one point in time."""
    name: str
    mode: GameMode
    leaderboard_name: str
    entries: Tuple[LeaderboardEntry, ...]
    timestamp: datetime
    workshop_item: Optional[WorkshopItem] = field(default=None)

    @property
    def first_entry(self) -> Optional[LeaderboardEntry]:
        """Current record holder, if any"""
        return self.entries[0] if self.entries else None

    @property
    def published_file_id(self) -> int:
        """Workshop item id, 0 for official levels"""
        return self.workshop_item.published_file_id if self.workshop_item else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'mode': self.mode.value,
            'leaderboard_name': self.leaderboard_name,
            'workshop_response': self.workshop_item.to_dict() if self.workshop_item else None,
            'leaderboard_response': {
                'entries': [entry.to_dict() for entry in self.entries],
            },
            'timestamp': self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LevelSnapshot":
        workshop = data.get('workshop_response')
        entries = data['leaderboard_response']['entries']
        return cls(
            name=data['name'],
            mode=GameMode(data['mode']),
            leaderboard_name=data['leaderboard_name'],
            entries=tuple(
                sorted(
                    (LeaderboardEntry.from_dict(entry) for entry in entries),
                    key=lambda entry: entry.global_rank
                )
            ),
            timestamp=datetime.fromisoformat(data['timestamp']),
            workshop_item=WorkshopItem.from_dict(workshop) if workshop else None,
        )
