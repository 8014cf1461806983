"""
Changelist engine for the WR log.

Compares reconciled snapshots with the previous run's snapshots and appends one
changelist entry per genuine world record improvement.
"""

import logging
from email.utils import format_datetime
from typing import Dict, List, Optional

from wrlog.constants import SteamConstants
from wrlog.data_models.changelist import ChangelistEntry
from wrlog.data_models.leaderboard import GameMode, LeaderboardEntry, LevelSnapshot
from wrlog.utils.score_format import format_score

logger = logging.getLogger(__name__)


def is_score_better(this_score: int, other_score: int, mode: GameMode) -> bool:
    """Check if this_score beats other_score; ties never do."""
    if mode.is_time_based:
        return this_score < other_score
    return this_score > other_score


def changelist_order_key(snapshot: LevelSnapshot):
    """Official levels first, then workshop items by ascending id"""
    return (snapshot.published_file_id, snapshot.leaderboard_name)


def build_entry(snapshot: LevelSnapshot, new_first: LeaderboardEntry, old_first: Optional[LeaderboardEntry]) -> ChangelistEntry:
    """Describe a record change on one leaderboard."""
    workshop = snapshot.workshop_item

    return ChangelistEntry(
        map_name=snapshot.name,
        map_author=workshop.author_name if workshop else None,
        map_preview=workshop.preview_url if workshop else None,
        mode=snapshot.mode.label,
        new_recordholder=_player_name(new_first),
        old_recordholder=_player_name(old_first) if old_first else None,
        record_new=format_score(new_first.score, snapshot.mode),
        record_old=format_score(old_first.score, snapshot.mode) if old_first else None,
        workshop_item_id=str(workshop.published_file_id) if workshop else None,
        steam_id_author=str(workshop.steam_id_owner) if workshop else None,
        steam_id_new_recordholder=str(new_first.steam_id),
        steam_id_old_recordholder=str(old_first.steam_id) if old_first else None,
        fetch_time=format_datetime(snapshot.timestamp),
    )


def find_new_records(current: List[LevelSnapshot], previous: List[LevelSnapshot]) -> List[ChangelistEntry]:
    """
    Build entries for every leaderboard whose record holder improved.

    A leaderboard without a previous rank-1 entry is a first observation and
    never produces an entry. Entries are returned in changelist_order_key order.
    """
    previous_by_name: Dict[str, LevelSnapshot] = {
        snapshot.leaderboard_name: snapshot for snapshot in previous
    }

    entries = []
    for snapshot in sorted(current, key=changelist_order_key):
        new_first = snapshot.first_entry
        if new_first is None:
            continue

        old_snapshot = previous_by_name.get(snapshot.leaderboard_name)
        old_first = old_snapshot.first_entry if old_snapshot else None
        if old_first is None:
            continue

        if not is_score_better(new_first.score, old_first.score, snapshot.mode):
            continue

        entries.append(build_entry(snapshot, new_first, old_first))
    return entries


def update_changelist(
    changelist: List[ChangelistEntry],
    current: List[LevelSnapshot],
    previous: List[LevelSnapshot]
) -> List[ChangelistEntry]:
    """
    Append new world records to the changelist in place.

    Entries matching anything already in the changelist are dropped, so a
    transition seen again after a data glitch is not reported twice. The
    surviving batch is appended in reverse build order.

    Returns:
        The entries that were appended
    """
    seen = {entry.dedup_key for entry in changelist}

    appended = []
    for entry in reversed(find_new_records(current, previous)):
        if entry.dedup_key in seen:
            logger.debug(f"Skipping likely duplicate record on {entry.map_name} ({entry.mode})")
            continue
        appended.append(entry)

    changelist.extend(appended)
    logger.info(f"Added {len(appended)} changelist entries")
    return appended


def _player_name(entry: LeaderboardEntry) -> str:
    return entry.player_name if entry.player_name is not None else SteamConstants.UNKNOWN_PLAYER_NAME
