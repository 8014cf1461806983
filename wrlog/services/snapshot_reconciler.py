"""
Snapshot reconciliation.

Steam sometimes returns an empty leaderboard for a level that does have
entries. Such gaps are papered over with the previously stored snapshot.
"""

from typing import List

from wrlog.data_models.leaderboard import LevelSnapshot


def sort_by_leaderboard_name(snapshots: List[LevelSnapshot]) -> List[LevelSnapshot]:
    return sorted(snapshots, key=lambda snapshot: snapshot.leaderboard_name)


def add_missing_entries_from(new: List[LevelSnapshot], old: List[LevelSnapshot]) -> List[LevelSnapshot]:
    """
    Merge freshly fetched snapshots with the previous run's snapshots.

    Both sides are walked in leaderboard name order. A key present on both
    sides keeps the new snapshot unless it came back empty while the old one
    has entries. A key present on one side only is carried over unchanged.

    Args:
        new: Snapshots fetched this run
        old: Snapshots persisted by the previous run

    Returns:
        Exactly one snapshot per leaderboard name seen on either side, sorted
        by leaderboard name. Repeated names on one side keep their first
        snapshot.
    """
    new = _unique_by_name(sort_by_leaderboard_name(new))
    old = _unique_by_name(sort_by_leaderboard_name(old))

    merged = []
    i = j = 0
    while i < len(new) and j < len(old):
        new_key = new[i].leaderboard_name
        old_key = old[j].leaderboard_name

        if new_key < old_key:
            merged.append(new[i])
            i += 1
        elif new_key > old_key:
            merged.append(old[j])
            j += 1
        else:
            if not new[i].entries and old[j].entries:
                merged.append(old[j])
            else:
                merged.append(new[i])
            i += 1
            j += 1

    merged.extend(new[i:])
    merged.extend(old[j:])
    return merged


def _unique_by_name(snapshots: List[LevelSnapshot]) -> List[LevelSnapshot]:
    # Input is sorted, so repeats are adjacent
    unique = []
    for snapshot in snapshots:
        if unique and unique[-1].leaderboard_name == snapshot.leaderboard_name:
            continue
        unique.append(snapshot)
    return unique
