"""
Changelist data model.

A changelist entry records one rank-1 change and is never modified once it
has been appended.
"""

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class ChangelistEntry:
    """One world record change, serialized with the field names below."""
    map_name: str
    mode: str
    new_recordholder: str
    record_new: str
    steam_id_new_recordholder: str
    fetch_time: str
    map_author: Optional[str] = None
    map_preview: Optional[str] = None
    old_recordholder: Optional[str] = None
    record_old: Optional[str] = None
    workshop_item_id: Optional[str] = None
    steam_id_author: Optional[str] = None
    steam_id_old_recordholder: Optional[str] = None

    @property
    def dedup_key(self) -> Tuple[Any, ...]:
        """Fields that identify the same record change across runs"""
        return (
            self.map_name,
            self.mode,
            self.record_new,
            self.workshop_item_id,
            self.steam_id_author,
            self.steam_id_new_recordholder,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChangelistEntry":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})
