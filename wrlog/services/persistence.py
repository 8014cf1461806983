"""
JSON file persistence for query results and the changelist.

Each collection lives in its own file and is rewritten wholesale on save
through a temporary file and an atomic rename.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, List, TypeVar

from wrlog.constants import PersistenceConstants
from wrlog.data_models.changelist import ChangelistEntry
from wrlog.data_models.leaderboard import LevelSnapshot
from wrlog.utils.exceptions import DoesNotExist, LoadError, SaveError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Errors raised while turning parsed JSON into model objects
_DECODE_ERRORS = (json.JSONDecodeError, KeyError, TypeError, ValueError)


class FileJsonPersistence:
    """Loads and saves both collections as JSON arrays."""

    def __init__(self, query_results_path, changelist_path):
        self.query_results_path = Path(query_results_path)
        self.changelist_path = Path(changelist_path)

    def load_query_results(self) -> List[LevelSnapshot]:
        return load_file(self.query_results_path, LevelSnapshot.from_dict)

    def save_query_results(self, query_results: List[LevelSnapshot]):
        save_file(query_results, self.query_results_path, LevelSnapshot.from_dict)

    def load_changelist(self) -> List[ChangelistEntry]:
        return load_file(self.changelist_path, ChangelistEntry.from_dict)

    def save_changelist(self, changelist: List[ChangelistEntry]):
        save_file(changelist, self.changelist_path, ChangelistEntry.from_dict)


def load_file(path: Path, decode: Callable[[Any], T]) -> List[T]:
    """
    Load a JSON array of model objects.

    Raises:
        DoesNotExist: If the file is absent
        LoadError: If the file cannot be read or decoded
    """
    try:
        with open(path, 'r', encoding=PersistenceConstants.ENCODING) as handle:
            raw = json.load(handle)
    except FileNotFoundError:
        raise DoesNotExist(str(path)) from None
    except (OSError, json.JSONDecodeError) as e:
        raise LoadError(f"Error reading {path}", str(e)) from e

    try:
        return _decode_all(raw, decode)
    except _DECODE_ERRORS as e:
        raise LoadError(f"Error decoding {path}", str(e)) from e


def save_file(data: List[Any], path: Path, decode: Callable[[Any], T]):
    """
    Atomically replace path with the JSON serialization of data.

    Raises:
        SaveError: If serialization, its self-check or the write fails. The
            previous file is left untouched in that case.
    """
    try:
        serialized = json.dumps([item.to_dict() for item in data], ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise SaveError(f"Error serializing {path}", str(e)) from e

    # Make sure the JSON we just generated is valid
    try:
        _decode_all(json.loads(serialized), decode)
    except _DECODE_ERRORS as e:
        raise SaveError("The JSON we just generated is not valid", str(e)) from e

    try:
        _atomic_write(path, serialized.encode(PersistenceConstants.ENCODING))
    except OSError as e:
        raise SaveError(f"Error writing {path}", str(e)) from e

    logger.debug(f"Saved {len(data)} items to {path}")


def _decode_all(raw: Any, decode: Callable[[Any], T]) -> List[T]:
    if not isinstance(raw, list):
        raise TypeError(f"expected a JSON array, got {type(raw).__name__}")
    return [decode(item) for item in raw]


def _atomic_write(path: Path, payload: bytes):
    directory = path.parent
    directory.mkdir(parents=True, exist_ok=True)

    tmp = tempfile.NamedTemporaryFile(dir=directory, prefix=f".{path.name}.", suffix=".tmp", delete=False)
    try:
        with tmp:
            tmp.write(payload)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except BaseException:
        try:
            os.unlink(tmp.name)
        except FileNotFoundError:
            pass
        raise

    os.chmod(path, PersistenceConstants.FILE_MODE)
