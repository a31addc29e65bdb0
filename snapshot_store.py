# snapshot_store.py
"""
Persistence for the symbol artifact.

The artifact is a UTF-8 JSON array of symbols, sorted, 2-space indented and
without a trailing newline, so two builds of the same set are byte-identical.
"""
import json
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional

from errors import PersistenceError
from logger import log


def serialize_symbols(symbols: Iterable[str]) -> str:
    return json.dumps(sorted(set(symbols)), indent=2, ensure_ascii=False)


def deserialize_symbols(text: str) -> Optional[List[str]]:
    """Parse stored text back into a symbol list; None if it isn't one."""
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if not isinstance(data, list) or not all(isinstance(s, str) for s in data):
        return None
    return sorted(set(data))


@dataclass(frozen=True)
class WriteResult:
    written: bool
    location: str
    count: int


class SnapshotStore(ABC):
    """load / diff_and_write over some backing text storage."""

    location = "<memory>"

    @abstractmethod
    def read_text(self) -> Optional[str]:
        """Return the stored text, or None when nothing has been stored yet."""
        ...

    @abstractmethod
    def write_text(self, text: str) -> None:
        """Replace the stored text. Must be all-or-nothing."""
        ...

    def load(self) -> Optional[List[str]]:
        text = self.read_text()
        if text is None:
            log.info(f"[snapshot] no previous snapshot at {self.location}")
            return None
        symbols = deserialize_symbols(text)
        if symbols is None:
            log.warning(f"[snapshot] {self.location} is not a JSON list of strings, ignoring it")
            return None
        log.info(f"[snapshot] loaded {len(symbols)} symbols from {self.location}")
        return symbols

    def write(self, symbols: Iterable[str]) -> WriteResult:
        """Unconditionally persist `symbols`."""
        text = serialize_symbols(symbols)
        self.write_text(text)
        count = len(json.loads(text))
        log.info(f"[snapshot] wrote {count} symbols -> {self.location}")
        return WriteResult(written=True, location=self.location, count=count)

    def diff_and_write(self, symbols: Iterable[str]) -> WriteResult:
        """Persist `symbols` only if their serialized form differs from what is stored."""
        text = serialize_symbols(symbols)
        if text == self.read_text():
            count = len(json.loads(text))
            log.info(f"[snapshot] no change ({count} symbols), {self.location} left as is")
            return WriteResult(written=False, location=self.location, count=count)
        return self.write(json.loads(text))


class JsonFileSnapshotStore(SnapshotStore):

    def __init__(self, path: str):
        self.path = path
        self.location = path

    def read_text(self) -> Optional[str]:
        try:
            with open(self.path, encoding="utf-8", errors="replace") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"Failed to read {self.path}: {e}", path=self.path) from e

    def write_text(self, text: str) -> None:
        """
        Atomically replace the artifact: write a sibling temp file, then
        os.replace it over the target.
        """
        temp_path = self.path + ".tmp"
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8", newline="") as f:
                f.write(text)
            os.replace(temp_path, self.path)
        except OSError as e:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise PersistenceError(f"Failed to write {self.path}: {e}", path=self.path) from e


class InMemorySnapshotStore(SnapshotStore):
    """Store backed by a string; used by tests and dry runs."""

    def __init__(self, text: Optional[str] = None):
        self.text = text
        self.writes = 0

    def read_text(self) -> Optional[str]:
        return self.text

    def write_text(self, text: str) -> None:
        self.text = text
        self.writes += 1
