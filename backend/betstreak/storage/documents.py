"""Whole-document stores for the tracker state.

A store holds exactly one JSON object. Callers read it in full and write it
back in full; there are no partial updates.
"""

import copy
import fcntl
import json
import logging
import shutil
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager, nullcontext
from pathlib import Path
from typing import Any

from .exceptions import StorageUnavailable

logger = logging.getLogger(__name__)


class DocumentStore(ABC):
    """Read-whole-document / write-whole-document interface."""

    @abstractmethod
    def exists(self) -> bool: ...

    @abstractmethod
    def read(self) -> dict[str, Any]: ...

    @abstractmethod
    def write(self, document: dict[str, Any]) -> None: ...

    def lock(self) -> AbstractContextManager[None]:
        """Exclusive access for one read-modify-write. No-op unless overridden."""
        return nullcontext()


class JsonFileStore(DocumentStore):
    """JSON file on disk, written atomically via tempfile -> rename."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"JsonFileStore({str(self.path)!r})"

    def exists(self) -> bool:
        return self.path.is_file()

    @property
    def lock_path(self) -> Path:
        return self.path.with_name(self.path.name + ".lock")

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Hold an exclusive flock on a sidecar file.

        Every process sharing the state file takes this lock around its
        read-modify-write. The sidecar is used because the state file itself is
        replaced on each write.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            lock_file = open(self.lock_path, "a")
        except OSError as e:
            raise StorageUnavailable(f"Cannot open lock file: {e}") from e

        with lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file, fcntl.LOCK_UN)

    def read(self) -> dict[str, Any]:
        if not self.path.exists():
            raise StorageUnavailable(
                f"State file not found: {self.path}. "
                "Run 'python -m betstreak init' to create it."
            )

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except ValueError as e:
            logger.error(f"Corrupted JSON in state file: {e}")
            raise StorageUnavailable(f"State file is not valid JSON: {e}") from e
        except OSError as e:
            logger.error(f"Failed to read state file: {e}")
            raise StorageUnavailable(f"Cannot read state file: {e}") from e

        if not isinstance(document, dict):
            raise StorageUnavailable(
                f"State file must contain a JSON object, got {type(document).__name__}"
            )

        logger.debug(f"Loaded document from {self.path}")
        return document

    def write(self, document: dict[str, Any]) -> None:
        """Atomically replace the document.

        If the process crashes mid-write, the previous file remains intact.
        """
        temp_path: Path | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=self.path.parent,
                delete=False,
                suffix=".json",
                encoding="utf-8",
            ) as temp_file:
                temp_path = Path(temp_file.name)
                json.dump(document, temp_file, indent=2, ensure_ascii=False)

            shutil.move(str(temp_path), str(self.path))
            logger.debug(f"Saved document to {self.path}")

        except (OSError, TypeError, ValueError) as e:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            logger.error(f"Failed to save state: {e}")
            raise StorageUnavailable(f"Cannot write state file: {e}") from e


class InMemoryStore(DocumentStore):
    """Process-local store. Reads and writes are deep copies."""

    def __init__(self, document: dict[str, Any] | None = None):
        self._document = copy.deepcopy(document) if document is not None else None

    def exists(self) -> bool:
        return self._document is not None

    def read(self) -> dict[str, Any]:
        if self._document is None:
            raise StorageUnavailable("No document stored")
        return copy.deepcopy(self._document)

    def write(self, document: dict[str, Any]) -> None:
        self._document = copy.deepcopy(document)
