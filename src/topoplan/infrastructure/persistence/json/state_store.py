"""JSON file state store."""
import json
import threading
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from topoplan.domain.base.ports.state_repository_port import StateRepositoryPort
from topoplan.domain.state.applied_state import STATE_FORMAT_VERSION, AppliedState, StateEntry
from topoplan.infrastructure.logging.logger import get_logger
from topoplan.infrastructure.persistence.components import FileManager
from topoplan.infrastructure.persistence.exceptions import (
    PersistenceError,
    StateCorruptionError,
    StateVersionError,
)


class JSONStateStore(StateRepositoryPort):
    """
    Applied state persisted as one versioned JSON document.

    Every change rewrites the whole document atomically, after rotating a
    backup, so a crash between two operations leaves the previous document
    intact. Writers are serialised through one lock.
    """

    def __init__(self, file_path: str, backup_count: int = 5, create_dirs: bool = True):
        """
        Initialize JSON state store.

        Args:
            file_path: Path to the state file
            backup_count: Number of backups to keep
            create_dirs: Whether to create parent directories
        """
        self.logger = get_logger(__name__)
        self.file_manager = FileManager(file_path, create_dirs, backup_count)
        self._lock = threading.RLock()
        self._state: Optional[AppliedState] = None

    @property
    def file_path(self) -> str:
        return str(self.file_manager.file_path)

    def load(self) -> AppliedState:
        """Read the whole state document."""
        with self._lock:
            self._state = self._read()
            self.logger.debug(
                f"Loaded state serial {self._state.serial} with {len(self._state)} entries"
            )
            return self._state.copy_state()

    def save_entry(self, logical_id: str, entry: StateEntry) -> AppliedState:
        with self._lock:
            state = self._current().copy_state()
            state.set_entry(logical_id, entry)
            self._write(state)
            self.logger.debug(f"Saved state entry: {logical_id}")
            return state.copy_state()

    def remove_entry(self, logical_id: str) -> AppliedState:
        with self._lock:
            state = self._current().copy_state()
            if state.remove_entry(logical_id) is None:
                self.logger.warning(f"State entry not found for removal: {logical_id}")
                return state
            self._write(state)
            self.logger.debug(f"Removed state entry: {logical_id}")
            return state.copy_state()

    def _current(self) -> AppliedState:
        if self._state is None:
            self._state = self._read()
        return self._state

    def _read(self) -> AppliedState:
        try:
            content = self.file_manager.read_file()
        except OSError as e:
            raise PersistenceError(f"Failed to read state file {self.file_path}: {e}") from e

        if not content.strip():
            return AppliedState.empty()

        try:
            return self._parse(content)
        except (json.JSONDecodeError, PydanticValidationError, TypeError) as e:
            self.logger.error(f"State file {self.file_path} is unreadable: {e}")
            backup = self.file_manager.recover_from_backup()
            if backup is None:
                raise StateCorruptionError(f"State file {self.file_path} is corrupt and no backup exists") from e
            try:
                state = self._parse(backup)
            except (json.JSONDecodeError, PydanticValidationError, TypeError) as backup_error:
                raise StateCorruptionError(
                    f"State file {self.file_path} and its latest backup are corrupt"
                ) from backup_error
            self.logger.warning(f"Recovered state serial {state.serial} from backup")
            return state

    def _parse(self, content: str) -> AppliedState:
        data = json.loads(content)
        if not isinstance(data, dict):
            raise TypeError("state document must be a JSON object")
        version = data.get("version", STATE_FORMAT_VERSION)
        if version > STATE_FORMAT_VERSION:
            raise StateVersionError(
                f"State file {self.file_path} has format version {version}; "
                f"this release supports up to {STATE_FORMAT_VERSION}",
                "STATE_VERSION",
                {"version": version},
            )
        return AppliedState.from_dict(data)

    def _write(self, state: AppliedState) -> None:
        content = json.dumps(state.to_dict(), indent=2, sort_keys=True) + "\n"
        try:
            self.file_manager.create_backup()
            self.file_manager.write_file(content)
        except OSError as e:
            raise PersistenceError(f"Failed to write state file {self.file_path}: {e}") from e
        self._state = state
