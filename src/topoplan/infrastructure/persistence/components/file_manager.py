"""File management component for file-based storage operations."""

import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from topoplan.infrastructure.logging.logger import get_logger


class FileManager:
    """
    File operations manager for atomic writes and backup rotation.

    A write goes to a temporary file in the target directory, is fsynced, and
    replaces the target with an atomic rename, so readers only ever see the old
    or the new content.
    """

    def __init__(self, file_path: str, create_dirs: bool = True, backup_count: int = 5):
        """
        Initialize file manager.

        Args:
            file_path: Path to the main data file
            create_dirs: Whether to create parent directories
            backup_count: Number of backup files to keep (0 disables backups)
        """
        self.file_path = Path(file_path)
        self.backup_count = backup_count
        self.logger = get_logger(__name__)

        if create_dirs and not self.file_path.parent.exists():
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self.logger.info(f"Created directory: {self.file_path.parent}")

    def read_file(self) -> str:
        """
        Read file content.

        Returns:
            File content as string, empty string if file doesn't exist
        """
        if not self.file_path.exists():
            self.logger.debug(f"File does not exist: {self.file_path}")
            return ""

        with open(self.file_path, "r", encoding="utf-8") as f:
            content = f.read()

        self.logger.debug(f"Read {len(content)} characters from {self.file_path}")
        return content

    def write_file(self, content: str) -> None:
        """
        Write content to file atomically.

        Args:
            content: Content to write
        """
        try:
            self._atomic_write(content)
            self.logger.debug(f"Wrote {len(content)} characters to {self.file_path}")
        except OSError as e:
            self.logger.error(f"Failed to write file {self.file_path}: {e}")
            raise

    def _atomic_write(self, content: str) -> None:
        """Perform atomic write operation using temporary file."""
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=self.file_path.parent,
            delete=False,
            prefix=f".{self.file_path.name}.tmp",
        ) as temp_file:
            temp_path = Path(temp_file.name)
            temp_file.write(content)
            temp_file.flush()
            os.fsync(temp_file.fileno())

        try:
            temp_path.replace(self.file_path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def create_backup(self) -> Optional[str]:
        """
        Create backup of current file.

        Returns:
            Path to backup file, None if there was nothing to back up
        """
        if self.backup_count <= 0 or not self.file_path.exists():
            return None

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        backup_path = self.file_path.with_name(
            f"{self.file_path.stem}.backup_{timestamp}{self.file_path.suffix}"
        )
        try:
            shutil.copy2(self.file_path, backup_path)
        except OSError as e:
            self.logger.warning(f"Failed to create backup of {self.file_path}: {e}")
            return None

        self.logger.debug(f"Created backup: {backup_path}")
        self._cleanup_old_backups()
        return str(backup_path)

    def list_backups(self) -> List[Path]:
        """Backup files, newest first."""
        pattern = f"{self.file_path.stem}.backup_*{self.file_path.suffix}"
        # Timestamped names sort chronologically.
        return sorted(self.file_path.parent.glob(pattern), key=lambda p: p.name, reverse=True)

    def _cleanup_old_backups(self) -> None:
        """Remove old backup files, keeping only the most recent ones."""
        for backup_file in self.list_backups()[self.backup_count:]:
            try:
                backup_file.unlink()
                self.logger.debug(f"Removed old backup: {backup_file}")
            except OSError as e:
                self.logger.warning(f"Failed to remove old backup {backup_file}: {e}")

    def recover_from_backup(self) -> Optional[str]:
        """
        Return the content of the most recent backup.

        Returns:
            Backup content, or None if there is no backup
        """
        backups = self.list_backups()
        if not backups:
            self.logger.warning(f"No backup files found for {self.file_path}")
            return None

        latest_backup = backups[0]
        with open(latest_backup, "r", encoding="utf-8") as f:
            content = f.read()
        self.logger.info(f"Read recovery content from backup: {latest_backup}")
        return content
