"""Backup/restore around the patched bundle, plus safe file helpers.

The backup is a one-time snapshot of the untouched bundle.  Every patch
run re-reads it as the source text, so re-applying with an updated
dictionary always starts from the original file.
"""

import logging
import os
from typing import Optional

from . import BACKUP_SUFFIX, TEMP_SUFFIX

log = logging.getLogger(__name__)

# Substrings any real JavaScript bundle contains
SCRIPT_MARKERS = ("function", "var", "const")


def safe_read_file(path: str) -> Optional[str]:
    """Return the file's text, or None if it is missing or unreadable."""
    if not os.path.isfile(path):
        return None
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as exc:
        log.error("Failed to read %s: %s", path, exc)
        return None


def safe_write_file(path: str, content: str) -> bool:
    """Write via a temporary sibling and rename over *path*.

    A crash mid-write leaves at worst a stray ``.temp`` file; the target is
    either the old content or the new one.
    """
    temp_path = path + TEMP_SUFFIX
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(temp_path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        os.replace(temp_path, path)
        return True
    except OSError as exc:
        log.error("Failed to write %s: %s", path, exc)
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError:
                log.warning("Could not remove %s", temp_path)
        return False


def safe_copy_file(source: str, target: str) -> bool:
    content = safe_read_file(source)
    if content is None:
        log.error("Copy failed, cannot read %s", source)
        return False
    if not safe_write_file(target, content):
        return False
    log.debug("Copied %s -> %s", source, target)
    return True


def looks_like_script(content: str) -> bool:
    """Coarse check that *content* is JavaScript source, not a proof."""
    return any(marker in content for marker in SCRIPT_MARKERS)


def validate_file(path: str, is_script: bool = True) -> bool:
    """True if *path* exists, is non-empty and (for scripts) looks like JS."""
    if not os.path.isfile(path):
        log.debug("File does not exist: %s", path)
        return False
    try:
        if os.path.getsize(path) == 0:
            log.warning("File is empty: %s", path)
            return False
    except OSError as exc:
        log.error("Cannot stat %s: %s", path, exc)
        return False
    if is_script:
        content = safe_read_file(path)
        if content is None or not looks_like_script(content):
            log.warning("File does not look like a JavaScript file: %s", path)
            return False
    log.debug("File validated: %s", path)
    return True


class BackupManager:
    """Owns the target/backup file pair for one patch target."""

    def __init__(self, target_path: str, backup_path: str = ""):
        self.target_path = target_path
        self.backup_path = backup_path or target_path + BACKUP_SUFFIX

    def has_backup(self) -> bool:
        return os.path.isfile(self.backup_path)

    def ensure_backup(self) -> bool:
        """Snapshot the target on first use; never overwrite an existing backup."""
        if self.has_backup():
            log.info("Backup already exists, skipping: %s", self.backup_path)
            return True
        log.info("First run, backing up original file...")
        if not safe_copy_file(self.target_path, self.backup_path):
            log.error("Failed to create backup %s", self.backup_path)
            return False
        log.info("Backup created: %s", self.backup_path)
        return True

    def read_pristine(self) -> Optional[str]:
        """Source text for a patch run: the backup, never the live file."""
        return safe_read_file(self.backup_path)

    def write_result(self, content: str) -> bool:
        return safe_write_file(self.target_path, content)

    def restore_from_backup(self) -> bool:
        """Copy the backup over the target, keeping the backup."""
        if not safe_copy_file(self.backup_path, self.target_path):
            log.error("Failed to restore %s from backup", self.target_path)
            return False
        log.info("Restored original file from backup")
        return True

    def restore(self) -> bool:
        """Restore the original and delete the backup.

        Succeeds without doing anything when there is no backup.  If the
        copy fails the backup is kept.
        """
        if not self.has_backup():
            log.warning("No backup found, nothing to restore")
            return True
        if not self.restore_from_backup():
            return False
        try:
            os.remove(self.backup_path)
            log.info("Backup deleted: %s", self.backup_path)
        except OSError as exc:
            log.warning("Could not delete backup %s: %s", self.backup_path, exc)
        return True
