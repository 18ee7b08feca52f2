"""Patch orchestration — apply, restore and diagnose a workbench bundle."""

import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Optional

from . import CJK_RE, MIN_TRANSLATIONS_REQUIRED
from .backup import BackupManager, safe_read_file, validate_file
from .dictionary import KeyCollisionError, MergePolicy, load_dictionary
from .path_finder import platform_paths
from .substitution import (
    FALLBACK_TRANSLATIONS, SubstitutionMode, apply_substitutions, with_fallbacks,
)

log = logging.getLogger(__name__)


@dataclass
class PatchOptions:
    """Per-run options, passed explicitly to every operation."""
    mode: SubstitutionMode = SubstitutionMode.DIRECT
    fast: bool = False                 # skip target validation before and after
    merge_policy: MergePolicy = MergePolicy.PERMISSIVE
    min_entries: int = MIN_TRANSLATIONS_REQUIRED

    def __post_init__(self):
        self.mode = SubstitutionMode(self.mode)
        self.merge_policy = MergePolicy(self.merge_policy)


@dataclass
class PatchOutcome:
    success: bool
    message: str = ""
    target_file: str = ""
    hits: int = 0
    misses: list = field(default_factory=list)
    errors: list = field(default_factory=list)
    used_fallback: bool = False


@dataclass
class Diagnosis:
    is_valid: bool = False
    issues: list = field(default_factory=list)
    suggestions: list = field(default_factory=list)


@dataclass
class LocalizationStatus:
    is_localized: bool = False
    has_backup: bool = False


class Patcher:
    """Applies a translation dictionary to a bundle, always from its backup."""

    def __init__(self, dictionary_path: str, options: Optional[PatchOptions] = None,
                 progress=None):
        self.dictionary_path = dictionary_path
        self.options = options or PatchOptions()
        self.progress = progress   # callable(done, total), optional

    def load_translations(self) -> Optional[dict]:
        """Load, validate and flatten the dictionary; None if unusable."""
        log.info("Reading translations: %s", self.dictionary_path)
        dictionary = load_dictionary(self.dictionary_path)
        if dictionary is None:
            return None

        try:
            translations = dictionary.flatten(self.options.merge_policy)
        except KeyCollisionError as exc:
            log.error("Strict merge policy: %s", exc)
            return None

        report = dictionary.validate(min_entries=self.options.min_entries)
        if not report.is_valid:
            log.warning("Translation validation found issues: %s",
                        ", ".join(report.issues[:5]))
        log.info("Loaded %d translation entries", len(translations))
        return translations

    def apply(self, target_file: str) -> PatchOutcome:
        """Patch *target_file* in the configured mode."""
        mode = self.options.mode
        log.info("Applying translation patch (mode: %s)...", mode.value)
        if not os.path.isfile(target_file):
            return PatchOutcome(False, f"Target file not found: {target_file}",
                                target_file)

        if not self.options.fast and not validate_file(target_file):
            return PatchOutcome(False, "Target file looks damaged or is not a script",
                                target_file)

        manager = BackupManager(target_file)
        if not manager.ensure_backup():
            return PatchOutcome(False, "Backup creation failed", target_file)

        used_fallback = False
        translations = self.load_translations()
        if translations is None:
            log.warning("Could not load translations, using basic fallback terms")
            translations = with_fallbacks({})
            used_fallback = True

        content = manager.read_pristine()
        if content is None:
            return PatchOutcome(False, "Cannot read backup file", target_file)

        result = apply_substitutions(content, translations, mode, self.progress)
        if result.hits == 0:
            log.warning("No replacements made, retrying with built-in fallback terms")
            fallback = apply_substitutions(content, FALLBACK_TRANSLATIONS, mode)
            if fallback.hits == 0:
                return PatchOutcome(
                    False, "No replacements were made; the dictionary may not "
                    "match this version", target_file,
                    misses=result.misses, errors=result.errors,
                    used_fallback=True)
            result = fallback
            used_fallback = True

        if not self._finalize(manager, result.text):
            return PatchOutcome(False, "Writing the patched file failed; original restored",
                                target_file, result.hits, result.misses,
                                result.errors, used_fallback)

        message = f"Replaced {result.hits} entries"
        if used_fallback:
            message += " (fallback dictionary, coverage will be low)"
        return PatchOutcome(True, message, target_file, result.hits,
                            result.misses, result.errors, used_fallback)

    def _finalize(self, manager: BackupManager, content: str) -> bool:
        log.info("Writing patched content to %s", manager.target_path)
        if not manager.write_result(content):
            manager.restore_from_backup()
            return False
        if not self.options.fast and not validate_file(manager.target_path):
            log.error("Patched file failed validation, restoring...")
            manager.restore_from_backup()
            return False
        return True

    @staticmethod
    def restore(target_file: str) -> PatchOutcome:
        """Put the original bundle back and delete its backup."""
        log.info("Restoring original file...")
        manager = BackupManager(target_file)
        if not manager.has_backup():
            return PatchOutcome(True, "No backup found, nothing to restore", target_file)
        if not manager.restore():
            return PatchOutcome(False, "Restore failed", target_file)
        return PatchOutcome(True, "Original file restored", target_file)

    # ── Diagnostics ───────────────────────────────────────────────

    @staticmethod
    def diagnose(install_path: str, system: str = sys.platform) -> Diagnosis:
        """Check that the installation and its bundle/backup look healthy."""
        result = Diagnosis()
        if not os.path.exists(install_path):
            result.issues.append(f"Installation path does not exist: {install_path}")
            result.suggestions.append("Make sure the editor is installed")
            return result

        paths = platform_paths(install_path, system)
        if not os.path.isdir(paths.app_path):
            result.issues.append(f"Application resources missing: {paths.app_path}")
            result.suggestions.append("The installation may be incomplete; reinstall")
            return result
        if not os.path.isfile(paths.target_file):
            result.issues.append(f"Bundle not found: {paths.target_file}")
            result.suggestions.append("This version may not be supported")
            return result
        if not validate_file(paths.target_file):
            result.issues.append("Bundle is damaged or malformed")
            result.suggestions.append("Reinstall the editor")
            return result

        if os.path.isfile(paths.backup_file) and not validate_file(paths.backup_file):
            result.issues.append("Backup file is damaged")
            result.suggestions.append("Delete the backup and re-apply the patch")

        result.is_valid = True
        return result

    @staticmethod
    def fix_common_issues(install_path: str, system: str = sys.platform) -> bool:
        """Drop a damaged backup and repair a damaged bundle from a good backup."""
        paths = platform_paths(install_path, system)
        fixed = False

        if os.path.isfile(paths.backup_file) and not validate_file(paths.backup_file):
            log.warning("Deleting damaged backup %s", paths.backup_file)
            try:
                os.remove(paths.backup_file)
                fixed = True
            except OSError as exc:
                log.error("Could not delete damaged backup: %s", exc)

        if os.path.isfile(paths.target_file) and not validate_file(paths.target_file):
            manager = BackupManager(paths.target_file, paths.backup_file)
            if manager.has_backup() and validate_file(paths.backup_file):
                if not manager.restore_from_backup():
                    return False
                fixed = True
            else:
                log.error("Cannot repair the damaged bundle; reinstall the editor")
                return False

        if os.path.isfile(paths.target_file) and not os.access(paths.target_file, os.R_OK | os.W_OK):
            log.warning("Insufficient permissions on %s, run as administrator",
                        paths.target_file)

        log.info("Fixes applied" if fixed else "Nothing to fix")
        return True

    @staticmethod
    def verify_localization(target_file: str) -> LocalizationStatus:
        status = LocalizationStatus()
        backup = BackupManager(target_file).backup_path
        status.has_backup = os.path.isfile(backup) and validate_file(backup)
        content = safe_read_file(target_file)
        if content:
            status.is_localized = bool(CJK_RE.search(content))
        return status
