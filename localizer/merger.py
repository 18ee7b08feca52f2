"""Deep-merge of pending translation additions into the primary dictionary."""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Optional

from . import PENDING_DICTIONARY, PRIMARY_DICTIONARY
from .backup import safe_read_file, safe_write_file

log = logging.getLogger(__name__)


@dataclass
class TranslationStats:
    total_entries: int = 0
    total_categories: int = 0


@dataclass
class MergeResult:
    """A merged dictionary with before/after leaf counts."""
    merged: dict
    before: TranslationStats
    after: TranslationStats
    conflicts: list = field(default_factory=list)  # dotted paths whose type changed

    @property
    def added_translations(self) -> int:
        return self.after.total_entries - self.before.total_entries

    @property
    def added_categories(self) -> int:
        return self.after.total_categories - self.before.total_categories


@dataclass
class MergeChange:
    """One leaf the addition would introduce or overwrite."""
    category: str
    key: str
    current: Optional[str]   # None when the key is new
    incoming: object


@dataclass
class MergeOutcome:
    success: bool
    merged: bool
    reason: str
    stats: Optional[dict] = None


def _is_object(value) -> bool:
    return isinstance(value, dict)


def deep_merge(primary: dict, addition: dict, conflicts: Optional[list] = None,
               _prefix: str = "") -> dict:
    """Return a new dict with *addition* merged over *primary*.

    Objects present on both sides merge key by key; anything else (scalars,
    lists, or an object meeting a scalar) is replaced by the addition's
    value.  Object/scalar replacements are appended to *conflicts* as
    dotted paths but are not rejected.
    """
    result = dict(primary)
    for key, value in addition.items():
        path = f"{_prefix}.{key}" if _prefix else key
        current = result.get(key)
        if _is_object(value) and _is_object(current):
            result[key] = deep_merge(current, value, conflicts, path)
            continue
        if (conflicts is not None and key in result
                and _is_object(value) != _is_object(current)):
            conflicts.append(path)
        if _is_object(value):
            result[key] = deep_merge({}, value, conflicts, path)
        else:
            result[key] = value
    return result


def _count_leaves(value) -> int:
    if isinstance(value, str):
        return 1
    if isinstance(value, dict):
        return sum(_count_leaves(v) for v in value.values())
    return 0


def count_translations(translations: dict) -> TranslationStats:
    """Count string-valued leaves and top-level object categories."""
    stats = TranslationStats()
    for items in translations.values():
        if isinstance(items, dict):
            stats.total_categories += 1
        stats.total_entries += _count_leaves(items)
    return stats


def merge_dictionaries(primary: dict, addition: dict) -> MergeResult:
    conflicts = []
    merged = deep_merge(primary, addition, conflicts)
    for path in conflicts:
        log.warning("Type changed while merging %s; addition wins", path)
    return MergeResult(
        merged=merged,
        before=count_translations(primary),
        after=count_translations(merged),
        conflicts=conflicts,
    )


def diff_dictionaries(primary: dict, addition: dict) -> list:
    """List the category entries *addition* would add or change."""
    changes = []
    for category, group in addition.items():
        current_group = primary.get(category)
        if not isinstance(group, dict):
            if current_group != group:
                changes.append(MergeChange(category, "", current_group, group))
            continue
        if not isinstance(current_group, dict):
            current_group = {}
        for key, value in group.items():
            current = current_group.get(key)
            if current != value:
                changes.append(MergeChange(category, key, current, value))
    return changes


def select_changes(changes: list) -> dict:
    """Build an addition dict containing only the given MergeChange rows."""
    addition = {}
    for change in changes:
        if not change.key:
            addition[change.category] = change.incoming
        else:
            addition.setdefault(change.category, {})[change.key] = change.incoming
    return addition


class DictionaryMerger:
    """Folds ``yes-zh-cn.json`` into ``zh-cn.json`` before a patch run.

    The pending file is left in place afterwards.
    """

    def __init__(self, translations_dir: str):
        self.translations_dir = translations_dir
        self.primary_file = os.path.join(translations_dir, PRIMARY_DICTIONARY)
        self.pending_file = os.path.join(translations_dir, PENDING_DICTIONARY)
        self.backup_file = self.primary_file + ".backup"
        self.report_file = os.path.join(translations_dir, "merge-report.json")
        self.merge_log = []

    def has_pending(self) -> bool:
        return os.path.isfile(self.pending_file)

    def _parse_json_file(self, path: str) -> Optional[dict]:
        content = safe_read_file(path)
        if content is None:
            self.merge_log.append({"type": "READ_ERROR", "file": path})
            return None
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            log.error("JSON parse failed: %s - %s", path, exc)
            self.merge_log.append({
                "type": "JSON_PARSE_ERROR", "file": path, "error": str(exc),
            })
            return None

    def create_backup(self) -> bool:
        """Copy the current primary file to ``zh-cn.json.backup``."""
        if not os.path.isfile(self.primary_file):
            log.warning("%s does not exist, nothing to back up", self.primary_file)
            return True
        content = safe_read_file(self.primary_file)
        if content is None:
            return False
        return safe_write_file(self.backup_file, content)

    def check_and_merge(self, addition: Optional[dict] = None) -> MergeOutcome:
        """Merge the pending file (or an explicit *addition*) into the primary."""
        if addition is None:
            if not self.has_pending():
                log.info("%s not found, skipping merge", PENDING_DICTIONARY)
                return MergeOutcome(True, False, "no pending file")
            addition = self._parse_json_file(self.pending_file)
            if not isinstance(addition, dict):
                return MergeOutcome(False, False, "cannot read pending file")

        primary = self._parse_json_file(self.primary_file)
        if not isinstance(primary, dict):
            return MergeOutcome(False, False, "cannot read primary file")

        if not self.create_backup():
            log.warning("Backup of %s failed, merging anyway", self.primary_file)

        result = merge_dictionaries(primary, addition)
        log.info("Before merge: %d entries, %d categories",
                 result.before.total_entries, result.before.total_categories)
        log.info("After merge: %d entries, %d categories",
                 result.after.total_entries, result.after.total_categories)

        content = json.dumps(result.merged, ensure_ascii=False, indent=2) + "\n"
        if not safe_write_file(self.primary_file, content):
            self.merge_log.append({"type": "WRITE_ERROR", "file": self.primary_file})
            return MergeOutcome(False, False, "write failed")

        stats = {
            "before": asdict(result.before),
            "after": asdict(result.after),
            "added": {
                "translations": result.added_translations,
                "categories": result.added_categories,
            },
            "conflicts": result.conflicts,
        }
        self.merge_log.append({
            "type": "MERGE_SUCCESS",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **stats,
        })
        return MergeOutcome(True, True, "merged", stats)

    def write_report(self, outcome: MergeOutcome) -> dict:
        report = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **asdict(outcome),
            "log": self.merge_log,
        }
        safe_write_file(self.report_file,
                        json.dumps(report, ensure_ascii=False, indent=2) + "\n")
        return report

    def run(self, addition: Optional[dict] = None) -> MergeOutcome:
        """Merge, then record merge-report.json.  Never raises."""
        try:
            outcome = self.check_and_merge(addition)
        except (OSError, TypeError, ValueError) as exc:
            log.error("Merge failed: %s", exc)
            self.merge_log.append({"type": "RUNTIME_ERROR", "error": str(exc)})
            outcome = MergeOutcome(False, False, str(exc))
        self.write_report(outcome)
        if outcome.merged:
            log.info("Merged translations, %d new entries",
                     outcome.stats["added"]["translations"])
        return outcome
