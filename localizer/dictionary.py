"""Translation dictionary store — loading, flattening and validation.

The dictionary file is a JSON object of named categories, each a flat
object mapping original English UI text to its translation::

    {
      "menu": {"File": "文件", "Edit": "编辑"},
      "dialog": {"OK": "确定"}
    }
"""

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from . import MAX_TRANSLATION_LENGTH, MIN_TRANSLATIONS_REQUIRED

log = logging.getLogger(__name__)


class DictionaryError(Exception):
    """Base class for dictionary loading failures."""


class DictionaryNotFoundError(DictionaryError):
    """The dictionary file does not exist."""


class DictionaryParseError(DictionaryError):
    """The dictionary file is not well-formed JSON."""


class DictionaryStructureError(DictionaryError):
    """Well-formed JSON, but not a category → {original: translated} object."""


class KeyCollisionError(DictionaryError):
    """Raised by a strict flatten when two categories define the same key."""

    def __init__(self, key: str, first: str, second: str):
        super().__init__(
            f'Key "{key}" is defined in both "{first}" and "{second}"')
        self.key = key
        self.categories = (first, second)


class MergePolicy(Enum):
    """How flattening resolves the same original text in several categories."""
    PERMISSIVE = "permissive"   # later category wins
    STRICT = "strict"           # collision is an error


def _empty_stats() -> dict:
    return {
        "totalGroups": 0,
        "totalEntries": 0,
        "emptyEntries": 0,
        "duplicateKeys": 0,
        "longTranslations": 0,
        "specialChars": 0,
        "untranslatedEntries": 0,
    }


@dataclass
class ValidationReport:
    """Outcome of validate_groups(): human-readable issues plus counters."""
    issues: list = field(default_factory=list)
    stats: dict = field(default_factory=_empty_stats)
    untranslated: list = field(default_factory=list)  # UntranslatedTerm items

    @property
    def is_valid(self) -> bool:
        return not self.issues


class _Pairs(list):
    """Raw JSON object kept as ordered (key, value) pairs."""


def _to_plain(value):
    if isinstance(value, _Pairs):
        return {k: _to_plain(v) for k, v in value}
    if isinstance(value, list):
        return [_to_plain(v) for v in value]
    return value


def _parse_groups(raw: str) -> tuple:
    """Parse JSON text, returning (groups, duplicate "category.key" paths).

    JSON objects may repeat a key; ``json`` silently keeps the last one, so
    the raw pairs are inspected first to report those duplicates.
    """
    parsed = json.loads(raw, object_pairs_hook=_Pairs)
    duplicates = []
    if isinstance(parsed, _Pairs):
        seen = set()
        for category, group in parsed:
            if not isinstance(group, _Pairs):
                continue
            for key, _value in group:
                full_key = (category, key)
                if full_key in seen:
                    duplicates.append(f"{category}.{key}")
                else:
                    seen.add(full_key)
    return _to_plain(parsed), duplicates


def check_structure(groups) -> Optional[str]:
    """Return a description of what is wrong with *groups*, or None if usable."""
    if not isinstance(groups, dict):
        return "Top-level value is not an object"
    if not groups:
        return "Dictionary has no categories"
    for name, group in groups.items():
        if not isinstance(group, dict):
            return f'Category "{name}" is not an object'
    return None


def flatten_groups(groups: dict, policy: MergePolicy = MergePolicy.PERMISSIVE,
                   warnings: Optional[list] = None) -> dict:
    """Collapse categories into a single original → translated mapping.

    Categories and entries are visited in stored order.  Entries whose value
    is missing, not a string or blank are skipped and reported in
    *warnings* as ``"category.key"``.  With the permissive policy a key
    defined by several categories takes the value of the last one; with the
    strict policy that raises KeyCollisionError.
    """
    flat = {}
    owner = {}
    for category, group in groups.items():
        if not isinstance(group, dict):
            continue
        for key, value in group.items():
            if not isinstance(value, str) or not value.strip():
                log.warning("Skipping invalid translation: %s.%s", category, key)
                if warnings is not None:
                    warnings.append(f"{category}.{key}")
                continue
            if key in owner and owner[key] != category:
                if policy is MergePolicy.STRICT:
                    raise KeyCollisionError(key, owner[key], category)
                log.debug('"%s" from "%s" overrides "%s"', key, category, owner[key])
            flat[key] = value
            owner[key] = category
    return flat


def validate_groups(groups, min_entries: int = MIN_TRANSLATIONS_REQUIRED,
                    max_length: int = MAX_TRANSLATION_LENGTH,
                    duplicates=(), common_terms=None) -> ValidationReport:
    """Check every (category, key, value) and collect issues and counters.

    *duplicates* are ``"category.key"`` paths repeated in the raw file (see
    TranslationDictionary.load).  When *common_terms* is given, terms from
    that list with no translation are reported as well.
    """
    report = ValidationReport()
    stats = report.stats

    if not isinstance(groups, dict):
        report.issues.append("Dictionary format is invalid: top-level value is not an object")
        return report
    if not groups:
        report.issues.append("Dictionary has no categories")
        return report

    stats["totalGroups"] = len(groups)
    seen = set()
    duplicate_keys = set()   # (category, key) pairs repeated in groups
    stats["duplicateKeys"] = len(duplicates)

    for category, group in groups.items():
        if not isinstance(group, dict):
            report.issues.append(f'Category "{category}" has an invalid structure')
            continue

        for key, value in group.items():
            stats["totalEntries"] += 1

            if not key or not key.strip():
                report.issues.append(f'Empty key in category "{category}"')
                stats["emptyEntries"] += 1
                continue

            full_key = (category, key)
            if full_key in seen:
                duplicate_keys.add(full_key)
                stats["duplicateKeys"] += 1
            else:
                seen.add(full_key)

            if not isinstance(value, str) or not value:
                report.issues.append(
                    f'Translation of "{key}" in category "{category}" is invalid')
                stats["emptyEntries"] += 1
                continue

            if not value.strip():
                report.issues.append(
                    f'Translation of "{key}" in category "{category}" is empty')
                stats["emptyEntries"] += 1
                continue

            if len(value) > max_length:
                report.issues.append(
                    f'Translation of "{key}" in category "{category}" is too long '
                    f"({len(value)} characters)")
                stats["longTranslations"] += 1

            if "\\n" in value or "\\t" in value or "\\r" in value:
                report.issues.append(
                    f'Translation of "{key}" in category "{category}" '
                    f"contains escape sequences")
                stats["specialChars"] += 1

    duplicate_count = len(set(duplicates)) + len(duplicate_keys)
    if duplicate_count:
        report.issues.append(f"Found {duplicate_count} duplicate keys")

    if stats["totalEntries"] < min_entries:
        report.issues.append(
            f"Too few translation entries ({stats['totalEntries']} < {min_entries}), "
            f"coverage will be poor")

    if common_terms is not None:
        from .coverage import detect_untranslated
        report.untranslated = detect_untranslated(flatten_groups(groups), common_terms)
        stats["untranslatedEntries"] = len(report.untranslated)
        if report.untranslated:
            report.issues.append(
                f"Found {len(report.untranslated)} untranslated common terms")

    return report


def fix_common_issues(groups: dict) -> list:
    """Drop blank/invalid translations and empty categories in place.

    Returns a description of every fix applied (empty when nothing changed).
    """
    fixes = []
    for category, group in list(groups.items()):
        if not isinstance(group, dict):
            continue
        for key, value in list(group.items()):
            if not isinstance(value, str) or not value.strip():
                del group[key]
                fixes.append(f"Removed empty translation: {category}.{key}")

    for category, group in list(groups.items()):
        if not isinstance(group, dict) or not group:
            del groups[category]
            fixes.append(f"Removed empty category: {category}")
    return fixes


@dataclass
class TranslationDictionary:
    """A categorised translation dictionary backed by a JSON file."""
    path: str = ""
    groups: dict = field(default_factory=dict)
    duplicates: list = field(default_factory=list)  # "category.key" repeated in the file

    @property
    def categories(self) -> list:
        return list(self.groups.keys())

    @property
    def total_entries(self) -> int:
        return sum(len(g) for g in self.groups.values() if isinstance(g, dict))

    @classmethod
    def load(cls, path: str) -> "TranslationDictionary":
        """Read and structurally check a dictionary file.

        Raises DictionaryNotFoundError, DictionaryParseError or
        DictionaryStructureError.
        """
        if not os.path.isfile(path):
            raise DictionaryNotFoundError(f"Dictionary file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as exc:
            raise DictionaryNotFoundError(f"Cannot read {path}: {exc}") from exc
        try:
            groups, duplicates = _parse_groups(raw)
        except json.JSONDecodeError as exc:
            raise DictionaryParseError(f"Invalid JSON in {path}: {exc}") from exc

        problem = check_structure(groups)
        if problem:
            raise DictionaryStructureError(f"{path}: {problem}")
        return cls(path=path, groups=groups, duplicates=duplicates)

    def save(self, path: str = ""):
        """Write the dictionary as 2-space indented JSON."""
        path = path or self.path
        os.makedirs(os.path.dirname(path) if os.path.dirname(path) else ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.groups, f, ensure_ascii=False, indent=2)
            f.write("\n")

    def flatten(self, policy: MergePolicy = MergePolicy.PERMISSIVE,
                warnings: Optional[list] = None) -> dict:
        return flatten_groups(self.groups, policy, warnings)

    def validate(self, min_entries: int = MIN_TRANSLATIONS_REQUIRED,
                 common_terms=None) -> ValidationReport:
        return validate_groups(self.groups, min_entries=min_entries,
                               duplicates=self.duplicates,
                               common_terms=common_terms)


def load_dictionary(path: str) -> Optional[TranslationDictionary]:
    """Load a dictionary, logging and returning None on any failure."""
    try:
        return TranslationDictionary.load(path)
    except DictionaryError as exc:
        log.error("Failed to load translations: %s", exc)
        return None
