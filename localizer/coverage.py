"""Untranslated-term detection and vocabulary coverage."""

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone

from . import CJK_RE, LATIN_RE, PRIMARY_DICTIONARY

log = logging.getLogger(__name__)

# UI vocabulary that shows up in almost every editor build
COMMON_UI_TERMS = [
    "Page Down", "Page Up", "Forward", "Back", "Tools", "View", "Help",
    "File", "Edit", "Selection", "Go", "Run", "Terminal", "Window",
    "Search", "Replace", "Find", "Navigate", "Debug", "Extensions",
    "Settings", "Preferences", "General", "Advanced", "Basic",
    "Cancel", "OK", "Apply", "Save", "Close", "Open", "Delete",
    "Copy", "Paste", "Cut", "Undo", "Redo", "Select All",
    "New File", "New Folder", "Rename", "Move", "Duplicate",
    "Import", "Export", "Upload", "Download", "Sync",
    "Login", "Logout", "Sign In", "Sign Out", "Account",
    "Profile", "Dashboard", "Home", "About", "Version",
    "Update", "Upgrade", "Install", "Uninstall", "Enable", "Disable",
]

BASIC_WORDS = [
    "Settings", "Preferences", "General", "Advanced", "Cancel", "OK", "Apply",
    "Save", "Close", "Open", "Edit", "Delete", "Add", "Remove", "Search",
    "Find", "Replace", "Copy", "Paste", "Cut", "Undo", "Redo",
]

UI_ELEMENTS = [
    "File", "Edit", "View", "Help", "Tools", "Window", "Terminal",
    "Debug", "Run", "Stop", "Start", "End", "Next", "Previous",
]

MENU_ITEMS = [
    "New File", "Open File", "Save As", "Print", "Exit", "Undo", "Redo",
    "Cut", "Copy", "Paste", "Find", "Replace", "Go To", "Select All",
]

COVERAGE_BUCKETS = {
    "basic": BASIC_WORDS,
    "ui": UI_ELEMENTS,
    "menu": MENU_ITEMS,
}


@dataclass
class UntranslatedTerm:
    term: str
    category: str = "common"


def detect_untranslated(flat: dict, terms=COMMON_UI_TERMS) -> list:
    """Return the terms from *terms* that have no translation in *flat*."""
    return [UntranslatedTerm(term) for term in terms if not flat.get(term)]


def word_coverage(words, flat: dict) -> float:
    """Fraction of *words* that have a translation, in [0, 1]."""
    if not words:
        return 0.0
    found = sum(1 for w in words if flat.get(w))
    return found / len(words)


def coverage_report(flat: dict) -> dict:
    """Score each coverage bucket as an integer percentage."""
    return {name: round(word_coverage(words, flat) * 100)
            for name, words in COVERAGE_BUCKETS.items()}


def is_translated(value: str) -> bool:
    return bool(CJK_RE.search(value))


def find_untranslated_entries(groups: dict) -> list:
    """Entries whose value is still English text.

    Returns ``(category, path, value)`` tuples for string values that contain
    Latin letters but no CJK characters.  *path* is the tuple of keys below
    the category (empty for a category that is itself a string); keys are
    kept whole, so ``"Open..."`` stays one segment.
    """
    found = []

    def walk(obj, category, path):
        for key, value in obj.items():
            key_path = path + (key,)
            if isinstance(value, str):
                if LATIN_RE.search(value) and not is_translated(value):
                    found.append((category, key_path, value))
            elif isinstance(value, dict):
                walk(value, category, key_path)

    for category, group in groups.items():
        if isinstance(group, dict):
            walk(group, category, ())
        elif isinstance(group, str) and LATIN_RE.search(group) and not is_translated(group):
            found.append((category, (), group))
    return found


def build_untranslated_report(groups: dict, source_name: str = PRIMARY_DICTIONARY) -> dict:
    """Build the no.json payload: metadata, pruned translation tree, statistics."""
    missing = find_untranslated_entries(groups)

    tree = {}
    breakdown = {}
    for category, path, value in missing:
        breakdown[category] = breakdown.get(category, 0) + 1
        if not path:
            tree[category] = value
            continue
        node = tree.setdefault(category, {})
        for part in path[:-1]:
            node = node.setdefault(part, {})
        node[path[-1]] = value

    return {
        "metadata": {
            "created_at": datetime.now(timezone.utc).isoformat(),
            "source_file": source_name,
            "missing_translations_count": len(missing),
            "description": "Entries that still need a translation",
        },
        "translations": tree,
        "statistics": {
            "total_missing": len(missing),
            "categories": len(breakdown),
            "categories_breakdown": [
                {"category": c, "count": n} for c, n in breakdown.items()
            ],
        },
    }


def write_untranslated_report(path: str, report: dict) -> bool:
    """Write *report* as 2-space JSON; False (logged) on failure."""
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(report, f, ensure_ascii=False, indent=2)
    except OSError as exc:
        log.error("Failed to write %s: %s", path, exc)
        return False
    log.info("Wrote %d untranslated entries to %s",
             report["metadata"]["missing_translations_count"], path)
    return True
