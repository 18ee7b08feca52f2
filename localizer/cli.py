"""
Cursor Localizer CLI.

Usage:
    cursor-localizer apply [PATH] [--mode bilingual] [--fast]
    cursor-localizer restore [PATH]
    cursor-localizer validate [--fix]
    cursor-localizer merge
    cursor-localizer detect
    cursor-localizer diagnose [PATH] [--fix]
    cursor-localizer version [PATH]
    cursor-localizer stats

PATH is either the installation folder or the bundle file itself; when
omitted the saved install path or the platform default is used.
"""

import argparse
import logging
import os
import sys
from typing import Optional

from . import UNTRANSLATED_REPORT, __version__
from .coverage import (
    COMMON_UI_TERMS, build_untranslated_report, coverage_report,
    write_untranslated_report,
)
from .dictionary import (
    DictionaryError, TranslationDictionary, fix_common_issues,
)
from .merger import DictionaryMerger
from .path_finder import (
    detect_version, find_install_path, resolve_target, select_best_target,
    validate_compatibility,
)
from .patcher import PatchOptions, Patcher
from .settings import Settings

log = logging.getLogger(__name__)


def _configure_logging(verbosity: int):
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _resolve_install(args, settings: Settings) -> Optional[str]:
    return find_install_path(args.path or settings.install_path)


def _load_dictionary(settings: Settings) -> Optional[TranslationDictionary]:
    try:
        return TranslationDictionary.load(settings.dictionary_path)
    except DictionaryError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return None


def _print_list(title: str, items: list, limit: int = 10):
    if not items:
        return
    print(f"\n{title}:")
    for i, item in enumerate(items[:limit], 1):
        print(f"  {i}. {item}")
    if len(items) > limit:
        print(f"  ... and {len(items) - limit} more")


def run_pending_merge(translations_dir: str):
    """Fold yes-zh-cn.json into zh-cn.json if it exists; never fatal."""
    merger = DictionaryMerger(translations_dir)
    if not merger.has_pending():
        return None
    outcome = merger.run()
    if outcome.merged:
        print(f"Merged pending translations: "
              f"{outcome.stats['added']['translations']} new entries")
    elif not outcome.success:
        print(f"Warning: translation merge failed ({outcome.reason})", file=sys.stderr)
    return outcome


def cmd_apply(args, settings: Settings) -> int:
    """Apply the dictionary to the bundle."""
    run_pending_merge(settings.translations_dir)

    install = _resolve_install(args, settings)
    if not install:
        print("Error: installation not found, pass its path", file=sys.stderr)
        return 1

    if os.path.isdir(install):
        compatibility = validate_compatibility(detect_version(install))
        if compatibility.is_compatible:
            print(f"Version check passed (confidence {compatibility.confidence}%)")
        else:
            print("Warning: version compatibility check failed", file=sys.stderr)
            if os.environ.get("CI") or os.environ.get("NON_INTERACTIVE"):
                print("Error: incompatible version in non-interactive mode", file=sys.stderr)
                return 1

    options = PatchOptions(
        mode=args.mode or settings.mode,
        fast=args.fast or settings.fast,
        merge_policy="strict" if args.strict else settings.merge_policy,
        min_entries=settings.min_entries,
    )
    outcome = Patcher(settings.dictionary_path, options).apply(resolve_target(install))

    print(f"Target: {outcome.target_file}")
    print(f"Replaced: {outcome.hits}, not found: {len(outcome.misses)}, "
          f"errors: {len(outcome.errors)}")
    _print_list("Not found", outcome.misses)
    _print_list("Errors", outcome.errors, limit=3)
    if not outcome.success:
        print(f"Error: {outcome.message}", file=sys.stderr)
        return 1
    print(f"{outcome.message}. Restart the editor completely to see the changes.")
    return 0


def cmd_restore(args, settings: Settings) -> int:
    """Restore the original bundle."""
    install = _resolve_install(args, settings)
    if not install:
        print("Error: installation not found, pass its path", file=sys.stderr)
        return 1
    outcome = Patcher.restore(resolve_target(install))
    if not outcome.success:
        print(f"Error: {outcome.message}", file=sys.stderr)
        return 1
    print(outcome.message)
    return 0


def cmd_validate(args, settings: Settings) -> int:
    """Validate (and optionally fix) the dictionary file."""
    dictionary = _load_dictionary(settings)
    if dictionary is None:
        return 1

    if args.fix:
        fixes = fix_common_issues(dictionary.groups)
        if not fixes:
            print("No problems to fix")
            return 0
        for fix in fixes:
            print(fix)
        try:
            dictionary.save()
        except OSError as exc:
            print(f"Error: could not write {dictionary.path}: {exc}", file=sys.stderr)
            return 1
        print(f"Fixed {len(fixes)} problems")
        return 0

    report = dictionary.validate(min_entries=settings.min_entries,
                                 common_terms=COMMON_UI_TERMS)
    stats = report.stats
    print("=== Translation file validation ===")
    print("Valid" if report.is_valid else "Validation failed")
    print(f"\nCategories: {stats['totalGroups']}")
    print(f"Entries: {stats['totalEntries']}")
    print(f"Untranslated common terms: {stats['untranslatedEntries']}")
    _print_list("Issues", report.issues, limit=50)
    _print_list("Untranslated", [u.term for u in report.untranslated], limit=50)

    coverage = coverage_report(dictionary.flatten())
    print("\nCoverage:")
    print(f"  Basic vocabulary: {coverage['basic']}%")
    print(f"  UI elements: {coverage['ui']}%")
    print(f"  Menu items: {coverage['menu']}%")
    return 0 if report.is_valid else 1


def cmd_merge(args, settings: Settings) -> int:
    """Merge yes-zh-cn.json into zh-cn.json."""
    outcome = DictionaryMerger(settings.translations_dir).run()
    if not outcome.success:
        print(f"Error: merge failed ({outcome.reason})", file=sys.stderr)
        return 1
    if not outcome.merged:
        print("Nothing to merge")
        return 0
    stats = outcome.stats
    print(f"Before: {stats['before']['total_entries']} entries, "
          f"{stats['before']['total_categories']} categories")
    print(f"After: {stats['after']['total_entries']} entries, "
          f"{stats['after']['total_categories']} categories")
    print(f"Added: {stats['added']['translations']} entries, "
          f"{stats['added']['categories']} categories")
    _print_list("Type changes (addition won)", stats["conflicts"])
    return 0


def cmd_detect(args, settings: Settings) -> int:
    """Write no.json with the entries that still need a translation."""
    dictionary = _load_dictionary(settings)
    if dictionary is None:
        return 1
    report = build_untranslated_report(dictionary.groups,
                                       os.path.basename(dictionary.path))
    count = report["metadata"]["missing_translations_count"]
    if count == 0:
        print("No untranslated entries found")
        return 0
    path = os.path.join(settings.translations_dir, UNTRANSLATED_REPORT)
    if not write_untranslated_report(path, report):
        print(f"Error: could not write {path}", file=sys.stderr)
        return 1
    print(f"Found {count} untranslated entries, written to {path}")
    for item in report["statistics"]["categories_breakdown"]:
        print(f"  {item['category']}: {item['count']}")
    return 0


def cmd_diagnose(args, settings: Settings) -> int:
    """Check the installation and localization state."""
    install = _resolve_install(args, settings)
    if not install:
        print("Error: installation not found, pass its path", file=sys.stderr)
        return 1

    if args.fix and not Patcher.fix_common_issues(install):
        print("Error: could not fix the installation", file=sys.stderr)
        return 1

    diagnosis = Patcher.diagnose(install)
    status = Patcher.verify_localization(resolve_target(install))
    print("=" * 50)
    print("Diagnosis report")
    print("=" * 50)
    print("\nInstallation: " + ("OK" if diagnosis.is_valid else "PROBLEMS"))
    for issue in diagnosis.issues:
        print(f"  - {issue}")
    for tip in diagnosis.suggestions:
        print(f"  [TIP] {tip}")
    print("Localization: " + ("applied" if status.is_localized else "not detected"))
    print("Backup: " + ("present" if status.has_backup else "missing"))
    return 0 if diagnosis.is_valid else 1


def cmd_version(args, settings: Settings) -> int:
    """Report the detected version and patch compatibility."""
    install = _resolve_install(args, settings)
    if not install:
        print("Error: installation not found, pass its path", file=sys.stderr)
        return 1
    info = detect_version(install)
    compatibility = validate_compatibility(info)
    best = select_best_target(info.target_files)

    print(f"Path: {install}")
    print(f"Version: {info.version} (build {info.build_number})")
    print(f"Target files: {len(info.target_files)}")
    print(f"Compatible: {'yes' if compatibility.is_compatible else 'no'} "
          f"(confidence {compatibility.confidence}%)")
    if best:
        print(f"Best target: {best.path} ({best.type}, "
              f"{best.size / 1024 / 1024:.2f} MB)")
    _print_list("Warnings", compatibility.warnings)
    _print_list("Recommendations", info.issues + compatibility.recommendations)
    return 0 if compatibility.is_compatible else 1


def cmd_stats(args, settings: Settings) -> int:
    """Per-category entry counts and coverage."""
    dictionary = _load_dictionary(settings)
    if dictionary is None:
        return 1
    print(f"Dictionary: {dictionary.path}")
    for category, group in dictionary.groups.items():
        print(f"  {category}: {len(group)}")
    print(f"Total: {dictionary.total_entries} entries in "
          f"{len(dictionary.categories)} categories")
    coverage = coverage_report(dictionary.flatten())
    print("Coverage: " + ", ".join(f"{k} {v}%" for k, v in coverage.items()))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cursor-localizer",
        description="Cursor Localizer - patch the editor UI with translated text",
    )
    parser.add_argument("--version", action="version",
                        version=f"Cursor Localizer {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Show progress (-vv for debug output)")
    parser.add_argument("--translations", help="Folder containing zh-cn.json")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # === Apply ===
    apply_parser = subparsers.add_parser("apply", help="Apply the translation patch")
    apply_parser.add_argument("path", nargs="?", default="",
                              help="Installation folder or bundle file")
    apply_parser.add_argument("--mode", choices=["direct", "bilingual"],
                              help="Replace text, or keep English and add the translation")
    apply_parser.add_argument("--fast", action="store_true",
                              help="Skip file validation before and after writing")
    apply_parser.add_argument("--strict", action="store_true",
                              help="Fail if two categories define the same text")

    # === Restore ===
    restore_parser = subparsers.add_parser("restore", help="Restore the original bundle")
    restore_parser.add_argument("path", nargs="?", default="",
                                help="Installation folder or bundle file")

    # === Validate ===
    validate_parser = subparsers.add_parser("validate", help="Validate the dictionary")
    validate_parser.add_argument("--fix", action="store_true",
                                 help="Remove empty entries and categories")

    subparsers.add_parser("merge", help="Merge yes-zh-cn.json into zh-cn.json")
    subparsers.add_parser("detect", help="Write untranslated entries to no.json")

    # === Diagnose ===
    diagnose_parser = subparsers.add_parser("diagnose", help="Check installation state")
    diagnose_parser.add_argument("path", nargs="?", default="",
                                 help="Installation folder")
    diagnose_parser.add_argument("--fix", action="store_true",
                                 help="Repair damaged backup or bundle")

    version_parser = subparsers.add_parser("version", help="Check version compatibility")
    version_parser.add_argument("path", nargs="?", default="",
                                help="Installation folder")

    subparsers.add_parser("stats", help="Show dictionary statistics")
    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    settings = Settings.load()
    if args.translations:
        settings.translations_dir = args.translations
    _configure_logging(args.verbose or int(settings.verbose))

    commands = {
        "apply": cmd_apply,
        "restore": cmd_restore,
        "validate": cmd_validate,
        "merge": cmd_merge,
        "detect": cmd_detect,
        "diagnose": cmd_diagnose,
        "version": cmd_version,
        "stats": cmd_stats,
    }
    handler = commands.get(args.command)
    if handler:
        return handler(args, settings)
    print(f"Unknown command: {args.command}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
