"""Persistent settings stored in _settings.json next to main.py."""

import json
import logging
import os
from dataclasses import dataclass, asdict

from . import MIN_TRANSLATIONS_REQUIRED, PRIMARY_DICTIONARY

log = logging.getLogger(__name__)

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SETTINGS_FILE = os.path.join(PROJECT_ROOT, "_settings.json")
DEFAULT_TRANSLATIONS_DIR = os.path.join(PROJECT_ROOT, "translations")


@dataclass
class Settings:
    install_path: str = ""        # empty → auto-detect
    translations_dir: str = DEFAULT_TRANSLATIONS_DIR
    mode: str = "direct"          # "direct" | "bilingual"
    fast: bool = False            # skip pre/post file validation
    verbose: bool = False
    merge_policy: str = "permissive"
    min_entries: int = MIN_TRANSLATIONS_REQUIRED
    dark_mode: bool = True

    @classmethod
    def load(cls, path: str = SETTINGS_FILE) -> "Settings":
        """Load saved settings; unknown keys are ignored, bad files give defaults."""
        settings = cls()
        try:
            with open(path, "r", encoding="utf-8") as f:
                cfg = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError, OSError):
            return settings  # no saved settings, use defaults
        if not isinstance(cfg, dict):
            return settings

        if isinstance(cfg.get("install_path"), str):
            settings.install_path = cfg["install_path"]
        if isinstance(cfg.get("translations_dir"), str) and cfg["translations_dir"]:
            settings.translations_dir = cfg["translations_dir"]
        if cfg.get("mode") in ("direct", "bilingual"):
            settings.mode = cfg["mode"]
        if "fast" in cfg:
            settings.fast = bool(cfg["fast"])
        if "verbose" in cfg:
            settings.verbose = bool(cfg["verbose"])
        if cfg.get("merge_policy") in ("permissive", "strict"):
            settings.merge_policy = cfg["merge_policy"]
        if isinstance(cfg.get("min_entries"), int) and cfg["min_entries"] >= 0:
            settings.min_entries = cfg["min_entries"]
        if "dark_mode" in cfg:
            settings.dark_mode = bool(cfg["dark_mode"])
        return settings

    def save(self, path: str = SETTINGS_FILE):
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(asdict(self), f, ensure_ascii=False, indent=2)
        except OSError as exc:
            log.warning("Settings not saved: %s", exc)  # Non-critical

    @property
    def dictionary_path(self) -> str:
        return os.path.join(self.translations_dir, PRIMARY_DICTIONARY)
