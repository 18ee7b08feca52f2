"""Locate the editor installation, its workbench bundle and its version."""

import json
import logging
import os
import re
import sys
from dataclasses import dataclass, field
from typing import Optional

from . import BACKUP_SUFFIX, JS_FILE_NAME, JS_FILE_SUB_PATH

log = logging.getLogger(__name__)

# Preference when several candidate bundles exist
_TARGET_PRIORITY = {
    "desktop": 100,
    "workbench": 80,
    "main": 60,
    "web": 40,
    "unknown": 20,
}


@dataclass
class TargetPaths:
    app_path: str
    target_file: str
    backup_file: str


@dataclass
class TargetFile:
    path: str
    size: int
    type: str


@dataclass
class VersionInfo:
    version: str = "unknown"
    build_number: str = "unknown"
    target_files: list = field(default_factory=list)   # TargetFile items
    issues: list = field(default_factory=list)

    @property
    def is_supported(self) -> bool:
        return bool(self.target_files)


@dataclass
class Compatibility:
    is_compatible: bool = False
    confidence: int = 0
    warnings: list = field(default_factory=list)
    recommendations: list = field(default_factory=list)


def potential_paths(system: str = sys.platform, env=None) -> list:
    """Default install locations for *system* (a ``sys.platform`` value)."""
    env = os.environ if env is None else env
    home = os.path.expanduser("~")
    if system == "darwin":
        return ["/Applications/Cursor.app"]
    if system.startswith("win"):
        candidates = [
            env.get("LOCALAPPDATA") and os.path.join(env["LOCALAPPDATA"], "Programs", "Cursor"),
            env.get("ProgramFiles") and os.path.join(env["ProgramFiles"], "Cursor"),
            env.get("ProgramFiles(x86)") and os.path.join(env["ProgramFiles(x86)"], "Cursor"),
            os.path.join(home, "AppData", "Local", "Programs", "Cursor"),
        ]
        return [c for c in candidates if c]
    return [
        os.path.join(home, ".local/share/cursor"),
        "/opt/cursor",
        "/usr/local/cursor",
        os.path.join(home, ".cursor"),
    ]


def find_install_path(custom: str = "", system: str = sys.platform) -> Optional[str]:
    """Return *custom* if it exists, else the first default location found."""
    if custom:
        if os.path.exists(custom):
            log.info("Using custom path: %s", custom)
            return custom
        log.error("Custom path does not exist: %s", custom)
        return None

    for path in potential_paths(system):
        if os.path.exists(path):
            log.info("Detected installation: %s", path)
            return path

    log.error("Could not detect the installation path; pass it explicitly")
    return None


def _app_path(install_path: str, system: str) -> str:
    if system == "darwin":
        return os.path.join(install_path, "Contents", "Resources", "app")
    return os.path.join(install_path, "resources", "app")


def platform_paths(install_path: str, system: str = sys.platform) -> TargetPaths:
    """Resolve the app folder, the bundle to patch and its backup."""
    app_path = _app_path(install_path, system)
    target = os.path.join(app_path, *JS_FILE_SUB_PATH, JS_FILE_NAME)
    return TargetPaths(app_path, target, target + BACKUP_SUFFIX)


def resolve_target(path: str, system: str = sys.platform) -> str:
    """Accept either the bundle itself or an installation folder."""
    if os.path.isfile(path):
        return path
    return platform_paths(path, system).target_file


def _file_type(path: str) -> str:
    name = os.path.basename(path)
    if "workbench.desktop" in name:
        return "desktop"
    if "workbench.web" in name:
        return "web"
    if "workbench" in name:
        return "workbench"
    if "main" in name:
        return "main"
    return "unknown"


def find_target_files(install_path: str, system: str = sys.platform) -> list:
    app_path = _app_path(install_path, system)
    candidates = [
        os.path.join(app_path, "out", "vs", "workbench", "workbench.desktop.main.js"),
        os.path.join(app_path, "out", "vs", "workbench", "workbench.web.main.js"),
        os.path.join(app_path, "out", "vs", "workbench", "workbench.main.js"),
        os.path.join(app_path, "out", "main.js"),
        os.path.join(app_path, "dist", "main.js"),
        os.path.join(app_path, "src", "main.js"),
    ]
    return [TargetFile(p, os.path.getsize(p), _file_type(p))
            for p in candidates if os.path.isfile(p)]


def _find_package_json(install_path: str) -> Optional[str]:
    for path in (
        os.path.join(install_path, "package.json"),
        os.path.join(install_path, "resources", "app", "package.json"),
        os.path.join(install_path, "Contents", "Resources", "app", "package.json"),
    ):
        if os.path.isfile(path):
            return path
    return None


def detect_version(install_path: str, system: str = sys.platform) -> VersionInfo:
    """Read version/build from package.json and list candidate bundles."""
    info = VersionInfo()
    package_json = _find_package_json(install_path)
    if package_json:
        try:
            with open(package_json, "r", encoding="utf-8") as f:
                data = json.load(f)
            info.version = str(data.get("version") or "unknown")
            info.build_number = str(data.get("build") or "unknown")
        except (OSError, json.JSONDecodeError) as exc:
            info.issues.append(f"Version detection failed: {exc}")
    else:
        log.warning("package.json not found under %s", install_path)

    info.target_files = find_target_files(install_path, system)
    if not info.target_files:
        info.issues.append("No supported target file found")
    return info


def parse_version(version: str) -> float:
    """``"1.4.2"`` → ``1.4``; 0.0 when unparseable."""
    m = re.match(r"^(\d+)\.(\d+)\.(\d+)", version)
    if m:
        return float(f"{m.group(1)}.{m.group(2)}")
    return 0.0


def validate_compatibility(info: VersionInfo) -> Compatibility:
    result = Compatibility()
    if not info.target_files:
        result.recommendations.append(
            "No usable target file found; check the installation")
        return result

    result.is_compatible = True
    result.confidence = min(len(info.target_files) * 25, 100)
    if info.version != "unknown" and parse_version(info.version) >= 1.0:
        result.confidence = min(result.confidence + 20, 100)

    if result.confidence < 50:
        result.warnings.append("Low compatibility confidence, proceed with care")
    if len(info.target_files) > 1:
        result.recommendations.append(
            "Several target files found; the best match will be used")
    return result


def select_best_target(target_files: list) -> Optional[TargetFile]:
    if not target_files:
        return None
    best = target_files[0]
    for current in target_files[1:]:
        if _TARGET_PRIORITY.get(current.type, 0) > _TARGET_PRIORITY.get(best.type, 0):
            best = current
    return best
