"""Cursor Localizer — patches the editor's workbench bundle with translated UI text."""

import re

__version__ = "2.1.0"

# Bundle that holds the workbench UI strings, relative to resources/app
JS_FILE_NAME = "workbench.desktop.main.js"
JS_FILE_SUB_PATH = ("out", "vs", "workbench")

BACKUP_SUFFIX = ".original"   # pristine copy next to the target file
TEMP_SUFFIX = ".temp"         # sibling used for atomic writes

MAX_TRANSLATION_LENGTH = 500
MIN_TRANSLATIONS_REQUIRED = 10

PRIMARY_DICTIONARY = "zh-cn.json"
PENDING_DICTIONARY = "yes-zh-cn.json"
UNTRANSLATED_REPORT = "no.json"

# CJK Unified Ideographs
CJK_RE = re.compile(r"[一-鿿]")
LATIN_RE = re.compile(r"[A-Za-z]")
