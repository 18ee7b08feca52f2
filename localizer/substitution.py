"""Quote-guarded literal substitution of UI strings inside the bundle.

Only complete string literals are touched: ``"Save"`` or ``'Save'`` match
the key ``Save``, but ``"Save As"`` or ``saveButton`` do not.  Keys are
applied longest first so that a long phrase is replaced before any
shorter key it contains gets a chance to match.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

log = logging.getLogger(__name__)

PROGRESS_BATCH = 100

# Separator written between original and translation in bilingual mode.
# Two characters, so the bundle's string literal keeps a \n escape.
BILINGUAL_SEPARATOR = "\\n"


class SubstitutionMode(Enum):
    DIRECT = "direct"         # replace the English text
    BILINGUAL = "bilingual"   # keep English, add translation on a new line


@dataclass
class SubstitutionResult:
    text: str
    hits: int = 0
    misses: list = field(default_factory=list)
    errors: list = field(default_factory=list)


# Common terms used when the dictionary produced no replacements at all
FALLBACK_TRANSLATIONS = {
    "Settings": "设置",
    "Preferences": "偏好设置",
    "General": "常规",
    "Advanced": "高级",
    "Cancel": "取消",
    "OK": "确定",
    "Apply": "应用",
    "Save": "保存",
    "Close": "关闭",
    "Open": "打开",
    "Edit": "编辑",
    "Delete": "删除",
    "Add": "添加",
    "Remove": "移除",
    "Search": "搜索",
    "Find": "查找",
    "Replace": "替换",
    "Copy": "复制",
    "Paste": "粘贴",
    "Cut": "剪切",
    "Undo": "撤销",
    "Redo": "重做",
    "File": "文件",
    "View": "视图",
    "Help": "帮助",
    "Tools": "工具",
    "Window": "窗口",
    "Terminal": "终端",
    "Debug": "调试",
    "Run": "运行",
    "Stop": "停止",
    "Start": "开始",
    "End": "结束",
    "Next": "下一个",
    "Previous": "上一个",
    "Back": "返回",
    "Forward": "前进",
    "Home": "主页",
    "Page Up": "向上翻页",
    "Page Down": "向下翻页",
    "Insert": "插入",
    "Enter": "回车",
    "Tab": "制表符",
    "Space": "空格",
    "Escape": "退出",
}

# First 22 entries: the basic vocabulary merged into a failed dictionary load
COMMON_FALLBACKS = dict(list(FALLBACK_TRANSLATIONS.items())[:22])


def with_fallbacks(translations: dict) -> dict:
    """Copy of *translations* with any missing common terms filled in."""
    result = dict(translations)
    for key, value in COMMON_FALLBACKS.items():
        if not result.get(key):
            result[key] = value
    return result


def build_pattern(original: str) -> re.Pattern:
    """Pattern matching *original* as a whole '...' or "..." literal."""
    return re.compile(r"([\"'])" + re.escape(original) + r"\1")


def _replacement(original: str, translated: str, mode: SubstitutionMode) -> Callable:
    if mode is SubstitutionMode.BILINGUAL:
        inner = original + BILINGUAL_SEPARATOR + translated
    else:
        inner = translated
    # A function replacement is inserted verbatim: no \1 or \g<...> expansion
    return lambda m: m.group(1) + inner + m.group(1)


def apply_substitutions(text: str, translations: dict, mode="direct",
                        progress: Optional[Callable[[int, int], None]] = None
                        ) -> SubstitutionResult:
    """Replace every quoted occurrence of each key in *text*.

    Args:
        text: Pristine bundle text.
        translations: Flattened original → translated mapping.
        mode: ``SubstitutionMode`` or its string value.
        progress: Optional ``(done, total)`` callback, called every
            PROGRESS_BATCH pairs.

    Returns:
        SubstitutionResult with the new text, the number of keys that
        matched at least once, the keys that never matched, and per-key
        error messages.  A failing key never aborts the run.
    """
    mode = SubstitutionMode(mode)
    result = SubstitutionResult(text=text)
    entries = sorted(translations.items(), key=lambda kv: len(kv[0]), reverse=True)
    total = len(entries)

    log.info("Replacing %d entries (%s mode)...", total, mode.value)
    for i, (original, translated) in enumerate(entries):
        if progress and i % PROGRESS_BATCH == 0:
            progress(i, total)
        if original == "":
            # would match every empty literal in the bundle
            result.errors.append("Skipped empty key")
            continue
        try:
            pattern = build_pattern(original)
            new_text = pattern.sub(_replacement(original, translated, mode), result.text)
        except (re.error, TypeError) as exc:
            result.errors.append(f'Error processing "{original}": {exc}')
            continue
        if new_text != result.text:
            result.hits += 1
            result.text = new_text
        else:
            result.misses.append(original)

    if progress:
        progress(total, total)
    log.info("Replaced %d, not found %d, errors %d",
             result.hits, len(result.misses), len(result.errors))
    if result.misses:
        log.debug("Not found: %s", ", ".join(result.misses[:5])
                  + ("..." if len(result.misses) > 5 else ""))
    if result.errors:
        log.warning("Substitution errors: %s", "; ".join(result.errors[:3]))
    return result
