import json
import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

BUNDLE_TEXT = (
    'function render(){var a = "File"; var b = "Edit"; '
    "const c = 'Save As'; var d = \"Save\"; return \"Close Folder\";}\n"
)


@pytest.fixture
def write_json(tmp_path):
    """Write an object as JSON under tmp_path and return the path."""
    def _write(name, data):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def sample_groups():
    return {
        "menu": {
            "File": "文件",
            "Edit": "编辑",
            "Save": "保存",
            "Save As": "另存为",
            "Close Folder": "关闭文件夹",
            "Open": "打开",
        },
        "common": {
            "OK": "确定",
            "Cancel": "取消",
            "Copy": "复制",
            "Paste": "粘贴",
            "Cut": "剪切",
        },
    }


@pytest.fixture
def install_dir(tmp_path):
    """A fake Linux-style installation holding one workbench bundle."""
    root = tmp_path / "cursor"
    workbench = root / "resources" / "app" / "out" / "vs" / "workbench"
    workbench.mkdir(parents=True)
    (workbench / "workbench.desktop.main.js").write_text(BUNDLE_TEXT, encoding="utf-8")
    (root / "resources" / "app" / "package.json").write_text(
        json.dumps({"version": "1.4.2", "build": "abc123"}), encoding="utf-8")
    return root


@pytest.fixture
def bundle(install_dir):
    return str(install_dir / "resources" / "app" / "out" / "vs" / "workbench"
               / "workbench.desktop.main.js")
