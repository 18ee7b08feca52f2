import json
import os

import pytest
from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QMessageBox

from localizer.backup import safe_read_file
from localizer.merger import MergeChange
from localizer.patch_engine import PatchWorker
from localizer.patcher import PatchOptions, Patcher
from localizer.settings import Settings
from localizer.substitution import COMMON_FALLBACKS
from localizer.widgets.dictionary_dialog import DictionaryDialog
from localizer.widgets.main_window import MainWindow
from localizer.widgets.merge_diff_dialog import MergeDiffDialog


def test_dictionary_dialog_keeps_edits_across_categories(qtbot, sample_groups):
    dlg = DictionaryDialog(groups=sample_groups, min_entries=0)
    qtbot.addWidget(dlg)
    assert dlg.category_combo.count() == 2
    assert dlg.table.rowCount() == 6

    dlg.table.item(0, 1).setText("档案")
    dlg.category_combo.setCurrentText("common")
    assert dlg.table.rowCount() == 5
    dlg.category_combo.setCurrentText("menu")
    assert dlg.table.item(0, 1).text() == "档案"

    groups = dlg.current_groups()
    assert groups["menu"]["File"] == "档案"
    assert groups["common"] == sample_groups["common"]


def test_dictionary_dialog_drops_blank_rows(qtbot):
    dlg = DictionaryDialog(groups={"menu": {"File": "文件"}})
    qtbot.addWidget(dlg)
    dlg._add_row()
    assert dlg.current_groups() == {"menu": {"File": "文件"}}


def test_dictionary_dialog_new_category_and_defaults(qtbot):
    dlg = DictionaryDialog(groups={})
    qtbot.addWidget(dlg)
    assert dlg.add_category("extra")
    assert not dlg.add_category("extra")
    added = dlg._merge_defaults(COMMON_FALLBACKS)
    assert added == len(COMMON_FALLBACKS)
    assert dlg.current_groups()["extra"] == COMMON_FALLBACKS


def test_dictionary_dialog_save_sets_result(qtbot, sample_groups):
    dlg = DictionaryDialog(groups=sample_groups, min_entries=0)
    qtbot.addWidget(dlg)
    dlg._save()
    assert dlg.groups == sample_groups


def test_dictionary_dialog_filter(qtbot, sample_groups):
    dlg = DictionaryDialog(groups=sample_groups)
    qtbot.addWidget(dlg)
    dlg.search.setText("另存")
    hidden = [dlg.table.isRowHidden(r) for r in range(dlg.table.rowCount())]
    assert hidden.count(False) == 1


def test_merge_diff_dialog_selection(qtbot):
    changes = [
        MergeChange("menu", "File", "文件", "档案"),
        MergeChange("menu", "View", None, "查看"),
    ]
    dlg = MergeDiffDialog(changes)
    qtbot.addWidget(dlg)
    assert dlg.accepted_changes() == changes

    dlg._select_new_only()
    assert dlg.accepted_changes() == [changes[1]]

    dlg._set_all(Qt.CheckState.Unchecked)
    assert dlg.accepted_changes() == []


def test_patch_worker_apply_emits_outcome(qtbot, bundle, write_json, sample_groups):
    path = write_json("translations/zh-cn.json", sample_groups)
    worker = PatchWorker("apply", bundle, path, PatchOptions(min_entries=0))
    progress = []
    worker.progress.connect(lambda done, total: progress.append((done, total)))
    with qtbot.waitSignal(worker.finished, timeout=5000) as blocker:
        worker.run()
    assert blocker.args[0].success
    assert progress[-1] == (11, 11)
    assert '"文件"' in safe_read_file(bundle)


def test_patch_worker_restore(qtbot, bundle, write_json, sample_groups):
    original = safe_read_file(bundle)
    path = write_json("translations/zh-cn.json", sample_groups)
    PatchWorker("apply", bundle, path, PatchOptions(min_entries=0)).run()
    worker = PatchWorker("restore", bundle)
    with qtbot.waitSignal(worker.finished, timeout=5000):
        worker.run()
    assert safe_read_file(bundle) == original


def test_patch_worker_reports_unexpected_errors(qtbot, bundle, write_json, sample_groups,
                                                monkeypatch):
    def explode(self, target_file):
        raise ValueError("bad dictionary value")

    monkeypatch.setattr(Patcher, "apply", explode)
    path = write_json("translations/zh-cn.json", sample_groups)
    worker = PatchWorker("apply", bundle, path, PatchOptions(min_entries=0))
    with qtbot.waitSignal(worker.finished, timeout=5000) as blocker:
        worker.run()
    outcome = blocker.args[0]
    assert not outcome.success
    assert "bad dictionary value" in outcome.message


@pytest.fixture
def window(qtbot, tmp_path, write_json, sample_groups, install_dir, monkeypatch):
    write_json("translations/zh-cn.json", sample_groups)
    settings_file = str(tmp_path / "_settings.json")
    Settings(install_path=str(install_dir), translations_dir=str(tmp_path / "translations"),
             min_entries=0, dark_mode=False).save(settings_file)
    messages = []
    monkeypatch.setattr(QMessageBox, "information",
                        lambda *args, **kwargs: messages.append(args[2]))
    monkeypatch.setattr(QMessageBox, "warning",
                        lambda *args, **kwargs: messages.append(args[2]))
    win = MainWindow(settings_file=settings_file)
    qtbot.addWidget(win)
    win.messages = messages
    return win


def test_main_window_loads_settings(window, install_dir):
    assert window.path_edit.text() == str(install_dir)
    assert window.mode_combo.currentData() == "direct"
    assert not window.dark_action.isChecked()


def test_main_window_validate(window):
    report = window._validate_dictionary()
    assert report is not None
    assert window.messages and "Categories: 2" in window.messages[-1]


def test_main_window_detect_untranslated(window, write_json, tmp_path):
    write_json("translations/zh-cn.json", {"menu": {"File": "文件", "Edit": "Edit"}})
    window._detect_untranslated()
    with open(tmp_path / "translations" / "no.json", encoding="utf-8") as f:
        assert json.load(f)["metadata"]["missing_translations_count"] == 1


def test_main_window_diagnose(window):
    window._diagnose()
    assert "Installation: OK" in window.messages[-1]


def test_main_window_apply_runs_in_background(window, qtbot, bundle):
    with qtbot.waitSignal(window.engine.finished, timeout=10000):
        window._apply_patch()
    assert '"文件"' in safe_read_file(bundle)
    assert window.apply_action.isEnabled()
    assert os.path.isfile(bundle + ".original")


def test_main_window_saves_settings_on_close(window, tmp_path):
    window.show()
    window.mode_combo.setCurrentIndex(1)
    window.close()
    with open(tmp_path / "_settings.json", encoding="utf-8") as f:
        assert json.load(f)["mode"] == "bilingual"
