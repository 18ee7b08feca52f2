"""Main application window — install picker, patch actions and log pane."""

import logging
import os

from PyQt6.QtCore import QObject, QSize, pyqtSignal
from PyQt6.QtGui import QAction
from PyQt6.QtWidgets import (
    QApplication, QCheckBox, QComboBox, QDialog, QFileDialog, QFormLayout,
    QHBoxLayout, QLabel, QLineEdit, QMainWindow, QMessageBox, QPlainTextEdit,
    QProgressBar, QPushButton, QStatusBar, QToolBar, QVBoxLayout, QWidget,
)

from .. import BACKUP_SUFFIX, UNTRANSLATED_REPORT, __version__
from ..coverage import (
    COMMON_UI_TERMS, build_untranslated_report, coverage_report,
    write_untranslated_report,
)
from ..dictionary import DictionaryError, TranslationDictionary, fix_common_issues
from ..merger import DictionaryMerger, diff_dictionaries, select_changes
from ..patch_engine import PatchEngine, PatchWorker
from ..patcher import PatchOptions, Patcher
from ..path_finder import (
    detect_version, find_install_path, resolve_target, validate_compatibility,
)
from ..settings import Settings, SETTINGS_FILE
from .dictionary_dialog import DictionaryDialog
from .merge_diff_dialog import MergeDiffDialog

log = logging.getLogger(__name__)

DARK_STYLESHEET = """
QMainWindow, QDialog, QWidget {
    background-color: #1e1e2e;
    color: #cdd6f4;
}
QMenuBar, QToolBar {
    background-color: #181825;
    color: #cdd6f4;
    border-bottom: 1px solid #313244;
}
QMenuBar::item:selected, QToolBar QToolButton:hover {
    background-color: #313244;
}
QMenu {
    background-color: #1e1e2e;
    color: #cdd6f4;
    border: 1px solid #313244;
}
QMenu::item:selected {
    background-color: #45475a;
}
QTableWidget, QPlainTextEdit, QLineEdit, QComboBox {
    background-color: #181825;
    color: #cdd6f4;
    border: 1px solid #313244;
    selection-background-color: #45475a;
}
QPlainTextEdit {
    font-family: monospace;
}
QHeaderView::section {
    background-color: #1e1e2e;
    color: #cdd6f4;
    border: 1px solid #313244;
    padding: 4px;
}
QPushButton {
    background-color: #313244;
    color: #cdd6f4;
    border: 1px solid #45475a;
    padding: 5px 15px;
    border-radius: 3px;
}
QPushButton:hover {
    background-color: #45475a;
}
QProgressBar {
    border: 1px solid #313244;
    background-color: #181825;
    text-align: center;
    color: #cdd6f4;
}
QProgressBar::chunk {
    background-color: #89b4fa;
}
QStatusBar {
    background-color: #181825;
    color: #a6adc8;
}
QMessageBox QLabel {
    color: #cdd6f4;
    min-width: 320px;
}
"""


class _LogEmitter(QObject):
    message = pyqtSignal(str)


class QtLogHandler(logging.Handler):
    """Forwards log records to the log pane; safe from worker threads."""

    def __init__(self):
        super().__init__()
        self.emitter = _LogEmitter()
        self.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))

    def emit(self, record):
        try:
            self.emitter.message.emit(self.format(record))
        except RuntimeError:
            pass  # Widget already destroyed during shutdown


class MainWindow(QMainWindow):
    """Main window for the localizer."""

    def __init__(self, settings_file: str = SETTINGS_FILE):
        super().__init__()
        self.setWindowTitle(f"Cursor Localizer {__version__}")
        self.setMinimumSize(QSize(820, 560))

        self._settings_file = settings_file
        self.settings = Settings.load(settings_file)
        self.engine = PatchEngine(self)
        self.engine.progress.connect(self._on_progress)
        self.engine.finished.connect(self._on_patch_finished)

        self._build_ui()
        self._build_menubar()
        self._build_toolbar()
        self._build_statusbar()
        self._install_log_handler()
        self._apply_dark_mode()

        if not self.settings.install_path:
            self._detect_install()

    # ── UI construction ───────────────────────────────────────────

    def _build_ui(self):
        central = QWidget()
        layout = QVBoxLayout(central)

        form = QFormLayout()
        path_row = QHBoxLayout()
        self.path_edit = QLineEdit(self.settings.install_path)
        self.path_edit.setPlaceholderText("Installation folder or workbench bundle")
        path_row.addWidget(self.path_edit, 1)
        browse_btn = QPushButton("Browse...")
        browse_btn.clicked.connect(self._browse_install)
        path_row.addWidget(browse_btn)
        detect_btn = QPushButton("Detect")
        detect_btn.clicked.connect(self._detect_install)
        path_row.addWidget(detect_btn)
        form.addRow("Installation:", path_row)

        dir_row = QHBoxLayout()
        self.translations_edit = QLineEdit(self.settings.translations_dir)
        dir_row.addWidget(self.translations_edit, 1)
        dir_btn = QPushButton("Browse...")
        dir_btn.clicked.connect(self._browse_translations)
        dir_row.addWidget(dir_btn)
        form.addRow("Translations:", dir_row)

        options_row = QHBoxLayout()
        self.mode_combo = QComboBox()
        self.mode_combo.addItem("Direct (replace English)", "direct")
        self.mode_combo.addItem("Bilingual (English + translation)", "bilingual")
        self.mode_combo.setCurrentIndex(max(0, self.mode_combo.findData(self.settings.mode)))
        options_row.addWidget(self.mode_combo)
        self.fast_check = QCheckBox("Fast (skip file validation)")
        self.fast_check.setChecked(self.settings.fast)
        options_row.addWidget(self.fast_check)
        self.strict_check = QCheckBox("Strict key collisions")
        self.strict_check.setChecked(self.settings.merge_policy == "strict")
        options_row.addWidget(self.strict_check)
        options_row.addStretch()
        form.addRow("Mode:", options_row)
        layout.addLayout(form)

        self.log_view = QPlainTextEdit()
        self.log_view.setReadOnly(True)
        self.log_view.setMaximumBlockCount(5000)
        layout.addWidget(self.log_view, 1)

        self.setCentralWidget(central)

    def _build_menubar(self):
        menubar = self.menuBar()

        # ── Patch menu ────────────────────────────────────────────
        patch_menu = menubar.addMenu("Patch")

        self.apply_action = QAction("Apply Translation", self)
        self.apply_action.setShortcut("Ctrl+P")
        self.apply_action.triggered.connect(self._apply_patch)
        patch_menu.addAction(self.apply_action)

        self.restore_action = QAction("Restore Original", self)
        self.restore_action.setShortcut("Ctrl+R")
        self.restore_action.triggered.connect(self._restore_original)
        patch_menu.addAction(self.restore_action)

        patch_menu.addSeparator()

        self.diagnose_action = QAction("Diagnose Installation", self)
        self.diagnose_action.triggered.connect(self._diagnose)
        patch_menu.addAction(self.diagnose_action)

        self.repair_action = QAction("Repair Installation", self)
        self.repair_action.triggered.connect(self._repair)
        patch_menu.addAction(self.repair_action)

        self.version_action = QAction("Check Version", self)
        self.version_action.triggered.connect(self._check_version)
        patch_menu.addAction(self.version_action)

        # ── Dictionary menu ───────────────────────────────────────
        dict_menu = menubar.addMenu("Dictionary")

        self.edit_action = QAction("Edit Dictionary...", self)
        self.edit_action.setShortcut("Ctrl+E")
        self.edit_action.triggered.connect(self._edit_dictionary)
        dict_menu.addAction(self.edit_action)

        self.validate_action = QAction("Validate", self)
        self.validate_action.triggered.connect(self._validate_dictionary)
        dict_menu.addAction(self.validate_action)

        self.fix_action = QAction("Fix Empty Entries", self)
        self.fix_action.triggered.connect(self._fix_dictionary)
        dict_menu.addAction(self.fix_action)

        dict_menu.addSeparator()

        self.merge_action = QAction("Merge Pending Translations...", self)
        self.merge_action.triggered.connect(self._merge_pending)
        dict_menu.addAction(self.merge_action)

        self.detect_action = QAction("Export Untranslated Entries", self)
        self.detect_action.triggered.connect(self._detect_untranslated)
        dict_menu.addAction(self.detect_action)

        # ── View menu ─────────────────────────────────────────────
        view_menu = menubar.addMenu("View")
        self.dark_action = QAction("Dark Mode", self)
        self.dark_action.setCheckable(True)
        self.dark_action.setChecked(self.settings.dark_mode)
        self.dark_action.toggled.connect(self._toggle_dark_mode)
        view_menu.addAction(self.dark_action)

        clear_log_action = QAction("Clear Log", self)
        clear_log_action.triggered.connect(self.log_view.clear)
        view_menu.addAction(clear_log_action)

    def _build_toolbar(self):
        toolbar = QToolBar("Quick Actions")
        toolbar.setIconSize(QSize(20, 20))
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        # Reuse actions created in _build_menubar
        toolbar.addAction(self.apply_action)
        toolbar.addAction(self.restore_action)
        toolbar.addSeparator()
        toolbar.addAction(self.edit_action)
        toolbar.addAction(self.validate_action)
        toolbar.addAction(self.merge_action)

    def _build_statusbar(self):
        self.statusbar = QStatusBar()
        self.setStatusBar(self.statusbar)

        self.progress_bar = QProgressBar()
        self.progress_bar.setFixedWidth(300)
        self.progress_bar.setVisible(False)
        self.statusbar.addPermanentWidget(self.progress_bar)

        self.progress_label = QLabel("")
        self.statusbar.addWidget(self.progress_label)

    def _install_log_handler(self):
        self.log_handler = QtLogHandler()
        self.log_handler.setLevel(logging.DEBUG if self.settings.verbose else logging.INFO)
        self.log_handler.emitter.message.connect(self.log_view.appendPlainText)
        package_logger = logging.getLogger("localizer")
        package_logger.addHandler(self.log_handler)
        if package_logger.level == logging.NOTSET or package_logger.level > logging.INFO:
            package_logger.setLevel(logging.DEBUG if self.settings.verbose else logging.INFO)

    # ── Settings helpers ──────────────────────────────────────────

    def _sync_settings(self):
        """Copy the form fields back into self.settings."""
        self.settings.install_path = self.path_edit.text().strip()
        self.settings.translations_dir = (self.translations_edit.text().strip()
                                          or self.settings.translations_dir)
        self.settings.mode = self.mode_combo.currentData()
        self.settings.fast = self.fast_check.isChecked()
        self.settings.merge_policy = "strict" if self.strict_check.isChecked() else "permissive"
        self.settings.dark_mode = self.dark_action.isChecked()

    def _save_settings(self):
        self._sync_settings()
        self.settings.save(self._settings_file)

    def _patch_options(self) -> PatchOptions:
        self._sync_settings()
        return PatchOptions(
            mode=self.settings.mode,
            fast=self.settings.fast,
            merge_policy=self.settings.merge_policy,
            min_entries=self.settings.min_entries,
        )

    def _current_install(self):
        """Resolved install path, or None after telling the user why."""
        install = find_install_path(self.path_edit.text().strip())
        if not install:
            QMessageBox.warning(
                self, "Installation Not Found",
                "Could not find the editor installation.\n\n"
                "Select the installation folder or the workbench bundle.",
            )
        return install

    def _load_dictionary(self):
        self._sync_settings()
        try:
            return TranslationDictionary.load(self.settings.dictionary_path)
        except DictionaryError as exc:
            QMessageBox.warning(self, "Dictionary Error", str(exc))
            return None

    # ── Install path ──────────────────────────────────────────────

    def _browse_install(self):
        path = QFileDialog.getExistingDirectory(
            self, "Select Installation Folder", self.path_edit.text())
        if path:
            self.path_edit.setText(path)
            self._save_settings()

    def _browse_translations(self):
        path = QFileDialog.getExistingDirectory(
            self, "Select Translations Folder", self.translations_edit.text())
        if path:
            self.translations_edit.setText(path)
            self._save_settings()

    def _detect_install(self):
        path = find_install_path()
        if path:
            self.path_edit.setText(path)
            self.statusbar.showMessage(f"Detected installation: {path}", 5000)
        else:
            self.statusbar.showMessage("No installation detected, select it manually", 5000)

    # ── Patch actions ─────────────────────────────────────────────

    def _set_busy(self, busy: bool):
        for action in (self.apply_action, self.restore_action, self.repair_action,
                       self.merge_action, self.fix_action, self.edit_action):
            action.setEnabled(not busy)
        self.progress_bar.setVisible(busy)
        if busy:
            self.progress_bar.setValue(0)

    def _apply_patch(self):
        install = self._current_install()
        if not install:
            return

        if os.path.isdir(install):
            compatibility = validate_compatibility(detect_version(install))
            if not compatibility.is_compatible:
                reply = QMessageBox.question(
                    self, "Version Check",
                    "The installed version could not be confirmed as compatible:\n\n"
                    + "\n".join(compatibility.warnings)
                    + "\n\nApply the patch anyway?",
                    QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
                )
                if reply != QMessageBox.StandardButton.Yes:
                    return

        options = self._patch_options()
        self._save_settings()
        worker = PatchWorker("apply", resolve_target(install),
                             self.settings.dictionary_path, options,
                             translations_dir=self.settings.translations_dir)
        if self.engine.start(worker):
            self._set_busy(True)
            self.progress_label.setText(f"Applying ({options.mode.value})...")

    def _restore_original(self):
        install = self._current_install()
        if not install:
            return
        target = resolve_target(install)
        if not os.path.isfile(target + BACKUP_SUFFIX):
            QMessageBox.information(
                self, "No Backup Found",
                "No backup of the original bundle exists. Nothing to restore.",
            )
            return

        reply = QMessageBox.question(
            self, "Restore Original",
            "This will overwrite the patched bundle with the original from its "
            "backup and delete the backup.\n\n"
            "Your dictionary is NOT affected.\n\n"
            "Continue?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
        )
        if reply != QMessageBox.StandardButton.Yes:
            return

        if self.engine.start(PatchWorker("restore", target)):
            self._set_busy(True)
            self.progress_label.setText("Restoring...")

    def _on_progress(self, done: int, total: int):
        self.progress_bar.setMaximum(max(total, 1))
        self.progress_bar.setValue(done)

    def _on_patch_finished(self, outcome):
        self._set_busy(False)
        self.progress_label.setText("")
        if outcome.success:
            text = outcome.message
            if outcome.hits:
                text += f"\n\nNot found: {len(outcome.misses)}, errors: {len(outcome.errors)}"
                text += "\n\nRestart the editor completely to see the changes."
            QMessageBox.information(self, "Done", text)
        else:
            QMessageBox.warning(self, "Failed", outcome.message)
        self.statusbar.showMessage(outcome.message, 8000)

    def _diagnose(self):
        install = self._current_install()
        if not install:
            return
        diagnosis = Patcher.diagnose(install)
        status = Patcher.verify_localization(resolve_target(install))
        lines = ["Installation: " + ("OK" if diagnosis.is_valid else "PROBLEMS")]
        lines += [f"  - {issue}" for issue in diagnosis.issues]
        lines += [f"  Tip: {tip}" for tip in diagnosis.suggestions]
        lines.append("Localization: " + ("applied" if status.is_localized else "not detected"))
        lines.append("Backup: " + ("present" if status.has_backup else "missing"))
        QMessageBox.information(self, "Diagnosis", "\n".join(lines))

    def _repair(self):
        install = self._current_install()
        if not install:
            return
        if Patcher.fix_common_issues(install):
            QMessageBox.information(self, "Repair", "Repair finished, see the log for details.")
        else:
            QMessageBox.warning(self, "Repair",
                                "The bundle could not be repaired. Reinstall the editor.")

    def _check_version(self):
        install = self._current_install()
        if not install:
            return
        info = detect_version(install)
        compatibility = validate_compatibility(info)
        lines = [
            f"Version: {info.version} (build {info.build_number})",
            f"Target files: {len(info.target_files)}",
            f"Compatible: {'yes' if compatibility.is_compatible else 'no'} "
            f"(confidence {compatibility.confidence}%)",
        ]
        lines += compatibility.warnings + compatibility.recommendations
        QMessageBox.information(self, "Version Check", "\n".join(lines))

    # ── Dictionary actions ────────────────────────────────────────

    def _edit_dictionary(self):
        dictionary = self._load_dictionary()
        if dictionary is None:
            return
        dlg = DictionaryDialog(self, dictionary.groups, self.settings.min_entries)
        if dlg.exec() != QDialog.DialogCode.Accepted:
            return
        dictionary.groups = dlg.groups
        try:
            dictionary.save()
        except OSError as exc:
            QMessageBox.warning(self, "Save Failed", str(exc))
            return
        self.statusbar.showMessage(
            f"Saved {dictionary.total_entries} entries to {dictionary.path}", 5000)

    def _validate_dictionary(self):
        dictionary = self._load_dictionary()
        if dictionary is None:
            return None
        report = dictionary.validate(min_entries=self.settings.min_entries,
                                     common_terms=COMMON_UI_TERMS)
        coverage = coverage_report(dictionary.flatten())
        stats = report.stats
        lines = [
            "Valid" if report.is_valid else "Validation failed",
            f"Categories: {stats['totalGroups']}, entries: {stats['totalEntries']}",
            f"Untranslated common terms: {stats['untranslatedEntries']}",
            f"Coverage: basic {coverage['basic']}%, UI {coverage['ui']}%, "
            f"menu {coverage['menu']}%",
        ]
        for issue in report.issues:
            log.warning(issue)
        if report.issues:
            lines.append(f"\n{len(report.issues)} issue(s), see the log.")
        QMessageBox.information(self, "Validation", "\n".join(lines))
        return report

    def _fix_dictionary(self):
        dictionary = self._load_dictionary()
        if dictionary is None:
            return
        fixes = fix_common_issues(dictionary.groups)
        if not fixes:
            self.statusbar.showMessage("No problems to fix", 5000)
            return
        try:
            dictionary.save()
        except OSError as exc:
            QMessageBox.warning(self, "Save Failed", str(exc))
            return
        for fix in fixes:
            log.info(fix)
        self.statusbar.showMessage(f"Fixed {len(fixes)} problems", 5000)

    def _merge_pending(self):
        self._sync_settings()
        merger = DictionaryMerger(self.settings.translations_dir)
        if not merger.has_pending():
            QMessageBox.information(
                self, "Nothing to Merge",
                f"No pending translation file found in {self.settings.translations_dir}.")
            return

        try:
            primary = TranslationDictionary.load(merger.primary_file).groups
            pending = TranslationDictionary.load(merger.pending_file).groups
        except DictionaryError as exc:
            QMessageBox.warning(self, "Merge", str(exc))
            return

        changes = diff_dictionaries(primary, pending)
        if not changes:
            QMessageBox.information(self, "Nothing to Merge",
                                    "The pending file adds no new translations.")
            return

        dlg = MergeDiffDialog(changes, self)
        if dlg.exec() != QDialog.DialogCode.Accepted:
            return
        accepted = dlg.accepted_changes()
        if not accepted:
            return

        outcome = merger.run(select_changes(accepted))
        if outcome.merged:
            self.statusbar.showMessage(
                f"Merged {outcome.stats['added']['translations']} new entries", 5000)
        else:
            QMessageBox.warning(self, "Merge Failed", outcome.reason)

    def _detect_untranslated(self):
        dictionary = self._load_dictionary()
        if dictionary is None:
            return
        report = build_untranslated_report(dictionary.groups,
                                           os.path.basename(dictionary.path))
        count = report["metadata"]["missing_translations_count"]
        if count == 0:
            QMessageBox.information(self, "Untranslated", "No untranslated entries found.")
            return
        path = os.path.join(self.settings.translations_dir, UNTRANSLATED_REPORT)
        if write_untranslated_report(path, report):
            QMessageBox.information(
                self, "Untranslated",
                f"Found {count} untranslated entries, written to:\n{path}")
        else:
            QMessageBox.warning(self, "Untranslated", f"Could not write {path}")

    # ── Appearance ────────────────────────────────────────────────

    def _toggle_dark_mode(self, checked: bool):
        self.settings.dark_mode = checked
        self._apply_dark_mode()
        self._save_settings()

    def _apply_dark_mode(self):
        app = QApplication.instance()
        if not app:
            return
        if self.settings.dark_mode:
            app.setStyleSheet(DARK_STYLESHEET)
        else:
            app.setStyleSheet("")

    def closeEvent(self, event):
        """Wait for a running patch job and persist settings."""
        self.engine.wait()
        self._save_settings()
        logging.getLogger("localizer").removeHandler(self.log_handler)
        super().closeEvent(event)
