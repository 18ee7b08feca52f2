"""Dictionary editor dialog — one table per category."""

from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QLineEdit, QPushButton, QComboBox,
    QLabel, QMessageBox, QTableWidget, QTableWidgetItem, QInputDialog,
    QHeaderView, QAbstractItemView, QMenu,
)

from ..dictionary import validate_groups
from ..substitution import COMMON_FALLBACKS, FALLBACK_TRANSLATIONS


class DictionaryDialog(QDialog):
    """Edit the categories of a translation dictionary.

    The dialog works on a copy; after ``exec()`` returns Accepted the
    edited dictionary is available as ``self.groups``.
    """

    def __init__(self, parent=None, groups=None, min_entries: int = 0):
        super().__init__(parent)
        self._groups = {name: dict(entries) for name, entries in (groups or {}).items()
                        if isinstance(entries, dict)}
        self._min_entries = min_entries
        self._current = ""
        self.groups = {}   # result after save
        self.setWindowTitle("Edit Dictionary")
        self.setMinimumSize(640, 520)
        self._build_ui()
        self._load_categories()

    def _build_ui(self):
        layout = QVBoxLayout(self)

        cat_row = QHBoxLayout()
        cat_row.addWidget(QLabel("Category:"))
        self.category_combo = QComboBox()
        self.category_combo.setMinimumWidth(200)
        self.category_combo.currentTextChanged.connect(self._switch_category)
        cat_row.addWidget(self.category_combo, 1)

        add_cat_btn = QPushButton("New Category...")
        add_cat_btn.clicked.connect(self._ask_new_category)
        cat_row.addWidget(add_cat_btn)

        remove_cat_btn = QPushButton("Delete Category")
        remove_cat_btn.clicked.connect(self._remove_category)
        cat_row.addWidget(remove_cat_btn)
        layout.addLayout(cat_row)

        self.search = QLineEdit()
        self.search.setPlaceholderText("Search (original or translation)...")
        self.search.textChanged.connect(self._filter)
        layout.addWidget(self.search)

        self.table = QTableWidget()
        self.table.setColumnCount(2)
        self.table.setHorizontalHeaderLabels(["Original Text", "Translation"])
        header = self.table.horizontalHeader()
        header.setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(1, QHeaderView.ResizeMode.Stretch)
        self.table.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        layout.addWidget(self.table)

        btn_row = QHBoxLayout()
        add_btn = QPushButton("Add Row")
        add_btn.clicked.connect(self._add_row)
        btn_row.addWidget(add_btn)

        remove_btn = QPushButton("Remove Selected")
        remove_btn.clicked.connect(self._remove_rows)
        btn_row.addWidget(remove_btn)

        clear_btn = QPushButton("Clear Category")
        clear_btn.clicked.connect(self._clear)
        btn_row.addWidget(clear_btn)

        btn_row.addStretch()

        defaults_btn = QPushButton("Load Defaults ▼")
        defaults_menu = QMenu(self)
        defaults_menu.addAction("Common Terms", lambda: self._merge_defaults(COMMON_FALLBACKS))
        defaults_menu.addAction("All Fallback Terms",
                                lambda: self._merge_defaults(FALLBACK_TRANSLATIONS))
        defaults_btn.setMenu(defaults_menu)
        btn_row.addWidget(defaults_btn)
        layout.addLayout(btn_row)

        self.status_label = QLabel("")
        layout.addWidget(self.status_label)

        bottom = QHBoxLayout()
        bottom.addStretch()
        save_btn = QPushButton("Save")
        save_btn.clicked.connect(self._save)
        bottom.addWidget(save_btn)
        cancel_btn = QPushButton("Cancel")
        cancel_btn.clicked.connect(self.reject)
        bottom.addWidget(cancel_btn)
        layout.addLayout(bottom)

    # ── Categories ───────────────────────────────────────────────────

    def _load_categories(self):
        self.category_combo.blockSignals(True)
        self.category_combo.clear()
        self.category_combo.addItems(list(self._groups.keys()))
        self.category_combo.blockSignals(False)
        self._current = ""
        if self._groups:
            self._switch_category(self.category_combo.currentText())
        else:
            self._load_table({})
        self._update_status()

    def _switch_category(self, name: str):
        if self._current and self._current in self._groups:
            self._groups[self._current] = self._get_table_dict(self.table)
        self._current = name
        self._load_table(self._groups.get(name, {}))
        self._filter(self.search.text())

    def add_category(self, name: str) -> bool:
        name = name.strip()
        if not name or name in self._groups:
            return False
        if self._current:
            self._groups[self._current] = self._get_table_dict(self.table)
        self._groups[name] = {}
        self._current = ""
        self.category_combo.addItem(name)
        self.category_combo.setCurrentText(name)
        return True

    def _ask_new_category(self):
        name, ok = QInputDialog.getText(self, "New Category", "Category name:")
        if ok and not self.add_category(name):
            QMessageBox.warning(self, "New Category",
                                f'Category "{name}" is empty or already exists.')

    def _remove_category(self):
        name = self.category_combo.currentText()
        if not name:
            return
        self._groups.pop(name, None)
        self._current = ""
        self._load_categories()

    # ── Table ────────────────────────────────────────────────────────

    def _load_table(self, data: dict):
        """Bulk-load a category into the table."""
        items = list(data.items())
        table = self.table
        table.setUpdatesEnabled(False)
        table.setRowCount(len(items) or 1)
        for row, (original, translated) in enumerate(items):
            table.setItem(row, 0, QTableWidgetItem(original))
            table.setItem(row, 1, QTableWidgetItem(translated))
        if not items:
            table.setItem(0, 0, QTableWidgetItem(""))
            table.setItem(0, 1, QTableWidgetItem(""))
        table.setUpdatesEnabled(True)

    def _add_row(self):
        row = self.table.rowCount()
        self.table.insertRow(row)
        self.table.setItem(row, 0, QTableWidgetItem(""))
        self.table.setItem(row, 1, QTableWidgetItem(""))

    def _remove_rows(self):
        rows = sorted(set(idx.row() for idx in self.table.selectedIndexes()), reverse=True)
        for row in rows:
            self.table.removeRow(row)

    def _clear(self):
        self.table.setRowCount(0)
        self._add_row()

    def _filter(self, text: str):
        q = text.lower()
        for row in range(self.table.rowCount()):
            original = (self.table.item(row, 0) or QTableWidgetItem("")).text().lower()
            translated = (self.table.item(row, 1) or QTableWidgetItem("")).text().lower()
            self.table.setRowHidden(row, bool(q) and q not in original and q not in translated)

    def _merge_defaults(self, entries: dict) -> int:
        """Add default terms missing from the current category."""
        if not self._current:
            if not self.add_category("common"):
                self.category_combo.setCurrentText("common")
        existing = self._get_table_dict(self.table)
        added = {k: v for k, v in entries.items() if k not in existing}
        existing.update(added)
        self._load_table(existing)
        self._update_status()
        return len(added)

    @staticmethod
    def _get_table_dict(table: QTableWidget) -> dict:
        result = {}
        for row in range(table.rowCount()):
            original_item = table.item(row, 0)
            translated_item = table.item(row, 1)
            original = original_item.text() if original_item else ""
            translated = translated_item.text().strip() if translated_item else ""
            if original.strip() and translated:
                result[original] = translated
        return result

    def current_groups(self) -> dict:
        groups = dict(self._groups)
        if self._current:
            groups[self._current] = self._get_table_dict(self.table)
        return groups

    def _update_status(self):
        groups = self.current_groups()
        total = sum(len(g) for g in groups.values())
        self.status_label.setText(f"{len(groups)} categories, {total} entries")

    # ── Save ─────────────────────────────────────────────────────────

    def _save(self):
        groups = self.current_groups()
        report = validate_groups(groups, min_entries=self._min_entries)
        if not report.is_valid:
            reply = QMessageBox.question(
                self, "Dictionary Issues",
                f"{len(report.issues)} issue(s) found:\n\n"
                + "\n".join(report.issues[:8])
                + "\n\nSave anyway?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            )
            if reply != QMessageBox.StandardButton.Yes:
                return
        self.groups = groups
        self.accept()
