"""Dialog for reviewing the entries a pending dictionary would merge."""

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QDialog,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
)


def _display(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return repr(value)


class MergeDiffDialog(QDialog):
    """Shows a table of pending dictionary changes with per-row checkboxes.

    Parameters
    ----------
    changes : list of MergeChange
    parent : QWidget or None
    """

    def __init__(self, changes: list, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Merge Pending Translations")
        self.resize(900, 500)
        self._changes = changes
        self._build_ui()

    def _build_ui(self):
        layout = QVBoxLayout(self)

        new_count = sum(1 for c in self._changes if c.current is None)
        layout.addWidget(QLabel(
            f"{len(self._changes)} change(s): {new_count} new, "
            f"{len(self._changes) - new_count} overwritten"))

        self._table = table = QTableWidget(len(self._changes), 4)
        table.setHorizontalHeaderLabels(["Category", "Key", "Current", "Incoming"])
        table.verticalHeader().setVisible(False)
        header = table.horizontalHeader()
        header.setSectionResizeMode(0, QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(1, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(2, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(3, QHeaderView.ResizeMode.Stretch)

        for row, change in enumerate(self._changes):
            cb = QTableWidgetItem()
            cb.setFlags(Qt.ItemFlag.ItemIsUserCheckable | Qt.ItemFlag.ItemIsEnabled)
            cb.setCheckState(Qt.CheckState.Checked)
            cb.setText(change.category)
            table.setItem(row, 0, cb)

            table.setItem(row, 1, self._ro_item(change.key))
            table.setItem(row, 2, self._ro_item(_display(change.current)))
            table.setItem(row, 3, self._ro_item(_display(change.incoming)))

        layout.addWidget(table)

        btn_row = QHBoxLayout()
        sel_all = QPushButton("Select All")
        sel_all.clicked.connect(lambda: self._set_all(Qt.CheckState.Checked))
        desel = QPushButton("Deselect All")
        desel.clicked.connect(lambda: self._set_all(Qt.CheckState.Unchecked))
        new_only = QPushButton("New Only")
        new_only.setToolTip("Keep existing translations, only add missing keys")
        new_only.clicked.connect(self._select_new_only)
        btn_row.addWidget(sel_all)
        btn_row.addWidget(desel)
        btn_row.addWidget(new_only)
        btn_row.addStretch()

        apply_btn = QPushButton("Merge Selected")
        apply_btn.clicked.connect(self.accept)
        cancel_btn = QPushButton("Cancel")
        cancel_btn.clicked.connect(self.reject)
        btn_row.addWidget(apply_btn)
        btn_row.addWidget(cancel_btn)
        layout.addLayout(btn_row)

    @staticmethod
    def _ro_item(text: str) -> QTableWidgetItem:
        item = QTableWidgetItem(text)
        item.setFlags(Qt.ItemFlag.ItemIsEnabled | Qt.ItemFlag.ItemIsSelectable)
        return item

    def _set_all(self, state):
        for row in range(self._table.rowCount()):
            self._table.item(row, 0).setCheckState(state)

    def _select_new_only(self):
        for row, change in enumerate(self._changes):
            state = Qt.CheckState.Checked if change.current is None else Qt.CheckState.Unchecked
            self._table.item(row, 0).setCheckState(state)

    def accepted_changes(self) -> list:
        """Return the MergeChange rows that are checked."""
        return [
            change for row, change in enumerate(self._changes)
            if self._table.item(row, 0).checkState() == Qt.CheckState.Checked
        ]
