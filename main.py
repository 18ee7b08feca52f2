"""Cursor Localizer — translate the editor UI from a JSON dictionary.

Launch with: python main.py
Command line: python -m localizer --help
"""

import sys
from PyQt6.QtWidgets import QApplication
from localizer.widgets.main_window import MainWindow


def main():
    app = QApplication(sys.argv)
    app.setApplicationName("Cursor Localizer")
    app.setStyle("Fusion")

    window = MainWindow()
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
