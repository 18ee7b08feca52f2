"""Patch engine — runs apply/restore on a Qt worker thread."""

import logging

from PyQt6.QtCore import QObject, QThread, pyqtSignal

from .merger import DictionaryMerger
from .patcher import PatchOptions, PatchOutcome, Patcher

log = logging.getLogger(__name__)


class PatchWorker(QObject):
    """Worker that applies or restores one bundle in a background thread."""

    progress = pyqtSignal(int, int)         # done, total
    finished = pyqtSignal(object)           # PatchOutcome

    def __init__(self, action: str, target_file: str, dictionary_path: str = "",
                 options: PatchOptions = None, translations_dir: str = ""):
        super().__init__()
        self.action = action  # "apply" or "restore"
        self.target_file = target_file
        self.dictionary_path = dictionary_path
        self.options = options or PatchOptions()
        self.translations_dir = translations_dir

    def run(self):
        try:
            if self.action == "restore":
                outcome = Patcher.restore(self.target_file)
            else:
                if self.translations_dir:
                    merger = DictionaryMerger(self.translations_dir)
                    if merger.has_pending():
                        merger.run()
                patcher = Patcher(self.dictionary_path, self.options,
                                  progress=self.progress.emit)
                outcome = patcher.apply(self.target_file)
        except Exception as exc:  # finished must always fire or the window stays busy
            log.exception("%s failed", self.action)
            outcome = PatchOutcome(False, str(exc), self.target_file)
        self.finished.emit(outcome)


class PatchEngine(QObject):
    """Manages the worker thread; one job at a time."""

    progress = pyqtSignal(int, int)
    finished = pyqtSignal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._thread = None
        self._worker = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.isRunning()

    def start(self, worker: PatchWorker) -> bool:
        if self.is_running:
            return False
        thread = QThread()
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.progress.connect(self.progress)
        worker.finished.connect(self._on_finished)
        worker.finished.connect(thread.quit)
        self._thread = thread
        self._worker = worker
        thread.start()
        return True

    def _on_finished(self, outcome):
        self.finished.emit(outcome)

    def wait(self, msecs: int = 3000):
        if self._thread is not None and self._thread.isRunning():
            self._thread.quit()
            self._thread.wait(msecs)
