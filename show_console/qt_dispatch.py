"""Marshal callables onto the Qt GUI thread."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from PyQt6.QtCore import QObject, Qt, pyqtSignal

_LOGGER = logging.getLogger("ShowControl.Console.Dispatch")


class QtDispatcher(QObject):
    """Callable that runs its argument on the thread owning this object.

    The engine's watcher fires on a timer thread; passing an instance as the
    reconciler's ``dispatch`` queues each reload onto the GUI event loop.
    """

    _invoke = pyqtSignal(object)

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._invoke.connect(self._run, Qt.ConnectionType.QueuedConnection)

    def __call__(self, func: Callable[[], None]) -> None:
        self._invoke.emit(func)

    def _run(self, func: Callable[[], None]) -> None:
        try:
            func()
        except Exception:
            _LOGGER.exception("Dispatched call failed")
