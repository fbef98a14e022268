# -*- coding: utf-8 -*-
"""
GitItGUI Jobs Module
Marshals repository manager notifications onto the Qt UI thread.

Background refreshes fire their events on a worker thread. RefreshSignals
re-emits them as Qt signals; slots connected from the UI thread then run
there through Qt's queued connections, with no busy-waiting.
"""

from gititgui.core import log


def _get_qt_core():
    """
    Lazy import of QtCore so the core stays importable without a GUI.

    Returns:
        QtCore module
    """
    try:
        from PySide6 import QtCore
    except ImportError as e:
        raise ImportError(
            "PySide6 is required for UI thread signals"
        ) from e
    return QtCore


class RefreshSignals:
    """
    Qt signal facade over a RepoManager's events.

    Create it on the UI thread, then connect slots:

        signals = RefreshSignals(manager.events)
        signals.refreshing.connect(panel.set_busy)
        signals.refreshed.connect(panel.reload)
    """

    def __init__(self, events):
        QtCore = _get_qt_core()

        class _SignalEmitter(QtCore.QObject):
            refreshing = QtCore.Signal(bool)
            refreshed = QtCore.Signal()

        self._events = events
        self._emitter = _SignalEmitter()
        events.subscribe_refreshing(self._on_refreshing)
        events.subscribe_refreshed(self._on_refreshed)
        log.debug("RefreshSignals attached")

    @property
    def refreshing(self):
        """Signal(bool): True when a background refresh starts, False when it stops"""
        return self._emitter.refreshing

    @property
    def refreshed(self):
        """Signal(): repository state was re-read"""
        return self._emitter.refreshed

    def _on_refreshing(self, start):
        """Emit refreshing signal (thread-safe)"""
        self._emitter.refreshing.emit(bool(start))

    def _on_refreshed(self):
        """Emit refreshed signal (thread-safe)"""
        self._emitter.refreshed.emit()

    def detach(self):
        """Stop forwarding manager events."""
        self._events.unsubscribe_refreshing(self._on_refreshing)
        self._events.unsubscribe_refreshed(self._on_refreshed)
