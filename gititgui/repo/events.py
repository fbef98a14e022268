"""
Repository lifecycle notifications.

Subscribers are plain callables held in explicit lists. Delivery is
synchronous on the thread that emits; use gititgui.core.jobs.RefreshSignals
to hop onto the Qt UI thread.
"""

from __future__ import annotations

import threading
from typing import Callable, List

from gititgui.core import log

RefreshingCallback = Callable[[bool], None]
RefreshedCallback = Callable[[], None]


class RepoEvents:
    """Observer lists for refreshing(start) and refreshed() events."""

    def __init__(self):
        self._lock = threading.Lock()
        self._refreshing: List[RefreshingCallback] = []
        self._refreshed: List[RefreshedCallback] = []

    def subscribe_refreshing(self, callback: RefreshingCallback) -> None:
        with self._lock:
            if callback not in self._refreshing:
                self._refreshing.append(callback)

    def unsubscribe_refreshing(self, callback: RefreshingCallback) -> None:
        with self._lock:
            if callback in self._refreshing:
                self._refreshing.remove(callback)

    def subscribe_refreshed(self, callback: RefreshedCallback) -> None:
        with self._lock:
            if callback not in self._refreshed:
                self._refreshed.append(callback)

    def unsubscribe_refreshed(self, callback: RefreshedCallback) -> None:
        with self._lock:
            if callback in self._refreshed:
                self._refreshed.remove(callback)

    def emit_refreshing(self, start: bool) -> None:
        with self._lock:
            callbacks = list(self._refreshing)
        for callback in callbacks:
            try:
                callback(start)
            except Exception as e:
                log.error(f"Refreshing observer failed: {e}")

    def emit_refreshed(self) -> None:
        with self._lock:
            callbacks = list(self._refreshed)
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                log.error(f"Refreshed observer failed: {e}")
