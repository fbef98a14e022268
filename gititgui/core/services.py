# -*- coding: utf-8 -*-
"""GitItGUI Services / Composition Root

Central place to construct the git adapter and repository manager.

Design goals:
- No UI/Qt imports at module import time.
- Support injection of settings and a git client factory for tests.
- Keep process-exit policy for fatal LFS failures out of the core.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Callable

from gititgui.core import log
from gititgui.core.result import AppError
from gititgui.core.settings import AppSettings, load_settings, save_settings


def exit_on_fatal(error: AppError) -> None:
    """Default fatal handler: log and stop the application."""
    log.error(
        f"Unrecoverable error ({error.code}): {error.message}. "
        "Restart the application before continuing."
    )
    sys.exit(1)


@dataclass
class ServiceContainer:
    """Small container for shared service construction."""

    settings: AppSettings
    git_client_factory: Callable[[], object] | None = None
    on_fatal: Callable[[AppError], None] | None = exit_on_fatal
    persist_settings: bool = True

    def git_client(self):
        if self.git_client_factory is not None:
            return self.git_client_factory()

        from gititgui.git.client import GitClient

        return GitClient()

    def repo_manager(self):
        """Create a RepoManager wired to this container's services."""
        from gititgui.repo.manager import RepoManager

        saver = save_settings if self.persist_settings else None
        return RepoManager(
            client=self.git_client(),
            settings=self.settings,
            on_fatal=self.on_fatal,
            settings_saver=saver,
        )

    def refresh_signals(self, manager):
        """Qt signals for a manager's events.

        NOTE: Imports Qt only when called (i.e., inside the GUI).
        """

        from gititgui.core.jobs import RefreshSignals

        return RefreshSignals(manager.events)


_singleton: ServiceContainer | None = None


def get_services() -> ServiceContainer:
    """Default app-wide service container."""

    global _singleton
    if _singleton is None:
        _singleton = ServiceContainer(settings=load_settings())
    return _singleton
