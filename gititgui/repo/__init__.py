# -*- coding: utf-8 -*-
"""Repository lifecycle: manager, marker-file probe and events."""

from .manager import RepoManager, Signature
from .events import RepoEvents
from .probe import RepoProbe

__all__ = ["RepoManager", "Signature", "RepoEvents", "RepoProbe"]
