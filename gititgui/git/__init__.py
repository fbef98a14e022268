# -*- coding: utf-8 -*-
"""Git adapter: subprocess wrappers over git and git-lfs."""

from .client import GitClient, CmdResult, FileStatus

__all__ = ["GitClient", "CmdResult", "FileStatus"]
