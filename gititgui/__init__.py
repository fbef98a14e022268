# -*- coding: utf-8 -*-
"""
GitItGUI package root
Repository lifecycle core for the GitItGUI desktop front-end.
"""

__version__ = "0.1.0"
__title__ = "GitItGUI"

from . import core

# Qt bits are imported only when needed (gititgui.core.jobs)
__all__ = ["core"]
