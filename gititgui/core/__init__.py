# -*- coding: utf-8 -*-
"""
GitItGUI Core Module
Logging, results, settings and service wiring.
"""

from . import log
from . import result
from . import settings

__all__ = ["log", "result", "settings"]
