# -*- coding: utf-8 -*-
"""
Platform shell commands for opening files and external git tools.

Each helper returns an argv list, or None when the platform has no
supported way to do it.
"""

import os
import shutil
import sys


def _platform():
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "macos"
    if sys.platform.startswith("linux") or "bsd" in sys.platform:
        return "linux"
    return None


def platform_name():
    """Short platform label for messages."""
    return _platform() or sys.platform


def history_tool_command(tool="gitk"):
    """
    Locate the history viewer (gitk by default).

    Returns:
        list[str] | None: argv to launch it
    """
    platform = _platform()
    if platform is None:
        return None

    if platform == "windows":
        program_files = [
            os.environ.get("ProgramW6432", ""),
            os.environ.get("ProgramFiles", ""),
            os.environ.get("ProgramFiles(x86)", ""),
        ]
        for root in program_files:
            if not root:
                continue
            candidate = os.path.join(root, "Git", "cmd", f"{tool}.exe")
            if os.path.isfile(candidate):
                return [candidate]

    found = shutil.which(tool)
    return [found] if found else None


def open_file_command(path):
    """Open a file with its default application."""
    platform = _platform()
    if platform == "windows":
        return ["explorer.exe", path]
    if platform == "macos":
        return ["open", path]
    if platform == "linux":
        return ["xdg-open", path]
    return None


def open_location_command(path):
    """Reveal a file in the platform file manager."""
    platform = _platform()
    if platform == "windows":
        return ["explorer.exe", f"/select,{path}"]
    if platform == "macos":
        return ["open", "-R", path]
    if platform == "linux":
        # xdg-open cannot select a file; open its folder instead
        return ["xdg-open", os.path.dirname(os.path.abspath(path))]
    return None
