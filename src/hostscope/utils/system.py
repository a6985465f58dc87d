"""System utilities for privilege detection and opening reports"""

import ctypes
import os
import platform
import sys
import webbrowser
from pathlib import Path
from typing import Union


def is_windows() -> bool:
    return sys.platform.startswith('win')


def check_elevated() -> bool:
    """Check if running with administrator/root privileges"""
    if is_windows():
        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except (AttributeError, OSError):
            return False
    geteuid = getattr(os, 'geteuid', None)
    return geteuid is not None and geteuid() == 0


def get_system_info():
    """Get a short description of the running platform"""
    return {
        'platform': platform.system(),
        'release': platform.release(),
        'arch': platform.machine(),
        'python': platform.python_version(),
        'elevated': check_elevated(),
    }


def open_report(path: Union[str, Path]) -> bool:
    """Open a report file in the default browser

    Returns:
        True if a browser was launched
    """
    uri = Path(path).resolve().as_uri()
    try:
        return webbrowser.open(uri)
    except webbrowser.Error:
        return False
