"""hostscope - host diagnostic snapshot and health scoring"""

from .__version__ import __version__

__all__ = ['__version__']
