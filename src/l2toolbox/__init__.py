"""
L2Toolbox: configuration persistence and translation services for the desktop shell.
"""

from l2toolbox.constants import app as _app

__version__ = _app.VERSION
