"""Rowsift - filtered row listing and CSV export for tenant tables."""

import logging

from ._version import __version__
from .core.settings import get_settings
from .server import main

logging.getLogger("rowsift").setLevel(get_settings().log_level)

__all__ = ["__version__", "main"]
