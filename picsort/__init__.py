"""
picsort - sort photos into date folders.

Reads the capture date embedded in media files and relocates them into
``<root>/<output>/<YYYYMMDD>`` (or ``<YYYYMM>``) folders, with bounded
memory and bounded concurrency.
"""

from .version import __version__

__all__ = ["__version__"]
