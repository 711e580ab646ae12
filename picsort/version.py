"""
Version information for picsort.

The package version comes from the installed distribution metadata, so
``pyproject.toml`` is the only place it is written down.
"""

import platform
from importlib.metadata import PackageNotFoundError, version
from typing import Dict, Optional

DISTRIBUTION = "picsort"

# Libraries whose behaviour decides which capture dates are found
METADATA_LIBRARIES = ("Pillow", "PyExifTool", "arrow", "pillow-heif")


def _installed_version(distribution: str) -> Optional[str]:
    try:
        return version(distribution)
    except PackageNotFoundError:
        return None


# Running from a source tree that was never installed
__version__ = _installed_version(DISTRIBUTION) or "0.0.0"


def library_versions() -> Dict[str, str]:
    """Installed versions of the metadata libraries, skipping missing ones."""
    found = {}
    for name in METADATA_LIBRARIES:
        installed = _installed_version(name)
        if installed:
            found[name] = installed
    return found


def get_version_string() -> str:
    """
    Get the line printed by ``picsort --version``.

    Returns:
        Version with the interpreter and metadata library versions, e.g.
        "1.0.0 (Python 3.12.1; Pillow 10.2.0, arrow 1.3.0)"
    """
    details = f"Python {platform.python_version()}"
    libraries = ", ".join(f"{name} {v}" for name, v in library_versions().items())
    if libraries:
        details = f"{details}; {libraries}"
    return f"{__version__} ({details})"
