"""Top-level package for launchkit.

Desktop application launcher engine: catalog, downloads, installs,
updates, repairs and uninstalls.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("launchkit")
except PackageNotFoundError:
    # Running from a source checkout without an installed distribution
    __version__ = "dev"
