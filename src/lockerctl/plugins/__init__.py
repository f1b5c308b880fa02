"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus single-file plugins in ``.lockerctl/plugins/``.
INVARIANT: Plugin failures are warnings, never errors.
"""

from lockerctl.plugins.hookspecs import hookimpl
from lockerctl.plugins.manager import PluginManager

__all__ = ["PluginManager", "hookimpl"]
