"""Extending `cobyla_adapter` with engine plugins.

The COBYLA algorithm itself is provided by engines, which are created by
engine plugins. The [`PluginManager`][cobyla_adapter.plugins.PluginManager]
holds the available plugins and retrieves them by name.

Engines are named in the form `"plugin-name/method-name"`, for instance
`"scipy/cobyla"` or `"nlopt/cobyla"`. Using `"plugin-name/default"` selects
the default method of a plugin. If only a method name is given, the manager
searches all plugins that allow discovery for one that supports the method.

Pre-installed engine plugins:

- [`scipy`][cobyla_adapter.plugins.engine.scipy.SciPyEnginePlugin]: COBYLA
  from `scipy.optimize`, the default engine.
- [`nlopt`][cobyla_adapter.plugins.engine.nlopt.NLoptEnginePlugin]: COBYLA
  from the NLopt library, available if the optional `nlopt` package is
  installed.

Third-party plugins are found via the `cobyla_adapter.plugins.engine` entry
point group.
"""

from ._manager import PluginManager, PluginType
from .base import Plugin

__all__ = [
    "Plugin",
    "PluginManager",
    "PluginType",
]
