"""The plugin manager."""

from __future__ import annotations

from functools import cache
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Any, Final, Literal

from .engine.base import EnginePlugin
from .engine.nlopt import NLoptEnginePlugin
from .engine.scipy import SciPyEnginePlugin

if TYPE_CHECKING:
    from cobyla_adapter.plugins.base import Plugin


_PLUGIN_TYPES: Final = {
    "engine": EnginePlugin,
}

PluginType = Literal["engine"]
"""Represents the valid types of plugins supported by `cobyla_adapter`.

* `"engine"`: Plugins implementing the COBYLA algorithm
  ([`EnginePlugin`][cobyla_adapter.plugins.engine.base.EnginePlugin]).
"""


class PluginManager:
    """Manages the discovery and retrieval of `cobyla_adapter` plugins.

    The manager holds the built-in engine plugins (`scipy` and `nlopt`) and
    any plugins found via Python's entry points mechanism, under the
    `cobyla_adapter.plugins.*` groups (e.g. `cobyla_adapter.plugins.engine`).

    **Example: Registering a Custom Engine Plugin**

    ```toml
    [project.entry-points."cobyla_adapter.plugins.engine"]
    my_engine = "my_package.my_module:MyEnginePlugin"
    ```

    The engine is then available via
    `plugin_manager.get_plugin("engine", "my_engine/cobyla")`, or via
    `plugin_manager.get_plugin("engine", "cobyla")` if discovery is allowed and
    no built-in plugin supports the method first.
    """

    def __init__(self) -> None:
        """Initialize the plugin manager."""
        # Built-in plugins, listed for all possible plugin types:
        self._plugins: dict[PluginType, dict[str, type[Plugin]]] = {
            "engine": {
                "scipy": SciPyEnginePlugin,
                "nlopt": NLoptEnginePlugin,
            },
        }

        for plugin_type in self._plugins:
            for name, plugin in _from_entry_points(plugin_type).items():
                self._add_plugin(plugin_type, name, plugin)

    def _add_plugin(
        self,
        plugin_type: PluginType,
        name: str,
        plugin: type[Plugin],
    ) -> None:
        name_lower = name.lower()
        if name_lower in self._plugins[plugin_type]:
            msg = f"Duplicate plugin name: {name_lower}"
            raise ValueError(msg)
        self._plugins[plugin_type][name_lower] = plugin

    def _get_plugin(
        self, plugin_type: PluginType, method: str
    ) -> tuple[str, Any] | None:
        split_method = method.split("/", maxsplit=1)
        if len(split_method) > 1:
            plugin_name, method = split_method
            plugin = self._plugins[plugin_type].get(plugin_name.lower())
            if plugin and plugin.is_supported(method):
                return plugin_name.lower(), plugin
        else:
            method = split_method[0]
            if method == "default":
                msg = "Cannot specify 'default' method without a plugin name"
                raise ValueError(msg)
            for plugin_name, plugin in self._plugins[plugin_type].items():
                if plugin.allows_discovery() and plugin.is_supported(method):
                    return plugin_name, plugin
        return None

    def get_plugin(self, plugin_type: PluginType, method: str) -> Any:  # noqa: ANN401
        """Retrieve a plugin class by its type and a supported method name.

        The `method` argument is either of the form
        `"plugin-name/method-name"`, requesting the method from the named
        plugin, or just `"method-name"`. In the latter case the first plugin
        that allows discovery and supports the method is returned.

        Args:
            plugin_type: The category of the plugin (e.g. `"engine"`).
            method:      The name of the method the plugin must support,
                         potentially prefixed with the plugin name and a
                         slash (`/`).

        Returns:
            The plugin class that matches the criteria.

        Raises:
            ValueError: If no matching plugin is found, or if "default" is used
                        as a method name without specifying a plugin name.
        """
        plugin = self._get_plugin(plugin_type, method)
        if plugin is not None:
            return plugin[1]
        msg = f"Method not found: {method}"
        raise ValueError(msg)

    def get_plugin_name(self, plugin_type: PluginType, method: str) -> str | None:
        """Return the name of the plugin that supports a given method.

        Args:
            plugin_type: The category of the plugin (e.g. `"engine"`).
            method:      The name of the method to check, potentially prefixed
                         with the plugin name and a slash (`/`).

        Returns:
            The name of a matching plugin supporting the method, or `None`.
        """
        plugin = self._get_plugin(plugin_type, method)
        if plugin is None:
            return None
        return plugin[0]


@cache  # Without the cache, repeated calls are very slow
def _from_entry_points(plugin_type: str) -> dict[str, type[Plugin]]:
    plugins: dict[str, type[Plugin]] = {}
    for entry_point in entry_points().select(
        group=f"cobyla_adapter.plugins.{plugin_type}"
    ):
        plugin = entry_point.load()
        plugins[entry_point.name] = plugin
        if not issubclass(plugins[entry_point.name], _PLUGIN_TYPES[plugin_type]):
            msg = (
                f"Incorrect type for {plugin_type} plugin `{entry_point.name}`"
                f": {type(plugins[entry_point.name])}"
            )
            raise TypeError(msg)
    return plugins
