#!/usr/bin/env python

# Copyright (c) 2014, Palo Alto Networks
#
# Permission to use, copy, modify, and/or distribute this software for any
# purpose with or without fee is hereby granted, provided that the above
# copyright notice and this permission notice appear in all copies.
#
# THE SOFTWARE IS PROVIDED "AS IS" AND THE AUTHOR DISCLAIMS ALL WARRANTIES
# WITH REGARD TO THIS SOFTWARE INCLUDING ALL IMPLIED WARRANTIES OF
# MERCHANTABILITY AND FITNESS. IN NO EVENT SHALL THE AUTHOR BE LIABLE FOR
# ANY SPECIAL, DIRECT, INDIRECT, OR CONSEQUENTIAL DAMAGES OR ANY DAMAGES
# WHATSOEVER RESULTING FROM LOSS OF USE, DATA OR PROFITS, WHETHER IN AN
# ACTION OF CONTRACT, NEGLIGENCE OR OTHER TORTIOUS ACTION, ARISING OUT OF
# OR IN CONNECTION WITH THE USE OR PERFORMANCE OF THIS SOFTWARE.

"""Namespaces for configuration owned by a plugin

Plugin configuration is versioned by the plugin, not by PAN-OS, so the
schema is chosen from the session's plugin inventory.
"""

import panclient.errors as err
from panclient import getlogger, schema
from panclient.namespace import Namespace, Standard
from panclient.version import Version

logger = getlogger(__name__)


def plugin_version(plugin):
    """The version of ``plugin`` without its ``name-`` prefix.

    The inventory reports versions like ``vm_series-2.0.2``.
    """
    value = plugin.version or ""
    prefix = plugin.name + "-"
    if value.startswith(prefix):
        value = value[len(prefix):]
    return value


def find_plugin(plugins, name):
    """The installed plugin called ``name``, or None."""
    for plugin in plugins:
        if plugin.name == name and plugin.installed:
            return plugin
    return None


def plugin_versioning(entry_cls, plugins, name, min_version=None, max_version=None):
    """Container and marshaler for ``entry_cls`` given the plugin inventory.

    Args:
        entry_cls: The :class:`panclient.schema.VersionedEntry` subclass.
        plugins (list): The session's :class:`panclient.base.Plugin` list.
        name (str): The plugin that owns the entry type.
        min_version (str): Oldest supported plugin version.
        max_version (str): First unsupported plugin version.

    Raises:
        PanPluginNotInstalled: ``name`` is not installed.
        PanPluginVersionMismatch: The installed version is out of range.

    """
    plugin = find_plugin(plugins, name)
    if plugin is None:
        raise err.PanPluginNotInstalled('Plugin "{0}" is not installed'.format(name))

    raw = plugin_version(plugin)
    try:
        version = Version(raw)
    except ValueError:
        raise err.PanPluginVersionMismatch(
            'Plugin "{0}" has an unrecognized version: {1}'.format(name, raw)
        )

    if min_version is not None and version < min_version:
        raise err.PanPluginVersionMismatch(
            'Plugin "{0}" {1} is older than {2}'.format(name, version, min_version)
        )
    if max_version is not None and version >= max_version:
        raise err.PanPluginVersionMismatch(
            'Plugin "{0}" {1} is not supported, must be older than {2}'.format(
                name, version, max_version
            )
        )

    logger.debug("Plugin %s at %s", name, version)
    return schema.versioning(entry_cls, version)


class PluginStandard(Standard):
    """CRUD for an entry type versioned by a plugin."""

    def __init__(self, client, entry_cls, singular, plural=None, plugin=None):
        super(PluginStandard, self).__init__(client, entry_cls, singular, plural)
        self.plugin = plugin

    def versioning(self):
        name, min_version, max_version = self.plugin
        return plugin_versioning(
            self.entry_cls, self.client.plugins(), name, min_version, max_version
        )


class PluginNamespace(Namespace):
    """Public facade for plugin configuration.

    Subclasses set ``PLUGIN`` to ``(name, min_version, max_version)``.
    Every operation raises a :class:`panclient.errors.PanPluginError` when
    that plugin is missing or out of range.
    """

    PLUGIN = None

    def __init__(self, client):
        self.client = client
        self.ns = PluginStandard(
            client, self.ENTRY, self.SINGULAR, self.PLURAL, plugin=self.PLUGIN
        )
