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

"""Firewall session"""

from panclient import device, network, objects, policies
from panclient.base import PanClient


class Firewall(PanClient):
    """A session with a firewall.

    Takes the arguments of :class:`panclient.base.PanClient`, plus:

    Args:
        vsys (str): The vsys objects and policies go to when no ``vsys``
            is given to an operation (Default: "vsys1").  Use "shared" for
            the shared location.

    Attributes:
        addresses (Addresses): Address objects.
        services (Services): Service objects.
        tags (Tags): Administrative tags.
        security_rules (SecurityRules): Security rules.
        vsystems (Vsystems): Virtual systems.
        vlan_interfaces (VlanInterfaces): VLAN interfaces.
        virtual_routers (VirtualRouters): Virtual routers.
        logical_routers (LogicalRouters): Logical routers (10.2+).

    """

    PLUGINS_MIN_VERSION = (9, 0, 0)
    DEFAULT_VSYS = "vsys1"

    def __init__(self, *args, **kwargs):
        vsys = kwargs.pop("vsys", None)
        super(Firewall, self).__init__(*args, **kwargs)
        self._vsys = vsys or self.DEFAULT_VSYS

        self.addresses = objects.Addresses(self)
        self.services = objects.Services(self)
        self.tags = objects.Tags(self)
        self.security_rules = policies.SecurityRules(self)
        self.vsystems = device.Vsystems(self)
        self.vlan_interfaces = network.VlanInterfaces(self)
        self.virtual_routers = network.VirtualRouters(self)
        self.logical_routers = network.LogicalRouters(self)

    @property
    def vsys(self):
        return self._vsys

    def commit(self, cmd=None, action=None, exception=False, extra_qs=None, target=None):
        """Start a commit, see :meth:`panclient.base.PanClient.commit`.

        ``cmd`` is normally a :class:`panclient.commit.FirewallCommit`.
        """
        self._logger.debug("Commit initiated on device: %s", self.id)
        return super(Firewall, self).commit(cmd, action, exception, extra_qs, target)
