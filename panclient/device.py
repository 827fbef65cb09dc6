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

"""Device configuration: virtual systems"""

from panclient import util
from panclient.namespace import Namespace
from panclient.schema import VersionedEntry, VersionedParamPath


class Vsys(VersionedEntry):
    """Virtual System (VSYS)

    Interfaces, vlans, virtual wires and routers normally join a vsys
    through :meth:`panclient.base.PanClient.vsys_import` when they are
    created; the lists here reflect the result.

    Args:
        name (str): Vsys identifier (eg. 'vsys1', 'vsys5', etc)
        display_name (str): Friendly name of the vsys
        interface (list): Names of the imported interfaces
        vlans (list): Names of the imported VLANs
        virtual_wires (list): Names of the imported virtual wires
        virtual_routers (list): Names of the imported virtual routers
        logical_routers (list): (10.2+) Names of the imported logical routers
        visible_vsys (list): A list of strings of the vsys visible
        dns_proxy (str): DNS Proxy server
        decrypt_forwarding (bool): Allow forwarding of decrypted content

    """

    def _setup(self):
        params = []

        params.append(VersionedParamPath("display_name", path="display-name"))
        params.append(
            VersionedParamPath(
                "interface", vartype="member", path="import/network/interface"
            )
        )
        params.append(
            VersionedParamPath("vlans", vartype="member", path="import/network/vlan")
        )
        params.append(
            VersionedParamPath(
                "virtual_wires", vartype="member", path="import/network/virtual-wire"
            )
        )
        params.append(
            VersionedParamPath(
                "virtual_routers",
                vartype="member",
                path="import/network/virtual-router",
            )
        )
        params.append(VersionedParamPath("logical_routers", exclude=True))
        params[-1].add_profile(
            "10.2.0", vartype="member", path="import/network/logical-router"
        )
        params.append(
            VersionedParamPath(
                "visible_vsys", vartype="member", path="import/visible-vsys"
            )
        )
        params.append(VersionedParamPath("dns_proxy", path="import/dns-proxy"))
        params.append(
            VersionedParamPath(
                "decrypt_forwarding",
                vartype="yesno",
                path="setting/ssl-decrypt/allow-forward-decrypted-content",
            )
        )

        self._params = tuple(params)


class Vsystems(Namespace):
    """Virtual systems of a firewall, or of a Panorama template."""

    ENTRY = Vsys
    SINGULAR = "vsys"
    PLURAL = "vsys"

    def xpath(self, names, template=None, template_stack=None):
        if self._is_panorama() and not (template or template_stack):
            raise ValueError("Specify a template or template stack")
        return util.template_xpath_prefix(template, template_stack) + [
            "config",
            "devices",
            util.as_entry_xpath([util.LOCALHOST]),
            "vsys",
            util.as_entry_xpath(names),
        ]
