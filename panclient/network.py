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

"""Network configuration that is imported into a vsys"""

from panclient import util
from panclient.namespace import ImportableNamespace
from panclient.schema import VersionedEntry, VersionedParamPath


class VlanInterface(VersionedEntry):
    """Vlan interface

    Args:
        name (str): Interface name
        ip (list): Interface IPv4 addresses, in order
        management_profile (str): Interface Management Profile
        mtu (int): MTU
        adjust_tcp_mss (bool): Adjust TCP MSS
        netflow_profile (str): Netflow profile
        comment (str): The interface's comment
        ipv4_mss_adjust (int): (7.1+) IPv4 MSS adjustment
        ipv6_mss_adjust (int): (7.1+) IPv6 MSS adjustment
        enable_dhcp (bool): Enable DHCP on this interface
        create_dhcp_default_route (bool): Install the default route the
            DHCP server hands out
        dhcp_default_route_metric (int): Metric for the DHCP default route

    The ``ipv6``, ``arp`` and ``ndp-proxy`` subtrees are not modeled and
    are written back as they were read.

    """

    def _setup(self):
        params = []

        params.append(VersionedParamPath("ip", path="ip", vartype="entry"))
        params.append(
            VersionedParamPath(
                "management_profile", path="interface-management-profile"
            )
        )
        params.append(VersionedParamPath("mtu", path="mtu", vartype="int"))
        params.append(
            VersionedParamPath("adjust_tcp_mss", path="adjust-tcp-mss", vartype="yesno")
        )
        params[-1].add_profile("7.1.0", vartype="yesno", path="adjust-tcp-mss/enable")
        params.append(VersionedParamPath("netflow_profile", path="netflow-profile"))
        params.append(VersionedParamPath("comment", path="comment"))
        params.append(VersionedParamPath("ipv4_mss_adjust", exclude=True))
        params[-1].add_profile(
            "7.1.0", path="adjust-tcp-mss/ipv4-mss-adjustment", vartype="int"
        )
        params.append(VersionedParamPath("ipv6_mss_adjust", exclude=True))
        params[-1].add_profile(
            "7.1.0", path="adjust-tcp-mss/ipv6-mss-adjustment", vartype="int"
        )
        params.append(
            VersionedParamPath(
                "enable_dhcp", path="dhcp-client/enable", vartype="yesno"
            )
        )
        params.append(
            VersionedParamPath(
                "create_dhcp_default_route",
                path="dhcp-client/create-default-route",
                vartype="yesno",
            )
        )
        params.append(
            VersionedParamPath(
                "dhcp_default_route_metric",
                path="dhcp-client/default-route-metric",
                vartype="int",
            )
        )

        self._params = tuple(params)


class VirtualRouter(VersionedEntry):
    """Virtual router

    Args:
        name (str): Name of virtual router
        interface (list): List of interface names
        ad_static, ad_static_ipv6, ad_ospf_int, ad_ospf_ext, ad_ospfv3_int,
        ad_ospfv3_ext, ad_ibgp, ad_ebgp, ad_rip (int): Administrative
            distances

    Routing protocols and static routes are kept as raw XML.

    """

    ADMIN_DISTS = (
        ("ad_static", "static"),
        ("ad_static_ipv6", "static-ipv6"),
        ("ad_ospf_int", "ospf-int"),
        ("ad_ospf_ext", "ospf-ext"),
        ("ad_ospfv3_int", "ospfv3-int"),
        ("ad_ospfv3_ext", "ospfv3-ext"),
        ("ad_ibgp", "ibgp"),
        ("ad_ebgp", "ebgp"),
        ("ad_rip", "rip"),
    )

    def _setup(self):
        params = []

        params.append(
            VersionedParamPath("interface", path="interface", vartype="member")
        )
        for var_name, path in self.ADMIN_DISTS:
            params.append(
                VersionedParamPath(var_name, vartype="int", path="admin-dists/" + path)
            )

        self._params = tuple(params)


class LogicalRouter(VersionedEntry):
    """Logical router, the advanced routing engine's router

    Args:
        name (str): Name of logical router
        vrf (list): Names of the VRFs

    """

    MIN_VERSION = "10.2.0"

    def _setup(self):
        params = []

        params.append(VersionedParamPath("vrf", path="vrf", vartype="entry"))

        self._params = tuple(params)


class _NetworkNamespace(ImportableNamespace):
    SUFFIX = None

    def xpath(self, names, template=None, template_stack=None):
        return self.network_location(template, template_stack) + list(self.SUFFIX) + [
            util.as_entry_xpath(names)
        ]


class VlanInterfaces(_NetworkNamespace):
    """VLAN interfaces, imported into a vsys as interfaces."""

    ENTRY = VlanInterface
    SINGULAR = "VLAN interface"
    PLURAL = "VLAN interfaces"
    SUFFIX = ("interface", "vlan", "units")
    IMPORT_LOCATION = util.INTERFACE_IMPORT


class VirtualRouters(_NetworkNamespace):
    ENTRY = VirtualRouter
    SINGULAR = "virtual router"
    PLURAL = "virtual routers"
    SUFFIX = ("virtual-router",)
    IMPORT_LOCATION = util.VIRTUAL_ROUTER_IMPORT


class LogicalRouters(_NetworkNamespace):
    ENTRY = LogicalRouter
    SINGULAR = "logical router"
    PLURAL = "logical routers"
    SUFFIX = ("logical-router",)
    IMPORT_LOCATION = util.LOGICAL_ROUTER_IMPORT
