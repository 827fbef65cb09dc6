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

"""Objects: addresses, services and tags"""

from panclient import getlogger, util
from panclient.namespace import Namespace
from panclient.schema import VersionedEntry, VersionedParamPath

logger = getlogger(__name__)


class AddressObject(VersionedEntry):
    """Address Object

    Args:
        name (str): Name of the object
        value (str): IP address or other value of the object
        type (str): Type of address:
                * ip-netmask (default)
                * ip-range
                * ip-wildcard (added in PAN-OS 9.0)
                * fqdn
        description (str): Description of this object
        tag (list): Administrative tags

    """

    def _setup(self):
        params = []

        params.append(VersionedParamPath("value", path="{type}"))
        params.append(
            VersionedParamPath(
                "type",
                default="ip-netmask",
                values=["ip-netmask", "ip-range", "fqdn"],
                path="{type}",
            )
        )
        params[-1].add_profile(
            "9.0.0",
            values=["ip-netmask", "ip-range", "ip-wildcard", "fqdn"],
            path="{type}",
        )
        params.append(VersionedParamPath("description", path="description"))
        params.append(VersionedParamPath("tag", path="tag", vartype="member"))

        self._params = tuple(params)


class Tag(VersionedEntry):
    """Administrative tag

    Args:
        name (str): Name of the tag
        color (str): Color ID (eg. 'color1', 'color4', etc). You can
            use :func:`~panclient.objects.Tag.color_code` to generate the ID.
        comments (str): Comments

    """

    COLORS = (
        "red",
        "green",
        "blue",
        "yellow",
        "copper",
        "orange",
        "purple",
        "gray",
        "light green",
        "cyan",
        "light gray",
        "blue gray",
        "lime",
        "black",
        "gold",
        "brown",
        "olive",
    )

    def _setup(self):
        params = []

        params.append(VersionedParamPath("color", path="color"))
        params.append(VersionedParamPath("comments", path="comments"))

        self._params = tuple(params)

    @classmethod
    def color_code(cls, color_name):
        """The color ID of ``color_name``, such as "color3" for "blue"."""
        try:
            return "color{0}".format(cls.COLORS.index(color_name) + 1)
        except ValueError:
            raise ValueError("Color '{0}' is not valid".format(color_name))


class ServiceObject(VersionedEntry):
    """Service Object

    Args:
        name (str): Name of the object
        protocol (str): Protocol of the service: tcp, udp, or sctp (8.1+)
        source_port (str): Source port of the protocol, if any
        destination_port (str): Destination port of the service
        description (str): Description of this object
        tag (list): Administrative tags
        override_session_timeout (bool): (8.1+) Override the session timeouts
        override_timeout (int): (8.1+) Session timeout
        override_half_closed_timeout (int): (8.1+) TCP half closed timeout
        override_time_wait_timeout (int): (8.1+) TCP time wait timeout

    """

    def _setup(self):
        params = []

        params.append(
            VersionedParamPath(
                "protocol",
                path="protocol/{protocol}",
                values=["tcp", "udp"],
                default="tcp",
            )
        )
        params[-1].add_profile(
            "8.1.0", path="protocol/{protocol}", values=["tcp", "udp", "sctp"]
        )
        params.append(
            VersionedParamPath("source_port", path="protocol/{protocol}/source-port")
        )
        params.append(
            VersionedParamPath("destination_port", path="protocol/{protocol}/port")
        )
        params.append(VersionedParamPath("description", path="description"))
        params.append(VersionedParamPath("tag", path="tag", vartype="member"))

        # Session timeout overrides
        params.append(VersionedParamPath("override_session_timeout", exclude=True))
        params[-1].add_profile(
            "8.1.0",
            path="protocol/{protocol}/override/yes",
            vartype="exist",
            condition={"protocol": ["tcp", "udp"], "override_session_timeout": True},
        )
        params.append(VersionedParamPath("override_timeout", exclude=True))
        params[-1].add_profile(
            "8.1.0",
            path="protocol/{protocol}/override/yes/timeout",
            vartype="int",
            condition={"protocol": ["tcp", "udp"], "override_session_timeout": True},
        )
        params.append(VersionedParamPath("override_half_closed_timeout", exclude=True))
        params[-1].add_profile(
            "8.1.0",
            path="protocol/tcp/override/yes/halfclose-timeout",
            vartype="int",
            condition={"protocol": ["tcp"], "override_session_timeout": True},
        )
        params.append(VersionedParamPath("override_time_wait_timeout", exclude=True))
        params[-1].add_profile(
            "8.1.0",
            path="protocol/tcp/override/yes/timewait-timeout",
            vartype="int",
            condition={"protocol": ["tcp"], "override_session_timeout": True},
        )

        self._params = tuple(params)


class _ObjectNamespace(Namespace):
    SUFFIX = None

    def xpath(self, names, vsys=None, device_group=None, template=None, template_stack=None):
        return self.location(vsys, device_group, template, template_stack) + [
            self.SUFFIX,
            util.as_entry_xpath(names),
        ]


class Addresses(_ObjectNamespace):
    """Address objects of a vsys or device group."""

    ENTRY = AddressObject
    SINGULAR = "address object"
    PLURAL = "address objects"
    SUFFIX = "address"


class Services(_ObjectNamespace):
    """Service objects of a vsys or device group."""

    ENTRY = ServiceObject
    SINGULAR = "service object"
    PLURAL = "service objects"
    SUFFIX = "service"


class Tags(_ObjectNamespace):
    """Administrative tags of a vsys or device group."""

    ENTRY = Tag
    SINGULAR = "administrative tag"
    PLURAL = "administrative tags"
    SUFFIX = "tag"
