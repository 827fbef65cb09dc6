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

"""XML and XPath helpers shared by the rest of the package"""

import re
import xml.etree.ElementTree as ET

from panclient import isstring, string_or_list_or_none


# Rulebase names
RULEBASE = "rulebase"
PRE_RULEBASE = "pre-rulebase"
POST_RULEBASE = "post-rulebase"

# Locations usable with vsys_import() and vsys_unimport()
INTERFACE_IMPORT = "interface"
VIRTUAL_ROUTER_IMPORT = "virtual-router"
VIRTUAL_WIRE_IMPORT = "virtual-wire"
VLAN_IMPORT = "vlan"
LOGICAL_ROUTER_IMPORT = "logical-router"
IMPORT_LOCATIONS = (
    INTERFACE_IMPORT,
    VIRTUAL_ROUTER_IMPORT,
    VIRTUAL_WIRE_IMPORT,
    VLAN_IMPORT,
    LOGICAL_ROUTER_IMPORT,
)

# Movements for positioning ordered entries (rules)
MOVE_SKIP = 0
MOVE_BEFORE = 1
MOVE_DIRECTLY_BEFORE = 2
MOVE_AFTER = 3
MOVE_DIRECTLY_AFTER = 4
MOVE_TOP = 5
MOVE_BOTTOM = 6

LOCALHOST = "localhost.localdomain"

_RAW_XML_ATTRS = re.compile(
    r' admin="\S+" dirtyId="\d+" time="\d{4}/\d{2}/\d{2} \d{2}:\d{2}:\d{2}"'
)


def valid_movement(movement):
    return MOVE_SKIP <= movement <= MOVE_BOTTOM


def relative_movement(movement):
    return movement in (
        MOVE_BEFORE,
        MOVE_DIRECTLY_BEFORE,
        MOVE_AFTER,
        MOVE_DIRECTLY_AFTER,
    )


def quote(value):
    """Quote ``value`` as an XPath string literal.

    Values containing an apostrophe are split and joined back together
    with ``concat()``.
    """
    value = str(value)
    if "'" not in value:
        return "'{0}'".format(value)
    parts = []
    for i, chunk in enumerate(value.split("'")):
        if i:
            parts.append('"\'"')
        if chunk:
            parts.append("'{0}'".format(chunk))
    if len(parts) == 1:
        return parts[0]
    return "concat({0})".format(", ".join(parts))


def as_entry_xpath(names):
    """Entry selector for one or more names.

    Examples:
        ["a"] -> entry[@name='a']
        ["a", "b"] -> entry[@name='a' or @name='b']
        [] -> entry

    """
    names = string_or_list_or_none(names)
    if not names or (len(names) == 1 and not names[0]):
        return "entry"
    return "entry[{0}]".format(
        " or ".join("@name={0}".format(quote(x)) for x in names)
    )


def as_member_xpath(values):
    """Member selector for one or more values, ``member[text()='a' or ...]``."""
    values = string_or_list_or_none(values)
    if not values:
        return "member"
    return "member[{0}]".format(
        " or ".join("text()={0}".format(quote(x)) for x in values)
    )


def as_xpath(path):
    """Join a list of path segments into an absolute xpath.

    Strings are returned unchanged.
    """
    if path is None:
        return None
    if isstring(path):
        return path
    return "/" + "/".join(path)


def str_to_mem(values, tag):
    """Build ``<tag><member>v</member>...</tag>``, or None for no values."""
    if values is None:
        return None
    elm = ET.Element(tag)
    for value in string_or_list_or_none(values):
        ET.SubElement(elm, "member").text = str(value)
    return elm


def mem_to_str(elm):
    """Member texts of ``elm`` in document order, or None if ``elm`` is None."""
    if elm is None:
        return None
    return [x.text or "" for x in elm.findall("member")]


def str_to_ent(names, tag):
    """Build ``<tag><entry name="n"/>...</tag>``, or None for no names."""
    if names is None:
        return None
    elm = ET.Element(tag)
    for name in string_or_list_or_none(names):
        ET.SubElement(elm, "entry", {"name": str(name)})
    return elm


def ent_to_str(elm):
    """Entry names of ``elm`` in document order, or None if ``elm`` is None."""
    if elm is None:
        return None
    return [x.attrib.get("name", "") for x in elm.findall("entry")]


def vsys_map_to_ent(devices, tag="devices"):
    """Build the ``devices`` element from a serial number -> vsys list map.

    An empty vsys list means the whole device.
    """
    if devices is None:
        return None
    elm = ET.Element(tag)
    for serial in sorted(devices):
        device = ET.SubElement(elm, "entry", {"name": serial})
        vsys = devices[serial]
        if vsys:
            vsys_elm = ET.SubElement(device, "vsys")
            for name in string_or_list_or_none(vsys):
                ET.SubElement(vsys_elm, "entry", {"name": name})
    return elm


def vsys_ent_to_map(elm):
    """Inverse of :func:`vsys_map_to_ent`."""
    if elm is None:
        return None
    ans = {}
    for device in elm.findall("entry"):
        ans[device.attrib.get("name", "")] = ent_to_str(device.find("vsys")) or []
    return ans


def yes_no(value):
    """True -> "yes", anything else -> "no"."""
    return "yes" if value else "no"


def as_bool(value):
    """True only for the string "yes"."""
    return value == "yes"


def clean_raw_xml(text):
    """Remove the candidate config change markers from raw XML text."""
    return _RAW_XML_ATTRS.sub("", text)


class RawXml(object):
    """A verbatim XML subtree carried through untouched.

    Args:
        text (str): The subtree as XML text.  Change markers such as
            ``admin``, ``dirtyId`` and ``time`` are stripped.

    """

    def __init__(self, text):
        if isinstance(text, bytes):
            text = text.decode("utf-8")
        self.text = clean_raw_xml(text)

    @classmethod
    def from_element(cls, elm):
        elm_copy = ET.fromstring(ET.tostring(elm, encoding="unicode"))
        elm_copy.tail = None
        return cls(ET.tostring(elm_copy, encoding="unicode"))

    @property
    def tag(self):
        return self.element().tag

    def element(self):
        return ET.fromstring(self.text)

    def __eq__(self, other):
        return isinstance(other, RawXml) and self.text == other.text

    def __ne__(self, other):
        return not self.__eq__(other)

    def __repr__(self):
        return "RawXml({0!r})".format(self.text)


class BulkElement(object):
    """Groups entries so that several can be sent with one SET.

    Args:
        tag (str): The tag of the wrapper, which is the list element name
            (the penultimate xpath segment of the entries).
        elements (list): The marshaled entry elements.

    """

    def __init__(self, tag, elements=None):
        self.tag = tag
        self.elements = list(elements or [])

    def config(self):
        """The element to send: the entry itself if there is only one."""
        if len(self.elements) == 1:
            return self.elements[0]
        elm = ET.Element(self.tag)
        for x in self.elements:
            elm.append(x)
        return elm


def template_xpath_prefix(template=None, template_stack=None):
    """Path segments of a Panorama template or template stack."""
    if template:
        return [
            "config",
            "devices",
            as_entry_xpath([LOCALHOST]),
            "template",
            as_entry_xpath([template]),
        ]
    if template_stack:
        return [
            "config",
            "devices",
            as_entry_xpath([LOCALHOST]),
            "template-stack",
            as_entry_xpath([template_stack]),
        ]
    return []


def vsys_xpath_prefix(vsys=None):
    """Path segments of a vsys, or of the shared location."""
    if vsys is None or vsys == "shared":
        return ["config", "shared"]
    return [
        "config",
        "devices",
        as_entry_xpath([LOCALHOST]),
        "vsys",
        as_entry_xpath([vsys]),
    ]


def device_group_xpath_prefix(device_group=None):
    """Path segments of a device group, or of the shared location."""
    if device_group is None or device_group == "shared":
        return ["config", "shared"]
    return [
        "config",
        "devices",
        as_entry_xpath([LOCALHOST]),
        "device-group",
        as_entry_xpath([device_group]),
    ]


def scope_xpath_prefix(
    vsys=None, device_group=None, template=None, template_stack=None
):
    """Location prefix for the given scope.

    A device group wins; otherwise the vsys (default "vsys1") is used,
    inside the template or template stack if one is given.
    """
    if device_group is not None:
        return device_group_xpath_prefix(device_group)
    prefix = template_xpath_prefix(template, template_stack)
    vsys_prefix = vsys_xpath_prefix(vsys or "vsys1")
    if prefix:
        # Template locations keep /config/... below the template entry
        return prefix + vsys_prefix
    return vsys_prefix
