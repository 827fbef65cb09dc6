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

"""Licenses installed on a device"""

import collections
import datetime
import xml.etree.ElementTree as ET

import panclient.errors as err
from panclient import getlogger

logger = getlogger(__name__)

License = collections.namedtuple(
    "License",
    ["feature", "description", "serial", "issued", "expires", "expired", "authcode"],
)

MONTHS = {
    "January": 1,
    "February": 2,
    "March": 3,
    "April": 4,
    "May": 5,
    "June": 6,
    "July": 7,
    "August": 8,
    "September": 9,
    "October": 10,
    "November": 11,
    "December": 12,
}

# Plain text answers to a successful activation
ACTIVATION_MESSAGES = ("VM Device License installed. Restarting pan services.",)


def parse_license_date(value):
    """Turn "March 03, 2021" into a :class:`datetime.date`.

    "Never" (and a missing value) is None.  A value that can't be parsed
    is returned unchanged.
    """
    if value is None or value == "Never":
        return None
    tokens = value.split()
    try:
        return datetime.date(int(tokens[2]), MONTHS[tokens[0]], int(tokens[1].rstrip(",")))
    except (ValueError, KeyError, IndexError):
        return value


def parse_licenses(root):
    """License tuples from a ``request license`` response."""
    ans = []
    for x in root.findall("./result/licenses/entry"):
        ans.append(
            License(
                x.findtext("./feature"),
                x.findtext("./description"),
                x.findtext("./serial"),
                parse_license_date(x.findtext("./issued")),
                parse_license_date(x.findtext("./expires")),
                x.findtext("./expired") == "yes",
                x.findtext("./authcode"),
            )
        )
    return ans


class Licensing(object):
    """Licensing subsystem.  Nothing is cached, every call asks the device.

    Note: For namedtuple objects, you can access the variables via
    its index like a normal tuple or via name like a class.
    """

    def __init__(self, client):
        self.client = client

    def _request(self, inner):
        cmd = ET.Element("request")
        ET.SubElement(cmd, "license").append(inner)
        return self.client.op(cmd)

    def request_info(self):
        """Returns the licenses currently installed on this device.

        Returns:
            list: :class:`License` tuples with the following attributes:

                - feature (str): the feature name
                - description (str): description
                - serial (str): the license's serial number
                - issued (datetime.date/None): issue date
                - expires (datetime.date/None): expiration date, or None if the license does not expire
                - expired (bool): True if the license is currently expired
                - authcode (str/None): license's authcode

        """
        self.client.log_op("(op) getting license info")
        return parse_licenses(self._request(ET.Element("info")))

    def fetch(self):
        """Fetches licenses from the license server.

        Returns:
            list: :class:`License` tuples, as :meth:`request_info`.

        """
        self.client.log_op("(op) fetching licenses")
        return parse_licenses(self._request(ET.Element("fetch")))

    def activate(self, authcode):
        """Activate a feature using an authorization code.

        The device may answer a successful VM activation with plain text
        instead of XML, which is accepted.

        Raises:
            PanProtocolError: The answer was not XML and not a known
                success message.

        """
        self.client.log_op("(op) activating license with auth code")
        fetch = ET.Element("fetch")
        ET.SubElement(fetch, "auth-code").text = authcode
        try:
            self._request(fetch)
        except err.PanProtocolError as e:
            document = getattr(e, "document", None) or ""
            for msg in ACTIVATION_MESSAGES:
                if msg in document:
                    logger.debug("Activation answered with: %s", msg)
                    return
            raise
