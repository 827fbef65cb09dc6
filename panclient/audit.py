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

"""Audit comments attached to configuration objects"""

import collections
import xml.etree.ElementTree as ET
from datetime import datetime

from panclient import getlogger, util

logger = getlogger(__name__)

MAX_NLOGS = 5000

AuditComment = collections.namedtuple(
    "AuditComment", ["admin", "comment", "config_version", "time_generated", "time"]
)


def _log_time(text):
    try:
        return datetime.strptime(text, "%Y/%m/%d %H:%M:%S")
    except (TypeError, ValueError):
        return None


class AuditComments(object):
    """Audit Comment Subsystem

    Audit comments are kept per xpath, usually the xpath of a policy rule.
    A comment set here stays uncommitted until the next commit.

    Args:
        client (PanClient): The firewall or Panorama session

    """

    def __init__(self, client):
        # Create a class logger
        self._logger = getlogger(__name__ + "." + self.__class__.__name__)
        self.client = client

    def set_comment(self, xpath, comment):
        """Attach ``comment`` to the object at ``xpath``.

        Args:
            xpath: The object's xpath, as a string or a list of segments.
            comment (str): The comment text.

        """
        xpath = util.as_xpath(xpath)
        self.client.log_action("(action) setting audit comment: %s", xpath)
        cmd = ET.Element("set")
        ac = ET.SubElement(cmd, "audit-comment")
        ET.SubElement(ac, "xpath").text = xpath
        ET.SubElement(ac, "comment").text = comment
        self.client.op(cmd)

    def get_comment(self, xpath):
        """The uncommitted audit comment of ``xpath``, or "" if there is none."""
        xpath = util.as_xpath(xpath)
        self.client.log_query("(query) getting audit comment: %s", xpath)
        cmd = ET.Element("show")
        ET.SubElement(
            ET.SubElement(
                ET.SubElement(ET.SubElement(cmd, "config"), "list"), "audit-comments"
            ),
            "xpath",
        ).text = xpath
        root = self.client.op(cmd)
        if root is None:
            return ""

        comment = ""
        for e in root.findall("./result/entry"):
            comment = e.findtext("comment") or ""
        return comment

    def history(self, name, rule_type="security", direction="backward", nlogs=100, skip=None):
        """Committed audit comments of the rule ``name``, from the config log.

        Args:
            name (str): The rule name.
            rule_type (str): The rulebase the rule is in, for example
                "security", "nat", "pbf" or "decryption".
            direction (str): "backward" (newest first) or "forward".
            nlogs (int): How many comments to return, 1 to 5000.
            skip (int): How many comments to skip, for paging.

        Returns:
            list: :class:`AuditComment` tuples.  ``time`` is the naive
            device time, or None if it could not be parsed.

        """
        if not name:
            raise ValueError("A rule name is required")
        if not 1 <= int(nlogs) <= MAX_NLOGS:
            raise ValueError("nlogs must be between 1 and {0}".format(MAX_NLOGS))
        query = " and ".join(
            [
                "(subtype eq audit-comment)",
                "(path contains '\\'{0}\\'')".format(name),
                "(path contains '{0}')".format(rule_type),
            ]
        )
        self.client.log_query("(query) audit comment history: %s", name)
        entries = self.client.logs(
            "config",
            query=query,
            nlogs=nlogs,
            skip=skip,
            direction=direction,
            extra_qs={"uniq": "yes"},
            interval=1.0,
        )

        ans = []
        for e in entries:
            try:
                version = int(e.findtext("config_ver") or 0)
            except ValueError:
                version = 0
            generated = (e.findtext("time_generated") or "").strip()
            ans.append(
                AuditComment(
                    e.findtext("admin"),
                    e.findtext("comment") or "",
                    version,
                    generated,
                    _log_time(generated),
                )
            )
        return ans
