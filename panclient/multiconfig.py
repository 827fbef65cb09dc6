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


"""Batching configuration changes into one multi-config request"""

import collections
import xml.etree.ElementTree as ET

from panclient import isstring, util


class MultiConfigResult(
    collections.namedtuple(
        "MultiConfigResult", ["id", "action", "xpath", "status", "code", "msg"]
    )
):
    """The device's answer to one request of a batch."""

    __slots__ = ()

    @property
    def ok(self):
        return self.status == "success"


class MultiConfigure(object):
    """Configuration changes to be sent together.

    Each change gets an id, starting at 1, that the device echoes in its
    answer.  Send the batch with :meth:`panclient.base.PanClient.multi_config`.

    Example:
        >>> mc = MultiConfigure()
        >>> mc.set("/config/shared/tag", "<entry name='web'/>")
        1
        >>> mc.delete("/config/shared/tag/entry[@name='old']")
        2

    """

    def __init__(self):
        self.requests = []

    def __len__(self):
        return len(self.requests)

    def _add(self, action, xpath, element=None, **attrib):
        req = ET.Element(action)
        req.set("id", str(len(self.requests) + 1))
        req.set("xpath", util.as_xpath(xpath))
        for k, v in attrib.items():
            if v is not None:
                req.set(k, v)
        if element is not None:
            if isstring(element):
                element = ET.fromstring("<x>{0}</x>".format(element))
                req.text = element.text
                req.extend(list(element))
            else:
                req.append(element)
        self.requests.append(req)
        return len(self.requests)

    def set(self, xpath, element):
        return self._add("set", xpath, element)

    def edit(self, xpath, element):
        return self._add("edit", xpath, element)

    def delete(self, xpath):
        return self._add("delete", xpath)

    def move(self, xpath, where, dst=None):
        return self._add("move", xpath, where=where, dst=dst)

    def rename(self, xpath, newname):
        return self._add("rename", xpath, newname=newname)

    def element(self):
        root = ET.Element("multi-configure-request")
        root.extend(self.requests)
        return root

    def element_str(self):
        return ET.tostring(self.element(), encoding="unicode")

    def results(self, root):
        """Pair the device's answers with the requests, in request order.

        A request the device did not answer (a strict batch stops at the
        first failure) is reported with status None.
        """
        answers = {}
        for resp in root.iter("response"):
            if resp is root or "id" not in resp.attrib:
                continue
            answers[resp.attrib["id"]] = resp

        ans = []
        for req in self.requests:
            resp = answers.get(req.attrib["id"])
            status = code = msg = None
            if resp is not None:
                status = resp.attrib.get("status")
                try:
                    code = int(resp.attrib["code"])
                except (KeyError, ValueError):
                    code = None
                msg = _message(resp)
            ans.append(
                MultiConfigResult(
                    int(req.attrib["id"]),
                    req.tag,
                    req.attrib["xpath"],
                    status,
                    code,
                    msg,
                )
            )
        return ans


def _message(resp):
    lines = [
        "".join(x.itertext()).strip() for x in resp.findall("./msg/line")
    ]
    lines = [x for x in lines if x]
    if lines:
        return " | ".join(lines)
    elm = resp.find("./msg")
    if elm is not None:
        text = "".join(elm.itertext()).strip()
        if text:
            return text
    return None
