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

"""Retrieving and parsing predefined objects from the device"""

import re

import panclient.errors as err
from panclient import getlogger, schema, util
from panclient.schema import VersionedEntry, VersionedParamPath

logger = getlogger(__name__)

VULNERABILITY = "vulnerability"
PHONE_HOME = "phone-home"
THREAT_TYPES = (VULNERABILITY, PHONE_HOME)


class Threat(VersionedEntry):
    """A predefined threat signature.

    Args:
        name (str): The threat ID
        threat_name (str): The human readable threat name
        category (str): Threat category
        severity (str): Severity

    """

    def _setup(self):
        params = []

        params.append(VersionedParamPath("threat_name", path="threatname"))
        params.append(VersionedParamPath("category", path="category"))
        params.append(VersionedParamPath("severity", path="severity"))

        self._params = tuple(params)


class FileType(VersionedEntry):
    """A predefined file type.

    Args:
        name (str): The file type
        full_name (str): Description of the file type
        data_ident (bool): Usable in data filtering
        file_type_ident (bool): Usable in file blocking

    """

    def _setup(self):
        params = []

        params.append(VersionedParamPath("full_name", path="full-name"))
        params.append(VersionedParamPath("data_ident", path="data-ident", vartype="yesno"))
        params.append(
            VersionedParamPath("file_type_ident", path="file-type-ident", vartype="yesno")
        )

        self._params = tuple(params)


def _matches(regex, value):
    return regex is None or (value is not None and re.search(regex, value) is not None)


class Predefined(object):
    """Predefined Objects Subsystem

    Read only access to the device's predefined threats and file types.
    Every call asks the device; pass ``running=True`` to read the running
    (SHOW) instead of the candidate (GET) configuration.

    Args:
        client (PanClient): The firewall or Panorama session

    """

    def __init__(self, client):
        # Create a class logger
        self._logger = getlogger(__name__ + "." + self.__class__.__name__)
        self.client = client

    @staticmethod
    def threat_xpath(threat_type, names):
        if threat_type not in THREAT_TYPES:
            raise ValueError("Invalid threat type: {0}".format(threat_type))
        return ["config", "predefined", "threats", threat_type, util.as_entry_xpath(names)]

    @staticmethod
    def file_type_xpath(names):
        return ["config", "predefined", "tdb", "file-type", util.as_entry_xpath(names)]

    def _fn(self, running):
        return self.client.show if running else self.client.get

    def _fetch(self, entry_cls, path, running, listing=False):
        """Load the entries at ``path``; a listing with nothing found is empty."""
        container, _ = schema.versioning(entry_cls, self.client.versioning())
        try:
            root = self._fn(running)(path)
        except err.PanObjectMissing:
            if not listing:
                raise
            return []
        return container.load(root).normalize()

    def threat(self, name, threat_type=VULNERABILITY, running=False):
        """The threat with the ID ``name``.

        Raises:
            PanObjectMissing: There is no such threat.

        """
        self.client.log_query("(query) predefined %s threat: %s", threat_type, name)
        ans = self._fetch(Threat, self.threat_xpath(threat_type, [name]), running)
        if not ans:
            raise self._missing("threat", name)
        return ans[0]

    def threats(self, threat_type=VULNERABILITY, name_regex=None, threat_name_regex=None, running=False):
        """Threats of ``threat_type`` whose ID and name match the regexes."""
        self.client.log_query("(query) predefined %s threats", threat_type)
        ans = self._fetch(Threat, self.threat_xpath(threat_type, []), running, listing=True)
        return [
            x
            for x in ans
            if _matches(name_regex, x.name) and _matches(threat_name_regex, x.threat_name)
        ]

    def file_type(self, name, running=False):
        """The file type ``name``.

        Raises:
            PanObjectMissing: There is no such file type.

        """
        self.client.log_query("(query) predefined file type: %s", name)
        ans = self._fetch(FileType, self.file_type_xpath([name]), running)
        if not ans:
            raise self._missing("file type", name)
        return ans[0]

    def file_types(self, name_regex=None, full_name_regex=None, running=False):
        """File types whose name and full name match the regexes."""
        self.client.log_query("(query) predefined file types")
        ans = self._fetch(FileType, self.file_type_xpath([]), running, listing=True)
        return [
            x
            for x in ans
            if _matches(name_regex, x.name) and _matches(full_name_regex, x.full_name)
        ]

    def _missing(self, kind, name):
        return err.PanObjectMissing(
            'Predefined {0} "{1}" not found'.format(kind, name),
            code=err.OBJECT_NOT_FOUND,
            pan_device=self.client,
        )
