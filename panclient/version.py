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

"""PAN-OS software version numbers"""

import re

from panclient import isstring


class Version(object):
    """A PAN-OS version such as ``9.0.3`` or ``9.0.3-h1``

    Versions are ordered by major, then minor, then patch.  The build
    suffix (``h1``, ``xfr``, ``b2``, ...) is kept for display but is
    ignored by every comparison.

    Args:
        version (str): The version string.

    Raises:
        ValueError: If the string is not ``major.minor.patch[-suffix]``.

    """

    PATTERN = re.compile(r"^(\d+)\.(\d+)\.(\d+)(?:[-.]([0-9A-Za-z.-]+))?$")

    def __init__(self, version):
        if not isstring(version):
            raise ValueError("Version must be a string: {0!r}".format(version))
        if isinstance(version, bytes):
            version = version.decode("utf-8")
        match = self.PATTERN.match(version.strip())
        if match is None:
            raise ValueError("Invalid version string: {0!r}".format(version))
        self._string = version.strip()
        self.major = int(match.group(1))
        self.minor = int(match.group(2))
        self.patch = int(match.group(3))
        self.suffix = match.group(4) or ""

    @property
    def mainrelease(self):
        return (self.major, self.minor, self.patch)

    def gte(self, other):
        """True if this version is the same as or newer than ``other``."""
        return self >= other

    def __str__(self):
        return self._string

    def __repr__(self):
        return "Version ('%s')" % str(self)

    def __hash__(self):
        return hash(self.mainrelease)

    def __eq__(self, other):
        other = as_tuple(other)
        if other is None:
            return NotImplemented
        return self.mainrelease == other

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __lt__(self, other):
        other = as_tuple(other)
        if other is None:
            return NotImplemented
        return self.mainrelease < other

    def __le__(self, other):
        other = as_tuple(other)
        if other is None:
            return NotImplemented
        return self.mainrelease <= other

    def __gt__(self, other):
        other = as_tuple(other)
        if other is None:
            return NotImplemented
        return self.mainrelease > other

    def __ge__(self, other):
        other = as_tuple(other)
        if other is None:
            return NotImplemented
        return self.mainrelease >= other


def as_tuple(value):
    """Turn a Version, version string or tuple into a (major, minor, patch) tuple.

    Returns None if ``value`` is not something that can be compared.
    """
    if isinstance(value, Version):
        return value.mainrelease
    if isstring(value):
        return Version(value).mainrelease
    if isinstance(value, tuple):
        return tuple(value[:3]) + (0,) * (3 - len(value[:3]))
    return None


def string_to_version(value):
    if isinstance(value, Version):
        return value
    if isinstance(value, tuple):
        return Version(".".join(str(x) for x in as_tuple(value)))
    return Version(value)
