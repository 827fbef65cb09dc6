# -*- coding: utf-8 -*-

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


"""panclient is the XML API client core for Palo Alto Networks devices

It handles the session with a firewall or Panorama (API key, version and
plugin discovery), the XML API verbs, versioned XML marshaling of
configuration entries, generic CRUD namespaces and job tracking.

"""

__author__ = "Palo Alto Networks"
__email__ = "techpartners@paloaltonetworks.com"
__version__ = "0.1.0"


import logging
import types

import pan

# Extra debug levels, below logging.DEBUG
DEBUG1 = logging.DEBUG - 1
DEBUG2 = DEBUG1 - 1
DEBUG3 = DEBUG2 - 1
DEBUG4 = DEBUG3 - 1

_DEBUG_LEVELS = (("debug1", DEBUG1), ("debug2", DEBUG2), ("debug3", DEBUG3), ("debug4", DEBUG4))

for _name, _level in _DEBUG_LEVELS:
    logging.addLevelName(_level, _name.upper())

# Keep pan-python's own debug levels out of the way of ours
pan.DEBUG1 = logging.DEBUG - 2
pan.DEBUG2 = pan.DEBUG1 - 1
pan.DEBUG3 = pan.DEBUG2 - 1


def _level_method(level):
    return lambda inst, msg, *args, **kwargs: inst.log(level, msg, *args, **kwargs)


def getlogger(name=__name__):
    """A logger for ``name`` with ``debug1()`` .. ``debug4()`` methods.

    A :class:`logging.NullHandler` is attached; handlers are left to the
    application.
    """
    logger_instance = logging.getLogger(name)
    logger_instance.addHandler(logging.NullHandler())
    for method, level in _DEBUG_LEVELS:
        setattr(logger_instance, method, types.MethodType(_level_method(level), logger_instance))
    return logger_instance


logger = getlogger(__name__)


def isstring(arg):
    return isinstance(arg, (str, bytes))


def string_or_list(value):
    """Wrap a single value in a list.

    Strings and non-iterables become a one item list, other iterables are
    turned into a list, and None stays None.

    Examples:
        "t1" -> ["t1"]
        ("t1", "t2") -> ["t1", "t2"]

    """
    if value is None:
        return None
    if isstring(value):
        return [value]
    return list(value) if "__iter__" in dir(value) else [value]


def string_or_list_or_none(value):
    """Same as :func:`string_or_list`, but None becomes an empty list."""
    if value is None:
        return []
    return string_or_list(value)


def xml_combine(root, elements):
    """Merge the children of ``elements`` into ``root``, in place.

    Children with a tag ``root`` already has are merged recursively;
    ``entry`` and ``member`` children are always appended.
    """
    if root is None:
        return elements
    elif elements is None:
        return root
    for element in list(elements):
        # Named entries are distinct siblings, never merged
        if element.tag in ("entry", "member"):
            root.append(element)
            continue
        found_element = root.find(element.tag)
        if found_element is None:
            root.append(element)
            continue
        if found_element.text is None:
            found_element.text = element.text
        xml_combine(found_element, element)
