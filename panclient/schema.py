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

"""Versioned XML schemas for configuration entries

An entry type declares its parameters once, with a profile per software
release that changed the XML.  Marshaling and normalizing for a device then
selects the newest profile that is not newer than the device.

"""

import xml.etree.ElementTree as ET

import panclient
import panclient.errors as err
from panclient import getlogger, isstring, string_or_list, util
from panclient.version import as_tuple

logger = getlogger(__name__)


class VersioningSupport(object):
    """A class that supports getting version specific values of something.

    Versions of the value are added in ascending order using ``add_profile()``,
    then can be retrieved by using ``_get_versioned_value()``.  You can specify
    how the retrieved value is cast by overriding ``_cast_version_value()``.

    """

    def __init__(self):
        self.__profiles = []

    def add_profile(self, version=None, value=None):
        """Add support for version ``version`` that returns ``value``.

        **Version support must be added in ascending order.**

        Args:
            version (str): The version to add support for.  If this is
                unspecified, then the version defaults to '0.0.0'.
            value: The value to be retrieved for this version.

        Raises:
            ValueError: If the given version is lower than the most recent
                version.

        """
        version_tuple = (0, 0, 0) if version is None else as_tuple(version)

        if self.__profiles and self.__profiles[0][0] > version_tuple:
            msg = "Cannot add version {0} support after version {1}"
            raise ValueError(msg.format(version_tuple, self.__profiles[0][0]))

        self.__profiles.insert(0, (version_tuple, value))

        # Return self for chained invocations
        return self

    def _get_versioned_value(self, version):
        """Returns the value of the newest profile not newer than ``version``.

        Args:
            version: A :class:`panclient.version.Version`, version string or
                (x, y, z) tuple.

        """
        version = as_tuple(version)
        if version is None:
            # No device version, the newest profile applies
            version = self.__profiles[0][0] if self.__profiles else (0, 0, 0)
        for version_number, value in self.__profiles:
            if version >= version_number:
                return self._cast_version_value(value)

        return self._cast_version_value(None)

    def __iter__(self):
        for version_number, value in reversed(self.__profiles):
            yield version_number, self._cast_version_value(value)

    def _cast_version_value(self, value):
        """Defines any special handling for the value before returning it."""
        return value


class ParamPath(object):
    """Configuration parameter within an entry.

    Args:
        param (str): The name of the parameter.
        path (str): The relative xpath to the value.  Tokens may reference
            other params as ``{param}``.
        vartype (str): The type of variable (None, 'int', 'yesno', 'member',
            'entry', 'exist', 'vsysmap').
        condition (dict): Other params that must have the given value (or one
            of the given values) for this param to appear in the XML.
        values (list): The values a param referenced in a path can take.
            These are tried when parsing XML from a device.
        exclude (bool): Exclude this param from the resultant XML.

    """

    def __init__(
        self, param, path=None, vartype=None, condition=None, values=None, exclude=False
    ):
        self.param = param
        self.path = path
        self.vartype = vartype
        self.condition = condition or {}
        self.values = values or []
        self.exclude = exclude

        if self.path is None and not self.exclude:
            self.path = self.param.replace("_", "-")

    def __repr__(self):
        return "<{0} '{1}' at {2:#x}>".format(
            self.__class__.__name__, self.param, id(self)
        )

    def _tokens(self):
        tokens = [x for x in self.path.split("/") if x]
        if self.vartype == "exist":
            del tokens[-1]
        return tokens

    def _conditions_met(self, settings):
        for condition_key, condition_value in self.condition.items():
            try:
                if settings[condition_key] not in condition_value:
                    return False
            except TypeError:
                if settings[condition_key] != condition_value:
                    return False
            except KeyError:
                if condition_key == self.param:
                    # Not parsed yet
                    continue
                return False
        return True

    def is_path_param(self):
        """True if this param only selects a path token of another param."""
        return bool(self.path) and self.path.split("/")[-1] == "{{{0}}}".format(
            self.param
        )

    def element(self, elm, settings):
        """Append this parameter's XML to ``elm``.

        Returns:
            The ``elm`` passed in, or None if this param does not appear in
            the XML with these settings.

        """
        value = settings.get(self.param)
        if self.exclude or not self.path or value is None:
            return None
        if not self._conditions_met(settings):
            return None

        e = elm
        for token in self._tokens():
            try:
                tag = token.format(**settings)
            except KeyError:
                return None
            if tag == "None":
                return None
            child = ET.Element(tag)
            e.append(child)
            e = child

        self._set_inner_xml_tag_text(e, value)

        return elm

    def _set_inner_xml_tag_text(self, elm, value):
        if self.vartype == "member":
            for v in string_or_list(value):
                ET.SubElement(elm, "member").text = str(v)
        elif self.vartype == "entry":
            for v in string_or_list(value):
                ET.SubElement(elm, "entry", {"name": str(v)})
        elif self.vartype == "exist":
            if value:
                ET.SubElement(elm, self.path.split("/")[-1])
        elif self.vartype == "yesno":
            elm.text = util.yes_no(value)
        elif self.vartype == "vsysmap":
            for child in util.vsys_map_to_ent(value):
                elm.append(child)
        elif self.is_path_param():
            pass
        elif self.vartype == "int":
            elm.text = str(int(value))
        else:
            elm.text = str(value)

    def parse_xml(self, xml, settings, possibilities):
        """Parse the XML to find this parameter's value.

        Values for params referenced in the path are discovered along the
        way and saved into ``settings`` as well.

        """
        if self.exclude or not self.path:
            return
        if not self._conditions_met(settings):
            return

        e = xml
        for token in self._tokens():
            try:
                path_str = token.format(**settings)
            except KeyError as ke:
                missing_variable = ke.args[0]
                if missing_variable not in possibilities:
                    return
                possibility_settings = settings.copy()
                for pos in possibilities[missing_variable]:
                    possibility_settings[missing_variable] = pos
                    path_str = token.format(**possibility_settings)
                    if e.find("./{0}".format(path_str)) is not None:
                        settings[missing_variable] = pos
                        break
                else:
                    return

            ans = e.find("./{0}".format(path_str))
            if ans is None:
                return
            e = ans

        self.parse_value_from_xml_last_tag(e, settings)

    def parse_value_from_xml_last_tag(self, elm, settings):
        """Save the value held by ``elm`` into ``settings``.

        Raises:
            ValueError: If the value is not in the expected format.

        """
        if self.vartype == "member":
            settings[self.param] = util.mem_to_str(elm)
        elif self.vartype == "entry":
            settings[self.param] = util.ent_to_str(elm)
        elif self.vartype == "exist":
            ans = elm.find("./{0}".format(self.path.split("/")[-1]))
            settings[self.param] = ans is not None
        elif self.vartype == "yesno":
            if elm.text not in ("yes", "no"):
                raise ValueError('{0} "{1}" is not yes/no'.format(self.param, elm.text))
            settings[self.param] = util.as_bool(elm.text)
        elif self.vartype == "vsysmap":
            settings[self.param] = util.vsys_ent_to_map(elm)
        elif self.is_path_param():
            pass
        elif self.vartype == "int":
            if elm.text is not None:
                settings[self.param] = int(elm.text)
        else:
            settings[self.param] = elm.text


class VersionedParamPath(VersioningSupport):
    """A wrapper class for ParamPath objects.

    Specifying any kwargs will be interpreted as args for the first profile to
    add for this parameter.

    Args:
        name (str): The parameter name.  Any hyphens in the name are replaced
            with underscores.
        default: The default value of this parameter.
        version (str): A version string like '1.2.3' or None for '0.0.0'.
        **kwargs: Various ``ParamPath`` parameters for the given version.

    """

    def __init__(self, name, default=None, version=None, **kwargs):
        super(VersionedParamPath, self).__init__()
        self.name = name.replace("-", "_")
        self.default = default
        self.value = None

        if kwargs:
            self.add_profile(version, **kwargs)

    def add_profile(self, version=None, **kwargs):
        """Add support for version ``version``.

        Args:
            version (str): The version to add support for.
            **kwargs: The ``ParamPath`` arguments for the given version.

        """
        return super(VersionedParamPath, self).add_profile(version, kwargs)

    def _cast_version_value(self, value):
        if value is None:
            # Not supported before the first profile
            return ParamPath(self.name, exclude=True)
        return ParamPath(self.name, **value)

    def __repr__(self):
        return "<{0} {1}={2} default={3} {4:#x}>".format(
            self.__class__.__name__, self.name, self.value, self.default, id(self)
        )


class VersionedEntry(object):
    """Base class for the normalized form of a configuration entry.

    Subclasses describe their XML in ``_setup()`` by setting ``_params`` to
    a tuple of :class:`VersionedParamPath`.  Every param is present on every
    instance regardless of the device version; params a version does not
    support are skipped when marshaling for that version.

    Child elements of the device's XML that no param models are kept in
    ``raw`` (tag -> :class:`panclient.util.RawXml`) and written back as-is.

    Args:
        name (str): The entry name.
        *args: Values for the params, in order.
        **kwargs: Values for the params, by name.

    Attributes:
        MIN_VERSION (str): Oldest software version that has this entry type.

    """

    MIN_VERSION = None

    def __init__(self, name=None, *args, **kwargs):
        self.name = name
        self.raw = {}

        self._setup()

        params = self._get_params()
        if len(args) > len(params):
            msg = 'Args "{0}" exceeds params "{1}"'
            raise ValueError(msg.format(args, params))

        for param in params:
            param.value = param.default

        for value, param in zip(args, params):
            param.value = value

        for key, value in kwargs.items():
            for param in params:
                if param.name == key:
                    param.value = value
                    break
            else:
                raise ValueError('No param "{0}" exists'.format(key))

    def _setup(self):
        """Set ``_params`` here."""
        self._params = ()

    def _get_params(self):
        try:
            return super(VersionedEntry, self).__getattribute__("_params")
        except AttributeError:
            return ()

    def __getattr__(self, name):
        for param in self._get_params():
            if name == param.name:
                return param.value

        raise AttributeError(str(name))

    def __setattr__(self, name, value):
        for param in self._get_params():
            if name == param.name:
                param.value = value
                break
        else:
            super(VersionedEntry, self).__setattr__(name, value)

    def settings(self):
        """The param values as a dict."""
        return dict((p.name, p.value) for p in self._get_params())

    @classmethod
    def check_version(cls, version):
        """Raise PanVersionError if ``version`` predates this entry type."""
        if cls.MIN_VERSION is None or version is None:
            return
        if as_tuple(version) < as_tuple(cls.MIN_VERSION):
            raise err.PanVersionError(
                "{0} requires version {1} or newer, device is {2}".format(
                    cls.__name__, cls.MIN_VERSION, version
                )
            )

    def _modeled_element(self, version):
        ans = ET.Element("entry", {"name": str(self.name)})
        settings = self.settings()
        for param in self._get_params():
            path = param._get_versioned_value(version)
            elm = path.element(ET.Element("entry"), settings)
            if elm is not None:
                panclient.xml_combine(ans, elm)
        return ans

    def element(self, version):
        """The XML for this entry on a device running ``version``.

        Raises:
            PanVersionError: If this entry type is newer than ``version``.

        """
        self.check_version(version)
        ans = self._modeled_element(version)
        for tag in sorted(self.raw):
            if ans.find(tag) is None:
                ans.append(self.raw[tag].element())
        return ans

    def element_str(self, version):
        return ET.tostring(self.element(version), encoding="unicode")

    def parse_xml(self, xml, version):
        """Load the values in the ``<entry>`` element ``xml``.

        Args:
            xml: The entry element as returned by the device.
            version: The device's software version.

        """
        self.check_version(version)
        self.name = xml.attrib.get("name")

        settings = {}
        paths = []
        possibilities = {}
        for param in self._get_params():
            path = param._get_versioned_value(version)
            paths.append(path)
            if path.values:
                possibilities[param.name] = path.values

        for path in paths:
            path.parse_xml(xml, settings, possibilities)

        for param in self._get_params():
            param.value = settings.get(param.name)

        modeled = set(x.tag for x in self._modeled_element(version))
        self.raw = {}
        for child in xml:
            if child.tag not in modeled:
                self.raw[child.tag] = util.RawXml.from_element(child)

        return self

    def __eq__(self, other):
        if type(self) != type(other):
            return False
        return self.name == other.name and self.settings() == other.settings()

    def __ne__(self, other):
        return not self.__eq__(other)

    __hash__ = None

    def __repr__(self):
        return "<{0} {1!r}>".format(self.__class__.__name__, self.name)


class Container(object):
    """A device response holding entries of one type.

    Args:
        entry_cls: The :class:`VersionedEntry` subclass held.
        version: The device's software version.

    """

    def __init__(self, entry_cls, version):
        self.entry_cls = entry_cls
        self.version = version
        self.entries = []

    def load(self, root):
        """Pick the ``<entry>`` elements out of ``root``.

        ``root`` is either a full ``<response>`` or an element whose children
        are entries.
        """
        if root is None:
            self.entries = []
        elif root.tag == "entry":
            self.entries = [root]
        elif root.tag == "response":
            self.entries = root.findall("./result/entry")
        else:
            self.entries = root.findall("./entry")
        return self

    def names(self):
        return [x.attrib.get("name", "") for x in self.entries]

    def normalize(self):
        """Every loaded entry as an instance of ``entry_cls``."""
        return [self.entry_cls().parse_xml(x, self.version) for x in self.entries]

    def marshal(self, entry):
        """The XML element of ``entry`` for this container's version."""
        if not isinstance(entry, self.entry_cls):
            raise ValueError(
                "Expected {0}, got {1}".format(
                    self.entry_cls.__name__, type(entry).__name__
                )
            )
        return entry.element(self.version)


def versioning(entry_cls, version):
    """Select the container and marshaler of ``entry_cls`` for ``version``.

    Returns:
        tuple: An empty :class:`Container` and its ``marshal`` function.

    Raises:
        PanVersionError: If ``entry_cls`` has no schema for ``version``.

    """
    entry_cls.check_version(version)
    container = Container(entry_cls, version)
    return container, container.marshal


def entry_name(value):
    """The name of an entry given either the entry or its name."""
    if isstring(value):
        return value
    return value.name
