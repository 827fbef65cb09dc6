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

"""Generic CRUD over configuration entries

:class:`Standard` does the work for one entry type given a *pather* (a
function from a list of names to the xpath segments selecting them) and the
entry type's versioned schema.  :class:`Namespace` is the public facade a
binding subclasses to supply its xpath.

"""

import xml.etree.ElementTree as ET

import panclient.errors as err
from panclient import getlogger, isstring, schema, util

logger = getlogger(__name__)


class Standard(object):
    """CRUD for one entry type.

    Args:
        client (PanClient): The device session.
        entry_cls: The :class:`panclient.schema.VersionedEntry` subclass.
        singular (str): Name of one entry, used in log messages.
        plural (str): Name of several entries, used in log messages.

    """

    def __init__(self, client, entry_cls, singular, plural=None):
        self.client = client
        self.entry_cls = entry_cls
        self.singular = singular
        self.plural = plural

    def versioning(self):
        """The empty container and marshaler for the device."""
        return schema.versioning(self.entry_cls, self.client.versioning())

    def _fetch(self, fn, path):
        """Call ``fn`` and load the response, missing means empty."""
        container, _ = self.versioning()
        try:
            root = fn(path)
        except err.PanObjectMissing:
            return container.load(None)
        return container.load(root)

    def listing(self, fn, pather):
        """Names of all entries, empty if there are none."""
        return self._fetch(fn, pather([])).names()

    def object(self, fn, pather, name):
        """The single entry ``name``.

        Raises:
            PanObjectMissing: There is no such entry.

        """
        container, _ = self.versioning()
        root = fn(pather([name]))
        ans = container.load(root).normalize()
        if not ans:
            raise err.PanObjectMissing(
                '{0} "{1}" not found'.format(self.singular, name),
                code=err.OBJECT_NOT_FOUND,
                pan_device=self.client,
            )
        return ans[0]

    def objects(self, fn, pather):
        """Every entry, normalized."""
        return self._fetch(fn, pather([])).normalize()

    def set(self, pather, entries):
        """Create or merge ``entries`` with one SET.

        A single entry is sent to its list element.  Several are wrapped in
        the list element and sent to its parent.

        Raises:
            ValueError: A name appears more than once.

        """
        _, marshal = self.versioning()
        names = []
        elements = []
        for entry in entries:
            if entry.name in names:
                raise ValueError(
                    '{0} is defined multiple times: "{1}"'.format(self.singular, entry.name)
                )
            names.append(entry.name)
            elements.append(marshal(entry))

        if self.plural:
            self.client.log_action("(set) %s: %s", self.plural, names)
        else:
            self.client.log_action("(set) %s", self.singular)

        if not elements:
            return

        path = list(pather(names))
        bulk = util.BulkElement(path[-2], elements)
        if len(elements) == 1:
            path = path[:-1]
        else:
            path = path[:-2]

        self.client.set(path, bulk.config())

    def edit(self, pather, entry):
        """Replace ``entry`` on the device."""
        _, marshal = self.versioning()
        self.client.log_action("(edit) %s: %s", self.singular, entry.name)
        self.client.edit(pather([entry.name]), marshal(entry))

    def delete(self, pather, names):
        """Delete ``names`` with one DELETE.

        Removing several entries ignores the ones already gone.  Removing a
        single missing entry raises PanObjectMissing.
        """
        self.versioning()
        names = list(names)
        if self.plural:
            self.client.log_action("(delete) %s: %s", self.plural, names)
        else:
            self.client.log_action("(delete) %s", self.singular)
        if not names:
            return

        try:
            self.client.delete(pather(names))
        except err.PanObjectMissing:
            if len(names) == 1:
                raise
            logger.debug("Some of %s were already gone", names)

    def move_group(self, pather, movement, anchor, names, lister=None):
        """Place ``names`` together, in order, relative to ``anchor``.

        The first name is moved according to ``movement``, then every other
        name is moved after its predecessor.

        Args:
            pather: Builds the xpath of a name.
            movement (int): A ``MOVE_*`` constant of :mod:`panclient.util`.
            anchor (str): The entry ``movement`` is relative to.
            names (list): The group, in the desired order.
            lister: Optional function returning the current names in
                order.  When given, the first move is skipped if it is
                already satisfied.

        """
        self.versioning()
        names = list(names)
        self.client.log_action("(move) %s group", self.singular)
        if not names:
            raise ValueError("Requires at least one {0}".format(self.singular))
        if anchor and anchor == names[0]:
            raise ValueError('Can\'t position "{0}" in relation to itself'.format(anchor))
        if not util.valid_movement(movement):
            raise ValueError("Invalid movement specified: {0}".format(movement))
        if util.relative_movement(movement) and not anchor:
            raise ValueError(
                "Specify 'anchor' in order to perform relative group positioning"
            )

        path = list(pather([names[0]]))

        if movement in (util.MOVE_TOP, util.MOVE_BOTTOM):
            where = "top" if movement == util.MOVE_TOP else "bottom"
            self.client.move_tolerant(path, where)
        elif movement != util.MOVE_SKIP:
            if lister is not None:
                current = lister()
                if not current:
                    raise ValueError("No {0} found".format(self.plural or self.singular))
                self.client.position_first_entity(
                    movement, anchor, names[0], path, current
                )
            elif movement in (util.MOVE_BEFORE, util.MOVE_DIRECTLY_BEFORE):
                self.client.move(path, "before", anchor)
            else:
                self.client.move(path, "after", anchor)

        for prev, name in zip(names, names[1:]):
            self.client.move(path[:-1] + [util.as_entry_xpath([name])], "after", prev)


class Namespace(object):
    """Public CRUD facade for one entry type.

    Subclasses set ``ENTRY``, ``SINGULAR`` and ``PLURAL`` and implement
    :meth:`xpath`.  Scope keywords (``vsys``, ``device_group``,
    ``template``, ``template_stack`` and the like) are passed through to
    :meth:`xpath`.

    """

    ENTRY = None
    SINGULAR = None
    PLURAL = None
    STANDARD = Standard

    def __init__(self, client):
        self.client = client
        self.ns = self.STANDARD(client, self.ENTRY, self.SINGULAR, self.PLURAL)

    def xpath(self, names, **scope):
        """Xpath segments selecting ``names`` in ``scope``."""
        raise NotImplementedError()

    def _is_panorama(self):
        return self.client.DEFAULT_VSYS is None

    def location(self, vsys=None, device_group=None, template=None, template_stack=None):
        """Prefix of an object living in a vsys or a device group.

        Firewalls use ``vsys`` (default: the session's vsys).  Panorama
        uses ``device_group`` (default: shared), or ``vsys`` inside a
        template or template stack.
        """
        if not self._is_panorama():
            if device_group or template or template_stack:
                raise ValueError("Device groups and templates are Panorama only")
            return util.vsys_xpath_prefix(vsys or self.client.vsys)
        if template or template_stack:
            return util.scope_xpath_prefix(vsys, None, template, template_stack)
        if vsys:
            raise ValueError("Panorama objects are scoped by device group")
        return util.device_group_xpath_prefix(device_group)

    def network_location(self, template=None, template_stack=None):
        """Prefix of the ``network`` config, inside a template on Panorama."""
        if self._is_panorama():
            if not (template or template_stack):
                raise ValueError("Specify a template or template stack")
        elif template or template_stack:
            raise ValueError("Templates are Panorama only")
        return util.template_xpath_prefix(template, template_stack) + [
            "config",
            "devices",
            util.as_entry_xpath([util.LOCALHOST]),
            "network",
        ]

    def pather(self, **scope):
        return lambda names: self.xpath(names, **scope)

    def get_list(self, **scope):
        """Names in the candidate config."""
        return self.ns.listing(self.client.get, self.pather(**scope))

    def show_list(self, **scope):
        """Names in the running config."""
        return self.ns.listing(self.client.show, self.pather(**scope))

    def get(self, name, **scope):
        return self.ns.object(self.client.get, self.pather(**scope), name)

    def show(self, name, **scope):
        return self.ns.object(self.client.show, self.pather(**scope), name)

    def get_all(self, **scope):
        return self.ns.objects(self.client.get, self.pather(**scope))

    def show_all(self, **scope):
        return self.ns.objects(self.client.show, self.pather(**scope))

    def set(self, *entries, **scope):
        self.ns.set(self.pather(**scope), entries)

    def edit(self, entry, **scope):
        self.ns.edit(self.pather(**scope), entry)

    @staticmethod
    def _check_names(names):
        for name in names:
            if not isstring(name):
                raise TypeError(
                    "Expected a name, got {0}; use delete_entries()".format(
                        type(name).__name__
                    )
                )

    def delete(self, *names, **scope):
        """Delete entries by name."""
        self._check_names(names)
        self.ns.delete(self.pather(**scope), names)

    def delete_entries(self, *entries, **scope):
        """Delete the given entries."""
        self.ns.delete(self.pather(**scope), [e.name for e in entries])

    def move_group(self, movement, anchor, entries, check_position=False, **scope):
        """See :meth:`Standard.move_group`; entries or names are accepted.

        With ``check_position``, the current order is read first and the
        first move is skipped when it is already satisfied.
        """
        names = [schema.entry_name(e) for e in entries]
        lister = None
        if check_position:
            lister = lambda: self.get_list(**scope)
        self.ns.move_group(self.pather(**scope), movement, anchor, names, lister)

    def element_str(self, entry):
        """The XML this device would be sent for ``entry``."""
        _, marshal = self.ns.versioning()
        return ET.tostring(marshal(entry), encoding="unicode")


class ImportableNamespace(Namespace):
    """A namespace whose entries are also imported into a vsys.

    Creating an entry first removes it from every vsys's imports, then
    imports it into ``import_vsys``.  Deleting removes the imports first.
    """

    IMPORT_LOCATION = None

    def _import_scope(self, scope):
        return scope.get("template"), scope.get("template_stack")

    def set(self, *entries, **scope):
        import_vsys = scope.pop("import_vsys", None)
        self.ns.versioning()
        template, stack = self._import_scope(scope)
        names = [e.name for e in entries]
        self.client.vsys_unimport(self.IMPORT_LOCATION, names, template, stack)
        self.ns.set(self.pather(**scope), entries)
        self.client.vsys_import(self.IMPORT_LOCATION, names, import_vsys, template, stack)

    def edit(self, entry, **scope):
        import_vsys = scope.pop("import_vsys", None)
        self.ns.versioning()
        template, stack = self._import_scope(scope)
        self.client.vsys_unimport(self.IMPORT_LOCATION, [entry.name], template, stack)
        self.ns.edit(self.pather(**scope), entry)
        self.client.vsys_import(
            self.IMPORT_LOCATION, [entry.name], import_vsys, template, stack
        )

    def delete(self, *names, **scope):
        self.ns.versioning()
        self._check_names(names)
        template, stack = self._import_scope(scope)
        self.client.vsys_unimport(self.IMPORT_LOCATION, list(names), template, stack)
        super(ImportableNamespace, self).delete(*names, **scope)

    def delete_entries(self, *entries, **scope):
        self.delete(*[e.name for e in entries], **scope)
