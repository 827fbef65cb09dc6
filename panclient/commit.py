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

"""Commit payloads

Each class here has an ``element()`` and a ``commit_action`` and can be
passed as the ``cmd`` of :meth:`panclient.base.PanClient.commit`.

"""

import xml.etree.ElementTree as ET

from panclient import string_or_list_or_none, util


def _members(parent, tag, values):
    values = string_or_list_or_none(values)
    if values:
        parent.append(util.str_to_mem(values, tag))


def _excluded(parent, tag, flag):
    if flag:
        ET.SubElement(parent, tag).text = "excluded"


class FirewallCommit(object):
    """Normalization of a firewall commit.

    Leaving every partial selector unset gives a full commit.

    Args:
        description (str): The commit message.
        admins (list): Only commit the changes of these administrators.
        exclude_device_and_network (bool): Leave device and network config
            out of the commit.
        exclude_shared_objects (bool): Leave shared objects out.
        exclude_policy_and_objects (bool): Leave policies and objects out.
        force (bool): Commit even if there are no changes.

    """

    commit_action = None

    def __init__(
        self,
        description=None,
        admins=None,
        exclude_device_and_network=False,
        exclude_shared_objects=False,
        exclude_policy_and_objects=False,
        force=False,
    ):
        self.description = description
        self.admins = admins
        self.exclude_device_and_network = exclude_device_and_network
        self.exclude_shared_objects = exclude_shared_objects
        self.exclude_policy_and_objects = exclude_policy_and_objects
        self.force = force

    def is_partial(self):
        return bool(
            self.admins
            or self.exclude_device_and_network
            or self.exclude_shared_objects
            or self.exclude_policy_and_objects
        )

    def _partial(self, root):
        partial = ET.SubElement(root, "partial")
        _members(partial, "admin", self.admins)
        _excluded(partial, "device-and-network", self.exclude_device_and_network)
        _excluded(partial, "shared-object", self.exclude_shared_objects)
        _excluded(partial, "policy-and-objects", self.exclude_policy_and_objects)
        return partial

    def element(self):
        root = ET.Element("commit")
        if self.description:
            ET.SubElement(root, "description").text = self.description
        if self.is_partial():
            self._partial(root)
        if self.force:
            ET.SubElement(root, "force")
        return root

    def element_str(self):
        return ET.tostring(self.element(), encoding="unicode")


class PanoramaCommit(FirewallCommit):
    """Normalization of a commit to Panorama itself.

    Args:
        device_groups (list): Only commit these device groups.
        templates (list): Only commit these templates.
        template_stacks (list): Only commit these template stacks.
        log_collectors (list): Only commit these log collectors.
        log_collector_groups (list): Only commit these log collector groups.

    The other arguments are as for :class:`FirewallCommit`.

    """

    def __init__(
        self,
        description=None,
        admins=None,
        device_groups=None,
        templates=None,
        template_stacks=None,
        log_collectors=None,
        log_collector_groups=None,
        exclude_device_and_network=False,
        exclude_shared_objects=False,
        force=False,
    ):
        super(PanoramaCommit, self).__init__(
            description=description,
            admins=admins,
            exclude_device_and_network=exclude_device_and_network,
            exclude_shared_objects=exclude_shared_objects,
            force=force,
        )
        self.device_groups = device_groups
        self.templates = templates
        self.template_stacks = template_stacks
        self.log_collectors = log_collectors
        self.log_collector_groups = log_collector_groups

    def is_partial(self):
        return super(PanoramaCommit, self).is_partial() or bool(
            self.device_groups
            or self.templates
            or self.template_stacks
            or self.log_collectors
            or self.log_collector_groups
        )

    def _partial(self, root):
        partial = ET.SubElement(root, "partial")
        _members(partial, "admin", self.admins)
        _members(partial, "device-group", self.device_groups)
        _members(partial, "template", self.templates)
        _members(partial, "template-stack", self.template_stacks)
        _members(partial, "log-collector", self.log_collectors)
        _members(partial, "log-collector-group", self.log_collector_groups)
        _excluded(partial, "device-and-network", self.exclude_device_and_network)
        _excluded(partial, "shared-object", self.exclude_shared_objects)
        return partial


class PanoramaCommitAll(object):
    """Normalization of a Panorama push to managed devices.

    Args:
        style (str): What to push: "device group", "template",
            "template stack" or "log collector group".
        name (str): The device group, template, stack or collector group.
        description (str): The commit message.
        devices (list): Limit the push to these serial numbers.
        include_template (bool): For device groups, push templates too.
        force_template_values (bool): Overwrite local device values with
            template values.

    """

    commit_action = "all"

    STYLE_DEVICE_GROUP = "device group"
    STYLE_TEMPLATE = "template"
    STYLE_TEMPLATE_STACK = "template stack"
    STYLE_LOG_COLLECTOR_GROUP = "log collector group"

    def __init__(
        self,
        style,
        name,
        description=None,
        devices=None,
        include_template=None,
        force_template_values=None,
    ):
        if style not in (
            self.STYLE_DEVICE_GROUP,
            self.STYLE_TEMPLATE,
            self.STYLE_TEMPLATE_STACK,
            self.STYLE_LOG_COLLECTOR_GROUP,
        ):
            raise ValueError("Unknown commit-all style: {0}".format(style))
        self.style = style
        self.name = name
        self.description = description
        self.devices = devices
        self.include_template = include_template
        self.force_template_values = force_template_values

    def element(self):
        root = ET.Element("commit-all")
        if self.style == self.STYLE_DEVICE_GROUP:
            body = ET.SubElement(root, "shared-policy")
            self._common(body)
            if self.include_template is not None:
                ET.SubElement(body, "include-template").text = util.yes_no(
                    self.include_template
                )
            dg = ET.SubElement(body, "device-group")
            entry = ET.SubElement(dg, "entry", {"name": self.name})
            devices = string_or_list_or_none(self.devices)
            if devices:
                entry.append(util.str_to_ent(devices, "devices"))
        elif self.style == self.STYLE_LOG_COLLECTOR_GROUP:
            body = ET.SubElement(root, "log-collector-config")
            ET.SubElement(body, "log-collector-group").text = self.name
            if self.description:
                ET.SubElement(body, "description").text = self.description
        else:
            tag = "template" if self.style == self.STYLE_TEMPLATE else "template-stack"
            body = ET.SubElement(root, tag)
            ET.SubElement(body, "name").text = self.name
            self._common(body)
            _members(body, "device", self.devices)
        return root

    def _common(self, body):
        if self.description:
            ET.SubElement(body, "description").text = self.description
        if self.force_template_values is not None:
            ET.SubElement(body, "force-template-values").text = util.yes_no(
                self.force_template_values
            )

    def element_str(self):
        return ET.tostring(self.element(), encoding="unicode")
