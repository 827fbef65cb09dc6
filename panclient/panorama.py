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

"""Panorama and its device groups, templates and template stacks"""

import xml.etree.ElementTree as ET

import panclient.errors as err
from panclient import device, getlogger, network, objects, policies, util
from panclient.base import PanClient
from panclient.commit import PanoramaCommitAll
from panclient.namespace import Namespace
from panclient.plugin import PluginNamespace
from panclient.schema import VersionedEntry, VersionedParamPath, entry_name

logger = getlogger(__name__)


def _panorama_xpath(kind, names):
    return [
        "config",
        "devices",
        util.as_entry_xpath([util.LOCALHOST]),
        kind,
        util.as_entry_xpath(names),
    ]


class DeviceGroup(VersionedEntry):
    """Panorama Device-group

    Args:
        name (str): Name of the device-group
        description (str): Description of the device-group
        devices (dict): Serial number to vsys list of the member firewalls.
            An empty vsys list means every vsys.

    Objects and rulebases of the device group are kept as raw XML.

    """

    def _setup(self):
        params = []

        params.append(VersionedParamPath("description", path="description"))
        params.append(VersionedParamPath("devices", vartype="vsysmap", path="devices"))

        self._params = tuple(params)


class Template(VersionedEntry):
    """A panorama template.

    Args:
        name: Template name
        description: Description
        devices (dict): Serial number to vsys list of the member firewalls
        default_vsys: (7.0+) The default vsys in case of a single vsys firewall
        multi_vsys (bool): (6.1 and lower) Multi virtual systems boolean
        mode: (6.1 and lower) Can be fips, cc, or normal (default: normal)
        vpn_disable_mode (bool): (6.1 and lower) VPN disable mode

    The template's ``config`` tree is raw XML.  A template without one gets
    an empty ``vsys1`` so that template stacks can reference it.

    """

    def _setup(self):
        params = []

        params.append(VersionedParamPath("description", path="description"))
        params.append(VersionedParamPath("devices", vartype="vsysmap", path="devices"))
        params.append(VersionedParamPath("default_vsys", exclude=True))
        params[-1].add_profile("7.0.0", path="settings/default-vsys")
        params.append(
            VersionedParamPath(
                "multi_vsys", vartype="yesno", path="settings/multi-vsys"
            )
        )
        params[-1].add_profile("7.0.0", exclude=True)
        params.append(
            VersionedParamPath(
                "mode", default="normal", path="settings/operational-mode"
            )
        )
        params[-1].add_profile("7.0.0", exclude=True)
        params.append(
            VersionedParamPath(
                "vpn_disable_mode", vartype="yesno", path="settings/vpn-disable-mode"
            )
        )
        params[-1].add_profile("7.0.0", exclude=True)

        self._params = tuple(params)

    def element(self, version):
        ans = super(Template, self).element(version)
        if ans.find("config") is None:
            config = ET.SubElement(ans, "config")
            devices = ET.SubElement(config, "devices")
            localhost = ET.SubElement(devices, "entry", {"name": util.LOCALHOST})
            vsys = ET.SubElement(localhost, "vsys")
            ET.SubElement(vsys, "entry", {"name": "vsys1"})
        return ans


class TemplateStack(VersionedEntry):
    """Template stack.

    Args:
        name: Stack name
        description: The description
        templates (list): The templates in this stack, in priority order
        devices (dict): Serial number to vsys list of the member firewalls
        default_vsys: The default vsys in case of a single vsys firewall

    """

    MIN_VERSION = "7.0.0"

    def _setup(self):
        params = []

        params.append(VersionedParamPath("description", path="description"))
        params.append(VersionedParamPath("templates", path="templates", vartype="member"))
        params.append(VersionedParamPath("devices", vartype="vsysmap", path="devices"))
        params.append(VersionedParamPath("default_vsys", path="settings/default-vsys"))

        self._params = tuple(params)


class GcpAccount(VersionedEntry):
    """A Google Cloud account of the GCP plugin.

    Args:
        name (str): Account name
        description (str): Description
        project_id (str): GCP project ID
        service_account_credential_type (str): "project" or "gke"
        credential_file (str): Contents of the service account JSON file

    """

    def _setup(self):
        params = []

        params.append(VersionedParamPath("description", path="description"))
        params.append(VersionedParamPath("project_id", path="project-id"))
        params.append(
            VersionedParamPath(
                "service_account_credential_type",
                default="project",
                values=["project", "gke"],
                path="service-account-cred-type/{service_account_credential_type}",
            )
        )
        params.append(VersionedParamPath("credential_file", path="credential-file"))

        self._params = tuple(params)


class _DeviceVsysMixin(object):
    """Adding and removing firewalls (and their vsys) from a container."""

    def _devices_xpath(self, name, serial=None):
        path = self.xpath([entry_name(name)]) + ["devices"]
        if serial is not None:
            path.append(util.as_entry_xpath([serial]))
        return path

    def set_device_vsys(self, name, serial, vsys=None):
        """Add ``serial`` to ``name``, limited to ``vsys`` if given."""
        self.client.log_action("(set) device vsys in %s: %s", self.SINGULAR, entry_name(name))
        elm = util.vsys_map_to_ent({serial: vsys or []})[0]
        self.client.set(self._devices_xpath(name), elm)

    def edit_device_vsys(self, name, serial, vsys=None):
        """Replace the vsys of ``serial`` in ``name``."""
        self.client.log_action("(edit) device vsys in %s: %s", self.SINGULAR, entry_name(name))
        elm = util.vsys_map_to_ent({serial: vsys or []})[0]
        self.client.edit(self._devices_xpath(name, serial), elm)

    def delete_device_vsys(self, name, serial, vsys=None):
        """Remove ``vsys`` of ``serial`` from ``name``, or the whole device."""
        self.client.log_action(
            "(delete) device vsys from %s: %s", self.SINGULAR, entry_name(name)
        )
        path = self._devices_xpath(name, serial)
        if vsys:
            path += ["vsys", util.as_entry_xpath(vsys)]
        self.client.delete(path)


class DeviceGroups(_DeviceVsysMixin, Namespace):
    ENTRY = DeviceGroup
    SINGULAR = "device group"
    PLURAL = "device groups"

    def xpath(self, names):
        return _panorama_xpath("device-group", names)

    def parents(self):
        """Device group name to parent name; "" is the shared location."""
        self.client.log_op("(op) retrieving device group parents")
        root = self.client.op("<show><dg-hierarchy/></show>")
        ans = {}

        def walk(elm, parent):
            for child in elm.findall("dg"):
                name = child.attrib.get("name", "")
                ans[name] = parent
                walk(child, name)

        hierarchy = root.find("./result/dg-hierarchy")
        if hierarchy is not None:
            walk(hierarchy, "")
        return ans

    def assign_parent(self, child, parent=None, interval=1.0):
        """Move ``child`` below ``parent`` (or to the top level) and wait.

        Returns:
            Job: The finished move job.

        """
        child = entry_name(child)
        self.client.log_op("(op) assigning group %s new parent: %s", child, parent)
        cmd = ET.Element("request")
        entry = ET.SubElement(ET.SubElement(cmd, "move-dg"), "entry", {"name": child})
        if parent:
            ET.SubElement(entry, "new-parent-dg").text = entry_name(parent)
        root = self.client.op(cmd)
        job = root.find("./result/job")
        if job is None or not job.text:
            raise err.PanProtocolError(
                "No job id in move-dg response", pan_device=self.client
            )
        return self.client.wait_for_job(int(job.text), interval)


class Templates(_DeviceVsysMixin, Namespace):
    ENTRY = Template
    SINGULAR = "template"
    PLURAL = "templates"

    def xpath(self, names):
        return _panorama_xpath("template", names)


class TemplateStacks(_DeviceVsysMixin, Namespace):
    ENTRY = TemplateStack
    SINGULAR = "template stack"
    PLURAL = "template stacks"

    def xpath(self, names):
        return _panorama_xpath("template-stack", names)

    def add_templates(self, stack, templates):
        """Append ``templates`` to the end of ``stack``."""
        templates = [entry_name(x) for x in templates]
        self.client.log_action("(set) templates in %s: %s", entry_name(stack), templates)
        if not templates:
            return
        self.ns.versioning()
        path = self.xpath([entry_name(stack)])
        self.client.set(path, util.str_to_mem(templates, "templates"))

    def remove_templates(self, stack, templates):
        templates = [entry_name(x) for x in templates]
        self.client.log_action(
            "(delete) templates from %s: %s", entry_name(stack), templates
        )
        if not templates:
            return
        path = self.xpath([entry_name(stack)]) + [
            "templates",
            util.as_member_xpath(templates),
        ]
        self.client.delete(path)


class GcpAccounts(PluginNamespace):
    """Accounts of the GCP plugin (1.0.0 up to, not including, 3.0.0)."""

    ENTRY = GcpAccount
    SINGULAR = "GCP account"
    PLURAL = "GCP accounts"
    PLUGIN = ("gcp", "1.0.0", "3.0.0")

    def xpath(self, names):
        return [
            "config",
            "devices",
            util.as_entry_xpath([util.LOCALHOST]),
            "plugins",
            "gcp",
            "gcp-account",
            util.as_entry_xpath(names),
        ]


class Panorama(PanClient):
    """A session with Panorama.

    Objects and policies are scoped by ``device_group`` (default: shared);
    network and vsys configuration by ``template`` or ``template_stack``.

    Attributes:
        addresses (Addresses): Address objects.
        services (Services): Service objects.
        tags (Tags): Administrative tags.
        security_rules (SecurityRules): Pre and post security rules.
        vsystems (Vsystems): Vsys in templates.
        vlan_interfaces (VlanInterfaces): VLAN interfaces in templates.
        virtual_routers (VirtualRouters): Virtual routers in templates.
        logical_routers (LogicalRouters): Logical routers in templates.
        device_groups (DeviceGroups): Device groups.
        templates (Templates): Templates.
        template_stacks (TemplateStacks): Template stacks.
        gcp_accounts (GcpAccounts): GCP plugin accounts.

    """

    def __init__(self, *args, **kwargs):
        super(Panorama, self).__init__(*args, **kwargs)

        self.addresses = objects.Addresses(self)
        self.services = objects.Services(self)
        self.tags = objects.Tags(self)
        self.security_rules = policies.SecurityRules(self)
        self.vsystems = device.Vsystems(self)
        self.vlan_interfaces = network.VlanInterfaces(self)
        self.virtual_routers = network.VirtualRouters(self)
        self.logical_routers = network.LogicalRouters(self)
        self.device_groups = DeviceGroups(self)
        self.templates = Templates(self)
        self.template_stacks = TemplateStacks(self)
        self.gcp_accounts = GcpAccounts(self)

    def commit_all(self, cmd, exception=False, sync=False, interval=1.0):
        """Push configuration to firewalls, log collectors or templates.

        Args:
            cmd (PanoramaCommitAll): What to push.
            exception (bool): Raise PanCommitNotNeeded when there is
                nothing to push.
            sync (bool): Wait for the job and return it.

        Returns:
            The job id (0 if there was nothing to push), or the finished
            :class:`panclient.jobs.Job` with ``sync``.

        """
        if not isinstance(cmd, PanoramaCommitAll):
            raise ValueError("Expected a PanoramaCommitAll, got {0}".format(type(cmd).__name__))
        self._logger.debug("Commit-all initiated on device: %s", self.id)
        job_id = self.commit(cmd, exception=exception)
        if sync and job_id:
            return self.wait_for_job(job_id, interval)
        return job_id
