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

import unittest
import xml.etree.ElementTree as ET
from unittest import mock

import panclient.errors as err
from panclient import util
from panclient.commit import PanoramaCommitAll
from panclient.panorama import DeviceGroup, Template, TemplateStack
from tests import fakes

LOCALHOST = "/config/devices/entry[@name='localhost.localdomain']"


def xml_str(elm):
    return ET.tostring(elm, encoding="unicode")


class PanoramaTest(unittest.TestCase):
    def setUp(self):
        self.pano = fakes.panorama()
        for verb in ("get", "set", "edit", "delete", "op", "wait_for_job"):
            setattr(self.pano, verb, mock.Mock())

    def xpath(self, verb, index=-1):
        return util.as_xpath(getattr(self.pano, verb).call_args_list[index][0][0])


class TestSession(unittest.TestCase):
    def test_no_default_vsys(self):
        pano = fakes.panorama()

        self.assertIsNone(pano.vsys)
        self.assertIsNone(pano.PLUGINS_MIN_VERSION)

    def test_plugins_read_on_any_version(self):
        pano = fakes.panorama("8.1.0", plugins=[("gcp", "gcp-1.0.0", True)])

        self.assertEqual(["gcp"], [x.name for x in pano.plugins()])


class TestDeviceGroups(PanoramaTest):
    def test_set(self):
        self.pano.device_groups.set(DeviceGroup("dg1", "Branch", {"0001": []}))

        self.assertEqual(LOCALHOST + "/device-group", self.xpath("set"))
        self.assertEqual(
            '<entry name="dg1"><description>Branch</description>'
            '<devices><entry name="0001" /></devices></entry>',
            xml_str(self.pano.set.call_args[0][1]),
        )

    def test_parents(self):
        self.pano.op.return_value = ET.fromstring(
            fakes.result(
                '<dg-hierarchy><dg name="parent" dg_id="11">'
                '<dg name="child" dg_id="12"/></dg><dg name="lone" dg_id="13"/>'
                "</dg-hierarchy>"
            )
        )

        self.assertEqual(
            {"parent": "", "child": "parent", "lone": ""},
            self.pano.device_groups.parents(),
        )
        self.assertEqual("<show><dg-hierarchy/></show>", self.pano.op.call_args[0][0])

    def test_assign_parent(self):
        self.pano.op.return_value = ET.fromstring(fakes.result("<job>31</job>"))
        self.pano.wait_for_job.return_value = "done"

        ans = self.pano.device_groups.assign_parent(DeviceGroup("child"), "parent", 0.1)

        self.assertEqual("done", ans)
        self.assertEqual(
            '<request><move-dg><entry name="child">'
            "<new-parent-dg>parent</new-parent-dg></entry></move-dg></request>",
            xml_str(self.pano.op.call_args[0][0]),
        )
        self.pano.wait_for_job.assert_called_once_with(31, 0.1)

    def test_assign_to_top_level(self):
        self.pano.op.return_value = ET.fromstring(fakes.result("<job>32</job>"))

        self.pano.device_groups.assign_parent("child")

        cmd = self.pano.op.call_args[0][0]
        self.assertIsNone(cmd.find("move-dg/entry/new-parent-dg"))

    def test_assign_parent_without_job(self):
        self.pano.op.return_value = ET.fromstring(fakes.result())

        self.assertRaises(
            err.PanProtocolError, self.pano.device_groups.assign_parent, "child", "p"
        )
        self.assertFalse(self.pano.wait_for_job.called)

    def test_device_vsys(self):
        dgs = self.pano.device_groups
        dgs.set_device_vsys("dg1", "0001", ["vsys2"])
        dgs.edit_device_vsys("dg1", "0001")
        dgs.delete_device_vsys("dg1", "0001", ["vsys2"])

        self.assertEqual(
            LOCALHOST + "/device-group/entry[@name='dg1']/devices", self.xpath("set")
        )
        self.assertEqual(
            '<entry name="0001"><vsys><entry name="vsys2" /></vsys></entry>',
            xml_str(self.pano.set.call_args[0][1]),
        )
        self.assertEqual(
            LOCALHOST + "/device-group/entry[@name='dg1']/devices/entry[@name='0001']",
            self.xpath("edit"),
        )
        self.assertEqual(
            LOCALHOST + "/device-group/entry[@name='dg1']/devices/entry[@name='0001']"
            "/vsys/entry[@name='vsys2']",
            self.xpath("delete"),
        )


class TestTemplates(PanoramaTest):
    def test_default_config(self):
        self.pano.templates.set(Template("t1", description="base"))

        elm = self.pano.set.call_args[0][1]
        self.assertEqual(LOCALHOST + "/template", self.xpath("set"))
        self.assertEqual(
            "vsys1",
            elm.find("config/devices/entry[@name='localhost.localdomain']/vsys/entry").get(
                "name"
            ),
        )

    def test_existing_config_kept(self):
        tmpl = Template("t1")
        tmpl.parse_xml(
            ET.fromstring(
                '<entry name="t1"><config><shared><address/></shared></config></entry>'
            ),
            "10.1.0",
        )

        self.pano.templates.set(tmpl)

        elm = self.pano.set.call_args[0][1]
        self.assertIsNotNone(elm.find("config/shared"))
        self.assertIsNone(elm.find("config/devices"))

    def test_add_templates(self):
        self.pano.template_stacks.add_templates(TemplateStack("s1"), ["t1", "t2"])

        self.assertEqual(LOCALHOST + "/template-stack/entry[@name='s1']", self.xpath("set"))
        self.assertEqual(
            "<templates><member>t1</member><member>t2</member></templates>",
            xml_str(self.pano.set.call_args[0][1]),
        )

    def test_remove_templates(self):
        self.pano.template_stacks.remove_templates("s1", [Template("t1")])

        self.assertEqual(
            LOCALHOST + "/template-stack/entry[@name='s1']/templates/member[text()='t1']",
            self.xpath("delete"),
        )

    def test_nothing_to_add(self):
        self.pano.template_stacks.add_templates("s1", [])

        self.assertFalse(self.pano.set.called)


class TestCommitAll(unittest.TestCase):
    def setUp(self):
        self.pano = fakes.panorama()
        self.pano.commit = mock.Mock(return_value=55)
        self.pano.wait_for_job = mock.Mock(return_value="job")
        self.cmd = PanoramaCommitAll(PanoramaCommitAll.STYLE_TEMPLATE, "t1")

    def test_async(self):
        self.assertEqual(55, self.pano.commit_all(self.cmd))
        self.pano.commit.assert_called_once_with(self.cmd, exception=False)
        self.assertFalse(self.pano.wait_for_job.called)

    def test_sync(self):
        self.assertEqual("job", self.pano.commit_all(self.cmd, sync=True, interval=0.5))
        self.pano.wait_for_job.assert_called_once_with(55, 0.5)

    def test_nothing_to_push(self):
        self.pano.commit.return_value = 0

        self.assertEqual(0, self.pano.commit_all(self.cmd, sync=True))
        self.assertFalse(self.pano.wait_for_job.called)

    def test_wrong_payload(self):
        self.assertRaises(ValueError, self.pano.commit_all, "<commit-all/>")

    def test_sent_as_commit_all(self):
        pano = fakes.panorama()
        urlopen = fakes.fake_urlopen(fakes.result("<job>9</job>"))

        with mock.patch("pan.xapi.urlopen", urlopen):
            ans = pano.commit_all(self.cmd)

        self.assertEqual(9, ans)
        fields = fakes.form(urlopen.call_args)
        self.assertEqual("commit", fields["type"])
        self.assertEqual("all", fields["action"])
        self.assertEqual(
            "<commit-all><template><name>t1</name></template></commit-all>", fields["cmd"]
        )
