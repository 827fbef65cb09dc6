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

import pytest

from panclient.commit import FirewallCommit, PanoramaCommit, PanoramaCommitAll


class TestFirewallCommit(unittest.TestCase):
    def test_full_commit(self):
        cmd = FirewallCommit()

        self.assertFalse(cmd.is_partial())
        self.assertIsNone(cmd.commit_action)
        self.assertEqual("<commit />", cmd.element_str())

    def test_description_and_force(self):
        cmd = FirewallCommit(description="nightly", force=True)

        self.assertEqual(
            "<commit><description>nightly</description><force /></commit>",
            cmd.element_str(),
        )

    def test_partial(self):
        cmd = FirewallCommit(
            admins=["alice", "bob"],
            exclude_device_and_network=True,
            exclude_policy_and_objects=True,
        )

        self.assertTrue(cmd.is_partial())
        self.assertEqual(
            "<commit><partial>"
            "<admin><member>alice</member><member>bob</member></admin>"
            "<device-and-network>excluded</device-and-network>"
            "<policy-and-objects>excluded</policy-and-objects>"
            "</partial></commit>",
            cmd.element_str(),
        )

    def test_single_admin_string(self):
        elm = FirewallCommit(admins="alice").element()

        self.assertEqual(["alice"], [x.text for x in elm.findall("partial/admin/member")])


class TestPanoramaCommit(unittest.TestCase):
    def test_partial(self):
        cmd = PanoramaCommit(
            description="push",
            device_groups=["dg1"],
            templates="t1",
            exclude_shared_objects=True,
        )

        self.assertEqual(
            "<commit><description>push</description><partial>"
            "<device-group><member>dg1</member></device-group>"
            "<template><member>t1</member></template>"
            "<shared-object>excluded</shared-object>"
            "</partial></commit>",
            cmd.element_str(),
        )

    def test_log_collectors_are_partial(self):
        self.assertTrue(PanoramaCommit(log_collector_groups=["lcg"]).is_partial())
        self.assertFalse(PanoramaCommit(description="x").is_partial())


class TestPanoramaCommitAll(unittest.TestCase):
    def test_device_group(self):
        cmd = PanoramaCommitAll(
            PanoramaCommitAll.STYLE_DEVICE_GROUP,
            "dg1",
            description="push",
            devices=["0001", "0002"],
            include_template=True,
        )

        self.assertEqual("all", cmd.commit_action)
        self.assertEqual(
            "<commit-all><shared-policy><description>push</description>"
            "<include-template>yes</include-template>"
            '<device-group><entry name="dg1"><devices>'
            '<entry name="0001" /><entry name="0002" />'
            "</devices></entry></device-group>"
            "</shared-policy></commit-all>",
            cmd.element_str(),
        )

    def test_template_stack(self):
        cmd = PanoramaCommitAll(
            PanoramaCommitAll.STYLE_TEMPLATE_STACK,
            "stack1",
            devices="0001",
            force_template_values=False,
        )

        self.assertEqual(
            "<commit-all><template-stack><name>stack1</name>"
            "<force-template-values>no</force-template-values>"
            "<device><member>0001</member></device>"
            "</template-stack></commit-all>",
            cmd.element_str(),
        )

    def test_log_collector_group(self):
        cmd = PanoramaCommitAll(PanoramaCommitAll.STYLE_LOG_COLLECTOR_GROUP, "lcg")

        self.assertEqual(
            "<commit-all><log-collector-config>"
            "<log-collector-group>lcg</log-collector-group>"
            "</log-collector-config></commit-all>",
            cmd.element_str(),
        )


@pytest.mark.parametrize("style", ["device-group", "firewall", None])
def test_unknown_commit_all_style(style):
    with pytest.raises(ValueError):
        PanoramaCommitAll(style, "x")
