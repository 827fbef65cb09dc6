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

import itertools
import json
import os
import threading
import unittest
import xml.etree.ElementTree as ET
from unittest import mock

import pytest

import panclient.errors as err
from panclient import transport as tp
from panclient import util
from panclient.base import PanClient
from panclient.commit import FirewallCommit
from panclient.firewall import Firewall
from panclient.multiconfig import MultiConfigure
from panclient.objects import Tag
from panclient.version import Version
from tests import fakes


def start(client, *bodies, **kwargs):
    urlopen = fakes.fake_urlopen(*bodies)
    with mock.patch("pan.xapi.urlopen", urlopen):
        client.initialize(**kwargs)
    return urlopen


class TestInitialize(unittest.TestCase):
    def test_reads_version_and_plugins(self):
        fw = Firewall(hostname="fw", api_key="k")

        urlopen = start(
            fw,
            fakes.system_info("10.1.3-h1"),
            fakes.plugin_packages(("vm_series", "vm_series-2.0.2", True)),
        )

        self.assertEqual(2, urlopen.call_count)
        self.assertEqual("initialized", fw.state)
        self.assertEqual(Version("10.1.3"), fw.versioning())
        self.assertEqual("PA-VM", fw.platform)
        self.assertEqual("007200001234", fw.serial)
        self.assertEqual(
            [("vm_series", "vm_series-2.0.2", True, True)],
            [tuple(x) for x in fw.plugins()],
        )

    def test_old_firewall_skips_plugins(self):
        fw = Firewall(hostname="fw", api_key="k")

        urlopen = start(fw, fakes.system_info("8.1.0"))

        self.assertEqual(1, urlopen.call_count)
        self.assertEqual([], fw.plugins())

    def test_failure_leaves_session_uninitialized(self):
        fw = Firewall(hostname="fw", api_key="k")
        urlopen = fakes.fake_urlopen(
            fakes.system_info("10.1.0"),
            fakes.response("<msg>boom</msg>", status="error", code=1),
        )

        with mock.patch("pan.xapi.urlopen", urlopen):
            self.assertRaises(err.PanXapiResponseError, fw.initialize)

        self.assertEqual("uninitialized", fw.state)
        self.assertIsNone(fw.versioning())
        self.assertRaises(err.PanSessionError, fw.op, "<show/>")

    def test_bad_version(self):
        fw = Firewall(hostname="fw", api_key="k")
        urlopen = fakes.fake_urlopen(fakes.system_info("banana"))

        with mock.patch("pan.xapi.urlopen", urlopen):
            self.assertRaises(err.PanProtocolError, fw.initialize)

    def test_closed_session_cannot_initialize(self):
        fw = Firewall(hostname="fw", api_key="k")
        fw.close()

        self.assertRaises(err.PanSessionError, fw.initialize)

    def test_initialized_session_cannot_initialize_again(self):
        fw = fakes.firewall()
        transport = fw._transport
        urlopen = fakes.fake_urlopen(fakes.result("<key>NEW</key>"))

        with mock.patch("pan.xapi.urlopen", urlopen):
            self.assertRaises(err.PanSessionError, fw.initialize)

        self.assertEqual(0, urlopen.call_count)
        self.assertIs(transport, fw._transport)
        self.assertEqual(fakes.API_KEY, fw.api_key)
        self.assertEqual("initialized", fw.state)

    def test_context_manager_closes(self):
        with Firewall(hostname="fw", api_key="k") as fw:
            start(fw, fakes.system_info("10.1.0"), fakes.plugin_packages())

        self.assertEqual("closed", fw.state)

    def test_repr_hides_secrets(self):
        fw = Firewall(hostname="fw", username="admin", password="secret", api_key="KEY")

        text = repr(fw)

        self.assertNotIn("secret", text)
        self.assertNotIn("KEY", text)
        self.assertIn("fw", text)


class TestConfig(unittest.TestCase):
    @mock.patch.dict(os.environ, {"PANOS_HOSTNAME": "env", "PANOS_PORT": "8443"})
    def test_constructor_wins_over_environment(self):
        fw = Firewall(hostname="given", api_key="k")

        start(
            fw,
            fakes.system_info("10.1.0"),
            fakes.plugin_packages(),
            check_environment=True,
        )

        self.assertEqual("given", fw.hostname)
        self.assertEqual(8443, fw.port)

    @mock.patch.dict(os.environ, {"PANOS_HOSTNAME": "env"})
    def test_environment_ignored_unless_asked(self):
        fw = Firewall(api_key="k")

        self.assertRaises(ValueError, fw.initialize)

    @mock.patch.dict(os.environ, {"PANOS_LOGGING": "query,op"})
    def test_logging_from_environment(self):
        fw = Firewall(hostname="fw", api_key="k")

        start(fw, fakes.system_info("10.1.0"), fakes.plugin_packages(), check_environment=True)

        self.assertEqual(tp.LOG_QUERY | tp.LOG_OP, fw._mask)

    def test_defaults(self):
        fw = Firewall(hostname="fw", api_key="k")

        start(fw, fakes.system_info("10.1.0"), fakes.plugin_packages())

        self.assertEqual(443, fw.port)
        self.assertEqual("https", fw.protocol)
        self.assertTrue(fw.verify_certificate)
        self.assertEqual(10, fw.timeout)
        self.assertEqual(tp.LOG_DEFAULT, fw._mask)

    def test_timeout_is_capped(self):
        fw = Firewall(hostname="fw", api_key="k", timeout=300)

        start(fw, fakes.system_info("10.1.0"), fakes.plugin_packages())

        self.assertEqual(60, fw.timeout)

    def test_invalid_values(self):
        for kwargs in (
            {"protocol": "ftp"},
            {"port": 0},
            {"port": "https"},
            {"timeout": -1},
            {"logging": ["nope"]},
            {"verify_certificate": "maybe"},
        ):
            fw = Firewall(hostname="fw", api_key="k", **kwargs)
            self.assertRaises(ValueError, fw.initialize)
            self.assertEqual("uninitialized", fw.state)

    def test_needs_credentials(self):
        fw = Firewall(hostname="fw", username="admin")

        self.assertRaises(ValueError, fw.initialize)


def test_config_file(tmp_path, monkeypatch):
    monkeypatch.setenv("PANOS_PORT", "4443")
    path = tmp_path / "panos.json"
    path.write_text(
        json.dumps(
            {
                "hostname": "file",
                "api_key": "k",
                "port": 8443,
                "protocol": "http",
                "verify_certificate": False,
                "logging": ["action", "xml-in"],
            }
        )
    )
    fw = Firewall()

    start(
        fw,
        fakes.system_info("10.1.0"),
        fakes.plugin_packages(),
        filename=str(path),
        check_environment=True,
    )

    assert fw.hostname == "file"
    assert fw.port == 4443
    assert fw.protocol == "http"
    assert fw.verify_certificate is False
    assert fw._mask == tp.LOG_ACTION | tp.LOG_XML_IN


def test_config_file_must_be_an_object(tmp_path):
    path = tmp_path / "panos.json"
    path.write_text("[1, 2]")

    with pytest.raises(ValueError):
        Firewall().initialize(filename=str(path))


class TestVerbs(unittest.TestCase):
    def setUp(self):
        self.fw = fakes.firewall()

    def test_commit_nothing_to_do(self):
        urlopen = fakes.fake_urlopen(
            '<response status="success" code="19">'
            "<msg>There are no changes to commit.</msg></response>"
        )

        with mock.patch("pan.xapi.urlopen", urlopen):
            ans = self.fw.commit()

        self.assertEqual(0, ans)
        fields = fakes.form(urlopen.call_args_list[0])
        self.assertEqual("commit", fields["type"])
        self.assertEqual("<commit />", fields["cmd"])

    def test_commit_nothing_to_do_raises_when_asked(self):
        urlopen = fakes.fake_urlopen(
            '<response status="success" code="19"><msg>no changes</msg></response>'
        )

        with mock.patch("pan.xapi.urlopen", urlopen):
            self.assertRaises(err.PanCommitNotNeeded, self.fw.commit, exception=True)

    def test_commit_returns_job_id(self):
        urlopen = fakes.fake_urlopen(
            fakes.response("<result><msg>queued</msg><job>42</job></result>")
        )

        with mock.patch("pan.xapi.urlopen", urlopen):
            ans = self.fw.commit(FirewallCommit(description="hello"))

        self.assertEqual(42, ans)
        fields = fakes.form(urlopen.call_args_list[0])
        self.assertEqual(
            "<commit><description>hello</description></commit>", fields["cmd"]
        )
        self.assertNotIn("action", fields)

    def test_keygen_twice(self):
        self.assertRaises(err.PanSessionError, self.fw.keygen)

    def test_entry_list_missing_is_empty(self):
        urlopen = fakes.fake_urlopen(fakes.response("<result/>", code=7))

        with mock.patch("pan.xapi.urlopen", urlopen):
            ans = self.fw.entry_list_using(self.fw.get, ["config", "shared", "tag"])

        self.assertEqual([], ans)
        self.assertEqual(
            "/config/shared/tag/entry/@name",
            fakes.form(urlopen.call_args_list[0])["xpath"],
        )

    def test_member_list(self):
        urlopen = fakes.fake_urlopen(fakes.result("<member>a</member><member>b</member>"))

        with mock.patch("pan.xapi.urlopen", urlopen):
            ans = self.fw.member_list_using(self.fw.show, ["x", "y"])

        self.assertEqual(["a", "b"], ans)

    def test_clock(self):
        urlopen = fakes.fake_urlopen(fakes.result("Tue Mar  2 10:11:12 UTC 2021\n"))

        with mock.patch("pan.xapi.urlopen", urlopen):
            ans = self.fw.clock()

        self.assertEqual((2021, 3, 2, 10, 11, 12), ans.timetuple()[:6])

    def test_clock_in_any_zone(self):
        for zone in ("PST", "CET", "AEDT"):
            body = fakes.result("Tue Mar 02 10:11:12 {0} 2021".format(zone))
            urlopen = fakes.fake_urlopen(body)

            with mock.patch("pan.xapi.urlopen", urlopen):
                ans = self.fw.clock()

            self.assertEqual((2021, 3, 2, 10, 11, 12), ans.timetuple()[:6])
            self.assertIsNone(ans.tzinfo)

    def test_clock_unexpected_format(self):
        urlopen = fakes.fake_urlopen(fakes.result("10:11:12"))

        with mock.patch("pan.xapi.urlopen", urlopen):
            self.assertRaises(err.PanProtocolError, self.fw.clock)

    def test_password_hash(self):
        urlopen = fakes.fake_urlopen(fakes.result("<phash>$1$abc</phash>"))

        with mock.patch("pan.xapi.urlopen", urlopen):
            self.assertEqual("$1$abc", self.fw.request_password_hash("pw"))

        self.assertEqual(
            "<request><password-hash><password>pw</password></password-hash></request>",
            fakes.form(urlopen.call_args_list[0])["cmd"],
        )

    def test_move_validation(self):
        self.assertRaises(ValueError, self.fw.move, "/x", "sideways")
        self.assertRaises(ValueError, self.fw.move, "/x", "before")


class TestLocks(unittest.TestCase):
    def setUp(self):
        self.fw = fakes.firewall("9.1.0")
        self.fw.op = mock.Mock()

    def test_show_config_locks(self):
        self.fw.op.return_value = ET.fromstring(
            fakes.result(
                '<config-locks><entry name="admin"><name>vsys1</name>'
                "<type>config</type><loggedin>True</loggedin>"
                "<comment> maintenance </comment></entry></config-locks>"
            )
        )

        ans = self.fw.show_config_locks("vsys1")

        self.assertEqual(1, len(ans))
        self.assertEqual("admin", ans[0].owner)
        self.assertEqual("maintenance", ans[0].comment)
        self.fw.op.assert_called_once_with(
            "<show><config-locks><vsys>vsys1</vsys></config-locks></show>", vsys="vsys1"
        )

    def test_lock_config_held(self):
        self.fw.op.side_effect = err.PanXapiResponseError(
            "Config for scope shared is currently locked by admin", code=17
        )

        self.assertRaises(err.PanLockError, self.fw.lock_config)

    def test_lock_config_sends_comment(self):
        self.fw.lock_config("vsys2", comment="hi")

        cmd = self.fw.op.call_args[0][0]
        self.assertEqual(
            "<request><config-lock><add><comment>hi</comment></add></config-lock></request>",
            ET.tostring(cmd, encoding="unicode"),
        )
        self.assertEqual("vsys2", self.fw.op.call_args[1]["vsys"])


class TestImports(unittest.TestCase):
    def setUp(self):
        self.fw = fakes.firewall()
        self.fw.set = mock.Mock()
        self.fw.delete = mock.Mock()
        self.fw.get = mock.Mock()

    def test_import_one(self):
        self.fw.vsys_import(util.INTERFACE_IMPORT, ["vlan.5"], "vsys2")

        path, elm = self.fw.set.call_args[0]
        self.assertEqual(
            "/config/devices/entry[@name='localhost.localdomain']/vsys/"
            "entry[@name='vsys2']/import/network/interface",
            util.as_xpath(path),
        )
        self.assertEqual("<member>vlan.5</member>", ET.tostring(elm, encoding="unicode"))

    def test_import_several(self):
        self.fw.vsys_import(util.INTERFACE_IMPORT, ["vlan.5", "vlan.6"], "vsys2")

        path, elm = self.fw.set.call_args[0]
        self.assertEqual("network", path[-1])
        self.assertEqual(
            "<interface><member>vlan.5</member><member>vlan.6</member></interface>",
            ET.tostring(elm, encoding="unicode"),
        )

    def test_import_without_vsys_does_nothing(self):
        self.fw.vsys_import(util.INTERFACE_IMPORT, ["vlan.5"], None)

        self.assertFalse(self.fw.set.called)

    def test_unimport_from_every_vsys(self):
        self.fw.delete.side_effect = err.PanObjectMissing("gone", code=7)

        self.fw.vsys_unimport(util.VIRTUAL_ROUTER_IMPORT, ["vr1"], template="t1")

        path = util.as_xpath(self.fw.delete.call_args[0][0])
        self.assertTrue(path.startswith("/config/devices/entry[@name='localhost.localdomain']/template/"))
        self.assertTrue(
            path.endswith("/vsys/entry/import/network/virtual-router/member[text()='vr1']")
        )

    def test_bad_location(self):
        self.assertRaises(ValueError, self.fw.vsys_import, "zone", ["x"], "vsys1")

    def test_is_imported(self):
        self.fw.get.return_value = ET.fromstring(fakes.result("<member>vr1</member>"))

        self.assertTrue(self.fw.is_imported(util.VIRTUAL_ROUTER_IMPORT, "vr1", "vsys1"))
        self.assertFalse(self.fw.is_imported(util.VIRTUAL_ROUTER_IMPORT, "vr1"))


class TestPositioning(unittest.TestCase):
    def setUp(self):
        self.client = PanClient(hostname="fw", api_key="k")
        self.client.move = mock.Mock()

    def test_already_in_place(self):
        self.client.position_first_entity(
            util.MOVE_BEFORE, "b", "a", ["x"], ["a", "b", "c"]
        )

        self.assertFalse(self.client.move.called)

    def test_directly_after(self):
        self.client.position_first_entity(
            util.MOVE_DIRECTLY_AFTER, "a", "c", ["x"], ["a", "b", "c"]
        )

        self.client.move.assert_called_once_with(["x"], "after", "a")

    def test_missing_reference(self):
        self.assertRaises(
            ValueError,
            self.client.position_first_entity,
            util.MOVE_AFTER,
            "z",
            "a",
            ["x"],
            ["a", "b"],
        )

    def test_tolerates_already_at_top(self):
        self.client.move.side_effect = err.PanXapiResponseError(
            "rule1 is already at the top", code=12
        )

        self.client.position_first_entity(util.MOVE_TOP, None, "a", ["x"], [])

    def test_other_move_errors_surface(self):
        self.client.move.side_effect = err.PanXapiResponseError("nope", code=12)

        self.assertRaises(
            err.PanXapiResponseError, self.client.move_tolerant, ["x"], "bottom"
        )


class TestLogs(unittest.TestCase):
    def setUp(self):
        self.fw = fakes.firewall()

    def test_log_fields(self):
        urlopen = fakes.fake_urlopen(fakes.log_enqueued(18))

        with mock.patch("pan.xapi.urlopen", urlopen):
            job_id = self.fw.log(
                "traffic", query="(app eq ssl)", nlogs=50, skip=100, direction="forward"
            )

        self.assertEqual(18, job_id)
        fields = fakes.form(urlopen.call_args_list[0])
        self.assertEqual("log", fields["type"])
        self.assertEqual("traffic", fields["log-type"])
        self.assertEqual("(app eq ssl)", fields["query"])
        self.assertEqual("50", fields["nlogs"])
        self.assertEqual("100", fields["skip"])
        self.assertEqual("forward", fields["dir"])
        self.assertEqual(fakes.API_KEY, fields["key"])
        self.assertNotIn("action", fields)

    def test_log_bad_direction(self):
        self.assertRaises(ValueError, self.fw.log, "traffic", direction="sideways")

    def test_log_without_job(self):
        urlopen = fakes.fake_urlopen(fakes.result())

        with mock.patch("pan.xapi.urlopen", urlopen):
            self.assertRaises(err.PanProtocolError, self.fw.log, "system")

    def test_wait_for_logs_polls_until_fin(self):
        urlopen = fakes.fake_urlopen(
            fakes.log_job(18, "ACT"),
            fakes.log_job(18, "FIN", "<entry logid='1'/><entry logid='2'/>"),
        )

        with mock.patch("pan.xapi.urlopen", urlopen):
            entries = self.fw.wait_for_logs(18, interval=0)

        self.assertEqual(["1", "2"], [e.attrib["logid"] for e in entries])
        self.assertEqual(2, urlopen.call_count)
        fields = fakes.form(urlopen.call_args_list[1])
        self.assertEqual("log", fields["type"])
        self.assertEqual("get", fields["action"])
        self.assertEqual("18", fields["job-id"])

    def test_failed_log_job(self):
        urlopen = fakes.fake_urlopen(fakes.log_job(18, outcome="FAIL"))

        with mock.patch("pan.xapi.urlopen", urlopen):
            self.assertRaises(err.PanJobFailed, self.fw.wait_for_logs, 18, interval=0)

    def test_log_timeout(self):
        urlopen = fakes.fake_urlopen(fakes.log_job(18, "ACT"))

        with mock.patch("pan.xapi.urlopen", urlopen):
            with mock.patch(
                "panclient.base.time.monotonic", side_effect=itertools.count(0, 10)
            ):
                self.assertRaises(
                    err.PanJobTimeout, self.fw.wait_for_logs, 18, interval=0, timeout=5
                )

    def test_logs_runs_query_and_waits(self):
        urlopen = fakes.fake_urlopen(
            fakes.log_enqueued(7), fakes.log_job(7, entries="<entry logid='9'/>")
        )

        with mock.patch("pan.xapi.urlopen", urlopen):
            entries = self.fw.logs("system", nlogs=1, interval=0)

        self.assertEqual(["9"], [e.attrib["logid"] for e in entries])
        self.assertEqual("7", fakes.form(urlopen.call_args_list[1])["job-id"])


class TestMultiConfig(unittest.TestCase):
    def setUp(self):
        self.fw = fakes.firewall()

    def test_batch_is_one_request(self):
        mc = MultiConfigure()
        mc.set(["config", "shared", "tag"], "<entry name='web'/>")
        mc.delete("/config/shared/tag/entry[@name='old']")
        urlopen = fakes.fake_urlopen(
            fakes.response(
                '<response status="success" code="20" id="1"><msg>command succeeded</msg></response>'
                '<response status="success" code="20" id="2"><msg>command succeeded</msg></response>',
                code=20,
            )
        )

        with mock.patch("pan.xapi.urlopen", urlopen):
            ans = self.fw.multi_config(mc, strict=True)

        self.assertEqual(1, urlopen.call_count)
        fields = fakes.form(urlopen.call_args_list[0])
        self.assertEqual("config", fields["type"])
        self.assertEqual("multi-config", fields["action"])
        self.assertEqual("yes", fields["strict-transactional"])
        self.assertEqual(
            '<multi-configure-request><set id="1" xpath="/config/shared/tag">'
            '<entry name="web" /></set>'
            '<delete id="2" xpath="/config/shared/tag/entry[@name=\'old\']" />'
            "</multi-configure-request>",
            fields["element"],
        )
        self.assertEqual([1, 2], [x.id for x in ans])
        self.assertEqual(["set", "delete"], [x.action for x in ans])
        self.assertTrue(all(x.ok for x in ans))
        self.assertEqual("command succeeded", ans[0].msg)

    def test_not_strict_by_default(self):
        mc = MultiConfigure()
        mc.edit("/config/shared/tag/entry[@name='a']", "<entry name='a'/>")
        urlopen = fakes.fake_urlopen(
            fakes.response('<response status="error" code="12" id="1"><msg>bad</msg></response>')
        )

        with mock.patch("pan.xapi.urlopen", urlopen):
            ans = self.fw.multi_config(mc)

        self.assertNotIn("strict-transactional", fakes.form(urlopen.call_args_list[0]))
        self.assertFalse(ans[0].ok)
        self.assertEqual(12, ans[0].code)
        self.assertEqual("bad", ans[0].msg)

    def test_rejected_batch(self):
        mc = MultiConfigure()
        mc.set("/config/shared/tag", "<entry name='a'/>")
        urlopen = fakes.fake_urlopen(
            fakes.response(
                '<response status="error" code="12" id="1"><msg><line>tag is invalid</line></msg></response>',
                status="error",
            )
        )

        with mock.patch("pan.xapi.urlopen", urlopen):
            with self.assertRaises(err.PanXapiResponseError) as cm:
                self.fw.multi_config(mc, strict=True)

        self.assertEqual("1: tag is invalid", str(cm.exception))

    def test_empty_batch_sends_nothing(self):
        urlopen = fakes.fake_urlopen()

        with mock.patch("pan.xapi.urlopen", urlopen):
            self.assertEqual([], self.fw.multi_config(MultiConfigure()))
            self.assertEqual([], self.fw.send_multi_config())

        self.assertEqual(0, urlopen.call_count)

    def test_prepared_changes_are_collected(self):
        urlopen = fakes.fake_urlopen(
            fakes.response(
                '<response status="success" id="1"/><response status="success" id="2"/>'
                '<response status="success" id="3"/>'
            )
        )

        with mock.patch("pan.xapi.urlopen", urlopen):
            self.fw.prepare_multi_config()
            self.assertIsNone(self.fw.set("/config/shared/tag", "<entry name='a'/>"))
            self.fw.edit("/config/shared/tag/entry[@name='b']", "<entry name='b'/>")
            self.fw.delete("/config/shared/tag/entry[@name='c']")
            self.assertEqual(0, urlopen.call_count)
            ans = self.fw.send_multi_config()

        self.assertEqual(1, urlopen.call_count)
        self.assertEqual(["set", "edit", "delete"], [x.action for x in ans])
        self.assertIsNone(self.fw._batched())

    def test_namespace_set_is_collected(self):
        urlopen = fakes.fake_urlopen(fakes.response('<response status="success" id="1"/>'))

        with mock.patch("pan.xapi.urlopen", urlopen):
            mc = self.fw.prepare_multi_config()
            self.fw.tags.set(Tag("web"))
            self.assertEqual(1, len(mc))
            self.fw.send_multi_config()

        self.assertIn(
            '<entry name="web"', fakes.form(urlopen.call_args_list[0])["element"]
        )

    def test_batch_is_per_thread(self):
        self.fw.prepare_multi_config()
        seen = []

        t = threading.Thread(target=lambda: seen.append(self.fw._batched()))
        t.start()
        t.join()

        self.assertEqual([None], seen)
        self.assertIsNotNone(self.fw._batched())
