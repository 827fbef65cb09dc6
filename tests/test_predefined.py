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
from panclient.predefined import PHONE_HOME, FileType, Threat
from tests import fakes

THREATS = fakes.result(
    '<entry name="10003"><threatname>Apache Struts RCE</threatname>'
    "<category>code-execution</category><severity>critical</severity></entry>"
    '<entry name="10004"><threatname>OpenSSL Heartbleed</threatname>'
    "<category>info-leak</category><severity>high</severity></entry>"
    '<entry name="20005"><threatname>Apache Log4j</threatname>'
    "<category>code-execution</category><severity>critical</severity></entry>"
)

FILE_TYPES = fakes.result(
    '<entry name="pdf"><full-name>Adobe Portable Document Format</full-name>'
    "<data-ident>yes</data-ident><file-type-ident>yes</file-type-ident></entry>"
    '<entry name="zip"><full-name>ZIP archive</full-name>'
    "<data-ident>no</data-ident><file-type-ident>yes</file-type-ident></entry>"
)


class PredefinedTest(unittest.TestCase):
    def setUp(self):
        self.fw = fakes.firewall()
        self.fw.get = mock.Mock()
        self.fw.show = mock.Mock()
        self.predefined = self.fw.predefined

    def xpath(self, verb="get"):
        return util.as_xpath(getattr(self.fw, verb).call_args[0][0])

    def missing(self):
        return err.PanObjectMissing("No such node", code=err.OBJECT_NOT_FOUND)


class TestThreats(PredefinedTest):
    def test_threat(self):
        self.fw.get.return_value = ET.fromstring(
            fakes.result(
                '<entry name="10003"><threatname>Apache Struts RCE</threatname>'
                "<severity>critical</severity></entry>"
            )
        )

        ans = self.predefined.threat("10003")

        self.assertEqual(Threat("10003", "Apache Struts RCE", None, "critical"), ans)
        self.assertEqual(
            "/config/predefined/threats/vulnerability/entry[@name='10003']", self.xpath()
        )

    def test_threat_running_config(self):
        self.fw.show.return_value = ET.fromstring(fakes.result('<entry name="1"/>'))

        self.predefined.threat("1", PHONE_HOME, running=True)

        self.assertFalse(self.fw.get.called)
        self.assertEqual(
            "/config/predefined/threats/phone-home/entry[@name='1']", self.xpath("show")
        )

    def test_missing_threat(self):
        self.fw.get.return_value = ET.fromstring(fakes.result())

        with self.assertRaises(err.PanObjectMissing) as cm:
            self.predefined.threat("99999")

        self.assertEqual(err.OBJECT_NOT_FOUND, cm.exception.code)

    def test_bad_threat_type(self):
        self.assertRaises(ValueError, self.predefined.threat, "1", "spyware")
        self.assertRaises(ValueError, self.predefined.threats, "spyware")
        self.assertFalse(self.fw.get.called)

    def test_filters(self):
        self.fw.get.return_value = ET.fromstring(THREATS)

        by_name = self.predefined.threats(threat_name_regex="^Apache")
        by_id = self.predefined.threats(name_regex=r"^1000")
        both = self.predefined.threats(name_regex="^2", threat_name_regex="Apache")

        self.assertEqual(["10003", "20005"], [x.name for x in by_name])
        self.assertEqual(["10003", "10004"], [x.name for x in by_id])
        self.assertEqual(["20005"], [x.name for x in both])
        self.assertEqual(
            "/config/predefined/threats/vulnerability/entry", self.xpath()
        )

    def test_no_filters(self):
        self.fw.get.return_value = ET.fromstring(THREATS)

        self.assertEqual(3, len(self.predefined.threats()))

    def test_no_threats_on_device(self):
        self.fw.get.side_effect = self.missing()

        self.assertEqual([], self.predefined.threats())
        self.assertEqual([], self.predefined.threats(PHONE_HOME, name_regex="^1"))

    def test_missing_threat_from_device(self):
        self.fw.get.side_effect = self.missing()

        self.assertRaises(err.PanObjectMissing, self.predefined.threat, "99999")


class TestFileTypes(PredefinedTest):
    def test_file_type(self):
        self.fw.get.return_value = ET.fromstring(
            fakes.result(
                '<entry name="pdf"><full-name>Adobe Portable Document Format</full-name>'
                "<data-ident>yes</data-ident><file-type-ident>yes</file-type-ident></entry>"
            )
        )

        ans = self.predefined.file_type("pdf")

        self.assertEqual("Adobe Portable Document Format", ans.full_name)
        self.assertTrue(ans.data_ident)
        self.assertEqual(
            "/config/predefined/tdb/file-type/entry[@name='pdf']", self.xpath()
        )

    def test_missing_file_type(self):
        self.fw.get.return_value = ET.fromstring(fakes.result())

        self.assertRaises(err.PanObjectMissing, self.predefined.file_type, "nope")

    def test_filters(self):
        self.fw.show.return_value = ET.fromstring(FILE_TYPES)

        ans = self.predefined.file_types(full_name_regex="(?i)zip", running=True)

        self.assertEqual([FileType("zip", "ZIP archive", False, True)], ans)

    def test_no_file_types_on_device(self):
        self.fw.show.side_effect = self.missing()

        self.assertEqual([], self.predefined.file_types(running=True))
        self.assertFalse(self.fw.get.called)

    def test_missing_file_type_from_device(self):
        self.fw.get.side_effect = self.missing()

        self.assertRaises(err.PanObjectMissing, self.predefined.file_type, "nope")
