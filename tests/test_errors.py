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

import pytest

import panclient.errors as err


@pytest.mark.parametrize("code", [0, 19, 20])
def test_success_codes(code):
    body = '<response status="success" code="{0}"><result/></response>'.format(code)

    assert err.parse(body) is None


def test_success_without_code():
    assert err.parse(b'<response status="success"><result/></response>') is None


@pytest.mark.parametrize(
    "code, cls, msg",
    [
        (1, err.PanXapiResponseError, "Unknown command"),
        (3, err.PanXapiResponseError, "Internal error"),
        (6, err.PanBadXpath, "Bad Xpath"),
        (7, err.PanObjectMissing, "Object not present"),
        (8, err.PanObjectNotUnique, "Object is not unique"),
        (10, err.PanReferenceCountNotZero, "Reference count not zero"),
        (12, err.PanXapiResponseError, "Invalid object"),
        (14, err.PanXapiResponseError, "Operation not possible"),
        (15, err.PanXapiResponseError, "Operation denied"),
        (16, err.PanXapiResponseError, "Unauthorized"),
        (17, err.PanXapiResponseError, "Invalid command"),
        (18, err.PanXapiResponseError, "Malformed command"),
        (22, err.PanSessionTimedOut, "Session timed out"),
        (99, err.PanXapiResponseError, "Unknown error code 99"),
    ],
)
def test_code_table(code, cls, msg):
    body = '<response status="error" code="{0}"/>'.format(code)

    e = err.parse(body)

    assert type(e) is cls
    assert e.code == code
    assert str(e) == msg


def test_code_seven_with_success_status_is_missing():
    e = err.parse('<response status="success" code="7"><result/></response>')

    assert err.is_object_not_found(e)


def test_message_from_lines():
    body = (
        '<response status="error" code="12"><msg>'
        "<line>rule1 -&gt; source is invalid</line>"
        "<line><![CDATA[ rule1 is invalid ]]></line>"
        "</msg></response>"
    )

    e = err.parse(body)

    assert str(e) == "rule1 -> source is invalid | rule1 is invalid"


def test_message_from_msg_text():
    e = err.parse('<response status="error"><msg>Invalid Credential</msg></response>')

    assert isinstance(e, err.PanInvalidCredentials)
    assert e.code is None


def test_message_from_result_msg():
    body = (
        '<response status="error" code="17"><result><msg>'
        "<line>show -&gt; foo is unexpected</line></msg></result></response>"
    )

    assert str(err.parse(body)) == "show -> foo is unexpected"


def test_failed_status_is_an_error():
    e = err.parse('<response status="failed"><msg>nope</msg></response>')

    assert isinstance(e, err.PanXapiResponseError)
    assert str(e) == "nope"


def test_unparsable():
    with pytest.raises(err.PanProtocolError):
        err.parse("<html>502 Bad Gateway")


def test_is_object_not_found():
    assert err.is_object_not_found(err.PanObjectMissing("x", code=7))
    assert not err.is_object_not_found(err.PanObjectNotUnique("x", code=8))
    assert not err.is_object_not_found(ValueError("x"))


def test_hierarchy():
    assert issubclass(err.PanConnectionTimeout, err.PanTransportError)
    assert issubclass(err.PanTransportError, err.PanDeviceXapiError)
    assert issubclass(err.PanCommitFailed, err.PanJobFailed)
    assert not issubclass(err.PanJobCancelled, err.PanJobTimeout)
    assert issubclass(err.PanPluginNotInstalled, err.PanPluginError)
    assert issubclass(err.PanPluginVersionMismatch, err.PanPluginError)
