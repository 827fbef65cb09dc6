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

"""Exception classes used by panclient package, and the response decoder"""

import xml.etree.ElementTree as ET

from pan.xapi import PanXapiError


# Exceptions used by PanClient Class
class PanDeviceError(PanXapiError):
    """Exception for errors raised by panclient

    Attributes:
        message: The error message for the exception
        pan_device: A reference to the PanClient that generated the exception
    """

    def __init__(self, *args, **kwargs):
        self.pan_device = kwargs.pop("pan_device", None)
        super(PanDeviceError, self).__init__(*args, **kwargs)


class PanDeviceXapiError(PanDeviceError):
    """General error returned by an API call"""

    pass


class PanTransportError(PanDeviceXapiError):
    """The request never got a response: DNS, TCP, TLS, timeouts"""

    pass


class PanURLError(PanTransportError):
    pass


class PanConnectionTimeout(PanTransportError):
    pass


class PanConnectionReset(PanURLError):
    pass


class PanProtocolError(PanDeviceXapiError):
    """The device answered with something that is not an API response"""

    pass


class PanXapiResponseError(PanDeviceXapiError):
    """Error parsed from the ``<response>`` envelope

    Attributes:
        code (int): The response code, or None if the device sent none.
        msg (str): The error message.
    """

    def __init__(self, msg, code=None, **kwargs):
        self.code = code
        super(PanXapiResponseError, self).__init__(msg, **kwargs)

    def __repr__(self):
        return "{0}(code={1!r}, msg={2!r})".format(
            self.__class__.__name__, self.code, self.msg
        )


class PanInvalidCredentials(PanXapiResponseError):
    pass


class PanBadXpath(PanXapiResponseError):
    pass


class PanObjectMissing(PanXapiResponseError):
    pass


class PanObjectNotUnique(PanXapiResponseError):
    pass


class PanReferenceCountNotZero(PanXapiResponseError):
    pass


class PanSessionTimedOut(PanXapiResponseError):
    pass


class PanVersionError(PanDeviceError):
    """No schema variant exists for the device's software version"""

    pass


class PanPluginError(PanDeviceError):
    pass


class PanPluginNotInstalled(PanPluginError):
    pass


class PanPluginVersionMismatch(PanPluginError):
    pass


class PanJobFailed(PanDeviceError):
    def __init__(self, *args, **kwargs):
        self.job = kwargs.pop("job", None)
        super(PanJobFailed, self).__init__(*args, **kwargs)


class PanCommitFailed(PanJobFailed):
    pass


class PanJobCancelled(PanDeviceError):
    pass


class PanJobTimeout(PanDeviceError):
    pass


class PanCommitNotNeeded(PanDeviceXapiError):
    pass


class PanLockError(PanDeviceError):
    pass


class PanSessionError(PanDeviceError):
    pass


class PanApiKeyNotSet(PanSessionError):
    pass


# Response codes that do not indicate an error
SUCCESS_CODES = (0, 19, 20)

OBJECT_NOT_FOUND = 7

CODE_MESSAGES = {
    1: "Unknown command",
    2: "Internal error",
    3: "Internal error",
    4: "Internal error",
    5: "Internal error",
    6: "Bad Xpath",
    7: "Object not present",
    8: "Object is not unique",
    10: "Reference count not zero",
    11: "Internal error",
    12: "Invalid object",
    14: "Operation not possible",
    15: "Operation denied",
    16: "Unauthorized",
    17: "Invalid command",
    18: "Malformed command",
    22: "Session timed out",
}

CODE_ERRORS = {
    6: PanBadXpath,
    7: PanObjectMissing,
    8: PanObjectNotUnique,
    10: PanReferenceCountNotZero,
    22: PanSessionTimedOut,
    403: PanInvalidCredentials,
}


def parse(body, pan_device=None):
    """Decode the response envelope into an error, if there is one.

    Args:
        body: The response as bytes, str, or an already parsed ``<response>``
            element.
        pan_device: Attached to the returned error.

    Returns:
        PanXapiResponseError: The error described by the response, or None
        if the response indicates success.

    Raises:
        PanProtocolError: If ``body`` is not XML.

    """
    if hasattr(body, "tag"):
        root = body
    else:
        try:
            root = ET.fromstring(body)
        except ET.ParseError as e:
            raise PanProtocolError(
                "Unparsable response: {0}".format(e), pan_device=pan_device
            )

    status = root.attrib.get("status", "")
    try:
        code = int(root.attrib["code"])
    except (KeyError, ValueError):
        code = None

    if status not in ("failed", "error") and (code is None or code in SUCCESS_CODES):
        return None

    msg = response_message(root)
    if not msg:
        msg = CODE_MESSAGES.get(code, "Unknown error code {0}".format(code))
    if msg.startswith("Invalid credentials") or msg.startswith("Invalid Credential"):
        cls = PanInvalidCredentials
    else:
        cls = CODE_ERRORS.get(code, PanXapiResponseError)

    return cls(msg, code=code, pan_device=pan_device)


def response_message(root):
    """Pull the error text out of a ``<response>`` element."""
    lines = []
    for line in root.findall("./msg/line"):
        text = "".join(line.itertext()).strip()
        if text:
            lines.append(text)
    if lines:
        return " | ".join(lines)

    elm = root.find("./msg")
    if elm is not None and elm.text and elm.text.strip():
        return elm.text.strip()

    elm = root.find("./result/msg")
    if elm is not None:
        text = "".join(elm.itertext()).strip()
        if text:
            return text

    # multi-config nests one response per request
    for resp in root.findall("./response"):
        if resp.attrib.get("status") in ("failed", "error"):
            text = response_message(resp)
            if text:
                return "{0}: {1}".format(resp.attrib.get("id", "?"), text)

    return None


def is_object_not_found(e):
    """True if ``e`` is the device's "object not present" (code 7) error."""
    return isinstance(e, PanXapiResponseError) and e.code == OBJECT_NOT_FOUND
