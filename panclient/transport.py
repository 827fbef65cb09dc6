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

"""HTTP transport to the XML API

Requests go through :class:`pan.xapi.PanXapi`, one instance per thread, so
that a single :class:`Transport` can be shared by concurrent callers.
Multipart imports are sent with :mod:`requests`.

"""

import collections
import http.client
import socket
import ssl
import threading
import time
import xml.etree.ElementTree as ET

import pan.xapi
import requests

import panclient.errors as err
from panclient import getlogger

logger = getlogger(__name__)


# Logging categories
LOG_QUIET = 1 << 1
LOG_ACTION = 1 << 2
LOG_QUERY = 1 << 3
LOG_OP = 1 << 4
LOG_UID = 1 << 5
LOG_EXPORT = 1 << 6
LOG_IMPORT = 1 << 7
LOG_XPATH = 1 << 8
LOG_SEND = 1 << 9
LOG_RECEIVE = 1 << 10
LOG_XML_OUT = 1 << 11
LOG_XML_IN = 1 << 12

LOG_DEFAULT = LOG_ACTION | LOG_UID

LOG_NAMES = collections.OrderedDict(
    (
        ("quiet", LOG_QUIET),
        ("action", LOG_ACTION),
        ("query", LOG_QUERY),
        ("op", LOG_OP),
        ("uid", LOG_UID),
        ("export", LOG_EXPORT),
        ("import", LOG_IMPORT),
        ("xpath", LOG_XPATH),
        ("send", LOG_SEND),
        ("receive", LOG_RECEIVE),
        ("xml-out", LOG_XML_OUT),
        ("xml-in", LOG_XML_IN),
    )
)

# Only these are retried after a reset connection
IDEMPOTENT_METHODS = ("show", "get")

SECRET_PARAMS = ("key", "password", "api_key")

Response = collections.namedtuple("Response", "root document export_result")


def logging_mask(names):
    """OR together the logging categories named in ``names``.

    Args:
        names (list): Category names, see :data:`LOG_NAMES`.  None gives
            the default mask.

    Raises:
        ValueError: For an unknown name.

    """
    if names is None:
        return LOG_DEFAULT
    mask = 0
    for name in names:
        try:
            mask |= LOG_NAMES[name.strip().lower()]
        except KeyError:
            raise ValueError("Unknown logging category: {0}".format(name))
    return mask


def mask_secrets(params):
    ans = {}
    for k, v in params.items():
        ans[k] = "********" if k in SECRET_PARAMS and v else v
    return ans


class Transport(object):
    """Sends XML API requests to one device.

    Args:
        hostname (str): Hostname or IP of the device.
        port (int): TCP port.
        protocol (str): "https" or "http".
        verify_certificate (bool): Verify the device's TLS certificate.
        timeout (int): Connect/read timeout in seconds.
        username (str): Used for keygen only.
        password (str): Used for keygen only.
        mask (int): Logging categories, see :func:`logging_mask`.
        retries (int): Attempts for idempotent reads that hit a reset
            connection.

    """

    def __init__(
        self,
        hostname,
        port=443,
        protocol="https",
        verify_certificate=True,
        timeout=10,
        username=None,
        password=None,
        mask=LOG_DEFAULT,
        retries=3,
        retry_delay=0.5,
        pan_device=None,
    ):
        self._logger = getlogger(__name__ + "." + self.__class__.__name__)
        self.hostname = hostname
        self.port = port
        self.protocol = protocol
        self.verify_certificate = verify_certificate
        self.timeout = timeout
        self.username = username
        self.password = password
        self.mask = mask
        self.retries = retries
        self.retry_delay = retry_delay
        self.pan_device = pan_device
        self._local = threading.local()
        self._sessions = []
        self._sessions_lock = threading.Lock()
        self._closed = False

    @property
    def url(self):
        url = "{0}://{1}".format(self.protocol, self.hostname)
        if self._port_param() is not None:
            url += ":{0}".format(self.port)
        return url + "/api/"

    def _port_param(self):
        default = 80 if self.protocol == "http" else 443
        if self.port is None or int(self.port) == default:
            return None
        return int(self.port)

    def should_log(self, category):
        return bool(self.mask & category) and not self.mask & LOG_QUIET

    def close(self):
        """Close the upload sessions of every thread."""
        self._closed = True
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._local = threading.local()

    def _ssl_context(self):
        if self.protocol != "https" or not self.verify_certificate:
            # pan.xapi falls back to an unverified context
            return None
        return ssl.create_default_context()

    def xapi(self, api_key=None):
        """The calling thread's :class:`pan.xapi.PanXapi` for ``api_key``."""
        if self._closed:
            raise err.PanSessionError(
                "Transport is closed", pan_device=self.pan_device
            )
        xapi = getattr(self._local, "xapi", None)
        if xapi is None or getattr(self._local, "api_key", None) != api_key:
            self._logger.debug3("Creating xapi for thread %s", threading.get_ident())
            try:
                xapi = pan.xapi.PanXapi(
                    api_username=self.username,
                    api_password=self.password,
                    api_key=api_key,
                    hostname=self.hostname,
                    port=self._port_param(),
                    use_http=self.protocol == "http",
                    timeout=self.timeout,
                    ssl_context=self._ssl_context(),
                )
            except pan.xapi.PanXapiError as e:
                raise err.PanSessionError(str(e), pan_device=self.pan_device)
            self._local.xapi = xapi
            self._local.api_key = api_key
        return xapi

    def request(self, method, api_key=None, target=None, extra_qs=None, **kwargs):
        """Issue one XML API call.

        Args:
            method (str): The :class:`pan.xapi.PanXapi` method, for example
                "show", "set", "op", "commit", "export" or "keygen".  With
                "ad_hoc" the ``qs`` keyword holds every form field except
                the key and target.
            api_key (str): The API key; None is only valid for keygen.
            target (str): Serial number of a Panorama managed firewall.
            extra_qs (dict): Additional form fields.
            **kwargs: Passed on to the pan.xapi method.

        Returns:
            Response: The parsed ``<response>`` root, the raw document and,
            for exports, pan.xapi's ``export_result``.

        Raises:
            PanXapiResponseError: The device reported an error.
            PanTransportError: The request did not get a response.
            PanProtocolError: The response was not understood.

        """
        qs = dict(extra_qs or {})
        if target:
            qs["target"] = target

        attempts = self.retries if method in IDEMPOTENT_METHODS else 1
        attempts = max(attempts, 1)
        for attempt in range(1, attempts + 1):
            try:
                return self._request_once(method, api_key, qs, kwargs)
            except err.PanConnectionReset as e:
                if attempt >= attempts:
                    raise
                self._logger.debug(
                    "%s failed (%s), retry %d of %d", method, e, attempt, attempts - 1
                )
                if self.retry_delay:
                    time.sleep(self.retry_delay)

    def _request_once(self, method, api_key, qs, kwargs):
        xapi = self.xapi(api_key)
        self._log_send(method, qs, kwargs)
        try:
            if method == "ad_hoc":
                # pan.xapi adds no fields to an ad hoc query
                fields = dict(kwargs.get("qs") or {})
                fields.update(qs)
                if api_key is not None:
                    fields["key"] = api_key
                xapi.ad_hoc(qs=fields)
            else:
                getattr(xapi, method)(extra_qs=qs or None, **kwargs)
        except pan.xapi.PanXapiError as e:
            raise self.classify_exception(xapi, e)
        except (ConnectionResetError, http.client.BadStatusLine) as e:
            raise err.PanConnectionReset(
                "Connection reset: {0}".format(e), pan_device=self.pan_device
            )
        except socket.timeout as e:
            raise err.PanConnectionTimeout(
                "Timed out: {0}".format(e), pan_device=self.pan_device
            )

        root = xapi.element_root
        self._log_receive(xapi)
        if root is not None:
            # pan.xapi treats any status="success" response as success
            error = err.parse(root, pan_device=self.pan_device)
            if error is not None:
                raise error
        elif xapi.export_result is None and xapi.text_document is None:
            raise err.PanProtocolError(
                "Empty response to {0}".format(method), pan_device=self.pan_device
            )

        return Response(root, xapi.xml_document, xapi.export_result)

    def classify_exception(self, xapi, e):
        """Turn a :class:`pan.xapi.PanXapiError` into a panclient error."""
        msg = str(e)
        if xapi.xml_document is not None:
            if xapi.element_root is None:
                error = err.PanProtocolError(msg, pan_device=self.pan_device)
                error.document = xapi.xml_document
                return error
            error = err.parse(xapi.element_root, pan_device=self.pan_device)
            if error is None:
                return err.PanProtocolError(msg, pan_device=self.pan_device)
            return error
        if msg.startswith("URLError:"):
            if msg.endswith("timed out"):
                return err.PanConnectionTimeout(msg, pan_device=self.pan_device)
            if "Connection reset" in msg or "Remote end closed" in msg:
                return err.PanConnectionReset(msg, pan_device=self.pan_device)
            return err.PanURLError(msg, pan_device=self.pan_device)
        if msg.startswith("no handler for content-type") or msg.startswith(
            "no content-type"
        ):
            return err.PanProtocolError(msg, pan_device=self.pan_device)
        return err.PanDeviceXapiError(msg, pan_device=self.pan_device)

    def upload(
        self, api_key, category, filename, content, target=None, extra_qs=None, field="file"
    ):
        """Send a multipart ``type=import`` request.

        Returns:
            Response: As for :meth:`request`, with no export result.

        """
        if self._closed:
            raise err.PanSessionError(
                "Transport is closed", pan_device=self.pan_device
            )
        data = {"type": "import", "category": category}
        data.update(extra_qs or {})
        if target:
            data["target"] = target
        data["key"] = api_key
        self._log_send("import", data, {"filename": filename})

        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        try:
            resp = session.post(
                self.url,
                data=data,
                files={field: (filename, content)},
                verify=self.verify_certificate,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise err.PanConnectionTimeout(str(e), pan_device=self.pan_device)
        except requests.exceptions.ConnectionError as e:
            raise err.PanURLError(str(e), pan_device=self.pan_device)

        if self.should_log(LOG_RECEIVE):
            self._logger.debug("receive: HTTP %s", resp.status_code)
        if self.should_log(LOG_XML_IN):
            self._logger.debug("xml-in: %s", resp.text)
        try:
            root = ET.fromstring(resp.content)
        except ET.ParseError as e:
            raise err.PanProtocolError(
                "HTTP {0}: unparsable response: {1}".format(resp.status_code, e),
                pan_device=self.pan_device,
            )
        error = err.parse(root, pan_device=self.pan_device)
        if error is not None:
            raise error
        return Response(root, resp.text, None)

    def _log_send(self, method, qs, kwargs):
        if self.should_log(LOG_SEND):
            params = dict(kwargs)
            params.update(qs)
            self._logger.debug("send %s: %s", method, mask_secrets(params))
        if self.should_log(LOG_XPATH) and kwargs.get("xpath"):
            self._logger.info("xpath: %s", kwargs["xpath"])
        if self.should_log(LOG_XML_OUT):
            for name in ("element", "cmd"):
                if kwargs.get(name):
                    self._logger.debug("xml-out %s: %s", name, kwargs[name])

    def _log_receive(self, xapi):
        if self.should_log(LOG_RECEIVE):
            self._logger.debug(
                "receive: status=%s code=%s", xapi.status, xapi.status_code
            )
        if self.should_log(LOG_XML_IN) and xapi.xml_document is not None:
            self._logger.debug("xml-in: %s", xapi.xml_document)
