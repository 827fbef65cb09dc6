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


"""Session with a PAN-OS device and the XML API verbs"""

import collections
import json
import os
import re
import threading
import time
import xml.etree.ElementTree as ET
from datetime import datetime

from pan.config import PanConfig

import panclient
import panclient.errors as err
from panclient import getlogger, isstring, string_or_list, util
from panclient import transport as tp
from panclient.jobs import JobTracker
from panclient.multiconfig import MultiConfigure
from panclient.version import Version

logger = getlogger(__name__)

UNINITIALIZED = "uninitialized"
INITIALIZED = "initialized"
CLOSED = "closed"

MAX_TIMEOUT = 60

ENVIRONMENT = (
    ("hostname", "PANOS_HOSTNAME"),
    ("username", "PANOS_USERNAME"),
    ("password", "PANOS_PASSWORD"),
    ("api_key", "PANOS_API_KEY"),
    ("protocol", "PANOS_PROTOCOL"),
    ("port", "PANOS_PORT"),
    ("timeout", "PANOS_TIMEOUT"),
    ("target", "PANOS_TARGET"),
    ("verify_certificate", "PANOS_VERIFY_CERTIFICATE"),
    ("logging", "PANOS_LOGGING"),
)

DEFAULTS = {
    "port": 443,
    "protocol": "https",
    "verify_certificate": True,
    "timeout": 10,
}

SystemInfo = collections.namedtuple("SystemInfo", ["version", "platform", "serial"])

Plugin = collections.namedtuple(
    "Plugin", ["name", "version", "installed", "downloaded"]
)

Lock = collections.namedtuple(
    "Lock", ["owner", "name", "type", "logged_in", "comment"]
)


def _as_bool(value):
    if isinstance(value, bool):
        return value
    value = str(value).strip().lower()
    if value in ("1", "t", "true", "yes", "y"):
        return True
    if value in ("0", "f", "false", "no", "n"):
        return False
    raise ValueError("Not a boolean: {0!r}".format(value))


class PanClient(object):
    """A session with a firewall or Panorama.

    Nothing touches the device until :meth:`initialize` is called.

    Args:
        hostname (str): Hostname or IP of the device.
        username (str): Administrator used to generate an API key.
        password (str): Password of ``username``.
        api_key (str): API key; when given, keygen is skipped.
        port (int): TCP port (Default: 443).
        protocol (str): "https" (default) or "http".
        verify_certificate (bool): Verify the TLS certificate (Default: True).
        timeout (int): Seconds before a request is abandoned (Default: 10,
            at most 60).
        logging: A list of logging category names, or a mask built from the
            ``LOG_*`` constants of :mod:`panclient.transport`.
        target (str): Serial number of a firewall to proxy requests to
            through Panorama.

    Attributes:
        userid (UserId): The User-ID subsystem.
        licensing (Licensing): The licensing subsystem.
        predefined (Predefined): The predefined objects subsystem.
        audit (AuditComments): The audit comment subsystem.
        jobs (JobTracker): Polls asynchronous jobs.

    """

    PLUGINS_MIN_VERSION = None
    DEFAULT_VSYS = None
    ROOT_TAG = "devices"

    def __init__(
        self,
        hostname=None,
        username=None,
        password=None,
        api_key=None,
        port=None,
        protocol=None,
        verify_certificate=None,
        timeout=None,
        logging=None,
        target=None,
    ):
        # create a class logger
        self._logger = getlogger(__name__ + "." + self.__class__.__name__)

        self._given = {
            "hostname": hostname,
            "username": username,
            "password": password,
            "api_key": api_key,
            "port": port,
            "protocol": protocol,
            "verify_certificate": verify_certificate,
            "timeout": timeout,
            "logging": logging,
            "target": target,
        }
        self._apply_config(self._given)
        self._state = UNINITIALIZED
        self._transport = None
        self._version = None
        self._plugins = None
        self.platform = None
        self.serial = None
        self.system_info = {}
        self._batch = threading.local()

        self.jobs = JobTracker(self)

        # avoid a premature import
        from panclient import audit, licensing, predefined, userid

        self.userid = userid.UserId(self)
        """User-ID subsystem"""
        self.licensing = licensing.Licensing(self)
        """Licensing subsystem"""
        self.predefined = predefined.Predefined(self)
        """Predefined objects subsystem"""
        self.audit = audit.AuditComments(self)
        """Audit comment subsystem"""

    def _apply_config(self, config):
        self.hostname = config.get("hostname")
        self.username = config.get("username")
        self.password = config.get("password")
        self._api_key = config.get("api_key")
        self.port = config.get("port")
        self.protocol = config.get("protocol")
        self.verify_certificate = config.get("verify_certificate")
        self.timeout = config.get("timeout")
        self.target = config.get("target")
        self.logging = config.get("logging")
        self._mask = None

    def __repr__(self):
        return (
            "<{0} hostname={1!r} username={2!r} password={3} api_key={4} "
            "protocol={5} port={6} timeout={7} logging={8}>"
        ).format(
            self.__class__.__name__,
            self.hostname,
            self.username,
            "********" if self.password else "''",
            "********" if self._api_key else "''",
            self.protocol,
            self.port,
            self.timeout,
            self._mask,
        )

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    # Properties

    @property
    def id(self):
        return str(self.hostname)

    @property
    def api_key(self):
        return self._api_key

    @property
    def state(self):
        return self._state

    @property
    def vsys(self):
        return self.DEFAULT_VSYS

    # Configuration

    def _load_config(self, filename=None, check_environment=False):
        """Merge constructor values, environment and JSON file."""
        from_file = {}
        if filename is not None:
            with open(filename) as fd:
                from_file = json.load(fd)
            if not isinstance(from_file, dict):
                raise ValueError("{0}: not a JSON object".format(filename))

        from_env = {}
        if check_environment:
            for key, name in ENVIRONMENT:
                value = os.environ.get(name)
                if value:
                    from_env[key] = value
            if "logging" in from_env:
                from_env["logging"] = [
                    x for x in from_env["logging"].split(",") if x.strip()
                ]

        config = {}
        for key, _ in ENVIRONMENT:
            for source in (self._given, from_env, from_file):
                if source.get(key) is not None:
                    config[key] = source[key]
                    break
            else:
                config[key] = DEFAULTS.get(key)

        self._validate_config(config)
        self._apply_config(config)
        self._mask = config["mask"]

    def _validate_config(self, config):
        if not config["hostname"]:
            raise ValueError("No hostname specified")
        if not config["api_key"] and not (config["username"] and config["password"]):
            raise ValueError("No username/password or API key given")

        if config["protocol"] not in ("http", "https"):
            raise ValueError(
                'Invalid protocol "{0}".  Must be "http" or "https"'.format(
                    config["protocol"]
                )
            )

        try:
            config["port"] = int(config["port"])
        except (TypeError, ValueError):
            raise ValueError("Invalid port: {0}".format(config["port"]))
        if not 0 < config["port"] <= 65535:
            raise ValueError("Port {0} is out of bounds".format(config["port"]))

        try:
            config["timeout"] = int(config["timeout"])
        except (TypeError, ValueError):
            raise ValueError("Invalid timeout: {0}".format(config["timeout"]))
        if config["timeout"] <= 0:
            raise ValueError(
                "Timeout for {0} must be a positive int".format(config["hostname"])
            )
        if config["timeout"] > MAX_TIMEOUT:
            self._logger.debug(
                "Timeout %s capped to %s", config["timeout"], MAX_TIMEOUT
            )
            config["timeout"] = MAX_TIMEOUT

        config["verify_certificate"] = _as_bool(config["verify_certificate"])

        logging = config["logging"]
        if isinstance(logging, int):
            config["mask"] = logging
        else:
            config["mask"] = tp.logging_mask(
                string_or_list(logging) if logging else None
            )

    # Lifecycle

    def initialize(self, filename=None, check_environment=False):
        """Connect to the device.

        Loads the configuration, retrieves an API key if there is none,
        then reads the software version and the installed plugins.

        Args:
            filename (str): Optional JSON file with connection settings.
            check_environment (bool): Also read the ``PANOS_*`` environment
                variables.

        Raises:
            ValueError: The configuration is invalid.
            PanSessionError: The session was closed, or is already
                initialized; re-keying requires a new session.

        If any step fails the session stays uninitialized and the error is
        raised.

        """
        if self._state == CLOSED:
            raise err.PanSessionError("Session is closed", pan_device=self)
        if self._state == INITIALIZED:
            raise err.PanSessionError("Session is already initialized", pan_device=self)

        try:
            self._load_config(filename, check_environment)
            self._transport = tp.Transport(
                self.hostname,
                port=self.port,
                protocol=self.protocol,
                verify_certificate=self.verify_certificate,
                timeout=self.timeout,
                username=self.username,
                password=self.password,
                mask=self._mask,
                pan_device=self,
            )
            if self._api_key is None:
                self.keygen()
            self.refresh_system_info()
            if self._wants_plugins():
                self.refresh_plugins()
        except Exception:
            self._reset()
            raise

        self._state = INITIALIZED
        self._logger.debug("%s: initialized, version %s", self.id, self._version)
        return self

    def _wants_plugins(self):
        if self.PLUGINS_MIN_VERSION is None:
            return True
        return self._version is not None and self._version >= self.PLUGINS_MIN_VERSION

    def _reset(self):
        if self._transport is not None:
            self._transport.close()
        self._transport = None
        self._version = None
        self._plugins = None
        self.platform = None
        self.serial = None
        self.system_info = {}
        self._apply_config(self._given)
        self._state = UNINITIALIZED

    def close(self):
        """End the session.  Closing twice is harmless."""
        if self._state == CLOSED:
            return
        if self._transport is not None:
            self._transport.close()
        self._state = CLOSED
        self._logger.debug("%s: closed", self.id)

    def versioning(self):
        """The device's software version, as a :class:`Version`."""
        return self._version

    def plugins(self):
        """The plugin inventory read by :meth:`initialize`."""
        return list(self._plugins or [])

    # Logging categories

    def _should_log(self, category):
        mask = self._mask if self._mask is not None else tp.LOG_DEFAULT
        return bool(mask & category) and not mask & tp.LOG_QUIET

    def log_action(self, msg, *args):
        if self._should_log(tp.LOG_ACTION):
            self._logger.info(msg, *args)

    def log_query(self, msg, *args):
        if self._should_log(tp.LOG_QUERY):
            self._logger.info(msg, *args)

    def log_op(self, msg, *args):
        if self._should_log(tp.LOG_OP):
            self._logger.info(msg, *args)

    def log_uid(self, msg, *args):
        if self._should_log(tp.LOG_UID):
            self._logger.info(msg, *args)

    def log_export(self, msg, *args):
        if self._should_log(tp.LOG_EXPORT):
            self._logger.info(msg, *args)

    def log_import(self, msg, *args):
        if self._should_log(tp.LOG_IMPORT):
            self._logger.info(msg, *args)

    # Verbs

    def _check_session(self, need_key=True):
        if self._state == CLOSED:
            raise err.PanSessionError("Session is closed", pan_device=self)
        if self._transport is None:
            raise err.PanSessionError(
                "Session is not initialized, call initialize() first",
                pan_device=self,
            )
        if need_key and self._api_key is None:
            raise err.PanApiKeyNotSet("Please retrieve an API KEY first.", pan_device=self)

    def _request(self, method, target=None, **kwargs):
        self._check_session()
        if target is None:
            target = self.target
        return self._transport.request(
            method, api_key=self._api_key, target=target, **kwargs
        )

    @staticmethod
    def _xml_str(value):
        if value is None or isstring(value):
            return value
        return ET.tostring(value, encoding="unicode")

    def keygen(self):
        """Retrieve and cache an API key for the configured credentials.

        Raises:
            PanSessionError: There already is an API key.  Re-keying
                requires a new session.

        """
        self._check_session(need_key=False)
        if self._api_key is not None:
            raise err.PanSessionError(
                "API key already set, create a new session to re-key",
                pan_device=self,
            )
        self._logger.debug(
            "Getting API Key from %s for user %s", self.hostname, self.username
        )
        response = self._transport.request("keygen")
        elm = response.root.find("./result/key") if response.root is not None else None
        if elm is None or not elm.text:
            raise err.PanProtocolError("keygen(): key element not found", pan_device=self)
        self._api_key = elm.text
        return self._api_key

    def op(self, cmd, vsys=None, cmd_xml=False, extra_qs=None, target=None):
        """Run an operational command.

        Args:
            cmd: The command as XML text or an Element, or as CLI text
                when ``cmd_xml`` is True.
            vsys (str): Vsys to run the command in.
            cmd_xml (bool): ``cmd`` is CLI text to be turned into XML.
            extra_qs (dict): Additional form fields.
            target (str): Serial number override for this call.

        Returns:
            Element: The ``<response>`` root.

        """
        cmd = self._xml_str(cmd)
        self.log_op("(op) %s", cmd)
        return self._request(
            "op", target, cmd=cmd, vsys=vsys, cmd_xml=cmd_xml, extra_qs=extra_qs
        ).root

    def show(self, xpath, extra_qs=None, target=None):
        """Active configuration at ``xpath`` (a string or a list of segments)."""
        xpath = util.as_xpath(xpath)
        self.log_query("(show) %s", xpath)
        return self._request("show", target, xpath=xpath, extra_qs=extra_qs).root

    def get(self, xpath, extra_qs=None, target=None):
        """Candidate configuration at ``xpath``."""
        xpath = util.as_xpath(xpath)
        self.log_query("(get) %s", xpath)
        return self._request("get", target, xpath=xpath, extra_qs=extra_qs).root

    def set(self, xpath, element, extra_qs=None, target=None):
        """Add ``element`` under ``xpath``."""
        xpath = util.as_xpath(xpath)
        batch = self._batched()
        if batch is not None:
            self.log_action("(set) %s (batched)", xpath)
            batch.set(xpath, self._xml_str(element))
            return None
        self.log_action("(set) %s", xpath)
        return self._request(
            "set", target, xpath=xpath, element=self._xml_str(element), extra_qs=extra_qs
        ).root

    def edit(self, xpath, element, extra_qs=None, target=None):
        """Replace the configuration at ``xpath`` with ``element``."""
        xpath = util.as_xpath(xpath)
        batch = self._batched()
        if batch is not None:
            self.log_action("(edit) %s (batched)", xpath)
            batch.edit(xpath, self._xml_str(element))
            return None
        self.log_action("(edit) %s", xpath)
        return self._request(
            "edit", target, xpath=xpath, element=self._xml_str(element), extra_qs=extra_qs
        ).root

    def delete(self, xpath, extra_qs=None, target=None):
        xpath = util.as_xpath(xpath)
        batch = self._batched()
        if batch is not None:
            self.log_action("(delete) %s (batched)", xpath)
            batch.delete(xpath)
            return None
        self.log_action("(delete) %s", xpath)
        return self._request("delete", target, xpath=xpath, extra_qs=extra_qs).root

    def move(self, xpath, where, dst=None, extra_qs=None, target=None):
        """Move the entry at ``xpath``.

        Args:
            where (str): "before", "after", "top" or "bottom".
            dst (str): The entry name ``where`` refers to.

        """
        if where not in ("before", "after", "top", "bottom"):
            raise ValueError("Invalid move location: {0}".format(where))
        if where in ("before", "after") and not dst:
            raise ValueError('"{0}" requires a destination'.format(where))
        xpath = util.as_xpath(xpath)
        self.log_action("(move) %s %s %s", xpath, where, dst or "")
        return self._request(
            "move", target, xpath=xpath, where=where, dst=dst, extra_qs=extra_qs
        ).root

    def rename(self, xpath, newname, extra_qs=None, target=None):
        xpath = util.as_xpath(xpath)
        self.log_action("(rename) %s to %s", xpath, newname)
        return self._request(
            "rename", target, xpath=xpath, newname=newname, extra_qs=extra_qs
        ).root

    def clone(self, xpath, xpath_from, newname, extra_qs=None, target=None):
        """Copy the entry at ``xpath_from`` to ``newname`` under ``xpath``."""
        xpath = util.as_xpath(xpath)
        xpath_from = util.as_xpath(xpath_from)
        self.log_action("(clone) %s as %s", xpath_from, newname)
        return self._request(
            "clone",
            target,
            xpath=xpath,
            xpath_from=xpath_from,
            newname=newname,
            extra_qs=extra_qs,
        ).root

    def commit(
        self, cmd=None, action=None, exception=False, extra_qs=None, target=None
    ):
        """Start a commit.

        Args:
            cmd: A commit object (anything with ``element()`` and
                ``commit_action``), an Element, XML text, or None for a
                full commit.
            action (str): The commit action, for example "all".
            exception (bool): Raise PanCommitNotNeeded when there is
                nothing to commit.

        Returns:
            int: The job id, or 0 if there was nothing to commit.

        """
        if cmd is not None and hasattr(cmd, "element") and hasattr(cmd, "commit_action"):
            action = cmd.commit_action
            cmd = cmd.element()
        if cmd is None:
            cmd = ET.Element("commit")
        cmd = self._xml_str(cmd)

        self.log_action("(commit) %s", cmd)
        root = self._request(
            "commit", target, cmd=cmd, action=action, extra_qs=extra_qs
        ).root

        job = root.find("./result/job") if root is not None else None
        if job is None or not (job.text or "").strip():
            if exception:
                raise err.PanCommitNotNeeded("Commit not needed", pan_device=self)
            self._logger.debug("%s: nothing to commit", self.id)
            return 0

        job_id = int(job.text.strip())
        self._logger.debug("Commit initiated (async), job id: %s", job_id)
        return job_id

    def export(self, category, from_name=None, to_name=None, extra_qs=None, target=None):
        """Export a file.

        Returns:
            tuple: The attachment's filename (None if the device did not
            send one) and its content.

        """
        self.log_export("(export) %s", category)
        response = self._request(
            "export",
            target,
            category=category,
            from_name=from_name,
            to_name=to_name,
            extra_qs=extra_qs,
        )
        if response.export_result is not None:
            return response.export_result["file"], response.export_result["content"]
        return None, (response.document or "").encode("utf-8")

    def import_file(self, category, filename, content, extra_qs=None, target=None):
        """Upload ``content`` as ``filename`` with a multipart import.

        Returns:
            Element: The ``<response>`` root.

        """
        self._check_session()
        if target is None:
            target = self.target
        self.log_import("(import) %s: %s", category, filename)
        return self._transport.upload(
            self._api_key,
            category,
            filename,
            content,
            target=target,
            extra_qs=extra_qs,
        ).root

    def user_id(self, cmd, vsys=None, extra_qs=None, target=None):
        """Send a User-ID ``<uid-message>``."""
        cmd = self._xml_str(cmd)
        self.log_uid("(uid) %s", cmd)
        return self._request(
            "user_id", target, cmd=cmd, vsys=vsys, extra_qs=extra_qs
        ).root

    # Discovery

    def show_system_info(self):
        root = self.op("<show><system><info/></system></show>")
        pconf = PanConfig(root)
        system_info = pconf.python()
        return system_info["response"]["result"]

    def refresh_system_info(self):
        """Refresh the version, platform and serial number.

        Returns:
            namedtuple: version, platform, serial

        """
        system_info = self.show_system_info()
        self._save_system_info(system_info)
        return SystemInfo(str(self._version), self.platform, self.serial)

    def _save_system_info(self, system_info):
        try:
            system = system_info["system"]
        except (KeyError, TypeError):
            raise err.PanProtocolError("No system info in response", pan_device=self)
        self.system_info = dict(system)
        try:
            self._version = Version(str(system["sw-version"]))
        except (KeyError, ValueError) as e:
            raise err.PanProtocolError(
                "Error parsing version: {0}".format(e), pan_device=self
            )
        self.platform = system.get("model")
        self.serial = system.get("serial")

    def refresh_plugins(self):
        """Re-read the plugin inventory."""
        self.log_op("(op) getting plugin info")
        root = self.op("<show><plugins><packages/></plugins></show>")
        ans = []
        for e in root.findall("./result/plugins/entry"):
            ans.append(
                Plugin(
                    e.findtext("name", ""),
                    e.findtext("version", ""),
                    util.as_bool(e.findtext("installed", "no")),
                    util.as_bool(e.findtext("downloaded", "no")),
                )
            )
        self._plugins = ans
        return list(ans)

    # Helpers

    def entry_list_using(self, fn, path):
        """Names of the entries below ``path``, fetched with ``fn``.

        Args:
            fn: :meth:`show` or :meth:`get`.
            path (list): The xpath segments of the list element.

        Returns:
            list: The names, empty if ``path`` does not exist.

        """
        if not path:
            raise ValueError("xpath is empty")
        path = list(path) + ["entry", "@name"]
        try:
            root = fn(path)
        except err.PanObjectMissing:
            return []
        return [e.attrib.get("name", "") for e in root.findall("./result/entry")]

    def member_list_using(self, fn, path):
        """Member values below ``path``, fetched with ``fn``."""
        if not path:
            raise ValueError("xpath is empty")
        path = list(path) + ["member"]
        try:
            root = fn(path)
        except err.PanObjectMissing:
            return []
        return [e.text or "" for e in root.findall("./result/member")]

    def request_password_hash(self, value):
        """Request a password hash from the live device.

        Raises:
            ValueError: If the password hash is not found.

        """
        self.log_op("(op) creating password hash")
        cmd = ET.Element("request")
        ET.SubElement(ET.SubElement(cmd, "password-hash"), "password").text = value
        result = self.op(cmd)
        elm = result.find("./result/phash")
        if elm is None:
            raise ValueError("No password hash in response")

        return elm.text

    def validate_config(self, sync=False, interval=1.0):
        """Validate the candidate configuration.

        Returns:
            int: The job id.  With ``sync``, the job is waited on first.

        """
        self.log_op("(op) validating config")
        root = self.op("<validate><full/></validate>")
        job = root.find("./result/job")
        if job is None:
            raise err.PanProtocolError("No job id in validate response", pan_device=self)
        job_id = int(job.text)
        if sync:
            self.wait_for_job(job_id, interval)
        return job_id

    def revert_to_running_config(self):
        """Discard the candidate configuration changes."""
        self.log_op("(op) reverting to running config")
        self.op("<load><config><from>running-config.xml</from></config></load>")

    def clock(self):
        """Gets the current time on PAN-OS.

        The device reports its local time with a zone abbreviation
        (``PST``, ``CET``, ...).  The abbreviation is dropped, so the
        result is a naive datetime in the device's zone.

        Returns:
            datetime.datetime
        """
        self.log_op("(op) getting system time")
        ans = self.op("<show><clock/></show>")

        res = ans.find("./result")
        if res is None or not res.text:
            return None

        tokens = res.text.split()
        if len(tokens) != 6:
            raise err.PanProtocolError(
                "Unexpected clock format: {0}".format(res.text.strip()),
                pan_device=self,
            )
        del tokens[4]
        return datetime.strptime(" ".join(tokens), "%a %b %d %H:%M:%S %Y")

    def wait_for_job(self, job_id, interval=1.0, **kwargs):
        """See :meth:`panclient.jobs.JobTracker.wait`."""
        return self.jobs.wait(job_id, interval, **kwargs)

    # Multi-config

    def multi_config(self, request, strict=False, extra_qs=None, target=None):
        """Send a batch of configuration changes in one request.

        Args:
            request (MultiConfigure): The changes.
            strict (bool): Apply every change or none of them
                (``strict-transactional``).
            extra_qs (dict): Additional form fields.
            target (str): Serial number override for this call.

        Returns:
            list: A :class:`panclient.multiconfig.MultiConfigResult` per
            change, in order.  An empty batch sends nothing.

        Raises:
            PanXapiResponseError: The device rejected the batch.

        """
        if not len(request):
            return []
        self.log_action("(multi-config) %d changes", len(request))
        root = self._request(
            "multi_config",
            target,
            element=request.element_str(),
            strict=True if strict else None,
            extra_qs=extra_qs,
        ).root
        return request.results(root)

    def prepare_multi_config(self):
        """Collect SET, EDIT and DELETE calls instead of sending them.

        Applies to calls made from the current thread until
        :meth:`send_multi_config`.  Their ``extra_qs`` and ``target`` are
        not kept.

        Returns:
            MultiConfigure: The batch being collected.

        """
        self._check_session()
        self._batch.request = MultiConfigure()
        return self._batch.request

    def send_multi_config(self, strict=False, target=None):
        """Send what was collected since :meth:`prepare_multi_config`."""
        request = self._batched()
        self._batch.request = None
        if request is None:
            return []
        return self.multi_config(request, strict=strict, target=target)

    def _batched(self):
        return getattr(self._batch, "request", None)

    # Logs

    def log(
        self,
        log_type,
        query=None,
        nlogs=None,
        skip=None,
        direction=None,
        extra_qs=None,
        target=None,
    ):
        """Start a log query on the device.

        Args:
            log_type (str): For example "traffic", "threat", "config" or
                "system".
            query (str): Log filter, for example
                ``(subtype eq audit-comment)``.
            nlogs (int): How many logs to return.
            skip (int): How many logs to skip, for paging.
            direction (str): "backward" (newest first) or "forward".
            extra_qs (dict): Additional form fields.
            target (str): Serial number override for this call.

        Returns:
            int: The log job id, for :meth:`wait_for_logs`.

        """
        if direction is not None and direction not in ("backward", "forward"):
            raise ValueError("Invalid log direction: {0}".format(direction))
        fields = {"type": "log", "log-type": log_type}
        if query:
            fields["query"] = query
        if nlogs:
            fields["nlogs"] = str(int(nlogs))
        if skip:
            fields["skip"] = str(int(skip))
        if direction:
            fields["dir"] = direction
        fields.update(extra_qs or {})

        self.log_query("(log) %s logs: %s", log_type, query or "")
        root = self._request("ad_hoc", target, qs=fields).root
        job = root.find("./result/job") if root is not None else None
        if job is None or not (job.text or "").strip():
            raise err.PanProtocolError("No job id in log response", pan_device=self)
        return int(job.text)

    def wait_for_logs(self, job_id, interval=0.5, timeout=None, target=None):
        """Poll a log query until the device has finished it.

        Returns:
            list: The log ``<entry>`` elements.

        Raises:
            PanJobFailed: The log job failed.
            PanJobTimeout: ``timeout`` seconds went by first.

        """
        fields = {"type": "log", "action": "get", "job-id": str(int(job_id))}
        self.log_query("(log) waiting for logs: %s", job_id)
        start = time.monotonic()
        prev = None
        while True:
            root = self._request("ad_hoc", target, qs=fields).root
            job = root.find("./result/job") if root is not None else None
            if job is None:
                raise err.PanProtocolError(
                    "No job in log response for {0}".format(job_id), pan_device=self
                )
            status = (job.findtext("status") or "").strip()
            if status != prev:
                prev = status
                self.log_query("(log) job %s status: %s", job_id, status)
            if status == "FIN":
                break
            if timeout is not None and time.monotonic() - start > timeout:
                raise err.PanJobTimeout(
                    "Timeout waiting for log job {0}".format(job_id), pan_device=self
                )
            if interval:
                time.sleep(interval)

        if (job.findtext("result") or "").strip() == "FAIL":
            lines = [
                "".join(x.itertext()).strip() for x in job.findall("./details/line")
            ]
            lines = [x for x in lines if x]
            msg = " | ".join(lines) or "Log job {0} has failed to complete".format(
                job_id
            )
            raise err.PanJobFailed(msg, pan_device=self)
        return root.findall("./result/log/logs/entry")

    def logs(self, log_type, interval=0.5, timeout=None, target=None, **kwargs):
        """Run a log query and wait for its entries.

        Keyword arguments are those of :meth:`log`.
        """
        job_id = self.log(log_type, target=target, **kwargs)
        return self.wait_for_logs(job_id, interval, timeout, target=target)

    # Locks

    @staticmethod
    def _parse_locks(root, tag):
        ans = []
        for e in root.findall("./result/{0}/entry".format(tag)):
            ans.append(
                Lock(
                    e.attrib.get("name"),
                    e.findtext("name"),
                    e.findtext("type"),
                    e.findtext("loggedin"),
                    (e.findtext("comment") or "").strip(),
                )
            )
        return ans

    def show_config_locks(self, vsys="shared"):
        """Config locks currently held for the scope ``vsys``."""
        vsys = vsys or "shared"
        if self._version is not None and self._version >= (9, 1, 0):
            cmd = "<show><config-locks><vsys>{0}</vsys></config-locks></show>".format(
                "all" if vsys == "shared" else vsys
            )
        else:
            cmd = "<show><config-locks/></show>"
        self.log_op('(op) getting config locks for scope "%s"', vsys)
        return self._parse_locks(self.op(cmd, vsys=vsys), "config-locks")

    def show_commit_locks(self, vsys="shared"):
        """Commit locks currently held for the scope ``vsys``."""
        vsys = vsys or "shared"
        self.log_op('(op) getting commit locks for scope "%s"', vsys)
        return self._parse_locks(
            self.op("<show><commit-locks/></show>", vsys=vsys), "commit-locks"
        )

    def _lock_op(self, kind, inner, vsys, ignore):
        cmd = ET.Element("request")
        ET.SubElement(cmd, kind).append(inner)
        try:
            self.op(cmd, vsys=vsys or "shared")
        except err.PanXapiResponseError as e:
            if re.search(ignore, str(e)):
                raise err.PanLockError(str(e), pan_device=self)
            raise

    def lock_config(self, vsys="shared", comment=None):
        """Take the config lock for the scope ``vsys``.

        Raises:
            PanLockError: The lock is held already.

        """
        self.log_op('(op) locking config for scope "%s"', vsys or "shared")
        add = ET.Element("add")
        if comment:
            ET.SubElement(add, "comment").text = comment
        self._lock_op(
            "config-lock",
            add,
            vsys,
            r"is currently locked|already own a config lock",
        )

    def unlock_config(self, vsys="shared"):
        self.log_op('(op) unlocking config for scope "%s"', vsys or "shared")
        self._lock_op(
            "config-lock", ET.Element("remove"), vsys, r"not currently locked"
        )

    def lock_commits(self, vsys="shared", comment=None):
        """Take the commit lock for the scope ``vsys``."""
        self.log_op('(op) locking commits for scope "%s"', vsys or "shared")
        add = ET.Element("add")
        if comment:
            ET.SubElement(add, "comment").text = comment
        self._lock_op("commit-lock", add, vsys, r"Commit lock is already held")

    def unlock_commits(self, vsys="shared", admin=None):
        """Remove the commit lock, optionally the one owned by ``admin``."""
        self.log_op('(op) unlocking commits for scope "%s"', vsys or "shared")
        remove = ET.Element("remove")
        if admin:
            ET.SubElement(remove, "admin").text = admin
        self._lock_op(
            "commit-lock", remove, vsys, r"Commit lock is not currently held"
        )

    # Vsys imports

    @staticmethod
    def xpath_import(template=None, template_stack=None, vsys=None):
        """Segments of a vsys's ``import/network`` element.

        A missing ``vsys`` selects every vsys.
        """
        ans = util.template_xpath_prefix(template, template_stack)
        ans += [
            "config",
            "devices",
            util.as_entry_xpath([util.LOCALHOST]),
            "vsys",
            util.as_entry_xpath([vsys] if vsys else []),
            "import",
            "network",
        ]
        return ans

    def vsys_import(self, location, names, vsys, template=None, template_stack=None):
        """Import ``names`` into ``vsys`` at the import ``location``.

        Args:
            location (str): One of :data:`panclient.util.IMPORT_LOCATIONS`.
            names (list): Names of the interfaces, virtual routers, etc.

        """
        names = panclient.string_or_list_or_none(names)
        if location not in util.IMPORT_LOCATIONS:
            raise ValueError("Invalid import location: {0}".format(location))
        if not names or not vsys:
            return
        path = self.xpath_import(template, template_stack, vsys)
        bulk = util.BulkElement(location)
        for name in names:
            member = ET.Element("member")
            member.text = name
            bulk.elements.append(member)
        if len(names) == 1:
            path.append(location)
        self.set(path, bulk.config())

    def vsys_unimport(self, location, names, template=None, template_stack=None):
        """Remove ``names`` from the ``location`` imports of every vsys."""
        names = panclient.string_or_list_or_none(names)
        if location not in util.IMPORT_LOCATIONS:
            raise ValueError("Invalid import location: {0}".format(location))
        if not names:
            return
        path = self.xpath_import(template, template_stack)
        path += [location, util.as_member_xpath(names)]
        try:
            self.delete(path)
        except err.PanObjectMissing:
            pass

    def is_imported(self, location, name, vsys=None, template=None, template_stack=None):
        """Whether ``name`` is imported at ``location``.

        With a ``vsys``, checks that vsys.  Without one, checks that no
        vsys imports ``name``.
        """
        path = self.xpath_import(template, template_stack, vsys)
        path += [location, util.as_member_xpath([name])]
        try:
            root = self.get(path)
        except err.PanObjectMissing:
            return not vsys
        found = root is not None and root.find("./result/member") is not None
        return found if vsys else not found

    # Positioning

    def position_first_entity(self, movement, rel, ent, path, elements):
        """Move ``ent`` relative to ``rel``, only if it is not already there.

        Args:
            movement (int): One of the ``MOVE_*`` constants in
                :mod:`panclient.util`.
            rel (str): The reference entry name.
            ent (str): The entry to move.
            path (list): The xpath segments of ``ent``.
            elements (list): The current entry names, in order.

        """
        if rel == ent:
            raise ValueError('Can\'t position "{0}" in relation to itself'.format(rel))
        if not util.valid_movement(movement):
            raise ValueError("Invalid position int given: {0}".format(movement))
        if util.relative_movement(movement) and not rel:
            raise ValueError("Specify 'rel' in order to perform relative positioning")

        if movement == util.MOVE_SKIP:
            return
        if movement in (util.MOVE_TOP, util.MOVE_BOTTOM):
            where = "top" if movement == util.MOVE_TOP else "bottom"
            self.move_tolerant(path, where)
            return

        try:
            f_idx = elements.index(ent)
        except ValueError:
            raise ValueError('Entity to be moved "{0}" does not exist'.format(ent))
        try:
            o_idx = elements.index(rel)
        except ValueError:
            raise ValueError('Reference entity "{0}" does not exist'.format(rel))

        if (movement == util.MOVE_BEFORE and f_idx > o_idx) or (
            movement == util.MOVE_DIRECTLY_BEFORE and f_idx + 1 != o_idx
        ):
            self.move(path, "before", rel)
        elif (movement == util.MOVE_AFTER and f_idx < o_idx) or (
            movement == util.MOVE_DIRECTLY_AFTER and f_idx != o_idx + 1
        ):
            self.move(path, "after", rel)

    def move_tolerant(self, path, where):
        """Move to the top or bottom, ignoring "already at the top/bottom"."""
        try:
            self.move(path, where)
        except err.PanXapiResponseError as e:
            if "already at the {0}".format(where) not in str(e):
                raise
