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

"""User-ID and Dynamic Address Group updates using the User-ID API"""

import xml.etree.ElementTree as ET
from copy import deepcopy

import panclient.errors as err
from panclient import getlogger, string_or_list, string_or_list_or_none

logger = getlogger(__name__)

IGNORED_SUFFIXES = ("already exists, ignore", "does not exist, ignore unreg")


def _unique(values):
    """Values of ``values`` in order, without duplicates."""
    ans = []
    for value in string_or_list_or_none(values):
        if value not in ans:
            ans.append(value)
    return ans


class UserId(object):
    """User-ID Subsystem of a firewall or Panorama

    Login/logout of users, group membership, and dynamic address group
    (ip tag) and dynamic user group (user tag) registrations.

    Calls can be grouped into one ``uid-message`` with :meth:`batch_start`
    and :meth:`batch_end`.

    Args:
        client (PanClient): The session used to send messages.
        prefix (str): Prefix to use in all IP tag operations for Dynamic Address Groups
        ignore_dup_errors (bool): Devices produce errors when a tag is registered that already
            exists. Set to true to ignore these errors. (Default: True)

    """

    def __init__(self, client, prefix="", ignore_dup_errors=True):
        # Create a class logger
        self._logger = getlogger(__name__ + "." + self.__class__.__name__)
        self.client = client
        self.prefix = prefix
        self.ignore_dup_errors = ignore_dup_errors

        self._uidmessage = ET.fromstring(
            "<uid-message>"
            + "<version>1.0</version>"
            + "<type>update</type>"
            + "<payload/>"
            + "</uid-message>"
        )
        self._batch = False
        self._batch_uidmessage = deepcopy(self._uidmessage)

    @property
    def vsys(self):
        return self.client.vsys or "vsys1"

    def _create_uidmessage(self):
        if self._batch:
            return self._batch_uidmessage, self._batch_uidmessage.find("payload")
        root = deepcopy(self._uidmessage)
        return root, root.find("payload")

    @staticmethod
    def _section(payload, tag):
        ans = payload.find(tag)
        if ans is None:
            ans = ET.SubElement(payload, tag)
        return ans

    def batch_start(self):
        """Start collecting operations into one API call.

        Nothing is sent until :meth:`batch_end`.
        """
        self._batch = True
        self._batch_uidmessage = deepcopy(self._uidmessage)

    def batch_end(self):
        """Send the operations collected since :meth:`batch_start`."""
        uid_message, payload = self._create_uidmessage()
        self._batch = False
        if len(payload) > 0:
            self.send(uid_message)
        self._batch_uidmessage = deepcopy(self._uidmessage)

    def send(self, uidmessage, vsys=None):
        """Send a uid-message to the User-ID API.

        Errors about duplicate registrations and missing unregistrations are
        ignored if ``ignore_dup_errors`` is set.  Per user errors reported
        for user tag operations raise PanDeviceError.

        Args:
            uidmessage: The ``<uid-message>`` Element or XML text.
            vsys (str): Override the session's vsys.

        """
        if self._batch:
            return
        try:
            root = self.client.user_id(uidmessage, vsys=vsys or self.vsys)
        except err.PanXapiResponseError as e:
            message = str(e)
            if self.ignore_dup_errors and message.endswith(IGNORED_SUFFIXES):
                self._logger.debug("Ignoring: %s", message)
                return
            raise
        self._check_uid_response(root)

    def _check_uid_response(self, root):
        if root is None:
            return
        payload = root.find("./msg/line/uid-response/payload")
        if payload is None:
            return
        msgs = []
        for section, label in (("register-user", "taguser"), ("unregister-user", "untaguser")):
            for entry in payload.findall("./{0}/entry".format(section)):
                if entry.attrib.get("message"):
                    msgs.append(
                        '{0}:{1}:"{2}"'.format(
                            label, entry.attrib.get("user", ""), entry.attrib["message"]
                        )
                    )
        if msgs:
            raise err.PanDeviceError(" | ".join(msgs), pan_device=self.client)

    def login(self, user, ip, timeout=None):
        """Login a single user

        Maps a user to an IP address

        This method can be batched with batch_start() and batch_end().

        Args:
            user (str): a username
            ip (str): an ip address
            timeout (int): timeout in minutes to remove this mapping

        """
        self.logins([(user, ip, timeout)])

    def logins(self, users):
        """Login multiple users in the same API call

        This method can be batched with batch_start() and batch_end().

        Args:
            users: a list of sets of user/ip mappings with optional timeout in minutes
                   eg. [('user1', '10.0.1.1'), ('user2', '10.0.1.2', 60)]

        """
        if not users:
            return
        root, payload = self._create_uidmessage()
        login = self._section(payload, "login")
        for user in users:
            entry = ET.SubElement(login, "entry", {"name": user[0], "ip": user[1]})
            if len(user) > 2 and user[2]:
                entry.set("timeout", str(user[2]))
        self.send(root)

    def logout(self, user, ip):
        """Logout a single user

        This method can be batched with batch_start() and batch_end().
        """
        self.logouts([(user, ip)])

    def logouts(self, users):
        """Logout multiple users in the same API call

        This method can be batched with batch_start() and batch_end().

        Arguments:
            users: a list of sets of user/ip mappings
                   eg. [(user1, 10.0.1.1), (user2, 10.0.1.2)]

        """
        if not users:
            return
        root, payload = self._create_uidmessage()
        logout = self._section(payload, "logout")
        for user in users:
            ET.SubElement(logout, "entry", {"name": user[0], "ip": user[1]})
        self.send(root)

    def _ip_tags(self, section, ip, tags):
        root, payload = self._create_uidmessage()
        ip = _unique(ip)
        tags = [self.prefix + t for t in _unique(tags)]
        if not tags or not ip:
            return
        elm = self._section(payload, section)
        for c_ip in ip:
            tagelement = None
            for entry in elm.findall("entry"):
                if entry.attrib.get("ip") == c_ip:
                    tagelement = entry.find("tag")
                    break
            if tagelement is None:
                entry = ET.SubElement(elm, "entry", {"ip": c_ip})
                tagelement = ET.SubElement(entry, "tag")
            for tag in tags:
                ET.SubElement(tagelement, "member").text = tag
        self.send(root)

    def register(self, ip, tags):
        """Register an ip tag for a Dynamic Address Group

        This method can be batched with batch_start() and batch_end().

        Args:
            ip (:obj:`list` or :obj:`str`): IP address(es) to tag
            tags (:obj:`list` or :obj:`str`): The tag(s) for the IP address

        """
        self._ip_tags("register", ip, tags)

    def unregister(self, ip, tags):
        """Unregister an ip tag for a Dynamic Address Group

        This method can be batched with batch_start() and batch_end().

        Args:
            ip (:obj:`list` or :obj:`str`): IP address(es) with the tag to remove
            tags (:obj:`list` or :obj:`str`): The tag(s) to remove from the IP address

        """
        self._ip_tags("unregister", ip, tags)

    def run(self, logins=None, logouts=None, register=None, unregister=None, vsys=None):
        """Send logins, logouts, registrations and unregistrations at once.

        Args:
            logins (dict): Username to IP address.
            logouts (dict): Username to IP address.
            register (dict): IP address to list of tags.
            unregister (dict): IP address to list of tags.
            vsys (str): The vsys (Default: the session's vsys, or "vsys1").

        Tags are sent as given, without the class prefix.
        """
        if self._batch:
            raise ValueError("run() can't be part of a batch")
        logins = logins or {}
        logouts = logouts or {}
        register = register or {}
        unregister = unregister or {}
        vsys = vsys or self.vsys
        self.client.log_uid(
            "(userid) running in %s - logins:%d logouts:%d reg:%d unreg:%d",
            vsys,
            len(logins),
            len(logouts),
            len(register),
            len(unregister),
        )
        if not (logins or logouts or register or unregister):
            return

        root = deepcopy(self._uidmessage)
        payload = root.find("payload")
        for tag, users in (("login", logins), ("logout", logouts)):
            if users:
                elm = ET.SubElement(payload, tag)
                for user in sorted(users):
                    ET.SubElement(elm, "entry", {"name": user, "ip": users[user]})
        for tag, ips in (("register", register), ("unregister", unregister)):
            if ips:
                elm = ET.SubElement(payload, tag)
                for ip in sorted(ips):
                    entry = ET.SubElement(elm, "entry", {"ip": ip})
                    tagelement = ET.SubElement(entry, "tag")
                    for value in string_or_list(ips[ip]):
                        ET.SubElement(tagelement, "member").text = value

        self.send(root, vsys=vsys)

    def get_registered_ip(self, ip=None, tags=None, prefix=None):
        """Return registered/tagged addresses

        When called without arguments, retrieves all registered addresses.

        A single ip and/or a single tag are filtered by the device.  Lists
        of several are filtered here, after fetching everything.

        Args:
            ip (:obj:`list` or :obj:`str`): IP address(es) to get tags for
            tags (:obj:`list` or :obj:`str`): Tag(s) to get
            prefix (str): Override class tag prefix

        Returns:
            dict: ip addresses as keys with tags as values

        Raises:
            PanDeviceError: The device wrote the mappings to a file instead
                of returning them (PAN-OS 7.1 and lower).

        """
        version = self.client.versioning()

        if prefix is None:
            prefix = self.prefix

        limit = 0
        start_elm = None
        start_offset = 1
        root = ET.Element("show")
        cmd = ET.SubElement(root, "object")
        if version is None or version >= (6, 1, 0):
            cmd = ET.SubElement(cmd, "registered-ip")
            if version is None or version >= (8, 0, 0):
                limit = 500
                ET.SubElement(cmd, "limit").text = str(limit)
                start_elm = ET.SubElement(cmd, "start-point")
                start_elm.text = str(start_offset)
        else:
            cmd = ET.SubElement(cmd, "registered-address")

        ip = _unique(ip)
        tags = [prefix + t for t in _unique(tags)]
        if len(tags) == 1:
            ET.SubElement(ET.SubElement(cmd, "tag"), "entry", {"name": tags[0]})
        if len(ip) == 1:
            ET.SubElement(cmd, "ip").text = ip[0]

        self.client.log_op("(op) getting registered ip addresses - ip:%s tags:%s", ip, tags)
        addresses = {}
        while True:
            resp = self.client.op(root, vsys=self.vsys)

            outfile = resp.find("./result/msg/line/outfile")
            if outfile is not None:
                raise err.PanDeviceError(
                    'PAN-OS returned "{0}" instead of IP/tag mappings, '
                    "please upgrade to PAN-OS 8.0+".format(outfile.text),
                    pan_device=self.client,
                )

            entries = resp.findall("./result/entry")
            for entry in entries:
                c_ip = entry.get("ip")
                if ip and c_ip not in ip:
                    continue
                c_tags = []
                for member in entry.findall("./tag/member"):
                    tag = member.text
                    if not prefix or tag.startswith(prefix):
                        if not tags or tag in tags:
                            c_tags.append(tag)
                if c_tags:
                    addresses[c_ip] = c_tags

            if start_elm is None or limit == 0 or len(entries) < limit:
                break

            start_offset += len(entries)
            start_elm.text = str(start_offset)

        return addresses

    def clear_registered_ip(self, ip=None, tags=None, prefix=None):
        """Unregister registered/tagged addresses

        When called without arguments, removes all registered addresses.
        This discards any pending batch.
        """
        addresses = self.get_registered_ip(ip, tags, prefix)
        self.batch_start()
        for c_ip, c_tags in addresses.items():
            # Tags are already prefixed
            self._ip_tags_raw("unregister", c_ip, c_tags)
        self.batch_end()

    def _ip_tags_raw(self, section, ip, tags):
        saved, self.prefix = self.prefix, ""
        try:
            self._ip_tags(section, ip, tags)
        finally:
            self.prefix = saved

    def audit_registered_ip(self, ip_tags_pairs):
        """Make the registered ip tags exactly ``ip_tags_pairs``.

        Only the differences with the device's current registrations are
        sent.  This discards any pending batch.

        Args:
            ip_tags_pairs (dict): IP address to a list of (unprefixed) tags.

        """
        device_list = self.get_registered_ip()
        requested = dict(
            (ip, [self.prefix + t for t in _unique(tags)])
            for ip, tags in ip_tags_pairs.items()
        )
        self.batch_start()
        for ip, tags in device_list.items():
            wanted = requested.get(ip, [])
            stale = [t for t in tags if t not in wanted]
            if stale:
                self._ip_tags_raw("unregister", ip, stale)
            if ip in requested:
                requested[ip] = [t for t in wanted if t not in tags]
        for ip, tags in requested.items():
            if tags:
                self._ip_tags_raw("register", ip, tags)
        self.batch_end()

    def set_group(self, group, users):
        """Set a group's membership to exactly ``users``.

        This method can be batched with batch_start() and batch_end().
        """
        root, payload = self._create_uidmessage()
        groups = self._section(payload, "groups")
        for entry in groups.findall("entry"):
            if entry.attrib.get("name") == group:
                members = entry.find("members")
                break
        else:
            entry = ET.SubElement(groups, "entry", {"name": group})
            members = ET.SubElement(entry, "members")
        for user in users:
            ET.SubElement(members, "entry", {"name": user})
        self.send(root)

    def _user_entry(self, section, user):
        root, payload = self._create_uidmessage()
        elm = self._section(payload, section)
        for entry in elm.findall("entry"):
            if entry.attrib.get("user") == user:
                return root, entry
        return root, ET.SubElement(elm, "entry", {"user": user})

    def _check_user_tags(self):
        version = self.client.versioning()
        if version is not None and version < (9, 1, 0):
            raise err.PanVersionError(
                "User tags require PAN-OS 9.1+, device is {0}".format(version)
            )

    def tag_user(self, user, tags, timeout=None, prefix=None):
        """Tag ``user`` for Dynamic User Groups (PAN-OS 9.1+).

        This method can be batched with batch_start() and batch_end().

        Args:
            user: The user.
            tags (list): The list of tags to apply.
            timeout (int): (Optional) The timeout for the given tags.
            prefix: Override class tag prefix.

        """
        self._check_user_tags()
        if prefix is None:
            prefix = self.prefix or ""
        root, entry = self._user_entry("register-user", user)
        te = entry.find("tag")
        if te is None:
            te = ET.SubElement(entry, "tag")
        props = {}
        if timeout is not None:
            props["timeout"] = str(int(timeout))
        for tag in string_or_list(tags):
            ET.SubElement(te, "member", props).text = prefix + tag
        self.send(root)

    def untag_user(self, user, tags=None, prefix=None):
        """Remove ``tags`` (default: all tags) from ``user`` (PAN-OS 9.1+)."""
        self._check_user_tags()
        if prefix is None:
            prefix = self.prefix or ""
        root, entry = self._user_entry("unregister-user", user)
        te = entry.find("tag")
        if tags is not None:
            if te is None:
                te = ET.SubElement(entry, "tag")
            for tag in string_or_list(tags):
                ET.SubElement(te, "member").text = prefix + tag
        elif te is not None:
            entry.remove(te)
        self.send(root)
