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

"""Policies"""

from panclient import util
from panclient.namespace import Namespace
from panclient.schema import VersionedEntry, VersionedParamPath


class SecurityRule(VersionedEntry):
    """Security Rule

    Zone, address, user, application, service and category lists default to
    ``["any"]`` (services to ``["application-default"]``).

    Args:
        name (str): Name of the rule
        fromzone (list): From zones
        tozone (list): To zones
        source (list): Source addresses
        source_user (list): Source users and groups
        hip_profiles (list): HIP profiles
        destination (list): Destination addresses
        application (list): Applications
        service (list): Destination services
        category (list): URL categories
        action (str): allow, deny, drop, reset-client, reset-server or
            reset-both
        log_setting (str): Log forwarding profile
        log_start (bool): Log at session start
        log_end (bool): Log at session end
        description (str): Description
        type (str): universal (default), intrazone or interzone
        tag (list): Administrative tags
        negate_source (bool): Negate the source
        negate_destination (bool): Negate the destination
        disabled (bool): Disable this rule
        schedule (str): Schedule
        icmp_unreachable (bool): Send ICMP unreachable
        disable_server_response_inspection (bool): Skip server response
            inspection
        group (list): Security profile group
        negate_target (bool): Panorama only, target all firewalls but
            ``target``
        target (dict): Panorama only, serial number to vsys list
        virus (list): Antivirus profile
        spyware (list): Anti-spyware profile
        vulnerability (list): Vulnerability protection profile
        url_filtering (list): URL filtering profile
        file_blocking (list): File blocking profile
        wildfire_analysis (list): WildFire analysis profile
        data_filtering (list): Data filtering profile

    """

    # (param, path, vartype, default)
    PARAMS = (
        ("fromzone", "from", "member", ["any"]),
        ("tozone", "to", "member", ["any"]),
        ("source", "source", "member", ["any"]),
        ("source_user", "source-user", "member", ["any"]),
        ("hip_profiles", "hip-profiles", "member", ["any"]),
        ("destination", "destination", "member", ["any"]),
        ("application", "application", "member", ["any"]),
        ("service", "service", "member", ["application-default"]),
        ("category", "category", "member", ["any"]),
        ("action", "action", None, None),
        ("log_setting", "log-setting", None, None),
        ("log_start", "log-start", "yesno", None),
        ("log_end", "log-end", "yesno", None),
        ("description", "description", None, None),
        ("type", "rule-type", None, "universal"),
        ("tag", "tag", "member", None),
        ("negate_source", "negate-source", "yesno", None),
        ("negate_destination", "negate-destination", "yesno", None),
        ("disabled", "disabled", "yesno", None),
        ("schedule", "schedule", None, None),
        ("icmp_unreachable", "icmp-unreachable", "yesno", None),
        (
            "disable_server_response_inspection",
            "option/disable-server-response-inspection",
            "yesno",
            None,
        ),
        ("group", "profile-setting/group", "member", None),
        ("negate_target", "target/negate", "yesno", None),
        ("target", "target/devices", "vsysmap", None),
    )

    PROFILES = (
        "virus",
        "spyware",
        "vulnerability",
        "url-filtering",
        "file-blocking",
        "wildfire-analysis",
        "data-filtering",
    )

    def _setup(self):
        params = []

        for name, path, vartype, default in self.PARAMS:
            params.append(
                VersionedParamPath(
                    name,
                    default=list(default) if isinstance(default, list) else default,
                    vartype=vartype,
                    path=path,
                )
            )
        for profile in self.PROFILES:
            params.append(
                VersionedParamPath(
                    profile,
                    vartype="member",
                    path="profile-setting/profiles/{0}".format(profile),
                )
            )

        self._params = tuple(params)


class SecurityRules(Namespace):
    """Security rules of a vsys, or of a device group's pre/post rulebase.

    Scope keywords: ``vsys`` on a firewall; ``device_group`` and
    ``rulebase`` (default: pre-rulebase) on Panorama.
    """

    ENTRY = SecurityRule
    SINGULAR = "security policy"
    PLURAL = "security policies"

    def xpath(self, names, vsys=None, device_group=None, rulebase=None):
        if self._is_panorama():
            rulebase = rulebase or util.PRE_RULEBASE
            if rulebase not in (util.PRE_RULEBASE, util.POST_RULEBASE):
                raise ValueError("Invalid rulebase: {0}".format(rulebase))
        elif rulebase not in (None, util.RULEBASE):
            raise ValueError("Firewalls only have the {0}".format(util.RULEBASE))
        else:
            rulebase = util.RULEBASE
        return self.location(vsys, device_group) + [
            rulebase,
            "security",
            "rules",
            util.as_entry_xpath(names),
        ]

    def set_audit_comment(self, name, comment, **scope):
        """Attach an audit comment to the rule ``name``."""
        self.client.audit.set_comment(self.xpath([name], **scope), comment)

    def current_audit_comment(self, name, **scope):
        """The rule's uncommitted audit comment ("" if there is none)."""
        return self.client.audit.get_comment(self.xpath([name], **scope))

    def audit_comment_history(self, name, direction="backward", nlogs=100, skip=None):
        """Committed audit comments of the rule ``name``.

        See :meth:`panclient.audit.AuditComments.history`.
        """
        return self.client.audit.history(
            name, "security", direction=direction, nlogs=nlogs, skip=skip
        )
