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

"""Tracking of asynchronous jobs (commits and long running operations)"""

import queue
import time
import xml.etree.ElementTree as ET

import panclient.errors as err
from panclient import getlogger

logger = getlogger(__name__)

PENDING = "pending"
ACTIVE = "active"
OK = "ok"
FAIL = "fail"
CANCELLED = "cancelled"

COMMIT_KINDS = ("Commit", "CommitAll", "Commit-All", "Validate")


def _lines(elm):
    """Non-empty ``line`` texts below ``elm``, or its own text."""
    if elm is None:
        return []
    ans = []
    for line in elm.iter("line"):
        text = "".join(line.itertext()).strip()
        if text:
            ans.append(text)
    if not ans and elm.text and elm.text.strip():
        ans.append(elm.text.strip())
    return ans


def _text(elm, path, default=None):
    ans = elm.find(path)
    if ans is None or ans.text is None:
        return default
    return ans.text.strip()


class Job(object):
    """A server side job as reported by ``show jobs id``.

    Attributes:
        id (int): The job id.
        kind (str): The job type, for example "Commit".
        status (str): The device's status: PEND, ACT or FIN.
        result (str): The device's result: PEND, OK or FAIL.
        progress (int): Percent complete.
        details (list): Detail lines.
        warnings (list): Warning lines.
        devices (list): For Panorama pushes, one dict per firewall with
            ``serial``, ``name``, ``status``, ``result`` and ``details``.

    """

    def __init__(
        self,
        id,
        kind=None,
        status=None,
        result=None,
        progress=0,
        details=None,
        warnings=None,
        devices=None,
    ):
        self.id = id
        self.kind = kind
        self.status = status
        self.result = result
        self.progress = progress
        self.details = details or []
        self.warnings = warnings or []
        self.devices = devices or []
        self.cancelled = False

    @classmethod
    def from_element(cls, elm):
        """Build a Job from a ``<job>`` element or a full response."""
        if elm.tag != "job":
            job = elm.find("./result/job")
            if job is None:
                raise err.PanDeviceError(
                    "No job in response: {0}".format(
                        ET.tostring(elm, encoding="unicode")
                    )
                )
            elm = job

        try:
            progress = int(_text(elm, "progress", "0"))
        except ValueError:
            # Completed jobs may report a timestamp here
            progress = 100 if _text(elm, "status") == "FIN" else 0

        devices = []
        for d in elm.findall("./devices/entry"):
            devices.append(
                {
                    "serial": _text(d, "serial-no"),
                    "name": _text(d, "devicename"),
                    "status": _text(d, "status"),
                    "result": _text(d, "result"),
                    "details": _lines(d.find("details")),
                }
            )

        return cls(
            int(_text(elm, "id", "0")),
            kind=_text(elm, "type"),
            status=_text(elm, "status"),
            result=_text(elm, "result"),
            progress=progress,
            details=_lines(elm.find("details")),
            warnings=_lines(elm.find("warnings")),
            devices=devices,
        )

    @property
    def state(self):
        if self.cancelled:
            return CANCELLED
        if self.status == "FIN":
            return OK if self.result == "OK" else FAIL
        if self.status == "PEND" or self.status is None:
            return PENDING
        return ACTIVE

    @property
    def finished(self):
        """The job and every device it pushes to have finished."""
        if self.status != "FIN":
            return False
        return all(d["result"] != "PEND" for d in self.devices)

    @property
    def errors(self):
        return self.details if self.result == "FAIL" else []

    def devices_ok(self):
        return all(d["result"] == "OK" for d in self.devices)

    def is_commit(self):
        return self.kind in COMMIT_KINDS

    def __repr__(self):
        return "<Job {0} {1} {2}%>".format(self.id, self.state, self.progress)


class JobTracker(object):
    """Polls jobs on a device until they finish.

    Args:
        client (PanClient): The device the jobs run on.

    """

    def __init__(self, client):
        self._logger = getlogger(__name__ + "." + self.__class__.__name__)
        self.client = client

    def show(self, job_id, target=None):
        """Current status of ``job_id`` as a :class:`Job`."""
        cmd = "<show><jobs><id>{0}</id></jobs></show>".format(int(job_id))
        return Job.from_element(self.client.op(cmd, target=target))

    def wait(
        self,
        job_id,
        interval=1.0,
        progress=None,
        result=None,
        cancel=None,
        timeout=None,
        target=None,
    ):
        """Block until the job finishes.

        Args:
            job_id (int): The job to watch.
            interval (float): Seconds between polls.
            progress (queue.Queue): Receives the percent complete each time
                it changes.  Values that do not fit are dropped.
            result (queue.Queue): Receives the finished :class:`Job`.
            cancel (threading.Event): Stop polling once set.  The job itself
                keeps running on the device.
            timeout (float): Give up after this many seconds.
            target (str): Serial number of a Panorama managed firewall.

        Returns:
            Job: The finished job.

        Raises:
            PanJobFailed: The job failed (PanCommitFailed for commits).
            PanJobCancelled: ``cancel`` was set.
            PanJobTimeout: ``timeout`` expired.

        """
        self.client.log_op("(op) waiting for job %s", job_id)
        start = time.monotonic()
        prev = None
        announced = False
        while True:
            if cancel is not None and cancel.is_set():
                raise self._cancelled(job_id)

            job = self.show(job_id, target=target)

            if job.progress != prev:
                prev = job.progress
                self.client.log_op("(op) job %s: %s percent complete", job_id, prev)
                if progress is not None:
                    try:
                        progress.put_nowait(prev)
                    except queue.Full:
                        pass

            if job.finished:
                break
            if job.status == "FIN" and not announced:
                self.client.log_op(
                    "(op) waiting for %d device commits ...", len(job.devices)
                )
                announced = True

            if timeout is not None and time.monotonic() - start > timeout:
                raise err.PanJobTimeout(
                    "Timeout waiting for job {0} completion".format(job_id),
                    pan_device=self.client,
                )

            if cancel is not None:
                if cancel.wait(interval):
                    raise self._cancelled(job_id)
            elif interval:
                time.sleep(interval)

        self._logger.debug("Job %s finished: %s", job_id, job.result)
        if result is not None:
            result.put(job)
        self.check(job)
        return job

    def check(self, job):
        """Raise the error a finished job reports, if any."""
        cls = err.PanCommitFailed if job.is_commit() else err.PanJobFailed
        if job.result == "FAIL":
            if job.details:
                msg = job.details[0]
            elif job.warnings:
                msg = job.warnings[0]
            else:
                msg = "Job {0} has failed to complete successfully".format(job.id)
            raise cls(msg, job=job, pan_device=self.client)
        if not job.devices_ok():
            raise cls(
                "Commit failed on one or more devices", job=job, pan_device=self.client
            )

    def _cancelled(self, job_id):
        self._logger.debug("Stopped waiting for job %s", job_id)
        return err.PanJobCancelled(
            "Stopped waiting for job {0}".format(job_id), pan_device=self.client
        )
