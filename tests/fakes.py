#
# apsc: an active/passive sidecar for kubernetes pods
# Copyright (C) 2026  The apsc authors
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>
#
"""In-memory stand ins for the kubernetes API objects used by apsc."""

import datetime

from kubernetes.client import V1Lease, V1LeaseSpec, V1ObjectMeta, V1Pod
from kubernetes.client.exceptions import ApiException


def _conflict():
    return ApiException(status=409, reason="Conflict")


class FakePodAPI:
    """Keeps a single pod. Updates are checked against the resource version
    like the real API server does.
    """

    def __init__(self, namespace="ns1", name="app-0", labels=None):
        self.namespace = namespace
        self.name = name
        self.labels = dict(labels or {})
        self.version = 1
        self.reads = 0
        self.writes = 0
        self.read_error = None
        self.write_errors = []
        self.on_read = None

    def read_namespaced_pod(self, name, namespace, **kwargs):
        self.reads += 1
        if self.read_error is not None:
            raise self.read_error
        if (namespace, name) != (self.namespace, self.name):
            raise ApiException(status=404, reason="Not Found")
        pod = V1Pod(
            metadata=V1ObjectMeta(
                name=self.name,
                namespace=self.namespace,
                labels=dict(self.labels) if self.labels else None,
                resource_version=str(self.version),
            )
        )
        if self.on_read is not None:
            self.on_read()
        return pod

    def replace_namespaced_pod(self, name, namespace, body, **kwargs):
        self.writes += 1
        if self.write_errors:
            raise self.write_errors.pop(0)
        if body.metadata.resource_version != str(self.version):
            raise _conflict()
        self.labels = dict(body.metadata.labels or {})
        self.version += 1
        return body

    def external_update(self, labels):
        """Simulate another client changing the pod."""
        self.labels = dict(labels)
        self.version += 1


class FakeLeaseAPI:
    def __init__(self):
        self.leases = {}
        self.errors = []

    def _check(self):
        if self.errors:
            raise self.errors.pop(0)

    def _get(self, name, namespace):
        try:
            return self.leases[(namespace, name)]
        except KeyError:
            raise ApiException(status=404, reason="Not Found")

    def read_namespaced_lease(self, name, namespace, **kwargs):
        self._check()
        version, spec = self._get(name, namespace)
        return V1Lease(
            metadata=V1ObjectMeta(
                name=name, namespace=namespace, resource_version=str(version)
            ),
            spec=V1LeaseSpec(**spec),
        )

    def create_namespaced_lease(self, namespace, body, **kwargs):
        self._check()
        key = (namespace, body.metadata.name)
        if key in self.leases:
            raise _conflict()
        self.leases[key] = (1, _spec_dict(body.spec))
        return body

    def replace_namespaced_lease(self, name, namespace, body, **kwargs):
        self._check()
        version, _ = self._get(name, namespace)
        if body.metadata.resource_version != str(version):
            raise _conflict()
        self.leases[(namespace, name)] = (version + 1, _spec_dict(body.spec))
        return body

    def holder(self, name, namespace="ns1"):
        return self._get(name, namespace)[1].get("holder_identity")

    def spec(self, name, namespace="ns1"):
        return self._get(name, namespace)[1]

    def put(self, name, namespace="ns1", **spec):
        version = self.leases.get((namespace, name), (0, None))[0]
        self.leases[(namespace, name)] = (version + 1, spec)


def _spec_dict(spec):
    return {
        "holder_identity": spec.holder_identity,
        "lease_duration_seconds": spec.lease_duration_seconds,
        "acquire_time": spec.acquire_time,
        "renew_time": spec.renew_time,
        "lease_transitions": spec.lease_transitions,
    }


class FakeClock:
    """A stop event that also drives time forward. Every wait advances
    the clock by the requested timeout. Functions in on_count are called
    before the wait with the matching count.
    """

    start = datetime.datetime(2026, 1, 1, tzinfo=datetime.timezone.utc)

    def __init__(self, attempts=None):
        self.attempts = attempts
        self.count = 0
        self.offset = 0.0
        self.on_count = {}
        self._set = False

    def now(self):
        return self.start + datetime.timedelta(seconds=self.offset)

    def monotonic(self):
        return self.offset

    def is_set(self):
        return self._set

    def set(self):
        self._set = True

    def wait(self, timeout=None):
        wf = self.on_count.get(self.count, None)
        if wf is not None:
            wf()
        self.count += 1
        if self.attempts is not None and self.count >= self.attempts:
            self._set = True
        self.offset += timeout or 0
        return self._set


class FakeElector:
    """Replays a script of leadership events against the callbacks."""

    def __init__(self, lock, events):
        self.lock = lock
        self.events = list(events)
        self.ran = False

    def run(self, callbacks, stop_event):
        self.ran = True
        for event in self.events:
            if stop_event.is_set():
                break
            if event == "acquired":
                callbacks.on_acquired()
            elif event == "lost":
                callbacks.on_lost()
            elif event == "wait":
                stop_event.wait(10)
            elif callable(event):
                event()
