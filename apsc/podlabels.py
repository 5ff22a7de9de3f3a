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

import logging
import typing

from kubernetes.client.exceptions import ApiException
import urllib3.exceptions

from apsc.errors import Fatal

_logger = logging.getLogger(__name__)

CONFLICT = 409


class ObjectReadError(Fatal):
    """The pod object could not be fetched from the API server."""


class ObjectWriteError(Exception):
    """The pod object could not be updated. Not fatal."""

    def __init__(self, msg: str, status: typing.Optional[int] = None) -> None:
        super().__init__(msg)
        self.status = status

    @property
    def conflict(self) -> bool:
        """Return true if the pod changed since it was read."""
        return self.status == CONFLICT


class PodAPI(typing.Protocol):
    """The subset of the kubernetes CoreV1Api needed to manage labels."""

    def read_namespaced_pod(
        self, name: str, namespace: str, **kwargs: typing.Any
    ) -> typing.Any:
        ...  # pragma: no cover

    def replace_namespaced_pod(
        self, name: str, namespace: str, body: typing.Any, **kwargs: typing.Any
    ) -> typing.Any:
        ...  # pragma: no cover


class PodLabels:
    """A snapshot of a pod and its labels. The labels dict can be changed
    freely and then handed back to PodLabelStore.set_labels. The update is
    tied to the resource version of the pod at the time it was read.
    """

    def __init__(self, pod: typing.Any) -> None:
        self.pod = pod
        self.labels: dict[str, str] = dict(pod.metadata.labels or {})

    @property
    def resource_version(self) -> typing.Optional[str]:
        return self.pod.metadata.resource_version


class PodLabelStore:
    """Read and write the labels of a single named pod."""

    def __init__(self, api: PodAPI, namespace: str, name: str) -> None:
        self._api = api
        self.namespace = namespace
        self.name = name

    def read(self) -> PodLabels:
        try:
            pod = self._api.read_namespaced_pod(
                name=self.name, namespace=self.namespace
            )
        except (ApiException, urllib3.exceptions.HTTPError) as err:
            raise ObjectReadError(
                f"failed to get pod {self.namespace}/{self.name}: {err}"
            ) from err
        return PodLabels(pod)

    def get_labels(self) -> dict[str, str]:
        return self.read().labels

    def set_labels(self, snapshot: PodLabels) -> None:
        snapshot.pod.metadata.labels = dict(snapshot.labels)
        _logger.debug(
            "updating pod %s/%s (resource version %s) labels: %r",
            self.namespace,
            self.name,
            snapshot.resource_version,
            snapshot.labels,
        )
        try:
            self._api.replace_namespaced_pod(
                name=self.name, namespace=self.namespace, body=snapshot.pod
            )
        except ApiException as err:
            raise ObjectWriteError(
                f"failed to update pod {self.namespace}/{self.name}:"
                f" {err.status} {err.reason}",
                status=err.status,
            ) from err
        except urllib3.exceptions.HTTPError as err:
            raise ObjectWriteError(
                f"failed to update pod {self.namespace}/{self.name}: {err}"
            ) from err
