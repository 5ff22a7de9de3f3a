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
"""Leader election based on coordination.k8s.io/v1 Lease objects.

The elector reads the lease every retry period. If no lease exists one is
created naming this process as the holder. If the lease is held by another
identity it is only taken over once the lease record has not changed for
leaseDurationSeconds, measured on the local monotonic clock. The renewTime
written by another node is never compared with the local wall clock.
Conflicting updates (HTTP 409) simply count as a failed attempt.
A leader that fails to renew for longer than the renew deadline considers
the leadership lost and starts competing for the lease again.
"""

import dataclasses
import datetime
import logging
import threading
import time
import typing

from kubernetes.client import V1Lease, V1LeaseSpec, V1ObjectMeta
from kubernetes.client.exceptions import ApiException
import urllib3.exceptions

from apsc import leader
from apsc.lock import LockDescriptor

_logger = logging.getLogger(__name__)

NOT_FOUND = 404
CONFLICT = 409

_API_ERRORS = (ApiException, urllib3.exceptions.HTTPError)


@dataclasses.dataclass(frozen=True)
class ElectionConfig:
    """Timing parameters, in seconds, for lease based leader election."""

    lease_duration: int = 15
    renew_deadline: int = 10
    retry_period: int = 2
    release_on_cancel: bool = True

    def __post_init__(self) -> None:
        if self.lease_duration <= 0 or self.renew_deadline <= 0:
            raise ValueError("lease duration and renew deadline must be > 0")
        if self.retry_period <= 0:
            raise ValueError("retry period must be > 0")
        if self.renew_deadline >= self.lease_duration:
            raise ValueError("renew deadline must be less than lease duration")
        if self.retry_period >= self.renew_deadline:
            raise ValueError("retry period must be less than renew deadline")


class LeaseAPI(typing.Protocol):
    """The subset of the kubernetes CoordinationV1Api used for election."""

    def read_namespaced_lease(
        self, name: str, namespace: str, **kwargs: typing.Any
    ) -> typing.Any:
        ...  # pragma: no cover

    def create_namespaced_lease(
        self, namespace: str, body: typing.Any, **kwargs: typing.Any
    ) -> typing.Any:
        ...  # pragma: no cover

    def replace_namespaced_lease(
        self, name: str, namespace: str, body: typing.Any, **kwargs: typing.Any
    ) -> typing.Any:
        ...  # pragma: no cover


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class LeaseElector:
    def __init__(
        self,
        api: LeaseAPI,
        lock: LockDescriptor,
        config: typing.Optional[ElectionConfig] = None,
    ) -> None:
        self._api = api
        self.lock = lock
        self.config = config or ElectionConfig()
        # replaceable for unit tests
        self._now = _utcnow
        self._monotonic = time.monotonic
        self._observed: typing.Optional[tuple] = None
        self._observed_at = 0.0

    @property
    def _lease_id(self) -> str:
        return f"{self.lock.namespace}/{self.lock.name}"

    def _observe(self, lease: V1Lease) -> None:
        spec = lease.spec or V1LeaseSpec()
        record = (
            spec.holder_identity,
            spec.renew_time,
            lease.metadata.resource_version if lease.metadata else None,
        )
        if record != self._observed:
            self._observed = record
            self._observed_at = self._monotonic()

    def _expired(self, spec: V1LeaseSpec) -> bool:
        duration = spec.lease_duration_seconds or self.config.lease_duration
        return self._monotonic() - self._observed_at >= duration

    def _new_lease(self, now: datetime.datetime) -> V1Lease:
        return V1Lease(
            metadata=V1ObjectMeta(
                name=self.lock.name, namespace=self.lock.namespace
            ),
            spec=V1LeaseSpec(
                holder_identity=self.lock.holder_identity,
                lease_duration_seconds=self.config.lease_duration,
                acquire_time=now,
                renew_time=now,
                lease_transitions=0,
            ),
        )

    def _create(self, now: datetime.datetime) -> bool:
        try:
            self._api.create_namespaced_lease(
                namespace=self.lock.namespace, body=self._new_lease(now)
            )
        except ApiException as err:
            if err.status == CONFLICT:
                _logger.debug("lease %s created by another", self._lease_id)
            else:
                _logger.error(
                    "error creating lease %s: %s", self._lease_id, err.reason
                )
            return False
        except urllib3.exceptions.HTTPError as err:
            _logger.error("error creating lease %s: %s", self._lease_id, err)
            return False
        return True

    def try_acquire_or_renew(self) -> bool:
        """Make one attempt to take or keep the lease. Returns true if this
        process holds the lease afterwards.
        """
        now = self._now()
        try:
            lease = self._api.read_namespaced_lease(
                name=self.lock.name, namespace=self.lock.namespace
            )
        except ApiException as err:
            if err.status == NOT_FOUND:
                return self._create(now)
            _logger.error(
                "error retrieving lease %s: %s", self._lease_id, err.reason
            )
            return False
        except urllib3.exceptions.HTTPError as err:
            _logger.error("error retrieving lease %s: %s", self._lease_id, err)
            return False

        self._observe(lease)
        spec = lease.spec or V1LeaseSpec()
        holder = spec.holder_identity
        identity = self.lock.holder_identity
        if holder and holder != identity and not self._expired(spec):
            _logger.debug("lease %s is held by %s", self._lease_id, holder)
            return False
        if holder != identity:
            spec.acquire_time = now
            spec.lease_transitions = (spec.lease_transitions or 0) + 1
        spec.holder_identity = identity
        spec.lease_duration_seconds = self.config.lease_duration
        spec.renew_time = now
        lease.spec = spec
        try:
            self._api.replace_namespaced_lease(
                name=self.lock.name, namespace=self.lock.namespace, body=lease
            )
        except ApiException as err:
            if err.status == CONFLICT:
                _logger.debug("conflict updating lease %s", self._lease_id)
            else:
                _logger.error(
                    "error updating lease %s: %s", self._lease_id, err.reason
                )
            return False
        except urllib3.exceptions.HTTPError as err:
            _logger.error("error updating lease %s: %s", self._lease_id, err)
            return False
        return True

    def release(self) -> bool:
        """Give up the lease, if held, so another candidate can take it
        without waiting for it to expire.
        """
        try:
            lease = self._api.read_namespaced_lease(
                name=self.lock.name, namespace=self.lock.namespace
            )
        except _API_ERRORS as err:
            _logger.error(
                "failed to release lease %s: %s", self._lease_id, err
            )
            return False
        spec = lease.spec
        if spec is None or spec.holder_identity != self.lock.holder_identity:
            return False
        now = self._now()
        spec.holder_identity = None
        spec.lease_duration_seconds = 1
        spec.acquire_time = now
        spec.renew_time = now
        try:
            self._api.replace_namespaced_lease(
                name=self.lock.name, namespace=self.lock.namespace, body=lease
            )
        except _API_ERRORS as err:
            _logger.error(
                "failed to release lease %s: %s", self._lease_id, err
            )
            return False
        _logger.info("released lease %s", self._lease_id)
        return True

    def run(
        self, callbacks: leader.ElectionCallbacks, stop_event: threading.Event
    ) -> None:
        _logger.info(
            "attempting to acquire leader lease %s as %s",
            self._lease_id,
            self.lock.holder_identity,
        )
        leading = False
        last_renew = 0.0
        while not stop_event.is_set():
            if self.try_acquire_or_renew():
                last_renew = self._monotonic()
                if not leading:
                    leading = True
                    _logger.info(
                        "successfully acquired lease %s", self._lease_id
                    )
                    callbacks.on_acquired()
            elif leading:
                elapsed = self._monotonic() - last_renew
                if elapsed >= self.config.renew_deadline:
                    leading = False
                    _logger.warning(
                        "failed to renew lease %s for %.1fs",
                        self._lease_id,
                        elapsed,
                    )
                    callbacks.on_lost()
            stop_event.wait(self.config.retry_period)

        _logger.info("leader election for %s cancelled", self._lease_id)
        if leading:
            if self.config.release_on_cancel:
                self.release()
            callbacks.on_lost()
