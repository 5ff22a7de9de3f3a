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
import threading
import typing

from apsc import leader
from apsc.errors import LockNotInitialized
from apsc.lock import LockDescriptor, build_lock_descriptor
from apsc.podlabels import ObjectWriteError, PodLabelStore

_logger = logging.getLogger(__name__)

DEFAULT_LABEL_KEY = "apsc.knoppiks.de/state"
ACTIVE = "active"

ElectorFactory = typing.Callable[[LockDescriptor], leader.Elector]


class SideCar:
    """Maintains the active label on a pod according to leadership.

    The active attribute tracks whether this process labeled the pod
    itself. It is only set by a successful write made by mark_active, so a
    label left over from a previous process will not make a new process
    consider itself active.
    """

    def __init__(
        self,
        store: PodLabelStore,
        key: str = DEFAULT_LABEL_KEY,
        stop_event: typing.Optional[threading.Event] = None,
    ) -> None:
        self.store = store
        self.key = key
        self.active = False
        self.lock: typing.Optional[LockDescriptor] = None
        self.stop_event = stop_event or threading.Event()

    @property
    def is_active(self) -> bool:
        return self.active

    @property
    def namespace(self) -> str:
        return self.store.namespace

    @property
    def name(self) -> str:
        return self.store.name

    def mark_active(self) -> None:
        snapshot = self.store.read()
        if self.key in snapshot.labels:
            _logger.debug("pod already has label %s, not updating", self.key)
            return
        snapshot.labels[self.key] = ACTIVE
        try:
            self.store.set_labels(snapshot)
        except ObjectWriteError as err:
            _logger.error("error updating pod labels: %s", err)
            return
        self.active = True
        _logger.info("pod %s/%s marked active", self.namespace, self.name)

    def mark_passive(self) -> None:
        if not self.active:
            return
        snapshot = self.store.read()
        if self.key in snapshot.labels:
            del snapshot.labels[self.key]
            try:
                self.store.set_labels(snapshot)
            except ObjectWriteError as err:
                _logger.error("error updating pod labels: %s", err)
                return
        else:
            _logger.info("label %s already removed from pod", self.key)
        self.active = False
        _logger.info("pod %s/%s marked passive", self.namespace, self.name)

    def on_acquired(self) -> None:
        _logger.info("we are the leader, marking active")
        self.mark_active()

    def on_lost(self) -> None:
        _logger.info("no longer the leader, marking inactive")
        self.mark_passive()

    def generate_lock(self) -> LockDescriptor:
        self.lock = build_lock_descriptor(self.store)
        return self.lock

    def run_leader_election(self, new_elector: ElectorFactory) -> None:
        """Participate in leader election until the sidecar is stopped.
        The elector is created from the lock built by generate_lock.
        """
        if self.lock is None:
            raise LockNotInitialized("lock not initialized")
        elector = new_elector(self.lock)
        elector.run(self, self.stop_event)

    def shutdown(self) -> None:
        """Demote the pod, if needed, and then stop the leader election."""
        self.mark_passive()
        self.stop_event.set()
