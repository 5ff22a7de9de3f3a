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

import dataclasses
import logging
import typing

from apsc.podlabels import PodLabelStore

_logger = logging.getLogger(__name__)

NAME_LABEL = "app.kubernetes.io/name"
COMPONENT_LABEL = "app.kubernetes.io/component"


@dataclasses.dataclass(frozen=True)
class LockDescriptor:
    """Identifies the lease all replicas of a pod group compete for."""

    name: str
    namespace: str
    holder_identity: str

    def to_dict(self) -> dict[str, str]:
        return dataclasses.asdict(self)


def lock_name(labels: typing.Mapping[str, str]) -> str:
    """Derive a lease name from the well-known app labels of a pod.
    Missing labels are left as empty strings. The result is not validated.
    """
    return "{}-{}".format(
        labels.get(NAME_LABEL, ""), labels.get(COMPONENT_LABEL, "")
    )


def build_lock_descriptor(store: PodLabelStore) -> LockDescriptor:
    labels = store.get_labels()
    lock = LockDescriptor(
        name=lock_name(labels),
        namespace=store.namespace,
        holder_identity=store.name,
    )
    _logger.debug("generated lock: %r", lock)
    return lock
