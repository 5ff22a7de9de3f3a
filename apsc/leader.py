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

import threading
import typing


class ElectionCallbacks(typing.Protocol):
    """Receives leadership transitions from an elector."""

    def on_acquired(self) -> None:
        """Called once when the current process becomes the leader."""
        ...  # pragma: no cover

    def on_lost(self) -> None:
        """Called once when the current process stops being the leader."""
        ...  # pragma: no cover


class Elector(typing.Protocol):
    """Runs a leader election loop until cancelled.
    Implementations must only call on_acquired while not leading and
    on_lost while leading, so the callbacks are strictly alternating.
    """

    def run(
        self, callbacks: ElectionCallbacks, stop_event: threading.Event
    ) -> None:
        """Block, participating in the election, until stop_event is set."""
        ...  # pragma: no cover
