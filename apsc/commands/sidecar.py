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

import json
import sys
import threading

from apsc import shutdown
from apsc.errors import Fatal
from apsc.sidecar import SideCar

from .cli import commands, Context


def _new_sidecar(ctx: Context) -> SideCar:
    return SideCar(ctx.pod_store, key=ctx.cli.label_key)


@commands.command(name="run")
def run_sidecar(ctx: Context) -> None:
    """Label the pod active while it holds the leader lease."""
    sidecar = _new_sidecar(ctx)
    errors: list[Exception] = []

    def _elect() -> None:
        try:
            sidecar.run_leader_election(ctx.new_elector)
        except Exception as err:
            errors.append(err)

    with shutdown.SignalWatcher() as watcher:
        sidecar.generate_lock()
        worker = threading.Thread(
            target=_elect, name="leader-election", daemon=True
        )
        worker.start()
        if watcher.wait(worker) is not None:
            sidecar.shutdown()
            worker.join()
    if errors:
        raise errors[0]


@commands.command(name="print-lock")
def print_lock(ctx: Context) -> None:
    """Print the lease lock derived from the pod labels."""
    lock = _new_sidecar(ctx).generate_lock()
    json.dump(lock.to_dict(), sys.stdout, indent=2)
    sys.stdout.write("\n")


@commands.command(name="mark-passive")
def mark_passive(ctx: Context) -> None:
    """Remove the active label from the pod, if present."""
    sidecar = _new_sidecar(ctx)
    # assume a previous process labeled the pod so the removal is attempted
    sidecar.active = True
    sidecar.mark_passive()
    if sidecar.active:
        raise Fatal(f"failed to remove label {sidecar.key} from pod")
