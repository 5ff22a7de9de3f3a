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
import sys
import typing

from apsc.errors import Fatal

from . import sidecar as sidecar_cmds
from .cli import commands
from .common import (
    CommandContext,
    check_required,
    enable_logging,
    env_to_cli,
    global_args,
)

_logger = logging.getLogger(__name__)

default_cfunc = sidecar_cmds.run_sidecar


def main(args: typing.Optional[typing.Sequence[str]] = None) -> None:
    cli = commands.assemble(arg_func=global_args).parse_args(args)
    env_to_cli(cli)
    enable_logging(cli)
    try:
        check_required(cli)
        ctx = CommandContext(cli)
        cfunc = getattr(cli, "cfunc", default_cfunc)
        cfunc(ctx)
    except Fatal as err:
        _logger.error("fatal: %s", err)
        sys.exit(1)
    return


if __name__ == "__main__":
    main()
