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

import argparse
import logging
import os
import typing

from apsc import election
from apsc import kube
from apsc import leader
from apsc import podlabels
from apsc.errors import ConfigError
from apsc.lock import LockDescriptor
from apsc.sidecar import DEFAULT_LABEL_KEY

from .cli import Parser


class CommandContext:
    """CLI Context for standard apsc commands."""

    def __init__(self, cli_args: argparse.Namespace):
        self._cli = cli_args
        self._clients: typing.Optional[kube.Clients] = None
        self._store: typing.Optional[podlabels.PodLabelStore] = None

    @property
    def cli(self) -> argparse.Namespace:
        return self._cli

    @property
    def clients(self) -> kube.Clients:
        if self._clients is None:
            self._clients = kube.new_clients(self.cli.kubeconfig)
        return self._clients

    @property
    def pod_store(self) -> podlabels.PodLabelStore:
        if self._store is None:
            self._store = podlabels.PodLabelStore(
                self.clients.core, self.cli.namespace, self.cli.pod_name
            )
        return self._store

    def new_elector(self, lock: LockDescriptor) -> leader.Elector:
        return election.LeaseElector(self.clients.coordination, lock)


def from_env(
    ns: argparse.Namespace,
    var: str,
    ename: str,
    default: typing.Any = None,
    convert_env: typing.Optional[typing.Callable] = None,
    convert_value: typing.Optional[typing.Callable] = str,
) -> None:
    """Bind an environment variable to a command line option. This allows
    certain cli options to be set from env vars if the cli option is
    not directly provided. An empty env var counts as unset.
    """
    value = getattr(ns, var, None)
    if not value:
        value = os.environ.get(ename, "")
        if convert_env is not None:
            value = convert_env(value)
    if not value:
        value = default
    if value and convert_value is not None:
        value = convert_value(value)
    setattr(ns, var, value)


def env_to_cli(cli: argparse.Namespace) -> None:
    """Configure the apsc default command line option to environment
    variable mappings.
    """
    from_env(cli, "namespace", "POD_NAMESPACE")
    from_env(cli, "pod_name", "POD_NAME")
    from_env(cli, "label_key", "LABEL_KEY", default=DEFAULT_LABEL_KEY)
    from_env(cli, "kubeconfig", "KUBECONFIG")


def check_required(cli: argparse.Namespace) -> None:
    if not cli.namespace:
        raise ConfigError("missing POD_NAMESPACE env var")
    if not cli.pod_name:
        raise ConfigError("missing POD_NAME env var")


def enable_logging(cli: argparse.Namespace) -> None:
    """Configure apsc command line logging."""
    level = logging.DEBUG if cli.debug else logging.INFO
    logger = logging.getLogger()
    logger.setLevel(level)
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("{asctime}: {levelname}: {message}", style="{")
    )
    handler.setLevel(level)
    logger.addHandler(handler)


def global_args(parser: Parser) -> None:
    """Configure apsc default global command line arguments."""
    parser.add_argument(
        "--namespace",
        help=(
            "Namespace of the pod running the sidecar"
            " (can also be set in the environment by POD_NAMESPACE)."
        ),
    )
    parser.add_argument(
        "--pod-name",
        help=(
            "Name of the pod running the sidecar"
            " (can also be set in the environment by POD_NAME)."
        ),
    )
    parser.add_argument(
        "--label-key",
        help=(
            "Label set on the pod while it is active"
            " (can also be set in the environment by LABEL_KEY,"
            f" default: {DEFAULT_LABEL_KEY})."
        ),
    )
    parser.add_argument(
        "--kubeconfig",
        help=(
            "Use a kubeconfig file instead of the in-cluster service account"
            " (can also be set in the environment by KUBECONFIG)."
        ),
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug level logging of apsc.",
    )
