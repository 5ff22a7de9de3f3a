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

from kubernetes import client
from kubernetes import config as kconfig
from kubernetes.config.config_exception import ConfigException
import yaml

from apsc.errors import ConfigError

_logger = logging.getLogger(__name__)


@dataclasses.dataclass
class Clients:
    core: client.CoreV1Api
    coordination: client.CoordinationV1Api


def load_config(kubeconfig: typing.Optional[str] = None) -> None:
    """Configure the kubernetes client library. The in-cluster service
    account is used unless a kubeconfig file is given.
    """
    try:
        if kubeconfig:
            _logger.info("using kubeconfig: %s", kubeconfig)
            kconfig.load_kube_config(config_file=kubeconfig)
        else:
            kconfig.load_incluster_config()
    except (ConfigException, yaml.YAMLError) as err:
        raise ConfigError(f"failed to get kubecfg: {err}") from err


def new_clients(kubeconfig: typing.Optional[str] = None) -> Clients:
    load_config(kubeconfig)
    api_client = client.ApiClient()
    return Clients(
        core=client.CoreV1Api(api_client),
        coordination=client.CoordinationV1Api(api_client),
    )
