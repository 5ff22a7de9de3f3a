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

from kubernetes import client
import pytest

import apsc.errors
import apsc.kube

kubeconfig1 = """
apiVersion: v1
kind: Config
clusters:
- name: test
  cluster:
    server: https://127.0.0.1:6443
contexts:
- name: test
  context:
    cluster: test
    user: test
current-context: test
users:
- name: test
  user:
    token: abc123
"""


def test_not_in_cluster(monkeypatch):
    monkeypatch.delenv("KUBERNETES_SERVICE_HOST", raising=False)
    monkeypatch.delenv("KUBERNETES_SERVICE_PORT", raising=False)
    with pytest.raises(apsc.errors.ConfigError):
        apsc.kube.new_clients()


def test_missing_kubeconfig(tmp_path):
    with pytest.raises(apsc.errors.Fatal):
        apsc.kube.load_config(str(tmp_path / "nope"))


def test_kubeconfig(tmp_path):
    fname = tmp_path / "kubeconfig"
    with open(fname, "w") as fh:
        fh.write(kubeconfig1)
    clients = apsc.kube.new_clients(str(fname))
    assert isinstance(clients.core, client.CoreV1Api)
    assert isinstance(clients.coordination, client.CoordinationV1Api)
    assert clients.core.api_client is clients.coordination.api_client


def test_malformed_kubeconfig(tmp_path):
    fname = tmp_path / "kubeconfig"
    with open(fname, "w") as fh:
        fh.write("clusters: [unclosed\n")
    with pytest.raises(apsc.errors.ConfigError):
        apsc.kube.load_config(str(fname))
